"""Data models for catalog content."""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

FlagValue = Union[bool, int]


class LocationTag(Enum):
    INVENTORY = "INVENTORY"
    CURRENT_ROOM = "CURRENT_ROOM"
    NOWHERE = "NOWHERE"


RESERVED_LOCATIONS = frozenset(tag.value for tag in LocationTag)


class Content(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)


# --- preconditions -------------------------------------------------------


class _Check(Content):
    failure: str | None = None


class FlagCheck(_Check):
    check: Literal["flag"]
    flag: str
    equals: FlagValue | None = None
    at_least: int | None = None


class HasItem(_Check):
    check: Literal["has_item"]
    item: str


class LacksItem(_Check):
    check: Literal["lacks_item"]
    item: str


class ItemAt(_Check):
    check: Literal["item_at"]
    item: str
    location: str


class InRoom(_Check):
    check: Literal["in_room"]
    room: str


class ItemStateCheck(_Check):
    check: Literal["item_state"]
    item: str
    state: str


class NpcAt(_Check):
    check: Literal["npc_at"]
    npc: str
    room: str


class HealthCheck(_Check):
    check: Literal["health"]
    at_least: int | None = None
    at_most: int | None = None


Precondition = Annotated[
    Union[FlagCheck, HasItem, LacksItem, ItemAt, InRoom, ItemStateCheck, NpcAt, HealthCheck],
    Field(discriminator="check"),
]


# --- effects -------------------------------------------------------------


class MoveItem(Content):
    do: Literal["move_item"]
    item: str
    to: str


class SetFlag(Content):
    do: Literal["set_flag"]
    flag: str
    value: FlagValue = True


class AddFlag(Content):
    do: Literal["add_flag"]
    flag: str
    amount: int = 1


class SetExit(Content):
    do: Literal["set_exit"]
    room: str
    exit: str
    locked: bool | None = None
    hidden: bool | None = None


class SetItemState(Content):
    do: Literal["set_item_state"]
    item: str
    state: str


class MoveNpc(Content):
    do: Literal["move_npc"]
    npc: str
    to: str


class Damage(Content):
    do: Literal["damage"]
    amount: int = Field(ge=1)


class Heal(Content):
    do: Literal["heal"]
    amount: int = Field(ge=1)


class Say(Content):
    do: Literal["say"]
    text: str


Effect = Annotated[
    Union[MoveItem, SetFlag, AddFlag, SetExit, SetItemState, MoveNpc, Damage, Heal, Say],
    Field(discriminator="do"),
]


# --- world entities ------------------------------------------------------


class Exit(Content):
    target: str
    names: tuple[str, ...] = ()
    tags: tuple[str, ...] = ()
    locked: bool = False
    locked_text: str | None = None
    hidden: bool = False
    requires: tuple[Precondition, ...] = ()
    message: str | None = None


class Room(Content):
    names: tuple[str, ...]
    description: str = ""
    items: tuple[str, ...] = ()
    exits: dict[str, Exit] = Field(default_factory=dict)  # noqa


class Item(Content):
    names: tuple[str, ...]
    description: str = ""
    tags: tuple[str, ...] = ()
    state: str | None = None
    states: dict[str, str] = Field(default_factory=dict)  # noqa
    # hit points restored when eaten
    heals: int | None = Field(default=None, ge=1)


class Npc(Content):
    names: tuple[str, ...]
    description: str = ""
    tags: tuple[str, ...] = ("npc",)
    location: str | None = None
    dialogue: str | None = None
    talk: str | None = None


class ActionRule(Content):
    id: str
    verb: str
    target: str | None = None
    target_tags: tuple[str, ...] = ()
    instrument: str | None = None
    instrument_tags: tuple[str, ...] = ()
    room: str | None = None
    preconditions: tuple[Precondition, ...] = ()
    effects: tuple[Effect, ...] = ()
    success: str | None = None
    once: bool = False

    @property
    def specificity(self) -> int:
        """Named ids weigh more than single tags."""
        score = len(self.target_tags) + len(self.instrument_tags)
        score += 2 * bool(self.target) + 2 * bool(self.instrument) + bool(self.room)
        return score


class DialogueChoice(Content):
    text: str
    preconditions: tuple[Precondition, ...] = ()
    effects: tuple[Effect, ...] = ()
    next: str | None = None


class DialogueNode(Content):
    speaker: str | None = None
    text: str = ""
    effects: tuple[Effect, ...] = ()
    choices: tuple[DialogueChoice, ...] = ()

    @property
    def terminal(self) -> bool:
        return not self.choices


class Ending(Content):
    preconditions: tuple[Precondition, ...]
    text: str = ""


class Settings(Content):
    start: str
    intro: str = ""
    max_turns: int | None = Field(default=None, ge=1)
    inventory_limit: int | None = Field(default=None, ge=0)
    # player hit points; the world has no health when unset
    health: int | None = Field(default=None, ge=1)
    max_health: int | None = Field(default=None, ge=1)
    messages: dict[str, str] = Field(default_factory=dict)  # noqa
    verbs: dict[str, tuple[str, ...]] = Field(default_factory=dict)  # noqa

    @property
    def health_cap(self) -> int | None:
        return self.max_health or self.health


__all__ = [
    "FlagValue",
    "LocationTag",
    "RESERVED_LOCATIONS",
    "Content",
    "FlagCheck",
    "HasItem",
    "LacksItem",
    "ItemAt",
    "InRoom",
    "ItemStateCheck",
    "NpcAt",
    "HealthCheck",
    "Precondition",
    "MoveItem",
    "SetFlag",
    "AddFlag",
    "SetExit",
    "SetItemState",
    "MoveNpc",
    "Damage",
    "Heal",
    "Say",
    "Effect",
    "Exit",
    "Room",
    "Item",
    "Npc",
    "ActionRule",
    "DialogueChoice",
    "DialogueNode",
    "Ending",
    "Settings",
]
