"""Game session aggregate and its serializable snapshot."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING

import yaml
from pydantic import BaseModel, ConfigDict, Field

from .errors import SnapshotError
from .world import WorldModel
from .world_model import FlagValue

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .catalog import ContentCatalog


class DialoguePointer(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    npc: str
    node: str


class Placement(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    item: str
    location: str


class ExitState(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    locked: bool = False
    hidden: bool = False


class Snapshot(BaseModel):
    """Immutable copy of a session taken at a turn boundary."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    current_room: str
    inventory: tuple[str, ...] = ()
    placements: tuple[Placement, ...] = ()
    flags: dict[str, FlagValue] = Field(default_factory=dict)  # noqa
    item_states: dict[str, str] = Field(default_factory=dict)  # noqa
    exits: dict[str, dict[str, ExitState]] = Field(default_factory=dict)  # noqa
    npc_locations: dict[str, str | None] = Field(default_factory=dict)  # noqa
    dialogue: DialoguePointer | None = None
    turns: int = 0
    fired_rules: tuple[str, ...] = ()
    ended: bool = False
    health: int | None = Field(default=None, ge=0)
    max_health: int | None = Field(default=None, ge=1)

    def to_yaml(self) -> str:
        return yaml.safe_dump(self.model_dump(mode="json"), sort_keys=True, allow_unicode=True)

    @classmethod
    def from_yaml(cls, text: str) -> Snapshot:
        return cls.model_validate(yaml.safe_load(text) or {})


class GameSession:
    """Aggregate root owned by the turn loop: world state plus dialogue pointer."""

    def __init__(
        self,
        catalog: ContentCatalog,
        world: WorldModel,
        dialogue: DialoguePointer | None = None,
        turns: int = 0,
        ended: bool = False,
    ) -> None:
        self.catalog = catalog
        self.world = world
        self.dialogue = dialogue
        self.turns = turns
        self.ended = ended

    @classmethod
    def new(cls, catalog: ContentCatalog, debug: bool = False) -> GameSession:
        return cls(catalog, WorldModel(catalog, debug=debug))

    @property
    def in_dialogue(self) -> bool:
        return self.dialogue is not None

    @contextmanager
    def transaction(self) -> Iterator[WorldModel]:
        """Stage mutations on a copy and commit them only if the block completes."""
        staged = self.world.clone()
        yield staged
        self.world = staged

    def save(self) -> Snapshot:
        state = self.world.to_state()
        return Snapshot(
            **state,
            dialogue=self.dialogue,
            turns=self.turns,
            ended=self.ended,
        )

    @classmethod
    def load(cls, catalog: ContentCatalog, snapshot: Snapshot, debug: bool = False) -> GameSession:
        """Rebuild a session from ``snapshot``.

        Raises ``SnapshotError`` if the snapshot references data missing from
        ``catalog``.
        """
        from . import integrity

        errors = integrity.validate_snapshot(snapshot, catalog)
        if errors:
            raise SnapshotError(errors)
        world = WorldModel(catalog, debug=debug)
        world.load_state(snapshot.model_dump(mode="json"))
        return cls(catalog, world, dialogue=snapshot.dialogue, turns=snapshot.turns, ended=snapshot.ended)


__all__ = ["DialoguePointer", "Placement", "ExitState", "Snapshot", "GameSession"]
