"""Events emitted by the engine for the presentation layer."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Union


class ParseFailureKind(Enum):
    UNKNOWN_VERB = "unknown_verb"
    UNKNOWN_OBJECT = "unknown_object"
    AMBIGUOUS = "ambiguous"
    EMPTY = "empty"


class ActionFailureKind(Enum):
    PRECONDITION_NOT_MET = "precondition_not_met"
    LOCKED = "locked"
    NOT_REACHABLE = "not_reachable"


class DialogueFailureKind(Enum):
    INVALID_CHOICE = "invalid_choice"


FailureKind = Union[ParseFailureKind, ActionFailureKind, DialogueFailureKind]


@dataclass(frozen=True)
class NarrativeText:
    text: str
    failure: FailureKind | None = None


@dataclass(frozen=True)
class MenuOption:
    number: int
    text: str


@dataclass(frozen=True)
class ChoiceMenu:
    options: tuple[MenuOption, ...] = field(default_factory=tuple)

    @property
    def choices(self) -> list[str]:
        return [opt.text for opt in self.options]

    @property
    def numbers(self) -> list[int]:
        return [opt.number for opt in self.options]


@dataclass(frozen=True)
class SessionEnded:
    reason: str


Event = Union[NarrativeText, ChoiceMenu, SessionEnded]


def failures(events: list[Event]) -> list[FailureKind]:
    return [ev.failure for ev in events if isinstance(ev, NarrativeText) and ev.failure is not None]


__all__ = [
    "ParseFailureKind",
    "ActionFailureKind",
    "DialogueFailureKind",
    "FailureKind",
    "NarrativeText",
    "MenuOption",
    "ChoiceMenu",
    "SessionEnded",
    "Event",
    "failures",
]
