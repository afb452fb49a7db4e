"""Protocol interfaces for engine collaborators."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .events import Event


@runtime_checkable
class IOBackend(Protocol):
    """Interface for input and output backends."""

    def get_input(self, prompt: str = "> ") -> str:  # pragma: no cover - interface
        """Return user input for the given prompt."""
        ...

    def output(self, text: str) -> None:  # pragma: no cover - interface
        """Display ``text`` to the user."""
        ...


@runtime_checkable
class Narrator(Protocol):
    """Interface for rendering engine events."""

    def render(self, events: Iterable[Event]) -> None:  # pragma: no cover - interface
        """Present ``events`` in order."""
        ...


__all__ = ["IOBackend", "Narrator"]
