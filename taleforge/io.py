"""Console input/output and a plain event narrator."""

from __future__ import annotations

from collections.abc import Iterable

from .events import ChoiceMenu, Event, NarrativeText
from .interfaces import IOBackend, Narrator


class ConsoleIO(IOBackend):
    """Read from stdin and write to stdout."""

    def get_input(self, prompt: str = "> ") -> str:
        return input(prompt)

    def output(self, text: str) -> None:
        print(text)


class ConsoleNarrator(Narrator):
    """Write narrative text as is and menus as ``n. text`` lines."""

    def __init__(self, io: IOBackend):
        self.io = io

    def render(self, events: Iterable[Event]) -> None:
        for event in events:
            if isinstance(event, NarrativeText):
                self.io.output(event.text)
            elif isinstance(event, ChoiceMenu):
                for option in event.options:
                    self.io.output(f"{option.number}. {option.text}")


__all__ = ["ConsoleIO", "ConsoleNarrator"]
