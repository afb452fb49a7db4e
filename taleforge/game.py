"""Core game loop orchestrator."""

from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import ValidationError

from .catalog import ContentCatalog
from .dialogue import DialogueEngine
from .errors import CatalogError, ConsistencyViolation, SnapshotError
from .events import Event, NarrativeText, SessionEnded, failures
from .interfaces import IOBackend, Narrator
from .io import ConsoleIO, ConsoleNarrator
from .messages import load_messages
from .parser import CommandParser, ParseFailure
from .persistence import SaveManager
from .resolver import ActionResolver
from .session import GameSession
from .world import WorldModel

DEMO_WORLD = Path(__file__).resolve().parent / "data" / "ship.yaml"


class Game:
    """Explicit turn loop: read a line, parse and resolve it, render the events.

    While a conversation is active the line is read as a choice number and
    handed to the dialogue engine instead of the parser.
    """

    def __init__(
        self,
        world_path: str | Path,
        io_backend: IOBackend | None = None,
        narrator: Narrator | None = None,
        save_path: str | Path | None = None,
        debug: bool = False,
    ) -> None:
        self.debug = debug
        self.io = io_backend or ConsoleIO()
        self.narrator = narrator or ConsoleNarrator(self.io)

        try:
            self.catalog = ContentCatalog.from_file(world_path)
            self.messages = load_messages(self.catalog.settings.messages)
        except FileNotFoundError as exc:
            self.io.output(f"ERROR: Missing world file: {exc}")
            raise SystemExit from exc
        except yaml.YAMLError as exc:
            self.io.output(f"ERROR: Invalid world file: {exc}")
            raise SystemExit from exc
        except CatalogError as exc:
            for msg in exc.errors:
                self.io.output(f"ERROR: {msg}")
            raise SystemExit("Integrity check failed") from exc

        self.save_manager = SaveManager(save_path) if save_path else None
        session = None
        if self.save_manager is not None:
            try:
                session = self.save_manager.load(self.catalog, debug=debug)
            except (yaml.YAMLError, ValidationError, UnicodeDecodeError) as exc:
                self.io.output(f"ERROR: Failed to load save file: {exc}")
                raise SystemExit from exc
            except SnapshotError as exc:
                for msg in exc.errors:
                    self.io.output(f"ERROR: {msg}")
                raise SystemExit("Integrity check failed") from exc
        if session is not None and session.ended:
            session = None
        self._resumed = session is not None
        self.session = session or GameSession.new(self.catalog, debug=debug)

        self.parser = CommandParser(self.catalog)
        self.dialogue = DialogueEngine(self.catalog, self.messages)
        self.resolver = ActionResolver(self.catalog, self.messages, self.dialogue)
        self.running = True
        self.world.debug(f"game_init current {self.world.current_room} inventory {self.world.inventory}")

    @property
    def world(self) -> WorldModel:
        return self.session.world

    def stop(self) -> None:
        self.running = False

    def opening(self) -> list[Event]:
        events: list[Event] = []
        if not self._resumed and self.catalog.settings.intro:
            events.append(NarrativeText(self.catalog.settings.intro))
        events.append(NarrativeText(self.world.describe_room(self.messages)))
        pointer = self.session.dialogue
        if pointer is not None:
            node = self.catalog.dialogue[pointer.node]
            if node.text:
                events.append(NarrativeText(self.dialogue.line(pointer.npc, node)))
            events.append(self.dialogue.menu(self.session))
        return events

    def play_turn(self, line: str) -> list[Event]:
        """Process one input line and return the resulting events in causal order."""
        session = self.session
        self.world.debug(f"input={line}")
        if session.in_dialogue:
            events = self.dialogue.advance(self._choice_number(line), session)
            if failures(events):
                return events
        else:
            parsed = self.parser.parse(line, session.world)
            if isinstance(parsed, ParseFailure):
                return self.resolver.explain(parsed)
            events = self.resolver.resolve(parsed, session)
        if any(isinstance(event, SessionEnded) for event in events):
            self.stop()
            return events
        session.turns += 1
        events.extend(self._check_end())
        return events

    def _choice_number(self, line: str) -> int:
        try:
            return int(line.strip())
        except ValueError:
            return 0

    def _check_end(self) -> list[Event]:
        session = self.session
        found = self.world.check_endings()
        if found:
            end_id, ending = found
            self.world.debug(f"ending_reached {end_id}")
            events: list[Event] = [NarrativeText(ending.text)] if ending.text else []
            return events + self._finish(end_id)
        if self.world.is_dead:
            self.world.debug("player died")
            return [NarrativeText(self.messages["died"]), *self._finish("died")]
        limit = self.catalog.settings.max_turns
        if limit is not None and session.turns >= limit:
            self.world.debug(f"out_of_turns {session.turns}")
            return [NarrativeText(self.messages["out_of_turns"]), *self._finish("out_of_turns")]
        return []

    def _finish(self, reason: str) -> list[Event]:
        self.session.ended = True
        self.session.dialogue = None
        self.stop()
        return [SessionEnded(reason)]

    def run(self) -> None:
        self.narrator.render(self.opening())
        try:
            while self.running:
                user_input = self.io.get_input()
                self.narrator.render(self.play_turn(user_input))
        except (EOFError, KeyboardInterrupt):
            self.io.output(self.messages["farewell"])
        except ConsistencyViolation as exc:
            for msg in exc.errors:
                self.io.output(f"ERROR: {msg}")
            raise SystemExit("Consistency check failed") from exc
        finally:
            if self.save_manager is not None:
                if self.session.ended:
                    self.save_manager.cleanup()
                else:
                    self.save_manager.save(self.session)


def run(
    world_path: str | Path,
    io_backend: IOBackend | None = None,
    save_path: str | Path | None = None,
    debug: bool = False,
) -> None:
    Game(world_path, io_backend=io_backend, save_path=save_path, debug=debug).run()


__all__ = ["Game", "run", "DEMO_WORLD"]
