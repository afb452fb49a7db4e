"""Conversation state machine driven by numbered choices."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .errors import ConsistencyViolation
from .events import ChoiceMenu, DialogueFailureKind, Event, MenuOption, NarrativeText
from .session import DialoguePointer

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .catalog import ContentCatalog
    from .session import GameSession
    from .world_model import DialogueNode


class DialogueEngine:
    """Walk the dialogue arena: ``Inactive -> node -> ... -> Inactive``.

    The active node lives on the session as a ``DialoguePointer``; clearing
    it returns the turn loop to the command parser. Choice numbers are
    1-based positions in the node's full choice list, so a hidden choice
    never shifts the numbers of the ones after it.
    """

    def __init__(self, catalog: ContentCatalog, messages: dict[str, str]):
        self.catalog = catalog
        self.messages = messages

    def start(self, npc_id: str, session: GameSession) -> list[Event]:
        npc = self.catalog.npcs[npc_id]
        if npc.dialogue is None:
            text = npc.talk or self.messages["no_dialogue"].format(npc=npc.names[0])
            return [NarrativeText(text)]
        node = self.catalog.dialogue[npc.dialogue]
        with session.transaction() as staged:
            lines = staged.apply_effects(node.effects)
        session.dialogue = DialoguePointer(npc=npc_id, node=npc.dialogue)
        session.world.debug(f"dialogue {npc_id} {npc.dialogue}")
        return self._emit(session, lines)

    def advance(self, choice_index: int, session: GameSession) -> list[Event]:
        pointer = session.dialogue
        if pointer is None:
            raise ConsistencyViolation("No conversation is active")
        node = self.catalog.dialogue[pointer.node]
        choice = None
        if 1 <= choice_index <= len(node.choices):
            candidate = node.choices[choice_index - 1]
            if session.world.first_unmet(candidate.preconditions) is None:
                choice = candidate
        if choice is None:
            session.world.debug(f"dialogue invalid choice {choice_index}")
            return [
                NarrativeText(self.messages["invalid_choice"], failure=DialogueFailureKind.INVALID_CHOICE),
                self.menu(session),
            ]
        with session.transaction() as staged:
            lines = staged.apply_effects(choice.effects)
            if choice.next is not None:
                lines += staged.apply_effects(self.catalog.dialogue[choice.next].effects)
        if choice.next is None:
            session.dialogue = None
            session.world.debug(f"dialogue {pointer.npc} ended")
            return [NarrativeText(line) for line in lines or [self.messages["conversation_over"]]]
        session.dialogue = DialoguePointer(npc=pointer.npc, node=choice.next)
        session.world.debug(f"dialogue {pointer.npc} {choice.next}")
        return self._emit(session, lines)

    def menu(self, session: GameSession) -> ChoiceMenu:
        """Currently eligible choices of the active node, keeping their numbers."""
        if session.dialogue is None:
            return ChoiceMenu()
        node = self.catalog.dialogue[session.dialogue.node]
        options = tuple(
            MenuOption(number, choice.text)
            for number, choice in enumerate(node.choices, start=1)
            if session.world.first_unmet(choice.preconditions) is None
        )
        return ChoiceMenu(options)

    def line(self, npc_id: str, node: DialogueNode) -> str:
        speaker = node.speaker or self.catalog.npcs[npc_id].names[0]
        return f"{speaker}: {node.text}"

    def _emit(self, session: GameSession, lines: list[str]) -> list[Event]:
        pointer = session.dialogue
        assert pointer is not None
        node = self.catalog.dialogue[pointer.node]
        events: list[Event] = []
        if node.text:
            events.append(NarrativeText(self.line(pointer.npc, node)))
        events.extend(NarrativeText(line) for line in lines)
        menu = self.menu(session)
        if menu.options:
            events.append(menu)
        else:
            # terminal node, or nothing left the player may say
            session.dialogue = None
            session.world.debug(f"dialogue {pointer.npc} ended")
        return events


__all__ = ["DialogueEngine"]
