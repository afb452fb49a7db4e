"""Resolve intents against action rules and built-in verbs."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .dialogue import DialogueEngine
from .events import ActionFailureKind, Event, NarrativeText, ParseFailureKind, SessionEnded
from .parser import VERB_SYNONYMS, Intent, ParseFailure, Target
from .world import INVENTORY, NOWHERE

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .catalog import ContentCatalog
    from .session import GameSession
    from .world import WorldModel
    from .world_model import ActionRule

# built-ins that make no sense without an object
NEEDS_OBJECT = frozenset({"examine", "take", "drop", "eat", "talk", "ask", "use", "open", "close", "unlock", "lock"})


def _fail(kind: ActionFailureKind, text: str) -> list[Event]:
    return [NarrativeText(text, failure=kind)]


class ActionResolver:
    """Check an intent's preconditions and apply its effects as one unit.

    A matching rule from the catalog always wins over the built-in verb of
    the same name. Effects are staged on a copy of the world and committed
    only once every effect applied.
    """

    def __init__(self, catalog: ContentCatalog, messages: dict[str, str], dialogue: DialogueEngine | None = None):
        self.catalog = catalog
        self.messages = messages
        self.dialogue = dialogue or DialogueEngine(catalog, messages)

    @property
    def verbs(self) -> list[str]:
        verbs = set(VERB_SYNONYMS) | set(self.catalog.settings.verbs) | self.catalog.rule_verbs()
        return sorted(verbs)

    def explain(self, failure: ParseFailure) -> list[Event]:
        if failure.kind is ParseFailureKind.EMPTY:
            text = self.messages["empty_input"]
        elif failure.kind is ParseFailureKind.UNKNOWN_VERB:
            text = self.messages["unknown_verb"].format(verb=failure.verb)
        elif failure.kind is ParseFailureKind.UNKNOWN_OBJECT:
            text = self.messages["unknown_object"].format(name=failure.phrase)
        else:
            text = self.messages["ambiguous"].format(candidates=", ".join(failure.candidates))
        return [NarrativeText(text, failure=failure.kind)]

    def resolve(self, intent: Intent, session: GameSession) -> list[Event]:
        world = session.world
        world.debug(f"intent {intent.verb} {intent.target} {intent.instrument}")
        if intent.verb == "go":
            return self._go(intent, session)
        instrument = intent.instrument
        if instrument is not None and instrument.kind == "item" and world.location_of(instrument.id) != INVENTORY:
            return _fail(ActionFailureKind.NOT_REACHABLE, self.messages["not_reachable"].format(item=instrument.name))
        rule = self.select_rule(intent, world)
        if rule is not None:
            return self._apply_rule(rule, session)
        if intent.target is None and intent.verb in NEEDS_OBJECT:
            return [NarrativeText(self.messages["missing_object"].format(verb=intent.verb))]
        handler = getattr(self, f"_do_{intent.verb}", None)
        if handler is None:
            return [NarrativeText(self.messages["nothing_happens"])]
        return handler(intent, session)

    # --- rules ---
    def matching_rules(self, intent: Intent, world: WorldModel) -> list[ActionRule]:
        found = []
        for rule in self.catalog.actions:
            if rule.verb != intent.verb:
                continue
            if rule.once and rule.id in world.fired_rules:
                continue
            if rule.room is not None and rule.room != world.current_room:
                continue
            if not self._matches(rule.target, rule.target_tags, intent.target, world):
                continue
            if not self._matches(rule.instrument, rule.instrument_tags, intent.instrument, world):
                continue
            found.append(rule)
        return found

    def _matches(self, wanted_id: str | None, wanted_tags: tuple[str, ...], target: Target | None, world: WorldModel) -> bool:
        if target is None:
            return wanted_id is None and not wanted_tags
        if wanted_id is not None and wanted_id != target.id:
            return False
        tags = self.catalog.tags_of(target.kind, target.id, world.current_room)
        return all(tag in tags for tag in wanted_tags)

    def select_rule(self, intent: Intent, world: WorldModel) -> ActionRule | None:
        """Most satisfied preconditions first, then specificity, then declaration order."""
        candidates = self.matching_rules(intent, world)
        if not candidates:
            return None
        # max() keeps the first of equal keys
        return max(candidates, key=lambda rule: (world.count_met(rule.preconditions), rule.specificity))

    def _apply_rule(self, rule: ActionRule, session: GameSession) -> list[Event]:
        world = session.world
        unmet = world.first_unmet(rule.preconditions)
        if unmet is not None:
            world.debug(f"rule {rule.id} blocked by {unmet.check}")
            return _fail(ActionFailureKind.PRECONDITION_NOT_MET, unmet.failure or self.messages["nothing_happens"])
        world.debug(f"rule {rule.id}")
        with session.transaction() as staged:
            lines = staged.apply_effects(rule.effects)
            if rule.once:
                staged.fired_rules.add(rule.id)
        if rule.success:
            lines.insert(0, rule.success)
        if not lines:
            lines = [self.messages["done"]]
        return [NarrativeText(line) for line in lines]

    # --- movement ---
    def _go(self, intent: Intent, session: GameSession) -> list[Event]:
        world = session.world
        if intent.target is None:
            key = "cannot_go" if intent.direction else "where_to"
            return [NarrativeText(self.messages[key])]
        exit_key = intent.target.id
        exit_cfg = world.visible_exits().get(exit_key)
        if exit_cfg is None:
            return [NarrativeText(self.messages["cannot_go"])]
        if world.is_locked(world.current_room, exit_key):
            text = exit_cfg.locked_text or self.messages["locked"].format(exit=exit_key)
            return _fail(ActionFailureKind.LOCKED, text)
        unmet = world.first_unmet(exit_cfg.requires)
        if unmet is not None:
            return _fail(ActionFailureKind.PRECONDITION_NOT_MET, unmet.failure or self.messages["cannot_go"])
        with session.transaction() as staged:
            staged.set_current_room(exit_cfg.target)
        description = session.world.describe_room(self.messages)
        if exit_cfg.message:
            description = f"{exit_cfg.message}\n{description}"
        return [NarrativeText(description)]

    # --- built-in verbs ---
    def _do_look(self, intent: Intent, session: GameSession) -> list[Event]:
        return [NarrativeText(session.world.describe_room(self.messages))]

    def _do_examine(self, intent: Intent, session: GameSession) -> list[Event]:
        target = intent.target
        world = session.world
        if target.kind == "item":
            text = world.describe_item(target.id)
        elif target.kind == "npc":
            npc = self.catalog.npcs[target.id]
            text = npc.description or npc.names[0]
        else:
            exit_cfg = self.catalog.rooms[world.current_room].exits[target.id]
            text = self.messages["exit_leads"].format(exit=target.id, room=world.room_name(exit_cfg.target))
        return [NarrativeText(text)]

    def _do_inventory(self, intent: Intent, session: GameSession) -> list[Event]:
        return [NarrativeText(session.world.describe_inventory(self.messages))]

    def _do_take(self, intent: Intent, session: GameSession) -> list[Event]:
        target = intent.target
        world = session.world
        if target.kind != "item" or "portable" not in self.catalog.items[target.id].tags:
            return _fail(ActionFailureKind.PRECONDITION_NOT_MET, self.messages["cannot_take"].format(item=target.name))
        if world.location_of(target.id) == INVENTORY:
            return _fail(
                ActionFailureKind.PRECONDITION_NOT_MET, self.messages["already_carrying"].format(item=target.name)
            )
        limit = self.catalog.settings.inventory_limit
        if limit is not None and len(world.inventory) >= limit:
            return _fail(ActionFailureKind.PRECONDITION_NOT_MET, self.messages["inventory_full"])
        with session.transaction() as staged:
            staged.move_item(target.id, INVENTORY)
        return [NarrativeText(self.messages["taken"].format(item=target.name))]

    def _do_drop(self, intent: Intent, session: GameSession) -> list[Event]:
        target = intent.target
        if target.kind != "item" or session.world.location_of(target.id) != INVENTORY:
            return _fail(ActionFailureKind.NOT_REACHABLE, self.messages["not_carrying"].format(item=target.name))
        with session.transaction() as staged:
            staged.move_item(target.id, staged.current_room)
        return [NarrativeText(self.messages["dropped"].format(item=target.name))]

    def _do_eat(self, intent: Intent, session: GameSession) -> list[Event]:
        target = intent.target
        world = session.world
        item = self.catalog.items.get(target.id) if target.kind == "item" else None
        if item is None or item.heals is None:
            return _fail(ActionFailureKind.PRECONDITION_NOT_MET, self.messages["cannot_eat"].format(item=target.name))
        if world.location_of(target.id) != INVENTORY:
            return _fail(ActionFailureKind.NOT_REACHABLE, self.messages["not_reachable"].format(item=target.name))
        with session.transaction() as staged:
            staged.move_item(target.id, NOWHERE)
            gained = staged.heal(item.heals)
        world = session.world
        text = self.messages["ate"].format(
            item=target.name, healed=gained, health=world.health, max_health=world.max_health
        )
        return [NarrativeText(text)]

    def _do_talk(self, intent: Intent, session: GameSession) -> list[Event]:
        target = intent.target
        if target.kind != "npc":
            return [NarrativeText(self.messages["not_npc"].format(name=target.name))]
        return self.dialogue.start(target.id, session)

    _do_ask = _do_talk

    def _do_wait(self, intent: Intent, session: GameSession) -> list[Event]:
        return [NarrativeText(self.messages["waited"])]

    def _do_status(self, intent: Intent, session: GameSession) -> list[Event]:
        world = session.world
        lines = [self.messages["status_room"].format(room=world.room_name())]
        if world.has_health:
            lines.append(self.messages["status_health"].format(health=world.health, max_health=world.max_health))
        lines.append(world.describe_inventory(self.messages))
        limit = self.catalog.settings.max_turns
        if limit is not None:
            lines.append(self.messages["status_turns"].format(turns=max(0, limit - session.turns)))
        return [NarrativeText("\n".join(lines))]

    def _do_help(self, intent: Intent, session: GameSession) -> list[Event]:
        return [NarrativeText(self.messages["help"].format(verbs=", ".join(self.verbs)))]

    def _do_quit(self, intent: Intent, session: GameSession) -> list[Event]:
        return [NarrativeText(self.messages["farewell"]), SessionEnded("quit")]


__all__ = ["ActionResolver", "NEEDS_OBJECT"]
