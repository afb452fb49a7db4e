"""Mutable world state: item placement, flags, exits and NPC positions."""

from __future__ import annotations

import copy
import inspect
import os
import sys
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from .errors import ConsistencyViolation
from .world_model import Effect, Ending, Exit, FlagValue, LocationTag, Precondition

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .catalog import ContentCatalog

INVENTORY = LocationTag.INVENTORY.value
NOWHERE = LocationTag.NOWHERE.value
CURRENT_ROOM = LocationTag.CURRENT_ROOM.value


class WorldModel:
    """Authoritative runtime state built from catalog defaults.

    Every item has exactly one location (a room id, ``INVENTORY`` or
    ``NOWHERE``); room contents and the inventory are views over that
    single mapping, so an item can never sit in two containers. The
    mapping keeps arrival order, which is the display order.
    """

    def __init__(self, catalog: ContentCatalog, debug: bool = False):
        self.catalog = catalog
        self._debug_enabled = debug
        self.current_room: str = catalog.settings.start
        self._locations: dict[str, str] = catalog.initial_locations()
        self.flags: dict[str, FlagValue] = {}
        self.item_states: dict[str, str] = {
            item_id: item.state for item_id, item in catalog.items.items() if item.state is not None
        }
        self.locked_exits: set[tuple[str, str]] = set()
        self.hidden_exits: set[tuple[str, str]] = set()
        for room_id, room in catalog.rooms.items():
            for key, cfg in room.exits.items():
                if cfg.locked:
                    self.locked_exits.add((room_id, key))
                if cfg.hidden:
                    self.hidden_exits.add((room_id, key))
        self.npc_locations: dict[str, str | None] = {npc_id: npc.location for npc_id, npc in catalog.npcs.items()}
        self.fired_rules: set[str] = set()
        self.health: int | None = catalog.settings.health
        self.max_health: int | None = catalog.settings.health_cap

    def debug(self, message: str) -> None:
        if self._debug_enabled:
            frame = inspect.stack()[1]
            filename = os.path.basename(frame.filename)
            lineno = frame.lineno
            print(f"{filename}:{lineno} -- {message}", file=sys.stderr)

    def clone(self) -> WorldModel:
        """Return an independent copy sharing only the immutable catalog."""
        twin = copy.copy(self)
        twin._locations = dict(self._locations)
        twin.flags = dict(self.flags)
        twin.item_states = dict(self.item_states)
        twin.locked_exits = set(self.locked_exits)
        twin.hidden_exits = set(self.hidden_exits)
        twin.npc_locations = dict(self.npc_locations)
        twin.fired_rules = set(self.fired_rules)
        return twin

    # --- queries ---
    def location_of(self, item_id: str) -> str:
        try:
            return self._locations[item_id]
        except KeyError as exc:
            raise ConsistencyViolation(f"Unknown item '{item_id}'") from exc

    @property
    def inventory(self) -> list[str]:
        return [item_id for item_id, loc in self._locations.items() if loc == INVENTORY]

    def items_in(self, room_id: str | None = None) -> list[str]:
        room_id = room_id or self.current_room
        return [item_id for item_id, loc in self._locations.items() if loc == room_id]

    def npcs_in(self, room_id: str | None = None) -> list[str]:
        room_id = room_id or self.current_room
        return [npc_id for npc_id, loc in self.npc_locations.items() if loc == room_id]

    def flag(self, name: str) -> FlagValue:
        return self.flags.get(name, False)

    def is_locked(self, room_id: str, exit_key: str) -> bool:
        return (room_id, exit_key) in self.locked_exits

    def visible_exits(self, room_id: str | None = None) -> dict[str, Exit]:
        room_id = room_id or self.current_room
        room = self.catalog.rooms[room_id]
        return {key: cfg for key, cfg in room.exits.items() if (room_id, key) not in self.hidden_exits}

    def item_name(self, item_id: str) -> str:
        return self.catalog.items[item_id].names[0]

    def npc_name(self, npc_id: str) -> str:
        return self.catalog.npcs[npc_id].names[0]

    def room_name(self, room_id: str | None = None) -> str:
        return self.catalog.rooms[room_id or self.current_room].names[0]

    @property
    def has_health(self) -> bool:
        return self.health is not None

    @property
    def is_dead(self) -> bool:
        return self.health == 0

    # --- mutators ---
    def _resolve_room(self, location: str) -> str:
        if location == CURRENT_ROOM:
            return self.current_room
        return location

    def move_item(self, item_id: str, location: str) -> None:
        if item_id not in self.catalog.items:
            raise ConsistencyViolation(f"Cannot move missing item '{item_id}'")
        location = self._resolve_room(location)
        if location not in (INVENTORY, NOWHERE) and location not in self.catalog.rooms:
            raise ConsistencyViolation(f"Cannot move item '{item_id}' to missing room '{location}'")
        self._locations.pop(item_id, None)
        self._locations[item_id] = location
        self.debug(f"item {item_id} location {location}")
        if location == INVENTORY:
            self.debug(f"inventory {self.inventory}")

    def set_flag(self, name: str, value: FlagValue) -> None:
        if not isinstance(value, (bool, int)):
            raise ConsistencyViolation(f"Flag '{name}' must be boolean or integer, got {value!r}")
        self.flags[name] = value
        self.debug(f"flag {name} {value}")

    def add_flag(self, name: str, amount: int) -> None:
        current = self.flags.get(name, 0)
        if isinstance(current, bool):
            raise ConsistencyViolation(f"Flag '{name}' is boolean and cannot be incremented")
        self.set_flag(name, current + amount)

    def set_current_room(self, room_id: str) -> None:
        if room_id not in self.catalog.rooms:
            raise ConsistencyViolation(f"Cannot enter missing room '{room_id}'")
        self.current_room = room_id
        self.debug(f"location {room_id}")

    def set_exit(self, room_id: str, exit_key: str, locked: bool | None = None, hidden: bool | None = None) -> None:
        room = self.catalog.rooms.get(room_id)
        if room is None or exit_key not in room.exits:
            raise ConsistencyViolation(f"Cannot change missing exit '{exit_key}' in room '{room_id}'")
        key = (room_id, exit_key)
        if locked is not None:
            (self.locked_exits.add if locked else self.locked_exits.discard)(key)
        if hidden is not None:
            (self.hidden_exits.add if hidden else self.hidden_exits.discard)(key)
        self.debug(f"exit {room_id}.{exit_key} locked {self.is_locked(*key)} hidden {key in self.hidden_exits}")

    def set_item_state(self, item_id: str, state: str) -> None:
        item = self.catalog.items.get(item_id)
        if item is None or state not in item.states:
            raise ConsistencyViolation(f"Item '{item_id}' has no state '{state}'")
        self.item_states[item_id] = state
        self.debug(f"item {item_id} state {state}")

    def move_npc(self, npc_id: str, location: str) -> None:
        if npc_id not in self.catalog.npcs:
            raise ConsistencyViolation(f"Cannot move missing NPC '{npc_id}'")
        location = self._resolve_room(location)
        if location == NOWHERE:
            self.npc_locations[npc_id] = None
        elif location in self.catalog.rooms:
            self.npc_locations[npc_id] = location
        else:
            raise ConsistencyViolation(f"Cannot move NPC '{npc_id}' to missing room '{location}'")
        self.debug(f"npc {npc_id} location {self.npc_locations[npc_id]}")

    def damage(self, amount: int) -> int:
        """Lose up to ``amount`` hit points, never dropping below zero."""
        if self.health is None:
            raise ConsistencyViolation("This world has no player health")
        lost = min(amount, self.health)
        self.health -= lost
        self.debug(f"health {self.health}/{self.max_health}")
        return lost

    def heal(self, amount: int) -> int:
        """Regain up to ``amount`` hit points, capped at the maximum; return the gain."""
        if self.health is None or self.max_health is None:
            raise ConsistencyViolation("This world has no player health")
        gained = max(0, min(amount, self.max_health - self.health))
        self.health += gained
        self.debug(f"health {self.health}/{self.max_health}")
        return gained

    # --- preconditions ---
    def check(self, pre: Precondition) -> bool:
        return getattr(self, f"_check_{pre.check}")(pre)

    def first_unmet(self, preconditions: Iterable[Precondition]) -> Precondition | None:
        for pre in preconditions:
            if not self.check(pre):
                return pre
        return None

    def count_met(self, preconditions: Iterable[Precondition]) -> int:
        return sum(1 for pre in preconditions if self.check(pre))

    def _check_flag(self, pre) -> bool:
        value = self.flag(pre.flag)
        if pre.at_least is not None:
            return int(value) >= pre.at_least
        expected = True if pre.equals is None else pre.equals
        return value == expected

    def _check_has_item(self, pre) -> bool:
        return self._locations.get(pre.item) == INVENTORY

    def _check_lacks_item(self, pre) -> bool:
        return self._locations.get(pre.item) != INVENTORY

    def _check_item_at(self, pre) -> bool:
        return self._locations.get(pre.item) == self._resolve_room(pre.location)

    def _check_in_room(self, pre) -> bool:
        return self.current_room == pre.room

    def _check_item_state(self, pre) -> bool:
        return self.item_states.get(pre.item) == pre.state

    def _check_npc_at(self, pre) -> bool:
        return self.npc_locations.get(pre.npc) == pre.room

    def _check_health(self, pre) -> bool:
        if self.health is None:
            return False
        if pre.at_least is not None and self.health < pre.at_least:
            return False
        return pre.at_most is None or self.health <= pre.at_most

    # --- effects ---
    def apply_effect(self, effect) -> str | None:
        """Apply one effect; return narrative text if the effect produces any."""
        return getattr(self, f"_apply_{effect.do}")(effect)

    def apply_effects(self, effects: Iterable[Effect]) -> list[str]:
        lines: list[str] = []
        for effect in effects:
            text = self.apply_effect(effect)
            if text:
                lines.append(text)
        return lines

    def _apply_move_item(self, eff) -> None:
        self.move_item(eff.item, eff.to)

    def _apply_set_flag(self, eff) -> None:
        self.set_flag(eff.flag, eff.value)

    def _apply_add_flag(self, eff) -> None:
        self.add_flag(eff.flag, eff.amount)

    def _apply_set_exit(self, eff) -> None:
        self.set_exit(eff.room, eff.exit, locked=eff.locked, hidden=eff.hidden)

    def _apply_set_item_state(self, eff) -> None:
        self.set_item_state(eff.item, eff.state)

    def _apply_move_npc(self, eff) -> None:
        self.move_npc(eff.npc, eff.to)

    def _apply_damage(self, eff) -> None:
        self.damage(eff.amount)

    def _apply_heal(self, eff) -> None:
        self.heal(eff.amount)

    def _apply_say(self, eff) -> str:
        return eff.text

    def check_endings(self) -> tuple[str, Ending] | None:
        for end_id, ending in self.catalog.endings.items():
            if self.first_unmet(ending.preconditions) is None:
                return end_id, ending
        return None

    # --- descriptions ---
    def describe_room(self, messages: dict[str, str]) -> str:
        room = self.catalog.rooms[self.current_room]
        lines = [room.names[0]]
        if room.description:
            lines.append(room.description)
        visible = self.describe_visibility(messages)
        if visible:
            lines.append(visible)
        exits = sorted(self.visible_exits(), key=lambda s: s.casefold())
        if exits:
            lines.append(messages["exits"].format(exits=", ".join(exits)))
        else:
            lines.append(messages["no_exits"])
        return "\n".join(lines)

    def describe_visibility(self, messages: dict[str, str]) -> str | None:
        """Return a single 'You see here: ...' line for items and NPCs."""
        names = [self.item_name(item_id) for item_id in self.items_in()]
        names.extend(self.npc_name(npc_id) for npc_id in self.npcs_in())
        if not names:
            return None
        return messages["you_see_here"].format(list=", ".join(names))

    def describe_item(self, item_id: str) -> str:
        item = self.catalog.items[item_id]
        state = self.item_states.get(item_id)
        if state is not None and item.states.get(state):
            return item.states[state]
        return item.description or item.names[0]

    def describe_inventory(self, messages: dict[str, str]) -> str:
        held = self.inventory
        if not held:
            return messages["inventory_empty"]
        return messages["inventory_items"].format(items=", ".join(self.item_name(i) for i in held))

    # --- state ---
    def to_state(self) -> dict[str, Any]:
        """Return the complete runtime state as plain data."""
        exits: dict[str, dict[str, dict[str, bool]]] = {}
        for room_id, room in self.catalog.rooms.items():
            if room.exits:
                exits[room_id] = {
                    key: {"locked": (room_id, key) in self.locked_exits, "hidden": (room_id, key) in self.hidden_exits}
                    for key in room.exits
                }
        return {
            "current_room": self.current_room,
            "inventory": self.inventory,
            "placements": [{"item": item_id, "location": loc} for item_id, loc in self._locations.items()],
            "flags": dict(self.flags),
            "item_states": dict(self.item_states),
            "exits": exits,
            "npc_locations": dict(self.npc_locations),
            "fired_rules": sorted(self.fired_rules),
            "health": self.health,
            "max_health": self.max_health,
        }

    def load_state(self, data: dict[str, Any]) -> None:
        self.current_room = data["current_room"]
        self._locations = {entry["item"]: entry["location"] for entry in data["placements"]}
        for item_id in self.catalog.items:
            self._locations.setdefault(item_id, NOWHERE)
        self.flags = dict(data["flags"])
        self.item_states = dict(data["item_states"])
        self.locked_exits = set()
        self.hidden_exits = set()
        for room_id, exits in data["exits"].items():
            for key, cfg in exits.items():
                if cfg.get("locked"):
                    self.locked_exits.add((room_id, key))
                if cfg.get("hidden"):
                    self.hidden_exits.add((room_id, key))
        self.npc_locations.update(data["npc_locations"])
        self.fired_rules = set(data["fired_rules"])
        self.health = data.get("health")
        self.max_health = data.get("max_health")
        self.debug(f"load_state location {self.current_room} inventory {self.inventory}")


__all__ = ["WorldModel", "INVENTORY", "NOWHERE", "CURRENT_ROOM"]
