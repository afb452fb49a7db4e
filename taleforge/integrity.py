"""Integrity checks for catalog content and saved snapshots."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

from .world_model import (
    RESERVED_LOCATIONS,
    Damage,
    FlagCheck,
    HasItem,
    Heal,
    HealthCheck,
    InRoom,
    ItemAt,
    ItemStateCheck,
    LacksItem,
    LocationTag,
    MoveItem,
    MoveNpc,
    NpcAt,
    SetExit,
    SetItemState,
)

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .catalog import ContentCatalog
    from .session import Snapshot


def _check_location(catalog: ContentCatalog, where: str, location: str, *, npc: bool = False) -> list[str]:
    allowed = {LocationTag.CURRENT_ROOM.value, LocationTag.NOWHERE.value} if npc else RESERVED_LOCATIONS
    if location in allowed or location in catalog.rooms:
        return []
    return [f"{where} references missing location '{location}'"]


def _check_item_state(catalog: ContentCatalog, where: str, item_id: str, state: str) -> list[str]:
    item = catalog.items.get(item_id)
    if item is None:
        return [f"{where} references missing item '{item_id}'"]
    if state not in item.states:
        return [f"{where} references missing state '{state}' for item '{item_id}'"]
    return []


def check_preconditions(catalog: ContentCatalog, where: str, preconditions: Iterable) -> list[str]:
    errors: list[str] = []
    for pre in preconditions:
        if isinstance(pre, (HasItem, LacksItem)):
            if pre.item not in catalog.items:
                errors.append(f"{where} precondition references missing item '{pre.item}'")
        elif isinstance(pre, ItemAt):
            if pre.item not in catalog.items:
                errors.append(f"{where} precondition references missing item '{pre.item}'")
            errors.extend(_check_location(catalog, f"{where} precondition", pre.location))
        elif isinstance(pre, InRoom):
            if pre.room not in catalog.rooms:
                errors.append(f"{where} precondition references missing room '{pre.room}'")
        elif isinstance(pre, ItemStateCheck):
            errors.extend(_check_item_state(catalog, f"{where} precondition", pre.item, pre.state))
        elif isinstance(pre, NpcAt):
            if pre.npc not in catalog.npcs:
                errors.append(f"{where} precondition references missing NPC '{pre.npc}'")
            if pre.room not in catalog.rooms:
                errors.append(f"{where} precondition references missing room '{pre.room}'")
        elif isinstance(pre, FlagCheck):
            if pre.equals is not None and pre.at_least is not None:
                errors.append(f"{where} flag check on '{pre.flag}' sets both 'equals' and 'at_least'")
        elif isinstance(pre, HealthCheck):
            if catalog.settings.health is None:
                errors.append(f"{where} checks health but settings define none")
            if pre.at_least is None and pre.at_most is None:
                errors.append(f"{where} health check needs 'at_least' or 'at_most'")
    return errors


def check_effects(catalog: ContentCatalog, where: str, effects: Iterable) -> list[str]:
    errors: list[str] = []
    for eff in effects:
        if isinstance(eff, MoveItem):
            if eff.item not in catalog.items:
                errors.append(f"{where} effect references missing item '{eff.item}'")
            errors.extend(_check_location(catalog, f"{where} effect", eff.to))
        elif isinstance(eff, SetExit):
            room = catalog.rooms.get(eff.room)
            if room is None:
                errors.append(f"{where} effect references missing room '{eff.room}'")
            elif eff.exit not in room.exits:
                errors.append(f"{where} effect references missing exit '{eff.exit}' in room '{eff.room}'")
        elif isinstance(eff, SetItemState):
            errors.extend(_check_item_state(catalog, f"{where} effect", eff.item, eff.state))
        elif isinstance(eff, MoveNpc):
            if eff.npc not in catalog.npcs:
                errors.append(f"{where} effect references missing NPC '{eff.npc}'")
            errors.extend(_check_location(catalog, f"{where} effect", eff.to, npc=True))
        elif isinstance(eff, (Damage, Heal)):
            if catalog.settings.health is None:
                errors.append(f"{where} effect '{eff.do}' needs settings.health")
    return errors


def validate_catalog(catalog: ContentCatalog) -> list[str]:
    """Validate cross references inside the catalog and return error messages."""

    errors: list[str] = []

    if catalog.settings.start not in catalog.rooms:
        errors.append(f"Start room '{catalog.settings.start}' does not exist")

    settings = catalog.settings
    if settings.max_health is not None and settings.health is None:
        errors.append("settings.max_health needs settings.health")
    elif settings.health is not None and settings.health > settings.health_cap:
        errors.append(f"settings.health {settings.health} exceeds max_health {settings.max_health}")

    placed: dict[str, str] = {}
    for room_id, room in catalog.rooms.items():
        if room_id in RESERVED_LOCATIONS:
            errors.append(f"Room id '{room_id}' is reserved")
        for exit_key, exit_cfg in room.exits.items():
            if exit_cfg.target not in catalog.rooms:
                errors.append(f"Room '{room_id}' exit '{exit_key}' leads to missing room '{exit_cfg.target}'")
            errors.extend(check_preconditions(catalog, f"Room '{room_id}' exit '{exit_key}'", exit_cfg.requires))
        for item_id in room.items:
            if item_id not in catalog.items:
                errors.append(f"Room '{room_id}' contains missing item '{item_id}'")
            elif item_id in placed:
                errors.append(f"Item '{item_id}' placed in both '{placed[item_id]}' and '{room_id}'")
            else:
                placed[item_id] = room_id
    for item_id in catalog.inventory:
        if item_id not in catalog.items:
            errors.append(f"Inventory contains missing item '{item_id}'")
        elif item_id in placed:
            errors.append(f"Item '{item_id}' placed in both '{placed[item_id]}' and the inventory")
        else:
            placed[item_id] = LocationTag.INVENTORY.value

    for item_id, item in catalog.items.items():
        if item.state is not None and item.state not in item.states:
            errors.append(f"Item '{item_id}' has undefined state '{item.state}'")
        if item.heals is not None and settings.health is None:
            errors.append(f"Item '{item_id}' heals but settings define no health")

    for npc_id, npc in catalog.npcs.items():
        if npc.location and npc.location not in catalog.rooms:
            errors.append(f"NPC '{npc_id}' references missing room '{npc.location}'")
        if npc.dialogue and npc.dialogue not in catalog.dialogue:
            errors.append(f"NPC '{npc_id}' references missing dialogue node '{npc.dialogue}'")

    for node_id, node in catalog.dialogue.items():
        where = f"Dialogue node '{node_id}'"
        errors.extend(check_effects(catalog, where, node.effects))
        for idx, choice in enumerate(node.choices, start=1):
            cwhere = f"{where} choice {idx}"
            if choice.next and choice.next not in catalog.dialogue:
                errors.append(f"{cwhere} leads to missing node '{choice.next}'")
            errors.extend(check_preconditions(catalog, cwhere, choice.preconditions))
            errors.extend(check_effects(catalog, cwhere, choice.effects))

    seen_actions: set[str] = set()
    exit_keys = {key for room in catalog.rooms.values() for key in room.exits}
    for rule in catalog.actions:
        where = f"Action '{rule.id}'"
        if rule.id in seen_actions:
            errors.append(f"{where} is declared twice")
        seen_actions.add(rule.id)
        if rule.target and rule.target not in catalog.items and rule.target not in catalog.npcs and rule.target not in exit_keys:
            errors.append(f"{where} references missing target '{rule.target}'")
        if rule.instrument and rule.instrument not in catalog.items:
            errors.append(f"{where} references missing instrument '{rule.instrument}'")
        if rule.room and rule.room not in catalog.rooms:
            errors.append(f"{where} references missing room '{rule.room}'")
        errors.extend(check_preconditions(catalog, where, rule.preconditions))
        errors.extend(check_effects(catalog, where, rule.effects))

    for end_id, ending in catalog.endings.items():
        errors.extend(check_preconditions(catalog, f"Ending '{end_id}'", ending.preconditions))

    return errors


def validate_snapshot(snapshot: Snapshot, catalog: ContentCatalog) -> list[str]:
    """Validate that a snapshot only references existing catalog data."""

    errors: list[str] = []

    if snapshot.current_room not in catalog.rooms:
        errors.append(f"Snapshot references missing room '{snapshot.current_room}'")

    seen: set[str] = set()
    held: list[str] = []
    for placement in snapshot.placements:
        if placement.item not in catalog.items:
            errors.append(f"Snapshot references missing item '{placement.item}'")
        if placement.item in seen:
            errors.append(f"Snapshot places item '{placement.item}' twice")
        seen.add(placement.item)
        stored = (LocationTag.INVENTORY.value, LocationTag.NOWHERE.value)
        if placement.location not in stored and placement.location not in catalog.rooms:
            errors.append(f"Snapshot places item '{placement.item}' in missing room '{placement.location}'")
        if placement.location == LocationTag.INVENTORY.value:
            held.append(placement.item)
    if held != list(snapshot.inventory):
        errors.append(f"Snapshot inventory {list(snapshot.inventory)} does not match item placements {held}")

    for item_id, state in snapshot.item_states.items():
        errors.extend(_check_item_state(catalog, "Snapshot", item_id, state))

    for room_id, exits in snapshot.exits.items():
        room = catalog.rooms.get(room_id)
        if room is None:
            errors.append(f"Snapshot references missing room '{room_id}'")
            continue
        for exit_key in exits:
            if exit_key not in room.exits:
                errors.append(f"Snapshot references missing exit '{exit_key}' in room '{room_id}'")

    for npc_id, location in snapshot.npc_locations.items():
        if npc_id not in catalog.npcs:
            errors.append(f"Snapshot references missing NPC '{npc_id}'")
        if location is not None and location not in catalog.rooms:
            errors.append(f"Snapshot places NPC '{npc_id}' in missing room '{location}'")

    if snapshot.dialogue is not None:
        if snapshot.dialogue.npc not in catalog.npcs:
            errors.append(f"Snapshot dialogue references missing NPC '{snapshot.dialogue.npc}'")
        if snapshot.dialogue.node not in catalog.dialogue:
            errors.append(f"Snapshot dialogue references missing node '{snapshot.dialogue.node}'")

    cap = catalog.settings.health_cap
    if (snapshot.health is None) != (cap is None) or (snapshot.max_health is None) != (cap is None):
        errors.append("Snapshot health does not match the world settings")
    elif snapshot.health is not None and snapshot.health > snapshot.max_health:
        errors.append(f"Snapshot health {snapshot.health} exceeds max_health {snapshot.max_health}")

    rule_ids = {rule.id for rule in catalog.actions}
    for rule_id in snapshot.fired_rules:
        if rule_id not in rule_ids:
            errors.append(f"Snapshot references missing action '{rule_id}'")

    return errors


__all__ = ["validate_catalog", "validate_snapshot", "check_preconditions", "check_effects"]
