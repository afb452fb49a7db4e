"""Immutable content catalog loaded from a YAML world file."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import CatalogError
from .world_model import ActionRule, DialogueNode, Ending, Item, LocationTag, Npc, Room, Settings


class UniqueKeyLoader(yaml.SafeLoader):
    """Safe loader that rejects duplicate mapping keys."""

    def construct_mapping(self, node, deep=False):
        seen: set[Any] = set()
        for key_node, _ in node.value:
            key = self.construct_object(key_node, deep=deep)
            if key in seen:
                line = key_node.start_mark.line + 1
                raise CatalogError(f"Duplicate identifier '{key}' (line {line})")
            seen.add(key)
        return super().construct_mapping(node, deep=deep)


def _normalize_exits(exits: Any) -> dict[str, Any]:
    """Accept ``north: hall`` shorthand next to full exit mappings."""
    if not exits:
        return {}
    normalized: dict[str, Any] = {}
    for key, cfg in exits.items():
        if isinstance(cfg, str):
            normalized[key] = {"target": cfg}
        else:
            normalized[key] = dict(cfg)
    return normalized


def _normalize(data: dict[str, Any]) -> dict[str, Any]:
    rooms: dict[str, Any] = {}
    for room_id, cfg in (data.get("rooms") or {}).items():
        room = dict(cfg or {})
        room.setdefault("names", [room_id])
        room["exits"] = _normalize_exits(room.get("exits"))
        rooms[room_id] = room
    items: dict[str, Any] = {}
    for item_id, cfg in (data.get("items") or {}).items():
        item = dict(cfg or {})
        item.setdefault("names", [item_id])
        items[item_id] = item
    npcs: dict[str, Any] = {}
    for npc_id, cfg in (data.get("npcs") or {}).items():
        npc = dict(cfg or {})
        npc.setdefault("names", [npc_id])
        tags = list(npc.get("tags") or [])
        if "npc" not in tags:
            tags.append("npc")
        npc["tags"] = tags
        npcs[npc_id] = npc
    raw_actions = data.get("actions") or {}
    if isinstance(raw_actions, dict):
        actions = [{"id": action_id, **(cfg or {})} for action_id, cfg in raw_actions.items()]
    else:
        actions = [dict(cfg) for cfg in raw_actions]
        for idx, action in enumerate(actions):
            action.setdefault("id", f"action_{idx}")
    return {
        "settings": data.get("settings") or {},
        "rooms": rooms,
        "items": items,
        "npcs": npcs,
        "inventory": data.get("inventory") or [],
        "actions": actions,
        "dialogue": data.get("dialogue") or {},
        "endings": data.get("endings") or {},
    }


class ContentCatalog(BaseModel):
    """Rooms, items, NPCs, rules and dialogue as authored. Never mutated."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    settings: Settings
    rooms: dict[str, Room]
    items: dict[str, Item] = Field(default_factory=dict)  # noqa
    npcs: dict[str, Npc] = Field(default_factory=dict)  # noqa
    inventory: tuple[str, ...] = ()
    actions: tuple[ActionRule, ...] = ()
    dialogue: dict[str, DialogueNode] = Field(default_factory=dict)  # noqa
    endings: dict[str, Ending] = Field(default_factory=dict)  # noqa

    @classmethod
    def from_data(cls, data: dict[str, Any]) -> ContentCatalog:
        """Validate raw content and check every cross reference.

        Raises ``CatalogError`` listing all problems found.
        """
        from . import integrity

        if not isinstance(data, dict):
            raise CatalogError("World data must be a mapping")
        try:
            catalog = cls.model_validate(_normalize(data))
        except ValidationError as exc:
            errors = []
            for err in exc.errors():
                where = ".".join(str(part) for part in err["loc"])
                errors.append(f"{where}: {err['msg']}")
            raise CatalogError(errors) from exc
        errors = integrity.validate_catalog(catalog)
        if errors:
            raise CatalogError(errors)
        return catalog

    @classmethod
    def from_file(cls, path: str | Path) -> ContentCatalog:
        try:
            with open(path, encoding="utf-8") as fh:
                data = yaml.load(fh, Loader=UniqueKeyLoader)  # noqa: S506 - safe loader subclass
        except UnicodeDecodeError as exc:
            raise CatalogError(f"World file {path} is not valid UTF-8: {exc.reason}") from exc
        except (IsADirectoryError, PermissionError) as exc:
            raise CatalogError(f"Cannot read world file {path}: {exc.strerror}") from exc
        return cls.from_data(data or {})

    def initial_locations(self) -> dict[str, str]:
        """Return the starting location of every item in placement order."""
        locations: dict[str, str] = {}
        for room_id, room in self.rooms.items():
            for item_id in room.items:
                locations[item_id] = room_id
        for item_id in self.inventory:
            locations[item_id] = LocationTag.INVENTORY.value
        for item_id in self.items:
            locations.setdefault(item_id, LocationTag.NOWHERE.value)
        return locations

    def tags_of(self, kind: str, target_id: str, room_id: str | None = None) -> tuple[str, ...]:
        if kind == "item":
            return self.items[target_id].tags
        if kind == "npc":
            return self.npcs[target_id].tags
        if kind == "exit" and room_id is not None:
            return self.rooms[room_id].exits[target_id].tags
        return ()

    def rule_verbs(self) -> set[str]:
        return {rule.verb for rule in self.actions}


__all__ = ["ContentCatalog", "UniqueKeyLoader"]
