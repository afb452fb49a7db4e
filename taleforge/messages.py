"""Engine message catalog loader."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path

import yaml

from .errors import CatalogError

DEFAULT_MESSAGES_PATH = Path(__file__).resolve().parent / "data" / "messages.yaml"


def load_messages(overrides: Mapping[str, str] | None = None, path: str | Path | None = None) -> dict[str, str]:
    """Load engine messages and apply per-world overrides.

    Unknown override keys are rejected so typos in content surface at startup.
    """
    path = Path(path) if path else DEFAULT_MESSAGES_PATH
    with open(path, encoding="utf-8") as fh:
        messages = yaml.safe_load(fh) or {}
    if overrides:
        unknown = sorted(key for key in overrides if key not in messages)
        if unknown:
            raise CatalogError([f"Unknown message override '{key}'" for key in unknown])
        messages.update(overrides)
    return messages


__all__ = ["load_messages", "DEFAULT_MESSAGES_PATH"]
