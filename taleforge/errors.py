"""Exceptions raised by the engine for broken content or state."""

from __future__ import annotations


class EngineError(Exception):
    """Base class for unrecoverable engine errors."""

    def __init__(self, errors: list[str] | str):
        if isinstance(errors, str):
            errors = [errors]
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


class CatalogError(EngineError):
    """Content could not be loaded or references missing entities."""


class ConsistencyViolation(EngineError):
    """A mutation would leave the world in an inconsistent state."""


class SnapshotError(EngineError):
    """A saved snapshot does not fit the loaded catalog."""


__all__ = ["EngineError", "CatalogError", "ConsistencyViolation", "SnapshotError"]
