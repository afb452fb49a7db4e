"""Save game state to disk."""

from __future__ import annotations

import contextlib
from pathlib import Path
from typing import TYPE_CHECKING

from .session import GameSession, Snapshot

if TYPE_CHECKING:  # pragma: no cover - used for type checking only
    from .catalog import ContentCatalog


class SaveManager:
    """Handle persisting one session snapshot.

    Parameters
    ----------
    save_path:
        File the snapshot is written to as YAML.
    """

    def __init__(self, save_path: str | Path):
        self.save_path = Path(save_path)

    def exists(self) -> bool:
        return self.save_path.exists()

    def read(self) -> Snapshot | None:
        """Return the stored snapshot if available."""

        if not self.save_path.exists():
            return None
        return Snapshot.from_yaml(self.save_path.read_text(encoding="utf-8"))

    def load(self, catalog: ContentCatalog, debug: bool = False) -> GameSession | None:
        """Rebuild the saved session, or ``None`` when nothing was saved."""

        snapshot = self.read()
        if snapshot is None:
            return None
        return GameSession.load(catalog, snapshot, debug=debug)

    def save(self, session: GameSession) -> None:
        """Persist the session at the current turn boundary."""

        self.save_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.save_path, "w", encoding="utf-8") as fh:
            fh.write(session.save().to_yaml())

    def cleanup(self) -> None:
        """Remove the save file if it exists."""

        if self.save_path.exists():
            with contextlib.suppress(OSError):
                self.save_path.unlink()


__all__ = ["SaveManager"]
