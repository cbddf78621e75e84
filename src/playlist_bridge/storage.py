"""
Token persistence: one OAuth record per slot in a local JSON file.

The file is the only state that survives a restart.
"""

import json
import logging
from pathlib import Path
from typing import Any, Optional

from playlist_bridge.models.session import Session, Slot

DEFAULT_TOKEN_FILE = Path.home() / ".playlist-bridge" / "tokens.json"

logger = logging.getLogger(__name__)


def storage_key(slot: Slot) -> str:
    return f"{slot.value}_token"


class TokenStorage:
    def __init__(self, path: Optional[Path] = None):
        self._path = Path(path) if path else DEFAULT_TOKEN_FILE

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> dict[str, Any]:
        try:
            return json.loads(self._path.read_text())
        except (FileNotFoundError, json.JSONDecodeError):
            return {}

    def _save(self, data: dict[str, Any]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(data, indent=2))

    def read(self, slot: Slot) -> Optional[Session]:
        raw = self._load().get(storage_key(slot))
        if not raw:
            return None
        try:
            return Session.model_validate(raw)
        except ValueError as e:
            logger.warning(f"Discarding unreadable {slot} token record: {e}")
            return None

    def write(self, slot: Slot, session: Session) -> None:
        data = self._load()
        data[storage_key(slot)] = session.model_dump()
        self._save(data)

    def clear(self, slot: Slot) -> None:
        data = self._load()
        if data.pop(storage_key(slot), None) is not None:
            self._save(data)
