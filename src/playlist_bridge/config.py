"""
Settings: read from ~/.playlist-bridge/config.json, then environment overrides.
"""

import json
import os
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field

from playlist_bridge.models.session import Slot
from playlist_bridge.storage import DEFAULT_TOKEN_FILE
from playlist_bridge.transport.http import DEFAULT_BASE_URL

CONFIG_FILE = Path.home() / ".playlist-bridge" / "config.json"

ENV_BASE_URL = "PLAYLIST_BRIDGE_BASE_URL"
ENV_TOKEN_FILE = "PLAYLIST_BRIDGE_TOKEN_FILE"


class Settings(BaseModel):
    base_url: str = DEFAULT_BASE_URL
    token_file: Path = DEFAULT_TOKEN_FILE
    locale: str = "en_US"
    providers: dict[Slot, str] = Field(default_factory=lambda: {Slot.PRIMARY: "spotify", Slot.SECONDARY: "spotify"})
    server_side_moves: bool = False
    timeout: float = 30.0

    @classmethod
    def load(cls, path: Optional[Path] = None, env: Optional[dict[str, str]] = None) -> "Settings":
        env = os.environ if env is None else env
        data: dict[str, Any] = {}
        try:
            data = json.loads(Path(path or CONFIG_FILE).read_text())
        except (FileNotFoundError, json.JSONDecodeError):
            pass
        if env.get(ENV_BASE_URL):
            data["base_url"] = env[ENV_BASE_URL]
        if env.get(ENV_TOKEN_FILE):
            data["token_file"] = env[ENV_TOKEN_FILE]
        return cls.model_validate(data)

    def save(self, path: Optional[Path] = None) -> None:
        target = Path(path or CONFIG_FILE)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(self.model_dump_json(indent=2))
