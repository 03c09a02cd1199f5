"""Persists the access token between CLI invocations in a small JSON file."""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from bookdash.config import settings

logger = logging.getLogger(__name__)

TOKEN_KEY = "token"


class TokenStore:
    """Key/value storage kept in ``<session_dir>/session.json``."""

    def __init__(self, directory: Optional[str] = None) -> None:
        self.directory = Path(directory or settings.session_dir)
        self.file = self.directory / "session.json"

    def _load(self) -> Dict[str, Any]:
        if not self.file.exists():
            return {}
        try:
            with open(self.file, "r", encoding="utf-8") as f:
                data = json.load(f)
            return data if isinstance(data, dict) else {}
        except (OSError, ValueError) as e:
            logger.warning(f"Could not read session file {self.file}: {e}")
            return {}

    def _save(self, data: Dict[str, Any]) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        with open(self.file, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
        try:
            os.chmod(self.file, 0o600)
        except OSError:
            logger.debug(f"Could not restrict permissions on {self.file}")

    def get(self, key: str) -> Optional[Any]:
        return self._load().get(key)

    def set(self, key: str, value: Any) -> None:
        data = self._load()
        data[key] = value
        self._save(data)

    def remove(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._save(data)

    def get_token(self) -> Optional[str]:
        return self.get(TOKEN_KEY)

    def set_token(self, token: str) -> None:
        self.set(TOKEN_KEY, token)

    def clear_token(self) -> None:
        self.remove(TOKEN_KEY)
