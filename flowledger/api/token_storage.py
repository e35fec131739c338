"""Persisted bearer token for the REST client."""

import logging
import os
from pathlib import Path
from typing import Optional, Union

logger = logging.getLogger(__name__)


class TokenStorage:
    """Stores the access token in a single user-only readable file."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def get(self) -> Optional[str]:
        try:
            token = self.path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return None
        return token or None

    def set(self, token: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(token, encoding="utf-8")
        try:
            os.chmod(self.path, 0o600)
        except OSError as e:
            logger.debug(f"Could not restrict permissions on {self.path}: {e}")

    def clear(self) -> None:
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass


class MemoryTokenStorage(TokenStorage):
    """In-process token storage (tests, one-shot scripts)."""

    def __init__(self, token: Optional[str] = None):
        self._token = token
        self.path = None

    def get(self) -> Optional[str]:
        return self._token

    def set(self, token: str) -> None:
        self._token = token

    def clear(self) -> None:
        self._token = None
