"""REST API client and endpoint wrappers."""

from .client import ApiClient
from .token_storage import MemoryTokenStorage, TokenStorage

__all__ = ["ApiClient", "MemoryTokenStorage", "TokenStorage"]
