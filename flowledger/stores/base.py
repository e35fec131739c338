"""Reference-data caches bound to the auth session."""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Callable, Dict, Generic, List, Optional, Set, TypeVar

from flowledger.api.client import ApiClient
from flowledger.session import SessionManager

logger = logging.getLogger(__name__)

ItemT = TypeVar("ItemT")


class AuthBoundCache(ABC, Generic[ItemT]):
    """
    Caches one list of user-scoped items for the lifetime of a session.

    - refreshes when the session becomes authenticated
    - clears when the session ends
    - never fetches while unauthenticated or while a fetch is in flight
    - keeps the last fetch error as a message instead of raising
    """

    def __init__(self, client: ApiClient, session: SessionManager):
        self.client = client
        self.session = session
        self.items: List[ItemT] = []
        self.index: Dict[str, ItemT] = {}
        self.loading = False
        self.initialized = False
        self.error: Optional[str] = None
        self._pending: Set[asyncio.Task] = set()
        # Bumped by clear(); results of fetches started earlier are dropped
        self._generation = 0
        self._unsubscribe: Optional[Callable[[], None]] = None

    def bind(self) -> "AuthBoundCache[ItemT]":
        """Start following the session."""
        if self._unsubscribe is None:
            self._unsubscribe = self.session.subscribe(self._on_authenticated, self.clear)
        return self

    def unbind(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _on_authenticated(self, force: bool) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop: drop the data so the next fetch() goes to the backend
            if force:
                self.initialized = False
            return
        task = loop.create_task(self.fetch(force))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    @abstractmethod
    async def _fetch_all(self) -> List[ItemT]:
        """Load every item from the backend."""

    @abstractmethod
    def _key(self, item: ItemT) -> str:
        """Lookup key for ``get``."""

    async def fetch(self, force: bool = False) -> None:
        if not self.session.is_authenticated:
            return
        if self.loading:
            return
        if self.initialized and not force:
            return

        generation = self._generation
        self.loading = True
        self.error = None
        items: Optional[List[ItemT]] = None
        error: Optional[str] = None
        try:
            items = await self._fetch_all()
        except Exception as e:
            logger.warning(f"{type(self).__name__} refresh failed: {e}")
            error = str(e) or "Unknown error"
        finally:
            if generation == self._generation:
                self.loading = False

        if generation != self._generation or not self.session.is_authenticated:
            logger.debug(f"{type(self).__name__} dropped a result fetched for an ended session")
            return

        if error is not None:
            self.error = error
        else:
            self.items = items
            self.index = {self._key(item): item for item in items}
            logger.debug(f"{type(self).__name__} loaded {len(items)} items")
        self.initialized = True

    def get(self, key: str) -> Optional[ItemT]:
        return self.index.get(key)

    def clear(self) -> None:
        for task in list(self._pending):
            task.cancel()
        self.items = []
        self.index = {}
        self.loading = False
        self.error = None
        self.initialized = False
        self._generation += 1
