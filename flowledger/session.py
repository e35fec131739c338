"""Auth session state with change notifications.

SessionManager owns the access token, the current user and their
preferences. Components that cache user-scoped data subscribe to it
instead of checking the token themselves:

    unsubscribe = session.subscribe(
        on_authenticated=lambda force: schedule_refresh(force),
        on_unauthenticated=cache.clear,
    )

AuthBoundCache.bind() wires a cache up this way.

Notifications fire on transitions only: absent -> present calls
``on_authenticated(True)``, present -> absent calls ``on_unauthenticated()``.
Subscribing while already authenticated calls ``on_authenticated(False)``
once, immediately.
"""

import json
import logging
import time
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from flowledger.api.token_storage import MemoryTokenStorage, TokenStorage

logger = logging.getLogger(__name__)

AuthenticatedCallback = Callable[[bool], None]
UnauthenticatedCallback = Callable[[], None]


@dataclass
class Session:
    """Persisted session fields."""

    token: Optional[str] = None
    user: Optional[Dict[str, Any]] = None
    preferences: Optional[Dict[str, Any]] = None
    expires_at: Optional[float] = None  # epoch seconds


@dataclass
class _Subscription:
    on_authenticated: AuthenticatedCallback
    on_unauthenticated: UnauthenticatedCallback
    active: bool = field(default=True)


class SessionManager:
    """Holds the current session and notifies subscribers of auth transitions."""

    def __init__(
        self,
        path: Optional[Union[str, Path]] = None,
        token_storage: Optional[TokenStorage] = None,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize session manager.

        Args:
            path: JSON file the session is persisted to (None keeps it in memory)
            token_storage: Token store used by ApiClient, kept in sync
            clock: Wall-clock source for expiry checks
        """
        self.path = Path(path) if path else None
        self.token_storage = token_storage or MemoryTokenStorage()
        self._clock = clock
        self._subscriptions: List[_Subscription] = []
        self._session = self._load()

        if self._session.token:
            self.token_storage.set(self._session.token)

    @classmethod
    def from_config(cls, config, token_storage: Optional[TokenStorage] = None) -> "SessionManager":
        return cls(path=config.session_path, token_storage=token_storage or TokenStorage(config.token_path))

    # Persistence

    def _load(self) -> Session:
        if not self.path or not self.path.exists():
            return Session()
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable session file {self.path}: {e}")
            return Session()
        return Session(
            token=data.get("token"),
            user=data.get("user"),
            preferences=data.get("preferences"),
            expires_at=data.get("expires_at"),
        )

    def _save(self) -> None:
        if not self.path:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(asdict(self._session), indent=2), encoding="utf-8")

    # State

    @property
    def token(self) -> Optional[str]:
        return self._session.token if self.is_authenticated else None

    @property
    def user(self) -> Optional[Dict[str, Any]]:
        return self._session.user

    @property
    def preferences(self) -> Optional[Dict[str, Any]]:
        return self._session.preferences

    @property
    def expires_at(self) -> Optional[float]:
        return self._session.expires_at

    @property
    def is_authenticated(self) -> bool:
        if not self._session.token:
            return False
        expires_at = self._session.expires_at
        return expires_at is None or self._clock() < expires_at

    def set_session(
        self,
        token: str,
        user: Dict[str, Any],
        preferences: Optional[Dict[str, Any]] = None,
        expires_in_seconds: Optional[float] = None,
    ) -> None:
        """Store a new session (after login/register)."""
        was_authed = self.is_authenticated
        self._session = Session(
            token=token,
            user=user,
            preferences=preferences,
            expires_at=self._clock() + expires_in_seconds if expires_in_seconds else None,
        )
        self.token_storage.set(token)
        self._save()
        self._publish(was_authed)

    def update_preferences(self, preferences: Dict[str, Any]) -> None:
        self._session.preferences = preferences
        self._save()

    def clear_session(self) -> None:
        """Forget the session (logout)."""
        was_authed = self.is_authenticated
        self._session = Session()
        self.token_storage.clear()
        self._save()
        self._publish(was_authed)

    def sync(self) -> None:
        """Reconcile with the token store.

        The API client clears the stored token when the backend rejects it;
        calling this afterwards turns that into a logout notification.
        Expired sessions are cleared the same way.
        """
        if not self._session.token:
            return
        if self.token_storage.get() and self.is_authenticated:
            return

        logger.info("Session token no longer valid, clearing session")
        self._session = Session()
        self.token_storage.clear()
        self._save()
        self._publish(was_authed=True)

    # Notifications

    def subscribe(
        self,
        on_authenticated: AuthenticatedCallback,
        on_unauthenticated: UnauthenticatedCallback,
    ) -> Callable[[], None]:
        """Register for auth transitions. Returns an unsubscribe callable."""
        subscription = _Subscription(on_authenticated, on_unauthenticated)
        self._subscriptions.append(subscription)

        if self.is_authenticated:
            on_authenticated(False)

        def unsubscribe() -> None:
            subscription.active = False
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)

        return unsubscribe

    def _publish(self, was_authed: bool) -> None:
        is_authed = self.is_authenticated
        if is_authed == was_authed:
            return

        for subscription in list(self._subscriptions):
            if not subscription.active:
                continue
            if is_authed:
                subscription.on_authenticated(True)
            else:
                subscription.on_unauthenticated()
