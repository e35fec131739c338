"""Flow Ledger package exports.

Keep package import lightweight by lazily importing heavy modules.
"""

from typing import TYPE_CHECKING, Any

__version__ = "0.4.0"

if TYPE_CHECKING:
    from .api.client import ApiClient
    from .config import AppConfig
    from .session import SessionManager
    from .tasks.poller import TaskPoller

__all__ = ["ApiClient", "AppConfig", "SessionManager", "TaskPoller", "load_config"]


def __getattr__(name: str) -> Any:
    """Lazily resolve top-level exports."""
    if name in {"AppConfig", "load_config"}:
        from .config import AppConfig, load_config

        return AppConfig if name == "AppConfig" else load_config

    if name == "ApiClient":
        from .api.client import ApiClient

        return ApiClient

    if name == "SessionManager":
        from .session import SessionManager

        return SessionManager

    if name == "TaskPoller":
        from .tasks.poller import TaskPoller

        return TaskPoller

    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
