"""Shared wiring for CLI commands."""

import asyncio
import logging
import sys
from typing import Any, Awaitable, Callable, Optional

import click

from flowledger.api.client import ApiClient
from flowledger.api.token_storage import TokenStorage
from flowledger.cli.colors import print_error
from flowledger.config import AppConfig, load_config
from flowledger.core.errors import ApiAuthError, FlowLedgerError
from flowledger.session import SessionManager
from flowledger.tasks.poller import TaskPoller

logger = logging.getLogger(__name__)


class CliContext:
    """Config plus the objects built from it, created lazily per command."""

    def __init__(self, config: Optional[AppConfig] = None):
        self.config = config or load_config()
        self.token_storage = TokenStorage(self.config.token_path)
        self._session: Optional[SessionManager] = None

    @property
    def session(self) -> SessionManager:
        if self._session is None:
            self._session = SessionManager.from_config(self.config, token_storage=self.token_storage)
        return self._session

    def client(self) -> ApiClient:
        return ApiClient.from_config(self.config, token_storage=self.token_storage)

    def poller(self, interval: Optional[float] = None, timeout: Optional[float] = None) -> TaskPoller:
        polling = self.config.polling
        return TaskPoller(
            interval=interval if interval is not None else polling.interval,
            timeout=timeout if timeout is not None else polling.timeout,
            fetch_retries=polling.fetch_retries,
            retry_backoff=polling.retry_backoff,
        )

    def run(self, func: Callable[[ApiClient], Awaitable[Any]]) -> Any:
        """Run ``func(client)`` on a fresh client; report errors and exit non-zero."""

        async def _main():
            async with self.client() as client:
                return await func(client)

        try:
            return asyncio.run(_main())
        except ApiAuthError as e:
            self.session.sync()
            print_error(f"{e.message} - run 'flowledger login' to sign in again.")
            sys.exit(1)
        except FlowLedgerError as e:
            logger.debug(f"Command failed: {e.to_dict()}")
            print_error(e.message)
            sys.exit(1)


pass_context = click.make_pass_decorator(CliContext, ensure=True)

# --timeout / --interval values
positive_float = click.FloatRange(min=0, min_open=True)
