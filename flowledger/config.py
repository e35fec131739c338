"""Configuration management for Flow Ledger."""

import os
from pathlib import Path
from typing import Any, Dict, Literal, Type, TypeVar

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

from flowledger.core import constants
from flowledger.core.constants import get_env_bool, get_env_float, get_env_int
from flowledger.core.errors import InvalidConfigError

# Load .env file
load_dotenv()

ModelT = TypeVar("ModelT", bound=BaseModel)


class ApiConfig(BaseModel):
    """Configuration for the REST backend connection."""

    base_url: str = Field(default=constants.DEFAULT_API_BASE_URL, description="Backend base URL")
    timeout: float = Field(default=constants.HTTP_TIMEOUT, gt=0, description="Per-request timeout in seconds")

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize base URL so endpoint paths can always start with '/'."""
        return v.rstrip("/")


class PollingConfig(BaseModel):
    """Configuration for backend task polling."""

    interval: float = Field(default=constants.POLL_INTERVAL, gt=0, description="Seconds between status reads")
    timeout: float = Field(default=constants.POLL_TIMEOUT, gt=0, description="Overall polling budget in seconds")
    fetch_retries: int = Field(
        default=constants.POLL_FETCH_RETRIES, ge=0, description="Retries for a transient status read failure"
    )
    retry_backoff: float = Field(
        default=constants.POLL_RETRY_BACKOFF, ge=0, description="Base delay for status read retries"
    )


class AppConfig(BaseModel):
    """Main application configuration."""

    api: ApiConfig = Field(default_factory=ApiConfig)
    polling: PollingConfig = Field(default_factory=PollingConfig)

    state_dir: Path = Field(
        default=Path(constants.DEFAULT_STATE_DIR), description="Directory for the token and session files"
    )

    # Application Settings
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="WARNING", description="Logging level"
    )

    @field_validator("state_dir", mode="before")
    @classmethod
    def expand_state_dir(cls, v: Any) -> Path:
        return Path(os.path.expanduser(str(v)))

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: Any):
        if isinstance(v, str):
            return v.upper()
        return v

    @property
    def token_path(self) -> Path:
        return self.state_dir / constants.TOKEN_FILENAME

    @property
    def session_path(self) -> Path:
        return self.state_dir / constants.SESSION_FILENAME

    @classmethod
    def from_env(cls) -> "AppConfig":
        """
        Load configuration from environment variables.

        Environment variable mapping:
        - FLOWLEDGER_API_BASE_URL, FLOWLEDGER_HTTP_TIMEOUT
        - FLOWLEDGER_POLL_INTERVAL, FLOWLEDGER_POLL_TIMEOUT
        - FLOWLEDGER_POLL_FETCH_RETRIES, FLOWLEDGER_POLL_RETRY_BACKOFF
        - FLOWLEDGER_STATE_DIR
        - FLOWLEDGER_DEBUG: true or false
        - FLOWLEDGER_LOG_LEVEL
        """
        api = _build(
            ApiConfig,
            {"base_url": "FLOWLEDGER_API_BASE_URL", "timeout": "FLOWLEDGER_HTTP_TIMEOUT"},
            base_url=os.getenv("FLOWLEDGER_API_BASE_URL", constants.DEFAULT_API_BASE_URL),
            timeout=get_env_float("FLOWLEDGER_HTTP_TIMEOUT", constants.HTTP_TIMEOUT),
        )

        polling = _build(
            PollingConfig,
            {
                "interval": "FLOWLEDGER_POLL_INTERVAL",
                "timeout": "FLOWLEDGER_POLL_TIMEOUT",
                "fetch_retries": "FLOWLEDGER_POLL_FETCH_RETRIES",
                "retry_backoff": "FLOWLEDGER_POLL_RETRY_BACKOFF",
            },
            interval=get_env_float("FLOWLEDGER_POLL_INTERVAL", constants.POLL_INTERVAL),
            timeout=get_env_float("FLOWLEDGER_POLL_TIMEOUT", constants.POLL_TIMEOUT),
            fetch_retries=get_env_int("FLOWLEDGER_POLL_FETCH_RETRIES", constants.POLL_FETCH_RETRIES),
            retry_backoff=get_env_float("FLOWLEDGER_POLL_RETRY_BACKOFF", constants.POLL_RETRY_BACKOFF),
        )

        return _build(
            cls,
            {"state_dir": "FLOWLEDGER_STATE_DIR", "debug": "FLOWLEDGER_DEBUG", "log_level": "FLOWLEDGER_LOG_LEVEL"},
            api=api,
            polling=polling,
            state_dir=os.getenv("FLOWLEDGER_STATE_DIR", constants.DEFAULT_STATE_DIR),
            debug=get_env_bool("FLOWLEDGER_DEBUG", False),
            log_level=os.getenv("FLOWLEDGER_LOG_LEVEL", "WARNING"),
        )


def _build(model: Type[ModelT], env_keys: Dict[str, str], **values: Any) -> ModelT:
    """Construct ``model``, reporting the first invalid field by its env var."""
    try:
        return model(**values)
    except ValidationError as e:
        first = e.errors()[0]
        field = str(first["loc"][0]) if first["loc"] else ""
        key = env_keys.get(field, field)
        raise InvalidConfigError(key, values.get(field), first["msg"]) from e


def load_config() -> AppConfig:
    """Load the application configuration from the environment."""
    return AppConfig.from_env()
