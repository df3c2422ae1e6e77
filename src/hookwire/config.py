# hookwire/config.py
from functools import lru_cache

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError
from .hooks import HookFn
from .log_config import logger, make_tag


class LifecycleSettings(BaseSettings):
    """
    Process-wide defaults for the request lifecycle.

    Scalar settings are loaded from environment variables prefixed with
    ``HOOKWIRE_`` or from a .env file; hook defaults are passed as callables
    when the settings object is constructed. Instances are frozen so a single
    settings object can be shared by any number of concurrent pipelines.
    """

    model_config = SettingsConfigDict(
        env_file=(".env", "secrets.env"),  # Look in both .env and secrets.env
        env_file_encoding="utf-8",
        env_prefix="HOOKWIRE_",
        extra="ignore",
        case_sensitive=False,
        arbitrary_types_allowed=True,  # Allow hook callables
        frozen=True,
    )

    # --- Logging ---
    log_name: str = Field(
        default="hookwire", description="Tag prepended to every lifecycle log line"
    )
    log_body_limit: int = Field(
        default=64 * 1024,
        ge=0,
        description="Bodies larger than this many bytes are logged as a size marker",
    )

    # --- Transmission ---
    timeout: float | None = Field(
        default=None,
        gt=0,
        description="Default seconds to wait for a response before the timeout hook runs",
    )
    max_retries: int | None = Field(
        default=3,
        ge=0,
        description="Maximum re-attempts an assessor may request per send(); None for no cap",
    )
    user_agent: str = Field(
        default="hookwire/0.1.0",
        description="User-Agent header for the default transport",
    )

    # --- Default Hooks ---
    pre_check: HookFn | None = Field(
        default=None, description="Returns False to abort a request before it is sent"
    )
    request_modifier: HookFn | None = Field(
        default=None, description="Mutates the descriptor before the request is built"
    )
    on_timeout: HookFn | None = Field(
        default=None, description="Called when the timeout wins the race"
    )
    on_connection_failure: HookFn | None = Field(
        default=None, description="Called when the transport cannot connect"
    )
    assessor: HookFn | None = Field(
        default=None, description="Judges a response as success, failure or retry"
    )
    on_request_finish: HookFn | None = Field(
        default=None, description="Called once per attempt before the terminal hook"
    )
    on_success: HookFn | None = Field(
        default=None, description="Called when the assessor reports success"
    )
    on_failure: HookFn | None = Field(
        default=None, description="Called when the assessor reports failure"
    )
    on_aborted: HookFn | None = Field(
        default=None, description="Called when the pre-check declines the request"
    )

    def log(self, message: str, section: str | None = None, level: str = "DEBUG"):
        """Emit a log line tagged with ``log_name`` and an optional section."""
        logger.bind(tag=make_tag(self.log_name, section)).log(level, message)


@lru_cache
def get_settings() -> LifecycleSettings:
    """
    Provides access to the process-wide lifecycle settings.

    Settings are loaded from environment variables or .env/secrets.env files.
    The instance is cached for performance.

    Returns:
        LifecycleSettings: The shared settings instance.

    Raises:
        ConfigurationError: If an environment variable or .env entry holds an
            invalid value.
    """
    try:
        return LifecycleSettings()
    except ValidationError as e:
        raise ConfigurationError(f"Invalid hookwire settings: {e}") from e
