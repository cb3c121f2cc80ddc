"""config.py – Runtime configuration

All settings are read from the environment exactly once (optionally seeded
from a ``.env`` file) and frozen into a :class:`Settings` instance that is
passed explicitly to the application factory, the Discord client and the CLI.
Nothing else in the package reads ``os.environ``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional
import os

from dotenv import load_dotenv

__all__ = ["ConfigError", "Settings", "DISPATCH_MODES"]

DISCORD_API_BASE_URL = "https://discord.com/api/v10"
DISPATCH_MODES = ("local", "http")

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


class ConfigError(ValueError):
    """Raised when an environment variable holds an unusable value."""


def _as_bool(name: str, raw: Optional[str], default: bool) -> bool:
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ConfigError(f"{name} must be a boolean, got {raw!r}")


def _as_int(name: str, raw: Optional[str], default: int) -> int:
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from exc


def _as_float(name: str, raw: Optional[str], default: float) -> float:
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from exc


@dataclass(frozen=True)
class Settings:
    """Immutable configuration shared by every component of the service."""

    discord_token: Optional[str] = None
    application_id: Optional[str] = None
    public_key: Optional[str] = None
    api_base_url: str = DISCORD_API_BASE_URL

    port: int = 8080
    local: bool = False
    server_url: Optional[str] = None
    env_name: str = "dev"
    flask_env: str = "development"

    stats_dispatch: str = "local"
    dispatch_race_timeout: float = 1.0
    dispatch_ack_timeout: float = 10.0
    dispatch_workers: int = 4
    request_timeout: float = 30.0
    handoff_timeout: float = 900.0
    handoff_secret: Optional[str] = None

    rate_limit_default: str = "300 per minute"
    rate_limit_enabled: bool = True
    gcp_logging: bool = False

    def __post_init__(self) -> None:
        if self.stats_dispatch not in DISPATCH_MODES:
            raise ConfigError(
                f"STATS_DISPATCH must be one of {', '.join(DISPATCH_MODES)}, "
                f"got {self.stats_dispatch!r}"
            )
        if self.dispatch_workers < 1:
            raise ConfigError("DISPATCH_WORKERS must be at least 1")
        if self.dispatch_race_timeout < 0:
            raise ConfigError("DISPATCH_RACE_TIMEOUT must not be negative")
        if self.dispatch_ack_timeout < 0:
            raise ConfigError("DISPATCH_ACK_TIMEOUT must not be negative")

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        *,
        dotenv: bool = True,
    ) -> "Settings":
        """Build settings from *environ* (defaults to ``os.environ``).

        When *dotenv* is true a ``.env`` file in the working directory is
        loaded first; variables already present in the process environment
        take precedence over the file.
        """
        if environ is None:
            if dotenv:
                load_dotenv()
            environ = os.environ

        port = _as_int("PORT", environ.get("PORT"), 8080)
        local = _as_bool("LOCAL", environ.get("LOCAL"), False)
        server_url = environ.get("SERVER_URL") or None
        if local:
            server_url = f"http://localhost:{port}"

        return cls(
            discord_token=environ.get("DISCORD_TOKEN") or None,
            application_id=environ.get("APP_ID") or None,
            public_key=environ.get("PUBLIC_KEY") or None,
            api_base_url=environ.get("DISCORD_API_BASE_URL") or DISCORD_API_BASE_URL,
            port=port,
            local=local,
            server_url=server_url,
            env_name=environ.get("ENV_NAME", "dev"),
            flask_env=environ.get("FLASK_ENV", "development").lower(),
            stats_dispatch=environ.get("STATS_DISPATCH", "local").lower(),
            dispatch_race_timeout=_as_float(
                "DISPATCH_RACE_TIMEOUT", environ.get("DISPATCH_RACE_TIMEOUT"), 1.0
            ),
            dispatch_ack_timeout=_as_float(
                "DISPATCH_ACK_TIMEOUT", environ.get("DISPATCH_ACK_TIMEOUT"), 10.0
            ),
            dispatch_workers=_as_int(
                "DISPATCH_WORKERS", environ.get("DISPATCH_WORKERS"), 4
            ),
            request_timeout=_as_float(
                "DISCORD_REQUEST_TIMEOUT", environ.get("DISCORD_REQUEST_TIMEOUT"), 30.0
            ),
            handoff_timeout=_as_float(
                "HANDOFF_TIMEOUT", environ.get("HANDOFF_TIMEOUT"), 900.0
            ),
            handoff_secret=environ.get("HANDOFF_SECRET") or None,
            rate_limit_default=environ.get("RATELIMIT_DEFAULT", "300 per minute"),
            rate_limit_enabled=_as_bool(
                "RATELIMIT_ENABLED", environ.get("RATELIMIT_ENABLED"), True
            ),
            gcp_logging=_as_bool("GCP_LOGGING", environ.get("GCP_LOGGING"), False),
        )

    # ------------------------------------------------------------------
    # Convenience helpers
    # ------------------------------------------------------------------

    @property
    def is_production(self) -> bool:
        return self.flask_env == "production"

    @property
    def log_name(self) -> str:
        return f"{self.env_name}_framed_stats"

    @property
    def handoff_url(self) -> Optional[str]:
        """Absolute URL of the internal stats-processing endpoint, if known."""
        if not self.server_url:
            return None
        return self.server_url.rstrip("/") + "/process-stats-interaction"

    def require(self, *fields: str) -> None:
        """Raise :class:`ConfigError` listing every *fields* entry that is unset."""
        missing = [name for name in fields if not getattr(self, name)]
        if missing:
            raise ConfigError(f"Missing required setting(s): {', '.join(missing)}")
