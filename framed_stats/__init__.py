"""
Framed Stats – Discord interactions webhook for Framed results

This package houses the web application that answers Discord interactions and
computes per-user statistics from the "Framed #N" share messages posted in a
channel.  This module only wires things together: configuration, logging,
the inbound rate limiter and the blueprint live here, the behaviour lives in
the sub-modules.
"""

# ---------------------------------------------------------------------------
# Imports
# ---------------------------------------------------------------------------
from typing import Any, Callable, Optional

import logging
import time

from flask import Flask, jsonify, request
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

from .config import Settings

# ---------------------------------------------------------------------------
# Internal logging facade – resolved at *runtime* in create_app.
# ---------------------------------------------------------------------------

# NOTE:
# The Google Cloud logger (if any) is created centrally in ``main_driver.py``
# and passed down to :pyfunc:`create_app`.  This module therefore never
# instantiates its own Cloud Logging client.

_log: Callable[..., None]


def _default_log(message: str, *, severity: str = "INFO") -> None:  # noqa: D401
    """Fallback logger that writes to this package's stdlib logger."""
    level = getattr(logging, severity.upper(), logging.INFO)
    logging.getLogger(__name__).log(level, message)


_log = _default_log

# ---------------------------------------------------------------------------
# Rate limiter – instantiated at module level to avoid circular imports
# ---------------------------------------------------------------------------

# Default limits come from ``RATELIMIT_DEFAULT`` in the app config so that each
# application instance can carry its own.
limiter = Limiter(
    key_func=get_remote_address,
    storage_uri="memory://",
)

# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------


def create_app(
    settings: Optional[Settings] = None,
    *,
    logger: Any = None,
    discord_client: Any = None,
    dispatcher: Any = None,
    sleep: Callable[[float], None] = time.sleep,
) -> Flask:
    """Create and configure the Flask application instance.

    Parameters
    ----------
    settings:
        Configuration; read from the environment when omitted.
    logger:
        Optional Google Cloud ``Logger`` (anything exposing ``log_text``).
    discord_client:
        Outbound Discord REST client; built from *settings* when omitted.
    dispatcher:
        Background executor for ``/stats``; built from *settings* when omitted.
    sleep:
        Pause used between rate-limited history pages.
    """
    from .connections.discord_client import DiscordClient
    from .dispatch import build_dispatcher

    settings = settings or Settings.from_env()

    # Patch the module-level _log helper so later callers pick up the
    # Cloud Logging implementation.
    global _log  # noqa: PLW0603 – intentional global state
    if logger is not None and hasattr(logger, "log_text"):
        _log = lambda msg, *, severity="INFO": logger.log_text(  # type: ignore  # noqa: E731
            msg, severity=severity.upper()
        )
    else:
        _log = _default_log

    if discord_client is None:
        discord_client = DiscordClient.from_settings(settings)
    if dispatcher is None:
        dispatcher = build_dispatcher(settings, discord_client)

    # ---------------------------------------------------------------------
    # Initialise base Flask app
    # ---------------------------------------------------------------------
    app = Flask(__name__)
    app.config.update(
        DISCORD_PUBLIC_KEY=settings.public_key,
        RATELIMIT_DEFAULT=settings.rate_limit_default,
        RATELIMIT_ENABLED=settings.rate_limit_enabled,
        RATELIMIT_HEADERS_ENABLED=True,
    )
    app.extensions["framed_stats"] = {
        "settings": settings,
        "discord_client": discord_client,
        "dispatcher": dispatcher,
        "sleep": sleep,
    }

    # Attach the rate limiter after app creation
    limiter.init_app(app)

    from .api import api_bp

    app.register_blueprint(api_bp)

    # ---------------------------------------------------------------------
    # Rate-limit error handler – converts 429 into JSON response & structured log
    # ---------------------------------------------------------------------
    @app.errorhandler(429)  # type: ignore[arg-type]
    def _ratelimit_handler(error):  # noqa: D401 – internal handler
        client_ip = request.remote_addr or "unknown"
        user_agent = request.headers.get("User-Agent", "Unknown")
        _log(
            f"Rate limit exceeded: {error} – IP: {client_ip}, User-Agent: {user_agent}",
            severity="WARNING",
        )
        return (
            jsonify({
                "status": "error",
                "message": "Rate limit exceeded. Please try again later.",
            }),
            429,
        )

    @app.errorhandler(405)  # type: ignore[arg-type]
    @app.errorhandler(404)  # type: ignore[arg-type]
    def _not_found_handler(error):  # noqa: D401 – internal handler
        return jsonify({"error": error.name}), error.code

    # Unhandled exceptions arrive here as InternalServerError after Flask has
    # logged the traceback.
    @app.errorhandler(500)  # type: ignore[arg-type]
    def _internal_error_handler(error):  # noqa: D401 – internal handler
        _log(f"Internal error on {request.method} {request.path}", severity="ERROR")
        return jsonify({"error": "Internal Server Error"}), 500

    _log(
        f"Flask application initialised (dispatch={settings.stats_dispatch}, env={settings.env_name})",
        severity="INFO",
    )
    return app
