from framed_stats import create_app
from framed_stats.config import Settings
from framed_stats.logging_setup import configure_logging
import sys
import logging as pylogging

settings = Settings.from_env()

# ---------------------------------------------------------------------------
# Logging – stderr locally, Google Cloud Logging with GCP_LOGGING=true
# ---------------------------------------------------------------------------

logger = configure_logging(settings)
pylogging.getLogger(__name__).info(
    "Server starting in %s mode", settings.flask_env
)

# Pass the Google Cloud logger to the Flask factory
app = create_app(settings, logger=logger)


def run_server() -> None:
    """
    Run the appropriate web server based on the environment configuration.

    For production, it programmatically configures and starts Gunicorn. The
    stats dispatcher keeps its worker threads inside the Gunicorn worker, so
    a single worker process with several threads is used. For development,
    it starts the Flask development server with debug enabled.

    Environment Variables
    --------------------
    FLASK_ENV : str
        "production" runs Gunicorn, anything else the development server.
    PORT : int
        Port to bind, defaults to 8080.

    Notes
    -----
    The 120-second Gunicorn timeout only bounds the synchronous part of a
    request. With ``STATS_DISPATCH=http`` the ``/process-stats-interaction``
    endpoint does run a full scan synchronously, so deployments using the
    handoff should raise it accordingly.
    """

    if settings.is_production:
        # -----------------------------
        # Start Gunicorn programmatically
        # -----------------------------
        # Import in a more testable way - allows direct patching of wsgi_app
        from gunicorn.app.wsgiapp import run

        sys.argv = [
            "gunicorn",
            "main_driver:app",  # The WSGI entrypoint (module:variable)
            "--bind",
            f"0.0.0.0:{settings.port}",
            "--workers",
            "1",
            "--threads",
            "8",
            "--timeout",
            "120",
        ]
        run()  # This will block until Gunicorn exits
    else:
        # -----------------------------
        # Start the Flask development server
        # -----------------------------
        app.run(host="0.0.0.0", port=settings.port, debug=True, use_reloader=False)


if __name__ == "__main__":
    run_server()
