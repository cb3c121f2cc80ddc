"""logging_setup.py – Root logger wiring for the webhook process

Every module logs through the stdlib ``logging`` API.  The process entry point
calls :func:`configure_logging` once; records then go either to stderr or,
with ``GCP_LOGGING=true``, to the Cloud Logging log named after the
environment (``<ENV_NAME>_framed_stats``).
"""

from __future__ import annotations

from typing import Any, Optional
import logging

from framed_stats.config import Settings

__all__ = ["LOG_FORMAT", "CloudLoggingHandler", "configure_logging"]

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s – %(message)s"


class CloudLoggingHandler(logging.Handler):
    """Forwards records to a Cloud Logging ``Logger``.

    The emitting module and thread are attached as labels, so the log of one
    stats scan (which runs on a ``framed-stats`` worker thread) can be
    filtered apart from the request that dispatched it.
    """

    def __init__(self, gcp_logger: Any):
        super().__init__()
        self._gcp_logger = gcp_logger

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self._gcp_logger.log_text(
                self.format(record),
                severity=record.levelname.upper(),
                labels={"logger": record.name, "thread": record.threadName},
            )
        except Exception:
            # A Cloud Logging outage must not fail the interaction.
            self.handleError(record)


def configure_logging(settings: Settings, root_logger: Optional[logging.Logger] = None):
    """Attach the process-wide handler to *root_logger* (the root by default).

    Returns the Cloud Logging ``Logger`` when ``GCP_LOGGING`` is enabled, else
    ``None``.  The client library is imported only in that case, so local
    runs need neither credentials nor network access.
    """
    root_logger = root_logger or logging.getLogger()
    root_logger.setLevel(logging.INFO)

    gcp_logger = None
    if settings.gcp_logging:
        from google.cloud import logging as cloud_logging

        gcp_logger = cloud_logging.Client().logger(settings.log_name)
        handler: logging.Handler = CloudLoggingHandler(gcp_logger)
    else:
        handler = logging.StreamHandler()

    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root_logger.addHandler(handler)
    return gcp_logger
