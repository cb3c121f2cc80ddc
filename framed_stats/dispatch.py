"""dispatch.py – Fire-and-continue execution of stats requests

Discord expects an answer to an interaction within three seconds, while a
full channel scan can take minutes.  The ``/stats`` handler therefore hands
the work to a :class:`StatsDispatcher` and immediately answers with a
deferred response; the background task later edits that response.

Dispatching never blocks the request thread.  The caller may pass an
``acknowledged`` event which the worker waits on before starting the task,
so the follow-up edit is only attempted once the deferred response has left
the server.  The web layer sets that event when the response is closed.

The dispatcher also watches whether the task settles within
``race_timeout`` seconds.  The outcome of that race is only logged.

Two task flavours exist:

* :func:`local_stats_task` runs the scan inside this process.
* :func:`http_handoff_task` POSTs the payload to
  ``/process-stats-interaction`` so that another (stateless) instance of the
  service performs the scan.
"""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Dict, Mapping, Optional
import logging
import threading
import time

import requests

from framed_stats.config import Settings
from framed_stats.connections.discord_client import DiscordClient
from framed_stats.verbs import process_stats_interaction

__all__ = [
    "HANDOFF_SECRET_HEADER",
    "StatsDispatcher",
    "local_stats_task",
    "http_handoff_task",
    "build_dispatcher",
]

logger = logging.getLogger(__name__)

HANDOFF_SECRET_HEADER = "X-Stats-Handoff-Secret"

StatsTask = Callable[[Dict[str, Any]], Any]


class StatsDispatcher:
    """Runs stats tasks on a worker pool, detached from the HTTP request."""

    def __init__(
        self,
        task: StatsTask,
        *,
        race_timeout: float = 1.0,
        ack_timeout: float = 10.0,
        max_workers: int = 4,
        executor: Optional[ThreadPoolExecutor] = None,
    ):
        self.task = task
        self.race_timeout = race_timeout
        self.ack_timeout = ack_timeout
        self._executor = executor or ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="framed-stats"
        )

    def dispatch(
        self,
        payload: Mapping[str, Any],
        acknowledged: Optional[threading.Event] = None,
    ) -> Future:
        """Queue *payload*'s task and return its future without waiting.

        When *acknowledged* is given the task does not start before the event
        is set (or ``ack_timeout`` elapses).
        """
        future = self._executor.submit(self._run, dict(payload), acknowledged)
        self._watch_race(future, payload.get("id", "unknown"))
        return future

    def _watch_race(self, future: Future, interaction_id: Any) -> None:
        started = time.monotonic()

        def _race_expired() -> None:
            if not future.done():
                logger.info(
                    "Stats task for interaction %s still running after %.1fs. Continuing to process async",
                    interaction_id,
                    self.race_timeout,
                )

        timer = threading.Timer(self.race_timeout, _race_expired)
        timer.daemon = True

        def _settled(_: Future) -> None:
            timer.cancel()
            if time.monotonic() - started <= self.race_timeout:
                logger.info("Stats task for interaction %s settled within the race window", interaction_id)

        timer.start()
        future.add_done_callback(_settled)

    def _run(self, payload: Dict[str, Any], acknowledged: Optional[threading.Event]) -> Any:
        interaction_id = payload.get("id", "unknown")
        if acknowledged is not None and not acknowledged.wait(self.ack_timeout):
            logger.warning(
                "Interaction %s was not acknowledged within %.1fs; running stats task anyway",
                interaction_id,
                self.ack_timeout,
            )
        # Nobody awaits the outcome once the ack is sent, so errors stop here.
        started = time.monotonic()
        try:
            result = self.task(payload)
        except Exception:
            logger.exception("Stats task for interaction %s failed", interaction_id)
            return None
        logger.info(
            "Stats task for interaction %s finished in %.2fs",
            interaction_id,
            time.monotonic() - started,
        )
        return result

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)


# ---------------------------------------------------------------------------
# Task factories
# ---------------------------------------------------------------------------


def local_stats_task(client: DiscordClient, *, sleep: Callable[[float], None] = time.sleep) -> StatsTask:
    """Return a task that scans and delivers inside this process."""

    def _task(payload: Dict[str, Any]) -> str:
        return process_stats_interaction(payload, client, sleep=sleep)

    return _task


def http_handoff_task(
    url: str,
    *,
    timeout: float = 900.0,
    secret: Optional[str] = None,
    session: Optional[requests.Session] = None,
) -> StatsTask:
    """Return a task that forwards the payload to *url* and waits for its answer."""
    http = session or requests.Session()
    headers = {"Accept": "application/json", "Content-Type": "application/json"}
    if secret:
        headers[HANDOFF_SECRET_HEADER] = secret

    def _task(payload: Dict[str, Any]) -> Dict[str, Any]:
        logger.info("Sending process request to %s", url)
        response = http.post(url, json=payload, headers=headers, timeout=timeout)
        response.raise_for_status()
        return response.json()

    return _task


def build_dispatcher(settings: Settings, client: DiscordClient) -> StatsDispatcher:
    """Create the dispatcher described by *settings*."""
    if settings.stats_dispatch == "http":
        settings.require("server_url")
        task = http_handoff_task(
            settings.handoff_url,
            timeout=settings.handoff_timeout,
            secret=settings.handoff_secret,
        )
    else:
        task = local_stats_task(client)
    return StatsDispatcher(
        task,
        race_timeout=settings.dispatch_race_timeout,
        ack_timeout=settings.dispatch_ack_timeout,
        max_workers=settings.dispatch_workers,
    )
