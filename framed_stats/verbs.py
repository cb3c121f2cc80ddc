"""verbs.py – Action primitives for Framed Stats

This module exposes *verbs* – high-level actions executed in response to an
interaction or a CLI call.  Verbs stay thin; they orchestrate the lower-level
*connections* (the Discord REST client) and *inputs* (channel history) and
hand the data to :pymod:`framed_stats.stats` for aggregation.

``process_stats_interaction`` is the background half of the ``/stats``
command: it runs *after* the deferred acknowledgement has been sent and
delivers the report by editing the original interaction response.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Mapping, Optional, Tuple
import logging
import time

from framed_stats.connections.discord_client import DiscordClient
from framed_stats.helper_functions import truncate_message
from framed_stats.inputs.discord import iter_message_pages
from framed_stats.models import UserStats
from framed_stats.stats import StatsAggregator

__all__ = [
    "STATS_FAILURE_MESSAGE",
    "InvalidInteractionPayload",
    "compute_channel_stats",
    "build_stats_report",
    "process_stats_interaction",
]

logger = logging.getLogger(__name__)

STATS_FAILURE_MESSAGE = "Sorry, I couldn't read this channel's history. Please try again later."


class InvalidInteractionPayload(ValueError):
    """The interaction payload lacks a field the stats verb depends on."""


# ---------------------------------------------------------------------------
# Helper utilities (internal)
# ---------------------------------------------------------------------------


def _channel_id(payload: Mapping[str, Any]) -> str:
    channel_id = payload.get("channel_id") or (payload.get("channel") or {}).get("id")
    if not channel_id:
        raise InvalidInteractionPayload("interaction payload has no channel id")
    return str(channel_id)


def _followup_target(payload: Mapping[str, Any]) -> Tuple[str, str]:
    application_id = payload.get("application_id")
    token = payload.get("token")
    if not application_id or not token:
        raise InvalidInteractionPayload("interaction payload has no application_id/token")
    return str(application_id), str(token)


# ---------------------------------------------------------------------------
# Public API – verbs
# ---------------------------------------------------------------------------


def compute_channel_stats(
    client: DiscordClient,
    channel_id: str,
    *,
    before: Optional[str] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> StatsAggregator:
    """Scan the full history of *channel_id* and return the filled aggregator.

    Any failure while paging aborts the scan; nothing partial is returned.
    """
    aggregator = StatsAggregator()
    scanned = 0
    for page in iter_message_pages(client, channel_id, before=before, sleep=sleep):
        scanned += len(page.messages)
        aggregator.extend(page.messages)

    logger.info(
        "Scanned %d message(s) in channel %s; %d Framed result(s) from %d user(s)",
        scanned,
        channel_id,
        aggregator.framed_results,
        len(aggregator.histories),
    )
    return aggregator


def build_stats_report(
    client: DiscordClient,
    channel_id: str,
    *,
    sleep: Callable[[float], None] = time.sleep,
) -> Tuple[Dict[str, UserStats], str]:
    """Return ``(stats, message)`` for *channel_id*."""
    aggregator = compute_channel_stats(client, channel_id, sleep=sleep)
    stats = aggregator.stats()
    return stats, aggregator.render(stats)


def process_stats_interaction(
    payload: Mapping[str, Any],
    client: DiscordClient,
    *,
    sleep: Callable[[float], None] = time.sleep,
) -> str:
    """Compute the stats for the interaction's channel and deliver them.

    Parameters
    ----------
    payload:
        The original ``APPLICATION_COMMAND`` interaction as received from
        Discord.
    client:
        Discord REST client used for both the history scan and the follow-up.
    sleep:
        Injected for the rate-limit pause between pages.

    Returns
    -------
    str
        The content that was delivered.

    Raises
    ------
    Exception
        Whatever aborted the scan.  Before re-raising, a short failure notice
        replaces the deferred placeholder so the user is not left waiting.
    """
    channel_id = _channel_id(payload)
    application_id, token = _followup_target(payload)

    try:
        _, content = build_stats_report(client, channel_id, sleep=sleep)
    except Exception:
        logger.exception("Stats scan of channel %s failed", channel_id)
        try:
            client.edit_original_response(application_id, token, STATS_FAILURE_MESSAGE)
        except Exception:
            logger.exception("Could not deliver failure notice for channel %s", channel_id)
        raise

    content = truncate_message(content)
    logger.info("Sending stats follow-up for channel %s", channel_id)
    client.edit_original_response(application_id, token, content)
    return content
