"""discord.py – Discord Channel History Adapter

Purpose
-------
Walks the complete message history of a Discord channel, newest message
first, one page of up to 100 messages at a time.

Traversal strategy
------------------
* Request the page older than the current cursor (no cursor means "start at
  the newest message").
* Advance the cursor to the oldest id in the page.
* Stop once a page comes back empty.

Pages must be consumed in order since every cursor is derived from the page
before it.

Rate limiting
-------------
After each page the bucket headers are inspected.  When no requests remain we
sleep for ``reset_after`` seconds *before* asking for the next page, so a scan
never provokes a 429.  A 429 that does happen anyway is not retried; it
surfaces as :class:`~framed_stats.connections.discord_client.DiscordAPIError`
like every other failure and aborts the scan.
"""

from __future__ import annotations

from typing import Callable, Iterator, Optional
import logging
import time

from framed_stats.connections.discord_client import DiscordClient, MAX_PAGE_SIZE
from framed_stats.models import Message, MessagePage

__all__ = [
    "PAGE_SIZE",
    "iter_message_pages",
    "iter_channel_history",
]

logger = logging.getLogger(__name__)

PAGE_SIZE = MAX_PAGE_SIZE


def iter_message_pages(
    client: DiscordClient,
    channel_id: str,
    *,
    before: Optional[str] = None,
    page_size: int = PAGE_SIZE,
    sleep: Callable[[float], None] = time.sleep,
) -> Iterator[MessagePage]:
    """Yield non-empty history pages of *channel_id* older than *before*.

    The generator ends after the first empty page.  Closing it early (e.g. by
    breaking out of the loop) stops the scan without issuing further requests.
    """
    cursor = before
    pages = 0
    while True:
        page = client.list_channel_messages(channel_id, before=cursor, limit=page_size)
        if not page.messages:
            logger.info("History of channel %s exhausted after %d page(s)", channel_id, pages)
            return

        pages += 1
        yield page
        cursor = page.oldest_id

        rate_limit = page.rate_limit
        if rate_limit.exhausted and rate_limit.reset_after:
            logger.info(
                "Rate limit reached. Sleeping for %.3f s before the next page", rate_limit.reset_after
            )
            sleep(rate_limit.reset_after)


def iter_channel_history(
    client: DiscordClient,
    channel_id: str,
    *,
    before: Optional[str] = None,
    page_size: int = PAGE_SIZE,
    sleep: Callable[[float], None] = time.sleep,
) -> Iterator[Message]:
    """Yield every message of *channel_id* older than *before*, newest first."""
    for page in iter_message_pages(
        client, channel_id, before=before, page_size=page_size, sleep=sleep
    ):
        yield from page.messages
