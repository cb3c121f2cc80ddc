"""stats.py – Framed result aggregation

Turns the raw "Framed #N" share messages posted in a channel into per-user
statistics.  A share message looks like::

    Framed #812
    🎥 🟥 🟥 🟩 ⬛ ⬛ ⬛

Every 🟥 is a failed guess.  A day is worth ``6 - failed_attempts`` points;
the score is not clamped, so a malformed message with more than six misses
yields a negative day score.
"""

from __future__ import annotations

from typing import Dict, Iterable, Mapping, Optional, Tuple
import logging
import re

from framed_stats.models import DayRecord, Message, UserHistories, UserStats

__all__ = [
    "FRAMED_MESSAGE_START",
    "FAILURE_GLYPH",
    "MAX_DAY_SCORE",
    "MalformedResultError",
    "is_framed_message",
    "parse_framed_result",
    "update_user_histories",
    "construct_stats",
    "construct_stats_message",
    "StatsAggregator",
]

logger = logging.getLogger(__name__)

FRAMED_MESSAGE_START = "Framed #"
FAILURE_GLYPH = "🟥"
MAX_DAY_SCORE = 6

_DAY_PATTERN = re.compile(r"^" + re.escape(FRAMED_MESSAGE_START) + r"(\d+)")


class MalformedResultError(ValueError):
    """A message carries the Framed prefix but no day number."""


def is_framed_message(content: str) -> bool:
    return content.startswith(FRAMED_MESSAGE_START)


def parse_framed_result(content: str) -> Tuple[int, DayRecord]:
    """Return ``(day, record)`` for a qualifying message body.

    Raises :class:`MalformedResultError` when no digits follow the prefix.
    """
    match = _DAY_PATTERN.match(content)
    if match is None:
        raise MalformedResultError(f"no day number after {FRAMED_MESSAGE_START!r}: {content[:40]!r}")
    day = int(match.group(1))
    return day, DayRecord(failed_attempts=content.count(FAILURE_GLYPH))


def update_user_histories(histories: UserHistories, message: Message) -> UserHistories:
    """Fold *message* into *histories* and return it.

    *histories* is the caller's own accumulator and is updated in place.
    Non-qualifying messages leave it untouched; malformed ones are logged
    and skipped.  A second result for the same user and day replaces the
    first.
    """
    _record_result(histories, message)
    return histories


def _record_result(histories: UserHistories, message: Message) -> bool:
    # True only when *message* was a well-formed result and got recorded.
    if not is_framed_message(message.content):
        return False

    try:
        day, record = parse_framed_result(message.content)
    except MalformedResultError as exc:
        logger.warning("Skipping message %s from %s: %s", message.id, message.author.id, exc)
        return False

    histories.setdefault(message.author.id, {})[day] = record
    return True


def construct_stats(histories: UserHistories) -> Dict[str, UserStats]:
    """Reduce every user's history to :class:`UserStats`, preserving user order."""
    all_stats: Dict[str, UserStats] = {}
    for user_id, history in histories.items():
        stats = UserStats()
        for record in history.values():
            stats.days_played += 1
            stats.score += MAX_DAY_SCORE - record.failed_attempts
        all_stats[user_id] = stats
    return all_stats


def construct_stats_message(
    stats: Mapping[str, UserStats],
    user_ids_to_names: Mapping[str, str],
) -> str:
    content = "Scores:\n"
    for user_id, user_stats in stats.items():
        name = user_ids_to_names.get(user_id, user_id)
        content += (
            f"\n{name}: \n"
            f"    score: {user_stats.score}\n"
            f"    days played: {user_stats.days_played}\n"
        )
    return content


class StatsAggregator:
    """The single accumulator owned by one stats request.

    Collects histories together with the display name last seen for each
    author, so the final report can be rendered without a second pass.
    """

    def __init__(self):
        self.histories: UserHistories = {}
        self.display_names: Dict[str, str] = {}
        self.framed_results = 0

    def add(self, message: Message) -> None:
        if not _record_result(self.histories, message):
            return
        self.framed_results += 1
        # History is newest-first, so the first name seen is the current one.
        self.display_names.setdefault(message.author.id, message.author.display_name)

    def extend(self, messages: Iterable[Message]) -> "StatsAggregator":
        for message in messages:
            self.add(message)
        return self

    def stats(self) -> Dict[str, UserStats]:
        return construct_stats(self.histories)

    def render(self, stats: Optional[Mapping[str, UserStats]] = None) -> str:
        return construct_stats_message(stats if stats is not None else self.stats(), self.display_names)
