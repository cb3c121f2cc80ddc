"""models.py – Request-scoped data structures

Plain dataclasses for the objects that flow through a single stats request.
None of these are persisted; every request builds them from scratch out of
the JSON returned by the Discord REST API.

See https://discord.com/developers/docs/resources/message#message-object for
the upstream message shape.  Only the handful of fields used here are kept.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

__all__ = [
    "Author",
    "Message",
    "DayRecord",
    "UserStats",
    "RateLimit",
    "MessagePage",
    "UserHistory",
    "UserHistories",
]


@dataclass(frozen=True)
class Author:
    id: str
    display_name: str

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "Author":
        # ``global_name`` is the user's chosen display name and is null for
        # bots and users that never set one.
        name = payload.get("global_name") or payload.get("username") or str(payload["id"])
        return cls(id=str(payload["id"]), display_name=name)


@dataclass(frozen=True)
class Message:
    id: str
    content: str
    author: Author

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "Message":
        return cls(
            id=str(payload["id"]),
            content=payload.get("content") or "",
            author=Author.from_payload(payload["author"]),
        )


@dataclass(frozen=True)
class DayRecord:
    """Outcome of one user's game on one day."""

    failed_attempts: int


@dataclass
class UserStats:
    days_played: int = 0
    score: int = 0


# day number -> record
UserHistory = Dict[int, DayRecord]
# user id -> history
UserHistories = Dict[str, UserHistory]


@dataclass(frozen=True)
class RateLimit:
    """Bucket state reported by Discord alongside every REST response.

    Either value may be missing (e.g. on endpoints without a bucket), in which
    case the caller must not throttle on it.
    """

    remaining: Optional[int] = None
    reset_after: Optional[float] = None

    @classmethod
    def from_headers(cls, headers: Mapping[str, str]) -> "RateLimit":
        remaining = headers.get("X-RateLimit-Remaining")
        reset_after = headers.get("X-RateLimit-Reset-After")
        try:
            remaining_value = int(remaining) if remaining is not None else None
        except ValueError:
            remaining_value = None
        try:
            reset_value = float(reset_after) if reset_after is not None else None
        except ValueError:
            reset_value = None
        return cls(remaining=remaining_value, reset_after=reset_value)

    @property
    def exhausted(self) -> bool:
        return self.remaining is not None and self.remaining <= 0


@dataclass(frozen=True)
class MessagePage:
    """One page of channel history, newest message first."""

    messages: List[Message] = field(default_factory=list)
    rate_limit: RateLimit = field(default_factory=RateLimit)

    @property
    def oldest_id(self) -> Optional[str]:
        return self.messages[-1].id if self.messages else None
