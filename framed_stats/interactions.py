"""interactions.py – Interaction responder

Maps one incoming Discord interaction to its immediate HTTP answer.

==========================  ===============================================
Incoming                    Answer
==========================  ===============================================
``PING``                    ``PONG``
``MESSAGE_COMPONENT``       fixed acknowledgement message
command ``test``            ``hello world <emoji>``
command ``stats``           dispatch background scan, then ``DEFERRED``
anything else               HTTP 400
==========================  ===============================================

See https://discord.com/developers/docs/interactions/receiving-and-responding
"""

from __future__ import annotations

from enum import IntEnum
from typing import Any, Callable, Dict, Mapping, Optional, Tuple
import logging

from framed_stats.helper_functions import get_random_emoji

__all__ = [
    "InteractionType",
    "InteractionResponseType",
    "COMPONENT_ACK_MESSAGE",
    "handle_interaction",
]

logger = logging.getLogger(__name__)

COMPONENT_ACK_MESSAGE = "I saw your message"


class InteractionType(IntEnum):
    PING = 1
    APPLICATION_COMMAND = 2
    MESSAGE_COMPONENT = 3
    APPLICATION_COMMAND_AUTOCOMPLETE = 4
    MODAL_SUBMIT = 5


class InteractionResponseType(IntEnum):
    PONG = 1
    CHANNEL_MESSAGE_WITH_SOURCE = 4
    DEFERRED_CHANNEL_MESSAGE_WITH_SOURCE = 5
    DEFERRED_UPDATE_MESSAGE = 6
    UPDATE_MESSAGE = 7


Response = Tuple[Dict[str, Any], int]


def _message(content: str) -> Response:
    return {
        "type": InteractionResponseType.CHANNEL_MESSAGE_WITH_SOURCE,
        "data": {"content": content},
    }, 200


def handle_interaction(
    payload: Mapping[str, Any],
    dispatch_stats: Callable[[Mapping[str, Any]], Any],
    *,
    emoji: Optional[Callable[[], str]] = None,
) -> Response:
    """Return ``(body, status)`` for *payload*.

    *dispatch_stats* is invoked for the ``stats`` command only.  Whatever it
    returns, and even when it raises, the answer is the deferred response.
    """
    interaction_type = payload.get("type")
    logger.info("Interaction type: %s", interaction_type)

    if interaction_type == InteractionType.PING:
        return {"type": InteractionResponseType.PONG}, 200

    if interaction_type == InteractionType.MESSAGE_COMPONENT:
        return _message(COMPONENT_ACK_MESSAGE)

    if interaction_type == InteractionType.APPLICATION_COMMAND:
        name = (payload.get("data") or {}).get("name")

        if name == "test":
            return _message(f"hello world {(emoji or get_random_emoji)()}")

        if name == "stats":
            try:
                dispatch_stats(payload)
            except Exception:
                logger.exception("Could not dispatch stats task for interaction %s", payload.get("id"))
            logger.info("Responding with deferred message")
            return {"type": InteractionResponseType.DEFERRED_CHANNEL_MESSAGE_WITH_SOURCE}, 200

        logger.error("unknown command: %s", name)
        return {"error": "unknown command"}, 400

    logger.error("unknown interaction type: %s", interaction_type)
    return {"error": "unknown interaction type"}, 400
