"""commands.py – Slash command definitions

The payloads below are sent as-is to Discord's bulk-overwrite endpoint, which
replaces the complete global command set.  Registering twice is therefore
harmless.
"""

from __future__ import annotations

from enum import IntEnum
from typing import Any, Dict, List
import logging

from framed_stats.connections.discord_client import DiscordClient

__all__ = [
    "InteractionContext",
    "IntegrationType",
    "CommandType",
    "TEST_COMMAND",
    "STATS_COMMAND",
    "ALL_COMMANDS",
    "install_global_commands",
]

logger = logging.getLogger(__name__)


# https://discord.com/developers/docs/interactions/receiving-and-responding#interaction-object-interaction-context-types
class InteractionContext(IntEnum):
    GUILD = 0
    BOT_DM = 1
    PRIVATE_CHANNEL = 2


# https://discord.com/developers/docs/resources/application#application-object-application-integration-types
class IntegrationType(IntEnum):
    GUILD_INSTALL = 0
    USER_INSTALL = 1


# https://discord.com/developers/docs/interactions/application-commands#application-command-object-application-command-types
class CommandType(IntEnum):
    CHAT_INPUT = 1  # slash commands
    USER = 2
    MESSAGE = 3
    PRIMARY_ENTRY_POINT = 4


TEST_COMMAND: Dict[str, Any] = {
    "name": "test",
    "description": "Basic command",
    "type": int(CommandType.CHAT_INPUT),
    "integration_types": [int(IntegrationType.GUILD_INSTALL), int(IntegrationType.USER_INSTALL)],
    "contexts": [
        int(InteractionContext.GUILD),
        int(InteractionContext.BOT_DM),
        int(InteractionContext.PRIVATE_CHANNEL),
    ],
}

STATS_COMMAND: Dict[str, Any] = {
    "name": "stats",
    "description": "Calculates your stats based on historic frame.wtf messages",
    "type": int(CommandType.CHAT_INPUT),
    "integration_types": [int(IntegrationType.GUILD_INSTALL)],
    "contexts": [int(InteractionContext.GUILD)],
}

ALL_COMMANDS: List[Dict[str, Any]] = [TEST_COMMAND, STATS_COMMAND]


def install_global_commands(
    client: DiscordClient,
    application_id: str,
    commands: List[Dict[str, Any]] = ALL_COMMANDS,
) -> List[Dict[str, Any]]:
    """Overwrite the global commands of *application_id* with *commands*."""
    logger.info(
        "Registering %d global command(s) for application %s: %s",
        len(commands),
        application_id,
        ", ".join(command["name"] for command in commands),
    )
    return client.bulk_overwrite_global_commands(application_id, commands)
