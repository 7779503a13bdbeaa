"""
Slash command declarations and registration.
"""

from typing import Any

from .config import BotConfig
from .interactions import InteractionEvent, MessageResponse, OptionType
from .registry import CommandRegistry
from .store import DocumentStore
from .wiki import QUERY_OPTION, WikiAutocomplete, WikiLookup

PING_COMMAND: dict[str, Any] = {
    "name": "ping",
    "description": "Check that the bot is responding",
}

WIKI_COMMAND: dict[str, Any] = {
    "name": "wiki",
    "description": "Search the wiki",
    "options": [
        {
            "type": OptionType.STRING.value,
            "name": QUERY_OPTION,
            "description": "The name of the card to search for",
            "required": True,
            "autocomplete": True,
        }
    ],
}

# Declarations pushed to the platform by command sync
COMMANDS: list[dict[str, Any]] = [PING_COMMAND, WIKI_COMMAND]


def handle_ping(event: InteractionEvent) -> MessageResponse:
    return MessageResponse(content="Pong!", ephemeral=True)


def register_commands(registry: CommandRegistry, store: DocumentStore, config: BotConfig) -> None:
    """Bind every declared command to its handler."""
    registry.command("/ping", handle_ping)

    wiki = registry.route("/wiki")
    wiki.autocomplete(
        "/",
        WikiAutocomplete(
            store,
            config.mongo.collection,
            timeout=config.commands.autocomplete_timeout_seconds,
            max_choices=config.commands.max_choices,
        ),
    )
    wiki.command(
        "/",
        WikiLookup(store, config.mongo.collection, timeout=config.commands.lookup_timeout_seconds),
    )
