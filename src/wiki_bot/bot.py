"""
Bot composition: config, store, registry and REST client in one place.

``WikiBot.handle_payload`` is the entry point an event source calls with
each interaction body it receives.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable

import httpx

from .commands import COMMANDS, register_commands
from .config import BotConfig
from .discord_rest import DiscordClient
from .errors import ConfigError
from .interactions import Action, InteractionEvent
from .registry import CommandRegistry
from .store import DocumentStore

logger = logging.getLogger(__name__)

Deliver = Callable[[InteractionEvent, Action], Awaitable[None]]


class WikiBot:
    """A running wiki-bot instance."""

    def __init__(
        self,
        config: BotConfig,
        store: DocumentStore,
        registry: CommandRegistry,
        discord: DiscordClient,
    ):
        self.config = config
        self.store = store
        self.registry = registry
        self.discord = discord

    @classmethod
    def create(
        cls,
        config: BotConfig,
        store: DocumentStore | None = None,
        discord: DiscordClient | None = None,
    ) -> "WikiBot":
        """
        Build a bot ready to handle events.

        Connects to the store (blocking until it answers) unless one is
        passed in, registers the commands and seals the registry.

        Raises:
            ConfigError: if no bot token is configured.
            ConnectionFailure: if the store never became reachable.
            RegistrationError: if the command table is inconsistent.
        """
        token = config.discord.get_token()
        if not token:
            raise ConfigError("no discord token provided")

        if store is None:
            store = DocumentStore.connect(config.mongo)

        registry = CommandRegistry()
        try:
            register_commands(registry, store, config)
            registry.seal()
        except Exception:
            store.disconnect()
            raise

        if discord is None:
            discord = DiscordClient(
                token,
                api_base=config.discord.api_base,
                application_id=config.discord.application_id,
                timeout=config.discord.timeout_seconds,
            )
        return cls(config, store, registry, discord)

    def command_guild_ids(self) -> list[str]:
        """Guilds to sync to: the dev guild in dev mode, none (global) otherwise."""
        if not self.config.dev_mode:
            return []
        if not self.config.discord.guild_id:
            raise ConfigError("no discord guild id provided")
        return [self.config.discord.guild_id]

    async def sync_commands(self) -> list[dict[str, Any]]:
        """Push the command declarations to the platform."""
        return await self.discord.sync_commands(COMMANDS, self.command_guild_ids())

    async def deliver(self, event: InteractionEvent, action: Action) -> None:
        await self.discord.respond(event.interaction_id, event.token, action.to_callback())

    async def handle_payload(
        self,
        payload: dict[str, Any],
        deliver: Deliver | None = None,
    ) -> Action | None:
        """
        Handle one interaction body.

        The handler runs on a worker thread since store calls block; its
        action is delivered back on the event loop before this returns.
        Failures are logged, never raised.
        """
        loop = asyncio.get_running_loop()
        deliver = deliver or self.deliver

        def respond(action: Action) -> None:
            future = asyncio.run_coroutine_threadsafe(deliver(event, action), loop)
            future.result()

        try:
            event = InteractionEvent.from_payload(payload, respond=respond)
        except ValueError as e:
            logger.warning(f"Ignoring interaction {payload.get('id')}: {e}")
            return None

        try:
            return await asyncio.to_thread(self.registry.dispatch, event)
        except httpx.HTTPError as e:
            logger.error(f"Failed to deliver response for {event.path}: {e}")
        except Exception:
            logger.exception(f"Handler for {event.path} failed")
        return None

    def close(self) -> None:
        """Release the store connection."""
        self.store.disconnect()
