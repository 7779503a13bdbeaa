"""
Discord REST client for wiki-bot.

Covers the two calls the bot makes over HTTP: posting interaction
callbacks and overwriting the application's slash command declarations.
"""

import logging
from typing import Any

import httpx

from .config import DISCORD_API_BASE

logger = logging.getLogger(__name__)


class DiscordClient:
    """Minimal Discord REST client authenticated with a bot token."""

    def __init__(
        self,
        token: str,
        api_base: str = DISCORD_API_BASE,
        application_id: str | None = None,
        timeout: float = 10.0,
    ):
        self.api_base = api_base.rstrip("/")
        self.token = token
        self.timeout = timeout
        self._application_id = application_id

    @property
    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bot {self.token}"}

    async def get_application_id(self) -> str:
        """Look up (once) the id of the application that owns the token."""
        if self._application_id:
            return self._application_id

        async with httpx.AsyncClient() as client:
            response = await client.get(
                f"{self.api_base}/oauth2/applications/@me",
                headers=self._headers,
                timeout=self.timeout,
            )
            response.raise_for_status()
            self._application_id = str(response.json()["id"])
            return self._application_id

    async def respond(self, interaction_id: str, token: str, payload: dict[str, Any]) -> None:
        """
        Post the callback for an interaction.

        Raises:
            httpx.HTTPError: if the request fails or is rejected.
        """
        async with httpx.AsyncClient() as client:
            response = await client.post(
                f"{self.api_base}/interactions/{interaction_id}/{token}/callback",
                json=payload,
                timeout=self.timeout,
            )
            response.raise_for_status()

    async def sync_commands(
        self,
        commands: list[dict[str, Any]],
        guild_ids: list[str] | None = None,
    ) -> list[dict[str, Any]]:
        """
        Overwrite the application's command declarations.

        With no guild ids the commands are registered globally; otherwise
        they are registered per guild, which takes effect immediately.

        Returns:
            The declarations echoed back by the last request.
        """
        application_id = await self.get_application_id()
        if guild_ids:
            urls = [
                f"{self.api_base}/applications/{application_id}/guilds/{guild_id}/commands"
                for guild_id in guild_ids
            ]
        else:
            urls = [f"{self.api_base}/applications/{application_id}/commands"]

        synced: list[dict[str, Any]] = []
        async with httpx.AsyncClient() as client:
            for url in urls:
                response = await client.put(
                    url,
                    headers=self._headers,
                    json=commands,
                    timeout=self.timeout,
                )
                response.raise_for_status()
                synced = response.json()
                logger.info(f"Synced {len(synced)} command(s) to {url}")
        return synced
