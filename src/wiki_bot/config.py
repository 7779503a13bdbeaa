"""
Configuration for wiki-bot.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

DISCORD_API_BASE = "https://discord.com/api/v10"


@dataclass
class MongoConfig:
    """Document store connection configuration."""

    uri: str = "mongodb://localhost:27017"
    uri_env: str | None = "MONGODB_URI"
    database: str = "cc"
    collection: str = "tcs"
    connect_timeout_seconds: float = 160.0  # Readiness gate at startup
    poll_interval_seconds: float = 0.1
    server_selection_timeout_ms: int = 5000

    def get_uri(self) -> str:
        """Get the connection string, preferring the environment."""
        if self.uri_env:
            from_env = os.environ.get(self.uri_env)
            if from_env:
                return from_env
        return self.uri


@dataclass
class DiscordConfig:
    """Chat platform credentials and REST settings."""

    token: str | None = None
    token_env: str | None = "DISCORD_TOKEN"
    application_id: str | None = None
    guild_id: str | None = None  # Required when syncing in dev mode
    api_base: str = DISCORD_API_BASE
    timeout_seconds: float = 10.0

    def get_token(self) -> str | None:
        """Get bot token from config or environment."""
        if self.token:
            return self.token
        if self.token_env:
            return os.environ.get(self.token_env)
        return None


@dataclass
class CommandConfig:
    """Limits applied by the command handlers."""

    autocomplete_timeout_seconds: float = 60.0
    lookup_timeout_seconds: float = 10.0
    max_choices: int = 25


@dataclass
class BotConfig:
    """Complete wiki-bot configuration."""

    sync_commands: bool = True
    dev_mode: bool = True

    mongo: MongoConfig = field(default_factory=MongoConfig)
    discord: DiscordConfig = field(default_factory=DiscordConfig)
    commands: CommandConfig = field(default_factory=CommandConfig)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "BotConfig":
        """Create config from a dictionary (e.g., from YAML)."""
        config = cls()

        if "sync_commands" in data:
            config.sync_commands = bool(data["sync_commands"])
        if "dev_mode" in data:
            config.dev_mode = bool(data["dev_mode"])

        if "mongo" in data:
            mongo = data["mongo"]
            config.mongo = MongoConfig(
                uri=mongo.get("uri", config.mongo.uri),
                uri_env=mongo.get("uri_env", config.mongo.uri_env),
                database=mongo.get("database", config.mongo.database),
                collection=mongo.get("collection", config.mongo.collection),
                connect_timeout_seconds=mongo.get("connect_timeout_seconds", 160.0),
                poll_interval_seconds=mongo.get("poll_interval_seconds", 0.1),
                server_selection_timeout_ms=mongo.get("server_selection_timeout_ms", 5000),
            )

        if "discord" in data:
            discord = data["discord"]
            guild_id = discord.get("guild_id")
            application_id = discord.get("application_id")
            config.discord = DiscordConfig(
                token=discord.get("token"),
                token_env=discord.get("token_env", config.discord.token_env),
                application_id=str(application_id) if application_id else None,
                guild_id=str(guild_id) if guild_id else None,
                api_base=discord.get("api_base", DISCORD_API_BASE),
                timeout_seconds=discord.get("timeout_seconds", 10.0),
            )

        if "commands" in data:
            commands = data["commands"]
            config.commands = CommandConfig(
                autocomplete_timeout_seconds=commands.get("autocomplete_timeout_seconds", 60.0),
                lookup_timeout_seconds=commands.get("lookup_timeout_seconds", 10.0),
                max_choices=commands.get("max_choices", 25),
            )

        return config

    @classmethod
    def from_yaml(cls, path: Path) -> "BotConfig":
        """Load config from the ``wiki_bot`` section of a YAML file."""
        if not path.exists():
            return cls()

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        return cls.from_dict(data.get("wiki_bot", {}))

    def to_dict(self) -> dict[str, Any]:
        """Convert config to dictionary for logging. Credentials are left out."""
        return {
            "sync_commands": self.sync_commands,
            "dev_mode": self.dev_mode,
            "mongo": {
                "database": self.mongo.database,
                "collection": self.mongo.collection,
                "connect_timeout_seconds": self.mongo.connect_timeout_seconds,
            },
            "discord": {
                "application_id": self.discord.application_id,
                "guild_id": self.discord.guild_id,
                "api_base": self.discord.api_base,
            },
            "commands": {
                "autocomplete_timeout_seconds": self.commands.autocomplete_timeout_seconds,
                "lookup_timeout_seconds": self.commands.lookup_timeout_seconds,
                "max_choices": self.commands.max_choices,
            },
        }
