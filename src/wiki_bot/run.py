"""
CLI runner for wiki-bot.

Usage:
    python -m wiki_bot.run [OPTIONS]

    # Connect, sync command declarations to the dev guild and exit
    python -m wiki_bot.run --sync-commands --dev-mode

    # Dispatch recorded interactions and print the callbacks
    python -m wiki_bot.run --no-sync-commands --replay interactions.jsonl --dry-run
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

import httpx

from .bot import WikiBot
from .config import BotConfig
from .errors import WikiBotError
from .interactions import Action, InteractionEvent

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("wiki-bot")


def load_payloads(path: Path) -> list[dict[str, Any]]:
    """Read interaction bodies from a JSON Lines file, skipping blank lines."""
    payloads = []
    with open(path) as f:
        for line_number, line in enumerate(f, 1):
            line = line.strip()
            if not line:
                continue
            try:
                payloads.append(json.loads(line))
            except json.JSONDecodeError as e:
                raise ValueError(f"{path}:{line_number}: invalid JSON ({e})") from e
    return payloads


async def print_callback(event: InteractionEvent, action: Action) -> None:
    """Deliver a callback to stdout instead of the platform."""
    print(json.dumps({"path": event.path, "callback": action.to_callback()}))


async def replay(bot: WikiBot, payloads: list[dict[str, Any]], dry_run: bool = False) -> int:
    """
    Dispatch recorded interactions concurrently.

    Returns the number of interactions that produced a response.
    """
    deliver = print_callback if dry_run else None
    results = await asyncio.gather(
        *(bot.handle_payload(payload, deliver=deliver) for payload in payloads)
    )
    return sum(1 for result in results if result is not None)


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="wiki-bot: wiki lookups over slash commands",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Sync commands globally
    python -m wiki_bot.run --sync-commands --no-dev-mode

    # Replay interactions against the live platform
    python -m wiki_bot.run --replay interactions.jsonl

    # Use a specific config file
    python -m wiki_bot.run --config wiki_bot.yaml --dry-run --replay interactions.jsonl
        """,
    )

    parser.add_argument(
        "--config",
        type=Path,
        default=Path("wiki_bot.yaml"),
        help="Path to config file (default: wiki_bot.yaml)",
    )
    parser.add_argument(
        "--sync-commands",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Sync command declarations to the platform (default: from config)",
    )
    parser.add_argument(
        "--dev-mode",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Sync to the configured dev guild instead of globally",
    )
    parser.add_argument(
        "--replay",
        type=Path,
        help="Dispatch interaction payloads from a JSON Lines file",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print callbacks instead of posting them",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging",
    )

    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    # Load config
    config = BotConfig.from_yaml(args.config)
    if args.sync_commands is not None:
        config.sync_commands = args.sync_commands
    if args.dev_mode is not None:
        config.dev_mode = args.dev_mode

    logger.info(f"Config loaded from {args.config}")
    logger.info(f"Collection: {config.mongo.database}.{config.mongo.collection}")

    try:
        bot = WikiBot.create(config)
    except WikiBotError as e:
        logger.error(f"Startup failed: {e}")
        return 1

    try:
        if config.sync_commands:
            asyncio.run(bot.sync_commands())

        if args.replay:
            payloads = load_payloads(args.replay)
            logger.info(f"Replaying {len(payloads)} interaction(s)")
            answered = asyncio.run(replay(bot, payloads, dry_run=args.dry_run))
            logger.info(f"Replay complete: {answered}/{len(payloads)} answered")
        else:
            logger.info("Bot is ready")
    except (WikiBotError, ValueError, OSError) as e:
        logger.error(f"Run failed: {e}")
        return 1
    except httpx.HTTPError as e:
        logger.error(f"Failed to sync commands: {e}")
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    finally:
        logger.info("Shutting down...")
        bot.close()

    return 0


if __name__ == "__main__":
    sys.exit(main())
