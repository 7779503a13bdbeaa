"""Shared pytest fixtures for wiki-bot tests."""

import time

import mongomock
import pytest

from wiki_bot.config import BotConfig
from wiki_bot.store import DocumentStore

COLLECTION = "tcs"


class FakeCursor:
    """Iterates prepared documents or errors; records whether it was closed.

    Items that are exceptions are raised in place of a document. ``delay``
    seconds are slept before each item.
    """

    def __init__(self, items, delay: float = 0.0):
        self._items = iter(items)
        self.delay = delay
        self.closed = False
        self.fetched = 0

    def __iter__(self):
        return self

    def __next__(self):
        if self.delay:
            time.sleep(self.delay)
        item = next(self._items)
        self.fetched += 1
        if isinstance(item, Exception):
            raise item
        return item

    def close(self):
        self.closed = True


def seed_records(store: DocumentStore, *documents: dict) -> list[str]:
    """Insert raw documents into the test collection, returning their ids."""
    result = store._db[COLLECTION].insert_many([dict(d) for d in documents])
    return [str(i) for i in result.inserted_ids]


@pytest.fixture
def mongo_client():
    """In-process MongoDB stand-in."""
    return mongomock.MongoClient()


@pytest.fixture
def store(mongo_client):
    """DocumentStore over an empty mongomock database."""
    return DocumentStore(mongo_client, "cc")


@pytest.fixture
def config():
    """Config with a token and a dev guild, so startup checks pass."""
    return BotConfig.from_dict(
        {
            "discord": {
                "token": "test-token",
                "application_id": "1000",
                "guild_id": "2000",
            },
            "commands": {"autocomplete_timeout_seconds": 5.0},
        }
    )
