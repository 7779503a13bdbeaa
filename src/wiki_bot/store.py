"""
MongoDB access layer for wiki-bot.

Wraps a single long-lived ``MongoClient`` and exposes the handful of
operations the command handlers need: prefix search, single-document
fetch, upsert and delete. Every operation takes an optional timeout in
seconds, enforced through pymongo's client-side operation timeout.

pymongo errors never leave this module; they are translated into the
``wiki_bot.errors`` hierarchy.
"""

import logging
import re
import threading
import time
from typing import Any

import pymongo
from bson import ObjectId
from bson.errors import InvalidId
from pymongo import MongoClient, ReturnDocument
from pymongo.errors import PyMongoError

from .config import MongoConfig
from .errors import ConnectionFailure, InvalidIdentifier, NotFound, StoreTimeout
from .models import Record

logger = logging.getLogger(__name__)

# Only what the autocomplete projection needs (_id is always returned)
NAME_PROJECTION = {"name": 1}


def parse_object_id(value: str) -> ObjectId:
    """
    Convert a 24-character hex string into an ObjectId.

    Raises:
        InvalidIdentifier: if the value is not a valid ObjectId.
    """
    if not isinstance(value, str):
        raise InvalidIdentifier(f"{value!r} is not a valid record id")
    try:
        return ObjectId(value)
    except InvalidId as e:
        raise InvalidIdentifier(f"{value!r} is not a valid record id") from e


def prefix_filter(prefix: str) -> dict[str, Any]:
    """Case-insensitive starts-with filter on the name field."""
    return {"name": {"$regex": f"^{re.escape(prefix)}", "$options": "i"}}


def _translate_error(error: PyMongoError, operation: str) -> ConnectionFailure:
    if error.timeout:
        return StoreTimeout(f"{operation} timed out: {error}")
    return ConnectionFailure(f"{operation} failed: {error}")


class SearchCursor:
    """
    Forward-only iterator over a prefix search.

    Yields raw documents; decoding is left to the caller so a single bad
    document can be skipped. The underlying cursor is released by
    ``close()``, which is safe to call more than once. Use it as a context
    manager so every exit path releases the cursor.
    """

    def __init__(self, cursor, timeout: float | None = None):
        self._cursor = cursor
        self._deadline = None if timeout is None else time.monotonic() + timeout
        self._closed = False

    def __iter__(self) -> "SearchCursor":
        return self

    def __next__(self) -> dict[str, Any]:
        if self._closed:
            raise StopIteration
        remaining = self._remaining()
        try:
            with pymongo.timeout(remaining):
                return next(self._cursor)
        except PyMongoError as e:
            raise _translate_error(e, "search") from e

    def _remaining(self) -> float | None:
        if self._deadline is None:
            return None
        remaining = self._deadline - time.monotonic()
        if remaining <= 0:
            raise StoreTimeout("search exceeded its deadline")
        return remaining

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Release the server-side cursor."""
        if self._closed:
            return
        self._closed = True
        self._cursor.close()

    def __enter__(self) -> "SearchCursor":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class DocumentStore:
    """
    Shared handle on the wiki database.

    ``MongoClient`` is thread-safe, so one instance serves every concurrent
    handler. Build it once with ``connect()`` and close it once with
    ``disconnect()`` at shutdown.
    """

    def __init__(self, client, database: str):
        self._client = client
        self._db = client[database]
        self._lock = threading.Lock()
        self._disconnected = False

    @classmethod
    def connect(cls, config: MongoConfig, client_factory=MongoClient) -> "DocumentStore":
        """
        Connect and block until the server answers a ping.

        Polls every ``config.poll_interval_seconds`` until
        ``config.connect_timeout_seconds`` have passed.

        Raises:
            ConnectionFailure: if the server never became reachable.
        """
        uri = config.get_uri()
        client = client_factory(uri, serverSelectionTimeoutMS=config.server_selection_timeout_ms)
        deadline = time.monotonic() + config.connect_timeout_seconds

        while True:
            try:
                client.admin.command("ping")
                break
            except PyMongoError as e:
                if time.monotonic() >= deadline:
                    client.close()
                    raise ConnectionFailure(f"Failed to connect to MongoDB: {e}") from e
                logger.debug(f"MongoDB not ready yet: {e}")
                time.sleep(config.poll_interval_seconds)

        logger.info(f"Connected to MongoDB database '{config.database}'")
        return cls(client, config.database)

    def search(self, collection: str, prefix: str, timeout: float | None = None) -> SearchCursor:
        """
        Start a prefix search on the name field.

        Only ``_id`` and ``name`` are fetched. Results come back in the
        store's natural order.

        Args:
            collection: Collection to search
            prefix: Case-insensitive name prefix; matched literally
            timeout: Deadline in seconds for the whole iteration

        Raises:
            ConnectionFailure: if the query could not be started.
        """
        try:
            cursor = self._db[collection].find(prefix_filter(prefix), NAME_PROJECTION)
        except PyMongoError as e:
            raise _translate_error(e, "search") from e
        return SearchCursor(cursor, timeout)

    def find_one(
        self,
        collection: str,
        filter: dict[str, Any],
        timeout: float | None = None,
    ) -> Record:
        """
        Fetch exactly one record.

        Raises:
            NotFound: if nothing matches.
            ConnectionFailure: on transport errors (StoreTimeout on deadline).
            DecodeFailure: if the stored document is malformed.
        """
        try:
            with pymongo.timeout(timeout):
                document = self._db[collection].find_one(filter)
        except PyMongoError as e:
            raise _translate_error(e, "find_one") from e

        if document is None:
            raise NotFound(f"no document in '{collection}' matches the query")
        return Record.from_document(document)

    def upsert(
        self,
        collection: str,
        filter: dict[str, Any],
        update: dict[str, Any],
        timeout: float | None = None,
    ) -> Record:
        """
        Apply an update, inserting the document if nothing matches.

        Returns the document as it is after the update.
        """
        try:
            with pymongo.timeout(timeout):
                document = self._db[collection].find_one_and_update(
                    filter,
                    update,
                    upsert=True,
                    return_document=ReturnDocument.AFTER,
                )
        except PyMongoError as e:
            raise _translate_error(e, "upsert") from e

        if document is None:
            raise NotFound(f"upsert in '{collection}' returned no document")
        return Record.from_document(document)

    def delete_one(
        self,
        collection: str,
        filter: dict[str, Any],
        timeout: float | None = None,
    ) -> Record:
        """Delete one matching document and return it."""
        try:
            with pymongo.timeout(timeout):
                document = self._db[collection].find_one_and_delete(filter)
        except PyMongoError as e:
            raise _translate_error(e, "delete_one") from e

        if document is None:
            raise NotFound(f"no document in '{collection}' matches the query")
        return Record.from_document(document)

    def disconnect(self) -> None:
        """Close the client. Later calls do nothing."""
        with self._lock:
            if self._disconnected:
                return
            self._disconnected = True
        self._client.close()
        logger.info("Disconnected from MongoDB")
