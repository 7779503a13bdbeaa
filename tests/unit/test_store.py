"""Tests for the MongoDB access layer."""

import time
from unittest.mock import MagicMock

import pytest
from bson import ObjectId
from pymongo.errors import AutoReconnect, ServerSelectionTimeoutError

from conftest import COLLECTION, FakeCursor, seed_records
from wiki_bot.config import MongoConfig
from wiki_bot.errors import ConnectionFailure, InvalidIdentifier, NotFound, StoreTimeout
from wiki_bot.store import DocumentStore, SearchCursor, parse_object_id, prefix_filter


class TestParseObjectId:
    """Test identifier parsing."""

    def test_valid_hex(self):
        oid = ObjectId()
        assert parse_object_id(str(oid)) == oid

    @pytest.mark.parametrize("value", ["", "a1", "not-an-object-id", "z" * 24, None])
    def test_invalid_values(self, value):
        """Should raise InvalidIdentifier, distinct from NotFound."""
        with pytest.raises(InvalidIdentifier):
            parse_object_id(value)


class TestPrefixFilter:
    def test_case_insensitive_anchor(self):
        assert prefix_filter("Fire") == {"name": {"$regex": "^Fire", "$options": "i"}}

    def test_escapes_regex_characters(self):
        """User input is matched literally."""
        assert prefix_filter("a.b(")["name"]["$regex"] == r"^a\.b\("


class TestSearch:
    """Test prefix search against an in-process store."""

    def test_matches_prefix_case_insensitively(self, store):
        fire_id, _, _ = seed_records(
            store,
            {"name": "Fire Cat", "description": "..."},
            {"name": "Ice Beetle"},
            {"name": "Wildfire"},
        )

        with store.search(COLLECTION, "fire") as cursor:
            documents = list(cursor)

        assert [d["name"] for d in documents] == ["Fire Cat"]
        assert str(documents[0]["_id"]) == fire_id

    def test_projects_name_only(self, store):
        """Only _id and name should be transferred."""
        seed_records(store, {"name": "Fire Cat", "description": "long text", "pack": "Starter"})

        with store.search(COLLECTION, "Fire") as cursor:
            document = next(cursor)

        assert set(document) == {"_id", "name"}

    def test_empty_prefix_matches_everything(self, store):
        seed_records(store, *({"name": f"Card {i}"} for i in range(5)))

        with store.search(COLLECTION, "") as cursor:
            assert len(list(cursor)) == 5

    def test_regex_characters_do_not_break_search(self, store):
        seed_records(store, {"name": "Fire Cat"}, {"name": "F.x"})

        with store.search(COLLECTION, "F.") as cursor:
            assert [d["name"] for d in cursor] == ["F.x"]

    def test_open_failure_is_connection_failure(self):
        client = MagicMock()
        client.__getitem__.return_value.__getitem__.return_value.find.side_effect = AutoReconnect(
            "connection reset"
        )
        store = DocumentStore(client, "cc")

        with pytest.raises(ConnectionFailure):
            store.search(COLLECTION, "Fire")


class TestSearchCursor:
    """Test the scoped search iterator."""

    def test_close_is_idempotent(self):
        fake = FakeCursor([])
        cursor = SearchCursor(fake)

        cursor.close()
        cursor.close()

        assert fake.closed is True
        assert cursor.closed is True

    def test_context_manager_closes_on_error(self):
        fake = FakeCursor([{"_id": 1, "name": "A"}])

        with pytest.raises(RuntimeError):
            with SearchCursor(fake) as cursor:
                next(cursor)
                raise RuntimeError("handler bailed out")

        assert fake.closed is True

    def test_closed_cursor_stops(self):
        cursor = SearchCursor(FakeCursor([{"_id": 1, "name": "A"}]))
        cursor.close()
        assert list(cursor) == []

    def test_store_errors_are_translated(self):
        cursor = SearchCursor(FakeCursor([AutoReconnect("connection reset")]))
        with pytest.raises(ConnectionFailure) as excinfo:
            next(cursor)
        assert not isinstance(excinfo.value, StoreTimeout)

    def test_timeout_errors_are_translated(self):
        cursor = SearchCursor(FakeCursor([ServerSelectionTimeoutError("no servers")]))
        with pytest.raises(StoreTimeout):
            next(cursor)

    def test_deadline_is_enforced_between_documents(self):
        """Iteration stops with StoreTimeout once the deadline has passed."""
        fake = FakeCursor([{"_id": i, "name": f"Card {i}"} for i in range(10)], delay=0.05)
        cursor = SearchCursor(fake, timeout=0.12)

        started = time.monotonic()
        with pytest.raises(StoreTimeout):
            list(cursor)

        assert time.monotonic() - started < 1.0
        assert fake.fetched < 10


class TestFindOne:
    """Test single-record fetch."""

    def test_found(self, store):
        (fire_id,) = seed_records(store, {"name": "Fire Cat", "description": "Meow"})

        record = store.find_one(COLLECTION, {"_id": ObjectId(fire_id)})

        assert record.record_id == fire_id
        assert record.name == "Fire Cat"
        assert record.description == "Meow"

    def test_not_found(self, store):
        with pytest.raises(NotFound):
            store.find_one(COLLECTION, {"_id": ObjectId()})

    def test_accepts_timeout(self, store):
        (fire_id,) = seed_records(store, {"name": "Fire Cat"})
        assert store.find_one(COLLECTION, {"_id": ObjectId(fire_id)}, timeout=5).name == "Fire Cat"

    def test_transport_failure(self):
        client = MagicMock()
        client.__getitem__.return_value.__getitem__.return_value.find_one.side_effect = (
            ServerSelectionTimeoutError("no servers")
        )
        store = DocumentStore(client, "cc")

        with pytest.raises(ConnectionFailure):
            store.find_one(COLLECTION, {"_id": ObjectId()})


class TestUpsert:
    """Test update-or-insert."""

    def test_inserts_when_missing(self, store):
        record = store.upsert(
            COLLECTION, {"name": "Fire Cat"}, {"$set": {"description": "Meow"}}
        )

        assert record.name == "Fire Cat"
        assert record.description == "Meow"
        assert store._db[COLLECTION].count_documents({}) == 1

    def test_updates_existing(self, store):
        (fire_id,) = seed_records(store, {"name": "Fire Cat", "description": "old"})

        record = store.upsert(
            COLLECTION, {"_id": ObjectId(fire_id)}, {"$set": {"description": "new"}}
        )

        assert record.record_id == fire_id
        assert record.description == "new"

    def test_idempotent(self, store):
        """Applying the same upsert twice yields the same document."""
        update = {"$set": {"description": "Meow", "school": "Fire"}}

        first = store.upsert(COLLECTION, {"name": "Fire Cat"}, update)
        second = store.upsert(COLLECTION, {"name": "Fire Cat"}, update)

        assert first == second
        assert store._db[COLLECTION].count_documents({}) == 1


class TestDeleteOne:
    """Test delete-and-return."""

    def test_deletes_and_returns(self, store):
        (fire_id,) = seed_records(store, {"name": "Fire Cat"})

        deleted = store.delete_one(COLLECTION, {"_id": ObjectId(fire_id)})

        assert deleted.name == "Fire Cat"
        with pytest.raises(NotFound):
            store.find_one(COLLECTION, {"_id": ObjectId(fire_id)})

    def test_missing(self, store):
        with pytest.raises(NotFound):
            store.delete_one(COLLECTION, {"_id": ObjectId()})


class TestConnection:
    """Test the startup readiness gate and shutdown."""

    def test_connect_waits_until_ready(self):
        client = MagicMock()
        client.admin.command.side_effect = [
            ServerSelectionTimeoutError("starting"),
            ServerSelectionTimeoutError("starting"),
            {"ok": 1.0},
        ]
        factory = MagicMock(return_value=client)
        config = MongoConfig(uri="mongodb://db:27017", poll_interval_seconds=0.0, uri_env=None)

        store = DocumentStore.connect(config, client_factory=factory)

        assert isinstance(store, DocumentStore)
        assert client.admin.command.call_count == 3
        factory.assert_called_once_with("mongodb://db:27017", serverSelectionTimeoutMS=5000)

    def test_connect_gives_up_after_deadline(self):
        client = MagicMock()
        client.admin.command.side_effect = ServerSelectionTimeoutError("down")
        config = MongoConfig(connect_timeout_seconds=0.0, poll_interval_seconds=0.0, uri_env=None)

        with pytest.raises(ConnectionFailure):
            DocumentStore.connect(config, client_factory=MagicMock(return_value=client))

        client.close.assert_called_once()

    def test_disconnect_is_idempotent(self):
        client = MagicMock()
        store = DocumentStore(client, "cc")

        store.disconnect()
        store.disconnect()

        client.close.assert_called_once()
