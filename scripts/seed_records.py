#!/usr/bin/env python3
"""Load wiki records into MongoDB, or delete one by id."""

import argparse
from pathlib import Path

from wiki_bot.config import BotConfig
from wiki_bot.errors import WikiBotError
from wiki_bot.seeding import load_records, seed
from wiki_bot.store import DocumentStore, parse_object_id


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed the wiki collection")
    parser.add_argument(
        "--config",
        type=Path,
        default=Path("wiki_bot.yaml"),
        help="Path to config file (default: wiki_bot.yaml)",
    )
    parser.add_argument(
        "--file",
        type=Path,
        help="JSON or YAML file with a list of records to upsert",
    )
    parser.add_argument(
        "--delete",
        metavar="ID",
        help="Delete the record with this id",
    )
    args = parser.parse_args()

    config = BotConfig.from_yaml(args.config)
    store = DocumentStore.connect(config.mongo)
    collection = config.mongo.collection

    try:
        if args.file:
            saved = seed(store, collection, load_records(args.file))
            print(f"Upserted {len(saved)} record(s) into {config.mongo.database}.{collection}")
            for record in saved:
                print(f"  {record.record_id}  {record.name}")

        if args.delete:
            deleted = store.delete_one(collection, {"_id": parse_object_id(args.delete)})
            print(f"Deleted {deleted.record_id}  {deleted.name}")
    except (WikiBotError, ValueError, OSError) as e:
        print(f"Error: {e}")
        raise SystemExit(1) from e
    finally:
        store.disconnect()


if __name__ == "__main__":
    main()
