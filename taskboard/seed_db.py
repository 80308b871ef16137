"""Replace the configured database's contents with the sample dataset.

Usage:
    python -m taskboard.seed_db
"""
import logging
import sys

from pymongo.errors import PyMongoError
from sqlalchemy.exc import SQLAlchemyError

from taskboard.core import config
from taskboard.database import open_store
from taskboard.errors import TaskboardError
from taskboard.seeding import seed_sample_data


def main() -> None:
    logging.basicConfig(level=logging.INFO)

    try:
        config.validate_runtime_config()
        with open_store() as store:
            print(f"Seeding {store.label}...")
            store.initialize_schema()
            counts = seed_sample_data(store)
    except (RuntimeError, TaskboardError, SQLAlchemyError, PyMongoError) as exc:
        print(f"Error seeding database: {exc}", file=sys.stderr)
        sys.exit(1)

    print("Database seeded successfully!")
    print(f"Created: {counts['users']} users, {counts['tasks']} tasks, {counts['messages']} messages")


if __name__ == "__main__":
    main()
