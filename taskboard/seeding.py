import logging
from datetime import datetime

from taskboard.auth.passwords import ensure_password_hash
from taskboard.records import Dataset
from taskboard.sample_data import generate_sample_data
from taskboard.stores.base import TaskStore

logger = logging.getLogger(__name__)


def hash_dataset_passwords(dataset: Dataset) -> Dataset:
    users = [
        user.model_copy(update={'password': ensure_password_hash(user.password)})
        for user in dataset.users
    ]
    return dataset.model_copy(update={'users': users})


def seed_store(store: TaskStore, dataset: Dataset) -> dict[str, int]:
    """Replace everything in ``store`` with ``dataset``. Destructive."""
    prepared = hash_dataset_passwords(dataset)
    counts = store.replace_all(prepared)
    logger.info('Seeded %s with %s', store.label, counts)
    return counts


def seed_sample_data(store: TaskStore, now: datetime | None = None) -> dict[str, int]:
    return seed_store(store, generate_sample_data(now))
