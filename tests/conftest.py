import os
import uuid

import mongomock
import pytest

os.environ.setdefault('DATABASE_TYPE', 'memory')

from taskboard.stores.memory_store import MemoryStore  # noqa: E402
from taskboard.stores.mongo_store import MongoStore  # noqa: E402
from taskboard.stores.sql_store import SqlStore  # noqa: E402


@pytest.fixture(autouse=True)
def fast_password_hashing(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr('taskboard.core.config.BCRYPT_ROUNDS', 4)


def _mongomock_client(uri, **_options):
    return mongomock.MongoClient(uri)


def build_test_store(kind: str, tmp_path):
    if kind == 'memory':
        return MemoryStore()
    if kind == 'sqlite':
        return SqlStore.for_sqlite(str(tmp_path / 'task_management_system.db'))
    return MongoStore(
        'mongodb://localhost:27017',
        f'task_management_{uuid.uuid4().hex}',
        client_factory=_mongomock_client,
    )


@pytest.fixture(params=['memory', 'sqlite', 'mongodb'])
def store(request, tmp_path):
    task_store = build_test_store(request.param, tmp_path)
    task_store.open()
    task_store.initialize_schema()
    try:
        yield task_store
    finally:
        task_store.close()


@pytest.fixture
def memory_store():
    task_store = MemoryStore()
    task_store.open()
    return task_store
