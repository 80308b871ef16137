import json
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient
from pymongo.errors import ServerSelectionTimeoutError
from sqlalchemy.exc import SQLAlchemyError

from taskboard.auth.passwords import verify_password
from taskboard.main import create_app
from taskboard.records import Entity
from taskboard.routes.admin_routes import init_db, init_local_db, migrate_data, seed_database
from taskboard.seeding import seed_sample_data
from taskboard.stores.memory_store import MemoryStore


def migration_payload() -> dict:
    return {
        'users': [
            {
                'id': 'admin1',
                'name': 'Admin User',
                'email': 'admin@example.com',
                'password': 'password123',
                'role': 'admin',
                'studentId': '',
            },
            {
                'id': 'student1',
                'name': 'John Smith',
                'email': 'john@example.com',
                'password': 'password123',
                'role': 'student',
                'studentId': 'S12345',
            },
        ],
        'tasks': [
            {
                'id': 'task1',
                'title': 'Complete Project Proposal',
                'description': 'Write a detailed proposal.',
                'status': 'pending',
                'assignedTo': 'student1',
                'createdBy': 'admin1',
                'createdAt': '2026-01-05T09:00:00.000Z',
            }
        ],
        'messages': [],
    }


@pytest.fixture
def client(memory_store):
    with TestClient(create_app(store=memory_store)) as test_client:
        yield test_client


def test_init_db_reports_store_tables(memory_store) -> None:
    response = init_db(store=memory_store)

    assert response.success is True
    assert response.tables == ['users', 'tasks', 'messages']
    assert response.collections is None


def test_init_db_reports_mongo_collections(store) -> None:
    response = init_db(store=store)

    if store.kind == 'mongodb':
        assert response.message == 'MongoDB initialized successfully'
        assert response.collections == ['users', 'tasks', 'messages']
    else:
        assert sorted(response.tables) == ['messages', 'tasks', 'users']


def test_init_local_db_creates_sqlite_file(tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
    database_path = tmp_path / 'local.db'
    monkeypatch.setattr('taskboard.core.config.SQLITE_PATH', str(database_path))

    response = init_local_db()

    assert response.success is True
    assert sorted(response.tables) == ['messages', 'tasks', 'users']
    assert database_path.exists()


def test_init_local_db_reports_missing_driver(monkeypatch: pytest.MonkeyPatch) -> None:
    def missing_driver(self):
        raise ModuleNotFoundError("No module named '_sqlite3'")

    monkeypatch.setattr('taskboard.stores.sql_store.SqlStore.open', missing_driver)

    response = init_local_db()

    assert response.status_code == 500
    assert json.loads(response.body)['success'] is False


def test_migrate_data_replaces_contents_and_hashes_passwords(memory_store) -> None:
    seed_sample_data(memory_store, datetime(2026, 1, 5, 12, 0, tzinfo=timezone.utc))

    response = migrate_data(migration_payload(), store=memory_store)

    stored_user = memory_store.get_by_id(Entity.USERS, 'student1')
    assert response.counts == {'users': 2, 'tasks': 1, 'messages': 0}
    assert memory_store.get_by_id(Entity.TASKS, 'task8') is None
    assert stored_user.password != 'password123'
    assert verify_password('password123', stored_user.password)


def test_migrate_data_over_http_accepts_missing_collections(client: TestClient, memory_store: MemoryStore) -> None:
    response = client.post('/api/migrate-data', json={'users': migration_payload()['users']})

    assert response.status_code == 200
    assert response.json() == {
        'success': True,
        'message': 'Data migrated to in-memory store successfully',
        'counts': {'users': 2, 'tasks': 0, 'messages': 0},
    }


def test_migrate_data_rejects_duplicate_emails_without_touching_store(client: TestClient, memory_store: MemoryStore) -> None:
    seed_sample_data(memory_store, datetime(2026, 1, 5, 12, 0, tzinfo=timezone.utc))
    payload = migration_payload()
    payload['users'][1]['email'] = ' Admin@Example.com'

    response = client.post('/api/migrate-data', json=payload)

    body = response.json()
    assert response.status_code == 400
    assert body['success'] is False
    assert body['message'] == 'Data migration failed'
    assert 'Duplicate user emails: admin@example.com' in body['error']
    assert len(memory_store.list_all(Entity.USERS)) == 6


def test_migrate_data_rejects_invalid_task_status(client: TestClient) -> None:
    payload = migration_payload()
    payload['tasks'][0]['status'] = 'archived'

    response = client.post('/api/migrate-data', json=payload)

    body = response.json()
    assert response.status_code == 400
    assert body['success'] is False
    assert body['message'] == 'Data migration failed'
    assert body['error'].startswith('Invalid tasks.0.status')


@pytest.mark.parametrize(
    'content',
    ['{"users": [', '[{"id": "admin1"}]', ''],
)
def test_migrate_data_reports_unreadable_body_in_envelope(client: TestClient, memory_store: MemoryStore, content: str) -> None:
    seed_sample_data(memory_store, datetime(2026, 1, 5, 12, 0, tzinfo=timezone.utc))

    response = client.post('/api/migrate-data', content=content, headers={'Content-Type': 'application/json'})

    body = response.json()
    assert response.status_code == 400
    assert body['success'] is False
    assert body['message'] == 'Invalid request body'
    assert len(memory_store.list_all(Entity.TASKS)) == 8


def test_migrate_data_normalizes_timestamps_before_ordering(client: TestClient, memory_store: MemoryStore) -> None:
    payload = migration_payload()
    payload['messages'] = [
        {'id': 'later', 'senderId': 'admin1', 'receiverId': 'student1', 'content': 'b', 'timestamp': '2026-01-05T09:00:00.500Z'},
        {'id': 'earlier', 'senderId': 'student1', 'receiverId': 'admin1', 'content': 'a', 'timestamp': '2026-01-05T09:00:00Z'},
        {'id': 'offset', 'senderId': 'admin1', 'receiverId': 'student1', 'content': 'c', 'timestamp': '2026-01-05T10:59:00+02:00'},
    ]

    response = client.post('/api/migrate-data', json=payload)

    conversation = memory_store.messages_between('admin1', 'student1')
    assert response.status_code == 200
    assert [message.id for message in conversation] == ['offset', 'earlier', 'later']
    assert [message.timestamp for message in conversation] == [
        '2026-01-05T08:59:00.000Z',
        '2026-01-05T09:00:00.000Z',
        '2026-01-05T09:00:00.500Z',
    ]


def test_graphql_body_errors_keep_default_shape(client: TestClient) -> None:
    response = client.post('/api/graphql', content='{"query": ', headers={'Content-Type': 'application/json'})

    assert response.status_code == 422
    assert 'detail' in response.json()


def test_seed_database_loads_sample_data(client: TestClient, memory_store: MemoryStore) -> None:
    response = client.post('/api/seed-database')

    assert response.status_code == 200
    assert response.json()['counts'] == {'users': 6, 'tasks': 8, 'messages': 14}
    assert verify_password('password123', memory_store.get_by_id(Entity.USERS, 'admin1').password)


def test_seed_database_twice_leaves_one_copy(memory_store) -> None:
    seed_database(store=memory_store)
    seed_database(store=memory_store)

    assert len(memory_store.list_all(Entity.USERS)) == 6
    assert len(memory_store.list_all(Entity.MESSAGES)) == 14


@pytest.mark.parametrize('error', [SQLAlchemyError('boom'), ServerSelectionTimeoutError('boom')])
def test_driver_errors_return_failure_envelope(memory_store, monkeypatch: pytest.MonkeyPatch, error: Exception) -> None:
    def broken_replace_all(dataset):
        raise error

    monkeypatch.setattr(memory_store, 'replace_all', broken_replace_all)

    response = seed_database(store=memory_store)

    body = json.loads(response.body)
    assert response.status_code == 500
    assert body['success'] is False
    assert body['message'] == 'Database seeding failed'
    assert 'boom' in body['error']
