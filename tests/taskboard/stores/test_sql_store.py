import pytest
from sqlalchemy import create_engine, inspect, text

from taskboard.errors import DuplicateRecordError
from taskboard.records import Dataset, Entity, TaskRecord, UserRecord
from taskboard.stores import sql_store
from taskboard.stores.sql_store import SqlStore


def _user(user_id: str, email: str) -> UserRecord:
    return UserRecord(id=user_id, name=user_id, email=email, password='hashed', role='student')


def _task(task_id: str) -> TaskRecord:
    return TaskRecord(
        id=task_id,
        title='Write report',
        description='Summarize the results.',
        assigned_to='student1',
        created_by='admin1',
        created_at='2026-01-05T09:00:00.000Z',
    )


@pytest.fixture
def sqlite_store(tmp_path):
    store = SqlStore.for_sqlite(str(tmp_path / 'task_management_system.db'))
    store.initialize_schema()
    try:
        yield store
    finally:
        store.close()


def test_replace_all_rolls_back_when_an_insert_fails(sqlite_store, monkeypatch: pytest.MonkeyPatch) -> None:
    sqlite_store.create(Entity.USERS, _user('existing', 'existing@example.com'))
    original_record_to_row = sql_store.record_to_row

    def failing_record_to_row(entity, record):
        if entity is Entity.TASKS:
            raise RuntimeError('insert failed')
        return original_record_to_row(entity, record)

    monkeypatch.setattr(sql_store, 'record_to_row', failing_record_to_row)

    with pytest.raises(RuntimeError):
        sqlite_store.replace_all(Dataset(users=[_user('student1', 'student1@example.com')], tasks=[_task('task1')]))

    assert [user.id for user in sqlite_store.list_all(Entity.USERS)] == ['existing']


def test_replace_all_reports_integrity_errors_as_duplicates(sqlite_store, monkeypatch: pytest.MonkeyPatch) -> None:
    sqlite_store.create(Entity.USERS, _user('existing', 'existing@example.com'))
    # Bypass dataset validation so the unique constraint is what rejects the rows.
    dataset = Dataset.model_construct(
        users=[_user('student1', 'same@example.com'), _user('student2', 'same@example.com')],
        tasks=[],
        messages=[],
    )

    with pytest.raises(DuplicateRecordError):
        sqlite_store.replace_all(dataset)

    assert [user.id for user in sqlite_store.list_all(Entity.USERS)] == ['existing']


def test_initialize_schema_adds_missing_indexes_to_existing_tables(tmp_path) -> None:
    database_path = tmp_path / 'legacy.db'
    engine = create_engine(f'sqlite:///{database_path}')
    with engine.begin() as connection:
        connection.execute(text(
            'CREATE TABLE tasks (id TEXT PRIMARY KEY, title TEXT NOT NULL, description TEXT NOT NULL, '
            'status TEXT NOT NULL, assignedTo TEXT NOT NULL, createdBy TEXT NOT NULL, createdAt TEXT NOT NULL)'
        ))
        connection.execute(text(
            "INSERT INTO tasks VALUES ('task1', 'Legacy', 'Kept', 'pending', 'student1', 'admin1', "
            "'2024-01-01T00:00:00.000Z')"
        ))
    engine.dispose()

    store = SqlStore.for_sqlite(str(database_path))
    try:
        store.initialize_schema()

        index_names = {index['name'] for index in inspect(store.engine).get_indexes('tasks')}
        assert {'idx_tasks_assigned_to', 'idx_tasks_created_by'} <= index_names
        assert set(inspect(store.engine).get_table_names()) == {'users', 'tasks', 'messages'}
        assert store.get_by_id(Entity.TASKS, 'task1').title == 'Legacy'
    finally:
        store.close()


def test_operations_reopen_after_close(sqlite_store) -> None:
    sqlite_store.create(Entity.USERS, _user('student1', 'student1@example.com'))
    sqlite_store.close()

    assert sqlite_store.get_by_id(Entity.USERS, 'student1').email == 'student1@example.com'


def test_for_mysql_configures_fixed_connection_pool() -> None:
    store = SqlStore.for_mysql(
        host='db.internal',
        port=3306,
        username='tasks',
        password='secret',
        database='task_management_system',
    )

    assert store.kind == 'mysql'
    assert store.url.drivername == 'mysql+pymysql'
    assert store.url.host == 'db.internal'
    assert store.url.database == 'task_management_system'
    assert store.engine_options['pool_size'] == 10
    assert store.engine_options['max_overflow'] == 0
