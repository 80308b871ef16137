"""SQLAlchemy store serving both the embedded SQLite file and a MySQL server."""

import logging
from threading import Lock

from sqlalchemy import and_, create_engine, inspect, or_
from sqlalchemy.engine import URL, Engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from taskboard.errors import DuplicateRecordError, RecordNotFoundError
from taskboard.models.base import Base
from taskboard.models.message import Message
from taskboard.models.task import Task
from taskboard.models.user import User
from taskboard.records import (
    RECORD_TYPES,
    Dataset,
    Entity,
    MessageRecord,
    Record,
    TaskRecord,
    merge_record,
)
from taskboard.stores.base import TaskStore, ensure_mutable, ensure_record_type

logger = logging.getLogger(__name__)

ROW_TYPES = {
    Entity.USERS: User,
    Entity.TASKS: Task,
    Entity.MESSAGES: Message,
}


def row_to_record(entity: Entity, row) -> Record:
    values = {attribute.key: getattr(row, attribute.key) for attribute in inspect(row).mapper.column_attrs}
    return RECORD_TYPES[entity].model_validate(values)


def record_to_row(entity: Entity, record: Record):
    return ROW_TYPES[entity](**record.model_dump())


def _conflict_message(entity: Entity) -> str:
    if entity is Entity.USERS:
        return 'A user with this id or email already exists.'
    return f'{entity.label} with this id already exists.'


class SqlStore(TaskStore):
    def __init__(
        self,
        url: str | URL,
        *,
        kind: str = 'sqlite',
        label: str = 'SQLite',
        engine_options: dict | None = None,
    ) -> None:
        self.url = url
        self.kind = kind
        self.label = label
        self.engine_options = engine_options or {}
        self._engine: Engine | None = None
        self._session_factory: sessionmaker | None = None
        self._schema_lock = Lock()
        self._schema_ready = False

    @classmethod
    def for_sqlite(cls, path: str, *, echo: bool = False) -> 'SqlStore':
        return cls(
            f'sqlite:///{path}',
            kind='sqlite',
            label='SQLite',
            engine_options={'echo': echo, 'connect_args': {'check_same_thread': False}},
        )

    @classmethod
    def for_mysql(
        cls,
        *,
        host: str,
        port: int,
        username: str,
        password: str,
        database: str,
        pool_size: int = 10,
        echo: bool = False,
    ) -> 'SqlStore':
        url = URL.create(
            'mysql+pymysql',
            username=username,
            password=password or None,
            host=host,
            port=port,
            database=database,
        )
        return cls(
            url,
            kind='mysql',
            label='MySQL',
            engine_options={
                'echo': echo,
                'pool_size': pool_size,
                'max_overflow': 0,
                'pool_pre_ping': True,
            },
        )

    def open(self) -> None:
        if self._engine is not None:
            return

        engine = create_engine(self.url, **self.engine_options)
        self._session_factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
        self._engine = engine
        logger.info('Using %s database at %s', self.label, engine.url.render_as_string(hide_password=True))

    def close(self) -> None:
        if self._engine is None:
            return

        self._engine.dispose()
        self._engine = None
        self._session_factory = None
        self._schema_ready = False

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            self.open()
        return self._engine

    @property
    def session_factory(self) -> sessionmaker:
        if self._session_factory is None:
            self.open()
        return self._session_factory

    def _session(self) -> Session:
        return self.session_factory()

    def initialize_schema(self) -> list[str]:
        table_names = [table.name for table in Base.metadata.sorted_tables]

        if self._schema_ready:
            return table_names

        with self._schema_lock:
            if self._schema_ready:
                return table_names

            engine = self.engine
            Base.metadata.create_all(bind=engine)
            self._ensure_indexes(engine)
            self._schema_ready = True

        logger.info('%s tables initialized', self.label)
        return table_names

    def _ensure_indexes(self, engine: Engine) -> None:
        # create_all skips tables that already exist, so databases created by an
        # older deployment can be missing the lookup indexes.
        inspector = inspect(engine)

        with engine.begin() as connection:
            for table in Base.metadata.sorted_tables:
                existing_indexes = {index['name'] for index in inspector.get_indexes(table.name)}
                for index in table.indexes:
                    if index.name not in existing_indexes:
                        index.create(connection)

    def list_all(self, entity: Entity) -> list[Record]:
        with self._session() as db:
            rows = db.query(ROW_TYPES[entity]).all()
            return [row_to_record(entity, row) for row in rows]

    def get_by_id(self, entity: Entity, record_id: str) -> Record | None:
        with self._session() as db:
            row = db.get(ROW_TYPES[entity], record_id)
            return row_to_record(entity, row) if row is not None else None

    def create(self, entity: Entity, record: Record) -> Record:
        ensure_record_type(entity, record)

        with self._session() as db:
            db.add(record_to_row(entity, record))
            try:
                db.commit()
            except IntegrityError as exc:
                db.rollback()
                raise DuplicateRecordError(_conflict_message(entity)) from exc

        return record

    def update(self, entity: Entity, record_id: str, fields: dict) -> Record:
        ensure_mutable(entity)

        with self._session() as db:
            row = db.get(ROW_TYPES[entity], record_id)
            if row is None:
                raise RecordNotFoundError(entity.label, record_id)

            updated = merge_record(entity, row_to_record(entity, row), fields)
            for key, value in updated.model_dump().items():
                setattr(row, key, value)

            try:
                db.commit()
            except IntegrityError as exc:
                db.rollback()
                raise DuplicateRecordError(_conflict_message(entity)) from exc

        return updated

    def delete(self, entity: Entity, record_id: str) -> bool:
        ensure_mutable(entity)
        row_type = ROW_TYPES[entity]

        with self._session() as db:
            deleted = db.query(row_type).filter(row_type.id == record_id).delete(synchronize_session=False)
            db.commit()

        return deleted > 0

    def tasks_by_assignee(self, user_id: str) -> list[TaskRecord]:
        with self._session() as db:
            rows = db.query(Task).filter(Task.assigned_to == user_id).all()
            return [row_to_record(Entity.TASKS, row) for row in rows]

    def messages_between(self, first_user_id: str, second_user_id: str) -> list[MessageRecord]:
        with self._session() as db:
            rows = db.query(Message).filter(
                or_(
                    and_(Message.sender_id == first_user_id, Message.receiver_id == second_user_id),
                    and_(Message.sender_id == second_user_id, Message.receiver_id == first_user_id),
                )
            ).order_by(Message.timestamp.asc()).all()
            return [row_to_record(Entity.MESSAGES, row) for row in rows]

    def replace_all(self, dataset: Dataset) -> dict[str, int]:
        try:
            # Commits on success and rolls the wipe back if any insert fails.
            with self.session_factory.begin() as db:
                for row_type in (Message, Task, User):
                    db.query(row_type).delete(synchronize_session=False)
                for entity in Entity:
                    db.add_all([record_to_row(entity, record) for record in dataset.records(entity)])
        except IntegrityError as exc:
            raise DuplicateRecordError('The dataset conflicts with itself; no data was replaced.') from exc

        counts = dataset.counts()
        logger.info('Replaced %s data: %s', self.label, counts)
        return counts
