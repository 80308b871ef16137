import logging

from fastapi import Request

from taskboard.core import config
from taskboard.errors import BackendConfigurationError
from taskboard.stores.base import TaskStore
from taskboard.stores.memory_store import MemoryStore
from taskboard.stores.mongo_store import MongoStore
from taskboard.stores.sql_store import SqlStore

logger = logging.getLogger(__name__)


def build_sqlite_store() -> SqlStore:
    if config.DATABASE_URL:
        return SqlStore(config.DATABASE_URL, kind='sqlite', label='SQLite', engine_options={'echo': config.SQL_ECHO})
    return SqlStore.for_sqlite(config.SQLITE_PATH, echo=config.SQL_ECHO)


def build_mysql_store() -> SqlStore:
    if config.DATABASE_URL:
        return SqlStore(
            config.DATABASE_URL,
            kind='mysql',
            label='MySQL',
            engine_options={
                'echo': config.SQL_ECHO,
                'pool_size': config.MYSQL_POOL_SIZE,
                'max_overflow': 0,
                'pool_pre_ping': True,
            },
        )
    return SqlStore.for_mysql(
        host=config.MYSQL_HOST,
        port=config.MYSQL_PORT,
        username=config.MYSQL_USER,
        password=config.MYSQL_PASSWORD,
        database=config.MYSQL_DATABASE,
        pool_size=config.MYSQL_POOL_SIZE,
        echo=config.SQL_ECHO,
    )


def build_store(database_type: str | None = None) -> TaskStore:
    kind = (database_type or config.DATABASE_TYPE).strip().lower()

    if kind == 'sqlite':
        return build_sqlite_store()
    if kind == 'mysql':
        return build_mysql_store()
    if kind == 'mongodb':
        return MongoStore(config.MONGODB_URI, config.MONGODB_DATABASE)
    if kind == 'memory':
        return MemoryStore()

    raise BackendConfigurationError(
        f'Invalid database type "{kind}". '
        f'Set DATABASE_TYPE to one of: {", ".join(config.SUPPORTED_DATABASE_TYPES)}.'
    )


def open_store(database_type: str | None = None) -> TaskStore:
    """Build and open the configured store.

    The SQLite driver is an optional part of some Python builds. When it cannot
    be loaded the service keeps running on a process-local store instead.
    """
    store = build_store(database_type)

    try:
        store.open()
    except ImportError:
        if store.kind != 'sqlite':
            raise
        logger.warning('SQLite is not available in this environment. Falling back to the in-memory store.')
        store = MemoryStore()
        store.open()

    return store


def get_store(request: Request) -> TaskStore:
    return request.app.state.store
