import logging

from fastapi import APIRouter, Body, Depends, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from pymongo.errors import PyMongoError
from sqlalchemy.exc import SQLAlchemyError

from taskboard.core import config
from taskboard.database import get_store
from taskboard.errors import TaskboardError
from taskboard.records import parse_dataset
from taskboard.seeding import seed_sample_data, seed_store
from taskboard.stores.base import TaskStore
from taskboard.stores.sql_store import SqlStore

router = APIRouter(tags=['admin'])

logger = logging.getLogger(__name__)

DRIVER_ERRORS = (SQLAlchemyError, PyMongoError)


class StatusResponse(BaseModel):
    success: bool
    message: str
    counts: dict[str, int] | None = None
    tables: list[str] | None = None
    collections: list[str] | None = None


def failure_response(message: str, exc: Exception, status_code: int) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={'success': False, 'message': message, 'error': str(exc)},
    )


def invalid_body_response(exc: RequestValidationError) -> JSONResponse:
    error = exc.errors()[0]
    location = '.'.join(str(part) for part in error['loc'])
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={'success': False, 'message': 'Invalid request body', 'error': f'{location}: {error["msg"]}'},
    )


def run_admin_operation(failure_message: str, operation):
    try:
        return operation()
    except TaskboardError as exc:
        return failure_response(failure_message, exc, status.HTTP_400_BAD_REQUEST)
    except DRIVER_ERRORS as exc:
        logger.exception(failure_message)
        return failure_response(failure_message, exc, status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.get('/init-db', response_model=StatusResponse, response_model_exclude_none=True)
def init_db(store: TaskStore = Depends(get_store)):
    def initialize():
        names = store.initialize_schema()
        if store.kind == 'mongodb':
            return StatusResponse(success=True, message='MongoDB initialized successfully', collections=names)
        return StatusResponse(success=True, message=f'{store.label} tables initialized successfully', tables=names)

    return run_admin_operation('Database initialization failed', initialize)


@router.get('/init-local-db', response_model=StatusResponse, response_model_exclude_none=True)
def init_local_db():
    def initialize():
        with SqlStore.for_sqlite(config.SQLITE_PATH) as local_store:
            names = local_store.initialize_schema()
        return StatusResponse(success=True, message='Local SQLite database initialized successfully', tables=names)

    try:
        return run_admin_operation('Database initialization failed', initialize)
    except ImportError as exc:
        logger.exception('SQLite driver could not be loaded')
        return failure_response('Database initialization failed', exc, status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.post('/migrate-data', response_model=StatusResponse, response_model_exclude_none=True)
def migrate_data(payload: dict = Body(...), store: TaskStore = Depends(get_store)):
    def migrate():
        counts = seed_store(store, parse_dataset(payload))
        return StatusResponse(success=True, message=f'Data migrated to {store.label} successfully', counts=counts)

    return run_admin_operation('Data migration failed', migrate)


@router.post('/seed-database', response_model=StatusResponse, response_model_exclude_none=True)
def seed_database(store: TaskStore = Depends(get_store)):
    def seed():
        counts = seed_sample_data(store)
        return StatusResponse(success=True, message=f'Sample data seeded to {store.label} successfully', counts=counts)

    return run_admin_operation('Database seeding failed', seed)
