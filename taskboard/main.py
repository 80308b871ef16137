import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from pymongo.errors import PyMongoError
from sqlalchemy.exc import SQLAlchemyError

from taskboard.core import config
from taskboard.database import open_store
from taskboard.errors import TaskboardError
from taskboard.routes import admin_routes, graphql_routes
from taskboard.stores.base import TaskStore

logger = logging.getLogger(__name__)


def initialize_database(store: TaskStore) -> None:
    try:
        store.initialize_schema()
    except (SQLAlchemyError, PyMongoError, TaskboardError):
        logger.exception('Database initialization failed. Check DATABASE_TYPE and the %s connection settings.', store.label)


def create_app(store: TaskStore | None = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if store is None:
            config.validate_runtime_config()
        active_store = store or open_store()
        app.state.store = active_store
        if active_store.kind in ('sqlite', 'mysql'):
            initialize_database(active_store)
        logger.info('Task management API using the %s', active_store.label)
        try:
            yield
        finally:
            active_store.close()

    app = FastAPI(title='Task Management API', lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=['*'],
        allow_headers=['*'],
    )

    @app.get('/')
    def root(request: Request):
        return {'status': 'Task Management API Running', 'database': request.app.state.store.kind}

    app.include_router(graphql_routes.router, prefix='/api')
    app.include_router(admin_routes.router, prefix='/api')

    admin_paths = {f'/api{route.path}' for route in admin_routes.router.routes}

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        if request.url.path in admin_paths:
            return admin_routes.invalid_body_response(exc)
        return await request_validation_exception_handler(request, exc)

    return app


app = create_app()
