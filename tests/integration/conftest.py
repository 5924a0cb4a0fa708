"""
Integration fixtures: the real routers, middleware and error handlers wired
to the in-memory repositories from tests/conftest.py. No network connections
are made.
"""

from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock

import pytest
from bson import ObjectId
from fastapi import FastAPI
from fastapi.testclient import TestClient

from errors import register_error_handlers
from middleware.request_logging import RequestLoggingMiddleware
from routes.auth_routes import router as auth_router
from routes.oauth_routes import router as oauth_router
from routes.request_routes import router as request_router
from routes.upload_routes import router as upload_router
from routes.user_routes import router as user_router
from schemas.models.request import NotificationDoc
from services.file_service import FileService
from services.request_service import RequestService
from shared.datetime_utils import utcnow


@pytest.fixture
def request_repos():
    requests = AsyncMock()
    notifications = AsyncMock()

    async def _create(doc):
        now = utcnow()
        return (
            doc.model_copy(update={"id": ObjectId(), "created_at": now}),
            NotificationDoc(_id=ObjectId(), owner=doc.name, type=doc.type, created_at=now),
        )

    requests.create_with_notification.side_effect = _create
    requests.find_page.return_value = ([], 0)
    notifications.find_page.return_value = ([], 0)
    return requests, notifications


@pytest.fixture
def storage():
    storage = AsyncMock()
    storage.put_object.side_effect = lambda data, name, ctype: f"https://cdn.test/{name}"
    storage.key_from_url = MagicMock(side_effect=lambda url: url.rsplit("/", 1)[-1])
    return storage


@pytest.fixture
def app(
    settings,
    auth_service,
    user_service,
    token_service,
    cookie_service,
    request_repos,
    storage,
) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.db = MagicMock()
        app.state.redis = None
        yield

    app = FastAPI(lifespan=lifespan)
    app.state.settings = settings
    app.state.oauth = None
    app.state.token_service = token_service
    app.state.cookie_service = cookie_service
    app.state.auth_service = auth_service
    app.state.user_service = user_service
    app.state.request_service = RequestService(*request_repos)
    app.state.file_service = FileService(storage, settings.max_upload_size)

    app.add_middleware(RequestLoggingMiddleware)
    register_error_handlers(app)
    app.include_router(auth_router)
    app.include_router(oauth_router)
    app.include_router(user_router)
    app.include_router(request_router)
    app.include_router(upload_router)
    return app


@pytest.fixture
def client(app):
    with TestClient(app) as client:
        yield client

