"""
FastAPI application factory.
create_app() is the single entry point for building the app.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import sentry_sdk
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pymongo.asynchronous.mongo_client import AsyncMongoClient
from starlette.middleware.sessions import SessionMiddleware

from config import AppSettings
from errors import register_error_handlers
from infrastructure.cache.redis_client import create_redis_client
from infrastructure.cache.user_lease import UserLease
from infrastructure.email.zeptomail import ZeptoMailProvider
from infrastructure.http_client import HttpClient
from infrastructure.oauth_clients import init_oauth
from infrastructure.storage.s3 import S3FileStorage
from middleware.request_logging import RequestLoggingMiddleware
from repositories.indexes import ensure_indexes
from repositories.refresh_token_repository import RefreshTokenRepository
from repositories.request_repository import NotificationRepository, RequestRepository
from repositories.user_repository import UserRepository
from repositories.verification_repository import (
    OtpCodeRepository,
    VerificationCodeRepository,
)
from routes.auth_routes import router as auth_router
from routes.health_routes import router as health_router
from routes.oauth_routes import router as oauth_router
from routes.request_routes import router as request_router
from routes.upload_routes import router as upload_router
from routes.user_routes import router as user_router
from services.auth_service import AuthService
from services.cookie_service import CookieService
from services.file_service import FileService
from services.request_service import RequestService
from services.token_service import TokenService
from services.user_service import UserService
from services.verification_service import VerificationService
from shared.logging import get_logger, setup_logging

log = get_logger(__name__)


def build_services(app: FastAPI, settings: AppSettings, db, redis_client, http_client) -> None:
    """Construct every repository and service once and park them on app.state."""
    users = UserRepository(db)
    refresh_tokens = RefreshTokenRepository(db)

    verification = VerificationService(
        VerificationCodeRepository(db),
        OtpCodeRepository(db),
        settings.verification,
        UserLease(redis_client, settings.redis.lease_ttl_ms),
    )
    tokens = TokenService(settings.jwt)
    email_sender = ZeptoMailProvider(
        settings.email, http_client, app_name=settings.email.zepto_from_name
    )
    storage = S3FileStorage(settings.storage) if settings.storage.is_configured else None

    app.state.token_service = tokens
    app.state.cookie_service = CookieService(settings.jwt)
    app.state.auth_service = AuthService(
        users, refresh_tokens, verification, tokens, email_sender, settings
    )
    app.state.user_service = UserService(users, refresh_tokens)
    app.state.request_service = RequestService(
        RequestRepository(db), NotificationRepository(db)
    )
    app.state.file_service = FileService(storage, settings.max_upload_size)


def create_app(settings: Optional[AppSettings] = None) -> FastAPI:
    """Create and return a fully configured FastAPI application."""
    if settings is None:
        settings = AppSettings()

    setup_logging(settings.logging.log_level, settings.logging.log_format, settings.env)

    # Initialise Sentry before anything else so it captures startup errors
    if settings.sentry.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry.sentry_dsn,
            environment=settings.env,
            send_default_pii=settings.sentry.sentry_send_pii,
            traces_sample_rate=settings.sentry.sentry_traces_sample_rate,
            profiles_sample_rate=settings.sentry.sentry_profile_sample_rate,
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        # ── Startup ──────────────────────────────────────────────────────────
        mongo_client: AsyncMongoClient = AsyncMongoClient(
            settings.db.mongodb_uri, tz_aware=True
        )
        db = mongo_client[settings.db.db_name]
        app.state.mongo_client = mongo_client
        app.state.db = db
        app.state.settings = settings

        # Redis is optional; without it the per-user lease is skipped
        redis_client = await create_redis_client(settings.redis.redis_uri)
        app.state.redis = redis_client

        http_client = HttpClient(timeout=10.0)
        app.state.http_client = http_client

        build_services(app, settings, db, redis_client, http_client)
        await ensure_indexes(db)
        log.info("app_started", env=settings.env, db_name=settings.db.db_name)

        yield

        # ── Shutdown ─────────────────────────────────────────────────────────
        await http_client.aclose()
        await mongo_client.close()
        if redis_client is not None:
            await redis_client.aclose()
        log.info("app_stopped")

    app = FastAPI(
        title=settings.app_name,
        version="1.0.0",
        docs_url=settings.docs_url,
        redoc_url=None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.oauth = init_oauth(settings.oauth)

    app.add_middleware(RequestLoggingMiddleware)
    if app.state.oauth is not None:
        # Authlib keeps the OAuth state parameter in the session
        app.add_middleware(
            SessionMiddleware,
            secret_key=settings.secret_key,
            https_only=settings.is_production,
        )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)
    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(oauth_router)
    app.include_router(user_router)
    app.include_router(request_router)
    app.include_router(upload_router)

    return app
