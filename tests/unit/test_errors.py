"""Unit tests for the AppError hierarchy and the global exception handlers."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from pydantic import BaseModel

from errors import (
    AppError,
    AuthenticationError,
    CodeExpiredError,
    CodeInvalidError,
    ConflictError,
    EmailDeliveryError,
    EmailNotVerifiedError,
    ForbiddenError,
    InvalidCredentialsError,
    NotFoundError,
    RateLimitError,
    TokenExpiredError,
    TokenInvalidError,
    TokenMissingError,
    ValidationError,
    register_error_handlers,
)


@pytest.mark.parametrize(
    "cls, status, code",
    [
        (ValidationError, 400, "validation_error"),
        (AuthenticationError, 401, "authentication_error"),
        (InvalidCredentialsError, 401, "invalid_credentials"),
        (TokenMissingError, 401, "token_missing"),
        (TokenExpiredError, 401, "token_expired"),
        (TokenInvalidError, 401, "token_invalid"),
        (ForbiddenError, 403, "forbidden"),
        (EmailNotVerifiedError, 403, "email_not_verified"),
        (NotFoundError, 404, "not_found"),
        (CodeInvalidError, 400, "code_invalid"),
        (CodeExpiredError, 410, "code_expired"),
        (ConflictError, 409, "conflict"),
        (RateLimitError, 429, "rate_limit_exceeded"),
        (EmailDeliveryError, 502, "email_delivery_failed"),
    ],
)
def test_status_and_code(cls, status, code):
    err = cls("boom")
    assert isinstance(err, AppError)
    assert err.status_code == status
    assert err.error_code == code


class TestToDict:
    def test_minimal(self):
        assert NotFoundError("User not found").to_dict() == {
            "error": "User not found",
            "code": "not_found",
        }

    def test_field_and_details(self):
        d = CodeInvalidError(
            "Invalid verification code", field="otpCode", details={"attempts_remaining": 2}
        ).to_dict()
        assert d["field"] == "otpCode"
        assert d["details"] == {"attempts_remaining": 2}


# ── Handlers ──────────────────────────────────────────────────────────────────


class _Body(BaseModel):
    email: str


def _app() -> FastAPI:
    app = FastAPI()
    register_error_handlers(app)

    @app.get("/conflict")
    async def conflict():
        raise ConflictError("User with that email already exists", field="email")

    @app.post("/validate")
    async def validate(body: _Body):
        return {"ok": True}

    @app.get("/crash")
    async def crash():
        raise RuntimeError("unexpected")

    return app


class TestHandlers:
    def test_app_error_serialised(self):
        with TestClient(_app()) as client:
            resp = client.get("/conflict")
        assert resp.status_code == 409
        assert resp.json() == {
            "error": "User with that email already exists",
            "code": "conflict",
            "field": "email",
        }

    def test_request_validation_maps_to_400(self):
        with TestClient(_app()) as client:
            resp = client.post("/validate", json={})
        assert resp.status_code == 400
        body = resp.json()
        assert body["code"] == "validation_error"
        assert body["field"] == "email"

    def test_unhandled_exception_is_500(self):
        with TestClient(_app(), raise_server_exceptions=False) as client:
            resp = client.get("/crash")
        assert resp.status_code == 500
        assert resp.json()["code"] == "internal_error"
