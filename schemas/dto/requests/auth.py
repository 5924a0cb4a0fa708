"""
Request DTOs for authentication endpoints.

RegisterRequest                   POST /auth/register
VerifyOtpRequest                  POST /auth/email/verify
ResendVerificationRequest         POST /auth/email/resend
LoginRequest                      POST /auth/login
ChangePasswordRequest             POST /auth/password/reset
ForgotPasswordRequest             POST /auth/forget/password
ResetForgottenPasswordRequest     POST /auth/reset/forgoten/password
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class _EmailBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: EmailStr

    @field_validator("email")
    @classmethod
    def _normalise_email(cls, v: str) -> str:
        return v.strip().lower()


class RegisterRequest(_EmailBody):
    """Request body for POST /auth/register."""

    username: str = Field(min_length=1, max_length=64)
    password: str = Field(min_length=7, max_length=128)


class VerifyOtpRequest(_EmailBody):
    """Request body for POST /auth/email/verify.

    ``otp_code`` is the 4-digit code mailed after the verification link was
    opened.
    """

    otp_code: str = Field(alias="otpCode", pattern=r"^\d{4}$")
    remember_me: bool = Field(default=False, alias="rememberMe")


class ResendVerificationRequest(_EmailBody):
    """Request body for POST /auth/email/resend."""


class LoginRequest(_EmailBody):
    """Request body for POST /auth/login."""

    password: str = Field(min_length=1)
    remember_me: bool = Field(default=False, alias="rememberMe")


class ChangePasswordRequest(BaseModel):
    """Request body for POST /auth/password/reset (authenticated)."""

    model_config = ConfigDict(populate_by_name=True)

    old_password: str = Field(alias="oldPassword", min_length=1)
    password: str = Field(min_length=8, max_length=50)
    confirm_password: str = Field(alias="confirmPassword", min_length=8, max_length=50)


class ForgotPasswordRequest(_EmailBody):
    """Request body for POST /auth/forget/password."""


class ResetForgottenPasswordRequest(BaseModel):
    """Request body for POST /auth/reset/forgoten/password."""

    model_config = ConfigDict(populate_by_name=True)

    verification_code: str = Field(alias="verificationCode", min_length=1)
    password: str = Field(min_length=8, max_length=50)
