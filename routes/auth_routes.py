"""
Authentication endpoints.

POST /auth/register                   create an account, mail a verification link
GET  /auth/email/verify/{id}          verification link target, mails an OTP
POST /auth/email/verify               submit the OTP, opens a session
POST /auth/email/resend               mail a fresh verification link
POST /auth/login                      password login
POST /auth/refresh                    rotate the refresh cookie
POST /auth/logout                     revoke the session, clear the cookie
POST /auth/password/reset             change password (bearer)
POST /auth/forget/password            mail a password reset link
POST /auth/reset/forgoten/password    set a new password with a reset code
GET  /auth/me                         current user (bearer)

The refresh token is only ever set as a cookie; bodies carry the access token.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import RedirectResponse

from dependencies import (
    get_auth_service,
    get_cookie_service,
    get_current_user,
    get_current_user_id,
    get_optional_user_id,
)
from schemas.dto.requests.auth import (
    ChangePasswordRequest,
    ForgotPasswordRequest,
    LoginRequest,
    RegisterRequest,
    ResendVerificationRequest,
    ResetForgottenPasswordRequest,
    VerifyOtpRequest,
)
from schemas.dto.responses.auth import AuthResponse, RegisterResponse, UserProfileResponse
from schemas.dto.responses.common import MessageResponse
from schemas.models.user import UserDoc
from services.auth_service import AuthResult, AuthService
from services.cookie_service import CookieService

router = APIRouter(prefix="/auth", tags=["auth"])


def _session_response(
    result: AuthResult, response: Response, cookies: CookieService
) -> AuthResponse:
    cookies.set_refresh_cookie(
        response, result.tokens.refresh_token, result.tokens.remember_me
    )
    return AuthResponse(
        access_token=result.tokens.access_token,
        user=UserProfileResponse.from_user(result.user),
    )


@router.post("/register", status_code=201, response_model=RegisterResponse)
async def register(
    body: RegisterRequest, auth: AuthService = Depends(get_auth_service)
) -> RegisterResponse:
    user = await auth.register(body)
    return RegisterResponse(
        user=UserProfileResponse.from_user(user), verification_sent=True
    )


@router.get("/email/verify/{verification_id}")
async def verify_email_link(
    verification_id: str, auth: AuthService = Depends(get_auth_service)
) -> RedirectResponse:
    user = await auth.first_step_verification(verification_id)
    if user is None:
        return RedirectResponse(auth.client_url("/verify/error"), status_code=303)
    return RedirectResponse(
        auth.client_url("/verify/otp", email=user.email), status_code=303
    )


@router.post("/email/verify", response_model=AuthResponse)
async def verify_email_otp(
    body: VerifyOtpRequest,
    response: Response,
    auth: AuthService = Depends(get_auth_service),
    cookies: CookieService = Depends(get_cookie_service),
) -> AuthResponse:
    result = await auth.second_step_verification(
        body.email, body.otp_code, body.remember_me
    )
    return _session_response(result, response, cookies)


@router.post("/email/resend", response_model=MessageResponse)
async def resend_verification(
    body: ResendVerificationRequest, auth: AuthService = Depends(get_auth_service)
) -> MessageResponse:
    await auth.resend_verification(body.email)
    return MessageResponse(
        success=True, message=f"Verification email sent to {body.email}"
    )


@router.post("/login", response_model=AuthResponse)
async def login(
    body: LoginRequest,
    response: Response,
    auth: AuthService = Depends(get_auth_service),
    cookies: CookieService = Depends(get_cookie_service),
) -> AuthResponse:
    result = await auth.login(body.email, body.password, body.remember_me)
    return _session_response(result, response, cookies)


@router.post("/refresh", response_model=AuthResponse)
async def refresh(
    request: Request,
    response: Response,
    auth: AuthService = Depends(get_auth_service),
    cookies: CookieService = Depends(get_cookie_service),
) -> AuthResponse:
    result = await auth.refresh_user_access_token(cookies.read_refresh_cookie(request))
    return _session_response(result, response, cookies)


@router.post("/logout", response_model=MessageResponse)
async def logout(
    request: Request,
    response: Response,
    user_id: Optional[str] = Depends(get_optional_user_id),
    auth: AuthService = Depends(get_auth_service),
    cookies: CookieService = Depends(get_cookie_service),
) -> MessageResponse:
    await auth.logout(cookies.read_refresh_cookie(request), user_id)
    cookies.clear_refresh_cookie(response)
    return MessageResponse(success=True, message="Logged out")


@router.post("/password/reset", response_model=MessageResponse)
async def change_password(
    body: ChangePasswordRequest,
    response: Response,
    user_id: str = Depends(get_current_user_id),
    auth: AuthService = Depends(get_auth_service),
    cookies: CookieService = Depends(get_cookie_service),
) -> MessageResponse:
    await auth.reset_user_password(
        user_id, body.old_password, body.password, body.confirm_password
    )
    cookies.clear_refresh_cookie(response)
    return MessageResponse(success=True, message="Password updated")


@router.post("/forget/password", response_model=MessageResponse)
async def forgot_password(
    body: ForgotPasswordRequest, auth: AuthService = Depends(get_auth_service)
) -> MessageResponse:
    await auth.send_password_reset_url(body.email)
    return MessageResponse(
        success=True, message=f"Password reset link sent to {body.email}"
    )


@router.post("/reset/forgoten/password", response_model=MessageResponse)
async def reset_forgotten_password(
    body: ResetForgottenPasswordRequest,
    response: Response,
    auth: AuthService = Depends(get_auth_service),
    cookies: CookieService = Depends(get_cookie_service),
) -> MessageResponse:
    await auth.reset_forgotten_password(body.verification_code, body.password)
    cookies.clear_refresh_cookie(response)
    return MessageResponse(success=True, message="Password has been reset")


@router.get("/me", response_model=UserProfileResponse)
async def me(user: UserDoc = Depends(get_current_user)) -> UserProfileResponse:
    return UserProfileResponse.from_user(user)
