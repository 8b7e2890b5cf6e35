from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status

from garage_auth.core.config import Settings
from garage_auth.core.rate_limiter import rate_limit_ip
from garage_auth.domain.credentials import Credential
from garage_auth.routers.schemas import (
    AmendSignupBody,
    ApiResponse,
    ForgotPasswordBody,
    LoginBody,
    ResetPasswordBody,
    SignupBody,
    VerifyBody,
)
from garage_auth.services.auth_service import AuthService
from garage_auth.services.session_service import (
    clear_session_cookie,
    current_user_email,
    delete_session,
    issue_session,
    session_token,
    set_session_cookie,
)

router = APIRouter(prefix="/api/auth", tags=["auth"])


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def _public_user(credential: Credential) -> dict:
    return {
        "email": credential.email,
        "name": credential.name,
        "last_name": credential.last_name,
        "phone": credential.phone,
        "address": credential.address,
        "registered_at": credential.registered_at.isoformat() if credential.registered_at else None,
    }


@router.post("/login", response_model=ApiResponse)
def login(
    body: LoginBody,
    request: Request,
    response: Response,
    service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_app_settings),
):
    rate_limit_ip(request, "auth:login", limit=10, window_seconds=60)
    credential = service.login(body.email, body.password)
    token = issue_session(credential.email, settings)
    set_session_cookie(response, token, settings)
    return ApiResponse(message="Login successful", data={"token": token, "user": _public_user(credential)})


@router.post("/signup/request", response_model=ApiResponse)
def request_signup(body: SignupBody, request: Request, service: AuthService = Depends(get_auth_service)):
    rate_limit_ip(request, "auth:signup", limit=5, window_seconds=300)
    service.request_signup(body.to_request())
    return ApiResponse(message="Request sent to the administrator")


@router.put("/signup/pending", response_model=ApiResponse)
def amend_signup(body: AmendSignupBody, service: AuthService = Depends(get_auth_service)):
    service.amend_signup(body.to_request(), body.code)
    return ApiResponse(message="Pending request updated")


@router.post("/signup/verify", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
def verify_signup(body: VerifyBody, service: AuthService = Depends(get_auth_service)):
    credential = service.verify_signup(body.email, body.code)
    return ApiResponse(message="User created", data=_public_user(credential))


@router.post("/forgot-password", response_model=ApiResponse)
def forgot_password(body: ForgotPasswordBody, request: Request, service: AuthService = Depends(get_auth_service)):
    rate_limit_ip(request, "auth:forgot", limit=5, window_seconds=300)
    service.request_password_reset(body.email)
    return ApiResponse(message="Code sent by email")


@router.post("/reset-password", response_model=ApiResponse)
def reset_password(body: ResetPasswordBody, service: AuthService = Depends(get_auth_service)):
    service.reset_password(body.email, body.code, body.new_password)
    return ApiResponse(message="Password updated")


@router.post("/logout", response_model=ApiResponse)
def logout(request: Request, response: Response):
    token = session_token(request)
    if token:
        delete_session(token)
    clear_session_cookie(response)
    return ApiResponse(message="Logged out")


@router.get("/me", response_model=ApiResponse)
def me(request: Request, service: AuthService = Depends(get_auth_service)):
    email = current_user_email(request)
    credential = service.store.find(email) if email else None
    if credential is None:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Not authenticated")
    return ApiResponse(message="ok", data=_public_user(credential))
