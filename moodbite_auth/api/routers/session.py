from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException

from moodbite_auth.api.deps import get_password_reset_use_case, get_session_manager
from moodbite_auth.api.schemas.session import (
    AuthResponse,
    ForgotPasswordRequest,
    LoginRequest,
    LogoutResponse,
    MessageResponse,
    RegisterRequest,
    ResetPasswordRequest,
    SessionStateResponse,
    SignupRequest,
    VerifyOtpRequest,
)
from moodbite_auth.application.dto.auth import AuthResult
from moodbite_auth.application.dto.password_reset import (
    ForgotPasswordInput,
    ResetPasswordInput,
    VerifyOtpInput,
)
from moodbite_auth.application.use_cases.auth_common import build_login_input, build_signup_input
from moodbite_auth.application.use_cases.password_reset import PasswordResetUseCase
from moodbite_auth.application.use_cases.session_manager import SessionManager


router = APIRouter(prefix="/v1/session/{role}")

_STATUS_BY_ERROR_KIND = {
    "challenge": 401,
    "rejected": 401,
    "session_expired": 401,
    "pending_approval": 403,
    "unsupported": 404,
    "transport": 502,
    "malformed": 502,
}


def _raise_for_failure(result: AuthResult) -> None:
    if result.success:
        return
    status_code = _STATUS_BY_ERROR_KIND.get(result.error_kind or "rejected", 400)
    if result.error_kind == "challenge":
        raise HTTPException(
            status_code=status_code,
            detail={"message": result.message, "challenge": result.challenge, "data": result.data},
        )
    raise HTTPException(status_code=status_code, detail=result.message)


@router.get("", response_model=SessionStateResponse)
def get_session_state(manager: SessionManager = Depends(get_session_manager)):
    state = manager.state
    return SessionStateResponse(
        role=manager.role.role,
        phase=state.phase.value,
        logged_in=state.logged_in,
        identity=state.identity,
        cached_identity=state.cached_identity,
    )


@router.post("/login", response_model=AuthResponse)
async def login(
    req: LoginRequest,
    manager: SessionManager = Depends(get_session_manager),
):
    try:
        credentials = build_login_input(email=req.email, password=req.password, otp=req.otp)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    result = await manager.login(credentials)
    _raise_for_failure(result)
    return AuthResponse(message=result.message, identity=result.value, redirect_to=manager.role.home_route)


@router.post("/signup", response_model=AuthResponse)
async def signup(
    req: SignupRequest,
    manager: SessionManager = Depends(get_session_manager),
):
    try:
        payload = build_signup_input(
            name=req.name,
            email=req.email,
            password=req.password,
            extra=req.model_extra,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    result = await manager.signup(payload)
    _raise_for_failure(result)
    return AuthResponse(message=result.message, identity=result.value, redirect_to=manager.role.home_route)


@router.post("/logout", response_model=LogoutResponse)
async def logout(manager: SessionManager = Depends(get_session_manager)):
    await manager.logout()
    return LogoutResponse(ok=True)


@router.post("/refresh", response_model=AuthResponse)
async def refresh(manager: SessionManager = Depends(get_session_manager)):
    result = await manager.refresh_identity()
    _raise_for_failure(result)
    return AuthResponse(message=result.message, identity=result.value)


@router.put("/identity", response_model=AuthResponse)
async def update_identity(
    identity: dict[str, Any] = Body(...),
    manager: SessionManager = Depends(get_session_manager),
):
    if not identity:
        raise HTTPException(status_code=400, detail="identity payload is required.")
    result = manager.update_identity(identity)
    _raise_for_failure(result)
    return AuthResponse(message=result.message, identity=result.value)


@router.post("/register", response_model=MessageResponse)
async def register(
    req: RegisterRequest,
    manager: SessionManager = Depends(get_session_manager),
):
    payload = dict(req.model_extra or {})
    if not payload:
        raise HTTPException(status_code=400, detail="registration payload is required.")
    result = await manager.register(payload)
    _raise_for_failure(result)
    return MessageResponse(
        message=result.message or "Registration successful! Please wait for admin approval.",
        data=result.value,
    )


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(
    req: ForgotPasswordRequest,
    use_case: PasswordResetUseCase = Depends(get_password_reset_use_case),
):
    try:
        result = await use_case.request_otp(ForgotPasswordInput(email=req.email))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    _raise_for_failure(result)
    return MessageResponse(message=result.message)


@router.post("/verify-otp", response_model=MessageResponse)
async def verify_otp(
    req: VerifyOtpRequest,
    use_case: PasswordResetUseCase = Depends(get_password_reset_use_case),
):
    try:
        result = await use_case.verify_otp(VerifyOtpInput(email=req.email, otp=req.otp))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    _raise_for_failure(result)
    return MessageResponse(message=result.message)


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(
    req: ResetPasswordRequest,
    use_case: PasswordResetUseCase = Depends(get_password_reset_use_case),
):
    try:
        result = await use_case.reset_password(
            ResetPasswordInput(email=req.email, otp=req.otp, new_password=req.new_password)
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    _raise_for_failure(result)
    return MessageResponse(message=result.message)
