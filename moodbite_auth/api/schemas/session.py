from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=1, max_length=256)
    otp: str | None = Field(default=None, max_length=12)


class SignupRequest(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str = Field(..., min_length=1, max_length=120)
    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=6, max_length=256)


class RegisterRequest(BaseModel):
    model_config = ConfigDict(extra="allow")


class ForgotPasswordRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=255)


class VerifyOtpRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=255)
    otp: str = Field(..., min_length=1, max_length=12)


class ResetPasswordRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=255)
    otp: str = Field(..., min_length=1, max_length=12)
    new_password: str = Field(..., min_length=6, max_length=256, alias="newPassword")

    model_config = ConfigDict(populate_by_name=True)


class SessionStateResponse(BaseModel):
    role: str
    phase: str
    logged_in: bool
    identity: dict[str, Any] | None = None
    cached_identity: dict[str, Any] | None = None


class AuthResponse(BaseModel):
    success: bool = True
    message: str | None = None
    identity: dict[str, Any] | None = None
    redirect_to: str | None = None


class MessageResponse(BaseModel):
    success: bool = True
    message: str | None = None
    data: dict[str, Any] | None = None


class LogoutResponse(BaseModel):
    ok: bool


class PortalViewResponse(BaseModel):
    role: str
    view: str
    identity: dict[str, Any]
