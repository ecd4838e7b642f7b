from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, Literal, TypeVar

from moodbite_auth.domain.entities.session import Identity


T = TypeVar("T")

AuthErrorKind = Literal[
    "transport",
    "rejected",
    "challenge",
    "pending_approval",
    "malformed",
    "unsupported",
    "session_expired",
]

OTP_REQUIRED = "otp_required"


@dataclass(frozen=True)
class AuthResult(Generic[T]):
    """Uniform outcome of a session call.

    Failures never raise; they carry a human-readable ``message`` and an
    ``error_kind``. Admin logins may fail with ``error_kind="challenge"`` and a
    machine-readable ``challenge`` code such as ``otp_required``.
    """

    success: bool
    value: T | None = None
    message: str | None = None
    error_kind: AuthErrorKind | None = None
    challenge: str | None = None
    status_code: int | None = None
    data: dict[str, Any] | None = None

    @classmethod
    def ok(cls, value: T, *, message: str | None = None) -> AuthResult[T]:
        return cls(success=True, value=value, message=message)

    @classmethod
    def fail(
        cls,
        message: str,
        *,
        error_kind: AuthErrorKind,
        challenge: str | None = None,
        status_code: int | None = None,
        data: dict[str, Any] | None = None,
    ) -> AuthResult[T]:
        return cls(
            success=False,
            message=message,
            error_kind=error_kind,
            challenge=challenge,
            status_code=status_code,
            data=data,
        )


@dataclass(frozen=True)
class LoginInput:
    email: str
    password: str
    otp: str | None = None

    def to_payload(self) -> dict[str, str]:
        payload = {"email": self.email, "password": self.password}
        if self.otp:
            payload["otp"] = self.otp
        return payload


@dataclass(frozen=True)
class SignupInput:
    name: str
    email: str
    password: str
    extra: dict[str, Any] = field(default_factory=dict)

    def to_payload(self) -> dict[str, Any]:
        return {**self.extra, "name": self.name, "email": self.email, "password": self.password}


@dataclass(frozen=True)
class AuthPayload:
    token: str
    identity: Identity
