from __future__ import annotations

from moodbite_auth.application.dto.auth import AuthResult
from moodbite_auth.application.dto.password_reset import (
    ForgotPasswordInput,
    ResetPasswordInput,
    VerifyOtpInput,
)
from moodbite_auth.application.ports.session_client_port import SessionClientPort

from .auth_common import MIN_PASSWORD_LENGTH, normalize_email


class PasswordResetUseCase:
    """OTP-based password reset for one role. Never touches the session."""

    def __init__(self, *, client: SessionClientPort):
        self._client = client

    async def request_otp(self, command: ForgotPasswordInput) -> AuthResult[None]:
        email = normalize_email(command.email)
        if not email:
            raise ValueError("email is required.")
        return await self._client.forgot_password(email=email)

    async def verify_otp(self, command: VerifyOtpInput) -> AuthResult[None]:
        email = normalize_email(command.email)
        otp = command.otp.strip()
        if not email or not otp:
            raise ValueError("email and otp are required.")
        return await self._client.verify_otp(email=email, otp=otp)

    async def reset_password(self, command: ResetPasswordInput) -> AuthResult[None]:
        email = normalize_email(command.email)
        otp = command.otp.strip()
        if not email or not otp or not command.new_password:
            raise ValueError("email, otp and new password are required.")
        if len(command.new_password) < MIN_PASSWORD_LENGTH:
            raise ValueError(f"password must have at least {MIN_PASSWORD_LENGTH} characters.")
        return await self._client.reset_password(
            email=email,
            otp=otp,
            new_password=command.new_password,
        )
