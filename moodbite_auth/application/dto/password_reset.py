from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ForgotPasswordInput:
    email: str


@dataclass(frozen=True)
class VerifyOtpInput:
    email: str
    otp: str


@dataclass(frozen=True)
class ResetPasswordInput:
    email: str
    otp: str
    new_password: str
