from __future__ import annotations

from moodbite_auth.application.dto.auth import LoginInput, SignupInput


MIN_PASSWORD_LENGTH = 6


def normalize_email(email: str) -> str:
    return email.strip().lower()


def build_login_input(*, email: str, password: str, otp: str | None = None) -> LoginInput:
    email = normalize_email(email)
    if not email:
        raise ValueError("email is required.")
    if not password:
        raise ValueError("password is required.")
    otp = otp.strip() if otp else None
    return LoginInput(email=email, password=password, otp=otp or None)


def build_signup_input(*, name: str, email: str, password: str, extra: dict | None = None) -> SignupInput:
    name = name.strip()
    email = normalize_email(email)
    if not name:
        raise ValueError("name is required.")
    if not email:
        raise ValueError("email is required.")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValueError(f"password must have at least {MIN_PASSWORD_LENGTH} characters.")
    return SignupInput(name=name, email=email, password=password, extra=dict(extra or {}))
