from __future__ import annotations

from typing import Any, Protocol

from moodbite_auth.application.dto.auth import AuthPayload, AuthResult, LoginInput, SignupInput
from moodbite_auth.domain.entities.role import RoleConfig
from moodbite_auth.domain.entities.session import Identity


class SessionClientPort(Protocol):
    role: RoleConfig

    async def login(self, credentials: LoginInput) -> AuthResult[AuthPayload]:
        ...

    async def signup(self, payload: SignupInput) -> AuthResult[AuthPayload]:
        ...

    async def get_profile(self, *, token: str) -> AuthResult[Identity]:
        ...

    async def logout(self, *, token: str) -> AuthResult[None]:
        ...

    async def register(self, payload: dict[str, Any]) -> AuthResult[dict[str, Any]]:
        ...

    async def forgot_password(self, *, email: str) -> AuthResult[None]:
        ...

    async def verify_otp(self, *, email: str, otp: str) -> AuthResult[None]:
        ...

    async def reset_password(self, *, email: str, otp: str, new_password: str) -> AuthResult[None]:
        ...
