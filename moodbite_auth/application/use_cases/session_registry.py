from __future__ import annotations

import asyncio
from typing import Awaitable, Callable

from moodbite_auth.application.use_cases.password_reset import PasswordResetUseCase
from moodbite_auth.application.use_cases.session_manager import SessionManager
from moodbite_auth.domain.entities.session import ROLES, Role, SessionState
from moodbite_auth.domain.exceptions import UnknownRoleError


class SessionRegistry:
    """Holds exactly one ``SessionManager`` per role for the application lifetime."""

    def __init__(
        self,
        *,
        managers: dict[Role, SessionManager],
        password_resets: dict[Role, PasswordResetUseCase],
        on_close: Callable[[], Awaitable[None]] | None = None,
    ):
        missing = [role for role in ROLES if role not in managers or role not in password_resets]
        if missing:
            raise ValueError(f"Missing session wiring for roles: {', '.join(missing)}")
        self._managers = dict(managers)
        self._password_resets = dict(password_resets)
        self._on_close = on_close

    def get(self, role: str) -> SessionManager:
        manager = self._managers.get(role)
        if manager is None:
            raise UnknownRoleError(f"Unknown role: {role}")
        return manager

    def password_reset(self, role: str) -> PasswordResetUseCase:
        use_case = self._password_resets.get(role)
        if use_case is None:
            raise UnknownRoleError(f"Unknown role: {role}")
        return use_case

    @property
    def user(self) -> SessionManager:
        return self._managers["user"]

    @property
    def admin(self) -> SessionManager:
        return self._managers["admin"]

    @property
    def restaurant(self) -> SessionManager:
        return self._managers["restaurant"]

    @property
    def delivery(self) -> SessionManager:
        return self._managers["delivery"]

    def start(self) -> list[asyncio.Task]:
        return [manager.start() for manager in self._managers.values()]

    async def wait_until_restored(self) -> dict[Role, SessionState]:
        states = await asyncio.gather(*(manager.wait_until_restored() for manager in self._managers.values()))
        return dict(zip(self._managers.keys(), states))

    async def aclose(self) -> None:
        await asyncio.gather(*(manager.stop() for manager in self._managers.values()))
        if self._on_close is not None:
            await self._on_close()
