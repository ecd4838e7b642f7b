from __future__ import annotations

import httpx
from fastapi import Depends, HTTPException, Request

from moodbite_auth.application.use_cases.access_guard import AccessOutcome, decide_access
from moodbite_auth.application.use_cases.password_reset import PasswordResetUseCase
from moodbite_auth.application.use_cases.session_manager import SessionManager
from moodbite_auth.application.use_cases.session_registry import SessionRegistry
from moodbite_auth.application.ports.credential_store_port import CredentialStorePort
from moodbite_auth.core.config import Settings
from moodbite_auth.core.db import get_engine
from moodbite_auth.domain.entities.role import ROLE_CONFIGS
from moodbite_auth.domain.entities.session import ROLES, Identity
from moodbite_auth.domain.exceptions import UnknownRoleError
from moodbite_auth.infrastructure.clients.session_api_client import HttpSessionClient
from moodbite_auth.infrastructure.db.repositories.credential_store_repository import SqlCredentialStore


def build_credential_store(settings: Settings) -> SqlCredentialStore:
    store = SqlCredentialStore(get_engine(settings.credential_store_dsn))
    store.ensure_schema()
    return store


def build_session_registry(
    settings: Settings,
    *,
    credential_store: CredentialStorePort | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> SessionRegistry:
    store = credential_store if credential_store is not None else build_credential_store(settings)
    owns_http_client = http_client is None
    if http_client is None:
        http_client = httpx.AsyncClient(
            base_url=settings.api_base_url.rstrip("/"),
            timeout=settings.api_timeout_seconds,
        )

    managers = {}
    password_resets = {}
    for role in ROLES:
        client = HttpSessionClient(role=ROLE_CONFIGS[role], http_client=http_client)
        managers[role] = SessionManager(
            role=ROLE_CONFIGS[role],
            client=client,
            credential_store=store,
            purge_on_transport_error=settings.purge_on_transport_error,
        )
        password_resets[role] = PasswordResetUseCase(client=client)

    async def _close() -> None:
        if owns_http_client:
            await http_client.aclose()

    return SessionRegistry(managers=managers, password_resets=password_resets, on_close=_close)


def get_session_registry(request: Request) -> SessionRegistry:
    registry = getattr(request.app.state, "session_registry", None)
    if registry is None:
        raise HTTPException(status_code=500, detail="Session registry is not initialized.")
    return registry


def get_session_manager(
    role: str,
    registry: SessionRegistry = Depends(get_session_registry),
) -> SessionManager:
    try:
        return registry.get(role)
    except UnknownRoleError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


def get_password_reset_use_case(
    role: str,
    registry: SessionRegistry = Depends(get_session_registry),
) -> PasswordResetUseCase:
    try:
        return registry.password_reset(role)
    except UnknownRoleError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


def require_session(role: str):
    def _dependency(registry: SessionRegistry = Depends(get_session_registry)) -> Identity:
        manager = registry.get(role)
        decision = decide_access(manager.state, role=manager.role)
        if decision.outcome is AccessOutcome.LOADING:
            raise HTTPException(
                status_code=503,
                detail="Session restore in progress.",
                headers={"Retry-After": "1"},
            )
        if decision.outcome is AccessOutcome.REDIRECT:
            raise HTTPException(
                status_code=303,
                detail=f"Login required for role '{role}'.",
                headers={"Location": decision.redirect_to or manager.role.login_route},
            )
        return decision.identity or {}

    return _dependency
