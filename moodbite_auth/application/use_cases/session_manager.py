from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Any

from moodbite_auth.application.dto.auth import AuthPayload, AuthResult, LoginInput, SignupInput
from moodbite_auth.application.ports.credential_store_port import CredentialStorePort
from moodbite_auth.application.ports.session_client_port import SessionClientPort
from moodbite_auth.domain.entities.role import RoleConfig
from moodbite_auth.domain.entities.session import CredentialRecord, Identity, SessionPhase, SessionState
from moodbite_auth.domain.exceptions import CredentialStoreError


logger = logging.getLogger(__name__)

SUPERSEDED_MESSAGE = "Superseded by a newer session operation."


class SessionManager:
    """Owns the session of a single role.

    The manager is the only writer of its role's ``SessionState`` and
    credential record. Every operation draws a ticket when it starts and may
    only mutate the session while no later operation has already done so;
    a slow response that loses that race is dropped instead of applied.
    """

    def __init__(
        self,
        *,
        role: RoleConfig,
        client: SessionClientPort,
        credential_store: CredentialStorePort,
        purge_on_transport_error: bool = True,
    ):
        self._role = role
        self._client = client
        self._store = credential_store
        self._purge_on_transport_error = purge_on_transport_error
        self._state = SessionState.restoring()
        self._issued = 0
        self._committed = 0
        self._restored = asyncio.Event()
        self._restore_task: asyncio.Task | None = None

    @property
    def role(self) -> RoleConfig:
        return self._role

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def phase(self) -> SessionPhase:
        return self._state.phase

    @property
    def identity(self) -> Identity | None:
        return self._state.identity

    def start(self) -> asyncio.Task:
        if self._restore_task is None:
            self._restore_task = asyncio.create_task(
                self.restore(),
                name=f"session-restore-{self._role.role}",
            )
        return self._restore_task

    async def wait_until_restored(self) -> SessionState:
        await self._restored.wait()
        return self._state

    async def stop(self) -> None:
        task = self._restore_task
        if task is None:
            return
        if not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
            return
        if not task.cancelled() and task.exception() is not None:
            logger.warning(
                "session_manager: restore_task_failed role=%s error=%s",
                self._role.role,
                task.exception(),
            )

    async def restore(self) -> SessionState:
        ticket = self._next_ticket()
        try:
            return await self._restore(ticket)
        except CredentialStoreError as exc:
            logger.error("session_manager: restore_store_error role=%s error=%s", self._role.role, exc)
            if self._claim(ticket):
                self._apply(SessionState.unauthenticated())
            raise

    async def _restore(self, ticket: int) -> SessionState:
        record = self._store.read(role=self._role)
        self._claim(ticket)
        if record is None:
            logger.info("session_manager: restore_no_session role=%s", self._role.role)
            self._apply(SessionState.unauthenticated())
            return self._state

        self._apply(SessionState.restoring(cached_identity=record.identity_snapshot))

        result = await self._call(self._client.get_profile(token=record.token), action="restore")

        if not self._claim(ticket):
            logger.info("session_manager: restore_superseded role=%s", self._role.role)
            return self._state

        if result.success and result.value is not None:
            self._store.write(
                role=self._role,
                record=CredentialRecord(token=record.token, identity_snapshot=result.value),
            )
            logger.info("session_manager: restore_authenticated role=%s", self._role.role)
            self._apply(SessionState.authenticated(result.value))
            return self._state

        if result.error_kind == "transport" and not self._purge_on_transport_error:
            logger.warning(
                "session_manager: restore_unverified_kept role=%s message=%s",
                self._role.role,
                result.message,
            )
        else:
            logger.info(
                "session_manager: restore_invalid_token role=%s kind=%s",
                self._role.role,
                result.error_kind,
            )
            self._store.clear(role=self._role)
        self._apply(SessionState.unauthenticated())
        return self._state

    async def login(self, credentials: LoginInput) -> AuthResult[Identity]:
        ticket = self._next_ticket()
        result = await self._call(self._client.login(credentials), action="login")
        if not result.success:
            logger.info(
                "session_manager: login_failed role=%s kind=%s challenge=%s",
                self._role.role,
                result.error_kind,
                result.challenge,
            )
            return result
        return await self._establish(ticket, result.value, message=result.message)

    async def signup(self, payload: SignupInput) -> AuthResult[Identity]:
        if not self._role.supports_signup:
            return AuthResult.fail(
                f"Signup is not available for role '{self._role.role}'.",
                error_kind="unsupported",
            )
        ticket = self._next_ticket()
        result = await self._call(self._client.signup(payload), action="signup")
        if not result.success:
            logger.info("session_manager: signup_failed role=%s kind=%s", self._role.role, result.error_kind)
            return result
        return await self._establish(ticket, result.value, message=result.message)

    async def logout(self) -> AuthResult[None]:
        self._claim(self._next_ticket())
        record = self._store.read(role=self._role)
        self._store.clear(role=self._role)
        self._apply(SessionState.unauthenticated())
        logger.info("session_manager: logged_out role=%s", self._role.role)

        if record is None:
            return AuthResult.ok(None)

        try:
            remote = await self._client.logout(token=record.token)
        except Exception as exc:  # noqa: BLE001
            logger.info("session_manager: remote_logout_error role=%s error=%s", self._role.role, exc)
        else:
            if not remote.success:
                logger.info(
                    "session_manager: remote_logout_failed role=%s message=%s",
                    self._role.role,
                    remote.message,
                )
        return AuthResult.ok(None)

    async def refresh_identity(self) -> AuthResult[Identity]:
        record = self._store.read(role=self._role)
        if self._state.phase is not SessionPhase.AUTHENTICATED or record is None:
            return AuthResult.fail("Not logged in.", error_kind="rejected")

        ticket = self._next_ticket()
        result = await self._call(self._client.get_profile(token=record.token), action="refresh")

        if result.success and result.value is not None:
            if not self._claim(ticket):
                return AuthResult.fail(SUPERSEDED_MESSAGE, error_kind="rejected")
            self._store.write(
                role=self._role,
                record=CredentialRecord(token=record.token, identity_snapshot=result.value),
            )
            self._apply(SessionState.authenticated(result.value))
            return result

        if result.status_code == 401:
            if not self._claim(ticket):
                return AuthResult.fail(SUPERSEDED_MESSAGE, error_kind="rejected")
            logger.info("session_manager: session_expired role=%s", self._role.role)
            self._store.clear(role=self._role)
            self._apply(SessionState.unauthenticated())
            return AuthResult.fail(
                "Session expired. Please login again.",
                error_kind="session_expired",
                status_code=401,
            )
        return result

    def update_identity(self, identity: Identity) -> AuthResult[Identity]:
        record = self._store.read(role=self._role)
        if self._state.phase is not SessionPhase.AUTHENTICATED or record is None:
            return AuthResult.fail("Not logged in.", error_kind="rejected")
        self._claim(self._next_ticket())
        self._store.write(
            role=self._role,
            record=CredentialRecord(token=record.token, identity_snapshot=identity),
        )
        self._apply(SessionState.authenticated(identity))
        return AuthResult.ok(identity)

    async def register(self, payload: dict[str, Any]) -> AuthResult[dict[str, Any]]:
        if not self._role.supports_register:
            return AuthResult.fail(
                f"Registration is not available for role '{self._role.role}'.",
                error_kind="unsupported",
            )
        return await self._call(self._client.register(payload), action="registration")

    async def _establish(
        self,
        ticket: int,
        payload: AuthPayload | None,
        *,
        message: str | None,
    ) -> AuthResult[Identity]:
        if payload is None:
            return AuthResult.fail("Login response is missing token or profile.", error_kind="malformed")
        if not self._claim(ticket):
            logger.info("session_manager: login_superseded role=%s", self._role.role)
            return AuthResult.fail(SUPERSEDED_MESSAGE, error_kind="rejected")

        self._store.write(
            role=self._role,
            record=CredentialRecord(token=payload.token, identity_snapshot=payload.identity),
        )

        identity = payload.identity
        profile = await self._call(self._client.get_profile(token=payload.token), action="profile")
        if profile.success and profile.value is not None:
            identity = profile.value
        else:
            logger.info(
                "session_manager: profile_enrichment_failed role=%s message=%s",
                self._role.role,
                profile.message,
            )

        if not self._claim(ticket):
            logger.info("session_manager: login_superseded role=%s", self._role.role)
            return AuthResult.fail(SUPERSEDED_MESSAGE, error_kind="rejected")

        if identity is not payload.identity:
            self._store.write(
                role=self._role,
                record=CredentialRecord(token=payload.token, identity_snapshot=identity),
            )
        self._apply(SessionState.authenticated(identity))
        logger.info("session_manager: authenticated role=%s", self._role.role)
        return AuthResult.ok(identity, message=message)

    async def _call(self, awaitable, *, action: str) -> AuthResult:
        try:
            return await awaitable
        except CredentialStoreError:
            raise
        except Exception as exc:  # noqa: BLE001
            logger.warning("session_manager: %s_error role=%s error=%s", action, self._role.role, exc)
            return AuthResult.fail(
                str(exc) or f"{action.capitalize()} failed",
                error_kind="transport",
            )

    def _next_ticket(self) -> int:
        self._issued += 1
        return self._issued

    def _claim(self, ticket: int) -> bool:
        # a later operation has already touched the session
        if ticket < self._committed:
            return False
        self._committed = ticket
        return True

    def _apply(self, state: SessionState) -> None:
        # phase never goes back to restoring once it has left it
        if self._restored.is_set() and state.phase is SessionPhase.RESTORING:
            return
        self._state = state
        if state.phase is not SessionPhase.RESTORING:
            self._restored.set()
