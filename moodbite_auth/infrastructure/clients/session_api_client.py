from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict

from moodbite_auth.application.dto.auth import AuthPayload, AuthResult, LoginInput, SignupInput
from moodbite_auth.application.ports.session_client_port import SessionClientPort
from moodbite_auth.domain.entities.role import RoleConfig
from moodbite_auth.domain.entities.session import Identity


logger = logging.getLogger(__name__)

PENDING_APPROVAL_MESSAGE = "Account is pending approval. You will be notified once approved."


class ApiEnvelope(BaseModel):
    model_config = ConfigDict(extra="allow")

    success: bool = False
    message: str | None = None
    data: Any = None


class HttpSessionClient(SessionClientPort):
    """Talks to one role's auth endpoints and folds every outcome into an ``AuthResult``."""

    def __init__(self, *, role: RoleConfig, http_client: httpx.AsyncClient):
        self.role = role
        self._http = http_client

    async def login(self, credentials: LoginInput) -> AuthResult[AuthPayload]:
        result = await self._request(
            "POST",
            self.role.endpoints.login,
            action="Login",
            json=credentials.to_payload(),
        )
        if not result.success:
            return result
        return self._auth_payload(result.value or {}, message=result.message)

    async def signup(self, payload: SignupInput) -> AuthResult[AuthPayload]:
        path = self.role.endpoints.signup
        if path is None:
            return AuthResult.fail(
                f"Signup is not available for role '{self.role.role}'.",
                error_kind="unsupported",
            )
        result = await self._request("POST", path, action="Signup", json=payload.to_payload())
        if not result.success:
            return result
        return self._auth_payload(result.value or {}, message=result.message)

    async def get_profile(self, *, token: str) -> AuthResult[Identity]:
        if not token:
            return AuthResult.fail(f"No {self.role.role} token found", error_kind="rejected")

        result = await self._request(
            "GET",
            self.role.endpoints.profile,
            action="Profile",
            token=token,
        )
        if not result.success:
            return result

        identity = self._extract_identity(result.value or {}, allow_bare=True)
        if identity is None:
            return AuthResult.fail(
                "Profile response is missing identity.",
                error_kind="malformed",
                data=result.value,
            )
        return AuthResult.ok(identity, message=result.message)

    async def logout(self, *, token: str) -> AuthResult[None]:
        result = await self._request(
            "POST",
            self.role.endpoints.logout,
            action="Logout",
            token=token,
        )
        if not result.success:
            return result
        return AuthResult.ok(None, message=result.message)

    async def register(self, payload: dict[str, Any]) -> AuthResult[dict[str, Any]]:
        path = self.role.endpoints.register
        if path is None:
            return AuthResult.fail(
                f"Registration is not available for role '{self.role.role}'.",
                error_kind="unsupported",
            )
        return await self._request("POST", path, action="Registration", json=payload)

    async def forgot_password(self, *, email: str) -> AuthResult[None]:
        return await self._simple_post(
            self.role.endpoints.forgot_password,
            action="Password reset request",
            json={"email": email},
        )

    async def verify_otp(self, *, email: str, otp: str) -> AuthResult[None]:
        return await self._simple_post(
            self.role.endpoints.verify_otp,
            action="OTP verification",
            json={"email": email, "otp": otp},
        )

    async def reset_password(self, *, email: str, otp: str, new_password: str) -> AuthResult[None]:
        return await self._simple_post(
            self.role.endpoints.reset_password,
            action="Password reset",
            json={"email": email, "otp": otp, "newPassword": new_password},
        )

    async def _simple_post(self, path: str, *, action: str, json: dict) -> AuthResult[None]:
        result = await self._request("POST", path, action=action, json=json)
        if not result.success:
            return result
        return AuthResult.ok(None, message=result.message)

    async def _request(
        self,
        method: str,
        path: str,
        *,
        action: str,
        json: dict | None = None,
        token: str | None = None,
    ) -> AuthResult[dict[str, Any]]:
        headers = {"Authorization": f"Bearer {token}"} if token else None
        try:
            response = await self._http.request(method, path, json=json, headers=headers)
        except httpx.HTTPError as exc:
            logger.warning(
                "session_api_client: transport_error role=%s path=%s error=%s",
                self.role.role,
                path,
                exc,
            )
            return AuthResult.fail(
                f"{action} failed. Please check your connection and try again.",
                error_kind="transport",
            )

        try:
            envelope = ApiEnvelope.model_validate(response.json())
        except ValueError:
            logger.warning(
                "session_api_client: malformed_response role=%s path=%s status=%s",
                self.role.role,
                path,
                response.status_code,
            )
            if not response.is_success:
                return AuthResult.fail(
                    f"HTTP error! status: {response.status_code}",
                    error_kind="rejected",
                    status_code=response.status_code,
                )
            return AuthResult.fail(
                f"{action} failed: unexpected response from server.",
                error_kind="malformed",
                status_code=response.status_code,
            )

        data = envelope.data if isinstance(envelope.data, dict) else {}
        challenge = data.get("challenge")
        if challenge:
            logger.info(
                "session_api_client: challenge role=%s path=%s challenge=%s",
                self.role.role,
                path,
                challenge,
            )
            return AuthResult.fail(
                envelope.message or "Additional verification required.",
                error_kind="challenge",
                challenge=str(challenge),
                status_code=response.status_code,
                data=data,
            )

        if not response.is_success or not envelope.success:
            logger.info(
                "session_api_client: rejected role=%s path=%s status=%s",
                self.role.role,
                path,
                response.status_code,
            )
            return AuthResult.fail(
                envelope.message or f"HTTP error! status: {response.status_code}",
                error_kind="rejected",
                status_code=response.status_code,
                data=data or None,
            )

        return AuthResult.ok(data, message=envelope.message)

    def _auth_payload(self, data: dict[str, Any], *, message: str | None) -> AuthResult[AuthPayload]:
        if data.get("requiresApproval"):
            return AuthResult.fail(
                message or PENDING_APPROVAL_MESSAGE,
                error_kind="pending_approval",
                data=data,
            )

        token = data.get("token")
        identity = self._extract_identity(data, allow_bare=False)
        if not token or identity is None:
            return AuthResult.fail(
                "Login response is missing token or profile.",
                error_kind="malformed",
                data=data,
            )
        return AuthResult.ok(AuthPayload(token=str(token), identity=identity), message=message)

    def _extract_identity(self, data: dict[str, Any], *, allow_bare: bool) -> Identity | None:
        for key in self.role.identity_keys:
            value = data.get(key)
            if isinstance(value, dict):
                return value
        # restaurant and delivery profiles return the identity as ``data`` itself
        if allow_bare and ("_id" in data or "id" in data):
            return data
        return None
