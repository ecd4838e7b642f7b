from __future__ import annotations

import asyncio

import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient

from moodbite_auth.api.deps import require_session
from moodbite_auth.application.dto.auth import OTP_REQUIRED, AuthPayload, AuthResult
from moodbite_auth.application.use_cases.password_reset import PasswordResetUseCase
from moodbite_auth.application.use_cases.session_manager import SessionManager
from moodbite_auth.application.use_cases.session_registry import SessionRegistry
from moodbite_auth.core.config import Settings
from moodbite_auth.domain.entities.role import ROLE_CONFIGS
from moodbite_auth.domain.entities.session import ROLES, CredentialRecord
from moodbite_auth.main import create_app
from tests.fakes import FakeCredentialStore, FakeSessionClient


SETTINGS = Settings(
    api_base_url="http://backend.test/api",
    api_timeout_seconds=1.0,
    credential_store_dsn="sqlite://",
    purge_on_transport_error=True,
    cors_allow_origins=["*"],
)


class Harness:
    def __init__(self):
        self.store = FakeCredentialStore()
        self.clients = {role: FakeSessionClient(ROLE_CONFIGS[role]) for role in ROLES}
        self.gated_roles: set[str] = set()

    def build_registry(self, settings: Settings) -> SessionRegistry:
        for role in self.gated_roles:
            self.clients[role].profile_gate = asyncio.Event()
        managers = {
            role: SessionManager(
                role=ROLE_CONFIGS[role],
                client=self.clients[role],
                credential_store=self.store,
                purge_on_transport_error=settings.purge_on_transport_error,
            )
            for role in ROLES
        }
        resets = {role: PasswordResetUseCase(client=self.clients[role]) for role in ROLES}
        return SessionRegistry(managers=managers, password_resets=resets)


@pytest.fixture
def harness() -> Harness:
    return Harness()


def _client(harness: Harness) -> TestClient:
    return TestClient(create_app(settings=SETTINGS, registry_factory=harness.build_registry))


def test_session_state_starts_unauthenticated(harness: Harness):
    with _client(harness) as client:
        response = client.get("/v1/session/user")

    assert response.status_code == 200
    assert response.json()["phase"] == "unauthenticated"
    assert response.json()["logged_in"] is False


def test_unknown_role_returns_404(harness: Harness):
    with _client(harness) as client:
        response = client.get("/v1/session/courier")

    assert response.status_code == 404


def test_protected_view_redirects_to_role_login(harness: Harness):
    with _client(harness) as client:
        response = client.get("/restaurant/dashboard", follow_redirects=False)

    assert response.status_code == 303
    assert response.headers["location"] == "/restaurant/login"


def test_protected_view_shows_loading_while_restoring(harness: Harness):
    harness.store.write(
        role=ROLE_CONFIGS["user"],
        record=CredentialRecord(token="abc", identity_snapshot={"_id": "u1"}),
    )
    harness.gated_roles.add("user")

    with _client(harness) as client:
        response = client.get("/cart", follow_redirects=False)
        state = client.get("/v1/session/user").json()

    assert response.status_code == 503
    assert response.headers["retry-after"] == "1"
    assert state["phase"] == "restoring"
    assert state["cached_identity"] == {"_id": "u1"}


def test_login_then_protected_view_renders(harness: Harness):
    harness.clients["user"].login_result = AuthResult.ok(
        AuthPayload(token="t1", identity={"_id": "u1", "name": "Sam"})
    )
    harness.clients["user"].profile_result = AuthResult.ok({"_id": "u1", "name": "Samuel"})

    with _client(harness) as client:
        login = client.post("/v1/session/user/login", json={"email": "Sam@Example.com", "password": "pw"})
        view = client.get("/cart", follow_redirects=False)

    assert login.status_code == 200
    assert login.json()["identity"]["name"] == "Samuel"
    assert login.json()["redirect_to"] == "/"
    assert view.status_code == 200
    assert view.json() == {"role": "user", "view": "cart", "identity": {"_id": "u1", "name": "Samuel"}}
    assert harness.clients["user"].calls[0][1].email == "sam@example.com"


def test_admin_login_challenge_is_exposed(harness: Harness):
    harness.clients["admin"].login_result = AuthResult.fail(
        "OTP sent to your email",
        error_kind="challenge",
        challenge=OTP_REQUIRED,
        data={"challenge": OTP_REQUIRED},
    )

    with _client(harness) as client:
        response = client.post("/v1/session/admin/login", json={"email": "root@example.com", "password": "pw"})
        state = client.get("/v1/session/admin").json()

    assert response.status_code == 401
    assert response.json()["detail"]["challenge"] == OTP_REQUIRED
    assert response.json()["detail"]["message"] == "OTP sent to your email"
    assert state["phase"] == "unauthenticated"


def test_pending_approval_login_is_forbidden(harness: Harness):
    harness.clients["delivery"].login_result = AuthResult.fail(
        "Account is pending approval",
        error_kind="pending_approval",
    )

    with _client(harness) as client:
        response = client.post("/v1/session/delivery/login", json={"email": "rider@example.com", "password": "pw"})

    assert response.status_code == 403
    assert response.json()["detail"] == "Account is pending approval"


def test_signup_not_available_for_restaurant(harness: Harness):
    with _client(harness) as client:
        response = client.post(
            "/v1/session/restaurant/signup",
            json={"name": "Cafe", "email": "cafe@example.com", "password": "secret1"},
        )

    assert response.status_code == 404


def test_logout_always_succeeds(harness: Harness):
    harness.store.write(
        role=ROLE_CONFIGS["admin"],
        record=CredentialRecord(token="a-token", identity_snapshot={"_id": "a1"}),
    )
    harness.clients["admin"].profile_result = AuthResult.ok({"_id": "a1"})
    harness.clients["admin"].logout_result = RuntimeError("backend down")

    with _client(harness) as client:
        before = client.get("/admin", follow_redirects=False)
        response = client.post("/v1/session/admin/logout")
        after = client.get("/admin", follow_redirects=False)

    assert before.status_code == 200
    assert response.json() == {"ok": True}
    assert after.status_code == 303
    assert harness.store.entries == {}


def test_identity_update_rewrites_session_and_snapshot(harness: Harness):
    harness.store.write(
        role=ROLE_CONFIGS["delivery"],
        record=CredentialRecord(token="d-token", identity_snapshot={"_id": "d1", "online": False}),
    )
    harness.clients["delivery"].profile_result = AuthResult.ok({"_id": "d1", "online": False})

    with _client(harness) as client:
        response = client.put("/v1/session/delivery/identity", json={"_id": "d1", "online": True})
        view = client.get("/delivery/dashboard", follow_redirects=False)

    assert response.status_code == 200
    assert response.json()["identity"] == {"_id": "d1", "online": True}
    assert view.json()["identity"] == {"_id": "d1", "online": True}
    assert harness.store.read(role=ROLE_CONFIGS["delivery"]).token == "d-token"


def test_identity_update_requires_login(harness: Harness):
    with _client(harness) as client:
        response = client.put("/v1/session/user/identity", json={"name": "Sam"})

    assert response.status_code == 401


def test_partner_login_points_to_role_home(harness: Harness):
    harness.clients["restaurant"].login_result = AuthResult.ok(
        AuthPayload(token="r-token", identity={"_id": "r1"})
    )

    with _client(harness) as client:
        response = client.post("/v1/session/restaurant/login", json={"email": "cafe@example.com", "password": "pw"})

    assert response.status_code == 200
    assert response.json()["redirect_to"] == "/restaurant/dashboard"


def test_forgot_password_returns_backend_message(harness: Harness):
    harness.clients["restaurant"].reset_result = AuthResult.ok(None, message="OTP sent to your email")

    with _client(harness) as client:
        response = client.post("/v1/session/restaurant/forgot-password", json={"email": "cafe@example.com"})

    assert response.status_code == 200
    assert response.json()["message"] == "OTP sent to your email"


def test_register_forwards_partner_payload(harness: Harness):
    harness.clients["delivery"].register_result = AuthResult.ok({"rider": {"_id": "d1"}}, message="Registered")

    with _client(harness) as client:
        response = client.post("/v1/session/delivery/register", json={"name": "Ravi", "phone": "9999999999"})

    assert response.status_code == 200
    assert response.json()["message"] == "Registered"
    assert harness.clients["delivery"].calls[-1] == ("register", {"name": "Ravi", "phone": "9999999999"})


def test_require_session_dependency_raises_redirect(harness: Harness):
    async def scenario():
        registry = harness.build_registry(SETTINGS)
        await registry.get("delivery").restore()
        return registry

    registry = asyncio.run(scenario())
    dependency = require_session("delivery")

    with pytest.raises(HTTPException) as exc_info:
        dependency(registry=registry)

    assert exc_info.value.status_code == 303
    assert exc_info.value.headers["Location"] == "/delivery/login"
