from __future__ import annotations

from dataclasses import dataclass

from moodbite_auth.domain.entities.session import Role
from moodbite_auth.domain.exceptions import UnknownRoleError


@dataclass(frozen=True)
class RoleEndpoints:
    login: str
    profile: str
    logout: str
    forgot_password: str
    verify_otp: str
    reset_password: str
    signup: str | None = None
    register: str | None = None


@dataclass(frozen=True)
class RoleConfig:
    role: Role
    storage_prefix: str
    endpoints: RoleEndpoints
    identity_keys: tuple[str, ...]
    login_route: str
    home_route: str

    @property
    def token_key(self) -> str:
        return f"{self.storage_prefix}Token"

    @property
    def data_key(self) -> str:
        return f"{self.storage_prefix}Data"

    @property
    def supports_signup(self) -> bool:
        return self.endpoints.signup is not None

    @property
    def supports_register(self) -> bool:
        return self.endpoints.register is not None


def _password_reset_endpoints(base: str) -> dict[str, str]:
    return {
        "forgot_password": f"{base}/forgot-password",
        "verify_otp": f"{base}/verify-otp",
        "reset_password": f"{base}/reset-password",
    }


ROLE_CONFIGS: dict[Role, RoleConfig] = {
    "user": RoleConfig(
        role="user",
        storage_prefix="user",
        endpoints=RoleEndpoints(
            login="/users/login",
            signup="/users/signup",
            profile="/users/profile",
            logout="/users/logout",
            **_password_reset_endpoints("/users"),
        ),
        identity_keys=("user",),
        login_route="/login",
        home_route="/",
    ),
    "admin": RoleConfig(
        role="admin",
        storage_prefix="admin",
        endpoints=RoleEndpoints(
            login="/admin/login",
            signup="/admin/signup",
            profile="/admin/profile",
            logout="/admin/logout",
            **_password_reset_endpoints("/admin"),
        ),
        identity_keys=("admin",),
        login_route="/admin/login",
        home_route="/admin",
    ),
    "restaurant": RoleConfig(
        role="restaurant",
        storage_prefix="restaurant",
        endpoints=RoleEndpoints(
            login="/restaurant/login",
            profile="/restaurant/profile",
            logout="/restaurant/logout",
            register="/restaurants/register",
            **_password_reset_endpoints("/restaurant"),
        ),
        identity_keys=("restaurant",),
        login_route="/restaurant/login",
        home_route="/restaurant/dashboard",
    ),
    "delivery": RoleConfig(
        role="delivery",
        storage_prefix="delivery",
        endpoints=RoleEndpoints(
            login="/delivery/login",
            profile="/delivery/profile",
            logout="/delivery/logout",
            register="/delivery/register",
            **_password_reset_endpoints("/delivery"),
        ),
        # login answers with ``deliveryBoy``; pending accounts come back as ``rider``
        identity_keys=("deliveryBoy", "rider"),
        login_route="/delivery/login",
        home_route="/delivery/dashboard",
    ),
}


def get_role_config(role: str) -> RoleConfig:
    config = ROLE_CONFIGS.get(role)
    if config is None:
        raise UnknownRoleError(f"Unknown role: {role}")
    return config
