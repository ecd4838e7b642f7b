from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from moodbite_auth.domain.entities.role import RoleConfig
from moodbite_auth.domain.entities.session import Identity, Role, SessionPhase, SessionState


class AccessOutcome(str, Enum):
    LOADING = "loading"
    REDIRECT = "redirect"
    RENDER = "render"


@dataclass(frozen=True)
class AccessDecision:
    outcome: AccessOutcome
    redirect_to: str | None = None
    identity: Identity | None = None


PROTECTED_ROUTES: dict[str, Role] = {
    "/profile": "user",
    "/orders": "user",
    "/cart": "user",
    "/checkout": "user",
    "/admin": "admin",
    "/restaurant/dashboard": "restaurant",
    "/delivery/dashboard": "delivery",
}


def decide_access(state: SessionState, *, role: RoleConfig) -> AccessDecision:
    if state.phase is SessionPhase.RESTORING:
        return AccessDecision(outcome=AccessOutcome.LOADING)
    if state.phase is SessionPhase.AUTHENTICATED and state.identity is not None:
        return AccessDecision(outcome=AccessOutcome.RENDER, identity=state.identity)
    return AccessDecision(outcome=AccessOutcome.REDIRECT, redirect_to=role.login_route)
