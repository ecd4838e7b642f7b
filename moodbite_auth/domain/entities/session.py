from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Literal


Role = Literal["user", "admin", "restaurant", "delivery"]

ROLES: tuple[Role, ...] = ("user", "admin", "restaurant", "delivery")

Identity = dict[str, Any]


class SessionPhase(str, Enum):
    RESTORING = "restoring"
    AUTHENTICATED = "authenticated"
    UNAUTHENTICATED = "unauthenticated"


@dataclass(frozen=True)
class CredentialRecord:
    token: str
    identity_snapshot: Identity


@dataclass(frozen=True)
class SessionState:
    """In-memory session of one role.

    ``identity`` is set only while authenticated; ``cached_identity`` only
    while restoring, holding the stored snapshot until the backend confirms
    the token.
    """

    phase: SessionPhase
    identity: Identity | None = None
    cached_identity: Identity | None = None

    @classmethod
    def restoring(cls, cached_identity: Identity | None = None) -> SessionState:
        return cls(phase=SessionPhase.RESTORING, cached_identity=cached_identity)

    @classmethod
    def authenticated(cls, identity: Identity) -> SessionState:
        return cls(phase=SessionPhase.AUTHENTICATED, identity=identity)

    @classmethod
    def unauthenticated(cls) -> SessionState:
        return cls(phase=SessionPhase.UNAUTHENTICATED)

    @property
    def logged_in(self) -> bool:
        return self.phase is SessionPhase.AUTHENTICATED

    @property
    def loading(self) -> bool:
        return self.phase is SessionPhase.RESTORING
