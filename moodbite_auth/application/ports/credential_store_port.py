from __future__ import annotations

from typing import Protocol

from moodbite_auth.domain.entities.role import RoleConfig
from moodbite_auth.domain.entities.session import CredentialRecord


class CredentialStorePort(Protocol):
    def write(self, *, role: RoleConfig, record: CredentialRecord) -> None:
        ...

    def read(self, *, role: RoleConfig) -> CredentialRecord | None:
        ...

    def clear(self, *, role: RoleConfig) -> None:
        ...
