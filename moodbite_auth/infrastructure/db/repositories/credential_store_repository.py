from __future__ import annotations

import json
import logging

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from moodbite_auth.application.ports.credential_store_port import CredentialStorePort
from moodbite_auth.core.db import Base
from moodbite_auth.domain.entities.role import RoleConfig
from moodbite_auth.domain.entities.session import CredentialRecord
from moodbite_auth.domain.exceptions import CredentialStoreError
from moodbite_auth.infrastructure.db.models.credentials import CredentialEntryModel


logger = logging.getLogger(__name__)


class SqlCredentialStore(CredentialStorePort):
    """Key-value credential storage, two keys per role (``<prefix>Token`` and ``<prefix>Data``).

    Both keys of a role are written and deleted in a single transaction so a
    reader never sees a token without its identity snapshot or the reverse.
    """

    def __init__(self, engine):
        self._engine = engine

    def ensure_schema(self) -> None:
        try:
            Base.metadata.create_all(self._engine, tables=[CredentialEntryModel.__table__])
        except SQLAlchemyError as exc:
            raise CredentialStoreError("Failed to create credential storage.") from exc

    def write(self, *, role: RoleConfig, record: CredentialRecord) -> None:
        delete_sql = """
            DELETE FROM credential_entries
            WHERE key = :token_key OR key = :data_key
        """
        insert_sql = """
            INSERT INTO credential_entries (key, value, updated_at)
            VALUES (:key, :value, CURRENT_TIMESTAMP)
        """
        keys = {"token_key": role.token_key, "data_key": role.data_key}
        try:
            with self._engine.begin() as conn:
                conn.execute(text(delete_sql), keys)
                conn.execute(
                    text(insert_sql),
                    [
                        {"key": role.token_key, "value": record.token},
                        {"key": role.data_key, "value": json.dumps(record.identity_snapshot)},
                    ],
                )
        except SQLAlchemyError as exc:
            raise CredentialStoreError(f"Failed to write credentials for role '{role.role}'.") from exc

    def read(self, *, role: RoleConfig) -> CredentialRecord | None:
        sql = """
            SELECT key, value
            FROM credential_entries
            WHERE key = :token_key OR key = :data_key
        """
        try:
            with self._engine.connect() as conn:
                rows = conn.execute(
                    text(sql),
                    {"token_key": role.token_key, "data_key": role.data_key},
                ).mappings().all()
        except SQLAlchemyError as exc:
            raise CredentialStoreError(f"Failed to read credentials for role '{role.role}'.") from exc

        values = {row["key"]: row["value"] for row in rows}
        token = values.get(role.token_key)
        raw_snapshot = values.get(role.data_key)
        if not token or raw_snapshot is None:
            return None

        try:
            snapshot = json.loads(raw_snapshot)
        except ValueError:
            logger.warning("credential_store: undecodable_snapshot role=%s", role.role)
            return None
        if not isinstance(snapshot, dict):
            logger.warning("credential_store: invalid_snapshot role=%s", role.role)
            return None

        return CredentialRecord(token=token, identity_snapshot=snapshot)

    def clear(self, *, role: RoleConfig) -> None:
        sql = """
            DELETE FROM credential_entries
            WHERE key = :token_key OR key = :data_key
        """
        try:
            with self._engine.begin() as conn:
                conn.execute(text(sql), {"token_key": role.token_key, "data_key": role.data_key})
        except SQLAlchemyError as exc:
            raise CredentialStoreError(f"Failed to clear credentials for role '{role.role}'.") from exc
