from __future__ import annotations

import pytest
from sqlalchemy import create_engine, text

from moodbite_auth.domain.entities.role import ROLE_CONFIGS
from moodbite_auth.domain.entities.session import CredentialRecord
from moodbite_auth.domain.exceptions import CredentialStoreError
from moodbite_auth.infrastructure.db.repositories.credential_store_repository import SqlCredentialStore


@pytest.fixture
def engine(tmp_path):
    return create_engine(f"sqlite:///{tmp_path / 'credentials.db'}", future=True)


@pytest.fixture
def store(engine) -> SqlCredentialStore:
    store = SqlCredentialStore(engine)
    store.ensure_schema()
    return store


def _keys(engine) -> set[str]:
    with engine.connect() as conn:
        return {row[0] for row in conn.execute(text("SELECT key FROM credential_entries"))}


def test_write_then_read_returns_both_fields(store: SqlCredentialStore, engine):
    user = ROLE_CONFIGS["user"]
    store.write(role=user, record=CredentialRecord(token="abc", identity_snapshot={"id": "u1", "name": "Sam"}))

    record = store.read(role=user)

    assert record == CredentialRecord(token="abc", identity_snapshot={"id": "u1", "name": "Sam"})
    assert _keys(engine) == {"userToken", "userData"}


def test_write_replaces_previous_record(store: SqlCredentialStore):
    admin = ROLE_CONFIGS["admin"]
    store.write(role=admin, record=CredentialRecord(token="old", identity_snapshot={"id": "a1"}))
    store.write(role=admin, record=CredentialRecord(token="new", identity_snapshot={"id": "a1", "name": "Root"}))

    record = store.read(role=admin)

    assert record.token == "new"
    assert record.identity_snapshot["name"] == "Root"


def test_read_missing_role_returns_none(store: SqlCredentialStore):
    assert store.read(role=ROLE_CONFIGS["delivery"]) is None


def test_read_partial_record_returns_none(store: SqlCredentialStore, engine):
    with engine.begin() as conn:
        conn.execute(
            text("INSERT INTO credential_entries (key, value, updated_at) VALUES ('restaurantToken', 'tok', CURRENT_TIMESTAMP)")
        )

    assert store.read(role=ROLE_CONFIGS["restaurant"]) is None


def test_read_undecodable_snapshot_returns_none(store: SqlCredentialStore, engine):
    with engine.begin() as conn:
        conn.execute(
            text(
                "INSERT INTO credential_entries (key, value, updated_at) VALUES "
                "('userToken', 'tok', CURRENT_TIMESTAMP), ('userData', '{not json', CURRENT_TIMESTAMP)"
            )
        )

    assert store.read(role=ROLE_CONFIGS["user"]) is None


def test_clear_only_touches_own_role(store: SqlCredentialStore, engine):
    store.write(role=ROLE_CONFIGS["user"], record=CredentialRecord(token="u", identity_snapshot={"id": "u1"}))
    store.write(role=ROLE_CONFIGS["admin"], record=CredentialRecord(token="a", identity_snapshot={"id": "a1"}))

    store.clear(role=ROLE_CONFIGS["user"])
    store.clear(role=ROLE_CONFIGS["user"])

    assert store.read(role=ROLE_CONFIGS["user"]) is None
    assert store.read(role=ROLE_CONFIGS["admin"]).token == "a"
    assert _keys(engine) == {"adminToken", "adminData"}


def test_unavailable_storage_raises_store_error(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'missing-dir' / 'credentials.db'}", future=True)
    store = SqlCredentialStore(engine)

    with pytest.raises(CredentialStoreError):
        store.read(role=ROLE_CONFIGS["user"])
