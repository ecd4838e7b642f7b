from __future__ import annotations

import json
import os
from dataclasses import dataclass

from dotenv import load_dotenv


load_dotenv()


def _env(name: str, default: str | None = None) -> str | None:
    return os.getenv(name, default)


def _json(name: str, default: list | dict) -> list | dict:
    value = _env(name)
    if not value:
        return default
    return json.loads(value)


def _bool(name: str, default: bool) -> bool:
    value = _env(name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    api_base_url: str
    api_timeout_seconds: float
    credential_store_dsn: str
    purge_on_transport_error: bool
    cors_allow_origins: list


def get_settings() -> Settings:
    return Settings(
        api_base_url=_env("MOODBITE_API_BASE_URL", "http://localhost:5000/api"),
        api_timeout_seconds=float(_env("MOODBITE_API_TIMEOUT_SECONDS", "10")),
        credential_store_dsn=_env("CREDENTIAL_STORE_DSN", "sqlite:///./moodbite_credentials.db"),
        purge_on_transport_error=_bool("SESSION_PURGE_ON_TRANSPORT_ERROR", True),
        cors_allow_origins=list(_json("CORS_ALLOW_ORIGINS", ["*"])),
    )
