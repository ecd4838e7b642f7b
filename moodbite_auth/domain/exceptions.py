from __future__ import annotations


class DomainError(Exception):
    """Base for session domain errors."""


class UnknownRoleError(DomainError):
    """Role is not one of user, admin, restaurant, delivery."""


class CredentialStoreError(DomainError):
    """Credential storage is unavailable."""
