"""Errors mapped from Hive Public Key Service responses.

Every registry error carries a ``kind`` so callers can dispatch with
``match err.kind`` or with class patterns such as
``case NotFoundError(partner_id=p, key_id=k)``.
"""

from enum import StrEnum

from hivejwt.core.errors import HiveError


class RegistryErrorKind(StrEnum):
    AUTHORIZATION = "authorization"
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    DELETED = "deleted"


class RegistryError(HiveError):
    """Base class for classified registry failures."""

    kind: RegistryErrorKind


class AuthorizationError(RegistryError):
    """Partner token missing or rejected."""

    kind = RegistryErrorKind.AUTHORIZATION

    def __init__(self) -> None:
        super().__init__("Authorization required: missing or invalid partner token")


class ValidationError(RegistryError):
    """The registry rejected the request body."""

    kind = RegistryErrorKind.VALIDATION
    __match_args__ = ("messages",)

    def __init__(self, messages: list[str]) -> None:
        super().__init__(f"Public key validation error: {'; '.join(messages)}")
        self.messages = messages


class NotFoundError(RegistryError):
    """No key has been published under this partner id and key id."""

    kind = RegistryErrorKind.NOT_FOUND
    __match_args__ = ("partner_id", "key_id")

    def __init__(self, partner_id: str, key_id: str | None = None) -> None:
        super().__init__(f"Public key not found: {partner_id}/{key_id}")
        self.partner_id = partner_id
        self.key_id = key_id


class DeletedError(RegistryError):
    """The key exists but has been deleted."""

    kind = RegistryErrorKind.DELETED
    __match_args__ = ("partner_id", "key_id")

    def __init__(self, partner_id: str, key_id: str | None = None) -> None:
        super().__init__(f"Public key has been deleted: {partner_id}/{key_id}")
        self.partner_id = partner_id
        self.key_id = key_id
