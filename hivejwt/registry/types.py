"""Pydantic schemas matching the Hive Public Key Service JSON contract."""

from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict

from hivejwt.crypto.types import PublicKeyExport


def _to_camel(name: str) -> str:
    """Convert snake_case to camelCase for JSON serialization."""
    parts = name.split("_")
    return parts[0] + "".join(p.capitalize() for p in parts[1:])


def _now_seconds(now: datetime | None) -> float:
    return (now or datetime.now(UTC)).timestamp()


class KeyState(StrEnum):
    """Lifecycle state of a published key, derived from its timestamps."""

    ACTIVE = "active"
    EXPIRED = "expired"
    DELETED = "deleted"


class _RegistryModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=_to_camel,
        populate_by_name=True,
    )


class PublicKeyStorePayload(_RegistryModel):
    """Request body for POST /publickey."""

    partner_id: str
    key_id: str
    exponent: str
    modulus: str
    expiration: int


class PublicKeyInfo(_RegistryModel):
    """A single published key, including its key material."""

    partner_id: str
    key_id: str
    exponent: str
    modulus: str
    expiration: int
    created_at: int

    def state(self, now: datetime | None = None) -> KeyState:
        """Deleted keys are answered with 410, so a fetched key is never deleted."""
        if self.expiration <= _now_seconds(now):
            return KeyState.EXPIRED
        return KeyState.ACTIVE

    def to_export(self) -> PublicKeyExport:
        return PublicKeyExport(modulus=self.modulus, exponent=self.exponent)


class PublicKeyInfoRedacted(_RegistryModel):
    """A listed key: identity and lifecycle timestamps only."""

    partner_id: str
    key_id: str
    expiration: int
    created_at: int
    deleted_at: int | None = None

    def state(self, now: datetime | None = None) -> KeyState:
        if self.deleted_at is not None:
            return KeyState.DELETED
        if self.expiration <= _now_seconds(now):
            return KeyState.EXPIRED
        return KeyState.ACTIVE
