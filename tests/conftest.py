"""Shared test fixtures for hivejwt."""

import json
from datetime import UTC, datetime

import httpx
import pytest

from hivejwt.crypto.keys import HiveKeyPair, export_private_pem, generate_key_pair

PARTNER_TOKEN = "partner-token"
FIXED_NOW = datetime(2024, 1, 15, 12, 0, 0, tzinfo=UTC)


@pytest.fixture(autouse=True)
def _set_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Isolate tests from the caller's HIVE_* environment."""
    monkeypatch.delenv("HIVE_PARTNER_TOKEN", raising=False)
    monkeypatch.delenv("HIVE_ENDPOINT", raising=False)
    monkeypatch.delenv("HIVE_LOG_LEVEL", raising=False)
    monkeypatch.delenv("HIVE_REQUEST_TIMEOUT", raising=False)


@pytest.fixture(scope="session")
def key_pair() -> HiveKeyPair:
    """One RSA-4096 key pair for the whole session; generation is slow."""
    return generate_key_pair()


@pytest.fixture(scope="session")
def private_pem(key_pair: HiveKeyPair) -> bytes:
    return export_private_pem(key_pair)


@pytest.fixture
def now() -> datetime:
    return FIXED_NOW


class FakeRegistry:
    """In-memory Hive Public Key Service served through httpx.MockTransport."""

    REQUIRED_FIELDS = ("partnerId", "keyId", "exponent", "modulus", "expiration")

    def __init__(self, partner_token: str, created_at: int = 1_700_000_000) -> None:
        self.partner_token = partner_token
        self.created_at = created_at
        self.keys: dict[tuple[str, str], dict] = {}
        self.requests: list[httpx.Request] = []

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.headers.get("X-Hive-Partner-Token") != self.partner_token:
            return httpx.Response(403, json={"message": "Forbidden"})
        parts = request.url.path.removeprefix("/v1/publickey").strip("/").split("/")
        if request.method == "POST":
            return self._create(json.loads(request.content))
        if request.method == "GET" and len(parts) == 1:
            include = request.url.params.get("includeDeleted") == "true"
            return self._list(parts[0], include)
        record = self.keys.get((parts[0], parts[1]))
        if record is None:
            return httpx.Response(404)
        if record.get("deletedAt") is not None:
            return httpx.Response(410)
        if request.method == "DELETE":
            record["deletedAt"] = self.created_at + 60
            return httpx.Response(204)
        return httpx.Response(200, json=record)

    def _create(self, body: dict) -> httpx.Response:
        missing = [f'"{name}" is required' for name in self.REQUIRED_FIELDS if name not in body]
        if missing:
            return httpx.Response(400, json=missing)
        self.keys[(body["partnerId"], body["keyId"])] = {
            **body,
            "createdAt": self.created_at,
        }
        return httpx.Response(201)

    def _list(self, partner_id: str, include_deleted: bool) -> httpx.Response:
        records = [
            {k: v for k, v in record.items() if k not in ("exponent", "modulus")}
            for (owner, _), record in self.keys.items()
            if owner == partner_id
            and (include_deleted or record.get("deletedAt") is None)
        ]
        return httpx.Response(200, json=records)


@pytest.fixture
def fake_registry() -> FakeRegistry:
    return FakeRegistry(PARTNER_TOKEN)
