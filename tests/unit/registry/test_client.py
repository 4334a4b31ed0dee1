"""Tests for the Hive Public Key Service client."""

import json
from collections.abc import AsyncIterator, Callable
from datetime import UTC, datetime

import httpx
import pytest

from hivejwt.core.errors import InvalidEndpointError, InvalidExpirationError
from hivejwt.registry.client import HivePublicKeyServiceClient
from hivejwt.registry.errors import (
    AuthorizationError,
    DeletedError,
    NotFoundError,
    RegistryError,
    RegistryErrorKind,
    ValidationError,
)
from hivejwt.registry.types import KeyState

PARTNER_ID = "partner-1"
PARTNER_TOKEN = "partner-token"

Handler = Callable[[httpx.Request], httpx.Response]


def _client(handler: Handler, endpoint: str = "prod") -> HivePublicKeyServiceClient:
    return HivePublicKeyServiceClient(
        PARTNER_ID,
        PARTNER_TOKEN,
        endpoint=endpoint,
        transport=httpx.MockTransport(handler),
    )


def _status(code: int, **kwargs: object) -> Handler:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(code, **kwargs)  # type: ignore[arg-type]

    return handler


@pytest.fixture
async def client(fake_registry) -> AsyncIterator[HivePublicKeyServiceClient]:
    async with HivePublicKeyServiceClient(
        PARTNER_ID, PARTNER_TOKEN, transport=fake_registry.transport
    ) as c:
        yield c


async def _call(client: HivePublicKeyServiceClient, verb: str) -> object:
    if verb == "create":
        return await client.create(PARTNER_ID, "key-1", "AQAB", "abc", 1_800_000_000)
    if verb == "get":
        return await client.get("key-1")
    if verb == "list":
        return await client.list()
    return await client.delete("key-1")


class TestRequests:
    """Tests for the requests sent to the registry."""

    async def test_create_body_and_headers(self, client, fake_registry) -> None:
        await client.create(PARTNER_ID, "key-1", "AQAB", "modulus", "1800000000")
        request = fake_registry.requests[0]
        assert request.method == "POST"
        assert request.url == "https://api.hivestreaming.com/v1/publickey"
        assert request.headers["X-Hive-Partner-Token"] == PARTNER_TOKEN
        assert request.headers["Content-Type"] == "application/json"
        assert json.loads(request.content) == {
            "partnerId": PARTNER_ID,
            "keyId": "key-1",
            "exponent": "AQAB",
            "modulus": "modulus",
            "expiration": 1_800_000_000,
        }

    async def test_create_resolves_duration(self, client, fake_registry) -> None:
        before = int(datetime.now(UTC).timestamp())
        await client.create(PARTNER_ID, "key-1", "AQAB", "modulus", "30 days")
        expiration = json.loads(fake_registry.requests[0].content)["expiration"]
        assert before + 30 * 86_400 <= expiration <= before + 30 * 86_400 + 5

    async def test_create_invalid_expiration_sends_nothing(
        self, client, fake_registry
    ) -> None:
        with pytest.raises(InvalidExpirationError):
            await client.create(PARTNER_ID, "key-1", "AQAB", "modulus", "someday")
        assert fake_registry.requests == []

    async def test_get(self, client) -> None:
        await client.create(PARTNER_ID, "key-1", "AQAB", "modulus", 1_800_000_000)
        record = await client.get("key-1")
        assert record.partner_id == PARTNER_ID
        assert record.key_id == "key-1"
        assert record.exponent == "AQAB"
        assert record.modulus == "modulus"
        assert record.expiration == 1_800_000_000
        assert record.created_at == 1_700_000_000

    async def test_list_is_redacted(self, client, fake_registry) -> None:
        await client.create(PARTNER_ID, "key-1", "AQAB", "modulus", 1_800_000_000)
        records = await client.list()
        assert [r.key_id for r in records] == ["key-1"]
        assert not hasattr(records[0], "modulus")
        assert fake_registry.requests[-1].url.params["includeDeleted"] == "false"

    async def test_list_include_deleted(self, client, fake_registry) -> None:
        await client.create(PARTNER_ID, "key-1", "AQAB", "m", 1_800_000_000)
        await client.create(PARTNER_ID, "key-2", "AQAB", "m", 1_800_000_000)
        await client.delete("key-1")
        assert [r.key_id for r in await client.list()] == ["key-2"]
        records = await client.list(include_deleted=True)
        assert fake_registry.requests[-1].url.params["includeDeleted"] == "true"
        states = {r.key_id: r.state(now=datetime(2024, 1, 1, tzinfo=UTC)) for r in records}
        assert states == {"key-1": KeyState.DELETED, "key-2": KeyState.ACTIVE}

    async def test_delete_then_get_is_deleted(self, client) -> None:
        await client.create(PARTNER_ID, "key-1", "AQAB", "m", 1_800_000_000)
        await client.delete("key-1")
        with pytest.raises(DeletedError):
            await client.get("key-1")

    async def test_test_endpoint_host(self) -> None:
        seen: list[httpx.URL] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.url)
            return httpx.Response(200, json=[])

        async with _client(handler, endpoint="test") as client:
            await client.list()
        assert seen[0].host == "api-test.hivestreaming.com"
        assert seen[0].path == f"/v1/publickey/{PARTNER_ID}"

    def test_invalid_endpoint(self) -> None:
        with pytest.raises(InvalidEndpointError):
            HivePublicKeyServiceClient(PARTNER_ID, PARTNER_TOKEN, endpoint="dev")


class TestErrorMapping:
    """Tests for the uniform status-to-error mapping."""

    @pytest.mark.parametrize("verb", ["create", "get", "list", "delete"])
    @pytest.mark.parametrize("code", [401, 403])
    async def test_authorization(self, verb: str, code: int) -> None:
        async with _client(_status(code)) as client:
            with pytest.raises(AuthorizationError):
                await _call(client, verb)

    async def test_wrong_token(self, fake_registry) -> None:
        async with HivePublicKeyServiceClient(
            PARTNER_ID, "wrong", transport=fake_registry.transport
        ) as client:
            with pytest.raises(AuthorizationError, match="partner token"):
                await client.list()

    @pytest.mark.parametrize("verb", ["create", "get", "list", "delete"])
    async def test_server_error_propagates(self, verb: str) -> None:
        async with _client(_status(500)) as client:
            with pytest.raises(httpx.HTTPStatusError) as exc_info:
                await _call(client, verb)
        assert exc_info.value.response.status_code == 500

    async def test_not_found_carries_identity(self, client) -> None:
        with pytest.raises(NotFoundError) as exc_info:
            await client.get("missing")
        assert exc_info.value.partner_id == PARTNER_ID
        assert exc_info.value.key_id == "missing"
        assert str(exc_info.value) == f"Public key not found: {PARTNER_ID}/missing"

    async def test_delete_not_found(self, client) -> None:
        with pytest.raises(NotFoundError) as exc_info:
            await client.delete("missing")
        assert exc_info.value.key_id == "missing"

    async def test_gone(self) -> None:
        async with _client(_status(410)) as client:
            with pytest.raises(DeletedError) as exc_info:
                await client.get("key-1")
        assert exc_info.value.partner_id == PARTNER_ID
        assert exc_info.value.key_id == "key-1"

    async def test_validation_messages_from_list(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(400, json=['"modulus" is required', '"keyId" is required'])

        async with _client(handler) as client:
            with pytest.raises(ValidationError) as exc_info:
                await _call(client, "create")
        assert exc_info.value.messages == ['"modulus" is required', '"keyId" is required']
        assert "; " in str(exc_info.value)

    @pytest.mark.parametrize(
        ("kwargs", "expected"),
        [
            ({"json": {"errors": ["bad exponent"]}}, ["bad exponent"]),
            ({"json": "bad modulus"}, ["bad modulus"]),
            ({"json": {"message": "nope"}}, ['{"message": "nope"}']),
            ({"text": "plain failure"}, ["plain failure"]),
            ({}, []),
        ],
    )
    async def test_validation_body_shapes(self, kwargs: dict, expected: list[str]) -> None:
        async with _client(_status(400, **kwargs)) as client:
            with pytest.raises(ValidationError) as exc_info:
                await _call(client, "create")
        assert exc_info.value.messages == expected

    async def test_transport_error_propagates(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with _client(handler) as client:
            with pytest.raises(httpx.ConnectError):
                await client.list()

    async def test_dispatch_on_kind(self) -> None:
        async with _client(_status(410)) as client:
            with pytest.raises(RegistryError) as exc_info:
                await client.get("key-1")
        match exc_info.value:
            case DeletedError(partner_id, key_id):
                assert (partner_id, key_id) == (PARTNER_ID, "key-1")
            case _:
                pytest.fail("expected DeletedError")
        assert exc_info.value.kind is RegistryErrorKind.DELETED
