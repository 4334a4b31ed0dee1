"""Async client for the CRUD endpoints of the Hive Public Key Service."""

import json
import logging
from types import TracebackType

import httpx
from pydantic import TypeAdapter

from hivejwt.core.endpoints import api_base_url
from hivejwt.core.expiration import resolve_expiration
from hivejwt.registry.errors import (
    AuthorizationError,
    DeletedError,
    NotFoundError,
    ValidationError,
)
from hivejwt.registry.types import (
    PublicKeyInfo,
    PublicKeyInfoRedacted,
    PublicKeyStorePayload,
)

logger = logging.getLogger(__name__)

PARTNER_TOKEN_HEADER = "X-Hive-Partner-Token"

_redacted_list = TypeAdapter(list[PublicKeyInfoRedacted])


def _validation_messages(response: httpx.Response) -> list[str]:
    """Extract the registry's validation messages from a 400 body."""
    try:
        data = response.json()
    except json.JSONDecodeError:
        return [response.text] if response.text else []
    if isinstance(data, dict) and "errors" in data:
        data = data["errors"]
    if isinstance(data, list):
        return [str(item) for item in data]
    if isinstance(data, str):
        return [data]
    return [json.dumps(data)]


class HivePublicKeyServiceClient:
    """CRUD operations on one partner's published public keys.

    The client never reads credentials from the environment and imposes no
    timeout unless one is passed in.
    """

    def __init__(
        self,
        partner_id: str,
        partner_token: str,
        endpoint: str = "prod",
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._partner_id = partner_id
        self._client = httpx.AsyncClient(
            base_url=api_base_url(endpoint),
            headers={
                PARTNER_TOKEN_HEADER: partner_token,
                "Content-Type": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    @property
    def partner_id(self) -> str:
        return self._partner_id

    async def __aenter__(self) -> "HivePublicKeyServiceClient":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def create(
        self,
        partner_id: str,
        key_id: str,
        exponent: str,
        modulus: str,
        expiration: str | int,
    ) -> None:
        """Publish a new public key; expiration is resolved to a timestamp first."""
        payload = PublicKeyStorePayload(
            partner_id=partner_id,
            key_id=key_id,
            exponent=exponent,
            modulus=modulus,
            expiration=resolve_expiration(expiration),
        )
        await self._request(
            "POST",
            "/publickey",
            key_id=key_id,
            json=payload.model_dump(by_alias=True),
        )

    async def get(self, key_id: str) -> PublicKeyInfo:
        """Fetch one published key."""
        response = await self._request(
            "GET", f"/publickey/{self._partner_id}/{key_id}", key_id=key_id
        )
        return PublicKeyInfo.model_validate(response.json())

    async def list(self, include_deleted: bool = False) -> list[PublicKeyInfoRedacted]:
        """List the partner's keys without key material."""
        response = await self._request(
            "GET",
            f"/publickey/{self._partner_id}",
            params={"includeDeleted": "true" if include_deleted else "false"},
        )
        return _redacted_list.validate_python(response.json())

    async def delete(self, key_id: str) -> None:
        """Mark a published key as deleted."""
        await self._request(
            "DELETE", f"/publickey/{self._partner_id}/{key_id}", key_id=key_id
        )

    async def _request(
        self,
        method: str,
        url: str,
        key_id: str | None = None,
        **kwargs: object,
    ) -> httpx.Response:
        logger.debug("%s %s", method, url)
        response = await self._client.request(method, url, **kwargs)  # type: ignore[arg-type]
        logger.debug("%s %s -> %d", method, url, response.status_code)
        self._raise_for_status(response, key_id)
        return response

    def _raise_for_status(self, response: httpx.Response, key_id: str | None) -> None:
        """Map registry statuses onto errors; other failures surface unmodified."""
        status = response.status_code
        if status == httpx.codes.BAD_REQUEST:
            error: Exception = ValidationError(_validation_messages(response))
        elif status in (httpx.codes.UNAUTHORIZED, httpx.codes.FORBIDDEN):
            error = AuthorizationError()
        elif status == httpx.codes.NOT_FOUND:
            error = NotFoundError(self._partner_id, key_id)
        elif status == httpx.codes.GONE:
            error = DeletedError(self._partner_id, key_id)
        else:
            response.raise_for_status()
            return
        logger.warning("Registry request failed with %d: %s", status, error)
        raise error
