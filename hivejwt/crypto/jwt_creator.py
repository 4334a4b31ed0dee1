"""RS256 token creation for Hive services."""

import logging
import math
from datetime import UTC, datetime
from pathlib import Path

import jwt

from hivejwt.core.endpoints import api_host
from hivejwt.core.errors import (
    ClaimConstructionError,
    InvalidExpirationError,
    KeyFileError,
)
from hivejwt.core.expiration import resolve_expires_in
from hivejwt.crypto.keys import load_key_pair_pem
from hivejwt.crypto.types import (
    ClaimTarget,
    ManifestTarget,
    RegexTarget,
    ReportingOnly,
    TokenClaims,
)

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "RS256"
REPORTING_URL_PATH = "/v1/url-redirect/adminportal-jwt/"


def build_target(
    manifests: list[str],
    regexes: list[str] | None = None,
    event_name: str | None = None,
) -> ClaimTarget:
    """Resolve which content a token is scoped to.

    Manifests and regexes are mutually exclusive. With neither, the token is
    an action token whose action is ``event_name`` or ``"reporting"``.
    """
    if manifests and regexes:
        raise ClaimConstructionError(
            "Only one of manifest or regex list can be defined."
        )
    if (manifests or regexes) and event_name is not None:
        raise ClaimConstructionError(
            "An event name cannot be combined with a manifest or regex list."
        )
    if manifests:
        return ManifestTarget(manifests=manifests)
    if regexes:
        return RegexTarget(regexes=regexes)
    if event_name is not None:
        return ReportingOnly(action=event_name)
    return ReportingOnly()


class HiveJwtCreator:
    """Signs tokens for one partner with one private key."""

    def __init__(
        self,
        partner_id: str,
        private_key_pem: bytes,
        password: bytes | None = None,
    ) -> None:
        self._partner_id = partner_id
        self._private_key = load_key_pair_pem(
            private_key_pem, password=password
        ).private_key

    @classmethod
    def from_file(
        cls,
        partner_id: str,
        private_key_filename: str | Path,
        password: bytes | None = None,
    ) -> "HiveJwtCreator":
        """Build a creator from a PEM private key file."""
        try:
            private_key_pem = Path(private_key_filename).read_bytes()
        except OSError as exc:
            raise KeyFileError(str(private_key_filename)) from exc
        return cls(partner_id, private_key_pem, password=password)

    @property
    def partner_id(self) -> str:
        return self._partner_id

    def sign(
        self,
        key_id: str,
        customer_id: str,
        video_id: str,
        manifests: list[str],
        expires_in: str | int,
        event_name: str | None = None,
        regexes: list[str] | None = None,
        *,
        now: datetime | None = None,
    ) -> str:
        """Create a signed token scoped to manifests, regexes, or an action.

        ``expires_in`` is a number of seconds or a duration string such as
        ``"2 days"`` or ``"10h"``.
        """
        claims = TokenClaims(
            iss=self._partner_id,
            sub=video_id,
            cid=customer_id,
            target=build_target(manifests, regexes, event_name),
        )
        return self._encode(key_id, claims, expires_in, now)

    def sign_reporting(
        self,
        key_id: str,
        customer_id: str,
        video_id: str,
        expires_in: str | int,
        endpoint: str = "prod",
        *,
        now: datetime | None = None,
    ) -> str:
        """Create a reporting token wrapped in the admin portal redirect URL."""
        host = api_host(endpoint)
        claims = TokenClaims(
            iss=self._partner_id,
            sub=video_id,
            cid=customer_id,
            target=ReportingOnly(),
        )
        token = self._encode(key_id, claims, expires_in, now)
        return f"{host}{REPORTING_URL_PATH}{token}"

    def _encode(
        self,
        key_id: str,
        claims: TokenClaims,
        expires_in: str | int,
        now: datetime | None,
    ) -> str:
        ttl = resolve_expires_in(expires_in)
        if ttl <= 0:
            raise InvalidExpirationError(expires_in)
        issued_at = math.floor((now or datetime.now(UTC)).timestamp())
        payload = claims.to_payload()
        payload["iat"] = issued_at
        payload["exp"] = issued_at + ttl
        logger.debug(
            "Signing token for %s/%s, kid=%s, ttl=%ds",
            self._partner_id,
            claims.sub,
            key_id,
            ttl,
        )
        return jwt.encode(
            payload,
            self._private_key,
            algorithm=JWT_ALGORITHM,
            headers={"kid": key_id},
        )
