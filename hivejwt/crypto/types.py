"""Type definitions for key export and token claims."""

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field

HIVE_AUDIENCE = "https://hivestreaming.com"
CLAIMS_VERSION = "1.0"
REPORTING_ACTION = "reporting"


class PublicKeyExport(BaseModel):
    """RSA public key as published to the registry (JWK ``n``/``e`` encoding)."""

    model_config = ConfigDict(frozen=True)

    modulus: str
    exponent: str


class ManifestTarget(BaseModel):
    """Token authorises an explicit list of manifests."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["manifest"] = "manifest"
    manifests: list[str] = Field(min_length=1)

    def to_claims(self) -> dict[str, Any]:
        return {"man": list(self.manifests)}


class RegexTarget(BaseModel):
    """Token authorises any content matching one of the regexes."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["regex"] = "regex"
    regexes: list[str] = Field(min_length=1)

    def to_claims(self) -> dict[str, Any]:
        return {"man": [], "regexes": list(self.regexes)}


class ReportingOnly(BaseModel):
    """Token carries an action marker instead of content scope."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["reporting"] = "reporting"
    action: str = REPORTING_ACTION

    def to_claims(self) -> dict[str, Any]:
        return {"act": self.action}


ClaimTarget = Annotated[
    ManifestTarget | RegexTarget | ReportingOnly,
    Field(discriminator="kind"),
]


class TokenClaims(BaseModel):
    """Claims bundle signed into a Hive token."""

    model_config = ConfigDict(frozen=True)

    iss: str
    sub: str
    cid: str
    target: ClaimTarget
    ver: str = CLAIMS_VERSION
    aud: str = HIVE_AUDIENCE

    def to_payload(self) -> dict[str, Any]:
        """Build the JWT body, without ``iat``/``exp``."""
        payload: dict[str, Any] = {
            "iss": self.iss,
            "sub": self.sub,
            "ver": self.ver,
            "aud": self.aud,
            "cid": self.cid,
        }
        payload.update(self.target.to_claims())
        return payload
