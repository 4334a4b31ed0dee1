"""RSA key pair generation, PEM loading and persistence, and registry export."""

import base64
import logging
from pathlib import Path

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey, RSAPublicKey
from pydantic import BaseModel, ConfigDict

from hivejwt.core.errors import KeyFileError, KeyParseError
from hivejwt.crypto.types import PublicKeyExport

logger = logging.getLogger(__name__)

RSA_KEY_SIZE = 4096
RSA_PUBLIC_EXPONENT = 65537


class HiveKeyPair(BaseModel):
    """An RSA key pair; the public half is always derived from the private key."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    private_key: RSAPrivateKey

    @property
    def public_key(self) -> RSAPublicKey:
        return self.private_key.public_key()

    def public_key_pem(self) -> bytes:
        """SubjectPublicKeyInfo PEM of the public half."""
        return self.public_key.public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )


def generate_key_pair() -> HiveKeyPair:
    """Generate a new RSA-4096 key pair."""
    private_key = rsa.generate_private_key(
        public_exponent=RSA_PUBLIC_EXPONENT,
        key_size=RSA_KEY_SIZE,
    )
    logger.info("Generated RSA-%d key pair", RSA_KEY_SIZE)
    return HiveKeyPair(private_key=private_key)


def load_key_pair_pem(data: bytes, password: bytes | None = None) -> HiveKeyPair:
    """Load a PKCS#8 or PKCS#1 PEM private key."""
    try:
        loaded = serialization.load_pem_private_key(data, password=password)
    except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
        raise KeyParseError(f"Could not parse PEM private key: {exc}") from exc
    if not isinstance(loaded, RSAPrivateKey):
        raise KeyParseError(
            f"Expected an RSA private key, got {type(loaded).__name__}"
        )
    return HiveKeyPair(private_key=loaded)


def read_key_pair_file(
    path: str | Path, password: bytes | None = None
) -> HiveKeyPair:
    """Read a PEM private key file; read failures name the file."""
    try:
        data = Path(path).read_bytes()
    except OSError as exc:
        raise KeyFileError(str(path)) from exc
    key_pair = load_key_pair_pem(data, password=password)
    logger.info("Loaded private key from %s", path)
    return key_pair


def export_private_pem(key_pair: HiveKeyPair, password: bytes | None = None) -> bytes:
    """Serialise the private key as PKCS#8 PEM, encrypted when a password is given."""
    encryption: serialization.KeySerializationEncryption = (
        serialization.BestAvailableEncryption(password)
        if password
        else serialization.NoEncryption()
    )
    return key_pair.private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=encryption,
    )


def write_private_key(
    key_pair: HiveKeyPair, path: str | Path, password: bytes | None = None
) -> None:
    """Persist the private key as PKCS#8 PEM."""
    Path(path).write_bytes(export_private_pem(key_pair, password=password))
    logger.info("Wrote private key to %s", path)


def _int_to_base64url(value: int) -> str:
    """Encode an integer as base64url without padding."""
    byte_length = (value.bit_length() + 7) // 8
    raw = value.to_bytes(byte_length, byteorder="big")
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode()


def _base64url_to_int(value: str) -> int:
    padded = value + "=" * (-len(value) % 4)
    return int.from_bytes(base64.urlsafe_b64decode(padded), byteorder="big")


def export_public_key(key_pair: HiveKeyPair) -> PublicKeyExport:
    """Export the public key in the registry's modulus/exponent form."""
    numbers = key_pair.public_key.public_numbers()
    return PublicKeyExport(
        modulus=_int_to_base64url(numbers.n),
        exponent=_int_to_base64url(numbers.e),
    )


def public_key_from_export(export: PublicKeyExport) -> RSAPublicKey:
    """Rebuild an RSA public key from its modulus/exponent export."""
    try:
        numbers = rsa.RSAPublicNumbers(
            e=_base64url_to_int(export.exponent),
            n=_base64url_to_int(export.modulus),
        )
        return numbers.public_key()
    except ValueError as exc:
        raise KeyParseError(f"Invalid public key export: {exc}") from exc
