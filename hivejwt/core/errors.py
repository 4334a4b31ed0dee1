"""Error types raised by token signing, key handling, and configuration."""


class HiveError(Exception):
    """Base class for every error raised by hivejwt."""


class InvalidExpirationError(HiveError):
    """An expiration or expires-in value could not be resolved."""

    def __init__(self, value: str | int) -> None:
        super().__init__(f"Invalid expiration: {value}")
        self.value = value


class InvalidEndpointError(HiveError):
    """Endpoint is not one of the recognised deployment environments."""

    def __init__(self, value: str) -> None:
        super().__init__(f"Invalid endpoint: {value}")
        self.value = value


class ClaimConstructionError(HiveError):
    """Manifest, regex, and event name arguments do not form a valid target."""


class KeyParseError(HiveError):
    """PEM key material is malformed, encrypted with another password, or not RSA."""


class KeyFileError(HiveError):
    """A key file could not be read."""

    def __init__(self, filename: str) -> None:
        super().__init__(f"Could not read file {filename}")
        self.filename = filename


class MissingPartnerTokenError(HiveError):
    """No partner token is configured for registry calls."""

    def __init__(self) -> None:
        super().__init__("No HIVE_PARTNER_TOKEN environmental variable set")
