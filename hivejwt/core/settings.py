"""Application settings loaded from environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict

from hivejwt.core.errors import MissingPartnerTokenError

REQUEST_TIMEOUT_DEFAULT = 30.0


class HiveSettings(BaseSettings):
    """Partner credential and CLI defaults."""

    model_config = SettingsConfigDict(env_prefix="HIVE_")

    partner_token: str = ""
    endpoint: str = "test"
    request_timeout: float = REQUEST_TIMEOUT_DEFAULT
    log_level: str = "WARNING"

    def require_partner_token(self) -> str:
        """Return the partner token, failing when none is set."""
        if not self.partner_token:
            raise MissingPartnerTokenError()
        return self.partner_token
