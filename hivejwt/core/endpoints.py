"""Deployment environments of the Hive API and the URLs derived from them."""

from enum import StrEnum

from hivejwt.core.errors import InvalidEndpointError

API_HOST_TEMPLATE = "https://api{suffix}.hivestreaming.com"


class Endpoint(StrEnum):
    """Hive API environment."""

    PROD = "prod"
    TEST = "test"


def check_endpoint(value: str) -> Endpoint:
    """Validate an endpoint selector."""
    try:
        return Endpoint(value)
    except ValueError as exc:
        raise InvalidEndpointError(value) from exc


def api_host(endpoint: str) -> str:
    """Return the API origin: bare hostname for prod, ``api-<endpoint>`` otherwise."""
    selected = check_endpoint(endpoint)
    suffix = "" if selected is Endpoint.PROD else f"-{selected.value}"
    return API_HOST_TEMPLATE.format(suffix=suffix)


def api_base_url(endpoint: str) -> str:
    """Return the versioned API base URL for an endpoint."""
    return f"{api_host(endpoint)}/v1"
