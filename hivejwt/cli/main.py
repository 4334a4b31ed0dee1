"""hive-jwt-util: create keys and tokens, and manage published public keys.

Usage::

    hive-jwt-util create-key -f key.pem
    hive-jwt-util publish-key -f key.pem -p PARTNER -k KEY -x "30 days"
    hive-jwt-util create-jwt -f key.pem -p PARTNER -c CUSTOMER -k KEY -v VIDEO -m manifest -x 10h
    hive-jwt-util reporting-url -f key.pem -p PARTNER -c CUSTOMER -k KEY -v VIDEO -x 1h
    hive-jwt-util list-keys -p PARTNER --include-deleted
    hive-jwt-util get-key -p PARTNER -k KEY
    hive-jwt-util delete-key -p PARTNER -k KEY

Registry commands read the partner token from ``HIVE_PARTNER_TOKEN``.
"""

import asyncio
import json
import logging
from collections.abc import Coroutine, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Annotated, Any, TypeVar

import httpx
import typer
import uuid_utils
from rich.console import Console
from rich.table import Table

from hivejwt.core.endpoints import Endpoint
from hivejwt.core.errors import HiveError
from hivejwt.core.settings import HiveSettings
from hivejwt.crypto.jwt_creator import HiveJwtCreator
from hivejwt.crypto.keys import (
    export_public_key,
    generate_key_pair,
    read_key_pair_file,
    write_private_key,
)
from hivejwt.registry.client import HivePublicKeyServiceClient
from hivejwt.registry.types import KeyState

T = TypeVar("T")

app = typer.Typer(
    name="hive-jwt-util",
    help="Create Hive JWTs and manage public keys on the Hive Public Key Service.",
    no_args_is_help=True,
)
console = Console()
err_console = Console(stderr=True)

_STATE_STYLES = {
    KeyState.ACTIVE: "green",
    KeyState.EXPIRED: "yellow",
    KeyState.DELETED: "red",
}

KeyFileOption = Annotated[
    Path, typer.Option("--file", "-f", help="File holding the PEM-encoded private key")
]
PartnerIdOption = Annotated[str, typer.Option("--partner-id", "-p", help="Partner Id")]
KeyIdOption = Annotated[str, typer.Option("--key-id", "-k", help="Key Id")]
CustomerIdOption = Annotated[
    str, typer.Option("--customer-id", "-c", help="Customer Id")
]
VideoIdOption = Annotated[str, typer.Option("--video-id", "-v", help="Video Id")]
ExpiresInOption = Annotated[
    str,
    typer.Option(
        "--expires-in",
        "-x",
        help='Expiration, as either (a) number of seconds or (b) a duration string, eg. "3 days"',
    ),
]
EndpointOption = Annotated[
    Endpoint | None,
    typer.Option(
        "--endpoint", "-e", help="Hive API environment [default: HIVE_ENDPOINT or test]"
    ),
]


@contextmanager
def _handle_errors() -> Iterator[None]:
    """Report a failed operation on stderr and exit with status 1."""
    try:
        yield
    except (HiveError, httpx.HTTPError, OSError) as exc:
        err_console.print(f"Error: {exc}", style="red", markup=False, soft_wrap=True)
        raise typer.Exit(1) from exc


def _run(coro: Coroutine[Any, Any, T]) -> T:
    return asyncio.run(coro)


def _settings(ctx: typer.Context) -> HiveSettings:
    return ctx.obj["settings"]


def _endpoint(ctx: typer.Context, endpoint: Endpoint | None) -> str:
    return endpoint.value if endpoint is not None else _settings(ctx).endpoint


def _registry_client(
    ctx: typer.Context, partner_id: str, endpoint: Endpoint | None
) -> HivePublicKeyServiceClient:
    settings = _settings(ctx)
    return HivePublicKeyServiceClient(
        partner_id,
        settings.require_partner_token(),
        endpoint=_endpoint(ctx, endpoint),
        timeout=settings.request_timeout,
    )


@app.callback()
def main(
    ctx: typer.Context,
    log_level: Annotated[
        str | None,
        typer.Option("--log-level", help="Logging level [default: HIVE_LOG_LEVEL]"),
    ] = None,
) -> None:
    """Hive JWT utility."""
    settings = HiveSettings()
    logging.basicConfig(
        level=(log_level or settings.log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings


@app.command("create-key")
def create_key(file: KeyFileOption) -> None:
    """Create a new private key."""
    with _handle_errors():
        key_pair = generate_key_pair()
        write_private_key(key_pair, file)
    typer.echo(f"Saved private key to file: {file}")


@app.command("export-key")
def export_key(file: KeyFileOption) -> None:
    """Print the public key in the form sent to the Hive Public Key Service."""
    with _handle_errors():
        exported = export_public_key(read_key_pair_file(file))
    console.print_json(exported.model_dump_json())


@app.command("create-jwt")
def create_jwt(
    file: KeyFileOption,
    partner_id: PartnerIdOption,
    customer_id: CustomerIdOption,
    key_id: KeyIdOption,
    video_id: VideoIdOption,
    expires_in: ExpiresInOption,
    manifest: Annotated[
        list[str] | None,
        typer.Option("--manifest", "-m", help="Manifest (repeatable)"),
    ] = None,
    regex: Annotated[
        list[str] | None,
        typer.Option("--regex", "-r", help="Content regex (repeatable)"),
    ] = None,
    event_name: Annotated[
        str | None,
        typer.Option("--event-name", help="Action for tokens without manifests or regexes"),
    ] = None,
) -> None:
    """Create a new signed JWT."""
    with _handle_errors():
        creator = HiveJwtCreator.from_file(partner_id, file)
        token = creator.sign(
            key_id,
            customer_id,
            video_id,
            manifest or [],
            expires_in,
            event_name=event_name,
            regexes=regex or None,
        )
    typer.echo(token)


@app.command("reporting-url")
def reporting_url(
    ctx: typer.Context,
    file: KeyFileOption,
    partner_id: PartnerIdOption,
    customer_id: CustomerIdOption,
    key_id: KeyIdOption,
    video_id: VideoIdOption,
    expires_in: ExpiresInOption,
    endpoint: EndpointOption = None,
) -> None:
    """Display a URL to Hive Video Monitor."""
    with _handle_errors():
        creator = HiveJwtCreator.from_file(partner_id, file)
        url = creator.sign_reporting(
            key_id,
            customer_id,
            video_id,
            expires_in,
            endpoint=_endpoint(ctx, endpoint),
        )
    typer.echo(url)


@app.command("publish-key")
def publish_key(
    ctx: typer.Context,
    file: KeyFileOption,
    partner_id: PartnerIdOption,
    expiration: Annotated[
        str,
        typer.Option(
            "--expiration",
            "-x",
            help=(
                "Expiration, as either (a) a timestamp representing seconds since "
                '1 January 1970 00:00:00 UTC or (b) a duration string, eg. "3 days"'
            ),
        ),
    ],
    key_id: Annotated[
        str | None,
        typer.Option("--key-id", "-k", help="Key Id [default: a new UUIDv7]"),
    ] = None,
    endpoint: EndpointOption = None,
) -> None:
    """Publish a public key to Hive API."""
    key_id = key_id or str(uuid_utils.uuid7())

    async def _publish() -> None:
        exported = export_public_key(read_key_pair_file(file))
        async with _registry_client(ctx, partner_id, endpoint) as client:
            await client.create(
                partner_id,
                key_id,
                exported.exponent,
                exported.modulus,
                expiration,
            )

    with _handle_errors():
        _run(_publish())
    typer.echo(f"Created key: {partner_id}/{key_id}")


@app.command("list-keys")
def list_keys(
    ctx: typer.Context,
    partner_id: PartnerIdOption,
    include_deleted: Annotated[
        bool,
        typer.Option(
            "--include-deleted", "-d", help="Include deleted keys in list response"
        ),
    ] = False,
    endpoint: EndpointOption = None,
) -> None:
    """List public keys on Hive API."""

    async def _list() -> list:
        async with _registry_client(ctx, partner_id, endpoint) as client:
            return await client.list(include_deleted)

    with _handle_errors():
        keys = _run(_list())

    table = Table(title=f"Public keys for {partner_id}")
    table.add_column("Key Id", style="cyan")
    table.add_column("State")
    table.add_column("Expiration", justify="right")
    table.add_column("Created", justify="right")
    table.add_column("Deleted", justify="right")
    for key in keys:
        state = key.state()
        style = _STATE_STYLES[state]
        table.add_row(
            key.key_id,
            f"[{style}]{state.value}[/{style}]",
            str(key.expiration),
            str(key.created_at),
            str(key.deleted_at) if key.deleted_at is not None else "",
        )
    console.print(table)


@app.command("get-key")
def get_key(
    ctx: typer.Context,
    partner_id: PartnerIdOption,
    key_id: KeyIdOption,
    endpoint: EndpointOption = None,
) -> None:
    """Get a public key on Hive API."""

    async def _get() -> Any:
        async with _registry_client(ctx, partner_id, endpoint) as client:
            return await client.get(key_id)

    with _handle_errors():
        key = _run(_get())
    data = key.model_dump(by_alias=True)
    data["state"] = key.state().value
    console.print_json(json.dumps(data))


@app.command("delete-key")
def delete_key(
    ctx: typer.Context,
    partner_id: PartnerIdOption,
    key_id: KeyIdOption,
    endpoint: EndpointOption = None,
) -> None:
    """Delete a public key on Hive API."""

    async def _delete() -> None:
        async with _registry_client(ctx, partner_id, endpoint) as client:
            await client.delete(key_id)

    with _handle_errors():
        _run(_delete())
    typer.echo(f"Deleted key: {partner_id}/{key_id}")


if __name__ == "__main__":
    app()
