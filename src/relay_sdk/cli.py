"""
Command-line interface for Relay SDK.

Sends ad-hoc requests through the full assembly pipeline (merge, auth,
plugins, middleware, sender), which is handy for checking an API or a sender
backend by hand.

Available commands:
- send: Send a single request
- senders: List the available sender backends
"""

import asyncio
import json
import logging
import sys

import click

from relay_sdk.auth import TokenAuthenticator
from relay_sdk.config import RelaySettings
from relay_sdk.connector import Connector
from relay_sdk.data_types import SendsFormParams
from relay_sdk.data_types import SendsJsonBody
from relay_sdk.exceptions import RelayError
from relay_sdk.mock import MockClient
from relay_sdk.mock import MockResponse
from relay_sdk.plugins.builtin import LogsTraffic
from relay_sdk.request import SoloRequest
from relay_sdk.transport import AVAILABLE_SENDERS

logger = logging.getLogger("relay_sdk.cli")


class CliConnector(Connector):
    pass


class VerboseCliConnector(LogsTraffic, Connector):
    pass


class CliRequest(SoloRequest):
    pass


class JsonCliRequest(SendsJsonBody, SoloRequest):
    pass


class FormCliRequest(SendsFormParams, SoloRequest):
    pass


def _pairs(values, separator: str, option: str) -> dict[str, str]:
    pairs = {}
    for value in values:
        if separator not in value:
            raise click.BadParameter(f"expected NAME{separator}VALUE, got {value!r}", param_hint=option)
        name, _, item = value.partition(separator)
        pairs[name.strip()] = item.strip()
    return pairs


@click.group()
@click.option("--log-level", default="WARNING", show_default=True, help="Logging level")
def cli(log_level):
    """Relay SDK CLI"""
    logging.basicConfig(level=log_level.upper(), format="%(levelname)s: %(message)s")


@cli.command()
@click.argument("method")
@click.argument("url")
@click.option("-H", "--header", "headers", multiple=True, help="Header as 'Name: value'")
@click.option("-q", "--query", "query", multiple=True, help="Query parameter as key=value")
@click.option("--json", "json_body", default=None, help="JSON body")
@click.option("--form", "form", multiple=True, help="Form field as key=value")
@click.option("--bearer", default=None, help="Bearer token")
@click.option("--sender", type=click.Choice(AVAILABLE_SENDERS), default=None, help="Sender backend")
@click.option("--async", "use_async", is_flag=True, help="Dispatch asynchronously")
@click.option("--mock-status", type=int, default=None, help="Return a mocked response with this status")
@click.option("--mock-body", default="", help="Body of the mocked response")
@click.option("-v", "--verbose", is_flag=True, help="Log request and response")
def send(method, url, headers, query, json_body, form, bearer, sender, use_async, mock_status, mock_body, verbose):
    """Send METHOD URL through a throwaway connector."""
    if json_body is not None and form:
        raise click.UsageError("--json and --form are mutually exclusive")

    settings = RelaySettings()
    if sender:
        settings.sender = sender

    connector_class = VerboseCliConnector if verbose else CliConnector
    connector = connector_class(settings=settings)

    if json_body is not None:
        request = JsonCliRequest().with_data(json.loads(json_body))
    elif form:
        request = FormCliRequest().with_data(_pairs(form, "=", "--form"))
    else:
        request = CliRequest()
    request.method = method
    request.endpoint = url
    request.with_headers(_pairs(headers, ":", "--header")).with_query(_pairs(query, "=", "--query"))
    if bearer:
        request.with_auth(TokenAuthenticator(bearer))

    mock_client = None
    if mock_status is not None:
        mock_client = MockClient([MockResponse(mock_body, status=mock_status)])

    try:
        if use_async:

            async def _run():
                try:
                    return await connector.send_async(request, mock_client=mock_client)
                finally:
                    await connector.aclose()

            response = asyncio.run(_run())
        else:
            with connector:
                response = connector.send(request, mock_client=mock_client)
    except RelayError as exc:
        logger.debug("Request failed", exc_info=True)
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)

    click.echo(f"{response.status} {response.raw.reason}".rstrip())
    click.echo(response.text)
    if response.failed():
        sys.exit(1)


@cli.command()
def senders():
    """List the available sender backends."""
    default = RelaySettings().sender
    for name in AVAILABLE_SENDERS:
        click.echo(f"{name}{' (default)' if name == default else ''}")


if __name__ == "__main__":
    cli()
