"""Interactive confirmation of outgoing write requests."""

import json
import logging
from typing import Any

import httpx
from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table

logger = logging.getLogger(__name__)
console = Console()

SENSITIVE_HEADERS = {"authorization", "x-everit-api-key", "cookie"}
READ_ONLY_METHODS = {"GET", "HEAD", "OPTIONS"}


def redact(value: str) -> str:
    """Keep only the first and last four characters of a secret."""
    if len(value) <= 8:
        return "****"
    return f"{value[:4]}...{value[-4:]}"


def redact_headers(headers: dict[str, str]) -> dict[str, str]:
    """Redact credentials from a header mapping."""
    return {
        key: redact(value) if key.lower() in SENSITIVE_HEADERS else value
        for key, value in headers.items()
    }


def _format_payload(content: bytes) -> str:
    """Pretty-print a JSON request body."""
    try:
        return json.dumps(json.loads(content), indent=2)
    except (json.JSONDecodeError, UnicodeDecodeError):
        return "[binary data]"


def _ask() -> bool:
    """Ask until the user answers yes or no."""
    while True:
        answer = console.input("[bold cyan]Send this request? [y/n][/bold cyan] ").strip().lower()
        if answer in ("y", "yes"):
            return True
        if answer in ("n", "no"):
            return False
        console.print("[yellow]Please enter 'y' or 'n'[/yellow]")


class ConfirmationTransport(httpx.BaseTransport):
    """httpx transport that asks before every request that changes data.

    Read-only requests pass straight through so fetching entries and
    resolving ids stays quiet.
    """

    def __init__(self, transport: httpx.BaseTransport) -> None:
        """Initialize with the transport that sends confirmed requests."""
        self.transport = transport

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        """Show a write request and send it only if the user agrees."""
        if request.method in READ_ONLY_METHODS:
            return self.transport.handle_request(request)

        console.rule(f"[bold blue]{request.method} {request.url}[/bold blue]")

        table = Table(title="Headers", show_header=True, header_style="bold magenta")
        table.add_column("Key", style="cyan")
        table.add_column("Value", style="green")
        for key, value in redact_headers(dict(request.headers)).items():
            table.add_row(key, value)
        console.print(table)

        if request.content:
            console.print(Syntax(_format_payload(request.content), "json", theme="monokai"))

        if not _ask():
            logger.info(f"Request declined: {request.method} {request.url}")
            raise httpx.RequestError("API call cancelled by user", request=request)

        return self.transport.handle_request(request)

    def close(self) -> None:
        """Close the wrapped transport."""
        self.transport.close()


def create_confirming_client(
    transport: httpx.BaseTransport | None = None,
    **kwargs: Any,
) -> httpx.Client:
    """Create an httpx client that confirms write requests.

    Args:
        transport: Transport to wrap. Defaults to a plain HTTP transport.
        **kwargs: Passed to httpx.Client.
    """
    return httpx.Client(
        transport=ConfirmationTransport(transport or httpx.HTTPTransport()),
        **kwargs,
    )
