"""PlotDesk CLI — run the gateway, mint dev tokens, watch live updates.

Usage:
    plotdesk serve                                  # Run the API + websocket gateway
    plotdesk token u-1 --role admin                 # Print a bearer token for a user
    plotdesk listen --token $TOKEN                  # Print envelopes + invalidations live
"""

from __future__ import annotations

import asyncio
import json
import os
from typing import Optional

import click

from plotdesk import __version__

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_WS_URL = "ws://localhost:8000/ws"


def _ws_url() -> str:
    return os.environ.get("PLOTDESK_WS_URL", DEFAULT_WS_URL)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _format_key(key: tuple) -> str:
    return " ".join(str(part) for part in key)


def _print_message(message: dict, keys: list) -> None:
    """Echo one envelope and the cache keys it invalidated."""
    click.secho(message.get("type", "?"), fg="cyan", bold=True, nl=False)
    click.echo(f"  {message.get('timestamp', '')}  {json.dumps(message.get('data', {}))}")
    for key in keys:
        click.echo(f"    invalidate {_format_key(key)}")


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="plotdesk")
def main():
    """PlotDesk — real-time update fan-out for the CRM dashboard."""


# ---------------------------------------------------------------------------
# plotdesk serve
# ---------------------------------------------------------------------------


@main.command()
@click.option("--host", default=None, help="Bind address (default: PLOTDESK_HOST)")
@click.option("--port", type=int, default=None, help="Port (default: PLOTDESK_PORT)")
@click.option("--reload", is_flag=True, help="Auto-reload on code changes")
def serve(host: Optional[str], port: Optional[int], reload: bool):
    """Run the API and websocket gateway with uvicorn."""
    import uvicorn

    from plotdesk.config import settings

    uvicorn.run(
        "plotdesk.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
    )


# ---------------------------------------------------------------------------
# plotdesk token
# ---------------------------------------------------------------------------


@main.command()
@click.argument("user_id")
@click.option(
    "--role",
    type=click.Choice(["admin", "salesperson"]),
    default="salesperson",
    show_default=True,
)
@click.option("--name", default="", help="Display name carried in the token")
@click.option("--email", default="", help="Email carried in the token")
@click.option("--days", type=int, default=None, help="Lifetime in days")
def token(user_id: str, role: str, name: str, email: str, days: Optional[int]):
    """Print a signed bearer token for USER_ID (local testing)."""
    from plotdesk.auth.jwt import create_access_token

    click.echo(create_access_token(user_id, role, name=name, email=email, expires_days=days))


# ---------------------------------------------------------------------------
# plotdesk listen
# ---------------------------------------------------------------------------


@main.command()
@click.option("--url", default=None, help="Gateway URL (default: PLOTDESK_WS_URL)")
@click.option("--token", "token_", envvar="PLOTDESK_TOKEN", help="Bearer token")
@click.option("--delay", type=float, default=None, help="Reconnect delay in seconds")
def listen(url: Optional[str], token_: Optional[str], delay: Optional[float]):
    """Subscribe like a dashboard would and print every update."""
    if not token_:
        click.secho(
            "Error: --token required (or set PLOTDESK_TOKEN env var)",
            fg="red",
            err=True,
        )
        raise SystemExit(1)

    try:
        asyncio.run(_listen(url or _ws_url(), token_, delay))
    except KeyboardInterrupt:
        click.echo("Stopped.")


async def _listen(url: str, token_: str, delay: Optional[float]) -> None:
    from plotdesk.client import InMemoryQueryCache, SubscriptionClient

    client = SubscriptionClient(
        url,
        InMemoryQueryCache(),
        token_,
        reconnect_delay=delay,
        on_message=_print_message,
    )
    click.echo(f"Listening on {url} (Ctrl+C to stop)")
    async with client:
        await asyncio.Event().wait()


if __name__ == "__main__":
    main()
