"""
CLI entrypoint for logtcp.

Example:
    logtcp --host collector --port 5170 --tls --key $LOGTCP_KEY ship events.jsonl
"""

from __future__ import annotations

import json
import pathlib
import sys
from dataclasses import dataclass
from typing import Dict, Optional

import typer
from dotenv import load_dotenv
from rich import print_json

from .records import LogRecord
from .writer import TcpLogWriter

# Load .env automatically so LOGTCP_HOST / LOGTCP_KEY etc. can be stored there.
load_dotenv()

app = typer.Typer(
    help="Ship newline-delimited log records to a TCP or TLS collector.",
    no_args_is_help=True,
)


@dataclass
class CLIConfig:
    overrides: Dict[str, str]


@app.callback()
def main(
    ctx: typer.Context,
    host: Optional[str] = typer.Option(None, "--host", help="Collector hostname (default: LOGTCP_HOST or localhost)"),
    port: Optional[int] = typer.Option(None, "--port", min=1, max=65535, help="Collector TCP port"),
    retry: Optional[bool] = typer.Option(None, "--retry/--no-retry", help="Drop records instead of failing while disconnected"),
    tls: Optional[bool] = typer.Option(None, "--tls/--no-tls", help="Connect with TLS"),
    cert: Optional[str] = typer.Option(None, "--cert", help="CA bundle used to verify the collector"),
    key: Optional[str] = typer.Option(None, "--key", help="Pre-shared key announced after connecting"),
):
    """
    Capture destination options; anything left out falls back to LOGTCP_* settings.
    """
    overrides: Dict[str, str] = {}
    if host:
        overrides["host"] = host
    if port is not None:
        overrides["tcpport"] = str(port)
    if retry is not None:
        overrides["retry"] = "T" if retry else "F"
    if tls is not None:
        overrides["tls"] = "T" if tls else "F"
    if cert:
        overrides["cert"] = cert
    if key:
        overrides["key"] = key
    ctx.obj = CLIConfig(overrides=overrides)


def open_writer(ctx: typer.Context) -> TcpLogWriter:
    cfg: CLIConfig = ctx.obj
    writer = TcpLogWriter("logtcp-cli")
    if not writer.initialize(cfg.overrides):
        typer.echo("Could not connect to the collector", err=True)
        raise typer.Exit(code=1)
    return writer


@app.command("ship")
def ship(
    ctx: typer.Context,
    file: Optional[pathlib.Path] = typer.Argument(None, exists=True, readable=True, dir_okay=False,
                                                  help="JSON-lines file to send (default: stdin)"),
):
    """Send every JSON object in FILE as one record."""
    writer = open_writer(ctx)
    sent = 0
    stream = file.open("r", encoding="utf-8") if file else sys.stdin
    try:
        for lineno, line in enumerate(stream, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                data = json.loads(line)
            except json.JSONDecodeError as e:
                typer.echo(f"line {lineno}: invalid JSON ({e.msg})", err=True)
                raise typer.Exit(code=1)
            if not isinstance(data, dict):
                typer.echo(f"line {lineno}: expected a JSON object", err=True)
                raise typer.Exit(code=1)
            if not writer.write(LogRecord.from_mapping(data)):
                typer.echo(f"line {lineno}: sink disabled, stopping", err=True)
                raise typer.Exit(code=1)
            sent += 1
    finally:
        if file:
            stream.close()
        writer.shutdown()

    print_json(data={"records": sent, "dropped": writer.session.dropped})


@app.command("check")
def check(ctx: typer.Context):
    """Connect to the collector once (including TLS and key exchange) and disconnect."""
    writer = open_writer(ctx)
    connected = writer.connection.connected
    writer.shutdown()
    print_json(data={"destination": writer.destination.address, "connected": connected})
    if not connected:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
