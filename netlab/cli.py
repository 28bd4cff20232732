from __future__ import annotations

import asyncio
import importlib.metadata as md
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any, TypeVar

import typer
from rich.console import Console
from rich.table import Table

from .apps.netlab_core.service import WiFiService, create_bus
from .config import NetlabConfig, load_config, resolve_config_path
from .core.errors import NetlabError
from .domain.models import (
    ConnectRequest,
    EapConfig,
    EnterpriseSecret,
    HotspotRequest,
    OpenSecret,
    PassphraseSecret,
    ScanRequest,
)
from .logsetup import setup_logging

# Typer application: tests import this
app = typer.Typer(no_args_is_help=True, add_completion=False, help="netlab WiFi CLI")
console = Console()

T = TypeVar("T")


def _bind_to_url(host: str, port: int, path: str = "") -> str:
    # If bound to 0.0.0.0 / ::, show localhost for a clickable URL.
    safe_host = "127.0.0.1" if host in ("0.0.0.0", "::") else host
    return f"http://{safe_host}:{port}{path}"


def _load(ctx: typer.Context) -> NetlabConfig:
    cfg: NetlabConfig = ctx.obj["cfg"]
    return cfg


def _run_with_service(ctx: typer.Context, op: Callable[[WiFiService], Awaitable[T]]) -> T:
    """Run one service operation on a fresh event loop; errors exit with code 1."""
    cfg = _load(ctx)

    async def _go() -> T:
        service = WiFiService(create_bus(cfg, mock=ctx.obj["mock"]), cfg)
        try:
            return await op(service)
        finally:
            await service.close()

    try:
        return asyncio.run(_go())
    except NetlabError as exc:
        console.print(f"[red]{type(exc).__name__}:[/red] {exc}")
        raise typer.Exit(code=1) from exc


@app.callback()
def main(
    ctx: typer.Context,
    config: Path | None = typer.Option(None, "--config", "-c", help="Config file"),
    mock: bool = typer.Option(False, "--mock", help="Use the in-memory NetworkManager bus"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Entry point for `netlab` command."""
    resolved = resolve_config_path(config)
    try:
        cfg = load_config(resolved)
    except ValueError as exc:
        console.print(f"Config validation failed: {exc}")
        raise typer.Exit(code=1) from exc
    setup_logging(cfg.logging, verbose=verbose)
    ctx.obj = {"cfg": cfg, "config_path": resolved, "mock": mock or cfg.bus.mock}


@app.command()
def version() -> None:
    """Print version information."""
    try:
        console.print(f"netlab {md.version('netlab')}")
    except md.PackageNotFoundError:
        from . import __version__

        console.print(f"netlab {__version__}")


@app.command(name="config-validate")
def config_validate(ctx: typer.Context) -> None:
    """Validate and show resolved configuration."""
    cfg = _load(ctx)
    path: Path = ctx.obj["config_path"]
    console.print(f"Using config: {path}{'' if path.exists() else ' (not found, defaults)'}")
    console.print("Config OK:")
    console.print(f"- web: {_bind_to_url(cfg.web.bind_host, cfg.web.bind_port, '/api/health')}")
    console.print(f"- bus: {'mock' if ctx.obj['mock'] else cfg.bus.service_name}")
    console.print(
        f"- timeouts: connect {cfg.wifi.connect_timeout:g}s, "
        f"hotspot {cfg.wifi.hotspot_timeout:g}s, scan cap {cfg.wifi.scan_max_seconds}s"
    )


@app.command()
def scan(
    ctx: typer.Context,
    interface: str | None = typer.Option(None, "--interface", "-i", help="Only scan this interface"),
    max_time: int = typer.Option(0, "--max-time", help="Seconds before returning partial results"),
) -> None:
    """Scan for WiFi access points."""
    request = ScanRequest(interface=interface, max_time_seconds=max_time)
    response = _run_with_service(ctx, lambda s: s.scan(request))

    table = Table(title=f"{len(response.access_points)} access points")
    for column in ("SSID", "BSSID", "Ch", "dBm", "Signal", "Security"):
        table.add_column(column)
    for ap in sorted(response.access_points, key=lambda a: a.rssi, reverse=True):
        table.add_row(
            ap.ssid or "[dim]<hidden>[/dim]",
            ap.bssid,
            str(ap.channel or "?"),
            str(ap.rssi),
            ap.signal_rating.value,
            ap.security_type.value,
        )
    console.print(table)


@app.command()
def connect(
    ctx: typer.Context,
    ssid: str = typer.Argument(..., help="Network SSID"),
    password: str | None = typer.Option(None, "--password", "-p", help="WPA passphrase"),
    open_network: bool = typer.Option(False, "--open", help="Network has no security"),
    identity: str | None = typer.Option(None, "--identity", help="EAP identity"),
    eap_password: str = typer.Option("", "--eap-password", help="EAP password"),
    client_cert: str | None = typer.Option(None, "--client-cert", help="EAP client certificate path"),
    ca_cert: str | None = typer.Option(None, "--ca-cert", help="EAP CA certificate path"),
) -> None:
    """Connect to SSID as a client."""
    secret: Any
    if identity:
        secret = EnterpriseSecret(
            eap=EapConfig(
                identity=identity,
                password=eap_password,
                client_certificate=client_cert,
                ca_certificate=ca_cert,
            )
        )
    elif password:
        secret = PassphraseSecret(passphrase=password)
    elif open_network:
        secret = OpenSecret()
    else:
        console.print("[yellow]Specify --password, --open or --identity[/yellow]")
        raise typer.Exit(code=2)

    request = ConnectRequest(ssid=ssid, secret=secret)
    _run_with_service(ctx, lambda s: s.connect(request))
    console.print(f"[green]Connected to {ssid}[/green]")


@app.command()
def hotspot(
    ctx: typer.Context,
    ssid: str = typer.Option(..., "--ssid", help="Hotspot SSID"),
    password: str = typer.Option(..., "--password", "-p", help="WPA2 passphrase (8-63 chars)"),
    interface: str | None = typer.Option(None, "--interface", "-i", help="WiFi interface"),
) -> None:
    """Start a WPA2 hotspot."""
    if not 8 <= len(password) <= 63:
        console.print("[yellow]Passphrase must be 8-63 characters[/yellow]")
        raise typer.Exit(code=2)

    request = HotspotRequest(ssid=ssid, passphrase=password, interface=interface)
    response = _run_with_service(ctx, lambda s: s.start_hotspot(request))
    console.print(f"[green]Hotspot {ssid} active[/green]")
    console.print({
        "profile": response.profile_path,
        "active_connection": response.active_connection_path,
        "device": response.device_path,
        "replaced": response.replaced_profiles,
    })


@app.command(name="check-connectivity")
def check_connectivity(
    ctx: typer.Context,
    timeout_ms: int = typer.Option(0, "--timeout-ms", help="Probe timeout (0 = config)"),
) -> None:
    """Probe internet connectivity."""
    response = _run_with_service(ctx, lambda s: s.check_connectivity(timeout_ms))
    if response.is_connected:
        console.print(f"[green]Online[/green] ({response.elapsed_ms:.0f}ms)")
    else:
        console.print(f"[yellow]Offline[/yellow] (HTTP {response.status_code})")
        raise typer.Exit(code=1)


@app.command()
def serve(
    ctx: typer.Context,
    host: str | None = typer.Option(None, "--host", help="Bind host"),
    port: int | None = typer.Option(None, "--port", help="Bind port"),
) -> None:
    """Serve the HTTP API with uvicorn."""
    import uvicorn

    from .apps.netlab_api.server import create_app

    cfg = _load(ctx)
    if not cfg.web.enabled:
        console.print("[yellow]Web API is disabled (web.enabled: false)[/yellow]")
        raise typer.Exit(code=1)
    bind_host = host or cfg.web.bind_host
    bind_port = port or cfg.web.bind_port
    service = WiFiService(create_bus(cfg, mock=ctx.obj["mock"]), cfg)
    console.print(f"Serving netlab API on {_bind_to_url(bind_host, bind_port, '/api/docs')}")
    uvicorn.run(
        create_app(service, cfg),
        host=bind_host,
        port=bind_port,
        log_level="debug" if cfg.web.debug else "info",
    )


# Click command export
cli = typer.main.get_command(app)

__all__ = ["app", "cli"]

if __name__ == "__main__":
    app()
