import os
import socket
from typing import Optional

import click
from rich import box
from rich.panel import Panel
from rich.table import Table

from . import __version__
from .logging import get_console, setup_logging
from .server import DEFAULT_TIMEOUT, run_server
from .transfer import DEFAULT_WINDOW_MB

console = get_console()


def _lan_ip() -> str:
    try:
        s = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        s.settimeout(0.05)
        s.connect(("8.8.8.8", 80))
        ip: str = s.getsockname()[0]
        s.close()
        return ip
    except OSError:
        return "127.0.0.1"


@click.group(
    context_settings={"help_option_names": ["-h", "--help"]},
    invoke_without_command=False,
)
@click.version_option(version=__version__, prog_name="staticserve")
def cli() -> None:
    setup_logging("WARNING")


@cli.command("serve", short_help="Serve a directory over HTTP.")
@click.argument(
    "path",
    type=click.Path(exists=True, dir_okay=True, file_okay=False, path_type=str),
    default=".",
)
@click.option(
    "--host",
    default="0.0.0.0",
    show_default=True,
    help="Bind address (IPv4/IPv6 literal ok).",
)
@click.option("-p", "--port", type=int, default=8000, show_default=True, help="Port to listen on.")
@click.option(
    "--timeout",
    type=click.IntRange(1, 86400),
    default=DEFAULT_TIMEOUT,
    show_default=True,
    help="Per-connection idle/read/write timeout (seconds).",
)
@click.option(
    "--backlog",
    type=click.IntRange(1, 20000),
    default=128,
    show_default=True,
    help="Listen backlog size.",
)
@click.option(
    "--window-mb",
    type=click.IntRange(1, 1024),
    default=DEFAULT_WINDOW_MB,
    show_default=True,
    help="Bytes handed to sendfile per call on plaintext connections.",
)
@click.option(
    "--strict-paths",
    is_flag=True,
    help="Also canonicalize request paths and refuse anything outside PATH.",
)
@click.option(
    "--tls-cert",
    type=click.Path(exists=True, dir_okay=False, path_type=str),
    help="TLS certificate (PEM).",
)
@click.option(
    "--tls-key",
    type=click.Path(exists=True, dir_okay=False, path_type=str),
    help="TLS private key (PEM).",
)
@click.option("-v", "--verbose", is_flag=True, help="Log every request and transfer.")
def serve_cmd(
    path: str,
    host: str,
    port: int,
    timeout: int,
    backlog: int,
    window_mb: int,
    strict_paths: bool,
    tls_cert: Optional[str],
    tls_key: Optional[str],
    verbose: bool,
) -> None:
    if bool(tls_cert) != bool(tls_key):
        raise click.UsageError("--tls-cert and --tls-key must be given together.")
    setup_logging("INFO" if verbose else "WARNING")
    base = os.path.abspath(path)
    # the working root is the process cwd
    os.chdir(base)
    scheme = "https" if tls_cert else "http"
    table = Table.grid(padding=(0, 2))
    table.add_column(justify="right", style="bold cyan")
    table.add_column(style="bold white")
    table.add_row("Serving", base)
    table.add_row("Local", f"[green]{scheme}://localhost:{port}/[/]")
    table.add_row("Network", f"[green]{scheme}://{_lan_ip()}:{port}/[/]")
    if strict_paths:
        table.add_row("Paths", "strict (canonicalized)")

    console.print(
        Panel(
            table,
            title=f"[bold magenta]staticserve v{__version__}[/]",
            subtitle="Press Ctrl+C to stop",
            box=box.ROUNDED,
        ),
        soft_wrap=True,
    )
    try:
        run_server(
            host=host,
            port=port,
            timeout=timeout,
            backlog=backlog,
            window_mb=window_mb,
            strict_paths=strict_paths,
            tls_cert=tls_cert,
            tls_key=tls_key,
        )
    except KeyboardInterrupt:
        console.print("[yellow]Shutting down...[/]")


@cli.command("version", short_help="Show version and system info.")
def version_cmd():
    """Display version and system information."""
    import platform
    import sys

    info_table = Table.grid(padding=(0, 2))
    info_table.add_column(style="bold cyan")
    info_table.add_column(style="white")

    info_table.add_row("Version", __version__)
    info_table.add_row(
        "Python", f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}"
    )
    info_table.add_row("Platform", platform.system())
    info_table.add_row("sendfile", "yes" if hasattr(os, "sendfile") else "no (buffered fallback)")

    console.print(
        Panel(
            info_table,
            title="[bold magenta]staticserve[/]",
            subtitle="Static file server",
            box=box.ROUNDED,
        )
    )


def main():
    cli()
