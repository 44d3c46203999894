# === NAVMAP v1 ===
# {
#   "module": "DriverFetch.BinaryDownload.cli",
#   "purpose": "Typer CLI for fetching, listing, and hashing driver binaries",
#   "sections": [
#     {"id": "clicontext", "name": "CliContext", "anchor": "class-clicontext", "kind": "class"},
#     {"id": "main", "name": "main", "anchor": "function-main", "kind": "function"},
#     {"id": "fetch", "name": "fetch", "anchor": "function-fetch", "kind": "function"},
#     {"id": "list-cmd", "name": "list_cmd", "anchor": "function-list-cmd", "kind": "function"},
#     {"id": "digest-cmd", "name": "digest_cmd", "anchor": "function-digest-cmd", "kind": "function"},
#     {"id": "version-cmd", "name": "version_cmd", "anchor": "function-version-cmd", "kind": "function"}
#   ]
# }
# === /NAVMAP ===

"""Typer CLI for the binary downloader.

Provides:
- Global options (-v/-vv, --version)
- ``fetch``: run the download pipeline for a YAML repository manifest
- ``list``: show which artifacts a manifest selects, without network access
- ``digest``: print the checksum of a local file
- Exit codes: 2 for configuration problems, 1 for other download failures

Example:
    $ driverfetch fetch repository.yaml --arch 64bit --latest-only
"""

import json
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from DriverFetch.BinaryDownload import __version__
from DriverFetch.BinaryDownload.checksums import compute_digest
from DriverFetch.BinaryDownload.config import load_manifest, select_requests
from DriverFetch.BinaryDownload.errors import BinaryDownloadError, ConfigurationError
from DriverFetch.BinaryDownload.logging_config import setup_logging
from DriverFetch.BinaryDownload.models import ArtifactRequest, ExtractionResult
from DriverFetch.BinaryDownload.pipeline import DownloadOrchestrator

_console = Console()
_err_console = Console(stderr=True)

_VERBOSITY_LEVELS = {1: "INFO", 2: "DEBUG"}


class CliContext:
    """Per-invocation state shared between the callback and commands."""

    def __init__(self, verbosity: int = 0):
        self.verbosity = verbosity
        self.console = _console

    def log_level(self, configured: str) -> str:
        """Return the log level implied by ``-v`` flags, else ``configured``."""
        return _VERBOSITY_LEVELS.get(min(self.verbosity, 2), configured)


app = typer.Typer(
    name="driverfetch",
    help="Download and extract Selenium standalone driver binaries",
    no_args_is_help=True,
)

_context: Optional[CliContext] = None


def get_context() -> CliContext:
    """Return the current CLI context, creating a default one when absent."""
    global _context
    if _context is None:
        _context = CliContext()
    return _context


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"driverfetch {__version__}")
        raise typer.Exit(0)


def _fail(error: Exception) -> None:
    _err_console.print(f"[red]Error:[/red] {error}")
    code = 2 if isinstance(error, ConfigurationError) else 1
    raise typer.Exit(code)


@app.callback()
def main(
    verbosity: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase verbosity (-v for INFO, -vv for DEBUG)",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    """Fetch driver binaries described by a YAML repository manifest."""
    global _context
    _context = CliContext(verbosity=verbosity)


def _requests_table(requests: List[ArtifactRequest]) -> Table:
    table = Table(title="Selected binaries")
    table.add_column("Key", style="cyan")
    table.add_column("Archive")
    table.add_column("Hash")
    table.add_column("URL", overflow="fold")
    for request in requests:
        table.add_row(
            str(request.key),
            request.filename,
            request.digest_algorithm or "-",
            request.source_location,
        )
    return table


def _results_table(results: List[ExtractionResult]) -> Table:
    table = Table(title="Driver binaries")
    table.add_column("Key", style="cyan")
    table.add_column("Binary", overflow="fold")
    table.add_column("Archive")
    table.add_column("Status")
    for result in results:
        if result.extracted:
            status = "[green]extracted[/green]"
        else:
            status = "[yellow]kept existing[/yellow]"
        archive = result.archive.name + (" (cached)" if result.from_cache else "")
        table.add_row(str(result.key), str(result.binary_path), archive, status)
    return table


@app.command()
def fetch(
    manifest: Path = typer.Argument(..., help="YAML repository manifest"),
    root_dir: Optional[Path] = typer.Option(
        None, "--root-dir", help="Destination root for extracted binaries"
    ),
    download_dir: Optional[Path] = typer.Option(
        None, "--download-dir", help="Working directory for downloaded archives"
    ),
    retries: Optional[int] = typer.Option(
        None, "--retries", help="Download attempts per artifact"
    ),
    overwrite: Optional[bool] = typer.Option(
        None, "--overwrite/--no-overwrite", help="Re-extract binaries that already exist"
    ),
    check_hash: Optional[bool] = typer.Option(
        None, "--check-hash/--no-check-hash", help="Verify archives against their digest"
    ),
    system_proxy: Optional[bool] = typer.Option(
        None, "--system-proxy/--no-system-proxy", help="Honour proxy environment variables"
    ),
    category: Optional[List[str]] = typer.Option(
        None, "--category", help="Only fetch these key categories (repeatable)"
    ),
    arch: Optional[List[str]] = typer.Option(
        None, "--arch", help="Only fetch these architectures (repeatable)"
    ),
    latest_only: bool = typer.Option(
        False, "--latest-only", help="Keep only the newest version per driver"
    ),
    output_format: str = typer.Option("table", "--format", help="Output format: table or json"),
) -> None:
    """Download, verify, and extract the binaries a manifest describes.

    Example:
        $ driverfetch fetch repository.yaml --root-dir ./drivers --retries 3
    """
    ctx = get_context()
    if output_format not in {"table", "json"}:
        _fail(ConfigurationError(f"Unknown output format '{output_format}'"))

    try:
        resolved = load_manifest(manifest)
        config = resolved.defaults
        overrides = {
            "root_directory": root_dir,
            "download_directory": download_dir,
            "retry_attempts": retries,
            "overwrite_existing": overwrite,
            "check_file_hash": check_hash,
            "use_system_proxy": system_proxy,
        }
        for field, value in overrides.items():
            if value is not None:
                setattr(config, field, value)

        resolved.logging.level = ctx.log_level(resolved.logging.level)
        setup_logging(resolved.logging)

        requests = select_requests(resolved.requests, category, arch, latest_only)
        with DownloadOrchestrator(config, requests) as orchestrator:
            results = orchestrator.ensure_binaries()
    except (BinaryDownloadError, OSError) as exc:
        _fail(exc)

    if output_format == "json":
        typer.echo(json.dumps([result.to_mapping() for result in results], indent=2))
        return
    if not results:
        ctx.console.print("[yellow]No binaries selected[/yellow]")
        return
    ctx.console.print(_results_table(results))


@app.command("list")
def list_cmd(
    manifest: Path = typer.Argument(..., help="YAML repository manifest"),
    category: Optional[List[str]] = typer.Option(None, "--category"),
    arch: Optional[List[str]] = typer.Option(None, "--arch"),
    latest_only: bool = typer.Option(False, "--latest-only"),
) -> None:
    """Show the artifacts a manifest selects without downloading anything."""
    ctx = get_context()
    try:
        resolved = load_manifest(manifest)
    except BinaryDownloadError as exc:
        _fail(exc)
    requests = select_requests(resolved.requests, category, arch, latest_only)
    if not requests:
        ctx.console.print("[yellow]No binaries selected[/yellow]")
        return
    ctx.console.print(_requests_table(requests))


@app.command("digest")
def digest_cmd(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="File to hash"),
    algorithm: str = typer.Option("sha256", "--algorithm", "-a", help="Hash algorithm"),
) -> None:
    """Print the hexadecimal digest of a local file."""
    try:
        value = compute_digest(file, algorithm)
    except (BinaryDownloadError, OSError) as exc:
        _fail(exc)
    typer.echo(f"{value}  {file.name}")


@app.command("version")
def version_cmd() -> None:
    """Show version information."""
    typer.echo(f"driverfetch {__version__}")


__all__ = ["app", "CliContext", "get_context", "main"]
