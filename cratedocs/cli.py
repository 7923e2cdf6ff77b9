"""Thin CLI wrapper for cratedocs.

This module provides the command-line interface using Typer.
All business logic is delegated to core modules.
"""

import json
import logging
from typing import TYPE_CHECKING, Annotated

import typer
from rich.console import Console
from rich.table import Table

from cratedocs import __version__
from cratedocs.config import get_settings, print_settings_json

if TYPE_CHECKING:
    from cratedocs.queue.service import BuildQueue

app = typer.Typer(
    name="cratedocs",
    help="cratedocs - crate documentation build history and rebuild queue",
    no_args_is_help=True,
)
console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"cratedocs version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """cratedocs - crate documentation build history and rebuild queue."""
    logging.basicConfig(
        level=get_settings().log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command()
def config(
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
) -> None:
    """Show effective configuration."""
    settings = get_settings()
    if json_output:
        console.print(print_settings_json(settings))
        return

    token_display = "(set)" if settings.cratesio_token else "(not set, rebuilds disabled)"
    console.print("[bold]Effective Configuration:[/bold]")
    console.print()
    console.print(f"  Database URL:        {settings.db_url}")
    console.print(f"  Log level:           {settings.log_level}")
    console.print(f"  Rebuild token:       {token_display}")
    console.print(f"  Build attempts:      {settings.build_attempts}")
    console.print(f"  Queue workers:       {settings.queue_workers}")
    console.print(f"  CDN max age:         {settings.cdn_max_age}")


@app.command()
def serve(
    host: Annotated[str, typer.Option("--host", help="Bind address")] = "127.0.0.1",
    port: Annotated[int, typer.Option("--port", "-p", help="Bind port")] = 3000,
) -> None:
    """Run the HTTP server."""
    import uvicorn

    uvicorn.run("web.app:app", host=host, port=port)


def _open_queue() -> "BuildQueue":
    """Open the build queue configured in settings."""
    from cratedocs.db import create_all_tables, get_engine, get_session_factory
    from cratedocs.queue.service import BuildQueue

    settings = get_settings()
    engine = get_engine(settings.db_url)
    create_all_tables(engine)
    return BuildQueue(get_session_factory(engine), max_attempts=settings.build_attempts)


builds_app = typer.Typer(help="Inspect build history")
app.add_typer(builds_app, name="builds")


@builds_app.command("list")
def builds_list(
    name: Annotated[str, typer.Argument(help="Crate name")],
    version: Annotated[
        str, typer.Argument(help="Version, requirement or 'latest'")
    ] = "latest",
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON (API format)"),
    ] = False,
) -> None:
    """List finished builds of a release, most recent first."""
    from cratedocs.builds.store import fetch_builds
    from cratedocs.builds.views import project_api
    from cratedocs.db import create_all_tables, get_engine, get_session_factory
    from cratedocs.errors import CratedocsError
    from cratedocs.releases.service import match_version

    engine = get_engine(get_settings().db_url)
    create_all_tables(engine)
    factory = get_session_factory(engine)

    with factory() as session:
        try:
            matched = match_version(session, name, version)
            crate_name = matched.corrected_name or matched.name
            builds = fetch_builds(session, crate_name, matched.version)
        except CratedocsError as e:
            console.print(f"[red]Error:[/red] {e}")
            raise typer.Exit(code=1) from None

    if json_output:
        console.print(json.dumps(project_api(builds), indent=2))
        return

    table = Table(title=f"{crate_name} {matched.version}")
    table.add_column("ID", justify="right")
    table.add_column("Status")
    table.add_column("rustc")
    table.add_column("docs builder")
    table.add_column("Build time")
    for build in builds:
        table.add_row(
            str(build.id),
            build.status.value,
            build.rustc_version or "-",
            build.docsrs_version or "-",
            build.build_time.isoformat() if build.build_time else "-",
        )
    console.print(table)


queue_app = typer.Typer(help="Manage the build queue")
app.add_typer(queue_app, name="queue")


@queue_app.command("add")
def queue_add(
    name: Annotated[str, typer.Argument(help="Crate name")],
    version: Annotated[str, typer.Argument(help="Exact version")],
    priority: Annotated[
        int,
        typer.Option("--priority", "-p", help="Priority (lower builds first)"),
    ] = 0,
) -> None:
    """Add a crate version to the build queue."""
    queue = _open_queue()
    queue.add_crate(name, version, priority)
    console.print(f"Queued {name} {version} with priority {priority}")


@queue_app.command("list")
def queue_list(
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
) -> None:
    """List pending builds in build order."""
    queue = _open_queue()
    entries = queue.queued_crates()

    if json_output:
        data = [
            {
                "name": e.name,
                "version": e.version,
                "priority": e.priority,
                "registry": e.registry,
                "attempt": e.attempt,
            }
            for e in entries
        ]
        console.print(json.dumps(data, indent=2))
        return

    if not entries:
        console.print("The build queue is empty")
        return

    table = Table(title="Build queue")
    table.add_column("Crate")
    table.add_column("Version")
    table.add_column("Priority", justify="right")
    table.add_column("Attempt", justify="right")
    for e in entries:
        table.add_row(e.name, e.version, str(e.priority), str(e.attempt))
    console.print(table)


@queue_app.command("remove")
def queue_remove(
    name: Annotated[str, typer.Argument(help="Crate name")],
    version: Annotated[str, typer.Argument(help="Exact version")],
) -> None:
    """Remove a crate version from the build queue."""
    queue = _open_queue()
    if not queue.remove_crate(name, version):
        console.print(f"[red]Error:[/red] {name} {version} is not queued")
        raise typer.Exit(code=1)
    console.print(f"Removed {name} {version}")


@queue_app.command("count")
def queue_count() -> None:
    """Show the number of pending builds."""
    queue = _open_queue()
    console.print(str(queue.pending_count()))


if __name__ == "__main__":
    app()
