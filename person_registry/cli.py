"""
Command line interface for the Person Registry service.

Provides development and operational commands: configuration overview,
validation, one-off ingestion of a source file and the API server.
"""
import asyncio
import json
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from person_registry import __version__
from person_registry.config.logging_config import configure_logging
from person_registry.config.settings import (
    MonitoringSettings,
    get_environment_info,
    get_settings,
    validate_settings,
)
from person_registry.models.database import build_engine, create_tables
from person_registry.services.data_loader import DataLoader
from person_registry.services.record_parser import CsvRecordParser

console = Console()

PREVIEW_ROWS = 10


@click.group()
@click.version_option(version=__version__, prog_name="Person Registry")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.pass_context
def cli(ctx, verbose):
    """
    Person Registry CLI

    Ingest delimited person records and serve them over HTTP.
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose

    configure_logging(
        MonitoringSettings(log_level="DEBUG" if verbose else "WARNING", log_format="text")
    )

    if verbose:
        console.print(f"[green]Person Registry CLI v{__version__}[/green]")


@cli.command()
@click.pass_context
def info(ctx):
    """Show application information and configuration"""
    try:
        console.print("[bold blue]Application Information[/bold blue]")

        info_data = get_environment_info()

        table = Table(title="Configuration Status")
        table.add_column("Component", style="cyan", no_wrap=True)
        table.add_column("Status", style="green")
        table.add_column("Details", style="dim")

        table.add_row(
            "Application", info_data["app_name"], f"v{info_data['app_version']}"
        )
        table.add_row("Environment", info_data["environment"], "")
        table.add_row("Debug Mode", str(info_data["debug_mode"]), "")
        table.add_row("Database", info_data["database_backend"], "")
        table.add_row(
            "Ingestion",
            "✓ Enabled" if info_data["ingestion_enabled"] else "✗ Disabled",
            info_data["ingestion_source"],
        )
        table.add_row(
            "Logging", info_data["log_level"], info_data["log_format"]
        )
        table.add_row(
            "Prometheus",
            "✓ Enabled" if info_data["prometheus_enabled"] else "✗ Disabled",
            "",
        )

        console.print(table)

        if ctx.obj["verbose"]:
            console.print("\n[bold]Full Configuration:[/bold]")
            console.print_json(json.dumps(info_data, indent=2))

    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)


@cli.command()
def validate():
    """Validate application configuration"""
    try:
        warnings = validate_settings()
    except Exception as e:
        console.print(f"[red]✗ Validation failed: {e}[/red]")
        sys.exit(1)

    for warning in warnings:
        console.print(f"[yellow]! {warning}[/yellow]")

    console.print("[green]✓ Configuration valid[/green]")


@cli.command()
@click.argument("file_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--dry-run",
    is_flag=True,
    help="Parse and preview the records without saving them",
)
@click.option("--delimiter", default=",", show_default=True, help="Field delimiter")
@click.option("--encoding", default="utf-8", show_default=True, help="File encoding")
def ingest(file_path, dry_run, delimiter, encoding):
    """Parse a person source file and load it into the database"""
    console.print(f"[blue]Parsing file: {file_path}[/blue]")

    reader = CsvRecordParser(source=file_path, encoding=encoding, delimiter=delimiter)

    if dry_run:
        console.print("[yellow]DRY RUN MODE - Nothing will be saved[/yellow]")
        persons = reader.read_data()

        table = Table(title="Parsed Persons Preview")
        table.add_column("Last Name", style="cyan")
        table.add_column("First Name", style="cyan")
        table.add_column("Zip Code", style="yellow")
        table.add_column("City")
        table.add_column("Color", style="green")

        for person in persons[:PREVIEW_ROWS]:
            table.add_row(
                person.last_name,
                person.first_name,
                person.zip_code,
                person.city,
                person.color.display_name,
            )

        console.print(table)
        console.print(
            f"[green]Parsed {len(persons)} persons[/green]"
            f"[dim] (showing {min(len(persons), PREVIEW_ROWS)})[/dim]"
        )
        return

    try:
        saved = asyncio.run(_load(reader))
    except Exception as e:
        console.print(f"[red]Error loading file: {e}[/red]")
        sys.exit(1)

    if not saved:
        console.print("[yellow]No persons were loaded[/yellow]")
        sys.exit(1)

    console.print(f"[green]✓ Loaded {len(saved)} persons[/green]")


async def _load(reader: CsvRecordParser):
    settings = get_settings()
    engine = build_engine(settings.database)
    try:
        await create_tables(engine)
        session_maker = async_sessionmaker(
            engine, class_=AsyncSession, expire_on_commit=False
        )
        return await DataLoader(reader, session_maker, only_if_empty=False).load_data()
    finally:
        await engine.dispose()


@cli.command()
@click.option("--host", default=None, help="Host to bind to")
@click.option("--port", default=None, type=int, help="Port to bind to")
@click.option("--reload", is_flag=True, help="Enable auto-reload for development")
def serve(host, port, reload):
    """Start the API server"""
    import uvicorn

    settings = get_settings()
    host = host or settings.host
    port = port or settings.port

    console.print(f"[green]Starting server on {host}:{port}[/green]")
    uvicorn.run(
        "person_registry.api.main:app",
        host=host,
        port=port,
        reload=reload,
        log_level=settings.monitoring.log_level.lower(),
    )


if __name__ == "__main__":
    cli()
