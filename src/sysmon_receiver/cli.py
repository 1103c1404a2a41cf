"""Command-line interface for the sysmon receiver."""

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .config import PartitioningConfig, load_receiver_config
from .pipeline.decoder import DropReason, RecordDecoder
from .pipeline.receiver import MemorySink, SysmonReceiver
from .pipeline.router import SinkRouter
from .schema.models import BareField, TransformedFieldWithArg
from .schema.registry import SchemaRegistry, get_registry

app = typer.Typer(
    name="sysmon-receiver",
    help="Sysmon Receiver - decode system monitor telemetry into table rows",
    add_completion=False,
)
console = Console()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def _load_registry(schema_file: str) -> SchemaRegistry:
    if schema_file:
        return SchemaRegistry.from_yaml(Path(schema_file))
    return get_registry()


@app.command()
def schema(
    action: str = typer.Argument(..., help="Action: list, show"),
    record_type: str = typer.Option("", "--type", "-t", help="Record type (or wire tag)"),
    schema_file: str = typer.Option("", "--schema-file", help="YAML schema file (default: built-in)"),
):
    """Inspect record schemas and their sink configuration."""
    try:
        registry = _load_registry(schema_file)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    if action == "list":
        table = Table(title="Record Schemas")
        table.add_column("Record Type", style="cyan")
        table.add_column("Table", style="green")
        table.add_column("Fields", justify="right")
        table.add_column("Wire Aliases", style="yellow")

        aliases = registry.list_aliases()
        for rt in registry.list_record_types():
            entry = registry.get_schema(rt)
            table.add_row(
                rt.value,
                entry.table,
                str(entry.arity),
                ", ".join(tag for tag, target in aliases.items() if target == rt),
            )

        console.print(table)

    elif action == "show":
        if not record_type:
            console.print("[red]Error: --type required for 'show'[/red]")
            raise typer.Exit(1)

        entry = registry.get_schema(record_type)
        if entry is None:
            console.print(f"[red]Schema not found for {record_type}[/red]")
            raise typer.Exit(1)

        sink_config = SinkRouter(registry=registry).route(entry.record_type)
        partitioning = sink_config.partitioning
        panel = Panel(
            f"""[bold]Record Type:[/bold] {entry.record_type.value}
[bold]Table:[/bold] {entry.table}
[bold]Description:[/bold] {entry.description or 'N/A'}

[bold]Partition Bucket:[/bold] {partitioning.bucket_days} day(s)
[bold]Retention:[/bold] {partitioning.retention_days} day(s)
[bold]Index Fields:[/bold] {', '.join(partitioning.index_fields)}
""",
            title=f"Schema: {entry.record_type.value}",
            expand=False,
        )
        console.print(panel)

        fields_table = Table(title="Fields", show_header=True)
        fields_table.add_column("#", justify="right")
        fields_table.add_column("Name", style="cyan")
        fields_table.add_column("Transform", style="green")
        fields_table.add_column("Argument", style="yellow")

        for position, spec in enumerate(entry.fields, start=1):
            fields_table.add_row(
                str(position),
                spec.name,
                "" if isinstance(spec, BareField) else spec.transform.value,
                str(spec.argument) if isinstance(spec, TransformedFieldWithArg) else "",
            )

        console.print(fields_table)

    else:
        console.print(f"[red]Unknown action: {action}[/red]")
        raise typer.Exit(1)


@app.command()
def decode(
    files: list[Path] = typer.Argument(..., help="Files holding one serialized payload each"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Receiver config YAML"),
    schema_file: str = typer.Option("", "--schema-file", help="YAML schema file (default: built-in)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show diagnostics"),
):
    """Decode payload files and show the rows they would produce."""
    _configure_logging(verbose)

    try:
        registry = _load_registry(schema_file)
        if config:
            router = SinkRouter.from_config(load_receiver_config(config), registry=registry)
        else:
            router = SinkRouter(PartitioningConfig(), registry=registry)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Configuration error: {e}[/red]")
        raise typer.Exit(1)

    sink = MemorySink()
    receiver = SysmonReceiver(
        sink,
        decoder=RecordDecoder(registry=registry),
        router=router,
    )

    payloads = []
    for path in files:
        if not path.exists():
            console.print(f"[red]File not found: {path}[/red]")
            raise typer.Exit(1)
        payloads.append(path.read_bytes())

    result = receiver.handle_batch(payloads)

    if router.database is not None:
        db = router.database
        console.print(f"Sink database: [cyan]{db.user}@{db.host}:{db.port}/{db.database}[/cyan]")

    for table_name, rows in sink.rows.items():
        sink_config = sink.configurations[table_name]
        rows_table = Table(title=f"{table_name} ({len(rows)} rows)")
        for column in sink_config.fields:
            rows_table.add_column(column, overflow="fold")
        for row in rows:
            rows_table.add_row(*(repr(row[column]) for column in sink_config.fields))
        console.print(rows_table)

    _display_result(result)

    if result.dropped_total:
        raise typer.Exit(2)


def _display_result(result) -> None:
    console.print("\n[bold]Receiver Result[/bold]")

    table = Table(show_header=False, box=None)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")

    table.add_row("Received", str(result.received))
    table.add_row("Stored", str(result.decoded))
    for reason in DropReason:
        if reason in result.dropped:
            table.add_row(f"Dropped ({reason.value})", f"[red]{result.dropped[reason]}[/red]")
    if result.sink_errors:
        table.add_row("Sink errors", f"[red]{result.sink_errors}[/red]")

    console.print(table)


@app.command()
def version():
    """Show version information."""
    from . import __version__

    console.print(f"[bold]Sysmon Receiver[/bold] version: [green]{__version__}[/green]")


if __name__ == "__main__":
    app()
