import asyncio
import json
import logging
import time
from datetime import timedelta

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)

from logsink.constants import DEFAULT_BATCH_POSTING_LIMIT, DEFAULT_TABLE_NAME
from logsink.core.columns import ColumnConfig, ColumnsConfig, parse_column_spec
from logsink.core.models import LogEvent, LogEventLevel

console = Console()


def _columns_callback(specs: tuple[str, ...]):
    parsed: list[ColumnConfig] = []
    for spec in specs:
        try:
            parsed.append(parse_column_spec(spec))
        except ValueError as e:
            raise click.BadParameter(f"{spec!r}: {e}", param_hint="--column") from e

    def apply(cols: ColumnsConfig) -> None:
        for col in parsed:
            cols.add_column_for_property(col.property, col.type, col.name)

    return apply


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Debug logging")
def cli(verbose: bool) -> None:
    """logsink: batch structured log events into a SQL table."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


@cli.command("create-table")
@click.argument("target")
@click.option("--table", default=DEFAULT_TABLE_NAME, show_default=True, help="Destination table name")
@click.option("--column", "columns", multiple=True, help="Property[:TYPE[:ColumnName]]; repeat for more")
def create_table_cmd(target: str, table: str, columns: tuple[str, ...]) -> None:
    """Create the destination table in TARGET (DuckDB path or SQLAlchemy URL)."""
    from logsink.configuration import build_sink
    from logsink.core.schema import properties_column_type

    try:
        sink = build_sink(target, table_name=table, auto_create_table=True, columns=_columns_callback(columns))
    except click.ClickException:
        raise
    except Exception as e:
        raise click.ClickException(f"{type(e).__name__}: {e}") from e

    sink.close()
    version = sink.engine_version
    ptype = properties_column_type(version, sink.provider.dialect)
    console.print(
        f"[bold]table ready[/]: {table}  "
        f"(engine={sink.provider.dialect.name} {version}, Properties={ptype}, "
        f"additional columns={len(sink.columns)})"
    )


@cli.command("ingest")
@click.argument("target")
@click.argument("events_file", type=click.File("r"))
@click.option("--table", default=DEFAULT_TABLE_NAME, show_default=True, help="Destination table name")
@click.option("--column", "columns", multiple=True, help="Property[:TYPE[:ColumnName]]; repeat for more")
@click.option("--batch-size", type=int, default=DEFAULT_BATCH_POSTING_LIMIT, show_default=True, help="Events per INSERT")
@click.option("--period", type=float, default=1.0, show_default=True, help="Seconds between flushes")
@click.option("--utc/--no-utc", default=False, show_default=True, help="Store timestamps converted to UTC")
@click.option("--auto-create/--no-auto-create", default=True, show_default=True, help="Create the table if missing")
@click.option(
    "--min-level",
    type=click.Choice([lvl.name for lvl in LogEventLevel], case_sensitive=False),
    default=LogEventLevel.Verbose.name,
    show_default=True,
    help="Skip events below this level",
)
def ingest_cmd(
    target: str,
    events_file,
    table: str,
    columns: tuple[str, ...],
    batch_size: int,
    period: float,
    utc: bool,
    auto_create: bool,
    min_level: str,
) -> None:
    """Load JSON-lines events from EVENTS_FILE into TARGET."""
    from logsink.configuration import batcher_for, build_sink

    try:
        sink = build_sink(
            target,
            table_name=table,
            batch_posting_limit=batch_size,
            period=timedelta(seconds=period),
            store_timestamp_in_utc=utc,
            auto_create_table=auto_create,
            minimum_level=LogEventLevel.parse(min_level),
            columns=_columns_callback(columns),
        )
    except click.ClickException:
        raise
    except Exception as e:
        raise click.ClickException(f"{type(e).__name__}: {e}") from e

    events: list[LogEvent] = []
    bad = 0
    for lineno, line in enumerate(events_file, start=1):
        if not line.strip():
            continue
        try:
            events.append(LogEvent.from_dict(json.loads(line)))
        except ValueError as e:
            bad += 1
            console.print(f"[yellow]skipping line {lineno}[/]: {e}")

    async def run() -> None:
        t0 = time.time()
        progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold]ingesting[/]"),
            BarColumn(),
            MofNCompleteColumn(),
            TextColumn("•"),
            TimeElapsedColumn(),
            transient=False,
            expand=True,
        )
        batcher = batcher_for(sink)
        with progress:
            task = progress.add_task(description=table, total=len(events))
            async with batcher:
                for ev in events:
                    batcher.emit(ev)
                    if batcher.buffered >= batch_size:
                        await batcher.flush()
                        progress.update(task, completed=batcher.stats.written + batcher.stats.filtered)
            progress.update(task, completed=batcher.stats.written + batcher.stats.filtered)

        stats = batcher.stats
        elapsed = time.time() - t0
        console.print(f"[bold]done[/]: {stats.written} events • {stats.batches} batches • {elapsed:.2f}s")
        console.print(
            f"[bold]summary[/]: "
            f"[green]written[/]={stats.written}  "
            f"[red]dropped[/]={stats.dropped}  "
            f"[yellow]skipped[/]={bad}  "
            f"filtered={stats.filtered}  "
            f"(failed flushes={stats.failed_flushes})"
        )
        if stats.dropped:
            raise click.ClickException(f"{stats.dropped} events could not be written")

    try:
        asyncio.run(run())
    finally:
        sink.close()


if __name__ == "__main__":
    cli()
