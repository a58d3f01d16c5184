"""
QueryGovernor CLI - bound, estimate and analyze SQL from the terminal.

Usage:
    querygovernor classify "SELECT * FROM orders"
    querygovernor limit "SELECT * FROM orders" --limit 100 --offset 200
    querygovernor analyze explain.json
    querygovernor estimate "SELECT * FROM orders" --dsn postgresql://localhost/shop
    querygovernor rules
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from enum import Enum
from pathlib import Path
from typing import Annotated, Any, NoReturn, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from querygovernor import __version__
from querygovernor.config import DEFAULT_CONFIG, GovernorConfig, load_config
from querygovernor.engines import Engine
from querygovernor.estimator import RowEstimate, estimate
from querygovernor.exceptions import ConnectionFailedError, QueryGovernorError, UnsupportedEngineError
from querygovernor.plan.adapters import adapter_for, detect_adapter
from querygovernor.plan.analyzer import PlanAnalyzer
from querygovernor.plan.models import InsightStatus, PlanAnalysis, Severity
from querygovernor.plan.registry import get_registry
from querygovernor.sql.classifier import classify as classify_sql
from querygovernor.sql.limiter import apply_limit


class PlanEngine(str, Enum):
    """Engines accepted by the analyze command."""
    postgres = "postgres"
    mysql = "mysql"
    auto = "auto"


class LiveEngine(str, Enum):
    """Engines the estimate command can connect to."""
    postgres = "postgres"
    mysql = "mysql"


app = typer.Typer(
    name="querygovernor",
    help="Query governor and plan analyzer (PostgreSQL & MySQL)",
    no_args_is_help=True,
)

console = Console()
error_console = Console(stderr=True)

SEVERITY_STYLES = {
    Severity.CRITICAL: "red bold",
    Severity.WARNING: "yellow",
    Severity.INFO: "blue",
}

STATUS_STYLES = {
    InsightStatus.GOOD: "green",
    InsightStatus.WARNING: "yellow",
    InsightStatus.CRITICAL: "red bold",
}


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"QueryGovernor version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        Optional[bool],
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", help="Log debug output to stderr."),
    ] = False,
    config_file: Annotated[
        Optional[Path],
        typer.Option(
            "--config",
            "-c",
            help="Configuration file (YAML or JSON).",
            exists=True,
            dir_okay=False,
            resolve_path=True,
        ),
    ] = None,
) -> None:
    """QueryGovernor - keep ad-hoc queries bounded and explain why they are slow."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=error_console, show_path=False)],
        )

    config = DEFAULT_CONFIG
    if config_file is not None:
        try:
            config = load_config(config_file)
        except QueryGovernorError as e:
            _fail(e)
    ctx.obj = config


def _config(ctx: typer.Context) -> GovernorConfig:
    return ctx.obj if isinstance(ctx.obj, GovernorConfig) else DEFAULT_CONFIG


def _fail(error: QueryGovernorError) -> NoReturn:
    error_console.print(f"[red]Error:[/red] {escape(error.message)}")
    raise typer.Exit(code=1)


def _read_sql(sql: str) -> str:
    """'-' reads the statement from stdin."""
    if sql == "-":
        return sys.stdin.read()
    return sql


def _print_json(data: Any) -> None:
    console.print_json(json.dumps(data, indent=2))


@app.command()
def classify(
    sql: Annotated[str, typer.Argument(help="SQL statement, or '-' to read stdin")],
    json_output: Annotated[
        bool,
        typer.Option("--json", "-j", help="Output results as JSON"),
    ] = False,
) -> None:
    """
    Describe a statement: its kind and existing LIMIT/OFFSET.

    Examples:

        $ querygovernor classify "SELECT * FROM orders LIMIT 10"
    """
    descriptor = classify_sql(_read_sql(sql))

    if json_output:
        data = descriptor.model_dump(mode="json")
        data["needs_review"] = descriptor.needs_review
        _print_json(data)
        return

    table = Table(show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Kind", descriptor.kind.value.upper())
    table.add_row("Limit", _optional(descriptor.existing_limit))
    table.add_row("Offset", _optional(descriptor.existing_offset))
    table.add_row("Union", _yes_no(descriptor.is_union))
    table.add_row("CTE", _yes_no(descriptor.has_cte))
    table.add_row("Subquery", _yes_no(descriptor.has_subquery))
    console.print(table)

    if descriptor.needs_review:
        console.print("[yellow]A LIMIT added here bounds the whole statement's result.[/yellow]")


@app.command()
def limit(
    ctx: typer.Context,
    sql: Annotated[str, typer.Argument(help="SQL statement, or '-' to read stdin")],
    row_limit: Annotated[
        Optional[int],
        typer.Option("--limit", "-l", min=0, help="Rows to allow (default: configured page size)"),
    ] = None,
    offset: Annotated[
        int,
        typer.Option("--offset", "-o", min=0, help="Rows to skip"),
    ] = 0,
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Replace an existing LIMIT"),
    ] = False,
    json_output: Annotated[
        bool,
        typer.Option("--json", "-j", help="Output results as JSON"),
    ] = False,
) -> None:
    """
    Bound a SELECT with LIMIT/OFFSET.

    Non-SELECT statements are printed unchanged.

    Examples:

        $ querygovernor limit "SELECT * FROM orders" --limit 100
        $ querygovernor limit "SELECT * FROM orders LIMIT 5" --limit 100 --force
    """
    config = _config(ctx)
    effective = config.default_query_limit if row_limit is None else row_limit
    result = apply_limit(_read_sql(sql), effective, offset, force_override=force)

    if json_output:
        _print_json(result.model_dump(mode="json"))
        return

    console.print(result.sql, markup=False, highlight=False, soft_wrap=True)
    if result.advisory:
        error_console.print(f"[yellow]Note:[/yellow] {escape(result.advisory)}")
    if not result.was_limited and result.original_limit is not None:
        error_console.print(
            f"[dim]Kept existing LIMIT {result.original_limit} (use --force to replace it)[/dim]"
        )


@app.command()
def analyze(
    ctx: typer.Context,
    plan_file: Annotated[
        Path,
        typer.Argument(
            help="Path to EXPLAIN output file (JSON format)",
            exists=True,
            readable=True,
            resolve_path=True,
        ),
    ],
    engine: Annotated[
        PlanEngine,
        typer.Option("--engine", "-e", help="Engine (auto-detected if not specified)"),
    ] = PlanEngine.auto,
    json_output: Annotated[
        bool,
        typer.Option("--json", "-j", help="Output results as JSON"),
    ] = False,
) -> None:
    """
    Analyze EXPLAIN output for performance issues.

    Examples:

        # PostgreSQL
        $ psql -qAt -c "EXPLAIN (ANALYZE, BUFFERS, FORMAT JSON) SELECT * FROM users" > plan.json
        $ querygovernor analyze plan.json

        # MySQL
        $ mysql -e "EXPLAIN FORMAT=JSON SELECT * FROM users" > plan.json
        $ querygovernor analyze --engine mysql plan.json
    """
    config = _config(ctx)
    try:
        raw = plan_file.read_text()
        if engine == PlanEngine.auto:
            adapter = detect_adapter(raw)
            if not json_output:
                console.print(f"[dim]Detected engine: {adapter.engine}[/dim]\n")
        else:
            adapter = adapter_for(engine.value)
        root = adapter.to_root(raw)
    except QueryGovernorError as e:
        _fail(e)

    analysis = PlanAnalyzer(config=config).analyze(root)

    if json_output:
        data = analysis.model_dump(mode="json")
        data["summary"] = analysis.summary()
        data["engine"] = adapter.engine
        _print_json(data)
        return

    _render_analysis(analysis)


@app.command("estimate")
def estimate_command(
    ctx: typer.Context,
    sql: Annotated[str, typer.Argument(help="SQL statement, or '-' to read stdin")],
    dsn: Annotated[
        str,
        typer.Option("--dsn", "-d", help="Connection string or URL", envvar="QUERYGOVERNOR_DSN"),
    ],
    engine: Annotated[
        LiveEngine,
        typer.Option("--engine", "-e", help="Database engine"),
    ] = LiveEngine.postgres,
    timeout_ms: Annotated[
        Optional[int],
        typer.Option("--timeout-ms", min=1, help="Statement timeout (PostgreSQL)"),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option("--json", "-j", help="Output results as JSON"),
    ] = False,
) -> None:
    """
    Ask the planner how many rows a SELECT would return.

    Nothing is executed; only the plan is requested.

    Examples:

        $ querygovernor estimate "SELECT * FROM orders" --dsn postgresql://localhost/shop
        $ querygovernor estimate "SELECT * FROM orders" -e mysql --dsn mysql://root@localhost/shop
    """
    config = _config(ctx)
    statement = _read_sql(sql)
    try:
        result = asyncio.run(_estimate_live(statement, Engine(engine.value), dsn, timeout_ms, config))
    except QueryGovernorError as e:
        _fail(e)

    if json_output:
        _print_json(result.model_dump(mode="json"))
        return

    _render_estimate(result)


async def _estimate_live(
    sql: str,
    engine: Engine,
    dsn: str,
    timeout_ms: int | None,
    config: GovernorConfig,
) -> RowEstimate:
    from querygovernor.runners import MySQLRunner, PsycopgRunner

    runner: PsycopgRunner | MySQLRunner
    try:
        if engine == Engine.POSTGRES:
            runner = await PsycopgRunner.create(dsn, statement_timeout_ms=timeout_ms)
        elif engine == Engine.MYSQL:
            runner = await MySQLRunner.from_url(dsn)
        else:
            raise UnsupportedEngineError(engine.value, "Row estimation")
    except QueryGovernorError:
        raise
    except Exception as e:
        raise ConnectionFailedError(engine.value, str(e)) from e

    try:
        return await estimate(sql, engine, runner, config)
    finally:
        await runner.close()


@app.command()
def rules() -> None:
    """
    List all plan analysis rules.

    Shows rule IDs, descriptions, and severity levels.
    """
    registry = get_registry()

    table = Table()
    table.add_column("Rule ID", style="cyan")
    table.add_column("Severity")
    table.add_column("Description")

    for rule_cls in sorted(registry.all(), key=lambda r: r.rule_id):
        style = SEVERITY_STYLES[rule_cls.severity]
        table.add_row(
            rule_cls.rule_id,
            f"[{style}]{rule_cls.severity.value.upper()}[/{style}]",
            rule_cls.description,
        )

    console.print(table)


def _render_analysis(analysis: PlanAnalysis) -> None:
    insights = Table(show_header=False, box=None)
    insights.add_column("Label", style="bold")
    insights.add_column("Value")
    for insight in analysis.insights:
        style = STATUS_STYLES[insight.status]
        insights.add_row(insight.label, f"[{style}]{insight.value}[/{style}]")
    if analysis.insights:
        console.print(Panel(insights, title="Insights", border_style="dim"))

    if not analysis.warnings:
        console.print(Panel(
            "[green]No performance issues found![/green]\n\n"
            f"Analyzed {analysis.node_count} nodes.",
            title="QueryGovernor",
            border_style="green",
        ))
        return

    console.print(f"[bold]Found {len(analysis.warnings)} issue(s):[/bold]\n")

    for warning in analysis.ranked_warnings():
        style = SEVERITY_STYLES[warning.severity]
        console.print(f"[{style}][{warning.severity.value.upper()}][/{style}] {warning.title}")
        console.print(f"   [dim]{escape(warning.description)}[/dim]")
        if warning.node_path:
            console.print(f"   [dim]at {escape(warning.node_path)}[/dim]")
        console.print()

    console.print(f"[dim]Analyzed {analysis.node_count} nodes[/dim]")


def _render_estimate(result: RowEstimate) -> None:
    if result.error:
        console.print(f"[yellow]{result.error}[/yellow]")
        return

    console.print(f"Estimated rows: [bold]{result.estimated_rows:,}[/bold]")
    if result.warning:
        console.print(f"[yellow]{escape(result.warning)}[/yellow]")


def _optional(value: int | None) -> str:
    return "-" if value is None else str(value)


def _yes_no(value: bool) -> str:
    return "yes" if value else "no"


if __name__ == "__main__":
    app()
