"""
CLI interface for the depreciation scheduler.

Provides command-line access to schedule generation and the record store.
"""

import sys
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from asset_depreciation.config.loader import AppConfig, resolve_config
from asset_depreciation.core.handlers import parse_asset_input
from asset_depreciation.core.schedule import generate_schedule
from asset_depreciation.exceptions import DepreciationError
from asset_depreciation.logging_config import configure_logging
from asset_depreciation.storage.models import AssetDepreciationRecord
from asset_depreciation.storage.repository import get_repository

app = typer.Typer()
console = Console()

EXIT_CODE_PASS = 0
EXIT_CODE_FAIL = 1


class _State:
    config: Optional[AppConfig] = None


state = _State()


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    config: Optional[str] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to YAML configuration file"
    ),
    db: Optional[str] = typer.Option(
        None,
        "--db",
        help="Path to SQLite database file"
    )
):
    """Asset Depreciation Scheduler CLI."""
    try:
        state.config = resolve_config(config, db)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error loading configuration:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)
    configure_logging(state.config.logging.level)
    if ctx.invoked_subcommand is None:
        console.print("Asset Depreciation Scheduler - Use --help to see available commands")


def _repository():
    return get_repository(state.config.database.path)


def _payload(
    asset_id: str,
    company_id: str,
    financial_year: str,
    initial_cost: float,
    rate: float,
    month: Optional[int],
    mfd: Optional[str]
) -> dict:
    return {
        "assetId": asset_id,
        "companyId": company_id,
        "financialYear": financial_year,
        "initialCost": initial_cost,
        "depreciationPercentage": rate,
        "month": month,
        "mfd": mfd,
    }


def _format_currency(amount: float) -> str:
    """Format amount with thousands separator, keeping the sign."""
    sign = "-" if amount < 0 else ""
    return f"{sign}{abs(amount):,.2f}"


def _display_records(records: List[AssetDepreciationRecord], title: str) -> None:
    """Display records as a table."""
    table = Table(title=title)
    table.add_column("Asset")
    table.add_column("Company")
    table.add_column("FY")
    table.add_column("Month", justify="right")
    table.add_column("Monthly", justify="right")
    table.add_column("Value", justify="right")
    table.add_column("Mfg", justify="right")

    for record in records:
        if record.manufacturing_year:
            mfg = f"{record.manufacturing_year}-{record.manufacturing_month:02d}"
        elif record.manufacturing_month:
            mfg = f"{record.manufacturing_month:02d}"
        else:
            mfg = "-"
        table.add_row(
            record.asset_id,
            record.company_id,
            record.financial_year,
            str(record.month),
            _format_currency(record.monthly_depreciation_cost),
            _format_currency(record.total_depreciated_cost),
            mfg,
        )
    console.print(table)


@app.command()
def init():
    """Initialize the schedule database."""
    try:
        _repository().initialize()
        console.print("[green]✓[/] Database initialized successfully")
        sys.exit(EXIT_CODE_PASS)
    except DepreciationError as e:
        console.print(f"[red]Error initializing database:[/] {e.message}")
        sys.exit(EXIT_CODE_FAIL)


@app.command()
def add(
    asset_id: str = typer.Option(..., "--asset-id", "-a", help="Asset identifier"),
    company_id: str = typer.Option(..., "--company-id", help="Company identifier"),
    financial_year: str = typer.Option(..., "--financial-year", "-y", help="Financial year, e.g. 2024-25"),
    initial_cost: float = typer.Option(..., "--initial-cost", help="Original asset value"),
    rate: float = typer.Option(..., "--rate", "-r", help="Annual depreciation percentage"),
    month: Optional[int] = typer.Option(None, "--month", "-m", help="Schedule month to depreciate up to"),
    mfd: Optional[str] = typer.Option(None, "--mfd", help="Manufacturing date (ISO-8601)")
):
    """Generate a schedule and save it."""
    repository = _repository()
    try:
        repository.initialize()
    except DepreciationError as e:
        console.print(f"[red]Error:[/] {e.message}")
        sys.exit(EXIT_CODE_FAIL)

    try:
        asset = parse_asset_input(
            _payload(asset_id, company_id, financial_year, initial_cost, rate, month, mfd)
        )
        records = generate_schedule(asset, policy=state.config.schedule_policy())
        repository.insert_many(records)
    except DepreciationError as e:
        console.print(f"[red]Error:[/] {e.message}")
        sys.exit(EXIT_CODE_FAIL)

    console.print(f"[green]✓[/] Asset saved successfully ({len(records)} records)")
    _display_records(records, f"Schedule for {asset_id}")
    sys.exit(EXIT_CODE_PASS)


@app.command()
def preview(
    asset_id: str = typer.Option("preview", "--asset-id", "-a", help="Asset identifier"),
    company_id: str = typer.Option("", "--company-id", help="Company identifier"),
    financial_year: str = typer.Option("", "--financial-year", "-y", help="Financial year"),
    initial_cost: float = typer.Option(..., "--initial-cost", help="Original asset value"),
    rate: float = typer.Option(..., "--rate", "-r", help="Annual depreciation percentage"),
    month: Optional[int] = typer.Option(None, "--month", "-m", help="Schedule month to depreciate up to"),
    mfd: Optional[str] = typer.Option(None, "--mfd", help="Manufacturing date (ISO-8601)")
):
    """
    Print a schedule without saving it.

    This is a read-only operation; the database is not touched.
    """
    try:
        asset = parse_asset_input(
            _payload(asset_id, company_id, financial_year, initial_cost, rate, month, mfd)
        )
        records = generate_schedule(asset, policy=state.config.schedule_policy())
    except DepreciationError as e:
        console.print(f"[red]Error:[/] {e.message}")
        sys.exit(EXIT_CODE_FAIL)

    console.print(f"Monthly depreciation: {_format_currency(records[0].monthly_depreciation_cost)}")
    _display_records(records, f"Schedule preview for {asset_id}")
    sys.exit(EXIT_CODE_PASS)


@app.command("list")
def list_records(
    asset_id: Optional[str] = typer.Option(None, "--asset-id", "-a", help="Only show this asset"),
    company_id: Optional[str] = typer.Option(None, "--company-id", help="Only show this company")
):
    """List stored depreciation records."""
    try:
        records = _repository().find_all(asset_id=asset_id, company_id=company_id)
    except DepreciationError as e:
        if "no such table" in e.message.lower():
            console.print("[yellow]No depreciation records found[/] (run `asset-depreciation init` first)")
            sys.exit(EXIT_CODE_PASS)
        console.print(f"[red]Error:[/] {e.message}")
        sys.exit(EXIT_CODE_FAIL)

    if not records:
        console.print("[yellow]No depreciation records found[/]")
        sys.exit(EXIT_CODE_PASS)

    _display_records(records, "Depreciation records")
    sys.exit(EXIT_CODE_PASS)


@app.command()
def clear(
    yes: bool = typer.Option(False, "--yes", help="Skip the confirmation prompt")
):
    """Delete every stored depreciation record."""
    if not yes and not typer.confirm("Delete all depreciation records?"):
        console.print("Aborted")
        sys.exit(EXIT_CODE_PASS)

    try:
        deleted = _repository().delete_all()
    except DepreciationError as e:
        console.print(f"[red]Error:[/] {e.message}")
        sys.exit(EXIT_CODE_FAIL)

    console.print(f"[green]✓[/] Deleted {deleted} records")
    sys.exit(EXIT_CODE_PASS)


if __name__ == "__main__":
    app()
