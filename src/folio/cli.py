"""Command-line interface for the portfolio registry."""

from __future__ import annotations

import typer
from rich.console import Console
from rich.table import Table

from folio.config.settings import Settings, get_settings, setup_logging
from folio.core.clock import IntervalClock, LogicalClock, ManualClock
from folio.core.errors import Result
from folio.core.models import MAX_PERCENTAGE
from folio.portfolio.engine import PortfolioEngine
from folio.storage import RegistryDatabase, get_registry_db

app = typer.Typer(
    name="folio",
    help="Registry of user-owned portfolios and their target allocations",
    add_completion=False,
)
console = Console()

CALLER_OPTION = typer.Option(..., "--caller", "-c", help="Identity making the call")
HEIGHT_OPTION = typer.Option(
    None, "--height", "-H", help="Logical time override (default: derived from clock)"
)


@app.callback()
def main_callback() -> None:
    """Initialize logging on startup."""
    settings = get_settings()
    setup_logging(settings)


def _clock(settings: Settings, height: int | None) -> LogicalClock:
    if height is not None:
        return ManualClock(height)
    return IntervalClock(settings.genesis, settings.block_interval_seconds)


def _open_registry(height: int | None = None) -> tuple[RegistryDatabase, PortfolioEngine]:
    """Load persisted state and wrap it in an engine."""
    settings = get_settings()
    db = get_registry_db(settings.database_path)
    state = db.load_state(default_owner=settings.protocol_owner)
    return db, PortfolioEngine(state, _clock(settings, height))


def _fail(result: Result) -> None:
    """Print a failed result and exit non-zero."""
    assert result.error is not None
    console.print(f"[red]Error: {result.error.label} (u{result.error.value})[/red]")
    raise typer.Exit(1)


def _split(raw: str) -> list[str]:
    return [part.strip() for part in raw.split(",")]


def _parse_ints(raw: str, name: str) -> list[int | None]:
    """Parse comma-separated integers, keeping empty items as None."""
    try:
        return [int(part) if part else None for part in _split(raw)]
    except ValueError:
        raise typer.BadParameter(f"{name} must be comma-separated integers") from None


def _format_bps(bps: int) -> str:
    return f"{bps / MAX_PERCENTAGE:.2%}"


@app.command()
def create(
    tokens: str = typer.Argument(..., help="Comma-separated asset identifiers"),
    percentages: str = typer.Argument(
        ..., help="Comma-separated target weights in basis points"
    ),
    caller: str = CALLER_OPTION,
    height: int | None = HEIGHT_OPTION,
) -> None:
    """Create a portfolio owned by the caller."""
    token_list = _split(tokens)
    pct_list = _parse_ints(percentages, "percentages")

    db, engine = _open_registry(height)
    result = engine.create_portfolio(token_list, pct_list, caller=caller)
    if not result.ok:
        _fail(result)

    db.save_state(engine.state)
    console.print(f"[green]Created portfolio {result.value}[/green] for {caller}")


@app.command()
def update(
    portfolio_id: int = typer.Argument(..., help="Portfolio id"),
    slot: int = typer.Argument(..., help="Slot index (0-9)"),
    percentage: int = typer.Argument(..., help="New target weight in basis points"),
    caller: str = CALLER_OPTION,
    height: int | None = HEIGHT_OPTION,
) -> None:
    """Change the target weight of one slot."""
    db, engine = _open_registry(height)
    result = engine.update_portfolio_allocation(
        portfolio_id, slot, percentage, caller=caller
    )
    if not result.ok:
        _fail(result)

    db.save_state(engine.state)
    console.print(
        f"[green]Portfolio {portfolio_id} slot {slot} set to "
        f"{_format_bps(percentage)}[/green]"
    )


@app.command()
def rebalance(
    portfolio_id: int = typer.Argument(..., help="Portfolio id"),
    caller: str = CALLER_OPTION,
    height: int | None = HEIGHT_OPTION,
) -> None:
    """Record a rebalance at the current logical time."""
    db, engine = _open_registry(height)
    result = engine.rebalance_portfolio(portfolio_id, caller=caller)
    if not result.ok:
        _fail(result)

    db.save_state(engine.state)
    console.print(
        f"[green]Portfolio {portfolio_id} rebalanced at height {engine.now}[/green]"
    )


@app.command()
def show(
    portfolio_id: int = typer.Argument(..., help="Portfolio id"),
) -> None:
    """Show a portfolio and its allocations."""
    _, engine = _open_registry()
    portfolio = engine.get_portfolio(portfolio_id)

    if portfolio is None:
        console.print(f"[yellow]Portfolio {portfolio_id} not found.[/yellow]")
        raise typer.Exit(1)

    status = "[green]Active[/green]" if portfolio.active else "[dim]Inactive[/dim]"
    console.print(f"\n[bold blue]Portfolio {portfolio.portfolio_id}[/bold blue] {status}")
    console.print(f"  Owner: {portfolio.owner}")
    console.print(f"  Created at: {portfolio.created_at}")
    console.print(f"  Last rebalanced: {portfolio.last_rebalanced}")
    console.print(f"  Total value: {portfolio.total_value:,}")
    console.print(f"  Slots: {portfolio.slot_count}\n")

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Slot", justify="right")
    table.add_column("Token", style="bold")
    table.add_column("Target (bps)", justify="right")
    table.add_column("Target %", justify="right")
    table.add_column("Current", justify="right")

    for asset in engine.get_portfolio_assets(portfolio_id):
        table.add_row(
            str(asset.slot_index),
            asset.token,
            str(asset.target_percentage),
            _format_bps(asset.target_percentage),
            f"{asset.current_amount:,}",
        )

    console.print(table)
    console.print()


@app.command("list")
def list_portfolios(
    owner: str = typer.Argument(..., help="Owner identity"),
) -> None:
    """List the portfolios created by an owner."""
    _, engine = _open_registry()
    portfolio_ids = engine.get_user_portfolios(owner)

    if not portfolio_ids:
        console.print(f"[yellow]No portfolios found for {owner}.[/yellow]")
        return

    console.print(
        f"\n[bold blue]Portfolios of {owner}[/bold blue] ({len(portfolio_ids)} results)\n"
    )

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("ID", justify="right")
    table.add_column("Slots", justify="right")
    table.add_column("Created", justify="right")
    table.add_column("Last Rebalanced", justify="right")
    table.add_column("Status")

    for portfolio_id in portfolio_ids:
        portfolio = engine.get_portfolio(portfolio_id)
        if portfolio is None:
            continue
        table.add_row(
            str(portfolio.portfolio_id),
            str(portfolio.slot_count),
            str(portfolio.created_at),
            str(portfolio.last_rebalanced),
            "[green]Active[/green]" if portfolio.active else "[dim]Inactive[/dim]",
        )

    console.print(table)
    console.print()


@app.command()
def eligibility(
    portfolio_id: int = typer.Argument(..., help="Portfolio id"),
    height: int | None = HEIGHT_OPTION,
) -> None:
    """Check whether a portfolio is due for a rebalance."""
    _, engine = _open_registry(height)
    result = engine.calculate_rebalance_amounts(portfolio_id)
    if not result.ok:
        _fail(result)

    report = result.unwrap()
    due = "[green]Yes[/green]" if report.needs_rebalance else "No"
    console.print(f"Portfolio {report.portfolio_id} at height {engine.now}")
    console.print(f"  Total value: {report.total_value:,}")
    console.print(f"  Needs rebalance: {due}")


@app.command("init-owner")
def init_owner(
    new_owner: str = typer.Argument(..., help="Identity to receive protocol ownership"),
    caller: str = CALLER_OPTION,
) -> None:
    """Transfer protocol ownership."""
    db, engine = _open_registry()
    result = engine.initialize(new_owner, caller=caller)
    if not result.ok:
        _fail(result)

    db.save_state(engine.state)
    console.print(f"[green]Protocol owner is now {new_owner}[/green]")


@app.command()
def export(
    filepath: str = typer.Argument(..., help="Output CSV path"),
) -> None:
    """Export portfolios and allocations to CSV."""
    settings = get_settings()
    db = get_registry_db(settings.database_path)
    count = db.export_allocations_csv(filepath)

    if count == 0:
        console.print("[yellow]No portfolios to export.[/yellow]")
        return

    console.print(f"[green]Exported {count} rows to {filepath}[/green]")


@app.command()
def version() -> None:
    """Show version information."""
    from folio import __version__

    console.print(f"Folio version {__version__}")


if __name__ == "__main__":
    app()
