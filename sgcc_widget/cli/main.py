"""
CLI interface for the SGCC widget core.

Terminal stand-in for the widget renderer: every command reads settings,
fetches through the cache and renders the derived records.
"""

import logging
import sys
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from sgcc_widget.config.loader import AppConfig, default_app_config, load_app_config
from sgcc_widget.config.settings import SettingsStore, parse_setting
from sgcc_widget.core.fetcher import AccountDataFetcher
from sgcc_widget.core.series import BarDatum, build_chart_series, build_large_range_series
from sgcc_widget.core.summary import extract_display_summary
from sgcc_widget.core.tariff import tier_progress
from sgcc_widget.sdk.wsgw_client import WsgwClient
from sgcc_widget.storage.cache import CacheStore
from sgcc_widget.storage.repository import get_repository, initialize_schema

app = typer.Typer()
settings_app = typer.Typer(help="Show or edit widget settings.")
app.add_typer(settings_app, name="settings")
console = Console()

logger = logging.getLogger(__name__)

EXIT_CODE_PASS = 0
EXIT_CODE_FAIL = 1

# Bars are colored by tariff tier only
LEVEL_STYLES = {1: "green", 2: "yellow", 3: "red"}
TIER_NAMES = {1: "一", 2: "二", 3: "三"}
BAR_WIDTH = 30


@dataclass
class CliState:
    """Per-invocation wiring shared by all commands."""
    config: AppConfig
    settings_store: SettingsStore
    fetcher: AccountDataFetcher


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True
    )


def _build_state(config: AppConfig) -> CliState:
    store = get_repository(config.storage.db_path)
    client = WsgwClient(url=config.api.url, timeout=config.api.timeout_seconds)
    return CliState(
        config=config,
        settings_store=SettingsStore(store),
        fetcher=AccountDataFetcher(CacheStore(store), client)
    )


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to YAML configuration file"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable debug logging"
    )
):
    """SGCC electricity widget CLI."""
    try:
        config = load_app_config(config_path) if config_path else default_app_config()
    except Exception as e:
        console.print(f"[red]Error loading config:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    _configure_logging("DEBUG" if verbose else config.logging.level)
    ctx.obj = _build_state(config)

    if ctx.invoked_subcommand is None:
        console.print("SGCC Widget - Use --help to see available commands")


@app.command()
def init(ctx: typer.Context):
    """Initialize the key/value database."""
    state: CliState = ctx.obj
    try:
        initialize_schema(state.config.storage.db_path)
        console.print("[green]✓[/] Database initialized successfully")
        sys.exit(EXIT_CODE_PASS)
    except Exception as e:
        console.print(f"[red]Error initializing database:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)


@app.command()
def refresh(
    ctx: typer.Context,
    force: bool = typer.Option(False, "--force", "-f", help="Bypass the 4-hour cache")
):
    """Fetch account data (through the cache) and report what was loaded."""
    state: CliState = ctx.obj
    result = state.fetcher.fetch(force_refresh=force)
    console.print(f"Accounts: {len(result.data)}")
    console.print(f"Data time: {_format_time(result.timestamp)}")


@app.command()
def summary(
    ctx: typer.Context,
    force: bool = typer.Option(False, "--force", "-f", help="Bypass the 4-hour cache")
):
    """Show balance, last-period and year-to-date figures."""
    state: CliState = ctx.obj
    try:
        settings = state.settings_store.get()
        record = state.fetcher.get_account(settings, force_refresh=force)
        display = extract_display_summary(record)
        progress = tier_progress(display.total_year_pq, settings.one_level_pq, settings.two_level_pq)
    except Exception as e:
        _render_failure(e)
        return

    table = Table(title="网上国网", show_header=False)
    table.add_column("Field")
    table.add_column("Value", justify="right")
    balance_style = "red" if display.has_arrear else "bold"
    table.add_row(display.balance_label, f"[{balance_style}]{display.balance}[/]")
    table.add_row("上期电费", display.last_bill)
    table.add_row("上期电量", display.last_usage)
    table.add_row("年度电费", display.year_bill)
    table.add_row("年度电量", display.year_usage)
    console.print(table)

    style = LEVEL_STYLES[progress.level]
    console.print(
        f"[{style}]第{TIER_NAMES[progress.level]}梯度：{progress.percent * 100:.2f}%[/]"
    )
    console.print(f"Updated: {_format_time(display.last_update_time)}")


@app.command()
def chart(
    ctx: typer.Context,
    large: bool = typer.Option(False, "--large", "-l", help="Use the large widget range"),
    force: bool = typer.Option(False, "--force", "-f", help="Bypass the 4-hour cache")
):
    """Draw the usage bar chart, colored by tariff tier."""
    state: CliState = ctx.obj
    try:
        settings = state.settings_store.get()
        record = state.fetcher.get_account(settings, force_refresh=force)
        if large:
            bars = build_large_range_series(record, settings)
        else:
            bars = build_chart_series(record, settings)
    except Exception as e:
        _render_failure(e)
        return

    _display_bars(bars)


@settings_app.command("show")
def settings_show(ctx: typer.Context):
    """Print the current settings."""
    state: CliState = ctx.obj
    _display_settings(state.settings_store.get().to_dict())


@settings_app.command("set")
def settings_set(
    ctx: typer.Context,
    key: str = typer.Argument(..., help="Setting name, e.g. barCount"),
    value: str = typer.Argument(..., help="New value")
):
    """Change one setting and save."""
    state: CliState = ctx.obj
    try:
        updated = state.settings_store.get().replace(**parse_setting(key, value))
    except ValueError as e:
        console.print(f"[red]Error:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    state.settings_store.save(updated)
    console.print(f"[green]✓[/] Saved {key}={value}")


@settings_app.command("reset")
def settings_reset(ctx: typer.Context):
    """Restore default settings."""
    state: CliState = ctx.obj
    defaults = state.settings_store.reset()
    console.print("[green]✓[/] Settings restored to defaults")
    _display_settings(defaults.to_dict())


def _render_failure(error: Exception) -> None:
    """Generic failure state for unexpected render errors."""
    logger.exception("Render failed")
    console.print("[red]加载失败[/]")
    console.print(f"[dim]{str(error)}[/]")
    sys.exit(EXIT_CODE_FAIL)


def _format_time(timestamp_ms: Optional[int]) -> str:
    """Format an epoch-ms timestamp in local time."""
    if not timestamp_ms:
        return "N/A"
    return datetime.fromtimestamp(timestamp_ms / 1000).strftime("%Y-%m-%d %H:%M")


def _display_settings(values: dict) -> None:
    table = Table(show_header=True)
    table.add_column("Setting")
    table.add_column("Value", justify="right")
    for key, value in values.items():
        table.add_row(key, str(value))
    console.print(table)


def _display_bars(bars: List[BarDatum]) -> None:
    """Render bars as horizontal blocks scaled to the largest value."""
    if not bars:
        console.print("[dim]暂无数据[/]")
        return

    peak = max([bar.value for bar in bars] + [1.0])
    table = Table(show_header=False, box=None)
    table.add_column("Label")
    table.add_column("Bar")
    table.add_column("Value", justify="right")
    for index, bar in enumerate(bars, start=1):
        width = max(1, round(bar.value / peak * BAR_WIDTH)) if bar.value > 0 else 0
        style = LEVEL_STYLES.get(bar.level, LEVEL_STYLES[1])
        table.add_row(
            bar.label or str(index),
            f"[{style}]{'█' * width}[/]",
            f"{bar.value:,.2f}"
        )
    console.print(table)


if __name__ == "__main__":
    app()
