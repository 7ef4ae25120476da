"""Typer CLI entrypoint for option-sync."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

import typer
import yaml
from rich import box
from rich.console import Console
from rich.table import Table

from .config import AppConfig, ConfigRepository
from .engine import Option
from .errors import ConfigError, StoreReadError
from .infra import SQLiteManager
from .logging_conf import configure_logging, default_log_dir, tail_log
from .orchestrator import Orchestrator, SyncStatus, SyncSummary
from .scheduler import APSchedulerAdapter
from .trigger import SyncTrigger

app = typer.Typer(
    help="Keep a stored table of scraped options in sync with a web page.",
    no_args_is_help=True,
    rich_markup_mode=None,
)
options_app = typer.Typer(name="options", help="Inspect the stored options.", no_args_is_help=True)
config_app = typer.Typer(name="config", help="Inspect configuration.", no_args_is_help=True)
log_app = typer.Typer(name="log", help="Read log files.", no_args_is_help=True)

console = Console()

_MASK = "********"


@dataclass
class AppState:
    repository: ConfigRepository
    config: AppConfig
    storage: SQLiteManager
    orchestrator_factory: Callable[[], Orchestrator]


def build_state(verbose: bool) -> AppState:
    repository = ConfigRepository()
    configure_logging(verbose=verbose, log_dir=repository.locator.logs_dir)
    config = repository.load()
    storage = SQLiteManager()
    database_path = repository.database_path(config)

    def orchestrator_factory() -> Orchestrator:
        return Orchestrator.from_config(config, database_path, storage)

    return AppState(
        repository=repository,
        config=config,
        storage=storage,
        orchestrator_factory=orchestrator_factory,
    )


def _get_state(ctx: typer.Context) -> AppState:
    state = ctx.obj
    if state is None:
        state = build_state(verbose=False)
        ctx.obj = state
    return state


def _masked_config(config: AppConfig) -> dict:
    payload = config.model_dump(mode="json")
    if payload["auth"].get("cron_secret"):
        payload["auth"]["cron_secret"] = _MASK
    if payload["notifier"].get("bot_token"):
        payload["notifier"]["bot_token"] = _MASK
    return payload


def _render_options_table(options: Sequence[Option]) -> Table:
    table = Table(title=f"Stored options · {len(options)}", box=box.SIMPLE_HEAD)
    table.add_column("ID", style="dim", justify="right")
    table.add_column("Name", style="cyan")
    for option in options:
        table.add_row(str(option.id), option.name)
    return table


def _render_summary_table(summary: SyncSummary) -> Table:
    table = Table(title=f"Run {summary.run_id}", box=box.SIMPLE_HEAD)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green", justify="right")
    table.add_row("Status", summary.status.value)
    table.add_row("Scraped", str(summary.scraped))
    table.add_row("Stored before", str(summary.stored))
    for kind, count in summary.operations.items():
        if count:
            table.add_row(f"Ops: {kind}", str(count))
    table.add_row("Applied", str(summary.applied))
    table.add_row("Failed", str(summary.failed))
    table.add_row("Notified", "yes" if summary.notified else "no")
    return table


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging."),
) -> None:
    try:
        ctx.obj = build_state(verbose)
    except ConfigError as exc:
        console.print(str(exc), style="red")
        raise typer.Exit(code=2) from exc


@app.command("run", help="Run one synchronisation now (no authorisation check).")
def run_once(
    ctx: typer.Context,
    as_json: bool = typer.Option(False, "--json", help="Print the run summary as JSON."),
) -> None:
    state = _get_state(ctx)
    result = SyncTrigger(state.config.auth, state.orchestrator_factory).run()
    if result.summary is None:
        console.print(result.message, style="red")
        raise typer.Exit(code=1)
    summary = result.summary
    if as_json:
        typer.echo(json.dumps(summary.as_dict(), ensure_ascii=False))
    else:
        console.print(_render_summary_table(summary))
        console.print(result.message)
    if summary.status is SyncStatus.SCRAPE_FAILED:
        raise typer.Exit(code=1)


@app.command("serve", help="Serve the HTTP trigger with uvicorn.")
def serve(
    ctx: typer.Context,
    host: Optional[str] = typer.Option(None, "--host", help="Bind address (defaults to config)."),
    port: Optional[int] = typer.Option(None, "--port", help="Bind port (defaults to config)."),
) -> None:
    import uvicorn

    from .api import create_app

    state = _get_state(ctx)
    if not state.config.auth.cron_secret:
        console.print("CRON_SECRET is not configured; every trigger request will be rejected.", style="yellow")
    api = create_app(state.config, state.orchestrator_factory)
    uvicorn.run(api, host=host or state.config.server.host, port=port or state.config.server.port)


@app.command("schedule", help="Run the synchronisation periodically in the foreground.")
def schedule(ctx: typer.Context) -> None:
    state = _get_state(ctx)
    trigger = SyncTrigger(state.config.auth, state.orchestrator_factory)
    adapter = APSchedulerAdapter(blocking=True)
    adapter.schedule_sync(state.config.schedule, trigger.run)
    console.print(f"Scheduled sync ({state.config.schedule.type.value}: {state.config.schedule.value}). Ctrl+C to stop.")
    try:
        adapter.start()
    except (KeyboardInterrupt, SystemExit):
        adapter.shutdown()
    finally:
        state.storage.close_all()


@options_app.command("list", help="Print the stored options table.")
def options_list(ctx: typer.Context) -> None:
    state = _get_state(ctx)
    try:
        options = state.orchestrator_factory().list_options()
    except StoreReadError as exc:
        console.print(f"Error fetching stored options: {exc}", style="red")
        raise typer.Exit(code=1) from exc
    if not options:
        console.print("No options found.", style="dim")
        return
    console.print(_render_options_table(options))


@config_app.command("show", help="Print the effective configuration (secrets masked).")
def config_show(ctx: typer.Context) -> None:
    state = _get_state(ctx)
    console.print(f"# {state.repository.locator.config_path()}", style="dim")
    typer.echo(yaml.safe_dump(_masked_config(state.config), allow_unicode=True, sort_keys=False))


@log_app.command("show", help="Show the last lines of the application log.")
def log_show(
    ctx: typer.Context,
    tail: int = typer.Option(100, "--tail", help="Number of lines to show."),
    errors: bool = typer.Option(False, "--errors", help="Show the error log instead."),
) -> None:
    state = ctx.obj
    logs_dir = state.repository.locator.logs_dir if state is not None else default_log_dir()
    path = logs_dir / ("error.log" if errors else "option_sync.log")
    lines = tail_log(path, tail)
    if not lines:
        console.print("No log lines yet.", style="dim")
        return
    console.print(f"{path.name} · last {len(lines)} lines", style="cyan")
    typer.echo("".join(lines), nl=False)


app.add_typer(options_app, name="options")
app.add_typer(config_app, name="config")
app.add_typer(log_app, name="log")


def cli() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    cli()
