"""Typer CLI entrypoint for serp-it."""

from __future__ import annotations

import asyncio
import json
import re
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import AsyncIterator, Awaitable, Callable, Mapping, Optional, TypeVar

import typer
import yaml
from rich import box
from rich.console import Console
from rich.table import Table

from .adapters import ADAPTER_REGISTRY
from .config import ConfigRepository, GlobalConfig
from .errors import SerpItError
from .logging_conf import configure_logging, default_log_dir, tail_log
from .orchestrator import Orchestrator
from .presentation import (
    render_error_list,
    render_error_output,
    render_fetch_output,
    render_notice,
    render_search_output,
)
from .runtime import RuntimeContext

app = typer.Typer(
    help="serp-it: multi-engine web search and page rendering",
    no_args_is_help=True,
    rich_markup_mode=None,
)
config_app = typer.Typer(
    name="config",
    help="Configuration commands",
    no_args_is_help=True,
    rich_markup_mode=None,
)
log_app = typer.Typer(
    name="log",
    help="Log viewing commands",
    no_args_is_help=True,
    rich_markup_mode=None,
)

console = Console()

T = TypeVar("T")

_HEADING = re.compile(r"^#{1,6}\s+(?P<title>.+?)\s*$", re.MULTILINE)


@dataclass
class AppState:
    repository: ConfigRepository
    config: GlobalConfig
    verbose: bool = False


def build_state(verbose: bool = False) -> AppState:
    repository = ConfigRepository()
    config = repository.load_global_config()
    configure_logging(verbose=verbose)
    return AppState(repository=repository, config=config, verbose=verbose)


def _get_state(ctx: typer.Context) -> AppState:
    state = ctx.obj
    if state is None:
        state = build_state(verbose=False)
        ctx.obj = state
    return state


@asynccontextmanager
async def open_orchestrator(config: GlobalConfig) -> AsyncIterator[Orchestrator]:
    async with RuntimeContext(config) as runtime:
        yield Orchestrator.from_runtime(runtime)


def _run(
    state: AppState,
    operation: Callable[[Orchestrator], Awaitable[T]],
    *,
    tool: str,
    context: Mapping[str, str],
) -> T:
    async def _main() -> T:
        async with open_orchestrator(state.config) as orchestrator:
            return await operation(orchestrator)

    try:
        return asyncio.run(_main())
    except (SerpItError, ValueError) as exc:
        _print(render_error_output(tool, str(exc), context))
        raise typer.Exit(code=1) from exc


def _print(text: str) -> None:
    console.print(text, markup=False, highlight=False, soft_wrap=True)


def _print_json(payload: object) -> None:
    typer.echo(json.dumps(payload, ensure_ascii=False, indent=2))


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def guess_title(markdown: str, fallback: str) -> str:
    match = _HEADING.search(markdown)
    return match.group("title") if match else fallback


def _render_engines_table(enabled: list[str]) -> Table:
    table = Table(title=f"Search engines · {len(enabled)} enabled", box=box.SIMPLE_HEAD)
    table.add_column("Key", style="cyan", no_wrap=True)
    table.add_column("Name", style="magenta")
    table.add_column("Enabled", style="green")
    table.add_column("Order", style="yellow")
    for key, (display, _factory) in ADAPTER_REGISTRY.items():
        position = str(enabled.index(key) + 1) if key in enabled else "-"
        table.add_row(key, display, "yes" if key in enabled else "no", position)
    return table


app.add_typer(config_app, name="config", help="Show the active configuration")
app.add_typer(log_app, name="log", help="Inspect log files")


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging", is_flag=True),
) -> None:
    ctx.obj = build_state(verbose)


@app.command("search", help="Search every enabled engine and print merged results.")
def search_command(
    ctx: typer.Context,
    query: str = typer.Argument(..., help="Search query."),
    region: Optional[str] = typer.Option(None, "--region", "-r", help="Region code such as en-US."),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of text.", is_flag=True),
) -> None:
    state = _get_state(ctx)
    response = _run(
        state,
        lambda orchestrator: orchestrator.search(query, region),
        tool="search",
        context={"Query": query},
    )
    if as_json:
        _print_json(response.as_dict())
        return
    output = render_search_output(
        response.results,
        query=response.query,
        region=response.region,
        engines_succeeded=response.engines_succeeded,
        engines_total=response.engines_total,
        timestamp=_timestamp(),
    )
    if response.engine_errors:
        output += "\n\n" + render_error_list("engine-errors", map(str, response.engine_errors))
    _print(output)


@app.command("search-fetch", help="Search, then render the top results to Markdown.")
def search_fetch_command(
    ctx: typer.Context,
    query: str = typer.Argument(..., help="Search query."),
    region: Optional[str] = typer.Option(None, "--region", "-r", help="Region code such as en-US."),
    max_fetch: int = typer.Option(10, "--max-fetch", "-n", help="How many results to render (1-100)."),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of text.", is_flag=True),
) -> None:
    state = _get_state(ctx)
    response = _run(
        state,
        lambda orchestrator: orchestrator.search_and_render(query, region, max_fetch),
        tool="search-fetch",
        context={"Query": query},
    )
    if as_json:
        _print_json(response.as_dict())
        return
    fetched_at = _timestamp()
    sections = [
        render_search_output(
            response.results,
            query=response.query,
            region=response.region,
            engines_succeeded=response.engines_succeeded,
            engines_total=response.engines_total,
            timestamp=fetched_at,
        )
    ]
    for result in response.results:
        if result.markdown:
            sections.append(
                render_fetch_output(
                    result.url,
                    result.title or guess_title(result.markdown, result.url),
                    result.markdown,
                    fetched_at=fetched_at,
                )
            )
    if len(sections) == 1:
        sections.append(render_notice("No page content was captured."))
    if response.engine_errors:
        sections.append(render_error_list("engine-errors", map(str, response.engine_errors)))
    if response.fetch_errors:
        sections.append(render_error_list("fetch-errors", response.fetch_errors))
    _print("\n\n".join(sections))


@app.command("fetch", help="Render a single URL (web page or PDF) to Markdown.")
def fetch_command(
    ctx: typer.Context,
    url: str = typer.Argument(..., help="Absolute http(s) URL."),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of text.", is_flag=True),
) -> None:
    state = _get_state(ctx)
    response = _run(
        state,
        lambda orchestrator: orchestrator.fetch(url),
        tool="fetch",
        context={"URL": url},
    )
    if as_json:
        _print_json(response.as_dict())
        return
    _print(
        render_fetch_output(
            response.url,
            guess_title(response.markdown, response.url),
            response.markdown,
            fetched_at=_timestamp(),
        )
    )


@app.command("engines", help="List the known search engines and which are enabled.")
def engines_command(ctx: typer.Context) -> None:
    state = _get_state(ctx)
    console.print(_render_engines_table(list(state.config.search.engines)))


@config_app.command("show", help="Print the active configuration as YAML.")
def config_show(ctx: typer.Context) -> None:
    state = _get_state(ctx)
    path = state.repository.locator.global_config_path()
    console.print(f"# {path}", style="dim", markup=False, highlight=False)
    _print(yaml.safe_dump(state.config.model_dump(mode="json"), allow_unicode=True, sort_keys=False).rstrip())


@log_app.command("tail", help="Show the most recent lines of the application log.")
def log_tail(
    errors_only: bool = typer.Option(False, "--errors", help="Read error.log instead.", is_flag=True),
    lines: int = typer.Option(100, "--lines", "-n", help="Number of lines to show."),
) -> None:
    path = default_log_dir() / ("error.log" if errors_only else "serp_it.log")
    tail = tail_log(path, lines)
    if not tail:
        console.print("No log entries yet.", style="dim")
        return
    console.print(f"{path.name} · last {len(tail)} lines", style="cyan")
    _print("".join(tail).rstrip())


def cli() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    cli()


__all__ = ["AppState", "app", "build_state", "cli", "guess_title", "open_orchestrator"]
