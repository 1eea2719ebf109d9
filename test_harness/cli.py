"""
Main CLI application for the Terraform MCP Server test harness.

Builds the server image, drives the tool tables over stdio and HTTP, and
cleans up containers, using the Cyclopts framework.
"""

import asyncio
import sys
from pathlib import Path
from typing import Annotated, Literal

import cyclopts
import structlog
from rich.console import Console
from rich.table import Table

from . import __version__
from .client.transports import SESSION_FACTORIES
from .config.loader import HarnessConfig, load_config
from .containers import ContainerLifecycleManager
from .errors import HarnessError
from .readiness import wait_ready
from .runner import CaseOutcome, run_suite

logger = structlog.get_logger(__name__)
console = Console()

app = cyclopts.App(
    name="test-harness",
    help="End-to-end harness for the Terraform MCP Server",
    version=__version__,
)


def _render_outcomes(outcomes: list[CaseOutcome]) -> None:
    table = Table(title="Tool cases", show_lines=False)
    table.add_column("Case", style="cyan")
    table.add_column("Result")
    table.add_column("Detail", style="dim", overflow="fold")

    for outcome in outcomes:
        result = "[green]PASS[/green]" if outcome.passed else "[red]FAIL[/red]"
        table.add_row(outcome.item_id, result, outcome.detail)

    console.print(table)
    failed = sum(1 for o in outcomes if not o.passed)
    style = "red" if failed else "green"
    console.print(f"[{style}]{len(outcomes) - failed} passed, {failed} failed[/{style}]")


async def _run_transports(
    config: HarnessConfig,
    manager: ContainerLifecycleManager,
    transports: list[str],
) -> list[CaseOutcome]:
    outcomes: list[CaseOutcome] = []
    try:
        for name in transports:
            console.print(f"[bold]Running suite over {name}[/bold]")
            try:
                session = await SESSION_FACTORIES[name](config, manager)
            except HarnessError as e:
                outcomes.append(CaseOutcome(name, "setup", "session", False, str(e)))
                continue
            try:
                async with session:
                    outcomes.extend(await run_suite(session.client, name, config))
            except Exception as e:
                logger.warning("Failed to release transport session", transport=name, error=str(e))
                outcomes.append(
                    CaseOutcome(name, "teardown", "session", False, str(e) or type(e).__name__)
                )
    finally:
        await asyncio.to_thread(manager.sweep_all)
    return outcomes


@app.command
def run(
    transport: Annotated[
        Literal["stdio", "http", "all"],
        cyclopts.Parameter(help="Transport to exercise"),
    ] = "all",
    config: Annotated[
        Path | None,
        cyclopts.Parameter(help="Path to a harness TOML configuration file"),
    ] = None,
    build: Annotated[
        bool,
        cyclopts.Parameter(help="Build the server image before running"),
    ] = True,
) -> None:
    """Build the image and run every tool case over the chosen transports."""
    harness_config = load_config(config)
    manager = ContainerLifecycleManager(harness_config)

    if build:
        try:
            with console.status(f"Building {harness_config.image.tag}..."):
                manager.build()
        except HarnessError as e:
            console.print(f"[red]Image build failed:[/red] {e}")
            sys.exit(1)

    transports = ["stdio", "http"] if transport == "all" else [transport]
    outcomes = asyncio.run(_run_transports(harness_config, manager, transports))
    _render_outcomes(outcomes)

    if any(not o.passed for o in outcomes):
        sys.exit(1)


@app.command
def health(
    url: Annotated[
        str,
        cyclopts.Parameter(help="Base URL of an HTTP-mode server"),
    ] = "http://localhost:8080",
    config: Annotated[
        Path | None,
        cyclopts.Parameter(help="Path to a harness TOML configuration file"),
    ] = None,
    attempts: Annotated[
        int | None,
        cyclopts.Parameter(help="Override the number of polls"),
    ] = None,
) -> None:
    """Poll a server's health endpoint until it is ready or the attempts run out."""
    readiness = load_config(config).readiness
    try:
        attempt = asyncio.run(
            wait_ready(
                url,
                health_path=readiness.health_path,
                max_attempts=attempts or readiness.max_attempts,
                interval=readiness.interval,
                request_timeout=readiness.request_timeout,
            )
        )
    except HarnessError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)
    console.print(f"[green]{url} is ready[/green] (attempt {attempt})")


@app.command
def sweep(
    config: Annotated[
        Path | None,
        cyclopts.Parameter(help="Path to a harness TOML configuration file"),
    ] = None,
) -> None:
    """Stop every running container started from the test image."""
    manager = ContainerLifecycleManager(load_config(config))
    count = manager.sweep_all()
    console.print(f"Swept {count} container(s) from {manager.image_tag}")


def main() -> None:
    """Entry point for the test-harness console script."""
    app()


if __name__ == "__main__":
    main()
