"""
KopiKita CLI

Command-line interface for the KopiKita CRM agents.

Usage:
    kopikita ask "Produk apa yang paling laris?"   # Ask the chat assistant
    kopikita seed --mode existing                   # Run the dummy-data agent
    kopikita promo --week 2026-10-19                # Generate weekly promo ideas
    kopikita schema                                 # Print the schema given to the agents
    kopikita serve --port 8000                      # Run the API server
"""

import asyncio
import json
import logging
import subprocess
import sys
from contextlib import nullcontext

import click
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table

from kopikita.config import get_settings
from kopikita.models.api import PromoIdeasResponse
from kopikita.runtime import AgentRuntime

console = Console()


def configure_cli_logging(verbose: bool = False) -> None:
    if verbose:
        logging.disable(logging.NOTSET)
        get_settings().logging.configure()
        return
    logging.disable(logging.CRITICAL)
    for logger_name in ("kopikita", "httpx", "openai", "asyncio", "asyncpg"):
        logging.getLogger(logger_name).setLevel(logging.CRITICAL)


def create_runtime() -> AgentRuntime:
    """Build the runtime from environment settings."""
    return AgentRuntime(get_settings())


def spinner(message: str):
    """Show a status spinner on interactive terminals only."""
    if console.is_terminal:
        return console.status(f"[cyan]{message}[/cyan]", spinner="dots")
    return nullcontext()


def run_with_runtime(operation):
    """Run ``operation(runtime)`` on a fresh runtime, closing it afterwards."""

    async def _run():
        runtime = create_runtime()
        try:
            return await operation(runtime)
        finally:
            await runtime.close()

    return asyncio.run(_run())


def print_promo_ideas(response: PromoIdeasResponse) -> None:
    """Render promo ideas as a table."""
    source = "agent" if response.source == "agent" else "built-in library"
    table = Table(
        title=f"Promo ideas for week of {response.week_start} ({source})",
        show_header=True,
        header_style="bold cyan",
    )
    table.add_column("Theme")
    table.add_column("Segment")
    table.add_column("Why now")
    table.add_column("Message")
    table.add_column("Best time")

    for idea in response.ideas:
        table.add_row(idea.theme, idea.segment, idea.why_now, idea.message, idea.best_time or "")

    console.print(table)


# ============================================================================
# Commands
# ============================================================================


@click.group()
@click.version_option(version="0.1.0", prog_name="KopiKita")
@click.option("--verbose", "-v", is_flag=True, help="Show application logs.")
def cli(verbose: bool):
    """KopiKita - LLM agents over the coffee-shop CRM database."""
    configure_cli_logging(verbose)


@cli.command()
@click.argument("question")
def ask(question: str):
    """Ask the chat assistant a single question."""
    try:
        with spinner("Thinking..."):
            reply = run_with_runtime(lambda runtime: runtime.generate_chat_reply(question))
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    console.print(Panel(Markdown(reply), title="[bold green]Answer[/bold green]"))


@cli.command()
@click.option(
    "--mode",
    type=click.Choice(["new", "existing", "mixed"]),
    default="mixed",
    show_default=True,
    help="Generation mode (existing only inserts sales).",
)
def seed(mode: str):
    """Insert dummy data through the seeding agent."""
    try:
        with spinner(f"Generating dummy data ({mode})..."):
            output = run_with_runtime(lambda runtime: runtime.run_dummy_data_agent(mode))
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    console.print(Panel(output, title=f"[bold green]Dummy data ({mode})[/bold green]"))


@cli.command()
@click.option("--week", "week_start", default=None, help="Monday of the week (YYYY-MM-DD).")
@click.option("--json", "as_json", is_flag=True, help="Print raw JSON instead of a table.")
def promo(week_start: str | None, as_json: bool):
    """Generate promo ideas for a week."""
    try:
        with spinner("Drafting promo ideas..."):
            response = run_with_runtime(
                lambda runtime: runtime.generate_promo_ideas(week_start)
            )
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    if as_json:
        click.echo(json.dumps(response.model_dump(by_alias=True), indent=2, ensure_ascii=False))
        return
    print_promo_ideas(response)


@cli.command()
def schema():
    """Print the schema description the agents receive."""
    try:
        text = run_with_runtime(lambda runtime: runtime.get_schema_info())
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    console.print(text, markup=False, highlight=False)


@cli.command()
@click.option(
    "--host", default=lambda: get_settings().api_host, help="Bind address [default: API_HOST]."
)
@click.option(
    "--port", default=lambda: get_settings().api_port, type=int, help="Port [default: API_PORT]."
)
@click.option("--reload", is_flag=True, help="Reload on code changes.")
def serve(host: str, port: int, reload: bool):
    """Run the API server with uvicorn."""
    command = [
        sys.executable,
        "-m",
        "uvicorn",
        "kopikita.api.main:app",
        "--host",
        host,
        "--port",
        str(port),
    ]
    if reload:
        command.append("--reload")

    console.print(f"[green]Starting API at http://{host}:{port}[/green]")
    try:
        subprocess.run(command, check=True)
    except KeyboardInterrupt:
        console.print("[yellow]Stopped.[/yellow]")
    except subprocess.CalledProcessError as e:
        console.print(f"[red]API server exited with code {e.returncode}[/red]")
        sys.exit(e.returncode)


# ============================================================================
# Entry Point
# ============================================================================


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
