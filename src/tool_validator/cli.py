"""CLI for inspecting and exercising the tool validator using Typer."""

import json
from pathlib import Path
from typing import Callable, List, Optional

import typer
from loguru import logger
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .config import CONFIG_FILENAME, get_config, load_config, save_config
from .engine import ValidatorEngine
from .exceptions import ConfigError
from .fuzzy import find_closest_tool_name
from .json_repair import try_parse_json
from .logging import setup_logging

console = Console()

EngineGetter = Callable[[typer.Context], ValidatorEngine]


def _add_commands(validator_app: typer.Typer, get_engine: EngineGetter) -> None:
    """Attach the stats, test, config and match commands to an app."""

    @validator_app.command()
    def stats(ctx: typer.Context) -> None:
        """Show validation statistics."""
        snapshot = get_engine(ctx).statistics()

        table = Table(title="Tool Validator Statistics", show_header=True, header_style="bold magenta")
        table.add_column("Counter", style="cyan", no_wrap=True)
        table.add_column("Value", style="green", justify="right")

        table.add_row("Validated", str(snapshot.validated))
        table.add_row("Repaired", str(snapshot.repaired))
        table.add_row("Blocked", str(snapshot.blocked))
        table.add_row("Errors", str(snapshot.errors))

        console.print(table)

    @validator_app.command()
    def test(
        ctx: typer.Context,
        tool_name: str = typer.Argument(..., help="Tool name"),
        params: str = typer.Argument(..., help="JSON params"),
        schema: Optional[str] = typer.Option(None, "--schema", "-s", help="JSON parameter schema"),
    ) -> None:
        """Test tool validation."""
        parsed = try_parse_json(params)
        if not parsed.success or not isinstance(parsed.parsed, dict):
            console.print("[bold red]Invalid JSON in params[/bold red]")
            raise typer.Exit(code=1)

        parsed_schema = None
        if schema is not None:
            schema_result = try_parse_json(schema)
            if not schema_result.success or not isinstance(schema_result.parsed, dict):
                console.print("[bold red]Invalid JSON in schema[/bold red]")
                raise typer.Exit(code=1)
            parsed_schema = schema_result.parsed

        logger.debug(f"Testing validation for {tool_name}")
        verdict = get_engine(ctx).validate(tool_name, parsed.parsed, parsed_schema)
        console.print_json(json.dumps(verdict.to_dict()))

    @validator_app.command("config")
    def show_config(
        ctx: typer.Context,
        write: bool = typer.Option(
            False, "--write", "-w", help="Write the active configuration to the config directory"
        ),
    ) -> None:
        """Show current configuration."""
        config = get_engine(ctx).config
        console.print("[bold cyan]Tool Validator Configuration:[/bold cyan]")
        console.print_json(config.model_dump_json())

        if write:
            path = config.config_dir / CONFIG_FILENAME
            save_config(config, path)
            console.print(f"[green]✓[/green] Configuration written to {path}")

    @validator_app.command()
    def match(
        name: str = typer.Argument(..., help="Proposed tool name"),
        candidates: List[str] = typer.Argument(..., help="Known tool names"),
    ) -> None:
        """Find the closest known tool name."""
        found = find_closest_tool_name(name, candidates)
        if found.match is None:
            console.print(f"[yellow]No close match[/yellow] (best distance: {found.distance})")
        else:
            console.print(
                f"[bold green]{found.match}[/bold green] (distance: {found.distance})"
            )


def create_app(engine: ValidatorEngine) -> typer.Typer:
    """
    Build the ``tool-validator`` command group bound to an engine.

    Args:
        engine: Engine whose statistics and configuration are shown

    Returns:
        Typer application with stats, test, config and match commands
    """
    validator_app = typer.Typer(
        name="tool-validator",
        help="Tool Validator - validation and repair commands",
        add_completion=False,
    )
    _add_commands(validator_app, lambda ctx: engine)
    return validator_app


app = typer.Typer(
    name="tool-validator",
    help="Tool Validator - validate and repair tool calls from local models.",
    add_completion=False,
)
_add_commands(app, lambda ctx: ctx.obj)


@app.callback()
def main(
    ctx: typer.Context,
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="JSON configuration file (default: <config_dir>/config.json)",
    ),
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        "-l",
        help="Set logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL); defaults to the configured level",
    ),
    log_dir: Optional[Path] = typer.Option(None, "--log-dir", help="Directory for log files"),
) -> None:
    """Tool Validator - validate and repair tool calls from local models."""
    try:
        config = load_config(config_file or get_config().config_dir / CONFIG_FILENAME)
    except ConfigError as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(code=1)

    setup_logging(log_level or config.log_level, log_dir)
    ctx.obj = ValidatorEngine(config)


if __name__ == "__main__":
    app()
