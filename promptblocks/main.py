"""
Main entry point for promptblocks.

Renders block files from the command line and browses the variable catalog.
"""
import argparse
import json
import logging
from pathlib import Path
from typing import Any, Optional, Sequence

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .blocks import ConfigurationError, Renderable, blocks_from_json
from .config import ConfigError, RenderConfig, build_context, load_config, toggle_state_from_ids
from .constants import APP_DESCRIPTION, APP_NAME, APP_VERSION
from .context import HistoryEntry, RenderContext
from .types import Message
from .variables import search_variables

logger = logging.getLogger(__name__)

ROLE_STYLES = {
    "system": "magenta",
    "user": "cyan",
    "assistant": "green",
}


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description=APP_DESCRIPTION
    )

    parser.add_argument(
        "-v", "--version",
        action="version",
        version=f"{APP_NAME} {APP_VERSION}"
    )

    parser.add_argument(
        "--log-level",
        type=str,
        help="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    render = subparsers.add_parser("render", help="Render a JSON file of blocks")
    render.add_argument("blocks", type=Path, help="JSON file with a block or an array of blocks")
    render.add_argument("--vars", type=Path, help="JSON file with template variables")
    render.add_argument("--history", type=Path, help="JSON file with conversation history")
    render.add_argument(
        "--enable",
        action="append",
        default=[],
        metavar="ID",
        help="Switch on the toggle block with this id (repeatable)"
    )
    render.add_argument(
        "--toggle-value",
        action="append",
        default=[],
        metavar="ID=VALUE",
        help="Parameter value of a toggle block (repeatable)"
    )
    render.add_argument("--config", type=Path, help="Path to config file")
    render.add_argument("--seed", type=int, help="Seed for random and roll filters")
    render.add_argument("--now", type=str, help="Fix the clock at this ISO-8601 instant")
    output = render.add_mutually_exclusive_group()
    output.add_argument("--prompt", action="store_true", help="Print one flattened prompt")
    output.add_argument("--json", action="store_true", help="Print messages as JSON")

    variables = subparsers.add_parser("variables", help="Search the template variable catalog")
    variables.add_argument("keyword", nargs="?", default="", help="Text or pattern to search for")

    return parser.parse_args(argv)


def setup_logging(level_name: str) -> None:
    """Route log records through rich on stderr."""
    logging.basicConfig(
        level=getattr(logging, level_name.upper(), logging.WARNING),
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _read_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in {path}: {e.msg}", line=e.lineno, column=e.colno) from e


def _parse_toggle_values(pairs: Sequence[str]) -> dict[str, str]:
    values: dict[str, str] = {}
    for pair in pairs:
        block_id, sep, value = pair.partition("=")
        if not sep or not block_id:
            raise ConfigError(f"Toggle value must look like ID=VALUE, got '{pair}'")
        values[block_id] = value
    return values


def build_render_context(args: argparse.Namespace, config: RenderConfig) -> RenderContext:
    """Assemble the RenderContext described by the render arguments."""
    variables = _read_json(args.vars) if args.vars else {}
    if not isinstance(variables, dict):
        raise ConfigError(f"Variables file {args.vars} must contain a JSON object")

    history: list[HistoryEntry] = []
    if args.history:
        raw_history = _read_json(args.history)
        if not isinstance(raw_history, list):
            raise ConfigError(f"History file {args.history} must contain a JSON array")
        try:
            history = [HistoryEntry.from_dict(item) for item in raw_history]
        except (KeyError, ValueError, TypeError) as e:
            raise ConfigError(f"Invalid history entry in {args.history}: {e}") from e

    toggle = toggle_state_from_ids(args.enable, _parse_toggle_values(args.toggle_value))
    return build_context(config, variables=variables, history=history, toggle=toggle)


def render_blocks(
    blocks: Sequence[Renderable],
    context: RenderContext,
) -> tuple[list[tuple[Renderable, Message]], list[str]]:
    """Render every block, collecting messages and failure messages."""
    rendered: list[tuple[Renderable, Message]] = []
    errors: list[str] = []
    for block in blocks:
        result = block.render_messages(context)
        if result.is_failure:
            errors.append(result.error or f"Failed to render block '{block.name}'")
            continue
        rendered.extend((block, message) for message in result.value)
    return rendered, errors


def _print_error(console: Console, message: str) -> None:
    console.print(Text.assemble(("Error: ", "bold red"), message))


def run_render(args: argparse.Namespace, console: Console, config: RenderConfig) -> int:
    """Execute the ``render`` command."""
    if args.seed is not None or args.now:
        data = config.to_dict()
        if args.seed is not None:
            data["seed"] = args.seed
        if args.now:
            data["now"] = args.now
        config = RenderConfig.from_dict(data)

    blocks = blocks_from_json(args.blocks.read_text(encoding="utf-8"))
    context = build_render_context(args, config)
    logger.info(f"Rendering {len(blocks)} block(s) from {args.blocks}")

    rendered, errors = render_blocks(blocks, context)
    for error in errors:
        _print_error(console, error)
    if errors:
        return 1

    if args.json:
        print(json.dumps([message.to_dict() for _, message in rendered], indent=2, ensure_ascii=False))
    elif args.prompt:
        print("\n".join(message.content for _, message in rendered))
    elif not rendered:
        console.print("[dim]No messages rendered[/dim]")
    else:
        for block, message in rendered:
            style = ROLE_STYLES.get(message.role.value, "white")
            console.print(Panel(
                Text(message.content),
                title=f"[bold {style}]{message.role.value}[/bold {style}] [dim]{escape(block.name)}[/dim]",
                title_align="left",
                border_style=style,
                padding=(0, 1)
            ))
    return 0


def run_variables(args: argparse.Namespace, console: Console) -> int:
    """Execute the ``variables`` command."""
    matches = search_variables(args.keyword)
    if not matches:
        console.print(f"[dim]No variables match '{escape(args.keyword)}'[/dim]", highlight=False)
        return 0

    table = Table(title="Template variables", border_style="cyan")
    table.add_column("Group", style="magenta")
    table.add_column("Variable", style="bold")
    table.add_column("Type")
    table.add_column("Description")
    for variable in matches:
        table.add_row(variable.group.value, variable.variable, variable.data_type, variable.description)
    console.print(table)
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    setup_logging(args.log_level or "WARNING")
    console = Console()

    try:
        if args.command == "render":
            config = load_config(args.config)
            if not args.log_level:
                setup_logging(config.log_level)
            return run_render(args, console, config)
        return run_variables(args, console)
    except (ConfigError, ConfigurationError, OSError) as e:
        _print_error(console, str(e))
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
