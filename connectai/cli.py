"""Command-line interface for the Connect AI assistant."""

import sys
import json
import asyncio
import argparse
from typing import Callable, List, Optional

import structlog
from dotenv import load_dotenv
from rich.console import Console
from rich.markdown import Markdown
from rich.markup import escape
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from .assistant import Assistant
from .config import ConfigManager
from .error_handling import ConnectAIError
from .logging_config import setup_logging
from .query_engine import QueryResult, entity_label


logger = structlog.get_logger()

EXIT_COMMANDS = {"exit", "quit", "konec"}


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="connectai",
        description="Connect AI - ask questions about your exported CRM data",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Ask a single question
  connectai ask "Kolik firem je v systému?" --data-dir ./export

  # Machine-readable answer
  connectai ask "Najdi firmu Alza" --json

  # Interactive session
  connectai shell --data-dir ./export

  # Generate configuration template
  connectai init-config config.json
""",
    )

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("-c", "--config", help="Path to configuration file")
    common.add_argument("-d", "--data-dir", help="Directory with exported CRM tables")
    common.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    ask_parser = subparsers.add_parser("ask", parents=[common], help="Answer a single query")
    ask_parser.add_argument("query", help="Question in natural language")
    ask_parser.add_argument("--json", action="store_true", help="Print the full result as JSON")

    subparsers.add_parser("shell", parents=[common], help="Interactive question loop")
    subparsers.add_parser("stats", parents=[common], help="Show index statistics")
    subparsers.add_parser("test-connection", parents=[common], help="Test configured providers")

    init_parser = subparsers.add_parser("init-config", help="Write a configuration template")
    init_parser.add_argument("path", help="Where to write the template")

    return parser


def build_assistant(args: argparse.Namespace) -> Assistant:
    """Load configuration, apply CLI overrides and configure logging."""
    config = ConfigManager(config_path=args.config).load()

    if args.data_dir:
        config.crm.data_dir = args.data_dir

    level = "DEBUG" if args.verbose else config.logging.level
    setup_logging(format=config.logging.format, level=level, log_file=config.logging.log_file)

    return Assistant.from_config(config)


def render_result(console: Console, result: QueryResult) -> None:
    """Print a query answer."""
    text = result.response
    if text.lstrip().startswith("{"):
        console.print(Syntax(text, "json", word_wrap=True))
    else:
        console.print(Markdown(text))

    if result.ai_error:
        console.print(f"[yellow]AI formatting unavailable: {escape(result.ai_error)}[/yellow]")


def render_result_json(console: Console, result: QueryResult) -> None:
    console.print_json(json.dumps(result.to_context(), ensure_ascii=False, default=str))


async def run_ask(args: argparse.Namespace, console: Console) -> int:
    assistant = build_assistant(args)
    await assistant.load()
    result = await assistant.ask(args.query)

    if args.json:
        render_result_json(console, result)
    else:
        render_result(console, result)

    return 1 if result.type == "error" else 0


async def run_shell(
    assistant: Assistant,
    console: Console,
    read_line: Optional[Callable[[str], str]] = None,
) -> int:
    """Interactive loop until ``exit``/``quit`` or end of input."""
    read_line = read_line or console.input
    loop = asyncio.get_running_loop()

    stats = await assistant.load()
    console.print(Panel(
        f"[bold cyan]{assistant.config.app.name}[/bold cyan] v{assistant.config.app.version}\n"
        f"Načteno {stats.total} {entity_label(None, stats.total)}. "
        "Pro ukončení napište [bold]exit[/bold].",
        border_style="cyan",
    ))

    while True:
        try:
            query = await loop.run_in_executor(None, read_line, "[cyan]?[/cyan] ")
        except (EOFError, KeyboardInterrupt):
            console.print()
            break

        query = query.strip()
        if not query:
            continue
        if query.lower() in EXIT_COMMANDS:
            break

        result = await assistant.ask(query)
        render_result(console, result)
        logger.debug("Query answered", query_type=result.type, confidence=result.confidence)

    return 0


async def run_stats(args: argparse.Namespace, console: Console) -> int:
    assistant = build_assistant(args)
    stats = await assistant.load()

    table = Table(title="Index statistics")
    table.add_column("Type", style="cyan")
    table.add_column("Records", justify="right")
    for entity_type, count in sorted(stats.by_type.items()):
        table.add_row(entity_type, str(count))
    table.add_row("[bold]total[/bold]", f"[bold]{stats.total}[/bold]")

    console.print(table)
    console.print(f"Indexed in {stats.indexing_time_ms:.2f}ms")
    return 0


async def run_test_connection(args: argparse.Namespace, console: Console) -> int:
    assistant = build_assistant(args)
    statuses = await assistant.test_connections()

    for status in statuses:
        mark = "[green]✓[/green]" if status.success else "[red]✗[/red]"
        console.print(f"{mark} {status.provider}: {status.message}")

    return 0 if all(status.success for status in statuses) else 1


def init_config(args: argparse.Namespace, console: Console) -> int:
    target = ConfigManager().save_template(args.path)
    console.print(f"✅ Configuration template saved to: {target}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    load_dotenv()

    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    console = Console()

    try:
        if args.command == "ask":
            return asyncio.run(run_ask(args, console))
        elif args.command == "shell":
            return asyncio.run(run_shell(build_assistant(args), console))
        elif args.command == "stats":
            return asyncio.run(run_stats(args, console))
        elif args.command == "test-connection":
            return asyncio.run(run_test_connection(args, console))
        elif args.command == "init-config":
            return init_config(args, console)
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        return 1
    except ConnectAIError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        return 1

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
