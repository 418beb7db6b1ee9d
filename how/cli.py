import argparse
import logging
import sys
from typing import List, Optional

from rich.console import Console

from . import __doc__ as package_doc, __version__
from .agent import RefineLoop
from .api import GeminiClient
from .config import Config
from .errors import UsageError
from .executor import CommandExecutor
from .logger import CommandLogger, setup_logging
from .models import LoopState
from .ui import (
    confirm_execution,
    console as default_console,
    display_debug_info,
    display_history,
    prompt_api_key,
    run_configurator,
    status,
)

logger = logging.getLogger(__name__)

EXIT_CODES = {
    LoopState.SUCCEEDED: 0,
    LoopState.DECLINED: 0,
    LoopState.ABORTED: 1,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="how",
        description=(package_doc or "").strip().splitlines()[0],
    )
    parser.add_argument("-V", "--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-d", "--debug", action="store_true", help="print shell and platform information and exit")
    parser.add_argument("-c", "--config", action="store_true", help="configure the API key and model")
    parser.add_argument(
        "--history",
        nargs="?",
        const=10,
        type=int,
        metavar="N",
        help="show the last N executed commands (default 10) and exit",
    )
    parser.add_argument(
        "query",
        nargs="*",
        help="Enter your query in plain text. This will be used to generate a CLI command.",
    )
    return parser


def run_cli(argv: Optional[List[str]] = None, config: Optional[Config] = None, console: Optional[Console] = None) -> int:
    """
    Parses the command line and runs the requested action.

    Returns:
        The process exit code.

    Raises:
        UsageError: If no query was given.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    config = config or Config()
    console = console or default_console
    setup_logging(config)

    if args.debug:
        display_debug_info(console, config)
        return 0

    if args.config:
        run_configurator(console, config)
        return 0

    if args.history is not None:
        display_history(console, CommandLogger(config.log_dir).get_command_history(args.history))
        return 0

    query = " ".join(args.query).strip()
    if not query:
        raise UsageError("missing required argument 'query'")

    if not config.api_key:
        api_key = prompt_api_key(console)
        if not api_key:
            raise UsageError("an API key is required")
        config.set("api_key", api_key)

    loop = RefineLoop(
        client=GeminiClient(config.api_key, model=config.model, fallback_model=config.fallback_model),
        executor=CommandExecutor(shell=config.shell),
        confirm=confirm_execution,
        console=console,
        shell=config.get("shell", "cmd"),
        platform=sys.platform,
        max_attempts=config.max_attempts,
        status=status,
        history=CommandLogger(config.log_dir),
    )
    outcome = loop.run(query)
    logger.info(
        f"Finished in state {outcome.state.value} after {outcome.attempts} proposal(s) "
        f"and {outcome.executions} execution(s)"
    )
    return EXIT_CODES[outcome.state]
