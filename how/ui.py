import os
import sys
from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.prompt import Prompt
from rich.table import Table
from rich.text import Text

from .config import Config
from .models import Proposal

console = Console()

API_KEY_URL = "https://aistudio.google.com/app/apikey"


def display_proposal(console: Console, proposal: Proposal) -> None:
    """Shows the proposed command, why, and any warning the model attached."""
    console.print(Text.assemble("By running: ", (f'"{proposal.command}"', "bold")))
    console.print(Text.assemble(("Explanation:", "bold"), " ", proposal.explanation))
    if proposal.warning:
        console.print(Text.assemble(("Warning:", "bold yellow"), " ", proposal.warning))


def confirm_execution(proposal: Proposal) -> str:
    """Ask user to confirm command execution."""
    answer = Prompt.ask(
        "Do you wanna run this command?",
        choices=["Yes", "No"],
        default="Yes",
        case_sensitive=False,
        console=console,
    )
    return "Yes" if answer.strip().lower() == "yes" else "No"


def status(label: str):
    """Spinner shown while waiting for the model."""
    return console.status(f"[yellow]{label}[/yellow]")


def prompt_api_key(console: Console) -> str:
    """Asks for a Gemini API key on first run."""
    console.print(f"Missing Gemini API Key. You can create or find your API key at {API_KEY_URL}.")
    return Prompt.ask("Paste your API key here", password=True, console=console).strip()


def run_configurator(console: Console, config: Config) -> None:
    """Interactively stores the API key and preferred model."""
    api_key = Prompt.ask(
        "Gemini API key (leave empty to keep the current one)",
        password=True,
        default="",
        show_default=False,
        console=console,
    ).strip()
    if api_key:
        config.set("api_key", api_key)

    model = Prompt.ask("Model", default=config.model, console=console).strip()
    if model:
        config.set("model", model)

    console.print(f"[green]Configuration saved to {config.config_file}[/green]")


def display_debug_info(console: Console, config: Config) -> None:
    """Prints shell and platform details."""
    console.print({
        "shell": os.environ.get("SHELL"),
        "platform": sys.platform,
        "python": sys.version.split()[0],
        "config_file": config.config_file,
    })


def display_history(console: Console, history: List[Dict[str, Any]]) -> None:
    """Display command execution history."""
    if not history:
        console.print("[yellow]No command history found.[/yellow]")
        return

    table = Table(title=f"Command History (Last {len(history)} Commands)")
    table.add_column("Time", style="cyan")
    table.add_column("Query", style="green")
    table.add_column("Command", style="yellow")
    table.add_column("Success", style="magenta")

    for entry in history:
        datetime_str = entry.get("datetime", "Unknown")
        if isinstance(datetime_str, str) and len(datetime_str) > 19:
            datetime_str = datetime_str[:19].replace("T", " ")

        table.add_row(
            datetime_str,
            Text(str(entry.get("query", "Unknown"))),
            Text(str(entry.get("command", ""))),
            "[green]✓" if entry.get("succeeded") else "[red]✗",
        )

    console.print(table)


def display_abort(console: Console, message: Optional[str]) -> None:
    console.print(Text(f"Error: {message or 'unknown error'}", style="bold red"))
