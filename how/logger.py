import json
import logging
import os
from datetime import datetime
from typing import Dict, List, Any, Optional

from rich.logging import RichHandler
from rich.console import Console
from logging.handlers import RotatingFileHandler

from .config import Config
from .models import ExecutionResult, Proposal

logger = logging.getLogger(__name__)

HISTORY_FILE_NAME = "command_history.jsonl"


def setup_logging(config: Config):
    """Set up logging for the application."""
    root_logger = logging.getLogger()
    if any(getattr(h, "_how_handler", False) for h in root_logger.handlers):
        return

    root_logger.setLevel(logging.INFO if config.verbose else logging.WARNING)

    # Console handler (with Rich)
    console = Console(stderr=True)
    rich_handler = RichHandler(
        console=console,
        show_time=True,
        show_path=False,
        rich_tracebacks=True
    )
    rich_handler.setLevel(logging.INFO)
    rich_handler._how_handler = True
    root_logger.addHandler(rich_handler)

    # File handler (Rotating)
    try:
        os.makedirs(config.log_dir, exist_ok=True)
        file_handler = RotatingFileHandler(
            os.path.join(config.log_dir, "how.log"), maxBytes=10*1024*1024, backupCount=5  # 10 MB per file, 5 backups
        )
    except OSError as e:
        logger.warning(f"File logging disabled, could not open {config.log_dir}: {e}")
    else:
        file_handler.setLevel(logging.INFO)
        file_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
        file_handler._how_handler = True
        root_logger.addHandler(file_handler)

    # The model SDK is chatty at INFO
    for noisy in ("urllib3", "google", "grpc"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    logger.info(f"Logger initialized. Logs will be stored in {config.log_dir}")


class CommandLogger:
    """
    Keeps a history of executed commands, one JSON object per line.
    """
    def __init__(self, log_dir: str):
        self.log_dir = log_dir
        self.history_file = os.path.join(log_dir, HISTORY_FILE_NAME)

    def log_execution(self, query: str, proposal: Proposal, result: ExecutionResult) -> bool:
        """
        Append one executed command and its outcome to the history file.

        Args:
            query: The user's original request
            proposal: The command that was run, as proposed by the model
            result: The execution outcome

        Returns:
            True if the entry was written
        """
        entry = {
            "datetime": datetime.now().isoformat(),
            "query": query,
            "command": proposal.command,
            "explanation": proposal.explanation,
            "succeeded": result.succeeded,
            "returncode": result.returncode,
            "errors": result.error_text,
        }
        try:
            os.makedirs(self.log_dir, exist_ok=True)
            with open(self.history_file, "a", encoding="utf-8") as f:
                f.write(json.dumps(entry) + "\n")
            return True
        except OSError as e:
            logger.error(f"Failed to write to command history: {e}")
            return False

    def get_command_history(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """
        Get command execution history.

        Args:
            limit: Maximum number of history entries to return

        Returns:
            History entries, newest first
        """
        if not os.path.exists(self.history_file):
            return []

        history = []
        try:
            with open(self.history_file, "r", encoding="utf-8") as f:
                for line in f:
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        history.append(json.loads(line))
                    except json.JSONDecodeError:
                        logger.warning(f"Skipping unreadable history line in {self.history_file}")
        except OSError as e:
            logger.error(f"Failed to read command history: {e}")
            return []

        history.reverse()
        return history[:limit] if limit is not None else history
