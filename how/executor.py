import logging
import subprocess
import threading
import platform
from typing import Callable, List, Optional, IO

from .errors import ExecutorFault
from .models import ExecutionResult

# Configure logging
logger = logging.getLogger(__name__)

OutputCallback = Callable[[str], None]


class CommandExecutor:
    """Runs shell commands and classifies the outcome."""

    def __init__(self, shell: Optional[str] = None):
        """
        Args:
            shell: Path of the shell used to interpret commands. Ignored on Windows,
                where the platform's default command interpreter is used.
        """
        self.shell = None if platform.system() == "Windows" else shell

    def execute(
        self,
        command: str,
        on_output: Optional[OutputCallback] = None,
        on_error: Optional[OutputCallback] = None,
    ) -> ExecutionResult:
        """
        Execute a single shell command.

        Standard output is handed to `on_output` line by line as it arrives, and
        standard error is collected in the background and handed to `on_error`.
        A failing command is reported through the result, never raised.

        Args:
            command: The shell command to execute
            on_output: Called with each stdout fragment
            on_error: Called with each stderr fragment

        Returns:
            The execution result

        Raises:
            ExecutorFault: If the shell itself could not be started
        """
        logger.info(f"Executing command: {command}")

        try:
            process = subprocess.Popen(
                command,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
                shell=True,
                executable=self.shell,
            )
        except OSError as e:
            logger.exception(f"Could not start shell {self.shell or '(default)'}: {e}")
            raise ExecutorFault(f"Could not start shell {self.shell or '(default)'}: {e}") from e

        stdout_chunks: List[str] = []
        error_chunks: List[str] = []

        stderr_reader = threading.Thread(
            target=self._drain, args=(process.stderr, error_chunks, on_error), daemon=True
        )
        stderr_reader.start()
        try:
            self._drain(process.stdout, stdout_chunks, on_output)
        finally:
            stderr_reader.join()
            returncode = process.wait()

        if returncode != 0 and not error_chunks:
            error_chunks.append(f"Command exited with status {returncode}")

        success = returncode == 0 and not error_chunks

        if success:
            logger.info(f"Command executed successfully: {command}")
        else:
            logger.error(f"Command failed with return code {returncode}: {command}")
            logger.error(f"stderr: {''.join(error_chunks)}")

        return ExecutionResult(
            succeeded=success,
            stdout_chunks=stdout_chunks,
            error_chunks=error_chunks,
            returncode=returncode,
        )

    @staticmethod
    def _drain(stream: IO[str], chunks: List[str], callback: Optional[OutputCallback]):
        """Reads a stream until it closes, keeping every fragment in order."""
        try:
            for chunk in stream:
                chunks.append(chunk)
                if callback:
                    callback(chunk)
        finally:
            stream.close()
