import logging
from contextlib import nullcontext
from typing import Callable, ContextManager, Optional

from rich.console import Console
from rich.text import Text

from .api import GeminiClient
from .conversation import Conversation
from .errors import AttemptsExceeded, HowError
from .executor import CommandExecutor
from .logger import CommandLogger
from .models import ExecutionResult, LoopOutcome, LoopState, Proposal
from .ui import display_abort, display_proposal

logger = logging.getLogger(__name__)

ConfirmFn = Callable[[Proposal], str]
StatusFn = Callable[[str], ContextManager]

FIRST_ATTEMPT_LABEL = "Executing Magic ✨"
RETRY_LABEL = "Fixing Errors ✨"


class RefineLoop:
    """
    Drives one query through propose, confirm, execute and, on failure, retry.

    Every proposal and every error it produced stays in the conversation, so each
    new proposal is made with the full history of earlier attempts. Nothing is
    executed unless `confirm` answered "Yes" for that exact proposal.
    """

    def __init__(
        self,
        client: GeminiClient,
        executor: CommandExecutor,
        confirm: ConfirmFn,
        console: Console,
        shell: str,
        platform: str,
        max_attempts: int = 5,
        status: Optional[StatusFn] = None,
        history: Optional[CommandLogger] = None,
    ):
        self.client = client
        self.executor = executor
        self.confirm = confirm
        self.console = console
        self.shell = shell
        self.platform = platform
        self.max_attempts = max_attempts
        self.status = status or (lambda label: nullcontext())
        self.history = history
        self.state = LoopState.PROPOSING

    def _transition(self, state: LoopState):
        logger.debug(f"{self.state.value} -> {state.value}")
        self.state = state

    def run(self, query: str) -> LoopOutcome:
        """Runs the loop until the command succeeds, the user declines, or it aborts."""
        self.state = LoopState.PROPOSING
        conversation = Conversation.seed(query, shell=self.shell, platform=self.platform)
        outcome = LoopOutcome(state=self.state, conversation=conversation)

        try:
            self._loop(query, conversation, outcome)
        except HowError as e:
            logger.error(f"Aborting: {e}")
            display_abort(self.console, str(e))
            self._transition(LoopState.ABORTED)
            outcome.error = str(e)

        outcome.state = self.state
        return outcome

    def _loop(self, query: str, conversation: Conversation, outcome: LoopOutcome):
        notice = self.client.resolve_model()
        if notice:
            self.console.print(Text(notice, style="yellow"))

        while not self.state.is_terminal:
            if outcome.attempts >= self.max_attempts:
                raise AttemptsExceeded(outcome.attempts)

            proposal = self._propose(conversation, retry=outcome.attempts > 0)
            outcome.attempts += 1

            self._transition(LoopState.AWAITING_CONFIRMATION)
            display_proposal(self.console, proposal)
            if self.confirm(proposal) != "Yes":
                logger.info("User declined the proposed command")
                self._transition(LoopState.DECLINED)
                break

            self._transition(LoopState.EXECUTING)
            result = self._execute(proposal)
            outcome.executions += 1
            if self.history:
                self.history.log_execution(query, proposal, result)

            if result.succeeded:
                self._transition(LoopState.SUCCEEDED)
                break

            self._transition(LoopState.RETRYING_WITH_ERROR)
            conversation.append_error_feedback(result.error_text)
            self._transition(LoopState.PROPOSING)

    def _propose(self, conversation: Conversation, retry: bool) -> Proposal:
        with self.status(RETRY_LABEL if retry else FIRST_ATTEMPT_LABEL):
            proposal = self.client.propose(conversation.messages)
        conversation.append_proposal(proposal)
        return proposal

    def _execute(self, proposal: Proposal) -> ExecutionResult:
        return self.executor.execute(
            proposal.command,
            on_output=lambda chunk: self.console.out(chunk, end="", highlight=False),
            on_error=lambda chunk: self.console.print(Text(chunk.rstrip("\n"), style="red")),
        )
