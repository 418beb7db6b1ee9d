import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, TYPE_CHECKING

from .errors import MalformedResponseError

if TYPE_CHECKING:
    from .conversation import Conversation


class Role(str, Enum):
    """Author of a conversation turn, using the values sent on the wire."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class ConversationMessage:
    """A single turn in the conversation with the model."""

    role: Role
    content: str

    def to_dict(self) -> Dict[str, str]:
        return {"role": self.role.value, "content": self.content}


@dataclass(frozen=True)
class Proposal:
    """A command proposed by the model for the current turn."""

    command: str
    explanation: str
    warning: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> "Proposal":
        """
        Validate a decoded model response and build a Proposal from it.

        Args:
            data: The decoded JSON payload.

        Returns:
            The validated proposal.

        Raises:
            MalformedResponseError: If the payload is not an object with string
                `command` and `explanation` fields, or `warning` is not a string.
        """
        if not isinstance(data, dict):
            raise MalformedResponseError(
                f"Expected a JSON object from the model, got {type(data).__name__}."
            )

        for key in ("command", "explanation"):
            value = data.get(key)
            if not isinstance(value, str) or not value.strip():
                raise MalformedResponseError(f"Model response is missing a usable '{key}' field.")

        warning = data.get("warning")
        if warning is not None and not isinstance(warning, str):
            raise MalformedResponseError("Model response has a non-string 'warning' field.")

        return cls(
            command=data["command"].strip(),
            explanation=data["explanation"].strip(),
            warning=(warning.strip() or None) if warning else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"command": self.command, "explanation": self.explanation, "warning": self.warning}

    def to_json(self) -> str:
        return json.dumps(self.to_dict())


@dataclass
class ExecutionResult:
    """Outcome of running one command."""

    succeeded: bool
    stdout_chunks: List[str] = field(default_factory=list)
    error_chunks: List[str] = field(default_factory=list)
    returncode: Optional[int] = None

    @property
    def stdout(self) -> str:
        return "".join(self.stdout_chunks)

    @property
    def error_text(self) -> str:
        """Error fragments joined together, as sent back to the model."""
        return "\n".join(chunk.rstrip("\n") for chunk in self.error_chunks)


class LoopState(Enum):
    PROPOSING = "proposing"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    EXECUTING = "executing"
    RETRYING_WITH_ERROR = "retrying_with_error"
    SUCCEEDED = "succeeded"
    DECLINED = "declined"
    ABORTED = "aborted"

    @property
    def is_terminal(self) -> bool:
        return self in (LoopState.SUCCEEDED, LoopState.DECLINED, LoopState.ABORTED)


@dataclass
class LoopOutcome:
    """How a run of the refine-execute loop ended."""

    state: LoopState
    conversation: "Conversation"
    attempts: int = 0
    executions: int = 0
    error: Optional[str] = None
