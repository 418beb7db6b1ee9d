import logging
from typing import List, Tuple

from .models import ConversationMessage, Proposal, Role

logger = logging.getLogger(__name__)

ERROR_FEEDBACK_TEMPLATE = (
    "The command returned the following errors: {errors}. "
    "Please fix the errors and return the updated command using the previously specified format."
)


def build_system_prompt(shell: str, platform: str) -> str:
    """Constructs the fixed instruction that defines the response contract."""
    return f"""You are an expert terminal assistant. Your task is to convert a natural language request into a single shell command.

**Constraints:**
- The command will run in the `{shell}` shell on the `{platform}` platform.
- Respond with a single, valid JSON object and nothing else.
- The JSON object must have the keys "command" (the shell command as a string) and "explanation" (a brief explanation of what the command does).
- If the command could delete data, change system settings or is otherwise risky, add a "warning" key describing the risk. Otherwise omit it or set it to null.
- Return exactly one command. Chain steps with the shell's operators if more than one is needed.
- Ignore pleasantries or questions that are not about the command.
"""


class Conversation:
    """
    Append-only sequence of turns exchanged with the model.

    The first two turns (system instruction and the user's query) form the seed and
    are never replaced; proposals and error feedback are appended after them.
    """

    def __init__(self, seed: List[ConversationMessage]):
        self._messages: List[ConversationMessage] = list(seed)
        self._seed_length = len(self._messages)

    @classmethod
    def seed(cls, query: str, shell: str, platform: str) -> "Conversation":
        """Start a conversation for a raw user query."""
        return cls([
            ConversationMessage(Role.SYSTEM, build_system_prompt(shell, platform)),
            ConversationMessage(Role.USER, query),
        ])

    @property
    def messages(self) -> Tuple[ConversationMessage, ...]:
        return tuple(self._messages)

    @property
    def seed_messages(self) -> Tuple[ConversationMessage, ...]:
        return tuple(self._messages[:self._seed_length])

    def append(self, role: Role, content: str) -> ConversationMessage:
        message = ConversationMessage(role, content)
        self._messages.append(message)
        logger.debug(f"Appended {role.value} turn #{len(self._messages)}")
        return message

    def append_proposal(self, proposal: Proposal) -> ConversationMessage:
        return self.append(Role.ASSISTANT, proposal.to_json())

    def append_error_feedback(self, error_text: str) -> ConversationMessage:
        return self.append(Role.USER, ERROR_FEEDBACK_TEMPLATE.format(errors=error_text))

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self):
        return iter(self._messages)
