import json
import logging
from typing import Any, Dict, List, Optional, Sequence

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions
from google.generativeai.types import GenerationConfig

from .config import DEFAULT_FALLBACK_MODEL, DEFAULT_MODEL
from .errors import MalformedResponseError, TransportError
from .models import ConversationMessage, Proposal, Role

# Configure logging
logger = logging.getLogger(__name__)

MODEL_PREFIX = "models/"


def _strip_model_prefix(name: str) -> str:
    return name[len(MODEL_PREFIX):] if name.startswith(MODEL_PREFIX) else name


class GeminiClient:
    """A client that asks Gemini for one structured command proposal at a time."""

    def __init__(self, api_key: str, model: str = DEFAULT_MODEL, fallback_model: str = DEFAULT_FALLBACK_MODEL):
        """
        Initializes the GeminiClient.

        Args:
            api_key: The Google API key.
            model: The preferred model.
            fallback_model: Model used when the preferred one is not available to this key.
        """
        self.api_key = api_key
        self.model_name = _strip_model_prefix(model)
        self.fallback_model = _strip_model_prefix(fallback_model)
        self._model_resolved = False
        genai.configure(api_key=self.api_key)
        logger.info(f"Initialized Gemini client with model: {self.model_name}")

    def available_models(self) -> List[str]:
        """Lists the models this key may use for content generation."""
        try:
            return [
                _strip_model_prefix(m.name)
                for m in genai.list_models()
                if "generateContent" in getattr(m, "supported_generation_methods", ["generateContent"])
            ]
        except google_exceptions.GoogleAPIError as e:
            logger.error(f"Error listing Gemini models: {e}")
            raise TransportError(f"Could not list available models: {e}") from e

    def resolve_model(self) -> Optional[str]:
        """
        Checks the configured model against the available ones, once per client.

        Returns:
            A notice for the user if the fallback model was substituted, otherwise None.
        """
        if self._model_resolved:
            return None

        available = self.available_models()
        self._model_resolved = True
        if self.model_name in available:
            return None

        notice = (
            f"Model {self.model_name} is not available for your API key. "
            f"Downgrading to {self.fallback_model} instead."
        )
        logger.warning(notice)
        self.model_name = self.fallback_model
        return notice

    def propose(self, messages: Sequence[ConversationMessage]) -> Proposal:
        """
        Sends the conversation to the model and parses the proposed command.

        Raises:
            TransportError: If the API call fails.
            MalformedResponseError: If the reply is not a valid proposal.
        """
        self.resolve_model()

        system_instruction, contents = self._to_gemini_contents(messages)
        model = genai.GenerativeModel(
            self.model_name,
            system_instruction=system_instruction or None,
            generation_config=GenerationConfig(response_mime_type="application/json"),
        )
        try:
            response = model.generate_content(contents)
        except google_exceptions.GoogleAPIError as e:
            logger.error(f"Error calling Gemini API: {e}")
            raise TransportError(f"Gemini API request failed: {e}") from e

        try:
            text = response.text
        except ValueError as e:
            # Raised by the SDK when the candidate was blocked or has no text parts
            logger.error(f"Gemini returned no usable text: {e}")
            raise MalformedResponseError(f"The model returned no usable text: {e}") from e

        return Proposal.from_dict(self._parse_json_response(text))

    @staticmethod
    def _to_gemini_contents(messages: Sequence[ConversationMessage]) -> tuple:
        """Splits system turns into the system instruction and maps the rest to Gemini roles."""
        system_parts = []
        contents: List[Dict[str, Any]] = []
        for message in messages:
            if message.role is Role.SYSTEM:
                system_parts.append(message.content)
            else:
                role = "model" if message.role is Role.ASSISTANT else "user"
                contents.append({"role": role, "parts": [message.content]})
        return "\n\n".join(system_parts), contents

    @staticmethod
    def _parse_json_response(response_text: str) -> Any:
        """Parses a JSON string from the model's response."""
        text = response_text.strip()
        if "```json" in text:
            text = text.split("```json", 1)[1].split("```", 1)[0]
        elif text.startswith("```"):
            text = text.strip("`").strip()

        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse JSON response: '{response_text}'. Error: {e}")
            raise MalformedResponseError(
                "Invalid or unexpected response format from the model.", raw=response_text
            ) from e
