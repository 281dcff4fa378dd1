"""Chat-completion client for an OpenAI-compatible endpoint (Groq by default)."""

import logging
from typing import Optional

from openai import OpenAI, OpenAIError

from bizdir.core.config import Settings, get_settings
from bizdir.core.errors import ExtractionError

logger = logging.getLogger(__name__)


class CompletionClient:
    """Issue a single user-message completion and return its text."""

    def __init__(self, settings: Optional[Settings] = None, client: Optional[OpenAI] = None) -> None:
        self.settings = settings or get_settings()
        self._client = client

    def _get_client(self) -> OpenAI:
        if self._client is None:
            if not self.settings.llm_api_key:
                raise ExtractionError("LLM_API_KEY environment variable is not set")
            self._client = OpenAI(api_key=self.settings.llm_api_key, base_url=self.settings.llm_base_url)
        return self._client

    def complete(self, prompt: str) -> str:
        client = self._get_client()
        logger.info("Requesting completion from %s (prompt chars=%d)", self.settings.llm_model, len(prompt))
        try:
            completion = client.chat.completions.create(
                model=self.settings.llm_model,
                messages=[{"role": "user", "content": prompt}],
                temperature=self.settings.llm_temperature,
                max_tokens=self.settings.llm_max_tokens,
            )
        except OpenAIError as exc:
            raise ExtractionError(f"Completion request failed: {exc}") from exc

        if not completion or not completion.choices or completion.choices[0].message is None:
            raise ExtractionError("Invalid response from completion endpoint")
        content = completion.choices[0].message.content
        if not content:
            raise ExtractionError("Empty response from completion endpoint")
        return content
