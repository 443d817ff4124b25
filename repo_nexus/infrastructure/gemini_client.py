import logging
from typing import Optional

from google import genai
from google.genai import errors as genai_errors

from repo_nexus.domain.exceptions import ConfigurationError, GenerationError

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.5-flash"


class GeminiClient:
    """
    Prompt-in, text-out wrapper around the Gemini API.
    The underlying SDK client is created on first use so the service can start without a key.
    """

    def __init__(self, api_key: Optional[str], model: str = DEFAULT_MODEL):
        self.api_key = api_key
        self.model = model
        self._client: Optional[genai.Client] = None

    def _get_client(self) -> genai.Client:
        if not self.api_key:
            raise ConfigurationError("GEMINI_API_KEY is not configured.")
        if self._client is None:
            self._client = genai.Client(api_key=self.api_key)
        return self._client

    async def generate(self, prompt: str) -> str:
        """
        Sends a single prompt and returns the response text.

        Raises:
            ConfigurationError: If no API key is configured.
            GenerationError: If the API call fails or returns no text.
        """
        client = self._get_client()
        try:
            response = await client.aio.models.generate_content(model=self.model, contents=prompt)
        except genai_errors.APIError as e:
            logger.warning(f"Gemini request failed ({e.code}): {e.message}")
            raise GenerationError(f"Generation failed: {e.message}") from e

        text = response.text
        if not text or not text.strip():
            raise GenerationError("The model returned an empty response.")
        return text
