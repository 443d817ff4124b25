import unittest
from unittest.mock import AsyncMock, MagicMock

from google.genai import errors as genai_errors

from repo_nexus.domain.exceptions import ConfigurationError, GenerationError
from repo_nexus.infrastructure.gemini_client import GeminiClient


def _client_with(generate_content: AsyncMock) -> GeminiClient:
    client = GeminiClient(api_key="test-key", model="gemini-test")
    sdk = MagicMock()
    sdk.aio.models.generate_content = generate_content
    client._client = sdk
    return client


class TestGeminiClient(unittest.IsolatedAsyncioTestCase):
    async def test_missing_key_raises_configuration_error(self) -> None:
        with self.assertRaises(ConfigurationError):
            await GeminiClient(api_key=None).generate("hello")

    async def test_returns_response_text(self) -> None:
        generate_content = AsyncMock(return_value=MagicMock(text="flowchart TD"))
        client = _client_with(generate_content)

        self.assertEqual(await client.generate("draw it"), "flowchart TD")
        generate_content.assert_awaited_once_with(model="gemini-test", contents="draw it")

    async def test_empty_response_is_generation_error(self) -> None:
        client = _client_with(AsyncMock(return_value=MagicMock(text="  ")))

        with self.assertRaises(GenerationError):
            await client.generate("draw it")

    async def test_api_error_is_wrapped(self) -> None:
        error = genai_errors.APIError(429, {"error": {"code": 429, "message": "quota", "status": "RESOURCE_EXHAUSTED"}})
        client = _client_with(AsyncMock(side_effect=error))

        with self.assertRaises(GenerationError) as ctx:
            await client.generate("draw it")

        self.assertIs(ctx.exception.__cause__, error)
