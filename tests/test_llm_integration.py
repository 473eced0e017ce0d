"""Integration tests for the LLM adapter layer (SDK calls mocked)."""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import openai
import pytest
from google.genai import errors as genai_errors

from code_commenter.adapters.llm import (
    GeminiClient,
    MockLLMClient,
    OpenAIClient,
    create_llm_client,
    get_llm_client,
)
from code_commenter.core.config import settings
from code_commenter.core.errors import (
    ConfigurationAppError,
    MalformedResponseAppError,
    QuotaAppError,
    UpstreamAppError,
)
from code_commenter.schemas.comment import Personality
from code_commenter.services.prompts import build_prompt

_REQUEST = httpx.Request("POST", "https://api.example.test/v1/chat/completions")


def _openai_response(content: str | None) -> MagicMock:
    response = MagicMock()
    response.choices = [MagicMock(message=MagicMock(content=content))]
    return response


def _status_error(cls: type, status: int) -> Exception:
    return cls(
        "provider said no",
        response=httpx.Response(status, request=_REQUEST),
        body=None,
    )


class TestOpenAIClient:
    @pytest.mark.asyncio
    async def test_generate_text_returns_raw_content(self) -> None:
        client = OpenAIClient(api_key="test-key-123", model="gpt-4o-mini")

        with patch.object(
            client.client.chat.completions,
            "create",
            new_callable=AsyncMock,
            return_value=_openai_response('{"language": "python", "commentedCode": "x"}'),
        ) as mock_create:
            text = await client.generate_text("prompt", temperature=0.1, max_output_tokens=500)

        assert text == '{"language": "python", "commentedCode": "x"}'
        kwargs = mock_create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o-mini"
        assert kwargs["temperature"] == 0.1
        assert kwargs["max_tokens"] == 500
        assert kwargs["response_format"] == {"type": "json_object"}
        assert kwargs["messages"][-1] == {"role": "user", "content": "prompt"}

    @pytest.mark.asyncio
    async def test_passes_through_allowed_params_only(self) -> None:
        client = OpenAIClient(api_key="k", model="gpt-4o")

        with patch.object(
            client.client.chat.completions,
            "create",
            new_callable=AsyncMock,
            return_value=_openai_response("{}"),
        ) as mock_create:
            await client.generate_text("p", top_p=0.9, top_k=3)

        kwargs = mock_create.call_args.kwargs
        assert kwargs["top_p"] == 0.9
        assert "top_k" not in kwargs

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "exc,expected",
        [
            (_status_error(openai.RateLimitError, 429), QuotaAppError),
            (_status_error(openai.InternalServerError, 503), UpstreamAppError),
            (_status_error(openai.AuthenticationError, 401), ConfigurationAppError),
            (openai.APIConnectionError(request=_REQUEST), UpstreamAppError),
            (openai.APITimeoutError(request=_REQUEST), UpstreamAppError),
        ],
    )
    async def test_sdk_errors_are_mapped(self, exc: Exception, expected: type) -> None:
        client = OpenAIClient(api_key="k", model="gpt-4o")

        with patch.object(
            client.client.chat.completions,
            "create",
            new_callable=AsyncMock,
            side_effect=exc,
        ):
            with pytest.raises(expected) as exc_info:
                await client.generate_text("p")

        assert "provider said no" not in exc_info.value.message

    @pytest.mark.asyncio
    @pytest.mark.parametrize("content", [None, "   "])
    async def test_empty_content_is_malformed(self, content: str | None) -> None:
        client = OpenAIClient(api_key="k", model="gpt-4o")

        with patch.object(
            client.client.chat.completions,
            "create",
            new_callable=AsyncMock,
            return_value=_openai_response(content),
        ):
            with pytest.raises(MalformedResponseAppError):
                await client.generate_text("p")


class TestGeminiClient:
    @pytest.mark.asyncio
    async def test_generate_text_uses_json_mode_and_safety_settings(self) -> None:
        client = GeminiClient(api_key="test-key", model="gemini-1.5-flash")

        with patch.object(
            client.client.aio.models,
            "generate_content",
            new_callable=AsyncMock,
            return_value=MagicMock(text='{"commentedCode": "x"}'),
        ) as mock_generate:
            text = await client.generate_text("prompt", temperature=0.1, max_output_tokens=800)

        assert text == '{"commentedCode": "x"}'
        kwargs = mock_generate.call_args.kwargs
        assert kwargs["model"] == "gemini-1.5-flash"
        assert kwargs["contents"] == "prompt"
        config = kwargs["config"]
        assert config.response_mime_type == "application/json"
        assert config.temperature == 0.1
        assert config.max_output_tokens == 800
        assert config.top_k == 1
        assert len(config.safety_settings) == 4

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "exc,expected",
        [
            (
                genai_errors.ClientError(
                    429, {"error": {"code": 429, "message": "quota", "status": "RESOURCE_EXHAUSTED"}}
                ),
                QuotaAppError,
            ),
            (
                genai_errors.ClientError(
                    403, {"error": {"code": 403, "message": "denied", "status": "PERMISSION_DENIED"}}
                ),
                ConfigurationAppError,
            ),
            (
                genai_errors.ServerError(
                    503, {"error": {"code": 503, "message": "overloaded", "status": "UNAVAILABLE"}}
                ),
                UpstreamAppError,
            ),
            (httpx.ConnectError("connection refused"), UpstreamAppError),
        ],
    )
    async def test_sdk_errors_are_mapped(self, exc: Exception, expected: type) -> None:
        client = GeminiClient(api_key="test-key", model="gemini-1.5-flash")

        with patch.object(
            client.client.aio.models,
            "generate_content",
            new_callable=AsyncMock,
            side_effect=exc,
        ):
            with pytest.raises(expected):
                await client.generate_text("prompt")

    @pytest.mark.asyncio
    async def test_blocked_response_is_malformed(self) -> None:
        client = GeminiClient(api_key="test-key", model="gemini-1.5-flash")
        blocked = MagicMock(text=None)
        blocked.prompt_feedback.block_reason = "SAFETY"

        with patch.object(
            client.client.aio.models,
            "generate_content",
            new_callable=AsyncMock,
            return_value=blocked,
        ):
            with pytest.raises(MalformedResponseAppError):
                await client.generate_text("prompt")


class TestMockClient:
    @pytest.mark.asyncio
    async def test_echoes_code_from_prompt(self) -> None:
        client = MockLLMClient()
        code = "for i in range(3):\n    print(i)"

        text = await client.generate_text(build_prompt(code, Personality.INTERN))

        commented = json.loads(text)["commentedCode"]
        assert commented.endswith("\n" + code)
        assert client.calls and code in client.calls[0]


class TestFactory:
    def test_gemini_provider(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(settings.llm, "provider", "gemini")
        monkeypatch.setattr(settings.llm, "api_key", "k")

        assert isinstance(create_llm_client(), GeminiClient)

    def test_openai_provider(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(settings.llm, "provider", "OpenAI")
        monkeypatch.setattr(settings.llm, "model", "gpt-4o-mini")
        monkeypatch.setattr(settings.llm, "api_key", "k")

        client = create_llm_client()

        assert isinstance(client, OpenAIClient)
        assert client.model == "gpt-4o-mini"

    @pytest.mark.parametrize("provider", ["gemini", "openai"])
    def test_missing_api_key(self, provider: str, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(settings.llm, "provider", provider)
        monkeypatch.setattr(settings.llm, "api_key", None)

        with pytest.raises(ConfigurationAppError) as exc_info:
            create_llm_client()

        assert exc_info.value.code == "llm_missing_api_key"
        assert exc_info.value.message == "API key not configured"

    def test_mock_needs_no_key(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(settings.llm, "provider", "mock")
        monkeypatch.setattr(settings.llm, "api_key", None)

        assert isinstance(create_llm_client(), MockLLMClient)

    def test_unknown_provider(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(settings.llm, "provider", "carrier-pigeon")

        with pytest.raises(ConfigurationAppError) as exc_info:
            create_llm_client()

        assert exc_info.value.code == "llm_unknown_provider"

    def test_get_llm_client_caches_until_config_changes(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr(settings.llm, "provider", "mock")

        first = get_llm_client()
        assert get_llm_client() is first

        monkeypatch.setattr(settings.llm, "provider", "gemini")
        monkeypatch.setattr(settings.llm, "api_key", "k")
        assert isinstance(get_llm_client(), GeminiClient)
