"""Google Gemini client adapter (google-genai SDK)."""

import logging
from typing import Any

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from code_commenter.adapters.llm.base import AbstractLLMClient
from code_commenter.core.config import settings
from code_commenter.core.errors import (
    ConfigurationAppError,
    MalformedResponseAppError,
    QuotaAppError,
    UpstreamAppError,
)

logger = logging.getLogger(__name__)

_SAFETY_CATEGORIES = (
    types.HarmCategory.HARM_CATEGORY_HARASSMENT,
    types.HarmCategory.HARM_CATEGORY_HATE_SPEECH,
    types.HarmCategory.HARM_CATEGORY_SEXUALLY_EXPLICIT,
    types.HarmCategory.HARM_CATEGORY_DANGEROUS_CONTENT,
)

SAFETY_SETTINGS = [
    types.SafetySetting(
        category=category,
        threshold=types.HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE,
    )
    for category in _SAFETY_CATEGORIES
]


class GeminiClient(AbstractLLMClient):
    """Client for Gemini ``generate_content`` in JSON response mode."""

    provider = "gemini"

    def __init__(
        self,
        api_key: str,
        model: str,
        timeout_seconds: float = 60.0,
        top_p: float = 0.95,
        top_k: int = 1,
    ) -> None:
        """Initialize the Gemini client.

        Args:
            api_key: Gemini API key.
            model: Model name (e.g., "gemini-1.5-flash").
            timeout_seconds: Transport timeout in seconds.
            top_p: Nucleus sampling parameter.
            top_k: Top-k sampling parameter.
        """
        self.client = genai.Client(
            api_key=api_key,
            http_options=types.HttpOptions(timeout=int(timeout_seconds * 1000)),
        )
        self.model = model
        self.top_p = top_p
        self.top_k = top_k

    def _build_config(
        self, temperature: float, max_output_tokens: int, **kwargs: Any
    ) -> types.GenerateContentConfig:
        return types.GenerateContentConfig(
            response_mime_type="application/json",
            temperature=temperature,
            top_p=kwargs.get("top_p", self.top_p),
            top_k=kwargs.get("top_k", self.top_k),
            max_output_tokens=max_output_tokens,
            safety_settings=SAFETY_SETTINGS,
        )

    async def generate_text(
        self,
        prompt: str,
        *,
        temperature: float = 0.1,
        max_output_tokens: int = 2048,
        **kwargs: Any,
    ) -> str:
        """Generate content and return the response text.

        Raises:
            QuotaAppError: HTTP 429 / RESOURCE_EXHAUSTED.
            ConfigurationAppError: HTTP 401 / 403 (bad or unauthorized key).
            UpstreamAppError: Any other API or transport failure.
            MalformedResponseAppError: No text returned (e.g., safety block).
        """
        config = self._build_config(temperature, max_output_tokens, **kwargs)

        try:
            response = await self.client.aio.models.generate_content(
                model=self.model,
                contents=prompt,
                config=config,
            )
        except genai_errors.APIError as exc:
            _log_provider_error(exc, http_status=exc.code)
            if exc.code == 429 or exc.status == "RESOURCE_EXHAUSTED":
                raise QuotaAppError(
                    code="upstream_quota_exceeded",
                    message="The AI service quota is exhausted. Please try again later.",
                    details={"provider": self.provider},
                ) from exc
            if exc.code in (401, 403):
                raise ConfigurationAppError(
                    code="llm_credentials_rejected",
                    message="AI service credentials were rejected. Check server configuration.",
                    details={"provider": self.provider},
                ) from exc
            raise UpstreamAppError(
                code="upstream_unavailable",
                message="AI service is temporarily overloaded. Please try again in a few moments.",
                details={"provider": self.provider},
            ) from exc
        except httpx.HTTPError as exc:
            _log_provider_error(exc)
            raise UpstreamAppError(
                code="upstream_unavailable",
                message="AI service is temporarily overloaded. Please try again in a few moments.",
                details={"provider": self.provider},
            ) from exc

        text = response.text
        if not text or not text.strip():
            logger.warning(
                "llm.empty_response",
                extra={
                    "provider": self.provider,
                    "block_reason": _block_reason(response),
                },
            )
            raise MalformedResponseAppError(
                code="upstream_empty_response",
                message="AI returned invalid response format. Please try again.",
                details={"provider": self.provider},
            )
        return text


def _block_reason(response: Any) -> str | None:
    feedback = getattr(response, "prompt_feedback", None)
    reason = getattr(feedback, "block_reason", None)
    return str(reason) if reason else None


def _log_provider_error(exc: Exception, *, http_status: int | None = None) -> None:
    extra: dict[str, Any] = {
        "provider": GeminiClient.provider,
        "error_type": type(exc).__name__,
        "http_status": http_status,
    }
    if not settings.is_production:
        extra["error_msg"] = str(exc)
    logger.warning("llm.provider_error", extra=extra)
