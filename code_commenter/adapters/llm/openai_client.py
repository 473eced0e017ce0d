"""OpenAI LLM client adapter."""

import logging
from typing import Any

import openai
from openai import AsyncOpenAI

from code_commenter.adapters.llm.base import AbstractLLMClient
from code_commenter.core.config import settings
from code_commenter.core.errors import (
    ConfigurationAppError,
    MalformedResponseAppError,
    QuotaAppError,
    UpstreamAppError,
)

logger = logging.getLogger(__name__)


class OpenAIClient(AbstractLLMClient):
    """Client for OpenAI (or OpenAI-compatible) chat completions.

    Uses the official OpenAI Python SDK with async support. SDK-level
    retries are disabled: a failed call is terminal for the request.
    """

    provider = "openai"

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str | None = None,
        timeout_seconds: float = 60.0,
    ) -> None:
        """Initialize OpenAI async client.

        Args:
            api_key: OpenAI API key for authentication.
            model: Model name (e.g., "gpt-4o", "gpt-4o-mini").
            base_url: Optional custom base URL for OpenAI API.
            timeout_seconds: Timeout for requests in seconds.
        """
        self.client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout_seconds,
            max_retries=0,
        )
        self.model = model

    async def generate_text(
        self,
        prompt: str,
        *,
        temperature: float = 0.1,
        max_output_tokens: int = 2048,
        **kwargs: Any,
    ) -> str:
        """Generate a JSON-mode chat completion and return its raw text.

        Args:
            prompt: User prompt to send to the model.
            temperature: Sampling temperature.
            max_output_tokens: Maps to ``max_tokens``.
            **kwargs: Provider options (top_p, seed, ...).

        Returns:
            str: Message content as produced by the model.
        """
        messages = [
            {
                "role": "system",
                "content": "Output JSON only. No extra text or markdown formatting.",
            },
            {"role": "user", "content": prompt},
        ]

        request_params: dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_output_tokens,
            "response_format": {"type": "json_object"},
        }

        # Pass through additional parameters if provided
        allowed_params = {
            "top_p",
            "frequency_penalty",
            "presence_penalty",
            "seed",
        }
        for param in allowed_params:
            if param in kwargs:
                request_params[param] = kwargs[param]

        try:
            response = await self.client.chat.completions.create(**request_params)
        except openai.RateLimitError as exc:
            _log_provider_error(exc)
            raise QuotaAppError(
                code="upstream_quota_exceeded",
                message="The AI service quota is exhausted. Please try again later.",
                details={"provider": self.provider},
            ) from exc
        except (openai.AuthenticationError, openai.PermissionDeniedError) as exc:
            _log_provider_error(exc)
            raise ConfigurationAppError(
                code="llm_credentials_rejected",
                message="AI service credentials were rejected. Check server configuration.",
                details={"provider": self.provider},
            ) from exc
        except (openai.APIConnectionError, openai.APIStatusError) as exc:
            # APITimeoutError is an APIConnectionError subclass
            _log_provider_error(exc)
            raise UpstreamAppError(
                code="upstream_unavailable",
                message="AI service is temporarily overloaded. Please try again in a few moments.",
                details={"provider": self.provider},
            ) from exc

        content = response.choices[0].message.content if response.choices else None
        if not content or not content.strip():
            raise MalformedResponseAppError(
                code="upstream_empty_response",
                message="AI returned invalid response format. Please try again.",
                details={"provider": self.provider},
            )
        return content


def _log_provider_error(exc: Exception) -> None:
    extra: dict[str, Any] = {
        "provider": OpenAIClient.provider,
        "error_type": type(exc).__name__,
        "http_status": getattr(exc, "status_code", None),
    }
    if not settings.is_production:
        extra["error_msg"] = str(exc)
    logger.warning("llm.provider_error", extra=extra)
