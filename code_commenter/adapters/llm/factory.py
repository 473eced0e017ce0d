"""Factory pattern for creating LLM client instances."""

import logging

from code_commenter.adapters.llm.base import AbstractLLMClient
from code_commenter.adapters.llm.gemini_client import GeminiClient
from code_commenter.adapters.llm.mock_client import MockLLMClient
from code_commenter.adapters.llm.openai_client import OpenAIClient
from code_commenter.core.config import settings
from code_commenter.core.errors import ConfigurationAppError

logger = logging.getLogger(__name__)

SUPPORTED_PROVIDERS = ("gemini", "openai", "mock")

_client: AbstractLLMClient | None = None
_client_config: tuple | None = None


def _require_api_key(provider: str) -> str:
    if not settings.llm.api_key:
        logger.error(
            "llm.missing_api_key",
            extra={"provider": provider},
        )
        raise ConfigurationAppError(
            code="llm_missing_api_key",
            message="API key not configured",
            details={"hint": "Set the LLM_API_KEY environment variable"},
        )
    return settings.llm.api_key


def create_llm_client() -> AbstractLLMClient:
    """Factory function to instantiate LLM clients based on provider.

    Reads configuration from code_commenter.core.config.settings.

    Returns:
        AbstractLLMClient: Configured LLM client instance.

    Raises:
        ConfigurationAppError: If the provider is unknown or its key is missing.
    """
    provider = settings.llm.provider.lower()

    if provider == "gemini":
        return GeminiClient(
            api_key=_require_api_key(provider),
            model=settings.llm.model,
            timeout_seconds=settings.llm.timeout_seconds,
            top_p=settings.llm.top_p,
            top_k=settings.llm.top_k,
        )

    if provider == "openai":
        return OpenAIClient(
            api_key=_require_api_key(provider),
            model=settings.llm.model,
            base_url=settings.llm.base_url,
            timeout_seconds=settings.llm.timeout_seconds,
        )

    if provider == "mock":
        return MockLLMClient()

    raise ConfigurationAppError(
        code="llm_unknown_provider",
        message="AI provider is not configured correctly",
        details={"hint": f"Supported providers: {', '.join(SUPPORTED_PROVIDERS)}"},
    )


def get_llm_client() -> AbstractLLMClient:
    """Return a process-wide client, rebuilt when LLM settings change."""

    global _client, _client_config

    config = (
        settings.llm.provider.lower(),
        settings.llm.model,
        settings.llm.api_key,
        settings.llm.base_url,
        settings.llm.timeout_seconds,
        settings.llm.top_p,
        settings.llm.top_k,
    )
    if _client is None or _client_config != config:
        _client = create_llm_client()
        _client_config = config
        logger.info(
            "llm.client_created",
            extra={"provider": _client.provider, "model": settings.llm.model},
        )
    return _client


def reset_llm_client() -> None:
    """Drop the cached client."""

    global _client, _client_config
    _client = None
    _client_config = None
