"""LLM adapter layer - abstracts over multiple completion providers."""

from code_commenter.adapters.llm.base import AbstractLLMClient
from code_commenter.adapters.llm.factory import create_llm_client, get_llm_client
from code_commenter.adapters.llm.gemini_client import GeminiClient
from code_commenter.adapters.llm.mock_client import MockLLMClient
from code_commenter.adapters.llm.openai_client import OpenAIClient

__all__ = [
    "AbstractLLMClient",
    "GeminiClient",
    "MockLLMClient",
    "OpenAIClient",
    "create_llm_client",
    "get_llm_client",
]
