"""Mock provider for local development and load testing.

Returns deterministic output without network calls or API keys.

Enable by setting environment variable:
    LLM_PROVIDER=mock
"""

import asyncio
import json
from typing import Any

from code_commenter.adapters.llm.base import AbstractLLMClient
from code_commenter.services.prompts import CODE_MARKER

MOCK_BANNER = "[MOCK] Set LLM_PROVIDER and LLM_API_KEY for real annotations."


class MockLLMClient(AbstractLLMClient):
    """Echo the submitted code back with a single banner comment."""

    provider = "mock"

    def __init__(self, delay_seconds: float = 0.0) -> None:
        self.delay_seconds = delay_seconds
        self.calls: list[str] = []

    async def generate_text(
        self,
        prompt: str,
        *,
        temperature: float = 0.1,
        max_output_tokens: int = 2048,
        **kwargs: Any,
    ) -> str:
        self.calls.append(prompt)
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)

        _, _, code = prompt.partition(f"\n{CODE_MARKER}\n")
        code = code.removesuffix("\n")
        return json.dumps(
            {
                "language": "plaintext",
                "commentedCode": f"# {MOCK_BANNER}\n{code}",
            }
        )
