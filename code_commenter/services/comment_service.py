"""Code commenting service: the completion gateway.

This service turns a (code, personality) pair into annotated code. It handles:
- Input validation before any upstream work
- Prompt construction from the personality rubric
- A single, time-bounded provider call (no retries)
- Tolerant recovery of the JSON object from the raw model text
- Output validation and normalization
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Callable

from code_commenter.adapters.llm.base import AbstractLLMClient
from code_commenter.adapters.llm.factory import get_llm_client
from code_commenter.core.config import settings
from code_commenter.core.errors import (
    MalformedResponseAppError,
    UpstreamAppError,
    ValidationAppError,
)
from code_commenter.schemas.comment import CommentResult, Personality
from code_commenter.services.prompts import PROMPT_VERSION, build_prompt
from code_commenter.utils.json_recovery import (
    RecoveryError,
    recover_json,
    unescape_literal_sequences,
)

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "plaintext"


def validate_comment_request(code: Any, personality: Any) -> Personality:
    """Validate raw inputs.

    Args:
        code: Submitted snippet.
        personality: Submitted personality key.

    Returns:
        The parsed Personality.

    Raises:
        ValidationAppError: If the code is missing, not a string, blank or too
            long, or if the personality is unknown.
    """
    max_chars = settings.app.max_code_chars

    if not isinstance(code, str) or not isinstance(personality, str):
        raise ValidationAppError(
            code="invalid_input_format",
            message="Invalid input format",
        )

    if not code.strip():
        raise ValidationAppError(
            code="missing_code",
            message="Missing code or personality",
            details={"field": "code"},
        )

    if len(code) > max_chars:
        raise ValidationAppError(
            code="code_too_long",
            message=f"Code snippet too long. Please limit to {max_chars} characters.",
            details={"field": "code", "max_value": max_chars, "actual_value": len(code)},
        )

    try:
        return Personality(personality)
    except ValueError:
        raise ValidationAppError(
            code="unknown_personality",
            message="Unknown personality",
            details={"field": "personality", "allowed_values": Personality.values()},
        ) from None


def parse_completion(raw_text: str) -> CommentResult:
    """Recover a CommentResult from raw provider text.

    Raises:
        MalformedResponseAppError: If no JSON object can be recovered or it
            lacks a non-empty ``commentedCode`` string.
    """
    try:
        outcome = recover_json(raw_text)
    except RecoveryError as exc:
        logger.warning(
            "comment.unrecoverable_output",
            extra={
                "strategies": [o.strategy for o in exc.outcomes],
                "output_chars": len(raw_text),
            },
        )
        raise MalformedResponseAppError(
            code="malformed_upstream_response",
            message="AI returned invalid response format. Please try again.",
        ) from exc

    payload = outcome.value
    if not isinstance(payload, dict):
        raise MalformedResponseAppError(
            code="malformed_upstream_response",
            message="AI returned invalid response format. Please try again.",
        )

    commented_code = payload.get("commentedCode")
    if not isinstance(commented_code, str) or not commented_code.strip():
        raise MalformedResponseAppError(
            code="invalid_upstream_structure",
            message="AI returned invalid response format. Please try again.",
        )

    language = payload.get("language")
    if not isinstance(language, str) or not language.strip():
        language = DEFAULT_LANGUAGE

    return CommentResult(
        language=language.strip(),
        commented_code=unescape_literal_sequences(commented_code),
    )


class CommentService:
    """Gateway between the HTTP layer and the completion provider.

    Attributes:
        llm: Explicit provider client, or None to resolve the configured one
            lazily (after validation, so bad input never needs a key).
    """

    def __init__(
        self,
        llm: AbstractLLMClient | None = None,
        *,
        llm_resolver: Callable[[], AbstractLLMClient] = get_llm_client,
    ) -> None:
        self.llm = llm
        self._llm_resolver = llm_resolver

    def _resolve_llm(self) -> AbstractLLMClient:
        if self.llm is not None:
            return self.llm
        return self._llm_resolver()

    async def _complete(self, llm: AbstractLLMClient, prompt: str) -> str:
        timeout = settings.llm.timeout_seconds
        try:
            return await asyncio.wait_for(
                llm.generate_text(
                    prompt,
                    temperature=settings.llm.temperature,
                    max_output_tokens=settings.llm.max_output_tokens,
                ),
                timeout=timeout,
            )
        except asyncio.TimeoutError as exc:
            logger.warning(
                "comment.upstream_timeout",
                extra={"provider": llm.provider, "timeout_s": timeout},
            )
            raise UpstreamAppError(
                code="upstream_timeout",
                message="AI service took too long to respond. Please try again.",
                details={"provider": llm.provider},
            ) from exc

    async def run(self, code: Any, personality: Any) -> CommentResult:
        """Annotate ``code`` in the style of ``personality``.

        Args:
            code: Snippet to annotate.
            personality: Personality key.

        Returns:
            CommentResult with language and commented code.

        Raises:
            ValidationAppError: Invalid input (no upstream call made).
            ConfigurationAppError: Provider not configured (no upstream call made).
            UpstreamAppError: Provider unreachable, overloaded, or timed out.
            QuotaAppError: Provider quota exhausted.
            MalformedResponseAppError: Output not recoverable.
        """
        parsed_personality = validate_comment_request(code, personality)
        llm = self._resolve_llm()
        prompt = build_prompt(code, parsed_personality)

        start = time.perf_counter()
        raw_text = await self._complete(llm, prompt)
        result = parse_completion(raw_text)

        logger.info(
            "comment.completed",
            extra={
                "provider": llm.provider,
                "personality": parsed_personality.value,
                "prompt_version": PROMPT_VERSION,
                "language": result.language,
                "input_chars": len(code),
                "output_chars": len(result.commented_code),
                "upstream_ms": round((time.perf_counter() - start) * 1000, 2),
            },
        )
        return result
