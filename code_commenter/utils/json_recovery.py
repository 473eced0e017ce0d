"""Tolerant recovery of a JSON object from free-form model output.

Models asked for "JSON only" still wrap objects in prose or markdown fences,
or emit raw line breaks inside string values. Recovery is an ordered list
of pure strategies; each returns a ``ParseOutcome`` and the first success
wins.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Sequence

logger = logging.getLogger(__name__)

# Characters allowed after a backslash in a JSON string.
_JSON_ESCAPES = frozenset('"\\/bfnrtu')
_HEX = frozenset("0123456789abcdefABCDEF")
_CONTROL_ESCAPES = {"\n": "\\n", "\r": "\\r", "\t": "\\t", "\b": "\\b", "\f": "\\f"}

_COMMENTED_CODE_KEY = re.compile(r'"commentedCode"\s*:\s*"')
_NEXT_MEMBER = re.compile(r'"\s*,\s*"[A-Za-z_][A-Za-z0-9_]*"\s*:')
_OBJECT_TAIL = re.compile(r'"\s*\}\s*$')

_LITERAL_ESCAPE = re.compile(r'\\([ntr"\\])')
_LITERAL_ESCAPE_MAP = {"n": "\n", "t": "\t", "r": "\r", '"': '"', "\\": "\\"}


@dataclass(frozen=True)
class ParseOutcome:
    """Result of one parsing strategy.

    Exactly one of ``value`` (on success) or ``error`` (on failure) is set.
    """

    strategy: str
    value: Any = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class RecoveryError(ValueError):
    """Raised when no strategy could recover a JSON value."""

    def __init__(self, outcomes: Sequence[ParseOutcome]) -> None:
        self.outcomes = list(outcomes)
        summary = "; ".join(f"{o.strategy}: {o.error}" for o in self.outcomes)
        super().__init__(f"unrecoverable JSON output ({summary})")


def _loads(strategy: str, text: str) -> ParseOutcome:
    try:
        return ParseOutcome(strategy=strategy, value=json.loads(text))
    except json.JSONDecodeError as exc:
        return ParseOutcome(strategy=strategy, error=f"{exc.msg} at pos {exc.pos}")


def _object_span(text: str) -> str | None:
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        return None
    return text[start : end + 1]


def parse_direct(text: str) -> ParseOutcome:
    """Parse the whole output as JSON."""
    return _loads("direct", text.strip())


def parse_object_substring(text: str) -> ParseOutcome:
    """Parse the span between the first ``{`` and the last ``}``."""
    span = _object_span(text)
    if span is None:
        return ParseOutcome(strategy="substring", error="no object braces found")
    return _loads("substring", span)


def escape_json_string_body(raw: str) -> str:
    """Make the body of a JSON string literal valid.

    Valid escape sequences are kept as-is. Stray backslashes, unescaped
    double quotes, and raw control characters are escaped.
    """
    out: list[str] = []
    i = 0
    n = len(raw)
    while i < n:
        ch = raw[i]
        if ch == "\\":
            nxt = raw[i + 1] if i + 1 < n else ""
            if nxt == "u" and len(raw[i + 2 : i + 6]) == 4 and set(raw[i + 2 : i + 6]) <= _HEX:
                out.append(raw[i : i + 6])
                i += 6
                continue
            if nxt and nxt != "u" and nxt in _JSON_ESCAPES:
                out.append(ch + nxt)
                i += 2
                continue
            out.append("\\\\")
        elif ch == '"':
            out.append('\\"')
        elif ch in _CONTROL_ESCAPES:
            out.append(_CONTROL_ESCAPES[ch])
        elif ord(ch) < 0x20:
            out.append(f"\\u{ord(ch):04x}")
        else:
            out.append(ch)
        i += 1
    return "".join(out)


def _commented_code_ends(span: str, start: int) -> list[int]:
    """Candidate end offsets of the raw ``commentedCode`` body, nearest first.

    A body may end right before any following ``"name":`` member, or at the
    last quote before the object's closing brace. Unescaped quotes inside
    the code can produce false candidates; the caller keeps the first one
    whose repaired object parses.
    """
    ends = [m.start() for m in _NEXT_MEMBER.finditer(span, start)]
    tail = _OBJECT_TAIL.search(span, start)
    if tail is not None:
        ends.append(tail.start())
    return ends


def parse_repaired(text: str) -> ParseOutcome:
    """Re-escape the ``commentedCode`` value, then parse the object span."""
    span = _object_span(text)
    if span is None:
        return ParseOutcome(strategy="repair", error="no object braces found")

    key = _COMMENTED_CODE_KEY.search(span)
    if key is None:
        return ParseOutcome(strategy="repair", error="commentedCode value not found")
    start = key.end()

    outcome = ParseOutcome(strategy="repair", error="commentedCode value is unterminated")
    for end in _commented_code_ends(span, start):
        repaired = span[:start] + escape_json_string_body(span[start:end]) + span[end:]
        outcome = _loads("repair", repaired)
        if outcome.ok:
            return outcome
    return outcome


DEFAULT_STRATEGIES: tuple[Callable[[str], ParseOutcome], ...] = (
    parse_direct,
    parse_object_substring,
    parse_repaired,
)


def recover_json(
    text: str,
    strategies: Sequence[Callable[[str], ParseOutcome]] = DEFAULT_STRATEGIES,
) -> ParseOutcome:
    """Run strategies in order and return the first successful outcome.

    Args:
        text: Raw provider output.
        strategies: Ordered parsing strategies.

    Returns:
        The successful ParseOutcome (``outcome.strategy`` names the winner).

    Raises:
        RecoveryError: If every strategy failed.
    """
    failures: list[ParseOutcome] = []
    for strategy in strategies:
        outcome = strategy(text)
        if outcome.ok:
            if failures:
                logger.info(
                    "json_recovery.recovered",
                    extra={
                        "strategy": outcome.strategy,
                        "failed_strategies": [f.strategy for f in failures],
                    },
                )
            return outcome
        logger.debug(
            "json_recovery.strategy_failed",
            extra={"strategy": outcome.strategy, "reason": outcome.error},
        )
        failures.append(outcome)
    raise RecoveryError(failures)


def unescape_literal_sequences(value: str) -> str:
    """Undo a second layer of escaping left after JSON decoding.

    Literal ``\\n``, ``\\t``, ``\\r``, ``\\"`` and ``\\\\`` are decoded only
    when the text has no real line breaks, the signature of a double-encoded
    payload. Multi-line code is returned untouched so escapes inside its
    string literals survive.
    """
    if "\n" in value:
        return value
    return _LITERAL_ESCAPE.sub(lambda m: _LITERAL_ESCAPE_MAP[m.group(1)], value)
