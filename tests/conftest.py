"""Pytest configuration and fixtures shared across all test modules.

Environment variables are set before any application import so that the
module-level settings object is built from test values.
"""

import os

# CRITICAL: Set these before any imports that might load settings
os.environ["APP_ENV"] = "testing"
os.environ.setdefault("LLM_PROVIDER", "mock")
os.environ.setdefault("LLM_MODEL", "gemini-1.5-flash")
os.environ.setdefault("LLM_API_KEY", "test-key-123")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest

from code_commenter.adapters.llm.factory import reset_llm_client
from code_commenter.core.rate_limit import reset_rate_limiter


@pytest.fixture(autouse=True)
def _fresh_process_state():
    """Give every test an empty rate-limit table and a fresh provider client."""
    reset_rate_limiter()
    reset_llm_client()
    yield
    reset_rate_limiter()
    reset_llm_client()
