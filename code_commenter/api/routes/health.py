from __future__ import annotations

from fastapi import APIRouter

from code_commenter.core.config import settings

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check() -> dict:
    """Liveness probe.

    Reports whether a provider key is configured without contacting the
    provider, so it stays cheap enough for load balancer polling.
    """

    return {
        "status": "ok",
        "provider": settings.llm.provider,
        "llm_configured": settings.llm.provider == "mock" or bool(settings.llm.api_key),
    }
