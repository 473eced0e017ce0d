from __future__ import annotations

from code_commenter.api.routes.comment import router as comment_router
from code_commenter.api.routes.health import router as health_router

__all__ = ["comment_router", "health_router"]
