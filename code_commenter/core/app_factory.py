"""Application factory for the FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers) so
tests can build isolated instances.
"""

from __future__ import annotations

from fastapi import FastAPI

from code_commenter.api.routes import comment_router, health_router
from code_commenter.core.config import settings
from code_commenter.core.exception_handlers import setup_exception_handlers
from code_commenter.core.logging import configure_logging
from code_commenter.core.middleware import request_id_middleware
from code_commenter.core.openapi import apply_openapi_customizations


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="Code Commenter API",
        description=(
            "Annotates pasted code snippets through a large language model in "
            "one of five personalities (mentor, minimalist, intern, security, "
            "performance). Returns the detected language and the commented "
            "code. Rate limited per client."
        ),
        version="0.1.0",
        debug=settings.app.debug,
        license_info={
            "name": "MIT License",
            "url": "https://opensource.org/licenses/MIT",
        },
    )

    app.middleware("http")(request_id_middleware)

    setup_exception_handlers(app)

    app.include_router(comment_router, prefix="/api")
    app.include_router(health_router)

    apply_openapi_customizations(app)

    return app
