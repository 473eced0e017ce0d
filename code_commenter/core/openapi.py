"""OpenAPI metadata and customization utilities.

Enriches the generated schema with tag descriptions and documents the
rate-limit headers returned with 429 responses.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

_RATE_LIMIT_HEADERS = {
    "Retry-After": "Seconds until the client's window resets.",
    "X-RateLimit-Limit": "Requests allowed per window.",
    "X-RateLimit-Remaining": "Requests left in the current window.",
    "X-RateLimit-Reset": "UNIX time (seconds) when the window resets.",
}


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation.

    - Adds tags metadata if not present
    - Documents 429 responses (with rate-limit headers) on the comment endpoint
    """

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        schema = original_openapi()

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        desired_tags = [
            {
                "name": "Comment",
                "description": "Code annotation through the upstream model.",
            },
            {
                "name": "Health",
                "description": "Liveness checks.",
            },
        ]
        for tag in desired_tags:
            if tag["name"] not in existing_tag_names:
                tags.append(tag)

        post = schema.get("paths", {}).get("/api/comment", {}).get("post")
        if isinstance(post, dict):
            responses = post.setdefault("responses", {})
            responses.setdefault(
                "429",
                {
                    "description": "Client rate limit or provider quota exceeded",
                    "headers": {
                        name: {"description": desc, "schema": {"type": "string"}}
                        for name, desc in _RATE_LIMIT_HEADERS.items()
                    },
                },
            )
            for status, description in (
                ("400", "Missing or invalid fields, or code too long"),
                ("500", "Server misconfiguration"),
                ("502", "Malformed upstream output"),
                ("503", "Upstream unavailable or timed out"),
            ):
                responses.setdefault(status, {"description": description})

        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
