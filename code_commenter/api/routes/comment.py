from fastapi import APIRouter, Depends

from code_commenter.core.rate_limit import enforce_rate_limit
from code_commenter.schemas.comment import (
    CommentRequest,
    CommentResult,
    Personality,
    PersonalityInfo,
)
from code_commenter.services.comment_service import CommentService
from code_commenter.services.prompts import PERSONALITY_LABELS

router = APIRouter(tags=["Comment"])

_comment_service = CommentService()


def get_comment_service() -> CommentService:
    """Dependency returning the process-wide comment service."""
    return _comment_service


@router.post(
    "/comment",
    response_model=CommentResult,
    dependencies=[Depends(enforce_rate_limit)],
)
async def comment_code(
    payload: CommentRequest,
    service: CommentService = Depends(get_comment_service),
) -> CommentResult:
    """Annotate a code snippet in the chosen personality's style.

    Returns:
        CommentResult: ``{"language": ..., "commentedCode": ...}``.

    Errors are raised as AppError subclasses and rendered by the global
    exception handlers (400, 429, 500, 502, 503).
    """
    return await service.run(payload.code, payload.personality)


@router.get("/personalities", response_model=list[PersonalityInfo])
def list_personalities() -> list[PersonalityInfo]:
    """List the available personalities for UI pickers."""
    return [
        PersonalityInfo(key=personality, label=PERSONALITY_LABELS[personality])
        for personality in Personality
    ]
