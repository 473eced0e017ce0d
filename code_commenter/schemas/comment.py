"""Pydantic schemas for the code commenting endpoint."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, StrictStr


class Personality(str, Enum):
    """Annotation style rubric selected by the client."""

    MENTOR = "mentor"
    MINIMALIST = "minimalist"
    INTERN = "intern"
    SECURITY = "security"
    PERFORMANCE = "performance"

    @classmethod
    def values(cls) -> list[str]:
        return [member.value for member in cls]


class CommentRequest(BaseModel):
    """Body of ``POST /api/comment``.

    Types are strict so a number or list is rejected instead of coerced.
    Length and personality membership are checked by the service, which
    owns the validation rules.
    """

    code: StrictStr = Field(
        ...,
        description="Code snippet to annotate (at most 3000 characters).",
    )
    personality: StrictStr = Field(
        ...,
        description="One of: mentor, minimalist, intern, security, performance.",
    )


class CommentResult(BaseModel):
    """Annotated code recovered from the upstream provider."""

    model_config = ConfigDict(populate_by_name=True)

    language: str = Field(
        "plaintext",
        description="Language detected by the model, used for syntax highlighting.",
    )
    commented_code: str = Field(
        ...,
        alias="commentedCode",
        min_length=1,
        description="The annotated (or refactored) code.",
    )


class PersonalityInfo(BaseModel):
    """Public description of a personality for UI pickers."""

    key: Personality
    label: str
