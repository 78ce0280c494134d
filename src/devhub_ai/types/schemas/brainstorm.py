"""Brainstorm Schema - Structured output of the Oracle brainstorm.

The Oracle returns two or three game ideas tailored to the user's jam
context, plus follow-up questions to steer the creative direction.

Usage:
    >>> from devhub_ai.types.schemas import BrainstormResponse
    >>> response = await executor.generate_structured(
    ...     TaskType.ORACLE, ORACLE_SYSTEM_PROMPT, "A jam about gravity",
    ...     schema=BrainstormResponse,
    ... )
    >>> response.ideas[0].name
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class ScopeAssessment(str, Enum):
    """How big an idea is for a jam."""

    VERY_SIMPLE = "very_simple"
    SIMPLE = "simple"
    MODERATE = "moderate"


class GameIdea(BaseModel):
    """One game idea produced by the Oracle."""

    name: str = Field(description="Suggested name for the game (catchy and memorable)")
    elevator_pitch: str = Field(
        description="One or two sentences capturing the essence of the game"
    )
    genre: str = Field(description="Main genre of the game")
    core_mechanic: str = Field(description="The mechanic that defines the gameplay")
    unique_twist: str = Field(description="What makes this game different or interesting")
    art_style_suggestion: str = Field(description="A feasible visual style")
    scope_assessment: ScopeAssessment = Field(description="Scope assessment for a jam")
    why_it_works: str = Field(description="Why this idea fits the given context")


class BrainstormResponse(BaseModel):
    """Full Oracle brainstorm output."""

    ideas: list[GameIdea] = Field(
        min_length=2, max_length=3, description="Two or three generated game ideas"
    )
    creative_questions: list[str] = Field(
        min_length=2,
        max_length=3,
        description="Questions to further explore the creative direction",
    )
    theme_interpretation: Optional[str] = Field(
        default=None,
        description="If there is a jam theme, how it was interpreted creatively",
    )


__all__ = [
    "ScopeAssessment",
    "GameIdea",
    "BrainstormResponse",
]
