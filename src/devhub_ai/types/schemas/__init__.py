"""Structured output schemas (pydantic models)."""

from .brainstorm import BrainstormResponse, GameIdea, ScopeAssessment

__all__ = [
    "BrainstormResponse",
    "GameIdea",
    "ScopeAssessment",
]
