"""The Oracle - game-idea brainstorming for jams.

The Oracle turns a vague idea, a jam theme, or nothing at all into 2-3
concrete, buildable game concepts plus a few questions to push the
creative direction further.

Prompt structure:
    User says: "<input>"            (or a theme-only / no-input variant)

    User context:
    Jam theme: "<theme>"
    Jam duration: <N> hours
    (band note: <=24h / <=48h / <=72h)
    Preferred genres: ...
    Engine: ...
    Experience level: ...

Runs through RequestExecutor.execute_with_fallback(), so a failing
provider hands over to the next one.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from devhub_ai.orchestration import RequestExecutor
from devhub_ai.types import ProjectContext
from devhub_ai.types.schemas import BrainstormResponse

logger = logging.getLogger(__name__)


ORACLE_SYSTEM_PROMPT = """You are "The Oracle", a creative game design expert who helps developers come up with ideas for their games.

Your role is creative brainstorming, especially for Game Jams where time is short and ideas must be achievable.

Important context:
- The user may have a vague idea, a jam theme, or just need inspiration
- Generate ideas that are ACHIEVABLE given the constraints (time, team, experience)
- Focus on simple but interesting core mechanics
- Balance originality against feasibility

When generating ideas:
1. Prioritize simple mechanics that can be implemented quickly
2. Suggest creative twists that make the game memorable
3. Consider genres the user knows or can learn quickly
4. Think about scope - less is more in a jam"""

EXPERIENCE_LEVELS = {
    "novice": "Beginner - suggest very simple ideas",
    "intermediate": "Intermediate - can handle moderate mechanics",
    "advanced": "Advanced - can implement more complex systems",
    "expert": "Expert - knows the engine well and can build elaborate things",
}


def jam_duration_note(hours: float) -> Optional[str]:
    """Scope guidance for a jam of the given length (None past 72h)."""
    if hours <= 24:
        return "(VERY short jam - ideas must be extremely simple)"
    if hours <= 48:
        return "(Short jam - focus on one polished core mechanic)"
    if hours <= 72:
        return "(Standard jam - there is room for some polish)"
    return None


@dataclass
class BrainstormRequest:
    """What the user told the Oracle.

    Attributes:
        user_input: Free-form idea or request
        jam_theme: Theme announced by the jam
        jam_hours: Jam length in hours
        preferred_genres: Genres the user likes
        preferred_engine: Engine the user will use
        experience_level: novice | intermediate | advanced | expert
    """
    user_input: Optional[str] = None
    jam_theme: Optional[str] = None
    jam_hours: Optional[float] = None
    preferred_genres: list[str] = field(default_factory=list)
    preferred_engine: Optional[str] = None
    experience_level: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> BrainstormRequest:
        """Create from a request body (camelCase or snake_case keys)."""
        def pick(*keys):
            for key in keys:
                if key in data:
                    return data[key]
            return None

        return cls(
            user_input=pick("user_input", "userInput"),
            jam_theme=pick("jam_theme", "jamTheme"),
            jam_hours=pick("jam_hours", "jamHours"),
            preferred_genres=list(pick("preferred_genres", "preferredGenres") or []),
            preferred_engine=pick("preferred_engine", "preferredEngine"),
            experience_level=pick("experience_level", "experienceLevel"),
        )


@dataclass
class BrainstormResult:
    """Brainstorm output plus the provider that produced it."""
    response: BrainstormResponse
    provider: str

    def to_dict(self) -> dict:
        return {**self.response.model_dump(mode="json"), "provider": self.provider}


def build_user_context(request: BrainstormRequest) -> list[str]:
    parts = []

    if request.jam_theme:
        parts.append(f'Jam theme: "{request.jam_theme}"')

    if request.jam_hours:
        parts.append(f"Jam duration: {request.jam_hours:g} hours")
        note = jam_duration_note(request.jam_hours)
        if note:
            parts.append(note)

    if request.preferred_genres:
        parts.append(f"User's preferred genres: {', '.join(request.preferred_genres)}")

    if request.preferred_engine:
        parts.append(f"Engine: {request.preferred_engine}")

    if request.experience_level:
        level = EXPERIENCE_LEVELS.get(request.experience_level, request.experience_level)
        parts.append(f"Experience level: {level}")

    return parts


def build_brainstorm_prompt(request: BrainstormRequest) -> str:
    """Build the user prompt for one brainstorm request."""
    parts = build_user_context(request)
    context = "\n\nUser context:\n" + "\n".join(parts) if parts else ""

    if request.user_input:
        return (
            f'The user says: "{request.user_input}"{context}\n\n'
            "Generate 2-3 game ideas based on what the user wants and their context."
        )
    if request.jam_theme:
        return (
            f"{context}\n\n"
            "Generate 2-3 game ideas based on the jam theme and the user's context."
        )
    return (
        f"{context}\n\n"
        "The user has no clear idea. Generate 2-3 interesting, achievable game ideas "
        "considering their context and preferences."
    )


async def brainstorm(
    executor: RequestExecutor,
    request: BrainstormRequest,
    *,
    context: Optional[ProjectContext] = None,
) -> BrainstormResult:
    """Ask the Oracle for game ideas.

    Args:
        executor: Executor to run on
        request: Brainstorm inputs
        context: Optional project context to include in the prompt

    Returns:
        BrainstormResult with the validated response and provider id

    Raises:
        NoProvidersConfiguredError: If no provider is available
        AllProvidersFailedError: If every provider failed
        SchemaValidationFailedError: If a provider answered off-schema
    """
    prompt = build_brainstorm_prompt(request)
    response, provider = await executor.structured_with_fallback(
        ORACLE_SYSTEM_PROMPT, prompt, BrainstormResponse, context=context
    )
    logger.info(f"Oracle produced {len(response.ideas)} ideas via {provider}")
    return BrainstormResult(response=response, provider=provider)


__all__ = [
    "ORACLE_SYSTEM_PROMPT",
    "BrainstormRequest",
    "BrainstormResult",
    "brainstorm",
    "build_brainstorm_prompt",
    "jam_duration_note",
]
