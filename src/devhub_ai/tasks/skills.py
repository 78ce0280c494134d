"""Short descriptions for game-development skills."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from devhub_ai.orchestration import RequestExecutor

logger = logging.getLogger(__name__)


SKILL_SYSTEM_PROMPT = """You are a game development expert. Your task is to write short, concise descriptions of skills related to game development.

Rules:
- At most 1-2 short sentences (ideally under 100 characters)
- Focused on the game development context
- Describe what someone with this skill does on a gamedev team
- Do not use generic words like "skill" or "ability"
- Be specific and practical

Examples:
- "Unity C#" -> "Building games in Unity using C# for mechanics and systems"
- "Pixel Art" -> "Creating retro-style 2D art pixel by pixel"
- "QA Testing" -> "Testing and bug hunting to keep the game's quality high"
- "Sound Design" -> "Designing and creating sound effects for atmosphere"
- "Level Design" -> "Designing levels, game flow and the player's experience\""""


@dataclass
class SkillDescription:
    description: str
    provider: str


def build_skill_prompt(skill_name: str, category: Optional[str] = None) -> str:
    prompt = f'Write a short description for the skill "{skill_name}"'
    if category:
        prompt += f' in the category "{category}"'
    return prompt + ". Reply with the description only, without quotes or extra explanation."


async def describe_skill(
    executor: RequestExecutor,
    skill_name: str,
    category: Optional[str] = None,
) -> SkillDescription:
    """Generate a one-line description for a skill.

    Raises:
        ValueError: If skill_name is empty
        NoProvidersConfiguredError: If no provider is available
        AllProvidersFailedError: If every provider failed
    """
    if not skill_name or not skill_name.strip():
        raise ValueError("skill_name is required")

    result = await executor.generate_with_fallback(
        SKILL_SYSTEM_PROMPT, build_skill_prompt(skill_name.strip(), category)
    )
    return SkillDescription(description=result.text.strip(), provider=result.provider)


__all__ = ["SKILL_SYSTEM_PROMPT", "SkillDescription", "build_skill_prompt", "describe_skill"]
