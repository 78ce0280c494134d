"""Portal features built on the orchestration layer."""

from .oracle import (
    ORACLE_SYSTEM_PROMPT,
    BrainstormRequest,
    BrainstormResult,
    brainstorm,
    build_brainstorm_prompt,
    jam_duration_note,
)
from .skills import SKILL_SYSTEM_PROMPT, SkillDescription, build_skill_prompt, describe_skill

__all__ = [
    "ORACLE_SYSTEM_PROMPT",
    "BrainstormRequest",
    "BrainstormResult",
    "brainstorm",
    "build_brainstorm_prompt",
    "jam_duration_note",
    "SKILL_SYSTEM_PROMPT",
    "SkillDescription",
    "build_skill_prompt",
    "describe_skill",
]
