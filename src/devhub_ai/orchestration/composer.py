"""Context Composer - ProjectContext to prompt fragment.

Output is deterministic so callers can snapshot-test prompts:

    ## Project Context (GDD)
    - Name: Foo
    - Genre: Platformer

    ## Scope Analysis
    - Viability Score: 72/100
    - Risk Level: yellow
    - Critical Path: movement, levels

Absent fields produce no line. An empty context composes to "", which
callers treat as "omit this section".
"""

from __future__ import annotations

from typing import Optional

from devhub_ai.types import GDD, ProjectContext, ScopeReport

GDD_HEADING = "## Project Context (GDD)"
SCOPE_HEADING = "## Scope Analysis"

# Fixed field order and labels
GDD_FIELDS: tuple[tuple[str, str], ...] = (
    ("name", "Name"),
    ("genre", "Genre"),
    ("theme", "Theme"),
    ("core_mechanic", "Core Mechanic"),
    ("art_style", "Art Style"),
    ("elevator_pitch", "Pitch"),
)


def _present(value: Optional[str]) -> bool:
    return isinstance(value, str) and bool(value.strip())


def compose_gdd(gdd: GDD) -> list[str]:
    lines = [
        f"- {label}: {getattr(gdd, attr)}"
        for attr, label in GDD_FIELDS
        if _present(getattr(gdd, attr))
    ]
    if not lines:
        return []
    return [GDD_HEADING, *lines]


def compose_scope(report: ScopeReport) -> list[str]:
    lines = [
        SCOPE_HEADING,
        f"- Viability Score: {report.score}/100",
        f"- Risk Level: {report.risk_level.value}",
    ]
    if report.critical_path:
        lines.append(f"- Critical Path: {', '.join(report.critical_path)}")
    return lines


def compose(context: Optional[ProjectContext]) -> str:
    """Turn a project context into a prompt fragment.

    Never mutates context.

    Args:
        context: Project context (None composes to "")

    Returns:
        Composed fragment, or "" when there is nothing to say
    """
    if context is None:
        return ""

    sections = []
    gdd_lines = compose_gdd(context.gdd)
    if gdd_lines:
        sections.append("\n".join(gdd_lines))
    if context.scope_report is not None:
        sections.append("\n".join(compose_scope(context.scope_report)))

    return "\n\n".join(sections)


__all__ = ["compose", "compose_gdd", "compose_scope", "GDD_FIELDS"]
