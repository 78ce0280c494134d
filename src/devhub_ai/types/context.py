"""DevHub AI - Project Context.

The ProjectContext aggregates what the AI knows about the active game
project: a partially filled GDD, an optional scope report and the
concepts produced by the Oracle.

The portal sends camelCase keys (coreMechanic, riskLevel, ...);
from_dict() accepts both camelCase and snake_case.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from typing import Any, Optional, Union

from .config import RiskLevel


def _pick(data: dict, *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    return default


def _risk_level(value: Union[RiskLevel, str]) -> RiskLevel:
    if isinstance(value, RiskLevel):
        return value
    return RiskLevel(str(value).lower())


@dataclass
class GDD:
    """Game design document fields used for prompting.

    All fields are optional; the composer skips absent ones.
    """
    name: Optional[str] = None
    genre: Optional[str] = None
    theme: Optional[str] = None
    core_mechanic: Optional[str] = None
    target_audience: Optional[str] = None
    art_style: Optional[str] = None
    elevator_pitch: Optional[str] = None

    def is_empty(self) -> bool:
        return not any(
            isinstance(value, str) and value.strip()
            for value in (getattr(self, f.name) for f in fields(self))
        )

    def merged(self, **updates: Optional[str]) -> GDD:
        """Return a copy with the given fields replaced."""
        unknown = set(updates) - {f.name for f in fields(self)}
        if unknown:
            raise TypeError(f"Unknown GDD field(s): {', '.join(sorted(unknown))}")
        return replace(self, **updates)

    def to_dict(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_dict(cls, data: dict) -> GDD:
        return cls(
            name=data.get("name"),
            genre=data.get("genre"),
            theme=data.get("theme"),
            core_mechanic=_pick(data, "core_mechanic", "coreMechanic"),
            target_audience=_pick(data, "target_audience", "targetAudience"),
            art_style=_pick(data, "art_style", "artStyle"),
            elevator_pitch=_pick(data, "elevator_pitch", "elevatorPitch"),
        )


@dataclass
class RiskItem:
    """A single scope risk with its mitigation."""
    name: str
    level: RiskLevel
    estimated_hours: float = 0
    suggestion: str = ""

    def __post_init__(self) -> None:
        self.level = _risk_level(self.level)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "level": self.level.value,
            "estimated_hours": self.estimated_hours,
            "suggestion": self.suggestion,
        }

    @classmethod
    def from_dict(cls, data: dict) -> RiskItem:
        return cls(
            name=data["name"],
            level=data["level"],
            estimated_hours=_pick(data, "estimated_hours", "estimatedHours", default=0),
            suggestion=data.get("suggestion", ""),
        )


@dataclass
class ScopeReport:
    """Scope analysis of the project.

    Attributes:
        score: Viability score, 0-100
        risk_level: Overall risk
        critical_path: Ordered milestones
        recommendations: Free-form advice
        risk_items: Individual risks
    """
    score: int
    risk_level: RiskLevel
    critical_path: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)
    risk_items: list[RiskItem] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not 0 <= self.score <= 100:
            raise ValueError(f"Scope score must be between 0 and 100, got {self.score}")
        self.risk_level = _risk_level(self.risk_level)

    def to_dict(self) -> dict:
        return {
            "score": self.score,
            "risk_level": self.risk_level.value,
            "critical_path": list(self.critical_path),
            "recommendations": list(self.recommendations),
            "risk_items": [item.to_dict() for item in self.risk_items],
        }

    @classmethod
    def from_dict(cls, data: dict) -> ScopeReport:
        return cls(
            score=data["score"],
            risk_level=_pick(data, "risk_level", "riskLevel"),
            critical_path=list(_pick(data, "critical_path", "criticalPath", default=[])),
            recommendations=list(data.get("recommendations", [])),
            risk_items=[
                RiskItem.from_dict(item)
                for item in _pick(data, "risk_items", "riskItems", default=[])
            ],
        )


@dataclass
class OracleConcept:
    """A game concept produced by the Oracle brainstorm."""
    id: str
    name: str
    pitch: str = ""
    core_loop: str = ""
    mechanics: str = ""
    dynamics: str = ""
    aesthetics: str = ""
    koster_analysis: str = ""
    flow_analysis: str = ""
    selected: bool = False

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "pitch": self.pitch,
            "core_loop": self.core_loop,
            "mda_breakdown": {
                "mechanics": self.mechanics,
                "dynamics": self.dynamics,
                "aesthetics": self.aesthetics,
            },
            "koster_analysis": self.koster_analysis,
            "flow_analysis": self.flow_analysis,
            "selected": self.selected,
        }

    @classmethod
    def from_dict(cls, data: dict) -> OracleConcept:
        mda = _pick(data, "mda_breakdown", "mdaBreakdown", default={}) or {}
        return cls(
            id=data["id"],
            name=data["name"],
            pitch=data.get("pitch", ""),
            core_loop=_pick(data, "core_loop", "coreLoop", default=""),
            mechanics=mda.get("mechanics", ""),
            dynamics=mda.get("dynamics", ""),
            aesthetics=mda.get("aesthetics", ""),
            koster_analysis=_pick(data, "koster_analysis", "kosterAnalysis", default=""),
            flow_analysis=_pick(data, "flow_analysis", "flowAnalysis", default=""),
            selected=bool(data.get("selected", False)),
        )


@dataclass
class ProjectContext:
    """Mutable description of the active project used to enrich prompts.

    Owned by one OrchestratorSession. Callers replace it wholesale or patch
    it between requests; persistence is the portal's job.
    """
    gdd: GDD = field(default_factory=GDD)
    scope_report: Optional[ScopeReport] = None
    oracle_concepts: list[OracleConcept] = field(default_factory=list)

    def is_empty(self) -> bool:
        """True when there is nothing to compose into a prompt."""
        return self.gdd.is_empty() and self.scope_report is None

    def update_gdd(self, **updates: Optional[str]) -> None:
        """Patch GDD fields in place."""
        self.gdd = self.gdd.merged(**updates)

    def set_scope_report(self, report: Optional[ScopeReport]) -> None:
        self.scope_report = report

    def add_oracle_concept(self, concept: OracleConcept) -> None:
        self.oracle_concepts = [*self.oracle_concepts, concept]

    def set_oracle_concepts(self, concepts: list[OracleConcept]) -> None:
        self.oracle_concepts = list(concepts)

    def select_concept(self, concept_id: str) -> None:
        """Mark exactly one concept as selected (none if the id is unknown)."""
        self.oracle_concepts = [
            replace(concept, selected=concept.id == concept_id)
            for concept in self.oracle_concepts
        ]

    @property
    def selected_concept(self) -> Optional[OracleConcept]:
        for concept in self.oracle_concepts:
            if concept.selected:
                return concept
        return None

    def copy(self) -> ProjectContext:
        """Return an independent copy."""
        return ProjectContext.from_dict(self.to_dict())

    def to_dict(self) -> dict:
        return {
            "gdd": self.gdd.to_dict(),
            "scope_report": self.scope_report.to_dict() if self.scope_report else None,
            "oracle_concepts": [c.to_dict() for c in self.oracle_concepts],
        }

    @classmethod
    def from_dict(cls, data: dict) -> ProjectContext:
        report = _pick(data, "scope_report", "scopeReport")
        return cls(
            gdd=GDD.from_dict(data.get("gdd") or {}),
            scope_report=ScopeReport.from_dict(report) if report else None,
            oracle_concepts=[
                OracleConcept.from_dict(c)
                for c in _pick(data, "oracle_concepts", "oracleConcepts", default=[]) or []
            ],
        )


__all__ = [
    "GDD",
    "RiskItem",
    "ScopeReport",
    "OracleConcept",
    "ProjectContext",
]
