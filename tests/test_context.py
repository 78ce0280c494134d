"""Tests for ProjectContext and its parts."""

import pytest

from devhub_ai.types import (
    GDD,
    OracleConcept,
    ProjectContext,
    RiskItem,
    RiskLevel,
    ScopeReport,
)


class TestGDD:
    """Test GDD."""

    def test_is_empty(self):
        """Test empty and blank GDDs are empty."""
        assert GDD().is_empty()
        assert GDD(name=" ").is_empty()
        assert not GDD(genre="Puzzle").is_empty()

    def test_merged(self):
        """Test merged() returns an updated copy."""
        gdd = GDD(name="Foo")
        updated = gdd.merged(genre="Puzzle")

        assert updated.name == "Foo"
        assert updated.genre == "Puzzle"
        assert gdd.genre is None

    def test_merged_unknown_field(self):
        """Test merged() rejects unknown fields."""
        with pytest.raises(TypeError, match="colour"):
            GDD().merged(colour="red")

    def test_from_dict_camel_case(self):
        """Test camelCase keys from the portal are accepted."""
        gdd = GDD.from_dict({"name": "Foo", "coreMechanic": "Jump", "elevatorPitch": "Go"})
        assert gdd.core_mechanic == "Jump"
        assert gdd.elevator_pitch == "Go"


class TestScopeReport:
    """Test ScopeReport."""

    def test_score_bounds(self):
        """Test scores outside 0-100 are rejected."""
        with pytest.raises(ValueError):
            ScopeReport(score=101, risk_level=RiskLevel.GREEN)
        with pytest.raises(ValueError):
            ScopeReport(score=-1, risk_level=RiskLevel.GREEN)

    def test_risk_level_coerced(self):
        """Test string risk levels become enums."""
        report = ScopeReport(score=50, risk_level="Yellow")
        assert report.risk_level is RiskLevel.YELLOW

    def test_from_dict(self):
        """Test camelCase report with risk items."""
        report = ScopeReport.from_dict({
            "score": 80,
            "riskLevel": "green",
            "criticalPath": ["core", "polish"],
            "riskItems": [
                {"name": "Art", "level": "red", "estimatedHours": 12, "suggestion": "Reuse"},
            ],
        })

        assert report.critical_path == ["core", "polish"]
        assert report.risk_items == [
            RiskItem(name="Art", level=RiskLevel.RED, estimated_hours=12, suggestion="Reuse")
        ]


class TestProjectContext:
    """Test ProjectContext patching and serialization."""

    def test_update_gdd(self):
        """Test field-by-field patching."""
        context = ProjectContext()
        context.update_gdd(name="Foo")
        context.update_gdd(genre="Puzzle")

        assert context.gdd == GDD(name="Foo", genre="Puzzle")
        assert not context.is_empty()

    def test_select_concept(self):
        """Test exactly one concept is selected."""
        context = ProjectContext()
        context.set_oracle_concepts([OracleConcept(id="a", name="A")])
        context.add_oracle_concept(OracleConcept(id="b", name="B", selected=True))

        context.select_concept("a")

        assert context.selected_concept.id == "a"
        assert [c.selected for c in context.oracle_concepts] == [True, False]

    def test_select_unknown_concept_clears(self):
        """Test selecting an unknown id leaves nothing selected."""
        context = ProjectContext(oracle_concepts=[OracleConcept(id="a", name="A", selected=True)])
        context.select_concept("zzz")
        assert context.selected_concept is None

    def test_round_trip(self):
        """Test to_dict/from_dict round-trip."""
        context = ProjectContext(
            gdd=GDD(name="Foo", theme="Roots"),
            scope_report=ScopeReport(score=10, risk_level="red", critical_path=["x"]),
            oracle_concepts=[
                OracleConcept(id="c1", name="Concept", mechanics="dig", selected=True)
            ],
        )

        assert ProjectContext.from_dict(context.to_dict()) == context

    def test_from_dict_camel_case(self):
        """Test portal-shaped payloads."""
        context = ProjectContext.from_dict({
            "gdd": {"name": "Foo", "artStyle": "Voxel"},
            "scopeReport": {"score": 55, "riskLevel": "yellow"},
            "oracleConcepts": [
                {
                    "id": "c1",
                    "name": "Concept",
                    "coreLoop": "dig, build",
                    "mdaBreakdown": {"mechanics": "dig", "dynamics": "", "aesthetics": ""},
                }
            ],
        })

        assert context.gdd.art_style == "Voxel"
        assert context.scope_report.risk_level is RiskLevel.YELLOW
        assert context.oracle_concepts[0].core_loop == "dig, build"
        assert context.oracle_concepts[0].mechanics == "dig"

    def test_copy_is_independent(self):
        """Test copy() does not share state."""
        context = ProjectContext(gdd=GDD(name="Foo"))
        clone = context.copy()
        clone.update_gdd(name="Bar")

        assert context.gdd.name == "Foo"
