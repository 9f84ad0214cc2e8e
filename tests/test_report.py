"""End-to-end tests for analyze_practice()."""

import json

import pytest

from praxisflow import PracticeFacility, analyze_practice
from praxisflow.benchmarks.bands import SourceCitation
from praxisflow.benchmarks.knowledge import Artifact, InMemoryKnowledgeStore
from praxisflow.benchmarks.resolver import BenchmarkResolver
from praxisflow.core.config import TuningConfig
from praxisflow.core.entities import PracticeType, RoomType

from conftest import make_room, make_staff


class TestScenarioA:
    """Small dental practice with all essential rooms."""

    def test_scores(self, scenario_a_facility):
        """Layout >= 70, optimal assistant ratio, capacity 20."""
        report = analyze_practice(scenario_a_facility)

        assert report.layout.efficiency_score >= 70
        assert report.staffing.ratios["clinical_assistant_ratio"].actual == 2.0
        assert report.staffing.ratios["clinical_assistant_ratio"].score == 100
        assert report.capacity.estimated_capacity == 20
        assert report.overall_score == 89

    def test_workflow_and_connections(self, scenario_a_facility):
        """Declared workflows and connections are analysed."""
        report = analyze_practice(scenario_a_facility)

        assert len(report.workflows.workflows) == 1
        assert report.workflows.workflows[0].backtracking_count == 0
        assert report.connections.workflow_score < 100
        assert report.connections.top_connections

    def test_benchmarks_snapshot(self, scenario_a_facility):
        """Reports record the benchmark version and provenance."""
        data = analyze_practice(scenario_a_facility).to_dict()
        assert data["benchmarks"]["version"]
        assert data["benchmarks"]["from_knowledge"] is False

    def test_staffing_demand(self, scenario_a_facility):
        """Dental reports carry the recommended roster and harmony score."""
        report = analyze_practice(scenario_a_facility)
        data = report.to_dict()

        assert report.staffing_demand.derived.chairs == 1
        assert report.staffing_demand.coverage["assistant_total"] > 1
        assert data["staffing_demand"]["rounded_fte"]["assistant_total"] > 0
        assert data["capacity"]["harmony_score"] == 73.0


class TestScenarioB:
    """A practice with no rooms and no staff."""

    def test_neutral_defaults(self):
        """Empty inputs score 25 with no exception."""
        report = analyze_practice(PracticeFacility(patient_volume=10))

        assert report.layout.efficiency_score == 0
        assert report.layout.room_size_score is None
        assert report.staffing.overall_score is None
        assert report.capacity.estimated_capacity == 0
        assert report.aggregate.components["staffing"] == 50.0
        assert report.overall_score == 25

    def test_serialisable(self):
        """None sub-scores serialise as null."""
        data = json.loads(analyze_practice(PracticeFacility()).to_json())

        assert data["staffing"]["overall_score"] is None
        assert data["layout"]["room_size_score"] is None

    def test_empty_demand(self):
        """An empty dental practice gets an inactive demand, not an error."""
        report = analyze_practice(PracticeFacility())

        assert report.staffing_demand.is_practice_active is False
        assert report.capacity.harmony_score == 50.0


class TestMedicalPractice:
    """Demand rules are dental only."""

    def test_no_demand(self, scenario_a_rooms):
        facility = PracticeFacility(
            rooms=scenario_a_rooms,
            staff=[make_staff("Arzt", "p1"), make_staff("MFA", "c1")],
            practice_type=PracticeType.MEDICAL,
            patient_volume=20,
        )
        report = analyze_practice(facility)

        assert report.staffing_demand is None
        assert report.to_dict()["staffing_demand"] is None


class TestDeterminism:
    """Repeated runs produce identical output."""

    def test_byte_identical_json(self, scenario_a_facility):
        """Ten runs serialise to the same bytes."""
        outputs = {analyze_practice(scenario_a_facility).to_json() for _ in range(10)}
        assert len(outputs) == 1

    def test_unicode_kept(self, scenario_a_facility):
        """Units and umlauts are not escaped."""
        payload = analyze_practice(scenario_a_facility).to_json()
        assert "m²" in payload


class TestDebugOutput:
    """Optional staffing diagnostics."""

    def test_scores_unchanged(self, scenario_a_facility):
        """include_debug adds diagnostics without changing scores."""
        report = analyze_practice(scenario_a_facility)
        plain = report.to_dict()
        debug = report.to_dict(include_debug=True)

        assert "debug" not in plain["staffing"]
        assert "role_histogram" in debug["staffing"]["debug"]
        del debug["staffing"]["debug"]
        assert debug == plain

    def test_no_staff_ids(self):
        """Diagnostics never contain staff identifiers."""
        facility = PracticeFacility(
            rooms=[make_room("e", RoomType.EXAM)],
            staff=[make_staff("Hausmeister", "staff-secret-42")],
        )
        payload = analyze_practice(facility).to_json(include_debug=True)

        assert "staff-secret-42" not in payload
        assert "hausmeister" in payload


class TestInputs:
    """Input validation and injected collaborators."""

    def test_rejects_non_facility(self):
        """Anything but a PracticeFacility raises TypeError."""
        with pytest.raises(TypeError):
            analyze_practice({"rooms": []})

    def test_rejects_wrong_record_type(self):
        """Rooms must be RoomSpec records."""
        with pytest.raises(TypeError):
            PracticeFacility(rooms=[{"id": "r1"}])

    def test_resolver_used(self, scenario_a_facility):
        """Knowledge-backed benchmarks change room scores."""
        store = InMemoryKnowledgeStore({"layout": [
            Artifact(
                topic="room_size_exam",
                payload={"min": 14, "max": 20, "optimal": 16},
                citations=(SourceCitation("Praxisplanung.docx", "Behandlung"),),
            ),
        ]})
        report = analyze_practice(scenario_a_facility, resolver=BenchmarkResolver(store=store))
        exam = [r for r in report.layout.room_analyses if r.room_type == RoomType.EXAM]

        assert all(r.from_knowledge for r in exam)
        assert all(r.score < 100 for r in exam)
        assert report.benchmarks.from_knowledge is True

    def test_config_weights(self, scenario_a_facility):
        """Aggregate weights come from the tuning config."""
        config = TuningConfig(
            weight_efficiency=1.0, weight_room_size=0.0, weight_staffing=0.0, weight_capacity=0.0,
        )
        report = analyze_practice(scenario_a_facility, config=config)
        assert report.overall_score == report.layout.efficiency_score

    def test_length_to_area_injected(self, scenario_a_facility):
        """The area conversion is injectable."""
        report = analyze_practice(scenario_a_facility, length_to_area=lambda w, h: 1.0)
        assert all(r.area_sq_m == 1.0 for r in report.layout.room_analyses)
