"""Tests for substitution planning and the cross-run variable protocol."""

import logging

import pytest

from python_docx_runplan import (
    Annotation,
    AnnotationKind,
    RewriteEntry,
    Run,
    SubstitutionPlanner,
    UnannotatedRunError,
    UnknownRunError,
    plan_substitutions,
)

DATE_RUNS = [
    Run(0, 0, "12."),
    Run(0, 1, "05."),
    Run(0, 2, "2023"),
]

MIXED_RUNS = [
    Run(0, 0, "Wystawca: "),
    Run(0, 1, "Jan "),
    Run(0, 2, "Kowalski"),
    Run(2, 0, "Data: "),
    Run(2, 1, "12.05."),
    Run(2, 2, "2023"),
    Run(2, 3, " r."),
]


def as_tuples(plan: list[RewriteEntry]) -> list[tuple[int, int, str]]:
    return [(e.paragraph_index, e.run_index, e.final_text) for e in plan]


class TestAnnotation:
    """Tests for the Annotation tagged variant."""

    def test_coerce_wire_values(self):
        assert Annotation.coerce(None).kind is AnnotationKind.NONE
        assert Annotation.coerce("").kind is AnnotationKind.CLEAR
        assert Annotation.coerce("{{x}}") == Annotation.replace("{{x}}")

    def test_coerce_passes_annotations_through(self):
        annotation = Annotation.clear()
        assert Annotation.coerce(annotation) is annotation

    def test_coerce_rejects_other_types(self):
        with pytest.raises(TypeError):
            Annotation.coerce(42)

    def test_empty_replace_is_rejected(self):
        """An empty replacement must be spelled as clear."""
        with pytest.raises(ValueError):
            Annotation.replace("")

    def test_clear_cannot_carry_text(self):
        with pytest.raises(ValueError):
            Annotation(AnnotationKind.CLEAR, "text")

    def test_final_text(self):
        assert Annotation.none().final_text is None
        assert Annotation.clear().final_text == ""
        assert Annotation.replace("v").final_text == "v"
        assert Annotation.clear().to_value() == ""


class TestCrossRunProtocol:
    """Tests for head and continuation runs."""

    def test_split_date(self):
        """A date split into three runs collapses into the head run."""
        plan = SubstitutionPlanner().plan(
            DATE_RUNS, {(0, 0): "{{issueDate}}", (0, 1): "", (0, 2): ""}
        )

        assert as_tuples(plan) == [(0, 0, "{{issueDate}}"), (0, 1, ""), (0, 2, "")]

    def test_continuation_emptiness(self):
        """Every continuation run gets an entry with empty text, the head exactly one."""
        annotations = {
            (0, 1): "{{issuer}}",
            (0, 2): "",
            (2, 1): "{{issueDate}}",
            (2, 2): "",
        }

        plan = plan_substitutions(MIXED_RUNS, annotations)

        assert [e.final_text for e in plan].count("{{issuer}}") == 1
        assert [e.final_text for e in plan].count("{{issueDate}}") == 1
        continuations = [e.key for e in plan if e.is_continuation]
        assert continuations == [(0, 2), (2, 2)]

    def test_null_omission(self):
        """Runs annotated None never appear in the plan."""
        annotations = {(0, 0): None, (0, 1): "{{name}}", (0, 2): "", (2, 0): None}

        plan = plan_substitutions(MIXED_RUNS, annotations)

        keys = [e.key for e in plan]
        assert (0, 0) not in keys
        assert (2, 0) not in keys
        assert keys == [(0, 1), (0, 2)]

    def test_plan_is_sorted_regardless_of_input_order(self):
        annotations = {(2, 2): "", (0, 1): "{{a}}", (2, 1): "{{b}}"}

        plan = plan_substitutions(list(reversed(MIXED_RUNS)), annotations)

        assert [e.key for e in plan] == [(0, 1), (2, 1), (2, 2)]

    def test_plan_is_deterministic(self):
        annotations = {(0, 1): "{{a}}", (0, 2): ""}
        planner = SubstitutionPlanner()

        assert planner.plan(MIXED_RUNS, annotations) == planner.plan(MIXED_RUNS, annotations)

    def test_inputs_are_not_modified(self):
        runs = list(DATE_RUNS)
        annotations = {(0, 0): "{{d}}", (0, 1): ""}

        plan_substitutions(runs, annotations)

        assert runs == DATE_RUNS
        assert annotations == {(0, 0): "{{d}}", (0, 1): ""}

    def test_original_text_is_recorded(self):
        plan = plan_substitutions(DATE_RUNS, {(0, 0): "{{d}}", (0, 1): "", (0, 2): ""})

        assert [e.original_text for e in plan] == ["12.", "05.", "2023"]

    def test_annotation_objects_and_run_ids(self):
        annotations = {"0-0": Annotation.replace("{{d}}"), "0-1": Annotation.clear()}

        plan = plan_substitutions(DATE_RUNS, annotations)

        assert as_tuples(plan) == [(0, 0, "{{d}}"), (0, 1, "")]

    def test_duplicate_key_forms_are_rejected(self):
        with pytest.raises(ValueError):
            plan_substitutions(DATE_RUNS, {"0-0": "{{a}}", (0, 0): "{{b}}"})

    def test_orphan_continuation_is_logged(self, caplog):
        with caplog.at_level(logging.WARNING, logger="python_docx_runplan.planner"):
            plan = plan_substitutions(MIXED_RUNS, {(2, 3): ""})

        assert as_tuples(plan) == [(2, 3, "")]
        assert "without a preceding head run" in caplog.text


class TestCoverage:
    """Tests for partial and strict coverage."""

    def test_partial_coverage_by_default(self):
        plan = plan_substitutions(MIXED_RUNS, {(0, 2): "{{surname}}"})

        assert as_tuples(plan) == [(0, 2, "{{surname}}")]

    def test_strict_mode_reports_first_missing_run(self):
        planner = SubstitutionPlanner(require_full_coverage=True)
        annotations = {(0, 0): None, (0, 1): "{{a}}"}

        with pytest.raises(UnannotatedRunError) as exc_info:
            planner.plan(DATE_RUNS, annotations)

        assert (exc_info.value.paragraph_index, exc_info.value.run_index) == (0, 2)

    def test_strict_mode_accepts_explicit_none(self):
        planner = SubstitutionPlanner(require_full_coverage=True)

        plan = planner.plan(DATE_RUNS, {(0, 0): None, (0, 1): None, (0, 2): None})

        assert plan == []

    def test_unknown_run_is_rejected(self):
        with pytest.raises(UnknownRunError) as exc_info:
            plan_substitutions(DATE_RUNS, {(0, 0): "{{a}}", (5, 0): "{{b}}"})

        assert (exc_info.value.paragraph_index, exc_info.value.run_index) == (5, 0)


class TestGroupVariables:
    """Tests for grouping a plan into cross-run variables."""

    def test_groups_heads_with_continuations(self):
        plan = plan_substitutions(
            MIXED_RUNS,
            {(0, 1): "{{issuer}}", (0, 2): "", (2, 1): "{{issueDate}}", (2, 2): ""},
        )

        variables = SubstitutionPlanner.group_variables(plan)

        assert [(v.value, v.original_text) for v in variables] == [
            ("{{issuer}}", "Jan Kowalski"),
            ("{{issueDate}}", "12.05.2023"),
        ]
        assert [len(v.entries) for v in variables] == [2, 2]

    def test_single_run_replacement(self):
        plan = plan_substitutions(MIXED_RUNS, {(2, 1): "{{d}}"})

        variables = SubstitutionPlanner.group_variables(plan)

        assert len(variables) == 1
        assert variables[0].continuations == []

    def test_gap_breaks_a_variable(self):
        """A cleared run after an unchanged run is not a continuation."""
        plan = plan_substitutions(MIXED_RUNS, {(2, 0): "{{label}}", (2, 2): ""})

        variables = SubstitutionPlanner.group_variables(plan)

        assert len(variables) == 1
        assert variables[0].continuations == []
