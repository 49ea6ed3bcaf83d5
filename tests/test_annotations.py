"""Tests for annotation documents and Run Table serialization."""

import json
import logging

import pytest
import yaml

from python_docx_runplan import (
    AnnotationFormatError,
    Run,
    RunFormatting,
    build_context,
    dump_run_table,
    load_annotations,
    parse_annotation_document,
    parse_llm_response,
)

RUNS = [
    Run(0, 0, "Data: ", paragraph_id="00AA"),
    Run(0, 1, "12.", RunFormatting(bold=True), paragraph_id="00AA"),
    Run(0, 2, "05.2023", paragraph_id="00AA"),
    Run(3, 0, "Podpis", RunFormatting(font_size=10.5, color="#1F1F1F")),
]


class TestRunTableSerialization:
    """Tests for the data handed to the annotation stage."""

    def test_dump_run_table(self):
        data = dump_run_table(RUNS)

        assert data[1] == {
            "id": "0-1",
            "paragraph_index": 0,
            "run_index": 1,
            "text": "12.",
            "formatting": {"bold": True},
            "paragraph_id": "00AA",
        }
        assert "paragraph_id" not in data[3]
        assert data[3]["formatting"] == {"font_size": 10.5, "color": "#1F1F1F"}

    def test_run_table_survives_json(self):
        data = json.loads(json.dumps(dump_run_table(RUNS)))

        assert [Run.from_dict(item) for item in data] == RUNS

    def test_build_context(self):
        context = build_context(RUNS)

        assert context == [
            {
                "paragraph_index": 0,
                "paragraph_id": "00AA",
                "text": "Data: 12.05.2023",
                "runs": [
                    {"id": "0-0", "text": "Data: "},
                    {"id": "0-1", "text": "12."},
                    {"id": "0-2", "text": "05.2023"},
                ],
            },
            {
                "paragraph_index": 3,
                "paragraph_id": None,
                "text": "Podpis",
                "runs": [{"id": "3-0", "text": "Podpis"}],
            },
        ]


    def test_build_context_separates_tabbed_runs(self):
        runs = [Run(0, 0, "Data:"), Run(0, 1, "12.05", has_tab=True)]

        context = build_context(runs)

        assert context[0]["text"] == "Data: 12.05"
        assert [run["text"] for run in context[0]["runs"]] == ["Data:", "12.05"]

class TestDeltaForm:
    """Tests for the {"changes": [...]} form."""

    def test_changes(self):
        data = {"changes": [{"id": "0-1", "new": "{{issueDate}}"}, {"id": "0-2", "new": ""}]}

        assert parse_annotation_document(data) == {(0, 1): "{{issueDate}}", (0, 2): ""}

    def test_entries_without_strings_are_skipped(self):
        data = {
            "changes": [
                {"id": "0-1", "new": "{{a}}"},
                {"id": 7, "new": "x"},
                {"id": "0-2"},
                "garbage",
            ]
        }

        assert parse_annotation_document(data) == {(0, 1): "{{a}}"}

    def test_bad_run_id(self):
        with pytest.raises(AnnotationFormatError) as exc_info:
            parse_annotation_document({"changes": [{"id": "P0-R1", "new": "x"}]})

        assert len(exc_info.value.errors) == 1

    def test_duplicate_run_keeps_first_answer(self, caplog):
        data = {"changes": [{"id": "0-1", "new": "a"}, {"id": "0-1", "new": "b"}]}

        with caplog.at_level(logging.WARNING, logger="python_docx_runplan.annotations"):
            result = parse_annotation_document(data)

        assert result == {(0, 1): "a"}
        assert "already annotated" in caplog.text


class TestExplicitForm:
    """Tests for the {"annotations": [...]} form."""

    def test_annotations_with_null(self):
        data = {
            "annotations": [
                {"paragraph_index": 0, "run_index": 0, "value": None},
                {"paragraph_index": 0, "run_index": 1, "value": "{{d}}"},
                {"paragraph_index": 0, "run_index": 2, "value": ""},
            ]
        }

        assert parse_annotation_document(data) == {(0, 0): None, (0, 1): "{{d}}", (0, 2): ""}

    def test_invalid_entries_are_collected(self):
        data = {
            "annotations": [
                {"paragraph_index": -1, "run_index": 0, "value": "x"},
                {"paragraph_index": 0, "run_index": True, "value": "x"},
                {"paragraph_index": 0, "run_index": 1, "value": 3},
            ]
        }

        with pytest.raises(AnnotationFormatError) as exc_info:
            parse_annotation_document(data)

        assert len(exc_info.value.errors) == 3
        assert "annotation 2" in str(exc_info.value)

    def test_duplicate_run_is_rejected(self):
        data = {
            "annotations": [
                {"paragraph_index": 0, "run_index": 1, "value": "a"},
                {"paragraph_index": 0, "run_index": 1, "value": None},
            ]
        }

        with pytest.raises(AnnotationFormatError):
            parse_annotation_document(data)

    def test_missing_keys(self):
        with pytest.raises(AnnotationFormatError):
            parse_annotation_document({"edits": []})

    def test_not_an_object(self):
        with pytest.raises(AnnotationFormatError):
            parse_annotation_document([1, 2])


class TestLLMResponse:
    """Tests for parsing model output."""

    def test_plain_json(self):
        content = '{"changes": [{"id": "2-0", "new": "{{vin}}"}]}'

        assert parse_llm_response(content) == {(2, 0): "{{vin}}"}

    def test_repeated_id_in_response(self):
        content = '{"changes":[{"id":"0-0","new":"{{a}}"},{"id":"0-0","new":"{{b}}"}]}'

        assert parse_llm_response(content) == {(0, 0): "{{a}}"}

    def test_fenced_json(self):
        content = '```json\n{"changes": [{"id": "2-0", "new": "{{vin}}"}]}\n```'

        assert parse_llm_response(content) == {(2, 0): "{{vin}}"}

    def test_empty_response(self):
        with pytest.raises(AnnotationFormatError):
            parse_llm_response("   ")

    def test_not_json(self):
        with pytest.raises(AnnotationFormatError):
            parse_llm_response("I could not find any variables.")


class TestLoadAnnotations:
    """Tests for loading annotation files."""

    def test_load_yaml(self, tmp_path):
        path = tmp_path / "annotations.yaml"
        path.write_text(
            yaml.safe_dump(
                {"annotations": [{"paragraph_index": 1, "run_index": 0, "value": "{{x}}"}]}
            ),
            encoding="utf-8",
        )

        assert load_annotations(path) == {(1, 0): "{{x}}"}

    def test_load_json(self, tmp_path):
        path = tmp_path / "annotations.json"
        path.write_text(json.dumps({"changes": [{"id": "1-0", "new": ""}]}), encoding="utf-8")

        assert load_annotations(path) == {(1, 0): ""}

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_annotations(tmp_path / "missing.yaml")

    def test_unparseable_file(self, tmp_path):
        path = tmp_path / "annotations.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(AnnotationFormatError):
            load_annotations(path)
