"""
Reading and writing the data exchanged with the annotation stage.

The annotation stage (an LLM call or a review UI) receives the Run Table and
answers with per-run annotations. Two answer shapes are accepted:

Delta form, listing only the runs that change::

    {"changes": [{"id": "0-0", "new": "{{issueDate}}"}, {"id": "0-1", "new": ""}]}

Explicit form, where ``value`` may be null for an unchanged run::

    annotations:
      - paragraph_index: 0
        run_index: 0
        value: "{{issueDate}}"
      - paragraph_index: 0
        run_index: 1
        value: ""
"""

import json
import logging
import re
from pathlib import Path
from typing import Any

import yaml

from .errors import AnnotationFormatError
from .models.annotation import AnnotationValue
from .models.run import Run, group_paragraphs, parse_run_id

logger = logging.getLogger(__name__)

_CODE_FENCE_RE = re.compile(r"```(?:json)?\n?")


def dump_run_table(runs: list[Run]) -> list[dict[str, Any]]:
    """Serialize a Run Table as a flat list of dicts."""
    return [run.to_dict() for run in runs]


def build_context(runs: list[Run]) -> list[dict[str, Any]]:
    """Group a Run Table by paragraph for the annotation stage.

    Each paragraph carries its full text next to its runs so that a value
    split across runs can be recognized as one. A run containing a tab is
    preceded by a space in that text; run texts are left as extracted.

    Returns:
        One dict per paragraph with ``paragraph_index``, ``paragraph_id``,
        ``text`` and ``runs`` (``{"id", "text"}`` pairs)
    """
    return [
        {
            "paragraph_index": paragraph.index,
            "paragraph_id": paragraph.paragraph_id,
            "text": _context_text(paragraph.runs),
            "runs": [{"id": run.run_id, "text": run.text} for run in paragraph.runs],
        }
        for paragraph in group_paragraphs(runs)
    ]


def _context_text(runs: list[Run]) -> str:
    return "".join(" " + run.text if run.has_tab else run.text for run in runs)


def parse_annotation_document(data: Any) -> dict[tuple[int, int], AnnotationValue]:
    """Convert a decoded annotation document into the planner's mapping.

    Args:
        data: Decoded JSON/YAML object in delta or explicit form

    Returns:
        Mapping of (paragraph_index, run_index) to None, "" or replacement text

    Raises:
        AnnotationFormatError: If the document has neither form, or if an
            explicit-form document names a run more than once
    """
    if not isinstance(data, dict):
        raise AnnotationFormatError("Annotation document must contain a dictionary/object")

    if "changes" in data:
        return _parse_changes(data["changes"])
    if "annotations" in data:
        return _parse_annotations(data["annotations"])

    raise AnnotationFormatError("Annotation document must contain a 'changes' or 'annotations' key")


def _parse_changes(changes: Any) -> dict[tuple[int, int], AnnotationValue]:
    if not isinstance(changes, list):
        raise AnnotationFormatError("'changes' must be a list")

    result: dict[tuple[int, int], AnnotationValue] = {}
    errors: list[str] = []
    for i, change in enumerate(changes):
        # Entries without a string id and string "new" are ignored
        if not isinstance(change, dict):
            logger.warning("Skipping change %d: not an object", i)
            continue
        run_id, new = change.get("id"), change.get("new")
        if not isinstance(run_id, str) or not isinstance(new, str):
            logger.warning("Skipping change %d: 'id' and 'new' must be strings", i)
            continue
        try:
            key = parse_run_id(run_id)
        except ValueError as e:
            errors.append(f"change {i}: {e}")
            continue
        # First answer for a run wins
        if key in result:
            logger.warning("Ignoring change %d: run %s already annotated", i, run_id)
            continue
        result[key] = new

    if errors:
        raise AnnotationFormatError("Invalid changes", errors)
    return result


def _parse_annotations(annotations: Any) -> dict[tuple[int, int], AnnotationValue]:
    if not isinstance(annotations, list):
        raise AnnotationFormatError("'annotations' must be a list")

    result: dict[tuple[int, int], AnnotationValue] = {}
    errors: list[str] = []
    for i, item in enumerate(annotations):
        if not isinstance(item, dict):
            errors.append(f"annotation {i}: not an object")
            continue

        paragraph_index, run_index = item.get("paragraph_index"), item.get("run_index")
        if not _is_index(paragraph_index) or not _is_index(run_index):
            errors.append(f"annotation {i}: 'paragraph_index' and 'run_index' must be integers >= 0")
            continue

        value = item.get("value")
        if value is not None and not isinstance(value, str):
            errors.append(f"annotation {i}: 'value' must be a string or null")
            continue

        key = (paragraph_index, run_index)
        if key in result:
            errors.append(f"annotation {i}: run {paragraph_index}-{run_index} already annotated")
            continue
        result[key] = value

    if errors:
        raise AnnotationFormatError("Invalid annotations", errors)
    return result


def _is_index(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def parse_llm_response(content: str) -> dict[tuple[int, int], AnnotationValue]:
    """Parse the message body returned by an LLM annotation call.

    Models sometimes wrap the JSON in Markdown code fences; those are
    removed when the body does not decode as-is.

    Raises:
        AnnotationFormatError: If the body is empty or not JSON
    """
    if not content or not content.strip():
        raise AnnotationFormatError("Empty annotation response")

    try:
        data = json.loads(content)
    except json.JSONDecodeError:
        cleaned = _CODE_FENCE_RE.sub("", content).strip()
        try:
            data = json.loads(cleaned)
        except json.JSONDecodeError as e:
            raise AnnotationFormatError(f"Annotation response is not valid JSON: {e}") from e

    return parse_annotation_document(data)


def load_annotations(path: str | Path) -> dict[tuple[int, int], AnnotationValue]:
    """Load annotations from a JSON or YAML file.

    The format is chosen by suffix: ``.json`` is read as JSON, anything else
    as YAML.

    Raises:
        FileNotFoundError: If the file does not exist
        AnnotationFormatError: If the file cannot be parsed
    """
    file_path = Path(path)

    if not file_path.exists():
        raise FileNotFoundError(f"Annotation file not found: {path}")

    try:
        with open(file_path, encoding="utf-8") as f:
            if file_path.suffix.lower() == ".json":
                data = json.load(f)
            else:
                data = yaml.safe_load(f)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise AnnotationFormatError(f"Failed to parse annotation file {path}: {e}") from e

    return parse_annotation_document(data)
