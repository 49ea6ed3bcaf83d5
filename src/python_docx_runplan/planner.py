"""
Substitution planning for annotated Run Tables.

The planner reconciles a Run Table with per-run annotations into a Rewrite
Plan. A value split across several runs by formatting boundaries (for
example a date rendered as "12." / "05." / "2023") is annotated as:

- head run: the full replacement, e.g. ``"{{issueDate}}"``
- every continuation run: ``""`` (clear)

Continuation runs are emitted with empty final text rather than dropped, so
the writer keeps the run elements and their formatting intact.
"""

import logging
from collections.abc import Iterable, Mapping

from .errors import UnannotatedRunError, UnknownRunError
from .models.annotation import Annotation, AnnotationKind, AnnotationValue
from .models.run import Run, parse_run_id
from .results import CrossRunVariable, RewriteEntry

logger = logging.getLogger(__name__)

AnnotationMap = Mapping[tuple[int, int] | str, AnnotationValue]


def normalize_annotations(annotations: AnnotationMap) -> dict[tuple[int, int], Annotation]:
    """Key annotations by (paragraph_index, run_index) and coerce their values.

    Keys may be tuples or "paragraph-run" id strings.

    Raises:
        ValueError: On a malformed key or a key given twice
        TypeError: On an unsupported annotation value
    """
    normalized: dict[tuple[int, int], Annotation] = {}
    for raw_key, value in annotations.items():
        if isinstance(raw_key, str):
            key = parse_run_id(raw_key)
        else:
            paragraph_index, run_index = raw_key
            key = (int(paragraph_index), int(run_index))
        if key in normalized:
            raise ValueError(f"Run {key[0]}-{key[1]} is annotated more than once")
        normalized[key] = Annotation.coerce(value)
    return normalized


class SubstitutionPlanner:
    """Builds Rewrite Plans from a Run Table and its annotations.

    Args:
        require_full_coverage: Raise UnannotatedRunError for any run whose key
            is missing from the annotations. An explicit None still counts
            as annotated. (default: False)

    Example:
        >>> planner = SubstitutionPlanner()
        >>> plan = planner.plan(runs, {(0, 0): "{{issueDate}}", (0, 1): "", (0, 2): ""})
        >>> [(e.paragraph_index, e.run_index, e.final_text) for e in plan]
        [(0, 0, '{{issueDate}}'), (0, 1, ''), (0, 2, '')]
    """

    def __init__(self, require_full_coverage: bool = False) -> None:
        self.require_full_coverage = require_full_coverage

    def plan(self, runs: Iterable[Run], annotations: AnnotationMap) -> list[RewriteEntry]:
        """Derive the Rewrite Plan.

        Neither input is modified.

        Args:
            runs: The Run Table
            annotations: Mapping of (paragraph_index, run_index) to an
                Annotation, replacement string, "" (clear) or None (unchanged)

        Returns:
            Entries for every REPLACE and CLEAR annotation, ordered by
            (paragraph_index, run_index)

        Raises:
            UnannotatedRunError: In strict mode, for the first run without a key
            UnknownRunError: If an annotation key matches no run
            TypeError: If an annotation value has an unsupported type
        """
        runs_by_key = {run.key: run for run in runs}
        by_key = normalize_annotations(annotations)

        unknown = sorted(set(by_key) - set(runs_by_key))
        if unknown:
            raise UnknownRunError(*unknown[0])

        entries: list[RewriteEntry] = []
        previous: tuple[int, AnnotationKind] | None = None

        for key in sorted(runs_by_key):
            run = runs_by_key[key]
            if key not in by_key:
                if self.require_full_coverage:
                    raise UnannotatedRunError(*key)
                previous = None
                continue

            annotation = by_key[key]
            if annotation.kind is AnnotationKind.NONE:
                previous = None
                continue

            if annotation.kind is AnnotationKind.CLEAR and (
                previous is None or previous[0] != run.paragraph_index
            ):
                logger.warning(
                    "Run %s is cleared without a preceding head run: %r", run.run_id, run.text
                )

            entries.append(
                RewriteEntry(
                    paragraph_index=run.paragraph_index,
                    run_index=run.run_index,
                    final_text=annotation.final_text or "",
                    original_text=run.text,
                )
            )
            previous = (run.paragraph_index, annotation.kind)

        logger.debug(
            "Planned %d rewrites (%d cleared) over %d runs",
            len(entries),
            sum(1 for entry in entries if entry.is_continuation),
            len(runs_by_key),
        )
        return entries

    @staticmethod
    def group_variables(plan: Iterable[RewriteEntry]) -> list[CrossRunVariable]:
        """Group a plan into head runs and their continuation runs.

        A continuation belongs to the head immediately before it in the same
        paragraph, with no unchanged run in between. Cleared runs without
        such a head are not reported.

        Args:
            plan: Rewrite Plan as returned by ``plan()``

        Returns:
            One CrossRunVariable per head entry, in plan order
        """
        variables: list[CrossRunVariable] = []
        current: CrossRunVariable | None = None
        last_key: tuple[int, int] | None = None

        for entry in plan:
            adjacent = last_key is not None and last_key == (
                entry.paragraph_index,
                entry.run_index - 1,
            )
            if not entry.is_continuation:
                current = CrossRunVariable(head=entry)
                variables.append(current)
            elif current is not None and adjacent:
                current.continuations.append(entry)
            else:
                current = None
            last_key = entry.key

        return variables


def plan_substitutions(
    runs: Iterable[Run], annotations: AnnotationMap, require_full_coverage: bool = False
) -> list[RewriteEntry]:
    """Build a Rewrite Plan with a one-off SubstitutionPlanner."""
    return SubstitutionPlanner(require_full_coverage).plan(runs, annotations)
