"""
Result classes for substitution planning.

A Rewrite Plan is a list of RewriteEntry values ordered by
(paragraph_index, run_index).
"""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class RewriteEntry:
    """Final text for one run.

    Attributes:
        paragraph_index: Paragraph of the run to rewrite
        run_index: Position of the run within its paragraph
        final_text: Text the run must render; "" for continuation runs
        original_text: The run's text before rewriting (diagnostics only)
    """

    paragraph_index: int
    run_index: int
    final_text: str
    original_text: str = ""

    @property
    def key(self) -> tuple[int, int]:
        return (self.paragraph_index, self.run_index)

    @property
    def is_continuation(self) -> bool:
        """True when the run is emptied rather than replaced."""
        return self.final_text == ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "paragraph_index": self.paragraph_index,
            "run_index": self.run_index,
            "final_text": self.final_text,
            "original_text": self.original_text,
        }

    def __str__(self) -> str:
        return f"({self.paragraph_index}, {self.run_index}): {self.original_text!r} -> {self.final_text!r}"


@dataclass
class CrossRunVariable:
    """A value fragmented across consecutive runs of one paragraph.

    Attributes:
        head: Entry carrying the full replacement value
        continuations: Entries emptied because their text belongs to the head
    """

    head: RewriteEntry
    continuations: list[RewriteEntry] = field(default_factory=list)

    @property
    def value(self) -> str:
        return self.head.final_text

    @property
    def original_text(self) -> str:
        """The fragmented source text, reassembled."""
        return self.head.original_text + "".join(c.original_text for c in self.continuations)

    @property
    def entries(self) -> list[RewriteEntry]:
        return [self.head, *self.continuations]

    def __str__(self) -> str:
        return f"{self.original_text!r} -> {self.value!r} ({len(self.entries)} runs)"
