"""
Run and paragraph records produced by the extractor.
"""

from dataclasses import dataclass, field
from typing import Any

_FORMATTING_FIELDS = ("bold", "italic", "underline", "font_size", "font_family", "color")


@dataclass(frozen=True)
class RunFormatting:
    """Character formatting of a run.

    Every field is optional. ``None`` means the run inherits the value from
    its paragraph or style; it does not mean the property is switched off.

    Attributes:
        bold: True when the run carries a w:b marker
        italic: True when the run carries a w:i marker
        underline: True when the run carries a w:u marker
        font_size: Size in points (w:sz stores half-points)
        font_family: The w:rFonts ascii font name
        color: Hex color with a leading "#" (never set from "auto")
    """

    bold: bool | None = None
    italic: bool | None = None
    underline: bool | None = None
    font_size: float | None = None
    font_family: str | None = None
    color: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return only the fields that are set."""
        return {
            name: getattr(self, name)
            for name in _FORMATTING_FIELDS
            if getattr(self, name) is not None
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RunFormatting":
        return cls(**{name: data[name] for name in _FORMATTING_FIELDS if name in data})

    def __bool__(self) -> bool:
        return bool(self.to_dict())


@dataclass(frozen=True)
class Run:
    """A span of text with uniform formatting inside one paragraph.

    Attributes:
        paragraph_index: 0-based index of the enclosing paragraph in document order
        run_index: 0-based position among the paragraph's retained runs
        text: Entity-decoded visible text, untrimmed
        formatting: Character formatting of the run
        paragraph_id: The paragraph's w14:paraId, when the document has one
        has_tab: True when the run contains a w:tab
    """

    paragraph_index: int
    run_index: int
    text: str
    formatting: RunFormatting = field(default_factory=RunFormatting)
    paragraph_id: str | None = None
    has_tab: bool = False

    @property
    def key(self) -> tuple[int, int]:
        """The (paragraph_index, run_index) pair used to address annotations."""
        return (self.paragraph_index, self.run_index)

    @property
    def run_id(self) -> str:
        """String form of the key, e.g. ``"3-1"``."""
        return f"{self.paragraph_index}-{self.run_index}"

    def to_dict(self) -> dict[str, Any]:
        """Flat JSON-able form handed to the annotation stage."""
        data: dict[str, Any] = {
            "id": self.run_id,
            "paragraph_index": self.paragraph_index,
            "run_index": self.run_index,
            "text": self.text,
            "formatting": self.formatting.to_dict(),
        }
        if self.paragraph_id is not None:
            data["paragraph_id"] = self.paragraph_id
        if self.has_tab:
            data["has_tab"] = True
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Run":
        return cls(
            paragraph_index=int(data["paragraph_index"]),
            run_index=int(data["run_index"]),
            text=data["text"],
            formatting=RunFormatting.from_dict(data.get("formatting") or {}),
            paragraph_id=data.get("paragraph_id"),
            has_tab=bool(data.get("has_tab", False)),
        )

    def __repr__(self) -> str:
        text_preview = self.text[:30] + "..." if len(self.text) > 30 else self.text
        return f"<Run {self.run_id}: {text_preview!r}>"


@dataclass
class Paragraph:
    """Ordered container of the runs extracted from one w:p element.

    Attributes:
        index: The paragraph index shared by all its runs
        runs: Retained runs in source order
        paragraph_id: The paragraph's w14:paraId, when the document has one
    """

    index: int
    runs: list[Run] = field(default_factory=list)
    paragraph_id: str | None = None

    @property
    def text(self) -> str:
        """Concatenated text of the paragraph's runs."""
        return "".join(run.text for run in self.runs)


def group_paragraphs(runs: list[Run]) -> list[Paragraph]:
    """Group a Run Table into paragraphs.

    Only paragraphs that kept at least one run appear; their indices keep the
    gaps left by empty paragraphs.

    Args:
        runs: Run Table in document order

    Returns:
        Paragraphs in document order
    """
    paragraphs: list[Paragraph] = []
    for run in runs:
        if not paragraphs or paragraphs[-1].index != run.paragraph_index:
            paragraphs.append(Paragraph(run.paragraph_index, paragraph_id=run.paragraph_id))
        paragraphs[-1].runs.append(run)
    return paragraphs


def parse_run_id(run_id: str) -> tuple[int, int]:
    """Parse a ``"paragraph-run"`` id such as ``"3-1"`` into a key.

    Raises:
        ValueError: If the id is not two non-negative integers joined by "-"
    """
    paragraph, sep, run = run_id.strip().partition("-")
    if not sep or not paragraph.isdigit() or not run.isdigit():
        raise ValueError(f"Invalid run id {run_id!r}, expected 'paragraph-run'")
    return (int(paragraph), int(run))
