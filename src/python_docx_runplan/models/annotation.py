"""
Annotation model for per-run replacement instructions.

An annotation is a tagged variant rather than an optional string so that an
intentionally empty continuation run is never confused with "leave unchanged".
"""

from dataclasses import dataclass
from enum import Enum
from typing import Union


class AnnotationKind(Enum):
    """Kinds of per-run annotation.

    Attributes:
        NONE: Leave the run unchanged; it does not appear in the Rewrite Plan
        REPLACE: Replace the run's text (head run of a variable, or a plain edit)
        CLEAR: Render the run as empty (continuation run of a cross-run variable)
    """

    NONE = "none"
    REPLACE = "replace"
    CLEAR = "clear"


@dataclass(frozen=True)
class Annotation:
    """Replacement instruction for a single run.

    Build instances with the ``none()``, ``replace()`` and ``clear()``
    constructors, or ``coerce()`` for the wire convention where ``None``
    means unchanged and ``""`` means clear.

    Example:
        >>> Annotation.coerce("{{issueDate}}")
        Annotation(kind=<AnnotationKind.REPLACE: 'replace'>, text='{{issueDate}}')
        >>> Annotation.coerce("").kind
        <AnnotationKind.CLEAR: 'clear'>
    """

    kind: AnnotationKind
    text: str | None = None

    def __post_init__(self) -> None:
        if self.kind is AnnotationKind.REPLACE:
            if not isinstance(self.text, str):
                raise ValueError("REPLACE annotation requires replacement text")
            if self.text == "":
                raise ValueError("empty replacement must be expressed as Annotation.clear()")
        elif self.text is not None:
            raise ValueError(f"{self.kind.name} annotation cannot carry text")

    @classmethod
    def none(cls) -> "Annotation":
        return cls(AnnotationKind.NONE)

    @classmethod
    def replace(cls, text: str) -> "Annotation":
        return cls(AnnotationKind.REPLACE, text)

    @classmethod
    def clear(cls) -> "Annotation":
        return cls(AnnotationKind.CLEAR)

    @classmethod
    def coerce(cls, value: "AnnotationValue") -> "Annotation":
        """Convert a wire value into an Annotation.

        Args:
            value: An Annotation, None (unchanged), "" (clear) or replacement text

        Returns:
            The corresponding Annotation

        Raises:
            TypeError: If value is of any other type
        """
        if isinstance(value, Annotation):
            return value
        if value is None:
            return cls.none()
        if isinstance(value, str):
            return cls.clear() if value == "" else cls.replace(value)
        raise TypeError(f"Cannot interpret {type(value).__name__} as an annotation")

    @property
    def final_text(self) -> str | None:
        """Text the run renders as after rewriting, or None when unchanged."""
        if self.kind is AnnotationKind.REPLACE:
            return self.text
        if self.kind is AnnotationKind.CLEAR:
            return ""
        return None

    def to_value(self) -> str | None:
        """Inverse of ``coerce``: None, "" or the replacement text."""
        return self.final_text


AnnotationValue = Union[Annotation, str, None]
