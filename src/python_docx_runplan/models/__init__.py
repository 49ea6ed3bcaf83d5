"""
Data model classes for python_docx_runplan.
"""

from python_docx_runplan.models.annotation import Annotation, AnnotationKind, AnnotationValue
from python_docx_runplan.models.run import (
    Paragraph,
    Run,
    RunFormatting,
    group_paragraphs,
    parse_run_id,
)

__all__ = [
    "Annotation",
    "AnnotationKind",
    "AnnotationValue",
    "Paragraph",
    "Run",
    "RunFormatting",
    "group_paragraphs",
    "parse_run_id",
]
