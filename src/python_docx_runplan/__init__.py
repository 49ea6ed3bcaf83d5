"""
python_docx_runplan - Extract formatted runs from Word documents and plan run-level substitutions.

The package reads the paragraph/run structure of a .docx main content part
into a flat Run Table, and turns per-run annotations (including values that
Word split across several runs) into a Rewrite Plan that can be applied
back to the document without disturbing formatting.

Example:
    >>> from python_docx_runplan import RunExtractor, SubstitutionPlanner
    >>> runs = RunExtractor().extract(Path("certificate.docx").read_bytes())
    >>> plan = SubstitutionPlanner().plan(runs, {(0, 0): "{{issueDate}}", (0, 1): ""})
"""

__version__ = "0.1.0"
__all__ = [
    "RunExtractor",
    "extract_runs",
    "SubstitutionPlanner",
    "plan_substitutions",
    "apply_rewrite_plan",
    "OOXMLPackage",
    "Run",
    "RunFormatting",
    "Paragraph",
    "group_paragraphs",
    "Annotation",
    "AnnotationKind",
    "RewriteEntry",
    "CrossRunVariable",
    "load_annotations",
    "parse_annotation_document",
    "parse_llm_response",
    "dump_run_table",
    "build_context",
    "DocxRunplanError",
    "MalformedPackageError",
    "UnsupportedDocumentTypeError",
    "UnannotatedRunError",
    "UnknownRunError",
    "RunNotFoundError",
    "AnnotationFormatError",
]

# Import annotation I/O
from .annotations import (
    build_context,
    dump_run_table,
    load_annotations,
    parse_annotation_document,
    parse_llm_response,
)
from .errors import (
    AnnotationFormatError,
    DocxRunplanError,
    MalformedPackageError,
    RunNotFoundError,
    UnannotatedRunError,
    UnknownRunError,
    UnsupportedDocumentTypeError,
)

# Import extraction and planning
from .extractor import RunExtractor, extract_runs

# Import model classes
from .models.annotation import Annotation, AnnotationKind
from .models.run import Paragraph, Run, RunFormatting, group_paragraphs

# Import package class
from .package import OOXMLPackage
from .planner import SubstitutionPlanner, plan_substitutions

# Import result types
from .results import CrossRunVariable, RewriteEntry
from .writer import apply_rewrite_plan
