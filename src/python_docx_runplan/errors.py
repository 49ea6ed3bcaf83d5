"""
Custom exception classes for python_docx_runplan package.

Every failure raised by the extractor, planner and writer is deterministic
given its input, so none of these errors is worth retrying with the same
bytes or annotations.
"""


class DocxRunplanError(Exception):
    """Base exception for all python_docx_runplan errors."""

    pass


class MalformedPackageError(DocxRunplanError):
    """Raised when the input is not a zip archive or lacks the main content part.

    Attributes:
        reason: What was wrong with the package
        part_name: The package part that was expected, if relevant
    """

    def __init__(self, reason: str, part_name: str | None = None) -> None:
        self.reason = reason
        self.part_name = part_name
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format an error message naming the missing part."""
        msg = f"Malformed package: {self.reason}"
        if self.part_name:
            msg += f" (part '{self.part_name}')"
        return msg


class UnsupportedDocumentTypeError(DocxRunplanError):
    """Raised when a document cannot be parsed as a word-processing document.

    This can occur when:
    - The caller declares a document type other than a Word document
    - The main part is declared with a spreadsheet or presentation content type
    - The main part exists but is not well-formed XML

    The underlying parser error, if any, is chained as ``__cause__``.

    Attributes:
        document_type: The declared or detected document type
        reason: Explanation of why the document was rejected
    """

    def __init__(self, document_type: str, reason: str | None = None) -> None:
        self.document_type = document_type
        self.reason = reason
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format an error message with the rejection reason."""
        msg = f"Unsupported document type '{self.document_type}'"
        if self.reason:
            msg += f": {self.reason}"
        return msg


class UnannotatedRunError(DocxRunplanError):
    """Raised in strict planning mode when a run has no annotation.

    Attributes:
        paragraph_index: Paragraph of the offending run
        run_index: Position of the offending run within its paragraph
    """

    def __init__(self, paragraph_index: int, run_index: int) -> None:
        self.paragraph_index = paragraph_index
        self.run_index = run_index
        super().__init__(
            f"Run ({paragraph_index}, {run_index}) has no annotation "
            "and full coverage is required"
        )


class UnknownRunError(DocxRunplanError):
    """Raised when an annotation targets a run that is not in the Run Table.

    Attributes:
        paragraph_index: Paragraph index named by the annotation
        run_index: Run index named by the annotation
    """

    def __init__(self, paragraph_index: int, run_index: int) -> None:
        self.paragraph_index = paragraph_index
        self.run_index = run_index
        super().__init__(
            f"Annotation targets run ({paragraph_index}, {run_index}), "
            "which is not in the Run Table"
        )


class RunNotFoundError(DocxRunplanError):
    """Raised when a rewrite entry names a run the document does not contain.

    Attributes:
        paragraph_index: Paragraph index of the entry
        run_index: Run index of the entry
    """

    def __init__(self, paragraph_index: int, run_index: int) -> None:
        self.paragraph_index = paragraph_index
        self.run_index = run_index
        super().__init__(
            f"No run ({paragraph_index}, {run_index}) in document; "
            "was the plan built from a different package?"
        )


class AnnotationFormatError(DocxRunplanError):
    """Raised when an annotation document cannot be read.

    Attributes:
        errors: List of specific problems found in the document
    """

    def __init__(self, message: str, errors: list[str] | None = None) -> None:
        self.errors = errors or []
        super().__init__(message)

    def __str__(self) -> str:
        """Format error with all details."""
        if not self.errors:
            return super().__str__()

        error_details = "\n  - " + "\n  - ".join(self.errors)
        return f"{super().__str__()}{error_details}"
