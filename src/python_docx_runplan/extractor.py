"""
Run extraction from a Word document's main content part.

This module walks the paragraph -> run -> text hierarchy of
``word/document.xml`` and produces the Run Table: one Run per text-bearing
w:r element, with its character formatting, in document order.

Algorithm Note:
    Paragraphs are every w:p element in document order, including table
    cells and text boxes. A run belongs to the nearest w:p above it, so a
    text box paragraph nested inside a run owns its own runs. Content under
    mc:Fallback duplicates the mc:Choice branch and is skipped. Paragraph
    indices are contiguous over all paragraphs; run indices count only the
    runs that are kept.
"""

import logging
import re
from collections.abc import Iterator

from lxml import etree

from .constants import (
    DEFAULT_DOCUMENT_TYPE,
    MC_NAMESPACE,
    WORD_DOCUMENT_TYPES,
    WORDPROCESSING_MAIN_CONTENT_TYPES,
    w,
    w14,
)
from .errors import UnsupportedDocumentTypeError
from .models.run import Run, RunFormatting
from .package import OOXMLPackage, xml_parser

logger = logging.getLogger(__name__)

_W_P = w("p")
_W_R = w("r")
_W_T = w("t")
_W_TAB = w("tab")
_W_VAL = w("val")
_MC_FALLBACK = f"{{{MC_NAMESPACE}}}Fallback"

# Tags (e.g. "<w:t>", "<b>") that survived into decoded text
_LEAKED_TAG_RE = re.compile(r"<[^<>]+>")

_OFF_VALUES = frozenset({"0", "false", "off"})


def _is_skipped(element: etree._Element, stop: etree._Element | None = None) -> bool:
    """Check if an element sits under an mc:Fallback branch."""
    parent = element.getparent()
    while parent is not None and parent is not stop:
        if parent.tag == _MC_FALLBACK:
            return True
        parent = parent.getparent()
    return False


def _owning_paragraph(run: etree._Element) -> etree._Element | None:
    """Return the nearest w:p ancestor of a run."""
    parent = run.getparent()
    while parent is not None:
        if parent.tag == _W_P:
            return parent
        parent = parent.getparent()
    return None


def iter_paragraphs(root: etree._Element) -> Iterator[etree._Element]:
    """Yield every w:p element in document order."""
    for paragraph in root.iter(_W_P):
        if not _is_skipped(paragraph):
            yield paragraph


def paragraph_runs(paragraph: etree._Element) -> list[etree._Element]:
    """Get the w:r elements owned by a paragraph, in document order.

    Includes runs wrapped in hyperlinks, insertions and content controls,
    excludes runs of nested paragraphs.
    """
    return [
        run
        for run in paragraph.iter(_W_R)
        if _owning_paragraph(run) is paragraph and not _is_skipped(run, stop=paragraph)
    ]


def get_run_text(run: etree._Element, strip_leaked_markup: bool = True) -> str:
    """Extract the visible text of a run from its w:t children.

    The XML parser has already decoded entities, so ``&amp;lt;`` yields the
    literal ``&lt;`` rather than ``<``.

    Args:
        run: A w:r element
        strip_leaked_markup: Remove markup tags that appear inside text

    Returns:
        Concatenated text, untrimmed
    """
    text = "".join(t.text or "" for t in run.iterchildren(_W_T))
    if strip_leaked_markup and "<" in text:
        text = _LEAKED_TAG_RE.sub("", text)
    return text


def iter_text_runs(
    root: etree._Element, strip_leaked_markup: bool = True
) -> Iterator[tuple[int, int, etree._Element, etree._Element, str]]:
    """Walk the document and yield every retained run.

    Yields:
        Tuples of (paragraph_index, run_index, paragraph, run, text). Runs
        whose text is blank after stripping are not yielded and do not
        consume a run index.
    """
    for paragraph_index, paragraph in enumerate(iter_paragraphs(root)):
        run_index = 0
        for run in paragraph_runs(paragraph):
            text = get_run_text(run, strip_leaked_markup)
            if not text.strip():
                continue
            yield paragraph_index, run_index, paragraph, run, text
            run_index += 1


def load_main_document(
    package: OOXMLPackage, document_type: str = DEFAULT_DOCUMENT_TYPE
) -> tuple[str, etree._Element]:
    """Locate, type-check and parse the package's main content part.

    Args:
        package: Open package
        document_type: Document type used in error messages

    Returns:
        Tuple of (part name, parsed w:document root)

    Raises:
        MalformedPackageError: If the main part is missing
        UnsupportedDocumentTypeError: If the part is not a parseable Word document
    """
    part_name = package.main_part_name

    content_type = package.content_type(part_name)
    if content_type is not None and content_type not in WORDPROCESSING_MAIN_CONTENT_TYPES:
        raise UnsupportedDocumentTypeError(
            document_type, f"main part '{part_name}' has content type {content_type}"
        )

    return part_name, parse_document_xml(package.read_part(part_name), document_type)


def parse_document_xml(
    xml: bytes | str, document_type: str = DEFAULT_DOCUMENT_TYPE
) -> etree._Element:
    """Parse main content XML and check that it is a w:document.

    Raises:
        UnsupportedDocumentTypeError: On malformed XML (cause chained) or a
            root element other than w:document
    """
    if isinstance(xml, str):
        xml = xml.encode("utf-8")

    try:
        root = etree.fromstring(xml, xml_parser())
    except etree.XMLSyntaxError as e:
        raise UnsupportedDocumentTypeError(
            document_type, f"main content part is not well-formed XML: {e}"
        ) from e

    if root.tag != w("document"):
        raise UnsupportedDocumentTypeError(
            document_type, f"expected w:document root element, got {root.tag}"
        )
    return root


class RunExtractor:
    """Extracts the Run Table from Word document packages.

    Instances hold only options, so one extractor can serve any number of
    documents and threads.

    Args:
        strip_leaked_markup: Remove markup tags found inside decoded text
            (default: True)
        honor_off_toggles: Report an explicit off value (w:val="0", "false",
            "off", or "none" for underline) as False instead of treating the
            marker's presence as on (default: False)

    Example:
        >>> extractor = RunExtractor()
        >>> runs = extractor.extract(Path("contract.docx").read_bytes())
        >>> runs[0]
        <Run 0-0: 'Jan Kowalski'>
    """

    def __init__(self, strip_leaked_markup: bool = True, honor_off_toggles: bool = False) -> None:
        self.strip_leaked_markup = strip_leaked_markup
        self.honor_off_toggles = honor_off_toggles

    def extract(self, package_bytes: bytes, document_type: str = DEFAULT_DOCUMENT_TYPE) -> list[Run]:
        """Extract the Run Table from package bytes.

        Args:
            package_bytes: Raw .docx content
            document_type: Caller-declared document type ("word" or "docx")

        Returns:
            Runs ordered by paragraph_index, then run_index

        Raises:
            MalformedPackageError: Not a zip archive, or no main content part
            UnsupportedDocumentTypeError: Not a word-processing document, or
                the main part cannot be parsed
        """
        if document_type.lower() not in WORD_DOCUMENT_TYPES:
            raise UnsupportedDocumentTypeError(
                document_type, "only Word documents are supported for run extraction"
            )

        with OOXMLPackage.from_bytes(package_bytes) as package:
            _, root = load_main_document(package, document_type)

        return self.extract_from_root(root)

    def extract_document_xml(self, xml: bytes | str) -> list[Run]:
        """Extract the Run Table from an already unpacked main content part."""
        return self.extract_from_root(parse_document_xml(xml))

    def extract_from_root(self, root: etree._Element) -> list[Run]:
        """Extract the Run Table from a parsed w:document element."""
        runs = [
            Run(
                paragraph_index=paragraph_index,
                run_index=run_index,
                text=text,
                formatting=self.get_formatting(run),
                paragraph_id=paragraph.get(w14("paraId")),
                has_tab=run.find(_W_TAB) is not None,
            )
            for paragraph_index, run_index, paragraph, run, text in iter_text_runs(
                root, self.strip_leaked_markup
            )
        ]

        logger.debug(
            "Extracted %d runs from %d paragraphs",
            len(runs),
            len({run.paragraph_index for run in runs}),
        )
        return runs

    def get_formatting(self, run: etree._Element) -> RunFormatting:
        """Read character formatting from the run's own w:rPr.

        Only direct children of w:rPr are consulted, so previous formatting
        recorded under w:rPrChange does not leak into the result.
        """
        rpr = run.find(w("rPr"))
        if rpr is None:
            return RunFormatting()

        return RunFormatting(
            bold=self._toggle(rpr, "b"),
            italic=self._toggle(rpr, "i"),
            underline=self._toggle(rpr, "u", off_values=_OFF_VALUES | {"none"}),
            font_size=_font_size(rpr),
            font_family=_attribute(rpr, "rFonts", "ascii"),
            color=_color(rpr),
        )

    def _toggle(
        self, rpr: etree._Element, tag: str, off_values: frozenset[str] = _OFF_VALUES
    ) -> bool | None:
        element = rpr.find(w(tag))
        if element is None:
            return None
        if self.honor_off_toggles:
            value = element.get(_W_VAL)
            if value is not None and value.lower() in off_values:
                return False
        return True


def _attribute(rpr: etree._Element, tag: str, attr: str) -> str | None:
    element = rpr.find(w(tag))
    if element is None:
        return None
    return element.get(w(attr)) or None


def _font_size(rpr: etree._Element) -> float | None:
    # w:sz is in half-points
    value = _attribute(rpr, "sz", "val")
    if value is None or not value.isdigit() or int(value) == 0:
        return None
    return int(value) / 2


def _color(rpr: etree._Element) -> str | None:
    value = _attribute(rpr, "color", "val")
    if value is None or value.lower() == "auto":
        return None
    return f"#{value}"


def extract_runs(
    package_bytes: bytes, document_type: str = DEFAULT_DOCUMENT_TYPE, **options: bool
) -> list[Run]:
    """Extract the Run Table with a one-off RunExtractor.

    Args:
        package_bytes: Raw .docx content
        document_type: Caller-declared document type
        **options: RunExtractor keyword options

    Returns:
        Runs in document order
    """
    return RunExtractor(**options).extract(package_bytes, document_type)
