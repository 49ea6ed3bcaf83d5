"""
Applying a Rewrite Plan back onto a Word document package.

Runs are addressed with the same walk the extractor uses, so the
(paragraph_index, run_index) keys of a plan built from ``RunExtractor``
output land on the same w:r elements. Only w:t text changes: run elements
and their w:rPr are kept even when their text is emptied, and every other
package part is copied unchanged.
"""

import logging
from collections.abc import Iterable

from lxml import etree

from .constants import XML_NAMESPACE, w
from .errors import RunNotFoundError
from .extractor import iter_text_runs, load_main_document
from .package import OOXMLPackage
from .results import RewriteEntry

logger = logging.getLogger(__name__)


def set_run_text(run: etree._Element, text: str) -> None:
    """Replace a run's visible text in place.

    The first w:t receives the new text and any further w:t elements are
    emptied, so the run keeps its structure and formatting.

    Args:
        run: A w:r element with at least one w:t child
        text: New text; may be empty
    """
    text_elements = list(run.iterchildren(w("t")))
    first = text_elements[0]
    first.text = text
    if text and (text[0].isspace() or text[-1].isspace()):
        first.set(f"{{{XML_NAMESPACE}}}space", "preserve")

    for extra in text_elements[1:]:
        extra.text = ""


def apply_to_root(
    root: etree._Element, plan: Iterable[RewriteEntry], strip_leaked_markup: bool = True
) -> int:
    """Apply a Rewrite Plan to a parsed w:document element.

    All targets are resolved before any text is changed, so a plan naming a
    missing run leaves the tree untouched.

    Returns:
        Number of runs rewritten

    Raises:
        RunNotFoundError: If an entry names a run the document does not have
    """
    entries = {entry.key: entry for entry in plan}

    targets = []
    for paragraph_index, run_index, _, run, text in iter_text_runs(root, strip_leaked_markup):
        entry = entries.get((paragraph_index, run_index))
        if entry is None:
            continue
        if entry.original_text and entry.original_text != text:
            logger.warning(
                "Run %d-%d text changed since planning: %r != %r",
                paragraph_index,
                run_index,
                text,
                entry.original_text,
            )
        targets.append((run, entry))

    missing = sorted(set(entries) - {entry.key for _, entry in targets})
    if missing:
        raise RunNotFoundError(*missing[0])

    for run, entry in targets:
        set_run_text(run, entry.final_text)

    return len(targets)


def apply_rewrite_plan(
    package_bytes: bytes, plan: Iterable[RewriteEntry], strip_leaked_markup: bool = True
) -> bytes:
    """Rewrite the runs named by a plan and return the new package.

    Args:
        package_bytes: The .docx the plan was built from
        plan: Rewrite Plan from SubstitutionPlanner
        strip_leaked_markup: Must match the extractor option used for the plan

    Returns:
        The rewritten .docx as bytes

    Raises:
        MalformedPackageError: Not a zip archive, or no main content part
        UnsupportedDocumentTypeError: The main part cannot be parsed
        RunNotFoundError: An entry names a run the document does not have
    """
    with OOXMLPackage.from_bytes(package_bytes) as package:
        part_name, root = load_main_document(package)
        count = apply_to_root(root, plan, strip_leaked_markup)

        tree = root.getroottree()
        xml = etree.tostring(
            tree,
            xml_declaration=True,
            encoding="UTF-8",
            standalone=tree.docinfo.standalone,
        )
        logger.debug("Rewrote %d runs in %s", count, part_name)
        return package.save_to_bytes({part_name: xml})
