"""
Centralized constants for OOXML namespaces, part names and content types.

Import from here rather than repeating namespace URLs across modules.
"""

# =============================================================================
# Word Processing Namespaces
# =============================================================================

# Main WordprocessingML namespace (Word 2007+)
WORD_NAMESPACE = "http://schemas.openxmlformats.org/wordprocessingml/2006/main"

# Word 2010 namespace (carries w14:paraId)
W14_NAMESPACE = "http://schemas.microsoft.com/office/word/2010/wordml"

# Markup Compatibility namespace (mc:AlternateContent)
MC_NAMESPACE = "http://schemas.openxmlformats.org/markup-compatibility/2006"

# XML namespace (xml:space)
XML_NAMESPACE = "http://www.w3.org/XML/1998/namespace"


# =============================================================================
# Package and Relationship Namespaces
# =============================================================================

PACKAGE_RELATIONSHIPS_NAMESPACE = "http://schemas.openxmlformats.org/package/2006/relationships"
CONTENT_TYPES_NAMESPACE = "http://schemas.openxmlformats.org/package/2006/content-types"

# Relationship type pointing from the package root to the main document part
REL_TYPE_OFFICE_DOCUMENT = (
    "http://schemas.openxmlformats.org/officeDocument/2006/relationships/officeDocument"
)


# =============================================================================
# Part Names
# =============================================================================

# Canonical location of the main content part
MAIN_DOCUMENT_PART = "word/document.xml"

PACKAGE_RELS_PART = "_rels/.rels"
CONTENT_TYPES_PART = "[Content_Types].xml"


# =============================================================================
# Content Types
# =============================================================================

# Main part content types accepted as word-processing documents
WORDPROCESSING_MAIN_CONTENT_TYPES = frozenset(
    {
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document.main+xml",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.template.main+xml",
        "application/vnd.ms-word.document.macroEnabled.main+xml",
        "application/vnd.ms-word.template.macroEnabledTemplate.main+xml",
    }
)


# =============================================================================
# Document Types
# =============================================================================

# Caller-declared document type names that map to word-processing packages
WORD_DOCUMENT_TYPES = frozenset({"word", "docx"})

DEFAULT_DOCUMENT_TYPE = "word"


# =============================================================================
# Helper Functions
# =============================================================================


def w(tag: str) -> str:
    """Create a fully qualified Word namespace tag.

    Args:
        tag: Tag name without namespace prefix (e.g., "p", "r", "t")

    Returns:
        Fully qualified tag (e.g., "{http://...wordprocessingml/2006/main}p")

    Example:
        >>> w("p")
        '{http://schemas.openxmlformats.org/wordprocessingml/2006/main}p'
    """
    return f"{{{WORD_NAMESPACE}}}{tag}"


def w14(tag: str) -> str:
    """Create a fully qualified Word 2010 namespace tag.

    Args:
        tag: Tag name without namespace prefix

    Returns:
        Fully qualified tag with w14 namespace
    """
    return f"{{{W14_NAMESPACE}}}{tag}"
