"""
OOXMLPackage class for reading a Word document's ZIP structure in memory.

This module separates ZIP handling and part resolution from the run-level
XML work done by the extractor and writer. Nothing touches the file system:
packages are opened from bytes and re-serialized to bytes.
"""

import io
import logging
import zipfile
from pathlib import Path
from typing import Any, BinaryIO

from lxml import etree

from .constants import (
    CONTENT_TYPES_NAMESPACE,
    CONTENT_TYPES_PART,
    MAIN_DOCUMENT_PART,
    PACKAGE_RELATIONSHIPS_NAMESPACE,
    PACKAGE_RELS_PART,
    REL_TYPE_OFFICE_DOCUMENT,
)
from .errors import MalformedPackageError

logger = logging.getLogger(__name__)


def xml_parser() -> etree.XMLParser:
    """Create the parser used for all package parts.

    Entity resolution and network access are disabled; package parts never
    need either.
    """
    return etree.XMLParser(remove_blank_text=False, resolve_entities=False, no_network=True)


class OOXMLPackage:
    """Read-only view of an OOXML ZIP package held in memory.

    Example:
        >>> with OOXMLPackage.from_bytes(data) as pkg:
        ...     root = pkg.get_part(pkg.main_part_name)
        ...     new_bytes = pkg.save_to_bytes({pkg.main_part_name: b"..."})
    """

    def __init__(self, archive: zipfile.ZipFile) -> None:
        """Initialize package around an open archive.

        Use the class methods `open()` or `from_bytes()` instead of
        calling this constructor directly.

        Args:
            archive: Open ZipFile over the package contents
        """
        self._archive = archive
        self._names = set(archive.namelist())
        self._main_part_name: str | None = None

    @classmethod
    def open(cls, source: str | Path | BinaryIO) -> "OOXMLPackage":
        """Open an OOXML package from a file path or file-like object.

        Args:
            source: Path to .docx file or file-like object containing it

        Returns:
            OOXMLPackage instance

        Raises:
            MalformedPackageError: If the source is not a valid ZIP file
        """
        if isinstance(source, str | Path):
            source_path = Path(source)
            if not source_path.exists():
                raise MalformedPackageError(f"document not found: {source_path}")
            return cls.from_bytes(source_path.read_bytes())

        return cls.from_bytes(source.read())

    @classmethod
    def from_bytes(cls, data: bytes) -> "OOXMLPackage":
        """Open an OOXML package from bytes.

        Args:
            data: Bytes containing a .docx file

        Returns:
            OOXMLPackage instance

        Raises:
            MalformedPackageError: If the bytes are not a valid ZIP archive
        """
        if not data:
            raise MalformedPackageError("package is empty")

        buffer = io.BytesIO(data)
        if not zipfile.is_zipfile(buffer):
            raise MalformedPackageError("source must be a valid .docx (ZIP) file")
        buffer.seek(0)

        try:
            archive = zipfile.ZipFile(buffer, "r")
        except (zipfile.BadZipFile, zipfile.LargeZipFile) as e:
            raise MalformedPackageError(f"failed to open archive: {e}") from e

        return cls(archive)

    @property
    def part_names(self) -> list[str]:
        """Names of all parts in archive order."""
        return self._archive.namelist()

    def part_exists(self, part_name: str) -> bool:
        """Check if a package part exists.

        Args:
            part_name: Relative path within the package (e.g., "word/document.xml")

        Returns:
            True if the part exists
        """
        return part_name in self._names

    def read_part(self, part_name: str) -> bytes:
        """Get the raw bytes of a package part.

        Raises:
            MalformedPackageError: If the part is missing or cannot be decompressed
        """
        if not self.part_exists(part_name):
            raise MalformedPackageError("missing part", part_name)
        try:
            return self._archive.read(part_name)
        except (zipfile.BadZipFile, OSError, EOFError) as e:
            raise MalformedPackageError(f"cannot read part: {e}", part_name) from e

    def get_part(self, part_name: str) -> etree._Element | None:
        """Get a package part as a parsed XML element.

        Args:
            part_name: Relative path within the package (e.g., "word/document.xml")

        Returns:
            Parsed XML root element, or None if the part doesn't exist

        Raises:
            lxml.etree.XMLSyntaxError: If the part is not well-formed
        """
        if not self.part_exists(part_name):
            return None
        return etree.fromstring(self.read_part(part_name), xml_parser())

    @property
    def main_part_name(self) -> str:
        """Resolve the main content part.

        Follows the package-level officeDocument relationship when the package
        declares one, falling back to the canonical ``word/document.xml``.

        Raises:
            MalformedPackageError: If the resolved part is not in the archive
        """
        if self._main_part_name is None:
            part_name = self._office_document_target() or MAIN_DOCUMENT_PART
            if not self.part_exists(part_name):
                raise MalformedPackageError("main content part not found", part_name)
            logger.debug("Resolved main content part: %s", part_name)
            self._main_part_name = part_name
        return self._main_part_name

    def _office_document_target(self) -> str | None:
        """Return the officeDocument relationship target from _rels/.rels."""
        try:
            rels = self.get_part(PACKAGE_RELS_PART)
        except etree.XMLSyntaxError as e:
            raise MalformedPackageError(f"unreadable relationships: {e}", PACKAGE_RELS_PART) from e
        if rels is None:
            return None

        for rel in rels.iter(f"{{{PACKAGE_RELATIONSHIPS_NAMESPACE}}}Relationship"):
            if rel.get("Type") == REL_TYPE_OFFICE_DOCUMENT and rel.get("TargetMode") != "External":
                target = rel.get("Target")
                if target:
                    return target.lstrip("/")
        return None

    def content_type(self, part_name: str) -> str | None:
        """Get the Override content type declared for a part.

        Args:
            part_name: Relative path within the package (no leading slash)

        Returns:
            The declared content type, or None if no override exists
        """
        try:
            types = self.get_part(CONTENT_TYPES_PART)
        except etree.XMLSyntaxError as e:
            raise MalformedPackageError(f"unreadable content types: {e}", CONTENT_TYPES_PART) from e
        if types is None:
            return None

        wanted = "/" + part_name.lstrip("/")
        for override in types.iter(f"{{{CONTENT_TYPES_NAMESPACE}}}Override"):
            if override.get("PartName", "").lower() == wanted.lower():
                return override.get("ContentType")
        return None

    def save_to_bytes(self, replacements: dict[str, bytes] | None = None) -> bytes:
        """Save the package to bytes, optionally replacing some parts.

        Parts not named in ``replacements`` are copied byte-for-byte with
        their original archive metadata.

        Args:
            replacements: Mapping of part name to new content

        Returns:
            The complete .docx file as bytes
        """
        replacements = replacements or {}
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as zip_ref:
            for info in self._archive.infolist():
                if info.filename in replacements:
                    zip_ref.writestr(info, replacements[info.filename])
                else:
                    zip_ref.writestr(info, self._archive.read(info.filename))

        return buffer.getvalue()

    def close(self) -> None:
        """Release the underlying archive."""
        self._archive.close()

    def __enter__(self) -> "OOXMLPackage":
        """Context manager support."""
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Context manager cleanup."""
        self.close()
