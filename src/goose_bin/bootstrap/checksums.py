"""Checksum manifest parsing and SHA-256 verification.

The release's checksums.txt uses the sha256sum text format, one record per
line::

    <hex digest>  <filename>

Both the manifest and the verified file are read incrementally.
"""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Dict, Iterable, Mapping, Optional

from goose_bin.core.errors import GooseBinError
from goose_bin.core.logging import get_logger

LOGGER = get_logger(__name__)

FIELD_SEPARATOR = "  "
CHUNK_SIZE = 64 * 1024


class ChecksumMismatchError(GooseBinError):
    """The downloaded file does not match the manifest.

    Also raised when the manifest has no entry for the file.
    """

    def __init__(self, filename: str, expected: Optional[str], actual: str) -> None:
        self.filename = filename
        self.expected = expected
        self.actual = actual
        if expected is None:
            message = f"No checksum for {filename} in the checksum manifest"
        else:
            message = (
                f"Checksum mismatch for {filename}: "
                f"expected {expected}, got {actual}"
            )
        super().__init__(message)


def parse_manifest_lines(lines: Iterable[str]) -> Dict[str, str]:
    """Build a filename -> digest mapping from manifest lines.

    Blank lines and lines without the two-space separator are skipped.
    """
    manifest: Dict[str, str] = {}
    for line in lines:
        record = line.rstrip("\r\n")
        digest, sep, filename = record.partition(FIELD_SEPARATOR)
        digest = digest.strip()
        filename = filename.strip()
        if not sep or not digest or not filename:
            continue
        manifest[filename] = digest.lower()
    return manifest


def parse_manifest(text: str) -> Dict[str, str]:
    return parse_manifest_lines(text.splitlines())


def parse_manifest_file(path: Path) -> Dict[str, str]:
    """Parse a manifest file line by line."""
    with open(path, "r", encoding="utf-8") as f:
        return parse_manifest_lines(f)


def compute_sha256(path: Path, chunk_size: int = CHUNK_SIZE) -> str:
    """Compute the hex SHA-256 digest of a file without loading it whole."""
    digest = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(chunk_size), b""):
            digest.update(chunk)
    return digest.hexdigest()


def verify(manifest: Mapping[str, str], filename: str, path: Path) -> str:
    """Check a local file against its manifest entry.

    Args:
        manifest: Mapping from asset filename to expected digest.
        filename: Asset name to look up in the manifest.
        path: Local file to hash.

    Returns:
        The verified digest.

    Raises:
        ChecksumMismatchError: If the digests differ or the manifest has no
            entry for filename.
    """
    expected = manifest.get(filename)
    actual = compute_sha256(path)
    if expected is None or expected.lower() != actual:
        raise ChecksumMismatchError(filename, expected, actual)
    LOGGER.debug(f"Checksum verified for {filename}: {actual}")
    return actual
