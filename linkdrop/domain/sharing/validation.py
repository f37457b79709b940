"""
Upload Validation

Filename, size and type checks applied before any bytes reach storage.

File type rules are a small closed set of policies instead of ad hoc string
matching: any type, an extension allow-list, a MIME allow-list, or a
composite accepting a file when any member does.
"""

import re
from dataclasses import dataclass
from typing import FrozenSet, Tuple, Union

from ..errors import FileValidationError


DEFAULT_MAX_UPLOAD_BYTES = 100 * 1024 * 1024
MAX_FILENAME_LENGTH = 255

_DANGEROUS_CHARS = re.compile(r'[<>:"|?*\x00-\x1f]')


def get_file_extension(filename: str) -> str:
    """
    Get the lower-cased extension of a filename, including the dot.

    Returns:
        '.pdf' for 'Report.PDF', '' when there is no extension
    """
    parts = filename.rsplit(".", 1)
    if len(parts) < 2 or not parts[1]:
        return ""
    return "." + parts[1].lower()


def format_file_size(size: int) -> str:
    """Format a byte count for display (e.g. '1.5 MB')."""
    if size == 0:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB", "GB", "TB"]
    value = float(size)
    index = 0
    while value >= 1024 and index < len(units) - 1:
        value /= 1024
        index += 1
    return f"{round(value, 2):g} {units[index]}"


@dataclass(frozen=True)
class AnyFileType:
    """Wildcard: every file type is allowed."""

    def allows(self, filename: str, mime_type: str) -> bool:
        return True

    def describe(self) -> str:
        return "*"


@dataclass(frozen=True)
class ExtensionAllowList:
    """Allows files whose extension (e.g. '.pdf') is listed."""
    extensions: FrozenSet[str]

    def allows(self, filename: str, mime_type: str) -> bool:
        return get_file_extension(filename) in self.extensions

    def describe(self) -> str:
        return ", ".join(sorted(self.extensions))


@dataclass(frozen=True)
class MimeAllowList:
    """Allows files whose declared MIME type is listed."""
    mime_types: FrozenSet[str]

    def allows(self, filename: str, mime_type: str) -> bool:
        return (mime_type or "").lower() in self.mime_types

    def describe(self) -> str:
        return ", ".join(sorted(self.mime_types))


@dataclass(frozen=True)
class CompositeTypePolicy:
    """Allows a file when any member policy allows it."""
    policies: Tuple[Union[ExtensionAllowList, MimeAllowList], ...]

    def allows(self, filename: str, mime_type: str) -> bool:
        return any(policy.allows(filename, mime_type) for policy in self.policies)

    def describe(self) -> str:
        return ", ".join(policy.describe() for policy in self.policies)


FileTypePolicy = Union[AnyFileType, ExtensionAllowList, MimeAllowList, CompositeTypePolicy]


def parse_type_policy(value: str) -> FileTypePolicy:
    """
    Parse a comma-separated allow-list into a FileTypePolicy.

    Expected format: "*" or ".ext,type/subtype,..."
    Example: ".pdf,.zip,image/png"

    Args:
        value: Allow-list string (empty means '*')

    Returns:
        FileTypePolicy variant
    """
    entries = [item.strip().lower() for item in (value or "").split(",") if item.strip()]
    if not entries or "*" in entries:
        return AnyFileType()

    extensions = frozenset(e if e.startswith(".") else f".{e}" for e in entries if "/" not in e)
    mime_types = frozenset(e for e in entries if "/" in e)

    if extensions and mime_types:
        return CompositeTypePolicy((ExtensionAllowList(extensions), MimeAllowList(mime_types)))
    if mime_types:
        return MimeAllowList(mime_types)
    return ExtensionAllowList(extensions)


def validate_file_name(filename: str) -> None:
    """Reject empty names, dangerous characters, path traversal and long names."""
    if not filename or not filename.strip():
        raise FileValidationError("Filename is empty")
    if _DANGEROUS_CHARS.search(filename):
        raise FileValidationError("Filename contains invalid characters")
    if "../" in filename or "..\\" in filename:
        raise FileValidationError("Filename contains invalid path")
    if len(filename) > MAX_FILENAME_LENGTH:
        raise FileValidationError(
            f"Filename is too long (max {MAX_FILENAME_LENGTH} characters)"
        )


def validate_file_size(size: int, max_size: int = DEFAULT_MAX_UPLOAD_BYTES) -> None:
    if size <= 0:
        raise FileValidationError("File is empty")
    if size > max_size:
        raise FileValidationError(
            f"File size exceeds maximum allowed size of {format_file_size(max_size)}"
        )


def validate_file_type(filename: str, mime_type: str, policy: FileTypePolicy) -> None:
    if not policy.allows(filename, mime_type):
        raise FileValidationError(
            f"File type not allowed. Allowed types: {policy.describe()}"
        )


def validate_upload(
    filename: str,
    size: int,
    mime_type: str,
    max_size: int = DEFAULT_MAX_UPLOAD_BYTES,
    type_policy: FileTypePolicy = AnyFileType(),
) -> None:
    """
    Complete upload validation: name, then size, then type.

    Raises:
        FileValidationError: On the first failing check
    """
    validate_file_name(filename)
    validate_file_size(size, max_size)
    validate_file_type(filename, mime_type, type_policy)
