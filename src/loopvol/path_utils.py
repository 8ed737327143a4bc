"""
Volume name validation for loopvol.

A volume name is joined with the backing root to form a file path and
is burned into the filesystem superblock as a label, so it must be a
single safe path component that fits in a label.
"""

import os
from pathlib import Path
from typing import Union

from loopvol.errors import InvalidRequestError


def validate_volume_name(value: str, max_length: int = 16, field_name: str = "name") -> None:
    """
    Validate that a volume name is safe to use as a file name and label.

    Rules:
    - Must not be empty or whitespace
    - Must not contain path separators or NUL bytes
    - Must not be '.' or '..'
    - Must encode as UTF-8 (no lone surrogates)
    - Must not exceed max_length bytes in UTF-8 (filesystem label size)

    Args:
        value: The user-supplied volume name.
        max_length: Longest accepted name in bytes.
        field_name: Human-readable field name for error messages.

    Raises:
        InvalidRequestError: If the name is unsafe.
    """
    if not isinstance(value, str) or not value.strip():
        raise InvalidRequestError(
            field=field_name,
            value=value,
            reason=f"{field_name} cannot be empty",
        )

    if os.sep in value or "/" in value:
        raise InvalidRequestError(
            field=field_name,
            value=value,
            reason="Path separators are not allowed",
        )

    if "\x00" in value:
        raise InvalidRequestError(
            field=field_name,
            value=value,
            reason="NUL bytes are not allowed",
        )

    if value in (".", ".."):
        raise InvalidRequestError(
            field=field_name,
            value=value,
            reason=f"'{value}' is not a valid volume name",
        )

    try:
        encoded = value.encode("utf-8", errors="strict")
    except UnicodeEncodeError as e:
        raise InvalidRequestError(
            field=field_name,
            value=value,
            reason="not valid UTF-8",
        ) from e

    if len(encoded) > max_length:
        raise InvalidRequestError(
            field=field_name,
            value=value,
            reason=f"Longer than {max_length} bytes, the filesystem label limit",
        )


def validate_resolved_path(child: Union[str, Path], base_dir: Union[str, Path]) -> Path:
    """
    Validate that a resolved child path stays within base_dir.

    Args:
        child: The resolved child path.
        base_dir: The base directory that the child must stay within.

    Returns:
        The resolved child Path.

    Raises:
        InvalidRequestError: If the resolved path escapes base_dir.
    """
    child_resolved = Path(child).resolve()
    base_resolved = Path(base_dir).resolve()

    if child_resolved.parent != base_resolved:
        raise InvalidRequestError(
            field="path",
            value=str(child),
            reason="Path is outside the backing root",
        )

    return child_resolved
