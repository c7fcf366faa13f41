from __future__ import annotations
"""Helpers for folder paths expressed as key prefixes."""
import re

from .errors import ValidationError

SEPARATOR = "/"
PLACEHOLDER_NAME = ".keep"

_VALID_PATH = re.compile(r"^[A-Za-z0-9\-_/]+$")


def normalize_folder_path(path: str) -> str:
    """Return ``path`` ending in exactly one separator.

    Calling it on an already normalized path returns the same value.
    """

    return path.rstrip(SEPARATOR) + SEPARATOR


def validate_folder_path(path: str | None, *, label: str = "Folder name") -> str:
    """Trim and check a caller-provided folder path.

    Raises:
        ValidationError: when the path is missing, blank or contains characters
            other than letters, digits, hyphens, underscores and slashes.
    """

    value = (path or "").strip()
    if not value or not value.strip(SEPARATOR):
        raise ValidationError(f"{label} is required")
    if not _VALID_PATH.match(value):
        raise ValidationError(
            f"Invalid {label.lower()}. Use only letters, numbers, hyphens, "
            "underscores, and forward slashes"
        )
    return value


def placeholder_key(folder_path: str) -> str:
    return normalize_folder_path(folder_path) + PLACEHOLDER_NAME


def relative_key(key: str, prefix: str) -> str:
    """Strip ``prefix`` from the front of ``key``.

    Only a true leading match is stripped; a key that does not start with the
    prefix is rejected instead of being rewritten.
    """

    if not key.startswith(prefix):
        raise ValueError(f"Key '{key}' is not under prefix '{prefix}'")
    return key[len(prefix):]


def destination_key(key: str, source_prefix: str, destination_prefix: str) -> str:
    return destination_prefix + relative_key(key, source_prefix)


def is_within(prefix: str, other: str) -> bool:
    """Return True when normalized ``prefix`` equals or is nested in ``other``."""

    return normalize_folder_path(prefix).startswith(normalize_folder_path(other))
