"""
Validation — Error types and input checks shared by config and CLI.

``ConfigurationError`` is what the CLI reports to the operator;
``ValidationError`` is the field-level failure underneath it.

## Usage

    from repo_sync.validation import ConfigurationError, validate_file_readable

    try:
        text = validate_file_readable(config_path, "Config file")
    except ValidationError as e:
        raise ConfigurationError(str(e))
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional


class ValidationError(Exception):
    """A single value failed a check."""

    def __init__(self, message: str, field: Optional[str] = None, details: Optional[Dict] = None):
        self.message = message
        self.field = field
        self.details = details or {}
        super().__init__(f"{field}: {message}" if field else message)


class ConfigurationError(Exception):
    """The config file is missing, unreadable, or does not match the schema."""


def validate_path_exists(path: Path, description: str = "Path") -> None:
    if not path.exists():
        raise ValidationError(f"{description} does not exist: {path}", details={"path": str(path)})


def validate_file_readable(path: Path, description: str = "File") -> str:
    """Check that ``path`` is a readable regular file and return its text."""
    validate_path_exists(path, description)
    if not path.is_file():
        raise ValidationError(f"{description} is not a file: {path}", details={"path": str(path)})

    try:
        return path.read_text(encoding="utf-8")
    except PermissionError:
        raise ValidationError(f"{description} is not readable: {path}", details={"path": str(path)})
    except (OSError, UnicodeDecodeError) as e:
        raise ValidationError(f"{description} cannot be read: {e}", details={"path": str(path)})


def validate_repo_name(name: str) -> str:
    """
    Validate a repository name.

    The name becomes a directory under the cache root, so it must be a
    single path component.
    """
    if not name or not name.strip():
        raise ValidationError("must be a non-empty string", field="name")
    if "/" in name or "\\" in name:
        raise ValidationError(f"must not contain path separators: {name!r}", field="name")
    if name in (".", ".."):
        raise ValidationError(f"is not a valid directory name: {name!r}", field="name")
    return name
