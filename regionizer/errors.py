"""
Error types raised by the regionizer.

All of them are fatal for the current run. The CLI reports them as
``Error: ...`` on stderr and exits with status 1.
"""

from pathlib import Path
from typing import Optional, Union


PathLike = Union[str, Path]


class RegionizerError(Exception):
    """Base class for all regionizer failures."""

    def __init__(self, message: str, path: Optional[PathLike] = None):
        super().__init__(message)
        self.path = str(path) if path is not None else None


class InputNotFoundError(RegionizerError):
    """Input path is missing, is not a regular file, or cannot be read."""


class UnsupportedFormatError(RegionizerError):
    """Input file exists but could not be decoded as an image."""


class MalformedPathError(RegionizerError):
    """Input path has no extension, so the output name cannot be derived."""


class WriteFailureError(RegionizerError):
    """Output image could not be encoded or published."""
