"""
Exceptions raised while loading TMX/TSX documents.

Attribute-level problems are never raised: they are logged and a default
value is used. Everything here aborts the document being parsed.
"""

from pathlib import Path
from typing import Optional, Union


class TmxError(Exception):
    """Base class for every loader error."""


class DecodeError(TmxError):
    """
    Malformed tile payload.

    Raised for invalid base64 (length, alphabet, padding), corrupt or
    truncated compressed streams, non-numeric CSV tokens and grids whose
    cell count does not match the layer size.
    """


class UnreadableFileError(TmxError):
    """A TMX or TSX file could not be read or parsed as XML."""

    def __init__(self, path: Union[str, Path], reason: Optional[str] = None):
        self.path = Path(path)
        self.reason = reason
        message = f"Unable to load file: {self.path}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)


class GidLookupError(TmxError, LookupError):
    """No tileset owns the requested GID."""


class TileCoordsError(TmxError, ValueError):
    """A local tile id falls outside its tileset image."""
