"""
Typed access to TMX/TSX XML nodes.

=============================================================================
WHY A WRAPPER?
=============================================================================

ElementTree gives us every attribute as an optional string:

    <layer name="Ground" opacity="0.5"/>

    elem.get('opacity')     → '0.5'
    elem.get('visible')     → None

Every builder needs the same three things on top of that:

- conversion to the right Python type (int, float, bool, str)
- a default value when the attribute is absent
- a diagnostic when an attribute the format requires is absent

The Requirement tag encodes the last point:

    MANDATORY  → absence is logged as an error, default is used
    OPTIONAL   → absence is silent, default is used

Neither case aborts the parse. A TMX file with a missing 'tilewidth' is
still loaded; the host sees the error in its log.

=============================================================================
"""

import logging
import xml.etree.ElementTree as ET
from enum import Enum
from pathlib import Path
from typing import Callable, Iterator, Optional, TypeVar, Union

from .errors import UnreadableFileError

T = TypeVar('T')

Logger = Union[logging.Logger, logging.LoggerAdapter]


class Requirement(Enum):
    """Whether an attribute must be present in a well-formed document."""
    OPTIONAL = "optional"
    MANDATORY = "mandatory"


class NodeAccessor:
    """
    Read-only view over one XML element.

    Parameters:
    -----------
    elem : ET.Element
        The wrapped element
    logger : logging.Logger
        Diagnostic sink for missing or unparsable attributes
    """

    def __init__(self, elem: ET.Element, logger: Logger):
        self.elem = elem
        self.logger = logger

    @property
    def tag(self) -> str:
        return self.elem.tag

    def is_tag(self, name: str) -> bool:
        return self.elem.tag == name

    # =========================================================================
    # CHILDREN
    # =========================================================================

    def has_child(self, name: str) -> bool:
        return self.elem.find(name) is not None

    def children(self, name: Optional[str] = None) -> Iterator['NodeAccessor']:
        """
        Iterate direct children in document order.

        With a name, only children with that tag are returned.
        """
        for child in self.elem:
            if name is None or child.tag == name:
                yield NodeAccessor(child, self.logger)

    def one_child(self, name: str) -> Optional['NodeAccessor']:
        """
        Return the single child named 'name', or None.

        When the document holds several, the first one wins and a warning
        is logged.
        """
        found = self.elem.findall(name)
        if not found:
            return None
        if len(found) > 1:
            self.logger.warning(
                "Multiple children where a single child was expected for "
                "element: %s (in <%s>)", name, self.elem.tag
            )
        return NodeAccessor(found[0], self.logger)

    def text(self) -> str:
        return self.elem.text or ""

    # =========================================================================
    # ATTRIBUTES
    # =========================================================================

    def has_attribute(self, name: str) -> bool:
        return name in self.elem.attrib

    def is_enum(self, name: str, value: str) -> bool:
        return self.elem.get(name) == value

    def get_string(self, name: str, req: Requirement = Requirement.MANDATORY,
                   default: str = "") -> str:
        return self._read(name, str, req, default)

    def get_uint(self, name: str, req: Requirement = Requirement.MANDATORY,
                 default: int = 0) -> int:
        return self._read(name, _parse_uint, req, default)

    def get_int(self, name: str, req: Requirement = Requirement.MANDATORY,
                default: int = 0) -> int:
        return self._read(name, int, req, default)

    def get_float(self, name: str, req: Requirement = Requirement.MANDATORY,
                  default: float = 0.0) -> float:
        return self._read(name, float, req, default)

    def get_bool(self, name: str, req: Requirement = Requirement.MANDATORY,
                 default: bool = False) -> bool:
        return self._read(name, _parse_bool, req, default)

    def _read(self, name: str, convert: Callable[[str], T],
              req: Requirement, default: T) -> T:
        raw = self.elem.get(name)

        if raw is None:
            if req is Requirement.MANDATORY:
                self.logger.error(
                    "Mandatory attribute is missing: %s (in <%s>)",
                    name, self.elem.tag
                )
            return default

        try:
            return convert(raw.strip())
        except ValueError:
            self.logger.error(
                "Invalid value for attribute %s: %r (in <%s>)",
                name, raw, self.elem.tag
            )
            return default


def _parse_uint(raw: str) -> int:
    value = int(raw)
    if value < 0:
        raise ValueError(raw)
    return value


def _parse_bool(raw: str) -> bool:
    # TMX writes 0/1; older tools occasionally write true/false
    lowered = raw.lower()
    if lowered in ('1', 'true'):
        return True
    if lowered in ('0', 'false'):
        return False
    raise ValueError(raw)


# =============================================================================
# DOCUMENTS
# =============================================================================

def read_file_bytes(path: Path) -> bytes:
    return Path(path).read_bytes()


def parse_document(path: Path, reader: Callable[[Path], bytes]) -> ET.Element:
    """
    Read and parse an XML document, returning its root element.

    Raises:
    -------
    UnreadableFileError : the file cannot be read or is not well-formed XML
    """
    try:
        content = reader(path)
    except OSError as e:
        raise UnreadableFileError(path, e.strerror or str(e)) from e

    try:
        return ET.fromstring(content)
    except ET.ParseError as e:
        raise UnreadableFileError(path, f"XML error: {e}") from e
