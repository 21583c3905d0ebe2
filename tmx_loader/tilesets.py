"""
Resolution of <tileset> references, embedded or external (TSX).

=============================================================================
RELATIVE PATHS
=============================================================================

Every relative path in a document is relative to the directory of THAT
document:

    game/
    ├── maps/
    │   └── level1.tmx      <tileset firstgid="1" source="../tilesets/a/terrain.tsx"/>
    └── tilesets/
        ├── a/
        │   └── terrain.tsx <image source="../img/terrain.png"/>
        └── img/
            └── terrain.png

While the TSX is being built, the base directory moves to tilesets/a/, so
the image resolves to tilesets/img/terrain.png and not maps/../img/.
When the TSX is done (or fails), the base directory goes back to maps/.

The base directory is a small stack owned by one resolver, used by one
parse at a time.

=============================================================================
"""

import os
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator, List, Optional

from .errors import UnreadableFileError
from .model.tileset import TileSet
from .nodes import Logger, NodeAccessor, Requirement, parse_document

TilesetBuilder = Callable[[int, NodeAccessor, Optional[Path]], TileSet]


class TilesetResolver:
    """
    Turns <tileset> elements into TileSets.

    Parameters:
    -----------
    base_dir : Path
        Directory of the map being parsed
    build : callable(firstgid, node, source) → TileSet
        Builds a tileset from an element holding the full definition;
        source is the TSX path for external tilesets, None otherwise
    reader : callable(path) → bytes
        Reads external TSX files
    logger : logging.Logger
        Diagnostic sink
    """

    def __init__(self, base_dir: Path, build: TilesetBuilder,
                 reader: Callable[[Path], bytes], logger: Logger):
        self._dirs: List[Path] = [Path(base_dir)]
        self.build = build
        self.reader = reader
        self.logger = logger

    @property
    def base_dir(self) -> Path:
        """Directory relative paths currently resolve against."""
        return self._dirs[-1]

    def resolve_path(self, relative: str) -> Path:
        """Join a document-relative path onto the current base directory."""
        return Path(os.path.normpath(self.base_dir / relative))

    @contextmanager
    def rebased(self, directory: Path) -> Iterator[Path]:
        """Resolve relative paths against 'directory' inside the block."""
        self._dirs.append(Path(directory))
        try:
            yield self.base_dir
        finally:
            self._dirs.pop()

    def resolve(self, node: NodeAccessor) -> TileSet:
        """
        Build the TileSet for a <tileset> element of a map.

        Raises:
        -------
        UnreadableFileError : an external TSX cannot be read or parsed
        """
        firstgid = node.get_uint('firstgid')
        source = node.get_string('source', Requirement.OPTIONAL)

        if source:
            return self.load_external(firstgid, source)

        return self.build(firstgid, node, None)

    def load_external(self, firstgid: int, source: str) -> TileSet:
        """Load a TSX file; its contents resolve paths relative to itself."""
        tsx_path = self.resolve_path(source)
        self.logger.debug("Loading TSX: %s", tsx_path)

        root = NodeAccessor(parse_document(tsx_path, self.reader), self.logger)

        if not root.is_tag('tileset'):
            raise UnreadableFileError(
                tsx_path, f"root element is <{root.tag}>, expected <tileset>"
            )

        # firstgid comes from the referencing map, never from the TSX
        for attribute in ('firstgid', 'source'):
            if root.has_attribute(attribute):
                self.logger.warning(
                    "Attribute '%s' present in a TSX file: %s",
                    attribute, tsx_path
                )

        with self.rebased(tsx_path.parent):
            return self.build(firstgid, root, tsx_path)

