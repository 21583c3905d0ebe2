"""
Tile layer payload decoding.

=============================================================================
DATA ENCODINGS
=============================================================================

A <data> element stores the GID grid of a tile layer in one of five shapes:

    encoding    compression     payload
    --------    -----------     ---------------------------------------
    (absent)    -               <tile gid="1"/><tile gid="2"/>...
    csv         -               1,2,3,\n4,5,6
    base64      (absent)        little-endian uint32 per cell, base64
    base64      zlib            same bytes, zlib-framed, then base64
    base64      gzip            same bytes, gzip-framed, then base64

All of them decode to the same thing: a row-major sequence of Cells,
exactly width × height long.

=============================================================================
GID FLAGS
=============================================================================

The three highest bits of a 32-bit GID are not part of the id:

    bit 31  → flipped horizontally
    bit 30  → flipped vertically
    bit 29  → flipped diagonally (swap x/y axes)

    0x80000005  → tile 5, flipped horizontally
    0x60000005  → tile 5, flipped vertically and diagonally

The flags are cleared before the GID is used to look up a tileset. They
are extracted on every path (XML, CSV, base64): Tiled writes flipped tiles
in all three encodings.

=============================================================================
"""

import base64
import binascii
import re
import zlib
from enum import Enum
from typing import List, Tuple

import numpy as np

from .errors import DecodeError
from .model.layers import Cell
from .nodes import NodeAccessor, Requirement

FLIPPED_HORIZONTALLY_FLAG = 0x80000000
FLIPPED_VERTICALLY_FLAG = 0x40000000
FLIPPED_DIAGONALLY_FLAG = 0x20000000
FLIP_FLAGS_MASK = (FLIPPED_HORIZONTALLY_FLAG | FLIPPED_VERTICALLY_FLAG |
                   FLIPPED_DIAGONALLY_FLAG)

MAX_GID_VALUE = 0xFFFFFFFF

# Upper bound on each inflate output chunk
INFLATE_CHUNK_SIZE = 1024

_WHITESPACE = re.compile(r'\s+')
_DECIMAL = re.compile(r'[0-9]+')


class DataFormat(Enum):
    """Storage format of a <data> element."""
    XML = "xml"
    CSV = "csv"
    BASE64 = "base64"
    BASE64_ZLIB = "base64+zlib"
    BASE64_GZIP = "base64+gzip"

    @property
    def is_base64(self) -> bool:
        return self in (DataFormat.BASE64, DataFormat.BASE64_ZLIB,
                        DataFormat.BASE64_GZIP)

    @property
    def is_compressed(self) -> bool:
        return self in (DataFormat.BASE64_ZLIB, DataFormat.BASE64_GZIP)


def select_format(node: NodeAccessor) -> DataFormat:
    """
    Pick the payload format from the encoding/compression attributes.

    Raises:
    -------
    DecodeError : unsupported encoding or compression (e.g. zstd)
    """
    encoding = node.get_string('encoding', Requirement.OPTIONAL)
    compression = node.get_string('compression', Requirement.OPTIONAL)

    if encoding == '':
        return DataFormat.XML

    if encoding == 'csv':
        return DataFormat.CSV

    if encoding == 'base64':
        if compression == '':
            return DataFormat.BASE64
        if compression == 'zlib':
            return DataFormat.BASE64_ZLIB
        if compression == 'gzip':
            return DataFormat.BASE64_GZIP
        raise DecodeError(f"Unsupported compression: {compression!r}")

    raise DecodeError(f"Unsupported encoding: {encoding!r}")


# =============================================================================
# BASE64
# =============================================================================

def decode_base64(text: str) -> bytes:
    """
    Decode a base64 payload as found in a <data> element.

    Whitespace (newlines, indentation) is stripped first. The cleaned text
    must be a multiple of 4 characters long and use only the standard
    alphabet; '=' may only appear as one or two trailing pad characters.

    Examples:
        decode_base64("AQAA\\n  AA==")  → b'\\x01\\x00\\x00\\x00'

    Raises:
    -------
    DecodeError : bad length, bad character or misplaced padding
    """
    cleaned = _WHITESPACE.sub('', text)

    if len(cleaned) % 4 != 0:
        raise DecodeError(
            f"Base64 payload length {len(cleaned)} is not a multiple of 4"
        )

    try:
        # validate=True rejects anything outside [A-Za-z0-9+/] and any '='
        # that is not trailing padding
        return base64.b64decode(cleaned, validate=True)
    except binascii.Error as e:
        raise DecodeError(f"Invalid base64 payload: {e}") from e


# =============================================================================
# COMPRESSION
# =============================================================================

def inflate(data: bytes, chunk_size: int = INFLATE_CHUNK_SIZE) -> bytes:
    """
    Decompress a zlib or gzip stream.

    The framing is detected from the header, so a payload declared "zlib"
    that is really gzip (or the reverse) still decodes. Output is produced
    in chunks of at most 'chunk_size' bytes until the stream reports its
    end.

    Raises:
    -------
    DecodeError : corrupt stream, truncated stream, or bytes left over
                  after the end of the stream
    """
    # MAX_WBITS | 32 → accept both zlib and gzip headers
    decompressor = zlib.decompressobj(zlib.MAX_WBITS | 32)
    output = bytearray()
    pending = data

    while not decompressor.eof:
        try:
            chunk = decompressor.decompress(pending, chunk_size)
        except zlib.error as e:
            raise DecodeError(f"Corrupt compressed stream: {e}") from e

        pending = decompressor.unconsumed_tail

        if not chunk and not pending and not decompressor.eof:
            raise DecodeError("Truncated compressed stream")

        output += chunk

    if decompressor.unused_data:
        raise DecodeError(
            f"{len(decompressor.unused_data)} bytes left after the end of "
            "the compressed stream"
        )

    return bytes(output)


# =============================================================================
# GIDS
# =============================================================================

def decode_gid(value: int) -> Cell:
    """
    Split a raw 32-bit GID into its tile id and flip flags.

    Examples:
        decode_gid(5)           → Cell(gid=5)
        decode_gid(0x80000005)  → Cell(gid=5, hflip=True)
    """
    return Cell(
        gid=value & ~FLIP_FLAGS_MASK & MAX_GID_VALUE,
        hflip=bool(value & FLIPPED_HORIZONTALLY_FLAG),
        vflip=bool(value & FLIPPED_VERTICALLY_FLAG),
        dflip=bool(value & FLIPPED_DIAGONALLY_FLAG),
    )


def decode_gid_bytes(data: bytes) -> List[Cell]:
    """
    Decode a buffer of little-endian uint32 values into Cells.

    Raises:
    -------
    DecodeError : buffer length is not a multiple of 4
    """
    if len(data) % 4 != 0:
        raise DecodeError(
            f"Tile buffer length {len(data)} is not a multiple of 4"
        )

    # '<u4' → little-endian regardless of host byte order
    raw = np.frombuffer(data, dtype='<u4')
    gids = raw & np.uint32(~FLIP_FLAGS_MASK & MAX_GID_VALUE)
    hflips = (raw & np.uint32(FLIPPED_HORIZONTALLY_FLAG)) != 0
    vflips = (raw & np.uint32(FLIPPED_VERTICALLY_FLAG)) != 0
    dflips = (raw & np.uint32(FLIPPED_DIAGONALLY_FLAG)) != 0

    return [
        Cell(int(gid), bool(h), bool(v), bool(d))
        for gid, h, v, d in zip(gids.tolist(), hflips.tolist(),
                                vflips.tolist(), dflips.tolist())
    ]


def parse_gid(token: str) -> int:
    """
    Parse a raw GID written as decimal text (CSV token or gid attribute).

    Raises:
    -------
    DecodeError : not an unsigned 32-bit decimal integer
    """
    token = token.strip()
    if not _DECIMAL.fullmatch(token):
        raise DecodeError(f"Invalid tile GID: {token!r}")
    value = int(token)
    if value > MAX_GID_VALUE:
        raise DecodeError(f"Tile GID out of range: {token}")
    return value


def decode_csv(text: str) -> List[Cell]:
    """
    Decode a CSV payload.

    Tokens are trimmed. A single trailing comma is tolerated; any other
    empty token is an error, so a doubled comma cannot shift the grid.

        "1,2,\\n0,3"  → 4 cells
        "1,,2,3"      → DecodeError

    Raises:
    -------
    DecodeError : a token is empty or not an unsigned 32-bit decimal integer
    """
    tokens = [token.strip() for token in text.split(',')]
    if tokens[-1] == '':
        tokens.pop()

    cells = []
    for index, token in enumerate(tokens):
        if not token:
            raise DecodeError(f"Empty CSV tile token at position {index}")
        cells.append(decode_gid(parse_gid(token)))
    return cells


def decode_xml_tiles(node: NodeAccessor) -> List[Cell]:
    """
    Decode the deprecated one-<tile>-per-cell format.

    Raises:
    -------
    DecodeError : a gid is not an unsigned 32-bit decimal integer
    """
    # Tiled writes a bare <tile/> for empty cells
    return [
        decode_gid(parse_gid(
            tile.get_string('gid', Requirement.OPTIONAL, '0')
        ))
        for tile in node.children('tile')
    ]


def decode_payload(node: NodeAccessor, fmt: DataFormat) -> List[Cell]:
    """Decode a <data> element already classified by select_format()."""
    if fmt is DataFormat.XML:
        return decode_xml_tiles(node)

    if fmt is DataFormat.CSV:
        return decode_csv(node.text())

    data = decode_base64(node.text())
    if fmt.is_compressed:
        data = inflate(data)
    return decode_gid_bytes(data)


def decode_data(node: NodeAccessor, width: int, height: int) -> Tuple[Cell, ...]:
    """
    Decode a <data> element into exactly width × height cells.

    Parameters:
    -----------
    node : NodeAccessor
        The <data> element
    width, height : int
        Layer dimensions in tiles

    Raises:
    -------
    DecodeError : malformed payload or wrong number of cells
    """
    cells = decode_payload(node, select_format(node))

    expected = width * height
    if len(cells) != expected:
        raise DecodeError(
            f"Tile layer holds {len(cells)} cells, expected "
            f"{width}x{height} = {expected}"
        )

    return tuple(cells)
