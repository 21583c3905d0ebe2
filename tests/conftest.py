"""Shared fixtures: XML nodes, GID payloads and TMX/TSX files on disk."""

import base64
import gzip
import logging
import struct
import textwrap
import xml.etree.ElementTree as ET
import zlib

import pytest

from tmx_loader.nodes import NodeAccessor


@pytest.fixture
def logger():
    return logging.getLogger("tmx_loader.tests")


@pytest.fixture
def make_node(logger):
    """Wrap an XML snippet in a NodeAccessor."""
    def _make(xml):
        return NodeAccessor(ET.fromstring(xml), logger)
    return _make


@pytest.fixture
def encode_gids():
    """Encode raw 32-bit GIDs the way Tiled writes base64 payloads."""
    def _encode(gids, compression=None):
        data = struct.pack(f"<{len(gids)}I", *gids)
        if compression == "zlib":
            data = zlib.compress(data)
        elif compression == "gzip":
            data = gzip.compress(data)
        return base64.b64encode(data).decode("ascii")
    return _encode


@pytest.fixture
def write_file(tmp_path):
    """Write a text file below tmp_path, creating directories as needed."""
    def _write(relative, content):
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(content).strip(), encoding="utf-8")
        return path
    return _write
