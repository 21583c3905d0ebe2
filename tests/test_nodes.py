"""Tests for typed XML node access."""

import logging
import xml.etree.ElementTree as ET

import pytest

from tmx_loader.errors import UnreadableFileError
from tmx_loader.nodes import NodeAccessor, Requirement, parse_document

OPTIONAL = Requirement.OPTIONAL


def test_typed_attributes(make_node):
    node = make_node('<layer name=" Ground " width="10" x="-3" opacity="0.5" '
                     'visible="0"/>')

    assert node.tag == "layer"
    assert node.is_tag("layer")
    assert node.get_string("name") == "Ground"
    assert node.get_uint("width") == 10
    assert node.get_int("x") == -3
    assert node.get_float("opacity") == 0.5
    assert node.get_bool("visible") is False


def test_missing_mandatory_attribute_is_logged(make_node, caplog):
    node = make_node("<layer/>")

    assert node.get_uint("width", default=7) == 7

    assert "Mandatory attribute is missing: width (in <layer>)" in caplog.text
    assert caplog.records[0].levelno == logging.ERROR


def test_missing_optional_attribute_is_silent(make_node, caplog):
    node = make_node("<layer/>")

    assert node.get_float("opacity", OPTIONAL, 1.0) == 1.0
    assert node.get_string("name", OPTIONAL) == ""
    assert not caplog.records


@pytest.mark.parametrize("method,raw", [
    ("get_uint", "-1"),
    ("get_int", "abc"),
    ("get_float", "x1"),
    ("get_bool", "yes"),
])
def test_invalid_value_falls_back_to_default(make_node, caplog, method, raw):
    node = make_node(f'<layer value="{raw}"/>')

    getattr(node, method)("value", OPTIONAL)

    assert "Invalid value for attribute value" in caplog.text


def test_bool_accepts_words(make_node):
    node = make_node('<layer a="true" b="False"/>')
    assert node.get_bool("a") is True
    assert node.get_bool("b") is False


def test_children_in_document_order(make_node):
    node = make_node('<map><layer name="a"/><objectgroup name="b"/>'
                     '<layer name="c"/></map>')

    assert [c.tag for c in node.children()] == ["layer", "objectgroup",
                                                 "layer"]
    assert [c.get_string("name") for c in node.children("layer")] == ["a",
                                                                      "c"]
    assert node.has_child("objectgroup")
    assert not node.has_child("imagelayer")


def test_one_child_warns_when_ambiguous(make_node, caplog):
    node = make_node('<tile><image source="a.png"/><image source="b.png"/>'
                     '</tile>')

    child = node.one_child("image")

    assert child.get_string("source") == "a.png"
    assert "Multiple children where a single child was expected" in caplog.text
    assert caplog.records[0].levelno == logging.WARNING


def test_one_child_missing(make_node):
    assert make_node("<tile/>").one_child("image") is None


def test_text(make_node):
    assert make_node("<data>1,2</data>").text() == "1,2"
    assert make_node("<data/>").text() == ""


def test_attribute_presence(make_node):
    node = make_node('<object gid="3" type="door"/>')
    assert node.has_attribute("gid")
    assert not node.has_attribute("width")
    assert node.is_enum("type", "door")


def test_logger_is_injected():
    messages = []

    class Collector(logging.Handler):
        def emit(self, record):
            messages.append(record.getMessage())

    custom = logging.getLogger("tmx_loader.tests.collector")
    custom.addHandler(Collector())
    try:
        node = NodeAccessor(ET.fromstring("<map/>"), custom)
        node.get_uint("width")
    finally:
        custom.handlers.clear()

    assert messages == ["Mandatory attribute is missing: width (in <map>)"]


def test_parse_document_read_error(tmp_path):
    def reader(path):
        raise FileNotFoundError(2, "No such file or directory")

    with pytest.raises(UnreadableFileError) as info:
        parse_document(tmp_path / "missing.tmx", reader)

    assert info.value.path == tmp_path / "missing.tmx"
    assert "No such file" in str(info.value)


def test_parse_document_bad_xml(tmp_path):
    with pytest.raises(UnreadableFileError, match="XML error"):
        parse_document(tmp_path / "bad.tmx", lambda path: b"<map><layer>")
