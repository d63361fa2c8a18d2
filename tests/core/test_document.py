"""描画面 VectorDocument（`vpen.core.document`）のテスト。"""

from __future__ import annotations

import xml.etree.ElementTree as ET

import pytest

from vpen.core.document import SVG_NS, VectorDocument, fmt_number


def test_document_serializes_stage_sized_svg() -> None:
    doc = VectorDocument(480, 360)

    root = ET.fromstring(doc.to_svg())
    assert root.tag == f"{{{SVG_NS}}}svg"
    assert root.attrib["width"] == "480"
    assert root.attrib["height"] == "360"
    assert root.attrib["viewBox"] == "0 0 480 360"
    assert doc.is_empty()


def test_document_keeps_insertion_order_and_removes_by_identity() -> None:
    doc = VectorDocument(10, 10)
    a = doc.add(ET.Element("path", {"d": "M 0 0"}))
    b = doc.add(ET.Element("image"))

    assert doc.children() == [a, b]
    doc.remove(a)
    assert doc.children() == [b]
    doc.remove(a)
    assert doc.children() == [b]


def test_clone_deep_copies_children() -> None:
    doc = VectorDocument(10, 10)
    original = doc.add(ET.Element("path", {"d": "M 0 0"}))

    other = doc.clone()
    copied = other.children()[0]
    copied.set("d", "M 1 1")

    assert copied is not original
    assert original.attrib["d"] == "M 0 0"


def test_clear_removes_all_children() -> None:
    doc = VectorDocument(10, 10)
    doc.add(ET.Element("path"))
    doc.clear()
    assert doc.is_empty()


def test_document_rejects_non_positive_size() -> None:
    with pytest.raises(ValueError):
        VectorDocument(0, 10)


def test_fmt_number_normalizes_negative_zero() -> None:
    assert fmt_number(-0.0001) == "0.000"
    assert fmt_number(1.23456) == "1.235"
