"""PenState / PenStateStore（`vpen.core.pen_state`）のテスト。"""

from __future__ import annotations

from dataclasses import replace

import pytest

from vpen.core.document import VectorDocument
from vpen.core.lifecycle import path_style_for
from vpen.core.path import PenPath, line_to
from vpen.core.pen_state import (
    ATTRIBUTES_VERSION,
    LayerHandle,
    LineShape,
    PenAttributes,
    PenStateStore,
    PenType,
)


def _store() -> PenStateStore:
    return PenStateStore(lambda: VectorDocument(480, 360))


def test_default_attributes_are_complete() -> None:
    attrs = PenAttributes()

    assert attrs.stroke_color == (0, 0, 0)
    assert attrs.stroke_opacity == 1.0
    assert attrs.diameter == 1.0
    assert attrs.fill_opacity == 0.0
    assert attrs.line_shape is LineShape.STRAIGHT
    assert attrs.version == ATTRIBUTES_VERSION


def test_stroke_style_key_ignores_line_shape() -> None:
    attrs = PenAttributes()

    assert replace(attrs, line_shape=LineShape.CURVE).stroke_style_key() == attrs.stroke_style_key()
    assert replace(attrs, diameter=2.0).stroke_style_key() != attrs.stroke_style_key()


@pytest.mark.parametrize(("value", "expected"), [("Plotter", PenType.PLOTTER), (PenType.TRAIL, PenType.TRAIL)])
def test_pen_type_parse(value, expected) -> None:
    assert PenType.parse(value) is expected


def test_enum_parse_rejects_unknown() -> None:
    with pytest.raises(ValueError):
        PenType.parse("brush")
    with pytest.raises(ValueError):
        LineShape.parse("zigzag")


def test_get_creates_lazily_and_returns_same_state(make_target) -> None:
    store = _store()
    target = make_target(id="a")

    assert store.for_target_if_exists(target) is None
    state = store.get(target)

    assert store.get(target) is state
    assert target in store
    assert len(store) == 1
    assert not state.is_pen_down
    assert state.document.width == 480


def test_clone_into_copies_settings_without_sharing_document(make_target) -> None:
    store = _store()
    source = make_target(id="src")
    clone = make_target(id="clone")
    state = store.get(source)
    state.pen_type = PenType.PLOTTER
    state.attributes = replace(state.attributes, diameter=3.0)
    state.layer = LayerHandle(skin_id=1, drawable_id=2)
    path = PenPath((0.0, 0.0), path_style_for(state.attributes, 1.0))
    state.document.add(path.element)
    state.current_path = path
    line_to(path, (5.0, 5.0))
    state.reference = (path.commands[0],)

    cloned = store.clone_into(clone, source)

    assert cloned is not None
    assert cloned.pen_type is PenType.PLOTTER
    assert cloned.attributes.diameter == 3.0
    assert cloned.reference == state.reference
    assert cloned.layer is None
    assert cloned.document is not state.document
    assert cloned.current_path is not None
    assert cloned.current_path.element is cloned.document.children()[0]
    assert cloned.current_path.element is not path.element

    line_to(cloned.current_path, (9.0, 9.0))
    assert path.element.attrib["d"] != cloned.current_path.element.attrib["d"]


def test_clone_into_without_source_state_returns_none(make_target) -> None:
    store = _store()

    assert store.clone_into(make_target(id="b"), make_target(id="a")) is None
    assert len(store) == 0


def test_destroy_and_drain(make_target) -> None:
    store = _store()
    a, b = make_target(id="a"), make_target(id="b")
    state_a = store.get(a)
    store.get(b)

    assert store.destroy(a) is state_a
    assert store.destroy(a) is None
    assert [target_id for target_id, _ in store.drain()] == ["b"]
    assert len(store) == 0
