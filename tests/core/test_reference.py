"""プロッタペンの参照点（`vpen.core.reference`）のテスト。"""

from __future__ import annotations

from vpen.core.document import VectorDocument
from vpen.core.lifecycle import path_style_for
from vpen.core.path import LineTo, MoveTo, PenPath, line_to
from vpen.core.pen_state import PenAttributes, PenState, PenType
from vpen.core.reference import ReferencePointController


def _state(pen_type: PenType) -> PenState:
    state = PenState(document=VectorDocument(100, 100), pen_type=pen_type)
    path = PenPath((0.0, 0.0), path_style_for(PenAttributes(), 1.0))
    state.document.add(path.element)
    state.current_path = path
    return state


def test_plotter_preview_replaces_previous_provisional_segment() -> None:
    controller = ReferencePointController()
    state = _state(PenType.PLOTTER)
    assert state.current_path is not None

    controller.preview(state, lambda: line_to(state.current_path, (10.0, 0.0)))
    controller.preview(state, lambda: line_to(state.current_path, (20.0, 5.0)))

    assert state.current_path.commands == (MoveTo((0.0, 0.0)), LineTo((20.0, 5.0)))
    assert state.reference is not None


def test_plot_commits_segment_and_next_preview_appends() -> None:
    controller = ReferencePointController()
    state = _state(PenType.PLOTTER)
    assert state.current_path is not None

    controller.preview(state, lambda: line_to(state.current_path, (10.0, 0.0)))
    assert controller.commit(state) is True
    assert state.reference is None
    controller.preview(state, lambda: line_to(state.current_path, (10.0, 10.0)))

    assert len(state.current_path) == 3


def test_trail_pen_never_records_reference() -> None:
    controller = ReferencePointController()
    state = _state(PenType.TRAIL)
    assert state.current_path is not None

    controller.preview(state, lambda: line_to(state.current_path, (10.0, 0.0)))
    controller.preview(state, lambda: line_to(state.current_path, (20.0, 0.0)))

    assert state.reference is None
    assert len(state.current_path) == 3
    assert controller.commit(state) is False


def test_retract_restores_checkpoint() -> None:
    controller = ReferencePointController()
    state = _state(PenType.PLOTTER)
    assert state.current_path is not None

    controller.preview(state, lambda: line_to(state.current_path, (10.0, 0.0)))

    assert controller.retract(state) is True
    assert state.current_path.commands == (MoveTo((0.0, 0.0)),)
    assert controller.retract(state) is False
