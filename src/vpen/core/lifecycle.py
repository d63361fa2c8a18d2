"""
どこで: `src/vpen/core/lifecycle.py`。
何を: パスの開始・延長・終了・引き直し・閉路判定を司る状態機械 PathLifecycle を定義する。
なぜ: ペン操作とターゲットの移動通知から来るすべてのパス編集を、
    Idle / Open の 2 状態の遷移として 1 か所で扱うため。
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from vpen.core.coords import Point, map_to_surface
from vpen.core.host import Target
from vpen.core.path import PathStyle, PenPath, close_if_looped, curve_to, line_to
from vpen.core.pen_state import LineShape, PenAttributes, PenState, PenStateStore
from vpen.core.reference import ReferencePointController
from vpen.core.style import rgb255_to_hex

_logger = logging.getLogger(__name__)


def path_style_for(attributes: PenAttributes, step_per_mm: float) -> PathStyle:
    """ペン属性からパス開始時点のスタイルを作って返す。"""

    return PathStyle(
        stroke=rgb255_to_hex(attributes.stroke_color),
        stroke_opacity=float(attributes.stroke_opacity),
        stroke_width=float(attributes.diameter) * float(step_per_mm),
        fill=rgb255_to_hex(attributes.fill_color),
        fill_opacity=float(attributes.fill_opacity),
    )


class PathLifecycle:
    """ターゲットごとのパスの状態遷移を扱う。

    Parameters
    ----------
    store : PenStateStore
        ターゲットごとの PenState。
    reference : ReferencePointController
        プロッタペンの仮セグメント管理。
    step_per_mm : Callable[[], float]
        現在の step/mm 比を返す関数（ペン径 mm を線幅へ換算する）。
    close_tolerance : float
        閉路判定の距離しきい値（surface 単位）。
    """

    def __init__(
        self,
        store: PenStateStore,
        reference: ReferencePointController,
        *,
        step_per_mm: Callable[[], float],
        close_tolerance: float,
    ) -> None:
        self._store = store
        self._reference = reference
        self._step_per_mm = step_per_mm
        self._close_tolerance = float(close_tolerance)

    def position_of(self, target: Target, state: PenState) -> Point:
        """ターゲット現在位置の描画面座標を返す。"""

        return map_to_surface(
            target.x, target.y, state.document.width, state.document.height
        )

    def start(self, target: Target) -> PenPath:
        """既存パスを終えてから、現在位置で新しいパスを開始する（-> Open）。"""

        state = self._store.get(target)
        self.finish(state)
        path = PenPath(
            self.position_of(target, state),
            path_style_for(state.attributes, self._step_per_mm()),
        )
        state.document.add(path.element)
        state.current_path = path
        _logger.debug("パスを開始しました: target=%s start=%s", target.id, path.start_point)
        return path

    def extend(self, target: Target, state: PenState) -> None:
        """現在位置までセグメントを延長する（line_shape に応じて直線/曲線）。"""

        path = state.current_path
        if path is None:
            return
        point = self.position_of(target, state)

        def _draw() -> None:
            if state.attributes.line_shape is LineShape.CURVE:
                curve_to(path, point)
            else:
                line_to(path, point)

        self._reference.preview(state, _draw)

    def finish(self, state: PenState) -> PenPath | None:
        """描画中パスを終える（-> Idle）。

        Returns
        -------
        PenPath or None
            描画面に残したパス。描画中パスが無い、または MoveTo だけで破棄した場合は None。
        """

        self._reference.retract(state)
        path = state.current_path
        state.current_path = None
        if path is None:
            return None
        if len(path) <= 1:
            # MoveTo だけのパスはまだ何も描いていない。
            state.document.remove(path.element)
            _logger.debug("未描画のパスを破棄しました")
            return None
        close_if_looped(path, self._close_tolerance)
        return path

    def move(self, target: Target, is_forced: bool) -> bool:
        """移動通知を処理し、描画面を変更したかどうかを返す。

        強制移動（ドラッグ等）は接続線を描かず、新しい位置でパスを開き直す。
        """

        state = self._store.for_target_if_exists(target)
        if state is None or state.current_path is None:
            return False
        if is_forced:
            self.start(target)
        else:
            self.extend(target, state)
        return True

    def apply_attributes(self, target: Target, attributes: PenAttributes) -> bool:
        """ペン属性を更新し、描画中パスを引き直したかどうかを返す。

        Notes
        -----
        - 線・塗りの属性が変わった場合、描画中ならパスを終えて同じ位置から開き直す。
        - line_shape だけの変更は以降のセグメントにのみ効く（引き直さない）。
        """

        state = self._store.get(target)
        previous = state.attributes
        state.attributes = attributes
        if previous.stroke_style_key() == attributes.stroke_style_key():
            return False
        if state.current_path is None:
            return False
        self.start(target)
        return True

    def clear(self, target: Target) -> bool:
        """描画面を空にする。描画中なら現在位置でパスを開き直す。

        PenState が無ければ何もせず False を返す。
        """

        state = self._store.for_target_if_exists(target)
        if state is None:
            return False
        was_drawing = state.current_path is not None
        state.reference = None
        state.current_path = None
        state.document.clear()
        if was_drawing:
            self.start(target)
        return True


__all__ = ["PathLifecycle", "path_style_for"]
