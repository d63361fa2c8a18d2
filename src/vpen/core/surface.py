"""
どこで: `src/vpen/core/surface.py`。
何を: ターゲットの描画面（VectorDocument）とホストのペンレイヤ（SVG skin + drawable）の束縛を管理する。
なぜ: 描画面の変更を常に同じ経路でレイヤへ反映し、束縛の遅延生成と解放を 1 か所に集めるため。
"""

from __future__ import annotations

import logging
import re

from vpen.core.document import fmt_number
from vpen.core.host import PEN_LAYER_GROUP, Runtime, Target
from vpen.core.pen_state import LayerHandle, PenState, PenStateStore

_logger = logging.getLogger(__name__)

_STROKE_WIDTH_RE = re.compile(r'stroke-width="([^"]+)"')


class LayerBindingError(RuntimeError):
    """レイヤ束縛が無い状態で描画面を反映しようとした（呼び出し規約違反）。"""


def convert_svg_for_pen_layer(svg: str, min_stroke_width: float) -> str:
    """表示用に、最小線幅未満の stroke-width を最小線幅へ引き上げた SVG を返す。

    Notes
    -----
    表示専用の後処理。描画面そのもの（export 対象）は変更しない。
    """

    floor = float(min_stroke_width)
    floor_text = fmt_number(floor)

    def _raise(match: re.Match[str]) -> str:
        try:
            width = float(match.group(1))
        except ValueError:
            return match.group(0)
        if width < floor:
            return f'stroke-width="{floor_text}"'
        return match.group(0)

    return _STROKE_WIDTH_RE.sub(_raise, svg)


class DrawingSurfaceManager:
    """PenState の描画面をホストのペンレイヤへ反映する。

    Parameters
    ----------
    runtime : Runtime
        レンダラと再描画要求を提供するホスト。
    store : PenStateStore
        ターゲットごとの PenState。
    display_stroke_width_min : float
        表示時の最小線幅（surface 単位）。
    """

    def __init__(
        self,
        runtime: Runtime,
        store: PenStateStore,
        *,
        display_stroke_width_min: float,
    ) -> None:
        self._runtime = runtime
        self._store = store
        self._display_stroke_width_min = float(display_stroke_width_min)

    def _layer_svg(self, state: PenState) -> str:
        return convert_svg_for_pen_layer(
            state.document.to_svg(), self._display_stroke_width_min
        )

    def ensure_layer(self, state: PenState) -> LayerHandle | None:
        """ペンレイヤが無ければ生成して束縛し、その handle を返す。

        レンダラが無い場合は None を返す。
        """

        if state.layer is not None:
            return state.layer
        renderer = self._runtime.renderer
        if renderer is None:
            return None
        skin_id = renderer.create_svg_skin(self._layer_svg(state))
        drawable_id = renderer.create_drawable(PEN_LAYER_GROUP)
        renderer.update_drawable_skin_id(drawable_id, skin_id)
        state.layer = LayerHandle(skin_id=skin_id, drawable_id=drawable_id)
        _logger.debug("ペンレイヤを生成しました: skin=%s drawable=%s", skin_id, drawable_id)
        return state.layer

    def push(self, target: Target) -> None:
        """ターゲットの描画面を再直列化してレイヤへ反映し、再描画を要求する。

        Raises
        ------
        LayerBindingError
            PenState が無い、またはレイヤ束縛を用意できない場合。
        """

        state = self._store.for_target_if_exists(target)
        if state is None:
            raise LayerBindingError(f"PenState が無いターゲットは反映できない: target={target.id}")
        handle = self.ensure_layer(state)
        renderer = self._runtime.renderer
        if handle is None or renderer is None:
            raise LayerBindingError(f"No SVG skin for target={target.id}")
        renderer.update_svg_skin(handle.skin_id, self._layer_svg(state))
        self._runtime.request_redraw()

    def release(self, state: PenState) -> None:
        """レイヤ束縛を解放する。束縛が無ければ何もしない。"""

        handle = state.layer
        if handle is None:
            return
        state.layer = None
        renderer = self._runtime.renderer
        if renderer is None:
            return
        renderer.destroy_drawable(handle.drawable_id, PEN_LAYER_GROUP)
        renderer.destroy_skin(handle.skin_id)
        _logger.debug("ペンレイヤを解放しました: skin=%s drawable=%s", handle.skin_id, handle.drawable_id)

    def layer_order(self, state: PenState) -> int | None:
        """ペンレイヤの重なり順を返す。束縛が無ければ None。"""

        renderer = self._runtime.renderer
        if state.layer is None or renderer is None:
            return None
        return int(renderer.drawable_order(state.layer.drawable_id, PEN_LAYER_GROUP))

    def set_layer_order(self, state: PenState, order: int, *, relative: bool = False) -> int | None:
        """ペンレイヤの重なり順を変更し、変更後の順を返す。

        レイヤ束縛が無ければ生成してから変更する。レンダラが無ければ None。
        """

        handle = self.ensure_layer(state)
        renderer = self._runtime.renderer
        if handle is None or renderer is None:
            return None
        new_order = renderer.set_drawable_order(
            handle.drawable_id, int(order), PEN_LAYER_GROUP, relative
        )
        self._runtime.request_redraw()
        return int(new_order)


__all__ = ["DrawingSurfaceManager", "LayerBindingError", "convert_svg_for_pen_layer"]
