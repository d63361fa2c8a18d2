# どこで: `src/vpen/core/reference.py`。
# 何を: プロッタペンの「プレビューと確定」（参照点）の仕組みを提供する。
# なぜ: 移動のたびに仮セグメントを差し替え、plot で確定する挙動をパス編集から分離するため。

from __future__ import annotations

from collections.abc import Callable

from vpen.core.path import pop_tip
from vpen.core.pen_state import PenState, PenType


class ReferencePointController:
    """PenState.reference を介して仮セグメントを管理する。

    Notes
    -----
    - 参照点はプロッタペンでのみ記録する。トレイルペンのセグメントは常に確定扱い。
    - 参照点の値は仮セグメント追加前のコマンド列で、取り消しはそこへの巻き戻しで行う。
    """

    def retract(self, state: PenState) -> bool:
        """仮セグメントがあれば取り除き、取り除いたかどうかを返す。"""

        reference = state.reference
        if reference is None:
            return False
        state.reference = None
        if state.current_path is not None:
            pop_tip(state.current_path, reference)
        return True

    def preview(self, state: PenState, draw: Callable[[], None]) -> None:
        """前回の仮セグメントを取り除いてから draw でセグメントを追加する。

        プロッタペンでは追加したセグメントを次の仮セグメントとして記録する。
        """

        self.retract(state)
        path = state.current_path
        if path is None:
            return
        checkpoint = path.checkpoint()
        draw()
        if state.pen_type is PenType.PLOTTER:
            state.reference = checkpoint

    def commit(self, state: PenState) -> bool:
        """仮セグメントを確定させ、確定したかどうかを返す。

        セグメントそのものは既に描かれているため、参照点を外すだけでよい。
        トレイルペン・ペンが上がっている場合は何もしない。
        """

        if state.current_path is None or state.pen_type is not PenType.PLOTTER:
            return False
        committed = state.reference is not None
        state.reference = None
        return committed


__all__ = ["ReferencePointController"]
