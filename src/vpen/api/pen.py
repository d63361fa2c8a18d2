"""
どこで: `src/vpen/api/pen.py`。
何を: ホストのブロック実装から呼ばれる操作（pen down/up, plot, stamp, 属性設定, export 等）と、
    ホストのイベント（移動・生成・削除・破棄）ハンドラをまとめた VectorPen を提供する。
なぜ: core の部品（状態表・状態機械・レイヤ束縛・スタンプ・export）を 1 つの入口に束ね、
    すべての変更をレイヤへの反映で締めくくる流れを固定するため。
"""

from __future__ import annotations

import logging
from dataclasses import replace
from enum import Enum
from pathlib import Path

from vpen.core.coords import mm_for_step, step_for_mm
from vpen.core.document import VectorDocument
from vpen.core.host import EVENT_TARGET_MOVED, Prompt, Runtime, Target
from vpen.core.lifecycle import PathLifecycle
from vpen.core.pen_state import LineShape, PenAttributes, PenState, PenStateStore, PenType
from vpen.core.reference import ReferencePointController
from vpen.core.runtime_config import RuntimeConfig, runtime_config
from vpen.core.stamp import StampRenderer
from vpen.core.style import (
    clamp_pen_size,
    coerce_color,
    opacity_to_percent,
    percent_to_opacity,
    rgb255_to_hex,
)
from vpen.core.surface import DrawingSurfaceManager
from vpen.export.svg import (
    ExportResult,
    ExportStatus,
    TargetDrawing,
    export_svg,
    sanitize_file_stem,
)

_logger = logging.getLogger(__name__)

DEFAULT_STAGE_SIZE = (480.0, 360.0)
_FRONT_ORDER = 2**31 - 1
_BACK_ORDER = 0

_PROMPT_FOR_TARGET = "このスプライトの描画を保存するファイル名を入力してください:"
_PROMPT_FOR_ALL = "すべての描画を保存するファイル名を入力してください:"


class LayerPosition(str, Enum):
    FRONT = "front"
    BACK = "back"


class VectorPen:
    """ターゲットごとのベクターペンを操作する入口。

    Parameters
    ----------
    runtime : Runtime
        ホストランタイム。
    prompt : Prompt or None, optional
        export 時のファイル名問い合わせ。None の場合は問い合わせずに既定名を使う。
    config : RuntimeConfig or None, optional
        実行時設定。None の場合は `runtime_config()` をロードする。
    """

    def __init__(
        self,
        runtime: Runtime,
        *,
        prompt: Prompt | None = None,
        config: RuntimeConfig | None = None,
    ) -> None:
        self._runtime = runtime
        self._prompt = prompt
        self._config = config if config is not None else runtime_config()
        self._step_per_mm = float(self._config.step_per_mm)

        renderer = runtime.renderer
        if renderer is not None:
            stage_w, stage_h = renderer.native_size()
        else:
            stage_w, stage_h = DEFAULT_STAGE_SIZE
        self._stage_size = (float(stage_w), float(stage_h))

        self._store = PenStateStore(lambda: VectorDocument(*self._stage_size))
        self._reference = ReferencePointController()
        self._lifecycle = PathLifecycle(
            self._store,
            self._reference,
            step_per_mm=self.get_step_per_mm,
            close_tolerance=self._config.close_tolerance,
        )
        self._surface = DrawingSurfaceManager(
            runtime,
            self._store,
            display_stroke_width_min=self._config.display_stroke_width_min,
        )
        self._stamps = StampRenderer(self._stage_size)

    @property
    def stage_size(self) -> tuple[float, float]:
        return self._stage_size

    @property
    def store(self) -> PenStateStore:
        return self._store

    def state_for(self, target: Target) -> PenState | None:
        """生成せずにターゲットの PenState を返す。"""

        return self._store.for_target_if_exists(target)

    def _attributes_for(self, target: Target) -> PenAttributes:
        state = self._store.for_target_if_exists(target)
        return state.attributes if state is not None else PenAttributes()

    # --- 移動通知の購読 ---
    def _listen(self, target: Target, state: PenState) -> None:
        if state.listening:
            return
        target.add_listener(EVENT_TARGET_MOVED, self.on_target_moved)
        state.listening = True

    def _unlisten(self, target: Target, state: PenState) -> None:
        if not state.listening:
            return
        target.remove_listener(EVENT_TARGET_MOVED, self.on_target_moved)
        state.listening = False

    # --- ホストイベント ---
    def on_target_moved(
        self,
        target: Target,
        old_x: float,
        old_y: float,
        is_forced: bool = False,
    ) -> None:
        """ターゲットの移動通知。ペンが下りている場合だけ描画する。"""

        if self._lifecycle.move(target, bool(is_forced)):
            self._surface.push(target)

    def on_target_created(self, new_target: Target, source_target: Target | None = None) -> None:
        """クローン生成時に、元ターゲットのペン状態を複製する。"""

        if source_target is None:
            return
        state = self._store.clone_into(new_target, source_target)
        if state is None:
            return
        if state.current_path is not None and state.pen_type is PenType.TRAIL:
            self._listen(new_target, state)

    def on_target_removed(self, target: Target) -> None:
        """ターゲット削除時に、ペン状態とレイヤ束縛を破棄する。"""

        state = self._store.destroy(target)
        if state is None:
            return
        self._unlisten(target, state)
        self._surface.release(state)

    def on_runtime_disposed(self) -> None:
        """ランタイム破棄時に、すべてのペン状態とレイヤ束縛を破棄する。"""

        targets = {t.id: t for t in self._runtime.targets}
        for target_id, state in self._store.drain():
            target = targets.get(target_id)
            if target is not None:
                self._unlisten(target, state)
            self._surface.release(state)
        _logger.debug("全ターゲットのペン状態を破棄しました")

    # --- ペン操作 ---
    def pen_down(self, target: Target, pen_type: PenType | str = PenType.TRAIL) -> None:
        """ペンを下ろし、以降の移動で描画する。"""

        new_type = PenType.parse(pen_type)
        state = self._store.get(target)
        if state.pen_type is new_type and state.current_path is not None:
            return
        state.pen_type = new_type
        self._lifecycle.start(target)
        self._surface.push(target)
        self._listen(target, state)

    def pen_up(self, target: Target) -> None:
        """ペンを上げ、描画中パスを確定する。"""

        state = self._store.for_target_if_exists(target)
        if state is None or state.current_path is None:
            return
        self._lifecycle.finish(state)
        self._surface.push(target)
        self._unlisten(target, state)

    def plot(self, target: Target) -> None:
        """プロッタペンのプレビュー中セグメントをノードとして確定する。"""

        state = self._store.for_target_if_exists(target)
        if state is None:
            return
        self._reference.commit(state)

    def stamp(self, target: Target) -> None:
        """ターゲットの現在の見た目を描画面へ埋め込む。"""

        renderer = self._runtime.renderer
        if renderer is None:
            return
        data = renderer.extract_drawable_screen_space(target.drawable_id)
        state = self._store.get(target)
        self._stamps.stamp(
            state.document,
            data,
            canvas_size=renderer.canvas_size(),
            ghost=target.ghost,
        )
        self._surface.push(target)

    def clear(self, target: Target) -> None:
        """ターゲットの描画を消去する。"""

        if self._lifecycle.clear(target):
            self._surface.push(target)

    def clear_all(self) -> None:
        """すべてのターゲットの描画を消去する。"""

        for target in self._runtime.targets:
            self.clear(target)

    # --- 属性 ---
    def _update_attributes(self, target: Target, attributes: PenAttributes) -> None:
        if self._lifecycle.apply_attributes(target, attributes):
            self._surface.push(target)

    def set_stroke_color(self, target: Target, color: object) -> None:
        """線色と線の不透明度を設定する。alpha を含まない指定は不透明（100%）として扱う。"""

        rgb, alpha = coerce_color(color)
        current = self._store.get(target).attributes
        opacity = 1.0 if alpha is None else alpha / 255.0
        self._update_attributes(
            target, replace(current, stroke_color=rgb, stroke_opacity=opacity)
        )

    def get_stroke_color(self, target: Target) -> str:
        return rgb255_to_hex(self._attributes_for(target).stroke_color)

    def set_stroke_opacity(self, target: Target, percent: object) -> None:
        """線の不透明度を百分率（0..100）で設定する。"""

        current = self._store.get(target).attributes
        self._update_attributes(
            target, replace(current, stroke_opacity=percent_to_opacity(percent))
        )

    def get_stroke_opacity(self, target: Target) -> float:
        return opacity_to_percent(self._attributes_for(target).stroke_opacity)

    def set_diameter(self, target: Target, mm: object) -> None:
        """ペン径を mm で設定する（負値は 0 に clamp）。"""

        current = self._store.get(target).attributes
        self._update_attributes(target, replace(current, diameter=clamp_pen_size(mm)))

    def get_diameter(self, target: Target) -> float:
        return float(self._attributes_for(target).diameter)

    def set_line_shape(self, target: Target, shape: LineShape | str) -> None:
        """線の形（直線/曲線）を設定する。以降のセグメントにのみ効く。"""

        current = self._store.get(target).attributes
        self._update_attributes(target, replace(current, line_shape=LineShape.parse(shape)))

    def get_line_shape(self, target: Target) -> str:
        return self._attributes_for(target).line_shape.value

    def set_fill_color(self, target: Target, color: object) -> None:
        """塗り色を設定する。alpha を含む指定では塗りの不透明度も設定する。"""

        rgb, alpha = coerce_color(color)
        current = self._store.get(target).attributes
        opacity = current.fill_opacity if alpha is None else alpha / 255.0
        self._update_attributes(target, replace(current, fill_color=rgb, fill_opacity=opacity))

    def get_fill_color(self, target: Target) -> str:
        return rgb255_to_hex(self._attributes_for(target).fill_color)

    def set_fill_opacity(self, target: Target, percent: object) -> None:
        """塗りの不透明度を百分率（0..100）で設定する。0 は塗りなし。"""

        current = self._store.get(target).attributes
        self._update_attributes(
            target, replace(current, fill_opacity=percent_to_opacity(percent))
        )

    def get_fill_opacity(self, target: Target) -> float:
        return opacity_to_percent(self._attributes_for(target).fill_opacity)

    # --- レイヤ順 ---
    def go_to_layer(self, target: Target, position: LayerPosition | str) -> int | None:
        """ペンレイヤを最前面/最背面へ移動し、移動後の順を返す。"""

        try:
            pos = LayerPosition(str(getattr(position, "value", position)).strip().lower())
        except ValueError as exc:
            raise ValueError(f"未対応の layer position: {position!r}") from exc
        state = self._store.get(target)
        order = _FRONT_ORDER if pos is LayerPosition.FRONT else _BACK_ORDER
        return self._surface.set_layer_order(state, order)

    def change_layer_by(self, target: Target, delta: int) -> int | None:
        """ペンレイヤの重なり順を delta だけ前後させ、移動後の順を返す。"""

        state = self._store.get(target)
        return self._surface.set_layer_order(state, int(delta), relative=True)

    def get_layer_order(self, target: Target) -> int | None:
        state = self._store.for_target_if_exists(target)
        if state is None:
            return None
        return self._surface.layer_order(state)

    # --- step / mm ---
    def get_step_per_mm(self) -> float:
        return self._step_per_mm

    def set_step_per_mm(self, value: object) -> None:
        """step/mm 比を設定する。以降に開始するパスの線幅と export 寸法に効く。"""

        v = float(value)  # type: ignore[arg-type]
        if v <= 0:
            raise ValueError(f"step_per_mm は正の値である必要がある: got={value!r}")
        self._step_per_mm = v

    def step_for_mm(self, mm: object) -> float:
        return step_for_mm(float(mm), self._step_per_mm)  # type: ignore[arg-type]

    def mm_for_step(self, step: object) -> float:
        return mm_for_step(float(step), self._step_per_mm)  # type: ignore[arg-type]

    # --- export ---
    def _ask_file_name(self, message: str, default: str) -> str | None:
        if self._prompt is None:
            return default
        answer = self._prompt(message, default)
        if answer is None:
            return None
        answer = str(answer).strip()
        return answer or None

    def _export_path(self, file_name: str) -> Path:
        return Path(self._config.output_dir) / "svg" / f"{sanitize_file_stem(file_name)}.svg"

    def export_target(self, target: Target) -> ExportResult:
        """このターゲットの描画だけを SVG として保存する。"""

        state = self._store.for_target_if_exists(target)
        if state is None or state.document.is_empty():
            return ExportResult(ExportStatus.NO_DRAWING)
        file_name = self._ask_file_name(_PROMPT_FOR_TARGET, target.name)
        if file_name is None:
            _logger.info("export をキャンセルしました: target=%s", target.id)
            return ExportResult(ExportStatus.CANCELLED)
        path = export_svg(
            [TargetDrawing(name=target.name, document=state.document)],
            self._export_path(file_name),
            stage_size=self._stage_size,
            step_per_mm=self._step_per_mm,
        )
        return ExportResult(ExportStatus.SAVED, path)

    def drawings_in_layer_order(self) -> list[TargetDrawing]:
        """export 対象（ステージ以外で描画面が空でない）ターゲットの描画面を奥から順に返す。

        ペンレイヤの重なり順が取れないターゲットは最背面扱いとし、
        同順位はランタイムのターゲット順を保つ。
        """

        ranked: list[tuple[int, int, Target, PenState]] = []
        for index, target in enumerate(self._runtime.targets):
            if target.is_stage:
                continue
            state = self._store.for_target_if_exists(target)
            if state is None or state.document.is_empty():
                continue
            order = self._surface.layer_order(state)
            ranked.append((order if order is not None else -1, index, target, state))
        ranked.sort(key=lambda item: (item[0], item[1]))
        return [
            TargetDrawing(name=target.name, document=state.document, order=rank)
            for rank, (_, _, target, state) in enumerate(ranked)
        ]

    def export_all(self) -> ExportResult:
        """すべてのターゲットの描画を、ターゲットごとのグループにまとめて保存する。"""

        drawings = self.drawings_in_layer_order()
        if not drawings:
            return ExportResult(ExportStatus.NO_DRAWING)
        file_name = self._ask_file_name(_PROMPT_FOR_ALL, self._config.export_default_name)
        if file_name is None:
            _logger.info("export をキャンセルしました")
            return ExportResult(ExportStatus.CANCELLED)
        path = export_svg(
            drawings,
            self._export_path(file_name),
            stage_size=self._stage_size,
            step_per_mm=self._step_per_mm,
        )
        return ExportResult(ExportStatus.SAVED, path)


__all__ = ["DEFAULT_STAGE_SIZE", "LayerPosition", "VectorPen"]
