"""テスト共通のホスト（ターゲット・レンダラ・ランタイム）フェイク。"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable

import numpy as np
import pytest

from vpen.api import VectorPen
from vpen.core.host import EVENT_TARGET_MOVED, StampData
from vpen.core.runtime_config import RuntimeConfig


@dataclass
class FakeTarget:
    """ホストのスプライト相当。`move_to` で移動リスナへ通知する。"""

    id: str
    name: str = "Sprite1"
    x: float = 0.0
    y: float = 0.0
    is_stage: bool = False
    drawable_id: int = 100
    ghost: float = 0.0
    listeners: dict[str, list[Callable[..., Any]]] = field(default_factory=dict)

    def add_listener(self, event: str, listener: Callable[..., Any]) -> None:
        self.listeners.setdefault(event, []).append(listener)

    def remove_listener(self, event: str, listener: Callable[..., Any]) -> None:
        self.listeners.get(event, []).remove(listener)

    def move_to(self, x: float, y: float, *, force: bool = False) -> None:
        old_x, old_y = self.x, self.y
        self.x, self.y = float(x), float(y)
        for listener in list(self.listeners.get(EVENT_TARGET_MOVED, [])):
            listener(self, old_x, old_y, force)


class FakeRenderer:
    """呼び出しを記録するレンダラ。"""

    def __init__(self, native: tuple[float, float] = (480, 360), canvas: tuple[float, float] = (480, 360)) -> None:
        self._native = native
        self._canvas = canvas
        self._next_id = 1
        self.skins: dict[int, str] = {}
        self.drawables: dict[int, int | None] = {}
        self.layers: list[int] = []
        self.destroyed_skins: list[int] = []
        self.destroyed_drawables: list[int] = []
        self.stamp_data = StampData(
            image=np.full((4, 6, 4), 255, dtype=np.uint8),
            x=10.0,
            y=20.0,
            width=6.0,
            height=4.0,
        )

    def _new_id(self) -> int:
        value = self._next_id
        self._next_id += 1
        return value

    def native_size(self) -> tuple[float, float]:
        return self._native

    def canvas_size(self) -> tuple[float, float]:
        return self._canvas

    def create_svg_skin(self, svg: str) -> int:
        skin_id = self._new_id()
        self.skins[skin_id] = svg
        return skin_id

    def update_svg_skin(self, skin_id: int, svg: str) -> None:
        assert skin_id in self.skins
        self.skins[skin_id] = svg

    def destroy_skin(self, skin_id: int) -> None:
        self.skins.pop(skin_id)
        self.destroyed_skins.append(skin_id)

    def create_drawable(self, group: str) -> int:
        drawable_id = self._new_id()
        self.drawables[drawable_id] = None
        self.layers.append(drawable_id)
        return drawable_id

    def update_drawable_skin_id(self, drawable_id: int, skin_id: int) -> None:
        self.drawables[drawable_id] = skin_id

    def destroy_drawable(self, drawable_id: int, group: str) -> None:
        self.drawables.pop(drawable_id)
        self.layers.remove(drawable_id)
        self.destroyed_drawables.append(drawable_id)

    def extract_drawable_screen_space(self, drawable_id: int) -> StampData:
        return self.stamp_data

    def drawable_order(self, drawable_id: int, group: str) -> int:
        return self.layers.index(drawable_id)

    def set_drawable_order(self, drawable_id: int, order: int, group: str, relative: bool = False) -> int:
        current = self.layers.index(drawable_id)
        new_order = current + order if relative else order
        new_order = max(0, min(new_order, len(self.layers) - 1))
        self.layers.remove(drawable_id)
        self.layers.insert(new_order, drawable_id)
        return new_order


class FakeRuntime:
    def __init__(self, renderer: FakeRenderer | None = None) -> None:
        self.renderer = renderer
        self.targets: list[FakeTarget] = []
        self.redraw_requests = 0

    def request_redraw(self) -> None:
        self.redraw_requests += 1

    def add_target(self, target: FakeTarget) -> FakeTarget:
        self.targets.append(target)
        return target


@pytest.fixture
def config(tmp_path: Path) -> RuntimeConfig:
    return RuntimeConfig(
        config_path=None,
        output_dir=tmp_path / "output",
        step_per_mm=2.0,
        display_stroke_width_min=0.1,
        close_tolerance=0.5,
        export_default_name="vpen",
    )


@pytest.fixture
def renderer() -> FakeRenderer:
    return FakeRenderer()


@pytest.fixture
def runtime(renderer: FakeRenderer) -> FakeRuntime:
    return FakeRuntime(renderer)


@pytest.fixture
def sprite(runtime: FakeRuntime) -> FakeTarget:
    return runtime.add_target(FakeTarget(id="sprite-1", name="Sprite1"))


@pytest.fixture
def pen(runtime: FakeRuntime, config: RuntimeConfig) -> VectorPen:
    return VectorPen(runtime, config=config)


@pytest.fixture
def make_target() -> Callable[..., FakeTarget]:
    """ランタイムに登録しない単独のターゲットを作る。"""

    return FakeTarget
