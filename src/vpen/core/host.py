# どこで: `src/vpen/core/host.py`。
# 何を: ホストランタイム（ターゲット・レンダラ）から vpen が利用するインタフェースを Protocol で定義する。
# なぜ: ホストの実装へ依存せず、core が使う最小の窓口だけを型として固定するため。

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any, Protocol

import numpy as np

EVENT_TARGET_MOVED = "TARGET_MOVED"
PEN_LAYER_GROUP = "pen"

MoveListener = Callable[[Any, float, float, bool], None]


@dataclass(frozen=True, slots=True)
class StampData:
    """レンダラが返す、ターゲットの現在の見た目（キャンバス画素空間）。

    Parameters
    ----------
    image : np.ndarray
        uint8 型 shape (H, W, 4) の RGBA 画素配列。
    x, y : float
        キャンバス上の左上位置。
    width, height : float
        キャンバス上の表示サイズ。画素配列の寸法とは一致しないことがある。
    """

    image: np.ndarray
    x: float
    y: float
    width: float
    height: float


class Target(Protocol):
    """ペンで描画する移動体。"""

    @property
    def id(self) -> str: ...

    @property
    def name(self) -> str: ...

    @property
    def x(self) -> float: ...

    @property
    def y(self) -> float: ...

    @property
    def is_stage(self) -> bool: ...

    @property
    def drawable_id(self) -> int: ...

    @property
    def ghost(self) -> float: ...

    def add_listener(self, event: str, listener: MoveListener) -> None: ...

    def remove_listener(self, event: str, listener: MoveListener) -> None: ...


class Renderer(Protocol):
    """ホストレンダラのうち vpen が使う部分。"""

    def native_size(self) -> tuple[float, float]: ...

    def canvas_size(self) -> tuple[float, float]: ...

    def create_svg_skin(self, svg: str) -> int: ...

    def update_svg_skin(self, skin_id: int, svg: str) -> None: ...

    def destroy_skin(self, skin_id: int) -> None: ...

    def create_drawable(self, group: str) -> int: ...

    def update_drawable_skin_id(self, drawable_id: int, skin_id: int) -> None: ...

    def destroy_drawable(self, drawable_id: int, group: str) -> None: ...

    def extract_drawable_screen_space(self, drawable_id: int) -> StampData: ...

    def drawable_order(self, drawable_id: int, group: str) -> int: ...

    def set_drawable_order(
        self,
        drawable_id: int,
        order: int,
        group: str,
        relative: bool = False,
    ) -> int: ...


class Runtime(Protocol):
    """ホストランタイム。"""

    @property
    def renderer(self) -> Renderer | None: ...

    @property
    def targets(self) -> Sequence[Target]: ...

    def request_redraw(self) -> None: ...


Prompt = Callable[[str, str], "str | None"]
"""ファイル名入力などの問い合わせ。(message, default) -> 入力文字列（キャンセル時 None）。"""


__all__ = [
    "EVENT_TARGET_MOVED",
    "MoveListener",
    "PEN_LAYER_GROUP",
    "Prompt",
    "Renderer",
    "Runtime",
    "StampData",
    "Target",
]
