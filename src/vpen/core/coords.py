# どこで: `src/vpen/core/coords.py`。
# 何を: ステージ座標 → 描画面（SVG viewBox）座標の変換と、step/mm 換算を提供する。
# なぜ: ステージは中心原点・y 上向き、SVG は左上原点・y 下向きで座標系が異なるため。

from __future__ import annotations

import math

Point = tuple[float, float]


def map_to_surface(x: float, y: float, width: float, height: float) -> Point:
    """ステージ座標 (x, y) を描画面座標へ変換して返す。

    Parameters
    ----------
    x, y : float
        ステージ座標（原点はステージ中心、y は上向き）。
    width, height : float
        描画面の幅と高さ。

    Returns
    -------
    tuple[float, float]
        描画面座標 `(x + W/2, H/2 - y)`。
    """

    return float(x) + float(width) / 2.0, float(height) / 2.0 - float(y)


def midpoint(a: Point, b: Point) -> Point:
    """2 点の中点を返す。"""

    return (a[0] + b[0]) / 2.0, (a[1] + b[1]) / 2.0


def distance(a: Point, b: Point) -> float:
    """2 点間のユークリッド距離を返す。"""

    return math.hypot(a[0] - b[0], a[1] - b[1])


def step_for_mm(mm: float, step_per_mm: float) -> float:
    """mm をステージ step に換算して返す。"""

    return float(mm) * float(step_per_mm)


def mm_for_step(step: float, step_per_mm: float) -> float:
    """ステージ step を mm に換算して返す。"""

    return float(step) / float(step_per_mm)


__all__ = ["Point", "distance", "map_to_surface", "midpoint", "mm_for_step", "step_for_mm"]
