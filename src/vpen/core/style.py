"""
どこで: `src/vpen/core/style.py`。
何を: ホストから渡る色・不透明度・ペン径の引数を正規化するユーティリティを定義する。
なぜ: ブロック引数の表現（"#RRGGBB" / 数値 / タプル）の揺れを 1 か所で吸収するため。
"""

from __future__ import annotations

import re
from typing import Any, cast

RGB255 = tuple[int, int, int]

_HEX_RE = re.compile(r"^#?([0-9A-Fa-f]{6})([0-9A-Fa-f]{2})?$")
_SHORT_HEX_RE = re.compile(r"^#?([0-9A-Fa-f]{3})$")


def _clamp255(v: object) -> int:
    iv = int(round(float(cast(Any, v))))
    return 0 if iv < 0 else 255 if iv > 255 else iv


def clamp01(value: float) -> float:
    """値を 0..1 に clamp して返す。"""

    fv = float(value)
    return 0.0 if fv < 0.0 else 1.0 if fv > 1.0 else fv


def coerce_color(value: object) -> tuple[RGB255, int | None]:
    """色指定を RGB255 と alpha（0..255、未指定なら None）に正規化して返す。

    Parameters
    ----------
    value : object
        `"#RRGGBB"` / `"#RRGGBBAA"` / `"#RGB"` の文字列、`0xAARRGGBB` の整数、
        または `(r, g, b)` / `(r, g, b, a)` のシーケンス。
        整数の上位バイトが 0 の場合は alpha 未指定とみなす。

    Returns
    -------
    tuple[tuple[int, int, int], int or None]
        clamp 済みの RGB と alpha。

    Raises
    ------
    ValueError
        解釈できない色指定の場合。
    """

    if isinstance(value, bool):
        raise ValueError(f"color は bool を受け付けません: {value!r}")

    if isinstance(value, str):
        text = value.strip()
        m = _HEX_RE.match(text)
        if m is not None:
            rgb = m.group(1)
            alpha = m.group(2)
            r, g, b = (int(rgb[i : i + 2], 16) for i in (0, 2, 4))
            return (r, g, b), int(alpha, 16) if alpha is not None else None
        m = _SHORT_HEX_RE.match(text)
        if m is not None:
            r, g, b = (int(c * 2, 16) for c in m.group(1))
            return (r, g, b), None
        try:
            value = int(float(text))
        except ValueError as exc:
            raise ValueError(f"color 文字列を解釈できません: {value!r}") from exc

    if isinstance(value, int):
        packed = int(value) & 0xFFFFFFFF
        a = (packed >> 24) & 0xFF
        rgb_packed = ((packed >> 16) & 0xFF, (packed >> 8) & 0xFF, packed & 0xFF)
        return rgb_packed, a if a != 0 else None

    try:
        items = list(cast(Any, value))
    except TypeError as exc:
        raise ValueError(f"color は文字列・整数・シーケンスのいずれかである必要があります: {value!r}") from exc
    if len(items) == 3:
        r, g, b = items
        return (_clamp255(r), _clamp255(g), _clamp255(b)), None
    if len(items) == 4:
        r, g, b, a = items
        return (_clamp255(r), _clamp255(g), _clamp255(b)), _clamp255(a)
    raise ValueError(f"rgb value must be a length-3 or length-4 sequence: {value!r}")


def rgb255_to_hex(rgb: RGB255) -> str:
    """RGB255 を `#RRGGBB` に変換して返す。"""

    r, g, b = rgb
    return f"#{_clamp255(r):02X}{_clamp255(g):02X}{_clamp255(b):02X}"


def percent_to_opacity(percent: object) -> float:
    """0..100 の百分率を 0..1 の不透明度に変換して返す（範囲外は clamp）。"""

    return clamp01(float(cast(Any, percent)) / 100.0)


def opacity_to_percent(opacity: float) -> float:
    """0..1 の不透明度を 0..100 の百分率に変換して返す。"""

    return clamp01(opacity) * 100.0


def clamp_pen_size(requested: object) -> float:
    """ペン径 [mm] を許容範囲（0 以上）に clamp して返す。"""

    size = float(cast(Any, requested))
    return max(0.0, size)


__all__ = [
    "RGB255",
    "clamp01",
    "clamp_pen_size",
    "coerce_color",
    "opacity_to_percent",
    "percent_to_opacity",
    "rgb255_to_hex",
]
