"""
どこで: `src/vpen/core/document.py`。
何を: ターゲットごとの描画面（SVG 要素ツリー）VectorDocument を定義する。
なぜ: 確定パス・描画中パス・スタンプ画像を挿入順のまま保持し、
    レイヤ表示用にも export 用にも同じ内容を直列化できるようにするため。
"""

from __future__ import annotations

import copy
import xml.etree.ElementTree as ET

SVG_NS = "http://www.w3.org/2000/svg"
_FLOAT_DECIMALS = 3


def fmt_number(value: float, *, decimals: int = _FLOAT_DECIMALS) -> str:
    """SVG 出力向けに float を決定的な文字列へ変換して返す。"""
    text = f"{float(value):.{int(decimals)}f}"
    if text.startswith("-0") and float(text) == 0.0:
        return text[1:]
    return text


def _dimension(value: float) -> str:
    fv = float(value)
    if fv.is_integer():
        return str(int(fv))
    return fmt_number(fv)


def new_svg_root(width: float, height: float) -> ET.Element:
    """ステージ寸法の viewBox を持つ空の `<svg>` 要素を返す。"""

    if width <= 0 or height <= 0:
        raise ValueError(f"描画面の寸法は正の値である必要がある: got=({width}, {height})")
    w = _dimension(width)
    h = _dimension(height)
    return ET.Element(
        "svg",
        {
            "xmlns": SVG_NS,
            "width": w,
            "height": h,
            "viewBox": f"0 0 {w} {h}",
        },
    )


class VectorDocument:
    """1 ターゲット分の描画面。

    Notes
    -----
    - 座標系は左上原点・y 下向き（viewBox = `0 0 W H`）。
    - 子要素（`<path>` / `<image>` / `<g>`）は挿入順 = 重なり順で保持する。
    """

    def __init__(self, width: float, height: float) -> None:
        self._width = float(width)
        self._height = float(height)
        self._root = new_svg_root(width, height)

    @property
    def width(self) -> float:
        return self._width

    @property
    def height(self) -> float:
        return self._height

    @property
    def root(self) -> ET.Element:
        return self._root

    def add(self, element: ET.Element) -> ET.Element:
        """要素を最前面に追加して返す。"""

        self._root.append(element)
        return element

    def remove(self, element: ET.Element) -> None:
        """子要素を取り除く。子でなければ何もしない。"""

        for child in list(self._root):
            if child is element:
                self._root.remove(child)
                return

    def contains(self, element: ET.Element) -> bool:
        return any(child is element for child in self._root)

    def children(self) -> list[ET.Element]:
        """子要素のリスト（参照）を返す。"""

        return list(self._root)

    def copy_children(self) -> list[ET.Element]:
        """子要素の deep copy を挿入順で返す。"""

        return [copy.deepcopy(child) for child in self._root]

    def is_empty(self) -> bool:
        return len(self._root) == 0

    def clear(self) -> None:
        """子要素をすべて取り除く（寸法は維持する）。"""

        for child in list(self._root):
            self._root.remove(child)

    def clone(self) -> "VectorDocument":
        """内容を deep copy した独立の VectorDocument を返す。"""

        other = VectorDocument(self._width, self._height)
        for child in self.copy_children():
            other.add(child)
        return other

    def to_svg(self) -> str:
        """ドキュメント全体を SVG 文字列に直列化して返す。"""

        return ET.tostring(self._root, encoding="unicode")


__all__ = ["SVG_NS", "VectorDocument", "fmt_number", "new_svg_root"]
