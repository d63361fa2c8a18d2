"""
どこで: `src/vpen/core/stamp.py`。
何を: ターゲットの現在の見た目をラスタ画像として描画面へ埋め込む（スタンプ）。
なぜ: ベクター描画面にスプライトの外観を残し、表示と export の両方で同じ画像を使うため。
"""

from __future__ import annotations

import base64
import io
import xml.etree.ElementTree as ET

import numpy as np
from PIL import Image

from vpen.core.document import VectorDocument, fmt_number
from vpen.core.host import StampData
from vpen.core.style import clamp01


def encode_png_data_uri(image: np.ndarray) -> str:
    """RGBA 画素配列を PNG の data URI に変換して返す。

    Parameters
    ----------
    image : np.ndarray
        shape (H, W, 4) の RGBA 配列。uint8 以外は 0..255 に clamp して変換する。

    Returns
    -------
    str
        `data:image/png;base64,...` 形式の文字列。

    Raises
    ------
    ValueError
        配列形状が (H, W, 4) でない場合。
    """

    arr = np.asarray(image)
    if arr.ndim != 3 or arr.shape[2] != 4:
        raise ValueError(f"image は shape (H, W, 4) である必要がある: got={arr.shape}")
    if arr.dtype != np.uint8:
        arr = np.clip(arr, 0, 255).astype(np.uint8)

    buffer = io.BytesIO()
    Image.fromarray(np.ascontiguousarray(arr)).save(buffer, format="PNG")
    payload = base64.b64encode(buffer.getvalue()).decode("ascii")
    return f"data:image/png;base64,{payload}"


def ghost_to_opacity(ghost: float) -> float:
    """透明度エフェクト値（0..100）を不透明度（0..1）に変換して返す。"""

    return clamp01((100.0 - float(ghost)) / 100.0)


class StampRenderer:
    """StampData を `<image>` 要素として描画面に追加する。

    Parameters
    ----------
    stage_size : tuple[float, float]
        ステージの論理サイズ（描画面の寸法）。
    """

    def __init__(self, stage_size: tuple[float, float]) -> None:
        self._stage_w = float(stage_size[0])
        self._stage_h = float(stage_size[1])

    def scale_for(self, canvas_size: tuple[float, float]) -> tuple[float, float]:
        """キャンバス画素 -> ステージ論理単位の倍率 (sx, sy) を返す。"""

        canvas_w, canvas_h = canvas_size
        if canvas_w <= 0 or canvas_h <= 0:
            return 1.0, 1.0
        return self._stage_w / float(canvas_w), self._stage_h / float(canvas_h)

    def stamp(
        self,
        document: VectorDocument,
        data: StampData,
        *,
        canvas_size: tuple[float, float],
        ghost: float = 0.0,
    ) -> ET.Element:
        """スタンプ画像を描画面の最前面に追加し、その要素を返す。"""

        sx, sy = self.scale_for(canvas_size)
        element = ET.Element(
            "image",
            {
                "x": fmt_number(float(data.x) * sx),
                "y": fmt_number(float(data.y) * sy),
                "width": fmt_number(float(data.width) * sx),
                "height": fmt_number(float(data.height) * sy),
                "preserveAspectRatio": "none",
                "opacity": fmt_number(ghost_to_opacity(ghost)),
                "href": encode_png_data_uri(data.image),
            },
        )
        return document.add(element)


__all__ = ["StampRenderer", "encode_png_data_uri", "ghost_to_opacity"]
