"""スタンプ（`vpen.core.stamp`）のテスト。"""

from __future__ import annotations

import base64
import io

import numpy as np
import pytest
from PIL import Image

from vpen.core.document import VectorDocument
from vpen.core.host import StampData
from vpen.core.stamp import StampRenderer, encode_png_data_uri, ghost_to_opacity


def _decode(uri: str) -> Image.Image:
    prefix = "data:image/png;base64,"
    assert uri.startswith(prefix)
    return Image.open(io.BytesIO(base64.b64decode(uri[len(prefix) :])))


def test_encode_png_data_uri_keeps_size_and_alpha() -> None:
    image = np.zeros((3, 5, 4), dtype=np.uint8)
    image[..., 0] = 255
    image[..., 3] = 128

    decoded = _decode(encode_png_data_uri(image))

    assert decoded.size == (5, 3)
    assert decoded.mode == "RGBA"
    assert decoded.getpixel((0, 0)) == (255, 0, 0, 128)


def test_encode_png_data_uri_clamps_float_input() -> None:
    image = np.full((2, 2, 4), 300.0)

    decoded = _decode(encode_png_data_uri(image))

    assert decoded.getpixel((1, 1)) == (255, 255, 255, 255)


def test_encode_png_data_uri_rejects_non_rgba() -> None:
    with pytest.raises(ValueError):
        encode_png_data_uri(np.zeros((2, 2, 3), dtype=np.uint8))


def test_ghost_to_opacity() -> None:
    assert ghost_to_opacity(0) == 1.0
    assert ghost_to_opacity(25) == 0.75
    assert ghost_to_opacity(150) == 0.0


def test_stamp_scales_canvas_pixels_to_stage_units() -> None:
    doc = VectorDocument(480, 360)
    data = StampData(
        image=np.full((4, 6, 4), 255, dtype=np.uint8), x=10, y=20, width=6, height=4
    )

    element = StampRenderer((480, 360)).stamp(doc, data, canvas_size=(960, 720), ghost=50)

    assert doc.children() == [element]
    assert element.tag == "image"
    assert element.attrib["x"] == "5.000"
    assert element.attrib["y"] == "10.000"
    assert element.attrib["width"] == "3.000"
    assert element.attrib["height"] == "2.000"
    assert element.attrib["opacity"] == "0.500"
    assert element.attrib["preserveAspectRatio"] == "none"
    assert element.attrib["href"].startswith("data:image/png;base64,")


def test_scale_for_degenerate_canvas_is_identity() -> None:
    assert StampRenderer((480, 360)).scale_for((0, 0)) == (1.0, 1.0)
