# どこで: `src/vpen/api/__init__.py`。
# 何を: 公開 API パッケージのエントリポイントとして VectorPen と関連型を再エクスポートする。
# なぜ: ホスト側の結線コードからシンプルに import できるようにするため。

from __future__ import annotations

from .pen import LayerPosition, VectorPen
from vpen.core.pen_state import LineShape, PenType
from vpen.export.svg import ExportResult, ExportStatus

__all__ = ["ExportResult", "ExportStatus", "LayerPosition", "LineShape", "PenType", "VectorPen"]
