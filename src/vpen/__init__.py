# どこで: `src/vpen/__init__.py`。
# 何を: ルート `vpen` パッケージを定義する。
# なぜ: import 起点を `vpen` に統一するため。

from __future__ import annotations

from vpen.api import ExportResult, ExportStatus, LayerPosition, LineShape, PenType, VectorPen

__all__ = ["ExportResult", "ExportStatus", "LayerPosition", "LineShape", "PenType", "VectorPen"]
