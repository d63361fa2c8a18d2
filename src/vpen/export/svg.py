"""
どこで: `src/vpen/export/svg.py`。
何を: ターゲットごとの描画面を 1 枚の SVG（mm 寸法）に合成して保存する関数を提供する。
なぜ: ペンプロッタやベクター編集ソフトへ、ターゲット単位のグループ付きで持ち出せるようにするため。
"""

from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from vpen.core.document import VectorDocument, fmt_number, new_svg_root

_logger = logging.getLogger(__name__)


class ExportStatus(str, Enum):
    SAVED = "saved"
    CANCELLED = "cancelled"
    NO_DRAWING = "no drawing"


@dataclass(frozen=True, slots=True)
class ExportResult:
    """export 操作の結果。キャンセルと描画なしはエラーではなく状態として返す。"""

    status: ExportStatus
    path: Path | None = None

    @property
    def saved(self) -> bool:
        return self.status is ExportStatus.SAVED


@dataclass(frozen=True, slots=True)
class TargetDrawing:
    """export 対象 1 ターゲット分の描画面。

    Parameters
    ----------
    name : str
        グループ id に使う名前。
    document : VectorDocument
        ターゲットの描画面。
    order : int
        重なり順（小さいほど奥）。
    """

    name: str
    document: VectorDocument
    order: int = 0


def _unique_ids(names: Sequence[str]) -> list[str]:
    """重複する名前に `_2`, `_3`, ... を付けて一意な id 列を返す。"""

    seen: dict[str, int] = {}
    out: list[str] = []
    for name in names:
        base = str(name) or "target"
        count = seen.get(base, 0) + 1
        seen[base] = count
        out.append(base if count == 1 else f"{base}_{count}")
    return out


def compose_svg(
    drawings: Sequence[TargetDrawing],
    *,
    stage_size: tuple[float, float],
    step_per_mm: float,
) -> ET.Element:
    """複数ターゲットの描画面を 1 つの `<svg>` 要素に合成して返す。

    Parameters
    ----------
    drawings : Sequence[TargetDrawing]
        対象ターゲットの描画面。order の昇順（奥 -> 手前）に並べ替えて合成する。
    stage_size : tuple[float, float]
        ステージ寸法（viewBox）。
    step_per_mm : float
        step/mm 比。width/height を mm 単位で出力するのに使う。

    Returns
    -------
    xml.etree.ElementTree.Element
        ターゲットごとの `<g id="...">` を子に持つ `<svg>` 要素。
        各グループの中身は描画面の deep copy で、元の描画面とは共有しない。

    Raises
    ------
    ValueError
        step_per_mm が正の値でない場合。
    """

    if step_per_mm <= 0:
        raise ValueError(f"step_per_mm は正の値である必要がある: got={step_per_mm}")
    stage_w, stage_h = stage_size
    root = new_svg_root(stage_w, stage_h)
    root.set("width", f"{fmt_number(float(stage_w) / float(step_per_mm))}mm")
    root.set("height", f"{fmt_number(float(stage_h) / float(step_per_mm))}mm")

    ordered = sorted(drawings, key=lambda d: d.order)
    for group_id, drawing in zip(_unique_ids([d.name for d in ordered]), ordered):
        group = ET.SubElement(root, "g", {"id": group_id})
        for child in drawing.document.copy_children():
            group.append(child)
    return root


def svg_to_text(root: ET.Element) -> str:
    """`<svg>` 要素を XML 宣言付きの文字列に直列化して返す。"""

    body = ET.tostring(root, encoding="unicode")
    return '<?xml version="1.0" encoding="UTF-8"?>\n' + body + "\n"


def sanitize_file_stem(name: str) -> str:
    """ファイル名として使えるように name を正規化して返す。"""

    normalized = re.sub(r'[\\/:*?"<>|\x00-\x1f]+', "_", str(name)).strip(" .")
    return normalized or "vpen"


def export_svg(
    drawings: Sequence[TargetDrawing],
    path: str | Path,
    *,
    stage_size: tuple[float, float],
    step_per_mm: float,
) -> Path:
    """描画面を合成して SVG として保存する。

    Parameters
    ----------
    drawings : Sequence[TargetDrawing]
        対象ターゲットの描画面。
    path : str or Path
        出力先パス。親ディレクトリは作成する。
    stage_size : tuple[float, float]
        ステージ寸法。
    step_per_mm : float
        step/mm 比。

    Returns
    -------
    Path
        保存先パス。
    """

    _path = Path(path)
    root = compose_svg(drawings, stage_size=stage_size, step_per_mm=step_per_mm)

    _path.parent.mkdir(parents=True, exist_ok=True)
    with _path.open("w", encoding="utf-8", newline="\n") as f:
        f.write(svg_to_text(root))

    _logger.info("SVG を保存しました: %s (targets=%d)", _path, len(drawings))
    return _path


__all__ = [
    "ExportResult",
    "ExportStatus",
    "TargetDrawing",
    "compose_svg",
    "export_svg",
    "sanitize_file_stem",
    "svg_to_text",
]
