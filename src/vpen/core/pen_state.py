"""
どこで: `src/vpen/core/pen_state.py`。
何を: ターゲットごとのペン状態 PenState と、その生成・複製・破棄を担う PenStateStore を定義する。
なぜ: ホストのターゲットへ状態を埋め込まず、ターゲット ID をキーにした表で所有権を明示するため。
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

from vpen.core.document import VectorDocument
from vpen.core.host import Target
from vpen.core.path import Checkpoint, PenPath
from vpen.core.style import RGB255

_logger = logging.getLogger(__name__)

ATTRIBUTES_VERSION = 1


class PenType(str, Enum):
    TRAIL = "trail"
    PLOTTER = "plotter"

    @classmethod
    def parse(cls, value: object) -> "PenType":
        try:
            return cls(str(getattr(value, "value", value)).strip().lower())
        except ValueError as exc:
            raise ValueError(f"未対応の pen type: {value!r}") from exc


class LineShape(str, Enum):
    STRAIGHT = "straight"
    CURVE = "curve"

    @classmethod
    def parse(cls, value: object) -> "LineShape":
        try:
            return cls(str(getattr(value, "value", value)).strip().lower())
        except ValueError as exc:
            raise ValueError(f"未対応の line shape: {value!r}") from exc


@dataclass(frozen=True, slots=True)
class PenAttributes:
    """ペンの線・塗り属性。欠損フィールドを持たない版付きレコード。

    Notes
    -----
    - diameter は mm 単位。描画面上の線幅は `diameter * step_per_mm`。
    - fill_opacity が 0 のときは塗りなし（`fill="none"`）として出力する。
    - 変更は `dataclasses.replace` で新しいインスタンスを作って行う。
    """

    stroke_color: RGB255 = (0, 0, 0)
    stroke_opacity: float = 1.0
    diameter: float = 1.0
    fill_color: RGB255 = (0, 0, 0)
    fill_opacity: float = 0.0
    line_shape: LineShape = LineShape.STRAIGHT
    version: int = ATTRIBUTES_VERSION

    def stroke_style_key(self) -> tuple[object, ...]:
        """変更時にパスの引き直しが必要になる属性の組を返す。"""

        return (
            self.stroke_color,
            self.stroke_opacity,
            self.diameter,
            self.fill_color,
            self.fill_opacity,
        )


@dataclass(frozen=True, slots=True)
class LayerHandle:
    """ホストレンダラ上のペンレイヤ（skin と drawable）への束縛。"""

    skin_id: int
    drawable_id: int


@dataclass(slots=True)
class PenState:
    """1 ターゲット分のペン状態。

    Notes
    -----
    - `current_path` が None でないことと、ペンが下りていることは同値。
    - `reference` は末尾に仮のセグメントがある間だけ None でない。
      値はその仮セグメントを追加する直前のコマンド列（巻き戻し先）。
    """

    document: VectorDocument
    pen_type: PenType = PenType.TRAIL
    attributes: PenAttributes = field(default_factory=PenAttributes)
    current_path: PenPath | None = None
    reference: Checkpoint | None = None
    layer: LayerHandle | None = None
    listening: bool = False

    @property
    def is_pen_down(self) -> bool:
        return self.current_path is not None


class PenStateStore:
    """ターゲット ID -> PenState の表。

    Parameters
    ----------
    document_factory : Callable[[], VectorDocument]
        新しい空の描画面を作るファクトリ（ステージ寸法を束縛済み）。
    """

    def __init__(self, document_factory: Callable[[], VectorDocument]) -> None:
        self._document_factory = document_factory
        self._states: dict[str, PenState] = {}

    def get(self, target: Target) -> PenState:
        """ターゲットの PenState を返す。無ければ既定値で生成して登録する。"""

        state = self._states.get(target.id)
        if state is None:
            state = PenState(document=self._document_factory())
            self._states[target.id] = state
            _logger.debug("PenState を生成しました: target=%s", target.id)
        return state

    def for_target_if_exists(self, target: Target) -> PenState | None:
        """生成せずに PenState を返す。未登録なら None。"""

        return self._states.get(target.id)

    def clone_into(self, new_target: Target, source_target: Target) -> PenState | None:
        """source_target の PenState を複製して new_target に登録する。

        Notes
        -----
        - 属性・ペン種別・参照点の有無を引き継ぐ。
        - 描画面は deep copy し、描画中パスも複製側の要素へ付け替える
          （元と可変な要素を共有しない）。
        - レイヤ束縛は引き継がない（複製側で遅延生成する）。
        - source に状態が無ければ何もせず None を返す。
        """

        source = self._states.get(source_target.id)
        if source is None:
            return None

        document = source.document.clone()
        current_path: PenPath | None = None
        if source.current_path is not None:
            children = source.document.children()
            cloned_children = document.children()
            for index, child in enumerate(children):
                if child is source.current_path.element:
                    current_path = source.current_path.copy_into(cloned_children[index])
                    break

        state = PenState(
            document=document,
            pen_type=source.pen_type,
            attributes=source.attributes,
            current_path=current_path,
            reference=source.reference if current_path is not None else None,
        )
        self._states[new_target.id] = state
        _logger.debug("PenState を複製しました: %s -> %s", source_target.id, new_target.id)
        return state

    def destroy(self, target: Target) -> PenState | None:
        """PenState を表から取り除いて返す。未登録なら None。"""

        return self._states.pop(target.id, None)

    def __contains__(self, target: Target) -> bool:
        return target.id in self._states

    def __len__(self) -> int:
        return len(self._states)

    def drain(self) -> list[tuple[str, PenState]]:
        """すべての (target_id, PenState) を登録順で取り出し、表を空にする。"""

        drained = list(self._states.items())
        self._states.clear()
        return drained


__all__ = [
    "ATTRIBUTES_VERSION",
    "LayerHandle",
    "LineShape",
    "PenAttributes",
    "PenState",
    "PenStateStore",
    "PenType",
]
