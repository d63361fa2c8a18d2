"""
どこで: `src/vpen/core/path.py`。
何を: パスコマンド（M/L/Q/T/Z）と、それを `<path>` 要素へ反映する PenPath、
    および直線・曲線・取り消し・閉路化の編集操作を定義する。
なぜ: コマンド列を不変タプルで持ち、編集のたびに d 属性を全再生成することで、
    描画中のプレビュー取り消しを「チェックポイントへの巻き戻し」だけで表現するため。
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import TypeAlias

from vpen.core.coords import Point, distance, midpoint
from vpen.core.document import fmt_number

_logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class MoveTo:
    point: Point


@dataclass(frozen=True, slots=True)
class LineTo:
    point: Point


@dataclass(frozen=True, slots=True)
class QuadraticTo:
    control: Point
    point: Point


@dataclass(frozen=True, slots=True)
class SmoothTo:
    """直前の二次曲線の制御点を鏡映して続ける曲線（SVG の `T`）。"""

    point: Point


@dataclass(frozen=True, slots=True)
class Close:
    pass


Command: TypeAlias = MoveTo | LineTo | QuadraticTo | SmoothTo | Close
Checkpoint: TypeAlias = tuple[Command, ...]


def end_point(command: Command) -> Point | None:
    """コマンドの終点を返す。Close は終点を持たないため None。"""

    if isinstance(command, Close):
        return None
    return command.point


def _xy(p: Point) -> str:
    return f"{fmt_number(p[0])} {fmt_number(p[1])}"


def commands_to_d(commands: tuple[Command, ...]) -> str:
    """コマンド列を SVG path の d 属性へ変換して返す。"""

    parts: list[str] = []
    for cmd in commands:
        if isinstance(cmd, MoveTo):
            parts.append(f"M {_xy(cmd.point)}")
        elif isinstance(cmd, LineTo):
            parts.append(f"L {_xy(cmd.point)}")
        elif isinstance(cmd, QuadraticTo):
            parts.append(f"Q {_xy(cmd.control)} {_xy(cmd.point)}")
        elif isinstance(cmd, SmoothTo):
            parts.append(f"T {_xy(cmd.point)}")
        elif isinstance(cmd, Close):
            parts.append("Z")
        else:
            raise TypeError(f"未対応のパスコマンド: {cmd!r}")
    return " ".join(parts)


@dataclass(frozen=True, slots=True)
class PathStyle:
    """パス開始時点で確定させる線・塗りのスタイル。"""

    stroke: str
    stroke_opacity: float
    stroke_width: float
    fill: str | None
    fill_opacity: float

    def apply(self, element: ET.Element) -> None:
        """`<path>` 要素に style 属性を書き込む。"""

        if self.fill is None or self.fill_opacity <= 0.0:
            element.set("fill", "none")
        else:
            element.set("fill", self.fill)
            element.set("fill-opacity", fmt_number(self.fill_opacity))
        element.set("stroke", self.stroke)
        element.set("stroke-opacity", fmt_number(self.stroke_opacity))
        element.set("stroke-width", fmt_number(self.stroke_width))
        element.set("stroke-linecap", "round")
        element.set("stroke-linejoin", "round")


class PenPath:
    """描画中（または確定済み）の 1 本のパス。

    Notes
    -----
    - コマンド列は不変タプルで保持し、編集は常に新しいタプルへの置換で行う。
    - 置換のたびに `<path>` 要素の d 属性を全コマンドから再生成する。
    """

    def __init__(self, start: Point, style: PathStyle) -> None:
        self._element = ET.Element("path")
        style.apply(self._element)
        self._style = style
        self._commands: tuple[Command, ...] = ()
        move_to(self, start)

    @property
    def element(self) -> ET.Element:
        return self._element

    @property
    def style(self) -> PathStyle:
        return self._style

    @property
    def commands(self) -> tuple[Command, ...]:
        return self._commands

    def __len__(self) -> int:
        return len(self._commands)

    @property
    def tip(self) -> Command:
        return self._commands[-1]

    @property
    def start_point(self) -> Point:
        head = self._commands[0]
        assert isinstance(head, MoveTo)
        return head.point

    def last_point(self) -> Point:
        """最後に描いた点（Close を除く末尾コマンドの終点）を返す。"""

        for cmd in reversed(self._commands):
            p = end_point(cmd)
            if p is not None:
                return p
        return self.start_point

    def checkpoint(self) -> Checkpoint:
        """現在のコマンド列を巻き戻し用に返す。"""

        return self._commands

    def replace(self, commands: tuple[Command, ...]) -> None:
        """コマンド列を置換して d 属性を再生成する。"""

        if not commands or not isinstance(commands[0], MoveTo):
            raise ValueError("パスの先頭コマンドは MoveTo である必要がある")
        self._commands = tuple(commands)
        self._element.set("d", commands_to_d(self._commands))

    def copy_into(self, element: ET.Element) -> "PenPath":
        """同じコマンド列・スタイルを持ち、既存要素 element に紐づく PenPath を返す。"""

        other = PenPath.__new__(PenPath)
        other._element = element
        other._style = self._style
        other._commands = self._commands
        return other


def move_to(path: PenPath, p: Point) -> None:
    """先頭の MoveTo を作成（既にあれば置換）する。"""

    rest = path.commands[1:] if path.commands else ()
    path.replace((MoveTo(p), *rest))


def line_to(path: PenPath, p: Point) -> None:
    """直線セグメントを追加する。"""

    path.replace((*path.commands, LineTo(p)))


def smooth_segment(prev: Point, p: Point) -> tuple[QuadraticTo, SmoothTo]:
    """直前の頂点 prev から p へ向かう平滑セグメントを返す。

    頂点を制御点、隣接頂点の中点を曲線上の点として扱う。
    """

    return QuadraticTo(control=prev, point=midpoint(prev, p)), SmoothTo(p)


def curve_to(path: PenPath, p: Point) -> None:
    """平滑な二次曲線セグメントを追加する。

    末尾が SmoothTo の場合はそれを取り除いてから追加するため、
    連続する曲線は 1 つの SmoothTo を共有し続ける。
    """

    commands = path.commands
    tip = commands[-1]
    if isinstance(tip, SmoothTo):
        commands = commands[:-1]
    prev = end_point(tip)
    if prev is None:
        prev = path.last_point()
    path.replace((*commands, *smooth_segment(prev, p)))


def pop_tip(path: PenPath, checkpoint: Checkpoint | None = None) -> None:
    """直近に追加したセグメントを取り除く。

    Parameters
    ----------
    path : PenPath
        対象パス。
    checkpoint : tuple[Command, ...] or None, optional
        セグメント追加前に `PenPath.checkpoint()` で得たコマンド列。
        指定時はそこへ巻き戻す（curve_to が置換した SmoothTo も復元される）。
        None の場合は末尾コマンドを 1 つ取り除く。
    """

    if checkpoint is not None:
        path.replace(checkpoint)
        return
    if len(path) <= 1:
        raise ValueError("MoveTo だけのパスからは取り除けない")
    path.replace(path.commands[:-1])


def close_if_looped(path: PenPath, tolerance: float) -> bool:
    """終点が始点の近傍にあればパスを閉じ、閉じたかどうかを返す。

    Notes
    -----
    - 始点は最初の描画セグメントの起点（MoveTo の点。先頭が曲線の場合は
      その制御点と一致する）とする。
    - 描画コマンドが 2 つ未満のパスは閉じない。
    - 先頭と末尾がともに曲線（末尾 `Q ... T`）の場合は T を捨て、Q の終点と MoveTo を
      「Q の制御点と始点の中点」に揃えてから Z を付け、継ぎ目のない閉曲線にする。
    """

    commands = path.commands
    if len(commands) < 3 or isinstance(commands[-1], Close):
        return False

    start = path.start_point
    last = path.last_point()
    if distance(start, last) > float(tolerance):
        return False

    tip = commands[-1]
    before = commands[-2]
    if (
        isinstance(tip, SmoothTo)
        and isinstance(before, QuadraticTo)
        and isinstance(commands[1], QuadraticTo)
    ):
        anchor = midpoint(before.control, start)
        merged = QuadraticTo(control=before.control, point=anchor)
        path.replace((MoveTo(anchor), *commands[1:-2], merged, Close()))
        _logger.debug("曲線パスを閉じました: anchor=%s", anchor)
        return True

    path.replace((*commands, Close()))
    _logger.debug("パスを閉じました: start=%s last=%s", start, last)
    return True


__all__ = [
    "Checkpoint",
    "Close",
    "Command",
    "LineTo",
    "MoveTo",
    "PathStyle",
    "PenPath",
    "QuadraticTo",
    "SmoothTo",
    "close_if_looped",
    "commands_to_d",
    "curve_to",
    "end_point",
    "line_to",
    "move_to",
    "pop_tip",
    "smooth_segment",
]
