# instancetree/layout.py
"""
Layout coordinates for an external tree-grid renderer.

Two axes:
- rows: visible nodes in pre-order; row index drives the vertical position,
  depth drives the indent of the tree column
- dates: a linear time axis starting at the earliest leaf instance, one
  square per elapsed day

Nothing here draws; the renderer reads these numbers back after each toggle.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import Callable, Iterable, List, Sequence, Tuple

from .model import Cell, Node
from .node_index import NodeIndex
from .util.tz import whole_days_between

DAY_SECONDS = 86400.0


class EmptyDateSpanError(ValueError):
    """Raised when no leaf task has any instance, so the date axis has no range."""


@dataclass(frozen=True)
class LayoutConfig:
    # Size of one tree node circle / checkbox square in pixels.
    node_size: int = 16

    @property
    def v_spread(self) -> float:
        # Vertical distance between rows; also the width of one day square.
        return self.node_size * 1.3

    @property
    def h_spread(self) -> float:
        # Horizontal distance between tree depths.
        return self.node_size * 10.0

    @property
    def margin(self) -> float:
        return self.node_size * 6.0


@dataclass(frozen=True)
class Row:
    node_id: str
    index: int
    depth: int
    x: float  # vertical offset of the row
    y: float  # horizontal offset of the node in the tree column
    leaf_aligned: bool


@dataclass(frozen=True)
class DateAxis:
    """Linear date -> position mapping starting at the earliest leaf instance.

    num_squares is the whole-day distance between the earliest and latest
    instance, floored at one day so a single-date DAG still has a width.
    """

    min_date: dt.datetime
    max_date: dt.datetime
    num_squares: int
    h_start: float
    square: float

    @classmethod
    def from_leaves(cls, index: NodeIndex, cells: Iterable[Cell], cfg: LayoutConfig) -> "DateAxis":
        dates = [c.date for c in cells if c.is_leaf]
        if not dates:
            raise EmptyDateSpanError("no leaf task has an execution date")

        lo = min(dates)
        hi = max(dates)
        squares = max(1, whole_days_between(lo, hi))
        return cls(
            min_date=lo,
            max_date=hi,
            num_squares=squares,
            h_start=h_start(index, cfg),
            square=cfg.v_spread,
        )

    @property
    def span_days(self) -> float:
        days = (self.max_date - self.min_date).total_seconds() / DAY_SECONDS
        return days if days > 0 else float(self.num_squares)

    @property
    def end(self) -> float:
        return self.h_start + self.num_squares * self.square

    def day_offset(self, d: dt.datetime) -> float:
        return (d - self.min_date).total_seconds() / DAY_SECONDS

    def x(self, d: dt.datetime) -> float:
        return self.h_start + self.day_offset(d) / self.span_days * (self.num_squares * self.square)

    def ticks(self) -> List[dt.datetime]:
        return [self.min_date + dt.timedelta(days=i) for i in range(self.num_squares)]


def h_start(index: NodeIndex, cfg: LayoutConfig) -> float:
    # Date columns start right of the deepest tree level.
    return cfg.h_spread * index.root.height


def visible_rows(
    nodes: Sequence[Node],
    visible_children: Callable[[Node], Tuple[Node, ...]],
    index: NodeIndex,
    cfg: LayoutConfig,
) -> List[Row]:
    """Rows for `nodes` (already in pre-order), one per visible node.

    Nodes showing no children (other than the root) are pulled right to sit
    against the date columns, so every task label lines up with its cells.
    """
    start = h_start(index, cfg)
    out: List[Row] = []
    for i, node in enumerate(nodes):
        aligned = not visible_children(node) and not node.is_root
        y = start - cfg.v_spread / 2 if aligned else node.depth * cfg.h_spread
        out.append(
            Row(
                node_id=node.id,
                index=i,
                depth=node.depth,
                x=cfg.v_spread * i,
                y=y,
                leaf_aligned=aligned,
            )
        )
    return out


def canvas_size(row_count: int, axis_end: float, cfg: LayoutConfig) -> Tuple[float, float]:
    width = axis_end + cfg.margin
    height = (row_count * cfg.v_spread + cfg.v_spread) + cfg.margin
    return width, height


__all__ = [
    "EmptyDateSpanError",
    "LayoutConfig",
    "Row",
    "DateAxis",
    "h_start",
    "visible_rows",
    "canvas_size",
]
