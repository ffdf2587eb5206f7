# instancetree/dates.py
from __future__ import annotations

import datetime as dt
from typing import Dict, List

from .model import KIND_GROUP, KIND_LEAF, Cell, Node, cell_id
from .node_index import NodeIndex
from .selection import SelectionStore
from .util.tz import iso_key, parse_zone


class InvalidExecutionDateError(ValueError):
    """Raised when a task instance date cannot be parsed."""


def _parse(node: Node, raw: str) -> dt.datetime:
    d = parse_zone(raw)
    if d is None:
        raise InvalidExecutionDateError(f"task {node.id!r}: invalid execution date {raw!r}")
    return d


def execution_dates(index: NodeIndex, node: Node) -> List[dt.datetime]:
    """Distinct execution dates of `node` and everything under it, oldest first.

    Walks full_children, so a collapsed group still reports the dates of its
    hidden descendants. Strings naming the same instant count once, whatever
    their offsets; the first one met (the node's own, then breadth-first)
    supplies the offset the date is shown in.
    """
    seen: Dict[str, dt.datetime] = {}
    for n in index.breadth_first(node):
        for raw in n.task_instances:
            d = _parse(n, raw)
            seen.setdefault(iso_key(d), d)
    return sorted(seen.values())


def build_cells(index: NodeIndex, store: SelectionStore) -> Dict[str, List[Cell]]:
    """Create one Cell per node per reachable date and register it in `store`.

    Returns node_id -> the node's row of cells. A node with no dates gets an
    empty row. This is the only place cells are created.
    """
    rows: Dict[str, List[Cell]] = {}
    for node in index.preorder():
        kind = KIND_GROUP if node.is_group else KIND_LEAF
        row: List[Cell] = []
        for d in execution_dates(index, node):
            key = iso_key(d)
            cell = Cell(
                id=cell_id(node.id, key),
                node=node,
                kind=kind,
                date=d,
                date_key=key,
                propagation_set=node.descendant_ids,
            )
            store.register(cell)
            row.append(cell)
        rows[node.id] = row
    return rows


__all__ = ["InvalidExecutionDateError", "execution_dates", "build_cells"]
