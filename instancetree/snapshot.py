# instancetree/snapshot.py
from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from .layout import DateAxis, EmptyDateSpanError, canvas_size
from .util.tz import format_ymd

if TYPE_CHECKING:  # pragma: no cover
    from .engine import TaskInstanceTree

try:
    import orjson  # type: ignore
except Exception:  # pragma: no cover
    orjson = None  # type: ignore

SNAPSHOT_SCHEMA_NAME = "instancetree.snapshot"
SNAPSHOT_SCHEMA_VERSION = 1


def _axis_dict(axis: DateAxis) -> Dict[str, Any]:
    return {
        "min_date": axis.min_date.isoformat(),
        "max_date": axis.max_date.isoformat(),
        "num_squares": axis.num_squares,
        "start": axis.h_start,
        "end": axis.end,
        "ticks": [format_ymd(t) for t in axis.ticks()],
    }


def build_snapshot(tree: "TaskInstanceTree") -> Dict[str, Any]:
    """Everything a renderer needs after a mutation, as plain JSON types.

    Layout:
      meta.schema   {name, version}
      dag_id
      rows          visible nodes in pre-order, each with its cells
      axis          date axis, or None when no leaf has an instance
      size          {width, height}, or None together with axis
      excluded      leaf instances currently unchecked
    """
    axis: Optional[DateAxis]
    try:
        axis = tree.date_axis()
    except EmptyDateSpanError:
        axis = None

    rows: List[Dict[str, Any]] = []
    for row in tree.visible_rows():
        node = tree.node(row.node_id)
        cells = []
        for c in tree.row_cells(row.node_id):
            cells.append(
                {
                    "id": c.id,
                    "date": c.date_key,
                    "label": format_ymd(c.date),
                    "kind": c.kind,
                    "checked": c.checked,
                    "x": axis.x(c.date) if axis is not None else None,
                }
            )
        rows.append(
            {
                "node_id": node.id,
                "label": node.label,
                "index": row.index,
                "depth": row.depth,
                "x": row.x,
                "y": row.y,
                "leaf_aligned": row.leaf_aligned,
                "is_group": node.is_group,
                "expanded": tree.visibility.is_expanded(node),
                "cells": cells,
            }
        )

    size = None
    if axis is not None:
        width, height = canvas_size(len(rows), axis.end, tree.config)
        size = {"width": width, "height": height}

    return {
        "meta": {"schema": {"name": SNAPSHOT_SCHEMA_NAME, "version": SNAPSHOT_SCHEMA_VERSION}},
        "dag_id": tree.dag_id,
        "rows": rows,
        "axis": _axis_dict(axis) if axis is not None else None,
        "size": size,
        "excluded": [e.to_dict() for e in tree.excluded_task_instances()],
    }


def dumps_snapshot(obj: Any) -> str:
    # Script-safe: "</" never survives, so the text can sit inside <script>.
    if orjson is not None:
        text = orjson.dumps(obj).decode("utf-8")
    else:
        text = json.dumps(obj, ensure_ascii=False, separators=(",", ":"))
    return text.replace("</", r"<\/")


__all__ = [
    "SNAPSHOT_SCHEMA_NAME",
    "SNAPSHOT_SCHEMA_VERSION",
    "build_snapshot",
    "dumps_snapshot",
]
