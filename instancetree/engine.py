# instancetree/engine.py
from __future__ import annotations

import datetime as dt
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .dates import build_cells
from .hierarchy import build_hierarchy
from .layout import DateAxis, LayoutConfig, Row, canvas_size, visible_rows
from .model import Cell, ExcludedInstance, Node, TaskRecord, cell_id
from .node_index import NodeIndex
from .records import normalize_record
from .selection import SelectionStore
from .snapshot import build_snapshot
from .util.console import obs
from .util.tz import iso_key, parse_zone
from .visibility import VisibilityState


class UnknownNodeError(KeyError):
    """Raised when a toggle names a node id that is not in the tree."""


class TaskInstanceTree:
    """Selection engine behind one task-instance tree widget.

    Owns the node tree, its index, one SelectionStore and one
    VisibilityState. After construction the root is expanded, its direct
    children are visible and everything deeper is collapsed. Every cell
    starts checked.

    Renderer loop:
      1) read visible_rows() / row_cells() / date_axis()
      2) call toggle_node() or toggle_cell() on a user gesture
      3) read again
    """

    def __init__(
        self,
        dag_id: str,
        records: Sequence[Any],
        *,
        config: Optional[LayoutConfig] = None,
    ) -> None:
        self.dag_id = dag_id
        self.config = config or LayoutConfig()

        recs: List[TaskRecord] = [
            r if isinstance(r, TaskRecord) else normalize_record(r, position=i)
            for i, r in enumerate(records)
        ]

        root = build_hierarchy(dag_id, recs)
        self.index = NodeIndex(root)
        self.root: Node = root
        self.store = SelectionStore()
        self._rows: Dict[str, List[Cell]] = build_cells(self.index, self.store)
        self.visibility = VisibilityState(self.index)
        self.visibility.collapse_below_root()

        obs("engine", f"build.ok dag={dag_id!r} nodes={len(self.index)} cells={len(self.store)}")

    # --- nodes ------------------------------------------------------------

    def node(self, node_id: str) -> Node:
        try:
            return self.index.get(node_id)
        except KeyError:
            raise UnknownNodeError(node_id) from None

    def toggle_node(self, node_id: str) -> bool:
        """Collapse or expand `node_id`; return True if it is now expanded."""
        node = self.node(node_id)
        state = self.visibility.toggle(node)
        obs("engine", f"toggle_node id={node_id!r} expanded={state}")
        return state

    def is_expanded(self, node_id: str) -> bool:
        return self.visibility.is_expanded(self.node(node_id))

    def children(self, node_id: str) -> Tuple[Node, ...]:
        """Currently visible children of `node_id`."""
        return self.visibility.visible_children(self.node(node_id))

    def visible_nodes(self) -> List[Node]:
        return self.visibility.visible_nodes()

    def visible_rows(self) -> List[Row]:
        return visible_rows(self.visible_nodes(), self.visibility.visible_children, self.index, self.config)

    # --- cells ------------------------------------------------------------

    def row_cells(self, node_id: str) -> List[Cell]:
        self.node(node_id)
        return list(self._rows[node_id])

    def cell(self, cid: str) -> Cell:
        return self.store.get(cid)

    def toggle_cell(self, cid: str) -> List[Cell]:
        return self.store.toggle_cell(cid)

    def set_checked(self, cid: str, checked: bool) -> List[Cell]:
        return self.store.set_checked(cid, checked)

    def instance_cell_id(self, task_id: str, date: Any) -> str:
        """Cell id for `task_id` on `date` (a datetime or an ISO string)."""
        if isinstance(date, dt.datetime):
            d: Optional[dt.datetime] = date if date.tzinfo else date.replace(tzinfo=dt.timezone.utc)
        else:
            d = parse_zone(str(date))
        if d is None:
            raise ValueError(f"invalid execution date: {date!r}")
        return cell_id(task_id, iso_key(d))

    def toggle_instance(self, task_id: str, date: Any) -> List[Cell]:
        return self.toggle_cell(self.instance_cell_id(task_id, date))

    # --- layout / output --------------------------------------------------

    def date_axis(self) -> DateAxis:
        return DateAxis.from_leaves(self.index, self.store, self.config)

    def canvas_size(self) -> Tuple[float, float]:
        return canvas_size(len(self.visible_nodes()), self.date_axis().end, self.config)

    def excluded_task_instances(self) -> List[ExcludedInstance]:
        return self.store.query_excluded(self.dag_id)

    def snapshot(self) -> Dict[str, Any]:
        return build_snapshot(self)


__all__ = ["UnknownNodeError", "TaskInstanceTree"]
