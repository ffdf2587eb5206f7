# instancetree/selection.py
from __future__ import annotations

from typing import Dict, Iterator, List, Optional

from .model import Cell, ExcludedInstance, cell_id
from .util.console import obs


class UnknownCellError(KeyError):
    """Raised when a toggle names a cell id the store does not hold."""


class SelectionStore:
    """cell id -> Cell, owned by one TaskInstanceTree.

    Cells are registered once while the tree is built and never removed.
    After that the only mutations are toggle_cell / set_checked, which either
    update every propagation target or (unknown id) touch nothing.

    Propagation is one flat pass: a cell's propagation_set already holds the
    full descendant closure, so targets are updated directly and their own
    sets are never followed. A leaf toggle therefore never rewrites an
    ancestor group cell; group checked flags are controls, not aggregates.
    """

    def __init__(self) -> None:
        self._cells: Dict[str, Cell] = {}

    def __len__(self) -> int:
        return len(self._cells)

    def __contains__(self, cid: object) -> bool:
        return cid in self._cells

    def __iter__(self) -> Iterator[Cell]:
        return iter(self._cells.values())

    def register(self, cell: Cell) -> None:
        if cell.id in self._cells:
            raise ValueError(f"cell already registered: {cell.id}")
        self._cells[cell.id] = cell

    def get(self, cid: str) -> Cell:
        try:
            return self._cells[cid]
        except KeyError:
            raise UnknownCellError(cid) from None

    def cell_for(self, node_id: str, date_key: str) -> Optional[Cell]:
        return self._cells.get(cell_id(node_id, date_key))

    def set_checked(self, cid: str, checked: bool) -> List[Cell]:
        """Set `cid` and its same-date descendants to `checked`.

        Returns the cells that were written (the triggering cell first).
        Descendants with no instance on that date have no cell and are skipped.
        """
        cell = self.get(cid)
        value = bool(checked)
        targets = [cell]
        for nid in cell.propagation_set:
            if nid == cell.node.id:
                continue
            other = self.cell_for(nid, cell.date_key)
            if other is not None:
                targets.append(other)

        for t in targets:
            t.checked = value

        obs("selection", f"set cell={cell.id} checked={value} cells={len(targets)}")
        return targets

    def toggle_cell(self, cid: str) -> List[Cell]:
        cell = self.get(cid)
        return self.set_checked(cid, not cell.checked)

    def query_excluded(self, dag_id: str) -> List[ExcludedInstance]:
        """Leaf cells currently unchecked, as (dag_id, task_id, execution_date)."""
        return [
            ExcludedInstance(dag_id=dag_id, task_id=c.node.id, execution_date=c.date)
            for c in self._cells.values()
            if c.is_leaf and not c.checked
        ]


__all__ = ["UnknownCellError", "SelectionStore"]
