"""instancetree.api

Stable *library* entrypoint for instancetree.

Policy:
  - Only names listed in __all__ are considered public API.
  - Everything else is internal and may change without notice.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from instancetree.dates import InvalidExecutionDateError
from instancetree.engine import TaskInstanceTree, UnknownNodeError
from instancetree.hierarchy import CycleOrOrphanError
from instancetree.layout import DateAxis, EmptyDateSpanError, LayoutConfig, Row
from instancetree.model import ROOT_ID, Cell, ExcludedInstance, Node, TaskRecord
from instancetree.records import RecordValidationError, load_workflows, load_workflows_from_json
from instancetree.selection import SelectionStore, UnknownCellError
from instancetree.snapshot import dumps_snapshot

JsonPath = Union[str, Path]


def build_tree(dag_id: str, records: List[Any], *, config: Optional[LayoutConfig] = None) -> TaskInstanceTree:
    """Build the selection engine for one DAG from fetched task records."""
    return TaskInstanceTree(dag_id, records, config=config)


def build_trees(obj: Any, *, dag_id: Optional[str] = None) -> List[TaskInstanceTree]:
    """One independent engine per workflow in a fetched response."""
    return [TaskInstanceTree(did, recs) for did, recs in load_workflows(obj, dag_id=dag_id)]


def load_trees_from_json(path: JsonPath, *, dag_id: Optional[str] = None) -> List[TaskInstanceTree]:
    return [TaskInstanceTree(did, recs) for did, recs in load_workflows_from_json(path, dag_id=dag_id)]


def excluded_instances(tree: TaskInstanceTree) -> List[Dict[str, Any]]:
    """Unchecked leaf instances as rerun-request dicts {dag_id, task_id, execution_date}."""
    return [e.to_dict() for e in tree.excluded_task_instances()]


# --- Public API exports (locked by contract tests) ------------------------
# Keep changes intentional and reviewable.
# Prefer append-only unless you are intentionally reshaping the public surface.
_PUBLIC_EXPORTS = (
    "ROOT_ID",
    "Cell",
    "CycleOrOrphanError",
    "DateAxis",
    "EmptyDateSpanError",
    "ExcludedInstance",
    "InvalidExecutionDateError",
    "LayoutConfig",
    "Node",
    "RecordValidationError",
    "Row",
    "SelectionStore",
    "TaskInstanceTree",
    "TaskRecord",
    "UnknownCellError",
    "UnknownNodeError",
    "build_tree",
    "build_trees",
    "dumps_snapshot",
    "excluded_instances",
    "load_trees_from_json",
)

__all__ = [n for n in _PUBLIC_EXPORTS if n in globals()]
# --- /Public API exports --------------------------------------------------
