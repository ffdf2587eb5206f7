# instancetree/model.py
from __future__ import annotations

import datetime as dt
import json
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Optional, Tuple

ROOT_ID = "[DAG]"

KIND_GROUP = "group"
KIND_LEAF = "leaf"


@dataclass(frozen=True)
class TaskRecord:
    id: str
    label: str
    group_id: Optional[str]
    task_instances: Tuple[str, ...] = ()


@dataclass(eq=False)
class Node:
    """One task or task group in the hierarchy, compared by identity.

    `full_children` is the complete set of direct children, fixed when the
    tree is built. Which of them are currently shown is tracked separately by
    VisibilityState, never by rewriting this field.
    """

    id: str
    label: str
    parent: Optional["Node"] = field(default=None, repr=False)
    full_children: Tuple["Node", ...] = field(default=(), repr=False)
    task_instances: Tuple[str, ...] = ()

    # Filled by NodeIndex, once.
    depth: int = 0
    height: int = 0
    descendant_ids: FrozenSet[str] = frozenset()

    @property
    def is_group(self) -> bool:
        return bool(self.full_children)

    @property
    def is_root(self) -> bool:
        return self.parent is None


def cell_id(node_id: str, date_key: str) -> str:
    # Same shape as the rerun UI uses for its checkbox ids: ["task", "date"]
    return json.dumps([node_id, date_key])


@dataclass(eq=False)
class Cell:
    id: str
    node: Node = field(repr=False)
    kind: str  # "group" | "leaf"
    date: dt.datetime
    date_key: str
    propagation_set: FrozenSet[str] = field(repr=False)
    checked: bool = True

    @property
    def is_leaf(self) -> bool:
        return self.kind == KIND_LEAF


@dataclass(frozen=True)
class ExcludedInstance:
    dag_id: str
    task_id: str
    execution_date: dt.datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dag_id": self.dag_id,
            "task_id": self.task_id,
            "execution_date": self.execution_date.isoformat(),
        }


__all__ = [
    "ROOT_ID",
    "KIND_GROUP",
    "KIND_LEAF",
    "TaskRecord",
    "Node",
    "Cell",
    "ExcludedInstance",
    "cell_id",
]
