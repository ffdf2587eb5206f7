# instancetree/hierarchy.py
from __future__ import annotations

from typing import Dict, List, Sequence

from .model import ROOT_ID, Node, TaskRecord


class CycleOrOrphanError(ValueError):
    """Raised when task records do not form a single rooted tree."""


def _with_root(dag_id: str, records: Sequence[TaskRecord]) -> List[TaskRecord]:
    # Top-level tasks (group_id None or "") hang off one synthetic root
    # labelled with the DAG id.
    out = [
        TaskRecord(
            id=r.id,
            label=r.label,
            group_id=r.group_id or ROOT_ID,
            task_instances=r.task_instances,
        )
        for r in records
    ]
    out.append(TaskRecord(id=ROOT_ID, label=dag_id, group_id=None))
    return out


def build_hierarchy(dag_id: str, records: Sequence[TaskRecord]) -> Node:
    """Build the rooted node tree for one DAG.

    Children keep the input order of their records. Raises
    CycleOrOrphanError for duplicate ids, a group_id that names no record,
    or records that never reach the root (a group_id cycle). Nothing is
    returned on failure.
    """
    rows = _with_root(dag_id, records)

    nodes: Dict[str, Node] = {}
    for r in rows:
        if r.id in nodes:
            raise CycleOrOrphanError(f"duplicate task id: {r.id!r}")
        nodes[r.id] = Node(id=r.id, label=r.label, task_instances=r.task_instances)

    kids: Dict[str, List[Node]] = {nid: [] for nid in nodes}
    for r in rows:
        if r.group_id is None:
            continue
        if r.group_id not in nodes:
            raise CycleOrOrphanError(f"task {r.id!r} has unknown group_id {r.group_id!r}")
        if r.group_id == r.id:
            raise CycleOrOrphanError(f"task {r.id!r} is its own group")
        child = nodes[r.id]
        child.parent = nodes[r.group_id]
        kids[r.group_id].append(child)

    for nid, node in nodes.items():
        node.full_children = tuple(kids[nid])

    root = nodes[ROOT_ID]

    # Anything not reachable from the root sits on a group_id cycle.
    seen = set()
    stack = [root]
    while stack:
        n = stack.pop()
        seen.add(n.id)
        stack.extend(n.full_children)

    if len(seen) != len(nodes):
        stray = sorted(nid for nid in nodes if nid not in seen)
        raise CycleOrOrphanError(f"group_id cycle through: {', '.join(stray)}")

    return root


__all__ = ["CycleOrOrphanError", "build_hierarchy"]
