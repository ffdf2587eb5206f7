# instancetree/records.py
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, List, Optional, Tuple, Union

from .model import TaskRecord
from .util.console import obs

JsonPath = Union[str, Path]


class RecordValidationError(ValueError):
    """Raised when a raw task record cannot be turned into a TaskRecord."""


def _as_str(v: Any, default: str = "") -> str:
    if v is None:
        return default
    if isinstance(v, str):
        return v
    return str(v)


def normalize_record(raw: Any, *, position: int = 0) -> TaskRecord:
    """Coerce one fetched task dict into a TaskRecord.

    Accepted fields:
      id (required, non-empty)
      label (optional; defaults to id)
      group_id (optional; None or "" means top-level)
      task_instances (optional list of execution date strings)
    """
    if not isinstance(raw, dict):
        raise RecordValidationError(f"records[{position}] must be an object; got {type(raw).__name__}")

    rid = _as_str(raw.get("id")).strip()
    if not rid:
        raise RecordValidationError(f"records[{position}].id must be a non-empty string")

    label = _as_str(raw.get("label")).strip() or rid

    gid_raw = raw.get("group_id")
    gid: Optional[str] = _as_str(gid_raw).strip() if gid_raw is not None else None
    if not gid:
        gid = None

    tis = raw.get("task_instances")
    if tis is None:
        tis = []
    if not isinstance(tis, (list, tuple)):
        raise RecordValidationError(f"records[{position}].task_instances must be a list")

    instances = tuple(_as_str(x).strip() for x in tis if x is not None and _as_str(x).strip())
    return TaskRecord(id=rid, label=label, group_id=gid, task_instances=instances)


def normalize_records(raw_list: Any) -> List[TaskRecord]:
    if not isinstance(raw_list, (list, tuple)):
        raise RecordValidationError(f"records must be a list; got {type(raw_list).__name__}")
    return [normalize_record(r, position=i) for i, r in enumerate(raw_list)]


def load_workflows(obj: Any, *, dag_id: Optional[str] = None) -> List[Tuple[str, List[TaskRecord]]]:
    """Split a fetched response into (dag_id, records) pairs.

    Accepted shapes:
      - {"dag_id": "...", "nodes": [...]}
      - [{"dag_id": "...", "nodes": [...]}, ...]
      - [{task}, ...]  (bare node list; dag_id must be given)

    When `dag_id` is given and the input holds several workflows, only the
    matching one is returned.
    """
    if isinstance(obj, dict):
        items: List[Any] = [obj]
    elif isinstance(obj, list):
        if obj and all(isinstance(x, dict) and "nodes" in x for x in obj):
            items = list(obj)
        else:
            if not dag_id:
                raise RecordValidationError("a bare node list needs an explicit dag_id")
            return [(dag_id, normalize_records(obj))]
    else:
        raise RecordValidationError(f"workflow JSON must be an object or list; got {type(obj).__name__}")

    out: List[Tuple[str, List[TaskRecord]]] = []
    for i, item in enumerate(items):
        did = _as_str(item.get("dag_id")).strip()
        if not did:
            raise RecordValidationError(f"workflows[{i}].dag_id must be a non-empty string")
        if dag_id and did != dag_id:
            continue
        out.append((did, normalize_records(item.get("nodes") or [])))

    if dag_id and not out:
        raise RecordValidationError(f"no workflow with dag_id={dag_id!r}")

    obs("records", f"load.ok workflows={len(out)}")
    return out


def load_workflows_from_json(path: JsonPath, *, dag_id: Optional[str] = None) -> List[Tuple[str, List[TaskRecord]]]:
    p = Path(path)
    obj: Any = json.loads(p.read_text(encoding="utf-8", errors="replace"))
    return load_workflows(obj, dag_id=dag_id)


__all__ = [
    "RecordValidationError",
    "normalize_record",
    "normalize_records",
    "load_workflows",
    "load_workflows_from_json",
]
