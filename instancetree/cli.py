from __future__ import annotations

import argparse
import json
import os
import sys
from pathlib import Path
from typing import Tuple

from .engine import TaskInstanceTree, UnknownNodeError
from .records import load_workflows_from_json
from .selection import UnknownCellError
from .snapshot import dumps_snapshot


def _parse_instance(value: str) -> Tuple[str, str]:
    task_id, sep, date = value.rpartition("@")
    if not sep or not task_id or not date:
        raise SystemExit(f"Invalid --toggle-cell value {value!r} (expected TASK@DATE)")
    return task_id, date


def main(argv: list[str] | None = None) -> None:
    ap = argparse.ArgumentParser(
        prog="instancetree",
        description="Replay task-instance tree toggles for a DAG and print the excluded task instances.",
    )
    ap.add_argument("input", help="Workflow JSON: {dag_id, nodes}, a list of those, or a bare node list")
    ap.add_argument(
        "--dag-id",
        default=os.getenv("INSTANCETREE_DAG_ID") or None,
        help="DAG to load when the input holds several (or names a bare node list); default: env INSTANCETREE_DAG_ID",
    )
    ap.add_argument(
        "--toggle-node",
        action="append",
        default=[],
        metavar="ID",
        help="Collapse/expand a node (repeatable; applied in order)",
    )
    ap.add_argument(
        "--toggle-cell",
        action="append",
        default=[],
        metavar="TASK@DATE",
        help="Toggle the checkbox of TASK on DATE and its descendants (repeatable; applied in order)",
    )
    ap.add_argument("--snapshot", action="store_true", help="Print the full render snapshot instead of the exclusions")
    ap.add_argument("--out", default=None, help="Write output to this path instead of stdout")

    args = ap.parse_args(argv)

    in_path = Path(args.input)
    if not in_path.exists():
        raise SystemExit(f"Missing input JSON: {in_path}")

    try:
        workflows = load_workflows_from_json(in_path, dag_id=args.dag_id)
    except ValueError as e:
        raise SystemExit(f"Failed to load workflow JSON: {e}")

    if len(workflows) != 1:
        names = ", ".join(did for did, _ in workflows)
        raise SystemExit(f"Input holds {len(workflows)} DAGs ({names}); pick one with --dag-id")

    dag_id, records = workflows[0]
    try:
        tree = TaskInstanceTree(dag_id, records)
    except ValueError as e:
        raise SystemExit(f"Invalid task hierarchy for {dag_id!r}: {e}")

    try:
        for node_id in args.toggle_node:
            tree.toggle_node(node_id)
        for value in args.toggle_cell:
            task_id, date = _parse_instance(value)
            tree.toggle_instance(task_id, date)
    except UnknownNodeError as e:
        raise SystemExit(f"Unknown node: {e.args[0]}")
    except UnknownCellError as e:
        raise SystemExit(f"Unknown cell: {e.args[0]}")
    except ValueError as e:
        raise SystemExit(str(e))

    if args.snapshot:
        text = dumps_snapshot(tree.snapshot())
    else:
        text = json.dumps([e.to_dict() for e in tree.excluded_task_instances()], indent=2)

    if args.out:
        out = Path(args.out).expanduser()
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(text + "\n", encoding="utf-8")
        print(str(out.resolve()))
    else:
        sys.stdout.write(text + "\n")


if __name__ == "__main__":
    main()
