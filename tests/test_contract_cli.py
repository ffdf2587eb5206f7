from __future__ import annotations

import io
import json
import os
import tempfile
import unittest
from contextlib import redirect_stdout
from pathlib import Path
from unittest.mock import patch

from instancetree import cli

REPO_ROOT = Path(__file__).resolve().parents[1]
EXAMPLE = REPO_ROOT / "tests" / "fixtures" / "workflow_example.json"
RESPONSE = REPO_ROOT / "tests" / "fixtures" / "workflows_response.json"


def _run(argv: list[str]) -> str:
    buf = io.StringIO()
    with redirect_stdout(buf):
        cli.main(argv)
    return buf.getvalue()


class TestCliContract(unittest.TestCase):
    def test_no_toggles_prints_empty_exclusions(self) -> None:
        self.assertEqual(json.loads(_run([str(EXAMPLE)])), [])

    def test_toggle_cell_replays_propagation(self) -> None:
        out = _run([str(EXAMPLE), "--toggle-cell", "section_1@2021-01-03T00:00:00+00:00"])
        got = json.loads(out)
        self.assertEqual(
            got,
            [
                {"dag_id": "example_task_group", "task_id": "section_1.task_1", "execution_date": "2021-01-03T00:00:00+00:00"},
                {"dag_id": "example_task_group", "task_id": "section_1.task_2", "execution_date": "2021-01-03T00:00:00+00:00"},
            ],
        )

    def test_repeated_toggle_restores(self) -> None:
        toggle = "start@2021-01-02T00:00:00Z"
        self.assertEqual(json.loads(_run([str(EXAMPLE), "--toggle-cell", toggle, "--toggle-cell", toggle])), [])

    def test_snapshot_output_to_file(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            out = Path(td) / "nested" / "snap.json"
            printed = _run([str(EXAMPLE), "--toggle-node", "section_2", "--snapshot", "--out", str(out)])
            self.assertTrue(out.exists())
            self.assertIn("snap.json", printed)
            snap = json.loads(out.read_text(encoding="utf-8"))
            self.assertIn("section_2.inner", [r["node_id"] for r in snap["rows"]])

    def test_multiple_dags_need_dag_id(self) -> None:
        with self.assertRaises(SystemExit) as ctx:
            _run([str(RESPONSE)])
        self.assertIn("--dag-id", str(ctx.exception))

        got = json.loads(_run([str(RESPONSE), "--dag-id", "dag_a", "--toggle-cell", "A@2021-01-01"]))
        self.assertEqual([e["task_id"] for e in got], ["B"])

    def test_dag_id_from_env(self) -> None:
        with patch.dict(os.environ, {"INSTANCETREE_DAG_ID": "dag_b"}):
            self.assertEqual(json.loads(_run([str(RESPONSE)])), [])

    def test_user_errors_exit_with_message(self) -> None:
        with self.assertRaises(SystemExit) as ctx:
            _run([str(EXAMPLE), "--toggle-node", "nope"])
        self.assertIn("Unknown node", str(ctx.exception))

        with self.assertRaises(SystemExit) as ctx:
            _run([str(EXAMPLE), "--toggle-cell", "start@1999-01-01"])
        self.assertIn("Unknown cell", str(ctx.exception))

        with self.assertRaises(SystemExit) as ctx:
            _run([str(EXAMPLE), "--toggle-cell", "no-date-here"])
        self.assertIn("TASK@DATE", str(ctx.exception))

        with self.assertRaises(SystemExit) as ctx:
            _run([str(EXAMPLE), "--toggle-cell", "start@garbage"])
        self.assertIn("invalid execution date", str(ctx.exception))

        with self.assertRaises(SystemExit) as ctx:
            _run([str(REPO_ROOT / "tests" / "fixtures" / "missing.json")])
        self.assertIn("Missing input JSON", str(ctx.exception))

    def test_invalid_hierarchy_exits(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            p = Path(td) / "bad.json"
            p.write_text(json.dumps({"dag_id": "bad", "nodes": [{"id": "x", "group_id": "ghost"}]}), encoding="utf-8")
            with self.assertRaises(SystemExit) as ctx:
                _run([str(p)])
            self.assertIn("Invalid task hierarchy", str(ctx.exception))


if __name__ == "__main__":
    unittest.main(verbosity=2)
