from __future__ import annotations

import datetime as dt
import unittest

from instancetree.dates import InvalidExecutionDateError, build_cells, execution_dates
from instancetree.engine import TaskInstanceTree
from instancetree.hierarchy import build_hierarchy
from instancetree.model import KIND_GROUP, KIND_LEAF, TaskRecord, cell_id
from instancetree.node_index import NodeIndex
from instancetree.selection import SelectionStore
from instancetree.util.tz import format_ymd, parse_zone, whole_days_between


def _rec(tid: str, gid: str | None, *dates: str) -> TaskRecord:
    return TaskRecord(id=tid, label=tid, group_id=gid, task_instances=tuple(dates))


class TestParseZoneContract(unittest.TestCase):
    def test_offset_is_preserved_not_normalized(self) -> None:
        d = parse_zone("2021-01-01T23:30:00-05:00")
        self.assertIsNotNone(d)
        self.assertEqual(d.utcoffset(), dt.timedelta(hours=-5))
        self.assertEqual(d.day, 1)
        self.assertEqual(format_ymd(d), "20210101")

    def test_compact_offset_is_accepted(self) -> None:
        d = parse_zone("2021-01-01T06:00:00+0530")
        self.assertEqual(d.utcoffset(), dt.timedelta(hours=5, minutes=30))
        self.assertEqual(d.hour, 6)

    def test_date_only_and_naive_read_as_utc(self) -> None:
        self.assertEqual(parse_zone("2021-01-02"), dt.datetime(2021, 1, 2, tzinfo=dt.timezone.utc))
        self.assertEqual(parse_zone("2021-01-02T03:04:05"), dt.datetime(2021, 1, 2, 3, 4, 5, tzinfo=dt.timezone.utc))

    def test_z_suffix(self) -> None:
        self.assertEqual(parse_zone("2021-01-02T00:00:00Z"), dt.datetime(2021, 1, 2, tzinfo=dt.timezone.utc))

    def test_garbage_returns_none(self) -> None:
        self.assertIsNone(parse_zone(""))
        self.assertIsNone(parse_zone("   "))
        self.assertIsNone(parse_zone("yesterday"))
        self.assertIsNone(parse_zone("2021-13-45"))

    def test_whole_days_truncates(self) -> None:
        a = dt.datetime(2021, 1, 1, tzinfo=dt.timezone.utc)
        self.assertEqual(whole_days_between(a, a + dt.timedelta(days=2, hours=23)), 2)
        self.assertEqual(whole_days_between(a, a), 0)
        self.assertEqual(whole_days_between(a + dt.timedelta(days=1, hours=1), a), -1)


class TestDateExtractorContract(unittest.TestCase):
    def _build(self, records):
        idx = NodeIndex(build_hierarchy("d", records))
        store = SelectionStore()
        rows = build_cells(idx, store)
        return idx, store, rows

    def test_group_collects_dates_of_all_descendants(self) -> None:
        idx, _, _ = self._build(
            [
                _rec("g", None),
                _rec("g.a", "g", "2021-01-03", "2021-01-01"),
                _rec("g.b", "g", "2021-01-02", "2021-01-01"),
            ]
        )
        got = [d.date().isoformat() for d in execution_dates(idx, idx.get("g"))]
        self.assertEqual(got, ["2021-01-01", "2021-01-02", "2021-01-03"])

    def test_one_cell_per_node_per_date_with_kind(self) -> None:
        idx, store, rows = self._build([_rec("g", None), _rec("g.a", "g", "2021-01-01", "2021-01-02")])

        self.assertEqual(len(rows["g"]), 2)
        self.assertEqual(len(rows["g.a"]), 2)
        self.assertTrue(all(c.kind == KIND_GROUP for c in rows["g"]))
        self.assertTrue(all(c.kind == KIND_LEAF for c in rows["g.a"]))
        # root + g + g.a, two dates each
        self.assertEqual(len(store), 6)

        c = rows["g"][0]
        self.assertEqual(c.id, cell_id("g", "2021-01-01T00:00:00+00:00"))
        self.assertIs(c.node, idx.get("g"))
        self.assertTrue(c.checked)
        self.assertEqual(c.propagation_set, frozenset({"g", "g.a"}))

    def test_node_without_reachable_dates_has_no_cells(self) -> None:
        _, _, rows = self._build([_rec("empty_group", None), _rec("empty_group.t", "empty_group"), _rec("x", None, "2021-01-01")])
        self.assertEqual(rows["empty_group"], [])
        self.assertEqual(rows["empty_group.t"], [])
        self.assertEqual(len(rows["x"]), 1)

    def test_same_instant_same_offset_counts_once(self) -> None:
        _, _, rows = self._build([_rec("t", None, "2021-01-01", "2021-01-01T00:00:00Z", "2021-01-01T00:00:00+00:00")])
        self.assertEqual(len(rows["t"]), 1)

    def test_same_instant_in_other_offsets_is_one_cell(self) -> None:
        _, store, rows = self._build([_rec("t", None, "2021-01-01T05:00:00+05:00", "2021-01-01T00:00:00Z")])
        self.assertEqual(len(rows["t"]), 1)
        c = rows["t"][0]
        # shown in the offset it was first written in, keyed by the UTC instant
        self.assertEqual(c.date.utcoffset(), dt.timedelta(hours=5))
        self.assertEqual(c.date_key, "2021-01-01T00:00:00+00:00")
        self.assertIs(store.cell_for("t", "2021-01-01T00:00:00+00:00"), c)

    def test_group_toggle_reaches_descendant_written_in_other_offset(self) -> None:
        tree = TaskInstanceTree(
            "d",
            [_rec("g", None, "2021-01-01T00:00:00Z"), _rec("g.t", "g", "2021-01-01T05:00:00+05:00")],
        )
        self.assertEqual(len(tree.row_cells("g")), 1)

        written = tree.toggle_cell(tree.row_cells("g")[0].id)
        self.assertEqual({c.node.id for c in written}, {"g", "g.t"})

        excluded = tree.excluded_task_instances()
        self.assertEqual([e.task_id for e in excluded], ["g.t"])
        self.assertEqual(excluded[0].to_dict()["execution_date"], "2021-01-01T05:00:00+05:00")

        # the instance can be named in any offset
        tree.toggle_instance("g.t", "2021-01-01T00:00:00Z")
        self.assertEqual(tree.excluded_task_instances(), [])

    def test_invalid_date_aborts_construction(self) -> None:
        with self.assertRaises(InvalidExecutionDateError):
            TaskInstanceTree("d", [_rec("t", None, "not-a-date")])


if __name__ == "__main__":
    unittest.main(verbosity=2)
