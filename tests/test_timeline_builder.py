"""
Tests for rebuilding the Stage -> Job -> Task tree from flat records.
"""

import pytest

from pipewatch.core.timeline.builder import build_timeline, find_descendants, sort_by_order
from pipewatch.core.timeline.models import RecordType, TimelineResult, TimelineState
from pipewatch.core.timeline.status import StatusLabel, overall_label, progress

STAGE = RecordType.STAGE
JOB = RecordType.JOB
TASK = RecordType.TASK


class TestSingleStageRun:
    def test_build_job_task_tree(self, record_factory):
        records = [
            record_factory("s", STAGE, name="Build"),
            record_factory("j", JOB, parent="s", name="Build linux-amd64"),
            record_factory("t", TASK, parent="j", name="Checkout"),
        ]

        timeline = build_timeline(records)

        assert len(timeline.stages) == 1
        stage = timeline.stages[0]
        assert stage.name == "Build"
        assert [job.name for job in stage.jobs] == ["Build linux-amd64"]
        assert [task.name for task in stage.jobs[0].tasks] == ["Checkout"]
        assert overall_label(timeline) is StatusLabel.SUCCEEDED
        assert progress(stage.jobs) == (1, 1)

    def test_node_fields_are_copied(self, record_factory):
        records = [
            record_factory(
                "s",
                STAGE,
                name="Build",
                order=2,
                state=TimelineState.IN_PROGRESS,
                result=TimelineResult.NONE,
                log_id=9,
            )
        ]

        stage = build_timeline(records).stages[0]

        assert stage.order == 2
        assert stage.state is TimelineState.IN_PROGRESS
        assert stage.result is TimelineResult.NONE
        assert stage.log_id == 9


class TestSkipThrough:
    @pytest.mark.parametrize("chain_length", [0, 1, 2, 5])
    def test_intermediate_records_are_transparent(self, record_factory, chain_length):
        records = [record_factory("s", STAGE)]
        parent = "s"
        for i in range(chain_length):
            records.append(record_factory(f"x{i}", RecordType.OTHER, parent=parent, name="Phase"))
            parent = f"x{i}"
        records.append(record_factory("j", JOB, parent=parent))
        parent = "j"
        for i in range(chain_length):
            records.append(record_factory(f"y{i}", RecordType.OTHER, parent=parent))
            parent = f"y{i}"
        records.append(record_factory("t", TASK, parent=parent))

        timeline = build_timeline(records)

        assert [job.name for job in timeline.stages[0].jobs] == ["j"]
        assert [task.name for task in timeline.stages[0].jobs[0].tasks] == ["t"]

    def test_walk_stops_at_jobs(self, record_factory):
        # Jobs are leaves of the stage walk
        records = [
            record_factory("s", STAGE),
            record_factory("j1", JOB, parent="s"),
            record_factory("j2", JOB, parent="j1"),
        ]

        stage = build_timeline(records).stages[0]

        assert [job.name for job in stage.jobs] == ["j1"]

    def test_tasks_under_stage_are_not_jobs(self, record_factory):
        records = [
            record_factory("s", STAGE),
            record_factory("t", TASK, parent="s"),
        ]

        assert build_timeline(records).stages[0].jobs == ()

    def test_parent_cycle_terminates(self, record_factory):
        # Duplicate ids make "c" reachable from its own descendant
        records = [
            record_factory("s", STAGE),
            record_factory("c", RecordType.OTHER, parent="d"),
            record_factory("c", RecordType.OTHER, parent="s"),
            record_factory("d", RecordType.OTHER, parent="c"),
            record_factory("j", JOB, parent="d"),
        ]

        stage = build_timeline(records).stages[0]

        assert [job.name for job in stage.jobs] == ["j"]

    def test_find_descendants_preorder(self, record_factory):
        a = record_factory("a", RecordType.OTHER, parent="s", order=1)
        j1 = record_factory("j1", JOB, parent="a", order=1)
        j2 = record_factory("j2", JOB, parent="s", order=2)
        children_of = {"s": [a, j2], "a": [j1]}

        found = find_descendants("s", children_of, JOB)

        assert [r.id for r in found] == ["j1", "j2"]


class TestOrdering:
    def test_children_sorted_by_order(self, record_factory):
        records = [
            record_factory("s2", STAGE, order=2),
            record_factory("s1", STAGE, order=1),
            record_factory("j3", JOB, parent="s1", order=3),
            record_factory("j1", JOB, parent="s1", order=1),
            record_factory("t2", TASK, parent="j1", order=2),
            record_factory("t1", TASK, parent="j1", order=1),
        ]

        timeline = build_timeline(records)

        assert [s.name for s in timeline.stages] == ["s1", "s2"]
        assert [j.name for j in timeline.stages[0].jobs] == ["j1", "j3"]
        assert [t.name for t in timeline.stages[0].jobs[0].tasks] == ["t1", "t2"]

    def test_equal_order_keeps_input_order(self, record_factory):
        records = [
            record_factory("b", STAGE, order=1),
            record_factory("a", STAGE, order=1),
            record_factory("c", STAGE, order=1),
        ]

        assert [s.name for s in build_timeline(records).stages] == ["b", "a", "c"]

    def test_missing_order_sorts_last_in_input_order(self, record_factory):
        records = [
            record_factory("none1", STAGE),
            record_factory("two", STAGE, order=2),
            record_factory("none2", STAGE),
            record_factory("one", STAGE, order=1),
        ]

        names = [r.name for r in sort_by_order(records)]

        assert names == ["one", "two", "none1", "none2"]

    def test_jobs_from_different_depths_are_sorted_together(self, record_factory):
        records = [
            record_factory("s", STAGE),
            record_factory("p", RecordType.OTHER, parent="s", order=1),
            record_factory("deep", JOB, parent="p", order=5),
            record_factory("shallow", JOB, parent="s", order=2),
        ]

        jobs = build_timeline(records).stages[0].jobs

        assert [j.name for j in jobs] == ["shallow", "deep"]


class TestOrphans:
    def test_empty_input(self):
        timeline = build_timeline([])
        assert timeline.is_empty

    def test_stage_with_missing_parent_is_a_root(self, record_factory):
        records = [record_factory("s", STAGE, parent="not-fetched")]

        assert [s.name for s in build_timeline(records).stages] == ["s"]

    def test_orphan_jobs_and_tasks_are_dropped(self, record_factory):
        records = [
            record_factory("s", STAGE),
            record_factory("j", JOB, parent="gone"),
            record_factory("t", TASK, parent="also-gone"),
        ]

        timeline = build_timeline(records)

        assert timeline.stages[0].jobs == ()
        assert timeline.jobs == []
