"""Tests for the run history."""

import re

import pytest
from vigil.guard import ViolationRecorder, new_run_id
from vigil.models import Run, Severity, Violation
from vigil.store import Document, GuardStore


@pytest.fixture
def recorder(store: GuardStore) -> ViolationRecorder:
  return ViolationRecorder(store, max_runs=3)


def _violation(rule_id: str = "r", line: int = 1) -> Violation:
  return Violation(rule_id=rule_id, severity=Severity.WARNING, message="m", line=line)


class TestRunIds:
  def test_format(self) -> None:
    assert re.fullmatch(r"run_\d+_[0-9a-f]{6}", new_run_id())

  def test_unique(self) -> None:
    assert len({new_run_id() for _ in range(50)}) == 50


class TestAppendRun:
  def test_record_appends(self, recorder: ViolationRecorder) -> None:
    run = recorder.record("A.m", [_violation()], summary="1 issue")

    (stored,) = recorder.list_runs()
    assert stored.id == run.id
    assert stored.file_path == "A.m"
    assert stored.summary == "1 issue"
    assert stored.violations[0].rule_id == "r"

  def test_bounded_to_newest(self, recorder: ViolationRecorder) -> None:
    for i in range(5):
      recorder.append_run(Run(id=f"run_{i}", file_path=f"{i}.m"))

    assert [r.id for r in recorder.list_runs()] == ["run_2", "run_3", "run_4"]

  def test_document_layout(self, recorder: ViolationRecorder, store: GuardStore) -> None:
    recorder.record("A.m", [_violation()])

    data = store.read(Document.RUNS)
    assert data["version"] == 1
    run = data["runs"][0]
    assert {"id", "filePath", "triggeredAt", "violations"} <= set(run)
    assert run["violations"][0]["ruleId"] == "r"

  def test_write_failure_propagates(self, recorder: ViolationRecorder, store: GuardStore) -> None:
    store.data_path.parent.joinpath(".vigil").write_text("a file, not a directory")

    with pytest.raises(OSError):
      recorder.record("A.m", [])


class TestQueries:
  def test_runs_for_file(self, recorder: ViolationRecorder) -> None:
    recorder.record("A.m", [])
    recorder.record("B.m", [])
    recorder.record("A.m", [])

    assert [r.file_path for r in recorder.runs_for_file("A.m")] == ["A.m", "A.m"]

  def test_recent_runs(self, recorder: ViolationRecorder) -> None:
    for name in ("A.m", "B.m", "C.m"):
      recorder.record(name, [])

    assert [r.file_path for r in recorder.recent_runs(2)] == ["B.m", "C.m"]
    assert recorder.recent_runs(0) == []

  def test_stats(self, recorder: ViolationRecorder) -> None:
    recorder.record("A.m", [_violation(), _violation(line=2)])
    recorder.record("B.m", [_violation()])

    stats = recorder.stats()
    assert stats["totalRuns"] == 2
    assert stats["totalViolations"] == 3
    assert stats["averageViolationsPerRun"] == 1.5
    assert stats["lastRunAt"] is not None

  def test_stats_empty(self, recorder: ViolationRecorder) -> None:
    assert recorder.stats() == {
      "totalRuns": 0,
      "totalViolations": 0,
      "averageViolationsPerRun": 0,
      "lastRunAt": None,
    }

  def test_clear_runs(self, recorder: ViolationRecorder) -> None:
    recorder.record("A.m", [])
    recorder.clear_runs()
    assert recorder.list_runs() == []
