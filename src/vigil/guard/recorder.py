"""Bounded history of check runs."""

import logging
import secrets
import time
from typing import Any, Sequence

from pydantic import ValidationError

from vigil.models import Run, Violation
from vigil.store import Document, DocumentCorruptError, GuardStore, RunsDocument

logger = logging.getLogger(__name__)

DEFAULT_MAX_RUNS = 200


def new_run_id() -> str:
  """Time-derived run ID, e.g. 'run_1718000000000_a1b2c3'."""
  return f"run_{int(time.time() * 1000)}_{secrets.token_hex(3)}"


class ViolationRecorder:
  """Appends runs to the run log, keeping only the newest ``max_runs``."""

  def __init__(self, store: GuardStore, max_runs: int = DEFAULT_MAX_RUNS):
    self._store = store
    self.max_runs = max_runs

  def load(self) -> RunsDocument:
    try:
      data = self._store.read(Document.RUNS)
    except DocumentCorruptError as e:
      logger.warning("Run log unreadable, starting a new one: %s", e)
      return RunsDocument()

    if data is None:
      return RunsDocument()

    try:
      return RunsDocument.model_validate(data)
    except ValidationError as e:
      logger.warning("Run log malformed, starting a new one: %s", e)
      return RunsDocument()

  def record(
    self,
    file_path: str,
    violations: Sequence[Violation],
    summary: str | None = None,
  ) -> Run:
    """Build a run with a fresh ID and append it."""
    run = Run(
      id=new_run_id(),
      file_path=file_path,
      violations=list(violations),
      summary=summary,
    )
    self.append_run(run)
    return run

  def append_run(self, run: Run) -> None:
    """Append a run, dropping the oldest beyond ``max_runs``.

    Write failures propagate.
    """
    with self._store.transaction():
      document = self.load()
      document.runs.append(run)
      if len(document.runs) > self.max_runs:
        document.runs = document.runs[-self.max_runs:]
      self._store.write(Document.RUNS, document.to_document())

  def list_runs(self) -> list[Run]:
    """All runs, oldest first."""
    return self.load().runs

  def runs_for_file(self, file_path: str) -> list[Run]:
    return [run for run in self.load().runs if run.file_path == file_path]

  def recent_runs(self, n: int = 20) -> list[Run]:
    """The newest ``n`` runs, oldest first."""
    if n <= 0:
      return []
    return self.load().runs[-n:]

  def clear_runs(self) -> None:
    self._store.write(Document.RUNS, RunsDocument().to_document())

  def stats(self) -> dict[str, Any]:
    runs = self.load().runs
    total_violations = sum(len(run.violations) for run in runs)
    return {
      "totalRuns": len(runs),
      "totalViolations": total_violations,
      "averageViolationsPerRun": round(total_violations / len(runs), 2) if runs else 0,
      "lastRunAt": max((run.triggered_at for run in runs), default=None),
    }
