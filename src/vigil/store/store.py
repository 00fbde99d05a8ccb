"""Project-scoped owner of the guard's JSON documents."""

import copy
import json
import os
import tempfile
from contextlib import contextmanager
from enum import Enum
from pathlib import Path
from typing import Any, Iterator

DEFAULT_DATA_DIR = ".vigil"


class DocumentCorruptError(Exception):
  """A document exists on disk but does not hold a JSON object."""


class Document(Enum):
  """Documents persisted per project root, valued by file name."""

  RULES = "guard-rules.json"
  LEARNER = "guard-learner.json"
  EXCLUSIONS = "guard-exclusions.json"
  RUNS = "guard-violations.json"


class GuardStore:
  """Reads and writes every guard document for one project root.

  Each write replaces a whole document atomically. Inside a
  ``transaction()`` writes are buffered and flushed together when the
  block exits cleanly, so a sequence of updates touching several
  documents either lands completely or not at all. Reads inside a
  transaction see the buffered state.

  There is no locking: callers serialize access to one project root.

  Example:
    store = GuardStore(project_root)
    with store.transaction():
      store.write(Document.LEARNER, learner_data)
      store.write(Document.EXCLUSIONS, exclusion_data)
  """

  def __init__(self, project_root: Path | str, data_dir: str = DEFAULT_DATA_DIR):
    self.project_root = Path(project_root)
    self.data_path = self.project_root / data_dir
    self._pending: dict[Document, dict[str, Any]] | None = None

  def path_for(self, document: Document) -> Path:
    return self.data_path / document.value

  def read(self, document: Document) -> dict[str, Any] | None:
    """Read a document.

    Returns:
      The parsed JSON object, or None if the document does not exist.

    Raises:
      DocumentCorruptError: The file is not valid JSON or not an object.
      OSError: The file exists but cannot be read.
    """
    if self._pending is not None and document in self._pending:
      return copy.deepcopy(self._pending[document])

    path = self.path_for(document)
    if not path.exists():
      return None

    try:
      data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
      raise DocumentCorruptError(f"{path.name} is not valid UTF-8 JSON: {e}") from e

    if not isinstance(data, dict):
      raise DocumentCorruptError(f"{path.name} does not contain a JSON object")
    return data

  def write(self, document: Document, data: dict[str, Any]) -> None:
    """Replace a document. Write failures propagate to the caller."""
    if self._pending is not None:
      self._pending[document] = copy.deepcopy(data)
      return
    self._flush({document: data})

  @contextmanager
  def transaction(self) -> Iterator["GuardStore"]:
    """Buffer writes until the outermost block exits without error."""
    if self._pending is not None:
      # Nested blocks join the outer transaction.
      yield self
      return

    self._pending = {}
    try:
      yield self
    except BaseException:
      self._pending = None
      raise

    pending, self._pending = self._pending, None
    if pending:
      self._flush(pending)

  def _flush(self, documents: dict[Document, dict[str, Any]]) -> None:
    self.data_path.mkdir(parents=True, exist_ok=True)

    staged: list[tuple[str, Path]] = []
    try:
      for document, data in documents.items():
        fd, tmp_name = tempfile.mkstemp(
          dir=self.data_path, prefix=f".{document.value}.", suffix=".tmp"
        )
        staged.append((tmp_name, self.path_for(document)))
        with os.fdopen(fd, "w", encoding="utf-8") as f:
          json.dump(data, f, indent=2, ensure_ascii=False)
          f.write("\n")
    except BaseException:
      for tmp_name, _ in staged:
        Path(tmp_name).unlink(missing_ok=True)
      raise

    for tmp_name, target in staged:
      os.replace(tmp_name, target)
