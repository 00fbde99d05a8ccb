"""Persistence of the guard's JSON documents."""

from vigil.store.documents import (
  ExclusionsDocument,
  LearnerDocument,
  RulesDocument,
  RunsDocument,
)
from vigil.store.store import DEFAULT_DATA_DIR, Document, DocumentCorruptError, GuardStore

__all__ = [
  "DEFAULT_DATA_DIR",
  "Document",
  "DocumentCorruptError",
  "ExclusionsDocument",
  "GuardStore",
  "LearnerDocument",
  "RulesDocument",
  "RunsDocument",
]
