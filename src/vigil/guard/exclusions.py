"""Path, per-file rule and global rule exclusions."""

import logging
import re
from enum import Enum
from typing import Any, Mapping

from pydantic import ValidationError

from vigil.models import GlobalRuleExclusion, PathExclusion, RuleExclusion
from vigil.store import Document, DocumentCorruptError, ExclusionsDocument, GuardStore

logger = logging.getLogger(__name__)


class ExclusionKind(Enum):
  """Exclusion list addressed by ``remove_exclusion``."""

  PATH = "path"
  RULE = "rule"
  GLOBAL_RULE = "globalRule"


def glob_to_regex(pattern: str) -> re.Pattern[str]:
  """Translate a path glob into an anchored regex.

  ``**`` matches any run of characters including '/', ``*`` any run
  without '/'. Every other character is literal.
  """
  parts: list[str] = []
  i = 0
  while i < len(pattern):
    if pattern.startswith("**", i):
      parts.append(".*")
      i += 2
    elif pattern[i] == "*":
      parts.append("[^/]*")
      i += 1
    else:
      parts.append(re.escape(pattern[i]))
      i += 1
  return re.compile("".join(parts), re.DOTALL)


def is_pattern_match(path: str, pattern: str) -> bool:
  return glob_to_regex(pattern).fullmatch(path) is not None


def rule_exclusion_key(file_path: str, rule_id: str) -> str:
  return f"{file_path}:{rule_id}"


class ExclusionManager:
  """Answers whether a path or (path, rule) pair is excluded.

  Paths are project-relative strings. Every query reads the current
  document through the store; a missing or corrupt document behaves as
  an empty exclusion set.
  """

  def __init__(self, store: GuardStore):
    self._store = store

  def load(self) -> ExclusionsDocument:
    try:
      data = self._store.read(Document.EXCLUSIONS)
    except DocumentCorruptError as e:
      logger.warning("Exclusions document unreadable, using an empty set: %s", e)
      return ExclusionsDocument()

    if data is None:
      return ExclusionsDocument()

    try:
      return ExclusionsDocument.model_validate(data)
    except ValidationError as e:
      logger.warning("Exclusions document malformed, using an empty set: %s", e)
      return ExclusionsDocument()

  def _save(self, document: ExclusionsDocument) -> None:
    self._store.write(Document.EXCLUSIONS, document.to_document())

  def get_exclusions(self) -> ExclusionsDocument:
    return self.load()

  def is_path_excluded(self, path: str) -> bool:
    return any(is_pattern_match(path, e.pattern) for e in self.load().path_exclusions)

  def is_rule_excluded(self, path: str, rule_id: str) -> bool:
    """Check a path exclusion first, then the per-file rule exclusion."""
    document = self.load()
    if any(is_pattern_match(path, e.pattern) for e in document.path_exclusions):
      return True
    key = rule_exclusion_key(path, rule_id)
    return any(e.key == key for e in document.rule_exclusions)

  def is_rule_globally_disabled(self, rule_id: str) -> bool:
    return any(e.rule_id == rule_id for e in self.load().global_rule_exclusions)

  def add_path_exclusion(self, pattern: str, reason: str = "") -> bool:
    """Exclude every path matching a glob.

    Returns:
      True if a new exclusion was recorded, False if it already existed.
    """
    with self._store.transaction():
      document = self.load()
      if any(e.pattern == pattern for e in document.path_exclusions):
        return False
      document.path_exclusions.append(PathExclusion(pattern=pattern, reason=reason))
      self._save(document)
    return True

  def add_rule_exclusion(self, file_path: str, rule_id: str, reason: str = "") -> bool:
    """Disable one rule for one file."""
    key = rule_exclusion_key(file_path, rule_id)
    with self._store.transaction():
      document = self.load()
      if any(e.key == key for e in document.rule_exclusions):
        return False
      document.rule_exclusions.append(RuleExclusion(
        key=key,
        file_path=file_path,
        rule_id=rule_id,
        reason=reason,
      ))
      self._save(document)
    return True

  def add_global_rule_exclusion(self, rule_id: str, reason: str = "") -> bool:
    """Disable a rule for every file."""
    with self._store.transaction():
      document = self.load()
      if any(e.rule_id == rule_id for e in document.global_rule_exclusions):
        return False
      document.global_rule_exclusions.append(GlobalRuleExclusion(rule_id=rule_id, reason=reason))
      self._save(document)
    return True

  def remove_exclusion(self, kind: ExclusionKind | str, key: str) -> bool:
    """Remove an exclusion by its identifier.

    Args:
      kind: 'path' (key is the pattern), 'rule' (key is 'filePath:ruleId')
        or 'globalRule' (key is the rule ID).
      key: Identifier of the exclusion to remove.

    Returns:
      True if an exclusion was removed.

    Raises:
      ValueError: Unknown exclusion kind.
    """
    kind = ExclusionKind(kind)

    with self._store.transaction():
      document = self.load()
      before = document.count()
      if kind == ExclusionKind.PATH:
        document.path_exclusions = [e for e in document.path_exclusions if e.pattern != key]
      elif kind == ExclusionKind.RULE:
        document.rule_exclusions = [e for e in document.rule_exclusions if e.key != key]
      else:
        document.global_rule_exclusions = [
          e for e in document.global_rule_exclusions if e.rule_id != key
        ]
      removed = document.count() < before
      if removed:
        self._save(document)
    return removed

  def apply_exclusions(self, exclusions: Mapping[str, Any]) -> int:
    """Merge exclusions from another configuration.

    Accepts the camelCase layout of the exclusions document. Entries
    already present are left untouched.

    Returns:
      Number of exclusions added.
    """
    added = 0
    with self._store.transaction():
      for entry in exclusions.get("pathExclusions") or []:
        if entry.get("pattern"):
          added += self.add_path_exclusion(entry["pattern"], entry.get("reason", ""))
      for entry in exclusions.get("ruleExclusions") or []:
        if entry.get("filePath") and entry.get("ruleId"):
          added += self.add_rule_exclusion(
            entry["filePath"], entry["ruleId"], entry.get("reason", "")
          )
      for entry in exclusions.get("globalRuleExclusions") or []:
        if entry.get("ruleId"):
          added += self.add_global_rule_exclusion(entry["ruleId"], entry.get("reason", ""))
    return added
