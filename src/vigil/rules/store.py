"""Canonical rule definitions and their persisted document."""

import copy
import logging
import re
from dataclasses import dataclass
from typing import Any, Mapping

from pydantic import ValidationError

from vigil.models import Dimension, Rule, Severity
from vigil.rules.defaults import DEFAULT_RULES, STRUCTURAL_PLACEHOLDER
from vigil.store import Document, DocumentCorruptError, GuardStore, RulesDocument
from vigil.store.documents import RULES_SCHEMA_VERSION

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("message", "severity", "pattern", "languages")

_VALID_DIMENSIONS = frozenset(d.value for d in Dimension)


class RuleValidationError(ValueError):
  """Rule fields are missing or invalid; the rule set was not changed."""


@dataclass(frozen=True)
class RuleSet:
  """Loaded rule definitions keyed by rule ID."""

  schema_version: int
  rules: dict[str, Rule]

  def for_language(self, language: str) -> dict[str, Rule]:
    return {rid: r for rid, r in self.rules.items() if language in r.languages}


def normalize_rule_id(rule_id: Any) -> str:
  """Trim a rule ID and collapse internal whitespace runs to hyphens."""
  return re.sub(r"\s+", "-", str(rule_id).strip())


class RuleStore:
  """Single source of truth for what the guard checks.

  The rules document is read fully on every call. A missing, corrupt or
  schema-mismatched document is replaced by the built-in defaults, and
  each such reset is logged as a warning so repeated resets are visible.
  """

  def __init__(self, store: GuardStore):
    self._store = store

  def load(self) -> RuleSet:
    """Load the project's rules, bootstrapping defaults when needed."""
    try:
      data = self._store.read(Document.RULES)
    except DocumentCorruptError as e:
      logger.warning("Rules document unreadable, restoring defaults: %s", e)
      return self._write_defaults()

    if data is None:
      logger.info("No rules document in %s, writing defaults", self._store.data_path)
      return self._write_defaults()

    try:
      document = RulesDocument.model_validate(data)
    except ValidationError as e:
      logger.warning("Rules document malformed, restoring defaults: %s", e)
      return self._write_defaults()

    if document.schema_version != RULES_SCHEMA_VERSION:
      logger.warning(
        "Rules schema version %s != %s, restoring defaults",
        document.schema_version,
        RULES_SCHEMA_VERSION,
      )
      return self._write_defaults()

    return RuleSet(
      schema_version=RULES_SCHEMA_VERSION,
      rules=_parse_rules(document.rules),
    )

  def get(self, rule_id: str) -> Rule | None:
    return self.load().rules.get(normalize_rule_id(rule_id))

  def rules_for_language(self, language: str) -> dict[str, Rule]:
    return self.load().for_language(language)

  def upsert(self, rule_id: Any, fields: Mapping[str, Any]) -> tuple[str, Rule]:
    """Add or fully replace one rule and persist the whole document.

    Args:
      rule_id: Rule ID; trimmed, with whitespace runs turned into hyphens.
      fields: message, severity, pattern and languages are required.
        note and dimension are optional; an unknown dimension is dropped,
        meaning the rule applies to any scope.

    Returns:
      Tuple of (normalized rule ID, stored rule).

    Raises:
      RuleValidationError: A required field is missing or invalid.
    """
    rid = normalize_rule_id(rule_id) if rule_id is not None else ""
    rule = _build_rule(rid, fields)

    with self._store.transaction():
      current = self.load()
      rules = {key: value.to_document() for key, value in current.rules.items()}
      rules[rid] = rule.to_document()
      self._store.write(
        Document.RULES,
        {"schemaVersion": RULES_SCHEMA_VERSION, "rules": rules},
      )

    return rid, rule

  def _write_defaults(self) -> RuleSet:
    rules = copy.deepcopy(DEFAULT_RULES)
    self._store.write(
      Document.RULES,
      {"schemaVersion": RULES_SCHEMA_VERSION, "rules": rules},
    )
    return RuleSet(schema_version=RULES_SCHEMA_VERSION, rules=_parse_rules(rules))


def _parse_rules(raw: Mapping[str, Any]) -> dict[str, Rule]:
  rules: dict[str, Rule] = {}
  for rule_id, entry in raw.items():
    try:
      rules[rule_id] = Rule.model_validate(entry)
    except ValidationError as e:
      logger.warning("Skipping invalid rule %r: %s", rule_id, e)
  return rules


def _build_rule(rule_id: str, fields: Mapping[str, Any]) -> Rule:
  missing = [name for name in REQUIRED_FIELDS if not fields.get(name)]
  if not rule_id:
    missing.insert(0, "ruleId")
  if missing:
    raise RuleValidationError(f"Missing required rule fields: {', '.join(missing)}")

  languages = fields["languages"]
  if isinstance(languages, str):
    languages = [languages]
  languages = [str(lang).strip() for lang in languages if str(lang).strip()]

  entry: dict[str, Any] = {
    "message": str(fields["message"]).strip(),
    "severity": Severity.ERROR if _is_error(fields["severity"]) else Severity.WARNING,
    "pattern": str(fields["pattern"]).strip(),
    "languages": languages,
  }

  empty = [name for name in ("message", "pattern", "languages") if not entry[name]]
  if empty:
    raise RuleValidationError(f"Rule fields must not be blank: {', '.join(empty)}")

  if entry["pattern"] != STRUCTURAL_PLACEHOLDER:
    try:
      re.compile(entry["pattern"])
    except re.error as e:
      raise RuleValidationError(f"Invalid pattern for {rule_id}: {e}") from e

  note = fields.get("note")
  if note is not None and str(note).strip():
    entry["note"] = str(note).strip()

  dimension = fields.get("dimension")
  if isinstance(dimension, Dimension):
    dimension = dimension.value
  if dimension in _VALID_DIMENSIONS:
    entry["dimension"] = Dimension(dimension)

  return Rule.model_validate(entry)


def _is_error(severity: Any) -> bool:
  return severity == "error" or severity == Severity.ERROR
