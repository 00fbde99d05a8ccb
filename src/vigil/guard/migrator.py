"""Bringing legacy rule lists, violation history and backups into the guard."""

import json
import logging
import time
from pathlib import Path
from typing import Any, Iterable, Mapping

from vigil.guard.exclusions import ExclusionManager
from vigil.guard.learner import RuleLearner, compute_metrics
from vigil.models import MigrationResult, RuleStats, utc_now
from vigil.store import Document, GuardStore, LearnerDocument

logger = logging.getLogger(__name__)

LEGACY_SOURCE_FORMAT = "legacy"


def _read_json(path: Path) -> Any:
  with open(path, encoding="utf-8") as f:
    return json.load(f)


def _count_exclusions(config: Mapping[str, Any]) -> int:
  return sum(
    len(config.get(key) or [])
    for key in ("pathExclusions", "ruleExclusions", "globalRuleExclusions")
  )


class GuardMigrator:
  """Seeds and restores learner and exclusion state.

  File-based steps report failures through ``MigrationResult`` instead
  of raising.
  """

  def __init__(self, store: GuardStore):
    self._store = store
    self.learner = RuleLearner(store)
    self.exclusions = ExclusionManager(store)

  def import_rules(
    self,
    rules: Iterable[Mapping[str, Any]],
    initialize_baseline: bool = True,
  ) -> MigrationResult:
    """Register legacy rules with the learner.

    Each entry needs a string ``id`` or ``name``; other entries are
    skipped. With ``initialize_baseline`` each rule gets a zeroed record
    tagged with its legacy metadata, replacing any existing record.
    """
    imported: list[dict[str, Any]] = []
    skipped = 0

    with self._store.transaction():
      document = self.learner.load()
      for rule in rules:
        rule_id = _legacy_rule_id(rule)
        if rule_id is None:
          skipped += 1
          continue

        if initialize_baseline:
          document.rules[rule_id] = RuleStats(
            last_updated=utc_now(),
            sourceFormat=LEGACY_SOURCE_FORMAT,
            ruleMetadata={
              "name": rule.get("name"),
              "pattern": rule.get("pattern"),
              "severity": rule.get("severity"),
            },
          )
        imported.append({"ruleId": rule_id, "originalRule": dict(rule), "migratedAt": utc_now()})

      if initialize_baseline and imported:
        self._store.write(Document.LEARNER, document.to_document())

    if skipped:
      logger.warning("Skipped %d legacy rules without an id or name", skipped)

    return MigrationResult(
      success=True,
      details={"importedCount": len(imported), "skipped": skipped, "rules": imported},
    )

  def learn_from_violations(self, violations: Iterable[Mapping[str, Any]]) -> MigrationResult:
    """Replay historical violations into trigger counters.

    Accepts violation records (``ruleId``, optional ``applied``) or run
    records whose ``violations`` are flattened. Feedback counters are
    not touched.
    """
    counts: dict[str, list[int]] = {}
    for record in _flatten_violations(violations):
      rule_id = record.get("ruleId")
      if not isinstance(rule_id, str) or not rule_id:
        continue
      entry = counts.setdefault(rule_id, [0, 0])
      entry[0] += 1
      if record.get("applied"):
        entry[1] += 1

    with self._store.transaction():
      document = self.learner.load()
      for rule_id, (count, applied) in counts.items():
        stats = document.rules.setdefault(rule_id, RuleStats())
        stats.triggered_count += count
        stats.applied_count += applied
      if counts:
        self._store.write(Document.LEARNER, document.to_document())

    return MigrationResult(success=True, details={"learnedRules": len(counts)})

  def import_exclusions(self, config_path: Path | str) -> MigrationResult:
    """Merge exclusions from a JSON file in the exclusions document layout."""
    config_path = Path(config_path)
    if not config_path.exists():
      return MigrationResult(success=False, error=f"Config file not found: {config_path}")

    try:
      config = _read_json(config_path)
      if not isinstance(config, dict):
        raise ValueError("exclusions config must be a JSON object")
      added = self.exclusions.apply_exclusions(config)
    except (OSError, ValueError, TypeError, AttributeError) as e:
      return MigrationResult(success=False, error=str(e))

    return MigrationResult(
      success=True,
      details={"appliedCount": _count_exclusions(config), "addedCount": added},
    )

  def export_learner_state(self, output_path: Path | str) -> MigrationResult:
    """Write learner stats, exclusions and derived metrics to a backup."""
    output_path = Path(output_path)
    learner = self.learner.load()
    state = {
      "exportedAt": utc_now(),
      "learnerStats": learner.to_document(),
      "exclusions": self.exclusions.get_exclusions().to_document(),
      "ruleMetrics": {
        rule_id: compute_metrics(stats).as_dict()
        for rule_id, stats in learner.rules.items()
      },
    }

    try:
      output_path.parent.mkdir(parents=True, exist_ok=True)
      with open(output_path, "w", encoding="utf-8") as f:
        json.dump(state, f, indent=2, ensure_ascii=False)
        f.write("\n")
    except OSError as e:
      return MigrationResult(success=False, error=str(e))

    return MigrationResult(success=True, details={"exportPath": str(output_path)})

  def restore_from_backup(self, backup_path: Path | str) -> MigrationResult:
    """Replace learner stats from a backup and merge its exclusions."""
    backup_path = Path(backup_path)
    if not backup_path.exists():
      return MigrationResult(success=False, error=f"Backup file not found: {backup_path}")

    try:
      backup = _read_json(backup_path)
      learner = LearnerDocument.model_validate(backup["learnerStats"])
      with self._store.transaction():
        self._store.write(Document.LEARNER, learner.to_document())
        self.exclusions.apply_exclusions(backup.get("exclusions") or {})
    except (OSError, ValueError, KeyError, TypeError, AttributeError) as e:
      return MigrationResult(success=False, error=str(e))

    return MigrationResult(success=True, details={"restoredRules": len(learner.rules)})

  def run_full_migration(
    self,
    rules_file: Path | str | None = None,
    violations_file: Path | str | None = None,
    exclusions_file: Path | str | None = None,
    output_dir: Path | str | None = None,
  ) -> dict[str, Any]:
    """Run every provided step, then export a timestamped backup.

    Steps run independently; a failing step does not stop later ones.

    Returns:
      Dict with a timestamp and one MigrationResult per step run.
    """
    steps: dict[str, MigrationResult] = {}

    if rules_file and Path(rules_file).exists():
      try:
        data = _read_json(Path(rules_file))
        rules = data if isinstance(data, list) else data.get("rules") or []
        steps["importRules"] = self.import_rules(rules)
      except (OSError, ValueError, TypeError, AttributeError) as e:
        steps["importRules"] = MigrationResult(success=False, error=str(e))

    if violations_file and Path(violations_file).exists():
      try:
        data = _read_json(Path(violations_file))
        records = data if isinstance(data, list) else data.get("runs") or []
        steps["learnViolations"] = self.learn_from_violations(records)
      except (OSError, ValueError, TypeError, AttributeError) as e:
        steps["learnViolations"] = MigrationResult(success=False, error=str(e))

    if exclusions_file:
      steps["importExclusions"] = self.import_exclusions(exclusions_file)

    out_dir = Path(output_dir) if output_dir else self._store.data_path
    backup_path = out_dir / f"guard-migration-backup-{int(time.time() * 1000)}.json"
    steps["exportBackup"] = self.export_learner_state(backup_path)

    return {"timestamp": utc_now(), "steps": steps}


def _legacy_rule_id(rule: Any) -> str | None:
  if not isinstance(rule, Mapping):
    return None
  rule_id = rule.get("id") or rule.get("name")
  return rule_id if isinstance(rule_id, str) and rule_id.strip() else None


def _flatten_violations(records: Iterable[Mapping[str, Any]]) -> Iterable[Mapping[str, Any]]:
  for record in records:
    if not isinstance(record, Mapping):
      continue
    nested = record.get("violations")
    if isinstance(nested, list):
      yield from (v for v in nested if isinstance(v, Mapping))
    else:
      yield record
