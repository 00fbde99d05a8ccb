"""Checking entry point combining rules, exclusions and learned trust."""

import logging
from pathlib import Path
from typing import Any, Iterable, Mapping

from vigil.config import Settings
from vigil.guard.exclusions import ExclusionManager
from vigil.guard.learner import RuleLearner
from vigil.guard.recorder import ViolationRecorder
from vigil.languages import LanguageRegistry, get_language_module, structural_rule_ids
from vigil.models import (
  AuditReport,
  Dimension,
  ProblematicRule,
  Recommendation,
  Severity,
  Verdict,
  Violation,
  utc_now,
)
from vigil.rules import CompiledRule, RuleStore, compile_rules, match_regex_rules
from vigil.rules.store import RuleSet
from vigil.sources import (
  DEFAULT_SKIP_DIRS,
  collect_source_files,
  detect_language,
  read_source,
  relative_path,
)
from vigil.store import GuardStore

logger = logging.getLogger(__name__)

AUTO_DISABLE_REASON = "Auto-disabled due to high false positive rate"


def _coerce_scope(scope: Dimension | str | None) -> Dimension | None:
  if scope is None or isinstance(scope, Dimension):
    return scope
  return Dimension(scope)


def rank_violations(violations: Iterable[Violation]) -> list[Violation]:
  """Order errors before warnings, then by line; ties keep detection order."""
  return sorted(violations, key=lambda v: (v.severity != Severity.ERROR, v.line))


class GuardChecker:
  """The entry point external callers use to check code.

  Every operation reads current state through the project's store. The
  learner updates made by one check are committed in one transaction.
  """

  def __init__(
    self,
    project_root: Path | str,
    settings: Settings | None = None,
    store: GuardStore | None = None,
  ):
    self.settings = settings or Settings()
    self.project_root = Path(project_root)
    self.store = store or GuardStore(self.project_root, self.settings.data_dir)
    self.rules = RuleStore(self.store)
    self.exclusions = ExclusionManager(self.store)
    self.learner = RuleLearner(self.store)
    self.recorder = ViolationRecorder(self.store, max_runs=self.settings.max_runs)
    LanguageRegistry.load_all()

  def check(
    self,
    code: str,
    language: str,
    file_path: str,
    scope: Dimension | str | None = Dimension.FILE,
  ) -> list[Violation]:
    """Check one source text.

    Args:
      code: Source text.
      language: Language tag (e.g. 'objc').
      file_path: Project-relative path used for exclusion lookups.
      scope: Review scope; None applies rules of every dimension.

    Returns:
      Surviving violations with trust scores attached, errors first.
    """
    scope = _coerce_scope(scope)
    if self.exclusions.is_path_excluded(file_path):
      logger.debug("Skipping excluded path %s", file_path)
      return []

    rule_set = self.rules.load()
    compiled = compile_rules(rule_set.rules, structural_rule_ids())
    findings = self._detect(code, language, scope, rule_set, compiled)
    return self._apply_learning(findings, file_path)

  def _detect(
    self,
    code: str,
    language: str,
    scope: Dimension | None,
    rule_set: RuleSet,
    compiled: list[CompiledRule],
    file_audit: bool = True,
  ) -> list[Violation]:
    findings = match_regex_rules(
      code, language, scope, compiled, self.settings.snippet_length
    )

    module = get_language_module(language)
    if module is not None:
      structural = module.run_static_check(code, scope)
      if file_audit:
        structural.extend(module.run_file_audit(code, scope))
      findings.extend(_apply_rule_definitions(structural, rule_set, language, scope))

    return findings

  def _apply_learning(self, findings: list[Violation], file_path: str) -> list[Violation]:
    """Drop excluded findings, attach trust and downgrade untrusted errors."""
    surviving: list[Violation] = []

    with self.store.transaction():
      for violation in findings:
        path = violation.file_path or file_path
        if self.exclusions.is_rule_excluded(path, violation.rule_id):
          continue
        if self.exclusions.is_rule_globally_disabled(violation.rule_id):
          continue

        trust_score = self.learner.get_metrics(violation.rule_id).f1
        severity = violation.severity
        if severity == Severity.ERROR and trust_score < self.settings.trust_threshold:
          severity = Severity.WARNING

        self.learner.record_trigger(violation.rule_id, is_applied=True)
        surviving.append(violation.model_copy(
          update={"severity": severity, "trust_score": trust_score}
        ))

    return rank_violations(surviving)

  def feedback_violation(self, rule_id: str, verdict: Verdict | str = Verdict.CORRECT) -> bool:
    return self.learner.record_feedback(rule_id, verdict)

  def get_problematic_rules(self, threshold: float | None = None) -> list[ProblematicRule]:
    if threshold is None:
      threshold = self.settings.f1_threshold
    return self.learner.get_problematic_rules(threshold)

  def apply_recommendation(
    self,
    rule_id: str,
    recommendation: Recommendation | str,
  ) -> bool:
    """Act on a recommendation.

    Only 'disable' changes state, by adding a global exclusion; 'expand'
    and 'tune' are logged as advice.

    Returns:
      True if the guard's state changed.
    """
    recommendation = Recommendation(recommendation)

    if recommendation == Recommendation.DISABLE:
      return self.exclusions.add_global_rule_exclusion(rule_id, AUTO_DISABLE_REASON)
    if recommendation == Recommendation.EXPAND:
      logger.info("Rule %s needs expansion (high false negatives)", rule_id)
    else:
      logger.info("Rule %s needs parameter tuning", rule_id)
    return False

  def generate_learning_report(self) -> dict[str, Any]:
    """Statistics, metrics and recommendations for every tracked rule."""
    problematic = self.get_problematic_rules()
    all_stats = self.learner.get_all_stats()
    problematic_docs = [
      {
        "ruleId": p.rule_id,
        "metrics": p.metrics.as_dict(),
        "recommendation": p.recommendation.value,
      }
      for p in problematic
    ]

    return {
      "timestamp": utc_now(),
      "totalRules": len(all_stats),
      "problematicRules": problematic_docs,
      "allStats": {
        rule_id: {"stats": stats.to_document(exclude_none=False), "metrics": metrics.as_dict()}
        for rule_id, (stats, metrics) in all_stats.items()
      },
      "exclusions": self.exclusions.get_exclusions().to_document(),
      "recommendations": problematic_docs,
    }

  def apply_exclusions(self, exclusions: Mapping[str, Any]) -> int:
    return self.exclusions.apply_exclusions(exclusions)

  def audit_file(
    self,
    path: Path | str,
    scope: Dimension | str = Dimension.FILE,
    record: bool = True,
  ) -> AuditReport:
    """Read, check and optionally record one file.

    Raises:
      SourceFileError: The file cannot be read.
    """
    scope = _coerce_scope(scope) or Dimension.FILE
    full_path = self._resolve(path)
    rel = relative_path(full_path, self.project_root)
    code = read_source(full_path)
    language = detect_language(full_path)

    with self.store.transaction():
      violations = self.check(code, language, rel, scope)
      run_id = self.recorder.record(rel, violations).id if record else None

    return AuditReport(
      file_path=rel,
      language=language,
      scope=scope,
      violations=violations,
      run_id=run_id,
    )

  def audit_project(
    self,
    scope: Dimension | str = Dimension.PROJECT,
    record: bool = True,
  ) -> list[AuditReport]:
    """Check every source file under the project root.

    Each file gets the file-level checks plus regex rules scoped to
    ``scope``. Cross-file audits then run per language over all files
    and their findings join the report of the file they point at.
    Dependency, build and VCS directories are skipped, as is the data
    directory.

    Raises:
      SourceFileError: A source file cannot be read.
    """
    scope = _coerce_scope(scope) or Dimension.PROJECT
    skip_dirs = DEFAULT_SKIP_DIRS | {self.store.data_path.name}

    sources: dict[str, tuple[str, str]] = {}
    for full_path in collect_source_files(self.project_root, skip_dirs):
      rel = relative_path(full_path, self.project_root)
      if self.exclusions.is_path_excluded(rel):
        continue
      sources[rel] = (detect_language(full_path), read_source(full_path))

    rule_set = self.rules.load()
    compiled = compile_rules(rule_set.rules, structural_rule_ids())
    scoped = [c for c in compiled if c.rule.dimension == scope and scope != Dimension.FILE]

    reports: list[AuditReport] = []
    with self.store.transaction():
      per_file: dict[str, list[Violation]] = {}
      for rel, (language, code) in sources.items():
        # The cross-file audit below also reports repeats within one file
        findings = self._detect(
          code, language, Dimension.FILE, rule_set, compiled,
          file_audit=scope == Dimension.FILE,
        )
        findings.extend(match_regex_rules(
          code, language, scope, scoped, self.settings.snippet_length
        ))
        per_file[rel] = findings

      if scope != Dimension.FILE:
        for language in sorted({lang for lang, _ in sources.values()}):
          module = get_language_module(language)
          if module is None:
            continue
          by_path = {rel: code for rel, (lang, code) in sources.items() if lang == language}
          cross = module.run_static_check_for_scope(by_path, scope)
          for violation in _apply_rule_definitions(cross, rule_set, language, None):
            per_file.setdefault(violation.file_path or "", []).append(violation)

      for rel, findings in per_file.items():
        violations = self._apply_learning(findings, rel)
        run_id = self.recorder.record(rel, violations).id if record else None
        language = sources[rel][0] if rel in sources else detect_language(rel)
        reports.append(AuditReport(
          file_path=rel,
          language=language,
          scope=scope,
          violations=violations,
          run_id=run_id,
        ))

    return reports

  def _resolve(self, path: Path | str) -> Path:
    path = Path(path)
    return path if path.is_absolute() else self.project_root / path


def _apply_rule_definitions(
  findings: Iterable[Violation],
  rule_set: RuleSet,
  language: str,
  scope: Dimension | None,
) -> list[Violation]:
  """Give structural findings the stored rule's severity.

  Findings whose rule is defined but does not apply to this language and
  scope are dropped. Messages stay the module's own since they carry
  per-finding detail. Findings with no stored rule are kept as reported.
  """
  result: list[Violation] = []
  for violation in findings:
    rule = rule_set.rules.get(violation.rule_id)
    if rule is None:
      result.append(violation)
      continue
    if not rule.applies_to(language, scope):
      continue
    result.append(violation.model_copy(update={"severity": rule.severity}))
  return result
