"""Per-rule trigger and feedback statistics."""

import logging

from pydantic import ValidationError

from vigil.models import (
  NEUTRAL_METRICS,
  ProblematicRule,
  Recommendation,
  RuleMetrics,
  RuleStats,
  Verdict,
  utc_now,
)
from vigil.store import Document, DocumentCorruptError, GuardStore, LearnerDocument

logger = logging.getLogger(__name__)

DEFAULT_F1_THRESHOLD = 0.6

# Rules need more feedback than this before they can be flagged.
MIN_FEEDBACK_FOR_REVIEW = 5

HIGH_ERROR_RATIO = 0.3


def compute_metrics(stats: RuleStats | None) -> RuleMetrics:
  """Derive accuracy metrics from counters.

  The +1 in each denominator damps small samples, so one correct verdict
  yields 0.5 precision rather than 1.0. Without feedback the metrics are
  neutral (0.5).
  """
  if stats is None or stats.feedback_count == 0:
    return NEUTRAL_METRICS

  tp = stats.true_positives
  precision = tp / (tp + stats.false_positives + 1)
  recall = tp / (tp + stats.false_negatives + 1)
  f1 = 2 * (precision * recall) / (precision + recall + 0.0001)
  is_high_error = stats.false_positives > stats.feedback_count * HIGH_ERROR_RATIO

  return RuleMetrics(precision=precision, recall=recall, f1=f1, is_high_error=is_high_error)


def recommend(metrics: RuleMetrics) -> Recommendation:
  if metrics.precision < 0.5:
    return Recommendation.DISABLE
  if metrics.recall < 0.5:
    return Recommendation.EXPAND
  return Recommendation.TUNE


class RuleLearner:
  """Tracks how often rules fire and how users judge them."""

  def __init__(self, store: GuardStore):
    self._store = store

  def load(self) -> LearnerDocument:
    try:
      data = self._store.read(Document.LEARNER)
    except DocumentCorruptError as e:
      logger.warning("Learner document unreadable, starting from empty stats: %s", e)
      return LearnerDocument()

    if data is None:
      return LearnerDocument()

    try:
      return LearnerDocument.model_validate(data)
    except ValidationError as e:
      logger.warning("Learner document malformed, starting from empty stats: %s", e)
      return LearnerDocument()

  def _save(self, document: LearnerDocument) -> None:
    self._store.write(Document.LEARNER, document.to_document())

  def record_trigger(self, rule_id: str, is_applied: bool = False) -> RuleStats:
    """Count one firing of a rule, creating its record on first use."""
    with self._store.transaction():
      document = self.load()
      stats = document.rules.setdefault(rule_id, RuleStats())
      stats.triggered_count += 1
      if is_applied:
        stats.applied_count += 1
      stats.last_updated = utc_now()
      self._save(document)
    return stats

  def record_feedback(self, rule_id: str, verdict: Verdict | str) -> bool:
    """Count a user verdict for a rule.

    Feedback for a rule that never triggered is ignored.

    Returns:
      True if the verdict was recorded.

    Raises:
      ValueError: Unknown verdict.
    """
    verdict = Verdict(verdict)

    with self._store.transaction():
      document = self.load()
      stats = document.rules.get(rule_id)
      if stats is None:
        logger.debug("Ignoring feedback for untracked rule %s", rule_id)
        return False

      stats.feedback_count += 1
      if verdict == Verdict.CORRECT:
        stats.true_positives += 1
      elif verdict == Verdict.FALSE_POSITIVE:
        stats.false_positives += 1
      else:
        stats.false_negatives += 1
      stats.last_updated = utc_now()
      self._save(document)
    return True

  def get_stats(self, rule_id: str) -> RuleStats | None:
    return self.load().rules.get(rule_id)

  def get_metrics(self, rule_id: str) -> RuleMetrics:
    return compute_metrics(self.get_stats(rule_id))

  def get_all_stats(self) -> dict[str, tuple[RuleStats, RuleMetrics]]:
    return {
      rule_id: (stats, compute_metrics(stats))
      for rule_id, stats in self.load().rules.items()
    }

  def get_problematic_rules(
    self,
    f1_threshold: float = DEFAULT_F1_THRESHOLD,
  ) -> list[ProblematicRule]:
    """Rules with enough feedback whose F1 score is below the threshold."""
    problematic: list[ProblematicRule] = []
    for rule_id, stats in self.load().rules.items():
      if stats.feedback_count <= MIN_FEEDBACK_FOR_REVIEW:
        continue
      metrics = compute_metrics(stats)
      if metrics.f1 < f1_threshold:
        problematic.append(ProblematicRule(rule_id, metrics, recommend(metrics)))
    return problematic

  def reset_stats(self, rule_id: str) -> bool:
    """Zero a rule's counters in place. Unknown rules are left alone."""
    with self._store.transaction():
      document = self.load()
      stats = document.rules.get(rule_id)
      if stats is None:
        return False
      stats.zero()
      self._save(document)
    return True
