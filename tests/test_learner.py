"""Tests for rule statistics and metrics."""

import pytest
from vigil.guard import RuleLearner, compute_metrics
from vigil.models import NEUTRAL_METRICS, Recommendation, RuleStats, Verdict
from vigil.store import Document, GuardStore


@pytest.fixture
def learner(store: GuardStore) -> RuleLearner:
  return RuleLearner(store)


def _give_feedback(learner: RuleLearner, rule_id: str, verdict: Verdict, times: int) -> None:
  for _ in range(times):
    learner.record_feedback(rule_id, verdict)


class TestRecordTrigger:
  def test_creates_record_lazily(self, learner: RuleLearner) -> None:
    assert learner.get_stats("r") is None

    learner.record_trigger("r")
    learner.record_trigger("r", is_applied=True)

    stats = learner.get_stats("r")
    assert stats.triggered_count == 2
    assert stats.applied_count == 1
    assert stats.last_updated is not None

  def test_document_layout(self, learner: RuleLearner, store: GuardStore) -> None:
    learner.record_trigger("r")

    data = store.read(Document.LEARNER)
    assert data["version"] == 1
    assert set(data["rules"]["r"]) == {
      "triggeredCount",
      "appliedCount",
      "feedbackCount",
      "truePositives",
      "falsePositives",
      "falseNegatives",
      "lastUpdated",
    }


class TestRecordFeedback:
  def test_unknown_rule_is_noop(self, learner: RuleLearner, store: GuardStore) -> None:
    assert learner.record_feedback("never-seen", Verdict.CORRECT) is False
    assert store.read(Document.LEARNER) is None

  def test_counts_each_verdict(self, learner: RuleLearner) -> None:
    learner.record_trigger("r")
    learner.record_feedback("r", "correct")
    learner.record_feedback("r", "falsePositive")
    learner.record_feedback("r", Verdict.FALSE_NEGATIVE)

    stats = learner.get_stats("r")
    assert stats.feedback_count == 3
    assert (stats.true_positives, stats.false_positives, stats.false_negatives) == (1, 1, 1)

  def test_unknown_verdict_rejected(self, learner: RuleLearner) -> None:
    learner.record_trigger("r")
    with pytest.raises(ValueError):
      learner.record_feedback("r", "maybe")


class TestMetrics:
  def test_neutral_without_feedback(self, learner: RuleLearner) -> None:
    assert learner.get_metrics("unknown") == NEUTRAL_METRICS
    learner.record_trigger("r")
    assert learner.get_metrics("r") == NEUTRAL_METRICS

  def test_formulas(self) -> None:
    stats = RuleStats(feedback_count=4, true_positives=3, false_positives=1)
    metrics = compute_metrics(stats)

    assert metrics.precision == pytest.approx(3 / 5)
    assert metrics.recall == pytest.approx(3 / 4)
    expected_f1 = 2 * (0.6 * 0.75) / (0.6 + 0.75 + 0.0001)
    assert metrics.f1 == pytest.approx(expected_f1)
    assert metrics.is_high_error is False

  def test_high_error(self) -> None:
    stats = RuleStats(feedback_count=3, true_positives=1, false_positives=2)
    assert compute_metrics(stats).is_high_error is True

  @pytest.mark.parametrize(
    ("tp", "fp", "fn"),
    [(0, 5, 0), (1, 0, 0), (10, 0, 0), (3, 3, 3), (0, 0, 4), (100, 1, 2)],
  )
  def test_bounds(self, tp: int, fp: int, fn: int) -> None:
    stats = RuleStats(
      feedback_count=tp + fp + fn,
      true_positives=tp,
      false_positives=fp,
      false_negatives=fn,
    )
    metrics = compute_metrics(stats)

    for value in (metrics.precision, metrics.recall, metrics.f1):
      assert 0 <= value < 1

  def test_zero_true_positives_gives_zero(self) -> None:
    stats = RuleStats(feedback_count=2, false_positives=2)
    metrics = compute_metrics(stats)
    assert (metrics.precision, metrics.recall, metrics.f1) == (0, 0, 0)


class TestProblematicRules:
  def test_requires_more_than_five_feedback(self, learner: RuleLearner) -> None:
    learner.record_trigger("r")
    _give_feedback(learner, "r", Verdict.FALSE_POSITIVE, 5)

    assert learner.get_problematic_rules() == []

    learner.record_feedback("r", Verdict.FALSE_POSITIVE)
    (problem,) = learner.get_problematic_rules()
    assert problem.rule_id == "r"
    assert problem.recommendation == Recommendation.DISABLE

  def test_expand_when_recall_low(self, learner: RuleLearner) -> None:
    learner.record_trigger("r")
    _give_feedback(learner, "r", Verdict.CORRECT, 2)
    _give_feedback(learner, "r", Verdict.FALSE_NEGATIVE, 5)

    (problem,) = learner.get_problematic_rules()
    # precision 2/3, recall 2/8
    assert problem.recommendation == Recommendation.EXPAND

  def test_tune_when_both_moderate(self, learner: RuleLearner) -> None:
    learner.record_trigger("r")
    _give_feedback(learner, "r", Verdict.CORRECT, 6)

    # precision = recall = 6/7, f1 about 0.857
    assert learner.get_problematic_rules(f1_threshold=0.9)[0].recommendation == Recommendation.TUNE
    assert learner.get_problematic_rules() == []


class TestResetStats:
  def test_zeroes_in_place(self, learner: RuleLearner) -> None:
    learner.record_trigger("r")
    learner.record_feedback("r", Verdict.CORRECT)

    assert learner.reset_stats("r") is True
    stats = learner.get_stats("r")
    assert stats.triggered_count == 0
    assert stats.feedback_count == 0
    assert stats.last_updated is None

  def test_unknown_rule_is_noop(self, learner: RuleLearner) -> None:
    assert learner.reset_stats("missing") is False

  def test_extra_fields_preserved(self, learner: RuleLearner, store: GuardStore) -> None:
    store.write(Document.LEARNER, {
      "version": 1,
      "rules": {"legacy": {"triggeredCount": 4, "sourceFormat": "legacy"}},
    })

    learner.reset_stats("legacy")

    assert store.read(Document.LEARNER)["rules"]["legacy"]["sourceFormat"] == "legacy"


class TestCorruptDocument:
  def test_corrupt_learner_starts_empty(
    self, learner: RuleLearner, store: GuardStore, caplog: pytest.LogCaptureFixture
  ) -> None:
    store.data_path.mkdir()
    store.path_for(Document.LEARNER).write_text("not json")

    assert learner.get_all_stats() == {}
    assert "empty stats" in caplog.text
