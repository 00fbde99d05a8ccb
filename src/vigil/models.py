"""Core domain models for the guard."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Sequence

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class Severity(Enum):
  """Violation severity levels."""

  ERROR = "error"
  WARNING = "warning"


class Dimension(Enum):
  """Review breadth a rule applies to."""

  FILE = "file"
  TARGET = "target"
  PROJECT = "project"


class Verdict(Enum):
  """Human verdict on a reported violation."""

  CORRECT = "correct"
  FALSE_POSITIVE = "falsePositive"
  FALSE_NEGATIVE = "falseNegative"


class Recommendation(Enum):
  """Suggested action for a rule with poor accuracy."""

  DISABLE = "disable"
  EXPAND = "expand"
  TUNE = "tune"


def utc_now() -> str:
  """Current time as an ISO-8601 UTC timestamp."""
  return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class GuardModel(BaseModel):
  """Base for records persisted in the camelCase JSON documents."""

  model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

  def to_document(self, exclude_none: bool = True) -> dict[str, Any]:
    return self.model_dump(mode="json", by_alias=True, exclude_none=exclude_none)


class Rule(GuardModel):
  """A named check with severity and applicability metadata."""

  message: str = Field(min_length=1)
  severity: Severity
  pattern: str = Field(min_length=1)
  languages: list[str] = Field(min_length=1)
  note: str | None = None
  dimension: Dimension | None = None

  @field_validator("severity", mode="before")
  @classmethod
  def _coerce_severity(cls, value: Any) -> Any:
    # Anything other than an explicit error reports as a warning.
    if value == "error" or value == Severity.ERROR:
      return Severity.ERROR
    return Severity.WARNING if value else value

  @field_validator("dimension", mode="before")
  @classmethod
  def _drop_unknown_dimension(cls, value: Any) -> Any:
    if isinstance(value, Dimension) or value in {d.value for d in Dimension}:
      return value
    return None

  def applies_to(self, language: str, scope: Dimension | None) -> bool:
    """Check language membership and scope compatibility."""
    if language not in self.languages:
      return False
    return scope is None or self.dimension is None or self.dimension == scope


class Violation(GuardModel):
  """One detected instance of a rule firing on a line."""

  model_config = ConfigDict(frozen=True)

  rule_id: str
  severity: Severity
  message: str
  line: int
  snippet: str = ""
  dimension: Dimension | None = None
  trust_score: float | None = None
  file_path: str | None = None


class Run(GuardModel):
  """One scan execution over one file."""

  id: str
  file_path: str
  triggered_at: str = Field(default_factory=utc_now)
  violations: list[Violation] = Field(default_factory=list)
  summary: str | None = None


class RuleStats(GuardModel):
  """Feedback and trigger counters for a single rule."""

  model_config = ConfigDict(extra="allow")

  triggered_count: int = 0
  applied_count: int = 0
  feedback_count: int = 0
  true_positives: int = 0
  false_positives: int = 0
  false_negatives: int = 0
  last_updated: str | None = None

  def zero(self) -> None:
    """Reset every counter in place."""
    self.triggered_count = 0
    self.applied_count = 0
    self.feedback_count = 0
    self.true_positives = 0
    self.false_positives = 0
    self.false_negatives = 0
    self.last_updated = None


class PathExclusion(GuardModel):
  pattern: str
  reason: str = ""
  added_at: str = Field(default_factory=utc_now)


class RuleExclusion(GuardModel):
  key: str
  file_path: str
  rule_id: str
  reason: str = ""
  added_at: str = Field(default_factory=utc_now)


class GlobalRuleExclusion(GuardModel):
  rule_id: str
  reason: str = ""
  added_at: str = Field(default_factory=utc_now)


@dataclass(frozen=True)
class RuleMetrics:
  """Accuracy metrics derived from feedback counters."""

  precision: float
  recall: float
  f1: float
  is_high_error: bool

  def as_dict(self) -> dict[str, Any]:
    return {
      "precision": self.precision,
      "recall": self.recall,
      "f1": self.f1,
      "isHighError": self.is_high_error,
    }


NEUTRAL_METRICS = RuleMetrics(precision=0.5, recall=0.5, f1=0.5, is_high_error=False)


@dataclass(frozen=True)
class ProblematicRule:
  """A rule whose F1 score fell below the review threshold."""

  rule_id: str
  metrics: RuleMetrics
  recommendation: Recommendation


@dataclass(frozen=True)
class MigrationResult:
  """Outcome of a single migration step."""

  success: bool
  error: str | None = None
  details: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class AuditReport:
  """Violations found for one file (or one multi-file scope)."""

  file_path: str
  language: str
  scope: Dimension
  violations: Sequence[Violation]
  run_id: str | None = None
  ai_summary: str | None = None

  @property
  def error_count(self) -> int:
    return sum(1 for v in self.violations if v.severity == Severity.ERROR)

  @property
  def warning_count(self) -> int:
    return sum(1 for v in self.violations if v.severity == Severity.WARNING)

  @property
  def has_errors(self) -> bool:
    """Check if any violation kept error severity after trust adjustment."""
    return self.error_count > 0

  @property
  def summary(self) -> str:
    if not self.violations:
      return "No issues found."
    total = len(self.violations)
    parts = []
    if self.error_count:
      parts.append(f"{self.error_count} error")
    if self.warning_count:
      parts.append(f"{self.warning_count} warning")
    return f"Found {total} issue{'s' if total != 1 else ''}: {', '.join(parts)}."
