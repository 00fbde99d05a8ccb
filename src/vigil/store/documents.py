"""Schemas of the persisted guard documents."""

from typing import Any

from pydantic import Field

from vigil.models import (
  GlobalRuleExclusion,
  GuardModel,
  PathExclusion,
  RuleExclusion,
  RuleStats,
  Run,
)

RULES_SCHEMA_VERSION = 1
LEARNER_VERSION = 1
EXCLUSIONS_VERSION = 1
RUNS_VERSION = 1


class RulesDocument(GuardModel):
  """Rule definitions keyed by rule ID.

  Entries are kept raw here and validated one by one by the rule
  store, so a single malformed rule does not discard the whole set.
  """

  schema_version: int
  rules: dict[str, Any]


class LearnerDocument(GuardModel):
  version: int = LEARNER_VERSION
  rules: dict[str, RuleStats] = Field(default_factory=dict)

  def to_document(self, exclude_none: bool = False) -> dict[str, Any]:
    # lastUpdated is written as null for untouched records
    return super().to_document(exclude_none=exclude_none)


class ExclusionsDocument(GuardModel):
  version: int = EXCLUSIONS_VERSION
  path_exclusions: list[PathExclusion] = Field(default_factory=list)
  rule_exclusions: list[RuleExclusion] = Field(default_factory=list)
  global_rule_exclusions: list[GlobalRuleExclusion] = Field(default_factory=list)

  def count(self) -> int:
    return (
      len(self.path_exclusions)
      + len(self.rule_exclusions)
      + len(self.global_rule_exclusions)
    )


class RunsDocument(GuardModel):
  version: int = RUNS_VERSION
  runs: list[Run] = Field(default_factory=list)
