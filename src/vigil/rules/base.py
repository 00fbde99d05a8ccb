"""Rule implementations resolved from stored rule definitions."""

import logging
import re
from dataclasses import dataclass
from typing import Collection, Mapping, Union

from vigil.models import Rule

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegexImplementation:
  """Rule checked by searching each line with a compiled pattern."""

  pattern: re.Pattern[str]


@dataclass(frozen=True)
class StructuralImplementation:
  """Rule checked by a language module's structural code path.

  The stored pattern is only a placeholder and is never evaluated.
  """

  check_id: str


RuleImplementation = Union[RegexImplementation, StructuralImplementation]


@dataclass(frozen=True)
class CompiledRule:
  """A rule paired with how it is executed."""

  rule_id: str
  rule: Rule
  implementation: RuleImplementation

  @property
  def is_structural(self) -> bool:
    return isinstance(self.implementation, StructuralImplementation)


def compile_rules(
  rules: Mapping[str, Rule],
  structural_ids: Collection[str],
) -> list[CompiledRule]:
  """Resolve each rule to its implementation once, at load time.

  Args:
    rules: Rule definitions keyed by rule ID.
    structural_ids: Rule IDs owned by registered structural checks.

  Returns:
    Compiled rules in definition order. Rules whose pattern fails to
    compile are dropped with a warning.
  """
  compiled: list[CompiledRule] = []

  for rule_id, rule in rules.items():
    if rule_id in structural_ids:
      compiled.append(CompiledRule(rule_id, rule, StructuralImplementation(rule_id)))
      continue

    try:
      pattern = re.compile(rule.pattern)
    except re.error as e:
      logger.warning("Invalid regex in rule %s (%r): %s", rule_id, rule.pattern, e)
      continue

    compiled.append(CompiledRule(rule_id, rule, RegexImplementation(pattern)))

  return compiled
