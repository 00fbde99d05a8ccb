"""Line-by-line regex matching of compiled rules."""

from typing import Iterable

from vigil.models import Dimension, Violation
from vigil.rules.base import CompiledRule, RegexImplementation
from vigil.text import make_snippet, split_lines


def match_regex_rules(
  code: str,
  language: str,
  scope: Dimension | None,
  rules: Iterable[CompiledRule],
  snippet_length: int | None = None,
) -> list[Violation]:
  """Run every applicable regex rule against each line of code.

  A rule applies when its languages include ``language`` and its
  dimension is unset or equal to ``scope`` (a ``None`` scope accepts
  every dimension). Each matching line yields one violation regardless
  of how many times the pattern occurs on it. Structural rules are
  skipped; their language module reports them.

  Args:
    code: Full source text.
    language: Language tag of the source (e.g. 'objc').
    scope: Review scope being checked.
    rules: Compiled rules to consider.
    snippet_length: Maximum snippet length (defaults to 120).

  Returns:
    Violations ordered by rule, then by line.
  """
  lines = split_lines(code)
  violations: list[Violation] = []

  for compiled in rules:
    if not isinstance(compiled.implementation, RegexImplementation):
      continue
    if not compiled.rule.applies_to(language, scope):
      continue

    pattern = compiled.implementation.pattern
    for i, line in enumerate(lines, start=1):
      if pattern.search(line):
        violations.append(Violation(
          rule_id=compiled.rule_id,
          severity=compiled.rule.severity,
          message=compiled.rule.message,
          line=i,
          snippet=make_snippet(line, snippet_length),
          dimension=compiled.rule.dimension,
        ))

  return violations
