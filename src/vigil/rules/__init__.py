"""Rule definitions, their persistence and the regex matcher."""

from vigil.rules.base import (
  CompiledRule,
  RegexImplementation,
  RuleImplementation,
  StructuralImplementation,
  compile_rules,
)
from vigil.rules.defaults import DEFAULT_RULES, STRUCTURAL_PLACEHOLDER
from vigil.rules.matcher import match_regex_rules
from vigil.rules.store import RuleSet, RuleStore, RuleValidationError, normalize_rule_id

__all__ = [
  "CompiledRule",
  "DEFAULT_RULES",
  "RegexImplementation",
  "RuleImplementation",
  "RuleSet",
  "RuleStore",
  "RuleValidationError",
  "STRUCTURAL_PLACEHOLDER",
  "StructuralImplementation",
  "compile_rules",
  "match_regex_rules",
  "normalize_rule_id",
]
