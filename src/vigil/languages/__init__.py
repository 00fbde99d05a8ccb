"""Language-specific structural checks and audits."""

from vigil.languages.base import LanguageRuleModule
from vigil.languages.registry import (
  LanguageRegistry,
  get_language_module,
  list_languages,
  register_language,
  structural_rule_ids,
)

__all__ = [
  "LanguageRegistry",
  "LanguageRuleModule",
  "get_language_module",
  "list_languages",
  "register_language",
  "structural_rule_ids",
]
