"""Swift language module.

Swift rules are all regex based today; the module is registered so the
checker treats Swift as a known language with no structural checks.
"""

from typing import Mapping

from vigil.languages.registry import register_language
from vigil.models import Dimension, Violation


class SwiftRuleModule:
  @property
  def language(self) -> str:
    return "swift"

  @property
  def structural_rule_ids(self) -> frozenset[str]:
    return frozenset()

  def run_static_check(self, code: str, scope: Dimension | None) -> list[Violation]:
    return []

  def run_file_audit(self, code: str, scope: Dimension | None) -> list[Violation]:
    return []

  def run_static_check_for_scope(
    self,
    sources: Mapping[str, str],
    scope: Dimension,
  ) -> list[Violation]:
    return []


def _create_swift() -> SwiftRuleModule:
  return SwiftRuleModule()


register_language("swift", _create_swift)
