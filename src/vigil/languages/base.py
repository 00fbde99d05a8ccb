"""Language module abstraction for non-regex checks."""

from typing import Mapping, Protocol

from vigil.models import Dimension, Violation


class LanguageRuleModule(Protocol):
  """Protocol for a language's structural checks.

  Regex rules are language-agnostic and handled by the matcher. A
  language module covers what regex cannot express reliably: brace
  matching, method boundaries, whole-file and cross-file facts. Rule
  IDs listed in ``structural_rule_ids`` are skipped by the regex path.

  Example:
    class MyLanguageModule:
      @property
      def language(self) -> str:
        return "mylang"

      @property
      def structural_rule_ids(self) -> frozenset[str]:
        return frozenset({"mylang-unbalanced"})

      def run_static_check(self, code, scope):
        return []

      def run_file_audit(self, code, scope):
        return []

      def run_static_check_for_scope(self, sources, scope):
        return []
  """

  @property
  def language(self) -> str:
    """Language tag handled by this module (e.g., 'objc')."""
    ...

  @property
  def structural_rule_ids(self) -> frozenset[str]:
    """Rule IDs implemented by this module rather than by regex."""
    ...

  def run_static_check(self, code: str, scope: Dimension | None) -> list[Violation]:
    """Run per-file structural checks on one source text."""
    ...

  def run_file_audit(self, code: str, scope: Dimension | None) -> list[Violation]:
    """Run whole-file audits (facts about the file as a unit)."""
    ...

  def run_static_check_for_scope(
    self,
    sources: Mapping[str, str],
    scope: Dimension,
  ) -> list[Violation]:
    """Run cross-file audits over sources keyed by project-relative path."""
    ...
