"""Language module registration and lookup."""

from typing import Callable

from vigil.languages.base import LanguageRuleModule

LanguageFactory = Callable[[], LanguageRuleModule]

_languages: dict[str, LanguageFactory] = {}


def register_language(language: str, factory: LanguageFactory) -> None:
  """Register a language module factory.

  Args:
    language: Language tag (e.g., 'objc').
    factory: Callable that returns a LanguageRuleModule instance.
  """
  _languages[language] = factory


def get_language_module(language: str) -> LanguageRuleModule | None:
  """Get the module for a language, or None if it has no structural checks."""
  factory = _languages.get(language)
  return factory() if factory else None


def list_languages() -> list[str]:
  """List registered language tags."""
  return list(_languages.keys())


def structural_rule_ids() -> frozenset[str]:
  """Rule IDs owned by any registered language module."""
  ids: set[str] = set()
  for factory in _languages.values():
    ids.update(factory().structural_rule_ids)
  return frozenset(ids)


class LanguageRegistry:
  """Registry for explicit language module loading."""

  @staticmethod
  def load_all() -> None:
    """Import the built-in language modules so they register themselves.

    The set of modules is fixed here; nothing is discovered at runtime.
    """
    from vigil.languages import objc, swift  # noqa: F401
