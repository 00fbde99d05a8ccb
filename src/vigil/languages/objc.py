"""Objective-C structural checks.

These rules are unreliable as single-line regexes, so they are checked
with small text heuristics instead: backward method-boundary scans,
brace matching over block literals, and whole-file observations.
"""

import re
from typing import Mapping

from vigil.languages.registry import register_language
from vigil.models import Dimension, Severity, Violation
from vigil.text import find_matching_brace, index_to_line, make_snippet, split_lines

INIT_RETURN_NIL = "objc-init-return-nil"
BLOCK_RETAIN_CYCLE = "objc-block-retain-cycle"
COPY_CUSTOM_TYPE = "objc-copy-custom-type"
KVO_MISSING_REMOVE = "objc-kvo-missing-remove"
DUPLICATE_CATEGORY = "objc-duplicate-category"

# init-return-nil
_RETURN_NIL = re.compile(r"\breturn\s+nil\b")
_METHOD_START = re.compile(r"^[-+]\s*\(")
_CONTAINER_START = re.compile(r"^@(?:interface|implementation)\s")
_INIT_METHOD_START = re.compile(r"^[-+]\s*\([^)]+\)\s*.*\binit(?:[A-Z]\w*)?\b")
_INIT_DELEGATION = re.compile(r"\[\s*(?:super|self)\s+init(?:[A-Z]\w*)?\b")

# block-retain-cycle
_BLOCK_LITERAL = re.compile(r"\^\s*(?:\w+\s*)?(?:\([^()]*\)\s*)?\{")
_SELF_ACCESS = re.compile(r"\bself\s*\.")
_WEAK_ALIAS = re.compile(r"__weak|weakSelf")
_GCD_CALL = re.compile(r"\bdispatch_(?:async|sync|after|once|group_async|barrier_async)\s*\(")
_GCD_MACRO_TAIL = re.compile(r"\b\w*GCD\w*(?:SYNC|ASYNC)\w*\s*\(\s*$")
_ANIMATION_TAIL = re.compile(r"\b(?:animations|completion)\s*:\s*$")
_NON_RETAINING_SELECTOR_TAIL = re.compile(
  r"\b(?:enumerateObjectsUsingBlock|enumerateKeysAndObjectsUsingBlock"
  r"|enumerateIndexesUsingBlock|performWithoutAnimation|addOperationWithBlock)\s*:\s*$"
)
_LOOKBEHIND_CHARS = 400

# copy-custom-type
_COPY_PROPERTY = re.compile(r"@property\s*\([^)]*\bcopy\b[^)]*\)[^;]*\s+(\w+)\s*\*")
_BLOCK_TYPE = re.compile(r"\*\s*\(\s*\^|\(\s*\^")
_COPY_SAFE_TYPES = frozenset({"MASConstraint"})
_MAC_ONLY_LOOKBACK = 20

# duplicate categories
_CATEGORY_DECL = re.compile(r"@interface\s+(\w+)\s*\(\s*(\w+)\s*\)")

MESSAGES = {
  INIT_RETURN_NIL: (
    "return nil in an initializer should follow [super init] or "
    "self = [super init]; verify manually"
  ),
  BLOCK_RETAIN_CYCLE: (
    "Block captures self strongly and may create a retain cycle; "
    "use __weak typeof(self) weakSelf = self"
  ),
  COPY_CUSTOM_TYPE: (
    "copy on a custom class requires NSCopying (copyWithZone:) or the "
    "setter may crash; NS-prefixed system types are exempt"
  ),
  KVO_MISSING_REMOVE: (
    "addObserver without a matching removeObserver (KVO or "
    "NSNotificationCenter); remove the observer in dealloc or earlier"
  ),
}


def _violation(rule_id: str, line: int, source_line: str) -> Violation:
  return Violation(
    rule_id=rule_id,
    severity=Severity.WARNING,
    message=MESSAGES[rule_id],
    line=line,
    snippet=make_snippet(source_line),
    dimension=Dimension.FILE,
  )


def check_init_return_nil(lines: list[str]) -> list[Violation]:
  """Flag ``return nil`` in initializers that never delegate to an init.

  For each ``return nil`` the scan walks back to the nearest method
  start. It stops without reporting at a non-initializer method or an
  ``@interface``/``@implementation`` line.
  """
  violations: list[Violation] = []

  for idx, line in enumerate(lines):
    if not _RETURN_NIL.search(line):
      continue

    method_start = -1
    for k in range(idx - 1, -1, -1):
      trimmed = lines[k].strip()
      if _INIT_METHOD_START.search(trimmed):
        method_start = k
        break
      if _METHOD_START.search(trimmed) or _CONTAINER_START.search(trimmed):
        break

    if method_start < 0:
      continue

    body = "\n".join(lines[method_start:idx + 1])
    if _INIT_DELEGATION.search(body):
      continue

    violations.append(_violation(INIT_RETURN_NIL, idx + 1, line))

  return violations


def check_block_retain_cycle(code: str) -> list[Violation]:
  """Flag block literals that use ``self.`` without a weak alias.

  Blocks passed to GCD, UIView animation/completion parameters and
  enumeration or operation selectors do not outlive the call and are
  skipped. Nested blocks are covered by their outermost block. At most
  one violation is reported per line.
  """
  violations: list[Violation] = []
  lines = split_lines(code)
  reported: set[int] = set()

  pos = 0
  while True:
    match = _BLOCK_LITERAL.search(code, pos)
    if match is None:
      break

    brace_start = match.end() - 1
    brace_end = find_matching_brace(code, brace_start)
    if brace_end == -1:
      break

    body = code[brace_start + 1:brace_end]
    self_access = _SELF_ACCESS.search(body)
    if self_access and not _WEAK_ALIAS.search(body):
      before = code[max(0, match.start() - _LOOKBEHIND_CHARS):match.start()]
      if not _is_non_retaining_call_site(re.sub(r"\s+", " ", before)):
        line_num = index_to_line(code, brace_start + 1 + self_access.start())
        if line_num not in reported:
          reported.add(line_num)
          violations.append(_violation(BLOCK_RETAIN_CYCLE, line_num, lines[line_num - 1]))

    pos = brace_end + 1

  return violations


def _is_non_retaining_call_site(before: str) -> bool:
  if _GCD_CALL.search(before) and before.rstrip().endswith(","):
    return True
  if _GCD_MACRO_TAIL.search(before):
    return True
  if _ANIMATION_TAIL.search(before):
    return True
  return bool(_NON_RETAINING_SELECTOR_TAIL.search(before))


def check_copy_custom_type(lines: list[str]) -> list[Violation]:
  """Flag ``copy`` properties whose class may not adopt NSCopying."""
  violations: list[Violation] = []

  for idx, line in enumerate(lines):
    match = _COPY_PROPERTY.search(line)
    if not match:
      continue

    type_name = match.group(1)
    if type_name == "id" or type_name.startswith("NS"):
      continue
    if _BLOCK_TYPE.search(line):
      continue
    if type_name in _COPY_SAFE_TYPES:
      continue
    if _inside_mac_only_block(lines, idx):
      continue

    violations.append(_violation(COPY_CUSTOM_TYPE, idx + 1, line))

  return violations


def _inside_mac_only_block(lines: list[str], idx: int) -> bool:
  """Check for an enclosing ``#if TARGET_OS_MAC && !TARGET_OS_IPHONE``."""
  for k in range(idx - 1, max(idx - _MAC_ONLY_LOOKBACK, 0) - 1, -1):
    prev = lines[k].strip()
    if re.match(r"#\s*endif", prev):
      return False
    if (
      re.match(r"#\s*if\b", prev)
      and "TARGET_OS_MAC" in prev
      and re.search(r"!?\s*\(\s*TARGET_OS_IPHONE", prev)
    ):
      return True
  return False


def check_kvo_missing_remove(lines: list[str]) -> list[Violation]:
  """Flag a file that adds observers but never removes one."""
  code = "\n".join(lines)
  if "addObserver" not in code or "removeObserver" in code:
    return []

  idx = next(i for i, line in enumerate(lines) if "addObserver" in line)
  return [_violation(KVO_MISSING_REMOVE, idx + 1, lines[idx])]


def _collect_categories(code: str) -> dict[str, list[tuple[int, str]]]:
  by_key: dict[str, list[tuple[int, str]]] = {}
  for i, line in enumerate(split_lines(code), start=1):
    match = _CATEGORY_DECL.search(line.strip())
    if match:
      key = f"{match.group(1)}({match.group(2)})"
      by_key.setdefault(key, []).append((i, make_snippet(line)))
  return by_key


def find_duplicate_categories(code: str) -> list[Violation]:
  """Report each repeated ``@interface Class (Category)`` in one file."""
  violations: list[Violation] = []

  for key, occurrences in _collect_categories(code).items():
    first_line = occurrences[0][0]
    for line, snippet in occurrences[1:]:
      violations.append(Violation(
        rule_id=DUPLICATE_CATEGORY,
        severity=Severity.WARNING,
        message=f"Category {key} declared more than once in this file; first on line {first_line}",
        line=line,
        snippet=snippet,
        dimension=Dimension.FILE,
      ))

  return violations


def find_duplicate_categories_across(
  sources: Mapping[str, str],
  scope: Dimension,
) -> list[Violation]:
  """Report every declaration of a category declared in several places."""
  by_key: dict[str, list[tuple[str, int, str]]] = {}
  for path, code in sources.items():
    for key, occurrences in _collect_categories(code).items():
      by_key.setdefault(key, []).extend((path, line, snippet) for line, snippet in occurrences)

  violations: list[Violation] = []
  for key, occurrences in by_key.items():
    if len(occurrences) <= 1:
      continue
    for path, line, snippet in occurrences:
      others = ", ".join(
        f"{p}:{ln}" for p, ln, _ in occurrences if (p, ln) != (path, line)
      )
      violations.append(Violation(
        rule_id=DUPLICATE_CATEGORY,
        severity=Severity.WARNING,
        message=f"Category {key} declared more than once in {scope.value}; also at {others}",
        line=line,
        snippet=snippet,
        dimension=scope,
        file_path=path,
      ))

  return violations


class ObjcRuleModule:
  """Structural checks and audits for Objective-C sources."""

  STRUCTURAL_RULE_IDS = frozenset({
    INIT_RETURN_NIL,
    BLOCK_RETAIN_CYCLE,
    COPY_CUSTOM_TYPE,
    KVO_MISSING_REMOVE,
    DUPLICATE_CATEGORY,
  })

  @property
  def language(self) -> str:
    return "objc"

  @property
  def structural_rule_ids(self) -> frozenset[str]:
    return self.STRUCTURAL_RULE_IDS

  def run_static_check(self, code: str, scope: Dimension | None) -> list[Violation]:
    if scope not in (None, Dimension.FILE):
      return []

    lines = split_lines(code)
    return [
      *check_init_return_nil(lines),
      *check_block_retain_cycle(code or ""),
      *check_copy_custom_type(lines),
      *check_kvo_missing_remove(lines),
    ]

  def run_file_audit(self, code: str, scope: Dimension | None) -> list[Violation]:
    if scope not in (None, Dimension.FILE):
      return []
    return find_duplicate_categories(code or "")

  def run_static_check_for_scope(
    self,
    sources: Mapping[str, str],
    scope: Dimension,
  ) -> list[Violation]:
    if scope == Dimension.FILE:
      return []
    return find_duplicate_categories_across(sources, scope)


def _create_objc() -> ObjcRuleModule:
  return ObjcRuleModule()


register_language("objc", _create_objc)
