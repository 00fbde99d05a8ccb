"""Small text helpers shared by the matchers."""

import re

DEFAULT_SNIPPET_LENGTH = 120

_LINE_BREAK = re.compile(r"\r?\n")


def split_lines(code: str | None) -> list[str]:
  return _LINE_BREAK.split(code or "")


def make_snippet(line: str, length: int | None = None) -> str:
  """Strip a source line and truncate it for display."""
  return line.strip()[: length or DEFAULT_SNIPPET_LENGTH]


def index_to_line(code: str, index: int) -> int:
  """Convert a character offset into a 1-based line number."""
  return code.count("\n", 0, max(index, 0)) + 1


def find_matching_brace(code: str, start: int) -> int:
  """Find the '}' balancing the '{' at ``start``.

  Depth counting only: braces inside string or character literals are
  counted like any other brace.

  Returns:
    Index of the balancing brace, or -1 if the text ends first.
  """
  depth = 0
  for i in range(start, len(code)):
    c = code[i]
    if c == "{":
      depth += 1
    elif c == "}":
      depth -= 1
      if depth == 0:
        return i
  return -1
