"""Tests for regex rule compilation and matching."""

import pytest
from vigil.models import Dimension, Rule, Severity
from vigil.rules import (
  RegexImplementation,
  StructuralImplementation,
  compile_rules,
  match_regex_rules,
)
from vigil.text import find_matching_brace, index_to_line, make_snippet, split_lines


def _rule(pattern: str, languages: list[str], dimension: str | None = "file", **kw: str) -> Rule:
  return Rule(
    message=kw.get("message", "msg"),
    severity=kw.get("severity", "warning"),
    pattern=pattern,
    languages=languages,
    dimension=dimension,
  )


class TestCompileRules:
  def test_regex_and_structural_resolution(self) -> None:
    rules = {
      "regex": _rule(r"foo", ["go"]),
      "structural": _rule("(?!)", ["objc"]),
    }
    compiled = compile_rules(rules, {"structural"})

    by_id = {c.rule_id: c for c in compiled}
    assert isinstance(by_id["regex"].implementation, RegexImplementation)
    assert isinstance(by_id["structural"].implementation, StructuralImplementation)
    assert by_id["structural"].is_structural

  def test_invalid_regex_skipped_with_warning(self, caplog: pytest.LogCaptureFixture) -> None:
    rules = {"broken": _rule("(", ["go"]), "ok": _rule("x", ["go"])}

    compiled = compile_rules(rules, set())

    assert [c.rule_id for c in compiled] == ["ok"]
    assert "broken" in caplog.text


class TestMatchRegexRules:
  def test_one_violation_per_matching_line(self) -> None:
    compiled = compile_rules({"panic": _rule(r"panic\(", ["go"])}, set())
    code = 'panic("a"); panic("b")\nfmt.Println()\n  panic("c")'

    violations = match_regex_rules(code, "go", Dimension.FILE, compiled)

    assert [v.line for v in violations] == [1, 3]
    assert violations[1].snippet == 'panic("c")'
    assert violations[0].rule_id == "panic"

  def test_language_filter(self) -> None:
    compiled = compile_rules({"panic": _rule(r"panic\(", ["go"])}, set())
    assert match_regex_rules('panic("x")', "rust", Dimension.FILE, compiled) == []

  def test_dimension_must_equal_scope(self) -> None:
    compiled = compile_rules({
      "file-rule": _rule("x", ["go"], "file"),
      "project-rule": _rule("x", ["go"], "project"),
      "any-rule": _rule("x", ["go"], None),
    }, set())

    ids = {v.rule_id for v in match_regex_rules("x", "go", Dimension.PROJECT, compiled)}
    assert ids == {"project-rule", "any-rule"}

  def test_none_scope_accepts_every_dimension(self) -> None:
    compiled = compile_rules({
      "file-rule": _rule("x", ["go"], "file"),
      "target-rule": _rule("x", ["go"], "target"),
    }, set())

    assert len(match_regex_rules("x", "go", None, compiled)) == 2

  def test_structural_rules_skipped(self) -> None:
    compiled = compile_rules({"s": _rule(".", ["objc"])}, {"s"})
    assert match_regex_rules("anything", "objc", None, compiled) == []

  def test_severity_and_dimension_copied(self) -> None:
    compiled = compile_rules({"e": _rule("x", ["go"], severity="error")}, set())

    (violation,) = match_regex_rules("x", "go", Dimension.FILE, compiled)
    assert violation.severity == Severity.ERROR
    assert violation.dimension == Dimension.FILE

  def test_snippet_truncated(self) -> None:
    compiled = compile_rules({"x": _rule("x", ["go"])}, set())
    line = "x" * 300

    (violation,) = match_regex_rules(line, "go", None, compiled)
    assert len(violation.snippet) == 120

  def test_crlf_lines(self) -> None:
    compiled = compile_rules({"x": _rule("^x$", ["go"])}, set())
    assert [v.line for v in match_regex_rules("a\r\nx\r\n", "go", None, compiled)] == [2]

  def test_empty_code(self) -> None:
    compiled = compile_rules({"x": _rule("x", ["go"])}, set())
    assert match_regex_rules("", "go", None, compiled) == []


class TestTextHelpers:
  def test_split_lines_none(self) -> None:
    assert split_lines(None) == [""]

  def test_make_snippet(self) -> None:
    assert make_snippet("   abc   ") == "abc"
    assert make_snippet("abcdef", 3) == "abc"

  def test_index_to_line(self) -> None:
    code = "a\nb\nc"
    assert index_to_line(code, 0) == 1
    assert index_to_line(code, code.index("c")) == 3

  def test_find_matching_brace(self) -> None:
    code = "^{ if (x) { y(); } }"
    assert find_matching_brace(code, 1) == len(code) - 1

  def test_unbalanced_brace(self) -> None:
    assert find_matching_brace("{ {", 0) == -1

  def test_braces_in_strings_are_counted(self) -> None:
    # Depth counting does not understand string literals.
    code = '{ NSLog(@"}"); }'
    assert find_matching_brace(code, 0) == code.index('"}"') + 1
