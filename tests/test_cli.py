"""Tests for the command line interface."""

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner
from vigil import __version__
from vigil.cli import app
from vigil.guard import GuardChecker
from vigil.providers import SummaryProvider, register_provider

runner = CliRunner()


class StubSummaryProvider(SummaryProvider):
  def __init__(self, model: str | None = None):
    self._model = model or "stub"

  @property
  def name(self) -> str:
    return "stub"

  @property
  def model(self) -> str:
    return self._model

  def is_available(self) -> bool:
    return True

  def complete(self, system: str, user: str) -> str:
    return '{"summary": "Remove the exec call."}'


@pytest.fixture
def project(tmp_path: Path) -> Path:
  (tmp_path / "app").mkdir()
  (tmp_path / "app" / "run.py").write_text("exec(code)\n")
  (tmp_path / "app" / "clean.py").write_text("x = 1\n")
  return tmp_path


def _invoke(project: Path, *args: str):
  return runner.invoke(app, ["--project", str(project), *args])


class TestGlobalOptions:
  def test_version(self) -> None:
    result = runner.invoke(app, ["--version"])

    assert result.exit_code == 0
    assert __version__ in result.output

  def test_missing_config(self, project: Path) -> None:
    result = _invoke(project, "--config", str(project / "missing.yaml"), "history")

    assert result.exit_code == 1
    assert "Config file not found" in result.output


class TestCheck:
  def test_json_output(self, project: Path) -> None:
    result = _invoke(project, "check", "app/run.py", "--format", "json")

    assert result.exit_code == 0
    data = json.loads(result.stdout)
    (entry,) = data["files"]
    assert entry["filePath"] == "app/run.py"
    assert [v["ruleId"] for v in entry["violations"]] == ["py-no-exec"]

  def test_exit_code_on_errors(self, project: Path) -> None:
    result = _invoke(project, "check", "app/run.py", "--format", "github", "--exit-code")

    assert result.exit_code == 1
    assert "::error file=app/run.py,line=1::py-no-exec" in result.output

  def test_exit_code_clean(self, project: Path) -> None:
    result = _invoke(project, "check", "app/clean.py", "--exit-code")
    assert result.exit_code == 0

  def test_project_audit(self, project: Path) -> None:
    result = _invoke(project, "check", "--format", "json", "--no-record")

    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert [f["filePath"] for f in data["files"]] == ["app/clean.py", "app/run.py"]
    assert GuardChecker(project).recorder.list_runs() == []

  def test_records_runs(self, project: Path) -> None:
    _invoke(project, "check", "app/run.py", "--format", "json")

    (run,) = GuardChecker(project).recorder.list_runs()
    assert run.file_path == "app/run.py"

  def test_no_matching_files(self, project: Path) -> None:
    result = _invoke(project, "check", "missing/*.py")

    assert result.exit_code == 1
    assert "No files matched" in result.output

  def test_unknown_format(self, project: Path) -> None:
    result = _invoke(project, "check", "app/run.py", "--format", "xml")

    assert result.exit_code == 1
    assert "Unknown format" in result.output

  def test_excluded_path(self, project: Path) -> None:
    _invoke(project, "exclude", "path", "app/**")

    result = _invoke(project, "check", "app/run.py", "--format", "json")

    assert json.loads(result.stdout)["files"][0]["violations"] == []

  def test_summary(self, project: Path) -> None:
    register_provider("stub", lambda m: StubSummaryProvider(m))
    (project / ".vigil.yaml").write_text("provider: stub\n")

    result = _invoke(project, "check", "app/run.py", "--format", "json", "--summary")

    assert result.exit_code == 0
    assert json.loads(result.stdout)["files"][0]["aiSummary"] == "Remove the exec call."

  def test_summary_unknown_provider(self, project: Path) -> None:
    (project / ".vigil.yaml").write_text("provider: nonexistent_provider_xyz\n")

    result = _invoke(project, "check", "app/run.py", "--format", "github", "--summary")

    assert result.exit_code == 0
    assert "Summary skipped" in result.output
    assert "py-no-exec" in result.output


class TestLearningCommands:
  def test_feedback_before_trigger(self, project: Path) -> None:
    result = _invoke(project, "feedback", "py-no-exec", "correct")

    assert result.exit_code == 0
    assert "feedback ignored" in result.output

  def test_feedback_after_trigger(self, project: Path) -> None:
    _invoke(project, "check", "app/run.py", "--format", "json")

    result = _invoke(project, "feedback", "py-no-exec", "falsePositive")

    assert "Recorded falsePositive" in result.output
    assert GuardChecker(project).learner.get_stats("py-no-exec").false_positives == 1

  def test_invalid_verdict(self, project: Path) -> None:
    result = _invoke(project, "feedback", "py-no-exec", "maybe")
    assert result.exit_code == 2

  def test_report_json(self, project: Path) -> None:
    _invoke(project, "check", "app/run.py", "--format", "json")

    result = _invoke(project, "report", "--json")

    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data["totalRules"] == 1
    assert data["allStats"]["py-no-exec"]["stats"]["triggeredCount"] == 1

  def test_apply_disable(self, project: Path) -> None:
    result = _invoke(project, "apply", "py-no-exec", "disable")

    assert "py-no-exec disabled" in result.output
    assert GuardChecker(project).exclusions.is_rule_globally_disabled("py-no-exec")

  def test_history(self, project: Path) -> None:
    _invoke(project, "check", "app/run.py", "--format", "json")

    result = _invoke(project, "history")
    assert "1 run(s), 1 violation(s)" in result.output

    _invoke(project, "history", "--clear")
    assert GuardChecker(project).recorder.list_runs() == []


class TestRuleCommands:
  def test_add_rule(self, project: Path) -> None:
    result = _invoke(
      project, "rules", "add", "no print",
      "--message", "No print calls",
      "--pattern", r"print\(",
      "--language", "python",
      "--severity", "error",
    )

    assert result.exit_code == 0
    assert "Saved rule no-print (error)" in result.output
    rule = GuardChecker(project).rules.get("no-print")
    assert rule.languages == ["python"]

  def test_add_invalid_pattern(self, project: Path) -> None:
    result = _invoke(
      project, "rules", "add", "broken",
      "--message", "m", "--pattern", "(", "--language", "python",
    )

    assert result.exit_code == 1
    assert "Invalid pattern" in result.output

  def test_list(self, project: Path) -> None:
    result = _invoke(project, "rules", "list", "--language", "rust")

    assert result.exit_code == 0
    assert "rust" in result.output
    assert "python" not in result.output


class TestExcludeCommands:
  def test_add_and_remove_global(self, project: Path) -> None:
    assert "added" in _invoke(project, "exclude", "global", "py-no-exec").output
    assert "already present" in _invoke(project, "exclude", "global", "py-no-exec").output

    result = _invoke(project, "exclude", "remove", "globalRule", "py-no-exec")

    assert "Removed" in result.output
    assert not GuardChecker(project).exclusions.is_rule_globally_disabled("py-no-exec")

  def test_rule_exclusion(self, project: Path) -> None:
    _invoke(project, "exclude", "rule", "app/run.py", "py-no-exec")

    result = _invoke(project, "check", "app/run.py", "--format", "json")
    assert json.loads(result.stdout)["files"][0]["violations"] == []

  def test_remove_unknown_kind(self, project: Path) -> None:
    result = _invoke(project, "exclude", "remove", "everything", "x")
    assert result.exit_code == 2


class TestMigrateCommands:
  def test_export_and_restore(self, project: Path, tmp_path_factory: pytest.TempPathFactory) -> None:
    _invoke(project, "check", "app/run.py", "--format", "json")
    backup = project / "backup.json"

    result = _invoke(project, "migrate", "export", str(backup))
    assert result.exit_code == 0
    assert "export: ok" in result.output

    other = tmp_path_factory.mktemp("other")
    result = _invoke(other, "migrate", "restore", str(backup))

    assert result.exit_code == 0
    assert GuardChecker(other).learner.get_stats("py-no-exec").triggered_count == 1

  def test_restore_missing_backup(self, project: Path) -> None:
    result = _invoke(project, "migrate", "restore", str(project / "missing.json"))

    assert result.exit_code == 1
    assert "restore: failed" in result.output

  def test_import_rules(self, project: Path) -> None:
    rules = project / "legacy.json"
    rules.write_text(json.dumps([{"id": "legacy-a"}, {"pattern": "x"}]))

    result = _invoke(project, "migrate", "import-rules", str(rules))

    assert "import-rules: ok" in result.output
    assert "importedCount=1" in result.output
