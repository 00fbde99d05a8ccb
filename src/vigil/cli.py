"""CLI interface using Typer."""

import json
import logging
import os
import traceback
from dataclasses import dataclass
from pathlib import Path
from typing import NoReturn, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from vigil import __version__
from vigil.config import Settings, load_config
from vigil.guard import ExclusionKind, GuardChecker, GuardMigrator
from vigil.models import AuditReport, Dimension, MigrationResult, Recommendation, Verdict
from vigil.output import get_formatter
from vigil.providers import (
  ProviderNotFoundError,
  ProviderRegistry,
  ProviderUnavailableError,
  SummaryProvider,
  get_provider,
)
from vigil.review import with_summary
from vigil.rules import RuleValidationError
from vigil.sources import SourceFileError, read_source, resolve_patterns

app = typer.Typer(
  name="vigil",
  help="Adaptive static-analysis guard that learns from feedback",
  no_args_is_help=True,
)
rules_app = typer.Typer(help="List and edit rule definitions", no_args_is_help=True)
exclude_app = typer.Typer(help="Manage path and rule exclusions", no_args_is_help=True)
migrate_app = typer.Typer(help="Import, export and restore guard state", no_args_is_help=True)
app.add_typer(rules_app, name="rules")
app.add_typer(exclude_app, name="exclude")
app.add_typer(migrate_app, name="migrate")

console = Console()
err_console = Console(stderr=True)


@dataclass
class _State:
  project_root: Path
  settings: Settings
  debug: bool


def _is_debug() -> bool:
  return os.environ.get("VIGIL_DEBUG", "").lower() in ("1", "true", "yes")


def _configure_logging(level: str) -> None:
  logging.basicConfig(
    level=level,
    format="%(message)s",
    handlers=[RichHandler(console=err_console, show_path=False)],
    force=True,
  )


def version_callback(value: bool) -> None:
  if value:
    console.print(f"vigil {__version__}")
    raise typer.Exit()


@app.callback()
def main(
  ctx: typer.Context,
  project: Path = typer.Option(
    Path("."), "--project", "-C", help="Project root holding the guard data"
  ),
  config: Path = typer.Option(None, "--config", "-c", help="Config file path"),
  verbose: bool = typer.Option(False, "--verbose", help="Log debug messages"),
  debug: bool = typer.Option(False, "--debug", "-d", help="Show full traceback on errors"),
  version: bool = typer.Option(None, "--version", "-v", callback=version_callback, is_eager=True),
) -> None:
  """Check source files against learned guard rules."""
  try:
    settings = load_config(config, project)
  except (OSError, ValueError) as e:
    err_console.print(f"[red]Error:[/red] {e}")
    raise typer.Exit(1) from None

  _configure_logging("DEBUG" if verbose else settings.log_level)
  ctx.obj = _State(project_root=project.resolve(), settings=settings, debug=debug or _is_debug())


def _state(ctx: typer.Context) -> _State:
  return ctx.find_root().obj


def _checker(ctx: typer.Context) -> GuardChecker:
  state = _state(ctx)
  return GuardChecker(state.project_root, state.settings)


def _fail(ctx: typer.Context, error: Exception) -> NoReturn:
  err_console.print(f"[red]Error:[/red] {error}")
  if _state(ctx).debug:
    err_console.print("\n[dim]Traceback:[/dim]")
    err_console.print(traceback.format_exc())
  raise typer.Exit(1) from None


@app.command()
def check(
  ctx: typer.Context,
  files: Optional[list[str]] = typer.Argument(
    None,
    help="Files, directories or globs under the project root; omit to audit the whole project",
  ),
  scope: Dimension = typer.Option(Dimension.FILE, "--scope", "-s", help="Review scope"),
  format_type: str = typer.Option(
    "terminal", "--format", help="Output format: terminal, json, markdown, github"
  ),
  summary: bool = typer.Option(False, "--summary", help="Append an AI summary per file"),
  no_record: bool = typer.Option(False, "--no-record", help="Do not append runs to history"),
  exit_code: bool = typer.Option(
    False, "--exit-code", help="Exit with 1 when an error-severity violation remains"
  ),
) -> None:
  """Check files and report violations, errors first."""
  state = _state(ctx)
  checker = _checker(ctx)

  try:
    formatter = get_formatter(format_type)
    if files:
      paths = resolve_patterns(files, state.project_root)
      if not paths:
        raise SourceFileError(f"No files matched: {', '.join(files)}")
      reports = [checker.audit_file(p, scope, record=not no_record) for p in paths]
    else:
      reports = checker.audit_project(
        scope if scope != Dimension.FILE else Dimension.PROJECT,
        record=not no_record,
      )
  except (SourceFileError, ValueError) as e:
    _fail(ctx, e)

  if summary or state.settings.ai_summary:
    reports = _summarize(state, reports)

  output = formatter.format(reports)
  if output:
    typer.echo(output)

  if exit_code and any(r.has_errors for r in reports):
    raise typer.Exit(1)


def _summarize(state: _State, reports: list[AuditReport]) -> list[AuditReport]:
  """Attach AI summaries; failures are reported and the findings kept."""
  ProviderRegistry.load_all()
  try:
    provider: SummaryProvider = get_provider(state.settings.provider, state.settings.model)
  except (ProviderNotFoundError, ProviderUnavailableError) as e:
    err_console.print(f"[yellow]Summary skipped:[/yellow] {e}")
    return reports

  summarized = []
  with err_console.status(f"Summarizing with {provider.name}..."):
    for report in reports:
      try:
        code = read_source(state.project_root / report.file_path)
        summarized.append(with_summary(report, code, provider))
      except Exception as e:
        err_console.print(f"[yellow]Summary failed for {report.file_path}:[/yellow] {e}")
        summarized.append(report)
  return summarized


@app.command()
def feedback(
  ctx: typer.Context,
  rule_id: str = typer.Argument(..., help="Rule the verdict is about"),
  verdict: Verdict = typer.Argument(..., help="correct, falsePositive or falseNegative"),
) -> None:
  """Record a verdict on a reported violation."""
  if _checker(ctx).feedback_violation(rule_id, verdict):
    console.print(f"Recorded {verdict.value} for {rule_id}.")
  else:
    console.print(f"[yellow]No statistics for {rule_id} yet; feedback ignored.[/yellow]")


@app.command()
def report(
  ctx: typer.Context,
  as_json: bool = typer.Option(False, "--json", help="Print the full report as JSON"),
) -> None:
  """Show rule accuracy and recommendations."""
  data = _checker(ctx).generate_learning_report()
  if as_json:
    console.print_json(json.dumps(data))
    return

  table = Table(title=f"Rule statistics ({data['totalRules']} tracked)", header_style="bold")
  for column in ("Rule", "Triggered", "Feedback", "TP", "FP", "FN", "Precision", "Recall", "F1"):
    table.add_column(column, justify="left" if column == "Rule" else "right")

  for rule_id, entry in sorted(data["allStats"].items()):
    stats, metrics = entry["stats"], entry["metrics"]
    table.add_row(
      rule_id,
      str(stats["triggeredCount"]),
      str(stats["feedbackCount"]),
      str(stats["truePositives"]),
      str(stats["falsePositives"]),
      str(stats["falseNegatives"]),
      f"{metrics['precision']:.2f}",
      f"{metrics['recall']:.2f}",
      f"{metrics['f1']:.2f}",
    )
  console.print(table)

  if not data["recommendations"]:
    console.print("\n[green]No problematic rules.[/green]")
    return
  console.print("\n[bold]Recommendations[/bold]")
  for rec in data["recommendations"]:
    console.print(f"  {rec['ruleId']}: {rec['recommendation']} (f1 {rec['metrics']['f1']:.2f})")


@app.command()
def apply(
  ctx: typer.Context,
  rule_id: str = typer.Argument(..., help="Rule to act on"),
  recommendation: Recommendation = typer.Argument(..., help="disable, expand or tune"),
) -> None:
  """Apply a recommendation to a rule."""
  changed = _checker(ctx).apply_recommendation(rule_id, recommendation)
  if recommendation == Recommendation.DISABLE:
    console.print(f"{rule_id} {'disabled' if changed else 'was already disabled'}.")
  else:
    console.print(f"{rule_id} needs {recommendation.value}; edit its rule definition.")


@app.command()
def history(
  ctx: typer.Context,
  file: str = typer.Option(None, "--file", help="Only runs for this project-relative path"),
  limit: int = typer.Option(20, "--limit", "-n", help="Number of recent runs"),
  clear: bool = typer.Option(False, "--clear", help="Delete all recorded runs"),
) -> None:
  """Show or clear recorded runs."""
  recorder = _checker(ctx).recorder
  if clear:
    recorder.clear_runs()
    console.print("Run history cleared.")
    return

  runs = recorder.runs_for_file(file)[-limit:] if file else recorder.recent_runs(limit)
  table = Table(header_style="bold")
  table.add_column("Run")
  table.add_column("File")
  table.add_column("At")
  table.add_column("Violations", justify="right")
  for run in runs:
    table.add_row(run.id, run.file_path, run.triggered_at, str(len(run.violations)))
  console.print(table)

  stats = recorder.stats()
  console.print(
    f"\n[dim]{stats['totalRuns']} run(s), {stats['totalViolations']} violation(s), "
    f"{stats['averageViolationsPerRun']} per run[/dim]"
  )


@rules_app.command("list")
def rules_list(
  ctx: typer.Context,
  language: str = typer.Option(None, "--language", "-l", help="Only rules for this language"),
) -> None:
  """List rule definitions."""
  store = _checker(ctx).rules
  rules = store.rules_for_language(language) if language else store.load().rules

  table = Table(header_style="bold")
  table.add_column("Rule")
  table.add_column("Severity")
  table.add_column("Languages")
  table.add_column("Dimension")
  table.add_column("Message", min_width=40)
  for rule_id, rule in sorted(rules.items()):
    table.add_row(
      rule_id,
      rule.severity.value,
      ", ".join(rule.languages),
      rule.dimension.value if rule.dimension else "-",
      rule.message,
    )
  console.print(table)


@rules_app.command("add")
def rules_add(
  ctx: typer.Context,
  rule_id: str = typer.Argument(..., help="Rule ID"),
  message: str = typer.Option(..., "--message", "-m", help="Message shown on violations"),
  pattern: str = typer.Option(..., "--pattern", "-p", help="Regex matched per line"),
  languages: list[str] = typer.Option(..., "--language", "-l", help="Language tag (repeatable)"),
  severity: str = typer.Option("warning", "--severity", help="error or warning"),
  dimension: str = typer.Option(None, "--dimension", help="file, target or project"),
  note: str = typer.Option(None, "--note", help="Free-form note"),
) -> None:
  """Add or replace a rule."""
  fields = {
    "message": message,
    "pattern": pattern,
    "languages": languages,
    "severity": severity,
    "dimension": dimension,
    "note": note,
  }
  try:
    rid, rule = _checker(ctx).rules.upsert(rule_id, fields)
  except RuleValidationError as e:
    _fail(ctx, e)
  console.print(f"Saved rule {rid} ({rule.severity.value}).")


@exclude_app.command("path")
def exclude_path(
  ctx: typer.Context,
  pattern: str = typer.Argument(..., help="Glob such as 'Pods/**'"),
  reason: str = typer.Option("", "--reason", "-r"),
) -> None:
  """Skip every file matching a glob."""
  added = _checker(ctx).exclusions.add_path_exclusion(pattern, reason)
  console.print(f"Path exclusion {pattern} {'added' if added else 'already present'}.")


@exclude_app.command("rule")
def exclude_rule(
  ctx: typer.Context,
  file_path: str = typer.Argument(..., help="Project-relative file path"),
  rule_id: str = typer.Argument(..., help="Rule to disable for that file"),
  reason: str = typer.Option("", "--reason", "-r"),
) -> None:
  """Disable one rule for one file."""
  added = _checker(ctx).exclusions.add_rule_exclusion(file_path, rule_id, reason)
  console.print(f"Rule exclusion {file_path}:{rule_id} {'added' if added else 'already present'}.")


@exclude_app.command("global")
def exclude_global(
  ctx: typer.Context,
  rule_id: str = typer.Argument(..., help="Rule to disable everywhere"),
  reason: str = typer.Option("", "--reason", "-r"),
) -> None:
  """Disable a rule for every file."""
  added = _checker(ctx).exclusions.add_global_rule_exclusion(rule_id, reason)
  console.print(f"Global exclusion {rule_id} {'added' if added else 'already present'}.")


@exclude_app.command("remove")
def exclude_remove(
  ctx: typer.Context,
  kind: ExclusionKind = typer.Argument(..., help="path, rule or globalRule"),
  key: str = typer.Argument(..., help="Pattern, 'filePath:ruleId' or rule ID"),
) -> None:
  """Remove an exclusion."""
  removed = _checker(ctx).exclusions.remove_exclusion(kind, key)
  console.print(f"{'Removed' if removed else 'No'} {kind.value} exclusion {key}.")


@exclude_app.command("list")
def exclude_list(ctx: typer.Context) -> None:
  """List all exclusions."""
  document = _checker(ctx).exclusions.get_exclusions()
  table = Table(header_style="bold")
  table.add_column("Kind")
  table.add_column("Key")
  table.add_column("Reason")
  table.add_column("Added")
  for e in document.path_exclusions:
    table.add_row("path", e.pattern, e.reason, e.added_at)
  for e in document.rule_exclusions:
    table.add_row("rule", e.key, e.reason, e.added_at)
  for e in document.global_rule_exclusions:
    table.add_row("globalRule", e.rule_id, e.reason, e.added_at)
  console.print(table)


def _migrator(ctx: typer.Context) -> GuardMigrator:
  return GuardMigrator(_checker(ctx).store)


def _print_result(step: str, result: MigrationResult) -> bool:
  if result.success:
    details = ", ".join(
      f"{k}={v}" for k, v in result.details.items() if not isinstance(v, (list, dict))
    )
    console.print(f"[green]{step}: ok[/green] {details}".rstrip())
  else:
    console.print(f"[red]{step}: failed[/red] {result.error}")
  return result.success


def _read_json_list(ctx: typer.Context, path: Path, key: str) -> list:
  try:
    data = json.loads(path.read_text(encoding="utf-8"))
  except (OSError, ValueError) as e:
    _fail(ctx, e)
  if isinstance(data, dict):
    return data.get(key) or []
  return data if isinstance(data, list) else []


@migrate_app.command("import-rules")
def migrate_import_rules(
  ctx: typer.Context,
  rules_file: Path = typer.Argument(..., help="JSON list of {id|name, pattern, severity}"),
  no_baseline: bool = typer.Option(False, "--no-baseline", help="Do not seed learner records"),
) -> None:
  """Register legacy rules with the learner."""
  rules = _read_json_list(ctx, rules_file, "rules")
  result = _migrator(ctx).import_rules(rules, initialize_baseline=not no_baseline)
  _print_result("import-rules", result)


@migrate_app.command("learn")
def migrate_learn(
  ctx: typer.Context,
  violations_file: Path = typer.Argument(..., help="JSON list of violations or runs"),
) -> None:
  """Replay historical violations into trigger counts."""
  records = _read_json_list(ctx, violations_file, "runs")
  _print_result("learn", _migrator(ctx).learn_from_violations(records))


@migrate_app.command("import-exclusions")
def migrate_import_exclusions(
  ctx: typer.Context,
  config_file: Path = typer.Argument(..., help="Exclusions JSON file"),
) -> None:
  """Merge exclusions from a shared file."""
  if not _print_result("import-exclusions", _migrator(ctx).import_exclusions(config_file)):
    raise typer.Exit(1)


@migrate_app.command("export")
def migrate_export(
  ctx: typer.Context,
  output: Path = typer.Argument(..., help="Backup file to write"),
) -> None:
  """Export learner state, exclusions and metrics."""
  if not _print_result("export", _migrator(ctx).export_learner_state(output)):
    raise typer.Exit(1)


@migrate_app.command("restore")
def migrate_restore(
  ctx: typer.Context,
  backup: Path = typer.Argument(..., help="Backup file to restore"),
) -> None:
  """Restore learner state from a backup."""
  if not _print_result("restore", _migrator(ctx).restore_from_backup(backup)):
    raise typer.Exit(1)


@migrate_app.command("full")
def migrate_full(
  ctx: typer.Context,
  rules_file: Path = typer.Option(None, "--rules"),
  violations_file: Path = typer.Option(None, "--violations"),
  exclusions_file: Path = typer.Option(None, "--exclusions"),
  output_dir: Path = typer.Option(None, "--output-dir"),
) -> None:
  """Run every migration step, then write a backup."""
  results = _migrator(ctx).run_full_migration(
    rules_file=rules_file,
    violations_file=violations_file,
    exclusions_file=exclusions_file,
    output_dir=output_dir,
  )
  ok = all([_print_result(step, result) for step, result in results["steps"].items()])
  if not ok:
    raise typer.Exit(1)


if __name__ == "__main__":
  app()
