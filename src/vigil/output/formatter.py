"""Output formatting for audit reports."""

import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Sequence

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from vigil.models import AuditReport, Severity


class OutputFormatter(ABC):
  """Base output formatter."""

  @abstractmethod
  def format(self, reports: Sequence[AuditReport]) -> str:
    """Format audit reports for output."""
    ...


def _total_summary(reports: Sequence[AuditReport]) -> str:
  errors = sum(r.error_count for r in reports)
  warnings = sum(r.warning_count for r in reports)
  files = len(reports)
  if not errors and not warnings:
    return f"No issues found in {files} file{'s' if files != 1 else ''}."
  return (
    f"{errors + warnings} issue(s) in {files} file{'s' if files != 1 else ''}: "
    f"{errors} error, {warnings} warning."
  )


class TerminalFormatter(OutputFormatter):
  """Rich terminal output formatter."""

  SEVERITY_STYLES = {
    Severity.ERROR: "bold red",
    Severity.WARNING: "yellow",
  }

  def __init__(self, console: Console | None = None):
    self.console = console or Console()

  def format(self, reports: Sequence[AuditReport]) -> str:
    for report in reports:
      self._print_report(report)
    self.console.print(f"\n[dim]{_total_summary(reports)}[/dim]")
    return ""

  def _print_report(self, report: AuditReport) -> None:
    self.console.print()
    if not report.violations:
      self.console.print(f"[green]{report.file_path}: no issues found.[/green]")
    else:
      table = Table(
        title=f"{self._make_file_link(report.file_path)} ({report.language})",
        show_header=True,
        header_style="bold",
      )
      table.add_column("Severity", width=9)
      table.add_column("Line", width=6, justify="right")
      table.add_column("Rule", width=30)
      table.add_column("Issue", min_width=40)
      table.add_column("Trust", width=6, justify="right")

      for violation in report.violations:
        style = self.SEVERITY_STYLES.get(violation.severity, "")
        message = violation.message
        if violation.snippet:
          message += f"\n[dim]{violation.snippet}[/dim]"
        trust = f"{violation.trust_score:.2f}" if violation.trust_score is not None else "-"
        table.add_row(
          Text(violation.severity.value.upper(), style=style),
          str(violation.line),
          violation.rule_id,
          message,
          trust,
        )

      self.console.print(table)

    if report.ai_summary:
      self.console.print(Panel(
        report.ai_summary,
        title="[bold]AI summary[/bold]",
        border_style="blue",
      ))

  def _make_file_link(self, file_path: str) -> str:
    """Create a clickable file link for terminals that support hyperlinks."""
    url = Path(file_path).resolve().as_uri()
    return f"[link={url}]{file_path}[/link]"


class JsonFormatter(OutputFormatter):
  """JSON output formatter."""

  def format(self, reports: Sequence[AuditReport]) -> str:
    data = {
      "summary": _total_summary(reports),
      "files": [
        {
          "filePath": r.file_path,
          "language": r.language,
          "scope": r.scope.value,
          "runId": r.run_id,
          "summary": r.summary,
          "aiSummary": r.ai_summary,
          "violations": [v.to_document() for v in r.violations],
        }
        for r in reports
      ],
    }
    return json.dumps(data, indent=2)


class MarkdownFormatter(OutputFormatter):
  """Markdown output formatter."""

  def format(self, reports: Sequence[AuditReport]) -> str:
    lines = ["# Guard Report", "", _total_summary(reports), ""]

    for report in reports:
      lines.extend([f"## {report.file_path}", "", report.summary, ""])
      for v in report.violations:
        lines.append(f"- **[{v.severity.value.upper()}]** line {v.line} `{v.rule_id}`: {v.message}")
        if v.snippet:
          lines.append(f"  `{v.snippet}`")
      if report.violations:
        lines.append("")
      if report.ai_summary:
        lines.extend(["**AI summary:**", "", report.ai_summary, ""])

    return "\n".join(lines)


class GitHubFormatter(OutputFormatter):
  """GitHub Actions workflow command formatter for PR annotations."""

  def format(self, reports: Sequence[AuditReport]) -> str:
    lines = []
    for report in reports:
      for v in report.violations:
        level = "error" if v.severity == Severity.ERROR else "warning"
        location = f"file={v.file_path or report.file_path},line={v.line}"
        message = f"{v.rule_id}: {v.message}"
        message = message.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")
        lines.append(f"::{level} {location}::{message}")
    return "\n".join(lines)


def get_formatter(format_type: str) -> OutputFormatter:
  """Get formatter by type name."""
  formatters = {
    "terminal": TerminalFormatter,
    "json": JsonFormatter,
    "markdown": MarkdownFormatter,
    "github": GitHubFormatter,
  }
  formatter_class = formatters.get(format_type)
  if not formatter_class:
    raise ValueError(f"Unknown format: {format_type}")
  return formatter_class()
