"""Shared prompt construction for summaries."""

from vigil.models import AuditReport

MAX_CODE_CHARS = 20_000


def build_system_prompt() -> str:
  """Build the system prompt for summarizing guard findings."""
  return """You are an expert iOS and general code reviewer. A static checker has
already reported findings for one source file. Explain them briefly.

Rules:
- Do not invent new findings and do not dispute the checker's list.
- Group related findings and say which to fix first.
- If there are no findings, say so in one sentence.

Respond with JSON in this exact format:
{
  "summary": "Two or three sentences on what to fix and why"
}"""


def build_user_prompt(report: AuditReport, code: str) -> str:
  """Build the user prompt with the findings and the checked source."""
  if report.violations:
    findings = "\n".join(
      f"- line {v.line} [{v.severity.value}] {v.rule_id}: {v.message}"
      for v in report.violations
    )
  else:
    findings = "- none"

  excerpt = code[:MAX_CODE_CHARS]
  truncated = "\n(truncated)" if len(code) > MAX_CODE_CHARS else ""

  return f"""File: {report.file_path} ({report.language})

Findings:
{findings}

Source:
```
{excerpt}
```{truncated}"""
