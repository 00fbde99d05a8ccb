"""Optional LLM summary of a file's findings."""

import dataclasses

from vigil.models import AuditReport
from vigil.providers import SummaryProvider
from vigil.providers.parser import extract_json
from vigil.providers.prompt import build_system_prompt, build_user_prompt


def summarize(report: AuditReport, code: str, provider: SummaryProvider) -> str:
  """Ask a provider to explain the findings of one report.

  Raises:
    ValueError: The provider's reply holds no usable summary.
  """
  reply = provider.complete(build_system_prompt(), build_user_prompt(report, code))
  summary = extract_json(reply).get("summary")
  if not isinstance(summary, str) or not summary.strip():
    raise ValueError(f"{provider.name} returned no summary")
  return summary.strip()


def with_summary(report: AuditReport, code: str, provider: SummaryProvider) -> AuditReport:
  """Copy of the report with an AI summary appended after the findings."""
  return dataclasses.replace(report, ai_summary=summarize(report, code, provider))
