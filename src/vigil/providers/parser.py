"""Parsing of provider replies."""

import json
import re
from typing import Any

MAX_RESPONSE_LENGTH = 1_000_000  # 1MB limit for regex processing


def extract_json(text: str) -> dict[str, Any]:
  """Extract a JSON object from a reply, tolerating markdown fences.

  Raises:
    ValueError: No JSON object could be recovered.
  """
  text = text.strip()

  if len(text) > MAX_RESPONSE_LENGTH:
    raise ValueError(f"Response too large ({len(text)} bytes), max {MAX_RESPONSE_LENGTH}")

  candidates = [text]
  fenced = re.search(r"```(?:json)?\s*\n?(.*?)\n?```", text, re.DOTALL)
  if fenced:
    candidates.append(fenced.group(1).strip())
  braced = re.search(r"\{.*\}", text, re.DOTALL)
  if braced:
    candidates.append(braced.group(0))

  for candidate in candidates:
    try:
      data = json.loads(candidate)
    except json.JSONDecodeError:
      continue
    if isinstance(data, dict):
      return data

  raise ValueError(f"Could not extract valid JSON from response: {text[:200]}...")
