"""Tests for summary providers."""

from unittest.mock import MagicMock, patch

import httpx
import pytest
from vigil.models import AuditReport
from vigil.providers import (
  ProviderNotFoundError,
  ProviderRegistry,
  ProviderUnavailableError,
  SummaryProvider,
  detect_available_provider,
  get_provider,
  list_providers,
  provider_status,
  register_provider,
)
from vigil.providers.anthropic import AnthropicProvider
from vigil.providers.ollama import OllamaProvider
from vigil.providers.parser import extract_json
from vigil.providers.prompt import MAX_CODE_CHARS, build_system_prompt, build_user_prompt
from vigil.review import summarize, with_summary


class MockProvider(SummaryProvider):
  def __init__(self, model: str | None = None, reply: str = '{"summary": "Fix line 12."}'):
    self._model = model or "mock-model"
    self._available = True
    self.reply = reply
    self.prompts: list[tuple[str, str]] = []

  @property
  def name(self) -> str:
    return "mock"

  @property
  def model(self) -> str:
    return self._model

  def is_available(self) -> bool:
    return self._available

  def complete(self, system: str, user: str) -> str:
    self.prompts.append((system, user))
    return self.reply


class UnavailableProvider(MockProvider):
  def is_available(self) -> bool:
    return False


@pytest.fixture
def no_api_keys(monkeypatch: pytest.MonkeyPatch) -> None:
  for var in ("ANTHROPIC_API_KEY", "OPENAI_API_KEY", "GEMINI_API_KEY"):
    monkeypatch.delenv(var, raising=False)


class TestProviderRegistry:
  def test_register_and_get_provider(self) -> None:
    register_provider("mock", lambda m: MockProvider(m))
    assert get_provider("mock").name == "mock"

  def test_provider_not_found(self) -> None:
    with pytest.raises(ProviderNotFoundError):
      get_provider("nonexistent_provider_xyz")

  def test_list_providers(self) -> None:
    register_provider("mock2", lambda m: MockProvider(m))
    assert "mock2" in list_providers()

  def test_provider_with_model(self) -> None:
    register_provider("mock3", lambda m: MockProvider(m))
    assert get_provider("mock3", "custom-model").model == "custom-model"

  def test_unavailable_provider(self) -> None:
    register_provider("mock-down", lambda m: UnavailableProvider(m))
    with pytest.raises(ProviderUnavailableError, match="mock-down"):
      get_provider("mock-down")

  def test_load_all_registers_builtins(self) -> None:
    ProviderRegistry.load_all()
    assert {"anthropic", "openai", "gemini", "ollama"} <= set(list_providers())


class TestDetection:
  def test_status_follows_env(
    self, no_api_keys: None, monkeypatch: pytest.MonkeyPatch
  ) -> None:
    ProviderRegistry.load_all()
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")

    with patch.object(OllamaProvider, "is_available", return_value=False):
      statuses = {s.name: s for s in provider_status()}
      detected = detect_available_provider()

    assert not statuses["anthropic"].available
    assert statuses["anthropic"].reason == "ANTHROPIC_API_KEY not set"
    assert statuses["openai"].available
    assert detected == "openai"

  def test_nothing_available(self, no_api_keys: None) -> None:
    ProviderRegistry.load_all()

    with patch.object(OllamaProvider, "is_available", return_value=False):
      assert detect_available_provider() is None

  def test_unavailable_message_names_env_var(self, no_api_keys: None) -> None:
    ProviderRegistry.load_all()

    with patch.object(OllamaProvider, "is_available", return_value=False):
      with pytest.raises(ProviderUnavailableError, match="Set ANTHROPIC_API_KEY"):
        get_provider("anthropic")


class TestExtractJson:
  def test_plain_object(self) -> None:
    assert extract_json('{"summary": "ok"}') == {"summary": "ok"}

  def test_fenced_object(self) -> None:
    text = 'Here you go:\n```json\n{"summary": "ok"}\n```\nThanks'
    assert extract_json(text) == {"summary": "ok"}

  def test_object_in_prose(self) -> None:
    assert extract_json('Result: {"summary": "ok"} done') == {"summary": "ok"}

  def test_no_object(self) -> None:
    with pytest.raises(ValueError):
      extract_json("no json here")

  def test_array_rejected(self) -> None:
    with pytest.raises(ValueError):
      extract_json("[1, 2]")


class TestPrompts:
  def test_user_prompt_lists_findings(self, sample_report: AuditReport) -> None:
    prompt = build_user_prompt(sample_report, "int main() {}")

    assert "File: App/ViewController.m (objc)" in prompt
    assert "line 12 [error] no-main-thread-sync" in prompt
    assert "int main() {}" in prompt

  def test_long_source_truncated(self, sample_report: AuditReport) -> None:
    prompt = build_user_prompt(sample_report, "x" * (MAX_CODE_CHARS + 10))
    assert prompt.endswith("(truncated)")

  def test_system_prompt_requests_json(self) -> None:
    assert '"summary"' in build_system_prompt()


class TestSummarize:
  def test_summary_from_reply(self, sample_report: AuditReport) -> None:
    provider = MockProvider()

    assert summarize(sample_report, "code", provider) == "Fix line 12."
    (system, user) = provider.prompts[0]
    assert "no-main-thread-sync" in user

  def test_with_summary_keeps_findings(self, sample_report: AuditReport) -> None:
    report = with_summary(sample_report, "code", MockProvider())

    assert report.ai_summary == "Fix line 12."
    assert report.violations == sample_report.violations
    assert sample_report.ai_summary is None

  def test_reply_without_summary(self, sample_report: AuditReport) -> None:
    with pytest.raises(ValueError, match="no summary"):
      summarize(sample_report, "code", MockProvider(reply='{"other": 1}'))


class TestAnthropicProvider:
  def test_availability_from_env(
    self, no_api_keys: None, monkeypatch: pytest.MonkeyPatch
  ) -> None:
    assert not AnthropicProvider().is_available()
    monkeypatch.setenv("ANTHROPIC_API_KEY", "key")
    assert AnthropicProvider().is_available()

  def test_complete(self) -> None:
    provider = AnthropicProvider("claude-test")
    client = MagicMock()
    client.messages.create.return_value.content = [MagicMock(text='{"summary": "s"}')]
    provider._client = client

    assert provider.complete("sys", "user") == '{"summary": "s"}'
    kwargs = client.messages.create.call_args.kwargs
    assert kwargs["model"] == "claude-test"
    assert kwargs["system"] == "sys"


class TestOllamaProvider:
  def test_complete(self) -> None:
    response = MagicMock()
    response.json.return_value = {"response": '{"summary": "s"}'}

    with patch("vigil.providers.ollama.httpx.post", return_value=response) as post:
      assert OllamaProvider().complete("sys", "user") == '{"summary": "s"}'

    assert post.call_args.kwargs["json"]["prompt"] == "sys\n\nuser"

  def test_retries_connect_errors(self) -> None:
    response = MagicMock()
    response.json.return_value = {"response": "ok"}
    error = httpx.ConnectError("refused")

    with patch("vigil.providers.ollama.httpx.post", side_effect=[error, response]) as post:
      assert OllamaProvider().complete("sys", "user") == "ok"

    assert post.call_count == 2

  def test_gives_up_after_retries(self) -> None:
    with patch(
      "vigil.providers.ollama.httpx.post",
      side_effect=httpx.ConnectError("refused"),
    ):
      with pytest.raises(httpx.ConnectError):
        OllamaProvider().complete("sys", "user")

  def test_unreachable_host(self) -> None:
    with patch(
      "vigil.providers.ollama.httpx.get",
      side_effect=httpx.ConnectError("refused"),
    ):
      assert not OllamaProvider().is_available()
