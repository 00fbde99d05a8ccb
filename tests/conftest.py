"""Pytest fixtures."""

from pathlib import Path

import pytest
from vigil.guard import GuardChecker
from vigil.models import AuditReport, Dimension, Severity, Violation
from vigil.store import GuardStore


@pytest.fixture
def store(tmp_path: Path) -> GuardStore:
  return GuardStore(tmp_path)


@pytest.fixture
def checker(tmp_path: Path) -> GuardChecker:
  checker = GuardChecker(tmp_path)
  checker.rules.upsert("no-todo", {
    "message": "Resolve TODO before merging",
    "severity": "error",
    "pattern": r"TODO",
    "languages": ["python"],
    "dimension": "file",
  })
  return checker


@pytest.fixture
def sample_report() -> AuditReport:
  return AuditReport(
    file_path="App/ViewController.m",
    language="objc",
    scope=Dimension.FILE,
    violations=[
      Violation(
        rule_id="no-main-thread-sync",
        severity=Severity.ERROR,
        message="dispatch_sync onto the main queue deadlocks",
        line=12,
        snippet="dispatch_sync(dispatch_get_main_queue(), ^{",
        trust_score=0.5,
      ),
      Violation(
        rule_id="objc-assign-object",
        severity=Severity.WARNING,
        message="assign on an object property leaves a dangling pointer",
        line=4,
        snippet="@property (nonatomic, assign) NSString *title;",
        trust_score=0.5,
      ),
    ],
    run_id="run_1_abcdef",
  )
