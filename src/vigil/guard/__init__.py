"""Checking, exclusions, learning and run history for one project."""

from vigil.guard.checker import AUTO_DISABLE_REASON, GuardChecker, rank_violations
from vigil.guard.exclusions import ExclusionKind, ExclusionManager, glob_to_regex, is_pattern_match
from vigil.guard.learner import RuleLearner, compute_metrics
from vigil.guard.migrator import GuardMigrator
from vigil.guard.recorder import ViolationRecorder, new_run_id

__all__ = [
  "AUTO_DISABLE_REASON",
  "ExclusionKind",
  "ExclusionManager",
  "GuardChecker",
  "GuardMigrator",
  "RuleLearner",
  "ViolationRecorder",
  "compute_metrics",
  "glob_to_regex",
  "is_pattern_match",
  "new_run_id",
  "rank_violations",
]
