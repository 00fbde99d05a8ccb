"""Locating and reading source files to check."""

import glob as globmod
from pathlib import Path
from typing import Iterable

_EXTENSION_LANGUAGES: dict[str, str] = {
  "swift": "swift",
  "m": "objc",
  "mm": "objc",
  "h": "objc",
  "js": "javascript",
  "mjs": "javascript",
  "cjs": "javascript",
  "ts": "typescript",
  "tsx": "typescript",
  "py": "python",
  "java": "java",
  "kt": "kotlin",
  "kts": "kotlin",
  "go": "go",
  "rs": "rust",
}

UNKNOWN_LANGUAGE = "unknown"

# Dependency, build and VCS directories never scanned by a project audit
DEFAULT_SKIP_DIRS: frozenset[str] = frozenset({
  "Pods",
  "node_modules",
  ".git",
  "build",
  "DerivedData",
  ".build",
  "Carthage",
})

# Xcode bundles are directories with these suffixes
_SKIP_DIR_SUFFIXES = (".xcodeproj", ".xcworkspace", ".xcassets")


class SourceFileError(Exception):
  """A source file could not be read."""


def detect_language(path: str | Path) -> str:
  """Map a file extension to a language tag ('unknown' if unmapped)."""
  suffix = Path(path).suffix.lower().lstrip(".")
  return _EXTENSION_LANGUAGES.get(suffix, UNKNOWN_LANGUAGE)


def is_source_file(path: Path) -> bool:
  return detect_language(path) != UNKNOWN_LANGUAGE


def relative_path(path: Path, base_path: Path) -> str:
  """Path relative to ``base_path`` in POSIX form, or the path itself."""
  try:
    return path.resolve().relative_to(base_path.resolve()).as_posix()
  except ValueError:
    return path.as_posix()


def _is_skipped_dir(name: str, skip_dirs: Iterable[str]) -> bool:
  return name in skip_dirs or name.endswith(_SKIP_DIR_SUFFIXES)


def collect_source_files(
  root: Path,
  skip_dirs: Iterable[str] = DEFAULT_SKIP_DIRS,
) -> list[Path]:
  """Find every file with a known language under ``root``.

  Directories named in ``skip_dirs`` and Xcode bundles are not entered.

  Returns:
    Sorted file paths.
  """
  skip = frozenset(skip_dirs)
  result: list[Path] = []

  for path in sorted(root.rglob("*")):
    rel_parts = path.relative_to(root).parts
    if any(_is_skipped_dir(part, skip) for part in rel_parts[:-1]):
      continue
    if path.is_dir() or not is_source_file(path):
      continue
    result.append(path)

  return result


def resolve_patterns(patterns: list[str], base_path: Path) -> list[Path]:
  """Expand file arguments and glob patterns into unique existing files.

  Directory arguments expand to every source file beneath them.
  """
  seen: set[Path] = set()
  result: list[Path] = []

  for pattern in patterns:
    for path in _expand_pattern(pattern, base_path):
      candidates = collect_source_files(path) if path.is_dir() else [path]
      for candidate in candidates:
        if candidate not in seen and candidate.is_file():
          seen.add(candidate)
          result.append(candidate)

  return result


def _expand_pattern(pattern: str, base_path: Path) -> list[Path]:
  p = Path(pattern)
  glob_path = p if p.is_absolute() else base_path / p

  if any(c in pattern for c in "*?["):
    return [Path(match) for match in sorted(globmod.glob(str(glob_path), recursive=True))]
  return [glob_path]


def read_source(path: Path) -> str:
  """Read a source file as UTF-8 text.

  Raises:
    SourceFileError: The file is missing, unreadable or not text.
  """
  try:
    return path.read_text(encoding="utf-8")
  except (OSError, UnicodeDecodeError) as e:
    raise SourceFileError(f"Cannot read {path}: {e}") from e
