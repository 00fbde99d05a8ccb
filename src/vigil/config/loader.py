"""Configuration file loading."""

from pathlib import Path

import yaml

from vigil.config.settings import Settings

CONFIG_FILENAMES = [".vigil.yaml", ".vigil.yml", "vigil.yaml", "vigil.yml"]


def find_config_file(
  config_path: Path | None = None,
  project_root: Path | None = None,
) -> Path | None:
  """Find config file path, or None if no config exists."""
  if config_path and config_path.exists():
    return config_path

  root = project_root or Path.cwd()
  for filename in CONFIG_FILENAMES:
    path = root / filename
    if path.exists():
      return path

  return None


def load_config(
  config_path: Path | None = None,
  project_root: Path | None = None,
) -> Settings:
  """Load configuration from file or defaults.

  Raises:
    FileNotFoundError: An explicit config path does not exist.
    ValueError: The file is not a YAML mapping or holds invalid values.
  """
  if config_path and not config_path.exists():
    raise FileNotFoundError(f"Config file not found: {config_path}")

  path = find_config_file(config_path, project_root)
  if path:
    return _load_from_file(path)
  return Settings()


def _load_from_file(path: Path) -> Settings:
  """Load settings from a YAML file."""
  with open(path) as f:
    data = yaml.safe_load(f) or {}

  if not isinstance(data, dict):
    raise ValueError(f"Config file {path} must contain a mapping")

  return Settings(**data)
