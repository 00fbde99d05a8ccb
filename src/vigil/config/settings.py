"""Application settings."""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from vigil.store import DEFAULT_DATA_DIR

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Settings(BaseModel):
  """Application configuration."""

  model_config = ConfigDict(extra="ignore")

  data_dir: str = DEFAULT_DATA_DIR
  max_runs: int = Field(default=200, ge=1)
  trust_threshold: float = Field(default=0.4, ge=0.0, le=1.0)
  f1_threshold: float = Field(default=0.6, ge=0.0, le=1.0)
  snippet_length: int = Field(default=120, ge=1)
  ai_summary: bool = False
  provider: str = "anthropic"
  model: str | None = None
  log_level: str = "WARNING"

  @field_validator("log_level")
  @classmethod
  def _check_log_level(cls, value: str) -> str:
    level = value.upper()
    if level not in _LOG_LEVELS:
      raise ValueError(f"log_level must be one of {', '.join(_LOG_LEVELS)}")
    return level
