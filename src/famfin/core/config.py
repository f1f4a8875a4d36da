"""Configuration settings for FamFin."""

import os
from pathlib import Path

from pydantic import BaseModel, Field


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


class DatabaseConfig(BaseModel):
    """Database configuration."""

    url: str = Field(default_factory=lambda: os.getenv("FAMFIN_DB_URL", "sqlite:///data/famfin.db"))
    echo: bool = Field(default_factory=lambda: _env_flag("FAMFIN_DB_ECHO", "false"))


class BudgetConfig(BaseModel):
    """Budget tracking and chart defaults."""

    default_alert_threshold: float = Field(80.0, ge=0.0)
    chart_top_n: int = 8
    payee_summary_top_n: int = 15


class RulesConfig(BaseModel):
    """Categorisation rule configuration."""

    case_sensitive: bool = Field(default_factory=lambda: _env_flag("FAMFIN_RULES_CASE_SENSITIVE", "true"))
    update_batch_size: int = 100


class AppConfig(BaseModel):
    """Application configuration."""

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    budgets: BudgetConfig = Field(default_factory=BudgetConfig)
    rules: RulesConfig = Field(default_factory=RulesConfig)

    data_dir: Path = Field(default_factory=lambda: Path(os.getenv("FAMFIN_DATA_DIR", "data")))
    log_level: str = Field(default_factory=lambda: os.getenv("FAMFIN_LOG_LEVEL", "INFO").upper())

    max_upload_bytes: int = 10 * 1024 * 1024
    default_currency: str = "AUD"

    def ensure_dirs(self) -> None:
        """Create necessary directories."""
        self.data_dir.mkdir(exist_ok=True)
