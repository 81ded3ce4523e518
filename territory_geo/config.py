"""
Central configuration loaded from environment variables with sensible defaults.
All secrets come from env vars; no hardcoded credentials.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache


@dataclass(frozen=True)
class DatabaseConfig:
    host: str = os.getenv("PG_HOST", "localhost")
    port: int = int(os.getenv("PG_PORT", "5432"))
    user: str = os.getenv("PG_USER", "territory")
    password: str = os.getenv("PG_PASSWORD", "territory")
    database: str = os.getenv("PG_DATABASE", "territory_geo")
    min_pool_size: int = int(os.getenv("PG_POOL_MIN", "1"))
    max_pool_size: int = int(os.getenv("PG_POOL_MAX", "5"))

    @property
    def dsn(self) -> str:
        return f"postgresql://{self.user}:{self.password}@{self.host}:{self.port}/{self.database}"


@dataclass(frozen=True)
class AssignmentConfig:
    # Added once per extra signal that lands on the same territory
    agreement_bonus: float = float(os.getenv("ASSIGN_AGREEMENT_BONUS", "0.05"))
    use_historical: bool = os.getenv("ASSIGN_USE_HISTORICAL", "true").lower() == "true"
    # Records resolved per pipeline run (0 = all unassigned)
    batch_size: int = int(os.getenv("ASSIGN_BATCH_SIZE", "500"))


@dataclass(frozen=True)
class ValidationConfig:
    # Degrees, applied to lat and lng independently
    placeholder_tolerance: float = float(os.getenv("VALIDATE_PLACEHOLDER_TOLERANCE", "0.05"))
    auto_correct: bool = os.getenv("VALIDATE_AUTO_CORRECT", "false").lower() == "true"
    remove_international: bool = os.getenv("VALIDATE_REMOVE_INTERNATIONAL", "false").lower() == "true"
    batch_size: int = int(os.getenv("VALIDATE_BATCH_SIZE", "0"))


@dataclass(frozen=True)
class DissolveConfig:
    dry_run: bool = os.getenv("DISSOLVE_DRY_RUN", "false").lower() == "true"


@dataclass(frozen=True)
class SchedulerConfig:
    enabled: bool = os.getenv("SCHEDULER_ENABLED", "false").lower() == "true"
    interval_minutes: int = int(os.getenv("SCHEDULER_INTERVAL_MIN", "60"))


@dataclass(frozen=True)
class APIConfig:
    host: str = os.getenv("API_HOST", "0.0.0.0")
    port: int = int(os.getenv("API_PORT", "8000"))


@dataclass(frozen=True)
class Settings:
    db: DatabaseConfig = field(default_factory=DatabaseConfig)
    assignment: AssignmentConfig = field(default_factory=AssignmentConfig)
    validation: ValidationConfig = field(default_factory=ValidationConfig)
    dissolve: DissolveConfig = field(default_factory=DissolveConfig)
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
    api: APIConfig = field(default_factory=APIConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    env: str = os.getenv("APP_ENV", "development")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Singleton settings instance."""
    return Settings()
