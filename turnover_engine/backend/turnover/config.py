from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # ---- App ----
    app_env: str = "local"  # local|dev|prod
    database_url: str = "sqlite:///./turnover.db"

    # ---- CORS (used by main.py) ----
    cors_allow_origins: list[str] | str = ["*"]

    # ---- Blueprint / reproducibility ----
    blueprint_version: str = "2025-09.v1"

    # ---- Readiness policy ----
    readiness_on_track_min: int = 70
    readiness_monitor_min: int = 40
    focus_rule: str = "most_open"  # most_open|earliest_open
    overdue_blocker_limit: int = 3
    blocker_limit: int = 5

    # ---- Application evaluation rubric ----
    max_rent_to_income_ratio: float = 0.28
    minimum_credit_score: int | None = 600
    max_evictions: int = 1
    violent_felony_lookback_years: int = 7
    deposit_cap_multiplier: float = 2.0

    # ---- Application storage ----
    application_store: str = "memory"  # memory|sql

    def model_post_init(self, __context) -> None:
        if not (0 <= self.readiness_monitor_min <= self.readiness_on_track_min <= 100):
            raise ValueError(
                "readiness thresholds must satisfy 0 <= monitor_min <= on_track_min <= 100"
            )
        if (self.focus_rule or "").strip().lower() not in ("most_open", "earliest_open"):
            raise ValueError("focus_rule must be one of: most_open, earliest_open")
        if self.overdue_blocker_limit < 0 or self.blocker_limit < 0:
            raise ValueError("blocker limits must be non-negative")

        env = (self.app_env or "local").strip().lower()
        is_prod = env in ("prod", "production")

        # Hard fail: wildcard CORS in prod
        if is_prod:
            origins = self.cors_allow_origins
            if origins == "*" or origins == ["*"] or (isinstance(origins, str) and "*" in origins):
                raise ValueError("SECURITY: cors_allow_origins wildcard is not allowed in prod")


settings = Settings()
