"""Configuration management using Pydantic Settings"""

from decimal import Decimal

from pydantic_settings import BaseSettings, SettingsConfigDict

from safespend.domain.models import PacingPolicy


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # External Services
    ledger_api_base: str = "http://localhost:8001"

    # Service
    service_name: str = "safespend-engine"
    log_level: str = "INFO"

    # HTTP Client
    http_timeout_seconds: float = 5.0
    ledger_max_retries: int = 3
    ledger_backoff_base: float = 0.5  # Exponential backoff base in seconds

    # Forecast
    history_window_days: int = 120
    safety_buffer: Decimal = Decimal("100.00")
    default_variable_budget: Decimal = Decimal("500.00")

    # Pacing heuristics (tunable, defaults match production behaviour)
    adjustment_coefficient: Decimal = Decimal("0.5")
    min_adjustment: Decimal = Decimal("0.85")
    max_adjustment: Decimal = Decimal("1.15")
    roll_cap_multiplier: Decimal = Decimal("1.5")

    # Anomaly detection
    zscore_threshold: float = 2.0
    iqr_multiplier: float = 1.5
    anomaly_min_samples: int = 3

    def pacing_policy(self) -> PacingPolicy:
        return PacingPolicy(
            adjustment_coefficient=self.adjustment_coefficient,
            min_adjustment=self.min_adjustment,
            max_adjustment=self.max_adjustment,
            roll_cap_multiplier=self.roll_cap_multiplier,
        )


settings = Settings()
