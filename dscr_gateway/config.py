"""Configuration management using Pydantic Settings"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Service configuration loaded from environment variables.

    The domain engine never reads these directly; the API layer passes them
    through as explicit arguments.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Service
    service_name: str = "dscr-gateway"
    log_level: str = "INFO"

    # Rate solver defaults
    default_term_months: int = 24
    default_dscr_target: float = 1.25
    min_rate_percent: float = 1.0
    max_rate_percent: float = 10.0
    rate_tolerance: float = 0.0001  # Bisection bracket width, in percentage points

    # Income estimation
    outlier_strategy: str = "mad"  # mad | iqr
    monthly_reduction: str = "sum"  # sum | mean
    twap_decay: float = 0.9

    # Request limits
    max_transactions_per_request: int = 500


settings = Settings()
