# src/condora/adapters/config.py
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppConfig(BaseSettings):
    # App & logging
    ENV: str = Field(default="dev")
    LOG_LEVEL: str = Field(default="INFO")

    # persistence
    DB_URI: str = Field(default="sqlite:///condora.db")

    # -----------------------------
    # Lending policy (MAS defaults)
    # -----------------------------
    TDSR_LIMIT: float = Field(default=0.55)
    MSR_LIMIT: float = Field(default=0.30)
    STRESS_TEST_RATE: float = Field(default=0.04)
    VARIABLE_INCOME_HAIRCUT: float = Field(default=0.30)
    MIN_MONTHLY_INCOME: float = Field(default=3000.0)

    # -----------------------------
    # Document fetching
    # -----------------------------
    FETCH_TIMEOUT_S: float = Field(default=20.0)
    FETCH_MAX_RETRIES: int = Field(default=3)
    FETCH_BACKOFF_BASE_S: float = Field(default=0.8)
    FETCH_USER_AGENT: str = Field(default="Mozilla/5.0 (compatible; condora-importer/0.1)")

    # whole fetch + parse + extract budget for one import
    IMPORT_TIMEOUT_S: float = Field(default=60.0)

    # -----------------------------
    # Import fallbacks for fields no listing page carries
    # -----------------------------
    DEFAULT_AGENT_NAME: str = Field(default="Property Sales Team")
    DEFAULT_AGENT_PHONE: str = Field(default="+65 6100 8108")
    DEFAULT_AGENT_EMAIL: str = Field(default="sales@condora.sg")
    DEFAULT_LAT: float = Field(default=1.3521)
    DEFAULT_LNG: float = Field(default=103.8198)
    DEFAULT_IMAGE_URL: str = Field(
        default="https://images.unsplash.com/photo-1613977257363-707ba9348227?auto=format&fit=crop&w=800&h=600"
    )
    DEFAULT_EXPECTED_ROI: float = Field(default=6.5)

    model_config = SettingsConfigDict(
        env_prefix="CONDORA_",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator(
        "TDSR_LIMIT",
        "MSR_LIMIT",
        "STRESS_TEST_RATE",
        "VARIABLE_INCOME_HAIRCUT",
        mode="before",
    )
    @classmethod
    def _to_non_negative_fraction(cls, v: Any) -> Any:
        if v is None:
            return v
        if isinstance(v, str):
            v = v.strip().replace("%", "")
        try:
            f = float(v)
        except Exception as err:
            raise ValueError("rate must be numeric or percent-like") from err
        if f > 1.0:
            f = f / 100.0
        if f < 0:
            raise ValueError("rate must be non-negative")
        return f

    @field_validator("FETCH_TIMEOUT_S", "IMPORT_TIMEOUT_S", mode="before")
    @classmethod
    def _timeout_positive(cls, v: Any) -> Any:
        f = float(v)
        if f <= 0:
            raise ValueError("timeouts must be > 0")
        return f


config = AppConfig()
