from __future__ import annotations

from functools import lru_cache
from typing import List, Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class RiskThresholds(BaseModel):
    """TVL / APY cut points shared by the classifier, risk assessor and scorers."""

    very_high_tvl: float = 50_000_000
    good_tvl: float = 10_000_000
    moderate_tvl: float = 1_000_000
    suspicious_apy: float = 1000.0  # in %
    high_apy: float = 100.0
    normal_apy: float = 20.0


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Runtime
    ENV: str = Field(default="development")
    LOG_LEVEL: str = Field(default="INFO")
    # Transport loggers held at WARNING unless LOG_LEVEL is DEBUG
    LOG_QUIET_LOGGERS: List[str] = Field(default_factory=lambda: ["httpx", "httpcore"])
    HOST: str = Field(default="0.0.0.0")
    PORT: int = Field(default=8000)

    # Aggregator
    AGGREGATOR_URL: str = Field(default="https://yields.llama.fi/pools")
    FETCH_TIMEOUT_SECONDS: float = Field(default=15.0)

    # Target chain and its native asset ticker
    TARGET_CHAIN: str = Field(default="Aptos")
    NATIVE_TICKER: str = Field(default="apt")

    # Risk thresholds
    RISK_VERY_HIGH_TVL_USD: float = Field(default=50_000_000)
    RISK_GOOD_TVL_USD: float = Field(default=10_000_000)
    RISK_MODERATE_TVL_USD: float = Field(default=1_000_000)
    RISK_SUSPICIOUS_APY: float = Field(default=1000.0)
    RISK_HIGH_APY: float = Field(default=100.0)
    RISK_NORMAL_APY: float = Field(default=20.0)

    # Selection
    LIQUIDITY_FALLBACK: Literal["first", "none"] = Field(default="first")
    DEFAULT_PROTOCOL_LIMIT: int = Field(default=3)

    # Optional catalog cache
    ENABLE_REDIS: bool = Field(default=False)
    REDIS_URL: str = Field(default="redis://localhost:6379/0")
    CACHE_TTL_SECONDS: int = Field(default=300)

    @field_validator("LOG_LEVEL")
    @classmethod
    def _known_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}")
        return level

    def risk_thresholds(self) -> RiskThresholds:
        return RiskThresholds(
            very_high_tvl=self.RISK_VERY_HIGH_TVL_USD,
            good_tvl=self.RISK_GOOD_TVL_USD,
            moderate_tvl=self.RISK_MODERATE_TVL_USD,
            suspicious_apy=self.RISK_SUSPICIOUS_APY,
            high_apy=self.RISK_HIGH_APY,
            normal_apy=self.RISK_NORMAL_APY,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
