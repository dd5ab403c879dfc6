"""
Centralized configuration for Conversion Killer Check
All environment variables and settings are defined here
"""

from typing import List
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Provides centralized configuration with validation and defaults.
    """

    # ======================
    # Scoring Configuration
    # ======================
    SCORING_BACKEND: str = Field(
        default="heuristic",
        description="Scoring backend to use: 'heuristic' or 'llm'"
    )
    LOW_DEFECT_THRESHOLD: int = Field(
        default=4,
        description="Below this many conversion killers only one is shown"
    )
    EXEMPT_DOMAINS: List[str] = Field(
        default=["luqy.studio"],
        description="Hosts that always receive the canned positive result"
    )

    # ======================
    # API Configuration
    # ======================
    ANTHROPIC_API_KEY: str = Field(default="", description="Anthropic API key")
    ANTHROPIC_MODEL: str = Field(
        default="claude-sonnet-4-20250514",
        description="Claude model to use for analysis"
    )
    MAX_TOKENS: int = Field(default=1000, description="Max tokens for Claude response")
    PAGESPEED_API_KEY: str = Field(
        default="",
        description="Google PageSpeed Insights API key (empty disables the check)"
    )
    PAGESPEED_TIMEOUT: int = Field(
        default=45,
        description="Timeout for the PageSpeed Insights call in seconds"
    )

    # ======================
    # Page Fetch Configuration
    # ======================
    FETCH_TIMEOUT: int = Field(
        default=15,
        description="Timeout for fetching the target page in seconds"
    )
    MAX_PAGE_BYTES: int = Field(
        default=2_000_000,
        description="Markup beyond this many bytes is discarded"
    )
    USER_AGENT: str = Field(
        default="Mozilla/5.0 (compatible; ConversionKillerCheck/1.0)",
        description="User-Agent header sent when fetching pages"
    )

    # ======================
    # Redis Configuration
    # ======================
    REDIS_URL: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL"
    )

    # ======================
    # Cache Configuration
    # ======================
    CACHE_TTL: int = Field(
        default=259200,  # 72 hours (3 days)
        description="Cache time-to-live in seconds"
    )
    CACHE_VERSION: str = Field(
        default="v3",
        description="Version tag embedded in cache keys"
    )

    # ======================
    # Rate Limit Configuration
    # ======================
    RATE_LIMIT_PER_DAY: int = Field(
        default=2,
        description="Analyses allowed per caller per day"
    )

    # ======================
    # Logging Configuration
    # ======================
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level"
    )

    @property
    def pagespeed_enabled(self) -> bool:
        """PageSpeed checks run only when an API key is configured"""
        return bool(self.PAGESPEED_API_KEY)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "ignore"  # Allow extra env vars in .env file


# Global settings instance
settings = Settings()
