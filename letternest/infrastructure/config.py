"""Configuration management for the LetterNest newsletter service."""

from pathlib import Path
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

DEVELOPMENT_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:5173",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:5173",
]


class ApplicationConfig(BaseSettings):
    """Application configuration with environment variable support."""

    # Database
    database_url: str = Field(
        default="sqlite:///letternest.db",
        description="Database connection URL"
    )

    # Runtime
    environment: str = Field(
        default="production",
        description="Runtime environment: development or production"
    )
    production_origins: List[str] = Field(
        default_factory=lambda: ["https://letternest.ai"],
        description="Origins allowed by CORS outside development"
    )

    # Session provider
    auth_url: str = Field(
        default="",
        description="Base URL of the hosted auth/session provider"
    )
    auth_api_key: str = Field(
        default="",
        description="API key sent to the auth provider alongside user tokens"
    )

    # Third-party APIs
    twitter_api_base_url: str = Field(
        default="https://api.twitter.com/2",
        description="Base URL of the bookmark API"
    )
    rapidapi_key: str = Field(
        default="",
        description="RapidAPI key for handle to numeric id lookups"
    )
    rapidapi_host: str = Field(
        default="twitter293.p.rapidapi.com",
        description="RapidAPI host serving the user lookup endpoint"
    )
    apify_api_key: str = Field(
        default="",
        description="Apify token for the post scraper actor"
    )
    apify_actor: str = Field(
        default="kaitoeasyapi~twitter-x-data-tweet-scraper-pay-per-result-cheapest",
        description="Apify actor used to scrape full post data"
    )
    openai_api_key: str = Field(
        default="",
        description="OpenAI API key for LLM services"
    )
    perplexity_api_key: str = Field(
        default="",
        description="Perplexity API key for web enrichment (empty disables it)"
    )
    resend_api_key: str = Field(
        default="",
        description="Resend API key for email delivery"
    )

    # OpenAI Configuration
    openai_model: str = Field(
        default="gpt-4.1",
        description="OpenAI model used by the newsletter pipeline"
    )
    openai_tweet_model: str = Field(
        default="gpt-4o",
        description="OpenAI model used for tweet drafts"
    )
    openai_max_tokens: int = Field(
        default=12000,
        description="Maximum tokens for newsletter LLM calls"
    )
    perplexity_model: str = Field(
        default="sonar-pro",
        description="Perplexity model used for web enrichment searches"
    )

    # Email Settings
    domain: str = Field(
        default="newsletters.letternest.ai",
        description="Domain used to build the default sender address"
    )
    from_email: str = Field(
        default="",
        description="From email address for newsletters (derived from domain when empty)"
    )

    # Quotas
    monthly_newsletter_generations: int = Field(
        default=20,
        description="Newsletter generations granted to subscribed users each month"
    )
    monthly_tweet_generations: int = Field(
        default=150,
        description="Tweet generations granted to subscribed creator users each month"
    )
    free_tweet_generations: int = Field(
        default=5,
        description="Tweet generations granted to unsubscribed creator users each month"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )
    log_format: str = Field(
        default="structured",
        description="Log format: structured or text"
    )

    # Performance
    request_timeout: int = Field(
        default=120,
        description="HTTP request timeout in seconds"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return v.upper()

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v):
        """Validate runtime environment."""
        if v.lower() not in ("development", "production"):
            raise ValueError("environment must be development or production")
        return v.lower()

    @property
    def newsletter_from_email(self) -> str:
        """Sender address, explicit or derived from the configured domain."""
        if self.from_email:
            return self.from_email
        return f"newsletter@{self.domain}"

    @property
    def async_database_url(self) -> str:
        """Database URL rewritten for the async SQLite driver."""
        if self.database_url.startswith("sqlite:///"):
            return self.database_url.replace("sqlite:///", "sqlite+aiosqlite:///")
        return self.database_url

    @property
    def allowed_origins(self) -> List[str]:
        """CORS allow-list for the current environment."""
        if self.environment == "development":
            return list(DEVELOPMENT_ORIGINS)
        return list(self.production_origins)

    class Config:
        env_prefix = "LETTERNEST_"
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


def load_config() -> ApplicationConfig:
    """Load application configuration from environment and files."""
    return ApplicationConfig()


def get_project_root() -> Path:
    """Get the project root directory."""
    return Path(__file__).parent.parent.parent


def get_templates_dir() -> Path:
    """Get the directory holding the HTML email layouts."""
    return Path(__file__).parent.parent / "templates"


def get_logs_dir() -> Path:
    """Get the logs directory."""
    logs_dir = get_project_root() / "logs"
    logs_dir.mkdir(exist_ok=True)
    return logs_dir
