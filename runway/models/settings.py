"""Settings and configuration management."""

import logging
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings loaded from environment variables or .env."""

    model_config = SettingsConfigDict(
        env_file=".env", case_sensitive=False, extra="ignore"
    )

    # Text generation (Azure OpenAI chat completions)
    azure_openai_endpoint: Optional[str] = Field(None, description="Azure endpoint")
    azure_openai_api_key: Optional[str] = Field(None, description="Azure API key")
    azure_openai_deployment_name: Optional[str] = Field(
        None, description="Chat completion deployment"
    )
    azure_openai_api_version: str = Field(
        "2025-01-01-preview", description="Chat completion API version"
    )

    # Image generation
    azure_image_endpoint: Optional[str] = Field(None, description="Image endpoint")
    azure_image_api_key: Optional[str] = Field(None, description="Image API key")
    azure_image_deployment_name: Optional[str] = Field(
        None, description="Image generation deployment"
    )
    azure_image_api_version: str = Field(
        "2025-04-01-preview", description="Image generation API version"
    )

    # Output locations
    essays_dir: str = Field(
        "frontend/app/essays", description="Root of the published essays tree"
    )
    images_dir: str = Field(
        "frontend/public/images/newsletters",
        description="Where generated cover images are written",
    )
    database_path: str = Field(
        ".cache/articles.db", description="SQLite file for scraped articles"
    )
    sponsors_file: Optional[str] = Field(
        None, description="JSON file with booked sponsor slots"
    )

    # Byline
    author_name: str = Field("Infinite Runway", description="Author shown on essays")
    author_image_url: str = Field(
        "/images/authors/infinite-runway.png", description="Author avatar path"
    )

    # Application Settings
    debug: bool = Field(False, description="Debug mode")
    log_level: str = Field("INFO", description="Log level")

    # API Timeout Settings (in seconds)
    llm_timeout: float = Field(
        120.0, ge=10.0, le=600.0, description="Chat completion request timeout"
    )
    image_timeout: float = Field(
        180.0, ge=10.0, le=600.0, description="Image generation request timeout"
    )
    source_timeout: float = Field(
        15.0, ge=3.0, le=120.0, description="Per-request timeout for content sources"
    )

    # Source limits
    hn_story_limit: int = Field(
        30, ge=1, le=500, description="Number of Hacker News top stories to fetch"
    )
    hn_concurrency: int = Field(
        8, ge=1, le=50, description="Concurrent Hacker News item requests"
    )
    rss_item_limit: int = Field(
        20, ge=1, le=200, description="Maximum items taken from each RSS feed"
    )
    github_item_limit: int = Field(
        10, ge=1, le=25, description="Maximum GitHub Trending repositories"
    )
    prompt_article_limit: int = Field(
        20, ge=1, le=100, description="Articles passed to the prompt builder"
    )

    default_user_agent: str = Field(
        "Mozilla/5.0 (compatible; NewsletterBot/1.0)",
        min_length=5,
        max_length=100,
        description="Default User-Agent for HTTP requests",
    )

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        """Accept log levels in any case."""
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {value}")
        return level

    @property
    def text_generation_configured(self) -> bool:
        """Whether every chat completion setting is present."""
        return all(
            [
                self.azure_openai_endpoint,
                self.azure_openai_api_key,
                self.azure_openai_deployment_name,
            ]
        )

    @property
    def image_generation_configured(self) -> bool:
        """Whether every image generation setting is present."""
        return all(
            [
                self.azure_image_endpoint,
                self.azure_image_api_key,
                self.azure_image_deployment_name,
            ]
        )
