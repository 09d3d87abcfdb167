"""Configuration management using pydantic-settings."""

from pathlib import Path
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_AVATAR = (
    "https://images.unsplash.com/photo-1472099645785-5658abf4ff4e"
    "?ixlib=rb-1.2.1&auto=format&fit=facearea&facepad=2&w=256&h=256&q=80"
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Storage
    data_dir: Path = Field(default=Path("./data"), description="Directory holding the slot files")
    slot_prefix: str = Field(default="blog-", description="Prefix for slot file names")
    posts_slot: str = Field(default="posts", description="Slot name for the post collection")
    categories_slot: str = Field(
        default="categories", description="Slot name for the category collection"
    )

    # Seed category for an absent categories slot
    default_category_name: str = Field(default="General", description="Seed category name")
    default_category_description: str = Field(
        default="General blog posts", description="Seed category description"
    )

    # Post defaults
    default_author_name: str = Field(default="Admin", description="Author used by the CLI")
    default_author_avatar: str = Field(default=DEFAULT_AVATAR, description="Author avatar URL")
    excerpt_length: int = Field(default=150, description="Length of the generated excerpt prefix")

    # Queries
    recent_posts_count: int = Field(default=5, description="Posts listed on the dashboard")
    related_posts_limit: int = Field(default=3, description="Maximum related posts")

    log_level: str = Field(default="INFO", description="Console log level")

    @property
    def logs_dir(self) -> Path:
        """Path to log directory."""
        return self.data_dir / "logs"

    @property
    def log_file(self) -> Path:
        """Path to the repository log file."""
        return self.logs_dir / "blog-store.log"

    def ensure_directories(self) -> None:
        """Create all required directories if they don't exist."""
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.logs_dir.mkdir(parents=True, exist_ok=True)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
