"""Application configuration using pydantic-settings."""

from functools import lru_cache

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database
    database_url: str = "postgresql+psycopg2://localhost/grocerysync"

    # Redis (Celery broker)
    redis_url: str = "redis://localhost:6379/0"

    # Grocery list generation flags
    auto_generate_grocery_lists: bool = True
    delete_orphaned_lists: bool = False  # False keeps the list, unlinked
    update_existing_lists: bool = True
    additive_grocery_merge: bool = False
    grocery_fuzzy_match_threshold: int = Field(default=0, ge=0, le=100)  # 0 disables
    grocery_round_up_quantities: bool = False

    # Application
    environment: str = "development"
    log_level: str = "INFO"

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment.lower() == "development"


class FeatureConfig(BaseModel):
    """Immutable feature flags injected into the grocery list synchronizer."""

    model_config = ConfigDict(frozen=True)

    auto_generate_grocery_lists: bool = True
    delete_orphaned_lists: bool = False
    update_existing_lists: bool = True
    additive_grocery_merge: bool = False
    fuzzy_match_threshold: int = Field(default=0, ge=0, le=100)
    round_up_quantities: bool = False

    @classmethod
    def from_settings(cls, settings: Settings) -> "FeatureConfig":
        """Snapshot the grocery flags out of the application settings."""
        return cls(
            auto_generate_grocery_lists=settings.auto_generate_grocery_lists,
            delete_orphaned_lists=settings.delete_orphaned_lists,
            update_existing_lists=settings.update_existing_lists,
            additive_grocery_merge=settings.additive_grocery_merge,
            fuzzy_match_threshold=settings.grocery_fuzzy_match_threshold,
            round_up_quantities=settings.grocery_round_up_quantities,
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
