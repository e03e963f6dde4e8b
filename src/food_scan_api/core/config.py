"""Application configuration using Pydantic Settings."""

from enum import Enum
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class VisionProvider(str, Enum):
    """Supported primary vision model providers."""
    OPENAI = "openai"
    GEMINI = "gemini"


class FallbackProvider(str, Enum):
    """Secondary vision path used when the primary provider fails."""
    NONE = "none"
    OLLAMA = "ollama"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # MongoDB
    mongo_uri: str = "mongodb://localhost:27017"
    db_name: str = "food_scan_db"
    meal_entries_collection: str = "meal_entries"

    # Vision Provider Selection
    vision_provider: VisionProvider = VisionProvider.OPENAI

    # OpenAI Configuration
    openai_api_key: str = ""
    openai_vision_model: str = "gpt-4o"

    # Google Gemini Configuration
    google_api_key: str = ""
    gemini_vision_model: str = "gemini-2.5-flash"

    # Vision call settings
    vision_temperature: float = 0.2
    vision_max_tokens: int = 2000
    max_items: int = 5

    # Fallback vision path (disabled unless an Ollama instance is configured)
    vision_fallback_provider: FallbackProvider = FallbackProvider.NONE
    ollama_base_url: str = "http://localhost:11434"
    ollama_model: str = "llava:7b"
    ollama_timeout: float = 60.0

    # OpenFoodFacts
    openfoodfacts_base_url: str = "https://world.openfoodfacts.org"
    openfoodfacts_country: str = "en"
    openfoodfacts_timeout: float = 15.0
    openfoodfacts_enabled: bool = True

    # Image storage (GridFS)
    image_bucket_name: str = "meal_images"
    image_bucket_check: bool = True
    public_base_url: str = ""

    # App
    debug: bool = False
    app_name: str = "Food Scan API"
    api_version: str = "1.0.0"

    @property
    def is_vision_configured(self) -> bool:
        """Check if the selected vision provider is configured."""
        if self.vision_provider == VisionProvider.OPENAI:
            return bool(self.openai_api_key)
        elif self.vision_provider == VisionProvider.GEMINI:
            return bool(self.google_api_key)
        return False


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
