"""Configuration management for low-energy-ai using environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Completion API
    OPENAI_API_KEY: str = ""
    OPENAI_BASE_URL: str = ""
    MAX_COMPLETION_TOKENS: int = 500
    CHAT_TEMPERATURE: float | None = None
    CHAT_MAX_RETRY: int = 3
    SYSTEM_PROMPT: str = "You are a helpful assistant. Keep responses concise but informative."

    # Savings estimate
    ESTIMATED_TOKENS_PER_QUERY: int = 500

    # Router tiers used by the speed rules
    SPEED_CAP_TIER: int = 3
    FAST_REASONING_TIER: int = 4

    # Slider defaults for a fresh session
    DEFAULT_EFFICIENCY: int = 3
    DEFAULT_SPEED: int = 3
    DEFAULT_COMPLEXITY: int = 3

    # Sessions idle longer than this are dropped; 0 disables expiry
    SESSION_IDLE_TTL_SECONDS: float = 3600

    MODEL_CATALOG_CSV_PATH: str = ""
    """Path to a model catalog CSV file. Empty uses the built-in catalog.
    Resolution strategy:
    - Absolute: /app/config/model_catalog.csv (e.g., Docker mount)
    - Relative: ./config/model_catalog.csv (from current working directory)
    - Filename: model_catalog.csv (from project root)

    Example (Docker):
        docker run -e MODEL_CATALOG_CSV_PATH=/app/config/catalog.csv \\
          -v /host/config:/app/config low-energy-ai
    """

    # API Authentication
    API_KEY: str = ""
    """API key for protected endpoints.
    If empty and REQUIRE_AUTH=true, all requests will be rejected.
    Set via API_KEY env var."""

    REQUIRE_AUTH: bool = False
    """Whether to require authentication for protected endpoints.
    Set via REQUIRE_AUTH=true env var."""

    UI_API_URL: str = "http://localhost:8000"


# Global settings instance
settings = Settings()
