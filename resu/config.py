"""Application configuration using pydantic-settings."""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str = "sqlite+aiosqlite:///./resu.db"

    # Ollama
    ollama_base_url: str = "http://localhost:11434"

    # Completion tiers: "fast" for extraction, "smart" for selection and writing
    model_fast: str = "llama3.2"
    model_smart: str = "llama3.1"
    completion_timeout: float = 120.0

    # Cost accounting (USD per 1K tokens; local models are free)
    cost_per_1k_prompt_tokens: float = 0.0
    cost_per_1k_completion_tokens: float = 0.0

    # Generation
    profile_path: Path = Path("data/profile.json")
    prompt_version: str = "v1"
    default_template_id: str = "ats-classic"

    # Application
    app_name: str = "Resu API"
    debug: bool = False
    log_level: str = "INFO"

    # CORS
    frontend_cors_origin: str = "http://localhost:5173"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        protected_namespaces=("settings_",),
    )

    def model_for_tier(self, tier: str) -> str:
        """Resolve a quality tier to the configured model name."""
        if tier == "fast":
            return self.model_fast
        if tier == "smart":
            return self.model_smart
        raise ValueError(f"Unknown model tier '{tier}'")


# Global settings instance
settings = Settings()
