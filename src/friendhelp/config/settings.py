"""Application settings with YAML defaults and .env overrides."""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from friendhelp.config.loader import get_yaml_defaults


# Get flattened defaults from YAML config
_yaml_defaults = get_yaml_defaults()


def _yaml_field(key: str, default, **kwargs):
    """Create a Pydantic Field with YAML default.

    Args:
        key: Flattened YAML key (e.g., "LLM_DEFAULT_PROVIDER").
        default: Fallback default if not in YAML.

    Returns:
        Pydantic Field with appropriate default.
    """
    yaml_value = _yaml_defaults.get(key.upper(), default)
    return Field(default=yaml_value, **kwargs)


class Settings(BaseSettings):
    """Application settings loaded from YAML defaults + environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # ============================================================================
    # LLM Configuration
    # ============================================================================

    DEFAULT_LLM_PROVIDER: Literal["anthropic", "openai", "ollama", "gemini"] = (
        _yaml_field("LLM_DEFAULT_PROVIDER", "gemini")
    )

    # Global model overrides (apply to all providers)
    DEFAULT_LLM_MODEL: str | None = _yaml_field("LLM_DEFAULT_MODEL", None)
    ANALYSIS_LLM_MODEL: str | None = _yaml_field("LLM_ANALYSIS_MODEL", None)

    # Provider-specific model overrides (higher priority)
    ANTHROPIC_DEFAULT_MODEL: str | None = _yaml_field("LLM_ANTHROPIC_DEFAULT_MODEL", None)
    ANTHROPIC_ANALYSIS_MODEL: str | None = _yaml_field("LLM_ANTHROPIC_ANALYSIS_MODEL", None)
    OPENAI_DEFAULT_MODEL: str | None = _yaml_field("LLM_OPENAI_DEFAULT_MODEL", None)
    OPENAI_ANALYSIS_MODEL: str | None = _yaml_field("LLM_OPENAI_ANALYSIS_MODEL", None)
    OLLAMA_DEFAULT_MODEL: str | None = _yaml_field("LLM_OLLAMA_DEFAULT_MODEL", None)
    OLLAMA_ANALYSIS_MODEL: str | None = _yaml_field("LLM_OLLAMA_ANALYSIS_MODEL", None)
    GEMINI_DEFAULT_MODEL: str | None = _yaml_field(
        "LLM_GEMINI_DEFAULT_MODEL", "gemini-3-flash-preview"
    )
    GEMINI_ANALYSIS_MODEL: str | None = _yaml_field(
        "LLM_GEMINI_ANALYSIS_MODEL", "gemini-3-pro-preview"
    )

    # API Keys (secrets - must be in .env)
    ANTHROPIC_API_KEY: str | None = None
    OPENAI_API_KEY: str | None = None
    GOOGLE_API_KEY: str | None = Field(
        default=None, validation_alias=AliasChoices("GOOGLE_API_KEY", "GEMINI_API_KEY")
    )
    OLLAMA_BASE_URL: str = _yaml_field("LLM_OLLAMA_BASE_URL", "http://localhost:11434")

    # Sampling
    FOLLOW_UP_TEMPERATURE: float = _yaml_field("LLM_FOLLOW_UP_TEMPERATURE", 0.9)
    COMPANION_TEMPERATURE: float = _yaml_field("LLM_COMPANION_TEMPERATURE", 0.8)
    ANALYSIS_TEMPERATURE: float = _yaml_field("LLM_ANALYSIS_TEMPERATURE", 0.2)

    # ============================================================================
    # Conversation
    # ============================================================================

    CHECKIN_FOLLOW_UP_LIMIT: int = _yaml_field("CHECKIN_FOLLOW_UP_LIMIT", 2)
    INSIGHTS_WINDOW_DAYS: int = _yaml_field("INSIGHTS_WINDOW_DAYS", 7)
    SESSION_TITLE_LENGTH: int = _yaml_field("COMPANION_SESSION_TITLE_LENGTH", 20)
    ANALYSIS_HISTORY_LIMIT: int = _yaml_field("LLM_ANALYSIS_HISTORY_LIMIT", 7)

    # ============================================================================
    # Storage Paths
    # ============================================================================

    DATA_ROOT: Path = _yaml_field("STORAGE_DATA_ROOT", Path("./data"), validate_default=True)
    USER_ID: str = _yaml_field("APP_USER_ID", "local")

    # Logging
    LOG_LEVEL: str = _yaml_field("LOGGING_LEVEL", "INFO")
    LOG_FILE: str | None = _yaml_field("LOGGING_FILE", None)

    @field_validator("DATA_ROOT", mode="before")
    @classmethod
    def resolve_data_root(cls, v: str | Path) -> Path:
        """Resolve data root to absolute path."""
        return Path(v).resolve()

    @field_validator("CHECKIN_FOLLOW_UP_LIMIT", "INSIGHTS_WINDOW_DAYS", "SESSION_TITLE_LENGTH")
    @classmethod
    def positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be >= 1")
        return v

    # ============================================================================
    # ID Sanitization
    # ============================================================================

    def _sanitize_id(self, id_str: str) -> str:
        """Sanitize an ID for use as directory name."""
        replacements = {"\\": "_", "/": "_", "@": "_", ":": "_"}
        for old, new in replacements.items():
            id_str = id_str.replace(old, new)
        return id_str

    # ============================================================================
    # User-level paths
    # ============================================================================

    def get_user_root(self, user_id: str) -> Path:
        """
        Get the root directory for a specific user.

        Returns: data/users/{user_id}/
        """
        safe_user_id = self._sanitize_id(user_id)
        user_path = (self.DATA_ROOT / "users" / safe_user_id).resolve()
        user_path.mkdir(parents=True, exist_ok=True)
        return user_path

    def get_user_db_path(self, user_id: str) -> Path:
        """
        Get the journal database path for a user.

        Returns: data/users/{user_id}/friendhelp.db
        """
        return self.get_user_root(user_id) / "friendhelp.db"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Singleton instance
settings = get_settings()
