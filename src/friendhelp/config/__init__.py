"""Configuration module for Friend&Help."""

from friendhelp.config.settings import Settings, settings
from friendhelp.config.llm_factory import LLMFactory, create_model

__all__ = ["Settings", "settings", "LLMFactory", "create_model"]
