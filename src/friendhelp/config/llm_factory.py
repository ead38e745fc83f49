"""LLM provider factory for creating chat models."""

import logging
import re
from typing import Literal

from langchain_anthropic import ChatAnthropic
from langchain_core.language_models import BaseChatModel
from langchain_google_genai import ChatGoogleGenerativeAI
from langchain_ollama import ChatOllama
from langchain_openai import ChatOpenAI

from friendhelp.config.settings import settings

logger = logging.getLogger(__name__)

# "default" drives follow-ups and companion replies, "analysis" the day analysis
MODEL_ALIASES = ["default", "analysis"]

# Provider-specific model name patterns for validation
MODEL_PATTERNS = {
    "anthropic": r"^claude-",
    "openai": r"^(gpt|o1|o3|o4)-",
    "ollama": r".+",
    "gemini": r"^gemini-",
}


def _get_model_config(provider: str, model: str = "default") -> str:
    """Get model name from config or env override.

    Priority (highest to lowest):
    1. Provider-specific setting (e.g., GEMINI_ANALYSIS_MODEL)
    2. Global setting (DEFAULT_LLM_MODEL or ANALYSIS_LLM_MODEL)
    3. For "analysis" only: whatever "default" resolves to

    Args:
        provider: LLM provider (anthropic, openai, ollama, gemini)
        model: Model alias (default, analysis) or specific model name

    Returns:
        Model name string

    Raises:
        ValueError: If no model is configured
    """
    provider_upper = provider.upper()

    # If not an alias, return as-is (specific model name)
    if model not in MODEL_ALIASES:
        return model

    env_var = f"{provider_upper}_{model.upper()}_MODEL"
    env_value = getattr(settings, env_var, None)
    if env_value:
        return env_value

    global_var = f"{model.upper()}_LLM_MODEL"
    global_value = getattr(settings, global_var, None)
    if global_value:
        return global_value

    if model == "analysis":
        return _get_model_config(provider, "default")

    raise ValueError(
        f"No model configured for {provider} '{model}'. "
        f"Set {env_var} or {global_var} in your .env file."
    )


def validate_llm_config() -> None:
    """Validate LLM configuration on startup.

    Checks:
    - A default model is configured and matches the provider's naming
    - API keys are set for cloud providers

    Raises:
        ValueError: If configuration is invalid, with descriptive message.
    """
    errors = []

    provider = settings.DEFAULT_LLM_PROVIDER
    provider_upper = provider.upper()

    models: dict[str, str | None] = {}
    for alias in MODEL_ALIASES:
        try:
            models[alias] = _get_model_config(provider, alias)
        except ValueError as e:
            models[alias] = None
            errors.append(str(e))

    pattern = MODEL_PATTERNS.get(provider)
    if pattern:
        for alias, model_name in models.items():
            if model_name and not re.match(pattern, model_name):
                errors.append(
                    f"Invalid {alias} model '{model_name}' for {provider}. Please check model name."
                )

    if provider in ["anthropic", "openai", "gemini"]:
        api_key_var = "GOOGLE_API_KEY" if provider == "gemini" else f"{provider_upper}_API_KEY"
        if not getattr(settings, api_key_var, None):
            errors.append(f"{api_key_var} not set for {provider} provider.")

    if errors:
        error_msg = "LLM configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
        logger.error(error_msg)
        raise ValueError(error_msg)

    logger.info(
        f"LLM config validated: {provider} (default={models['default']}, analysis={models['analysis']})"
    )


class LLMFactory:
    """Factory for creating LLM instances."""

    @staticmethod
    def _create_anthropic(model: str = "default", **kwargs) -> ChatAnthropic:
        """Create Anthropic Claude model."""
        if not settings.ANTHROPIC_API_KEY:
            raise ValueError("ANTHROPIC_API_KEY not set")
        model_name = _get_model_config("anthropic", model)
        kwargs.setdefault("temperature", 0.7)
        kwargs.setdefault("max_tokens", 2048)
        return ChatAnthropic(
            model=model_name,
            api_key=settings.ANTHROPIC_API_KEY,
            **kwargs,
        )

    @staticmethod
    def _create_openai(model: str = "default", **kwargs) -> ChatOpenAI:
        """Create OpenAI model."""
        if not settings.OPENAI_API_KEY:
            raise ValueError("OPENAI_API_KEY not set")
        model_name = _get_model_config("openai", model)
        kwargs.setdefault("temperature", 0.7)
        return ChatOpenAI(
            model=model_name,
            api_key=settings.OPENAI_API_KEY,
            **kwargs,
        )

    @staticmethod
    def _create_ollama(model: str = "default", **kwargs) -> BaseChatModel:
        """Create local Ollama model (no API key required)."""
        model_name = _get_model_config("ollama", model)
        kwargs.setdefault("temperature", 0.7)
        return ChatOllama(
            model=model_name,
            base_url=settings.OLLAMA_BASE_URL,
            **kwargs,
        )

    @staticmethod
    def _create_gemini(model: str = "default", **kwargs) -> BaseChatModel:
        """Create Google Gemini model."""
        if not settings.GOOGLE_API_KEY:
            raise ValueError("GOOGLE_API_KEY or GEMINI_API_KEY not set")
        model_name = _get_model_config("gemini", model)
        kwargs.setdefault("temperature", 1.0)
        kwargs.setdefault("max_retries", 2)
        return ChatGoogleGenerativeAI(
            model=model_name,
            api_key=settings.GOOGLE_API_KEY,
            **kwargs,
        )

    @classmethod
    def create(
        cls,
        provider: Literal["anthropic", "openai", "ollama", "gemini"] | None = None,
        model: str = "default",
        **kwargs,
    ) -> BaseChatModel:
        """
        Create a chat model instance.

        Args:
            provider: LLM provider. Defaults to DEFAULT_LLM_PROVIDER.
            model: Model alias (default, analysis) or specific model name.
            **kwargs: Additional model parameters (temperature, ...).

        Returns:
            Configured chat model instance.
        """
        if provider is None:
            provider = settings.DEFAULT_LLM_PROVIDER

        if provider == "anthropic":
            return cls._create_anthropic(model, **kwargs)
        elif provider == "openai":
            return cls._create_openai(model, **kwargs)
        elif provider == "ollama":
            return cls._create_ollama(model, **kwargs)
        elif provider == "gemini":
            return cls._create_gemini(model, **kwargs)
        else:
            raise ValueError(f"Unknown provider: {provider}")


def create_model(provider: str | None = None, model: str = "default", **kwargs) -> BaseChatModel:
    """
    Create a new model instance (uncached).

    Args:
        provider: LLM provider. Defaults to settings.DEFAULT_LLM_PROVIDER.
        model: Model alias or specific model name.
        **kwargs: Additional model parameters.

    Returns:
        New chat model instance.
    """
    return LLMFactory.create(provider, model=model, **kwargs)
