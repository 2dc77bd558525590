"""Multi-provider LLM model factory for the advisor agent.

Dispatches to the Strands SDK model class selected by the ``LLM_PROVIDER``
environment variable (default: ``bedrock``). Anthropic, OpenAI and Ollama
are optional extras imported lazily.

Resolution order for the model ID:
  1. Explicit ``model_id`` argument
  2. ``{PROVIDER}_MODEL_ID`` env var (e.g. ``ANTHROPIC_MODEL_ID``)
  3. ``PROVIDER_DEFAULTS``
"""

import logging
import os
from collections.abc import Callable
from enum import Enum
from typing import Any

from botocore.config import Config

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Provider enum
# ---------------------------------------------------------------------------


class LLMProvider(Enum):
    """Supported LLM providers."""

    BEDROCK = "bedrock"
    ANTHROPIC = "anthropic"
    OPENAI = "openai"
    OLLAMA = "ollama"


PROVIDER_DEFAULTS: dict[LLMProvider, str] = {
    LLMProvider.BEDROCK: "anthropic.claude-3-5-sonnet-20241022-v2:0",
    LLMProvider.ANTHROPIC: "claude-sonnet-4-20250514",
    LLMProvider.OPENAI: "gpt-4o",
    LLMProvider.OLLAMA: "llama3.1:70b",
}


def get_active_provider() -> LLMProvider:
    """Return the active LLM provider from the ``LLM_PROVIDER`` env var.

    Raises:
        ValueError: If the env var value is not a recognised provider.
    """
    raw = os.getenv("LLM_PROVIDER", "bedrock").strip().lower()
    try:
        return LLMProvider(raw)
    except ValueError:
        valid = ", ".join(p.value for p in LLMProvider)
        raise ValueError(f"Unknown LLM_PROVIDER '{raw}'. Valid options: {valid}") from None


def get_model_id(provider: LLMProvider | None = None) -> str:
    """Resolve the model ID for a provider from the environment or defaults."""
    provider = provider or get_active_provider()
    from_env = os.getenv(f"{provider.value.upper()}_MODEL_ID")
    if from_env:
        return from_env
    logger.info(f"Using default model for {provider.value}: {PROVIDER_DEFAULTS[provider]}")
    return PROVIDER_DEFAULTS[provider]


def get_default_max_tokens() -> int:
    """Resolve max_tokens from the DEFAULT_MAX_TOKENS env var (default: 4096)."""
    return int(os.getenv("DEFAULT_MAX_TOKENS", "4096"))


# ---------------------------------------------------------------------------
# Provider factory registry
# ---------------------------------------------------------------------------

_PROVIDER_FACTORIES: dict[LLMProvider, Callable[..., Any]] = {}


def _register_provider(provider: LLMProvider):
    """Decorator to register a provider factory function."""

    def decorator(fn):
        _PROVIDER_FACTORIES[provider] = fn
        return fn

    return decorator


@_register_provider(LLMProvider.BEDROCK)
def _create_bedrock(model_id, max_tokens, streaming, temperature):
    from strands.models.bedrock import BedrockModel

    region_name = os.getenv("AWS_REGION")
    if not region_name:
        raise ValueError("AWS_REGION is not set. Please configure it in your .env file.")

    boto_config = Config(
        read_timeout=float(os.getenv("BEDROCK_READ_TIMEOUT", "300")),
        connect_timeout=float(os.getenv("BEDROCK_CONNECT_TIMEOUT", "60")),
        retries={"max_attempts": 3, "mode": "standard"},
    )
    profile = os.getenv("AWS_PROFILE")
    logger.info(f"Using AWS profile: {profile}" if profile else "Using default AWS profile (AWS_PROFILE not set)")

    return BedrockModel(
        model_id=model_id,
        region_name=region_name,
        boto_client_config=boto_config,
        streaming=streaming,
        temperature=temperature,
        max_tokens=max_tokens,
    )


@_register_provider(LLMProvider.ANTHROPIC)
def _create_anthropic(model_id, max_tokens, streaming, temperature):
    try:
        from strands.models.anthropic import AnthropicModel
    except ImportError as e:
        raise ImportError(
            "Anthropic provider requires the 'anthropic' package. "
            "Install it with: pip install 'slc-advisor[anthropic]'"
        ) from e

    api_key = os.getenv("ANTHROPIC_API_KEY")
    return AnthropicModel(
        client_args={"api_key": api_key} if api_key else None,
        model_id=model_id,
        max_tokens=max_tokens,
        params={"temperature": temperature},
    )


@_register_provider(LLMProvider.OPENAI)
def _create_openai(model_id, max_tokens, streaming, temperature):
    try:
        from strands.models.openai import OpenAIModel
    except ImportError as e:
        raise ImportError(
            "OpenAI provider requires the 'openai' package. Install it with: pip install 'slc-advisor[openai]'"
        ) from e

    api_key = os.getenv("OPENAI_API_KEY")
    return OpenAIModel(
        client_args={"api_key": api_key} if api_key else None,
        model_id=model_id,
        params={"max_tokens": max_tokens, "temperature": temperature},
    )


@_register_provider(LLMProvider.OLLAMA)
def _create_ollama(model_id, max_tokens, streaming, temperature):
    try:
        from strands.models.ollama import OllamaModel
    except ImportError as e:
        raise ImportError(
            "Ollama provider requires the 'ollama' package. Install it with: pip install 'slc-advisor[ollama]'"
        ) from e

    return OllamaModel(
        host=os.getenv("OLLAMA_HOST", "http://localhost:11434"),
        model_id=model_id,
        max_tokens=max_tokens,
        temperature=temperature,
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def create_model(
    model_id: str | None = None,
    max_tokens: int | None = None,
    streaming: bool = True,
    temperature: float = 0.7,
):
    """Create a model instance for the active provider.

    Args:
        model_id: Model identifier. Resolved from the environment when None.
        max_tokens: Maximum response tokens. Falls back to DEFAULT_MAX_TOKENS.
        streaming: Enable streaming (Bedrock only).
        temperature: Sampling temperature.

    Returns:
        A Strands ``Model`` instance.
    """
    provider = get_active_provider()
    model_id = model_id or get_model_id(provider)
    if max_tokens is None:
        max_tokens = get_default_max_tokens()
    if streaming and provider is not LLMProvider.BEDROCK:
        logger.warning(f"streaming=True ignored for {provider.value} provider")

    logger.info(f"Creating {provider.value} model: model_id={model_id}, max_tokens={max_tokens}")
    return _PROVIDER_FACTORIES[provider](
        model_id=model_id,
        max_tokens=max_tokens,
        streaming=streaming,
        temperature=temperature,
    )
