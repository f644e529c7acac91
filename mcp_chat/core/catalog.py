# Static provider and model metadata.
# Author: Shibo Li
# Date: 2025-06-20
# Version: 0.1.0

from typing import Dict, List, Optional
from pydantic import BaseModel
from mcp_chat.models.common import ModelConfig, ProviderId, ReasoningType

DEFAULT_MODEL_CONFIG = ModelConfig(temperature=0.2, top_p=0.8, max_tokens=4000)


class ModelInfo(BaseModel):
    id: str
    name: str
    provider: ProviderId
    reasoning_type: Optional[ReasoningType] = None
    config: ModelConfig = DEFAULT_MODEL_CONFIG
    is_default: bool = False


class ProviderInfo(BaseModel):
    """
    Attributes:
        id (ProviderId): Provider identifier, also the relay path segment.
        name (str): Display name.
        supports_continuation (bool): Whether the provider can chain requests with
            `previous_response_id`; otherwise the client resends the history.
    """
    id: ProviderId
    name: str
    supports_continuation: bool = False


PROVIDERS: List[ProviderInfo] = [
    ProviderInfo(id="openai", name="OpenAI", supports_continuation=True),
    ProviderInfo(id="gemini", name="Google Gemini"),
    ProviderInfo(id="anthropic", name="Anthropic"),
]

_THINKING_CONFIG = ModelConfig(temperature=1, top_p=1, max_tokens=4000)

MODELS: List[ModelInfo] = [
    # OpenAI
    ModelInfo(id="gpt-4.1-mini", name="GPT-4.1 Mini", provider="openai", reasoning_type="Intelligence"),
    ModelInfo(id="gpt-4.1", name="GPT-4.1", provider="openai", reasoning_type="Intelligence"),
    ModelInfo(id="o3", name="o3", provider="openai", reasoning_type="Thinking", config=_THINKING_CONFIG),
    ModelInfo(id="o4-mini", name="o4-mini", provider="openai", reasoning_type="Thinking",
              config=_THINKING_CONFIG, is_default=True),
    # Gemini
    ModelInfo(id="gemini-2.0-flash", name="Gemini 2.0 Flash", provider="gemini", reasoning_type="Intelligence",
              config=ModelConfig(temperature=0.4, top_p=0.95, max_tokens=4000)),
    ModelInfo(id="gemini-2.5-flash-preview-05-20", name="Gemini 2.5 Flash Preview", provider="gemini",
              reasoning_type="Thinking", config=_THINKING_CONFIG, is_default=True),
    ModelInfo(id="gemini-2.5-pro-preview-06-05", name="Gemini 2.5 Pro Preview", provider="gemini",
              reasoning_type="Thinking", config=_THINKING_CONFIG),
    # Anthropic
    ModelInfo(id="claude-3-5-sonnet-latest", name="Claude Sonnet 3.5 v2", provider="anthropic",
              reasoning_type="Intelligence", config=ModelConfig(temperature=1, top_p=None, max_tokens=4000)),
    ModelInfo(id="claude-3-7-sonnet-latest", name="Claude Sonnet 3.7", provider="anthropic",
              reasoning_type="Thinking", config=ModelConfig(temperature=1, top_p=None, max_tokens=4000)),
    ModelInfo(id="claude-sonnet-4-20250514", name="Claude Sonnet 4", provider="anthropic",
              reasoning_type="Thinking", config=ModelConfig(temperature=1, top_p=None, max_tokens=4000),
              is_default=True),
]

_MODELS_BY_ID: Dict[str, ModelInfo] = {model.id: model for model in MODELS}
_PROVIDERS_BY_ID: Dict[str, ProviderInfo] = {provider.id: provider for provider in PROVIDERS}


def get_model(model_id: str) -> Optional[ModelInfo]:
    return _MODELS_BY_ID.get(model_id)


def get_default_model_config(model_id: Optional[str]) -> ModelConfig:
    """Returns a fresh copy of the model's default config, or the global default."""
    model = _MODELS_BY_ID.get(model_id) if model_id else None
    config = model.config if model else DEFAULT_MODEL_CONFIG
    return config.model_copy()


def provider_for_model(model_id: str) -> ProviderId:
    """Resolves the provider of a model; unknown ids are inferred from their prefix."""
    model = _MODELS_BY_ID.get(model_id)
    if model:
        return model.provider
    if model_id.startswith("gemini"):
        return "gemini"
    if model_id.startswith("claude"):
        return "anthropic"
    return "openai"


def supports_continuation(provider: str) -> bool:
    info = _PROVIDERS_BY_ID.get(provider)
    return bool(info and info.supports_continuation)
