"""Provider registry: config validation and model construction.

Each ``EmbeddingProvider`` maps to a ``ProviderRegistryEntry`` describing how
to read its settings, which fields are required, and how to build a model.
New backends are added with ``ProviderRegistry.register`` without touching
call sites.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

import structlog

from ..exceptions import ConfigError
from .base import (
    EmbeddingModel,
    EmbeddingModelDescriptor,
    EmbeddingProvider,
    ModelConfig,
    is_valid_url,
)
from .catalog import ModelCatalog
from .ollama import OllamaEmbeddingModel
from .openai import OpenAIEmbeddingModel

logger = structlog.get_logger("embeddings.providers")


class ModelConfigField(Enum):
    """Standard keys of a ``ModelConfig``."""
    BASE_URL = "base_url"
    API_KEY = "api_key"


@dataclass(frozen=True)
class FieldMetadata:
    name: str
    description: str
    placeholder: str
    is_password: bool


MODEL_FIELD_METADATA: Dict[ModelConfigField, FieldMetadata] = {
    ModelConfigField.BASE_URL: FieldMetadata(
        name="Base URL",
        description="The base URL for the API",
        placeholder="https://api.example.com",
        is_password=False,
    ),
    ModelConfigField.API_KEY: FieldMetadata(
        name="API Key",
        description="Your API key for authentication",
        placeholder="Enter API key...",
        is_password=True,
    ),
}

ModelFactory = Callable[..., EmbeddingModel]
ConfigGetter = Callable[[Any], ModelConfig]


@dataclass
class ProviderRegistryEntry:
    """How to configure and build models for one provider.

    ``factory`` is called as ``factory(descriptor, config, **kwargs)``;
    ``config_getter`` receives the settings object passed to
    ``ProviderRegistry.resolve_config``.
    """

    factory: ModelFactory
    config_getter: ConfigGetter
    display_name: str
    required_fields: Tuple[ModelConfigField, ...] = ()
    optional_fields: Tuple[ModelConfigField, ...] = ()
    factory_kwargs: Dict[str, Any] = field(default_factory=dict)


def _settings_getter(provider: EmbeddingProvider) -> ConfigGetter:
    def getter(settings: Any) -> ModelConfig:
        return settings.provider_config(provider)
    return getter


class ProviderRegistry:
    """Registry of embedding providers."""

    def __init__(self, entries: Optional[Dict[EmbeddingProvider, ProviderRegistryEntry]] = None):
        self._entries: Dict[EmbeddingProvider, ProviderRegistryEntry] = dict(entries or {})

    def register(self, provider: EmbeddingProvider, entry: ProviderRegistryEntry) -> None:
        """Register or replace the entry for ``provider``."""
        self._entries[provider] = entry
        logger.debug("Registered embedding provider", provider=provider.value, display_name=entry.display_name)

    def get(self, provider: EmbeddingProvider) -> Optional[ProviderRegistryEntry]:
        return self._entries.get(provider)

    def entries(self) -> List[Tuple[EmbeddingProvider, ProviderRegistryEntry]]:
        return list(self._entries.items())

    def _require(self, provider: EmbeddingProvider) -> ProviderRegistryEntry:
        entry = self._entries.get(provider)
        if entry is None:
            raise ConfigError(f"Unsupported provider: {_provider_label(provider)}")
        return entry

    def validate_config(self, provider: EmbeddingProvider, config: ModelConfig) -> List[str]:
        """Validate ``config`` against the provider's field requirements.

        Returns a list of human-readable errors, empty if valid.
        """
        entry = self._entries.get(provider)
        if entry is None:
            return [f"Unsupported provider: {_provider_label(provider)}"]

        errors = []
        for config_field in entry.required_fields:
            if not getattr(config, config_field.value, None):
                errors.append(f"{MODEL_FIELD_METADATA[config_field].name} is required")

        for config_field in entry.required_fields + entry.optional_fields:
            value = getattr(config, config_field.value, None)
            if value and config_field == ModelConfigField.BASE_URL and not is_valid_url(value):
                errors.append(f"{MODEL_FIELD_METADATA[config_field].name}: Please enter a valid URL")

        return errors

    def resolve_config(self, settings: Any, descriptor: EmbeddingModelDescriptor) -> ModelConfig:
        """Read and validate the config for ``descriptor``'s provider.

        Raises
        - ``ConfigError`` when the provider is unknown or the config invalid
        """
        entry = self._require(descriptor.provider)
        config = entry.config_getter(settings)
        errors = self.validate_config(descriptor.provider, config)
        if errors:
            logger.warning(
                "Invalid provider configuration",
                provider=descriptor.provider.value,
                model_name=descriptor.name,
                errors=errors,
            )
            raise ConfigError(f"Invalid configuration for {descriptor.provider.value}: {', '.join(errors)}")
        return config

    def create_model(self, descriptor: EmbeddingModelDescriptor, config: ModelConfig, **kwargs: Any) -> EmbeddingModel:
        """Construct a model instance for ``descriptor``."""
        entry = self._require(descriptor.provider)
        factory_kwargs = {**entry.factory_kwargs, **kwargs}
        model = entry.factory(descriptor, config, **factory_kwargs)
        logger.info(
            "Created embedding model",
            model_name=descriptor.name,
            provider=descriptor.provider.value,
            dimensions=descriptor.dimensions,
        )
        return model

    def get_embedding_model(self, name: str, settings: Any, catalog: ModelCatalog, **kwargs: Any) -> EmbeddingModel:
        """Look up ``name`` in ``catalog``, resolve its config, and build it."""
        descriptor = catalog.get_info(name)
        if descriptor is None:
            raise ConfigError(f"Model {name} not found in available models")
        config = self.resolve_config(settings, descriptor)
        return self.create_model(descriptor, config, **kwargs)


def _provider_label(provider: Any) -> str:
    return provider.value if isinstance(provider, EmbeddingProvider) else str(provider)


def create_default_registry(timeout: Optional[float] = None) -> ProviderRegistry:
    """Registry with the Ollama and OpenAI providers.

    Parameters
    - timeout: HTTP timeout in seconds forwarded to every model built
    """
    factory_kwargs = {"timeout": timeout} if timeout is not None else {}
    return ProviderRegistry({
        EmbeddingProvider.OLLAMA: ProviderRegistryEntry(
            factory=OllamaEmbeddingModel,
            config_getter=_settings_getter(EmbeddingProvider.OLLAMA),
            display_name="Ollama",
            required_fields=(ModelConfigField.BASE_URL,),
            factory_kwargs=dict(factory_kwargs),
        ),
        EmbeddingProvider.OPENAI: ProviderRegistryEntry(
            factory=OpenAIEmbeddingModel,
            config_getter=_settings_getter(EmbeddingProvider.OPENAI),
            display_name="OpenAI",
            required_fields=(ModelConfigField.API_KEY,),
            optional_fields=(ModelConfigField.BASE_URL,),
            factory_kwargs=dict(factory_kwargs),
        ),
    })
