"""Tests for embedding models, the catalog, and the provider registry."""

import json

import httpx
import pytest

from notevec.common.config import NotevecConfig
from notevec.embeddings.base import EmbeddingModelDescriptor, EmbeddingProvider, ModelConfig
from notevec.embeddings.catalog import ModelCatalog, create_default_catalog
from notevec.embeddings.ollama import OllamaEmbeddingModel
from notevec.embeddings.openai import OpenAIEmbeddingModel
from notevec.embeddings.providers import (
    MODEL_FIELD_METADATA,
    ModelConfigField,
    ProviderRegistry,
    create_default_registry,
)
from notevec.exceptions import ConfigError, EmbeddingError
from tests.fakes import make_descriptor


def _client(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


OLLAMA_SMALL = make_descriptor("all-minilm", 3, EmbeddingProvider.OLLAMA)
OPENAI_SMALL = make_descriptor("text-embedding-3-small", 3, EmbeddingProvider.OPENAI)


def test_descriptor_rejects_non_positive_dimensions():
    with pytest.raises(ValueError):
        EmbeddingModelDescriptor("bad", 0, "", EmbeddingProvider.OLLAMA)
    with pytest.raises(ValueError):
        EmbeddingModelDescriptor("", 3, "", EmbeddingProvider.OLLAMA)


def test_default_catalog_contents():
    catalog = create_default_catalog()
    assert len(catalog) == 6
    assert catalog.get_info("nomic-embed-text").dimensions == 768
    assert catalog.get_info("all-minilm").dimensions == 384
    assert catalog.get_info("text-embedding-3-large").provider == EmbeddingProvider.OPENAI
    assert catalog.get_info("missing") is None
    assert {m.name for m in catalog.list_for_provider(EmbeddingProvider.OLLAMA)} == {
        "nomic-embed-text", "all-minilm", "mxbai-embed-large",
    }


def test_catalog_register_replaces_by_name():
    catalog = ModelCatalog([make_descriptor("custom", 8)])
    catalog.register(make_descriptor("custom", 16))
    assert len(catalog) == 1
    assert "custom" in catalog
    assert catalog.get_info("custom").dimensions == 16
    assert catalog.names() == ["custom"]


def test_catalogs_are_independent():
    first = create_default_catalog()
    first.register(make_descriptor("extra", 4))
    assert "extra" not in create_default_catalog()


def test_validate_config_reports_missing_and_malformed_fields():
    registry = create_default_registry()

    assert registry.validate_config(EmbeddingProvider.OLLAMA, ModelConfig()) == ["Base URL is required"]
    assert registry.validate_config(EmbeddingProvider.OLLAMA, ModelConfig(base_url="not a url")) == [
        "Base URL: Please enter a valid URL",
    ]
    assert registry.validate_config(EmbeddingProvider.OPENAI, ModelConfig(base_url="nope")) == [
        "API Key is required",
        "Base URL: Please enter a valid URL",
    ]
    assert registry.validate_config(EmbeddingProvider.OPENAI, ModelConfig(api_key="sk-test")) == []


def test_validate_config_unknown_provider():
    registry = ProviderRegistry()
    assert registry.validate_config(EmbeddingProvider.OPENAI, ModelConfig()) == ["Unsupported provider: openai"]


def test_resolve_config_from_settings():
    registry = create_default_registry()
    catalog = create_default_catalog()

    config = registry.resolve_config(NotevecConfig(), catalog.get_info("nomic-embed-text"))
    assert config.base_url == "http://localhost:11434/api"

    with pytest.raises(ConfigError, match="Invalid configuration for openai: API Key is required"):
        registry.resolve_config(NotevecConfig(), catalog.get_info("text-embedding-3-small"))


def test_get_embedding_model_builds_provider_class():
    registry = create_default_registry(timeout=5.0)
    catalog = create_default_catalog()
    settings = NotevecConfig(notevec_openai_api_key="sk-test")

    ollama = registry.get_embedding_model("all-minilm", settings, catalog)
    openai = registry.get_embedding_model("text-embedding-3-small", settings, catalog)

    assert isinstance(ollama, OllamaEmbeddingModel)
    assert ollama.dimensions == 384
    assert ollama.timeout == 5.0
    assert isinstance(openai, OpenAIEmbeddingModel)
    assert openai.base_url == "https://api.openai.com/v1"

    with pytest.raises(ConfigError, match="not found"):
        registry.get_embedding_model("unknown-model", settings, catalog)


def test_registry_lists_entries():
    registry = create_default_registry()
    names = {provider: entry.display_name for provider, entry in registry.entries()}
    assert names == {EmbeddingProvider.OLLAMA: "Ollama", EmbeddingProvider.OPENAI: "OpenAI"}
    assert MODEL_FIELD_METADATA[ModelConfigField.API_KEY].is_password


def test_model_construction_validates_config():
    with pytest.raises(ConfigError):
        OllamaEmbeddingModel(OLLAMA_SMALL, ModelConfig())
    with pytest.raises(ConfigError):
        OllamaEmbeddingModel(OLLAMA_SMALL, ModelConfig(base_url="localhost"))
    with pytest.raises(ConfigError):
        OpenAIEmbeddingModel(OPENAI_SMALL, ModelConfig())


@pytest.mark.asyncio
async def test_ollama_generate_embedding():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"model": "all-minilm", "embeddings": [[0.1, 0.2, 0.3]]})

    model = OllamaEmbeddingModel(OLLAMA_SMALL, ModelConfig(base_url="http://ollama:11434/api/"), client=_client(handler))

    vector = await model.generate_embedding("hello")

    assert vector == pytest.approx([0.1, 0.2, 0.3])
    assert seen["url"] == "http://ollama:11434/api/embed"
    assert seen["body"] == {"model": "all-minilm", "input": "hello"}


@pytest.mark.asyncio
async def test_openai_generate_embedding_sends_bearer_token():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["Authorization"]
        return httpx.Response(200, json={"data": [{"index": 0, "embedding": [1, 0, 0]}]})

    model = OpenAIEmbeddingModel(OPENAI_SMALL, ModelConfig(api_key="sk-test"), client=_client(handler))

    assert await model.generate_embedding("hello") == [1.0, 0.0, 0.0]
    assert seen["url"] == "https://api.openai.com/v1/embeddings"
    assert seen["auth"] == "Bearer sk-test"


@pytest.mark.asyncio
async def test_width_mismatch_only_warns():
    def handler(request):
        return httpx.Response(200, json={"embeddings": [[0.5, 0.5]]})

    model = OllamaEmbeddingModel(OLLAMA_SMALL, ModelConfig(base_url="http://ollama/api"), client=_client(handler))

    vector = await model.generate_embedding("short")

    assert len(vector) == 2
    assert model.check_dimensions(vector) is False


@pytest.mark.asyncio
async def test_http_error_becomes_embedding_error():
    def handler(request):
        return httpx.Response(401, json={"error": "invalid api key"})

    model = OpenAIEmbeddingModel(OPENAI_SMALL, ModelConfig(api_key="sk-bad"), client=_client(handler))

    with pytest.raises(EmbeddingError) as exc_info:
        await model.generate_embedding("hello")
    assert exc_info.value.model_name == "text-embedding-3-small"
    assert isinstance(exc_info.value.cause, httpx.HTTPStatusError)


@pytest.mark.asyncio
async def test_transport_error_becomes_embedding_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    model = OllamaEmbeddingModel(OLLAMA_SMALL, ModelConfig(base_url="http://ollama/api"), client=_client(handler))

    with pytest.raises(EmbeddingError):
        await model.generate_embedding("hello")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [
        {"embeddings": []},
        {"unexpected": True},
        {"embeddings": [["x"]]},
        {"embeddings": [[]]},
        {"embeddings": ["123"]},
        {"embeddings": [{"0": 1.0}]},
        {"embeddings": [["1", "2", "3"]]},
    ],
)
async def test_malformed_response_becomes_embedding_error(body):
    def handler(request):
        return httpx.Response(200, json=body)

    model = OllamaEmbeddingModel(OLLAMA_SMALL, ModelConfig(base_url="http://ollama/api"), client=_client(handler))

    with pytest.raises(EmbeddingError):
        await model.generate_embedding("hello")


@pytest.mark.asyncio
async def test_aclose_only_closes_owned_client():
    injected = _client(lambda request: httpx.Response(200, json={"embeddings": [[1, 2, 3]]}))
    model = OllamaEmbeddingModel(OLLAMA_SMALL, ModelConfig(base_url="http://ollama/api"), client=injected)
    await model.aclose()
    assert not injected.is_closed

    owned = OllamaEmbeddingModel(OLLAMA_SMALL, ModelConfig(base_url="http://ollama/api"))
    owned._get_client()
    await owned.aclose()
    assert owned._client is None
    await injected.aclose()
