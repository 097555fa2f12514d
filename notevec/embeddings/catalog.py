"""Catalog of known embedding models.

The catalog is an ordinary object built at startup and passed to whoever
needs it; there is no module-level registry to mutate.
"""

from typing import Dict, Iterable, Iterator, List, Optional

from .base import EmbeddingModelDescriptor, EmbeddingProvider


DEFAULT_MODELS = (
    EmbeddingModelDescriptor(
        name="nomic-embed-text",
        dimensions=768,
        description="Nomic Embed Text - High quality text embeddings (768 dimensions)",
        provider=EmbeddingProvider.OLLAMA,
    ),
    EmbeddingModelDescriptor(
        name="all-minilm",
        dimensions=384,
        description="All-MiniLM - Lightweight text embeddings (384 dimensions)",
        provider=EmbeddingProvider.OLLAMA,
    ),
    EmbeddingModelDescriptor(
        name="mxbai-embed-large",
        dimensions=1024,
        description="MxbAI Embed Large - High quality text embeddings (1024 dimensions)",
        provider=EmbeddingProvider.OLLAMA,
    ),
    EmbeddingModelDescriptor(
        name="text-embedding-3-small",
        dimensions=1536,
        description="OpenAI text-embedding-3-small (1536 dimensions)",
        provider=EmbeddingProvider.OPENAI,
    ),
    EmbeddingModelDescriptor(
        name="text-embedding-3-large",
        dimensions=3072,
        description="OpenAI text-embedding-3-large (3072 dimensions)",
        provider=EmbeddingProvider.OPENAI,
    ),
    EmbeddingModelDescriptor(
        name="text-embedding-ada-002",
        dimensions=1536,
        description="OpenAI text-embedding-ada-002 (1536 dimensions)",
        provider=EmbeddingProvider.OPENAI,
    ),
)


class ModelCatalog:
    """Lookup table of ``EmbeddingModelDescriptor`` keyed by model name."""

    def __init__(self, descriptors: Iterable[EmbeddingModelDescriptor] = ()):
        self._models: Dict[str, EmbeddingModelDescriptor] = {}
        for descriptor in descriptors:
            self.register(descriptor)

    def register(self, descriptor: EmbeddingModelDescriptor) -> None:
        """Add ``descriptor``, replacing any entry with the same name."""
        self._models[descriptor.name] = descriptor

    def get_info(self, name: str) -> Optional[EmbeddingModelDescriptor]:
        return self._models.get(name)

    def list_for_provider(self, provider: EmbeddingProvider) -> List[EmbeddingModelDescriptor]:
        return [m for m in self._models.values() if m.provider == provider]

    def names(self) -> List[str]:
        return list(self._models)

    def __contains__(self, name: object) -> bool:
        return name in self._models

    def __iter__(self) -> Iterator[EmbeddingModelDescriptor]:
        return iter(self._models.values())

    def __len__(self) -> int:
        return len(self._models)


def create_default_catalog() -> ModelCatalog:
    """Create a catalog holding the built-in Ollama and OpenAI models."""
    return ModelCatalog(DEFAULT_MODELS)
