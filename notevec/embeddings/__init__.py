"""Embedding models and their metadata.

Primary components:
- ``base``: abstract ``EmbeddingModel``, descriptors, and ``ModelConfig``.
- ``catalog``: ``ModelCatalog`` lookup of known models.
- ``ollama`` / ``openai``: HTTP-backed model implementations.
- ``providers``: provider registry that validates config and builds models.

Guidance:
- Build models through ``ProviderRegistry.get_embedding_model`` so call sites
  stay independent of a specific backend.
"""
