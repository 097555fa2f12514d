"""Ollama embedding backend.

Calls ``POST {base_url}/embed`` with ``{"model", "input"}`` and reads the first
entry of ``embeddings``. The base URL includes the ``/api`` prefix, e.g.
``http://localhost:11434/api``.
"""

from typing import Any, Optional

import httpx

from .base import EmbeddingModelDescriptor, ModelConfig, require_url
from .http import HttpEmbeddingModel

DEFAULT_OLLAMA_BASE_URL = "http://localhost:11434/api"


class OllamaEmbeddingModel(HttpEmbeddingModel):
    """Embedding model served by a local or remote Ollama instance."""

    def __init__(
        self,
        descriptor: EmbeddingModelDescriptor,
        config: ModelConfig,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
    ):
        super().__init__(descriptor, config, client=client, timeout=timeout)
        self.base_url = require_url(config.base_url)

    def _endpoint(self) -> str:
        return f"{self.base_url}/embed"

    def _extract_embedding(self, body: Any) -> Any:
        return body["embeddings"][0]
