"""OpenAI embedding backend.

Calls ``POST {base_url}/embeddings`` with a bearer token. ``base_url`` is
optional and defaults to the public API, which also lets OpenAI-compatible
gateways be used.
"""

from typing import Any, Dict, Optional

import httpx

from ..exceptions import ConfigError
from .base import EmbeddingModelDescriptor, ModelConfig, require_url
from .http import HttpEmbeddingModel

DEFAULT_OPENAI_BASE_URL = "https://api.openai.com/v1"


class OpenAIEmbeddingModel(HttpEmbeddingModel):
    """Embedding model served by the OpenAI embeddings API."""

    def __init__(
        self,
        descriptor: EmbeddingModelDescriptor,
        config: ModelConfig,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
    ):
        super().__init__(descriptor, config, client=client, timeout=timeout)
        if not config.api_key:
            raise ConfigError("OpenAI API key is required for OpenAI models")
        self.api_key = config.api_key
        self.base_url = require_url(config.base_url or DEFAULT_OPENAI_BASE_URL)

    def _endpoint(self) -> str:
        return f"{self.base_url}/embeddings"

    def _headers(self) -> Dict[str, str]:
        headers = super()._headers()
        headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def _extract_embedding(self, body: Any) -> Any:
        return body["data"][0]["embedding"]
