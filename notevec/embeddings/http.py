"""Shared HTTP plumbing for embedding backends.

Subclasses describe the request and how to read the vector out of the
response; this module owns the ``httpx.AsyncClient``, error wrapping, and the
advisory width check.
"""

import time
from abc import abstractmethod
from typing import Any, Dict, List, Optional

import httpx
import structlog

from ..exceptions import EmbeddingError
from .base import EmbeddingModel, EmbeddingModelDescriptor, ModelConfig

logger = structlog.get_logger("embeddings.http")


class HttpEmbeddingModel(EmbeddingModel):
    """Embedding model that makes one JSON POST per text."""

    def __init__(
        self,
        descriptor: EmbeddingModelDescriptor,
        config: ModelConfig,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
    ):
        super().__init__(descriptor, config)
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    @abstractmethod
    def _endpoint(self) -> str:
        """Absolute URL of the embedding endpoint."""

    def _headers(self) -> Dict[str, str]:
        return {"Content-Type": "application/json"}

    def _payload(self, text: str) -> Dict[str, Any]:
        return {"model": self.name, "input": text}

    @abstractmethod
    def _extract_embedding(self, body: Any) -> Any:
        """Pull the raw vector out of the decoded response body."""

    async def generate_embedding(self, text: str) -> List[float]:
        """Generate an embedding for ``text``.

        Raises
        - ``EmbeddingError`` on transport errors, non-2xx responses, or a
          response without a numeric vector
        """
        start = time.perf_counter()
        url = self._endpoint()
        try:
            response = await self._get_client().post(
                url,
                json=self._payload(text),
                headers=self._headers(),
            )
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(
                "Embedding request rejected",
                model_name=self.name,
                status_code=e.response.status_code,
                error=str(e),
            )
            raise EmbeddingError(self.name, e) from e
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Embedding request failed", model_name=self.name, url=url, error=str(e))
            raise EmbeddingError(self.name, e) from e

        try:
            raw = self._extract_embedding(body)
            if not isinstance(raw, (list, tuple)):
                raise TypeError(f"expected a list of numbers, got {type(raw).__name__}")
            if any(isinstance(v, (str, bool)) for v in raw):
                raise TypeError("embedding values must be numbers")
            vector = [float(v) for v in raw]
        except (KeyError, IndexError, TypeError, ValueError) as e:
            logger.error("Malformed embedding response", model_name=self.name, error=str(e))
            raise EmbeddingError(self.name, e, message=f"Malformed embedding response from {self.name}: {e}") from e

        if not vector:
            raise EmbeddingError(self.name, message=f"Empty embedding returned by {self.name}")

        self.check_dimensions(vector)
        logger.debug(
            "Generated embedding",
            model_name=self.name,
            text_length=len(text),
            dimensions=len(vector),
            duration_ms=round((time.perf_counter() - start) * 1000, 2),
        )
        return vector

    async def aclose(self) -> None:
        """Close the HTTP client if this model created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
