"""Base embedding model interface.

Defines the capability the service depends on, independent of which backend
(Ollama, OpenAI, ...) produces the vectors.

Embedding width is advisory: ``check_dimensions`` logs a mismatch between the
returned vector and the declared ``dimensions`` but never rejects it.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, TypeAdapter, ValidationError
from pydantic import AnyUrl
import structlog

from ..exceptions import ConfigError

logger = structlog.get_logger("embeddings.base")

_URL_ADAPTER = TypeAdapter(AnyUrl)


class EmbeddingProvider(Enum):
    """Supported embedding backends."""
    OLLAMA = "ollama"
    OPENAI = "openai"


@dataclass(frozen=True)
class EmbeddingModelDescriptor:
    """Identity and width of a known embedding model."""

    name: str
    dimensions: int
    description: str
    provider: EmbeddingProvider

    def __post_init__(self):
        if not self.name:
            raise ValueError("Model name must not be empty")
        if not isinstance(self.dimensions, int) or isinstance(self.dimensions, bool) or self.dimensions <= 0:
            raise ValueError(f"Model dimensions must be a positive integer, got {self.dimensions!r}")


class ModelConfig(BaseModel):
    """Connection settings for one provider.

    Extra keys are kept so providers can read fields beyond the standard ones.
    """

    model_config = ConfigDict(extra="allow", frozen=True)

    base_url: Optional[str] = None
    api_key: Optional[str] = None


def is_valid_url(value: str) -> bool:
    """Return True when ``value`` parses as an absolute URL."""
    try:
        _URL_ADAPTER.validate_python(value)
    except ValidationError:
        return False
    return True


def require_url(value: Optional[str], field_name: str = "Base URL") -> str:
    """Validate a required URL field, raising ``ConfigError`` on failure."""
    if not value:
        raise ConfigError(f"{field_name} is required")
    if not is_valid_url(value):
        raise ConfigError(f"{field_name}: Please enter a valid URL")
    return value.rstrip("/")


class EmbeddingModel(ABC):
    """Abstract base class for embedding models.

    Implementations must return a flat list of floats per input text and raise
    ``EmbeddingError`` for backend failures.
    """

    def __init__(self, descriptor: EmbeddingModelDescriptor, config: ModelConfig):
        self.descriptor = descriptor
        self.config = config

    @property
    def name(self) -> str:
        return self.descriptor.name

    @property
    def dimensions(self) -> int:
        return self.descriptor.dimensions

    @property
    def description(self) -> str:
        return self.descriptor.description

    @property
    def provider(self) -> EmbeddingProvider:
        return self.descriptor.provider

    @abstractmethod
    async def generate_embedding(self, text: str) -> List[float]:
        """Generate an embedding vector for ``text``."""
        pass

    async def aclose(self) -> None:
        """Release any transport held by the model."""
        pass

    def check_dimensions(self, vector: Sequence[float]) -> bool:
        """Warn when ``vector`` does not have the declared width.

        Returns ``True`` when the width matches.
        """
        if len(vector) != self.dimensions:
            logger.warning(
                "embedding_dimension_mismatch",
                model_name=self.name,
                expected=self.dimensions,
                actual=len(vector),
            )
            return False
        return True

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, dimensions={self.dimensions})"
