"""Base vector store interface.

Defines the contract the vector service depends on, independent of the
backing implementation. A store owns exactly one table whose embedding column
has a fixed width (``dimensions``).

All database-touching methods are asynchronous.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Sequence


@dataclass(frozen=True)
class TableInfo:
    """Existence and declared width of the vector table."""
    exists: bool
    dimensions: Optional[int] = None


@dataclass(frozen=True)
class SearchHit:
    """A stored row and its distance to the query vector."""
    id: int
    content: str
    distance: float


class VectorStore(ABC):
    """Abstract base class for single-table vector stores.

    ``set_dimensions`` only changes the width used by the next
    ``create_table``; it never alters an existing table.
    """

    def __init__(self, dimensions: int):
        self.set_dimensions(dimensions)

    def get_dimensions(self) -> int:
        return self._dimensions

    def set_dimensions(self, dimensions: int) -> None:
        """Set the width used for future ``create_table`` calls."""
        if not isinstance(dimensions, int) or isinstance(dimensions, bool) or dimensions <= 0:
            raise ValueError(f"Dimensions must be a positive integer, got {dimensions!r}")
        self._dimensions = dimensions

    @property
    @abstractmethod
    def table_name(self) -> str:
        pass

    @abstractmethod
    def is_ready(self) -> bool:
        """Whether the underlying database is initialized."""
        pass

    @abstractmethod
    async def check_table_exists(self) -> TableInfo:
        """Report whether the table exists and its declared width.

        Inspection failures are reported as ``TableInfo(exists=False)``.
        """
        pass

    @abstractmethod
    async def create_table(self, force: bool = False) -> None:
        """Create the table, dropping any existing one first when ``force``."""
        pass

    @abstractmethod
    async def insert_vector(self, content: str, vector: Sequence[float]) -> int:
        """Insert a row and return its id."""
        pass

    @abstractmethod
    async def search_similar(self, vector: Sequence[float], limit: int = 5) -> List[SearchHit]:
        """Return up to ``limit`` rows ordered by ascending distance."""
        pass

    @abstractmethod
    async def count_vectors(self) -> int:
        """Number of rows in the table."""
        pass

    @abstractmethod
    async def save(self) -> None:
        """Persist the table; no-op when not ready."""
        pass
