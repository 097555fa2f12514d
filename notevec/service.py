"""Vector service: coordinates an embedding model with a vector store.

Responsibilities
- Index content: embed, insert, persist
- Search by content: embed the query, rank stored rows, present similarity
- Guard dimension compatibility between the active model and the table

Destructive steps are two-phase. ``insert_content`` returns an outcome with
``requires_confirmation`` instead of recreating the table on its own, and
``plan_model_change`` reports what ``apply_model_change`` would do. Callers
decide, then call again with explicit consent.

A single ``asyncio.Lock`` covers every check-then-act sequence (compatibility
check, recreation, insert, model swap). Searches do not take it.
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Any, List, Optional

import structlog

from .common.config import NotevecConfig
from .common.logging import log_performance
from .common.metrics import VectorMetrics
from .embeddings.base import EmbeddingModel, EmbeddingModelDescriptor
from .embeddings.catalog import ModelCatalog, create_default_catalog
from .embeddings.providers import ProviderRegistry, create_default_registry
from .exceptions import ConfigError, EmbeddingError, NoTableError, StoreError
from .vector_store.base import TableInfo, VectorStore
from .vector_store.database import Database
from .vector_store.factory import create_vector_store_from_config

logger = structlog.get_logger("vector_service")


@dataclass(frozen=True)
class CompatibilityReport:
    """Whether the table width matches the active model."""
    compatible: bool
    model_dimensions: int
    table_dimensions: Optional[int] = None


@dataclass(frozen=True)
class InsertOutcome:
    """Result of ``insert_content``.

    Exactly one of ``id`` and ``requires_confirmation`` is meaningful: an
    incompatible table yields ``requires_confirmation=True`` and no id.
    """
    compatibility: CompatibilityReport
    id: Optional[int] = None
    requires_confirmation: bool = False

    @property
    def inserted(self) -> bool:
        return self.id is not None


@dataclass(frozen=True)
class SearchResult:
    id: int
    content: str
    distance: float
    similarity: float


@dataclass(frozen=True)
class ModelChangeReport:
    dimensions_changed: bool
    new_dimensions: int
    old_dimensions: Optional[int] = None


@dataclass(frozen=True)
class ModelChangePlan:
    """What switching to ``descriptor`` would mean for the current table."""
    descriptor: EmbeddingModelDescriptor
    requires_confirmation: bool
    current_dimensions: int
    table_dimensions: Optional[int] = None


class VectorService:
    """Coordinates one embedding model and one vector store."""

    def __init__(
        self,
        model: EmbeddingModel,
        store: VectorStore,
        catalog: Optional[ModelCatalog] = None,
        registry: Optional[ProviderRegistry] = None,
        settings: Any = None,
        metrics: Optional[VectorMetrics] = None,
    ):
        """Create the service.

        Parameters
        - model: Active embedding model
        - store: Store owning the vector table
        - catalog: Known models, required by ``plan_model_change``
        - registry, settings: Used by ``apply_model_change`` to build models
        - metrics: Optional ``VectorMetrics`` to record into
        """
        self._model = model
        self.store = store
        self.catalog = catalog
        self.registry = registry
        self.settings = settings
        self.metrics = metrics
        self._lock = asyncio.Lock()

        if store.get_dimensions() != model.dimensions:
            logger.info(
                "Aligning store dimensions with model",
                model_name=model.name,
                store_dimensions=store.get_dimensions(),
                model_dimensions=model.dimensions,
            )
            store.set_dimensions(model.dimensions)

    @property
    def model(self) -> EmbeddingModel:
        return self._model

    @property
    def model_name(self) -> str:
        return self._model.name

    @property
    def model_dimensions(self) -> int:
        return self._model.dimensions

    def _compatibility(self, info: TableInfo) -> CompatibilityReport:
        model_dimensions = self._model.dimensions
        if not info.exists or not info.dimensions:
            return CompatibilityReport(compatible=True, model_dimensions=model_dimensions)
        return CompatibilityReport(
            compatible=info.dimensions == model_dimensions,
            model_dimensions=model_dimensions,
            table_dimensions=info.dimensions,
        )

    async def check_compatibility(self) -> CompatibilityReport:
        """Compare the table's declared width with the active model.

        An absent table, or one without a discoverable width, is compatible.
        """
        info = await self.store.check_table_exists()
        return self._compatibility(info)

    async def _embed(self, text: str) -> List[float]:
        model = self._model
        start = time.perf_counter()
        try:
            vector = await model.generate_embedding(text)
        except EmbeddingError:
            if self.metrics:
                self.metrics.record_embedding(model.name, time.perf_counter() - start, status="error")
            raise
        except Exception as e:
            if self.metrics:
                self.metrics.record_embedding(model.name, time.perf_counter() - start, status="error")
            logger.error("Embedding model raised", model_name=model.name, error=str(e))
            raise EmbeddingError(model.name, e) from e

        if self.metrics:
            self.metrics.record_embedding(model.name, time.perf_counter() - start)
            if len(vector) != model.dimensions:
                self.metrics.record_dimension_mismatch(model.name)
        return list(vector)

    async def _recreate_table(self) -> None:
        logger.warning(
            "Recreating vector table, existing vectors will be deleted",
            table=self.store.table_name,
            dimensions=self.store.get_dimensions(),
        )
        await self.store.create_table(force=True)
        await self.store.save()
        if self.metrics:
            self.metrics.record_table_recreation(self.store.table_name)

    async def recreate_table(self) -> None:
        """Drop and recreate the table with the active model's width."""
        async with self._lock:
            await self._recreate_table()

    async def insert_content(self, text: str, confirm_recreate: bool = False) -> InsertOutcome:
        """Embed ``text`` and store it.

        Parameters
        - text: Content to index
        - confirm_recreate: Consent to drop an incompatible table first

        Returns
        - ``InsertOutcome`` with the new id, or ``requires_confirmation=True``
          when the table is incompatible and consent was not given
        """
        if not text or not text.strip():
            raise ValueError("Cannot index empty content")

        start = time.perf_counter()
        async with self._lock:
            info = await self.store.check_table_exists()
            report = self._compatibility(info)

            if not report.compatible:
                if not confirm_recreate:
                    logger.warning(
                        "Vector table incompatible with model, confirmation required",
                        model_name=self.model_name,
                        model_dimensions=report.model_dimensions,
                        table_dimensions=report.table_dimensions,
                    )
                    return InsertOutcome(compatibility=report, requires_confirmation=True)

                await self._recreate_table()
                info = await self.store.check_table_exists()
                report = self._compatibility(info)
                if not report.compatible:
                    raise StoreError(
                        "create",
                        message=(
                            f"Vector table {self.store.table_name} still has "
                            f"{report.table_dimensions} dimensions after recreation"
                        ),
                    )

            if not info.exists:
                await self.store.create_table()

            vector = await self._embed(text)
            try:
                vector_id = await self.store.insert_vector(text, vector)
            except StoreError:
                if self.metrics:
                    self.metrics.record_vector_store_operation("insert", status="error")
                raise
            await self.store.save()

        if self.metrics:
            self.metrics.record_vector_store_operation("insert")
        log_performance(
            "insert_content",
            (time.perf_counter() - start) * 1000,
            model_name=self.model_name,
            id=vector_id,
        )
        return InsertOutcome(compatibility=report, id=vector_id)

    def _similarity(self, distance: float) -> float:
        # 1 - distance only holds for cosine distance, bounded to [0, 2]
        metric = getattr(self.store, "distance_metric", "cosine")
        if metric == "cosine" and 0.0 <= distance <= 2.0:
            return 1.0 - distance
        return distance

    async def search_similar(self, text: str, limit: int = 5) -> List[SearchResult]:
        """Find stored content closest to ``text``.

        Raises
        - ``NoTableError`` when the vector table has not been created
        """
        info = await self.store.check_table_exists()
        if not info.exists:
            raise NoTableError(self.store.table_name)

        start = time.perf_counter()
        vector = await self._embed(text)
        try:
            hits = await self.store.search_similar(vector, limit)
        except StoreError:
            if self.metrics:
                self.metrics.record_vector_store_operation("search", status="error")
            raise

        if self.metrics:
            self.metrics.record_vector_store_operation("search")
            self.metrics.record_search(self.model_name, time.perf_counter() - start)

        return [
            SearchResult(
                id=hit.id,
                content=hit.content,
                distance=hit.distance,
                similarity=self._similarity(hit.distance),
            )
            for hit in hits
        ]

    async def change_model(self, new_model: EmbeddingModel) -> ModelChangeReport:
        """Swap the active model; the table is left untouched.

        The next ``insert_content`` detects any width conflict.
        """
        async with self._lock:
            old_dimensions = self._model.dimensions
            old_name = self._model.name
            self._model = new_model
            self.store.set_dimensions(new_model.dimensions)

        changed = old_dimensions != new_model.dimensions
        logger.info(
            "Embedding model changed",
            old_model=old_name,
            new_model=new_model.name,
            old_dimensions=old_dimensions,
            new_dimensions=new_model.dimensions,
        )
        return ModelChangeReport(
            dimensions_changed=changed,
            new_dimensions=new_model.dimensions,
            old_dimensions=old_dimensions if changed else None,
        )

    def _lookup(self, name: str) -> EmbeddingModelDescriptor:
        if self.catalog is None:
            raise ConfigError("No model catalog configured")
        descriptor = self.catalog.get_info(name)
        if descriptor is None:
            raise ConfigError(f"Model {name} not found in available models")
        return descriptor

    async def plan_model_change(self, name: str) -> ModelChangePlan:
        """Describe switching to model ``name`` without changing anything."""
        descriptor = self._lookup(name)
        info = await self.store.check_table_exists()
        requires_confirmation = (
            info.exists
            and info.dimensions is not None
            and info.dimensions != descriptor.dimensions
        )
        return ModelChangePlan(
            descriptor=descriptor,
            requires_confirmation=requires_confirmation,
            current_dimensions=self._model.dimensions,
            table_dimensions=info.dimensions if info.exists else None,
        )

    async def apply_model_change(self, plan: ModelChangePlan, recreate_table: bool = False) -> ModelChangeReport:
        """Build the planned model and make it active.

        Parameters
        - plan: Result of ``plan_model_change``
        - recreate_table: Also drop and recreate the table at the new width
        """
        if self.registry is None or self.settings is None:
            raise ConfigError("Model changes need a provider registry and settings")

        descriptor = plan.descriptor
        config = self.registry.resolve_config(self.settings, descriptor)
        new_model = self.registry.create_model(descriptor, config)
        old_model = self._model
        report = await self.change_model(new_model)
        if old_model is not new_model:
            await old_model.aclose()

        if recreate_table:
            await self.recreate_table()
        elif plan.requires_confirmation:
            logger.warning(
                "Model changed without recreating the table; inserts will require confirmation",
                model_name=descriptor.name,
                table_dimensions=plan.table_dimensions,
            )
        return report

    async def aclose(self) -> None:
        """Release the active model's transport."""
        await self._model.aclose()


def create_vector_service(
    config: NotevecConfig,
    database: Database,
    catalog: Optional[ModelCatalog] = None,
    registry: Optional[ProviderRegistry] = None,
    metrics: Optional[VectorMetrics] = None,
) -> VectorService:
    """Wire a ``VectorService`` from settings.

    The selected model is looked up in ``catalog``, its provider config is
    validated, and the store is sized to the model.
    """
    catalog = catalog or create_default_catalog()
    registry = registry or create_default_registry(timeout=config.notevec_embedding_timeout)
    model = registry.get_embedding_model(config.notevec_selected_model, config, catalog)
    store = create_vector_store_from_config(config, database, model.dimensions)
    return VectorService(
        model,
        store,
        catalog=catalog,
        registry=registry,
        settings=config,
        metrics=metrics,
    )
