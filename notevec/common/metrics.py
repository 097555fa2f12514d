"""Metrics collection for embedding, store, and search operations.

A thin convenience wrapper around ``prometheus_client`` so the service records
consistent counters and histograms.

Design notes
- Metrics and labels are predeclared to keep label sets small and stable
- Each collector owns its registry, so tests can create them freely
"""

from typing import Optional

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest
import structlog

logger = structlog.get_logger("metrics")


class VectorMetrics:
    """Metrics for the vector service.

    Parameters
    - service_name: Logical name of the process recording the metrics
    - registry: Optional custom ``CollectorRegistry``
    """

    def __init__(self, service_name: str = "notevec", registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
        self.registry = registry or CollectorRegistry()

        self.embedding_requests = Counter(
            'notevec_embedding_requests_total',
            'Total embedding generation requests',
            ['model_name', 'status'],
            registry=self.registry
        )

        self.embedding_duration = Histogram(
            'notevec_embedding_duration_seconds',
            'Embedding generation duration',
            ['model_name'],
            registry=self.registry
        )

        self.dimension_mismatches = Counter(
            'notevec_embedding_dimension_mismatch_total',
            'Embeddings whose length differed from the model dimensions',
            ['model_name'],
            registry=self.registry
        )

        self.vector_store_operations = Counter(
            'notevec_vector_store_operations_total',
            'Total vector store operations',
            ['operation', 'status'],
            registry=self.registry
        )

        self.search_requests = Counter(
            'notevec_search_requests_total',
            'Total similarity searches',
            ['model_name'],
            registry=self.registry
        )

        self.search_duration = Histogram(
            'notevec_search_duration_seconds',
            'Similarity search duration',
            ['model_name'],
            registry=self.registry
        )

        self.table_recreations = Counter(
            'notevec_table_recreations_total',
            'Destructive vector table recreations',
            ['table_name'],
            registry=self.registry
        )

    def record_embedding(self, model_name: str, duration: float, status: str = "success") -> None:
        """Record an embedding call; ``duration`` is in seconds."""
        self.embedding_requests.labels(model_name=model_name, status=status).inc()
        self.embedding_duration.labels(model_name=model_name).observe(duration)

    def record_dimension_mismatch(self, model_name: str) -> None:
        """Record an embedding whose width differed from the descriptor."""
        self.dimension_mismatches.labels(model_name=model_name).inc()

    def record_vector_store_operation(self, operation: str, status: str = "success") -> None:
        """Record a vector store operation."""
        self.vector_store_operations.labels(operation=operation, status=status).inc()

    def record_search(self, model_name: str, duration: float) -> None:
        """Record a similarity search."""
        self.search_requests.labels(model_name=model_name).inc()
        self.search_duration.labels(model_name=model_name).observe(duration)

    def record_table_recreation(self, table_name: str) -> None:
        """Record a destructive table recreation."""
        self.table_recreations.labels(table_name=table_name).inc()

    def get_metrics(self) -> str:
        """Get metrics in Prometheus exposition format."""
        return generate_latest(self.registry).decode('utf-8')
