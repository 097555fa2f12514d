"""Vector embeddings and similarity search for note content.

Subpackages:
- ``notevec.common``: configuration, logging, and metrics.
- ``notevec.embeddings``: embedding model interface, catalog, and providers.
- ``notevec.vector_store``: database access and the pgvector-backed store.

Entry points:
- ``notevec.service.VectorService`` coordinates a model with a store.
- ``notevec.cli`` exposes the same operations on the command line.
"""

__version__ = "0.3.0"
