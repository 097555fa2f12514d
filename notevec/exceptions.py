"""Exception hierarchy shared by stores, models, and the service.

Store errors carry the failing ``action`` (``create``, ``insert``, ``search``,
...) and the underlying ``cause`` so callers can present a precise message.
None of these are retried internally.
"""

from typing import Optional


class NotevecError(Exception):
    """Base exception for notevec."""
    pass


class StoreError(NotevecError):
    """A database operation issued by a vector store failed."""

    def __init__(self, action: str, cause: Optional[BaseException] = None, message: Optional[str] = None):
        self.action = action
        self.cause = cause
        if message is None:
            message = f"Vector store {action} failed"
            if cause is not None:
                message = f"{message}: {cause}"
        super().__init__(message)


class NotReadyError(StoreError):
    """The database connection has not been initialized."""

    def __init__(self, action: str = "access"):
        super().__init__(action, message=f"Database is not ready for {action}")


class NoTableError(StoreError):
    """Search was attempted before the vector table exists."""

    def __init__(self, table_name: str):
        self.table_name = table_name
        super().__init__(
            "search",
            message=f"Vector table {table_name} does not exist. Create it first.",
        )


class DatabaseConnectionError(StoreError):
    """Connecting to the database failed."""

    def __init__(self, cause: BaseException):
        super().__init__("connect", cause)


class ConfigError(NotevecError):
    """Provider configuration is missing or invalid."""
    pass


class EmbeddingError(NotevecError):
    """The embedding backend failed or returned an unusable response."""

    def __init__(self, model_name: str, cause: Optional[BaseException] = None, message: Optional[str] = None):
        self.model_name = model_name
        self.cause = cause
        if message is None:
            message = f"Embedding generation with {model_name} failed"
            if cause is not None:
                message = f"{message}: {cause}"
        super().__init__(message)
