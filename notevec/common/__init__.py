"""Common utilities shared across notevec.

Includes:
- ``config``: pydantic-settings configuration from environment variables.
- ``logging``: structured logging setup with structlog.
- ``metrics``: Prometheus metrics for embedding, store, and search calls.

Import pattern:
- from notevec.common.config import NotevecConfig
- from notevec.common.logging import configure_logging
"""
