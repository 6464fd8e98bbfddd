"""HTTP API layer."""

from .app import create_fastapi_app
from .auth import InitDataError, validate_init_data

__all__ = ["InitDataError", "create_fastapi_app", "validate_init_data"]
