"""
Core module for application configuration and utilities.

Note: auth is not imported at package level to avoid circular imports with
mediarating.models. Import it directly: from mediarating.core.auth import ...
"""
from .config import settings

__all__ = ["settings"]
