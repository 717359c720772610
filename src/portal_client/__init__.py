"""Authenticated, retrying API client with session lifecycle management."""

from __future__ import annotations

from .app import PortalClient  # noqa: F401
from .cache import QueryCache  # noqa: F401
from .config import ClientConfig  # noqa: F401
from .core.models import Outcome  # noqa: F401
from .utils.logging import setup_logging  # noqa: F401

__version__ = "0.1.0"

__all__ = ["PortalClient", "QueryCache", "ClientConfig", "Outcome", "setup_logging", "__version__"]
