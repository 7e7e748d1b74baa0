"""
Lifecycle component - popup and circular stores.
"""

from .component import CircularStore, LifecycleStore, PopupStore
from .models import (
    FetchOutput,
    InvariantViolationError,
    LifecycleError,
    LifecycleOutput,
)

__all__ = [
    # Stores
    "LifecycleStore",
    "PopupStore",
    "CircularStore",
    # Models
    "FetchOutput",
    "LifecycleError",
    "LifecycleOutput",
    "InvariantViolationError",
]
