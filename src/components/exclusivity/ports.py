"""
Exclusivity component port definitions.
"""

from __future__ import annotations

from typing import Protocol

from src.domain.entities import Popup


class ActivationWriterPort(Protocol):
    """Writes the coordinator needs to apply a decision."""

    async def deactivate(self, item_id: str) -> Popup:
        """Persist `inactive` for an existing popup. Raises RemoteStoreError."""
        ...

    async def persist(self, candidate: Popup) -> Popup:
        """Create or update the candidate as given. Raises RemoteStoreError."""
        ...
