# Ports (Protocol Interfaces)
# Abstract interfaces for adapters; no implementations here

from src.core.ports.remote import ContentRemotePort, RemoteResult, RemoteStoreError

__all__ = [
    "ContentRemotePort",
    "RemoteResult",
    "RemoteStoreError",
]
