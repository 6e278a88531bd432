"""Persistence gateways - durable mirror of undelivered events."""

from .base import PersistenceError, PersistenceGateway
from .file import JsonFilePersistence
from .memory import InMemoryPersistence

__all__ = [
    "PersistenceError",
    "PersistenceGateway",
    "JsonFilePersistence",
    "InMemoryPersistence",
]
