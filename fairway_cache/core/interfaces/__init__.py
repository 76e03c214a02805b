"""
Core Interfaces Module

Protocols for dependency injection and testability.
"""

from .storage import KeyPredicate, StorageBackend, WriteOutcome

__all__ = [
    "KeyPredicate",
    "StorageBackend",
    "WriteOutcome",
]
