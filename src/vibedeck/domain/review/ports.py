"""
Ports (interfaces) for persistence and progress tracking.

These define the contract that infrastructure adapters must implement.
Application services depend on these abstractions, not concrete implementations.
"""

from abc import ABC, abstractmethod
from typing import Any


class KeyValueStore(ABC):
    """
    Port for the persistent key-value store.

    Implementations:
        - JsonFileStore: One JSON file per key under a data directory.
        - MemoryStore: Process-local dict, used by tests.
    """

    @abstractmethod
    def get(self, key: str) -> Any | None:
        """
        Return the decoded JSON value stored under key.

        Absent keys and malformed content both return None; this never raises
        for bad data.
        """
        pass

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        """Serialize value as JSON and store it under key."""
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove key. Deleting an absent key is a no-op."""
        pass


class ProgressTracker(ABC):
    """
    Port for the problem-status tracker.

    The session manager only ever calls update_status, fire-and-forget.
    """

    @abstractmethod
    def update_status(self, problem_id: str, status: str) -> None:
        pass
