"""
Abstract interface for the persisted key-value configuration store.
"""

from abc import ABC, abstractmethod
from typing import Any


class SettingsStoreInterface(ABC):
    """Key-value settings that survive across sessions."""

    # True when get() touches the disk; async callers then read it off the event loop
    blocking = False

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        pass

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        pass
