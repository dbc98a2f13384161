from __future__ import annotations

from abc import ABC, abstractmethod


class Storage(ABC):
    """Abstract key/value store for the few persisted game scalars."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        raise NotImplementedError

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def delete(self, key: str) -> None:
        raise NotImplementedError

    def close(self) -> None:
        pass
