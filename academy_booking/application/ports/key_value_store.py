from abc import ABC, abstractmethod


class KeyValueStorePort(ABC):
    """String-keyed, string-valued persistent store with no expiration."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        raise NotImplementedError

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def remove(self, key: str) -> None:
        raise NotImplementedError
