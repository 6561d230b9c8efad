"""Abstract interface for image storage implementations."""

from abc import ABC, abstractmethod


class BaseStorage(ABC):
    """Interface for object storage keyed by slash-separated paths."""

    @abstractmethod
    async def save(self, filename: str, data: bytes, content_type: str | None = None) -> None:
        """
        Save object data to storage.

        Args:
            filename: Object key in storage
            data: Object content as bytes
            content_type: MIME type recorded with the object, when the backend supports it
        """
        raise NotImplementedError

    @abstractmethod
    async def load_once(self, filename: str) -> bytes:
        """
        Load the entire object content.

        Raises:
            FileNotFoundError: the key does not exist
        """
        raise NotImplementedError

    @abstractmethod
    async def exists(self, filename: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    async def content_type(self, filename: str) -> str | None:
        """
        MIME type recorded with the object, or None when the backend keeps none.
        """
        raise NotImplementedError
