import typing
from abc import ABCMeta, abstractmethod

from saga_orchestrator.links.link import LinkKey, LinkRecord


__all__ = (
    'IEntityReader',
    'ILinkStorage',
)


class ILinkStorage(metaclass=ABCMeta):
    """Storage of link records.

    The storage enforces uniqueness of (left_id, right_id); the orchestrator
    does no locking of its own, since several processes may write concurrently.
    """

    @abstractmethod
    async def insert(self, records: typing.Sequence[LinkRecord]) -> None:
        """Write all records or none.

        Raises:
            DuplicateLinkError: If a key already exists or repeats in the batch.
        """
        raise NotImplementedError

    @abstractmethod
    async def delete(self, keys: typing.Sequence[LinkKey]) -> list[LinkRecord]:
        """Remove the records by key and return the ones that existed."""
        raise NotImplementedError

    @abstractmethod
    async def get(self, key: LinkKey) -> LinkRecord | None:
        raise NotImplementedError

    @abstractmethod
    async def find(self, left_id: str | None = None, right_id: str | None = None) -> list[LinkRecord]:
        raise NotImplementedError


class IEntityReader(metaclass=ABCMeta):
    """Retrieve capability of the domain owning one side of a link."""

    entity_name: str = "Entity"

    @abstractmethod
    async def retrieve(self, entity_id: str) -> typing.Any | None:
        """Return the entity, or None if it does not exist."""
        raise NotImplementedError
