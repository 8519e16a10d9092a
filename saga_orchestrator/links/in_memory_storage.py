import typing

from saga_orchestrator.links.interfaces import ILinkStorage
from saga_orchestrator.links.link import LinkKey, LinkRecord
from saga_orchestrator.workflow.errors import DuplicateLinkError


__all__ = ('InMemoryLinkStorage',)


class InMemoryLinkStorage(ILinkStorage):

    def __init__(self):
        self._records: dict[LinkKey, LinkRecord] = {}

    async def insert(self, records: typing.Sequence[LinkRecord]) -> None:
        seen = set()
        for record in records:
            if record.key in self._records or record.key in seen:
                raise DuplicateLinkError(record.key)
            seen.add(record.key)
        for record in records:
            self._records[record.key] = record

    async def delete(self, keys: typing.Sequence[LinkKey]) -> list[LinkRecord]:
        removed = []
        for key in keys:
            record = self._records.pop(key, None)
            if record is not None:
                removed.append(record)
        return removed

    async def get(self, key: LinkKey) -> LinkRecord | None:
        return self._records.get(key)

    async def find(self, left_id: str | None = None, right_id: str | None = None) -> list[LinkRecord]:
        return [
            record for record in self._records.values()
            if (left_id is None or record.left_id == left_id)
            and (right_id is None or record.right_id == right_id)
        ]

    def __len__(self):
        return len(self._records)
