import logging
import typing

from saga_orchestrator.links.interfaces import IEntityReader, ILinkStorage
from saga_orchestrator.links.link import LinkKey, LinkRecord, LinkSpec
from saga_orchestrator.workflow.errors import NotFoundError, ValidationError


__all__ = (
    'LinkManager',
)


KeyLike = LinkKey | LinkRecord | tuple[str, str]


def _key_of(item: KeyLike) -> LinkKey:
    if isinstance(item, LinkRecord):
        return item.key
    return LinkKey(*item)


class LinkManager:
    """The only writer of link records between two domains.

    Neither domain owns the link; both may read it. Updates are modelled as
    dismiss followed by create: there is no partial update of a stored record.
    """

    def __init__(self, storage: ILinkStorage, left: IEntityReader, right: IEntityReader):
        self._storage = storage
        self._left = left
        self._right = right
        self._logger = logging.getLogger(".".join((type(self).__module__, type(self).__name__)))

    @property
    def storage(self) -> ILinkStorage:
        return self._storage

    async def validate(self, specs: typing.Sequence[LinkSpec]) -> list[LinkSpec]:
        """Check that every referenced entity exists before anything is written.

        Raises:
            ValidationError: If no links are given.
            NotFoundError: Naming the first entity that does not exist.
        """
        if not specs:
            raise ValidationError("At least one link is required")
        await self._check_exist(self._left, [spec.left_id for spec in specs])
        await self._check_exist(self._right, [spec.right_id for spec in specs])
        return list(specs)

    async def create(
            self,
            specs: typing.Sequence[LinkSpec],
            transaction_id: str | None = None
    ) -> list[LinkKey]:
        """Write the links and return exactly the keys that were created.

        The run's transaction id is stored in each record's metadata.

        Raises:
            DuplicateLinkError: If a link for one of the pairs already exists.
        """
        records = [
            LinkRecord(spec.left_id, spec.right_id, spec.attributes.tagged(transaction_id))
            for spec in specs
        ]
        await self._storage.insert(records)
        keys = [record.key for record in records]
        self._logger.debug("Created links %r in transaction %s", keys, transaction_id)
        return keys

    async def dismiss(self, links: typing.Iterable[KeyLike]) -> list[LinkRecord]:
        """Remove links by key. Missing links are ignored.

        Returns:
            The full records that were removed, so that they can be restored.
        """
        keys = [_key_of(link) for link in links]
        removed = await self._storage.delete(keys)
        self._logger.debug("Dismissed %d of %d links", len(removed), len(keys))
        return removed

    async def update(
            self,
            link: KeyLike,
            changes: typing.Mapping[str, typing.Any],
            transaction_id: str | None = None
    ) -> tuple[LinkRecord, LinkRecord]:
        """Replace a link with merged attributes.

        Returns:
            The complete prior record and the new one.

        Raises:
            NotFoundError: If the link does not exist.
        """
        key = _key_of(link)
        prior = await self._storage.get(key)
        if prior is None:
            raise NotFoundError("Link %r was not found" % (key,), key)
        current = LinkRecord(key.left_id, key.right_id, prior.attributes.merge(changes).tagged(transaction_id))
        await self._storage.delete([key])
        try:
            await self._storage.insert([current])
        except Exception:
            await self._storage.insert([prior])
            raise
        return prior, current

    async def restore(self, records: typing.Sequence[LinkRecord]) -> None:
        """Put back records exactly as they were, replacing whatever holds their keys."""
        if not records:
            return
        await self._storage.delete([record.key for record in records])
        await self._storage.insert(list(records))

    async def get(self, left_id: str, right_id: str) -> LinkRecord | None:
        return await self._storage.get(LinkKey(left_id, right_id))

    async def find(self, left_id: str | None = None, right_id: str | None = None) -> list[LinkRecord]:
        return await self._storage.find(left_id, right_id)

    @staticmethod
    async def _check_exist(reader: IEntityReader, entity_ids: typing.Iterable[str]) -> None:
        for entity_id in dict.fromkeys(entity_ids):
            if await reader.retrieve(entity_id) is None:
                raise NotFoundError(
                    "%s with id %s was not found" % (reader.entity_name, entity_id),
                    entity_id
                )
