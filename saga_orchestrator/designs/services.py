"""In-memory design and inventory domain services.

Each service owns its own records; nothing here shares a transaction with
the link storage, which is exactly the situation the workflows compensate for.
"""

import copy
import typing
import uuid

from saga_orchestrator.designs.models import DESIGN_STATUSES, Color, Design, InventoryItem, SizeSet
from saga_orchestrator.links.interfaces import IEntityReader
from saga_orchestrator.workflow.errors import NotFoundError, ValidationError


__all__ = (
    'Adjustment',
    'DesignService',
    'InventoryService',
)


def _make_id(prefix: str) -> str:
    return "%s_%s" % (prefix, uuid.uuid4().hex)


class Adjustment(typing.NamedTuple):
    inventory_id: str
    location_id: str
    quantity: float


class DesignService(IEntityReader):
    entity_name = "Design"

    def __init__(self):
        self._designs: dict[str, Design] = {}

    async def create_design(
            self,
            name: str,
            status: str = 'Conceptual',
            metadata: dict[str, typing.Any] | None = None
    ) -> Design:
        self._check_status(status)
        design = Design(_make_id('design'), name, status, dict(metadata or {}))
        self._designs[design.id] = design
        return design

    async def retrieve(self, entity_id: str) -> Design | None:
        return self._designs.get(entity_id)

    async def retrieve_design(self, design_id: str) -> Design:
        try:
            return self._designs[design_id]
        except KeyError:
            raise NotFoundError("Design with id %s was not found" % design_id, design_id) from None

    async def update_design(self, design_id: str, **changes) -> Design:
        design = await self.retrieve_design(design_id)
        if 'status' in changes:
            self._check_status(changes['status'])
        for name, value in changes.items():
            if name not in ('name', 'status', 'metadata', 'estimated_cost'):
                raise ValidationError("Design has no updatable field %r" % name)
            setattr(design, name, copy.deepcopy(value))
        return design

    async def delete_design(self, design_id: str) -> None:
        self._designs.pop(design_id, None)

    async def create_colors(self, design_id: str, colors: typing.Iterable[typing.Mapping]) -> list[Color]:
        design = await self.retrieve_design(design_id)
        created = [Color(_make_id('color'), design_id, **color) for color in colors]
        design.colors.extend(created)
        return created

    async def delete_colors(self, design_id: str, color_ids: typing.Collection[str]) -> None:
        design = self._designs.get(design_id)
        if design is not None:
            design.colors = [color for color in design.colors if color.id not in color_ids]

    async def create_size_sets(self, design_id: str, size_sets: typing.Iterable[typing.Mapping]) -> list[SizeSet]:
        design = await self.retrieve_design(design_id)
        created = [SizeSet(_make_id('size_set'), design_id, **size_set) for size_set in size_sets]
        design.size_sets.extend(created)
        return created

    async def delete_size_sets(self, design_id: str, size_set_ids: typing.Collection[str]) -> None:
        design = self._designs.get(design_id)
        if design is not None:
            design.size_sets = [size_set for size_set in design.size_sets if size_set.id not in size_set_ids]

    @staticmethod
    def _check_status(status: str) -> None:
        if status not in DESIGN_STATUSES:
            raise ValidationError("Unknown design status %r" % status)

    def __len__(self):
        return len(self._designs)


class InventoryService(IEntityReader):
    entity_name = "Inventory item"

    def __init__(self):
        self._items: dict[str, InventoryItem] = {}

    async def create_item(
            self,
            title: str,
            unit_cost: float = 0.0,
            levels: typing.Mapping[str, float] | None = None,
            item_id: str | None = None
    ) -> InventoryItem:
        item = InventoryItem(item_id or _make_id('iitem'), title, unit_cost, dict(levels or {}))
        self._items[item.id] = item
        return item

    async def retrieve(self, entity_id: str) -> InventoryItem | None:
        return self._items.get(entity_id)

    async def retrieve_item(self, inventory_id: str) -> InventoryItem:
        try:
            return self._items[inventory_id]
        except KeyError:
            raise NotFoundError("Inventory item with id %s was not found" % inventory_id, inventory_id) from None

    async def adjust_inventory(self, adjustments: typing.Iterable[Adjustment]) -> None:
        """Apply signed quantity changes per location; checks all before applying any."""
        adjustments = list(adjustments)
        for adjustment in adjustments:
            item = await self.retrieve_item(adjustment.inventory_id)
            if adjustment.location_id not in item.levels:
                raise ValidationError("Inventory item %s is not stocked at location %s" % (
                    adjustment.inventory_id, adjustment.location_id
                ))
        for adjustment in adjustments:
            self._items[adjustment.inventory_id].levels[adjustment.location_id] += adjustment.quantity
