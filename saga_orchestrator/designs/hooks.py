"""Hooks the design workflows fire after they commit."""

import dataclasses

from saga_orchestrator.designs.services import Adjustment
from saga_orchestrator.hooks import Hook


__all__ = (
    'DesignCompleted',
    'DesignCreated',
    'InventoryDelinked',
    'InventoryLinkUpdated',
    'InventoryLinked',
    'design_completed',
    'design_created',
    'inventory_delinked',
    'inventory_link_updated',
    'inventory_linked',
)


@dataclasses.dataclass(frozen=True)
class DesignCreated:
    design_id: str


@dataclasses.dataclass(frozen=True)
class InventoryLinked:
    design_id: str
    inventory_ids: tuple[str, ...]


@dataclasses.dataclass(frozen=True)
class InventoryDelinked:
    design_id: str
    inventory_ids: tuple[str, ...]


@dataclasses.dataclass(frozen=True)
class InventoryLinkUpdated:
    design_id: str
    inventory_id: str


@dataclasses.dataclass(frozen=True)
class DesignCompleted:
    design_id: str
    adjustments: tuple[Adjustment, ...]


design_created = Hook('design_created', DesignCreated)
inventory_linked = Hook('inventory_linked', InventoryLinked)
inventory_delinked = Hook('inventory_delinked', InventoryDelinked)
inventory_link_updated = Hook('inventory_link_updated', InventoryLinkUpdated)
design_completed = Hook('design_completed', DesignCompleted)
