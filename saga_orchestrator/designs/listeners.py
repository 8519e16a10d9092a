import logging

from saga_orchestrator.designs import hooks as design_hooks
from saga_orchestrator.designs.services import DesignService, InventoryService
from saga_orchestrator.disposable import IDisposable
from saga_orchestrator.hooks import HookRegistry
from saga_orchestrator.links import LinkManager


__all__ = (
    'register_cost_estimation',
)


_logger = logging.getLogger(__name__)


def register_cost_estimation(
        hooks: HookRegistry,
        designs: DesignService,
        inventory: InventoryService,
        links: LinkManager
) -> IDisposable:
    """Recompute a design's estimated cost whenever inventory gets linked to it.

    Each linked item contributes its unit cost times the planned quantity,
    or times one when no quantity was planned.
    """

    async def estimate_cost(payload: design_hooks.InventoryLinked, ctx) -> None:
        total = 0.0
        for record in await links.find(left_id=payload.design_id):
            item = await inventory.retrieve_item(record.right_id)
            quantity = record.attributes.planned_quantity
            total += item.unit_cost * (quantity if quantity is not None else 1)
        await designs.update_design(payload.design_id, estimated_cost=total)
        _logger.debug(
            "Estimated cost of design %s is %s (transaction %s)",
            payload.design_id, total, ctx.transaction_id
        )

    return hooks.on(design_hooks.inventory_linked, estimate_cost)
