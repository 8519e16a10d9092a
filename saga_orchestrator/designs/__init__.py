"""Design and inventory sample domain.

Two independently owned domains, designs and inventory items, joined by
link records. The workflows in this package keep the three stores
consistent without a shared transaction.
"""

from saga_orchestrator.designs.listeners import register_cost_estimation
from saga_orchestrator.designs.models import DESIGN_STATUSES, Color, Design, InventoryItem, SizeSet
from saga_orchestrator.designs.services import Adjustment, DesignService, InventoryService
from saga_orchestrator.designs.workflows import (
    CompleteDesignInput,
    CompleteDesignResult,
    ConsumptionInput,
    CreateDesignInput,
    DelinkInventoryInput,
    InventoryLinkInput,
    LinkInventoryInput,
    UpdateInventoryLinkInput,
    complete_design_workflow,
    compute_adjustments,
    create_design_workflow,
    delink_inventory_workflow,
    detachable_states,
    link_inventory_workflow,
    update_inventory_link_workflow,
)


__all__ = (
    'Adjustment',
    'Color',
    'CompleteDesignInput',
    'CompleteDesignResult',
    'ConsumptionInput',
    'CreateDesignInput',
    'DESIGN_STATUSES',
    'DelinkInventoryInput',
    'Design',
    'DesignService',
    'InventoryItem',
    'InventoryLinkInput',
    'InventoryService',
    'LinkInventoryInput',
    'SizeSet',
    'UpdateInventoryLinkInput',
    'complete_design_workflow',
    'compute_adjustments',
    'create_design_workflow',
    'delink_inventory_workflow',
    'detachable_states',
    'link_inventory_workflow',
    'register_cost_estimation',
    'update_inventory_link_workflow',
)
