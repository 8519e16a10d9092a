"""Design and inventory workflows.

Each factory wires the steps of one operation to the services it needs and
returns a Workflow ready to run. The order of steps inside each workflow
is part of its contract: validation and state checks always precede the
writes they guard.
"""

import dataclasses
import datetime
import typing

from saga_orchestrator.designs import hooks as design_hooks
from saga_orchestrator.designs.models import DESIGN_STATUSES, Design, InventoryItem
from saga_orchestrator.designs.services import Adjustment, DesignService, InventoryService
from saga_orchestrator.hooks import HookRegistry
from saga_orchestrator.links import (
    CreateLinksStep,
    DismissLinksStep,
    LinkKey,
    LinkManager,
    LinkRecord,
    LinkSpec,
    LinkUpdate,
    StateGateStep,
    UpdateLinkStep,
    ValidateLinksStep,
)
from saga_orchestrator.settings import Settings
from saga_orchestrator.workflow import (
    INPUT,
    Step,
    StepResponse,
    ValidationError,
    Workflow,
    no_compensation,
)


__all__ = (
    'CompleteDesignInput',
    'CompleteDesignResult',
    'ConsumptionInput',
    'CreateDesignInput',
    'DelinkInventoryInput',
    'InventoryLinkInput',
    'LinkInventoryInput',
    'UpdateInventoryLinkInput',
    'complete_design_workflow',
    'compute_adjustments',
    'create_design_workflow',
    'delink_inventory_workflow',
    'detachable_states',
    'link_inventory_workflow',
    'update_inventory_link_workflow',
)


NON_DETACHABLE_STATES = Settings.non_detachable_states


def detachable_states(non_detachable: typing.Collection[str] = NON_DETACHABLE_STATES) -> frozenset[str]:
    return frozenset(DESIGN_STATUSES) - frozenset(non_detachable)


# Create design

@dataclasses.dataclass(frozen=True)
class CreateDesignInput:
    name: str
    status: str = 'Conceptual'
    metadata: dict[str, typing.Any] = dataclasses.field(default_factory=dict)
    colors: list[dict[str, typing.Any]] = dataclasses.field(default_factory=list)
    size_sets: list[dict[str, typing.Any]] = dataclasses.field(default_factory=list)


class _Specifications(typing.NamedTuple):
    design_id: str
    color_ids: tuple[str, ...]
    size_set_ids: tuple[str, ...]


def create_design_workflow(designs: DesignService, hooks: HookRegistry | None = None) -> Workflow:

    def validate_input(input_: CreateDesignInput, ctx):
        if not input_.name or not input_.name.strip():
            raise ValidationError("Design name is required")
        return input_

    async def create_design(input_: CreateDesignInput, ctx):
        design = await designs.create_design(
            input_.name, input_.status, {**input_.metadata, 'transaction_id': ctx.transaction_id}
        )
        return StepResponse(design, design.id)

    async def delete_design(design_id: str, ctx):
        await designs.delete_design(design_id)

    async def create_specifications(data, ctx):
        design, input_ = data
        colors = await designs.create_colors(design.id, input_.colors)
        try:
            size_sets = await designs.create_size_sets(design.id, input_.size_sets)
        except Exception:
            await designs.delete_colors(design.id, {color.id for color in colors})
            raise
        return _Specifications(
            design.id,
            tuple(color.id for color in colors),
            tuple(size_set.id for size_set in size_sets),
        )

    async def delete_specifications(specifications: _Specifications, ctx):
        await designs.delete_size_sets(specifications.design_id, specifications.size_set_ids)
        await designs.delete_colors(specifications.design_id, specifications.color_ids)

    return (
        Workflow('create-design', hooks)
        .step(Step('validate-design-input', validate_input, no_compensation))
        .step(Step('create-design', create_design, delete_design))
        .step(
            Step('create-design-specifications', create_specifications, delete_specifications),
            using=lambda data: (data['create-design'], data[INPUT]),
        )
        .hook(
            design_hooks.design_created, after='create-design-specifications',
            payload=lambda data: design_hooks.DesignCreated(data['create-design'].id),
        )
        .returns(lambda data: data['create-design'])
    )


# Link inventory

@dataclasses.dataclass(frozen=True)
class InventoryLinkInput:
    inventory_id: str
    planned_quantity: float | None = None
    location_id: str | None = None
    metadata: dict[str, typing.Any] = dataclasses.field(default_factory=dict)


@dataclasses.dataclass(frozen=True)
class LinkInventoryInput:
    design_id: str
    inventory_ids: list[str] = dataclasses.field(default_factory=list)
    inventory_items: list[InventoryLinkInput] = dataclasses.field(default_factory=list)


def _link_specs(input_: LinkInventoryInput) -> list[LinkSpec]:
    items = list(input_.inventory_items)
    items.extend(InventoryLinkInput(inventory_id) for inventory_id in input_.inventory_ids)
    if not items:
        raise ValidationError("At least one inventory item id is required")
    return [
        LinkSpec.of(
            input_.design_id, item.inventory_id,
            planned_quantity=item.planned_quantity,
            location_id=item.location_id,
            metadata=dict(item.metadata),
        )
        for item in items
    ]


def link_inventory_workflow(links: LinkManager, hooks: HookRegistry | None = None) -> Workflow:
    return (
        Workflow('link-design-inventory', hooks)
        .transform('link-specs', lambda data: _link_specs(data[INPUT]))
        .step(ValidateLinksStep(links), using=lambda data: data['link-specs'])
        .step(CreateLinksStep(links), using=lambda data: data['validate-links'])
        .hook(
            design_hooks.inventory_linked, after='create-links',
            payload=lambda data: design_hooks.InventoryLinked(
                data[INPUT].design_id, tuple(key.right_id for key in data['create-links'])
            ),
        )
    )


# Delink inventory

@dataclasses.dataclass(frozen=True)
class DelinkInventoryInput:
    design_id: str
    inventory_ids: list[str]


def _design_status_reader(designs: DesignService):

    async def read_status(input_) -> str:
        design = await designs.retrieve_design(input_.design_id)
        return design.status

    return read_status


def _link_keys(input_: DelinkInventoryInput) -> list[LinkKey]:
    if not input_.inventory_ids:
        raise ValidationError("At least one inventory item id is required")
    return [LinkKey(input_.design_id, inventory_id) for inventory_id in input_.inventory_ids]


def delink_inventory_workflow(
        designs: DesignService,
        links: LinkManager,
        hooks: HookRegistry | None = None,
        allowed_states: typing.Collection[str] | None = None
) -> Workflow:
    if allowed_states is None:
        allowed_states = detachable_states()
    return (
        Workflow('delink-design-inventory', hooks)
        .step(StateGateStep(_design_status_reader(designs), allowed_states, name='check-design-state'))
        .transform('link-keys', lambda data: _link_keys(data[INPUT]))
        .step(DismissLinksStep(links), using=lambda data: data['link-keys'])
        .hook(
            design_hooks.inventory_delinked, after='dismiss-links',
            payload=lambda data: design_hooks.InventoryDelinked(
                data[INPUT].design_id, tuple(record.right_id for record in data['dismiss-links'])
            ),
        )
    )


# Update inventory link

@dataclasses.dataclass(frozen=True)
class UpdateInventoryLinkInput:
    design_id: str
    inventory_id: str
    changes: dict[str, typing.Any]


def update_inventory_link_workflow(
        designs: DesignService,
        links: LinkManager,
        hooks: HookRegistry | None = None,
        allowed_states: typing.Collection[str] | None = None
) -> Workflow:
    if allowed_states is None:
        allowed_states = detachable_states()
    return (
        Workflow('update-design-inventory-link', hooks)
        .step(StateGateStep(_design_status_reader(designs), allowed_states, name='check-design-state'))
        .step(
            UpdateLinkStep(links),
            using=lambda data: LinkUpdate(
                (data[INPUT].design_id, data[INPUT].inventory_id), data[INPUT].changes
            ),
        )
        .hook(
            design_hooks.inventory_link_updated, after='update-link',
            payload=lambda data: design_hooks.InventoryLinkUpdated(
                data[INPUT].design_id, data[INPUT].inventory_id
            ),
        )
    )


# Complete design

@dataclasses.dataclass(frozen=True)
class ConsumptionInput:
    inventory_id: str
    quantity: float | None = None
    location_id: str | None = None


@dataclasses.dataclass(frozen=True)
class CompleteDesignInput:
    design_id: str
    consumptions: list[ConsumptionInput] = dataclasses.field(default_factory=list)


@dataclasses.dataclass(frozen=True)
class CompleteDesignResult:
    design: Design
    adjustments: tuple[Adjustment, ...]
    consumed_links: tuple[LinkRecord, ...]


class _DesignSnapshot(typing.NamedTuple):
    design: Design
    links: tuple[LinkRecord, ...]
    items: dict[str, InventoryItem]


class _StatusSnapshot(typing.NamedTuple):
    design_id: str
    status: str
    metadata: dict[str, typing.Any]


def compute_adjustments(
        snapshot: _DesignSnapshot,
        consumptions: typing.Sequence[ConsumptionInput]
) -> tuple[Adjustment, ...]:
    """Stock decrements for completing a design.

    Explicit consumptions must reference linked items; without them every
    linked item is decremented by one. The location falls back to the link's
    location, then to the item's first stocked location.
    """
    links = {record.right_id: record for record in snapshot.links}

    def location_of(inventory_id: str, explicit: str | None) -> str:
        location_id = (
            explicit
            or links[inventory_id].attributes.location_id
            or snapshot.items[inventory_id].default_location_id
        )
        if not location_id:
            raise ValidationError(
                "No stock location found for inventory item %s. "
                "Please link a stock location or provide location_id" % inventory_id
            )
        return location_id

    adjustments = []
    if consumptions:
        for consumption in consumptions:
            if consumption.inventory_id not in links:
                raise ValidationError(
                    "Inventory item %s is not linked to this design" % consumption.inventory_id
                )
            quantity = abs(consumption.quantity if consumption.quantity is not None else 1)
            adjustments.append(Adjustment(
                consumption.inventory_id,
                location_of(consumption.inventory_id, consumption.location_id),
                -quantity,
            ))
    else:
        for inventory_id in links:
            adjustments.append(Adjustment(inventory_id, location_of(inventory_id, None), -1))
    return tuple(adjustments)


def complete_design_workflow(
        designs: DesignService,
        inventory: InventoryService,
        links: LinkManager,
        hooks: HookRegistry | None = None,
        source: str = 'complete-design'
) -> Workflow:

    async def fetch_design(input_: CompleteDesignInput, ctx) -> _DesignSnapshot:
        design = await designs.retrieve_design(input_.design_id)
        records = await links.find(left_id=design.id)
        items = {}
        for record in records:
            items[record.right_id] = await inventory.retrieve_item(record.right_id)
        return _DesignSnapshot(design, tuple(records), items)

    async def adjust_inventory(adjustments: tuple[Adjustment, ...], ctx):
        await inventory.adjust_inventory(adjustments)
        return adjustments

    async def revert_inventory(adjustments: tuple[Adjustment, ...], ctx):
        await inventory.adjust_inventory(
            Adjustment(adj.inventory_id, adj.location_id, -adj.quantity) for adj in adjustments
        )

    async def record_consumption(data, ctx):
        design_id, adjustments = data
        consumed_at = datetime.datetime.now(datetime.timezone.utc)
        totals: dict[str, Adjustment] = {}
        for adj in adjustments:
            total = totals.get(adj.inventory_id)
            quantity = abs(adj.quantity) + (total.quantity if total else 0)
            totals[adj.inventory_id] = Adjustment(adj.inventory_id, adj.location_id, quantity)
        priors, currents = [], []
        try:
            for total in totals.values():
                prior = await links.get(design_id, total.inventory_id)
                prior, current = await links.update(prior, {
                    'consumed_quantity': total.quantity,
                    'consumed_at': consumed_at,
                    'location_id': total.location_id,
                    'metadata': {**prior.attributes.metadata, 'source': source},
                }, ctx.transaction_id)
                priors.append(prior)
                currents.append(current)
        except Exception:
            await links.restore(priors)
            raise
        return StepResponse(tuple(currents), tuple(priors))

    async def restore_links(priors: tuple[LinkRecord, ...], ctx):
        await links.restore(priors)

    async def approve_design(design_id: str, ctx):
        design = await designs.retrieve_design(design_id)
        snapshot = _StatusSnapshot(design.id, design.status, dict(design.metadata))
        design = await designs.update_design(design_id, status='Approved', metadata={
            **design.metadata,
            'partner_completed_at': datetime.datetime.now(datetime.timezone.utc).isoformat(),
            'partner_status': 'completed',
        })
        return StepResponse(design, snapshot)

    async def restore_status(snapshot: _StatusSnapshot, ctx):
        await designs.update_design(snapshot.design_id, status=snapshot.status, metadata=snapshot.metadata)

    return (
        Workflow('complete-design', hooks)
        .step(Step('fetch-design', fetch_design, no_compensation))
        .transform(
            'compute-adjustments',
            lambda data: compute_adjustments(data['fetch-design'], data[INPUT].consumptions),
        )
        .step(
            Step('adjust-inventory', adjust_inventory, revert_inventory),
            using=lambda data: data['compute-adjustments'],
        )
        .step(
            Step('record-consumption', record_consumption, restore_links),
            using=lambda data: (data[INPUT].design_id, data['compute-adjustments']),
        )
        .step(
            Step('approve-design', approve_design, restore_status),
            using=lambda data: data[INPUT].design_id,
        )
        .hook(
            design_hooks.design_completed, after='approve-design',
            payload=lambda data: design_hooks.DesignCompleted(
                data[INPUT].design_id, data['compute-adjustments']
            ),
        )
        .returns(lambda data: CompleteDesignResult(
            data['approve-design'], data['compute-adjustments'], data['record-consumption']
        ))
    )
