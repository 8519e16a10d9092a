import dataclasses
import typing


__all__ = (
    'Color',
    'DESIGN_STATUSES',
    'Design',
    'InventoryItem',
    'SizeSet',
)


DESIGN_STATUSES = (
    'Conceptual',
    'In_Development',
    'Technical_Review',
    'Sample_Production',
    'Revision',
    'Approved',
    'Rejected',
    'On_Hold',
    'Commerce_Ready',
)


@dataclasses.dataclass
class Color:
    id: str
    design_id: str
    name: str
    hex_code: str
    usage_notes: str | None = None
    order: int = 0


@dataclasses.dataclass
class SizeSet:
    id: str
    design_id: str
    size_label: str
    measurements: dict[str, float] = dataclasses.field(default_factory=dict)


@dataclasses.dataclass
class Design:
    id: str
    name: str
    status: str = 'Conceptual'
    metadata: dict[str, typing.Any] = dataclasses.field(default_factory=dict)
    estimated_cost: float | None = None
    colors: list[Color] = dataclasses.field(default_factory=list)
    size_sets: list[SizeSet] = dataclasses.field(default_factory=list)


@dataclasses.dataclass
class InventoryItem:
    id: str
    title: str
    unit_cost: float = 0.0
    # stocked quantity per location id, in insertion order
    levels: dict[str, float] = dataclasses.field(default_factory=dict)

    @property
    def default_location_id(self) -> str | None:
        return next(iter(self.levels), None)
