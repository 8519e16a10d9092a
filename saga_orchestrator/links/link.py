import dataclasses
import datetime
import typing

from saga_orchestrator.workflow.errors import ValidationError


__all__ = (
    'LinkAttributes',
    'LinkKey',
    'LinkRecord',
    'LinkSpec',
    'TRANSACTION_ID',
)


TRANSACTION_ID = 'transaction_id'


class LinkKey(typing.NamedTuple):
    """Identity of a link: at most one record exists per pair."""

    left_id: str
    right_id: str


@dataclasses.dataclass(frozen=True)
class LinkAttributes:
    """Typed extra columns stored with a link."""

    planned_quantity: float | None = None
    consumed_quantity: float | None = None
    consumed_at: datetime.datetime | None = None
    location_id: str | None = None
    metadata: dict[str, typing.Any] = dataclasses.field(default_factory=dict)

    def merge(self, changes: typing.Mapping[str, typing.Any]) -> 'LinkAttributes':
        """Explicit fields in changes override; omitted fields are preserved."""
        unknown = set(changes) - {field.name for field in dataclasses.fields(self)}
        if unknown:
            raise ValidationError("Unknown link attributes: %s" % ", ".join(sorted(unknown)))
        return dataclasses.replace(self, **changes)

    def tagged(self, transaction_id: str | None) -> 'LinkAttributes':
        if transaction_id is None:
            return self
        return dataclasses.replace(self, metadata={**self.metadata, TRANSACTION_ID: transaction_id})

    def as_dict(self) -> dict[str, typing.Any]:
        return {field.name: getattr(self, field.name) for field in dataclasses.fields(self)}


@dataclasses.dataclass(frozen=True)
class LinkRecord:
    """Association between an entity of the left domain and one of the right domain."""

    left_id: str
    right_id: str
    attributes: LinkAttributes = dataclasses.field(default_factory=LinkAttributes)

    @property
    def key(self) -> LinkKey:
        return LinkKey(self.left_id, self.right_id)

    @classmethod
    def of(cls, left_id: str, right_id: str, **attributes) -> 'LinkRecord':
        return cls(left_id, right_id, LinkAttributes(**attributes))


# A link about to be written has the same shape as a stored one.
LinkSpec = LinkRecord
