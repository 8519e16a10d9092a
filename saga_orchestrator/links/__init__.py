"""Cross-domain link records.

A link associates an entity of one domain (a design) with an entity of
another (an inventory item) and carries typed extra attributes. The
LinkManager is the only writer; the storage enforces that at most one
record exists per (left_id, right_id).
"""

from saga_orchestrator.links.in_memory_storage import InMemoryLinkStorage
from saga_orchestrator.links.interfaces import IEntityReader, ILinkStorage
from saga_orchestrator.links.link import LinkAttributes, LinkKey, LinkRecord, LinkSpec, TRANSACTION_ID
from saga_orchestrator.links.manager import LinkManager
from saga_orchestrator.links.steps import (
    CreateLinksStep,
    DismissLinksStep,
    LinkUpdate,
    StateGateStep,
    UpdateLinkStep,
    ValidateLinksStep,
)


__all__ = (
    'CreateLinksStep',
    'DismissLinksStep',
    'IEntityReader',
    'ILinkStorage',
    'InMemoryLinkStorage',
    'LinkAttributes',
    'LinkKey',
    'LinkManager',
    'LinkRecord',
    'LinkSpec',
    'LinkUpdate',
    'StateGateStep',
    'TRANSACTION_ID',
    'UpdateLinkStep',
    'ValidateLinksStep',
)
