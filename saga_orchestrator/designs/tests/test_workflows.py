from unittest import IsolatedAsyncioTestCase, mock

from saga_orchestrator.hooks import HookRegistry
from saga_orchestrator.links import TRANSACTION_ID, InMemoryLinkStorage, LinkKey, LinkManager
from saga_orchestrator.workflow import NotFoundError, StateConflictError, ValidationError

from .. import hooks as design_hooks
from ..services import Adjustment, DesignService, InventoryService
from ..workflows import (
    CompleteDesignInput,
    ConsumptionInput,
    CreateDesignInput,
    DelinkInventoryInput,
    InventoryLinkInput,
    LinkInventoryInput,
    UpdateInventoryLinkInput,
    complete_design_workflow,
    create_design_workflow,
    delink_inventory_workflow,
    detachable_states,
    link_inventory_workflow,
    update_inventory_link_workflow,
)


class DesignWorkflowTestCase(IsolatedAsyncioTestCase):

    async def asyncSetUp(self):
        self.hooks = HookRegistry()
        self.designs = DesignService()
        self.inventory = InventoryService()
        self.links = LinkManager(InMemoryLinkStorage(), self.designs, self.inventory)
        self.cotton = await self.inventory.create_item('Cotton', 4.0, {'sloc_1': 10, 'sloc_2': 5}, item_id='i1')
        self.thread = await self.inventory.create_item('Thread', 0.5, {'sloc_3': 2}, item_id='i2')

    async def create_design(self, status='Conceptual'):
        return await create_design_workflow(self.designs, self.hooks).run(CreateDesignInput('Summer', status))

    async def link(self, design, *inventory_ids, items=()):
        return await link_inventory_workflow(self.links, self.hooks).run(
            LinkInventoryInput(design.id, list(inventory_ids), list(items))
        )

    def subscribe(self, hook):
        handler = mock.AsyncMock()
        self.hooks.on(hook, handler)
        return handler


class CreateDesignWorkflowTestCase(DesignWorkflowTestCase):

    async def test_create_design(self):
        handler = self.subscribe(design_hooks.design_created)
        design = await create_design_workflow(self.designs, self.hooks).run(CreateDesignInput(
            'Summer',
            colors=[{'name': 'Red', 'hex_code': '#ff0000'}],
            size_sets=[{'size_label': 'M'}],
        ))
        self.assertIs(await self.designs.retrieve(design.id), design)
        self.assertEqual([color.name for color in design.colors], ['Red'])
        self.assertEqual([size_set.size_label for size_set in design.size_sets], ['M'])
        self.assertIn(TRANSACTION_ID, design.metadata)
        handler.assert_awaited_once()
        self.assertEqual(handler.call_args.args[0], design_hooks.DesignCreated(design.id))

    async def test_name_is_required(self):
        with self.assertRaises(ValidationError):
            await create_design_workflow(self.designs, self.hooks).run(CreateDesignInput(' '))
        self.assertEqual(len(self.designs), 0)

    async def test_failed_specifications_remove_the_design(self):
        handler = self.subscribe(design_hooks.design_created)
        with self.assertRaises(TypeError):
            await create_design_workflow(self.designs, self.hooks).run(CreateDesignInput(
                'Summer',
                colors=[{'name': 'Red', 'hex_code': '#ff0000'}],
                size_sets=[{'label': 'M'}],
            ))
        self.assertEqual(len(self.designs), 0)
        handler.assert_not_called()


class LinkInventoryWorkflowTestCase(DesignWorkflowTestCase):

    async def test_link(self):
        handler = self.subscribe(design_hooks.inventory_linked)
        design = await self.create_design()
        keys = await self.link(design, 'i2', items=[InventoryLinkInput('i1', planned_quantity=3, location_id='sloc_2')])
        self.assertEqual(keys, [LinkKey(design.id, 'i1'), LinkKey(design.id, 'i2')])

        record = await self.links.get(design.id, 'i1')
        self.assertEqual(record.attributes.planned_quantity, 3)
        self.assertEqual(record.attributes.location_id, 'sloc_2')
        handler.assert_awaited_once()
        self.assertEqual(handler.call_args.args[0], design_hooks.InventoryLinked(design.id, ('i1', 'i2')))

    async def test_missing_inventory_item_writes_nothing(self):
        handler = self.subscribe(design_hooks.inventory_linked)
        design = await self.create_design()
        with self.assertRaises(NotFoundError) as cm:
            await self.link(design, 'i1', 'i_missing')
        self.assertEqual(cm.exception.entity_id, 'i_missing')
        self.assertIn('i_missing', str(cm.exception))
        self.assertEqual(await self.links.find(left_id=design.id), [])
        handler.assert_not_called()

    async def test_missing_design(self):
        with self.assertRaises(NotFoundError) as cm:
            await link_inventory_workflow(self.links, self.hooks).run(LinkInventoryInput('design_missing', ['i1']))
        self.assertEqual(cm.exception.entity_id, 'design_missing')

    async def test_empty_inventory_ids(self):
        design = await self.create_design()
        with self.assertRaises(ValidationError):
            await self.link(design)

    async def test_duplicate_link_is_rejected(self):
        design = await self.create_design()
        await self.link(design, 'i1')
        with self.assertRaises(StateConflictError):
            await self.link(design, 'i2', 'i1')
        self.assertEqual([record.right_id for record in await self.links.find(left_id=design.id)], ['i1'])


class DelinkInventoryWorkflowTestCase(DesignWorkflowTestCase):

    def delink(self, **kwargs):
        return delink_inventory_workflow(self.designs, self.links, self.hooks, **kwargs)

    async def test_delink_never_linked_item_is_a_no_op(self):
        handler = self.subscribe(design_hooks.inventory_delinked)
        design = await self.create_design()
        removed = await self.delink().run(DelinkInventoryInput(design.id, ['i1']))
        self.assertEqual(removed, [])
        self.assertEqual(handler.call_args.args[0], design_hooks.InventoryDelinked(design.id, ()))

    async def test_delink(self):
        design = await self.create_design()
        await self.link(design, 'i1', 'i2')
        removed = await self.delink().run(DelinkInventoryInput(design.id, ['i1']))
        self.assertEqual([record.right_id for record in removed], ['i1'])
        self.assertEqual([record.right_id for record in await self.links.find(left_id=design.id)], ['i2'])

    async def test_approved_design_keeps_its_links(self):
        design = await self.create_design(status='Approved')
        await self.link(design, 'i1')
        with mock.patch.object(self.links, 'dismiss', wraps=self.links.dismiss) as dismiss:
            with self.assertRaises(StateConflictError) as cm:
                await self.delink().run(DelinkInventoryInput(design.id, ['i1']))
        self.assertEqual(cm.exception.state, 'Approved')
        dismiss.assert_not_called()
        self.assertEqual(len(await self.links.find(left_id=design.id)), 1)

    async def test_commerce_ready_design_keeps_its_links(self):
        design = await self.create_design(status='Commerce_Ready')
        with self.assertRaises(StateConflictError):
            await self.delink().run(DelinkInventoryInput(design.id, ['i1']))

    async def test_custom_allowed_states(self):
        design = await self.create_design(status='Revision')
        with self.assertRaises(StateConflictError):
            await self.delink(allowed_states={'Conceptual'}).run(DelinkInventoryInput(design.id, ['i1']))

    async def test_missing_design(self):
        with self.assertRaises(NotFoundError):
            await self.delink().run(DelinkInventoryInput('design_missing', ['i1']))

    def test_detachable_states(self):
        states = detachable_states()
        self.assertIn('Conceptual', states)
        self.assertNotIn('Approved', states)
        self.assertNotIn('Commerce_Ready', states)


class UpdateInventoryLinkWorkflowTestCase(DesignWorkflowTestCase):

    async def test_update(self):
        handler = self.subscribe(design_hooks.inventory_link_updated)
        design = await self.create_design()
        await self.link(design, items=[InventoryLinkInput('i1', planned_quantity=3, location_id='sloc_2')])
        record = await update_inventory_link_workflow(self.designs, self.links, self.hooks).run(
            UpdateInventoryLinkInput(design.id, 'i1', {'planned_quantity': 5})
        )
        self.assertEqual(record.attributes.planned_quantity, 5)
        self.assertEqual(record.attributes.location_id, 'sloc_2')
        self.assertEqual(handler.call_args.args[0], design_hooks.InventoryLinkUpdated(design.id, 'i1'))

    async def test_update_missing_link(self):
        design = await self.create_design()
        with self.assertRaises(NotFoundError):
            await update_inventory_link_workflow(self.designs, self.links, self.hooks).run(
                UpdateInventoryLinkInput(design.id, 'i1', {'planned_quantity': 5})
            )

    async def test_update_in_approved_state(self):
        design = await self.create_design(status='Approved')
        await self.link(design, 'i1')
        with self.assertRaises(StateConflictError):
            await update_inventory_link_workflow(self.designs, self.links, self.hooks).run(
                UpdateInventoryLinkInput(design.id, 'i1', {'planned_quantity': 5})
            )


class CompleteDesignWorkflowTestCase(DesignWorkflowTestCase):

    async def asyncSetUp(self):
        await super().asyncSetUp()
        self.design = await self.create_design(status='Sample_Production')
        await self.link(self.design, 'i2', items=[InventoryLinkInput('i1', planned_quantity=3, location_id='sloc_2')])
        self.workflow = complete_design_workflow(self.designs, self.inventory, self.links, self.hooks)

    async def test_complete_with_default_consumption(self):
        handler = self.subscribe(design_hooks.design_completed)
        result = await self.workflow.run(CompleteDesignInput(self.design.id))

        self.assertEqual(result.design.status, 'Approved')
        self.assertEqual(result.design.metadata['partner_status'], 'completed')
        self.assertEqual(result.adjustments, (Adjustment('i1', 'sloc_2', -1), Adjustment('i2', 'sloc_3', -1)))
        self.assertEqual(self.cotton.levels, {'sloc_1': 10, 'sloc_2': 4})
        self.assertEqual(self.thread.levels, {'sloc_3': 1})

        record = await self.links.get(self.design.id, 'i1')
        self.assertEqual(record.attributes.consumed_quantity, 1)
        self.assertEqual(record.attributes.location_id, 'sloc_2')
        self.assertEqual(record.attributes.planned_quantity, 3)
        self.assertIsNotNone(record.attributes.consumed_at)
        self.assertEqual(record.attributes.metadata['source'], 'complete-design')
        self.assertIn(TRANSACTION_ID, record.attributes.metadata)
        self.assertEqual(
            handler.call_args.args[0],
            design_hooks.DesignCompleted(self.design.id, result.adjustments)
        )

    async def test_complete_with_explicit_consumptions(self):
        result = await self.workflow.run(CompleteDesignInput(self.design.id, [
            ConsumptionInput('i1', 2),
            ConsumptionInput('i1', 1, location_id='sloc_1'),
        ]))
        self.assertEqual(result.adjustments, (Adjustment('i1', 'sloc_2', -2), Adjustment('i1', 'sloc_1', -1)))
        self.assertEqual(self.cotton.levels, {'sloc_1': 9, 'sloc_2': 3})
        self.assertEqual(self.thread.levels, {'sloc_3': 2})
        record = await self.links.get(self.design.id, 'i1')
        self.assertEqual(record.attributes.consumed_quantity, 3)
        self.assertIsNone((await self.links.get(self.design.id, 'i2')).attributes.consumed_quantity)

    async def test_unlinked_consumption(self):
        await self.inventory.create_item('Zipper', 1.0, {'sloc_1': 4}, item_id='i3')
        with self.assertRaises(ValidationError):
            await self.workflow.run(CompleteDesignInput(self.design.id, [ConsumptionInput('i3', 1)]))
        self.assertEqual(self.design.status, 'Sample_Production')

    async def test_failure_restores_every_domain(self):
        handler = self.subscribe(design_hooks.design_completed)
        links_before = await self.links.find(left_id=self.design.id)
        metadata_before = dict(self.design.metadata)

        with mock.patch.object(self.designs, 'update_design', side_effect=OSError("designs store is down")):
            with self.assertRaises(OSError) as cm:
                await self.workflow.run(CompleteDesignInput(self.design.id))

        self.assertEqual(cm.exception.compensation_failures, [])
        self.assertEqual(self.cotton.levels, {'sloc_1': 10, 'sloc_2': 5})
        self.assertEqual(self.thread.levels, {'sloc_3': 2})
        self.assertCountEqual(await self.links.find(left_id=self.design.id), links_before)
        self.assertEqual(self.design.status, 'Sample_Production')
        self.assertEqual(self.design.metadata, metadata_before)
        handler.assert_not_called()

    async def test_missing_stock_location_fails_before_writes(self):
        await self.inventory.create_item('Lining', 2.0, {}, item_id='i3')
        await self.link(self.design, 'i3')
        with self.assertRaises(ValidationError):
            await self.workflow.run(CompleteDesignInput(self.design.id))
        self.assertEqual(self.cotton.levels, {'sloc_1': 10, 'sloc_2': 5})
