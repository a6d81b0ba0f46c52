"""
Test suite for the inventory module
Tests: inventory level, order reconciliation, duplicate detection,
stock adjustment, supply planning and the inventory/equipment endpoints
"""
from decimal import Decimal
from django.test import SimpleTestCase, TestCase
from rest_framework import status
from momentum.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from .models import InventoryItem, calculate_inventory_level
from .services import (
    InventoryError, adjust_stock, device_supply_health, find_potential_duplicates, format_quantity, health_class,
    lowest_supply_health, needed_quantity, reconcile_multiple_orders, reconcile_received_order, stock_percentage,
    suggested_order_quantity, supply_status, total_burn_rate, validate_order_for_reconciliation, weeks_remaining,
    weeks_to_health
)


class InventoryLevelTests(SimpleTestCase):

    def test_levels(self):
        self.assertEqual(calculate_inventory_level(Decimal('0'), Decimal('5')), 'empty')
        self.assertEqual(calculate_inventory_level(None, Decimal('5')), 'empty')
        self.assertEqual(calculate_inventory_level(Decimal('3'), None), 'full')
        self.assertEqual(calculate_inventory_level(Decimal('5'), Decimal('5')), 'low')
        self.assertEqual(calculate_inventory_level(Decimal('10'), Decimal('5')), 'medium')
        self.assertEqual(calculate_inventory_level(Decimal('11'), Decimal('5')), 'full')

    def test_format_quantity(self):
        self.assertEqual(format_quantity(Decimal('2.000')), '2')
        self.assertEqual(format_quantity(Decimal('0.500')), '0.5')
        self.assertEqual(format_quantity(Decimal('10')), '10')


class SupplyPlanningTests(SimpleTestCase):
    """Weeks of stock, health and reorder suggestions"""

    def _item(self, quantity, min_quantity, burn):
        return InventoryItem(product_name='Tips', current_quantity=Decimal(quantity),
                             min_quantity=Decimal(min_quantity) if min_quantity is not None else None,
                             burn_rate_per_week=Decimal(burn))

    def test_weeks_remaining(self):
        self.assertEqual(weeks_remaining(Decimal('6'), Decimal('2')), 3.0)
        self.assertEqual(weeks_remaining(Decimal('6'), Decimal('0')), 99)
        self.assertEqual(weeks_remaining(Decimal('6'), None), 99)

    def test_weeks_to_health(self):
        self.assertEqual(weeks_to_health(3), 75.0)
        self.assertEqual(weeks_to_health(8), 100.0)
        self.assertEqual(weeks_to_health(-1), 0.0)

    def test_stock_percentage(self):
        self.assertEqual(stock_percentage(Decimal('5'), Decimal('5')), 50.0)
        self.assertEqual(stock_percentage(Decimal('12'), Decimal('5')), 100.0)
        # No minimum: anything in stock is full
        self.assertEqual(stock_percentage(Decimal('3'), Decimal('0')), 100.0)
        self.assertEqual(stock_percentage(Decimal('0'), None), 0.0)

    def test_needed_and_suggested_quantity(self):
        self.assertEqual(needed_quantity(Decimal('3'), Decimal('5')), Decimal('2'))
        self.assertEqual(needed_quantity(Decimal('10'), Decimal('5')), Decimal('0'))
        self.assertEqual(needed_quantity(Decimal('3'), None), Decimal('0'))

        # minimum + two weeks of consumption - stock, rounded up
        self.assertEqual(suggested_order_quantity(Decimal('3'), Decimal('5'), Decimal('1.5')), 5)
        self.assertEqual(suggested_order_quantity(Decimal('3'), Decimal('5'), Decimal('0.4')), 3)
        self.assertEqual(suggested_order_quantity(Decimal('20'), Decimal('5'), Decimal('1')), 0)

    def test_health_class(self):
        self.assertEqual(health_class(30), 'critical')
        self.assertEqual(health_class(31), 'warning')
        self.assertEqual(health_class(60), 'warning')
        self.assertEqual(health_class(61), 'ok')

    def test_supply_status(self):
        self.assertEqual(supply_status(self._item('3', '5', '2')), {
            'weeks_remaining': 1.5,
            'health_percent': 38,
            'needs_reorder': True,
            'stock_percentage': 30,
            'needed_quantity': Decimal('2'),
            'suggested_order_quantity': 6,
        })
        self.assertFalse(supply_status(self._item('3', None, '0'))['needs_reorder'])

    def test_device_figures(self):
        items = [self._item('3', '5', '2'), self._item('10', '2', '1')]
        self.assertEqual(device_supply_health(items), 69)
        self.assertEqual(lowest_supply_health(items), 37.5)
        self.assertEqual(total_burn_rate(items), Decimal('3'))

        self.assertEqual(device_supply_health([]), 100)
        self.assertEqual(lowest_supply_health([]), 100.0)
        self.assertEqual(total_burn_rate([]), Decimal('0'))


class ReconciliationTests(TestCase):
    """Received orders top up an existing item or create one"""

    def setUp(self):
        self.lab = TestDataFactory.create_lab()
        self.account = TestDataFactory.create_account(lab=self.lab)

    def _received(self, **kwargs):
        kwargs.setdefault('status', 'received')
        return TestDataFactory.create_order(self.account, **kwargs)

    def test_level_saved_with_item(self):
        item = TestDataFactory.create_inventory_item(lab=self.lab, current_quantity=Decimal('2'),
                                                     min_quantity=Decimal('2'))
        self.assertEqual(item.inventory_level, 'low')

    def test_validate_order(self):
        order = TestDataFactory.create_order(self.account, status='ordered')
        result = validate_order_for_reconciliation(order)
        self.assertFalse(result['valid'])
        self.assertIn('Order must have status "received" to reconcile with inventory', result['errors'])

        order.status = 'received'
        order.product_name = ' '
        result = validate_order_for_reconciliation(order)
        self.assertEqual(result['errors'], ['Order must have a product name'])

    def test_source_item_is_topped_up(self):
        item = TestDataFactory.create_inventory_item(lab=self.lab, product_name='Trypsin',
                                                     current_quantity=Decimal('1'), price_ex_vat=Decimal('10.00'))
        order = self._received(product_name='Trypsin-EDTA 0.25%', quantity=Decimal('4'), price_ex_vat=Decimal('12.00'))
        order.source_inventory_item = item
        order.save()

        result = reconcile_received_order(order)
        item.refresh_from_db()
        self.assertEqual(result['action'], 'UPDATE')
        self.assertEqual(result['message'], 'Updated Trypsin: +4 units')
        self.assertEqual(item.current_quantity, Decimal('5'))
        # Replenishing the source item keeps its price
        self.assertEqual(item.price_ex_vat, Decimal('10.00'))

    def test_catalogue_match_refreshes_price(self):
        item = TestDataFactory.create_inventory_item(lab=self.lab, product_name='Agarose', cat_num='A9539',
                                                     supplier='Sigma', current_quantity=Decimal('1'),
                                                     price_ex_vat=Decimal('80.00'))
        order = self._received(product_name='Agarose, low EEO', cat_num='A9539', supplier='Sigma',
                               price_ex_vat=Decimal('95.00'))

        result = reconcile_received_order(order)
        item.refresh_from_db()
        self.assertEqual(result['message'], 'Updated Agarose (matched by catalog #): +1 units')
        self.assertEqual(item.current_quantity, Decimal('2'))
        self.assertEqual(item.price_ex_vat, Decimal('95.00'))

    def test_name_match_ignores_case(self):
        item = TestDataFactory.create_inventory_item(lab=self.lab, product_name='PBS Tablets',
                                                     current_quantity=Decimal('0'))
        self.assertEqual(item.inventory_level, 'empty')
        order = self._received(product_name='pbs tablets', quantity=Decimal('3'))

        result = reconcile_received_order(order)
        item.refresh_from_db()
        self.assertEqual(result['message'], 'Updated PBS Tablets (matched by name): +3 units')
        self.assertEqual(item.current_quantity, Decimal('3'))
        self.assertEqual(item.inventory_level, 'full')

    def test_creates_item_and_links_equipment(self):
        device = TestDataFactory.create_equipment(lab=self.lab, name='Thermocycler')
        order = self._received(product_name='PCR plates', quantity=Decimal('2'), price_ex_vat=Decimal('40.00'),
                               category='molecular-biology')
        order.source_equipment = device
        order.save()

        result = reconcile_received_order(order)
        item = result['item']
        self.assertEqual(result['action'], 'CREATE')
        self.assertEqual(result['message'], 'Created new inventory item: PCR plates')
        self.assertEqual(item.current_quantity, Decimal('2'))
        self.assertEqual(item.min_quantity, Decimal('1'))
        self.assertEqual(item.inventory_level, 'medium')
        self.assertEqual(item.charge_to_account, self.account)
        self.assertEqual(item.lab, self.lab)
        self.assertEqual(item.category, 'molecular-biology')
        self.assertIn(item, device.supplies.all())

    def test_items_in_other_labs_are_not_matched(self):
        other_lab = TestDataFactory.create_lab()
        TestDataFactory.create_inventory_item(lab=other_lab, product_name='Ethanol')
        order = self._received(product_name='Ethanol')

        result = reconcile_received_order(order)
        self.assertEqual(result['action'], 'CREATE')
        self.assertEqual(InventoryItem.objects.filter(product_name='Ethanol').count(), 2)

    def test_find_potential_duplicates(self):
        by_catalogue = TestDataFactory.create_inventory_item(lab=self.lab, product_name='Loading dye 6x',
                                                             cat_num='B7024', supplier='NEB')
        by_name = TestDataFactory.create_inventory_item(lab=self.lab, product_name='Gel Loading Dye')
        TestDataFactory.create_inventory_item(lab=self.lab, product_name='Ethidium bromide')
        order = TestDataFactory.create_order(self.account, product_name='loading dye', cat_num='B7024',
                                             supplier='NEB')

        duplicates = find_potential_duplicates(order)
        self.assertEqual(duplicates, [by_catalogue, by_name])

    def test_reconcile_multiple_orders(self):
        TestDataFactory.create_inventory_item(lab=self.lab, product_name='Gloves M')
        orders = [
            self._received(product_name='Gloves M'),
            self._received(product_name='Cryovials'),
            TestDataFactory.create_order(self.account, product_name='Pending', status='ordered'),
        ]

        outcome = reconcile_multiple_orders(orders)
        self.assertEqual(outcome['summary'], {'created': 1, 'updated': 1, 'errors': 1})
        self.assertEqual(len(outcome['results']), 2)

    def test_adjust_stock(self):
        item = TestDataFactory.create_inventory_item(lab=self.lab, product_name='Tips', current_quantity=Decimal('3'),
                                                     min_quantity=Decimal('2'))
        item = adjust_stock(item, -2)
        self.assertEqual(item.current_quantity, Decimal('1'))
        self.assertEqual(item.inventory_level, 'low')

        with self.assertRaises(InventoryError) as ctx:
            adjust_stock(item, -5)
        self.assertEqual(str(ctx.exception), 'Insufficient stock for Tips: 1 available, 5 requested')
        item.refresh_from_db()
        self.assertEqual(item.current_quantity, Decimal('1'))


class InventoryAPITests(TestCase):
    """Inventory and equipment endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.lab = TestDataFactory.create_lab()
        self.account = TestDataFactory.create_account(lab=self.lab)

    def test_requires_authentication(self):
        self.client.logout()
        response = self.client.get('/api/v1/inventory/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_create_item_derives_level(self):
        data = {'product_name': 'DMSO', 'current_quantity': '3', 'min_quantity': '2', 'lab': self.lab.id}
        response = self.client.post('/api/v1/inventory/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['inventory_level'], 'medium')
        self.assertFalse(response.data['is_below_minimum'])

    def test_create_item_validation(self):
        response = self.client.post('/api/v1/inventory/', {'product_name': 'DMSO', 'current_quantity': '-1'},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('current_quantity', response.data)

    def test_update_recomputes_level(self):
        item = TestDataFactory.create_inventory_item(lab=self.lab, current_quantity=Decimal('10'),
                                                     min_quantity=Decimal('2'))
        response = self.client.patch(f'/api/v1/inventory/{item.id}/', {'current_quantity': '0'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['inventory_level'], 'empty')

    def test_filter_and_low_stock(self):
        TestDataFactory.create_inventory_item(lab=self.lab, product_name='Empty one', current_quantity=Decimal('0'))
        TestDataFactory.create_inventory_item(lab=self.lab, product_name='Low one', current_quantity=Decimal('1'),
                                              min_quantity=Decimal('2'))
        TestDataFactory.create_inventory_item(lab=self.lab, product_name='Plenty', current_quantity=Decimal('50'),
                                              min_quantity=Decimal('2'))

        response = self.client.get('/api/v1/inventory/low-stock/')
        self.assertEqual(response.data['count'], 2)

        response = self.client.get('/api/v1/inventory/?level=full')
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['product_name'], 'Plenty')

        response = self.client.get('/api/v1/inventory/?search=low')
        self.assertEqual(response.data['count'], 1)

    def test_adjust_endpoint(self):
        item = TestDataFactory.create_inventory_item(lab=self.lab, current_quantity=Decimal('2'))
        response = self.client.post(f'/api/v1/inventory/{item.id}/adjust/', {'delta': '-1'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(Decimal(response.data['current_quantity']), Decimal('1'))

        response = self.client.post(f'/api/v1/inventory/{item.id}/adjust/', {'delta': '-4'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('Insufficient stock', response.data['error'])

    def test_duplicates_endpoint(self):
        TestDataFactory.create_inventory_item(lab=self.lab, product_name='Falcon tubes 50 ml')
        order = TestDataFactory.create_order(self.account, product_name='Falcon tubes')

        response = self.client.get(f'/api/v1/inventory/duplicates/?order={order.id}')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)

        response = self.client.get('/api/v1/inventory/duplicates/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_reconcile_endpoint(self):
        received = TestDataFactory.create_order(self.account, product_name='Parafilm', status='received')
        pending = TestDataFactory.create_order(self.account, product_name='Foil', status='ordered')

        response = self.client.post('/api/v1/inventory/reconcile/',
                                    {'orders': [received.id, pending.id, 999999]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['summary'], {'created': 1, 'updated': 0, 'errors': 2})
        self.assertEqual(response.data['results'][0]['action'], 'CREATE')

    def test_export(self):
        TestDataFactory.create_inventory_item(lab=self.lab, product_name='Tris base', cat_num='T1503',
                                              current_quantity=Decimal('2.000'))
        response = self.client.get('/api/v1/inventory/export/')
        lines = response.content.decode().split('\n')
        self.assertEqual(lines[0].split(',')[:4], ['Product Name', 'Catalog Number', 'Stock Level', 'Current Quantity'])
        self.assertTrue(lines[1].startswith('Tris base,T1503,full,2,'))

    def test_equipment_crud(self):
        tips = TestDataFactory.create_inventory_item(lab=self.lab, product_name='Tips')
        response = self.client.post('/api/v1/equipment/', {'name': 'Pipette P200', 'lab': self.lab.id,
                                                            'supplies': [tips.id]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['supply_count'], 1)
        device_id = response.data['id']

        response = self.client.get(f'/api/v1/inventory/?equipment={device_id}')
        self.assertEqual(response.data['count'], 1)

        response = self.client.patch(f'/api/v1/equipment/{device_id}/', {'location': 'Bench 3'}, format='json')
        self.assertEqual(response.data['location'], 'Bench 3')

        response = self.client.delete(f'/api/v1/equipment/{device_id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertTrue(InventoryItem.objects.filter(pk=tips.id).exists())

    def test_equipment_supply_figures(self):
        reagent = TestDataFactory.create_inventory_item(lab=self.lab, product_name='Reagent',
                                                        current_quantity=Decimal('3'), min_quantity=Decimal('5'))
        reagent.burn_rate_per_week = Decimal('2')
        reagent.save()
        tips = TestDataFactory.create_inventory_item(lab=self.lab, product_name='Tips',
                                                     current_quantity=Decimal('10'), min_quantity=Decimal('2'))
        tips.burn_rate_per_week = Decimal('1')
        tips.save()
        device = TestDataFactory.create_equipment(lab=self.lab)
        device.supplies.set([reagent, tips])

        response = self.client.get(f'/api/v1/equipment/{device.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['supply_health'], 69)
        self.assertEqual(response.data['supply_health_class'], 'ok')
        self.assertEqual(response.data['lowest_supply_health'], 38)
        self.assertEqual(response.data['total_burn_rate'], Decimal('3'))
        self.assertEqual(response.data['supplies_to_reorder'], [reagent.id])

    def test_low_stock_rows_carry_reorder_figures(self):
        TestDataFactory.create_inventory_item(lab=self.lab, product_name='Low one', current_quantity=Decimal('1'),
                                              min_quantity=Decimal('2'))
        response = self.client.get('/api/v1/inventory/low-stock/')
        row = response.data['results'][0]['supply_status']
        self.assertEqual(row['weeks_remaining'], 99)
        self.assertEqual(row['health_percent'], 100)
        self.assertTrue(row['needs_reorder'])
        self.assertEqual(row['stock_percentage'], 25)
        self.assertEqual(row['needed_quantity'], Decimal('1'))
        self.assertEqual(row['suggested_order_quantity'], 1)
