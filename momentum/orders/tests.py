"""
Test suite for the orders module
Tests: ledger effects of create/update/delete, status transitions,
inventory reconciliation on receipt, filters and export
"""
from datetime import date
from decimal import Decimal
from django.test import TestCase
from rest_framework import status
from momentum.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from momentum.funding.models import FundingTransaction
from momentum.inventory.models import InventoryItem
from .categories import CATEGORIES, get_category, is_valid_subcategory
from .models import Order
from .services import create_order, delete_order, update_order


class OrderLedgerTestBase(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.lab = TestDataFactory.create_lab()
        self.account = TestDataFactory.create_account(lab=self.lab, total_budget=Decimal('1000.00'))
        self.person = TestDataFactory.create_profile(lab=self.lab)
        self.allocation = TestDataFactory.create_allocation(self.account, person=self.person,
                                                            allocated_amount=Decimal('500.00'))

    def _create(self, order_status='ordered', price='100.00', **extra):
        data = {
            'product_name': extra.pop('product_name', 'Agarose'),
            'account': self.account,
            'allocation': self.allocation,
            'price_ex_vat': Decimal(price),
            'status': order_status,
        }
        data.update(extra)
        order, _ = create_order(data, user=self.user)
        return order

    def _refresh(self):
        self.account.refresh_from_db()
        self.allocation.refresh_from_db()


class OrderLedgerTests(OrderLedgerTestBase):
    """Ledger side effects of the order lifecycle"""

    def test_to_order_holds_nothing(self):
        self._create(order_status='to-order')
        self._refresh()
        self.assertEqual(self.account.committed_amount, Decimal('0.00'))
        self.assertEqual(self.account.spent_amount, Decimal('0.00'))
        self.assertFalse(FundingTransaction.objects.filter(type='ORDER_COMMIT').exists())

    def test_ordered_commits_funds(self):
        order = self._create()
        self._refresh()
        self.assertEqual(self.account.committed_amount, Decimal('100.00'))
        self.assertEqual(self.account.remaining_budget, Decimal('900.00'))
        self.assertEqual(self.allocation.current_committed, Decimal('100.00'))
        self.assertEqual(self.allocation.remaining_budget, Decimal('400.00'))
        self.assertEqual(order.ordered_date, date.today())
        commit = FundingTransaction.objects.get(order=order, type='ORDER_COMMIT')
        self.assertEqual(commit.status, 'PENDING')
        self.assertEqual(commit.description, 'Order placed: Agarose')

    def test_received_moves_committed_to_spent(self):
        order = self._create()
        order, reconciliation = update_order(order, {'status': 'received'}, user=self.user)
        self._refresh()
        self.assertEqual(self.account.committed_amount, Decimal('0.00'))
        self.assertEqual(self.account.spent_amount, Decimal('100.00'))
        self.assertEqual(self.allocation.current_spent, Decimal('100.00'))
        self.assertEqual(order.received_date, date.today())
        self.assertEqual(FundingTransaction.objects.get(order=order, type='ORDER_COMMIT').status, 'FINAL')
        self.assertTrue(FundingTransaction.objects.filter(order=order, type='ORDER_RECEIVED', status='FINAL').exists())
        self.assertEqual(reconciliation['action'], 'CREATE')

    def test_received_uses_actual_cost(self):
        order = self._create()
        update_order(order, {'status': 'received', 'actual_cost': Decimal('90.00')})
        self._refresh()
        self.assertEqual(self.account.spent_amount, Decimal('90.00'))
        self.assertEqual(self.account.committed_amount, Decimal('0.00'))

    def test_cancel_ordered_releases_commitment(self):
        order = self._create()
        update_order(order, {'status': 'cancelled'})
        self._refresh()
        self.assertEqual(self.account.committed_amount, Decimal('0.00'))
        self.assertEqual(self.allocation.current_committed, Decimal('0.00'))
        self.assertEqual(FundingTransaction.objects.get(order=order, type='ORDER_COMMIT').status, 'CANCELLED')
        cancelled = FundingTransaction.objects.get(order=order, type='ORDER_CANCELLED')
        self.assertEqual(cancelled.status, 'FINAL')
        self.assertEqual(cancelled.description, 'Order cancelled: Agarose')

    def test_back_to_to_order_releases_without_cancel_line(self):
        order = self._create()
        update_order(order, {'status': 'to-order'})
        self._refresh()
        self.assertEqual(self.account.committed_amount, Decimal('0.00'))
        self.assertFalse(FundingTransaction.objects.filter(order=order, type='ORDER_CANCELLED').exists())

    def test_cancel_received_releases_spend(self):
        order = self._create(order_status='received')
        update_order(order, {'status': 'cancelled'})
        self._refresh()
        self.assertEqual(self.account.spent_amount, Decimal('0.00'))
        adjustment = FundingTransaction.objects.get(order=order, type='ADJUSTMENT')
        self.assertEqual(adjustment.amount, Decimal('-100.00'))

    def test_delete_releases_and_keeps_history(self):
        order = self._create()
        delete_order(order, user=self.user)
        self._refresh()
        self.assertEqual(self.account.committed_amount, Decimal('0.00'))
        self.assertFalse(Order.objects.exists())
        # Ledger lines survive with the order link cleared
        self.assertEqual(FundingTransaction.objects.filter(order__isnull=True, type__in=['ORDER_COMMIT', 'ORDER_CANCELLED']).count(), 2)

    def test_moving_account_rebooks(self):
        other = TestDataFactory.create_account(lab=self.lab)
        order = self._create()
        update_order(order, {'account': other, 'allocation': None})
        self._refresh()
        other.refresh_from_db()
        self.assertEqual(self.account.committed_amount, Decimal('0.00'))
        self.assertEqual(self.allocation.current_committed, Decimal('0.00'))
        self.assertEqual(other.committed_amount, Decimal('100.00'))

    def test_price_change_while_ordered_rebooks(self):
        order = self._create()
        update_order(order, {'price_ex_vat': Decimal('150.00')})
        self._refresh()
        self.assertEqual(self.account.committed_amount, Decimal('150.00'))
        self.assertEqual(self.allocation.current_committed, Decimal('150.00'))
        self.assertEqual(FundingTransaction.objects.filter(order=order, type='ORDER_COMMIT', status='PENDING').count(), 1)

    def test_allocation_exhausts_and_recovers(self):
        order = self._create(price='500.00')
        self._refresh()
        self.assertEqual(self.allocation.status, 'exhausted')
        update_order(order, {'status': 'cancelled'})
        self._refresh()
        self.assertEqual(self.allocation.status, 'active')

    def test_lab_defaults_to_account_lab(self):
        order = self._create(order_status='to-order')
        self.assertEqual(order.lab_id, self.lab.id)


class OrderReconciliationTests(OrderLedgerTestBase):
    """Receiving an order tops up or creates inventory"""

    def test_receiving_tops_up_matching_catalogue_item(self):
        item = TestDataFactory.create_inventory_item(lab=self.lab, product_name='Agarose LE', cat_num='A-100',
                                                     supplier='Acme', current_quantity=Decimal('3'))
        order = self._create(cat_num='A-100', supplier='Acme', quantity=Decimal('2'), price='120.00')
        _, reconciliation = update_order(order, {'status': 'received'})
        item.refresh_from_db()
        self.assertEqual(reconciliation['action'], 'UPDATE')
        self.assertEqual(item.current_quantity, Decimal('5'))
        self.assertEqual(item.price_ex_vat, Decimal('120.00'))
        self.assertEqual(InventoryItem.objects.count(), 1)

    def test_receiving_twice_does_not_reconcile_twice(self):
        order = self._create(order_status='received')
        self.assertEqual(InventoryItem.objects.count(), 1)
        update_order(order, {'notes': 'Stored in cold room'})
        self.assertEqual(InventoryItem.objects.get().current_quantity, Decimal('1'))


class OrderAPITests(TestCase):
    """Order endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.lab = TestDataFactory.create_lab()
        self.account = TestDataFactory.create_account(lab=self.lab)

    def test_requires_authentication(self):
        self.client.logout()
        response = self.client.get('/api/v1/orders/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_create_order(self):
        data = {
            'product_name': 'Pipette tips',
            'cat_num': 'PT-200',
            'supplier': 'Acme',
            'account': self.account.id,
            'price_ex_vat': '45.50',
            'status': 'ordered',
            'category': 'general-consumables',
            'subcategory': 'Pipette tips & filter tips',
        }
        response = self.client.post('/api/v1/orders/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIsNone(response.data['reconciliation'])
        self.account.refresh_from_db()
        self.assertEqual(self.account.committed_amount, Decimal('45.50'))
        order = Order.objects.get()
        self.assertEqual(order.created_by, self.user)

    def test_create_order_validation(self):
        other_account = TestDataFactory.create_account(lab=self.lab)
        allocation = TestDataFactory.create_allocation(other_account, allocated_amount=Decimal('100'))
        base = {'product_name': 'Tips', 'account': self.account.id, 'price_ex_vat': '10.00'}

        response = self.client.post('/api/v1/orders/', {**base, 'allocation': allocation.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('allocation', response.data)

        response = self.client.post('/api/v1/orders/', {**base, 'category': 'snacks'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('category', response.data)

        response = self.client.post('/api/v1/orders/', {**base, 'price_ex_vat': '-1.00'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.post('/api/v1/orders/', {**base, 'product_name': '   '}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_status_endpoint_receives_order(self):
        order, _ = create_order({'product_name': 'DMEM', 'account': self.account,
                                 'price_ex_vat': Decimal('30.00'), 'status': 'ordered'})
        response = self.client.post(f'/api/v1/orders/{order.id}/status/', {'status': 'received'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'received')
        self.assertEqual(response.data['reconciliation']['action'], 'CREATE')
        self.account.refresh_from_db()
        self.assertEqual(self.account.spent_amount, Decimal('30.00'))

    def test_status_endpoint_rejects_unknown_status(self):
        order = TestDataFactory.create_order(self.account)
        response = self.client.post(f'/api/v1/orders/{order.id}/status/', {'status': 'lost'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_patch_and_delete_order(self):
        order, _ = create_order({'product_name': 'PBS', 'account': self.account,
                                 'price_ex_vat': Decimal('20.00'), 'status': 'ordered'})
        response = self.client.patch(f'/api/v1/orders/{order.id}/', {'price_ex_vat': '25.00'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.account.refresh_from_db()
        self.assertEqual(self.account.committed_amount, Decimal('25.00'))

        response = self.client.delete(f'/api/v1/orders/{order.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.account.refresh_from_db()
        self.assertEqual(self.account.committed_amount, Decimal('0.00'))

    def test_filter_by_status_list_and_search(self):
        TestDataFactory.create_order(self.account, product_name='Trypsin', status='ordered')
        TestDataFactory.create_order(self.account, product_name='Ethanol', status='received')
        TestDataFactory.create_order(self.account, product_name='Gloves', status='to-order', cat_num='GL-1')

        response = self.client.get('/api/v1/orders/?status=ordered,received')
        self.assertEqual(response.data['count'], 2)

        response = self.client.get('/api/v1/orders/?search=gl-1')
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['product_name'], 'Gloves')

    def test_categories(self):
        response = self.client.get('/api/v1/orders/categories/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 10)
        self.assertEqual(response.data[0]['id'], 'general-consumables')

    def test_export(self):
        TestDataFactory.create_order(self.account, product_name='Buffer, pH 7', status='ordered')
        response = self.client.get('/api/v1/orders/export/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        lines = response.content.decode().split('\n')
        self.assertTrue(lines[0].startswith('Product Name,Catalog Number,Status'))
        self.assertTrue(lines[1].startswith('"Buffer, pH 7"'))


class CategoryTests(TestCase):

    def test_catalogue(self):
        self.assertEqual(len(CATEGORIES), 10)
        self.assertEqual(get_category('cell-culture')['name'], 'Cell Culture')
        self.assertIsNone(get_category('unknown'))
        self.assertTrue(is_valid_subcategory('storage-safety', 'Spill kits, absorbents'))
        self.assertFalse(is_valid_subcategory('storage-safety', 'Pipette tips & filter tips'))
