"""
Test suite for the electronic lab notebook
Tests: experiment numbering, consumed inventory validation,
stock deduction and item appends
"""
from decimal import Decimal
from django.test import TestCase
from rest_framework import status
from momentum.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from momentum.inventory.services import InventoryError
from .models import ELNExperiment
from .services import deduct_experiment_inventory, next_experiment_number


class ExperimentNumberTests(TestCase):

    def test_first_number_of_year(self):
        self.assertEqual(next_experiment_number(2025), 'EXP-2025-001')

    def test_continues_after_highest(self):
        ELNExperiment.objects.create(title='A', experiment_number='EXP-2025-001')
        ELNExperiment.objects.create(title='B', experiment_number='EXP-2025-009')
        ELNExperiment.objects.create(title='C', experiment_number='EXP-2024-050')
        self.assertEqual(next_experiment_number(2025), 'EXP-2025-010')
        self.assertEqual(next_experiment_number(2024), 'EXP-2024-051')


class DeductionTests(TestCase):
    """Consumed stock leaves inventory once, all or nothing"""

    def setUp(self):
        self.lab = TestDataFactory.create_lab()
        self.item = TestDataFactory.create_inventory_item(lab=self.lab, product_name='Ethanol 70%',
                                                          current_quantity=Decimal('5'), min_quantity=Decimal('2'))
        self.experiment = ELNExperiment.objects.create(
            title='Cell fixation', lab=self.lab, experiment_number='EXP-2025-001',
            consumed_inventory=[{'inventory_id': self.item.id, 'product_name': 'Ethanol 70%',
                                 'quantity_used': '2', 'deducted': False, 'deducted_at': None}],
        )

    def test_deducts_and_marks_line(self):
        experiment, item = deduct_experiment_inventory(self.experiment, self.item, Decimal('3'))
        self.assertEqual(item.current_quantity, Decimal('2'))
        self.assertEqual(item.inventory_level, 'low')
        line = experiment.consumed_inventory[0]
        self.assertTrue(line['deducted'])
        self.assertEqual(line['quantity_used'], '3')
        self.assertIsNotNone(line['deducted_at'])

    def test_defaults_to_line_quantity(self):
        _, item = deduct_experiment_inventory(self.experiment, self.item)
        self.assertEqual(item.current_quantity, Decimal('3'))

    def test_item_not_linked(self):
        other = TestDataFactory.create_inventory_item(lab=self.lab)
        with self.assertRaisesMessage(InventoryError, 'Item not linked to experiment'):
            deduct_experiment_inventory(self.experiment, other, 1)

    def test_already_deducted(self):
        deduct_experiment_inventory(self.experiment, self.item, 1)
        with self.assertRaisesMessage(InventoryError, 'Item already deducted'):
            deduct_experiment_inventory(self.experiment, self.item, 1)
        self.item.refresh_from_db()
        self.assertEqual(self.item.current_quantity, Decimal('4'))

    def test_rejects_non_numeric_quantities(self):
        for bad in ('NaN', 'Infinity', '-1'):
            with self.assertRaisesMessage(InventoryError, 'Quantity must be greater than zero'):
                deduct_experiment_inventory(self.experiment, self.item, bad)
        self.item.refresh_from_db()
        self.assertEqual(self.item.current_quantity, Decimal('5'))

    def test_insufficient_stock_changes_nothing(self):
        with self.assertRaisesMessage(InventoryError, 'Insufficient stock'):
            deduct_experiment_inventory(self.experiment, self.item, 6)
        self.item.refresh_from_db()
        self.experiment.refresh_from_db()
        self.assertEqual(self.item.current_quantity, Decimal('5'))
        self.assertFalse(self.experiment.consumed_inventory[0]['deducted'])


class ExperimentAPITests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.lab = TestDataFactory.create_lab()
        self.item = TestDataFactory.create_inventory_item(lab=self.lab, product_name='DAPI',
                                                          current_quantity=Decimal('4'))

    def _create(self, **extra):
        data = {'title': 'Staining run', 'lab': self.lab.id}
        data.update(extra)
        return self.client.post('/api/v1/experiments/', data, format='json')

    def test_requires_authentication(self):
        self.client.logout()
        response = self.client.get('/api/v1/experiments/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_create_numbers_experiments(self):
        first = self._create()
        second = self._create(title='Second run')
        self.assertEqual(first.status_code, status.HTTP_201_CREATED)
        year = ELNExperiment.objects.get(pk=first.data['id']).created_at.year
        self.assertEqual(first.data['experiment_number'], f'EXP-{year}-001')
        self.assertEqual(second.data['experiment_number'], f'EXP-{year}-002')
        self.assertEqual(first.data['status'], 'draft')

    def test_consumed_inventory_is_normalized(self):
        response = self._create(consumed_inventory=[{'inventory_id': self.item.id, 'quantity_used': 1.5}])
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['consumed_inventory'], [{
            'inventory_id': self.item.id, 'product_name': 'DAPI', 'quantity_used': '1.5',
            'deducted': False, 'deducted_at': None,
        }])

    def test_consumed_inventory_validation(self):
        response = self._create(consumed_inventory=[{'inventory_id': 999999, 'quantity_used': 1}])
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self._create(consumed_inventory=[{'inventory_id': self.item.id, 'quantity_used': 0}])
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        for bad in ('NaN', 'inf', '-Infinity'):
            response = self._create(consumed_inventory=[{'inventory_id': self.item.id, 'quantity_used': bad}])
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
            self.assertIn('consumed_inventory', response.data)

        response = self._create(items=[{'type': 'hologram'}])
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('items', response.data)

    def test_deduct_endpoint(self):
        experiment_id = self._create(
            consumed_inventory=[{'inventory_id': self.item.id, 'quantity_used': 1}]
        ).data['id']

        response = self.client.post(f'/api/v1/experiments/{experiment_id}/deduct/',
                                    {'inventory_item': self.item.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['inventory_item']['current_quantity'], Decimal('3'))
        self.assertTrue(response.data['experiment']['consumed_inventory'][0]['deducted'])

        response = self.client.post(f'/api/v1/experiments/{experiment_id}/deduct/',
                                    {'inventory_item': self.item.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Item already deducted')

    def test_deducted_lines_are_locked(self):
        experiment_id = self._create(
            consumed_inventory=[{'inventory_id': self.item.id, 'quantity_used': 1}]
        ).data['id']
        self.client.post(f'/api/v1/experiments/{experiment_id}/deduct/', {'inventory_item': self.item.id},
                         format='json')

        response = self.client.patch(f'/api/v1/experiments/{experiment_id}/', {'consumed_inventory': []},
                                     format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.patch(f'/api/v1/experiments/{experiment_id}/', {
            'consumed_inventory': [{'inventory_id': self.item.id, 'quantity_used': 1}]
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['consumed_inventory'][0]['deducted'])

    def test_add_item(self):
        experiment_id = self._create().data['id']
        response = self.client.post(f'/api/v1/experiments/{experiment_id}/items/',
                                    {'type': 'note', 'title': 'Observation', 'description': 'Cells confluent'},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['order'], 0)

        response = self.client.post(f'/api/v1/experiments/{experiment_id}/items/', {'type': 'data'}, format='json')
        self.assertEqual(response.data['order'], 1)
        experiment = ELNExperiment.objects.get(pk=experiment_id)
        self.assertEqual([i['type'] for i in experiment.items], ['note', 'data'])

        response = self.client.post(f'/api/v1/experiments/{experiment_id}/items/', {'type': 'smell'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_filter_and_delete(self):
        self._create(title='Western blot')
        experiment_id = self._create(title='qPCR', status='in-progress').data['id']

        response = self.client.get('/api/v1/experiments/?status=in-progress')
        self.assertEqual(response.data['count'], 1)
        response = self.client.get('/api/v1/experiments/?search=western')
        self.assertEqual(response.data['count'], 1)

        response = self.client.delete(f'/api/v1/experiments/{experiment_id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertEqual(ELNExperiment.objects.count(), 1)
