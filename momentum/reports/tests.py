"""
Test suite for reports
Tests: dashboard KPIs, their caching and the full JSON backup
"""
import json
from datetime import timedelta
from decimal import Decimal
from django.core.cache import cache
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from momentum.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from momentum.eln.models import ELNExperiment
from momentum.orders.models import Order
from momentum.orders.services import create_order
from momentum.projects.models import MasterProject
from .services import get_dashboard_kpis


class DashboardTests(TestCase):

    def setUp(self):
        cache.clear()
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.lab = TestDataFactory.create_lab()
        self.account = TestDataFactory.create_account(lab=self.lab, total_budget=Decimal('1000.00'))

    def _populate(self):
        TestDataFactory.create_project(lab=self.lab, status='active')
        at_risk = TestDataFactory.create_project(lab=self.lab, status='on-hold')
        MasterProject.objects.filter(pk=at_risk.pk).update(health='at-risk')

        create_order({'product_name': 'Tips', 'account': self.account, 'price_ex_vat': Decimal('100.00'),
                      'status': 'ordered'})
        create_order({'product_name': 'Gloves', 'account': self.account, 'price_ex_vat': Decimal('50.00'),
                      'status': 'received'})
        TestDataFactory.create_order(self.account, product_name='Media')

        TestDataFactory.create_inventory_item(lab=self.lab, product_name='Empty', current_quantity=Decimal('0'))
        TestDataFactory.create_event(lab=self.lab, start=timezone.now() + timedelta(days=1))
        TestDataFactory.create_event(lab=self.lab, start=timezone.now() + timedelta(days=30))
        ELNExperiment.objects.create(title='Run 1', lab=self.lab, status='in-progress')

    def test_kpis(self):
        self._populate()
        kpis = get_dashboard_kpis(self.lab.id)

        self.assertEqual(kpis['projects'], {'total': 2, 'active': 1, 'at_risk': 1})
        self.assertEqual(kpis['orders']['open'], 2)
        self.assertEqual(kpis['orders']['to_order'], 1)
        self.assertEqual(kpis['orders']['ordered'], 1)
        self.assertEqual(kpis['orders']['received_this_month'], 1)
        # Receiving Gloves created an item at its minimum quantity of 1
        self.assertEqual(kpis['inventory'], {'total': 2, 'low_stock': 2})
        self.assertEqual(kpis['upcoming_events'], 1)
        self.assertEqual(kpis['experiments_in_progress'], 1)
        self.assertEqual(kpis['funding']['committed'], Decimal('100.00'))
        self.assertEqual(kpis['funding']['spent'], Decimal('50.00'))
        self.assertEqual(kpis['funding']['remaining'], Decimal('850.00'))
        self.assertEqual(kpis['funding']['utilization_percentage'], 15)

    def test_lab_scope(self):
        self._populate()
        other_lab = TestDataFactory.create_lab()
        kpis = get_dashboard_kpis(other_lab.id)
        self.assertEqual(kpis['projects']['total'], 0)
        self.assertEqual(kpis['funding']['total_budget'], Decimal('0.00'))
        self.assertEqual(kpis['funding']['utilization_percentage'], 0)

    def test_cached_until_data_changes(self):
        TestDataFactory.create_order(self.account, product_name='Tips')
        self.assertEqual(get_dashboard_kpis(self.lab.id)['orders']['to_order'], 1)

        # Queryset updates bypass model signals, so the cached figures stay
        Order.objects.update(status='ordered')
        self.assertEqual(get_dashboard_kpis(self.lab.id)['orders']['to_order'], 1)

        TestDataFactory.create_order(self.account, product_name='Gloves')
        kpis = get_dashboard_kpis(self.lab.id)
        self.assertEqual(kpis['orders']['to_order'], 1)
        self.assertEqual(kpis['orders']['ordered'], 1)

    def test_endpoint(self):
        self._populate()
        response = self.client.get(f'/api/v1/reports/dashboard/?lab={self.lab.id}')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['projects']['active'], 1)
        self.assertEqual(response['Cache-Control'], 'private, max-age=60')

        response = self.client.get('/api/v1/reports/dashboard/?lab=main')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class BackupTests(TestCase):

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.lab = TestDataFactory.create_lab()

    def test_requires_funding_admin(self):
        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.get('/api/v1/reports/backup/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_full_backup(self):
        self.client.authenticate_user(TestDataFactory.create_user(is_staff=True))
        project = TestDataFactory.create_project(lab=self.lab, name='Aptamer screening')
        TestDataFactory.create_profile(lab=self.lab)
        TestDataFactory.create_event(lab=self.lab)
        account = TestDataFactory.create_account(lab=self.lab)
        TestDataFactory.create_order(account)

        response = self.client.get('/api/v1/reports/backup/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('attachment; filename="momentum_backup_', response['Content-Disposition'])

        backup = json.loads(response.content)
        self.assertEqual(backup['version'], '1.0')
        self.assertIn('exportDate', backup)
        data = backup['data']
        self.assertEqual(data['projects'][0]['name'], project.name)
        self.assertEqual(len(data['profiles']), 1)
        self.assertEqual(len(data['events']), 1)
        self.assertEqual(len(data['orders']), 1)
        self.assertEqual(data['inventory'], [])
        self.assertEqual(len(data['funding_accounts']), 1)
