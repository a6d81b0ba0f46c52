"""
Test suite for core
Tests: money helpers, search/filter/sort, CSV helpers, auth, audit log, global search and the cache check command
"""
from io import StringIO
from datetime import date, datetime
from decimal import Decimal
from django.core.cache import cache
from django.core.management import call_command
from django.test import SimpleTestCase, TestCase
from rest_framework import status
from rest_framework.test import APIClient
from .constants import format_currency, get_budget_status, get_low_balance_warning_level, to_decimal
from .exports import ORDER_COLUMNS, array_to_csv, backup_filename, format_csv_value, parse_csv
from .models import AuditLog
from .search import (
    filter_events, filter_inventory, filter_orders, filter_people, filter_projects, filter_tasks, fuzzy_search,
    search_events, sort_by,
)
from .test_utils import TestDataFactory, AuthenticatedAPIClient
from .utils import create_audit_log


class MoneyHelperTests(SimpleTestCase):

    def test_format_currency(self):
        self.assertEqual(format_currency(1234.5, "EUR"), "€1234.50")
        self.assertEqual(format_currency(0), "€0.00")
        self.assertEqual(format_currency(Decimal('-12.345'), "GBP"), "-£12.35")
        self.assertEqual(format_currency(5, "SEK"), "SEK 5.00")

    def test_to_decimal(self):
        self.assertEqual(to_decimal('12.5'), Decimal('12.5'))
        self.assertEqual(to_decimal(None), Decimal('0.00'))
        self.assertEqual(to_decimal('abc'), Decimal('0.00'))

    def test_warning_levels(self):
        self.assertEqual(get_low_balance_warning_level(95), 'critical')
        self.assertEqual(get_low_balance_warning_level(90), 'critical')
        self.assertEqual(get_low_balance_warning_level(85), 'high')
        self.assertEqual(get_low_balance_warning_level(72), 'medium')
        self.assertEqual(get_low_balance_warning_level(10), 'normal')

    def test_budget_status(self):
        self.assertEqual(get_budget_status(50), 'healthy')
        self.assertEqual(get_budget_status(85), 'warning')
        self.assertEqual(get_budget_status(100), 'overbudget')


class SearchHelperTests(SimpleTestCase):

    def setUp(self):
        self.orders = [
            {'product_name': 'Agarose', 'cat_num': 'A9539', 'status': 'received', 'price_ex_vat': 45},
            {'product_name': 'Tris base', 'cat_num': 'T1503', 'status': 'ordered', 'price_ex_vat': 30},
            {'product_name': 'Pipette tips', 'cat_num': 'P-200', 'status': 'received', 'price_ex_vat': None},
            {'product_name': 'Gloves', 'cat_num': '', 'status': 'to-order', 'price_ex_vat': 12},
        ]

    def test_filter_orders_by_status(self):
        received = filter_orders(self.orders, {'status': ['received']})
        self.assertEqual([o['product_name'] for o in received], ['Agarose', 'Pipette tips'])

        # An empty status list keeps everything
        self.assertEqual(len(filter_orders(self.orders, {'status': []})), 4)

    def test_filter_orders_by_query(self):
        found = filter_orders(self.orders, {'query': 't1503'})
        self.assertEqual([o['product_name'] for o in found], ['Tris base'])

    def test_fuzzy_search(self):
        self.assertEqual(len(fuzzy_search(self.orders, '  ', ['product_name'])), 4)
        self.assertEqual(fuzzy_search(self.orders, 'GLOV', ['product_name'])[0]['product_name'], 'Gloves')
        # Numbers match on their digits
        self.assertEqual(fuzzy_search(self.orders, '45', ['price_ex_vat'])[0]['product_name'], 'Agarose')
        self.assertEqual(fuzzy_search([{'tags': ['cloning', 'pcr']}], 'PCR', ['tags']), [{'tags': ['cloning', 'pcr']}])

    def test_filter_projects(self):
        projects = [
            {'name': 'Aptamers', 'status': 'active', 'start_date': '2024-01-10', 'progress': 40, 'tags': ['rna']},
            {'name': 'Sensors', 'status': 'planning', 'start_date': '2024-06-01', 'progress': 0, 'tags': []},
        ]
        self.assertEqual(len(filter_projects(projects, {'start_date_from': date(2024, 3, 1)})), 1)
        self.assertEqual(filter_projects(projects, {'tags': ['rna']})[0]['name'], 'Aptamers')
        self.assertEqual(filter_projects(projects, {'min_progress': 10})[0]['name'], 'Aptamers')

    def test_sort_by_puts_missing_last(self):
        ordered = sort_by(self.orders, 'price_ex_vat')
        self.assertEqual([o['product_name'] for o in ordered], ['Gloves', 'Tris base', 'Agarose', 'Pipette tips'])

        ordered = sort_by(self.orders, 'price_ex_vat', 'desc')
        self.assertEqual([o['product_name'] for o in ordered], ['Agarose', 'Tris base', 'Gloves', 'Pipette tips'])

    def test_sort_by_dates(self):
        rows = [
            {'name': 'b', 'due': '2024-03-01T08:00:00Z'},
            {'name': 'a', 'due': date(2024, 1, 15)},
            {'name': 'd', 'due': None},
            {'name': 'c', 'due': datetime(2024, 2, 1, 9, 0)},
        ]
        self.assertEqual([r['name'] for r in sort_by(rows, 'due')], ['a', 'c', 'b', 'd'])
        self.assertEqual([r['name'] for r in sort_by(rows, 'due', 'desc')], ['b', 'c', 'a', 'd'])

    def test_sort_by_mixed_kinds(self):
        rows = [{'due': '2024-03-01'}, {'due': 'next week'}, {'due': date(2024, 1, 1)}]
        self.assertEqual([str(r['due']) for r in sort_by(rows, 'due')], ['2024-01-01', '2024-03-01', 'next week'])

        rows = [{'v': 3}, {'v': 'ten'}, {'v': 12}]
        self.assertEqual([r['v'] for r in sort_by(rows, 'v', 'desc')], ['ten', 3, 12])


class FilterHelperTests(SimpleTestCase):
    """Every filter key of the list pages"""

    def test_filter_inventory(self):
        items = [
            {'product_name': 'Agarose', 'cat_num': 'A9539', 'category': 'Reagents', 'subcategory': 'Gels',
             'inventory_level': 'low', 'charge_to_account': 1, 'current_quantity': 1, 'min_quantity': 5},
            {'product_name': 'Pipette tips', 'cat_num': 'P-200', 'category': 'Plastics', 'subcategory': 'Tips',
             'inventory_level': 'full', 'charge_to_account': 2, 'current_quantity': 9, 'min_quantity': 5},
            {'product_name': 'Tris base', 'cat_num': 'T1503', 'category': 'Reagents', 'subcategory': 'Buffers',
             'inventory_level': 'empty', 'charge_to_account': None, 'current_quantity': 0, 'min_quantity': None},
        ]

        def names(filters):
            return [i['product_name'] for i in filter_inventory(items, filters)]

        self.assertEqual(names({'query': 'p-200'}), ['Pipette tips'])
        self.assertEqual(names({'category': 'Reagents'}), ['Agarose', 'Tris base'])
        self.assertEqual(names({'subcategory': 'Buffers'}), ['Tris base'])
        self.assertEqual(names({'inventory_level': ['low', 'empty']}), ['Agarose', 'Tris base'])
        self.assertEqual(names({'charge_to_account': '2'}), ['Pipette tips'])
        self.assertEqual(names({'min_quantity': True}), ['Agarose'])
        self.assertEqual(names({'below_minimum': True}), ['Agarose'])
        self.assertEqual(len(names({'min_quantity': False})), 3)

    def test_filter_tasks(self):
        tasks = [
            {'name': 'Clone insert', 'tags': ['cloning'], 'status': 'in-progress', 'importance': 'high',
             'type': 'experiment', 'primary_owner': 7, 'workpackage': 1,
             'start_date': '2024-02-01', 'end_date': '2024-03-01'},
            {'name': 'Write report', 'tags': [], 'status': 'done', 'importance': 'low',
             'type': 'admin', 'primary_owner': 8, 'workpackage': 2,
             'start_date': '2024-05-01', 'end_date': '2024-06-15'},
        ]

        def names(filters):
            return [t['name'] for t in filter_tasks(tasks, filters)]

        self.assertEqual(names({'query': 'CLONING'}), ['Clone insert'])
        self.assertEqual(names({'status': ['done']}), ['Write report'])
        self.assertEqual(names({'importance': ['high']}), ['Clone insert'])
        self.assertEqual(names({'type': ['admin']}), ['Write report'])
        self.assertEqual(names({'primary_owner': 7}), ['Clone insert'])
        self.assertEqual(names({'workpackage': '2'}), ['Write report'])
        self.assertEqual(names({'start_date_from': '2024-04-01'}), ['Write report'])
        # Range bounds are inclusive
        self.assertEqual(names({'start_date_to': date(2024, 2, 1)}), ['Clone insert'])
        self.assertEqual(names({'end_date_from': '2024-06-15'}), ['Write report'])
        self.assertEqual(names({'end_date_to': '2024-03-01'}), ['Clone insert'])
        self.assertEqual(len(names({})), 2)

    def test_filter_people(self):
        people = [
            {'first_name': 'Ada', 'last_name': 'Lovelace', 'email': 'ada@lab.org', 'position': 'pi',
             'research_interests': ['analytical engines'], 'qualifications': [], 'organisation': 'Uni A',
             'institute': 'IGC', 'lab': 3, 'reports_to': None},
            {'first_name': 'Alan', 'last_name': 'Turing', 'email': 'alan@lab.org', 'position': 'phd_student',
             'research_interests': ['computability'], 'qualifications': ['MSc'], 'organisation': 'Uni B',
             'institute': 'IGC', 'lab': 4, 'reports_to': 1},
        ]

        def names(filters):
            return [p['last_name'] for p in filter_people(people, filters)]

        self.assertEqual(names({'query': 'engines'}), ['Lovelace'])
        self.assertEqual(names({'query': 'msc'}), ['Turing'])
        self.assertEqual(names({'organisation': 'Uni B'}), ['Turing'])
        self.assertEqual(names({'institute': 'IGC'}), ['Lovelace', 'Turing'])
        self.assertEqual(names({'lab': 3}), ['Lovelace'])
        self.assertEqual(names({'position': 'phd_student'}), ['Turing'])
        self.assertEqual(names({'reports_to': 1}), ['Turing'])

    def test_filter_events(self):
        events = [
            {'title': 'Lab meeting', 'description': 'weekly', 'location': 'Room 2', 'tags': [],
             'type': 'meeting', 'visibility': 'lab', 'owner': 1, 'start': '2024-05-06T10:00:00Z'},
            {'title': 'Thesis defence', 'description': '', 'location': 'Aula', 'tags': ['phd'],
             'type': 'deadline', 'visibility': 'private', 'owner': 2, 'start': datetime(2024, 5, 20, 14, 0)},
        ]

        def titles(filters):
            return [e['title'] for e in filter_events(events, filters)]

        self.assertEqual([e['title'] for e in search_events(events, 'aula')], ['Thesis defence'])
        self.assertEqual([e['title'] for e in search_events(events, 'PHD')], ['Thesis defence'])
        self.assertEqual(titles({'query': 'weekly'}), ['Lab meeting'])
        self.assertEqual(titles({'type': ['meeting', 'deadline']}), ['Lab meeting', 'Thesis defence'])
        self.assertEqual(titles({'type': ['deadline']}), ['Thesis defence'])
        self.assertEqual(titles({'visibility': ['lab']}), ['Lab meeting'])
        self.assertEqual(len(titles({'visibility': []})), 2)
        self.assertEqual(titles({'owner': 2}), ['Thesis defence'])
        self.assertEqual(titles({'start_from': date(2024, 5, 10)}), ['Thesis defence'])
        self.assertEqual(titles({'start_to': '2024-05-06'}), ['Lab meeting'])
        self.assertEqual(len(titles({'start_from': '2024-05-06', 'start_to': '2024-05-20'})), 2)

    def test_filter_projects_every_key(self):
        projects = [
            {'name': 'Aptamers', 'notes': '', 'tags': ['rna'], 'status': 'active', 'importance': 'high',
             'principal_investigators': [1, 2], 'start_date': '2024-01-10', 'end_date': '2024-12-31',
             'progress': 40},
            {'name': 'Sensors', 'notes': '', 'tags': [], 'status': 'planning', 'importance': 'low',
             'kind': 'master', 'principal_investigators': [3], 'start_date': '2024-06-01',
             'end_date': '2025-06-30', 'progress': 0},
        ]

        def names(filters):
            return [p['name'] for p in filter_projects(projects, filters)]

        self.assertEqual(names({'query': 'sens'}), ['Sensors'])
        self.assertEqual(names({'status': ['planning']}), ['Sensors'])
        self.assertEqual(names({'importance': ['high']}), ['Aptamers'])
        # Projects without a kind count as regular
        self.assertEqual(names({'kind': ['regular']}), ['Aptamers'])
        self.assertEqual(names({'kind': ['master']}), ['Sensors'])
        self.assertEqual(names({'principal_investigator': 3}), ['Sensors'])
        self.assertEqual(names({'principal_investigator': '1'}), ['Aptamers'])
        self.assertEqual(names({'start_date_to': '2024-01-10'}), ['Aptamers'])
        self.assertEqual(names({'end_date_from': date(2025, 1, 1)}), ['Sensors'])
        self.assertEqual(names({'end_date_to': '2024-12-31'}), ['Aptamers'])
        self.assertEqual(names({'max_progress': 10}), ['Sensors'])
        self.assertEqual(len(names({'tags': []})), 2)

    def test_filter_orders_every_key(self):
        orders = [
            {'product_name': 'Agarose', 'cat_num': 'A1', 'status': 'received', 'category': 'Reagents',
             'subcategory': 'Gels', 'account': 1, 'ordered_by': 5},
            {'product_name': 'Gloves', 'cat_num': 'G1', 'status': 'ordered', 'category': 'Consumables',
             'subcategory': 'PPE', 'account': 2, 'ordered_by': 6},
        ]

        def names(filters):
            return [o['product_name'] for o in filter_orders(orders, filters)]

        self.assertEqual(names({'status': ['received', 'ordered']}), ['Agarose', 'Gloves'])
        self.assertEqual(names({'category': 'Consumables'}), ['Gloves'])
        self.assertEqual(names({'subcategory': 'Gels'}), ['Agarose'])
        self.assertEqual(names({'account': '2'}), ['Gloves'])
        self.assertEqual(names({'ordered_by': 5}), ['Agarose'])


class ExportHelperTests(SimpleTestCase):

    def test_array_to_csv(self):
        rows = [{'product_name': 'Buffer, pH 7', 'cat_num': 'B1', 'status': 'ordered', 'price_ex_vat': Decimal('12.50')}]
        lines = array_to_csv(rows, ORDER_COLUMNS).split('\n')
        self.assertTrue(lines[0].startswith('Product Name,Catalog Number,Status'))
        self.assertTrue(lines[1].startswith('"Buffer, pH 7",B1,ordered,12.50,'))

    def test_empty_rows(self):
        self.assertEqual(array_to_csv([], ORDER_COLUMNS), '')

    def test_cell_formatting(self):
        self.assertEqual(format_csv_value(['rna', 'dna']), '"rna; dna"')
        self.assertEqual(format_csv_value('say "hi"'), '"say ""hi"""')
        self.assertEqual(format_csv_value('2024-05-01T10:30:00Z'), '2024-05-01')
        self.assertEqual(format_csv_value(None), '')
        self.assertEqual(format_csv_value(True), 'true')
        self.assertEqual(format_csv_value(Decimal('10.00')), '10')

    def test_parse_csv(self):
        rows = parse_csv('Name,Email\n Ada , ada@lab.org\n\nBob\n')
        self.assertEqual(rows, [
            {'Name': 'Ada', 'Email': 'ada@lab.org'},
            {'Name': 'Bob', 'Email': ''},
        ])
        self.assertEqual(parse_csv(''), [])

    def test_csv_round_trip(self):
        columns = [('name', 'Name'), ('note', 'Note'), ('tags', 'Tags'), ('received', 'Received')]
        rows = [
            {'name': 'Buffer, pH 7', 'note': 'say "hi"', 'tags': ['rna', 'dna'], 'received': date(2024, 5, 1)},
            {'name': 'Gloves', 'note': None, 'tags': [], 'received': None},
        ]
        self.assertEqual(parse_csv(array_to_csv(rows, columns)), [
            {'Name': 'Buffer, pH 7', 'Note': 'say "hi"', 'Tags': 'rna; dna', 'Received': '2024-05-01'},
            {'Name': 'Gloves', 'Note': '', 'Tags': '', 'Received': ''},
        ])

    def test_backup_filename(self):
        self.assertEqual(backup_filename(datetime(2024, 3, 5, 9, 7)), 'momentum_backup_2024-03-05_09-07.json')


class AuthAPITests(TestCase):

    def setUp(self):
        self.client = APIClient()

    def test_register(self):
        response = self.client.post('/api/v1/auth/register/', {
            'username': 'ada',
            'email': 'ada@lab.org',
            'password': 'Lovelace-1815',
            'password_confirm': 'Lovelace-1815',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['user']['username'], 'ada')
        self.assertIn('access', response.data)
        self.assertIn('refresh', response.data)

    def test_register_password_mismatch(self):
        response = self.client.post('/api/v1/auth/register/', {
            'username': 'ada',
            'password': 'Lovelace-1815',
            'password_confirm': 'Babbage-1791',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('password', response.data)

    def test_login_and_me(self):
        user = TestDataFactory.create_user(username='grace')
        lab = TestDataFactory.create_lab()
        TestDataFactory.create_profile(user=user, lab=lab, first_name='Grace', last_name='Hopper', user_role='pi')

        response = self.client.post('/api/v1/auth/login/', {'username': 'grace', 'password': 'testpass123'},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {response.data['access']}")
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['role'], 'pi')
        self.assertEqual(response.data['profile']['full_name'], 'Grace Hopper')
        self.assertTrue(response.data['can_manage_inventory'])
        self.assertTrue(response.data['can_access_reports'])
        self.assertFalse(response.data['is_admin'])

    def test_login_wrong_password(self):
        TestDataFactory.create_user(username='grace')
        response = self.client.post('/api/v1/auth/login/', {'username': 'grace', 'password': 'nope'},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_me_requires_auth(self):
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_me_without_profile(self):
        client = AuthenticatedAPIClient()
        client.authenticate_user(TestDataFactory.create_user())
        response = client.get('/api/v1/auth/me/')
        self.assertIsNone(response.data['profile'])
        self.assertFalse(response.data['can_access_ledger'])


class AuditLogAPITests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.other = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        create_audit_log(user=self.user, action='create', model_name='Order', object_id=1, object_name='Agarose')
        create_audit_log(user=self.user, action='delete', model_name='Order', object_id=1, object_name='Agarose')
        create_audit_log(user=self.other, action='create', model_name='MasterProject', object_id=7)

    def test_skips_incomplete_entries(self):
        self.assertIsNone(create_audit_log(user=self.user, action='create', model_name='Order'))
        self.assertEqual(AuditLog.objects.count(), 3)

    def test_non_staff_sees_own_entries(self):
        self.client.authenticate_user(self.user)
        response = self.client.get('/api/v1/audit-logs/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 2)

        response = self.client.get('/api/v1/audit-logs/?action=delete')
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['object_id'], '1')

        foreign = AuditLog.objects.get(user=self.other)
        response = self.client.get(f'/api/v1/audit-logs/{foreign.pk}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_staff_sees_everything(self):
        self.client.authenticate_user(TestDataFactory.create_user(is_staff=True))
        response = self.client.get('/api/v1/audit-logs/?model=MasterProject')
        self.assertEqual(response.data['count'], 1)
        response = self.client.get('/api/v1/audit-logs/')
        self.assertEqual(response.data['count'], 3)


class GlobalSearchTests(TestCase):

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(TestDataFactory.create_user())
        self.lab = TestDataFactory.create_lab()

    def test_search_across_collections(self):
        TestDataFactory.create_project(lab=self.lab, name='Aptamer screening')
        TestDataFactory.create_project(lab=self.lab, name='Biosensors')
        TestDataFactory.create_inventory_item(lab=self.lab, product_name='Aptamer buffer')
        TestDataFactory.create_profile(lab=self.lab, first_name='Rosalind', last_name='Franklin')

        response = self.client.get('/api/v1/search/?q=aptamer')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([p['name'] for p in response.data['projects']], ['Aptamer screening'])
        self.assertEqual(len(response.data['inventory']), 1)
        self.assertEqual(response.data['people'], [])

        response = self.client.get('/api/v1/search/?q=franklin')
        self.assertEqual(len(response.data['people']), 1)

    def test_blank_query(self):
        TestDataFactory.create_project(lab=self.lab)
        response = self.client.get('/api/v1/search/?q=%20')
        self.assertEqual(response.data, {'projects': [], 'people': [], 'orders': [], 'inventory': [], 'events': []})


class CheckCacheCommandTests(TestCase):

    def setUp(self):
        cache.clear()

    def test_check_cache(self):
        out = StringIO()
        call_command('check_cache', stdout=out)
        output = out.getvalue()
        self.assertIn('Cache SET/GET: OK', output)
        self.assertIn('Pattern invalidation: OK', output)
        self.assertIn('Cache is working', output)
