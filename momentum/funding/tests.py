"""
Test suite for funding
Tests: ledger buckets, funds checks, allocation status, summaries, manual
transactions, funding admin permissions, budget notifications and the
recalculate_funding command
"""
from io import StringIO
from decimal import Decimal
from django.core.cache import cache
from django.core.management import call_command
from django.test import TestCase
from rest_framework import status
from momentum.core.models import AuditLog
from momentum.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from .models import FundingAccount, FundingAllocation, FundingNotification, FundingTransaction
from .notifications import crossed_thresholds
from .services import (
    FundingError, allocation_warning, calculate_available_balance, check_sufficient_funds,
    funding_summary, get_active_allocations, get_total_remaining_budget, has_sufficient_funds,
    ledger_bucket, record_manual_transaction, refresh_allocation_status, update_account_budget
)


class LedgerBucketTests(TestCase):

    def setUp(self):
        self.account = TestDataFactory.create_account(total_budget=Decimal('1000.00'))

    def _reload(self):
        return FundingAccount.objects.get(pk=self.account.pk)

    def test_buckets(self):
        self.assertEqual(ledger_bucket('ordered'), 'committed')
        self.assertEqual(ledger_bucket('received'), 'spent')
        self.assertIsNone(ledger_bucket('to-order'))
        self.assertIsNone(ledger_bucket('cancelled'))
        self.assertIsNone(ledger_bucket(None))

    def test_transitions(self):
        update_account_budget(self.account, Decimal('100.00'), 'to-order', 'ordered')
        account = self._reload()
        self.assertEqual(account.committed_amount, Decimal('100.00'))
        self.assertEqual(account.remaining_budget, Decimal('900.00'))

        update_account_budget(self.account, Decimal('100.00'), 'ordered', 'received', new_amount=Decimal('90.00'))
        account = self._reload()
        self.assertEqual(account.committed_amount, Decimal('0.00'))
        self.assertEqual(account.spent_amount, Decimal('90.00'))
        self.assertEqual(account.remaining_budget, Decimal('910.00'))

        update_account_budget(self.account, Decimal('90.00'), 'received', 'cancelled')
        account = self._reload()
        self.assertEqual(account.spent_amount, Decimal('0.00'))
        self.assertEqual(account.remaining_budget, Decimal('1000.00'))

    def test_same_bucket_is_a_no_op(self):
        update_account_budget(self.account, Decimal('100.00'), 'to-order', 'cancelled')
        account = self._reload()
        self.assertEqual(account.committed_amount, Decimal('0.00'))
        self.assertEqual(account.spent_amount, Decimal('0.00'))

    def test_totals_never_negative(self):
        update_account_budget(self.account, Decimal('50.00'), 'ordered', 'to-order')
        self.assertEqual(self._reload().committed_amount, Decimal('0.00'))

    def test_unknown_account(self):
        with self.assertRaises(FundingError):
            update_account_budget(999999, Decimal('1.00'), 'to-order', 'ordered')

    def test_check_sufficient_funds(self):
        FundingAccount.objects.filter(pk=self.account.pk).update(committed_amount=Decimal('100.00'))
        account = self._reload()
        self.assertEqual(calculate_available_balance(account), Decimal('900.00'))

        result = check_sufficient_funds(account, '900')
        self.assertTrue(result['sufficient'])
        self.assertIsNone(result['message'])

        result = check_sufficient_funds(account, 1000)
        self.assertFalse(result['sufficient'])
        self.assertEqual(result['message'], 'Insufficient funds. Available: 900.00 EUR, Required: 1000.00 EUR')

        result = check_sufficient_funds(999999, 1)
        self.assertEqual(result, {'sufficient': False, 'available': Decimal('0.00'),
                                  'message': 'Funding account not found'})


class AllocationHelperTests(TestCase):

    def setUp(self):
        self.lab = TestDataFactory.create_lab()
        self.account = TestDataFactory.create_account(lab=self.lab, total_budget=Decimal('2000.00'))
        self.person = TestDataFactory.create_profile(lab=self.lab)
        self.project = TestDataFactory.create_project(lab=self.lab)

    def test_refresh_status(self):
        allocation = TestDataFactory.create_allocation(self.account, person=self.person,
                                                       allocated_amount=Decimal('100.00'))
        allocation.current_spent = Decimal('100.00')
        refresh_allocation_status(allocation)
        self.assertEqual(allocation.remaining_budget, Decimal('0.00'))
        self.assertEqual(allocation.status, 'exhausted')

        allocation.current_spent = Decimal('40.00')
        refresh_allocation_status(allocation)
        self.assertEqual(allocation.status, 'active')

        allocation.status = 'suspended'
        allocation.current_spent = Decimal('100.00')
        refresh_allocation_status(allocation)
        self.assertEqual(allocation.status, 'suspended')

    def test_unlimited_allocation(self):
        allocation = TestDataFactory.create_allocation(self.account, project=self.project)
        self.assertIsNone(allocation.remaining_budget)
        self.assertEqual(get_active_allocations([allocation]), [allocation])

    def test_remaining_budget_helpers(self):
        a = TestDataFactory.create_allocation(self.account, person=self.person, allocated_amount=Decimal('300.00'))
        b = TestDataFactory.create_allocation(self.account, project=self.project, allocated_amount=Decimal('200.00'))
        c = TestDataFactory.create_allocation(self.account, project=self.project, allocated_amount=Decimal('500.00'),
                                              status='suspended')
        self.assertEqual(get_total_remaining_budget([a, b, c]), Decimal('500.00'))
        self.assertTrue(has_sufficient_funds([a, b, c], '500'))
        self.assertFalse(has_sufficient_funds([a, b, c], '500.01'))
        self.assertEqual(get_active_allocations([a, b, c]), [a, b])

    def test_warning_with_own_threshold(self):
        allocation = TestDataFactory.create_allocation(self.account, person=self.person,
                                                       allocated_amount=Decimal('100.00'))
        allocation.current_spent = Decimal('60.00')
        self.assertEqual(allocation_warning(allocation), 'normal')
        allocation.low_balance_warning_threshold = 50
        self.assertEqual(allocation_warning(allocation), 'medium')
        allocation.current_spent = Decimal('95.00')
        self.assertEqual(allocation_warning(allocation), 'critical')

    def test_funding_summary(self):
        a = TestDataFactory.create_allocation(self.account, person=self.person, allocated_amount=Decimal('1000.00'))
        b = TestDataFactory.create_allocation(self.account, project=self.project, allocated_amount=Decimal('500.00'))
        FundingAllocation.objects.filter(pk=a.pk).update(current_spent=Decimal('300.00'),
                                                         current_committed=Decimal('50.00'))
        FundingAllocation.objects.filter(pk=b.pk).update(current_spent=Decimal('460.00'))
        allocations = FundingAllocation.objects.all()
        for allocation in allocations:
            allocation.recalculate_remaining()

        summary = funding_summary(allocations)
        self.assertEqual(summary['total_budget'], Decimal('1500.00'))
        self.assertEqual(summary['total_spent'], Decimal('760.00'))
        self.assertEqual(summary['total_committed'], Decimal('50.00'))
        self.assertEqual(summary['total_remaining'], Decimal('690.00'))
        self.assertEqual(summary['person_allocations'], 1)
        self.assertEqual(summary['project_allocations'], 1)
        self.assertEqual(len(summary['critical_allocations']), 1)
        self.assertEqual(summary['critical_allocations'][0]['id'], b.pk)
        self.assertEqual(summary['critical_allocations'][0]['percent_used'], 92.0)
        self.assertEqual(summary['critical_allocations'][0]['warning_level'], 'critical')


class ManualTransactionTests(TestCase):

    def setUp(self):
        self.lab = TestDataFactory.create_lab()
        self.account = TestDataFactory.create_account(lab=self.lab, total_budget=Decimal('1000.00'))
        self.person = TestDataFactory.create_profile(lab=self.lab)
        self.allocation = TestDataFactory.create_allocation(self.account, person=self.person,
                                                            allocated_amount=Decimal('200.00'))

    def test_adjustment_then_refund(self):
        tx = record_manual_transaction(self.account, 'ADJUSTMENT', Decimal('150.00'), 'Courier fee',
                                       allocation=self.allocation)
        self.assertEqual(tx.status, 'FINAL')
        self.assertEqual(tx.metadata, {'manual': True})

        tx = record_manual_transaction(self.account, 'REFUND', Decimal('30.00'), 'Credit note',
                                       allocation=self.allocation)
        # Refunds are stored as money coming back
        self.assertEqual(tx.amount, Decimal('-30.00'))

        account = FundingAccount.objects.get(pk=self.account.pk)
        self.assertEqual(account.spent_amount, Decimal('120.00'))
        self.assertEqual(account.remaining_budget, Decimal('880.00'))
        allocation = FundingAllocation.objects.get(pk=self.allocation.pk)
        self.assertEqual(allocation.current_spent, Decimal('120.00'))
        self.assertEqual(allocation.remaining_budget, Decimal('80.00'))
        self.assertIsNotNone(allocation.last_transaction_at)

    def test_refund_floors_at_zero(self):
        record_manual_transaction(self.account, 'REFUND', Decimal('-50.00'))
        self.assertEqual(FundingAccount.objects.get(pk=self.account.pk).spent_amount, Decimal('0.00'))

    def test_exhausts_allocation(self):
        record_manual_transaction(self.account, 'ADJUSTMENT', Decimal('200.00'), allocation=self.allocation)
        self.assertEqual(FundingAllocation.objects.get(pk=self.allocation.pk).status, 'exhausted')

    def test_rejected(self):
        with self.assertRaisesMessage(FundingError, 'Manual transactions must be ADJUSTMENT or REFUND, not ORDER_COMMIT'):
            record_manual_transaction(self.account, 'ORDER_COMMIT', Decimal('10.00'))
        with self.assertRaisesMessage(FundingError, 'Amount must not be zero'):
            record_manual_transaction(self.account, 'ADJUSTMENT', 0)

        other = TestDataFactory.create_account(lab=self.lab)
        with self.assertRaisesMessage(FundingError, 'Allocation does not belong to this account'):
            record_manual_transaction(other, 'ADJUSTMENT', Decimal('10.00'), allocation=self.allocation)
        # The failed booking was rolled back
        self.assertEqual(FundingAccount.objects.get(pk=other.pk).spent_amount, Decimal('0.00'))
        self.assertEqual(FundingTransaction.objects.count(), 0)


class FundingPermissionTests(TestCase):

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.lab = TestDataFactory.create_lab()
        self.account = TestDataFactory.create_account(lab=self.lab)

    def _login(self, role=None, **user_kwargs):
        user = TestDataFactory.create_user(**user_kwargs)
        if role:
            TestDataFactory.create_profile(user=user, lab=self.lab, user_role=role)
        self.client.authenticate_user(user)
        return user

    def test_researcher_is_not_funding_admin(self):
        self._login('researcher')
        self.assertEqual(self.client.get('/api/v1/funding/allocations/').status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(self.client.get('/api/v1/funding/transactions/').status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(self.client.get('/api/v1/funding/summary/').status_code, status.HTTP_403_FORBIDDEN)

        # Accounts can be read by every member but not changed
        self.assertEqual(self.client.get('/api/v1/funding/accounts/').status_code, status.HTTP_200_OK)
        response = self.client.post('/api/v1/funding/accounts/', {
            'account_number': 'ERC-1', 'account_name': 'ERC Starting Grant', 'total_budget': '1500000.00',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        response = self.client.patch(f'/api/v1/funding/accounts/{self.account.id}/', {'notes': 'x'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_user_without_profile(self):
        self._login()
        self.assertEqual(self.client.get('/api/v1/funding/allocations/').status_code, status.HTTP_403_FORBIDDEN)

    def test_admin_roles(self):
        for role in ('pi', 'finance_admin', 'lab_manager'):
            self._login(role)
            self.assertEqual(self.client.get('/api/v1/funding/allocations/').status_code, status.HTTP_200_OK)

        self._login(is_staff=True)
        self.assertEqual(self.client.get('/api/v1/funding/allocations/').status_code, status.HTTP_200_OK)


class FundingAPITests(TestCase):

    def setUp(self):
        cache.clear()
        self.client = AuthenticatedAPIClient()
        self.user = TestDataFactory.create_user(is_staff=True)
        self.client.authenticate_user(self.user)
        self.lab = TestDataFactory.create_lab()
        self.account = TestDataFactory.create_account(lab=self.lab, total_budget=Decimal('1000.00'),
                                                      account_number='NIH-R01')
        self.person = TestDataFactory.create_profile(lab=self.lab)

    def test_create_account(self):
        funder = TestDataFactory.create_funder(name='Wellcome')
        response = self.client.post('/api/v1/funding/accounts/', {
            'account_number': 'WT-2024',
            'account_name': 'Wellcome Discovery',
            'funder': funder.id,
            'lab': self.lab.id,
            'total_budget': '250000.00',
            'spent_amount': '999.00',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['funder_name'], 'Wellcome')
        # Ledger totals are read-only
        self.assertEqual(response.data['spent_amount'], '0.00')
        self.assertEqual(response.data['remaining_budget'], '250000.00')
        self.assertEqual(response.data['budget_status'], 'healthy')
        self.assertTrue(AuditLog.objects.filter(model_name='FundingAccount', action='create').exists())

    def test_account_validation(self):
        response = self.client.post('/api/v1/funding/accounts/', {
            'account_number': 'X', 'account_name': 'X', 'total_budget': '-1.00',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.patch(f'/api/v1/funding/accounts/{self.account.id}/', {
            'start_date': '2025-01-01', 'end_date': '2024-01-01',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(str(response.data['end_date'][0]), 'End date must be after start date')

    def test_check_funds_endpoint(self):
        response = self.client.get(f'/api/v1/funding/accounts/{self.account.id}/check-funds/?amount=1200')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['sufficient'])
        self.assertEqual(response.data['available'], Decimal('1000.00'))

    def test_allocation_lifecycle(self):
        response = self.client.post('/api/v1/funding/allocations/', {
            'funding_account': self.account.id,
            'type': 'PERSON',
            'person': self.person.id,
            'allocated_amount': '400.00',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['lab'], self.lab.id)
        self.assertEqual(response.data['remaining_budget'], '400.00')
        allocation_id = response.data['id']
        created = FundingTransaction.objects.get(allocation_id=allocation_id)
        self.assertEqual(created.type, 'ALLOCATION_CREATED')

        response = self.client.patch(f'/api/v1/funding/allocations/{allocation_id}/',
                                     {'allocated_amount': '600.00'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        adjusted = FundingTransaction.objects.get(allocation_id=allocation_id, type='ALLOCATION_ADJUSTED')
        self.assertEqual(adjusted.amount, Decimal('200.00'))
        self.assertTrue(AuditLog.objects.filter(action='allocation_adjust', object_id=str(allocation_id)).exists())

        FundingAllocation.objects.filter(pk=allocation_id).update(current_committed=Decimal('10.00'))
        response = self.client.delete(f'/api/v1/funding/allocations/{allocation_id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        FundingAllocation.objects.filter(pk=allocation_id).update(current_committed=Decimal('0.00'))
        response = self.client.delete(f'/api/v1/funding/allocations/{allocation_id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        # Ledger lines outlive the allocation
        self.assertEqual(FundingTransaction.objects.filter(type__startswith='ALLOCATION_').count(), 2)

    def test_allocation_validation(self):
        TestDataFactory.create_allocation(self.account, person=self.person, allocated_amount=Decimal('400.00'))

        response = self.client.post('/api/v1/funding/allocations/', {
            'funding_account': self.account.id, 'type': 'PERSON', 'person': self.person.id,
            'allocated_amount': '700.00',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('allocated_amount', response.data)

        response = self.client.post('/api/v1/funding/allocations/', {
            'funding_account': self.account.id, 'type': 'PROJECT', 'allocated_amount': '10.00',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('project', response.data)

    def test_manual_transaction_endpoint(self):
        allocation = TestDataFactory.create_allocation(self.account, person=self.person,
                                                       allocated_amount=Decimal('500.00'))
        record_manual_transaction(self.account, 'ADJUSTMENT', Decimal('100.00'), allocation=allocation)

        response = self.client.post('/api/v1/funding/transactions/', {
            'funding_account': self.account.id,
            'allocation': allocation.id,
            'type': 'REFUND',
            'amount': '30.00',
            'description': 'Supplier credit',
            'invoice_number': 'INV-77',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['amount'], '-30.00')
        self.assertEqual(response.data['invoice_number'], 'INV-77')
        self.assertEqual(FundingAllocation.objects.get(pk=allocation.pk).current_spent, Decimal('70.00'))
        self.assertTrue(AuditLog.objects.filter(action='funding_transaction').exists())

        response = self.client.get('/api/v1/funding/transactions/?type=REFUND')
        self.assertEqual(response.data['count'], 1)

    def test_manual_transaction_validation(self):
        other = TestDataFactory.create_account(lab=self.lab)
        allocation = TestDataFactory.create_allocation(other, person=self.person)
        for payload in (
            {'funding_account': self.account.id, 'type': 'ORDER_COMMIT', 'amount': '10.00'},
            {'funding_account': self.account.id, 'type': 'ADJUSTMENT', 'amount': '0.00'},
            {'funding_account': self.account.id, 'type': 'ADJUSTMENT', 'amount': '5.00', 'allocation': allocation.id},
        ):
            response = self.client.post('/api/v1/funding/transactions/', payload, format='json')
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_transaction_export(self):
        record_manual_transaction(self.account, 'ADJUSTMENT', Decimal('12.50'), 'Courier, express')
        response = self.client.get('/api/v1/funding/transactions/export/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        lines = response.content.decode().split('\n')
        self.assertEqual(lines[0], 'Date,Type,Status,Amount,Currency,Account,Allocation,Order,Description')
        self.assertIn(f',ADJUSTMENT,FINAL,12.50,EUR,{self.account.id},,,"Courier, express"', lines[1])

    def test_summary_endpoint(self):
        allocation = TestDataFactory.create_allocation(self.account, person=self.person,
                                                       allocated_amount=Decimal('500.00'))
        record_manual_transaction(self.account, 'ADJUSTMENT', Decimal('460.00'), allocation=allocation)

        response = self.client.get(f'/api/v1/funding/summary/?lab={self.lab.id}')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total_spent'], Decimal('460.00'))
        self.assertEqual(response.data['total_remaining'], Decimal('40.00'))
        self.assertEqual(response.data['critical_allocations'][0]['id'], allocation.id)

        response = self.client.get('/api/v1/funding/summary/?lab=abc')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_personal_ledger(self):
        user = TestDataFactory.create_user()
        profile = TestDataFactory.create_profile(user=user, lab=self.lab)
        allocation = TestDataFactory.create_allocation(self.account, person=profile, allocated_amount=Decimal('100.00'))
        record_manual_transaction(self.account, 'ADJUSTMENT', Decimal('85.00'), allocation=allocation)
        TestDataFactory.create_allocation(self.account, person=self.person, allocated_amount=Decimal('100.00'))

        self.client.authenticate_user(user)
        response = self.client.get('/api/v1/funding/ledger/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['profile'], profile.id)
        self.assertEqual(len(response.data['allocations']), 1)
        self.assertEqual(response.data['allocations'][0]['warning_level'], 'high')
        self.assertEqual(len(response.data['transactions']), 1)
        self.assertEqual(response.data['total_remaining'], Decimal('15.00'))
        self.assertEqual(response.data['active_allocations'], 1)

    def test_personal_ledger_without_profile(self):
        response = self.client.get('/api/v1/funding/ledger/')
        self.assertIsNone(response.data['profile'])
        self.assertEqual(response.data['allocations'], [])


class RecalculateFundingCommandTests(TestCase):

    def setUp(self):
        self.lab = TestDataFactory.create_lab()
        self.account = TestDataFactory.create_account(lab=self.lab, total_budget=Decimal('1000.00'))
        # Rows written directly leave the ledger totals behind
        TestDataFactory.create_order(self.account, price_ex_vat=Decimal('100.00'), status='ordered')

    def test_dry_run_keeps_totals(self):
        out = StringIO()
        call_command('recalculate_funding', '--dry-run', stdout=out)
        output = out.getvalue()
        self.assertIn('DRY RUN MODE', output)
        self.assertIn(f'account {self.account.id} committed_amount: 0.00 -> 100.00', output)
        self.assertIn('Dry run complete (1 corrections)', output)
        self.assertEqual(FundingAccount.objects.get(pk=self.account.pk).committed_amount, Decimal('0.00'))

    def test_recalculate(self):
        out = StringIO()
        call_command('recalculate_funding', stdout=out)
        self.assertIn('Recalculation complete: 1 corrections committed.', out.getvalue())
        account = FundingAccount.objects.get(pk=self.account.pk)
        self.assertEqual(account.committed_amount, Decimal('100.00'))
        self.assertEqual(account.remaining_budget, Decimal('900.00'))

        out = StringIO()
        call_command('recalculate_funding', '--account', str(self.account.id), stdout=out)
        self.assertIn('All totals match the order ledger', out.getvalue())

    def test_allocation_drift_keeps_two_places(self):
        allocation = TestDataFactory.create_allocation(self.account, allocated_amount=Decimal('500.00'))
        TestDataFactory.create_order(self.account, allocation=allocation, price_ex_vat=Decimal('60.50'),
                                     status='ordered')
        TestDataFactory.create_order(self.account, allocation=allocation, price_ex_vat=Decimal('39.50'),
                                     status='ordered')
        out = StringIO()
        call_command('recalculate_funding', '--dry-run', stdout=out)
        output = out.getvalue()
        self.assertIn(f'account {self.account.id} committed_amount: 0.00 -> 200.00', output)
        self.assertIn(f'allocation {allocation.id} current_committed: 0.00 -> 100.00', output)


class FundingNotificationTests(TestCase):
    """Allocation holders hear about new allocations, usage thresholds and exhaustion"""

    def setUp(self):
        self.lab = TestDataFactory.create_lab()
        self.account = TestDataFactory.create_account(lab=self.lab, total_budget=Decimal('5000.00'))
        self.pi = TestDataFactory.create_profile(lab=self.lab, first_name='Ada', last_name='Lovelace', position='pi')
        self.person = TestDataFactory.create_profile(lab=self.lab, first_name='Alan', last_name='Turing',
                                                     position='phd_student')
        self.allocation = TestDataFactory.create_allocation(self.account, person=self.person,
                                                            allocated_amount=Decimal('1000.00'))

    def _spend(self, amount):
        record_manual_transaction(self.account, 'ADJUSTMENT', Decimal(amount), 'Usage', allocation=self.allocation)

    def _alerts(self, recipient=None, type='FUNDING_LOW_BALANCE'):
        return list(FundingNotification.objects.filter(recipient=recipient or self.person, type=type)
                    .order_by('id'))

    def test_crossed_thresholds(self):
        self.assertEqual(crossed_thresholds(0, 75), [70])
        self.assertEqual(crossed_thresholds(70, 95), [80, 90])
        self.assertEqual(crossed_thresholds(65, 70), [70])
        self.assertEqual(crossed_thresholds(90, 100), [])

    def test_allocation_created(self):
        notification = FundingNotification.objects.get(recipient=self.person, type='ALLOCATION_CREATED')
        self.assertEqual(notification.title, 'New Funding Allocation')
        self.assertEqual(notification.message,
                         f"You have been allocated €1000.00 from {self.account.account_name}.")
        self.assertEqual(notification.allocation, self.allocation)
        self.assertFalse(notification.is_read)

    def test_threshold_alerts(self):
        self._spend('750.00')
        alerts = self._alerts()
        self.assertEqual([a.threshold for a in alerts], [70])
        self.assertEqual(alerts[0].title, 'Budget Alert: 70% Used')
        self.assertEqual(alerts[0].priority, 'medium')
        self.assertEqual(alerts[0].message,
                         f"Your {self.account.account_name} allocation has reached 70% usage. "
                         f"Remaining budget: €250.00")

        self._spend('150.00')
        alerts = self._alerts()
        self.assertEqual([a.threshold for a in alerts], [70, 80, 90])
        self.assertEqual([a.priority for a in alerts], ['medium', 'medium', 'high'])

        # Already past every threshold
        self._spend('10.00')
        self.assertEqual(len(self._alerts()), 3)
        self.assertFalse(self._alerts(type='FUNDING_EXHAUSTED'))

    def test_exhausted_notifies_holder_and_pi(self):
        self._spend('1000.00')
        self.allocation.refresh_from_db()
        self.assertEqual(self.allocation.status, 'exhausted')

        exhausted = self._alerts(type='FUNDING_EXHAUSTED')
        self.assertEqual(len(exhausted), 1)
        self.assertEqual(exhausted[0].priority, 'high')
        self.assertIn('fully depleted. Please contact your PI', exhausted[0].message)

        pi_alerts = self._alerts(recipient=self.pi, type='FUNDING_EXHAUSTED_PI')
        self.assertEqual(len(pi_alerts), 1)
        self.assertEqual(pi_alerts[0].message,
                         f"Alan Turing's {self.account.account_name} allocation has been fully depleted.")

        # Staying exhausted does not repeat the alert
        self._spend('5.00')
        self.assertEqual(len(self._alerts(type='FUNDING_EXHAUSTED')), 1)

    def test_unlimited_allocations_have_no_thresholds(self):
        allocation = TestDataFactory.create_allocation(self.account, person=self.person)
        record_manual_transaction(self.account, 'ADJUSTMENT', Decimal('50.00'), 'Usage', allocation=allocation)
        self.assertFalse(FundingNotification.objects.filter(allocation=allocation, type='FUNDING_LOW_BALANCE').exists())

    def test_project_allocations_are_silent(self):
        allocation = TestDataFactory.create_allocation(self.account, allocated_amount=Decimal('100.00'))
        record_manual_transaction(self.account, 'ADJUSTMENT', Decimal('100.00'), 'Usage', allocation=allocation)
        self.assertFalse(FundingNotification.objects.filter(allocation=allocation).exists())


class FundingNotificationAPITests(TestCase):

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.user = TestDataFactory.create_user()
        self.client.authenticate_user(self.user)
        self.lab = TestDataFactory.create_lab()
        self.account = TestDataFactory.create_account(lab=self.lab, total_budget=Decimal('5000.00'))
        self.person = TestDataFactory.create_profile(user=self.user, lab=self.lab)
        self.allocation = TestDataFactory.create_allocation(self.account, person=self.person,
                                                            allocated_amount=Decimal('100.00'))
        record_manual_transaction(self.account, 'ADJUSTMENT', Decimal('75.00'), 'Usage', allocation=self.allocation)

    def test_requires_auth(self):
        self.client.logout()
        response = self.client.get('/api/v1/funding/notifications/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_list_own_notifications(self):
        other = TestDataFactory.create_profile(lab=self.lab)
        TestDataFactory.create_allocation(self.account, person=other, allocated_amount=Decimal('50.00'))

        response = self.client.get('/api/v1/funding/notifications/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 2)
        self.assertEqual([n['type'] for n in response.data['results']], ['FUNDING_LOW_BALANCE', 'ALLOCATION_CREATED'])

    def test_no_profile(self):
        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.get('/api/v1/funding/notifications/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 0)

    def test_mark_read(self):
        notification = FundingNotification.objects.filter(recipient=self.person).first()
        response = self.client.post(f'/api/v1/funding/notifications/{notification.id}/read/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['is_read'])
        self.assertIsNotNone(response.data['read_at'])

        response = self.client.get('/api/v1/funding/notifications/?unread=true')
        self.assertEqual(response.data['count'], 1)

    def test_cannot_read_someone_elses(self):
        other = TestDataFactory.create_profile(lab=self.lab)
        TestDataFactory.create_allocation(self.account, person=other, allocated_amount=Decimal('50.00'))
        notification = FundingNotification.objects.get(recipient=other)
        response = self.client.post(f'/api/v1/funding/notifications/{notification.id}/read/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_mark_all_read(self):
        response = self.client.post('/api/v1/funding/notifications/read-all/')
        self.assertEqual(response.data['updated'], 2)
        self.assertFalse(FundingNotification.objects.filter(recipient=self.person, is_read=False).exists())
