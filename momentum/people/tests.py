"""
Test suite for people
Tests: labs, profiles, the default allocation for new members and the people export
"""
from decimal import Decimal
from unittest.mock import patch
from django.db import DatabaseError
from django.test import TestCase
from rest_framework import status
from momentum.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from momentum.funding.models import FundingAllocation, FundingTransaction
from .models import PersonProfile


class DefaultAllocationTests(TestCase):
    """New lab members get a PERSON allocation on the lab's default account"""

    def setUp(self):
        self.account = TestDataFactory.create_account(total_budget=Decimal('5000.00'))
        self.lab = TestDataFactory.create_lab(
            default_funding_account=self.account, default_allocation_amount=Decimal('500.00')
        )

    def test_allocation_created_for_new_member(self):
        profile = TestDataFactory.create_profile(lab=self.lab, first_name='Marie', last_name='Curie')

        allocation = FundingAllocation.objects.get(person=profile)
        self.assertEqual(allocation.type, 'PERSON')
        self.assertEqual(allocation.funding_account, self.account)
        self.assertEqual(allocation.lab, self.lab)
        self.assertEqual(allocation.allocated_amount, Decimal('500.00'))
        self.assertEqual(allocation.remaining_budget, Decimal('500.00'))
        self.assertEqual(allocation.created_by_label, 'SYSTEM')

        tx = FundingTransaction.objects.get(allocation=allocation)
        self.assertEqual(tx.type, 'ALLOCATION_CREATED')
        self.assertEqual(tx.amount, Decimal('500.00'))
        self.assertEqual(tx.description, 'Default allocation for Marie Curie')

    def test_saving_again_does_not_duplicate(self):
        profile = TestDataFactory.create_profile(lab=self.lab)
        profile.position = 'phd_student'
        profile.save()
        self.assertEqual(FundingAllocation.objects.filter(person=profile).count(), 1)

    def test_no_lab_or_no_default_account(self):
        TestDataFactory.create_profile()
        TestDataFactory.create_profile(lab=TestDataFactory.create_lab())
        self.assertEqual(FundingAllocation.objects.count(), 0)

    def test_allocation_failure_is_rolled_back(self):
        def half_done(profile):
            TestDataFactory.create_allocation(self.account, person=profile, allocated_amount=Decimal('500.00'))
            raise DatabaseError('connection lost')

        with patch('momentum.funding.services.create_default_allocation', side_effect=half_done):
            with self.assertLogs('momentum.people.signals', level='ERROR'):
                profile = TestDataFactory.create_profile(lab=self.lab)

        self.assertTrue(PersonProfile.objects.filter(pk=profile.pk).exists())
        self.assertFalse(FundingAllocation.objects.filter(person=profile).exists())
        # The surrounding transaction is still usable
        TestDataFactory.create_profile(lab=TestDataFactory.create_lab())


class LabAPITests(TestCase):

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.user = TestDataFactory.create_user()
        self.client.authenticate_user(self.user)
        self.lab = TestDataFactory.create_lab(name='Cell Biology')

    def test_requires_auth(self):
        self.client.logout()
        response = self.client.get('/api/v1/labs/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_create_and_member_count(self):
        response = self.client.post('/api/v1/labs/', {'name': 'Genomics', 'institute': 'IGC'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['member_count'], 0)

        TestDataFactory.create_profile(lab=self.lab)
        response = self.client.get(f'/api/v1/labs/{self.lab.id}/')
        self.assertEqual(response.data['member_count'], 1)

    def test_funding_defaults_need_funding_admin(self):
        response = self.client.patch(f'/api/v1/labs/{self.lab.id}/', {'default_allocation_amount': '250.00'},
                                     format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        # Renaming is open to every member
        response = self.client.patch(f'/api/v1/labs/{self.lab.id}/', {'name': 'Cell Bio'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        TestDataFactory.create_profile(user=self.user, lab=self.lab, user_role='lab_manager')
        response = self.client.patch(f'/api/v1/labs/{self.lab.id}/', {'default_allocation_amount': '250.00'},
                                     format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['default_allocation_amount'], '250.00')

    def test_negative_default_allocation(self):
        self.client.authenticate_user(TestDataFactory.create_user(is_staff=True))
        response = self.client.patch(f'/api/v1/labs/{self.lab.id}/', {'default_allocation_amount': '-1.00'},
                                     format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class PersonProfileAPITests(TestCase):

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(TestDataFactory.create_user())
        self.account = TestDataFactory.create_account()
        self.lab = TestDataFactory.create_lab(
            default_funding_account=self.account, default_allocation_amount=Decimal('300.00')
        )

    def test_create_profile_with_default_allocation(self):
        response = self.client.post('/api/v1/people/', {
            'first_name': 'Rosalind',
            'last_name': 'Franklin',
            'email': 'rosalind@lab.org',
            'position': 'postdoc',
            'lab': self.lab.id,
            'research_interests': ['crystallography'],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['full_name'], 'Rosalind Franklin')
        self.assertEqual(response.data['lab_name'], self.lab.name)
        self.assertTrue(FundingAllocation.objects.filter(person_id=response.data['id']).exists())

    def test_validation(self):
        response = self.client.post('/api/v1/people/', {'first_name': '', 'last_name': 'Franklin'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('first_name', response.data)

        response = self.client.post('/api/v1/people/', {
            'first_name': 'Rosalind', 'last_name': 'Franklin', 'email': 'not-an-email',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('email', response.data)

    def test_cannot_report_to_self(self):
        profile = TestDataFactory.create_profile(lab=self.lab)
        response = self.client.patch(f'/api/v1/people/{profile.id}/', {'reports_to': profile.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('reports_to', response.data)

    def test_filters(self):
        pi = TestDataFactory.create_profile(lab=self.lab, first_name='Ada', last_name='Lovelace', position='pi')
        student = TestDataFactory.create_profile(lab=self.lab, first_name='Alan', last_name='Turing',
                                                 position='phd_student')
        student.reports_to = pi
        student.save()
        TestDataFactory.create_profile(first_name='Grace', last_name='Hopper')

        response = self.client.get(f'/api/v1/people/?lab={self.lab.id}')
        self.assertEqual(response.data['count'], 2)

        response = self.client.get('/api/v1/people/?search=turing')
        self.assertEqual([p['last_name'] for p in response.data['results']], ['Turing'])

        response = self.client.get(f'/api/v1/people/?reports_to={pi.id}')
        self.assertEqual(response.data['results'][0]['id'], student.id)

    def test_delete(self):
        profile = TestDataFactory.create_profile(lab=self.lab)
        response = self.client.delete(f'/api/v1/people/{profile.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(PersonProfile.objects.filter(pk=profile.id).exists())

    def test_export(self):
        TestDataFactory.create_profile(lab=self.lab, first_name='Ada', last_name='Lovelace', position='pi')
        response = self.client.get('/api/v1/people/export/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response['Content-Type'], 'text/csv; charset=utf-8')
        lines = response.content.decode().split('\n')
        self.assertEqual(lines[0], 'First Name,Last Name,Email,Position,Organisation,Institute,Lab,Phone,'
                                   'Office,Research Interests,Qualifications')
        self.assertTrue(lines[1].startswith('Ada,Lovelace,ada.lovelace@test.com,pi,'))
