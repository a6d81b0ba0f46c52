"""
Test utilities and factories for creating test data
"""
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from momentum.people.models import Lab, PersonProfile
from momentum.projects.models import MasterProject, Workpackage, Deliverable, Task, Subtask
from momentum.funding.models import Funder, FundingAccount, FundingAllocation
from momentum.inventory.models import InventoryItem, Equipment
from momentum.orders.models import Order
from momentum.events.models import CalendarEvent
from decimal import Decimal
from datetime import date, timedelta
from django.utils import timezone
import random
import string

User = get_user_model()


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_letters + string.digits, k=length))

    @staticmethod
    def create_user(username=None, email=None, password='testpass123', is_staff=False, is_superuser=False):
        """Create a test user"""
        if not username:
            username = f'testuser_{TestDataFactory.random_string(6)}'
        if not email:
            email = f'{username}@test.com'
        return User.objects.create_user(
            username=username,
            email=email,
            password=password,
            is_staff=is_staff,
            is_superuser=is_superuser
        )

    @staticmethod
    def create_lab(name=None, default_funding_account=None, default_allocation_amount=None):
        """Create a test lab"""
        if not name:
            name = f'Lab_{TestDataFactory.random_string(6)}'
        return Lab.objects.create(
            name=name,
            institute='Test Institute',
            organisation='Test University',
            default_funding_account=default_funding_account,
            default_allocation_amount=default_allocation_amount or Decimal('0.00')
        )

    @staticmethod
    def create_profile(user=None, lab=None, first_name=None, last_name=None, user_role='researcher', position='postdoc'):
        """Create a test person profile"""
        if not first_name:
            first_name = f'First_{TestDataFactory.random_string(4)}'
        if not last_name:
            last_name = f'Last_{TestDataFactory.random_string(4)}'
        return PersonProfile.objects.create(
            user=user,
            lab=lab,
            first_name=first_name,
            last_name=last_name,
            email=f'{first_name.lower()}.{last_name.lower()}@test.com',
            position=position,
            user_role=user_role
        )

    @staticmethod
    def create_project(lab=None, name=None, total_budget=None, start_date=None, end_date=None,
                       status='active', progress=0, currency='EUR'):
        """Create a test master project"""
        if not name:
            name = f'Project_{TestDataFactory.random_string(6)}'
        today = date.today()
        return MasterProject.objects.create(
            lab=lab,
            name=name,
            total_budget=total_budget if total_budget is not None else Decimal('10000.00'),
            currency=currency,
            start_date=start_date or today - timedelta(days=30),
            end_date=end_date or today + timedelta(days=335),
            status=status,
            progress=progress
        )

    @staticmethod
    def create_workpackage(project, name=None, status='active', progress=0):
        """Create a test workpackage"""
        if not name:
            name = f'WP_{TestDataFactory.random_string(6)}'
        return Workpackage.objects.create(
            project=project,
            name=name,
            start_date=project.start_date,
            end_date=project.end_date,
            status=status,
            progress=progress
        )

    @staticmethod
    def create_deliverable(workpackage, name=None, due_date=None, status='in-progress'):
        """Create a test deliverable"""
        if not name:
            name = f'Deliverable_{TestDataFactory.random_string(6)}'
        return Deliverable.objects.create(
            workpackage=workpackage,
            name=name,
            due_date=due_date,
            status=status
        )

    @staticmethod
    def create_task(workpackage, name=None, deliverable=None, progress=0, status='not-started'):
        """Create a test task"""
        if not name:
            name = f'Task_{TestDataFactory.random_string(6)}'
        return Task.objects.create(
            workpackage=workpackage,
            deliverable=deliverable,
            name=name,
            start_date=workpackage.start_date,
            end_date=workpackage.end_date,
            progress=progress,
            status=status
        )

    @staticmethod
    def create_subtask(task, name=None, todos=None, progress=0):
        """Create a test subtask"""
        if not name:
            name = f'Subtask_{TestDataFactory.random_string(6)}'
        return Subtask.objects.create(
            task=task,
            name=name,
            todos=todos or [],
            progress=progress
        )

    @staticmethod
    def create_funder(name=None, funder_type='government'):
        """Create a test funder"""
        if not name:
            name = f'Funder_{TestDataFactory.random_string(6)}'
        return Funder.objects.create(name=name, type=funder_type)

    @staticmethod
    def create_account(lab=None, total_budget=None, funder=None, master_project=None, account_number=None):
        """Create a test funding account"""
        if not account_number:
            account_number = f'ACC-{TestDataFactory.random_string(6).upper()}'
        return FundingAccount.objects.create(
            account_number=account_number,
            account_name=f'Account {account_number}',
            funder=funder,
            master_project=master_project,
            lab=lab,
            total_budget=total_budget if total_budget is not None else Decimal('10000.00')
        )

    @staticmethod
    def create_allocation(account, person=None, project=None, allocated_amount=None, status='active'):
        """Create a test funding allocation (PERSON when a person is given)"""
        return FundingAllocation.objects.create(
            funding_account=account,
            lab=account.lab,
            type='PERSON' if person else 'PROJECT',
            person=person,
            project=project,
            allocated_amount=allocated_amount,
            currency=account.currency,
            status=status
        )

    @staticmethod
    def create_inventory_item(lab=None, product_name=None, cat_num='', supplier='', current_quantity=None,
                              min_quantity=None, price_ex_vat=None):
        """Create a test inventory item"""
        if not product_name:
            product_name = f'Item_{TestDataFactory.random_string(6)}'
        return InventoryItem.objects.create(
            lab=lab,
            product_name=product_name,
            cat_num=cat_num,
            supplier=supplier,
            current_quantity=current_quantity if current_quantity is not None else Decimal('10'),
            min_quantity=min_quantity,
            price_ex_vat=price_ex_vat if price_ex_vat is not None else Decimal('25.00')
        )

    @staticmethod
    def create_equipment(lab=None, name=None):
        """Create a test equipment device"""
        if not name:
            name = f'Device_{TestDataFactory.random_string(6)}'
        return Equipment.objects.create(lab=lab, name=name, make='Acme', model='X1')

    @staticmethod
    def create_order(account, product_name=None, price_ex_vat=None, status='to-order', lab=None,
                     allocation=None, master_project=None, cat_num='', supplier='', quantity=None,
                     ordered_by=None, category=''):
        """
        Create a test order row directly (no ledger side effects).
        Use momentum.orders.services.create_order to go through the ledger.
        """
        if not product_name:
            product_name = f'Product_{TestDataFactory.random_string(6)}'
        return Order.objects.create(
            account=account,
            allocation=allocation,
            master_project=master_project,
            lab=lab or account.lab,
            product_name=product_name,
            cat_num=cat_num,
            supplier=supplier,
            price_ex_vat=price_ex_vat if price_ex_vat is not None else Decimal('100.00'),
            quantity=quantity if quantity is not None else Decimal('1'),
            status=status,
            ordered_by=ordered_by,
            category=category
        )

    @staticmethod
    def create_event(lab=None, title=None, start=None, hours=1, event_type='meeting', owner=None):
        """Create a test calendar event"""
        if not title:
            title = f'Event_{TestDataFactory.random_string(6)}'
        start = start or timezone.now() + timedelta(days=1)
        return CalendarEvent.objects.create(
            lab=lab,
            title=title,
            start=start,
            end=start + timedelta(hours=hours),
            type=event_type,
            owner=owner
        )


class AuthenticatedAPIClient(APIClient):
    """APIClient with authentication helper"""

    def authenticate_user(self, user):
        """Authenticate the client with a user"""
        refresh = RefreshToken.for_user(user)
        self.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
        return self

    def logout(self):
        """Remove authentication"""
        self.credentials()
