from django.db import models
from decimal import Decimal
from momentum.core.constants import CURRENCY_CHOICES, DEFAULT_CURRENCY
from momentum.core.models import User
from momentum.people.models import Lab, PersonProfile
from momentum.projects.models import MasterProject


class Funder(models.Model):
    """Organisation that pays for grants"""
    TYPE_CHOICES = [
        ('government', 'Government'),
        ('eu', 'European Union'),
        ('charity', 'Charity / Foundation'),
        ('industry', 'Industry'),
        ('university', 'University'),
        ('other', 'Other'),
    ]

    name = models.CharField(max_length=200)
    type = models.CharField(max_length=20, choices=TYPE_CHOICES, default='other')
    country = models.CharField(max_length=100, blank=True)
    website = models.URLField(max_length=2048, blank=True)
    contact_email = models.EmailField(blank=True)
    notes = models.TextField(blank=True)
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='created_funders')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'funders'
        ordering = ['name']


class FundingAccount(models.Model):
    """
    Budget account for a grant. spent/committed/remaining are maintained by the
    order ledger and must never be edited directly.
    """
    ACCOUNT_TYPE_CHOICES = [
        ('main', 'Main'),
        ('equipment', 'Equipment'),
        ('consumables', 'Consumables'),
        ('travel', 'Travel'),
        ('personnel', 'Personnel'),
        ('other', 'Other'),
    ]
    STATUS_CHOICES = [
        ('active', 'Active'),
        ('closed', 'Closed'),
        ('suspended', 'Suspended'),
        ('pending', 'Pending'),
    ]

    account_number = models.CharField(max_length=100)
    account_name = models.CharField(max_length=200)
    funder = models.ForeignKey(Funder, on_delete=models.PROTECT, null=True, blank=True, related_name='accounts')
    master_project = models.ForeignKey(MasterProject, on_delete=models.SET_NULL, null=True, blank=True, related_name='funding_accounts')
    lab = models.ForeignKey(Lab, on_delete=models.CASCADE, null=True, blank=True, related_name='funding_accounts')
    account_type = models.CharField(max_length=20, choices=ACCOUNT_TYPE_CHOICES, default='main')
    total_budget = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    spent_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    committed_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    remaining_budget = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    currency = models.CharField(max_length=3, choices=CURRENCY_CHOICES, default=DEFAULT_CURRENCY)
    start_date = models.DateField(null=True, blank=True)
    end_date = models.DateField(null=True, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='active')
    notes = models.TextField(blank=True)
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='created_funding_accounts')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.account_number} - {self.account_name}"

    def save(self, *args, **kwargs):
        self.remaining_budget = (self.total_budget or 0) - (self.spent_amount or 0) - (self.committed_amount or 0)
        super().save(*args, **kwargs)

    class Meta:
        db_table = 'funding_accounts'
        ordering = ['account_number']
        indexes = [
            models.Index(fields=['lab', 'status'], name='idx_account_lab_status'),
        ]


class FundingAllocation(models.Model):
    """Slice of a funding account given to a person or a project"""
    TYPE_CHOICES = [
        ('PERSON', 'Person'),
        ('PROJECT', 'Project'),
    ]
    STATUS_CHOICES = [
        ('active', 'Active'),
        ('exhausted', 'Exhausted'),
        ('suspended', 'Suspended'),
        ('archived', 'Archived'),
    ]

    funding_account = models.ForeignKey(FundingAccount, on_delete=models.CASCADE, related_name='allocations')
    lab = models.ForeignKey(Lab, on_delete=models.CASCADE, null=True, blank=True, related_name='funding_allocations')
    type = models.CharField(max_length=10, choices=TYPE_CHOICES)
    person = models.ForeignKey(PersonProfile, on_delete=models.CASCADE, null=True, blank=True, related_name='funding_allocations')
    project = models.ForeignKey(MasterProject, on_delete=models.CASCADE, null=True, blank=True, related_name='funding_allocations')
    # Empty means no hard limit
    allocated_amount = models.DecimalField(max_digits=14, decimal_places=2, null=True, blank=True)
    soft_limit = models.DecimalField(max_digits=14, decimal_places=2, null=True, blank=True)
    current_spent = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    current_committed = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    remaining_budget = models.DecimalField(max_digits=14, decimal_places=2, null=True, blank=True)
    currency = models.CharField(max_length=3, choices=CURRENCY_CHOICES, default=DEFAULT_CURRENCY)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='active')
    low_balance_warning_threshold = models.PositiveSmallIntegerField(null=True, blank=True, help_text='Percentage used at which to warn (e.g. 80)')
    last_transaction_at = models.DateTimeField(null=True, blank=True)
    notes = models.TextField(blank=True)
    # "SYSTEM" for allocations created automatically when a member joins a lab
    created_by_label = models.CharField(max_length=100, blank=True)
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='created_allocations')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        target = self.person or self.project
        return f"{self.funding_account.account_name} → {target}"

    @property
    def percent_used(self):
        """(spent + committed) / allocated, treating a missing allocation as 1"""
        used = (self.current_spent or 0) + (self.current_committed or 0)
        return float(used) / float(self.allocated_amount or 1) * 100

    def recalculate_remaining(self):
        if self.allocated_amount is None:
            self.remaining_budget = None
        else:
            self.remaining_budget = self.allocated_amount - self.current_spent - self.current_committed

    def save(self, *args, **kwargs):
        self.recalculate_remaining()
        super().save(*args, **kwargs)

    class Meta:
        db_table = 'funding_allocations'
        ordering = ['funding_account', 'type', 'id']
        indexes = [
            models.Index(fields=['lab', 'type'], name='idx_allocation_lab_type'),
            models.Index(fields=['status'], name='idx_allocation_status'),
        ]


class FundingTransaction(models.Model):
    """Immutable ledger line against an account (and optionally an allocation)"""
    TYPE_CHOICES = [
        ('ORDER_COMMIT', 'Order Committed'),
        ('ORDER_RECEIVED', 'Order Received'),
        ('ORDER_CANCELLED', 'Order Cancelled'),
        ('ADJUSTMENT', 'Adjustment'),
        ('REFUND', 'Refund'),
        ('TRANSFER', 'Transfer'),
        ('ALLOCATION_CREATED', 'Allocation Created'),
        ('ALLOCATION_ADJUSTED', 'Allocation Adjusted'),
    ]
    STATUS_CHOICES = [
        ('PENDING', 'Pending'),
        ('FINAL', 'Final'),
        ('CANCELLED', 'Cancelled'),
    ]

    funding_account = models.ForeignKey(FundingAccount, on_delete=models.CASCADE, related_name='transactions')
    allocation = models.ForeignKey(FundingAllocation, on_delete=models.SET_NULL, null=True, blank=True, related_name='transactions')
    lab = models.ForeignKey(Lab, on_delete=models.SET_NULL, null=True, blank=True, related_name='funding_transactions')
    order = models.ForeignKey('orders.Order', on_delete=models.SET_NULL, null=True, blank=True, related_name='funding_transactions')
    # Positive = spent, negative = money coming back
    amount = models.DecimalField(max_digits=14, decimal_places=2)
    currency = models.CharField(max_length=3, choices=CURRENCY_CHOICES, default=DEFAULT_CURRENCY)
    type = models.CharField(max_length=30, choices=TYPE_CHOICES)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='FINAL')
    description = models.CharField(max_length=500, blank=True)
    invoice_number = models.CharField(max_length=100, blank=True)
    po_number = models.CharField(max_length=100, blank=True)
    supplier_name = models.CharField(max_length=200, blank=True)
    notes = models.TextField(blank=True)
    metadata = models.JSONField(default=dict, blank=True)
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='funding_transactions')
    created_at = models.DateTimeField(auto_now_add=True)
    finalized_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)

    def __str__(self):
        return f"{self.type} {self.amount} {self.currency}"

    class Meta:
        db_table = 'funding_transactions'
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['type', 'status'], name='idx_transaction_type_status'),
            models.Index(fields=['-created_at'], name='idx_transaction_created'),
        ]


class FundingNotification(models.Model):
    """In-app alert sent to a person about an allocation"""
    TYPE_CHOICES = [
        ('ALLOCATION_CREATED', 'Allocation Created'),
        ('FUNDING_LOW_BALANCE', 'Low Balance'),
        ('FUNDING_EXHAUSTED', 'Budget Exhausted'),
        ('FUNDING_EXHAUSTED_PI', 'Researcher Budget Exhausted'),
    ]
    PRIORITY_CHOICES = [
        ('low', 'Low'),
        ('medium', 'Medium'),
        ('high', 'High'),
    ]

    recipient = models.ForeignKey(PersonProfile, on_delete=models.CASCADE, related_name='funding_notifications')
    allocation = models.ForeignKey(FundingAllocation, on_delete=models.CASCADE, null=True, blank=True, related_name='notifications')
    type = models.CharField(max_length=30, choices=TYPE_CHOICES)
    title = models.CharField(max_length=200)
    message = models.TextField()
    priority = models.CharField(max_length=10, choices=PRIORITY_CHOICES, default='medium')
    # Usage percentage that triggered a low balance alert
    threshold = models.PositiveSmallIntegerField(null=True, blank=True)
    is_read = models.BooleanField(default=False)
    read_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.type} → {self.recipient}"

    class Meta:
        db_table = 'funding_notifications'
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['recipient', 'is_read'], name='idx_notification_recipient'),
        ]
