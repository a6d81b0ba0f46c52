from django.db import models
from decimal import Decimal
from momentum.core.constants import CURRENCY_CHOICES, DEFAULT_CURRENCY, ORDER_STATUS_CHOICES
from momentum.core.models import User
from momentum.funding.models import FundingAccount, FundingAllocation
from momentum.inventory.models import Equipment, InventoryItem
from momentum.people.models import Lab, PersonProfile
from momentum.projects.models import Deliverable, MasterProject, Task, Workpackage


class Order(models.Model):
    """Supply order charged to a funding account"""
    PRIORITY_CHOICES = [
        ('normal', 'Normal'),
        ('high', 'High'),
        ('critical', 'Critical'),
    ]

    product_name = models.CharField(max_length=255)
    cat_num = models.CharField(max_length=100, blank=True)
    supplier = models.CharField(max_length=200, blank=True)
    url = models.URLField(max_length=2048, blank=True)
    priority = models.CharField(max_length=10, choices=PRIORITY_CHOICES, default='normal')

    account = models.ForeignKey(FundingAccount, on_delete=models.PROTECT, related_name='orders')
    allocation = models.ForeignKey(FundingAllocation, on_delete=models.SET_NULL, null=True, blank=True, related_name='orders')
    master_project = models.ForeignKey(MasterProject, on_delete=models.SET_NULL, null=True, blank=True, related_name='orders')
    workpackage = models.ForeignKey(Workpackage, on_delete=models.SET_NULL, null=True, blank=True, related_name='orders')
    deliverable = models.ForeignKey(Deliverable, on_delete=models.SET_NULL, null=True, blank=True, related_name='orders')
    task = models.ForeignKey(Task, on_delete=models.SET_NULL, null=True, blank=True, related_name='orders')

    # Provenance: what this order replenishes
    source_inventory_item = models.ForeignKey(InventoryItem, on_delete=models.SET_NULL, null=True, blank=True, related_name='reorders')
    source_equipment = models.ForeignKey(Equipment, on_delete=models.SET_NULL, null=True, blank=True, related_name='orders')

    status = models.CharField(max_length=20, choices=ORDER_STATUS_CHOICES, default='to-order')
    ordered_by = models.ForeignKey(PersonProfile, on_delete=models.SET_NULL, null=True, blank=True, related_name='orders')
    ordered_date = models.DateField(null=True, blank=True)
    received_date = models.DateField(null=True, blank=True)
    expected_delivery_date = models.DateField(null=True, blank=True)
    quantity = models.DecimalField(max_digits=12, decimal_places=3, default=Decimal('1'))

    price_ex_vat = models.DecimalField(max_digits=12, decimal_places=2)
    vat_amount = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    total_price = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    # Final invoiced cost; defaults to price_ex_vat when the order is received
    actual_cost = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    currency = models.CharField(max_length=3, choices=CURRENCY_CHOICES, default=DEFAULT_CURRENCY)
    invoice_number = models.CharField(max_length=100, blank=True)
    po_number = models.CharField(max_length=100, blank=True)

    category = models.CharField(max_length=100, blank=True)
    subcategory = models.CharField(max_length=255, blank=True)
    lab = models.ForeignKey(Lab, on_delete=models.CASCADE, null=True, blank=True, related_name='orders')
    notes = models.TextField(blank=True, max_length=10000)
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='created_orders')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.product_name} ({self.status})"

    @property
    def commit_amount(self):
        """Amount held against the budget while the order is outstanding"""
        return self.price_ex_vat or Decimal('0.00')

    @property
    def spend_amount(self):
        """Amount booked as spent once received"""
        if self.actual_cost is not None:
            return self.actual_cost
        return self.commit_amount

    def save(self, *args, **kwargs):
        if self.vat_amount is not None and self.total_price is None:
            self.total_price = (self.price_ex_vat or 0) + self.vat_amount
        super().save(*args, **kwargs)

    class Meta:
        db_table = 'orders'
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['status'], name='idx_order_status'),
            models.Index(fields=['account', 'status'], name='idx_order_account_status'),
            models.Index(fields=['master_project', 'status'], name='idx_order_project_status'),
        ]
