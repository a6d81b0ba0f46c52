from django.db import models
from decimal import Decimal
from momentum.core.constants import CURRENCY_CHOICES, DEFAULT_CURRENCY, INVENTORY_LEVEL_CHOICES
from momentum.core.models import User
from momentum.funding.models import FundingAccount
from momentum.people.models import Lab


def calculate_inventory_level(current_quantity, min_quantity=None):
    """
    empty at zero, full when no minimum is set, otherwise
    low <= min < medium <= 2*min < full
    """
    if not current_quantity or current_quantity <= 0:
        return 'empty'
    if not min_quantity:
        return 'full'
    if current_quantity <= min_quantity:
        return 'low'
    if current_quantity <= min_quantity * 2:
        return 'medium'
    return 'full'


class InventoryItem(models.Model):
    """Consumable or reagent held in the lab"""
    product_name = models.CharField(max_length=255)
    cat_num = models.CharField(max_length=100, blank=True)
    supplier = models.CharField(max_length=200, blank=True)
    current_quantity = models.DecimalField(max_digits=12, decimal_places=3, default=Decimal('0'))
    unit = models.CharField(max_length=50, blank=True)
    price_ex_vat = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    currency = models.CharField(max_length=3, choices=CURRENCY_CHOICES, default=DEFAULT_CURRENCY)
    min_quantity = models.DecimalField(max_digits=12, decimal_places=3, null=True, blank=True)
    burn_rate_per_week = models.DecimalField(max_digits=12, decimal_places=3, default=Decimal('0'))
    inventory_level = models.CharField(max_length=10, choices=INVENTORY_LEVEL_CHOICES, default='empty')
    received_date = models.DateTimeField(null=True, blank=True)
    last_ordered_date = models.DateField(null=True, blank=True)
    category = models.CharField(max_length=100, blank=True)
    subcategory = models.CharField(max_length=255, blank=True)
    charge_to_account = models.ForeignKey(FundingAccount, on_delete=models.SET_NULL, null=True, blank=True, related_name='inventory_items')
    lab = models.ForeignKey(Lab, on_delete=models.CASCADE, null=True, blank=True, related_name='inventory_items')
    notes = models.TextField(blank=True, max_length=10000)
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='created_inventory_items')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.product_name

    @property
    def is_below_minimum(self):
        return self.min_quantity is not None and self.current_quantity < self.min_quantity

    def save(self, *args, **kwargs):
        self.inventory_level = calculate_inventory_level(self.current_quantity, self.min_quantity)
        super().save(*args, **kwargs)

    class Meta:
        db_table = 'inventory_items'
        ordering = ['product_name']
        indexes = [
            models.Index(fields=['cat_num', 'supplier'], name='idx_inventory_catnum_supplier'),
            models.Index(fields=['inventory_level'], name='idx_inventory_level'),
        ]


class Equipment(models.Model):
    """Lab device; supplies are the inventory items it consumes"""
    name = models.CharField(max_length=200)
    make = models.CharField(max_length=100, blank=True)
    model = models.CharField(max_length=100, blank=True)
    serial_number = models.CharField(max_length=100, blank=True)
    location = models.CharField(max_length=200, blank=True)
    lab = models.ForeignKey(Lab, on_delete=models.CASCADE, null=True, blank=True, related_name='equipment')
    supplies = models.ManyToManyField(InventoryItem, blank=True, related_name='equipment_devices')
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'equipment'
        ordering = ['name']
        verbose_name_plural = 'equipment'
