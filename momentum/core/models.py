from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    """Extended user model with additional fields"""
    phone = models.CharField(max_length=20, blank=True, null=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'users'


class AuditLog(models.Model):
    """Audit trail for every create/update/delete on lab data"""
    ACTION_CHOICES = [
        ('create', 'Create'),
        ('update', 'Update'),
        ('delete', 'Delete'),
        ('view', 'View'),
        ('status_change', 'Status Change'),
        ('order_receive', 'Order Received'),
        ('order_cancel', 'Order Cancelled'),
        ('stock_adjust', 'Stock Adjustment'),
        ('stock_deduct', 'Stock Deducted (Experiment)'),
        ('reconcile', 'Order Reconciled With Inventory'),
        ('funding_transaction', 'Funding Transaction'),
        ('allocation_adjust', 'Allocation Adjusted'),
        ('export', 'Export'),
    ]

    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, related_name='audit_logs')
    action = models.CharField(max_length=50, choices=ACTION_CHOICES)
    model_name = models.CharField(max_length=100)
    object_id = models.CharField(max_length=100)
    object_name = models.CharField(max_length=255, blank=True, null=True, help_text="Human-readable name of the object (e.g., project name, product name)")
    object_reference = models.CharField(max_length=255, blank=True, null=True, help_text="Reference identifier (e.g., account number, experiment number)")
    changes = models.JSONField(default=dict, blank=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'audit_logs'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['-created_at'], name='audit_logs_created_fdc2a0_idx'),
            models.Index(fields=['action'], name='audit_logs_action_0b9b1e_idx'),
            models.Index(fields=['model_name'], name='audit_logs_model_n_3e5a2c_idx'),
            models.Index(fields=['object_reference'], name='audit_logs_object__7c41d9_idx'),
        ]
