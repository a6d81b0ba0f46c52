from rest_framework import serializers
from django.db.models import Sum
from decimal import Decimal
from momentum.core.constants import get_budget_status, get_low_balance_warning_level
from .models import Funder, FundingAccount, FundingAllocation, FundingNotification, FundingTransaction
from .services import calculate_available_balance


class FunderSerializer(serializers.ModelSerializer):
    class Meta:
        model = Funder
        fields = ['id', 'name', 'type', 'country', 'website', 'contact_email', 'notes', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']


class FundingAccountSerializer(serializers.ModelSerializer):
    funder_name = serializers.CharField(source='funder.name', read_only=True, allow_null=True)
    available_balance = serializers.SerializerMethodField()
    utilization_percentage = serializers.SerializerMethodField()
    budget_status = serializers.SerializerMethodField()

    class Meta:
        model = FundingAccount
        fields = ['id', 'account_number', 'account_name', 'funder', 'funder_name', 'master_project', 'lab',
                  'account_type', 'total_budget', 'spent_amount', 'committed_amount', 'remaining_budget',
                  'available_balance', 'utilization_percentage', 'budget_status', 'currency',
                  'start_date', 'end_date', 'status', 'notes', 'created_at', 'updated_at']
        # Ledger totals only move through order status changes
        read_only_fields = ['spent_amount', 'committed_amount', 'remaining_budget', 'created_at', 'updated_at']

    def get_available_balance(self, obj):
        return calculate_available_balance(obj)

    def get_utilization_percentage(self, obj):
        if not obj.total_budget:
            return 0
        used = (obj.spent_amount or 0) + (obj.committed_amount or 0)
        return round(float(used) / float(obj.total_budget) * 100, 1)

    def get_budget_status(self, obj):
        return get_budget_status(self.get_utilization_percentage(obj))

    def validate_total_budget(self, value):
        if value < 0:
            raise serializers.ValidationError('Total budget cannot be negative')
        return value

    def validate(self, attrs):
        start = attrs.get('start_date', getattr(self.instance, 'start_date', None))
        end = attrs.get('end_date', getattr(self.instance, 'end_date', None))
        if start and end and end < start:
            raise serializers.ValidationError({'end_date': 'End date must be after start date'})
        return attrs


class FundingAllocationSerializer(serializers.ModelSerializer):
    account_name = serializers.CharField(source='funding_account.account_name', read_only=True)
    person_name = serializers.SerializerMethodField()
    project_name = serializers.CharField(source='project.name', read_only=True, allow_null=True)
    percent_used = serializers.SerializerMethodField()
    warning_level = serializers.SerializerMethodField()

    class Meta:
        model = FundingAllocation
        fields = ['id', 'funding_account', 'account_name', 'lab', 'type', 'person', 'person_name', 'project',
                  'project_name', 'allocated_amount', 'soft_limit', 'current_spent', 'current_committed',
                  'remaining_budget', 'percent_used', 'warning_level', 'currency', 'status',
                  'low_balance_warning_threshold', 'last_transaction_at', 'notes', 'created_by_label',
                  'created_at', 'updated_at']
        read_only_fields = ['current_spent', 'current_committed', 'remaining_budget', 'last_transaction_at',
                            'created_by_label', 'created_at', 'updated_at']

    def get_person_name(self, obj):
        return obj.person.full_name if obj.person_id else None

    def get_percent_used(self, obj):
        return round(obj.percent_used, 1)

    def get_warning_level(self, obj):
        return get_low_balance_warning_level(obj.percent_used)

    def validate(self, attrs):
        alloc_type = attrs.get('type', getattr(self.instance, 'type', None))
        person = attrs.get('person', getattr(self.instance, 'person', None))
        project = attrs.get('project', getattr(self.instance, 'project', None))
        if alloc_type == 'PERSON' and person is None:
            raise serializers.ValidationError({'person': 'A PERSON allocation needs a person'})
        if alloc_type == 'PROJECT' and project is None:
            raise serializers.ValidationError({'project': 'A PROJECT allocation needs a project'})

        amount = attrs.get('allocated_amount', getattr(self.instance, 'allocated_amount', None))
        if amount is not None:
            if amount < 0:
                raise serializers.ValidationError({'allocated_amount': 'Allocated amount cannot be negative'})
            account = attrs.get('funding_account', getattr(self.instance, 'funding_account', None))
            others = FundingAllocation.objects.filter(funding_account=account)
            if self.instance is not None:
                others = others.exclude(pk=self.instance.pk)
            allocated = others.aggregate(total=Sum('allocated_amount'))['total'] or Decimal('0.00')
            if account is not None and allocated + amount > account.total_budget:
                raise serializers.ValidationError(
                    {'allocated_amount': 'Allocations would exceed the account budget'}
                )
        return attrs


class FundingTransactionSerializer(serializers.ModelSerializer):
    account_name = serializers.CharField(source='funding_account.account_name', read_only=True)

    class Meta:
        model = FundingTransaction
        fields = ['id', 'funding_account', 'account_name', 'allocation', 'lab', 'order', 'amount', 'currency',
                  'type', 'status', 'description', 'invoice_number', 'po_number', 'supplier_name', 'notes',
                  'metadata', 'created_by', 'created_at', 'finalized_at', 'cancelled_at']
        read_only_fields = fields


class ManualTransactionSerializer(serializers.Serializer):
    """Input for manual ADJUSTMENT / REFUND entries"""
    funding_account = serializers.PrimaryKeyRelatedField(queryset=FundingAccount.objects.all())
    allocation = serializers.PrimaryKeyRelatedField(queryset=FundingAllocation.objects.all(), required=False, allow_null=True)
    type = serializers.ChoiceField(choices=['ADJUSTMENT', 'REFUND'])
    amount = serializers.DecimalField(max_digits=14, decimal_places=2)
    description = serializers.CharField(max_length=500, required=False, allow_blank=True)
    invoice_number = serializers.CharField(max_length=100, required=False, allow_blank=True)
    notes = serializers.CharField(required=False, allow_blank=True)

    def validate_amount(self, value):
        if value == 0:
            raise serializers.ValidationError('Amount must not be zero')
        return value

    def validate(self, attrs):
        allocation = attrs.get('allocation')
        if allocation is not None and allocation.funding_account_id != attrs['funding_account'].pk:
            raise serializers.ValidationError({'allocation': 'Allocation does not belong to this account'})
        return attrs


class FundingNotificationSerializer(serializers.ModelSerializer):
    class Meta:
        model = FundingNotification
        fields = ['id', 'recipient', 'allocation', 'type', 'title', 'message', 'priority', 'threshold',
                  'is_read', 'read_at', 'created_at']
        read_only_fields = fields
