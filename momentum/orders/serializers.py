from rest_framework import serializers
from momentum.core.constants import ORDER_STATUS_CHOICES, VALIDATION_LIMITS
from momentum.core.serializers import ValidatedModelSerializer
from .categories import CATEGORY_IDS
from .models import Order


class OrderSerializer(ValidatedModelSerializer):
    account_number = serializers.CharField(source='account.account_number', read_only=True)
    account_name = serializers.CharField(source='account.account_name', read_only=True)
    ordered_by_name = serializers.SerializerMethodField()
    master_project_name = serializers.CharField(source='master_project.name', read_only=True, allow_null=True)

    date_range_fields = (('ordered_date', 'received_date'),)

    class Meta:
        model = Order
        fields = ['id', 'product_name', 'cat_num', 'supplier', 'url', 'priority', 'account', 'account_number',
                  'account_name', 'allocation', 'master_project', 'master_project_name', 'workpackage',
                  'deliverable', 'task', 'source_inventory_item', 'source_equipment', 'status', 'ordered_by',
                  'ordered_by_name', 'ordered_date', 'received_date', 'expected_delivery_date', 'quantity',
                  'price_ex_vat', 'vat_amount', 'total_price', 'actual_cost', 'currency', 'invoice_number',
                  'po_number', 'category', 'subcategory', 'lab', 'notes', 'created_by', 'created_at', 'updated_at']
        read_only_fields = ['total_price', 'created_by', 'created_at', 'updated_at']

    def get_ordered_by_name(self, obj):
        return obj.ordered_by.full_name if obj.ordered_by_id else None

    def validate_product_name(self, value):
        if not value.strip():
            raise serializers.ValidationError('Product name is required')
        return value.strip()

    def validate_price_ex_vat(self, value):
        if value < VALIDATION_LIMITS['PRICE_MIN'] or value > VALIDATION_LIMITS['PRICE_MAX']:
            raise serializers.ValidationError(
                f"Price must be between {VALIDATION_LIMITS['PRICE_MIN']} and {VALIDATION_LIMITS['PRICE_MAX']}"
            )
        return value

    def validate_actual_cost(self, value):
        if value is not None and value < 0:
            raise serializers.ValidationError('Actual cost cannot be negative')
        return value

    def validate_quantity(self, value):
        if value <= 0:
            raise serializers.ValidationError('Quantity must be greater than zero')
        return value

    def validate_category(self, value):
        if value and value not in CATEGORY_IDS:
            raise serializers.ValidationError(f"Unknown category: {value}")
        return value

    def validate(self, attrs):
        attrs = super().validate(attrs)
        account = attrs.get('account', getattr(self.instance, 'account', None))
        allocation = attrs.get('allocation', getattr(self.instance, 'allocation', None))
        if allocation is not None and account is not None and allocation.funding_account_id != account.id:
            raise serializers.ValidationError({'allocation': 'Allocation belongs to another funding account'})
        if 'allocation' in attrs and allocation is not None and allocation.status in ('suspended', 'archived'):
            raise serializers.ValidationError({'allocation': f"Allocation is {allocation.status}"})
        return attrs


class OrderStatusSerializer(serializers.Serializer):
    """Input for a status transition, optionally recording the invoiced cost"""
    status = serializers.ChoiceField(choices=ORDER_STATUS_CHOICES)
    actual_cost = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, allow_null=True,
                                           min_value=0)
    invoice_number = serializers.CharField(max_length=100, required=False, allow_blank=True)
    received_date = serializers.DateField(required=False)
