from rest_framework import serializers
from momentum.core.constants import VALIDATION_LIMITS
from .models import Equipment, InventoryItem
from .services import (
    device_supply_health, health_class, lowest_supply_health, needs_reorder, supply_status, total_burn_rate
)


class InventoryItemSerializer(serializers.ModelSerializer):
    charge_to_account_number = serializers.CharField(source='charge_to_account.account_number', read_only=True,
                                                     allow_null=True)
    equipment_devices = serializers.PrimaryKeyRelatedField(many=True, read_only=True)
    is_below_minimum = serializers.BooleanField(read_only=True)

    class Meta:
        model = InventoryItem
        fields = ['id', 'product_name', 'cat_num', 'supplier', 'current_quantity', 'unit', 'price_ex_vat',
                  'currency', 'min_quantity', 'burn_rate_per_week', 'inventory_level', 'is_below_minimum',
                  'received_date', 'last_ordered_date', 'category', 'subcategory', 'charge_to_account',
                  'charge_to_account_number', 'equipment_devices', 'lab', 'notes', 'created_by',
                  'created_at', 'updated_at']
        # Level is derived from the quantities on every save
        read_only_fields = ['inventory_level', 'created_by', 'created_at', 'updated_at']

    def validate_product_name(self, value):
        if not value.strip():
            raise serializers.ValidationError('Product name is required')
        return value.strip()

    def validate_current_quantity(self, value):
        if value < 0:
            raise serializers.ValidationError('Quantity cannot be negative')
        return value

    def validate_min_quantity(self, value):
        if value is not None and value < 0:
            raise serializers.ValidationError('Minimum quantity cannot be negative')
        return value

    def validate_burn_rate_per_week(self, value):
        if value < 0:
            raise serializers.ValidationError('Burn rate cannot be negative')
        return value

    def validate_price_ex_vat(self, value):
        if value < VALIDATION_LIMITS['PRICE_MIN'] or value > VALIDATION_LIMITS['PRICE_MAX']:
            raise serializers.ValidationError(
                f"Price must be between {VALIDATION_LIMITS['PRICE_MIN']} and {VALIDATION_LIMITS['PRICE_MAX']}"
            )
        return value


class LowStockItemSerializer(InventoryItemSerializer):
    """Inventory row with its reorder figures"""
    supply_status = serializers.SerializerMethodField()

    class Meta(InventoryItemSerializer.Meta):
        fields = InventoryItemSerializer.Meta.fields + ['supply_status']

    def get_supply_status(self, obj):
        return supply_status(obj)


class EquipmentSerializer(serializers.ModelSerializer):
    supply_count = serializers.SerializerMethodField()
    supply_health = serializers.SerializerMethodField()
    supply_health_class = serializers.SerializerMethodField()
    lowest_supply_health = serializers.SerializerMethodField()
    total_burn_rate = serializers.SerializerMethodField()
    supplies_to_reorder = serializers.SerializerMethodField()

    class Meta:
        model = Equipment
        fields = ['id', 'name', 'make', 'model', 'serial_number', 'location', 'lab', 'supplies', 'supply_count',
                  'supply_health', 'supply_health_class', 'lowest_supply_health', 'total_burn_rate',
                  'supplies_to_reorder', 'notes', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']

    def get_supply_count(self, obj):
        return obj.supplies.count()

    def get_supply_health(self, obj):
        return device_supply_health(obj.supplies.all())

    def get_supply_health_class(self, obj):
        return health_class(device_supply_health(obj.supplies.all()))

    def get_lowest_supply_health(self, obj):
        return round(lowest_supply_health(obj.supplies.all()))

    def get_total_burn_rate(self, obj):
        return total_burn_rate(obj.supplies.all())

    def get_supplies_to_reorder(self, obj):
        return [item.id for item in obj.supplies.all() if needs_reorder(item)]

    def validate_name(self, value):
        if not value.strip():
            raise serializers.ValidationError('Name is required')
        return value.strip()


class StockAdjustmentSerializer(serializers.Serializer):
    """Signed change to an item's quantity"""
    delta = serializers.DecimalField(max_digits=12, decimal_places=3)

    def validate_delta(self, value):
        if value == 0:
            raise serializers.ValidationError('Adjustment must not be zero')
        return value


class ReconcileRequestSerializer(serializers.Serializer):
    orders = serializers.ListField(child=serializers.IntegerField(), allow_empty=False)
