from rest_framework import serializers
from momentum.core.constants import VALIDATION_LIMITS, to_decimal
from momentum.inventory.models import InventoryItem
from momentum.inventory.services import format_quantity
from .models import ELNExperiment
from .services import ELN_ITEM_TYPES


def _validate_object_list(value, label):
    if not isinstance(value, list) or any(not isinstance(entry, dict) for entry in value):
        raise serializers.ValidationError(f"{label} must be a list of objects")
    return value


class ELNExperimentSerializer(serializers.ModelSerializer):
    master_project_name = serializers.CharField(source='master_project.name', read_only=True, default=None)

    class Meta:
        model = ELNExperiment
        fields = ['id', 'title', 'description', 'experiment_number', 'master_project', 'master_project_name',
                  'workpackage', 'task', 'lab', 'status', 'items', 'pages', 'reports', 'tags',
                  'consumed_inventory', 'equipment_used', 'created_by', 'created_at', 'updated_at']
        read_only_fields = ['experiment_number', 'created_by', 'created_at', 'updated_at']

    def validate_title(self, value):
        if not value.strip():
            raise serializers.ValidationError('Title is required')
        return value.strip()

    def validate_items(self, value):
        _validate_object_list(value, 'Items')
        for item in value:
            if item.get('type') not in ELN_ITEM_TYPES:
                raise serializers.ValidationError(f"Item type must be one of: {', '.join(ELN_ITEM_TYPES)}")
        return value

    def validate_pages(self, value):
        return _validate_object_list(value, 'Pages')

    def validate_reports(self, value):
        return _validate_object_list(value, 'Reports')

    def validate_tags(self, value):
        if not isinstance(value, list) or any(not isinstance(tag, str) for tag in value):
            raise serializers.ValidationError('Tags must be a list of strings')
        return [tag.strip() for tag in value if tag.strip()]

    def validate_consumed_inventory(self, value):
        """
        Each line: {"inventory_id", "quantity_used"}. Product names are filled
        in from inventory and lines already deducted cannot be changed.
        """
        _validate_object_list(value, 'Consumed inventory')
        previous = {}
        if self.instance is not None:
            previous = {str(line.get('inventory_id')): line for line in self.instance.consumed_inventory or []}

        cleaned = []
        seen = set()
        for line in value:
            key = str(line.get('inventory_id', ''))
            if not key or key in seen:
                raise serializers.ValidationError('Each consumed item needs a distinct inventory_id')
            seen.add(key)
            item = InventoryItem.objects.filter(pk=key).first() if key.isdigit() else None
            if item is None:
                raise serializers.ValidationError(f"Inventory item {key} does not exist")
            quantity = to_decimal(line.get('quantity_used'), None)
            if quantity is None or not quantity.is_finite() or quantity <= 0:
                raise serializers.ValidationError(f"Quantity used for {item.product_name} must be greater than zero")

            before = previous.get(key)
            if before and before.get('deducted'):
                if to_decimal(before.get('quantity_used')) != quantity:
                    raise serializers.ValidationError(
                        f"{item.product_name} was already deducted from stock and cannot be changed"
                    )
                cleaned.append(before)
                continue
            cleaned.append({
                'inventory_id': item.pk,
                'product_name': item.product_name,
                'quantity_used': format_quantity(quantity),
                'deducted': False,
                'deducted_at': None,
            })

        removed = [line for key, line in previous.items() if key not in seen and line.get('deducted')]
        if removed:
            raise serializers.ValidationError('Items already deducted from stock cannot be removed')
        return cleaned

    def validate(self, attrs):
        project = attrs.get('master_project', getattr(self.instance, 'master_project', None))
        workpackage = attrs.get('workpackage', getattr(self.instance, 'workpackage', None))
        if project and workpackage and workpackage.project_id != project.id:
            raise serializers.ValidationError({'workpackage': 'Workpackage belongs to another project'})
        return attrs


class ELNItemSerializer(serializers.Serializer):
    """A single multimodal notebook entry appended to an experiment"""
    type = serializers.ChoiceField(choices=ELN_ITEM_TYPES)
    title = serializers.CharField(max_length=200, required=False, allow_blank=True)
    description = serializers.CharField(max_length=VALIDATION_LIMITS['DESCRIPTION_MAX'], required=False,
                                        allow_blank=True)
    file_url = serializers.URLField(max_length=VALIDATION_LIMITS['URL_MAX'], required=False)
    file_name = serializers.CharField(max_length=255, required=False)
    file_type = serializers.CharField(max_length=100, required=False)
    file_size = serializers.IntegerField(min_value=0, required=False)
    linked_resources = serializers.DictField(required=False)


class DeductionSerializer(serializers.Serializer):
    inventory_item = serializers.PrimaryKeyRelatedField(queryset=InventoryItem.objects.all())
    quantity = serializers.DecimalField(max_digits=12, decimal_places=3, required=False, min_value=0)
