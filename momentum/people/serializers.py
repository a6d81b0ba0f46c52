from rest_framework import serializers
from momentum.core.constants import VALIDATION_LIMITS
from .models import Lab, PersonProfile


class LabSerializer(serializers.ModelSerializer):
    member_count = serializers.SerializerMethodField()

    class Meta:
        model = Lab
        fields = ['id', 'name', 'institute', 'organisation', 'default_funding_account',
                  'default_allocation_amount', 'default_currency', 'member_count',
                  'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']

    def get_member_count(self, obj):
        return obj.members.count()

    def validate_default_allocation_amount(self, value):
        if value is not None and value < 0:
            raise serializers.ValidationError('Default allocation cannot be negative')
        return value


class PersonProfileSerializer(serializers.ModelSerializer):
    full_name = serializers.CharField(read_only=True)
    lab_name = serializers.CharField(read_only=True)
    first_name = serializers.CharField(
        min_length=VALIDATION_LIMITS['PERSON_NAME_MIN'], max_length=VALIDATION_LIMITS['PERSON_NAME_MAX']
    )
    last_name = serializers.CharField(
        min_length=VALIDATION_LIMITS['PERSON_NAME_MIN'], max_length=VALIDATION_LIMITS['PERSON_NAME_MAX']
    )
    research_interests = serializers.ListField(child=serializers.CharField(), required=False)
    qualifications = serializers.ListField(child=serializers.CharField(), required=False)

    class Meta:
        model = PersonProfile
        fields = ['id', 'user', 'first_name', 'last_name', 'full_name', 'email', 'position',
                  'organisation', 'institute', 'lab', 'lab_name', 'reports_to', 'phone',
                  'office_location', 'research_interests', 'qualifications', 'user_role',
                  'notes', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']

    def validate(self, attrs):
        reports_to = attrs.get('reports_to')
        if reports_to is not None and self.instance is not None and reports_to.pk == self.instance.pk:
            raise serializers.ValidationError({'reports_to': 'A person cannot report to themselves'})
        return attrs
