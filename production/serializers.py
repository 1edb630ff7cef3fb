from rest_framework import serializers

from utils.enums import ExportFormatChoices, ProductionFormStatusChoices
from .models import ProductionForm, ProductionFormStatusHistory
from .roles import user_workflow_role
from .sections import section_permissions
from .transitions import available_transitions


class ProductionFormListSerializer(serializers.ModelSerializer):
    status_display = serializers.CharField(source='get_status_display', read_only=True)
    created_by_name = serializers.CharField(source='created_by.full_name', read_only=True)

    class Meta:
        model = ProductionForm
        fields = [
            'id', 'folio', 'product_code', 'liters', 'date', 'responsible',
            'lot_number', 'status', 'status_display', 'created_by_name',
            'created_at', 'updated_at'
        ]


class ProductionFormDetailSerializer(serializers.ModelSerializer):
    """
    Full production form plus what the requesting user may do with it
    """
    status_display = serializers.CharField(source='get_status_display', read_only=True)
    created_by_name = serializers.CharField(source='created_by.full_name', read_only=True)
    last_updated_by_name = serializers.CharField(source='last_updated_by.full_name', read_only=True)
    section_permissions = serializers.SerializerMethodField()
    available_transitions = serializers.SerializerMethodField()

    class Meta:
        model = ProductionForm
        fields = '__all__'
        read_only_fields = [f.name for f in ProductionForm._meta.fields]

    def _user(self):
        request = self.context.get('request')
        return request.user if request else None

    def get_section_permissions(self, obj):
        read_only = self.context.get('read_only', False)
        return section_permissions(self._user(), read_only=read_only)

    def get_available_transitions(self, obj):
        user = self._user()
        if not user or not user.is_authenticated:
            return []
        return available_transitions(obj.status, user_workflow_role(user))


class ProductionFormStatusHistorySerializer(serializers.ModelSerializer):
    changed_by_name = serializers.CharField(source='changed_by.full_name', read_only=True)

    class Meta:
        model = ProductionFormStatusHistory
        fields = [
            'id', 'from_status', 'to_status', 'transition', 'automatic',
            'trigger_field', 'changed_by', 'changed_by_name', 'changed_at'
        ]


class FieldUpdateSerializer(serializers.Serializer):
    field = serializers.CharField()
    value = serializers.JSONField(allow_null=True)


class StatusChangeSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=ProductionFormStatusChoices.choices)


class FolioUpdateSerializer(serializers.Serializer):
    folio = serializers.CharField(max_length=50)


class RecipePreviewSerializer(serializers.Serializer):
    product = serializers.CharField()
    liters = serializers.CharField()


class ProductionExportSerializer(serializers.Serializer):
    formIds = serializers.ListField(child=serializers.IntegerField(), allow_empty=False)
    selectedFields = serializers.ListField(child=serializers.CharField(), required=False, default=list)
    fieldOrder = serializers.DictField(child=serializers.IntegerField(), required=False, default=dict)
    format = serializers.ChoiceField(choices=ExportFormatChoices.choices)
