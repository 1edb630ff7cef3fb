from rest_framework import serializers

from utils.enums import ExportFormatChoices, FormEntryStatusChoices
from .models import FormTemplate, FormEntry, ActivityLog


class FormTemplateSerializer(serializers.ModelSerializer):
    form_code = serializers.CharField(read_only=True)
    created_by_name = serializers.CharField(source='created_by.full_name', read_only=True)
    entry_count = serializers.SerializerMethodField()

    class Meta:
        model = FormTemplate
        fields = [
            'id', 'name', 'form_code', 'description', 'structure', 'is_active',
            'entry_count', 'created_by', 'created_by_name', 'created_at', 'updated_at'
        ]
        read_only_fields = ['id', 'created_by', 'created_at', 'updated_at']

    def get_entry_count(self, obj):
        return obj.entries.count()

    def validate_structure(self, value):
        if not isinstance(value, dict):
            raise serializers.ValidationError("Structure must be an object with title and fields")
        fields = value.get('fields', [])
        if not isinstance(fields, list):
            raise serializers.ValidationError("Structure fields must be a list")
        ids = [field.get('id') for field in fields if isinstance(field, dict)]
        if len(ids) != len(fields) or not all(ids):
            raise serializers.ValidationError("Every field needs an id")
        if len(set(ids)) != len(ids):
            raise serializers.ValidationError("Field ids must be unique")
        return value


class FormEntryListSerializer(serializers.ModelSerializer):
    template_name = serializers.CharField(source='template.name', read_only=True)
    created_by_name = serializers.CharField(source='created_by.full_name', read_only=True)
    status_display = serializers.CharField(source='get_status_display', read_only=True)

    class Meta:
        model = FormEntry
        fields = [
            'id', 'template', 'template_name', 'folio_number', 'status', 'status_display',
            'department', 'created_by', 'created_by_name', 'created_at', 'updated_at'
        ]


class FormEntryDetailSerializer(FormEntryListSerializer):
    signed_by_name = serializers.CharField(source='signed_by.full_name', read_only=True)
    approved_by_name = serializers.CharField(source='approved_by.full_name', read_only=True)

    class Meta(FormEntryListSerializer.Meta):
        fields = FormEntryListSerializer.Meta.fields + [
            'data', 'signature', 'signed_by', 'signed_by_name', 'signed_at',
            'approved_by', 'approved_by_name', 'approved_at'
        ]


class FormEntryCreateSerializer(serializers.Serializer):
    template = serializers.IntegerField()
    data = serializers.DictField(required=False, default=dict)
    department = serializers.CharField(required=False, allow_blank=True, default='')


class FormEntryStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=FormEntryStatusChoices.choices)
    signature = serializers.CharField(required=False, allow_blank=True, default='')


class ExportRequestSerializer(serializers.Serializer):
    """{templateId, entryIds, selectedFields, fieldOrder, format}"""
    templateId = serializers.IntegerField()
    entryIds = serializers.ListField(child=serializers.IntegerField(), allow_empty=False)
    selectedFields = serializers.ListField(child=serializers.CharField(), required=False, default=list)
    fieldOrder = serializers.DictField(child=serializers.IntegerField(), required=False, default=dict)
    format = serializers.ChoiceField(choices=ExportFormatChoices.choices)


class ActivityLogSerializer(serializers.ModelSerializer):
    user_name = serializers.CharField(source='user.full_name', read_only=True)

    class Meta:
        model = ActivityLog
        fields = ['id', 'user', 'user_name', 'action', 'resource_type', 'resource_id', 'details', 'created_at']
