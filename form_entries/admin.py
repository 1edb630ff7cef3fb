from django.contrib import admin
from .models import FormTemplate, FormEntry, FolioCounter, ActivityLog


@admin.register(FormTemplate)
class FormTemplateAdmin(admin.ModelAdmin):
    list_display = ('name', 'is_active', 'created_by', 'created_at')
    list_filter = ('is_active',)
    search_fields = ('name', 'description')


@admin.register(FormEntry)
class FormEntryAdmin(admin.ModelAdmin):
    list_display = ('folio_number', 'template', 'status', 'created_by', 'created_at')
    list_filter = ('status', 'template')
    search_fields = ('folio_number', 'template__name')
    readonly_fields = ('signed_at', 'approved_at', 'created_at', 'updated_at')


@admin.register(FolioCounter)
class FolioCounterAdmin(admin.ModelAdmin):
    list_display = ('scope', 'last_value', 'updated_at')
    readonly_fields = ('updated_at',)


@admin.register(ActivityLog)
class ActivityLogAdmin(admin.ModelAdmin):
    list_display = ('action', 'resource_type', 'resource_id', 'user', 'created_at')
    list_filter = ('action', 'resource_type')
    readonly_fields = ('user', 'action', 'resource_type', 'resource_id', 'details', 'created_at')
