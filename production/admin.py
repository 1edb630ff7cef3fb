from django.contrib import admin
from .models import ProductionForm, ProductionFormStatusHistory


class ProductionFormStatusHistoryInline(admin.TabularInline):
    model = ProductionFormStatusHistory
    extra = 0
    readonly_fields = ('from_status', 'to_status', 'transition', 'automatic', 'trigger_field', 'changed_by', 'changed_at')
    can_delete = False


@admin.register(ProductionForm)
class ProductionFormAdmin(admin.ModelAdmin):
    list_display = ('folio', 'product_code', 'liters', 'date', 'status', 'responsible', 'created_at')
    list_filter = ('status', 'product_code', 'date')
    search_fields = ('folio', 'lot_number', 'responsible')
    readonly_fields = ('created_by', 'updated_by', 'last_updated_by', 'created_at', 'updated_at')
    inlines = [ProductionFormStatusHistoryInline]


@admin.register(ProductionFormStatusHistory)
class ProductionFormStatusHistoryAdmin(admin.ModelAdmin):
    list_display = ('form', 'from_status', 'to_status', 'automatic', 'changed_by', 'changed_at')
    list_filter = ('to_status', 'automatic')
