from django.db import models
from django.contrib.auth import get_user_model

from utils.enums import ProductionFormStatusChoices, StrainerStateChoices
from .sections import (
    FIELD_REGISTRY, PROCESS_TRACKING_ROWS, QUALITY_VERIFICATION_ROWS, DESTINATION_ROWS
)

User = get_user_model()


def empty_row(length):
    return [''] * length


def process_tracking_rows():
    return empty_row(PROCESS_TRACKING_ROWS)


def quality_rows():
    return empty_row(QUALITY_VERIFICATION_ROWS)


def destination_rows():
    return empty_row(DESTINATION_ROWS)


class ProductionForm(models.Model):
    """
    Production batch record, filled section by section by production,
    operators and quality.

    Array columns are index aligned per section: cell i of temperature,
    pressure and hour_tracking describe the same time slot.
    """
    # Identity
    folio = models.CharField(max_length=50, unique=True)
    internal_folio = models.CharField(max_length=50, blank=True)
    rm_deduction_folio = models.CharField(max_length=50, blank=True)
    fg_folio = models.CharField(max_length=50, blank=True)

    # General info
    product_code = models.CharField(max_length=60, db_column='product_id', help_text="Catalog product code, e.g. conito")
    liters = models.DecimalField(max_digits=10, decimal_places=2)
    date = models.DateField()
    responsible = models.CharField(max_length=150, blank=True)
    lot_number = models.CharField(max_length=60, blank=True)
    marmita = models.CharField(max_length=60, blank=True)
    expiry_date = models.DateField(null=True, blank=True, db_column='caducidad')

    status = models.CharField(
        max_length=20,
        choices=ProductionFormStatusChoices.choices,
        default=ProductionFormStatusChoices.DRAFT,
        db_index=True
    )

    # Raw materials
    ingredients = models.JSONField(default=list, blank=True, help_text="[{name, quantity, unit}] in recipe order")
    ingredient_times = models.JSONField(default=list, blank=True)
    ingredients_derived = models.BooleanField(default=False, help_text="Ingredients come from the last successful recipe derivation")

    # Process tracking
    start_time = models.CharField(max_length=10, blank=True)
    end_time = models.CharField(max_length=10, blank=True)
    hour_tracking = models.JSONField(default=process_tracking_rows, blank=True)
    temperature = models.JSONField(default=process_tracking_rows, blank=True)
    pressure = models.JSONField(default=process_tracking_rows, blank=True)

    # Quality verification
    quality_times = models.JSONField(default=quality_rows, blank=True)
    brix = models.JSONField(default=quality_rows, blank=True)
    quality_temp = models.JSONField(default=quality_rows, blank=True)
    texture = models.JSONField(default=quality_rows, blank=True)
    color = models.JSONField(default=quality_rows, blank=True)
    viscosity = models.JSONField(default=quality_rows, blank=True)
    smell = models.JSONField(default=quality_rows, blank=True)
    taste = models.JSONField(default=quality_rows, blank=True)
    foreign_material = models.JSONField(default=quality_rows, blank=True)
    status_check = models.JSONField(default=quality_rows, blank=True)
    quality_notes = models.TextField(blank=True)

    # Product destination
    destination_type = models.JSONField(default=destination_rows, blank=True)
    destination_kilos = models.JSONField(default=destination_rows, blank=True)
    destination_product = models.JSONField(default=destination_rows, blank=True)
    destination_estimation = models.JSONField(default=destination_rows, blank=True)

    # Final strainer
    total_kilos = models.CharField(max_length=30, blank=True)
    yield_amount = models.CharField(max_length=30, blank=True, db_column='yield')
    start_state = models.CharField(max_length=10, choices=StrainerStateChoices.choices, blank=True)
    end_state = models.CharField(max_length=10, choices=StrainerStateChoices.choices, blank=True)

    # Liberation
    liberation_folio = models.CharField(max_length=50, blank=True)
    c_p = models.CharField(max_length=30, blank=True)
    cm_consistometer = models.CharField(max_length=30, blank=True)
    final_brix = models.CharField(max_length=30, blank=True)
    signature_url = models.TextField(blank=True)

    # Template specific values outside the workflow sections
    extra_data = models.JSONField(default=dict, blank=True)

    # Audit
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, related_name='created_production_forms')
    updated_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='updated_production_forms')
    last_updated_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='last_updated_production_forms')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'production_forms'
        verbose_name = 'Production Form'
        verbose_name_plural = 'Production Forms'
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.folio} - {self.product_code} ({self.liters} L)"

    def to_export_record(self):
        """Flat record consumed by the consolidated export view"""
        return {
            'id': self.id,
            'folio': self.folio,
            'status': self.status,
            'created_at': self.created_at,
            'created_by': self.created_by.full_name if self.created_by else None,
            'data': self.flat_data(),
        }

    def flat_data(self):
        data = {name: getattr(self, name) for name in FIELD_REGISTRY}
        data['ingredients'] = [
            f"{row.get('name')}: {row.get('quantity')} {row.get('unit', '')}".strip()
            for row in self.ingredients or []
        ]
        for key, value in (self.extra_data or {}).items():
            data[f'extra.{key}'] = value
        return data


class ProductionFormStatusHistory(models.Model):
    """
    Track status changes for production forms
    """
    form = models.ForeignKey(ProductionForm, on_delete=models.CASCADE, related_name='status_history')
    from_status = models.CharField(max_length=20, blank=True)
    to_status = models.CharField(max_length=20)
    transition = models.CharField(max_length=50, blank=True)
    automatic = models.BooleanField(default=False, help_text="Fired by a field edit rather than a status button")
    trigger_field = models.CharField(max_length=60, blank=True)
    changed_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True)
    changed_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = 'Production Form Status History'
        verbose_name_plural = 'Production Form Status Histories'
        ordering = ['-changed_at', '-id']

    def __str__(self):
        return f"{self.form.folio}: {self.from_status} → {self.to_status}"
