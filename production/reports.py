"""
Consolidated reports over production forms
"""
from form_entries.export import build_consolidated_view
from .models import ProductionForm
from .sections import resolve_field

DEFAULT_REPORT_FIELDS = [
    'product_code', 'liters', 'date', 'responsible', 'lot_number',
    'ingredients', 'total_kilos', 'yield_amount', 'final_brix', 'c_p',
]


def field_label(identifier):
    ref = resolve_field(identifier)
    if ref is None:
        return identifier
    if ref.extra_key:
        return ref.extra_key.replace('_', ' ').capitalize()
    label = ref.name.replace('_', ' ').capitalize()
    if ref.is_cell:
        label = f"{label} {ref.index + 1}"
    return label


def _value(form, flat, identifier):
    ref = resolve_field(identifier)
    if ref is None:
        return None
    if ref.extra_key:
        return (form.extra_data or {}).get(ref.extra_key)
    value = flat.get(ref.name)
    if ref.is_cell:
        rows = value or []
        return rows[ref.index] if ref.index < len(rows) else None
    return value


def build_production_view(forms, selected_fields=None, field_order=None):
    """
    Consolidated view of production forms. Selected fields accept the same
    identifiers as field edits (aliases, array cells, extra keys).
    """
    selected_fields = selected_fields or DEFAULT_REPORT_FIELDS
    records = []
    for form in forms:
        record = form.to_export_record()
        flat = record['data']
        record['data'] = {
            identifier: _value(form, flat, identifier)
            for identifier in selected_fields
        }
        records.append(record)

    labels = {identifier: field_label(identifier) for identifier in selected_fields}
    return build_consolidated_view(
        records, selected_fields, field_order=field_order, labels=labels,
        title='Formularios de producción'
    )


def unknown_fields(selected_fields):
    return [f for f in selected_fields or [] if resolve_field(f) is None]


def report_queryset(form_ids):
    return ProductionForm.objects.filter(id__in=form_ids).select_related('created_by').order_by('date', 'folio')
