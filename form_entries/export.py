"""
Consolidated Export View
Projects many entries of one template into a single homogeneous table.
Nothing in here writes to the database.
"""
import json
from datetime import date, datetime
from decimal import Decimal

from django.conf import settings


def _placeholders():
    config = settings.FORMCAPTURE_SETTINGS
    return (
        config.get('EXPORT_MISSING_PLACEHOLDER', ''),
        config.get('EXPORT_METADATA_PLACEHOLDER', 'N/A'),
    )


def format_value(value, placeholder=''):
    """Render one stored value as display text"""
    if value is None:
        return placeholder
    if isinstance(value, bool):
        return 'Sí' if value else 'No'
    if isinstance(value, (list, tuple)):
        items = [format_value(item, '') for item in value]
        items = [item for item in items if item != '']
        return ', '.join(items) if items else placeholder
    if isinstance(value, dict):
        return json.dumps(value, ensure_ascii=False, default=str)
    if isinstance(value, datetime):
        return value.strftime('%Y-%m-%d %H:%M')
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Decimal):
        return format(value.normalize(), 'f')
    text = str(value)
    return text if text.strip() != '' else placeholder


def order_fields(selected_fields, field_order=None, labels=None):
    """
    Selected field ids sorted by their display order, then by label.
    Fields without an explicit order keep their selection order after the rest.
    """
    labels = labels or {}
    field_order = field_order or {}

    seen = set()
    unique_fields = []
    for field_id in selected_fields:
        if field_id not in seen:
            seen.add(field_id)
            unique_fields.append(field_id)

    ordered = sorted(
        (f for f in unique_fields if f in field_order),
        key=lambda f: (field_order[f], str(labels.get(f, f)))
    )
    unordered = [f for f in unique_fields if f not in field_order]
    return ordered + unordered


class ConsolidatedView:
    """
    Result of build_consolidated_view.

    ``columns`` is a list of {'id', 'label'}; ``rows`` holds one list of display
    strings per entry, aligned with ``columns``; ``metadata`` carries folio,
    status, author and date per row.
    """

    def __init__(self, title, columns, rows, metadata):
        self.title = title
        self.columns = columns
        self.rows = rows
        self.metadata = metadata

    @property
    def labels(self):
        return [column['label'] for column in self.columns]

    def as_dict(self):
        return {
            'title': self.title,
            'columns': self.columns,
            'rows': self.rows,
            'metadata': self.metadata,
        }


def build_consolidated_view(records, selected_fields, field_order=None, labels=None, title=''):
    """
    Args:
        records: export records, each {'id', 'folio', 'status', 'created_at',
            'created_by', 'data': {field_id: value}}
        selected_fields: field ids to include
        field_order: optional {field_id: position}
        labels: optional {field_id: column label}
        title: report title

    Returns:
        ConsolidatedView whose columns are exactly the selected fields
    """
    labels = labels or {}
    missing, metadata_missing = _placeholders()

    field_ids = order_fields(selected_fields, field_order, labels)
    columns = []
    used_labels = set()
    for f in field_ids:
        label = labels.get(f) or f
        if label in used_labels:
            label = f"{label} ({f})"
        used_labels.add(label)
        columns.append({'id': f, 'label': label})

    rows = []
    metadata = []
    for record in records:
        data = record.get('data') or {}
        rows.append([format_value(data.get(f), missing) for f in field_ids])
        metadata.append({
            'id': record.get('id'),
            'folio': format_value(record.get('folio'), metadata_missing),
            'status': format_value(record.get('status'), metadata_missing),
            'created_by': format_value(record.get('created_by'), metadata_missing),
            'created_at': format_value(record.get('created_at'), metadata_missing),
        })

    return ConsolidatedView(title, columns, rows, metadata)
