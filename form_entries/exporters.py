"""
Exporters for consolidated views: Excel through pandas/openpyxl, PDF through reportlab
"""
import io
import logging

import pandas as pd
from django.utils import timezone
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.units import cm
from reportlab.pdfgen import canvas

from utils.enums import ExportFormatChoices

logger = logging.getLogger(__name__)

EXCEL_CONTENT_TYPE = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'
PDF_CONTENT_TYPE = 'application/pdf'

METADATA_COLUMNS = [
    ('folio', 'Folio'),
    ('status', 'Estado'),
    ('created_by', 'Creado por'),
    ('created_at', 'Fecha'),
]


def _detail_frame(view):
    records = []
    for meta, row in zip(view.metadata, view.rows):
        record = {label: meta[key] for key, label in METADATA_COLUMNS}
        record.update(dict(zip(view.labels, row)))
        records.append(record)
    columns = [label for _, label in METADATA_COLUMNS] + view.labels
    return pd.DataFrame(records, columns=columns)


def export_excel(view, generated_by=''):
    """Workbook with a summary sheet and a detail sheet, returned as bytes"""
    summary = pd.DataFrame([
        {'Campo': 'Reporte', 'Valor': view.title},
        {'Campo': 'Registros', 'Valor': len(view.rows)},
        {'Campo': 'Columnas', 'Valor': len(view.columns)},
        {'Campo': 'Generado por', 'Valor': generated_by},
        {'Campo': 'Generado', 'Valor': timezone.now().strftime('%Y-%m-%d %H:%M')},
    ])

    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine='openpyxl') as writer:
        summary.to_excel(writer, sheet_name='Resumen', index=False)
        _detail_frame(view).to_excel(writer, sheet_name='Detalle', index=False)
    return buffer.getvalue()


def _pdf_header(c, title, page_number):
    width, height = landscape(A4)
    c.setFont("Helvetica-Bold", 14)
    c.drawString(1.5*cm, height-1.5*cm, title or "Reporte consolidado")
    c.setFont("Helvetica", 8)
    c.drawRightString(width-1.5*cm, height-1.5*cm, f"Página {page_number}")
    c.line(1.5*cm, height-1.8*cm, width-1.5*cm, height-1.8*cm)
    return height - 2.5*cm


def _truncate(text, limit):
    return text if len(text) <= limit else text[:limit - 1] + '…'


def export_pdf(view, generated_by=''):
    """One table row per entry, paginated on landscape A4, returned as bytes"""
    buffer = io.BytesIO()
    c = canvas.Canvas(buffer, pagesize=landscape(A4))
    width, _ = landscape(A4)

    headers = [label for _, label in METADATA_COLUMNS] + view.labels
    usable = width - 3*cm
    col_width = usable / max(len(headers), 1)
    char_limit = max(int(col_width / 4.5), 4)

    page = 1
    y = _pdf_header(c, view.title, page)

    def draw_row(values, y, bold=False):
        c.setFont("Helvetica-Bold" if bold else "Helvetica", 7)
        for i, value in enumerate(values):
            c.drawString(1.5*cm + i*col_width, y, _truncate(str(value), char_limit))
        return y - 12

    y = draw_row(headers, y, bold=True)
    for meta, row in zip(view.metadata, view.rows):
        if y < 2*cm:
            c.showPage()
            page += 1
            y = _pdf_header(c, view.title, page)
            y = draw_row(headers, y, bold=True)
        y = draw_row([meta[key] for key, _ in METADATA_COLUMNS] + list(row), y)

    c.setFont("Helvetica", 7)
    c.drawString(1.5*cm, 1*cm, f"Generado por {generated_by} - {timezone.now().strftime('%Y-%m-%d %H:%M')}")
    c.save()
    return buffer.getvalue()


def render_export(view, export_format, generated_by=''):
    """
    Returns:
        (content bytes, content type, file extension)
    """
    if export_format == ExportFormatChoices.EXCEL:
        return export_excel(view, generated_by), EXCEL_CONTENT_TYPE, 'xlsx'
    if export_format == ExportFormatChoices.PDF:
        return export_pdf(view, generated_by), PDF_CONTENT_TYPE, 'pdf'
    raise ValueError(f"Unsupported export format: {export_format}")
