import re

from django.db import models
from django.contrib.auth import get_user_model

from utils.enums import FormEntryStatusChoices, ActivityActionChoices

User = get_user_model()

FORM_CODE_PATTERN = re.compile(r'^([A-Z]{2}-[A-Z]{2}-\d{2}-\d{2})')


class FormTemplate(models.Model):
    """
    Administrator defined form. ``structure`` is the renderer document:
    {"title": str, "fields": [{"id", "type", "label", "required", "options"?, ...}]}
    """
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    structure = models.JSONField(default=dict)
    is_active = models.BooleanField(default=True)

    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='form_templates')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'Form Template'
        verbose_name_plural = 'Form Templates'
        ordering = ['name']

    def __str__(self):
        return self.name

    @property
    def form_code(self):
        """Document code at the start of the name, e.g. CA-RE-03-01"""
        match = FORM_CODE_PATTERN.match(self.name or '')
        return match.group(1) if match else None

    @property
    def fields(self):
        structure = self.structure or {}
        return structure.get('fields') or []

    def field_labels(self):
        return {
            field.get('id'): field.get('label') or field.get('id')
            for field in self.fields
            if field.get('id')
        }


class FormEntry(models.Model):
    """
    Captured instance of a FormTemplate
    """
    template = models.ForeignKey(FormTemplate, on_delete=models.PROTECT, related_name='entries')
    data = models.JSONField(default=dict)
    status = models.CharField(
        max_length=20,
        choices=FormEntryStatusChoices.choices,
        default=FormEntryStatusChoices.DRAFT
    )
    folio_number = models.CharField(max_length=50, blank=True)
    department = models.CharField(max_length=100, blank=True)

    signature = models.TextField(blank=True, help_text="Signature image as data URL or storage reference")
    signed_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='signed_form_entries')
    signed_at = models.DateTimeField(null=True, blank=True)
    approved_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='approved_form_entries')
    approved_at = models.DateTimeField(null=True, blank=True)

    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='form_entries')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'Form Entry'
        verbose_name_plural = 'Form Entries'
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(
                fields=['template', 'folio_number'],
                name='unique_folio_per_template',
            ),
        ]

    def __str__(self):
        return f"{self.folio_number or self.id} - {self.template.name}"

    def to_export_record(self):
        """Flat record consumed by the consolidated export view"""
        return {
            'id': self.id,
            'folio': self.folio_number,
            'status': self.status,
            'created_at': self.created_at,
            'created_by': self.created_by.full_name if self.created_by else None,
            'data': self.data or {},
        }


class FolioCounter(models.Model):
    """
    Sequential counter per folio scope. Rows are locked while a number is issued.
    """
    scope = models.CharField(max_length=100, unique=True)
    last_value = models.PositiveIntegerField(default=0)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'Folio Counter'
        verbose_name_plural = 'Folio Counters'

    def __str__(self):
        return f"{self.scope}: {self.last_value}"


class ActivityLog(models.Model):
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='activity_logs')
    action = models.CharField(max_length=30, choices=ActivityActionChoices.choices)
    resource_type = models.CharField(max_length=50)
    resource_id = models.PositiveBigIntegerField(null=True, blank=True)
    details = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = 'Activity Log'
        verbose_name_plural = 'Activity Logs'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['resource_type', 'resource_id'], name='activity_resource_idx'),
        ]

    def __str__(self):
        return f"{self.action} {self.resource_type}#{self.resource_id}"
