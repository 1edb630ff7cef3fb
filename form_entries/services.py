"""
Form Entry Service
Lifecycle of generic form entries: draft -> signed -> approved / rejected
"""
import logging

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import PermissionDenied

from production.roles import normalize_role, role_in
from utils.enums import (
    FormEntryStatusChoices as EntryStatus, ActivityActionChoices, UserRoleChoices, ExportFormatChoices
)

from .activity import log_activity
from .export import build_consolidated_view
from .exporters import render_export
from .exceptions import FormEntryNotFound
from .folios import FolioService
from .models import FormEntry, FormTemplate

logger = logging.getLogger(__name__)

RESOURCE_TYPE = 'form_entry'

ENTRY_TRANSITIONS = {
    EntryStatus.DRAFT: [EntryStatus.SIGNED],
    EntryStatus.SIGNED: [EntryStatus.APPROVED, EntryStatus.REJECTED],
    EntryStatus.REJECTED: [EntryStatus.DRAFT],
    EntryStatus.APPROVED: [],
}

REVIEWER_ROLES = [
    UserRoleChoices.SUPERADMIN,
    UserRoleChoices.ADMIN,
    UserRoleChoices.GERENTE_PRODUCCION,
    UserRoleChoices.GERENTE_CALIDAD,
]


def _can_see_all(user):
    return normalize_role(user.role) in [UserRoleChoices.SUPERADMIN, UserRoleChoices.ADMIN]


class FormEntryService:

    @staticmethod
    def visible_entries(user):
        queryset = FormEntry.objects.select_related('template', 'created_by', 'signed_by', 'approved_by')
        if _can_see_all(user):
            return queryset
        return queryset.filter(created_by=user)

    @staticmethod
    def get_entry(entry_id, lock=False):
        queryset = FormEntry.objects.select_related('template')
        if lock:
            queryset = queryset.select_for_update()
        try:
            return queryset.get(id=entry_id)
        except FormEntry.DoesNotExist:
            raise FormEntryNotFound()

    @staticmethod
    def create_entry(template_id, data, user, department=''):
        """
        Create a draft entry and assign its folio.
        """
        if not isinstance(data, dict):
            raise ValidationError("Entry data must be an object")

        with transaction.atomic():
            try:
                template = FormTemplate.objects.get(id=template_id, is_active=True)
            except FormTemplate.DoesNotExist:
                raise ValidationError("Form template not found or inactive")

            folio = FolioService.issue_unique(
                FolioService.template_scope(template),
                lambda number: FolioService.entry_folio(template, number),
                lambda candidate: FormEntry.objects.filter(template=template, folio_number=candidate).exists(),
            )

            entry = FormEntry.objects.create(
                template=template,
                data=data,
                folio_number=folio,
                department=department,
                created_by=user,
            )
            log_activity(user, ActivityActionChoices.CREATED, RESOURCE_TYPE, entry.id, {
                'formTemplateId': template.id,
                'folio': folio,
            })
            return entry

    @staticmethod
    def update_data(entry_id, data, user):
        """Merge ``data`` into the entry. Approved entries are frozen."""
        if not isinstance(data, dict):
            raise ValidationError("Entry data must be an object")

        with transaction.atomic():
            entry = FormEntryService.get_entry(entry_id, lock=True)
            if entry.status == EntryStatus.APPROVED:
                raise ValidationError("Approved entries cannot be modified")
            if entry.created_by_id != user.id and not _can_see_all(user):
                raise PermissionDenied("Only the author or an administrator can edit this entry")

            merged = dict(entry.data or {})
            merged.update(data)
            entry.data = merged
            entry.save(update_fields=['data', 'updated_at'])
            log_activity(user, ActivityActionChoices.UPDATED, RESOURCE_TYPE, entry.id, {
                'fields': sorted(data.keys()),
            })
            return entry

    @staticmethod
    def change_status(entry_id, new_status, user, signature=''):
        """
        Move an entry along draft -> signed -> approved/rejected.

        Signing stores the signature and signer, approving stores the approver.
        Approve and reject are limited to reviewer roles.
        """
        if new_status not in EntryStatus.values:
            raise ValidationError(f"Invalid status: {new_status}")

        with transaction.atomic():
            entry = FormEntryService.get_entry(entry_id, lock=True)
            old_status = entry.status

            if new_status not in ENTRY_TRANSITIONS.get(old_status, []):
                raise ValidationError(f"Cannot change status from {old_status} to {new_status}")

            now = timezone.now()
            if new_status == EntryStatus.SIGNED:
                if not signature:
                    raise ValidationError("A signature is required to sign the entry")
                entry.signature = signature
                entry.signed_by = user
                entry.signed_at = now
            elif new_status in (EntryStatus.APPROVED, EntryStatus.REJECTED):
                if not role_in(user, REVIEWER_ROLES):
                    raise PermissionDenied("Only reviewers can approve or reject entries")
                entry.approved_by = user
                entry.approved_at = now

            entry.status = new_status
            entry.save()

            log_activity(user, ActivityActionChoices.STATUS_CHANGED, RESOURCE_TYPE, entry.id, {
                'formTemplateId': entry.template_id,
                'from': old_status,
                'to': new_status,
            })
            logger.info(f"Form entry {entry.folio_number} moved from {old_status} to {new_status}")
            return entry

    @staticmethod
    def delete_entry(entry_id, user):
        allowed_roles = settings.FORMCAPTURE_SETTINGS.get('DELETE_ALLOWED_ROLES', [UserRoleChoices.SUPERADMIN])
        if not role_in(user, allowed_roles):
            raise PermissionDenied("Only superadmin can delete form entries")

        with transaction.atomic():
            entry = FormEntryService.get_entry(entry_id, lock=True)
            details = {'formTemplateId': entry.template_id, 'folio': entry.folio_number}
            entry.delete()
            log_activity(user, ActivityActionChoices.DELETED, RESOURCE_TYPE, entry_id, details)
            logger.info(f"Form entry {entry_id} deleted by {user.email}")


class ExportService:
    """
    Builds consolidated reports for entries of one template
    """

    @staticmethod
    def build_entries_view(template_id, entry_ids, selected_fields=None, field_order=None):
        try:
            template = FormTemplate.objects.get(id=template_id)
        except FormTemplate.DoesNotExist:
            raise ValidationError("Form template not found")

        entries = list(
            FormEntry.objects.filter(template=template, id__in=entry_ids or [])
            .select_related('created_by')
            .order_by('created_at', 'id')
        )
        if not entries:
            raise ValidationError("No entries of this template were selected")

        labels = template.field_labels()
        if not selected_fields:
            selected_fields = list(labels.keys())

        return build_consolidated_view(
            [entry.to_export_record() for entry in entries],
            selected_fields,
            field_order=field_order,
            labels=labels,
            title=template.name,
        )

    @staticmethod
    def export(view, export_format, user, resource_type, details=None):
        """
        Render ``view`` and record the export in the activity log.

        Returns:
            (content bytes, content type, file extension)
        """
        if export_format not in ExportFormatChoices.values:
            raise ValidationError(f"Unsupported export format: {export_format}")

        content, content_type, extension = render_export(
            view, export_format, generated_by=getattr(user, 'full_name', '')
        )
        log_activity(user, ActivityActionChoices.EXPORTED, resource_type, None, {
            'format': export_format,
            'rows': len(view.rows),
            **(details or {}),
        })
        return content, content_type, extension
