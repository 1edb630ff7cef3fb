from django.core.exceptions import ValidationError
from django.urls import reverse
from rest_framework import status
from rest_framework.exceptions import PermissionDenied
from rest_framework.test import APITestCase

from form_entries.models import FormTemplate, FormEntry, ActivityLog
from form_entries.services import FormEntryService, ExportService
from production.tests.helpers import create_user
from utils.enums import FormEntryStatusChoices as EntryStatus, ActivityActionChoices

STRUCTURE = {
    'title': 'Registro de temperaturas',
    'fields': [
        {'id': 'camara', 'type': 'text', 'label': 'Cámara', 'required': True},
        {'id': 'temperatura', 'type': 'number', 'label': 'Temperatura', 'required': True},
        {'id': 'conforme', 'type': 'checkbox', 'label': 'Conforme', 'required': False},
    ],
}


class FormEntryServiceTest(APITestCase):

    def setUp(self):
        self.admin = create_user('admin')
        self.operator = create_user('produccion')
        self.quality = create_user('gerente_calidad')
        self.superadmin = create_user('superadmin')
        self.template = FormTemplate.objects.create(
            name='CA-RE-03-01 Registro de temperaturas', structure=STRUCTURE, created_by=self.admin
        )

    def create_entry(self, user=None, data=None):
        return FormEntryService.create_entry(self.template.id, data or {'camara': 'C1'}, user or self.operator)

    def test_create_assigns_folios(self):
        first = self.create_entry()
        second = self.create_entry()
        self.assertEqual(first.folio_number, 'CA-RE-03-01-F1')
        self.assertEqual(second.folio_number, 'CA-RE-03-01-F2')
        self.assertEqual(first.status, EntryStatus.DRAFT)

    def test_inactive_template(self):
        self.template.is_active = False
        self.template.save()
        with self.assertRaises(ValidationError):
            self.create_entry()

    def test_update_merges_data(self):
        entry = self.create_entry()
        entry = FormEntryService.update_data(entry.id, {'temperatura': 4}, self.operator)
        self.assertEqual(entry.data, {'camara': 'C1', 'temperatura': 4})

    def test_only_author_or_admin_edits(self):
        entry = self.create_entry()
        with self.assertRaises(PermissionDenied):
            FormEntryService.update_data(entry.id, {'temperatura': 4}, self.quality)
        FormEntryService.update_data(entry.id, {'temperatura': 5}, self.admin)

    def test_sign_requires_signature(self):
        entry = self.create_entry()
        with self.assertRaises(ValidationError):
            FormEntryService.change_status(entry.id, EntryStatus.SIGNED, self.operator)

        entry = FormEntryService.change_status(entry.id, EntryStatus.SIGNED, self.operator, signature='data:image/png;base64,AAA')
        self.assertEqual(entry.signed_by, self.operator)
        self.assertIsNotNone(entry.signed_at)

    def test_approval_flow(self):
        entry = self.create_entry()
        FormEntryService.change_status(entry.id, EntryStatus.SIGNED, self.operator, signature='firma')

        with self.assertRaises(PermissionDenied):
            FormEntryService.change_status(entry.id, EntryStatus.APPROVED, self.operator)

        entry = FormEntryService.change_status(entry.id, EntryStatus.APPROVED, self.quality)
        self.assertEqual(entry.status, EntryStatus.APPROVED)
        self.assertEqual(entry.approved_by, self.quality)

        with self.assertRaises(ValidationError):
            FormEntryService.update_data(entry.id, {'temperatura': 9}, self.admin)

    def test_rejected_goes_back_to_draft(self):
        entry = self.create_entry()
        FormEntryService.change_status(entry.id, EntryStatus.SIGNED, self.operator, signature='firma')
        FormEntryService.change_status(entry.id, EntryStatus.REJECTED, self.quality)
        entry = FormEntryService.change_status(entry.id, EntryStatus.DRAFT, self.operator)
        self.assertEqual(entry.status, EntryStatus.DRAFT)

    def test_invalid_transition(self):
        entry = self.create_entry()
        with self.assertRaises(ValidationError):
            FormEntryService.change_status(entry.id, EntryStatus.APPROVED, self.quality)

    def test_delete_is_superadmin_only(self):
        entry = self.create_entry()
        with self.assertRaises(PermissionDenied):
            FormEntryService.delete_entry(entry.id, self.admin)
        FormEntryService.delete_entry(entry.id, self.superadmin)
        self.assertFalse(FormEntry.objects.filter(id=entry.id).exists())

    def test_visibility(self):
        own = self.create_entry()
        self.create_entry(user=self.quality)
        self.assertEqual(list(FormEntryService.visible_entries(self.operator)), [own])
        self.assertEqual(FormEntryService.visible_entries(self.admin).count(), 2)

    def test_entries_view_uses_template_labels(self):
        first = self.create_entry(data={'camara': 'C1', 'temperatura': 4, 'conforme': True})
        second = self.create_entry(data={'camara': 'C2'})

        view = ExportService.build_entries_view(
            self.template.id, [second.id, first.id], ['temperatura', 'camara'], {'camara': 0}
        )

        self.assertEqual(view.labels, ['Cámara', 'Temperatura'])
        self.assertEqual(view.rows, [['C1', '4'], ['C2', '']])
        self.assertEqual(view.title, self.template.name)

    def test_entries_view_defaults_to_all_fields(self):
        entry = self.create_entry()
        view = ExportService.build_entries_view(self.template.id, [entry.id])
        self.assertEqual([c['id'] for c in view.columns], ['camara', 'temperatura', 'conforme'])

    def test_entries_view_requires_entries(self):
        with self.assertRaises(ValidationError):
            ExportService.build_entries_view(self.template.id, [])


class FormEntryAPITestCase(APITestCase):

    def setUp(self):
        self.admin = create_user('admin')
        self.operator = create_user('produccion')
        self.template = FormTemplate.objects.create(name='Checklist de limpieza', structure=STRUCTURE)
        self.client.force_authenticate(user=self.operator)

    def test_template_write_requires_admin(self):
        payload = {'name': 'Nuevo', 'structure': STRUCTURE}
        response = self.client.post(reverse('form_entries:form-template-list'), payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(user=self.admin)
        response = self.client.post(reverse('form_entries:form-template-list'), payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

    def test_template_structure_validation(self):
        self.client.force_authenticate(user=self.admin)
        payload = {'name': 'Roto', 'structure': {'fields': [{'id': 'a'}, {'id': 'a'}]}}
        response = self.client.post(reverse('form_entries:form-template-list'), payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_entry_lifecycle(self):
        response = self.client.post(
            reverse('form_entries:form-entry-list'),
            {'template': self.template.id, 'data': {'camara': 'C3'}},
            format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['folio_number'], 'F-0001')
        entry_id = response.data['id']

        response = self.client.patch(
            reverse('form_entries:form-entry-detail', args=[entry_id]),
            {'data': {'temperatura': 2}},
            format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['temperatura'], 2)

        response = self.client.post(
            reverse('form_entries:form-entry-change-status', args=[entry_id]),
            {'status': 'signed', 'signature': 'firma'},
            format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'signed')

        actions = list(
            ActivityLog.objects.filter(resource_type='form_entry', resource_id=entry_id)
            .order_by('id').values_list('action', flat=True)
        )
        self.assertEqual(actions, [
            ActivityActionChoices.CREATED, ActivityActionChoices.UPDATED, ActivityActionChoices.STATUS_CHANGED
        ])

    def test_other_users_entries_are_hidden(self):
        entry = FormEntryService.create_entry(self.template.id, {}, self.admin)
        response = self.client.get(reverse('form_entries:form-entry-detail', args=[entry.id]))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_consolidated_export(self):
        entry = FormEntryService.create_entry(self.template.id, {'camara': 'C1'}, self.operator)
        response = self.client.post(
            reverse('form_entries:consolidated_export'),
            {
                'templateId': self.template.id,
                'entryIds': [entry.id],
                'selectedFields': ['camara'],
                'format': 'pdf',
            },
            format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response['Content-Type'], 'application/pdf')
        self.assertTrue(
            ActivityLog.objects.filter(action=ActivityActionChoices.EXPORTED, resource_type='form_entry').exists()
        )

    def test_export_ignores_hidden_entries(self):
        entry = FormEntryService.create_entry(self.template.id, {'camara': 'C1'}, self.admin)
        response = self.client.post(
            reverse('form_entries:consolidated_export'),
            {'templateId': self.template.id, 'entryIds': [entry.id], 'format': 'excel'},
            format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_activity_logs_superadmin_only(self):
        response = self.client.get(reverse('form_entries:activity-log-list'))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(user=create_user('superadmin'))
        response = self.client.get(reverse('form_entries:activity-log-list'))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
