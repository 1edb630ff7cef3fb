import random
import threading
import time
from decimal import Decimal
from unittest import mock

import requests
from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import connection, OperationalError
from django.test import TestCase, TransactionTestCase

from form_entries.exceptions import ConcurrencyConflict
from form_entries.models import ActivityLog
from production.exceptions import WorkflowPermissionError, ProductionFormNotFound
from production.models import ProductionForm, ProductionFormStatusHistory
from production.services import ProductionFormService
from utils.enums import ProductionFormStatusChoices as Status, ActivityActionChoices
from .helpers import create_user


class ProductionFormServiceTestBase(TestCase):

    def setUp(self):
        self.manager = create_user('gerente_produccion')
        self.operator = create_user('produccion')
        self.quality = create_user('calidad')
        self.superadmin = create_user('superadmin')

    def create_form(self, **fields):
        initial = {'productId': 'conito', 'liters': 500}
        initial.update(fields)
        return ProductionFormService.create(initial, self.manager)

    def move_to(self, form, target):
        """Walk a form forward through manual transitions"""
        if target in (Status.IN_PROGRESS, Status.PENDING_REVIEW, Status.COMPLETED):
            form = ProductionFormService.change_status(form.id, Status.IN_PROGRESS, self.manager)
        if target in (Status.PENDING_REVIEW, Status.COMPLETED):
            form = ProductionFormService.change_status(form.id, Status.PENDING_REVIEW, self.operator)
        if target == Status.COMPLETED:
            form = ProductionFormService.update_field(form.id, 'finalBrix', '68', self.quality)
        return form


class CreateProductionFormTest(ProductionFormServiceTestBase):

    def test_create_derives_conito_ingredients(self):
        """500 L of conito needs 250 kg of cow milk"""
        form = self.create_form()

        self.assertEqual(form.status, Status.DRAFT)
        self.assertEqual(form.product_code, 'conito')
        self.assertEqual(form.liters, Decimal('500.00'))
        self.assertEqual(form.ingredients[0], {'name': 'Leche de Vaca', 'quantity': 250.0, 'unit': 'kg'})
        self.assertEqual(form.ingredients[2], {'name': 'Azúcar', 'quantity': 100.0, 'unit': 'kg'})
        self.assertEqual(len(form.ingredient_times), len(form.ingredients))
        self.assertEqual(form.created_by, self.manager)

    def test_create_issues_sequential_folios(self):
        first = self.create_form()
        second = self.create_form()
        self.assertEqual(first.folio, 'PR-0001')
        self.assertEqual(second.folio, 'PR-0002')

    def test_create_with_supplied_folio(self):
        form = self.create_form(folio='LOTE-77')
        self.assertEqual(form.folio, 'LOTE-77')
        with self.assertRaises(ValidationError):
            self.create_form(folio='LOTE-77')

    def test_create_defaults(self):
        form = self.create_form()
        self.assertIsNotNone(form.date)
        self.assertEqual(form.temperature, [''] * 7)
        self.assertEqual(form.brix, [''] * 8)
        self.assertEqual(form.destination_type, [''] * 4)

    def test_create_does_not_auto_advance(self):
        form = self.create_form(responsible='Juan', lotNumber='L-001')
        self.assertEqual(form.status, Status.DRAFT)

    def test_operator_cannot_create(self):
        with self.assertRaises(WorkflowPermissionError):
            ProductionFormService.create({'productId': 'conito', 'liters': 100}, self.operator)
        self.assertFalse(ProductionForm.objects.exists())

    def test_superadmin_can_create(self):
        form = ProductionFormService.create({'productId': 'coro', 'liters': 10}, self.superadmin)
        self.assertEqual(form.ingredients[0]['quantity'], 2.0)

    def test_create_requires_product_and_liters(self):
        with self.assertRaises(ValidationError):
            ProductionFormService.create({'liters': 100}, self.manager)
        with self.assertRaises(ValidationError):
            ProductionFormService.create({'productId': 'conito'}, self.manager)

    def test_create_rejects_invalid_liters(self):
        for liters in ['abc', 0, -5, 'NaN']:
            with self.assertRaises(ValidationError, msg=liters):
                ProductionFormService.create({'productId': 'conito', 'liters': liters}, self.manager)

    def test_create_rejects_liters_that_round_to_zero(self):
        with self.assertRaises(ValidationError):
            ProductionFormService.create({'productId': 'conito', 'liters': '0.004'}, self.manager)
        self.assertFalse(ProductionForm.objects.exists())

        form = self.create_form(liters='0.016')
        self.assertEqual(form.liters, Decimal('0.02'))
        self.assertTrue(form.ingredients)

    def test_create_rejects_unknown_field(self):
        with self.assertRaises(ValidationError):
            self.create_form(favoriteColor='blue')

    def test_unknown_product_keeps_empty_ingredients(self):
        form = self.create_form(productId='helado-de-fresa')
        self.assertEqual(form.ingredients, [])
        self.assertFalse(form.ingredients_derived)

    def test_unknown_product_accepts_manual_ingredients(self):
        form = self.create_form(productId='desconocido', liters=10, ingredients=[{'name': 'Agua', 'quantity': 1}])
        form.refresh_from_db()
        self.assertEqual(form.ingredients, [{'name': 'Agua', 'quantity': 1.0, 'unit': 'kg'}])

    def test_catalog_recipe_overrides_supplied_ingredients(self):
        form = self.create_form(ingredients=[{'name': 'Agua', 'quantity': 1}])
        self.assertTrue(form.ingredients_derived)
        self.assertEqual(form.ingredients[0]['name'], 'Leche de Vaca')

    def test_supplied_folio_taken_between_check_and_save(self):
        self.create_form(folio='LOTE-77')
        unchecked = mock.Mock(**{'return_value.exists.return_value': False})
        with mock.patch.object(ProductionForm.objects, 'filter', unchecked):
            with self.assertRaises(ValidationError) as ctx:
                self.create_form(folio='LOTE-77')
        self.assertIn('LOTE-77', str(ctx.exception))
        self.assertEqual(ProductionForm.objects.count(), 1)

    def test_create_logs_activity(self):
        form = self.create_form()
        log = ActivityLog.objects.get(action=ActivityActionChoices.CREATED, resource_id=form.id)
        self.assertEqual(log.user, self.manager)
        self.assertEqual(log.details['folio'], form.folio)


class UpdateFieldTest(ProductionFormServiceTestBase):

    def test_operator_cannot_edit_folio(self):
        form = self.create_form()
        with self.assertRaises(WorkflowPermissionError):
            ProductionFormService.update_field(form.id, 'folio', 'HACK-1', self.operator)
        form.refresh_from_db()
        self.assertEqual(form.folio, 'PR-0001')

    def test_folio_not_editable_through_field_updates(self):
        form = self.create_form()
        with self.assertRaises(ValidationError):
            ProductionFormService.update_field(form.id, 'folio', 'PR-9999', self.manager)

    def test_liters_change_rescales_ingredients(self):
        form = self.create_form()
        form = ProductionFormService.update_field(form.id, 'liters', '100', self.manager)
        self.assertEqual(form.ingredients[0]['quantity'], 50.0)
        form.refresh_from_db()
        self.assertEqual(form.ingredients[0]['quantity'], 50.0)

    def test_product_change_replaces_ingredients(self):
        form = self.create_form()
        form = ProductionFormService.update_field(form.id, 'productId', 'coro', self.manager)
        self.assertEqual(
            [row['name'] for row in form.ingredients],
            ['Leche de Vaca', 'Leche de Cabra', 'Azúcar', 'Bicarbonato']
        )
        self.assertEqual(form.ingredients[1]['quantity'], 400.0)
        self.assertEqual(len(form.ingredient_times), 4)

    def test_derivation_is_idempotent(self):
        form = self.create_form()
        first = list(form.ingredients)
        form = ProductionFormService.update_field(form.id, 'liters', 500, self.manager)
        second = list(form.ingredients)
        form = ProductionFormService.update_field(form.id, 'liters', '500.00', self.manager)
        self.assertEqual(first, second)
        self.assertEqual(second, form.ingredients)

    def test_ingredients_not_editable_once_derived(self):
        form = self.create_form()
        with self.assertRaises(ValidationError):
            ProductionFormService.update_field(
                form.id, 'ingredients', [{'name': 'Agua', 'quantity': 1, 'unit': 'kg'}], self.manager
            )

    def test_ingredients_editable_when_no_recipe_applies(self):
        form = self.create_form(productId='desconocido')
        form = ProductionFormService.update_field(
            form.id, 'ingredients', [{'name': 'Agua', 'quantity': '2.5', 'unit': 'l'}], self.manager
        )
        self.assertEqual(form.ingredients, [{'name': 'Agua', 'quantity': 2.5, 'unit': 'l'}])
        form = ProductionFormService.update_field(form.id, 'ingredientTimes[0]', '09:15', self.manager)
        self.assertEqual(form.ingredient_times, ['09:15'])

    def test_operator_cannot_edit_ingredients(self):
        form = self.create_form(productId='desconocido')
        with self.assertRaises(WorkflowPermissionError):
            ProductionFormService.update_field(
                form.id, 'ingredients', [{'name': 'Agua', 'quantity': 1}], self.operator
            )

    def test_operator_fills_process_tracking_cell(self):
        form = self.create_form()
        form = ProductionFormService.update_field(form.id, 'temperature[2]', 85, self.operator)
        self.assertEqual(form.temperature, ['', '', '85', '', '', '', ''])
        self.assertEqual(form.last_updated_by, self.operator)

    def test_array_cell_out_of_range(self):
        form = self.create_form()
        with self.assertRaises(ValidationError):
            ProductionFormService.update_field(form.id, 'temperature[7]', 85, self.operator)

    def test_whole_array_is_padded(self):
        form = self.create_form()
        form = ProductionFormService.update_field(form.id, 'brix', ['60', '62'], self.operator)
        self.assertEqual(form.brix, ['60', '62', '', '', '', '', '', ''])
        with self.assertRaises(ValidationError):
            ProductionFormService.update_field(form.id, 'pressure', ['1'] * 8, self.operator)

    def test_strainer_state_values(self):
        form = self.create_form()
        form = ProductionFormService.update_field(form.id, 'startState', 'Good', self.quality)
        self.assertEqual(form.start_state, 'good')
        with self.assertRaises(ValidationError):
            ProductionFormService.update_field(form.id, 'endState', 'regular', self.quality)

    def test_extension_fields(self):
        form = self.create_form()
        form = ProductionFormService.update_field(form.id, 'extra.observaciones', 'Sin novedad', self.manager)
        self.assertEqual(form.extra_data['observaciones'], 'Sin novedad')
        form = ProductionFormService.update_field(form.id, 'extra.observaciones', None, self.manager)
        self.assertNotIn('observaciones', form.extra_data)

    def test_superadmin_edits_liberation_data(self):
        form = self.create_form()
        form = ProductionFormService.update_field(form.id, 'cP', '1500', self.superadmin)
        self.assertEqual(form.c_p, '1500')

    def test_quality_cannot_edit_process_tracking(self):
        form = self.create_form()
        with self.assertRaises(WorkflowPermissionError):
            ProductionFormService.update_field(form.id, 'startTime', '08:00', self.quality)

    def test_batch_is_rejected_as_a_whole(self):
        """One forbidden field rejects the batch and nothing is applied"""
        form = self.create_form()
        with self.assertRaises(WorkflowPermissionError):
            ProductionFormService.update_fields(
                form.id, {'startTime': '08:00', 'finalBrix': '68'}, self.operator
            )
        form.refresh_from_db()
        self.assertEqual(form.start_time, '')
        self.assertEqual(form.final_brix, '')

    def test_missing_form(self):
        with self.assertRaises(ProductionFormNotFound):
            ProductionFormService.update_field(9999, 'responsible', 'Juan', self.manager)

    def test_unknown_field(self):
        form = self.create_form()
        with self.assertRaises(ValidationError):
            ProductionFormService.update_field(form.id, 'temperatura', '80', self.operator)


class AutoAdvanceTest(ProductionFormServiceTestBase):

    def test_general_info_starts_process(self):
        form = self.create_form()
        form = ProductionFormService.update_field(form.id, 'responsible', 'Juan', self.manager)
        self.assertEqual(form.status, Status.DRAFT)
        form = ProductionFormService.update_field(form.id, 'lotNumber', 'L-001', self.manager)
        self.assertEqual(form.status, Status.IN_PROGRESS)

        history = ProductionFormStatusHistory.objects.get(form=form)
        self.assertTrue(history.automatic)
        self.assertEqual(history.trigger_field, 'lot_number')
        self.assertEqual(history.from_status, Status.DRAFT)

    def test_operator_process_data_sends_to_review(self):
        form = self.move_to(self.create_form(), Status.IN_PROGRESS)
        form = ProductionFormService.update_field(form.id, 'startTime', '08:15', self.operator)
        self.assertEqual(form.status, Status.PENDING_REVIEW)

    def test_operator_on_draft_stays_in_draft(self):
        form = self.create_form()
        form = ProductionFormService.update_field(form.id, 'pressure[0]', '1.2', self.operator)
        self.assertEqual(form.status, Status.DRAFT)

    def test_quality_liberation_completes(self):
        form = self.move_to(self.create_form(), Status.PENDING_REVIEW)
        form = ProductionFormService.update_field(form.id, 'yield', '480', self.quality)
        self.assertEqual(form.status, Status.COMPLETED)
        form.refresh_from_db()
        self.assertEqual(form.status, Status.COMPLETED)
        self.assertEqual(form.yield_amount, '480')

    def test_completed_keeps_liberation_value(self):
        form = self.move_to(self.create_form(), Status.COMPLETED)
        with self.assertRaises(ValidationError):
            ProductionFormService.update_field(form.id, 'finalBrix', '', self.quality)
        form.refresh_from_db()
        self.assertEqual(form.final_brix, '68')
        self.assertEqual(form.status, Status.COMPLETED)

    def test_completed_remains_editable(self):
        form = self.move_to(self.create_form(), Status.COMPLETED)
        form = ProductionFormService.update_field(form.id, 'cmConsistometer', '5.5', self.quality)
        self.assertEqual(form.status, Status.COMPLETED)
        self.assertEqual(form.cm_consistometer, '5.5')


class ChangeStatusTest(ProductionFormServiceTestBase):

    def test_quality_cannot_complete_in_progress_form(self):
        form = self.move_to(self.create_form(), Status.IN_PROGRESS)
        with self.assertRaises(WorkflowPermissionError):
            ProductionFormService.change_status(form.id, Status.COMPLETED, self.quality)
        form.refresh_from_db()
        self.assertEqual(form.status, Status.IN_PROGRESS)

    def test_return_to_production(self):
        form = self.move_to(self.create_form(), Status.PENDING_REVIEW)
        form = ProductionFormService.change_status(form.id, Status.IN_PROGRESS, self.quality)
        self.assertEqual(form.status, Status.IN_PROGRESS)
        self.assertEqual(form.last_updated_by, self.quality)

    def test_manual_approve_requires_liberation_data(self):
        form = self.move_to(self.create_form(), Status.PENDING_REVIEW)
        with self.assertRaises(ValidationError):
            ProductionFormService.change_status(form.id, Status.COMPLETED, self.quality)

        # Scalar edits made by production do not complete the form
        ProductionFormService.update_field(form.id, 'yield', '480', self.manager)
        form = ProductionFormService.change_status(form.id, Status.COMPLETED, self.quality)
        self.assertEqual(form.status, Status.COMPLETED)

    def test_operator_cannot_start_process(self):
        form = self.create_form()
        with self.assertRaises(WorkflowPermissionError):
            ProductionFormService.change_status(form.id, Status.IN_PROGRESS, self.operator)

    def test_invalid_status(self):
        form = self.create_form()
        with self.assertRaises(ValidationError):
            ProductionFormService.change_status(form.id, 'archived', self.manager)

    def test_history_is_recorded(self):
        form = self.move_to(self.create_form(), Status.PENDING_REVIEW)
        transitions = list(
            form.status_history.order_by('id').values_list('transition', 'automatic')
        )
        self.assertEqual(transitions, [('start_process', False), ('send_to_review', False)])


class FolioAndDeleteTest(ProductionFormServiceTestBase):

    def test_quality_can_change_folio(self):
        form = self.create_form()
        form = ProductionFormService.update_folio(form.id, ' PR-0100 ', self.quality)
        self.assertEqual(form.folio, 'PR-0100')
        self.assertTrue(ActivityLog.objects.filter(action=ActivityActionChoices.FOLIO_CHANGED).exists())

    def test_operator_cannot_change_folio(self):
        form = self.create_form()
        with self.assertRaises(WorkflowPermissionError):
            ProductionFormService.update_folio(form.id, 'PR-0100', self.operator)

    def test_folio_must_stay_unique(self):
        first = self.create_form()
        second = self.create_form()
        with self.assertRaises(ValidationError):
            ProductionFormService.update_folio(second.id, first.folio, self.superadmin)

    def test_issued_folio_skips_manual_ones(self):
        self.create_form(folio='PR-0001')
        form = self.create_form()
        self.assertEqual(form.folio, 'PR-0002')

    def test_folio_taken_between_check_and_save(self):
        first = self.create_form()
        second = self.create_form()
        unchecked = mock.Mock(**{'return_value.exclude.return_value.exists.return_value': False})
        with mock.patch.object(ProductionForm.objects, 'filter', unchecked):
            with self.assertRaises(ValidationError):
                ProductionFormService.update_folio(second.id, first.folio, self.superadmin)
        second.refresh_from_db()
        self.assertEqual(second.folio, 'PR-0002')

    def test_folio_length_is_checked(self):
        form = self.create_form()
        with self.assertRaises(ValidationError):
            ProductionFormService.update_folio(form.id, 'F' * 51, self.superadmin)
        with self.assertRaises(ValidationError):
            ProductionFormService.update_folio(form.id, '   ', self.superadmin)

    def test_only_superadmin_deletes(self):
        form = self.create_form()
        with self.assertRaises(WorkflowPermissionError):
            ProductionFormService.delete(form.id, self.manager)

        ProductionFormService.delete(form.id, self.superadmin)
        self.assertFalse(ProductionForm.objects.filter(id=form.id).exists())
        self.assertTrue(
            ActivityLog.objects.filter(action=ActivityActionChoices.DELETED, resource_id=form.id).exists()
        )

    def test_delete_missing_form(self):
        with self.assertRaises(ProductionFormNotFound):
            ProductionFormService.delete(9999, self.superadmin)


class RemoteDerivationTest(ProductionFormServiceTestBase):
    """Recipe store strategy through the service"""

    def remote_settings(self):
        return self.settings(FORMCAPTURE_SETTINGS={
            **settings.FORMCAPTURE_SETTINGS,
            'RECIPE_SOURCE': 'remote',
            'RECIPE_SERVICE_URL': 'http://recipes.local/api',
        })

    def test_remote_failure_keeps_previous_ingredients(self):
        form = self.create_form()
        previous = list(form.ingredients)

        with self.remote_settings(), mock.patch('requests.get', side_effect=requests.Timeout('timed out')):
            form = ProductionFormService.update_field(form.id, 'liters', '100', self.manager)

        self.assertEqual(form.liters, Decimal('100.00'))
        self.assertEqual(form.ingredients, previous)
        self.assertFalse(form.ingredients_derived)

        form = ProductionFormService.update_field(
            form.id, 'ingredients[0]', {'name': 'Leche de Vaca', 'quantity': 50}, self.manager
        )
        self.assertEqual(form.ingredients[0]['quantity'], 50.0)

    def test_remote_success_replaces_ingredients(self):
        form = self.create_form()
        response = mock.Mock()
        response.raise_for_status.return_value = None
        response.json.return_value = {
            'recipeName': 'Conito',
            'ingredients': [
                {'name': 'Leche de Vaca', 'quantity': '50.000', 'unit': 'kg'},
                {'name': 'Azúcar', 'quantity': '20.000', 'unit': 'kg'},
            ],
        }

        with self.remote_settings(), mock.patch('requests.get', return_value=response) as get:
            form = ProductionFormService.update_field(form.id, 'liters', '100', self.manager)

        get.assert_called_once()
        self.assertEqual(get.call_args.args[0], 'http://recipes.local/api/products/conito/recipe/')
        self.assertEqual(get.call_args.kwargs['params'], {'liters': '100.00'})
        self.assertEqual(form.ingredients, [
            {'name': 'Leche de Vaca', 'quantity': 50.0, 'unit': 'kg'},
            {'name': 'Azúcar', 'quantity': 20.0, 'unit': 'kg'},
        ])
        self.assertEqual(form.extra_data['ingredient_labels']['material_1'], 'Azúcar')
        self.assertEqual(len(form.ingredient_times), 2)


class ConcurrentCreateTest(TransactionTestCase):
    """Parallel creates each get their own folio on any backend"""

    workers = 6

    def setUp(self):
        self.manager = create_user('gerente_produccion')

    def test_parallel_creates_issue_distinct_folios(self):
        folios = []
        errors = []
        lock = threading.Lock()
        start = threading.Barrier(self.workers)

        def create():
            try:
                start.wait()
                # lock contention from the backend is retried, never a duplicate
                for _ in range(50):
                    try:
                        form = ProductionFormService.create({'productId': 'conito', 'liters': 100}, self.manager)
                    except (OperationalError, ConcurrencyConflict):
                        time.sleep(random.uniform(0.01, 0.05))
                        continue
                    with lock:
                        folios.append(form.folio)
                    return
                errors.append('gave up after repeated lock errors')
            except Exception as e:
                errors.append(e)
            finally:
                connection.close()

        threads = [threading.Thread(target=create) for _ in range(self.workers)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(errors, [])
        self.assertEqual(len(folios), self.workers)
        self.assertEqual(len(set(folios)), self.workers)
        self.assertEqual(
            sorted(ProductionForm.objects.values_list('folio', flat=True)),
            sorted(folios)
        )
