"""
Production Form Service
Single entry point for every mutation of a production form: permission gate,
field update, recipe derivation, status transitions and audit, all inside one
transaction per call.
"""
import logging
from datetime import date as date_type
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import transaction, IntegrityError
from django.utils import timezone
from django.utils.dateparse import parse_date

from form_entries.activity import log_activity
from form_entries.folios import FolioService, PRODUCTION_FORM_SCOPE
from products.recipe_calculator import RecipeCalculator
from utils.enums import (
    ProductionFormStatusChoices as Status, StrainerStateChoices,
    WorkflowRoleChoices, ActivityActionChoices, UserRoleChoices
)
from .exceptions import WorkflowPermissionError, ProductionFormNotFound
from .models import ProductionForm, ProductionFormStatusHistory
from .recipe_service import RecipeDerivationService
from .roles import user_workflow_role, role_in, is_superadmin
from .sections import resolve_field, can_edit_section
from .transitions import manual_transition, check_manual_guard, auto_transition, liberation_recorded

logger = logging.getLogger(__name__)

RESOURCE_TYPE = 'production_form'
DERIVATION_FIELDS = ('product_code', 'liters')
LITERS_PLACES = Decimal('0.01')
MAX_LITERS = Decimal('100000000')


def _config(key, default):
    return settings.FORMCAPTURE_SETTINGS.get(key, default)


class ProductionFormService:
    """
    Central service for the production form workflow
    """

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    @staticmethod
    def get_form(form_id, lock=False):
        queryset = ProductionForm.objects.all()
        if lock:
            queryset = queryset.select_for_update()
        try:
            return queryset.get(id=form_id)
        except (ProductionForm.DoesNotExist, ValueError, TypeError):
            raise ProductionFormNotFound()

    # ------------------------------------------------------------------
    # Field handling
    # ------------------------------------------------------------------

    @staticmethod
    def resolve(field):
        ref = resolve_field(field)
        if ref is None:
            raise ValidationError(f"Unknown production form field: {field}")
        return ref

    @staticmethod
    def check_section(user, ref):
        if not can_edit_section(user, ref.section):
            logger.warning(
                f"User {getattr(user, 'email', 'anonymous')} ({getattr(user, 'role', '')}) "
                f"denied edit of {ref!r} in section {ref.section}"
            )
            raise WorkflowPermissionError(f"Your role cannot edit the {ref.section} section")

    @staticmethod
    def _text(ref, value):
        if value is None:
            return ''
        if isinstance(value, (dict, list, tuple)):
            raise ValidationError(f"{ref.name} expects a single value")
        text = str(value).strip()
        max_length = ProductionForm._meta.get_field(ref.name).max_length
        if max_length and len(text) > max_length:
            raise ValidationError(f"{ref.name} cannot be longer than {max_length} characters")
        return text

    @staticmethod
    def _cell(value):
        if value is None:
            return ''
        if isinstance(value, (dict, list, tuple)):
            raise ValidationError("Table cells must be single values")
        return str(value)

    @staticmethod
    def _ingredient(value):
        if not isinstance(value, dict) or not value.get('name'):
            raise ValidationError("Ingredients need at least a name")
        try:
            quantity = RecipeCalculator.round_quantity(RecipeCalculator.to_decimal(value.get('quantity', 0)))
        except ValueError:
            raise ValidationError(f"Invalid quantity for ingredient {value.get('name')}")
        return {'name': str(value['name']), 'quantity': float(quantity), 'unit': value.get('unit') or 'kg'}

    @staticmethod
    def _array_length(form, ref):
        if ref.length:
            return ref.length
        if ref.name == 'ingredient_times':
            return len(form.ingredients or [])
        return None

    @staticmethod
    def apply_value(form, ref, value, allow_folio=False):
        """
        Validate ``value`` for ``ref`` and assign it on ``form`` in memory.
        """
        if ref.kind == 'extra':
            extra = dict(form.extra_data or {})
            if value is None:
                extra.pop(ref.extra_key, None)
            else:
                extra[ref.extra_key] = value
            form.extra_data = extra
            return

        if ref.name == 'folio' and not allow_folio:
            raise ValidationError("The folio can only be changed through folio management")

        if ref.kind == 'ingredients':
            if form.ingredients_derived:
                raise ValidationError("Ingredients are derived from the product recipe and cannot be edited")
            if ref.is_cell:
                rows = list(form.ingredients or [])
                if ref.index >= len(rows):
                    raise ValidationError(f"Ingredient row {ref.index} does not exist")
                rows[ref.index] = ProductionFormService._ingredient(value)
                form.ingredients = rows
            else:
                if not isinstance(value, list):
                    raise ValidationError("Ingredients must be a list")
                form.ingredients = [ProductionFormService._ingredient(row) for row in value]
            return

        if ref.kind == 'array':
            length = ProductionFormService._array_length(form, ref)
            current = list(getattr(form, ref.name) or [])
            if length is not None:
                current = (current + [''] * length)[:length]
            if ref.is_cell:
                if length is not None and ref.index >= length:
                    raise ValidationError(f"{ref.name} has only {length} rows")
                if length is None and ref.index >= len(current):
                    current += [''] * (ref.index + 1 - len(current))
                current[ref.index] = ProductionFormService._cell(value)
            else:
                if not isinstance(value, (list, tuple)):
                    raise ValidationError(f"{ref.name} must be a list")
                if length is not None and len(value) > length:
                    raise ValidationError(f"{ref.name} accepts at most {length} rows")
                current = [ProductionFormService._cell(cell) for cell in value]
                if length is not None:
                    current += [''] * (length - len(current))
            setattr(form, ref.name, current)
            return

        if ref.kind == 'decimal':
            try:
                liters = RecipeCalculator.to_decimal(value)
            except ValueError:
                raise ValidationError("Liters must be a number")
            if not liters.is_finite() or liters <= 0:
                raise ValidationError("Liters must be greater than 0")
            if liters >= MAX_LITERS:
                raise ValidationError(f"Liters must be lower than {MAX_LITERS}")
            liters = liters.quantize(LITERS_PLACES)
            if liters <= 0:
                raise ValidationError(f"Liters must be at least {LITERS_PLACES}")
            setattr(form, ref.name, liters)
            return

        if ref.kind == 'date':
            if value in (None, ''):
                if ref.name == 'date':
                    raise ValidationError("Date is required")
                setattr(form, ref.name, None)
                return
            if isinstance(value, date_type):
                parsed = value
            else:
                try:
                    parsed = parse_date(str(value)[:10])
                except ValueError:
                    parsed = None
            if parsed is None:
                raise ValidationError(f"Invalid date for {ref.name}: {value}")
            setattr(form, ref.name, parsed)
            return

        if ref.kind == 'state':
            text = ProductionFormService._text(ref, value).lower()
            if text and text not in StrainerStateChoices.values:
                raise ValidationError(f"{ref.name} must be one of: {', '.join(StrainerStateChoices.values)}")
            setattr(form, ref.name, text)
            return

        text = ProductionFormService._text(ref, value)
        if ref.name == 'product_code':
            if not text:
                raise ValidationError("Product is required")
            text = text.lower()
        setattr(form, ref.name, text)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    @staticmethod
    def _set_status(form, rule, user, automatic, trigger_field=''):
        from_status = form.status
        form.status = rule.to_status
        ProductionFormStatusHistory.objects.create(
            form=form,
            from_status=from_status,
            to_status=rule.to_status,
            transition=rule.name,
            automatic=automatic,
            trigger_field=trigger_field,
            changed_by=user,
        )
        log_activity(user, ActivityActionChoices.STATUS_CHANGED, RESOURCE_TYPE, form.id, {
            'folio': form.folio,
            'from': from_status,
            'to': rule.to_status,
            'automatic': automatic,
        })
        logger.info(
            f"Production form {form.folio}: {from_status} -> {rule.to_status} "
            f"({'auto' if automatic else 'manual'} {rule.name} by {getattr(user, 'email', 'system')})"
        )

    @staticmethod
    def _auto_advance(form, field_names, user):
        role = user_workflow_role(user)
        for name in field_names:
            rule = auto_transition(form, name, role)
            if rule:
                ProductionFormService._set_status(form, rule, user, automatic=True, trigger_field=name)

    @staticmethod
    def _touch(form, user):
        form.updated_by = user
        form.last_updated_by = user

    @staticmethod
    def _save_with_folio(form):
        """Save, reporting a folio taken by a concurrent request as a validation error"""
        try:
            with transaction.atomic():
                form.save()
        except IntegrityError as e:
            logger.warning(f"Folio {form.folio} collided on save: {e}")
            raise ValidationError(f"Folio {form.folio} already exists")

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    @staticmethod
    def create(initial_fields, user):
        """
        Create a production form in DRAFT.

        Requires a production-manager capable role. The folio is issued from
        the counter unless one is supplied, in which case it must be unique.
        Ingredients are derived when product and liters are present.
        """
        if not isinstance(initial_fields, dict):
            raise ValidationError("Initial fields must be an object")

        if user_workflow_role(user) != WorkflowRoleChoices.PRODUCTION_MANAGER and not is_superadmin(user):
            logger.warning(f"User {getattr(user, 'email', 'anonymous')} tried to create a production form")
            raise WorkflowPermissionError("Only production managers can create production forms")

        refs = [(ProductionFormService.resolve(field), value) for field, value in initial_fields.items()]
        for ref, _ in refs:
            ProductionFormService.check_section(user, ref)

        with transaction.atomic():
            form = ProductionForm(status=Status.DRAFT, date=timezone.localdate(), created_by=user)
            ProductionFormService._touch(form, user)

            # general info first so that ingredient rules see product and liters
            ordered = sorted(refs, key=lambda item: item[0].kind == 'ingredients')
            for ref, value in ordered:
                ProductionFormService.apply_value(form, ref, value, allow_folio=True)

            if not form.product_code:
                raise ValidationError("Product is required")
            if form.liters is None:
                raise ValidationError("Liters are required")

            if form.folio:
                if ProductionForm.objects.filter(folio=form.folio).exists():
                    raise ValidationError(f"Folio {form.folio} already exists")
            else:
                form.folio = FolioService.issue_unique(
                    PRODUCTION_FORM_SCOPE,
                    FolioService.production_folio,
                    lambda candidate: ProductionForm.objects.filter(folio=candidate).exists(),
                )

            RecipeDerivationService.apply(form)
            ProductionFormService._save_with_folio(form)

            log_activity(user, ActivityActionChoices.CREATED, RESOURCE_TYPE, form.id, {
                'folio': form.folio,
                'product': form.product_code,
                'liters': str(form.liters),
            })
            logger.info(f"Production form {form.folio} created by {user.email}")
            return form

    @staticmethod
    def update_field(form_id, field, value, user):
        """
        Apply one field edit.

        Order: section gate, value validation, recipe derivation when product
        or liters changed, auto-advance, save.
        """
        return ProductionFormService.update_fields(form_id, {field: value}, user)

    @staticmethod
    def update_fields(form_id, changes, user):
        """
        Apply several field edits atomically. Every field is permission checked
        before any value is applied.
        """
        if not isinstance(changes, dict) or not changes:
            raise ValidationError("No fields to update")

        refs = [(ProductionFormService.resolve(field), value) for field, value in changes.items()]

        with transaction.atomic():
            form = ProductionFormService.get_form(form_id, lock=True)
            for ref, _ in refs:
                ProductionFormService.check_section(user, ref)

            ordered = sorted(refs, key=lambda item: item[0].kind == 'ingredients')
            for ref, value in ordered:
                ProductionFormService.apply_value(form, ref, value)

            changed_names = [ref.name for ref, _ in refs]
            if any(name in DERIVATION_FIELDS for name in changed_names):
                RecipeDerivationService.apply(form)

            if form.status == Status.COMPLETED and not liberation_recorded(form):
                raise ValidationError("Completed forms must keep final brix, yield or cP")

            ProductionFormService._auto_advance(form, changed_names, user)
            ProductionFormService._touch(form, user)
            form.save()
            return form

    @staticmethod
    def change_status(form_id, new_status, user):
        """
        Manual status change through the transition table.

        Raises WorkflowPermissionError when (role, current status, new status)
        is not an allowed edge; the stored status is left untouched.
        """
        with transaction.atomic():
            form = ProductionFormService.get_form(form_id, lock=True)
            role = user_workflow_role(user)
            try:
                rule = manual_transition(form.status, new_status, role)
            except WorkflowPermissionError:
                logger.warning(
                    f"User {getattr(user, 'email', 'anonymous')} ({role}) denied transition "
                    f"{form.status} -> {new_status} on {form.folio}"
                )
                raise
            check_manual_guard(rule, form)

            ProductionFormService._set_status(form, rule, user, automatic=False)
            ProductionFormService._touch(form, user)
            form.save()
            return form

    @staticmethod
    def update_folio(form_id, new_folio, user):
        """Folio management, limited to FOLIO_EDIT_ROLES"""
        allowed_roles = _config('FOLIO_EDIT_ROLES', [
            UserRoleChoices.SUPERADMIN, UserRoleChoices.CALIDAD, UserRoleChoices.GERENTE_CALIDAD
        ])
        if not role_in(user, allowed_roles):
            raise WorkflowPermissionError("Your role cannot change folios")

        new_folio = ProductionFormService._text(ProductionFormService.resolve('folio'), new_folio)
        if not new_folio:
            raise ValidationError("Folio cannot be empty")

        with transaction.atomic():
            form = ProductionFormService.get_form(form_id, lock=True)
            if ProductionForm.objects.filter(folio=new_folio).exclude(id=form.id).exists():
                raise ValidationError(f"Folio {new_folio} already exists")

            old_folio = form.folio
            form.folio = new_folio
            ProductionFormService._touch(form, user)
            ProductionFormService._save_with_folio(form)

            log_activity(user, ActivityActionChoices.FOLIO_CHANGED, RESOURCE_TYPE, form.id, {
                'from': old_folio,
                'to': new_folio,
            })
            logger.info(f"Production form folio changed from {old_folio} to {new_folio} by {user.email}")
            return form

    @staticmethod
    def delete(form_id, user):
        """Hard delete, limited to DELETE_ALLOWED_ROLES (superadmin by default)"""
        allowed_roles = _config('DELETE_ALLOWED_ROLES', [UserRoleChoices.SUPERADMIN])
        if not role_in(user, allowed_roles):
            raise WorkflowPermissionError("Your role cannot delete production forms")

        with transaction.atomic():
            form = ProductionFormService.get_form(form_id, lock=True)
            folio = form.folio
            form.delete()
            log_activity(user, ActivityActionChoices.DELETED, RESOURCE_TYPE, form_id, {'folio': folio})
            logger.info(f"Production form {folio} deleted by {user.email}")
