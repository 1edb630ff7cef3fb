from django.contrib.auth import get_user_model
from django.contrib.auth.models import AnonymousUser
from django.test import SimpleTestCase

from production.sections import (
    SECTION_ALLOWED_ROLES, resolve_field, section_for_field, can_edit_section,
    section_permissions, fields_in_section
)
from production.roles import map_user_role
from utils.enums import ProductionSectionChoices as Section, UserRoleChoices

User = get_user_model()


class SectionPermissionGateTest(SimpleTestCase):

    def test_gate_matches_allowed_roles_table(self):
        """Every non-superadmin role can edit exactly the sections listing its workflow role"""
        for raw_role in UserRoleChoices.values:
            if raw_role == UserRoleChoices.SUPERADMIN:
                continue
            user = User(role=raw_role)
            for section in Section:
                expected = map_user_role(raw_role) in SECTION_ALLOWED_ROLES[section]
                self.assertEqual(
                    can_edit_section(user, section), expected,
                    f"{raw_role} on {section}"
                )

    def test_superadmin_bypasses_table(self):
        user = User(role='superadmin')
        for section in Section:
            self.assertTrue(can_edit_section(user, section))

    def test_read_only_denies_everyone(self):
        for raw_role in UserRoleChoices.values:
            user = User(role=raw_role)
            for section in Section:
                self.assertFalse(can_edit_section(user, section, read_only=True))

    def test_anonymous_denied(self):
        self.assertFalse(can_edit_section(AnonymousUser(), Section.PROCESS_TRACKING))
        self.assertFalse(can_edit_section(None, Section.PROCESS_TRACKING))

    def test_unknown_section_denied(self):
        self.assertFalse(can_edit_section(User(role='gerente_produccion'), 'laboratory'))

    def test_operator_permissions_map(self):
        permissions = section_permissions(User(role='produccion'))
        self.assertEqual(permissions, {
            'general-info': False,
            'raw-materials': False,
            'process-tracking': True,
            'quality-verification': True,
            'product-destination': True,
            'final-strainer': False,
            'liberation-data': False,
        })


class FieldResolutionTest(SimpleTestCase):

    def test_aliases(self):
        self.assertEqual(resolve_field('lotNumber').name, 'lot_number')
        self.assertEqual(resolve_field('productId').name, 'product_code')
        self.assertEqual(resolve_field('yield').name, 'yield_amount')
        self.assertEqual(resolve_field('cP').name, 'c_p')

    def test_array_cell(self):
        ref = resolve_field('temperature[3]')
        self.assertEqual(ref.name, 'temperature')
        self.assertEqual(ref.index, 3)
        self.assertEqual(ref.length, 7)
        self.assertEqual(ref.section, Section.PROCESS_TRACKING)

    def test_index_on_scalar_rejected(self):
        self.assertIsNone(resolve_field('responsible[0]'))

    def test_extra_field(self):
        ref = resolve_field('extra.observaciones')
        self.assertEqual(ref.kind, 'extra')
        self.assertEqual(ref.extra_key, 'observaciones')
        self.assertIsNone(resolve_field('extra.'))

    def test_unknown_field(self):
        self.assertIsNone(resolve_field('favorite_color'))
        self.assertIsNone(resolve_field(''))
        self.assertIsNone(resolve_field(None))

    def test_section_for_field(self):
        self.assertEqual(section_for_field('folio'), Section.GENERAL_INFO)
        self.assertEqual(section_for_field('finalBrix'), Section.LIBERATION_DATA)
        self.assertEqual(section_for_field('startState'), Section.FINAL_STRAINER)
        self.assertEqual(section_for_field('destinationKilos[1]'), Section.PRODUCT_DESTINATION)

    def test_quality_arrays_share_length(self):
        lengths = {resolve_field(name).length for name in fields_in_section(Section.QUALITY_VERIFICATION)
                   if resolve_field(name).kind == 'array'}
        self.assertEqual(lengths, {8})
