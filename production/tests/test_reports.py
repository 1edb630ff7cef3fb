from django.test import TestCase

from production.reports import build_production_view, field_label, unknown_fields
from production.services import ProductionFormService
from .helpers import create_user


class ProductionReportTest(TestCase):

    def setUp(self):
        self.manager = create_user('gerente_produccion')
        self.operator = create_user('produccion')
        self.first = ProductionFormService.create(
            {'productId': 'conito', 'liters': 100, 'lotNumber': 'L-1'}, self.manager
        )
        self.second = ProductionFormService.create({'productId': 'coro', 'liters': 20}, self.manager)
        ProductionFormService.update_field(self.first.id, 'temperature[1]', '90', self.operator)
        self.first.refresh_from_db()

    def test_columns_follow_selection_and_order(self):
        view = build_production_view(
            [self.first, self.second],
            ['lotNumber', 'liters', 'temperature[1]'],
            {'temperature[1]': 0, 'lotNumber': 1},
        )
        self.assertEqual([c['id'] for c in view.columns], ['temperature[1]', 'lotNumber', 'liters'])
        self.assertEqual(view.rows[0], ['90', 'L-1', '100'])
        self.assertEqual(view.rows[1], ['', '', '20'])
        self.assertEqual(view.metadata[0]['folio'], self.first.folio)

    def test_ingredients_column(self):
        view = build_production_view([self.second], ['ingredients'])
        self.assertTrue(view.rows[0][0].startswith('Leche de Vaca: 4.0 kg'))

    def test_view_does_not_modify_forms(self):
        before = self.first.updated_at
        build_production_view([self.first], ['extra.missing', 'brix[0]'])
        self.first.refresh_from_db()
        self.assertEqual(self.first.updated_at, before)

    def test_labels(self):
        self.assertEqual(field_label('lotNumber'), 'Lot number')
        self.assertEqual(field_label('temperature[0]'), 'Temperature 1')
        self.assertEqual(field_label('extra.sample_code'), 'Sample code')

    def test_unknown_fields(self):
        self.assertEqual(unknown_fields(['liters', 'sabor', 'brix[2]']), ['sabor'])
