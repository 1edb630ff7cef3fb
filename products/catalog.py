"""
Built-in recipe catalog.

Each product lists its ingredients in recipe order with the kilograms
needed per liter of finished product.
"""
from decimal import Decimal


def _ingredients(*rows):
    return [
        {'name': name, 'factor': Decimal(factor), 'unit': 'kg'}
        for name, factor in rows
    ]


_STANDARD_BASE = [
    'Leche de Vaca', 'Leche de Cabra', 'Azúcar', 'Glucosa', 'Malto',
    'Bicarbonato', 'Sorbato', 'Lecitina', 'Carragenina', 'Grasa',
    'Pasta', 'Antiespumante', 'Nuez',
]

RECIPE_CATALOG = {
    'conito': {
        'name': 'Conito',
        'ingredients': _ingredients(*zip(_STANDARD_BASE, [
            '0.5', '0.5', '0.2', '0.2', '0.05', '0.001', '0', '0.0006',
            '0.00025', '0', '0', '0', '0',
        ])),
    },
    'mielmex': {
        'name': 'Mielmex 65° Brix',
        'ingredients': _ingredients(*zip(_STANDARD_BASE, [
            '0.6', '0.4', '0.3', '0.16', '0.04', '0.0015', '0.0005', '0.0004',
            '0.0002', '0', '0', '0', '0',
        ])),
    },
    'coro': {
        'name': 'Coro 68° Brix',
        'ingredients': _ingredients(
            ('Leche de Vaca', '0.2'),
            ('Leche de Cabra', '0.8'),
            ('Azúcar', '0.18'),
            ('Bicarbonato', '0.0016'),
        ),
    },
    'cajeton-tradicional': {
        'name': 'Cajeton Tradicional',
        'ingredients': _ingredients(
            ('Leche de Cabra', '1'),
            ('Azúcar', '0.2'),
            ('Glucosa', '0.27'),
            ('Malto', '0.05'),
            ('Bicarbonato', '0.0016'),
            ('Sorbato', '0.001'),
        ),
    },
    'cajeton-espesa': {
        'name': 'Cajeton Espesa',
        'ingredients': _ingredients(
            ('Leche de Cabra', '1'),
            ('Azúcar', '0.2'),
            ('Glucosa', '0.27'),
            ('Malto', '0.05'),
            ('Bicarbonato', '0.0016'),
            ('Sorbato', '0.001'),
        ),
    },
    'cajeton-esp-chepo': {
        'name': 'Cajeton Esp Chepo',
        'ingredients': _ingredients(
            ('Leche de Cabra', '1'),
            ('Azúcar', '0.2'),
            ('Glucosa', '0.27'),
            ('Malto', '0.05'),
            ('Bicarbonato', '0.0018'),
            ('Sorbato', '0'),
        ),
    },
    'cabri-tradicional': {
        'name': 'Cabri Tradicional',
        'ingredients': _ingredients(
            ('Azúcar', '0.2'),
            ('Glucosa', '0.45'),
            ('Malto', '0.05'),
            ('Bicarbonato', '0.0016'),
            ('Sorbato', '0.001'),
        ),
    },
    'cabri-espesa': {
        'name': 'Cabri Espesa',
        'ingredients': _ingredients(
            ('Azúcar', '0.2'),
            ('Glucosa', '0.45'),
            ('Malto', '0.05'),
            ('Bicarbonato', '0.0016'),
            ('Sorbato', '0.001'),
        ),
    },
    'horneable': {
        'name': 'Horneable',
        'ingredients': _ingredients(
            ('Leche de Vaca', '1'),
            ('Azúcar', '0.2'),
            ('Glucosa', '0.026'),
            ('Malto', '0.02'),
            ('Bicarbonato', '0.001'),
            ('Sorbato', '0.0006'),
            ('Lecitina', '0.0006'),
            ('Carragenina', '0.0036'),
        ),
    },
}


def normalize_product_code(product_code):
    return (product_code or '').strip().lower()


def get_recipe(product_code):
    """Catalog entry for the product, or None"""
    return RECIPE_CATALOG.get(normalize_product_code(product_code))


def list_catalog_products():
    return [
        {'code': code, 'name': entry['name']}
        for code, entry in RECIPE_CATALOG.items()
    ]
