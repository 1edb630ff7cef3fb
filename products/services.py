"""
Recipe Store Service
Serves stored recipes scaled to a requested volume and keeps the store in
sync with the built-in catalog.
"""
import logging
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import transaction

from .catalog import RECIPE_CATALOG
from .models import Product, ProductRecipe, RecipeIngredient
from .recipe_calculator import RecipeCalculator

logger = logging.getLogger(__name__)

DEFAULT_BASE_LITERS = Decimal('100')


class RecipeStoreService:

    @staticmethod
    def get_product(identifier):
        """Look a product up by numeric id or by code"""
        identifier = str(identifier).strip()
        try:
            if identifier.isdigit():
                return Product.objects.get(id=int(identifier))
            return Product.objects.get(code=identifier.lower())
        except Product.DoesNotExist:
            raise ValidationError(f"Product {identifier} not found")

    @staticmethod
    def compute_recipe(product, liters):
        """
        Active recipe of ``product`` scaled to ``liters``.

        Returns:
            {
                'recipeId', 'recipeName', 'baseLiters', 'targetLiters',
                'ingredients': [{'name', 'quantity', 'unit'}]
            }
            Quantities are strings with 3 decimals, always in kg.
        """
        try:
            target_liters = RecipeCalculator.to_decimal(liters)
        except ValueError:
            raise ValidationError("liters must be a number")
        if target_liters <= 0:
            raise ValidationError("liters must be greater than 0")

        recipe = product.active_recipe
        if recipe is None:
            raise ValidationError(f"Product {product.code} has no active recipe")

        ingredients = [
            {
                'name': ingredient.material_name,
                'quantity': str(RecipeCalculator.scale_from_base(
                    ingredient.quantity, ingredient.unit, recipe.base_liters, target_liters
                )),
                'unit': 'kg',
            }
            for ingredient in recipe.ingredients.all()
        ]

        return {
            'recipeId': recipe.id,
            'recipeName': recipe.name,
            'baseLiters': float(recipe.base_liters),
            'targetLiters': float(target_liters),
            'ingredients': ingredients,
        }

    @staticmethod
    def sync_catalog(base_liters=DEFAULT_BASE_LITERS, skip_zero=False):
        """
        Write the built-in catalog into the recipe store.

        Existing recipes with the same name are replaced so the command can be
        re-run safely.

        Returns:
            (products_created, recipes_written)
        """
        products_created = 0
        recipes_written = 0

        with transaction.atomic():
            for code, entry in RECIPE_CATALOG.items():
                product, created = Product.objects.get_or_create(
                    code=code,
                    defaults={'name': entry['name']}
                )
                if created:
                    products_created += 1

                recipe, _ = ProductRecipe.objects.update_or_create(
                    product=product,
                    name=entry['name'],
                    defaults={'base_liters': base_liters, 'is_active': True}
                )
                recipe.ingredients.all().delete()

                rows = []
                for order, row in enumerate(entry['ingredients'], start=1):
                    if skip_zero and row['factor'] == 0:
                        continue
                    rows.append(RecipeIngredient(
                        recipe=recipe,
                        material_name=row['name'],
                        quantity=row['factor'] * base_liters,
                        unit=row['unit'],
                        display_order=order,
                    ))
                RecipeIngredient.objects.bulk_create(rows)
                recipes_written += 1

        logger.info(f"Recipe catalog synced: {products_created} products created, {recipes_written} recipes written")
        return products_created, recipes_written
