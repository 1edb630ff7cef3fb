"""
Recipe Derivation Service
Recomputes a production form's ingredient list from product and liters.

Two strategies are available: the built-in catalog (canonical) and the remote
recipe store. The configured one is used; it never runs both.
"""
import logging

import requests as http
from django.conf import settings

from products.catalog import get_recipe
from products.recipe_calculator import RecipeCalculator
from utils.enums import RecipeSourceChoices
from .exceptions import DerivationFailure

logger = logging.getLogger(__name__)


class CatalogRecipeStrategy:
    """quantity = liter factor x liters, using the built-in catalog"""
    name = RecipeSourceChoices.CATALOG

    def derive(self, product_code, liters):
        recipe = get_recipe(product_code)
        if recipe is None:
            raise DerivationFailure(f"No catalog recipe for product {product_code}", product_code, liters)
        try:
            ingredients = RecipeCalculator.scale_by_liters(recipe['ingredients'], liters)
        except ValueError as e:
            raise DerivationFailure(str(e), product_code, liters)
        return ingredients, {}


class RemoteRecipeStrategy:
    """
    Asks the recipe store for a recipe computed for (product, liters).

    Any transport error, timeout, non-2xx answer or malformed payload is
    reported as DerivationFailure.
    """
    name = RecipeSourceChoices.REMOTE

    def __init__(self, base_url=None, timeout=None, session=None):
        config = settings.FORMCAPTURE_SETTINGS
        self.base_url = (base_url or config.get('RECIPE_SERVICE_URL', '')).rstrip('/')
        self.timeout = timeout or config.get('RECIPE_SERVICE_TIMEOUT', 5)
        self.session = session or http

    def derive(self, product_code, liters):
        url = f"{self.base_url}/products/{product_code}/recipe/"
        try:
            response = self.session.get(url, params={'liters': str(liters)}, timeout=self.timeout)
            response.raise_for_status()
            payload = response.json()
        except (http.RequestException, ValueError) as e:
            raise DerivationFailure(f"Recipe store request failed: {e}", product_code, liters)

        rows = payload.get('ingredients') if isinstance(payload, dict) else None
        if not isinstance(rows, list):
            raise DerivationFailure("Recipe store answered without an ingredient list", product_code, liters)

        ingredients = []
        labels = {}
        try:
            for position, row in enumerate(rows):
                quantity = RecipeCalculator.round_quantity(RecipeCalculator.to_decimal(row['quantity']))
                ingredient = {
                    'name': row['name'],
                    'quantity': float(quantity),
                    'unit': row.get('unit') or 'kg',
                }
                ingredients.append(ingredient)
                labels[f'material_{position}'] = ingredient['name']
                labels[f'quantity_{position}'] = f"{quantity}"
                labels[f'unit_{position}'] = ingredient['unit']
        except (KeyError, TypeError, ValueError) as e:
            raise DerivationFailure(f"Malformed recipe store ingredient: {e}", product_code, liters)

        labels['recipe_name'] = payload.get('recipeName', '')
        return ingredients, labels


STRATEGIES = {
    RecipeSourceChoices.CATALOG: CatalogRecipeStrategy,
    RecipeSourceChoices.REMOTE: RemoteRecipeStrategy,
}


def get_strategy(source=None):
    source = source or settings.FORMCAPTURE_SETTINGS.get('RECIPE_SOURCE', RecipeSourceChoices.CATALOG)
    try:
        return STRATEGIES[source]()
    except KeyError:
        raise ValueError(f"Unknown recipe source: {source}")


class RecipeDerivationService:

    @staticmethod
    def compute(product_code, liters, strategy=None):
        """
        Ingredient list for (product, liters), raising DerivationFailure
        """
        strategy = strategy or get_strategy()
        return strategy.derive(product_code, liters)

    @staticmethod
    def apply(form, strategy=None):
        """
        Replace ``form.ingredients`` with the derived list.

        Fail-soft: on DerivationFailure the previous ingredients stay in place,
        become editable by hand and False is returned. Nothing is saved here.
        """
        if not form.product_code or form.liters is None or form.liters <= 0:
            return False

        strategy = strategy or get_strategy()
        try:
            ingredients, labels = strategy.derive(form.product_code, form.liters)
        except DerivationFailure as e:
            logger.warning(
                f"Recipe derivation ({strategy.name}) failed for {form.product_code} / {form.liters} L: {e}"
            )
            form.ingredients_derived = False
            return False

        form.ingredients = ingredients
        form.ingredients_derived = True
        if len(form.ingredient_times or []) != len(ingredients):
            times = list(form.ingredient_times or [])[:len(ingredients)]
            form.ingredient_times = times + [''] * (len(ingredients) - len(times))

        extra = dict(form.extra_data or {})
        if labels:
            extra['ingredient_labels'] = labels
        else:
            extra.pop('ingredient_labels', None)
        form.extra_data = extra

        logger.info(f"Derived {len(ingredients)} ingredients for {form.product_code} / {form.liters} L via {strategy.name}")
        return True
