"""
Recipe Calculator Service
Scales recipe factors to the liters requested for a production batch
"""
from decimal import Decimal, InvalidOperation
from typing import Dict, List, Union

QUANTITY_PLACES = Decimal('0.001')
GRAMS_PER_KG = Decimal('1000')


class RecipeCalculator:
    """
    Service class to compute ingredient quantities for a batch
    """

    @staticmethod
    def to_decimal(value: Union[str, int, float, Decimal]) -> Decimal:
        """
        Convert user input to Decimal without float noise.

        Raises:
            ValueError: if the value is not numeric
        """
        if isinstance(value, Decimal):
            return value
        try:
            return Decimal(str(value).strip())
        except (InvalidOperation, TypeError):
            raise ValueError(f"Invalid numeric value: {value}")

    @staticmethod
    def round_quantity(value: Decimal) -> Decimal:
        return value.quantize(QUANTITY_PLACES)

    @staticmethod
    def scale_by_liters(
        ingredients: List[Dict],
        liters: Union[str, int, float, Decimal]
    ) -> List[Dict]:
        """
        Scale per-liter factors to the batch size

        Args:
            ingredients: recipe rows with 'name', 'factor' (kg per liter) and 'unit'
            liters: batch size in liters, must be greater than 0

        Returns:
            Rows in recipe order:
            [{'name': ..., 'quantity': float rounded to 3 places, 'unit': ...}]
        """
        liters = RecipeCalculator.to_decimal(liters)
        if liters <= 0:
            raise ValueError("liters must be greater than 0")

        return [
            {
                'name': row['name'],
                'quantity': float(RecipeCalculator.round_quantity(
                    RecipeCalculator.to_decimal(row['factor']) * liters
                )),
                'unit': row.get('unit', 'kg'),
            }
            for row in ingredients
        ]

    @staticmethod
    def scale_from_base(
        quantity: Union[str, int, float, Decimal],
        unit: str,
        base_liters: Union[str, int, float, Decimal],
        target_liters: Union[str, int, float, Decimal]
    ) -> Decimal:
        """
        Scale a stored recipe quantity from its base volume to the target volume.

        Quantities recorded in grams are normalized to kilograms first.

        Returns:
            Quantity in kg rounded to 3 places
        """
        quantity = RecipeCalculator.to_decimal(quantity)
        base_liters = RecipeCalculator.to_decimal(base_liters)
        target_liters = RecipeCalculator.to_decimal(target_liters)

        if base_liters <= 0:
            raise ValueError("base_liters must be greater than 0")

        if (unit or '').strip().lower() in ('gramos', 'g', 'gr'):
            quantity = quantity / GRAMS_PER_KG

        return RecipeCalculator.round_quantity(quantity * target_liters / base_liters)
