from django.db import models
from django.contrib.auth import get_user_model

from utils.enums import UnitChoices

User = get_user_model()


class Product(models.Model):
    """
    Finished product manufactured in the plant (cajeta, dulce de leche, ...)
    """
    code = models.SlugField(max_length=60, unique=True, help_text="Identifier used by forms, e.g. conito")
    name = models.CharField(max_length=150)
    description = models.TextField(blank=True)
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='created_products')

    class Meta:
        verbose_name = 'Product'
        verbose_name_plural = 'Products'
        ordering = ['name']

    def __str__(self):
        return f"{self.name} ({self.code})"

    @property
    def active_recipe(self):
        return self.recipes.filter(is_active=True).order_by('-updated_at').first()


class ProductRecipe(models.Model):
    """
    Stored recipe for a product, quantities expressed for ``base_liters``
    """
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='recipes')
    name = models.CharField(max_length=150)
    base_liters = models.DecimalField(max_digits=10, decimal_places=2, default=100)
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'Product Recipe'
        verbose_name_plural = 'Product Recipes'
        ordering = ['product__name', 'name']

    def __str__(self):
        return f"{self.name} - {self.base_liters} L"


class RecipeIngredient(models.Model):
    recipe = models.ForeignKey(ProductRecipe, on_delete=models.CASCADE, related_name='ingredients')
    material_name = models.CharField(max_length=150)
    quantity = models.DecimalField(max_digits=12, decimal_places=4)
    unit = models.CharField(max_length=20, choices=UnitChoices.choices, default=UnitChoices.KG)
    display_order = models.PositiveIntegerField(default=0)

    class Meta:
        verbose_name = 'Recipe Ingredient'
        verbose_name_plural = 'Recipe Ingredients'
        ordering = ['display_order', 'id']

    def __str__(self):
        return f"{self.material_name}: {self.quantity} {self.unit}"
