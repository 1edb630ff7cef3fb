from decimal import Decimal

from rest_framework import serializers

from .models import Product, ProductRecipe, RecipeIngredient


class RecipeIngredientSerializer(serializers.ModelSerializer):
    class Meta:
        model = RecipeIngredient
        fields = ['id', 'material_name', 'quantity', 'unit', 'display_order']
        read_only_fields = ['id']


class ProductRecipeSerializer(serializers.ModelSerializer):
    ingredients = RecipeIngredientSerializer(many=True, read_only=True)

    class Meta:
        model = ProductRecipe
        fields = ['id', 'product', 'name', 'base_liters', 'is_active', 'ingredients', 'updated_at']
        read_only_fields = ['id', 'updated_at']


class ProductSerializer(serializers.ModelSerializer):
    """Product with the id of its active recipe"""
    active_recipe_id = serializers.SerializerMethodField()
    created_by_name = serializers.CharField(source='created_by.full_name', read_only=True)

    class Meta:
        model = Product
        fields = [
            'id', 'code', 'name', 'description', 'is_active',
            'active_recipe_id', 'created_by', 'created_by_name',
            'created_at', 'updated_at'
        ]
        read_only_fields = ['id', 'created_by', 'created_at', 'updated_at']

    def get_active_recipe_id(self, obj):
        recipe = obj.active_recipe
        return recipe.id if recipe else None


class RecipeQuerySerializer(serializers.Serializer):
    liters = serializers.DecimalField(max_digits=12, decimal_places=3, min_value=Decimal('0.001'))
