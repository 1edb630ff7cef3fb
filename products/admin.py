from django.contrib import admin
from .models import Product, ProductRecipe, RecipeIngredient


class RecipeIngredientInline(admin.TabularInline):
    model = RecipeIngredient
    extra = 0
    fields = ['display_order', 'material_name', 'quantity', 'unit']


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ('code', 'name', 'is_active', 'created_at', 'created_by')
    list_filter = ('is_active', 'created_at')
    search_fields = ('code', 'name')
    ordering = ('name',)
    readonly_fields = ('created_at', 'updated_at')


@admin.register(ProductRecipe)
class ProductRecipeAdmin(admin.ModelAdmin):
    list_display = ('name', 'product', 'base_liters', 'is_active', 'updated_at')
    list_filter = ('is_active',)
    search_fields = ('name', 'product__code', 'product__name')
    inlines = [RecipeIngredientInline]
