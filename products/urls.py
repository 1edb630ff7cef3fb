from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'products'

router = DefaultRouter()
router.register(r'products', views.ProductViewSet, basename='product')
router.register(r'product-recipes', views.ProductRecipeViewSet, basename='product-recipe')

urlpatterns = [
    path('', include(router.urls)),
]
