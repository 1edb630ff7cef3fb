import logging

from rest_framework import viewsets, status, filters
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.exceptions import NotFound
from django.core.exceptions import ValidationError
from django_filters.rest_framework import DjangoFilterBackend

from authentication.permissions import IsProductionManagerOrReadOnly
from utils.errors import error_message
from .models import Product, ProductRecipe
from .serializers import ProductSerializer, ProductRecipeSerializer, RecipeQuerySerializer
from .services import RecipeStoreService

logger = logging.getLogger(__name__)


class ProductViewSet(viewsets.ModelViewSet):
    """
    Products and the recipe store endpoint

    GET /api/products/{id or code}/recipe/?liters=N
    """
    queryset = Product.objects.all().select_related('created_by')
    serializer_class = ProductSerializer
    permission_classes = [IsProductionManagerOrReadOnly]
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = ['is_active']
    search_fields = ['code', 'name']
    ordering_fields = ['name', 'code', 'created_at']
    lookup_value_regex = '[^/]+'

    def get_object(self):
        try:
            product = RecipeStoreService.get_product(self.kwargs[self.lookup_field])
        except ValidationError:
            raise NotFound('Product not found')
        self.check_object_permissions(self.request, product)
        return product

    def perform_create(self, serializer):
        serializer.save(created_by=self.request.user)

    @action(detail=True, methods=['get'])
    def recipe(self, request, pk=None):
        """Active recipe scaled to the requested liters"""
        product = self.get_object()
        query = RecipeQuerySerializer(data=request.query_params)
        if not query.is_valid():
            return Response({'error': 'liters must be a positive number'}, status=status.HTTP_400_BAD_REQUEST)

        try:
            data = RecipeStoreService.compute_recipe(product, query.validated_data['liters'])
        except ValidationError as e:
            logger.warning(f"Recipe lookup failed for {product.code}: {error_message(e)}")
            return Response({'error': error_message(e)}, status=status.HTTP_404_NOT_FOUND)

        return Response(data)


class ProductRecipeViewSet(viewsets.ReadOnlyModelViewSet):
    queryset = ProductRecipe.objects.all().select_related('product').prefetch_related('ingredients')
    serializer_class = ProductRecipeSerializer
    filter_backends = [DjangoFilterBackend]
    filterset_fields = ['product', 'is_active']
