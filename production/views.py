import logging

from rest_framework import viewsets, status, filters
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from django.core.exceptions import ValidationError
from django_filters.rest_framework import DjangoFilterBackend

from form_entries.services import ExportService
from form_entries.views import export_response
from utils.errors import error_message
from .exceptions import DerivationFailure
from .models import ProductionForm
from .recipe_service import RecipeDerivationService
from .reports import build_production_view, unknown_fields, report_queryset
from .sections import section_permissions as section_permission_map
from .serializers import (
    ProductionFormListSerializer, ProductionFormDetailSerializer,
    ProductionFormStatusHistorySerializer, FieldUpdateSerializer,
    StatusChangeSerializer, FolioUpdateSerializer, RecipePreviewSerializer,
    ProductionExportSerializer
)
from .services import ProductionFormService

logger = logging.getLogger(__name__)


class ProductionFormViewSet(viewsets.ModelViewSet):
    """
    Production forms. Every write goes through ProductionFormService so the
    section gate and the transition table apply to all of them.

    POST   /forms/                          create (production managers)
    PATCH  /forms/{id}/                     batch save {field: value, ...}
    POST   /forms/{id}/update_field/        {field, value}
    POST   /forms/{id}/change_status/       {status}
    POST   /forms/{id}/folio/               {folio}
    GET    /forms/{id}/history/
    GET    /forms/{id}/section_permissions/
    GET    /forms/recipe_preview/?product=&liters=
    POST   /forms/export/                   {formIds, selectedFields, fieldOrder, format}
    DELETE /forms/{id}/                     superadmin only
    """
    queryset = ProductionForm.objects.all().select_related('created_by', 'last_updated_by')
    permission_classes = [IsAuthenticated]
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = ['status', 'product_code', 'date']
    search_fields = ['folio', 'responsible', 'lot_number', 'product_code']
    ordering_fields = ['created_at', 'date', 'folio', 'status']
    http_method_names = ['get', 'post', 'patch', 'delete', 'head', 'options']

    def get_serializer_class(self):
        if self.action == 'list':
            return ProductionFormListSerializer
        return ProductionFormDetailSerializer

    def get_serializer_context(self):
        context = super().get_serializer_context()
        context['read_only'] = self.request.query_params.get('read_only', '').lower() == 'true'
        return context

    def _detail(self, form, status_code=status.HTTP_200_OK):
        serializer = ProductionFormDetailSerializer(form, context=self.get_serializer_context())
        return Response(serializer.data, status=status_code)

    def create(self, request, *args, **kwargs):
        try:
            form = ProductionFormService.create(dict(request.data), request.user)
        except ValidationError as e:
            return Response({'error': error_message(e)}, status=status.HTTP_400_BAD_REQUEST)
        return self._detail(form, status.HTTP_201_CREATED)

    def partial_update(self, request, *args, **kwargs):
        form = self.get_object()
        try:
            form = ProductionFormService.update_fields(form.id, dict(request.data), request.user)
        except ValidationError as e:
            return Response({'error': error_message(e)}, status=status.HTTP_400_BAD_REQUEST)
        return self._detail(form)

    def destroy(self, request, *args, **kwargs):
        form = self.get_object()
        ProductionFormService.delete(form.id, request.user)
        return Response({'message': 'Production form deleted'}, status=status.HTTP_200_OK)

    @action(detail=True, methods=['post'])
    def update_field(self, request, pk=None):
        """Single field edit with auto-advance"""
        form = self.get_object()
        serializer = FieldUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            form = ProductionFormService.update_field(
                form.id,
                serializer.validated_data['field'],
                serializer.validated_data['value'],
                request.user
            )
        except ValidationError as e:
            return Response({'error': error_message(e)}, status=status.HTTP_400_BAD_REQUEST)
        return self._detail(form)

    @action(detail=True, methods=['post'])
    def change_status(self, request, pk=None):
        """Manual status change, persisted immediately"""
        form = self.get_object()
        serializer = StatusChangeSerializer(data=request.data)
        if not serializer.is_valid():
            return Response({'error': 'Invalid status'}, status=status.HTTP_400_BAD_REQUEST)
        try:
            form = ProductionFormService.change_status(
                form.id, serializer.validated_data['status'], request.user
            )
        except ValidationError as e:
            return Response({'error': error_message(e)}, status=status.HTTP_400_BAD_REQUEST)
        return self._detail(form)

    @action(detail=True, methods=['post'])
    def folio(self, request, pk=None):
        form = self.get_object()
        serializer = FolioUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            form = ProductionFormService.update_folio(form.id, serializer.validated_data['folio'], request.user)
        except ValidationError as e:
            return Response({'error': error_message(e)}, status=status.HTTP_400_BAD_REQUEST)
        return self._detail(form)

    @action(detail=True, methods=['get'])
    def history(self, request, pk=None):
        form = self.get_object()
        serializer = ProductionFormStatusHistorySerializer(
            form.status_history.select_related('changed_by'), many=True
        )
        return Response(serializer.data)

    @action(detail=True, methods=['get'])
    def section_permissions(self, request, pk=None):
        self.get_object()
        read_only = request.query_params.get('read_only', '').lower() == 'true'
        return Response(section_permission_map(request.user, read_only=read_only))

    @action(detail=False, methods=['get'])
    def recipe_preview(self, request):
        """Ingredients the configured strategy would derive, without saving anything"""
        serializer = RecipePreviewSerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        product = serializer.validated_data['product']
        liters = serializer.validated_data['liters']
        try:
            ingredients, labels = RecipeDerivationService.compute(product, liters)
        except DerivationFailure as e:
            logger.warning(f"Recipe preview failed for {product} / {liters} L: {e}")
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
        return Response({
            'product': product,
            'liters': liters,
            'ingredients': ingredients,
            'labels': labels,
        })

    @action(detail=False, methods=['post'])
    def export(self, request):
        serializer = ProductionExportSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        params = serializer.validated_data

        unknown = unknown_fields(params['selectedFields'])
        if unknown:
            return Response(
                {'error': f"Unknown fields: {', '.join(unknown)}"},
                status=status.HTTP_400_BAD_REQUEST
            )

        forms = list(report_queryset(params['formIds']))
        if not forms:
            return Response({'error': 'No production forms selected'}, status=status.HTTP_400_BAD_REQUEST)

        view = build_production_view(forms, params['selectedFields'], params['fieldOrder'])
        try:
            content, content_type, extension = ExportService.export(
                view, params['format'], request.user, 'production_form',
                details={'formIds': [form.id for form in forms]}
            )
        except ValidationError as e:
            return Response({'error': error_message(e)}, status=status.HTTP_400_BAD_REQUEST)
        return export_response(content, content_type, extension, 'produccion')
