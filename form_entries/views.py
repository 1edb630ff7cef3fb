import logging

from rest_framework import viewsets, status, filters
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from django.core.exceptions import ValidationError
from django.http import HttpResponse
from django.utils import timezone
from django_filters.rest_framework import DjangoFilterBackend

from authentication.permissions import IsAdminOrReadOnly, IsSuperAdmin
from utils.errors import error_message
from .models import FormTemplate, ActivityLog
from .serializers import (
    FormTemplateSerializer, FormEntryListSerializer, FormEntryDetailSerializer,
    FormEntryCreateSerializer, FormEntryStatusSerializer, ExportRequestSerializer,
    ActivityLogSerializer
)
from .services import FormEntryService, ExportService

logger = logging.getLogger(__name__)


def export_response(content, content_type, extension, basename):
    filename = f"{basename}-{timezone.now().strftime('%Y%m%d%H%M')}.{extension}"
    response = HttpResponse(content, content_type=content_type)
    response['Content-Disposition'] = f'attachment; filename="{filename}"'
    return response


class FormTemplateViewSet(viewsets.ModelViewSet):
    """
    Form templates. Everyone authenticated reads, admins write.
    """
    queryset = FormTemplate.objects.all().select_related('created_by')
    serializer_class = FormTemplateSerializer
    permission_classes = [IsAdminOrReadOnly]
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = ['is_active']
    search_fields = ['name', 'description']
    ordering_fields = ['name', 'created_at']

    def perform_create(self, serializer):
        serializer.save(created_by=self.request.user)

    def destroy(self, request, *args, **kwargs):
        template = self.get_object()
        if template.entries.exists():
            return Response(
                {'error': 'Template has captured entries, deactivate it instead'},
                status=status.HTTP_400_BAD_REQUEST
            )
        return super().destroy(request, *args, **kwargs)


class FormEntryViewSet(viewsets.ModelViewSet):
    """
    Captured entries of form templates

    POST   /entries/                      create draft with folio
    PATCH  /entries/{id}/                 merge data
    POST   /entries/{id}/change_status/   sign, approve, reject
    DELETE /entries/{id}/                 superadmin only
    """
    permission_classes = [IsAuthenticated]
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = ['template', 'status']
    search_fields = ['folio_number']
    ordering_fields = ['created_at', 'folio_number']
    http_method_names = ['get', 'post', 'patch', 'delete', 'head', 'options']

    def get_queryset(self):
        return FormEntryService.visible_entries(self.request.user)

    def get_serializer_class(self):
        if self.action == 'list':
            return FormEntryListSerializer
        return FormEntryDetailSerializer

    def create(self, request, *args, **kwargs):
        serializer = FormEntryCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            entry = FormEntryService.create_entry(
                serializer.validated_data['template'],
                serializer.validated_data['data'],
                request.user,
                department=serializer.validated_data['department'] or request.user.department,
            )
        except ValidationError as e:
            return Response({'error': error_message(e)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(FormEntryDetailSerializer(entry).data, status=status.HTTP_201_CREATED)

    def partial_update(self, request, *args, **kwargs):
        entry = self.get_object()
        data = request.data.get('data')
        try:
            entry = FormEntryService.update_data(entry.id, data, request.user)
        except ValidationError as e:
            return Response({'error': error_message(e)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(FormEntryDetailSerializer(entry).data)

    def destroy(self, request, *args, **kwargs):
        entry = self.get_object()
        FormEntryService.delete_entry(entry.id, request.user)
        return Response({'message': 'Form entry deleted'}, status=status.HTTP_200_OK)

    @action(detail=True, methods=['post'])
    def change_status(self, request, pk=None):
        """Change entry status, signing requires a signature"""
        entry = self.get_object()
        serializer = FormEntryStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            entry = FormEntryService.change_status(
                entry.id,
                serializer.validated_data['status'],
                request.user,
                signature=serializer.validated_data['signature'],
            )
        except ValidationError as e:
            return Response({'error': error_message(e)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(FormEntryDetailSerializer(entry).data)


class ConsolidatedExportView(APIView):
    """
    POST {templateId, entryIds, selectedFields, fieldOrder, format}
    Returns the consolidated report as an Excel workbook or a PDF.
    """
    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = ExportRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        params = serializer.validated_data

        visible_ids = set(
            FormEntryService.visible_entries(request.user)
            .filter(id__in=params['entryIds'])
            .values_list('id', flat=True)
        )
        try:
            view = ExportService.build_entries_view(
                params['templateId'],
                [entry_id for entry_id in params['entryIds'] if entry_id in visible_ids],
                selected_fields=params['selectedFields'],
                field_order=params['fieldOrder'],
            )
            content, content_type, extension = ExportService.export(
                view, params['format'], request.user, 'form_entry',
                details={'formTemplateId': params['templateId']}
            )
        except ValidationError as e:
            return Response({'error': error_message(e)}, status=status.HTTP_400_BAD_REQUEST)

        return export_response(content, content_type, extension, f"reporte-{params['templateId']}")


class ActivityLogViewSet(viewsets.ReadOnlyModelViewSet):
    queryset = ActivityLog.objects.all().select_related('user')
    serializer_class = ActivityLogSerializer
    permission_classes = [IsSuperAdmin]
    filter_backends = [DjangoFilterBackend, filters.OrderingFilter]
    filterset_fields = ['action', 'resource_type', 'resource_id', 'user']
    ordering_fields = ['created_at']
