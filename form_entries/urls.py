from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'form_entries'

router = DefaultRouter()
router.register(r'templates', views.FormTemplateViewSet, basename='form-template')
router.register(r'entries', views.FormEntryViewSet, basename='form-entry')
router.register(r'activity-logs', views.ActivityLogViewSet, basename='activity-log')

urlpatterns = [
    path('export/', views.ConsolidatedExportView.as_view(), name='consolidated_export'),
    path('', include(router.urls)),
]
