from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'production'

router = DefaultRouter()
router.register(r'forms', views.ProductionFormViewSet, basename='production-form')

urlpatterns = [
    path('', include(router.urls)),
]
