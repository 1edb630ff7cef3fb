from django.db import models
from django.utils.translation import gettext_lazy as _


# ============================================================================
# AUTHENTICATION & USER CHOICES
# ============================================================================

class UserRoleChoices(models.TextChoices):
    """Raw role strings as stored on the user record"""
    SUPERADMIN = 'superadmin', _('Super Admin')
    ADMIN = 'admin', _('Admin')
    GERENTE_PRODUCCION = 'gerente_produccion', _('Gerente de Producción')
    PRODUCCION = 'produccion', _('Producción')
    CALIDAD = 'calidad', _('Calidad')
    GERENTE_CALIDAD = 'gerente_calidad', _('Gerente de Calidad')
    VIEWER = 'viewer', _('Viewer')


class WorkflowRoleChoices(models.TextChoices):
    """Normalized roles used by the production workflow"""
    PRODUCTION_MANAGER = 'production_manager', _('Production Manager')
    OPERATOR = 'operator', _('Operator')
    QUALITY_MANAGER = 'quality_manager', _('Quality Manager')


# ============================================================================
# PRODUCTION FORM CHOICES
# ============================================================================

class ProductionFormStatusChoices(models.TextChoices):
    DRAFT = 'draft', _('Borrador')
    IN_PROGRESS = 'in_progress', _('En Proceso')
    PENDING_REVIEW = 'pending_review', _('Pendiente de Revisión')
    COMPLETED = 'completed', _('Completado')


class StrainerStateChoices(models.TextChoices):
    GOOD = 'good', _('Bueno')
    BAD = 'bad', _('Malo')


class ProductionSectionChoices(models.TextChoices):
    GENERAL_INFO = 'general-info', _('Información General')
    RAW_MATERIALS = 'raw-materials', _('Materias Primas')
    PROCESS_TRACKING = 'process-tracking', _('Seguimiento de Proceso')
    QUALITY_VERIFICATION = 'quality-verification', _('Verificación de Calidad')
    PRODUCT_DESTINATION = 'product-destination', _('Destino de Producto')
    FINAL_STRAINER = 'final-strainer', _('Colador Final')
    LIBERATION_DATA = 'liberation-data', _('Datos de Liberación')


class RecipeSourceChoices(models.TextChoices):
    CATALOG = 'catalog', _('Catalog')
    REMOTE = 'remote', _('Remote Recipe Store')


# ============================================================================
# GENERIC FORM CHOICES
# ============================================================================

class FormEntryStatusChoices(models.TextChoices):
    DRAFT = 'draft', _('Borrador')
    SIGNED = 'signed', _('Firmado')
    APPROVED = 'approved', _('Aprobado')
    REJECTED = 'rejected', _('Rechazado')


class ExportFormatChoices(models.TextChoices):
    PDF = 'pdf', _('PDF')
    EXCEL = 'excel', _('Excel')


class ActivityActionChoices(models.TextChoices):
    CREATED = 'created', _('Created')
    UPDATED = 'updated', _('Updated')
    STATUS_CHANGED = 'status_changed', _('Status Changed')
    FOLIO_CHANGED = 'folio_changed', _('Folio Changed')
    DELETED = 'deleted', _('Deleted')
    EXPORTED = 'exported', _('Exported')


class UnitChoices(models.TextChoices):
    KG = 'kg', _('Kilogramos')
    GRAMOS = 'gramos', _('Gramos')
    LITROS = 'litros', _('Litros')
