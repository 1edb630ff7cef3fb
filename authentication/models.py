from django.contrib.auth.models import AbstractUser
from django.db import models

from utils.enums import UserRoleChoices


class CustomUser(AbstractUser):
    """
    Plant user. Logs in with email.

    ``role`` keeps the raw role string coming from the plant's user directory.
    Workflow code never compares it directly, it goes through the role mapper.
    """
    email = models.EmailField(unique=True)
    first_name = models.CharField(max_length=80)
    last_name = models.CharField(max_length=80, blank=True)
    role = models.CharField(
        max_length=50,
        choices=UserRoleChoices.choices,
        default=UserRoleChoices.PRODUCCION,
        help_text="Raw role string, e.g. superadmin, gerente_produccion, calidad"
    )
    department = models.CharField(max_length=100, blank=True, help_text="Default department for new form entries")
    date_joined = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = ['username', 'first_name']

    class Meta:
        db_table = 'formcapture_users'
        verbose_name = 'User'
        verbose_name_plural = 'Users'
        ordering = ['first_name', 'last_name']

    def __str__(self):
        return f"{self.full_name or self.email} [{self.role}]"

    @property
    def full_name(self):
        return " ".join(part for part in (self.first_name, self.last_name) if part)

    @property
    def is_superadmin(self):
        return (self.role or '').strip().lower() == UserRoleChoices.SUPERADMIN
