from django.apps import AppConfig


class FormEntriesConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'form_entries'
    verbose_name = 'Form Templates & Entries'
