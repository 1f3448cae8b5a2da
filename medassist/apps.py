from django.apps import AppConfig


class MedassistConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'medassist'
    verbose_name = 'Medical Assistant'
