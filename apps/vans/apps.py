from django.apps import AppConfig


class VansConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.vans"
