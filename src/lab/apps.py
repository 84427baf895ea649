from django.apps import AppConfig


class LabConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "src.lab"
    label = "lab"
    verbose_name = "Lab bookings"
