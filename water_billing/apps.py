from django.apps import AppConfig


class WaterBillingConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "water_billing"
    verbose_name = "Water billing"
