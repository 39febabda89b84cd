from django.apps import AppConfig


class DeliveryConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'procurement.delivery'
    label = 'delivery'
    verbose_name = 'Deliveries'
