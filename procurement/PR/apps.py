from django.apps import AppConfig


class MaterialRequestConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'procurement.PR'
    label = 'PR'
    verbose_name = 'Material Requests'
