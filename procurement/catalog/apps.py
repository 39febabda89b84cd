from django.apps import AppConfig


class CatalogConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'procurement.catalog'
    label = 'catalog'
    verbose_name = 'Sites, Vendors and Stock'
