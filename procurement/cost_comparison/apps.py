from django.apps import AppConfig


class CostComparisonConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'procurement.cost_comparison'
    label = 'cost_comparison'
    verbose_name = 'Cost Comparisons'
