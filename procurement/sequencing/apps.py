from django.apps import AppConfig


class SequencingConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'procurement.sequencing'
    label = 'sequencing'
    verbose_name = 'Identifier Sequences'
