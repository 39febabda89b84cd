from django.apps import AppConfig


class NotesConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'procurement.notes'
    label = 'notes'
    verbose_name = 'Request Notes and Audit Trail'
