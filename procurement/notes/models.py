from django.conf import settings
from django.db import models


class RequestNote(models.Model):
    """
    Append-only timeline entry for a request group.

    ``log`` entries are written by the workflow for every state-changing
    action; ``note`` entries are free text added by users. Both share one
    timeline, read oldest-first.
    """
    NOTE = 'note'
    LOG = 'log'
    TYPE_CHOICES = [
        (NOTE, 'User Note'),
        (LOG, 'System Log'),
    ]

    request_number = models.CharField(max_length=20, db_index=True)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='request_notes'
    )
    role = models.CharField(max_length=20, blank=True)
    status = models.CharField(max_length=30, blank=True, help_text="Request status the note refers to")
    note_type = models.CharField(max_length=10, choices=TYPE_CHOICES, default=LOG)
    content = models.TextField()
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        db_table = 'procurement_request_note'
        ordering = ['created_at', 'id']
        indexes = [
            models.Index(fields=['request_number', 'created_at']),
        ]

    def __str__(self):
        return f"{self.request_number} [{self.note_type}] {self.content[:40]}"

    def save(self, *args, **kwargs):
        if self.pk:
            raise ValueError("Request notes are append-only")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValueError("Request notes are append-only")
