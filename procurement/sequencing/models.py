from django.db import models


class SequenceCounter(models.Model):
    """
    One row per identifier namespace, holding the last value handed out.

    Namespaces:
        - "request":             request numbers, shared with PO numbers
        - "draft":               DRAFT-NNN numbers of unsent drafts
        - "delivery:YYYYMMDD":   per-day delivery challan sequence
    """
    key = models.CharField(max_length=50, unique=True)
    last_value = models.PositiveIntegerField(default=0)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'procurement_sequence_counter'

    def __str__(self):
        return f"{self.key}={self.last_value}"
