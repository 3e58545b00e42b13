import uuid

from django.db import models


class SimulationRecord(models.Model):
    STATUS_PENDING = "pending"
    STATUS_PROCESSING = "processing"
    STATUS_COMPLETED = "completed"
    STATUS_FAILED = "failed"
    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_PROCESSING, "Processing"),
        (STATUS_COMPLETED, "Completed"),
        (STATUS_FAILED, "Failed"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user_id = models.CharField(max_length=255, null=True, blank=True, default=None)
    input_data = models.JSONField()
    prepared_payload = models.JSONField(null=True, blank=True, default=None)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_PENDING)
    validated_response = models.JSONField(null=True, blank=True, default=None)
    error = models.TextField(null=True, blank=True, default=None)
    attempts = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]

    @property
    def duration_ms(self):
        if self.created_at and self.updated_at:
            return int((self.updated_at - self.created_at).total_seconds() * 1000)
        return None
