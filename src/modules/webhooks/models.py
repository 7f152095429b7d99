from django.db import models

from modules.core.models import BaseModel


class WebhookRecord(BaseModel):
    owner_id = models.CharField(max_length=150, db_index=True)
    url = models.URLField(max_length=500)
    events = models.JSONField(default=list)
    description = models.TextField(null=True, blank=True)
    metadata = models.JSONField(default=dict, blank=True)
    secret = models.CharField(max_length=100)
    active = models.BooleanField(default=True)

    class Meta:
        db_table = "webhooks"
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return self.url
