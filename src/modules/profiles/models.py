from django.db import models

from modules.core.models import BaseModel


class UserProfileRecord(BaseModel):
    owner_id = models.CharField(max_length=150, unique=True)
    display_name = models.CharField(max_length=150, null=True, blank=True)
    email = models.EmailField(null=True, blank=True)
    phone = models.CharField(max_length=40, null=True, blank=True)
    preferences = models.JSONField(default=dict, blank=True)
    saved_addresses = models.JSONField(default=list, blank=True)

    class Meta:
        db_table = "user_profiles"
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return self.owner_id
