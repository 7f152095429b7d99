from django.db import models

from modules.core.models import BaseModel


class StoreRecord(BaseModel):
    name = models.CharField(max_length=200)
    location = models.JSONField(default=dict)
    catalog_ids = models.JSONField(default=list)
    metadata = models.JSONField(default=dict, blank=True)

    class Meta:
        db_table = "stores"
        ordering = ["name", "id"]

    def __str__(self) -> str:
        return self.name


class CatalogRecord(BaseModel):
    name = models.CharField(max_length=200)
    version = models.CharField(max_length=20, default="1.0")
    store_id = models.CharField(max_length=64, db_index=True)
    items = models.JSONField(default=list)
    metadata = models.JSONField(default=dict, blank=True)

    class Meta:
        db_table = "catalogs"
        ordering = ["name", "id"]

    def __str__(self) -> str:
        return f"{self.name} v{self.version}"
