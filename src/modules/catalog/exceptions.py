"""Catalog domain exceptions."""

from __future__ import annotations

from modules.core.exceptions import (
    BusinessRuleViolation,
    ResourceConflict,
    ResourceNotFound,
)


class StoreNotFound(ResourceNotFound):
    title = "Store Not Found"
    slug = "store-not-found"
    default_detail = "The requested store does not exist."
    localization_key = "error.store.not_found"


class CatalogNotFound(ResourceNotFound):
    title = "Catalog Not Found"
    slug = "catalog-not-found"
    default_detail = "The requested catalog does not exist."
    localization_key = "error.catalog.not_found"


class ItemNotFound(ResourceNotFound):
    title = "Item Not Found"
    slug = "item-not-found"
    default_detail = "The requested catalog item does not exist."
    localization_key = "error.item.not_found"


class ItemUnavailable(BusinessRuleViolation):
    title = "Item Unavailable"
    slug = "item-unavailable"
    default_detail = "The catalog item is no longer available."
    localization_key = "error.item.unavailable"


class InsufficientStock(ResourceConflict):
    title = "Insufficient Stock"
    slug = "insufficient-stock"
    default_detail = "Not enough stock to fulfil the requested quantity."
    localization_key = "error.item.insufficient_stock"
