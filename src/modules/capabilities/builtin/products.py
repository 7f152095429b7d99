"""Product capabilities: variants, search and rich info.

Search and rich info bring routes of their own, mounted only while the
capability is enabled:

* ``GET /products/search/?q=<text>&sort=<key>``
* ``GET /products/<id>/rich-info/`` and, for staff, ``PUT`` to merge
  presentation content into the item's ``dev.ocp.product.rich_info@1.0``
  metadata block.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Tuple

import structlog
from django.urls import path
from django.utils import timezone
from rest_framework.permissions import AllowAny
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from modules.capabilities.base import CapabilityDescriptor, CapabilityImplementation
from modules.capabilities.builtin.common import (
    SUPPORTED_VERSION,
    VERSION_FIELD,
    is_versioned_block,
)
from modules.capabilities.kinds import CapabilityKind
from modules.catalog.dtos import CatalogItemOutputDTO
from modules.catalog.entities import Catalog, CatalogItem
from modules.catalog.exceptions import ItemNotFound
from modules.core.exceptions import CommerceValidationError, violation
from modules.core.permissions import IsStaff
from modules.core.storage import get_repository

logger = structlog.get_logger(__name__)

DEFAULT_MAX_RESULTS = 50

Match = Tuple[Catalog, CatalogItem]

SORTS: Dict[str, Tuple[Callable[[Match], Any], bool]] = {
    "name": (lambda m: m[1].name.lower(), False),
    "price": (lambda m: m[1].price.amount, False),
    "price_asc": (lambda m: m[1].price.amount, False),
    "price_desc": (lambda m: m[1].price.amount, True),
}


# ---------------------------------------------------------------------------
# dev.ocp.product.variants
# ---------------------------------------------------------------------------


def validate_variants(value: Any) -> bool:
    if not is_versioned_block(value):
        return False
    variants = value.get("variants")
    if not isinstance(variants, list):
        return False
    return all(isinstance(v, dict) and isinstance(v.get("id"), str) for v in variants)


def process_variants(value: Dict[str, Any]) -> Dict[str, Any]:
    for variant in value["variants"]:
        variant.setdefault("available", True)
    return value


def build_variants(
    descriptor: CapabilityDescriptor, config: Dict[str, Any]
) -> CapabilityImplementation:
    return CapabilityImplementation(
        descriptor=descriptor,
        kind=CapabilityKind.PRODUCT_VARIANTS,
        validator=validate_variants,
        processor=process_variants,
    )


# ---------------------------------------------------------------------------
# dev.ocp.product.search
# ---------------------------------------------------------------------------


def search_items(
    matches: List[Match], query: str, sort: str | None, limit: int
) -> List[Match]:
    """Case-insensitive substring match on name and description."""
    needle = query.strip().lower()
    results = [
        (catalog, item)
        for catalog, item in matches
        if needle in item.name.lower()
        or (item.description and needle in item.description.lower())
    ]
    if sort in SORTS:
        key, reverse = SORTS[sort]
        results.sort(key=key, reverse=reverse)
    return results[:limit]


class ProductSearchView(APIView):
    """GET /products/search/"""

    permission_classes = [AllowAny]
    config: Dict[str, Any] = {}

    def get(self, request: Request) -> Response:
        query = request.query_params.get("q", "").strip()
        if not query:
            raise CommerceValidationError.for_field("q", "A search query is required.")

        sort = request.query_params.get("sort") or None
        supported = self.config.get("supported_sorts") or []
        if sort is not None and sort not in supported and sort != "relevance":
            raise CommerceValidationError.for_field(
                "sort", f"Supported sorts: {', '.join(supported) or 'relevance'}.", sort
            )

        limit = int(self.config.get("max_results_per_page") or DEFAULT_MAX_RESULTS)
        results = search_items(get_repository("catalogs").all_items(), query, sort, limit)
        products = [
            {
                **CatalogItemOutputDTO.from_entity(item).model_dump(mode="json"),
                "catalog_id": catalog.id,
                "catalog_name": catalog.name,
            }
            for catalog, item in results
        ]
        return Response({"query": query, "products": products, "total": len(products)})


def build_search(
    descriptor: CapabilityDescriptor, config: Dict[str, Any]
) -> CapabilityImplementation:
    return CapabilityImplementation(
        descriptor=descriptor,
        kind=CapabilityKind.PRODUCT_SEARCH,
        routes=(
            path(
                "products/search/",
                ProductSearchView.as_view(config=config),
                name="product-search",
            ),
        ),
    )


# ---------------------------------------------------------------------------
# dev.ocp.product.rich_info
# ---------------------------------------------------------------------------

RICH_INFO_KEY = f"{CapabilityKind.PRODUCT_RICH_INFO.value}@{SUPPORTED_VERSION}"
RICH_INFO_FIELDS = ("names", "descriptions", "seo", "key_features", "image_gallery")


def validate_rich_info(value: Any) -> bool:
    if not is_versioned_block(value):
        return False
    for field in ("names", "descriptions", "seo"):
        if field in value and not isinstance(value[field], dict):
            return False
    features = value.get("key_features", [])
    if not isinstance(features, list) or not all(isinstance(f, str) for f in features):
        return False
    gallery = value.get("image_gallery", [])
    if not isinstance(gallery, list):
        return False
    return all(
        isinstance(image, dict) and isinstance(image.get("fallback_url"), str)
        for image in gallery
    )


def process_rich_info(value: Dict[str, Any]) -> Dict[str, Any]:
    if "key_features" in value:
        value["key_features"] = list(
            dict.fromkeys(f.strip() for f in value["key_features"] if f.strip())
        )
    return value


def describe_rich_info(item: CatalogItem) -> Dict[str, Any]:
    """Presentation content of ``item``; stored fields win over derived ones."""
    info: Dict[str, Any] = {
        VERSION_FIELD: SUPPORTED_VERSION,
        "names": {"customer_facing": item.name, "backend": item.name},
    }
    if item.description:
        info["descriptions"] = {"short": item.description, "long_text": item.description}
    if isinstance(item.metadata.get("image"), str):
        info["image_gallery"] = [{"alt": item.name, "fallback_url": item.metadata["image"]}]
    stored = item.metadata.get(RICH_INFO_KEY)
    if isinstance(stored, dict):
        info.update(stored)
    info["publication_status"] = "published" if item.available else "archived"
    return info


def _catalog_of(item_id: str) -> Catalog:
    for catalog, item in get_repository("catalogs").all_items():
        if item.id == item_id:
            return catalog
    raise ItemNotFound(f"Item {item_id} not found.")


class ProductRichInfoView(APIView):
    """GET/PUT /products/{item_id}/rich-info/"""

    config: Dict[str, Any] = {}

    def get_permissions(self):
        if self.request.method == "PUT":
            return [IsStaff()]
        return [AllowAny()]

    def get(self, request: Request, item_id: str) -> Response:
        item = _catalog_of(item_id).find_item(item_id)
        return Response(describe_rich_info(item))

    def put(self, request: Request, item_id: str) -> Response:
        if not isinstance(request.data, dict):
            raise CommerceValidationError.for_field("body", "Expected a JSON object.")
        unknown = sorted(set(request.data) - set(RICH_INFO_FIELDS))
        if unknown:
            raise CommerceValidationError(
                errors=[violation("Unknown rich info field.", field=f) for f in unknown]
            )

        catalogs = get_repository("catalogs")
        catalog_id = _catalog_of(item_id).id
        with catalogs.locked(catalog_id) as catalog:
            item = catalog.find_item(item_id) if catalog is not None else None
            if item is None:
                raise ItemNotFound(f"Item {item_id} not found.")
            block = {
                **(item.metadata.get(RICH_INFO_KEY) or {}),
                **request.data,
                VERSION_FIELD: SUPPORTED_VERSION,
                "last_modified": timezone.now().isoformat(),
            }
            if not validate_rich_info(block):
                raise CommerceValidationError.for_field(
                    RICH_INFO_KEY, "Rich info does not match the 1.0 schema."
                )
            block = process_rich_info(block)
            metadata = {**item.metadata, RICH_INFO_KEY: block}
            updated = item.model_copy(update={"metadata": metadata})
            items = [updated if i.id == item_id else i for i in catalog.items]
            saved = catalogs.update(
                catalog.model_copy(update={"items": items, "updated_at": timezone.now()})
            )
        logger.info("product.rich_info_updated", item_id=item_id, catalog_id=saved.id)
        return Response(describe_rich_info(saved.find_item(item_id)))


def build_rich_info(
    descriptor: CapabilityDescriptor, config: Dict[str, Any]
) -> CapabilityImplementation:
    return CapabilityImplementation(
        descriptor=descriptor,
        kind=CapabilityKind.PRODUCT_RICH_INFO,
        validator=validate_rich_info,
        processor=process_rich_info,
        routes=(
            path(
                "products/<str:item_id>/rich-info/",
                ProductRichInfoView.as_view(config=config),
                name="product-rich-info",
            ),
        ),
    )
