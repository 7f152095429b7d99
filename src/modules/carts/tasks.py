"""Periodic cart housekeeping."""

import structlog
from celery import shared_task
from django.conf import settings

logger = structlog.get_logger(__name__)


@shared_task(name="carts.purge_expired_carts")
def purge_expired_carts():
    """Mark carts past their lifetime expired, then drop old ones."""
    from modules.carts.views import cart_service

    retention = int(settings.COMMERCE.get("CART_RETENTION_SECONDS", 86400))
    result = cart_service().purge_expired(retention)
    logger.info("purge_expired_carts.executed", **result)
    return result
