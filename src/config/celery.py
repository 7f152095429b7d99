"""
Celery application for the commerce API.

``DJANGO_SETTINGS_MODULE`` is set before the app is instantiated so Celery
reads the Django settings (``CELERY_`` prefix), including the beat schedule
that drives cart housekeeping.
"""

import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("open_commerce")

app.config_from_object("django.conf:settings", namespace="CELERY")

# Picks up tasks.py in every installed app (e.g. carts.purge_expired_carts)
app.autodiscover_tasks()
