import os

import cronitor.celery
from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "river.settings")

from django.conf import settings  # noqa: E402

celery = Celery("river")
# CELERY_* keys in the django settings configure the app
celery.config_from_object("django.conf:settings", namespace="CELERY")


CRONITOR_API_KEY = getattr(settings, "CRONITOR_API_KEY", None)
if CRONITOR_API_KEY:
    # monitors the beat schedule, a missed monthly billing tick raises an alert
    cronitor.celery.initialize(celery, api_key=CRONITOR_API_KEY)


celery.autodiscover_tasks()
