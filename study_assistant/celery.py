import os
from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "study_assistant.settings")

celery_app = Celery("study_assistant")
celery_app.config_from_object("django.conf:settings", namespace="CELERY")
celery_app.autodiscover_tasks()
