import logging

from django.apps import AppConfig
from django.conf import settings

logger = logging.getLogger(__name__)


class MediaJobsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "media_jobs"

    def ready(self):
        from . import firebase, services

        firebase.initialize_firebase()

        if not settings.GEMINI_API_KEY:
            logger.warning("GEMINI_API_KEY not set; media job processing is disabled.")
            return
        services.install(services.build_services())
