# core/apps.py
from django.apps import AppConfig
import logging

logger = logging.getLogger(__name__)


class CoreConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'core'
    verbose_name = 'School Portal'

    def ready(self):
        """Register signal handlers."""
        import core.signals  # noqa: F401
        logger.debug("Core signals registered")
