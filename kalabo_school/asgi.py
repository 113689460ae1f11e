"""
ASGI config for the kalabo_school project.
"""

import os
import logging

from django.core.asgi import get_asgi_application

logger = logging.getLogger(__name__)

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'kalabo_school.settings')

application = get_asgi_application()
