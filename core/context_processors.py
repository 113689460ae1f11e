# core/context_processors.py
from django.conf import settings

from .permissions import is_admin, is_teacher


def school_context(request):
    """School identity and the user's role for every template."""
    user = request.user
    return {
        'school_name': settings.SCHOOL_NAME,
        'school_motto': settings.SCHOOL_MOTTO,
        'is_admin': is_admin(user),
        'is_teacher': is_teacher(user),
    }
