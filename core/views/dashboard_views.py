# core/views/dashboard_views.py
import logging

from django.contrib.auth.decorators import login_required
from django.http import JsonResponse
from django.shortcuts import render, redirect

from core.exceptions import PermissionDeniedError
from core.permissions import is_admin, is_teacher
from core.services.admin_stats import get_admin_stats
from core.services.teacher_assignments import get_teacher_classes
from core.utils.error_handling import handle_api_exception, handle_view_exception

logger = logging.getLogger(__name__)


def home(request):
    if request.user.is_authenticated:
        return redirect('dashboard')
    return redirect('signin')


@login_required
@handle_view_exception
def dashboard(request):
    """
    Administrators see school totals and per-class report readiness;
    teachers see the classes and subjects assigned to them.
    """
    context = {}
    if is_admin(request.user):
        context['stats'] = get_admin_stats()
    elif is_teacher(request.user):
        teacher = request.user.teacher
        context['teacher'] = teacher
        context['classes'] = get_teacher_classes(teacher.pk)
    else:
        logger.warning(f"User {request.user.username} has no school role")

    return render(request, 'core/dashboard.html', context)


@login_required
@handle_api_exception
def dashboard_summary(request):
    """JSON version of the dashboard, polled by the front end."""
    if is_admin(request.user):
        return JsonResponse({'role': 'admin', 'stats': get_admin_stats()})
    if not is_teacher(request.user):
        raise PermissionDeniedError(
            "A teacher profile is required for this action",
            required_permission='teacher_profile',
            user=request.user
        )
    teacher = request.user.teacher
    return JsonResponse({
        'role': 'teacher',
        'employeeId': teacher.employee_id,
        'classes': get_teacher_classes(teacher.pk),
    })
