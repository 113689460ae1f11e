# core/permissions.py
"""
Who may do what.

Two roles exist: administrators (``role == 'admin'``, or Django staff and
superusers) and teachers (users with a ``Teacher`` profile). The plain
predicates are shared by services, HTML views and the DRF permission classes.
"""
from django.contrib.auth.decorators import user_passes_test
from rest_framework.permissions import BasePermission

from .exceptions import PermissionDeniedError


def is_admin(user):
    return bool(
        user.is_authenticated
        and (user.is_superuser or user.is_staff or getattr(user, 'role', None) == 'admin')
    )


def is_teacher(user):
    return user.is_authenticated and getattr(user, 'teacher', None) is not None


def is_staff_member(user):
    return is_admin(user) or is_teacher(user)


def require_admin(user, action='perform this action'):
    """Service-layer guard: raise ``PermissionDeniedError`` for non-admins."""
    if is_admin(user):
        return
    raise PermissionDeniedError(
        f"Only administrators can {action}",
        required_permission='admin_access',
        user=user
    )


def _role_decorator(check):
    def decorator(view_func=None, login_url=None):
        guard = user_passes_test(check, login_url=login_url)
        return guard(view_func) if view_func else guard
    return decorator


# Usable bare (``@admin_required``) or with arguments (``@admin_required(login_url=...)``)
admin_required = _role_decorator(is_admin)
staff_required = _role_decorator(is_staff_member)


class IsSchoolAdmin(BasePermission):
    message = 'Administrator access required.'

    def has_permission(self, request, view):
        return is_admin(request.user)


class IsTeacherOrAdmin(BasePermission):
    message = 'Teacher or administrator access required.'

    def has_permission(self, request, view):
        return is_staff_member(request.user)


class IsOwnerOrAdmin(IsTeacherOrAdmin):
    """
    Teachers may only touch documents they own. The view's ``owner_field``
    names the attribute holding the owning ``Teacher`` (or user).
    """
    owner_field = 'teacher'

    def has_object_permission(self, request, view, obj):
        user = request.user
        if is_admin(user):
            return True
        owner = getattr(obj, getattr(view, 'owner_field', self.owner_field), None)
        if owner is None:
            return False
        return owner == user or (is_teacher(user) and owner == user.teacher)
