# core/signals.py
import logging

from django.conf import settings
from django.db.models.signals import post_save, pre_save
from django.dispatch import receiver

from core.models import Teacher

logger = logging.getLogger(__name__)

TEACHER_ROLE = 'teacher'


@receiver(pre_save, sender=settings.AUTH_USER_MODEL)
def remember_previous_role(sender, instance, **kwargs):
    if instance.pk is None:
        instance._previous_role = None
    else:
        instance._previous_role = (
            sender.objects.filter(pk=instance.pk).values_list('role', flat=True).first()
        )


@receiver(post_save, sender=settings.AUTH_USER_MODEL)
def create_teacher_profile(sender, instance, created, **kwargs):
    """
    Give an account a ``Teacher`` profile when it is created as a teacher or
    its role changes to teacher. Later saves (a sign-in updating
    ``last_login``, say) leave the profile alone, so a deleted profile stays
    deleted. Subjects picked on the sign-up form travel on the unsaved user
    as ``_initial_subjects``.
    """
    if getattr(instance, 'role', None) != TEACHER_ROLE:
        return
    became_teacher = getattr(instance, '_previous_role', None) != TEACHER_ROLE
    if not (created or became_teacher):
        return

    teacher, was_created = Teacher.objects.get_or_create(
        user=instance,
        defaults={'subjects': getattr(instance, '_initial_subjects', None) or []}
    )
    if was_created:
        logger.info(f"Teacher profile {teacher.employee_id} created for {instance.username}")
