# core/models/teacher.py
"""
Teacher profiles.

A profile is created for every teacher account by ``core.signals``. Its
employee number has the form ``TCH<year><sequence>``, e.g. ``TCH2026007``.
"""
import logging

from django.conf import settings
from django.db import models
from django.utils import timezone

from core.models.base import TimeStampedModel, unique_list

logger = logging.getLogger(__name__)

EMPLOYEE_ID_PREFIX = 'TCH'
UNASSIGNED_EMPLOYEE_ID = 'temporary'


class Teacher(TimeStampedModel):
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='teacher'
    )
    employee_id = models.CharField(
        max_length=20,
        unique=True,
        editable=False,
        default=UNASSIGNED_EMPLOYEE_ID
    )
    # Subjects the teacher can be assigned; names are free text
    subjects = models.JSONField(default=list, blank=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        verbose_name = "Teacher"
        verbose_name_plural = "Teachers"
        ordering = ['user__full_name', 'user__username']

    def __str__(self):
        return f"{self.get_full_name()} ({self.employee_id})"

    def get_full_name(self):
        return self.user.display_name

    @classmethod
    def next_employee_id(cls, year=None):
        """First free ``TCH<year>NNN`` number after the highest one issued this year."""
        prefix = f"{EMPLOYEE_ID_PREFIX}{year or timezone.now().year}"
        issued = cls.objects.filter(employee_id__startswith=prefix).values_list('employee_id', flat=True)
        sequences = [int(eid[len(prefix):]) for eid in issued if eid[len(prefix):].isdigit()]
        sequence = max(sequences, default=0) + 1
        while cls.objects.filter(employee_id=f"{prefix}{sequence:03d}").exists():
            sequence += 1
        return f"{prefix}{sequence:03d}"

    def save(self, *args, **kwargs):
        self.subjects = unique_list(self.subjects)
        if self.employee_id == UNASSIGNED_EMPLOYEE_ID:
            self.employee_id = self.next_employee_id()
            logger.debug(f"Issued employee id {self.employee_id} to {self.user.username}")
        super().save(*args, **kwargs)
