# core/models/attendance.py
"""
Attendance roll-call sessions and the per-learner records inside them.
"""
import logging

from django.db import models

from core.models.base import SEX_CHOICES, TimeStampedModel
from core.models.school_class import SchoolClass, Learner
from core.models.teacher import Teacher

logger = logging.getLogger(__name__)


class AttendanceSession(TimeStampedModel):
    STATUS_DRAFT = 'draft'
    STATUS_SUBMITTED = 'submitted'
    STATUS_LOCKED = 'locked'
    STATUS_CHOICES = [
        (STATUS_DRAFT, 'Draft'),
        (STATUS_SUBMITTED, 'Submitted'),
        (STATUS_LOCKED, 'Locked'),
    ]

    title = models.CharField(max_length=200, blank=True)
    date = models.DateField()
    school_class = models.ForeignKey(
        SchoolClass,
        on_delete=models.CASCADE,
        related_name='attendance_sessions'
    )
    class_name = models.CharField(max_length=100, blank=True)
    teacher = models.ForeignKey(
        Teacher,
        on_delete=models.CASCADE,
        related_name='attendance_sessions'
    )
    teacher_name = models.CharField(max_length=150, blank=True)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_DRAFT)
    stats = models.JSONField(default=dict, blank=True)
    submitted_at = models.DateTimeField(null=True, blank=True)
    # Set by clients that queue sessions while offline
    client_updated_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        verbose_name = "Attendance Session"
        verbose_name_plural = "Attendance Sessions"
        ordering = ['-date', '-created_at']
        indexes = [
            models.Index(fields=['school_class', 'date', 'teacher'], name='attendance_class_date_idx'),
            models.Index(fields=['status', 'submitted_at'], name='attendance_status_idx'),
        ]

    def __str__(self):
        return f"{self.class_name} {self.date} ({self.get_status_display()})"

    @property
    def is_editable(self):
        return self.status == self.STATUS_DRAFT


class AttendanceRecord(models.Model):
    STATUS_PRESENT = 'present'
    STATUS_ABSENT = 'absent'
    STATUS_LATE = 'late'
    STATUS_EXCUSED = 'excused'
    STATUS_CHOICES = [
        (STATUS_PRESENT, 'Present'),
        (STATUS_ABSENT, 'Absent'),
        (STATUS_LATE, 'Late'),
        (STATUS_EXCUSED, 'Excused'),
    ]

    session = models.ForeignKey(
        AttendanceSession,
        on_delete=models.CASCADE,
        related_name='records'
    )
    learner = models.ForeignKey(
        Learner,
        on_delete=models.CASCADE,
        related_name='attendance_records'
    )
    learner_name = models.CharField(max_length=150, blank=True)
    gender = models.CharField(max_length=1, choices=SEX_CHOICES, blank=True)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_PRESENT)
    excused_reason = models.CharField(max_length=255, blank=True)
    note = models.TextField(blank=True)
    marked_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Attendance Record"
        verbose_name_plural = "Attendance Records"
        ordering = ['learner_name']
        constraints = [
            models.UniqueConstraint(fields=['session', 'learner'], name='unique_attendance_record'),
        ]

    def __str__(self):
        return f"{self.learner_name}: {self.status}"
