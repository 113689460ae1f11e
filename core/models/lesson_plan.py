# core/models/lesson_plan.py
import logging

from django.conf import settings
from django.db import models

from core.models.base import TERM_CHOICES, TimeStampedModel
from core.models.school_class import SchoolClass
from core.models.teacher import Teacher

logger = logging.getLogger(__name__)


class LessonPlan(TimeStampedModel):
    STATUS_DRAFT = 'draft'
    STATUS_SUBMITTED = 'submitted'
    STATUS_REVIEWED = 'reviewed'
    STATUS_APPROVED = 'approved'
    STATUS_REJECTED = 'rejected'
    STATUS_CHOICES = [
        (STATUS_DRAFT, 'Draft'),
        (STATUS_SUBMITTED, 'Submitted'),
        (STATUS_REVIEWED, 'Reviewed'),
        (STATUS_APPROVED, 'Approved'),
        (STATUS_REJECTED, 'Rejected'),
    ]
    EDITABLE_STATUSES = (STATUS_DRAFT, STATUS_REJECTED)

    teacher = models.ForeignKey(Teacher, on_delete=models.CASCADE, related_name='lesson_plans')
    teacher_name = models.CharField(max_length=150, blank=True)
    school_class = models.ForeignKey(
        SchoolClass,
        on_delete=models.CASCADE,
        related_name='lesson_plans'
    )
    class_name = models.CharField(max_length=100, blank=True)
    subject = models.CharField(max_length=100)
    date = models.DateField()
    week = models.PositiveSmallIntegerField(default=1)
    term = models.CharField(max_length=10, choices=TERM_CHOICES, default='term1')
    topic = models.CharField(max_length=200)
    sub_topic = models.CharField(max_length=200, blank=True)
    duration = models.PositiveIntegerField(default=40, help_text="Minutes")
    objectives = models.JSONField(default=list, blank=True)
    prior_knowledge = models.JSONField(default=list, blank=True)
    activities = models.JSONField(default=list, blank=True)
    materials = models.JSONField(default=list, blank=True)
    assessment_methods = models.JSONField(default=list, blank=True)
    differentiation = models.JSONField(default=list, blank=True)
    homework = models.TextField(blank=True)
    notes = models.TextField(blank=True)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_DRAFT)
    reviewer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='reviewed_lesson_plans'
    )
    reviewer_name = models.CharField(max_length=150, blank=True)
    feedback = models.TextField(blank=True)
    approved_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        verbose_name = "Lesson Plan"
        verbose_name_plural = "Lesson Plans"
        ordering = ['-date', '-created_at']
        indexes = [
            models.Index(fields=['teacher', 'date'], name='lessonplan_teacher_date_idx'),
            models.Index(fields=['school_class', 'subject', 'term'], name='lessonplan_class_subject_idx'),
        ]

    def __str__(self):
        return f"{self.class_name} - {self.topic} ({self.date})"

    @property
    def is_editable(self):
        return self.status in self.EDITABLE_STATUSES
