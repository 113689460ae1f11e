# core/models/scheme_of_work.py
"""
Termly schemes of work: one planned topic per teaching week.
"""
import logging

from django.conf import settings
from django.db import models

from core.models.base import TERM_CHOICES, TimeStampedModel
from core.models.school_class import SchoolClass
from core.models.teacher import Teacher

logger = logging.getLogger(__name__)


class SchemeOfWork(TimeStampedModel):
    STATUS_DRAFT = 'draft'
    STATUS_PUBLISHED = 'published'
    STATUS_ARCHIVED = 'archived'
    STATUS_CHOICES = [
        (STATUS_DRAFT, 'Draft'),
        (STATUS_PUBLISHED, 'Published'),
        (STATUS_ARCHIVED, 'Archived'),
    ]

    teacher = models.ForeignKey(Teacher, on_delete=models.CASCADE, related_name='schemes_of_work')
    teacher_name = models.CharField(max_length=150, blank=True)
    school_class = models.ForeignKey(
        SchoolClass,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='schemes_of_work'
    )
    class_name = models.CharField(max_length=100, blank=True)
    subject = models.CharField(max_length=100)
    grade_level = models.CharField(max_length=20, blank=True)
    term = models.CharField(max_length=10, choices=TERM_CHOICES, default='term1')
    academic_year = models.CharField(max_length=20, blank=True)
    title = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    objectives = models.JSONField(default=list, blank=True)
    resources = models.JSONField(default=list, blank=True)
    # [{type, description, weight, assessment_method, due_week}]
    assessment_criteria = models.JSONField(default=list, blank=True)
    total_weeks = models.PositiveSmallIntegerField(default=12)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_DRAFT)
    published_at = models.DateTimeField(null=True, blank=True)
    version = models.PositiveIntegerField(default=1)
    is_template = models.BooleanField(default=False)
    template_name = models.CharField(max_length=200, blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='schemes_of_work'
    )

    class Meta:
        verbose_name = "Scheme of Work"
        verbose_name_plural = "Schemes of Work"
        ordering = ['-created_at']

    def __str__(self):
        return self.title


class SchemeTopic(models.Model):
    STATUS_PLANNED = 'planned'
    STATUS_IN_PROGRESS = 'in_progress'
    STATUS_COMPLETED = 'completed'
    STATUS_DELAYED = 'delayed'
    STATUS_CHOICES = [
        (STATUS_PLANNED, 'Planned'),
        (STATUS_IN_PROGRESS, 'In Progress'),
        (STATUS_COMPLETED, 'Completed'),
        (STATUS_DELAYED, 'Delayed'),
    ]

    scheme = models.ForeignKey(SchemeOfWork, on_delete=models.CASCADE, related_name='topics')
    key = models.CharField(max_length=20)
    week = models.PositiveSmallIntegerField()
    title = models.CharField(max_length=200)
    subtopics = models.JSONField(default=list, blank=True)
    duration = models.PositiveSmallIntegerField(default=4, help_text="Hours")
    learning_objectives = models.JSONField(default=list, blank=True)
    teaching_methods = models.JSONField(default=list, blank=True)
    # [{title, type, description, duration, materials, objectives}]
    activities = models.JSONField(default=list, blank=True)
    assessment_methods = models.JSONField(default=list, blank=True)
    # [{type, title, description, url, quantity, available}]
    resources = models.JSONField(default=list, blank=True)
    notes = models.TextField(blank=True)
    status = models.CharField(max_length=12, choices=STATUS_CHOICES, default=STATUS_PLANNED)
    completed_date = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ['scheme', 'week']
        constraints = [
            models.UniqueConstraint(fields=['scheme', 'key'], name='unique_scheme_topic_key'),
        ]

    def __str__(self):
        return f"{self.scheme.title}: {self.title}"
