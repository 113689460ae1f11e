# core/models/assessment.py
"""
Generated assessments (class tests and grade-wide examinations) and their
questions.
"""
import logging

from django.conf import settings
from django.db import models

from core.models.base import TERM_CHOICES, TimeStampedModel
from core.models.school_class import SchoolClass

logger = logging.getLogger(__name__)


def assessment_file_path(instance, filename):
    return f"assessments/{instance.pk or 'new'}/{filename}"


class Assessment(TimeStampedModel):
    TYPE_CHOICES = [
        ('weekly', 'Weekly Test'),
        ('mid_term', 'Mid-Term'),
        ('end_term', 'End of Term'),
        ('custom', 'Custom'),
    ]

    STATUS_DRAFT = 'draft'
    STATUS_GENERATED = 'generated'
    STATUS_PUBLISHED = 'published'
    STATUS_ARCHIVED = 'archived'
    STATUS_CHOICES = [
        (STATUS_DRAFT, 'Draft'),
        (STATUS_GENERATED, 'Generated'),
        (STATUS_PUBLISHED, 'Published'),
        (STATUS_ARCHIVED, 'Archived'),
    ]

    EXAM_TYPE_CHOICES = [
        ('mid_term', 'Mid-Term'),
        ('end_term', 'End of Term'),
        ('final', 'Final'),
        ('mock', 'Mock'),
        ('prelim', 'Preliminary'),
    ]

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='assessments'
    )
    teacher_name = models.CharField(max_length=150, blank=True)
    title = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    type = models.CharField(max_length=20, choices=TYPE_CHOICES, default='weekly')
    # Null for grade-wide assessments that span every class of a grade
    school_class = models.ForeignKey(
        SchoolClass,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='assessments'
    )
    class_name = models.CharField(max_length=100, blank=True)
    subject = models.CharField(max_length=100)
    term = models.CharField(max_length=10, choices=TERM_CHOICES, default='term1')
    week = models.PositiveSmallIntegerField(null=True, blank=True)
    grade_level = models.CharField(max_length=20, blank=True)
    total_marks = models.PositiveIntegerField(default=0)
    duration = models.PositiveIntegerField(default=60, help_text="Minutes")
    instructions = models.TextField(blank=True)
    # {topic: percentage}
    topic_breakdown = models.JSONField(default=dict, blank=True)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_DRAFT)

    question_paper = models.FileField(upload_to=assessment_file_path, blank=True)
    marking_scheme = models.FileField(upload_to=assessment_file_path, blank=True)
    answer_key = models.FileField(upload_to=assessment_file_path, blank=True)
    published_at = models.DateTimeField(null=True, blank=True)

    # Grade-wide generator extras
    is_grade_wide = models.BooleanField(default=False)
    grade = models.CharField(max_length=20, blank=True)
    exam_type = models.CharField(max_length=20, choices=EXAM_TYPE_CHOICES, blank=True)
    total_classes = models.PositiveIntegerField(default=0)
    average_topic_coverage = models.PositiveIntegerField(default=0)
    alignment_to_standard = models.PositiveIntegerField(default=0)
    difficulty_profile = models.JSONField(default=dict, blank=True)
    include_marking_scheme = models.BooleanField(default=True)
    include_answer_key = models.BooleanField(default=True)

    class Meta:
        verbose_name = "Assessment"
        verbose_name_plural = "Assessments"
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['created_by', 'status'], name='assessment_owner_status_idx'),
            models.Index(fields=['school_class', 'subject', 'term'], name='assessment_class_subject_idx'),
        ]

    def __str__(self):
        return f"{self.title} ({self.subject}, {self.class_name})"


class Question(models.Model):
    TYPE_CHOICES = [
        ('mcq', 'Multiple Choice'),
        ('short_answer', 'Short Answer'),
        ('essay', 'Essay'),
        ('true_false', 'True/False'),
        ('fill_blank', 'Fill in the Blank'),
    ]

    DIFFICULTY_CHOICES = [
        ('easy', 'Easy'),
        ('medium', 'Medium'),
        ('hard', 'Hard'),
    ]

    assessment = models.ForeignKey(
        Assessment,
        on_delete=models.CASCADE,
        related_name='questions'
    )
    type = models.CharField(max_length=20, choices=TYPE_CHOICES)
    question = models.TextField()
    options = models.JSONField(default=list, blank=True)
    correct_answer = models.TextField(blank=True)
    marks = models.PositiveIntegerField(default=1)
    topic = models.CharField(max_length=200, blank=True)
    difficulty = models.CharField(max_length=10, choices=DIFFICULTY_CHOICES, default='medium')
    order = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ['assessment', 'order']

    def __str__(self):
        return f"Q{self.order + 1}: {self.question[:50]}"
