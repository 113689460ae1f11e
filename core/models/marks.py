# core/models/marks.py
"""
Continuous assessment marks.
"""
import logging

from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models

from core.models.base import TERM_CHOICES, ASSESSMENT_TYPE_CHOICES, TimeStampedModel
from core.models.school_class import SchoolClass, Learner
from core.models.teacher import Teacher

logger = logging.getLogger(__name__)


class Mark(TimeStampedModel):
    STATUS_DRAFT = 'draft'
    STATUS_SUBMITTED = 'submitted'
    STATUS_CHOICES = [
        (STATUS_DRAFT, 'Draft'),
        (STATUS_SUBMITTED, 'Submitted'),
    ]

    learner = models.ForeignKey(Learner, on_delete=models.CASCADE, related_name='marks')
    school_class = models.ForeignKey(SchoolClass, on_delete=models.CASCADE, related_name='marks')
    subject = models.CharField(max_length=100)
    teacher = models.ForeignKey(
        Teacher,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='marks'
    )
    teacher_name = models.CharField(max_length=150, blank=True)
    term = models.CharField(max_length=10, choices=TERM_CHOICES)
    assessment_type = models.CharField(max_length=20, choices=ASSESSMENT_TYPE_CHOICES)
    # None means the learner was absent for the assessment
    score = models.FloatField(
        null=True,
        blank=True,
        validators=[MinValueValidator(0), MaxValueValidator(100)]
    )
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_DRAFT)
    comment = models.TextField(blank=True)

    class Meta:
        verbose_name = "Mark"
        verbose_name_plural = "Marks"
        ordering = ['school_class', 'subject', 'learner__name']
        constraints = [
            models.UniqueConstraint(
                fields=['learner', 'school_class', 'subject', 'term', 'assessment_type'],
                name='unique_mark_per_assessment'
            ),
        ]
        indexes = [
            models.Index(fields=['school_class', 'subject', 'term', 'assessment_type'], name='mark_class_subject_idx'),
            models.Index(fields=['term', 'assessment_type'], name='mark_term_type_idx'),
        ]

    def __str__(self):
        score = 'Absent' if self.score is None else self.score
        return f"{self.learner.name} - {self.subject} {self.assessment_type}: {score}"

    @property
    def mark_key(self):
        """Deterministic identity of the mark, also used by client-side caches."""
        return (
            f"{self.learner_id}_{self.school_class_id}_{self.subject}_"
            f"{self.term}_{self.assessment_type}"
        )

    @property
    def is_absent(self):
        return self.score is None
