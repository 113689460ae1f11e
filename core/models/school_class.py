# core/models/school_class.py
"""
Classes (streams such as "Form 1A" or "Grade 10B") and their learners.
"""
import logging

from django.conf import settings
from django.db import models

from core.models.base import (
    SEX_CHOICES, TimeStampedModel, extract_grade_level, extract_form_number,
    generate_admission_no,
)

logger = logging.getLogger(__name__)


class SchoolClass(TimeStampedModel):
    name = models.CharField(max_length=100)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='created_classes'
    )

    class Meta:
        verbose_name = "Class"
        verbose_name_plural = "Classes"
        ordering = ['name']

    def __str__(self):
        return self.name

    @property
    def grade_level(self):
        return extract_grade_level(self.name)

    @property
    def form_number(self):
        return extract_form_number(self.name)

    @property
    def learner_count(self):
        return self.learners.count()


class Learner(TimeStampedModel):
    name = models.CharField(max_length=150)
    sex = models.CharField(max_length=1, choices=SEX_CHOICES, default='M')
    school_class = models.ForeignKey(
        SchoolClass,
        on_delete=models.CASCADE,
        related_name='learners'
    )
    parent_phone = models.CharField(max_length=20, blank=True)
    parent_email = models.EmailField(blank=True)
    admission_no = models.CharField(max_length=20, blank=True, db_index=True)

    class Meta:
        verbose_name = "Learner"
        verbose_name_plural = "Learners"
        ordering = ['name']
        indexes = [
            models.Index(fields=['school_class', 'name'], name='learner_class_name_idx'),
        ]

    def __str__(self):
        return f"{self.name} ({self.admission_no})"

    def save(self, *args, **kwargs):
        if not self.admission_no:
            index = Learner.objects.filter(
                school_class_id=self.school_class_id
            ).exclude(pk=self.pk).count()
            self.admission_no = generate_admission_no(self.school_class.name, index)
        super().save(*args, **kwargs)
