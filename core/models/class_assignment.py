# core/models/class_assignment.py
"""
Which teacher teaches which subject to which class.
"""
from django.db import models

from core.models.teacher import Teacher
from core.models.school_class import SchoolClass

DELETED_CLASS_LABEL = "Class Deleted"


class TeachingAssignment(models.Model):
    teacher = models.ForeignKey(
        Teacher,
        on_delete=models.CASCADE,
        related_name='assignments'
    )
    # Deleting a class leaves its assignments behind as orphans until
    # cleanup_orphaned_assignments removes them.
    school_class = models.ForeignKey(
        SchoolClass,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='teaching_assignments'
    )
    class_name = models.CharField(max_length=100, blank=True)
    subject = models.CharField(max_length=100)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = "Teaching Assignment"
        verbose_name_plural = "Teaching Assignments"
        ordering = ['class_name', 'subject']
        constraints = [
            models.UniqueConstraint(
                fields=['teacher', 'school_class', 'subject'],
                name='unique_teacher_class_subject'
            ),
        ]
        indexes = [
            models.Index(fields=['school_class', 'subject'], name='assignment_class_subject_idx'),
        ]

    def __str__(self):
        return f"{self.teacher} - {self.subject} ({self.display_class_name})"

    @property
    def class_exists(self):
        return self.school_class_id is not None

    @property
    def display_class_name(self):
        if not self.class_exists:
            return DELETED_CLASS_LABEL
        return self.school_class.name

    def save(self, *args, **kwargs):
        if self.school_class_id and not self.class_name:
            self.class_name = self.school_class.name
        super().save(*args, **kwargs)
