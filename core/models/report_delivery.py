# core/models/report_delivery.py
from django.conf import settings
from django.db import models

from core.models.base import TERM_CHOICES
from core.models.school_class import Learner


class ReportDelivery(models.Model):
    """Record of a report card being sent to a learner's parent."""

    learner = models.ForeignKey(Learner, on_delete=models.CASCADE, related_name='report_deliveries')
    term = models.CharField(max_length=10, choices=TERM_CHOICES)
    year = models.PositiveIntegerField()
    # Channels used: sms, whatsapp, email, bulk, bulk_all
    sent_via = models.JSONField(default=list, blank=True)
    sent_at = models.DateTimeField(auto_now=True)
    sent_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='report_deliveries'
    )

    class Meta:
        verbose_name = "Report Delivery"
        verbose_name_plural = "Report Deliveries"
        ordering = ['-sent_at']
        constraints = [
            models.UniqueConstraint(fields=['learner', 'term', 'year'], name='unique_report_delivery'),
        ]

    def __str__(self):
        return f"{self.learner.name} {self.term} {self.year}: {', '.join(self.sent_via)}"
