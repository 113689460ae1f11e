"""
Upload forms for bulk class, learner and marks imports.
"""
import logging

from django import forms
from django.conf import settings
from django.core.exceptions import ValidationError

from core.models import TERM_CHOICES, ASSESSMENT_TYPE_CHOICES

logger = logging.getLogger(__name__)


class BulkUploadForm(forms.Form):
    file = forms.FileField(
        label="Upload File",
        help_text="Upload a CSV or Excel (.xlsx) file",
        widget=forms.FileInput(attrs={
            'class': 'form-control',
            'accept': '.csv,.xlsx',
        })
    )

    def clean_file(self):
        file = self.cleaned_data.get('file')
        if file:
            extension = file.name.rsplit('.', 1)[-1].lower() if '.' in file.name else ''
            if extension not in settings.ALLOWED_UPLOAD_EXTENSIONS:
                raise ValidationError("Please upload a CSV (.csv) or Excel (.xlsx) file")

            if file.size > settings.MAX_UPLOAD_SIZE:
                raise ValidationError(
                    f"File size must be less than {settings.MAX_UPLOAD_SIZE // (1024 * 1024)}MB"
                )
        return file


class MarksUploadForm(BulkUploadForm):
    class_id = forms.IntegerField(min_value=1)
    subject = forms.CharField(max_length=100)
    term = forms.ChoiceField(choices=TERM_CHOICES)
    assessment_type = forms.ChoiceField(choices=ASSESSMENT_TYPE_CHOICES)
    status = forms.ChoiceField(
        choices=[('draft', 'Draft'), ('submitted', 'Submitted')],
        initial='draft',
        required=False
    )

    def clean_subject(self):
        subject = self.cleaned_data['subject'].strip()
        if not subject:
            raise ValidationError("Subject is required")
        return subject
