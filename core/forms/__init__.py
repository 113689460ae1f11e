"""
Forms package initialization.
"""

from .bulk_operations_forms import BulkUploadForm, MarksUploadForm

__all__ = ['BulkUploadForm', 'MarksUploadForm']
