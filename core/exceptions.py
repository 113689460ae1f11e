# core/exceptions.py
"""
Domain exceptions for the Kalabo school portal.

Services raise these; ``core.utils.error_handling`` and the DRF exception
handler turn them into messages or JSON. Each one is logged as it is built,
at the level set on its class, so failures reach the error log even when the
caller answers the request normally.
"""

import logging

logger = logging.getLogger(__name__)


class SchoolManagementException(Exception):
    """Base class: ``message`` for people, ``details`` for the log."""

    default_message = "An error occurred in the school portal"
    log_level = logging.ERROR

    def __init__(self, message=None, details=None, user=None):
        self.message = message or self.default_message
        self.details = details
        self.user = user
        super().__init__(self.message)

        extra = self.log_context()
        logger.log(
            self.log_level,
            f"{type(self).__name__} for {getattr(user, 'username', 'anonymous')}: "
            f"{self.message} (details={details}{', ' + extra if extra else ''})"
        )

    def log_context(self):
        return ''


class GradeValidationError(SchoolManagementException):
    """One or more scores are out of range; ``field_errors`` is keyed by learner."""

    default_message = "Grade validation failed"
    log_level = logging.WARNING

    def __init__(self, message=None, field_errors=None, **kwargs):
        self.field_errors = field_errors or {}
        super().__init__(message, **kwargs)

    def log_context(self):
        return f"fields={sorted(self.field_errors)}"


class BulkUploadError(SchoolManagementException):
    """A CSV/XLSX upload produced nothing usable."""

    default_message = "Bulk upload failed"

    def __init__(self, message=None, row_errors=None, **kwargs):
        self.row_errors = row_errors or []
        super().__init__(message, **kwargs)

    def log_context(self):
        return f"{len(self.row_errors)} row error(s)"


class PermissionDeniedError(SchoolManagementException):
    default_message = "Permission denied"
    log_level = logging.WARNING

    def __init__(self, message=None, required_permission=None, **kwargs):
        self.required_permission = required_permission
        super().__init__(message, **kwargs)

    def log_context(self):
        return f"requires {self.required_permission}" if self.required_permission else ''


class DataValidationError(SchoolManagementException):
    default_message = "Data validation failed"
    log_level = logging.WARNING

    def __init__(self, message=None, validation_errors=None, **kwargs):
        self.validation_errors = validation_errors or {}
        super().__init__(message, **kwargs)


class DatabaseOperationException(SchoolManagementException):
    default_message = "Database operation failed"


class ClassManagementException(SchoolManagementException):
    default_message = "Class management operation failed"


class TeacherManagementException(SchoolManagementException):
    default_message = "Teacher management operation failed"


class AttendanceException(SchoolManagementException):
    default_message = "Attendance operation failed"


class AssessmentException(SchoolManagementException):
    default_message = "Assessment operation failed"


class LessonPlanException(SchoolManagementException):
    default_message = "Lesson plan operation failed"


class SchemeOfWorkException(SchoolManagementException):
    default_message = "Scheme of work operation failed"


class ReportCardException(SchoolManagementException):
    """A report card could not be built or delivered."""

    default_message = "Report card operation failed"
