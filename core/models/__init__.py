"""
Models package initialization.
Exports all models so callers can ``from core.models import ...``.
"""

from .base import (
    SEX_CHOICES,
    TERM_CHOICES,
    TERM_DISPLAY_MAP,
    ASSESSMENT_TYPE_CHOICES,
    ASSESSMENT_TYPES,
    extract_grade_level,
    extract_form_number,
    generate_admission_no,
    normalize_sex,
    unique_list,
)

from .school_class import SchoolClass, Learner
from .teacher import Teacher
from .class_assignment import TeachingAssignment, DELETED_CLASS_LABEL
from .marks import Mark
from .attendance import AttendanceSession, AttendanceRecord
from .assessment import Assessment, Question
from .lesson_plan import LessonPlan
from .scheme_of_work import SchemeOfWork, SchemeTopic
from .report_delivery import ReportDelivery

__all__ = [
    'SEX_CHOICES', 'TERM_CHOICES', 'TERM_DISPLAY_MAP', 'ASSESSMENT_TYPE_CHOICES',
    'ASSESSMENT_TYPES', 'extract_grade_level', 'extract_form_number',
    'generate_admission_no', 'normalize_sex', 'unique_list',
    'SchoolClass', 'Learner', 'Teacher', 'TeachingAssignment', 'DELETED_CLASS_LABEL',
    'Mark', 'AttendanceSession', 'AttendanceRecord', 'Assessment', 'Question',
    'LessonPlan', 'SchemeOfWork', 'SchemeTopic', 'ReportDelivery',
]
