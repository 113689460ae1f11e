# core/models/base.py
"""
Base models, constants and helpers shared by the school portal models.
"""

import re

from django.db import models

# ============================================================================
# CONSTANTS
# ============================================================================

SEX_CHOICES = [
    ('M', 'Male'),
    ('F', 'Female'),
]

TERM_CHOICES = [
    ('term1', 'Term 1'),
    ('term2', 'Term 2'),
    ('term3', 'Term 3'),
]

TERM_DISPLAY_MAP = dict(TERM_CHOICES)

# Continuous assessment points in a term, in the order they are written
ASSESSMENT_TYPE_CHOICES = [
    ('week4', 'Week 4'),
    ('week8', 'Week 8'),
    ('end_of_term', 'End of Term'),
]

ASSESSMENT_TYPES = [value for value, _ in ASSESSMENT_TYPE_CHOICES]

# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

_NUMBER_RE = re.compile(r'\d+')
_FORM_RE = re.compile(r'form\s*(\d+)', re.IGNORECASE)
_CLASS_CODE_RE = re.compile(r'(\w)(\d+)(\w*)')


def extract_grade_level(class_name):
    """Return the first number in a class name as a string, or None."""
    match = _NUMBER_RE.search(class_name or '')
    return match.group(0) if match else None


def extract_form_number(class_name):
    """
    Form number printed on report cards.

    ``Form 3B`` -> 3, otherwise the first number in the name; clamped to
    1..5. Names without digits default to 1.
    """
    name = class_name or ''
    match = _FORM_RE.search(name) or _NUMBER_RE.search(name)
    if match:
        return min(max(int(match.group(match.lastindex or 0)), 1), 5)
    return 1


def generate_admission_no(class_name, index):
    """
    Build an admission number such as ``F1A-004`` from a class name and the
    zero-based position of the learner in that class.
    """
    name = class_name or ''
    match = _CLASS_CODE_RE.search(name)
    if match:
        first, digits, section = match.groups()
        code = (first.upper() + digits + section)[:3]
    else:
        code = ''.join(ch for ch in name if ch.isalnum())[:3].upper()
    return f"{code}-{index + 1:03d}"


def normalize_sex(value):
    """``Female``/``F`` (any case) -> ``F``; anything else -> ``M``."""
    return 'F' if str(value or '').strip().lower() in ('f', 'female') else 'M'


def unique_list(values):
    """De-duplicate while keeping first-seen order, dropping blanks."""
    seen = []
    for value in values or []:
        if isinstance(value, str):
            value = value.strip()
        if value and value not in seen:
            seen.append(value)
    return seen


# ============================================================================
# ABSTRACT BASE MODELS
# ============================================================================

class TimeStampedModel(models.Model):
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True
