# core/services/admin_stats.py
import logging

from core.grading_utils import round_half_up
from core.models import ASSESSMENT_TYPES, Learner, Mark, SchoolClass, Teacher
from core.services.teacher_assignments import get_teachers_for_class

logger = logging.getLogger(__name__)


def _ready_learner_ids(class_id):
    """Learners with a scored mark in the class for every assessment type."""
    ready = None
    for assessment_type in ASSESSMENT_TYPES:
        ids = set(
            Mark.objects.filter(
                school_class_id=class_id,
                assessment_type=assessment_type,
                score__gte=0,
            ).values_list('learner_id', flat=True)
        )
        ready = ids if ready is None else ready & ids
    return ready or set()


def get_class_stats(school_class):
    total = school_class.learners.count()
    submitted = (
        Mark.objects.filter(school_class=school_class, status=Mark.STATUS_SUBMITTED)
        .values('learner_id').distinct().count()
    )
    ready = len(_ready_learner_ids(school_class.pk))
    return {
        'id': school_class.pk,
        'className': school_class.name,
        'totalLearners': total,
        'submittedCount': submitted,
        'teacherNames': [t['teacherName'] for t in get_teachers_for_class(school_class.pk)],
        'reportsReadyCount': ready,
        'reportsReadyPercent': round_half_up(ready / total * 100) if total else 0,
    }


def get_admin_stats():
    """School totals plus per-class submission and report readiness."""
    total_learners = Learner.objects.count()
    class_stats = [get_class_stats(c) for c in SchoolClass.objects.order_by('name')]
    total_ready = sum(row['reportsReadyCount'] for row in class_stats)

    return {
        'totalLearners': total_learners,
        'totalClasses': len(class_stats),
        'totalTeachers': Teacher.objects.filter(is_active=True).count(),
        'classStats': class_stats,
        'totalReportsReady': total_ready,
        'reportsReadyPercent': round_half_up(total_ready / total_learners * 100) if total_learners else 0,
    }
