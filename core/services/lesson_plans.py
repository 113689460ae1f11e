# core/services/lesson_plans.py
"""
Lesson planning: teacher drafts, review by administrators, statistics and
calendar events.
"""
import calendar
import datetime
import logging

from django.utils import timezone
from django.utils.dateparse import parse_date

from core.exceptions import LessonPlanException, DataValidationError, PermissionDeniedError
from core.models import LessonPlan, TeachingAssignment
from core.permissions import is_admin, require_admin
from core.services.class_management import get_class

logger = logging.getLogger(__name__)

LIST_FIELDS = ('objectives', 'prior_knowledge', 'activities', 'materials', 'assessment_methods', 'differentiation')
EDITABLE_FIELDS = (
    'subject', 'date', 'week', 'term', 'topic', 'sub_topic', 'duration', 'homework', 'notes',
) + LIST_FIELDS

STATUS_COLORS = {
    LessonPlan.STATUS_APPROVED: 'green',
    LessonPlan.STATUS_SUBMITTED: 'blue',
    LessonPlan.STATUS_REJECTED: 'red',
}

REVIEW_DECISIONS = (LessonPlan.STATUS_APPROVED, LessonPlan.STATUS_REJECTED, LessonPlan.STATUS_REVIEWED)


def _clean_fields(fields):
    cleaned = {}
    for field, value in fields.items():
        if field not in EDITABLE_FIELDS:
            continue
        if field == 'date' and isinstance(value, str):
            parsed = parse_date(value)
            if parsed is None:
                raise DataValidationError("Invalid date", validation_errors={'date': value})
            value = parsed
        elif field in LIST_FIELDS:
            value = [item for item in (value or []) if item]
        cleaned[field] = value
    return cleaned


def get_lesson_plan(plan_id, teacher=None):
    try:
        plan = LessonPlan.objects.get(pk=plan_id)
    except (LessonPlan.DoesNotExist, ValueError, TypeError):
        raise LessonPlanException("Lesson plan not found", details={'plan_id': plan_id})
    if teacher is not None and plan.teacher_id != teacher.pk:
        raise PermissionDeniedError(
            "You can only manage your own lesson plans",
            required_permission='lesson_plan_owner',
            user=teacher.user
        )
    return plan


def create_lesson_plan(teacher, class_id, subject, topic, date, **fields):
    if not (topic or '').strip() or not subject:
        raise DataValidationError(
            "Topic and subject are required",
            validation_errors={'topic': 'Required', 'subject': 'Required'}
        )

    school_class = get_class(class_id)
    if not TeachingAssignment.objects.filter(teacher=teacher, school_class=school_class, subject=subject).exists():
        raise PermissionDeniedError(
            "You are not assigned to teach this subject in this class",
            required_permission='class_subject_assignment',
            user=teacher.user
        )

    data = _clean_fields(dict(fields, date=date, topic=topic.strip(), subject=subject))
    plan = LessonPlan.objects.create(
        teacher=teacher,
        teacher_name=teacher.get_full_name(),
        school_class=school_class,
        class_name=school_class.name,
        **data
    )
    logger.info(f"Lesson plan '{plan.topic}' created for {school_class.name} by {teacher.employee_id}")
    return plan


def update_lesson_plan(plan_id, teacher, **updates):
    plan = get_lesson_plan(plan_id, teacher)
    if not plan.is_editable:
        raise LessonPlanException(
            "Only draft or rejected lesson plans can be edited",
            details={'status': plan.status}
        )
    for field, value in _clean_fields(updates).items():
        setattr(plan, field, value)
    plan.save()
    return plan


def delete_lesson_plan(plan_id, teacher):
    get_lesson_plan(plan_id, teacher).delete()


def get_teacher_lesson_plans(teacher, class_id=None, subject=None, status=None, start_date=None, end_date=None):
    plans = LessonPlan.objects.filter(teacher=teacher)
    if class_id:
        plans = plans.filter(school_class_id=class_id)
    if subject:
        plans = plans.filter(subject=subject)
    if status:
        plans = plans.filter(status=status)
    if start_date and end_date:
        plans = plans.filter(date__gte=start_date, date__lte=end_date)
    return plans.order_by('-date', '-created_at')


def submit_for_review(plan_id, teacher):
    plan = get_lesson_plan(plan_id, teacher)
    if not plan.is_editable:
        raise LessonPlanException("This lesson plan has already been submitted", details={'status': plan.status})
    plan.status = LessonPlan.STATUS_SUBMITTED
    plan.save(update_fields=['status', 'updated_at'])
    return plan


def review_lesson_plan(plan_id, reviewer, decision, feedback=''):
    require_admin(reviewer, 'review lesson plans')
    if decision not in REVIEW_DECISIONS:
        raise DataValidationError(
            f"Invalid review decision '{decision}'",
            validation_errors={'decision': f"Choose one of {', '.join(REVIEW_DECISIONS)}"}
        )

    plan = get_lesson_plan(plan_id)
    if plan.status == LessonPlan.STATUS_DRAFT:
        raise LessonPlanException("Draft lesson plans cannot be reviewed", details={'plan_id': plan.pk})

    plan.status = decision
    plan.reviewer = reviewer
    plan.reviewer_name = reviewer.display_name
    plan.feedback = feedback or ''
    plan.approved_at = timezone.now() if decision == LessonPlan.STATUS_APPROVED else None
    plan.save()
    logger.info(f"Lesson plan {plan.pk} {decision} by {reviewer}")
    return plan


def get_pending_reviews():
    return LessonPlan.objects.filter(status=LessonPlan.STATUS_SUBMITTED).order_by('date')


def get_lesson_plan_stats(teacher, today=None):
    plans = list(get_teacher_lesson_plans(teacher))
    today = today or timezone.localdate()
    # Sunday to Saturday
    week_start = today - datetime.timedelta(days=(today.weekday() + 1) % 7)
    week_end = week_start + datetime.timedelta(days=6)

    by_subject = {}
    for plan in plans:
        by_subject[plan.subject] = by_subject.get(plan.subject, 0) + 1

    return {
        'total': len(plans),
        'draft': sum(1 for p in plans if p.status == LessonPlan.STATUS_DRAFT),
        'submitted': sum(1 for p in plans if p.status == LessonPlan.STATUS_SUBMITTED),
        'approved': sum(1 for p in plans if p.status == LessonPlan.STATUS_APPROVED),
        'rejected': sum(1 for p in plans if p.status == LessonPlan.STATUS_REJECTED),
        'thisWeek': sum(1 for p in plans if week_start <= p.date <= week_end),
        'bySubject': by_subject,
    }


def get_calendar_events(teacher, month, year):
    """Lesson plans of a calendar month (``month`` is 1-12)."""
    start = datetime.date(year, month, 1)
    end = datetime.date(year, month, calendar.monthrange(year, month)[1])
    return [
        {
            'id': plan.pk,
            'title': f"{plan.class_name} - {plan.topic}",
            'date': plan.date,
            'color': STATUS_COLORS.get(plan.status, 'gray'),
            'status': plan.status,
            'subject': plan.subject,
        }
        for plan in get_teacher_lesson_plans(teacher, start_date=start, end_date=end)
    ]
