# core/services/schemes.py
import logging

from django.utils import timezone

from core.exceptions import SchemeOfWorkException, DataValidationError, PermissionDeniedError
from core.grading_utils import round_half_up
from core.models import SchemeOfWork, SchemeTopic
from core.permissions import is_admin
from core.services.class_management import get_class
from core.utils.error_handling import safe_database_operation

logger = logging.getLogger(__name__)

SCHEME_FIELDS = (
    'title', 'description', 'subject', 'grade_level', 'term', 'academic_year', 'objectives',
    'resources', 'assessment_criteria', 'total_weeks',
)
TOPIC_FIELDS = (
    'title', 'subtopics', 'duration', 'learning_objectives', 'teaching_methods', 'activities',
    'assessment_methods', 'resources', 'notes', 'status',
)
TOPIC_STATUSES = [value for value, _ in SchemeTopic.STATUS_CHOICES]


def get_scheme(scheme_id, user=None):
    try:
        scheme = SchemeOfWork.objects.select_related('teacher__user').get(pk=scheme_id)
    except (SchemeOfWork.DoesNotExist, ValueError, TypeError):
        raise SchemeOfWorkException("Scheme of work not found", details={'scheme_id': scheme_id})

    if user is not None and not is_admin(user) and scheme.teacher.user_id != user.pk:
        raise PermissionDeniedError(
            "You can only manage your own schemes of work",
            required_permission='scheme_owner',
            user=user
        )
    return scheme


def get_teacher_schemes(teacher, class_id=None):
    schemes = SchemeOfWork.objects.filter(teacher=teacher).prefetch_related('topics')
    if class_id:
        schemes = schemes.filter(school_class_id=class_id)
    return schemes.order_by('-updated_at')


@safe_database_operation
def create_scheme(teacher, class_id, subject, title, total_weeks=12, **fields):
    """New draft scheme with one planned topic per week."""
    if not (title or '').strip() or not subject:
        raise DataValidationError(
            "Title and subject are required",
            validation_errors={'title': 'Required', 'subject': 'Required'}
        )
    try:
        total_weeks = int(total_weeks)
    except (TypeError, ValueError):
        total_weeks = 0
    if total_weeks < 1:
        raise DataValidationError("A scheme needs at least one week", validation_errors={'total_weeks': total_weeks})

    school_class = get_class(class_id)
    scheme = SchemeOfWork.objects.create(
        teacher=teacher,
        teacher_name=teacher.get_full_name(),
        school_class=school_class,
        class_name=school_class.name,
        subject=subject,
        title=title.strip(),
        total_weeks=total_weeks,
        grade_level=fields.pop('grade_level', None) or school_class.grade_level or '',
        status=SchemeOfWork.STATUS_DRAFT,
        version=1,
        is_template=bool(fields.pop('is_template', False)),
        created_by=teacher.user,
        **{k: v for k, v in fields.items() if k in SCHEME_FIELDS}
    )
    SchemeTopic.objects.bulk_create([
        SchemeTopic(scheme=scheme, key=f"week-{week}", week=week, title=f"Week {week}")
        for week in range(1, total_weeks + 1)
    ])
    logger.info(f"Scheme of work '{scheme.title}' created with {total_weeks} weeks by {teacher.employee_id}")
    return scheme


def update_scheme(scheme_id, user, **updates):
    scheme = get_scheme(scheme_id, user)
    for field, value in updates.items():
        if field in SCHEME_FIELDS and field != 'total_weeks':
            setattr(scheme, field, value)
    scheme.save()
    return scheme


def update_topic(scheme_id, topic_key, user, **updates):
    scheme = get_scheme(scheme_id, user)
    try:
        topic = scheme.topics.get(key=topic_key)
    except SchemeTopic.DoesNotExist:
        raise SchemeOfWorkException("Topic not found", details={'topic_key': topic_key})

    status = updates.get('status')
    if status is not None and status not in TOPIC_STATUSES:
        raise DataValidationError(f"Invalid topic status '{status}'", validation_errors={'status': status})

    for field, value in updates.items():
        if field in TOPIC_FIELDS:
            setattr(topic, field, value)

    if topic.status == SchemeTopic.STATUS_COMPLETED and not topic.completed_date:
        topic.completed_date = timezone.now()
    elif topic.status != SchemeTopic.STATUS_COMPLETED:
        topic.completed_date = None
    topic.save()

    scheme.save(update_fields=['updated_at'])
    return topic


def publish_scheme(scheme_id, user):
    scheme = get_scheme(scheme_id, user)
    scheme.status = SchemeOfWork.STATUS_PUBLISHED
    scheme.published_at = timezone.now()
    scheme.save(update_fields=['status', 'published_at', 'updated_at'])
    logger.info(f"Scheme {scheme.pk} published")
    return scheme


def archive_scheme(scheme_id, user):
    scheme = get_scheme(scheme_id, user)
    scheme.status = SchemeOfWork.STATUS_ARCHIVED
    scheme.save(update_fields=['status', 'updated_at'])
    return scheme


def delete_scheme(scheme_id, user):
    get_scheme(scheme_id, user).delete()


@safe_database_operation
def duplicate_scheme_as_template(scheme_id, template_name, user):
    """Copy a scheme and its topics into a draft template owned by ``user``."""
    template_name = (template_name or '').strip()
    if not template_name:
        raise DataValidationError("Template name is required", validation_errors={'template_name': 'Required'})

    source = get_scheme(scheme_id, user)
    teacher = getattr(user, 'teacher', None) or source.teacher
    topics = list(source.topics.all())

    copy = SchemeOfWork.objects.create(
        teacher=teacher,
        teacher_name=teacher.get_full_name(),
        school_class=source.school_class,
        class_name=source.class_name,
        subject=source.subject,
        grade_level=source.grade_level,
        term=source.term,
        academic_year=source.academic_year,
        title=template_name,
        description=source.description,
        objectives=source.objectives,
        resources=source.resources,
        assessment_criteria=source.assessment_criteria,
        total_weeks=source.total_weeks,
        status=SchemeOfWork.STATUS_DRAFT,
        version=source.version,
        is_template=True,
        template_name=template_name,
        created_by=user,
    )
    SchemeTopic.objects.bulk_create([
        SchemeTopic(
            scheme=copy,
            key=t.key,
            week=t.week,
            title=t.title,
            subtopics=t.subtopics,
            duration=t.duration,
            learning_objectives=t.learning_objectives,
            teaching_methods=t.teaching_methods,
            activities=t.activities,
            assessment_methods=t.assessment_methods,
            resources=t.resources,
            notes=t.notes,
            status=t.status,
            completed_date=t.completed_date,
        )
        for t in topics
    ])
    return copy


def get_templates(teacher):
    return SchemeOfWork.objects.filter(teacher=teacher, is_template=True).order_by('-created_at')


def get_scheme_stats(teacher):
    schemes = list(get_teacher_schemes(teacher))
    topics = [t for s in schemes for t in s.topics.all()]
    completed = sum(1 for t in topics if t.status == SchemeTopic.STATUS_COMPLETED)

    return {
        'totalSchemes': len(schemes),
        'publishedSchemes': sum(1 for s in schemes if s.status == SchemeOfWork.STATUS_PUBLISHED),
        'draftSchemes': sum(1 for s in schemes if s.status == SchemeOfWork.STATUS_DRAFT),
        'totalTopics': len(topics),
        'completedTopics': completed,
        'upcomingTopics': sum(1 for t in topics if t.status == SchemeTopic.STATUS_PLANNED),
        'averageCompletionRate': round_half_up(completed / len(topics) * 100) if topics else 0,
    }
