# core/services/class_management.py
"""
Classes and learners: creation, bulk import, deletion and roster queries.
"""
import logging

from django.db.models import Count

from core.exceptions import ClassManagementException, DataValidationError
from core.models import SchoolClass, Learner, TeachingAssignment, normalize_sex
from core.utils.error_handling import safe_database_operation
from core.utils.import_utils import parse_class_rows, parse_learner_rows

logger = logging.getLogger(__name__)


def get_class(class_id):
    try:
        return SchoolClass.objects.get(pk=class_id)
    except (SchoolClass.DoesNotExist, ValueError, TypeError):
        raise ClassManagementException("Class not found", details={'class_id': class_id})


def list_classes():
    return SchoolClass.objects.annotate(learners_total=Count('learners')).order_by('name')


def add_class(name, user=None):
    name = (name or '').strip()
    if not name:
        raise DataValidationError(
            "Class name is required",
            validation_errors={'name': 'Class name cannot be empty'},
            user=user
        )
    school_class = SchoolClass.objects.create(name=name, created_by=user)
    logger.info(f"Class '{name}' created (id={school_class.pk})")
    return school_class


def update_class(class_id, name):
    school_class = get_class(class_id)
    name = (name or '').strip()
    if not name:
        raise DataValidationError(
            "Class name is required",
            validation_errors={'name': 'Class name cannot be empty'}
        )
    school_class.name = name
    school_class.save(update_fields=['name', 'updated_at'])
    # Keep assignment snapshots readable after a rename
    TeachingAssignment.objects.filter(school_class=school_class).update(class_name=name)
    return school_class


def add_learner(class_id, name, sex='M', parent_phone='', parent_email='', admission_no=''):
    name = (name or '').strip()
    if not name:
        raise DataValidationError(
            "Learner name is required",
            validation_errors={'name': 'Learner name is required'}
        )
    if not class_id:
        raise DataValidationError(
            "Class ID is required",
            validation_errors={'class_id': 'Class ID is required'}
        )

    school_class = get_class(class_id)
    learner = Learner.objects.create(
        school_class=school_class,
        name=name,
        sex=normalize_sex(sex),
        parent_phone=(parent_phone or '').strip(),
        parent_email=(parent_email or '').strip(),
        admission_no=(admission_no or '').strip(),
    )
    logger.debug(f"Learner {learner.admission_no} added to {school_class.name}")
    return learner


def update_learner(learner_id, **changes):
    try:
        learner = Learner.objects.select_related('school_class').get(pk=learner_id)
    except Learner.DoesNotExist:
        raise ClassManagementException("Learner not found", details={'learner_id': learner_id})

    allowed = {'name', 'sex', 'parent_phone', 'parent_email', 'admission_no'}
    for field, value in changes.items():
        if field not in allowed:
            continue
        if field == 'sex':
            value = normalize_sex(value)
        elif isinstance(value, str):
            value = value.strip()
        setattr(learner, field, value)

    if not learner.name:
        raise DataValidationError(
            "Learner name is required",
            validation_errors={'name': 'Learner name is required'}
        )
    learner.save()
    return learner


def delete_learner(learner_id):
    deleted, _ = Learner.objects.filter(pk=learner_id).delete()
    if not deleted:
        raise ClassManagementException("Learner not found", details={'learner_id': learner_id})


@safe_database_operation
def delete_class(class_id):
    """
    Delete a class and its learners in one transaction. Teaching assignments
    survive with a null class and are reported as orphans.
    """
    school_class = get_class(class_id)
    learner_count = school_class.learners.count()
    name = school_class.name
    school_class.learners.all().delete()
    school_class.delete()
    logger.info(f"Class '{name}' deleted with {learner_count} learners")
    return learner_count


def get_class_learners(class_id):
    return Learner.objects.filter(school_class_id=class_id).order_by('name')


def get_assigned_subjects(class_id):
    subjects = []
    for subject in TeachingAssignment.objects.filter(
        school_class_id=class_id
    ).order_by('created_at').values_list('subject', flat=True):
        if subject and subject not in subjects:
            subjects.append(subject)
    return subjects


def get_assigned_teachers(class_id):
    """One entry per (teacher, subject) assignment of the class."""
    assignments = TeachingAssignment.objects.filter(
        school_class_id=class_id
    ).select_related('teacher__user').order_by('created_at')

    return [
        {
            'teacherId': a.teacher_id,
            'teacherName': a.teacher.get_full_name() or 'Unknown Teacher',
            'subject': a.subject,
            'assignmentId': a.pk,
        }
        for a in assignments
    ]


def get_class_with_assignments(class_id):
    school_class = get_class(class_id)
    return {
        'id': school_class.pk,
        'name': school_class.name,
        'learners': list(get_class_learners(class_id)),
        'subjects': get_assigned_subjects(class_id),
        'teachers': get_assigned_teachers(class_id),
    }


def bulk_import_classes(rows, user=None):
    """Create every class named in ``rows`` that does not exist yet (case-insensitive)."""
    names = parse_class_rows(rows)
    if not names:
        raise DataValidationError(
            "No valid class names found. Ensure your CSV has a 'Class Name' column."
        )

    existing = {name.lower() for name in SchoolClass.objects.values_list('name', flat=True)}
    created = []
    skipped = []
    for name in names:
        if name.lower() in existing:
            skipped.append(name)
            continue
        created.append(add_class(name, user=user))
        existing.add(name.lower())

    logger.info(f"Bulk class import: {len(created)} created, {len(skipped)} skipped")
    return {'created': created, 'skipped': skipped}


@safe_database_operation
def bulk_import_learners(class_id, rows):
    """Add every valid learner row to the class; invalid rows are reported."""
    get_class(class_id)
    learners, errors = parse_learner_rows(rows)
    if not learners and not errors:
        raise DataValidationError(
            "No valid learner data found. Ensure columns: name, sex (Male/Female)."
        )

    created = [add_learner(class_id, **data) for data in learners]
    logger.info(f"Bulk learner import into class {class_id}: {len(created)} created, {len(errors)} errors")
    return {'created': created, 'errors': errors}
