# core/services/teacher_assignments.py
"""
Teacher subject lists and teacher-to-class teaching assignments.
"""
import logging

from django.db import IntegrityError

from core.exceptions import TeacherManagementException, DataValidationError
from core.models import Teacher, TeachingAssignment, unique_list, DELETED_CLASS_LABEL
from core.services.class_management import get_class
from core.utils.error_handling import safe_database_operation

logger = logging.getLogger(__name__)

UNKNOWN_TEACHER = "Unknown Teacher"


def get_teacher(teacher_id):
    try:
        return Teacher.objects.select_related('user').get(pk=teacher_id)
    except (Teacher.DoesNotExist, ValueError, TypeError):
        raise TeacherManagementException("Teacher not found", details={'teacher_id': teacher_id})


def list_teachers():
    return Teacher.objects.select_related('user').filter(is_active=True)


def update_teacher_subjects(teacher_id, subjects):
    teacher = get_teacher(teacher_id)
    teacher.subjects = unique_list(subjects)
    teacher.save(update_fields=['subjects', 'updated_at'])
    return teacher


def assign_teacher_to_class(teacher_id, class_id, subject):
    subject = (subject or '').strip()
    if not subject:
        raise DataValidationError("Subject is required", validation_errors={'subject': 'Subject is required'})

    teacher = get_teacher(teacher_id)
    school_class = get_class(class_id)

    if TeachingAssignment.objects.filter(
        teacher=teacher, school_class=school_class, subject=subject
    ).exists():
        raise TeacherManagementException(
            "Teacher is already assigned to this class for this subject",
            details={'teacher_id': teacher_id, 'class_id': class_id, 'subject': subject}
        )

    try:
        assignment = TeachingAssignment.objects.create(
            teacher=teacher,
            school_class=school_class,
            class_name=school_class.name,
            subject=subject,
        )
    except IntegrityError:
        raise TeacherManagementException(
            "Teacher is already assigned to this class for this subject"
        )

    logger.info(f"{teacher.employee_id} assigned to {school_class.name} for {subject}")
    return assignment


@safe_database_operation
def assign_teacher_to_class_multiple(teacher_id, class_id, subjects):
    """Replace the teacher's subjects in a class; an empty list removes them all."""
    subjects = unique_list(subjects)
    if not subjects:
        remove_teacher_from_class_all_subjects(teacher_id, class_id)
        return []

    teacher = get_teacher(teacher_id)
    school_class = get_class(class_id)

    TeachingAssignment.objects.filter(teacher=teacher, school_class=school_class).delete()
    return [
        TeachingAssignment.objects.create(
            teacher=teacher,
            school_class=school_class,
            class_name=school_class.name,
            subject=subject,
        )
        for subject in subjects
    ]


def remove_teacher_from_class(assignment_id):
    deleted, _ = TeachingAssignment.objects.filter(pk=assignment_id).delete()
    if not deleted:
        raise TeacherManagementException("Assignment not found", details={'assignment_id': assignment_id})


def remove_teacher_from_class_all_subjects(teacher_id, class_id):
    deleted, _ = TeachingAssignment.objects.filter(
        teacher_id=teacher_id, school_class_id=class_id
    ).delete()
    return deleted


# ============================================================================
# QUERIES
# ============================================================================

def get_assignments_by_class_id(class_id):
    return TeachingAssignment.objects.filter(school_class_id=class_id).select_related('teacher__user')


def get_assignments_by_teacher_id(teacher_id):
    return TeachingAssignment.objects.filter(teacher_id=teacher_id).select_related('school_class')


def get_teacher_subjects_for_class(teacher_id, class_id):
    return list(
        TeachingAssignment.objects.filter(
            teacher_id=teacher_id, school_class_id=class_id
        ).order_by('created_at').values_list('subject', flat=True)
    )


def get_teachers_for_class(class_id):
    """Assignments of a class grouped per teacher, in assignment order."""
    teachers = {}
    for assignment in get_assignments_by_class_id(class_id).order_by('created_at', 'pk'):
        entry = teachers.setdefault(assignment.teacher_id, {
            'teacherId': assignment.teacher_id,
            'teacherName': assignment.teacher.get_full_name() or UNKNOWN_TEACHER,
            'subjects': [],
        })
        entry['subjects'].append(assignment.subject)
    return list(teachers.values())


def get_all_teacher_class_assignments(teacher_id=None):
    """Every assignment, including those whose class has been deleted."""
    assignments = TeachingAssignment.objects.select_related('school_class', 'teacher__user')
    if teacher_id is not None:
        assignments = assignments.filter(teacher_id=teacher_id)

    return [
        {
            'assignmentId': a.pk,
            'teacherId': a.teacher_id,
            'teacherName': a.teacher.get_full_name() or UNKNOWN_TEACHER,
            'classId': a.school_class_id,
            'className': a.school_class.name if a.class_exists else DELETED_CLASS_LABEL,
            'subject': a.subject,
            'classExists': a.class_exists,
        }
        for a in assignments.order_by('created_at', 'pk')
    ]


def get_teacher_class_subjects(teacher_id):
    """(class, subject) pairs of a teacher, skipping deleted classes."""
    return [
        {'classId': a['classId'], 'className': a['className'], 'subject': a['subject']}
        for a in get_all_teacher_class_assignments(teacher_id)
        if a['classExists']
    ]


def get_teacher_classes(teacher_id):
    """A teacher's live classes, each with its de-duplicated subjects."""
    classes = {}
    for item in get_teacher_class_subjects(teacher_id):
        entry = classes.setdefault(item['classId'], {
            'classId': item['classId'],
            'className': item['className'],
            'subjects': [],
        })
        if item['subject'] not in entry['subjects']:
            entry['subjects'].append(item['subject'])
    return list(classes.values())


def is_teacher_assigned_to_class_subject(teacher_id, class_id, subject):
    return TeachingAssignment.objects.filter(
        teacher_id=teacher_id, school_class_id=class_id, subject=subject
    ).exists()


def cleanup_orphaned_assignments():
    """Delete assignments whose class no longer exists; returns how many went."""
    deleted, _ = TeachingAssignment.objects.filter(school_class__isnull=True).delete()
    if deleted:
        logger.info(f"Cleaned up {deleted} orphaned assignments")
    return deleted


@safe_database_operation
def update_class_assignments(class_id, teacher_assignments):
    """
    Replace every assignment of a class with ``{teacher_id: [subjects]}``.
    Teachers with an empty list end up unassigned.
    """
    school_class = get_class(class_id)
    TeachingAssignment.objects.filter(school_class=school_class).delete()

    created = []
    for teacher_id, subjects in teacher_assignments.items():
        teacher = get_teacher(teacher_id)
        for subject in unique_list(subjects):
            created.append(TeachingAssignment.objects.create(
                teacher=teacher,
                school_class=school_class,
                class_name=school_class.name,
                subject=subject,
            ))

    logger.info(f"Class {school_class.name}: {len(created)} assignments after batch update")
    return created
