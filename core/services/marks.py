# core/services/marks.py
"""
Marks entry, compiled learner reports and submission progress.

Scores are percentages (0..100); ``None`` records an absent learner. A mark
row exists per (learner, class, subject, term, assessment type) and saving is
an upsert on that key.
"""
import logging
from collections import OrderedDict

from django.conf import settings
from django.db.models import Avg
from django.utils import timezone

from core.exceptions import GradeValidationError, PermissionDeniedError, DataValidationError
from core.grading_utils import get_ecz_grade, final_score, round_half_up
from core.models import (
    ASSESSMENT_TYPES,
    TERM_DISPLAY_MAP,
    Learner,
    Mark,
    ReportDelivery,
    SchoolClass,
    TeachingAssignment,
    generate_admission_no,
)
from core.permissions import is_admin, is_teacher
from core.services.class_management import get_class
from core.services.teacher_assignments import get_teachers_for_class, is_teacher_assigned_to_class_subject
from core.utils.error_handling import safe_database_operation

logger = logging.getLogger(__name__)

# Keys used in report payloads for each assessment type
SCORE_KEYS = {
    'week4': 'week4',
    'week8': 'week8',
    'end_of_term': 'endOfTerm',
}


def _threshold():
    return getattr(settings, 'SUBMISSION_THRESHOLD', 0.8)


def _default_comment():
    return getattr(
        settings, 'REPORT_DEFAULT_COMMENT', "Good performance overall. Shows improvement."
    )


def _validate_term_and_type(term, assessment_type=None):
    errors = {}
    if term not in TERM_DISPLAY_MAP:
        errors['term'] = f"Unknown term '{term}'"
    if assessment_type is not None and assessment_type not in ASSESSMENT_TYPES:
        errors['assessment_type'] = f"Unknown assessment type '{assessment_type}'"
    if errors:
        raise DataValidationError("Invalid term or assessment type", validation_errors=errors)


def validate_score(score):
    """Return the score as a float (or None for absent); raise ValueError otherwise."""
    if score is None or score == '':
        return None
    value = float(score)
    if value != value or not 0 <= value <= 100:
        raise ValueError("Score must be between 0 and 100")
    return value


# ============================================================================
# ENTRY
# ============================================================================

@safe_database_operation
def save_marks(user, class_id, subject, term, assessment_type, entries, status=Mark.STATUS_DRAFT):
    """
    Upsert one mark per entry ``{learner_id, score, comment}``.

    Teachers may only enter marks for subjects they teach in the class;
    administrators may enter any. Returns the saved ``Mark`` objects.
    """
    _validate_term_and_type(term, assessment_type)
    if status not in (Mark.STATUS_DRAFT, Mark.STATUS_SUBMITTED):
        raise DataValidationError("Invalid status", validation_errors={'status': status})

    school_class = get_class(class_id)
    teacher = user.teacher if is_teacher(user) else None

    if not is_admin(user):
        if teacher is None or not is_teacher_assigned_to_class_subject(teacher.pk, school_class.pk, subject):
            raise PermissionDeniedError(
                "You are not assigned to teach this subject in this class",
                required_permission='class_subject_assignment',
                user=user
            )

    learners = {l.pk: l for l in school_class.learners.all()}
    field_errors = {}
    cleaned = []

    for entry in entries:
        learner_id = entry.get('learner_id')
        try:
            learner_id = int(learner_id)
        except (TypeError, ValueError):
            field_errors[str(learner_id)] = "Unknown learner"
            continue
        if learner_id not in learners:
            field_errors[str(learner_id)] = "Learner is not in this class"
            continue
        try:
            score = validate_score(entry.get('score'))
        except (TypeError, ValueError):
            field_errors[learners[learner_id].name] = "Score must be a number between 0 and 100"
            continue
        cleaned.append((learners[learner_id], score, (entry.get('comment') or '').strip()))

    if field_errors:
        raise GradeValidationError(
            f"{len(field_errors)} mark(s) failed validation",
            field_errors=field_errors,
            user=user
        )

    teacher_name = teacher.get_full_name() if teacher else user.display_name
    saved = []
    for learner, score, comment in cleaned:
        mark, _ = Mark.objects.update_or_create(
            learner=learner,
            school_class=school_class,
            subject=subject,
            term=term,
            assessment_type=assessment_type,
            defaults={
                'score': score,
                'comment': comment,
                'status': status,
                'teacher': teacher,
                'teacher_name': teacher_name,
            }
        )
        saved.append(mark)

    logger.info(
        f"{len(saved)} {assessment_type} marks saved for {school_class.name} "
        f"{subject} ({term}, {status}) by {user}"
    )
    return saved


def get_marks_entry_stats(class_id, subject, term, assessment_type):
    total = Learner.objects.filter(school_class_id=class_id).count()
    marks = Mark.objects.filter(
        school_class_id=class_id, subject=subject, term=term, assessment_type=assessment_type
    )
    entered = marks.filter(score__isnull=False).count()
    absent = marks.filter(score__isnull=True).count()
    average = marks.filter(score__isnull=False).aggregate(avg=Avg('score'))['avg']

    return {
        'total': total,
        'entered': entered,
        'absent': absent,
        'pending': max(total - entered - absent, 0),
        'submitted': marks.filter(status=Mark.STATUS_SUBMITTED).count(),
        'averageScore': round(average, 1) if average is not None else 0,
        'completionPercentage': round_half_up((entered + absent) / total * 100) if total else 0,
    }


# ============================================================================
# SUBJECT-CLASS MARK SHEETS
# ============================================================================

def fetch_subject_class_marks(term, assessment_type, teacher_id=None):
    """
    One entry per distinct (class, subject) assignment, listing every learner
    of the class with the score for ``assessment_type`` (None when absent or
    not yet entered).
    """
    assignments = TeachingAssignment.objects.filter(
        school_class__isnull=False
    ).select_related('school_class').order_by('created_at', 'pk')
    if teacher_id is not None:
        assignments = assignments.filter(teacher_id=teacher_id)

    combos = OrderedDict()
    for assignment in assignments:
        key = (assignment.school_class_id, assignment.subject)
        if key not in combos:
            combos[key] = assignment

    results = []
    for (class_id, subject), assignment in combos.items():
        school_class = assignment.school_class
        scores = dict(
            Mark.objects.filter(
                school_class_id=class_id,
                subject=subject,
                term=term,
                assessment_type=assessment_type,
            ).values_list('learner_id', 'score')
        )

        learners = []
        for index, learner in enumerate(school_class.learners.order_by('name')):
            learners.append({
                'id': learner.pk,
                'admissionNo': learner.admission_no or generate_admission_no(school_class.name, index),
                'name': learner.name,
                'gender': learner.sex or 'M',
                'score': scores.get(learner.pk),
                'classId': class_id,
                'className': school_class.name,
                'subject': subject,
                'assessmentType': assessment_type,
            })

        results.append({
            'id': f"{class_id}-{subject}",
            'classId': class_id,
            'className': school_class.name,
            'subject': subject,
            'teacherId': assignment.teacher_id,
            'learners': learners,
        })
    return results


# ============================================================================
# LEARNER REPORTS
# ============================================================================

def _marks_by_learner_subject(marks):
    """
    Group marks into ``{learner_id: {subject: {...}}}`` keeping the three
    scores, the recorded assessment types and the first teacher comment.
    """
    grouped = {}
    for mark in marks:
        subjects = grouped.setdefault(mark.learner_id, OrderedDict())
        entry = subjects.setdefault(mark.subject, {
            'week4': None,
            'week8': None,
            'endOfTerm': None,
            'teacherComment': '',
            'teacherName': '',
            'recorded': set(),
        })
        entry[SCORE_KEYS[mark.assessment_type]] = mark.score
        entry['recorded'].add(mark.assessment_type)
        if mark.comment and not entry['teacherComment']:
            entry['teacherComment'] = mark.comment
            entry['teacherName'] = mark.teacher_name
    return grouped


def _term_marks(term, class_ids):
    return Mark.objects.filter(
        term=term, school_class_id__in=class_ids
    ).order_by('assessment_type', 'created_at', 'pk')


def build_subject_rows(subject_marks):
    rows = []
    for name, marks in subject_marks.items():
        score = final_score(marks['week4'], marks['week8'], marks['endOfTerm'])
        ecz = get_ecz_grade(score)
        rows.append({
            'name': name,
            'week4': marks['week4'],
            'week8': marks['week8'],
            'endOfTerm': marks['endOfTerm'],
            'score': score,
            'grade': ecz['code'],
            'gradeDescription': ecz['grade'],
            'teacherComment': marks['teacherComment'],
            'teacherName': marks['teacherName'],
        })
    return rows


def is_report_ready(subject_marks):
    """Every subject has a mark row (score or absent) for all three assessments."""
    return bool(subject_marks) and all(
        marks['recorded'] >= set(ASSESSMENT_TYPES) for marks in subject_marks.values()
    )


def fetch_learner_reports(term, class_id=None, year=None):
    """Compiled report-card data for every learner (or one class)."""
    _validate_term_and_type(term)
    year = year or timezone.now().year

    classes = SchoolClass.objects.order_by('name')
    if class_id is not None:
        classes = classes.filter(pk=class_id)
    classes = list(classes)
    class_ids = [c.pk for c in classes]

    grouped = _marks_by_learner_subject(_term_marks(term, class_ids))
    deliveries = {
        d.learner_id: d
        for d in ReportDelivery.objects.filter(
            term=term, year=year, learner__school_class_id__in=class_ids
        )
    }

    reports = []
    for school_class in classes:
        for learner in school_class.learners.order_by('name'):
            subject_marks = grouped.get(learner.pk, OrderedDict())
            delivery = deliveries.get(learner.pk)
            reports.append({
                'id': learner.pk,
                'name': learner.name,
                'classId': school_class.pk,
                'className': school_class.name,
                'subjects': build_subject_rows(subject_marks),
                'comment': _default_comment(),
                'parentPhone': learner.parent_phone,
                'parentEmail': learner.parent_email,
                'reportReady': is_report_ready(subject_marks),
                'reportSent': delivery is not None,
                'sentVia': delivery.sent_via if delivery else [],
                'sentAt': delivery.sent_at if delivery else None,
                'sex': learner.sex or 'M',
                'admissionNo': learner.admission_no,
            })
    return reports


def get_learner_report(learner_id, term, year=None):
    try:
        learner = Learner.objects.get(pk=learner_id)
    except (Learner.DoesNotExist, ValueError, TypeError):
        raise DataValidationError("Learner not found", validation_errors={'learner_id': learner_id})

    for report in fetch_learner_reports(term, class_id=learner.school_class_id, year=year):
        if report['id'] == learner.pk:
            return report
    return None


def get_compiled_class_marks(class_id, term):
    """Flat rows of the three scores and the final score per learner and subject."""
    school_class = get_class(class_id)
    grouped = _marks_by_learner_subject(_term_marks(term, [school_class.pk]))

    rows = []
    for index, learner in enumerate(school_class.learners.order_by('name')):
        for subject, marks in grouped.get(learner.pk, {}).items():
            rows.append({
                'learnerId': learner.pk,
                'admissionNo': learner.admission_no or generate_admission_no(school_class.name, index),
                'name': learner.name,
                'gender': learner.sex or 'M',
                'classId': school_class.pk,
                'className': school_class.name,
                'subject': subject,
                'week4': marks['week4'],
                'week8': marks['week8'],
                'endOfTerm': marks['endOfTerm'],
                'finalScore': final_score(marks['week4'], marks['week8'], marks['endOfTerm']),
                'teacherComment': marks['teacherComment'],
                'teacherName': marks['teacherName'],
            })
    return rows


# ============================================================================
# PROGRESS
# ============================================================================

def _marked_counts(class_id, term, assessment_type):
    """``{subject: learners with a non-null score}`` for one assessment."""
    counts = {}
    for subject in Mark.objects.filter(
        school_class_id=class_id,
        term=term,
        assessment_type=assessment_type,
        score__isnull=False,
    ).values_list('subject', flat=True):
        counts[subject] = counts.get(subject, 0) + 1
    return counts


def get_teacher_progress(class_id, term, assessment_type):
    total_learners = Learner.objects.filter(school_class_id=class_id).count()
    marked = _marked_counts(class_id, term, assessment_type)
    threshold = total_learners * _threshold()

    progress = []
    for teacher in get_teachers_for_class(class_id):
        subjects = teacher['subjects']
        missing = [s for s in subjects if marked.get(s, 0) < threshold]
        submitted = len(subjects) - len(missing)
        progress.append({
            'teacherId': teacher['teacherId'],
            'teacherName': teacher['teacherName'],
            'subjects': subjects,
            'submittedSubjects': submitted,
            'totalSubjects': len(subjects),
            'percentComplete': round_half_up(submitted / len(subjects) * 100) if subjects else 0,
            'missingSubjects': missing,
        })
    return progress


def get_class_progress(class_id, term, assessment_type, year=None):
    """Submission progress of a class; None when nobody teaches it."""
    teachers = get_teacher_progress(class_id, term, assessment_type)
    if not teachers:
        return None

    school_class = SchoolClass.objects.filter(pk=class_id).first()
    reports = fetch_learner_reports(term, class_id=class_id, year=year)

    total_subjects = sum(t['totalSubjects'] for t in teachers)
    submitted_subjects = sum(t['submittedSubjects'] for t in teachers)
    percent = round_half_up(submitted_subjects / total_subjects * 100) if total_subjects else 0

    return {
        'classId': class_id,
        'className': school_class.name if school_class else 'Unknown Class',
        'teachers': teachers,
        'totalSubjects': total_subjects,
        'submittedSubjects': submitted_subjects,
        'percentComplete': percent,
        'ready': percent == 100,
        'learners': {
            'total': len(reports),
            'ready': sum(1 for r in reports if r['reportReady']),
            'sent': sum(1 for r in reports if r['reportSent']),
        },
    }


def get_all_classes_progress(term, assessment_type, year=None):
    class_ids = (
        TeachingAssignment.objects.filter(school_class__isnull=False)
        .order_by('school_class__name')
        .values_list('school_class_id', flat=True)
        .distinct()
    )
    progress = []
    for class_id in class_ids:
        class_progress = get_class_progress(class_id, term, assessment_type, year=year)
        if class_progress:
            progress.append(class_progress)
    return progress


def get_ready_classes(term, assessment_type):
    return [p['classId'] for p in get_all_classes_progress(term, assessment_type) if p['ready']]


def get_pending_classes(term, assessment_type):
    return [p['classId'] for p in get_all_classes_progress(term, assessment_type) if not p['ready']]


def get_class_progress_report(term, year=None):
    """Learners ready for and already sent a report card, per class."""
    rows = OrderedDict()
    for school_class in SchoolClass.objects.order_by('name'):
        rows[school_class.pk] = {
            'id': school_class.pk,
            'name': school_class.name,
            'total': 0,
            'ready': 0,
            'sent': 0,
        }
    for report in fetch_learner_reports(term, year=year):
        row = rows[report['classId']]
        row['total'] += 1
        row['ready'] += int(report['reportReady'])
        row['sent'] += int(report['reportSent'])
    return list(rows.values())


def check_subject_completion_all_assessments(class_id, term):
    total_learners = Learner.objects.filter(school_class_id=class_id).count()
    threshold = total_learners * _threshold()
    marked = {t: _marked_counts(class_id, term, t) for t in ASSESSMENT_TYPES}

    result = []
    for teacher in get_teachers_for_class(class_id):
        for subject in teacher['subjects']:
            week4 = marked['week4'].get(subject, 0) >= threshold
            week8 = marked['week8'].get(subject, 0) >= threshold
            end_of_term = marked['end_of_term'].get(subject, 0) >= threshold
            result.append({
                'subject': subject,
                'teacherId': teacher['teacherId'],
                'teacherName': teacher['teacherName'],
                'week4Complete': week4,
                'week8Complete': week8,
                'endOfTermComplete': end_of_term,
                'fullyComplete': week4 and week8 and end_of_term,
            })
    return result


def check_learner_assessments_complete(learner_id, class_id, term, subjects):
    recorded = set(
        Mark.objects.filter(
            learner_id=learner_id, school_class_id=class_id, term=term, subject__in=subjects
        ).values_list('subject', 'assessment_type')
    )
    return all(
        (subject, assessment_type) in recorded
        for subject in subjects
        for assessment_type in ASSESSMENT_TYPES
    )


def get_assessment_completion_stats(class_id, term):
    """
    Percentage of expected scores entered per assessment type, where the
    expectation is one score per learner for every subject taught in the class.
    """
    total_learners = Learner.objects.filter(school_class_id=class_id).count()
    teacher_subjects = {
        (t['teacherId'], s) for t in get_teachers_for_class(class_id) for s in t['subjects']
    }
    subjects = {s for _, s in teacher_subjects}
    expected = len(teacher_subjects) * total_learners

    stats = {}
    for assessment_type in ASSESSMENT_TYPES:
        completed = Mark.objects.filter(
            school_class_id=class_id,
            term=term,
            assessment_type=assessment_type,
            subject__in=subjects,
            score__isnull=False,
        ).count()
        stats[SCORE_KEYS[assessment_type]] = (
            min(round_half_up(completed / expected * 100), 100) if expected else 0
        )

    stats['overall'] = round_half_up(sum(stats.values()) / len(ASSESSMENT_TYPES))
    return stats
