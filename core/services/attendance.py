# core/services/attendance.py
"""
Attendance roll-call: drafts, submission, locking, history, the admin
overview and replay of sessions queued by offline clients.
"""
import logging

from django.conf import settings
from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime

from core.exceptions import (
    AttendanceException,
    DataValidationError,
    PermissionDeniedError,
    SchoolManagementException,
)
from core.grading_utils import round_half_up
from core.models import AttendanceSession, AttendanceRecord, TeachingAssignment
from core.permissions import require_admin
from core.services.class_management import get_class
from core.utils.date_ranges import get_date_range
from core.utils.error_handling import safe_database_operation

logger = logging.getLogger(__name__)

RECORD_STATUSES = [value for value, _ in AttendanceRecord.STATUS_CHOICES]


def compute_attendance_stats(learners, records):
    """
    Summarise a roll call. ``records`` maps learner id to a status; learners
    without a record count towards the total only.
    """
    counts = {status: 0 for status in RECORD_STATUSES}
    for status in records.values():
        if status in counts:
            counts[status] += 1

    total = len(learners)
    boys = [l for l in learners if l.sex == 'M']
    girls = [l for l in learners if l.sex == 'F']

    return {
        'total': total,
        'present': counts['present'],
        'absent': counts['absent'],
        'late': counts['late'],
        'excused': counts['excused'],
        'attendanceRate': counts['present'] / total * 100 if total else 0,
        'boys': {
            'total': len(boys),
            'present': sum(1 for l in boys if records.get(l.pk) == 'present'),
        },
        'girls': {
            'total': len(girls),
            'present': sum(1 for l in girls if records.get(l.pk) == 'present'),
        },
    }


def _coerce_date(value):
    if isinstance(value, str):
        parsed = parse_date(value)
        if parsed is None:
            raise DataValidationError("Invalid date", validation_errors={'date': value})
        return parsed
    return value


def _coerce_datetime(value):
    if isinstance(value, str):
        return parse_datetime(value)
    return value


def _clean_records(learners, records):
    """
    Validate raw ``{learner_id, status, excused_reason, note}`` entries
    against the class roster; excused learners need a reason.
    """
    by_id = {l.pk: l for l in learners}
    cleaned = {}
    missing_reason = []

    for entry in records:
        try:
            learner = by_id[int(entry.get('learner_id'))]
        except (KeyError, TypeError, ValueError):
            raise DataValidationError(
                "Attendance record for a learner outside this class",
                validation_errors={'learner_id': entry.get('learner_id')}
            )

        status = entry.get('status') or AttendanceRecord.STATUS_PRESENT
        if status not in RECORD_STATUSES:
            raise DataValidationError(
                f"Invalid attendance status '{status}'",
                validation_errors={learner.name: status}
            )

        reason = (entry.get('excused_reason') or '').strip() if status == AttendanceRecord.STATUS_EXCUSED else ''
        if status == AttendanceRecord.STATUS_EXCUSED and not reason:
            missing_reason.append(learner.name)

        cleaned[learner.pk] = {
            'learner': learner,
            'status': status,
            'excused_reason': reason,
            'note': (entry.get('note') or '').strip(),
        }

    if missing_reason:
        raise AttendanceException(
            f"Please provide reasons for excused learners: {', '.join(missing_reason)}",
            details={'learners': missing_reason}
        )
    return cleaned


def _check_teacher_class(teacher, school_class):
    if not TeachingAssignment.objects.filter(teacher=teacher, school_class=school_class).exists():
        raise PermissionDeniedError(
            "You are not assigned to this class",
            required_permission='class_assignment',
            user=teacher.user
        )


def _write_session(teacher, class_id, date, records, title='', status=AttendanceSession.STATUS_DRAFT,
                   client_updated_at=None):
    school_class = get_class(class_id)
    _check_teacher_class(teacher, school_class)
    date = _coerce_date(date)
    learners = list(school_class.learners.order_by('name'))
    cleaned = _clean_records(learners, records)

    session = AttendanceSession.objects.filter(
        teacher=teacher, school_class=school_class, date=date
    ).order_by('-created_at').first()

    if session is not None and not session.is_editable:
        raise AttendanceException(
            "Attendance for this date has already been submitted",
            details={'session_id': session.pk, 'status': session.status}
        )

    if session is None:
        session = AttendanceSession(teacher=teacher, school_class=school_class, date=date)

    session.title = title or session.title or f"{school_class.name} - {date.isoformat()}"
    session.class_name = school_class.name
    session.teacher_name = teacher.get_full_name()
    session.status = status
    session.stats = compute_attendance_stats(learners, {pk: r['status'] for pk, r in cleaned.items()})
    if client_updated_at is not None:
        session.client_updated_at = client_updated_at
    if status == AttendanceSession.STATUS_SUBMITTED:
        session.submitted_at = timezone.now()
    session.save()

    session.records.exclude(learner_id__in=cleaned.keys()).delete()
    for learner_id, record in cleaned.items():
        learner = record['learner']
        AttendanceRecord.objects.update_or_create(
            session=session,
            learner=learner,
            defaults={
                'learner_name': learner.name,
                'gender': learner.sex,
                'status': record['status'],
                'excused_reason': record['excused_reason'],
                'note': record['note'],
            }
        )
    return session


@safe_database_operation
def save_draft_attendance(teacher, class_id, date, records, title=''):
    session = _write_session(teacher, class_id, date, records, title)
    logger.debug(f"Attendance draft saved for {session.class_name} on {session.date}")
    return session


@safe_database_operation
def submit_attendance(teacher, class_id, date, records, title=''):
    session = _write_session(teacher, class_id, date, records, title, status=AttendanceSession.STATUS_SUBMITTED)
    logger.info(
        f"Attendance submitted for {session.class_name} on {session.date}: "
        f"{session.stats['present']}/{session.stats['total']} present"
    )
    return session


def get_draft_attendance(class_id, date, teacher):
    return AttendanceSession.objects.filter(
        school_class_id=class_id,
        date=_coerce_date(date),
        teacher=teacher,
        status=AttendanceSession.STATUS_DRAFT,
    ).prefetch_related('records').first()


def get_teacher_attendance_history(teacher, limit=None):
    limit = limit or settings.ATTENDANCE_HISTORY_LIMIT
    return list(
        AttendanceSession.objects.filter(
            teacher=teacher, status__in=[AttendanceSession.STATUS_SUBMITTED, AttendanceSession.STATUS_LOCKED]
        ).order_by('-submitted_at')[:limit]
    )


def summarize_sessions(sessions):
    totals = {'total': 0, 'present': 0, 'absent': 0, 'late': 0, 'excused': 0}
    for session in sessions:
        for key in totals:
            totals[key] += (session.stats or {}).get(key, 0)

    count = len(sessions)
    return {
        'totalSessions': count,
        'totalLearners': totals['total'],
        'overallAttendanceRate': totals['present'] / totals['total'] * 100 if totals['total'] else 0,
        'averages': {
            key: round_half_up(totals[key] / count) if count else 0
            for key in ('present', 'absent', 'late', 'excused')
        },
    }


def get_attendance_overview(start, end):
    """Submitted sessions whose submission date falls in ``start..end``."""
    start, end = _coerce_date(start), _coerce_date(end)
    sessions = list(
        AttendanceSession.objects.filter(
            status__in=[AttendanceSession.STATUS_SUBMITTED, AttendanceSession.STATUS_LOCKED],
            submitted_at__date__gte=start,
            submitted_at__date__lte=end,
        ).order_by('-submitted_at')
    )
    return {'start': start, 'end': end, 'sessions': sessions, 'summary': summarize_sessions(sessions)}


def get_attendance_overview_for_preset(preset, start=None, end=None):
    period = get_date_range(preset, _coerce_date(start), _coerce_date(end))
    overview = get_attendance_overview(period['start'], period['end'])
    overview['label'] = period['label']
    return overview


def lock_attendance(session_id, user):
    require_admin(user, 'lock attendance')
    try:
        session = AttendanceSession.objects.get(pk=session_id)
    except AttendanceSession.DoesNotExist:
        raise AttendanceException("Attendance session not found", details={'session_id': session_id})

    if session.status != AttendanceSession.STATUS_SUBMITTED:
        raise AttendanceException("Only submitted attendance can be locked", details={'status': session.status})

    session.status = AttendanceSession.STATUS_LOCKED
    session.save(update_fields=['status', 'updated_at'])
    logger.info(f"Attendance session {session.pk} locked by {user}")
    return session


def sync_offline_sessions(teacher, sessions):
    """
    Replay sessions recorded while offline. A queued session wins over the
    stored one only when its ``client_updated_at`` is newer; sessions that
    are already submitted or locked are never overwritten.
    """
    applied = 0
    skipped = 0

    for queued in sessions:
        client_updated_at = _coerce_datetime(queued.get('client_updated_at'))
        existing = AttendanceSession.objects.filter(
            teacher=teacher,
            school_class_id=queued.get('class_id'),
            date=_coerce_date(queued.get('date')),
        ).order_by('-created_at').first()

        if existing is not None and (
            not existing.is_editable
            or (existing.client_updated_at and client_updated_at and client_updated_at <= existing.client_updated_at)
        ):
            skipped += 1
            continue

        writer = submit_attendance if queued.get('status') == AttendanceSession.STATUS_SUBMITTED else save_draft_attendance
        try:
            session = writer(teacher, queued.get('class_id'), queued.get('date'), queued.get('records', []),
                             queued.get('title', ''))
        except SchoolManagementException as e:
            logger.warning(f"Skipped queued attendance for class {queued.get('class_id')}: {e.message}")
            skipped += 1
            continue

        if client_updated_at is not None:
            session.client_updated_at = client_updated_at
            session.save(update_fields=['client_updated_at'])
        applied += 1

    logger.info(f"Offline attendance sync for {teacher.employee_id}: {applied} applied, {skipped} skipped")
    return {'applied': applied, 'skipped': skipped}
