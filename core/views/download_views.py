# core/views/download_views.py
"""
File downloads: report-card and results-analysis PDFs, CSV templates and exports.
"""
import logging

from django.contrib.auth.decorators import login_required
from django.http import HttpResponse
from django.utils import timezone

from core.exceptions import DataValidationError, PermissionDeniedError, ReportCardException
from core.models import ASSESSMENT_TYPES, TERM_DISPLAY_MAP
from core.permissions import admin_required, is_admin, staff_required
from core.services import class_management, marks
from core.services.attendance import get_attendance_overview_for_preset
from core.services.report_card_pdf import ReportCardPDFGenerator
from core.services.results_analysis_pdf import ResultsAnalysisPDFGenerator
from core.services.report_cards import get_ready_reports
from core.utils.error_handling import handle_view_exception
from core.utils.export_utils import (
    ATTENDANCE_OVERVIEW_HEADERS,
    COMPILED_MARKS_HEADERS,
    attendance_overview_rows,
    class_template_csv,
    compiled_marks_rows,
    csv_response,
    learner_template_csv,
    marks_template_csv,
    marks_template_filename,
    safe_filename_part,
)

logger = logging.getLogger(__name__)


def _term_and_year(request):
    term = request.GET.get('term', 'term1')
    if term not in TERM_DISPLAY_MAP:
        raise DataValidationError(f"Unknown term '{term}'", validation_errors={'term': term})
    try:
        year = int(request.GET.get('year') or timezone.now().year)
    except ValueError:
        raise DataValidationError("Year must be a number", validation_errors={'year': request.GET.get('year')})
    return term, year


def _assessment_type(request):
    assessment_type = request.GET.get('assessment_type', 'end_of_term')
    if assessment_type not in ASSESSMENT_TYPES:
        raise DataValidationError(
            f"Unknown assessment type '{assessment_type}'",
            validation_errors={'assessment_type': assessment_type}
        )
    return assessment_type


def _csv_text_response(text, filename):
    response = HttpResponse(text, content_type='text/csv; charset=utf-8')
    response['Content-Disposition'] = f'attachment; filename="{filename}"'
    return response


@login_required
@staff_required
@handle_view_exception
def report_card_pdf(request, learner_id):
    term, year = _term_and_year(request)
    report = marks.get_learner_report(learner_id, term, year=year)
    if report is None:
        raise ReportCardException("Learner not found", details={'learner_id': learner_id})
    return ReportCardPDFGenerator().generate_report_card_response(
        report, term, year, comment=request.GET.get('comment') or None
    )


@login_required
@admin_required
@handle_view_exception
def class_report_cards_pdf(request, class_id):
    """Every ready report card of a class in one PDF, one page per learner."""
    term, year = _term_and_year(request)
    school_class = class_management.get_class(class_id)
    reports = get_ready_reports(school_class.pk, term, year=year)
    logger.info(f"Downloading {len(reports)} report card(s) for {school_class.name}")
    return ReportCardPDFGenerator().generate_class_bundle_response(school_class.name, reports, term, year)


@login_required
@admin_required
def class_template(request):
    return _csv_text_response(class_template_csv(), 'class_template.csv')


@login_required
@admin_required
def learner_template(request):
    return _csv_text_response(learner_template_csv(), 'learner_template.csv')


@login_required
@staff_required
@handle_view_exception
def marks_template(request, class_id):
    school_class = class_management.get_class(class_id)
    subject = request.GET.get('subject', '')
    return _csv_text_response(
        marks_template_csv(class_management.get_class_learners(school_class.pk)),
        marks_template_filename(safe_filename_part(school_class.name), subject)
    )


@login_required
@staff_required
@handle_view_exception
def compiled_marks_csv(request, class_id):
    term, _ = _term_and_year(request)
    school_class = class_management.get_class(class_id)
    return csv_response(
        compiled_marks_rows(marks.get_compiled_class_marks(school_class.pk, term)),
        f"compiled_marks_{safe_filename_part(school_class.name)}_{term}.csv",
        headers=COMPILED_MARKS_HEADERS
    )


@login_required
@admin_required
@handle_view_exception
def attendance_overview_csv(request):
    overview = get_attendance_overview_for_preset(
        request.GET.get('preset', 'this_week'), request.GET.get('start'), request.GET.get('end')
    )
    return csv_response(
        attendance_overview_rows(overview['sessions']),
        f"attendance_{overview['start']}_{overview['end']}.csv",
        headers=ATTENDANCE_OVERVIEW_HEADERS
    )


@login_required
@admin_required
@handle_view_exception
def results_analysis_pdf(request):
    """Board results sheet covering every class and subject."""
    term, year = _term_and_year(request)
    assessment_type = _assessment_type(request)
    subject_classes = marks.fetch_subject_class_marks(term, assessment_type)
    return ResultsAnalysisPDFGenerator().school_sheet_response(subject_classes, term, assessment_type, year)


@login_required
@staff_required
@handle_view_exception
def subject_analysis_pdf(request, class_id):
    """
    Gender and grade breakdown for one subject class. Teachers only get the
    subjects they teach; administrators may pick any.
    """
    term, year = _term_and_year(request)
    assessment_type = _assessment_type(request)
    subject = request.GET.get('subject', '').strip()
    if not subject:
        raise DataValidationError("Subject is required", validation_errors={'subject': 'required'})

    teacher_id = None if is_admin(request.user) else request.user.teacher.pk
    matches = [
        sc for sc in marks.fetch_subject_class_marks(term, assessment_type, teacher_id=teacher_id)
        if sc['classId'] == class_id and sc['subject'].lower() == subject.lower()
    ]
    if not matches:
        raise PermissionDeniedError(
            f"No {subject} class you teach matches this request",
            required_permission='subject_teacher',
            user=request.user
        )
    return ResultsAnalysisPDFGenerator().subject_sheet_response(
        matches[0], term, assessment_type, year, teacher_name=request.user.display_name
    )
