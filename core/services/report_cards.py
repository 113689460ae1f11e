# core/services/report_cards.py
"""
Report card delivery: SMS, WhatsApp and e-mail links, delivery records and
bulk sending for classes whose reports are complete.
"""
import logging
import re
from urllib.parse import quote

from django.conf import settings
from django.core.mail import EmailMessage
from django.utils import timezone

from core.exceptions import ReportCardException, DataValidationError
from core.grading_utils import ECZ_GRADING_SYSTEM, get_ecz_grade
from core.models import ReportDelivery, TERM_DISPLAY_MAP, extract_form_number
from core.services.marks import fetch_learner_reports, get_learner_report
from core.services.report_card_pdf import ReportCardPDFGenerator, average_score, format_score, report_card_filename

logger = logging.getLogger(__name__)

DELIVERY_METHODS = ('sms', 'whatsapp', 'email', 'all')
BULK_CLASS = 'bulk'
BULK_ALL = 'bulk_all'

_NON_DIGIT_RE = re.compile(r'\D')
_TAG_RE = re.compile(r'<[^>]*>')


def _term_label(term):
    return TERM_DISPLAY_MAP.get(term, term)


def _digits(phone):
    return _NON_DIGIT_RE.sub('', phone or '')


def strip_html(html):
    return _TAG_RE.sub('', html)


# ============================================================================
# MESSAGES
# ============================================================================

def sms_message(report, term, year):
    avg = average_score(report['subjects'])
    return (
        f"{settings.SCHOOL_NAME} REPORT CARD\n"
        f"{report['name']} - {report['className']}\n"
        f"Term: {_term_label(term)} {year}\n"
        f"Avg: {avg:.1f}% ({get_ecz_grade(avg)['grade']})\n"
        f"Report sent via SMS. Details sent to email/WhatsApp.\n"
        f"Contact school for full report."
    )


def whatsapp_message(report, term, year):
    subjects = report['subjects']
    avg = average_score(subjects)
    best = max(subjects, key=lambda s: s['score']) if subjects else None
    top = (
        f"• {best['name']}: {format_score(best['score'])}% (Grade {best['grade']})"
        if best else 'No data available'
    )
    legend = '\n'.join(
        f"{band['code']}. {band['grade']} ({band['min']}-{band['max']}%)"
        for band in ECZ_GRADING_SYSTEM
    )

    return (
        f"*{settings.SCHOOL_NAME} - REPORT CARD*\n\n"
        f"*Student:* {report['name']}\n"
        f"*Class:* {report['className']} (Form {extract_form_number(report['className'])})\n"
        f"*Term:* {_term_label(term)} {year}\n\n"
        f"*OVERALL PERFORMANCE:*\n"
        f"• Average Score: {avg:.1f}%\n"
        f"• Overall Grade: {get_ecz_grade(avg)['grade']}\n\n"
        f"*TOP SUBJECTS:*\n{top}\n\n"
        f"*ECZ GRADING SYSTEM:*\n{legend}\n\n"
        f"We encourage {report['name']} to continue working hard. "
        f"Parent-teacher consultations available upon request.\n\n"
        f"*{settings.SCHOOL_NAME.title()}*\n"
        f"\"{settings.SCHOOL_MOTTO}\""
    )


def email_html(report, term, year):
    avg = average_score(report['subjects'])
    subject_lines = '<br>'.join(
        f"{s['name']}: {format_score(s['score'])}% (Grade {s['grade']} - {get_ecz_grade(s['score'])['grade']})"
        for s in report['subjects']
    )
    return (
        f'<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">'
        f'<h1>{settings.SCHOOL_NAME}</h1>'
        f'<h2>STUDENT REPORT CARD - ECZ GRADING SYSTEM</h2>'
        f'<h3>Dear Parent/Guardian,</h3>'
        f"<p>Please find {report['name']}'s academic report for {_term_label(term)} {year} attached.</p>"
        f'<h4>STUDENT INFORMATION</h4>'
        f"<p><strong>Name:</strong> {report['name']}</p>"
        f"<p><strong>Class:</strong> {report['className']} (Form {extract_form_number(report['className'])})</p>"
        f"<p><strong>Admission Number:</strong> {report.get('admissionNo') or 'N/A'}</p>"
        f'<p><strong>Overall Average:</strong> {avg:.1f}%</p>'
        f"<p><strong>Overall Grade:</strong> {get_ecz_grade(avg)['grade']}</p>"
        f'<h4>SUBJECT PERFORMANCE (ECZ Grading)</h4>'
        f'{subject_lines}'
        f'<p>The full detailed report is attached as a PDF document. Please review it with your child.</p>'
        f'<p>Should you have any questions, please contact the school office.</p>'
        f'<p>Best regards,<br><strong>{settings.SCHOOL_NAME.title()} Administration</strong><br>'
        f'{settings.SCHOOL_MOTTO}</p>'
        f'</div>'
    )


def email_subject(report, term, year):
    return f"Report Card - {report['name']} - {_term_label(term)} {year}"


# ============================================================================
# LINKS
# ============================================================================

def sms_link(report, term, year):
    return f"sms:{_digits(report['parentPhone'])}?body={quote(sms_message(report, term, year), safe='')}"


def whatsapp_link(report, term, year):
    return f"https://wa.me/{_digits(report['parentPhone'])}?text={quote(whatsapp_message(report, term, year), safe='')}"


def mailto_link(report, term, year):
    subject = quote(email_subject(report, term, year), safe='')
    body = quote(strip_html(email_html(report, term, year)), safe='')
    return f"mailto:{report['parentEmail']}?subject={subject}&body={body}"


def build_delivery_links(report, term, year, method='all'):
    """Links for the requested channel(s) that have contact details."""
    if method not in DELIVERY_METHODS:
        raise DataValidationError(
            f"Unknown delivery method '{method}'",
            validation_errors={'method': f"Choose one of {', '.join(DELIVERY_METHODS)}"}
        )

    links = {}
    has_phone = bool(_digits(report.get('parentPhone')))
    if method in ('sms', 'all') and has_phone:
        links['sms'] = sms_link(report, term, year)
    if method in ('whatsapp', 'all') and has_phone:
        links['whatsapp'] = whatsapp_link(report, term, year)
    if method in ('email', 'all') and report.get('parentEmail'):
        links['email'] = mailto_link(report, term, year)
    return links


# ============================================================================
# DELIVERY
# ============================================================================

def record_delivery(learner_id, term, year, channels, user=None):
    delivery, created = ReportDelivery.objects.get_or_create(
        learner_id=learner_id,
        term=term,
        year=year,
        defaults={'sent_via': list(channels), 'sent_by': user}
    )
    if not created:
        delivery.sent_via = delivery.sent_via + [c for c in channels if c not in delivery.sent_via]
        delivery.sent_by = user or delivery.sent_by
        delivery.save()
    return delivery


def email_report_card(report, term, year):
    """Send the HTML report by e-mail with the PDF attached."""
    pdf = ReportCardPDFGenerator().generate_report_card(report, term, year)
    message = EmailMessage(
        subject=email_subject(report, term, year),
        body=email_html(report, term, year),
        from_email=settings.DEFAULT_FROM_EMAIL,
        to=[report['parentEmail']],
    )
    message.content_subtype = 'html'
    message.attach(report_card_filename(report['name'], term, year), pdf.getvalue(), 'application/pdf')
    message.send(fail_silently=False)
    logger.info(f"Report card e-mailed for {report['name']} ({term} {year})")


def send_report(learner_id, term, year=None, method='all', user=None, deliver_email=False):
    """
    Build delivery links for one learner and record the delivery.

    With ``deliver_email`` the e-mail is also sent through Django mail.
    Returns ``{links, delivery}``.
    """
    year = year or timezone.now().year
    report = get_learner_report(learner_id, term, year=year)
    if report is None:
        raise ReportCardException("Learner not found", details={'learner_id': learner_id})

    links = build_delivery_links(report, term, year, method)
    if not links:
        raise ReportCardException(
            f"No parent contact details for {report['name']}",
            details={'learner_id': learner_id, 'method': method},
            user=user
        )

    if deliver_email and 'email' in links:
        email_report_card(report, term, year)

    delivery = record_delivery(learner_id, term, year, list(links), user=user)
    logger.info(f"Report for {report['name']} sent via {', '.join(links)}")
    return {'links': links, 'delivery': delivery}


def _mark_bulk_sent(reports, term, year, channel, user):
    sent = 0
    for report in reports:
        if report['reportReady'] and not report['reportSent']:
            record_delivery(report['id'], term, year, [channel], user=user)
            sent += 1
    return sent


def send_class_reports(class_id, term, year=None, user=None):
    """Mark every ready, unsent learner of a class as sent; returns the count."""
    year = year or timezone.now().year
    sent = _mark_bulk_sent(fetch_learner_reports(term, class_id=class_id, year=year), term, year, BULK_CLASS, user)
    logger.info(f"Bulk-sent {sent} report(s) for class {class_id} ({term} {year})")
    return sent


def send_all_reports(term, year=None, user=None):
    """
    Mark ready, unsent learners as sent in every class where all reports are
    ready. Returns ``{classes, sent}``.
    """
    year = year or timezone.now().year
    by_class = {}
    for report in fetch_learner_reports(term, year=year):
        by_class.setdefault(report['classId'], []).append(report)

    classes = 0
    sent = 0
    for reports in by_class.values():
        if reports and all(r['reportReady'] for r in reports):
            classes += 1
            sent += _mark_bulk_sent(reports, term, year, BULK_ALL, user)

    logger.info(f"Bulk-sent {sent} report(s) across {classes} complete class(es)")
    return {'classes': classes, 'sent': sent}


def get_ready_reports(class_id, term, year=None):
    return [r for r in fetch_learner_reports(term, class_id=class_id, year=year) if r['reportReady']]
