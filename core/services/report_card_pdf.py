# core/services/report_card_pdf.py
import logging
from io import BytesIO

from django.conf import settings
from django.http import HttpResponse
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import inch
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle, PageBreak

from core.grading_utils import get_ecz_grade
from core.models import TERM_DISPLAY_MAP, extract_form_number

logger = logging.getLogger(__name__)

HEADER_BLUE = colors.Color(59 / 255, 130 / 255, 246 / 255)
INFO_GREY = colors.Color(245 / 255, 247 / 255, 250 / 255)


def format_score(score):
    """75.0 -> '75', 72.5 -> '72.5', None -> 'Abs'."""
    if score is None:
        return 'Abs'
    if float(score).is_integer():
        return str(int(score))
    return str(score)


def average_score(subjects):
    if not subjects:
        return 0
    return sum(s['score'] for s in subjects) / len(subjects)


def report_card_filename(name, term, year):
    return f"{'_'.join(name.split())}_ReportCard_{term}_{year}.pdf"


def results_table_style(header_rows=1, font_size=9, extra=()):
    """Blue header rows, hairlines between body rows."""
    last_header = header_rows - 1
    return TableStyle([
        ('FONTNAME', (0, 0), (-1, last_header), 'Helvetica-Bold'),
        ('FONTNAME', (0, header_rows), (-1, -1), 'Helvetica'),
        ('FONTSIZE', (0, 0), (-1, -1), font_size),
        ('BACKGROUND', (0, 0), (-1, last_header), HEADER_BLUE),
        ('TEXTCOLOR', (0, 0), (-1, last_header), colors.white),
        ('LINEBELOW', (0, header_rows), (-1, -1), 0.25, colors.lightgrey),
        ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
        ('TOPPADDING', (0, 0), (-1, -1), 5),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 5),
        *extra,
    ])


class ReportCardPDFGenerator:
    """Render one-page A4 report cards from ``fetch_learner_reports`` entries"""

    def __init__(self, school_name=None):
        self.school_name = school_name or settings.SCHOOL_NAME
        self.styles = getSampleStyleSheet()
        self.title_style = ParagraphStyle(
            'ReportTitle',
            parent=self.styles['Heading1'],
            fontSize=20,
            textColor=colors.white,
            alignment=1,
            spaceAfter=4
        )
        self.subtitle_style = ParagraphStyle(
            'ReportSubtitle',
            parent=self.styles['Heading2'],
            fontSize=14,
            textColor=colors.white,
            alignment=1
        )
        self.section_style = ParagraphStyle(
            'ReportSection',
            parent=self.styles['Heading3'],
            fontSize=12,
            spaceBefore=12,
            spaceAfter=6
        )
        self.cell_style = ParagraphStyle(
            'ReportCell',
            parent=self.styles['Normal'],
            fontSize=8,
            leading=10
        )

    def _header(self, subtitle="STUDENT REPORT CARD", width=7 * inch):
        banner = Table(
            [[Paragraph(self.school_name, self.title_style)],
             [Paragraph(subtitle, self.subtitle_style)]],
            colWidths=[width]
        )
        banner.setStyle(TableStyle([
            ('BACKGROUND', (0, 0), (-1, -1), HEADER_BLUE),
            ('TOPPADDING', (0, 0), (-1, -1), 8),
            ('BOTTOMPADDING', (0, 0), (-1, -1), 8),
        ]))
        return banner

    def _learner_details(self, report, term, year):
        details = Table([
            [f"Student: {report['name']}",
             f"Class: {report['className']}",
             f"Admission: {report.get('admissionNo') or 'N/A'}"],
            [f"Term: {TERM_DISPLAY_MAP.get(term, term)}",
             f"Year: {year}",
             f"Form: {extract_form_number(report['className'])}"],
        ], colWidths=[2.6 * inch, 2.4 * inch, 2 * inch])
        details.setStyle(TableStyle([
            ('FONTNAME', (0, 0), (-1, -1), 'Helvetica'),
            ('FONTSIZE', (0, 0), (-1, -1), 10),
            ('BACKGROUND', (0, 0), (-1, -1), INFO_GREY),
            ('BOX', (0, 0), (-1, -1), 0.5, colors.lightgrey),
            ('TOPPADDING', (0, 0), (-1, -1), 6),
            ('BOTTOMPADDING', (0, 0), (-1, -1), 6),
        ]))
        return details

    def _subjects_table(self, subjects):
        rows = [['SUBJECT', 'WK 4', 'WK 8', 'EOT', 'SCORE', 'GRADE', 'COMMENT']]
        for subject in subjects:
            comment = subject.get('teacherComment') or get_ecz_grade(subject['score'])['description']
            rows.append([
                subject['name'],
                format_score(subject['week4']),
                format_score(subject['week8']),
                format_score(subject['endOfTerm']),
                f"{format_score(subject['score'])}%",
                subject['grade'],
                Paragraph(comment, self.cell_style),
            ])

        table = Table(
            rows,
            colWidths=[1.6 * inch, 0.6 * inch, 0.6 * inch, 0.6 * inch, 0.8 * inch, 0.6 * inch, 2.2 * inch],
            repeatRows=1
        )
        table.setStyle(results_table_style(header_rows=1, font_size=9, extra=[
            ('ALIGN', (1, 0), (5, -1), 'CENTER'),
        ]))
        return table

    def _report_story(self, report, term, year, comment=None):
        subjects = report.get('subjects', [])
        avg = average_score(subjects)

        story = [
            self._header(),
            Spacer(1, 0.25 * inch),
            self._learner_details(report, term, year),
            Spacer(1, 0.25 * inch),
            self._subjects_table(subjects),
            Paragraph("OVERALL PERFORMANCE:", self.section_style),
            Paragraph(
                f"Average Score: {avg:.1f}% &nbsp;&nbsp;&nbsp; "
                f"Overall Grade: {get_ecz_grade(avg)['grade']}",
                self.styles['Normal']
            ),
            Paragraph("TEACHER'S COMMENTS:", self.section_style),
            Paragraph(comment or report.get('comment') or "No comment provided", self.styles['Normal']),
        ]
        return story

    def _build(self, story, pagesize=A4):
        buffer = BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=pagesize,
            rightMargin=36,
            leftMargin=36,
            topMargin=36,
            bottomMargin=36
        )
        doc.build(story)
        buffer.seek(0)
        return buffer

    def generate_report_card(self, report, term, year, comment=None):
        return self._build(self._report_story(report, term, year, comment))

    def generate_class_bundle(self, reports, term, year):
        """One page per report, in the order given."""
        story = []
        for index, report in enumerate(reports):
            if index:
                story.append(PageBreak())
            story.extend(self._report_story(report, term, year))
        if not story:
            story.append(Paragraph("No reports are ready for this class.", self.styles['Normal']))
        logger.info(f"Built report card bundle with {len(reports)} page(s)")
        return self._build(story)

    def generate_report_card_response(self, report, term, year, comment=None):
        buffer = self.generate_report_card(report, term, year, comment)
        response = HttpResponse(buffer.getvalue(), content_type='application/pdf')
        response['Content-Disposition'] = (
            f'attachment; filename="{report_card_filename(report["name"], term, year)}"'
        )
        return response

    def generate_class_bundle_response(self, class_name, reports, term, year):
        buffer = self.generate_class_bundle(reports, term, year)
        filename = f"{'_'.join(class_name.split())}_ReportCards_{term}_{year}.pdf"
        response = HttpResponse(buffer.getvalue(), content_type='application/pdf')
        response['Content-Disposition'] = f'attachment; filename="{filename}"'
        return response
