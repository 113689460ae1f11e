# core/services/results_analysis_pdf.py
"""
Results analysis sheets in PDF.

``school_sheet`` is the board's per-class sheet: one row per class with its
subjects underneath, ECZ grade counts, quality and fail rates. ``subject_sheet``
is a single subject class broken down by gender. Both take the dicts built by
``core.grading_utils`` so the PDFs always agree with ``/api/marks/analysis/``.
"""
import logging

from django.http import HttpResponse
from django.utils import timezone
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, Spacer, Table, TableStyle

from core.grading_utils import (
    ECZ_CODES,
    ECZ_GRADING_SYSTEM,
    KALABO_GRADE_BANDS,
    aggregate_school_metrics,
    compute_class_performance,
    compute_ecz_metrics,
    compute_kalabo_metrics,
    compute_school_performance,
    get_assessment_label,
    get_performance_level,
    pct_int,
)
from core.models import TERM_DISPLAY_MAP
from core.services.report_card_pdf import INFO_GREY, ReportCardPDFGenerator, results_table_style

logger = logging.getLogger(__name__)

PAGE = landscape(A4)
CONTENT_WIDTH = 10.6 * inch
CLASS_ROW_GREY = colors.Color(240 / 255, 240 / 255, 240 / 255)

# (group label, ECZ codes) for the two-row header of the school sheet
GRADE_GROUPS = [
    ('DISTINCTION', ['1', '2']),
    ('MERIT', ['3', '4']),
    ('CREDIT', ['5', '6']),
    ('PASS', ['7', '8']),
]
BAND_RANGE = {band['code']: f"{band['min']}-{band['max']}" for band in ECZ_GRADING_SYSTEM}


def analysis_filename(prefix, term, assessment_type, year):
    return f"{prefix}_Results_Analysis_{term}_{assessment_type}_{year}.pdf"


class ResultsAnalysisPDFGenerator(ReportCardPDFGenerator):

    def _title_lines(self, *lines):
        return [Paragraph(line, self.section_style) for line in lines]

    def _comments_and_signatures(self, signers):
        lines = Table([['']] * 4, colWidths=[CONTENT_WIDTH], rowHeights=[0.3 * inch] * 4)
        lines.setStyle(TableStyle([('LINEBELOW', (0, 0), (-1, -1), 0.5, colors.black)]))

        blank = '_' * 28
        signatures = Table(
            [[f"{signer}'s Signature" for signer in signers],
             [blank] * len(signers),
             ['Date'] * len(signers),
             [blank] * len(signers),
             ['Official Stamp'] * len(signers)],
            colWidths=[CONTENT_WIDTH / len(signers)] * len(signers)
        )
        signatures.setStyle(TableStyle([('FONTSIZE', (0, 0), (-1, -1), 9)]))
        return [
            Paragraph("COMMENTS", self.section_style),
            lines,
            Spacer(1, 0.3 * inch),
            signatures,
        ]

    # ===== SCHOOL SHEET =====

    def _class_performance_table(self, class_performance, school):
        top = ['CLASS/SUBJECT', 'ON ROLL', 'SAT']
        bottom = ['', '', '']
        for label, codes in GRADE_GROUPS:
            top += [label] + [''] * (len(codes) - 1)
            bottom += [BAND_RANGE[code] for code in codes]
        top += ['UNSAT', 'ABSENT', 'QUALITY', 'FAIL', 'LEVEL']
        bottom += [BAND_RANGE['9'], '', '', '', '']

        def counts(distribution):
            return [str(distribution.get(code, 0)) for code in ECZ_CODES]

        rows = [top, bottom]
        class_rows = []
        for class_data in class_performance:
            class_rows.append(len(rows))
            rows.append([
                f"{class_data['className']} ({class_data['form']})",
                class_data['totalLearners'],
                class_data['totalAssessed'],
                *counts(class_data['gradeDistribution']),
                class_data['totalLearners'] * class_data['subjectCount'] - class_data['totalAssessed'],
                f"{class_data['qualityPct']}%",
                f"{class_data['failPct']}%",
                class_data['performance'],
            ])
            for subject in class_data['subjects']:
                rows.append([
                    f"   {subject['name']}",
                    subject['totalLearners'],
                    subject['totalAssessed'],
                    *counts(subject['gradeDistribution']),
                    subject['absent'],
                    f"{subject['qualityPct']}%",
                    f"{subject['failPct']}%",
                    subject['performance'],
                ])

        rows.append([
            'SCHOOL',
            school['totalLearners'],
            school['totalAssessed'],
            *counts(school['gradeDistribution']),
            '',
            f"{school['qualityPct']}%",
            f"{school['failPct']}%",
            get_performance_level(school['qualityPct']),
        ])

        spans = [('SPAN', (col, 0), (col, 1)) for col in (0, 1, 2)]
        col = 3
        for _, codes in GRADE_GROUPS:
            spans.append(('SPAN', (col, 0), (col + len(codes) - 1, 0)))
            col += len(codes)
        spans += [('SPAN', (c, 0), (c, 1)) for c in range(col + 1, col + 5)]

        table = Table(
            rows,
            colWidths=[2.1 * inch] + [0.56 * inch] * 14 + [0.66 * inch],
            repeatRows=2
        )
        table.setStyle(results_table_style(header_rows=2, font_size=8, extra=[
            ('ALIGN', (1, 0), (-1, -1), 'CENTER'),
            *spans,
            *[('BACKGROUND', (0, r), (-1, r), CLASS_ROW_GREY) for r in class_rows],
            *[('FONTNAME', (0, r), (-1, r), 'Helvetica-Bold') for r in class_rows],
            ('FONTNAME', (0, -1), (-1, -1), 'Helvetica-Bold'),
            ('LINEABOVE', (0, -1), (-1, -1), 1, colors.black),
        ]))
        return table

    def school_sheet(self, subject_classes, term, assessment_type, year):
        class_performance = compute_class_performance(subject_classes)
        school = compute_school_performance(class_performance)
        kalabo = aggregate_school_metrics(subject_classes)

        story = [
            self._header("EDUCATION BOARD RESULTS ANALYSIS", width=CONTENT_WIDTH),
            *self._title_lines(
                f"{TERM_DISPLAY_MAP.get(term, term).upper()} {year} | {get_assessment_label(assessment_type).upper()}",
                "PERFORMANCE PER CLASS",
            ),
        ]
        if class_performance:
            story.append(self._class_performance_table(class_performance, school))
        else:
            story.append(Paragraph("No subject classes have been assigned yet.", self.styles['Normal']))

        story += [
            Spacer(1, 0.15 * inch),
            Paragraph(
                f"On roll: {kalabo['onRoll']} &nbsp;&nbsp; Sat: {kalabo['sat']} &nbsp;&nbsp; "
                f"Kalabo quality: {kalabo['qualityPct']}% &nbsp;&nbsp; Kalabo fail: {kalabo['failPct']}%",
                self.styles['Normal']
            ),
            *self._comments_and_signatures(['HOD', 'HEAD TEACHER']),
        ]
        logger.info(f"Built school results analysis for {len(class_performance)} class(es), {term} {assessment_type}")
        return self._build(story, pagesize=PAGE)

    # ===== SUBJECT SHEET =====

    def _info_table(self, subject_class, ecz, teacher_name, term, assessment_type):
        info = Table([
            [f"Teacher: {teacher_name or 'Not specified'}",
             f"Class: {subject_class['className']}",
             f"Subject: {subject_class['subject']}"],
            [f"Term: {TERM_DISPLAY_MAP.get(term, term)}",
             f"Assessment: {get_assessment_label(assessment_type)}",
             f"Date: {timezone.localdate():%d/%m/%Y}"],
            [f"Total learners: {ecz['onRoll']['total']}",
             f"Assessed: {ecz['sat']['total']} ({ecz['sat']['rate']}%)",
             f"Average score: {ecz['averageScore']:.1f}"],
        ], colWidths=[CONTENT_WIDTH / 3] * 3)
        info.setStyle(TableStyle([
            ('FONTSIZE', (0, 0), (-1, -1), 9),
            ('BACKGROUND', (0, 0), (-1, -1), INFO_GREY),
            ('BOX', (0, 0), (-1, -1), 0.5, colors.lightgrey),
        ]))
        return info

    def _gender_table(self, ecz):
        def row(label, on_roll, sat, average, quality, fail):
            return [
                label, on_roll, sat, f"{pct_int(sat, on_roll)}%", f"{average:.1f}",
                quality, fail, f"{pct_int(quality, sat)}%", f"{pct_int(fail, sat)}%",
            ]

        rows = [
            ['GENDER', 'ON ROLL', 'ASSESSED', 'RATE', 'AVERAGE', 'QUALITY', 'UNSAT', 'QUALITY %', 'FAIL %'],
            row('BOYS', ecz['onRoll']['boys'], ecz['sat']['boys'], ecz['boysAverage'],
                ecz['quality']['boys'], ecz['fail']['boys']),
            row('GIRLS', ecz['onRoll']['girls'], ecz['sat']['girls'], ecz['girlsAverage'],
                ecz['quality']['girls'], ecz['fail']['girls']),
            row('TOTAL', ecz['onRoll']['total'], ecz['sat']['total'], ecz['averageScore'],
                ecz['quality']['total'], ecz['fail']['total']),
        ]
        table = Table(rows, colWidths=[CONTENT_WIDTH / 9] * 9)
        table.setStyle(results_table_style(extra=[
            ('ALIGN', (0, 0), (-1, -1), 'CENTER'),
            ('FONTNAME', (0, -1), (-1, -1), 'Helvetica-Bold'),
        ]))
        return table

    def _grade_distribution_table(self, ecz, kalabo):
        sat = ecz['sat']['total']
        rows = [['ECZ GRADE', 'RANGE', 'DESCRIPTION', 'BOYS', 'GIRLS', 'TOTAL', '%', 'KALABO BAND', 'BOYS', 'GIRLS']]
        for band, kalabo_band in zip(ECZ_GRADING_SYSTEM, KALABO_GRADE_BANDS):
            counts = ecz['gradeCounts'][band['code']]
            kalabo_counts = kalabo['gradeCounts'][kalabo_band['key']]
            rows.append([
                band['code'], BAND_RANGE[band['code']], band['grade'],
                counts['boys'], counts['girls'], counts['total'], f"{pct_int(counts['total'], sat)}%",
                kalabo_band['label'], kalabo_counts['boys'], kalabo_counts['girls'],
            ])
        table = Table(
            rows,
            colWidths=[0.9 * inch, 0.9 * inch, 1.8 * inch] + [0.8 * inch] * 4 + [1.4 * inch, 0.8 * inch, 0.8 * inch],
            repeatRows=1
        )
        table.setStyle(results_table_style(extra=[('ALIGN', (0, 0), (-1, -1), 'CENTER')]))
        return table

    def subject_sheet(self, subject_class, term, assessment_type, year, teacher_name=None):
        ecz = compute_ecz_metrics(subject_class['learners'])
        kalabo = compute_kalabo_metrics(subject_class['learners'])

        story = [
            self._header(f"SUBJECT RESULTS ANALYSIS: {subject_class['subject'].upper()}", width=CONTENT_WIDTH),
            *self._title_lines(
                f"{subject_class['className']} | {TERM_DISPLAY_MAP.get(term, term).upper()} {year} | "
                f"{get_assessment_label(assessment_type).upper()}"
            ),
            self._info_table(subject_class, ecz, teacher_name, term, assessment_type),
            Paragraph("GENDER PERFORMANCE SUMMARY", self.section_style),
            self._gender_table(ecz),
            Paragraph("GRADE DISTRIBUTION BY GENDER", self.section_style),
            self._grade_distribution_table(ecz, kalabo),
            Spacer(1, 0.1 * inch),
            Paragraph(
                f"Highest: {ecz['highestScore']} &nbsp;&nbsp; Lowest: {ecz['lowestScore']} &nbsp;&nbsp; "
                f"Kalabo quality: {kalabo['quality']['overall']}% &nbsp;&nbsp; Kalabo fail: {kalabo['fail']['pct']}%",
                self.styles['Normal']
            ),
            *self._comments_and_signatures(['SUBJECT TEACHER', 'HOD']),
        ]
        return self._build(story, pagesize=PAGE)

    # ===== RESPONSES =====

    @staticmethod
    def _pdf_response(buffer, filename):
        response = HttpResponse(buffer.getvalue(), content_type='application/pdf')
        response['Content-Disposition'] = f'attachment; filename="{filename}"'
        return response

    def school_sheet_response(self, subject_classes, term, assessment_type, year):
        return self._pdf_response(
            self.school_sheet(subject_classes, term, assessment_type, year),
            analysis_filename('School', term, assessment_type, year)
        )

    def subject_sheet_response(self, subject_class, term, assessment_type, year, teacher_name=None):
        prefix = '_'.join(f"{subject_class['className']} {subject_class['subject']}".split())
        return self._pdf_response(
            self.subject_sheet(subject_class, term, assessment_type, year, teacher_name=teacher_name),
            analysis_filename(prefix, term, assessment_type, year)
        )
