# core/services/assessment_pdf.py
import logging
from io import BytesIO

from django.conf import settings
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import inch
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle

from core.models import TERM_DISPLAY_MAP

logger = logging.getLogger(__name__)


class AssessmentPDFGenerator:
    """Question paper, marking scheme and answer key for an assessment"""

    def __init__(self, assessment, school_name=None):
        self.assessment = assessment
        self.questions = list(assessment.questions.order_by('order'))
        self.school_name = school_name or settings.SCHOOL_NAME
        self.styles = getSampleStyleSheet()
        self.title_style = ParagraphStyle(
            'AssessmentTitle',
            parent=self.styles['Heading1'],
            fontSize=16,
            alignment=1,
            spaceAfter=6
        )
        self.question_style = ParagraphStyle(
            'Question',
            parent=self.styles['Normal'],
            fontSize=11,
            leading=14,
            spaceBefore=8
        )

    def _header(self, heading):
        a = self.assessment
        story = [
            Paragraph(self.school_name, self.title_style),
            Paragraph(a.title, self.styles['Heading2']),
            Paragraph(heading, self.styles['Heading3']),
        ]
        details = Table([
            ['Class:', a.class_name or 'N/A', 'Subject:', a.subject],
            ['Term:', TERM_DISPLAY_MAP.get(a.term, a.term), 'Duration:', f"{a.duration} minutes"],
            ['Total Marks:', str(a.total_marks), 'Teacher:', a.teacher_name or 'N/A'],
        ], colWidths=[1.1 * inch, 2.4 * inch, 1.1 * inch, 2.4 * inch])
        details.setStyle(TableStyle([
            ('FONTNAME', (0, 0), (-1, -1), 'Helvetica'),
            ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
            ('FONTNAME', (2, 0), (2, -1), 'Helvetica-Bold'),
            ('FONTSIZE', (0, 0), (-1, -1), 10),
            ('GRID', (0, 0), (-1, -1), 0.5, colors.grey),
            ('BACKGROUND', (0, 0), (0, -1), colors.lightgrey),
            ('BACKGROUND', (2, 0), (2, -1), colors.lightgrey),
        ]))
        story.extend([details, Spacer(1, 0.2 * inch)])
        return story

    def _build(self, story):
        buffer = BytesIO()
        doc = SimpleDocTemplate(buffer, pagesize=A4, rightMargin=54, leftMargin=54, topMargin=54, bottomMargin=54)
        doc.build(story)
        buffer.seek(0)
        return buffer

    def generate_question_paper(self):
        story = self._header("QUESTION PAPER")
        if self.assessment.instructions:
            story.append(Paragraph(f"<b>Instructions:</b> {self.assessment.instructions}", self.styles['Normal']))

        for number, q in enumerate(self.questions, start=1):
            story.append(Paragraph(f"{number}. {q.question} <i>({q.marks} mark{'s' if q.marks != 1 else ''})</i>",
                                   self.question_style))
            if q.type == 'mcq':
                for letter, option in zip('ABCDEFGH', q.options):
                    story.append(Paragraph(f"&nbsp;&nbsp;&nbsp;&nbsp;{letter}. {option}", self.styles['Normal']))
            elif q.type == 'true_false':
                story.append(Paragraph("&nbsp;&nbsp;&nbsp;&nbsp;True / False", self.styles['Normal']))
        return self._build(story)

    def generate_marking_scheme(self):
        story = self._header("MARKING SCHEME")
        rows = [['No.', 'Topic', 'Difficulty', 'Expected Answer', 'Marks']]
        for number, q in enumerate(self.questions, start=1):
            rows.append([
                str(number),
                Paragraph(q.topic or '-', self.styles['Normal']),
                q.get_difficulty_display(),
                Paragraph(q.correct_answer or '-', self.styles['Normal']),
                str(q.marks),
            ])
        rows.append(['', '', '', 'TOTAL', str(sum(q.marks for q in self.questions))])

        table = Table(rows, colWidths=[0.5 * inch, 1.6 * inch, 0.9 * inch, 3.3 * inch, 0.7 * inch], repeatRows=1)
        table.setStyle(TableStyle([
            ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
            ('FONTNAME', (0, -1), (-1, -1), 'Helvetica-Bold'),
            ('FONTSIZE', (0, 0), (-1, -1), 9),
            ('BACKGROUND', (0, 0), (-1, 0), colors.grey),
            ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
            ('GRID', (0, 0), (-1, -1), 0.5, colors.black),
            ('VALIGN', (0, 0), (-1, -1), 'TOP'),
        ]))
        story.append(table)
        return self._build(story)

    def generate_answer_key(self):
        story = self._header("ANSWER KEY")
        for number, q in enumerate(self.questions, start=1):
            story.append(Paragraph(f"{number}. {q.correct_answer or '-'}", self.question_style))
        return self._build(story)
