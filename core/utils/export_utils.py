"""
CSV templates and exports.
"""
import csv
import re
from io import StringIO

from django.http import HttpResponse

from core.grading_utils import get_grade

CLASS_TEMPLATE_ROWS = ['Form 4A', 'Form 4B', 'Grade 10C']
LEARNER_TEMPLATE_HEADERS = ['name', 'sex', 'parentPhone', 'parentEmail']
MARKS_TEMPLATE_HEADERS = ['Admission No', 'Name', 'Score']


def csv_response(rows, filename, headers=None):
    """
    Stream ``rows`` (iterables of cell values) into a CSV download.
    """
    response = HttpResponse(content_type='text/csv; charset=utf-8')
    response['Content-Disposition'] = f'attachment; filename="{filename}"'

    writer = csv.writer(response)
    if headers:
        writer.writerow(headers)
    for row in rows:
        writer.writerow(['' if value is None else value for value in row])

    return response


def generate_csv_data(rows, headers=None):
    """Same as ``csv_response`` but returns the CSV text."""
    output = StringIO()
    writer = csv.writer(output, lineterminator='\n')
    if headers:
        writer.writerow(headers)
    for row in rows:
        writer.writerow(['' if value is None else value for value in row])
    return output.getvalue()


def safe_filename_part(value):
    """Replace every non-alphanumeric character with an underscore."""
    return re.sub(r'[^a-zA-Z0-9]', '_', value or '')


def class_template_csv():
    return generate_csv_data([[name] for name in CLASS_TEMPLATE_ROWS], headers=['Class Name'])


def learner_template_csv():
    return generate_csv_data(
        [['Jane Banda', 'Female', '0977000000', 'parent@example.com']],
        headers=LEARNER_TEMPLATE_HEADERS
    )


def marks_template_filename(class_name, subject):
    return f"marks_template_{class_name}_{safe_filename_part(subject)}.csv"


def marks_template_csv(learners):
    """One row per learner with a blank score column."""
    return generate_csv_data(
        [[learner.admission_no, learner.name, ''] for learner in learners],
        headers=MARKS_TEMPLATE_HEADERS
    )


COMPILED_MARKS_HEADERS = [
    'Admission No', 'Name', 'Sex', 'Class', 'Subject',
    'Week 4', 'Week 8', 'End of Term', 'Final Score', 'Grade',
]


def compiled_marks_rows(compiled_marks):
    for row in compiled_marks:
        yield [
            row['admissionNo'], row['name'], row['gender'], row['className'], row['subject'],
            row['week4'], row['week8'], row['endOfTerm'], row['finalScore'],
            get_grade(row['finalScore']),
        ]


ATTENDANCE_OVERVIEW_HEADERS = [
    'Date', 'Class', 'Teacher', 'Session Title', 'Total Learners',
    'Present', 'Absent', 'Late', 'Excused', 'Attendance Rate',
]


def attendance_overview_rows(sessions):
    for session in sessions:
        stats = session.stats or {}
        yield [
            session.date.isoformat(), session.class_name, session.teacher_name, session.title,
            stats.get('total', 0), stats.get('present', 0), stats.get('absent', 0),
            stats.get('late', 0), stats.get('excused', 0),
            f"{stats.get('attendanceRate', 0):.1f}%",
        ]
