# core/tests/test_imports.py
from io import BytesIO

from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import SimpleTestCase
from openpyxl import Workbook

from core.forms import BulkUploadForm, MarksUploadForm
from core.tests.test_utils import BaseTestCase
from core.utils.export_utils import (
    class_template_csv, learner_template_csv, marks_template_csv, marks_template_filename,
    compiled_marks_rows, generate_csv_data,
)
from core.utils.import_utils import (
    decode_upload, parse_csv_text, parse_xlsx_bytes, read_tabular_upload,
    parse_learner_rows, parse_marks_csv,
)


def xlsx_bytes(rows):
    wb = Workbook()
    sheet = wb.active
    for row in rows:
        sheet.append(row)
    buffer = BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


class CsvParsingTests(SimpleTestCase):
    def test_quoted_values_and_blank_lines(self):
        rows = parse_csv_text('name,sex\n\n"Banda, Mutale",Male\n  \nChipo,"Female"\n')
        self.assertEqual(rows, [
            {'name': 'Banda, Mutale', 'sex': 'Male'},
            {'name': 'Chipo', 'sex': 'Female'},
        ])

    def test_header_only(self):
        self.assertEqual(parse_csv_text('Class Name\n'), [])

    def test_short_rows_are_padded(self):
        self.assertEqual(parse_csv_text('a,b\n1'), [{'a': '1', 'b': ''}])

    def test_latin1_fallback(self):
        self.assertEqual(decode_upload('Mwaanga Chilufy\xe9'.encode('latin-1')), 'Mwaanga Chilufyé')

    def test_xlsx(self):
        data = xlsx_bytes([['Class Name'], ['Form 2A'], [None], ['Form 2B']])
        self.assertEqual(parse_xlsx_bytes(data), [{'Class Name': 'Form 2A'}, {'Class Name': 'Form 2B'}])

    def test_read_upload_by_extension(self):
        upload = SimpleUploadedFile('classes.xlsx', xlsx_bytes([['Class Name'], ['Form 3A']]))
        self.assertEqual(read_tabular_upload(upload), [{'Class Name': 'Form 3A'}])
        upload = SimpleUploadedFile('classes.csv', b'Class Name\nForm 3B\n')
        self.assertEqual(read_tabular_upload(upload), [{'Class Name': 'Form 3B'}])

    def test_learner_rows_normalise_sex(self):
        learners, errors = parse_learner_rows([{'name': 'Inonge', 'sex': 'f'}, {'name': 'Mubita', 'sex': ''}])
        self.assertEqual([l['sex'] for l in learners], ['F', 'M'])
        self.assertEqual(errors, [])


class MarksCsvTests(BaseTestCase):
    def test_matches_admission_number_and_name(self):
        learners = list(self.school_class.learners.all())
        text = (
            'Admission No,Name,Score\n'
            f'{self.boy.admission_no},mutale banda,72\n'
            f'{self.girl.admission_no},Chipo Mwale,\n'
            f'{self.girl.admission_no},Someone Else,50\n'
            f'{self.boy.admission_no},Mutale Banda,abc\n'
            f'{self.boy.admission_no},Mutale Banda,101\n'
        )
        marks, errors = parse_marks_csv(text, learners)
        self.assertEqual(marks, {self.boy.pk: 72.0, self.girl.pk: None})
        self.assertEqual(errors, [
            f'Row 3: No match for "Someone Else" ({self.girl.admission_no})',
            'Row 4: Invalid score "abc"',
            'Row 5: Invalid score "101"',
        ])


class TemplateTests(BaseTestCase):
    def test_class_template(self):
        self.assertEqual(class_template_csv(), 'Class Name\nForm 4A\nForm 4B\nGrade 10C\n')

    def test_learner_template_headers(self):
        self.assertTrue(learner_template_csv().startswith('name,sex,parentPhone,parentEmail\n'))

    def test_marks_template_lists_roster(self):
        text = marks_template_csv(self.school_class.learners.order_by('name'))
        self.assertEqual(text.splitlines()[1], f'{self.girl.admission_no},Chipo Mwale,')

    def test_marks_template_filename(self):
        self.assertEqual(
            marks_template_filename('Form_1A', 'Civic Education'),
            'marks_template_Form_1A_Civic_Education.csv'
        )

    def test_compiled_rows_include_grade(self):
        rows = list(compiled_marks_rows([{
            'admissionNo': 'FOR-001', 'name': 'Mutale Banda', 'gender': 'M', 'className': 'Form 1A',
            'subject': 'Mathematics', 'week4': 40, 'week8': None, 'endOfTerm': 76, 'finalScore': 76,
        }]))
        self.assertEqual(rows[0][-1], '1')
        self.assertEqual(generate_csv_data(rows).count(','), 9)


class UploadFormTests(SimpleTestCase):
    def test_rejects_other_extensions(self):
        form = BulkUploadForm(files={'file': SimpleUploadedFile('learners.pdf', b'x')})
        self.assertFalse(form.is_valid())
        self.assertIn('file', form.errors)

    def test_marks_form(self):
        form = MarksUploadForm(
            data={'class_id': 3, 'subject': ' Mathematics ', 'term': 'term2', 'assessment_type': 'week8'},
            files={'file': SimpleUploadedFile('marks.csv', b'Admission No,Name,Score\n')}
        )
        self.assertTrue(form.is_valid(), form.errors)
        self.assertEqual(form.cleaned_data['subject'], 'Mathematics')
