"""
Parsing of CSV/XLSX uploads for classes, learners and marks.

Rows are returned as ``{header: value}`` dicts with surrounding whitespace
and quotes stripped. Row numbers in error messages count data rows from 1.
"""
import csv
import math
import logging
from io import BytesIO, StringIO

from openpyxl import load_workbook

from core.exceptions import BulkUploadError
from core.models.base import normalize_sex

logger = logging.getLogger(__name__)

ENCODINGS = ['utf-8-sig', 'latin-1', 'cp1252']


def _clean(value):
    if value is None:
        return ''
    return str(value).strip().strip('"').strip()


def decode_upload(data):
    for encoding in ENCODINGS:
        try:
            return data.decode(encoding)
        except UnicodeDecodeError:
            continue
    raise BulkUploadError("Unable to decode file. Please use UTF-8 encoding.")


def parse_csv_text(text):
    """Parse CSV text, skipping blank lines; quoted values may contain commas."""
    lines = [line for line in (text or '').strip().splitlines() if line.strip()]
    if len(lines) < 2:
        return []

    reader = csv.reader(StringIO('\n'.join(lines)), skipinitialspace=True)
    rows = list(reader)
    headers = [_clean(h) for h in rows[0]]

    parsed = []
    for values in rows[1:]:
        parsed.append({
            header: _clean(values[i]) if i < len(values) else ''
            for i, header in enumerate(headers)
        })
    return parsed


def parse_xlsx_bytes(data):
    """First worksheet of an XLSX workbook as header-keyed rows."""
    wb = load_workbook(filename=BytesIO(data), read_only=True, data_only=True)
    try:
        sheet = wb.active
        rows = list(sheet.iter_rows(values_only=True))
    finally:
        wb.close()

    if len(rows) < 2:
        return []

    headers = [_clean(h) for h in rows[0]]
    parsed = []
    for values in rows[1:]:
        if all(_clean(v) == '' for v in values):
            continue
        parsed.append({
            header: _clean(values[i]) if i < len(values) else ''
            for i, header in enumerate(headers) if header
        })
    return parsed


def read_tabular_upload(uploaded_file):
    """Rows of an uploaded ``.csv`` or ``.xlsx`` file."""
    name = getattr(uploaded_file, 'name', '') or ''
    data = uploaded_file.read()
    if name.lower().endswith('.xlsx'):
        return parse_xlsx_bytes(data)
    return parse_csv_text(decode_upload(data))


# ============================================================================
# DOMAIN ROW PARSERS
# ============================================================================

def parse_class_rows(rows):
    """Unique, non-blank ``Class Name`` values in first-seen order."""
    names = []
    for row in rows:
        name = _clean(row.get('Class Name'))
        if name and name not in names:
            names.append(name)
    return names


def parse_learner_rows(rows):
    """
    Returns ``(learners, errors)`` where each learner is a dict ready for
    ``add_learner`` and errors read ``Row {n}: ...``.
    """
    learners = []
    errors = []
    for row_num, row in enumerate(rows, 1):
        name = _clean(row.get('name') or row.get('Name'))
        if not name:
            errors.append(f"Row {row_num}: Name is required")
            continue
        learners.append({
            'name': name,
            'sex': normalize_sex(row.get('sex') or row.get('Sex')),
            'parent_phone': _clean(row.get('parentPhone')),
            'parent_email': _clean(row.get('parentEmail')),
        })
    return learners, errors


def parse_marks_rows(rows, learners):
    """
    Match marks rows to ``learners`` by admission number and name
    (case-insensitive). Returns ``({learner_id: score_or_None}, errors)``;
    a blank score means the learner was absent.
    """
    marks = {}
    errors = []
    for row_num, row in enumerate(rows, 1):
        admission_no = _clean(row.get('Admission No') or row.get('admissionNo'))
        name = _clean(row.get('Name') or row.get('name'))
        score_str = _clean(row.get('Score'))

        score = None
        if score_str != '':
            try:
                score = float(score_str)
            except ValueError:
                errors.append(f'Row {row_num}: Invalid score "{score_str}"')
                continue
            if not math.isfinite(score) or score < 0 or score > 100:
                errors.append(f'Row {row_num}: Invalid score "{score_str}"')
                continue

        match = next(
            (l for l in learners
             if l.admission_no == admission_no and l.name.lower() == name.lower()),
            None
        )
        if match is None:
            errors.append(f'Row {row_num}: No match for "{name}" ({admission_no})')
            continue
        marks[match.id] = score

    return marks, errors


def parse_marks_csv(text, learners):
    return parse_marks_rows(parse_csv_text(text), learners)
