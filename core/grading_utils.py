# core/grading_utils.py
"""
ECZ (Examinations Council of Zambia) grading and results analysis.

Metrics functions take plain learner dicts as produced by
``core.services.marks.fetch_subject_class_marks``: each has at least
``gender`` ('M'/'F') and ``score`` (float or None when absent).
"""
import logging
import math
import re
from typing import Dict, List, Optional, Any

logger = logging.getLogger(__name__)

ECZ_GRADING_SYSTEM = [
    {'min': 75, 'max': 100, 'grade': 'Distinction 1', 'code': '1', 'description': 'Excellent'},
    {'min': 70, 'max': 74, 'grade': 'Distinction 2', 'code': '2', 'description': 'Very Good'},
    {'min': 65, 'max': 69, 'grade': 'Merit 1', 'code': '3', 'description': 'Good'},
    {'min': 60, 'max': 64, 'grade': 'Merit 2', 'code': '4', 'description': 'Above Average'},
    {'min': 55, 'max': 59, 'grade': 'Credit 1', 'code': '5', 'description': 'Average'},
    {'min': 50, 'max': 54, 'grade': 'Credit 2', 'code': '6', 'description': 'Satisfactory'},
    {'min': 45, 'max': 49, 'grade': 'Satisfactory 1', 'code': '7', 'description': 'Below Average'},
    {'min': 40, 'max': 44, 'grade': 'Satisfactory 2', 'code': '8', 'description': 'Poor'},
    {'min': 0, 'max': 39, 'grade': 'Unsatisfactory', 'code': '9', 'description': 'Fail'},
]

ECZ_CODES = [band['code'] for band in ECZ_GRADING_SYSTEM]
QUALITY_CODES = ECZ_CODES[:4]
FAIL_CODE = '9'

KALABO_GRADE_BANDS = [
    {'label': 'Dist 1', 'min': 75, 'max': 100, 'key': 'dist1'},
    {'label': 'Dist 2', 'min': 70, 'max': 74, 'key': 'dist2'},
    {'label': 'Merit 1', 'min': 65, 'max': 69, 'key': 'merit1'},
    {'label': 'Merit 2', 'min': 60, 'max': 64, 'key': 'merit2'},
    {'label': 'Credit 1', 'min': 55, 'max': 59, 'key': 'credit1'},
    {'label': 'Credit 2', 'min': 50, 'max': 54, 'key': 'credit2'},
    {'label': 'Sat 1', 'min': 45, 'max': 49, 'key': 'sat1'},
    {'label': 'Sat 2', 'min': 40, 'max': 44, 'key': 'sat2'},
    {'label': 'Unsat', 'min': 0, 'max': 39, 'key': 'unsat'},
]

ASSESSMENT_LABELS = {
    'week4': 'Week 4 Assessment',
    'week8': 'Week 8 Assessment',
    'end_of_term': 'End of Term Examination',
}


def round_half_up(value):
    """Round to the nearest integer with halves going up (2.5 -> 3)."""
    return int(math.floor(value + 0.5))


def pct_string(part, whole):
    """Percentage with one decimal as a string; "0.0" when ``whole`` is 0."""
    if not whole:
        return "0.0"
    return f"{part / whole * 100:.1f}"


def pct_int(part, whole):
    return round_half_up(part / whole * 100) if whole else 0


# ============================================================================
# SINGLE-SCORE GRADING
# ============================================================================

def get_ecz_grade(score) -> Dict[str, Any]:
    """
    ECZ band for a score. Scores that fall between bands (74.5) or outside
    0-100 get the last band.
    """
    try:
        score = float(score)
    except (TypeError, ValueError):
        return ECZ_GRADING_SYSTEM[-1]

    for band in ECZ_GRADING_SYSTEM:
        if band['min'] <= score <= band['max']:
            return band
    return ECZ_GRADING_SYSTEM[-1]


def get_grade(score) -> str:
    return get_ecz_grade(score)['code']


def get_grade_description(score) -> str:
    return get_ecz_grade(score)['grade']


def get_assessment_label(assessment_type) -> str:
    return ASSESSMENT_LABELS.get(assessment_type, 'Assessment')


def get_kalabo_band(score) -> Optional[Dict[str, Any]]:
    """Kalabo band for a score, or None when it falls between bands."""
    for band in KALABO_GRADE_BANDS:
        if band['min'] <= score <= band['max']:
            return band
    return None


def get_performance_level(quality_pct):
    if quality_pct >= 60:
        return 'High'
    if quality_pct >= 40:
        return 'Medium'
    return 'Low'


def final_score(week4=None, week8=None, end_of_term=None):
    """End of term if written, else week 8, else week 4, else 0."""
    for score in (end_of_term, week8, week4):
        if score is not None:
            return score
    return 0


# ============================================================================
# CLASS / SUBJECT METRICS
# ============================================================================

def _split_by_gender(learners):
    boys = [l for l in learners if l.get('gender') == 'M']
    girls = [l for l in learners if l.get('gender') == 'F']
    return boys, girls


def compute_kalabo_metrics(learners: List[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Kalabo results sheet for one subject class: on roll, sat, band counts by
    gender, quality (Dist 1 to Credit 2) and fail (Unsat).
    """
    boys, girls = _split_by_gender(learners)
    sat_learners = [l for l in learners if l.get('score') is not None]
    sat_boys, sat_girls = _split_by_gender(sat_learners)

    grade_counts = {band['key']: {'boys': 0, 'girls': 0} for band in KALABO_GRADE_BANDS}
    for learner in sat_learners:
        band = get_kalabo_band(learner['score'])
        if band is None:
            continue
        if learner.get('gender') == 'M':
            grade_counts[band['key']]['boys'] += 1
        else:
            grade_counts[band['key']]['girls'] += 1

    quality_keys = [band['key'] for band in KALABO_GRADE_BANDS[:6]]
    quality_boys = sum(grade_counts[key]['boys'] for key in quality_keys)
    quality_girls = sum(grade_counts[key]['girls'] for key in quality_keys)

    fail_boys = grade_counts['unsat']['boys']
    fail_girls = grade_counts['unsat']['girls']
    fail_total = fail_boys + fail_girls
    sat_total = len(sat_learners)

    return {
        'onRoll': {'total': len(learners), 'boys': len(boys), 'girls': len(girls)},
        'sat': {'total': sat_total, 'boys': len(sat_boys), 'girls': len(sat_girls)},
        'gradeCounts': grade_counts,
        'quality': {
            'boys': quality_boys,
            'girls': quality_girls,
            'overall': pct_string(quality_boys + quality_girls, sat_total),
        },
        'fail': {
            'count': {'boys': fail_boys, 'girls': fail_girls, 'total': fail_total},
            'pct': pct_string(fail_total, sat_total),
        },
    }


def aggregate_school_metrics(subject_classes: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Roll Kalabo metrics up across subject classes, weighting by learners who sat."""
    total_on_roll = 0
    total_sat = 0
    weighted_quality = 0.0
    weighted_fail = 0.0

    for subject_class in subject_classes:
        metrics = compute_kalabo_metrics(subject_class['learners'])
        sat = metrics['sat']['total']
        total_on_roll += metrics['onRoll']['total']
        total_sat += sat
        weighted_quality += float(metrics['quality']['overall']) * sat
        weighted_fail += float(metrics['fail']['pct']) * sat

    return {
        'onRoll': total_on_roll,
        'sat': total_sat,
        'qualityPct': f"{weighted_quality / total_sat:.1f}" if total_sat else "0.0",
        'failPct': f"{weighted_fail / total_sat:.1f}" if total_sat else "0.0",
    }


def compute_ecz_metrics(learners: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Teacher results analysis for one subject class."""
    boys, girls = _split_by_gender(learners)
    assessed = [l for l in learners if l.get('score') is not None]
    assessed_boys, assessed_girls = _split_by_gender(assessed)
    sat = len(assessed)

    grade_counts = {code: {'boys': 0, 'girls': 0, 'total': 0} for code in ECZ_CODES}
    scores = []
    for learner in assessed:
        score = learner['score']
        scores.append(score)
        code = get_grade(score)
        if learner.get('gender') == 'M':
            grade_counts[code]['boys'] += 1
        else:
            grade_counts[code]['girls'] += 1
        grade_counts[code]['total'] += 1

    quality = sum(grade_counts[code]['total'] for code in QUALITY_CODES)
    fail = grade_counts[FAIL_CODE]

    def _average(group):
        return sum(l['score'] for l in group) / len(group) if group else 0

    return {
        'onRoll': {'total': len(learners), 'boys': len(boys), 'girls': len(girls)},
        'sat': {
            'total': sat,
            'boys': len(assessed_boys),
            'girls': len(assessed_girls),
            'rate': pct_int(sat, len(learners)),
        },
        'averageScore': round_half_up(_average(assessed) * 10) / 10,
        'quality': {
            'total': quality,
            'pct': pct_int(quality, sat),
            'boys': sum(grade_counts[code]['boys'] for code in QUALITY_CODES),
            'girls': sum(grade_counts[code]['girls'] for code in QUALITY_CODES),
        },
        'fail': {
            'total': fail['total'],
            'pct': pct_int(fail['total'], sat),
            'boys': fail['boys'],
            'girls': fail['girls'],
        },
        'gradeCounts': grade_counts,
        'highestScore': max(scores) if scores else 0,
        'lowestScore': min(scores) if scores else 0,
        'boysAverage': round_half_up(_average(assessed_boys) * 10) / 10,
        'girlsAverage': round_half_up(_average(assessed_girls) * 10) / 10,
    }


# ============================================================================
# ADMIN RESULTS ANALYSIS
# ============================================================================

_FORM_RE = re.compile(r'form\s*(\d+)', re.IGNORECASE)
_NUMBER_RE = re.compile(r'(\d+)')


def form_label(class_name):
    """``Form N`` for N up to 5, otherwise ``Grade N+7``."""
    match = _FORM_RE.search(class_name or '') or _NUMBER_RE.search(class_name or '')
    number = int(match.group(1)) if match else 1
    return f"Form {number}" if number <= 5 else f"Grade {number + 7}"


def _distribution_pcts(distribution):
    graded = sum(distribution.values())
    quality = sum(distribution.get(code, 0) for code in QUALITY_CODES)
    return pct_int(quality, graded), pct_int(distribution.get(FAIL_CODE, 0), graded)


def compute_class_performance(subject_classes: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Group subject classes by class with per-subject and per-class quality/fail rates."""
    performance = {}

    for subject_class in subject_classes:
        class_id = subject_class['classId']
        class_name = subject_class.get('className') or 'Unknown Class'

        if class_id not in performance:
            performance[class_id] = {
                'classId': class_id,
                'className': class_name,
                'form': form_label(class_name),
                'subjectCount': 0,
                'totalLearners': 0,
                'totalAssessed': 0,
                'gradeDistribution': {code: 0 for code in ECZ_CODES},
                'qualityPct': 0,
                'failPct': 0,
                'performance': 'Low',
                'subjects': [],
            }

        learners = subject_class['learners']
        assessed = [l for l in learners if l.get('score') is not None]
        distribution = {code: 0 for code in ECZ_CODES}
        for learner in assessed:
            distribution[get_grade(learner['score'])] += 1
        quality_pct, fail_pct = _distribution_pcts(distribution)

        class_data = performance[class_id]
        class_data['subjectCount'] += 1
        class_data['totalLearners'] = max(class_data['totalLearners'], len(learners))
        class_data['totalAssessed'] += len(assessed)
        for code, count in distribution.items():
            class_data['gradeDistribution'][code] += count

        class_data['subjects'].append({
            'name': subject_class['subject'],
            'totalLearners': len(learners),
            'totalAssessed': len(assessed),
            'absent': len(learners) - len(assessed),
            'gradeDistribution': distribution,
            'qualityPct': quality_pct,
            'failPct': fail_pct,
            'performance': get_performance_level(quality_pct),
        })

    for class_data in performance.values():
        quality_pct, fail_pct = _distribution_pcts(class_data['gradeDistribution'])
        class_data['qualityPct'] = quality_pct
        class_data['failPct'] = fail_pct
        class_data['performance'] = get_performance_level(quality_pct)

    return list(performance.values())


def compute_school_performance(class_performance: List[Dict[str, Any]]) -> Dict[str, Any]:
    distribution = {code: 0 for code in ECZ_CODES}
    total_learners = 0
    total_assessed = 0

    for class_data in class_performance:
        total_learners += class_data['totalLearners']
        total_assessed += class_data['totalAssessed']
        for code, count in class_data['gradeDistribution'].items():
            distribution[code] = distribution.get(code, 0) + count

    quality_pct, fail_pct = _distribution_pcts(distribution)
    return {
        'totalLearners': total_learners,
        'totalAssessed': total_assessed,
        'qualityPct': quality_pct,
        'failPct': fail_pct,
        'gradeDistribution': distribution,
    }
