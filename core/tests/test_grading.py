# core/tests/test_grading.py
from django.test import SimpleTestCase

from core.grading_utils import (
    round_half_up, pct_string, get_ecz_grade, get_grade, get_kalabo_band,
    final_score, compute_kalabo_metrics, compute_ecz_metrics, aggregate_school_metrics,
    form_label, compute_class_performance, compute_school_performance,
)


def learner(gender, score):
    return {'gender': gender, 'score': score}


class GradeBandTests(SimpleTestCase):
    def test_band_edges(self):
        self.assertEqual(get_grade(75), '1')
        self.assertEqual(get_grade(74), '2')
        self.assertEqual(get_grade(40), '8')
        self.assertEqual(get_grade(39), '9')
        self.assertEqual(get_grade(0), '9')

    def test_gap_scores_fall_to_last_band(self):
        self.assertEqual(get_ecz_grade(74.5)['code'], '9')
        self.assertEqual(get_ecz_grade(None)['code'], '9')
        self.assertEqual(get_ecz_grade(120)['code'], '9')

    def test_kalabo_band_gap_is_none(self):
        self.assertIsNone(get_kalabo_band(64.5))
        self.assertEqual(get_kalabo_band(64)['key'], 'merit2')

    def test_round_half_up(self):
        self.assertEqual(round_half_up(2.5), 3)
        self.assertEqual(round_half_up(2.4), 2)

    def test_pct_string_zero_whole(self):
        self.assertEqual(pct_string(3, 0), '0.0')
        self.assertEqual(pct_string(1, 3), '33.3')


class FinalScoreTests(SimpleTestCase):
    def test_latest_written_assessment_wins(self):
        self.assertEqual(final_score(40, 50, 60), 60)
        self.assertEqual(final_score(40, 50, None), 50)
        self.assertEqual(final_score(40, None, None), 40)
        self.assertEqual(final_score(), 0)

    def test_zero_is_a_real_score(self):
        self.assertEqual(final_score(70, 0, None), 0)


class MetricsTests(SimpleTestCase):
    def setUp(self):
        self.learners = [
            learner('M', 80),
            learner('M', 30),
            learner('F', 66),
            learner('F', None),
        ]

    def test_kalabo_metrics(self):
        metrics = compute_kalabo_metrics(self.learners)
        self.assertEqual(metrics['onRoll'], {'total': 4, 'boys': 2, 'girls': 2})
        self.assertEqual(metrics['sat'], {'total': 3, 'boys': 2, 'girls': 1})
        self.assertEqual(metrics['gradeCounts']['dist1']['boys'], 1)
        self.assertEqual(metrics['gradeCounts']['merit1']['girls'], 1)
        self.assertEqual(metrics['quality']['overall'], '66.7')
        self.assertEqual(metrics['fail']['count']['total'], 1)
        self.assertEqual(metrics['fail']['pct'], '33.3')

    def test_ecz_metrics(self):
        metrics = compute_ecz_metrics(self.learners)
        self.assertEqual(metrics['sat']['rate'], 75)
        self.assertEqual(metrics['averageScore'], 58.7)
        self.assertEqual(metrics['quality']['total'], 2)
        self.assertEqual(metrics['fail']['total'], 1)
        self.assertEqual(metrics['highestScore'], 80)
        self.assertEqual(metrics['lowestScore'], 30)
        self.assertEqual(metrics['boysAverage'], 55.0)
        self.assertEqual(metrics['girlsAverage'], 66.0)

    def test_empty_class(self):
        metrics = compute_ecz_metrics([])
        self.assertEqual(metrics['averageScore'], 0)
        self.assertEqual(metrics['quality']['pct'], 0)

    def test_school_aggregate_weights_by_sat(self):
        aggregate = aggregate_school_metrics([
            {'learners': [learner('M', 80), learner('F', 80)]},
            {'learners': [learner('M', 10), learner('F', None)]},
        ])
        self.assertEqual(aggregate['onRoll'], 4)
        self.assertEqual(aggregate['sat'], 3)
        self.assertEqual(aggregate['qualityPct'], '66.7')
        self.assertEqual(aggregate['failPct'], '33.3')


class PerformanceTests(SimpleTestCase):
    def test_form_label(self):
        self.assertEqual(form_label('Form 3B'), 'Form 3')
        self.assertEqual(form_label('Grade 10C'), 'Grade 17')
        self.assertEqual(form_label('Blue'), 'Form 1')

    def test_class_and_school_performance(self):
        subject_classes = [
            {'classId': 1, 'className': 'Form 1A', 'subject': 'Mathematics',
             'learners': [learner('M', 80), learner('F', 20)]},
            {'classId': 1, 'className': 'Form 1A', 'subject': 'English',
             'learners': [learner('M', 62), learner('F', None)]},
        ]
        classes = compute_class_performance(subject_classes)
        self.assertEqual(len(classes), 1)
        form1a = classes[0]
        self.assertEqual(form1a['subjectCount'], 2)
        self.assertEqual(form1a['totalLearners'], 2)
        self.assertEqual(form1a['totalAssessed'], 3)
        self.assertEqual(form1a['qualityPct'], 67)
        self.assertEqual(form1a['failPct'], 33)
        self.assertEqual(form1a['performance'], 'High')
        self.assertEqual(form1a['subjects'][1]['absent'], 1)

        school = compute_school_performance(classes)
        self.assertEqual(school['totalAssessed'], 3)
        self.assertEqual(school['qualityPct'], 67)
