# core/tests/test_admin_stats.py
from core.services.admin_stats import get_admin_stats
from core.tests.factories import SchoolClassFactory, MarkFactory
from core.tests.test_marks import record_all
from core.tests.test_utils import BaseTestCase


class AdminStatsTests(BaseTestCase):
    def test_totals_and_readiness(self):
        SchoolClassFactory(name='Form 2A')
        record_all(self.boy)
        MarkFactory(learner=self.girl, assessment_type='week4', score=50, status='draft')

        stats = get_admin_stats()
        self.assertEqual(stats['totalLearners'], 2)
        self.assertEqual(stats['totalClasses'], 2)
        self.assertEqual(stats['totalTeachers'], 1)
        self.assertEqual(stats['totalReportsReady'], 1)
        self.assertEqual(stats['reportsReadyPercent'], 50)

        form1a = stats['classStats'][0]
        self.assertEqual(form1a['className'], 'Form 1A')
        self.assertEqual(form1a['submittedCount'], 1)
        self.assertEqual(form1a['teacherNames'], [self.teacher.get_full_name()])
        self.assertEqual(form1a['reportsReadyPercent'], 50)
        self.assertEqual(stats['classStats'][1]['reportsReadyPercent'], 0)

    def test_absent_marks_do_not_make_a_report_ready(self):
        record_all(self.boy, scores=(50, None, 70))
        self.assertEqual(get_admin_stats()['totalReportsReady'], 0)

    def test_empty_school(self):
        self.school_class.delete()
        stats = get_admin_stats()
        self.assertEqual(stats['totalLearners'], 0)
        self.assertEqual(stats['reportsReadyPercent'], 0)
