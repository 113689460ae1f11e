# core/tests/test_assessments.py
import shutil
import tempfile

from django.test import override_settings

from core.exceptions import AssessmentException, DataValidationError, PermissionDeniedError
from core.models import Assessment, LessonPlan
from core.services import assessments
from core.services.assessments import GradeAssessmentGenerator
from core.tests.factories import AssessmentFactory, LessonPlanFactory, SchoolClassFactory, UserFactory
from core.tests.test_utils import BaseTestCase

MEDIA_ROOT = tempfile.mkdtemp()


class TopicDistributionTests(BaseTestCase):
    def test_no_topics_is_general(self):
        self.assertEqual(assessments.get_recommended_topic_distribution([]), {'General Knowledge': 100})

    def test_equal_split_remainder_on_first(self):
        self.assertEqual(
            assessments.get_recommended_topic_distribution(['Sets', 'Indices', 'Algebra']),
            {'Sets': 34, 'Indices': 33, 'Algebra': 33}
        )

    def test_weekly_tests_favour_earlier_topics(self):
        self.assertEqual(
            assessments.get_recommended_topic_distribution(['Sets', 'Indices', 'Algebra'], week=4),
            {'Sets': 37, 'Indices': 33, 'Algebra': 30}
        )

    def test_covered_topics_come_from_approved_plans(self):
        for topic, status in (('Sets', 'approved'), ('Sets', 'approved'), ('Indices', 'submitted')):
            LessonPlanFactory(teacher=self.teacher, school_class=self.school_class, topic=topic, status=status)
        self.assertEqual(
            assessments.get_covered_topics(self.teacher, self.school_class.pk, 'Mathematics', 'term1'),
            ['Sets']
        )

    def test_sample_questions_cycle_types(self):
        questions = assessments.generate_sample_questions(['Sets'], 5)
        self.assertEqual([q['type'] for q in questions], ['mcq', 'short_answer', 'essay', 'true_false', 'mcq'])
        self.assertEqual(questions[0]['options'], ['Option A', 'Option B', 'Option C', 'Option D'])
        self.assertEqual(questions[2]['marks'], 10)


class ClassAssessmentTests(BaseTestCase):
    def create(self, **kwargs):
        return assessments.create_assessment(
            self.teacher_user, self.school_class.pk, 'Mathematics', 'Week 4 Test',
            topic_breakdown={'Sets': 50, 'Indices': 50}, **kwargs
        )

    def test_create_requires_assignment(self):
        with self.assertRaises(PermissionDeniedError):
            assessments.create_assessment(self.teacher_user, self.school_class.pk, 'English', 'Quiz')

    def test_create_sets_grade_level(self):
        assessment = self.create(week=4)
        self.assertEqual(assessment.grade_level, '1')
        self.assertEqual(assessment.class_name, 'Form 1A')
        self.assertEqual(assessment.status, Assessment.STATUS_DRAFT)

    def test_generate_questions_totals_marks(self):
        assessment = self.create()
        assessment = assessments.generate_questions(assessment.pk, self.teacher_user, count=4)
        self.assertEqual(assessment.status, Assessment.STATUS_GENERATED)
        self.assertEqual(assessment.questions.count(), 4)
        # mcq easy + short medium + essay hard + true/false easy
        self.assertEqual(assessment.total_marks, 1 + 3 + 10 + 1)

    def test_explicit_questions(self):
        assessment = self.create()
        assessments.generate_questions(assessment.pk, self.teacher_user, questions=[
            {'type': 'essay', 'question': 'Define a set.', 'marks': 6},
        ])
        assessment.refresh_from_db()
        self.assertEqual(assessment.total_marks, 6)

    def test_other_teacher_cannot_touch_assessment(self):
        assessment = self.create()
        with self.assertRaises(PermissionDeniedError):
            assessments.generate_questions(assessment.pk, UserFactory())

    def test_publish_needs_questions(self):
        assessment = self.create()
        with self.assertRaises(AssessmentException):
            assessments.publish_assessment(assessment.pk, self.teacher_user)

    @override_settings(MEDIA_ROOT=MEDIA_ROOT)
    def test_publish_writes_pdfs(self):
        assessment = self.create()
        assessments.generate_questions(assessment.pk, self.teacher_user, count=3)
        assessment = assessments.publish_assessment(assessment.pk, self.teacher_user)

        self.assertEqual(assessment.status, Assessment.STATUS_PUBLISHED)
        self.assertIsNotNone(assessment.published_at)
        for field in (assessment.question_paper, assessment.marking_scheme, assessment.answer_key):
            with field.open('rb') as pdf:
                self.assertEqual(pdf.read(4), b'%PDF')

    def test_archived_cannot_be_regenerated(self):
        assessment = self.create()
        assessments.archive_assessment(assessment.pk, self.teacher_user)
        with self.assertRaises(AssessmentException):
            assessments.generate_questions(assessment.pk, self.teacher_user)

    def test_stats(self):
        self.create()
        AssessmentFactory(created_by=self.teacher_user, subject='English', type='mid_term', total_marks=40)
        stats = assessments.get_assessment_stats(self.teacher_user)
        self.assertEqual(stats['total'], 2)
        self.assertEqual(stats['draft'], 2)
        self.assertEqual(stats['mid_term'], 1)
        self.assertEqual(stats['bySubject'], {'Mathematics': 1, 'English': 1})
        self.assertEqual(stats['totalMarks'], 40)

    @classmethod
    def tearDownClass(cls):
        shutil.rmtree(MEDIA_ROOT, ignore_errors=True)
        super().tearDownClass()


class GradeAssessmentTests(BaseTestCase):
    def setUp(self):
        super().setUp()
        SchoolClassFactory(name='Form 1B')
        LessonPlanFactory(teacher=self.teacher, school_class=self.school_class, topic='Sets')
        LessonPlanFactory(teacher=self.teacher, school_class=self.school_class, topic='Sets')
        LessonPlanFactory(teacher=self.teacher, school_class=self.school_class, topic='Indices')
        self.generator = GradeAssessmentGenerator(self.admin)
        self.config = {
            'grade': '1',
            'subject': 'Mathematics',
            'title': 'Form 1 End of Term Mathematics',
            'topic_breakdown': {'Sets': 60, 'Indices': 40},
        }

    def test_teachers_cannot_generate(self):
        with self.assertRaises(PermissionDeniedError):
            GradeAssessmentGenerator(self.teacher_user)

    def test_grade_statistics(self):
        stats = self.generator.get_grade_statistics()
        self.assertEqual(stats[0]['grade'], '1')
        self.assertEqual(stats[0]['totalClasses'], 2)
        self.assertEqual(stats[0]['totalStudents'], 2)
        self.assertEqual(stats[0]['subjects'], ['Mathematics'])

    def test_topic_coverage(self):
        coverage = self.generator.get_aggregated_topic_coverage()['1_Mathematics']
        sets, indices = coverage
        self.assertEqual(sets['coveragePercentage'], 40)
        self.assertEqual(sets['teacherCount'], 2)
        self.assertEqual(indices['finalWeight'], 33)

    def test_invalid_config(self):
        self.config['topic_breakdown'] = {'Sets': 60}
        with self.assertRaises(DataValidationError) as ctx:
            self.generator.create_grade_assessment(self.config)
        self.assertIn('topic_breakdown', ctx.exception.validation_errors)

    def test_create_grade_assessment(self):
        assessment = self.generator.create_grade_assessment(self.config)
        self.assertTrue(assessment.is_grade_wide)
        self.assertIsNone(assessment.school_class)
        self.assertEqual(assessment.class_name, 'Grade 1 (All Classes)')
        self.assertEqual(assessment.status, Assessment.STATUS_GENERATED)
        self.assertEqual(assessment.total_classes, 2)
        self.assertEqual(assessment.average_topic_coverage, 30)
        self.assertEqual(assessment.questions.count(), 20)
        # 6 easy x2, 10 medium x3, 4 hard x5
        self.assertEqual(assessment.total_marks, 62)
        self.assertEqual(list(self.generator.get_grade_assessments()), [assessment])

    def test_standard_alignment(self):
        topics = [
            {'topic': 'Sets', 'standardWeight': 25},
            {'topic': 'Indices', 'standardWeight': 25},
        ]
        self.assertEqual(GradeAssessmentGenerator.calculate_standard_alignment(topics, {'Sets': 25, 'Indices': 25}), 100)
        self.assertEqual(GradeAssessmentGenerator.calculate_standard_alignment([], {}), 0)

    def test_standard_alignment_drops_with_deviation(self):
        topics = [
            {'topic': 'Sets', 'standardWeight': 25},
            {'topic': 'Indices', 'standardWeight': 25},
        ]
        # Sets is 75 points off, Indices 25 points off
        self.assertEqual(GradeAssessmentGenerator.calculate_standard_alignment(topics, {'Sets': 100, 'Indices': 0}), 50)
        self.assertEqual(GradeAssessmentGenerator.calculate_standard_alignment(topics, {}), 75)

    def test_zero_share_difficulty_is_respected(self):
        questions = GradeAssessmentGenerator.generate_grade_assessment({
            'topic_breakdown': {'Sets': 100},
            'difficulty_profile': {'easy': 0, 'medium': 50, 'hard': 50},
        })
        difficulties = [q['difficulty'] for q in questions]
        self.assertNotIn('easy', difficulties)
        self.assertEqual(difficulties.count('medium'), 10)
        self.assertEqual(difficulties.count('hard'), 10)
