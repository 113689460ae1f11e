# core/tests/test_marks.py
from django.test import override_settings

from core.exceptions import GradeValidationError, PermissionDeniedError, DataValidationError
from core.models import Mark
from core.services import marks as marks_service
from core.tests.factories import MarkFactory, TeacherFactory, LearnerFactory, TeachingAssignmentFactory
from core.tests.test_utils import BaseTestCase


def record_all(learner, subject='Mathematics', scores=(50, 60, 70), term='term1'):
    for assessment_type, score in zip(('week4', 'week8', 'end_of_term'), scores):
        MarkFactory(learner=learner, subject=subject, term=term,
                    assessment_type=assessment_type, score=score)


class SaveMarksTests(BaseTestCase):
    def entries(self, boy_score=72, girl_score=None):
        return [
            {'learner_id': self.boy.pk, 'score': boy_score, 'comment': ' Good work '},
            {'learner_id': self.girl.pk, 'score': girl_score},
        ]

    def test_teacher_saves_marks_for_assigned_subject(self):
        saved = marks_service.save_marks(
            self.teacher_user, self.school_class.pk, 'Mathematics', 'term1', 'week4', self.entries()
        )
        self.assertEqual(len(saved), 2)
        boy_mark = Mark.objects.get(learner=self.boy)
        self.assertEqual(boy_mark.score, 72)
        self.assertEqual(boy_mark.comment, 'Good work')
        self.assertEqual(boy_mark.teacher, self.teacher)
        self.assertTrue(Mark.objects.get(learner=self.girl).is_absent)

    def test_saving_again_updates_the_same_row(self):
        args = (self.teacher_user, self.school_class.pk, 'Mathematics', 'term1', 'week4')
        marks_service.save_marks(*args, self.entries())
        marks_service.save_marks(*args, self.entries(boy_score=40), status=Mark.STATUS_SUBMITTED)

        self.assertEqual(Mark.objects.filter(learner=self.boy).count(), 1)
        boy_mark = Mark.objects.get(learner=self.boy)
        self.assertEqual(boy_mark.score, 40)
        self.assertEqual(boy_mark.status, Mark.STATUS_SUBMITTED)

    def test_teacher_cannot_enter_unassigned_subject(self):
        with self.assertRaises(PermissionDeniedError):
            marks_service.save_marks(
                self.teacher_user, self.school_class.pk, 'English', 'term1', 'week4', self.entries()
            )

    def test_admin_can_enter_any_subject(self):
        saved = marks_service.save_marks(
            self.admin, self.school_class.pk, 'English', 'term1', 'week8', self.entries()
        )
        self.assertIsNone(saved[0].teacher)
        self.assertEqual(saved[0].teacher_name, self.admin.display_name)

    def test_out_of_range_score_saves_nothing(self):
        with self.assertRaises(GradeValidationError) as ctx:
            marks_service.save_marks(
                self.teacher_user, self.school_class.pk, 'Mathematics', 'term1', 'week4',
                self.entries(boy_score=101)
            )
        self.assertIn('Mutale Banda', ctx.exception.field_errors)
        self.assertFalse(Mark.objects.exists())

    def test_learner_from_another_class_rejected(self):
        stranger = LearnerFactory()
        with self.assertRaises(GradeValidationError):
            marks_service.save_marks(
                self.admin, self.school_class.pk, 'Mathematics', 'term1', 'week4',
                [{'learner_id': stranger.pk, 'score': 50}]
            )

    def test_unknown_term(self):
        with self.assertRaises(DataValidationError):
            marks_service.save_marks(
                self.admin, self.school_class.pk, 'Mathematics', 'term9', 'week4', self.entries()
            )

    def test_entry_stats(self):
        marks_service.save_marks(
            self.teacher_user, self.school_class.pk, 'Mathematics', 'term1', 'week4', self.entries()
        )
        stats = marks_service.get_marks_entry_stats(self.school_class.pk, 'Mathematics', 'term1', 'week4')
        self.assertEqual(stats['entered'], 1)
        self.assertEqual(stats['absent'], 1)
        self.assertEqual(stats['pending'], 0)
        self.assertEqual(stats['averageScore'], 72)
        self.assertEqual(stats['completionPercentage'], 100)


class LearnerReportTests(BaseTestCase):
    def test_report_ready_needs_all_three_assessments(self):
        record_all(self.boy)
        MarkFactory(learner=self.girl, assessment_type='week4', score=55)

        reports = {r['id']: r for r in marks_service.fetch_learner_reports('term1')}
        self.assertTrue(reports[self.boy.pk]['reportReady'])
        self.assertFalse(reports[self.girl.pk]['reportReady'])

    def test_absent_assessment_still_counts_as_recorded(self):
        record_all(self.boy, scores=(50, None, 70))
        report = marks_service.get_learner_report(self.boy.pk, 'term1')
        self.assertTrue(report['reportReady'])

    def test_final_score_is_latest_assessment(self):
        record_all(self.boy, scores=(50, 60, None))
        row = marks_service.get_learner_report(self.boy.pk, 'term1')['subjects'][0]
        self.assertEqual(row['score'], 60)
        self.assertEqual(row['grade'], '4')
        self.assertEqual(row['gradeDescription'], 'Merit 2')

    def test_learner_without_marks_is_not_ready(self):
        report = marks_service.get_learner_report(self.girl.pk, 'term1')
        self.assertEqual(report['subjects'], [])
        self.assertFalse(report['reportReady'])

    def test_unknown_learner(self):
        with self.assertRaises(DataValidationError):
            marks_service.get_learner_report(99999, 'term1')

    def test_compiled_marks(self):
        record_all(self.boy, scores=(45, 55, 65))
        rows = marks_service.get_compiled_class_marks(self.school_class.pk, 'term1')
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0]['finalScore'], 65)
        self.assertEqual(rows[0]['className'], 'Form 1A')


@override_settings(SUBMISSION_THRESHOLD=0.8)
class ProgressTests(BaseTestCase):
    def test_subject_counts_as_submitted_at_threshold(self):
        MarkFactory(learner=self.boy, assessment_type='week4', score=60)
        progress = marks_service.get_teacher_progress(self.school_class.pk, 'term1', 'week4')
        self.assertEqual(progress[0]['missingSubjects'], ['Mathematics'])

        MarkFactory(learner=self.girl, assessment_type='week4', score=70)
        progress = marks_service.get_teacher_progress(self.school_class.pk, 'term1', 'week4')
        self.assertEqual(progress[0]['percentComplete'], 100)

    def test_absent_learners_do_not_count_towards_progress(self):
        MarkFactory(learner=self.boy, assessment_type='week4', score=60)
        MarkFactory(learner=self.girl, assessment_type='week4', score=None)
        progress = marks_service.get_class_progress(self.school_class.pk, 'term1', 'week4')
        self.assertFalse(progress['ready'])

    def test_ready_and_pending_classes(self):
        other_teacher = TeacherFactory()
        other_assignment = TeachingAssignmentFactory(teacher=other_teacher, subject='Science')
        LearnerFactory(school_class=other_assignment.school_class)
        for learner in (self.boy, self.girl):
            MarkFactory(learner=learner, assessment_type='week8', score=50)

        self.assertEqual(marks_service.get_ready_classes('term1', 'week8'), [self.school_class.pk])
        self.assertEqual(marks_service.get_pending_classes('term1', 'week8'), [other_assignment.school_class.pk])

    def test_class_without_teachers_has_no_progress(self):
        self.assignment.delete()
        self.assertIsNone(marks_service.get_class_progress(self.school_class.pk, 'term1', 'week4'))

    def test_completion_stats_capped(self):
        record_all(self.boy)
        record_all(self.girl)
        # Marks for a subject nobody is assigned are ignored
        record_all(self.boy, subject='Art')
        stats = marks_service.get_assessment_completion_stats(self.school_class.pk, 'term1')
        self.assertEqual(stats, {'week4': 100, 'week8': 100, 'endOfTerm': 100, 'overall': 100})

    def test_subject_completion_flags(self):
        record_all(self.boy)
        record_all(self.girl, scores=(50, 60, None))
        completion = marks_service.check_subject_completion_all_assessments(self.school_class.pk, 'term1')
        self.assertTrue(completion[0]['week4Complete'])
        self.assertFalse(completion[0]['endOfTermComplete'])
        self.assertFalse(completion[0]['fullyComplete'])

    def test_learner_assessments_complete(self):
        record_all(self.boy, scores=(50, None, 70))
        MarkFactory(learner=self.girl, assessment_type='week4')
        args = (self.school_class.pk, 'term1', ['Mathematics'])
        self.assertTrue(marks_service.check_learner_assessments_complete(self.boy.pk, *args))
        self.assertFalse(marks_service.check_learner_assessments_complete(self.girl.pk, *args))

    def test_progress_report_counts(self):
        record_all(self.boy)
        rows = marks_service.get_class_progress_report('term1')
        self.assertEqual(rows[0], {
            'id': self.school_class.pk, 'name': 'Form 1A', 'total': 2, 'ready': 1, 'sent': 0,
        })

    def test_subject_class_marks_list_every_learner(self):
        MarkFactory(learner=self.boy, assessment_type='week4', score=81)
        sheets = marks_service.fetch_subject_class_marks('term1', 'week4', teacher_id=self.teacher.pk)
        self.assertEqual(len(sheets), 1)
        scores = {l['name']: l['score'] for l in sheets[0]['learners']}
        self.assertEqual(scores, {'Chipo Mwale': None, 'Mutale Banda': 81})
