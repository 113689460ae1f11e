# core/tests/test_schemes.py
from datetime import timedelta

from django.utils import timezone

from core.exceptions import SchemeOfWorkException, DataValidationError, PermissionDeniedError
from core.models import SchemeOfWork, SchemeTopic
from core.services import schemes
from core.tests.factories import UserFactory
from core.tests.test_utils import BaseTestCase


class SchemeTests(BaseTestCase):
    def setUp(self):
        super().setUp()
        self.scheme = schemes.create_scheme(
            self.teacher, self.school_class.pk, 'Mathematics', 'Term 1 Mathematics', total_weeks=4,
            objectives=['Number sense']
        )

    def test_create_builds_weekly_topics(self):
        self.assertEqual(self.scheme.status, SchemeOfWork.STATUS_DRAFT)
        self.assertEqual(self.scheme.grade_level, '1')
        self.assertEqual(
            list(self.scheme.topics.values_list('key', flat=True)),
            ['week-1', 'week-2', 'week-3', 'week-4']
        )

    def test_needs_at_least_one_week(self):
        with self.assertRaises(DataValidationError):
            schemes.create_scheme(self.teacher, self.school_class.pk, 'Mathematics', 'Empty', total_weeks=0)

    def test_completing_a_topic_stamps_the_date(self):
        topic = schemes.update_topic(self.scheme.pk, 'week-1', self.teacher_user, status='completed', title='Sets')
        self.assertEqual(topic.title, 'Sets')
        self.assertIsNotNone(topic.completed_date)

        topic = schemes.update_topic(self.scheme.pk, 'week-1', self.teacher_user, status='in_progress')
        self.assertIsNone(topic.completed_date)

    def test_unknown_topic_and_status(self):
        with self.assertRaises(SchemeOfWorkException):
            schemes.update_topic(self.scheme.pk, 'week-99', self.teacher_user, status='completed')
        with self.assertRaises(DataValidationError):
            schemes.update_topic(self.scheme.pk, 'week-1', self.teacher_user, status='abandoned')

    def test_other_teachers_are_refused(self):
        with self.assertRaises(PermissionDeniedError):
            schemes.publish_scheme(self.scheme.pk, UserFactory())

    def test_admin_may_publish(self):
        scheme = schemes.publish_scheme(self.scheme.pk, self.admin)
        self.assertEqual(scheme.status, SchemeOfWork.STATUS_PUBLISHED)
        self.assertIsNotNone(scheme.published_at)

    def test_update_ignores_total_weeks(self):
        scheme = schemes.update_scheme(self.scheme.pk, self.teacher_user, title='Renamed', total_weeks=20)
        self.assertEqual(scheme.title, 'Renamed')
        self.assertEqual(scheme.total_weeks, 4)

    def test_duplicate_as_template(self):
        schemes.update_topic(self.scheme.pk, 'week-2', self.teacher_user, status='completed')
        copy = schemes.duplicate_scheme_as_template(self.scheme.pk, 'Form 1 Maths Template', self.teacher_user)

        self.assertTrue(copy.is_template)
        self.assertEqual(copy.title, 'Form 1 Maths Template')
        self.assertEqual(copy.objectives, ['Number sense'])
        self.assertEqual(copy.topics.count(), 4)
        self.assertEqual(copy.topics.get(key='week-2').status, SchemeTopic.STATUS_COMPLETED)
        self.assertEqual(list(schemes.get_templates(self.teacher)), [copy])

    def test_templates_newest_first_even_after_edits(self):
        older = schemes.duplicate_scheme_as_template(self.scheme.pk, 'Old Template', self.teacher_user)
        newer = schemes.duplicate_scheme_as_template(self.scheme.pk, 'New Template', self.teacher_user)
        SchemeOfWork.objects.filter(pk=older.pk).update(created_at=timezone.now() - timedelta(days=30))
        older.refresh_from_db()
        older.description = 'Edited today'
        older.save()

        self.assertEqual(list(schemes.get_templates(self.teacher)), [newer, older])

    def test_duplicate_needs_name(self):
        with self.assertRaises(DataValidationError):
            schemes.duplicate_scheme_as_template(self.scheme.pk, '  ', self.teacher_user)

    def test_stats(self):
        schemes.update_topic(self.scheme.pk, 'week-1', self.teacher_user, status='completed')
        stats = schemes.get_scheme_stats(self.teacher)
        self.assertEqual(stats['totalSchemes'], 1)
        self.assertEqual(stats['draftSchemes'], 1)
        self.assertEqual(stats['totalTopics'], 4)
        self.assertEqual(stats['completedTopics'], 1)
        self.assertEqual(stats['upcomingTopics'], 3)
        self.assertEqual(stats['averageCompletionRate'], 25)

    def test_delete(self):
        schemes.delete_scheme(self.scheme.pk, self.teacher_user)
        self.assertFalse(SchemeTopic.objects.exists())
