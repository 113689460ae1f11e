# core/tests/views/test_planning_api.py
import datetime

from core.models import Assessment, LessonPlan, SchemeOfWork
from core.tests.factories import AssessmentFactory, LessonPlanFactory, TeacherFactory
from core.tests.test_utils import BaseAPITestCase


class AssessmentAPITests(BaseAPITestCase):
    def create(self, **overrides):
        data = {
            'title': 'Week 4 Test',
            'subject': 'Mathematics',
            'school_class': self.school_class.pk,
            'term': 'term1',
            'week': 4,
            'topic_breakdown': {'Sets': 50, 'Indices': 50},
        }
        data.update(overrides)
        return self.api.post('/api/assessments/', data)

    def test_create_and_generate(self):
        self.as_teacher()
        response = self.create()
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()['grade_level'], '1')

        assessment_id = response.json()['id']
        response = self.api.post(f'/api/assessments/{assessment_id}/generate/', {'count': 2})
        self.assertEqual(response.json()['status'], 'generated')
        self.assertEqual(len(response.json()['questions']), 2)

    def test_create_for_unassigned_subject(self):
        self.as_teacher()
        self.assertEqual(self.create(subject='English').status_code, 403)

    def test_teacher_sees_only_own(self):
        AssessmentFactory()
        self.as_teacher()
        self.create()
        self.assertEqual(len(self.api.get('/api/assessments/').json()), 1)

    def test_download_pdf(self):
        self.as_teacher()
        assessment_id = self.create().json()['id']
        self.api.post(f'/api/assessments/{assessment_id}/generate/', {'count': 3})

        response = self.api.get(f'/api/assessments/{assessment_id}/download/', {'document': 'answer_key'})
        self.assertEqual(response.status_code, 200)
        self.assertTrue(b''.join(response.streaming_content).startswith(b'%PDF'))

        response = self.api.get(f'/api/assessments/{assessment_id}/download/', {'document': 'poster'})
        self.assertEqual(response.status_code, 400)

    def test_publish_without_questions(self):
        self.as_teacher()
        assessment_id = self.create().json()['id']
        response = self.api.post(f'/api/assessments/{assessment_id}/publish/')
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['code'], 'business_error')

    def test_stats(self):
        self.as_teacher()
        self.create()
        self.assertEqual(self.api.get('/api/assessments/stats/').json()['total'], 1)

    def test_grade_assessment_is_admin_only(self):
        LessonPlanFactory(teacher=self.teacher, school_class=self.school_class, topic='Sets')
        config = {
            'grade': '1',
            'subject': 'Mathematics',
            'title': 'Form 1 End of Term Mathematics',
            'topic_breakdown': {'Sets': 60, 'Indices': 40},
        }
        self.as_teacher()
        self.assertEqual(self.api.post('/api/assessments/grade/', config).status_code, 403)

        self.as_admin()
        response = self.api.post('/api/assessments/grade/', config)
        self.assertEqual(response.status_code, 201)
        self.assertTrue(response.json()['is_grade_wide'])
        self.assertEqual(len(self.api.get('/api/assessments/grade/').json()), 1)
        self.assertEqual(Assessment.objects.get().status, Assessment.STATUS_GENERATED)

        stats = self.api.get('/api/assessments/grade-statistics/').json()
        self.assertEqual(stats[0]['grade'], '1')


class LessonPlanAPITests(BaseAPITestCase):
    def create(self, **overrides):
        data = {
            'school_class': self.school_class.pk,
            'subject': 'Mathematics',
            'topic': 'Sets',
            'date': '2025-03-12',
            'objectives': ['Define a set'],
        }
        data.update(overrides)
        return self.api.post('/api/lesson-plans/', data)

    def test_create_update_and_submit(self):
        self.as_teacher()
        response = self.create()
        self.assertEqual(response.status_code, 201)
        plan_id = response.json()['id']

        response = self.api.patch(f'/api/lesson-plans/{plan_id}/', {'topic': 'Venn diagrams'})
        self.assertEqual(response.json()['topic'], 'Venn diagrams')

        response = self.api.post(f'/api/lesson-plans/{plan_id}/submit/')
        self.assertEqual(response.json()['status'], 'submitted')

    def test_other_teacher_cannot_edit(self):
        plan = LessonPlanFactory(school_class=self.school_class)
        self.as_teacher()
        response = self.api.patch(f'/api/lesson-plans/{plan.pk}/', {'topic': 'Hijacked'})
        self.assertEqual(response.status_code, 404)

    def test_review_flow(self):
        plan = LessonPlanFactory(teacher=self.teacher, school_class=self.school_class, status='submitted')
        self.as_teacher()
        self.assertEqual(self.api.get('/api/lesson-plans/pending/').status_code, 403)

        self.as_admin()
        pending = self.api.get('/api/lesson-plans/pending/').json()
        self.assertEqual([p['id'] for p in pending], [plan.pk])

        response = self.api.post(f'/api/lesson-plans/{plan.pk}/review/', {
            'decision': 'approved', 'feedback': 'Well structured',
        })
        self.assertEqual(response.json()['status'], 'approved')
        self.assertEqual(LessonPlan.objects.get().reviewer, self.admin)

    def test_calendar(self):
        LessonPlanFactory(teacher=self.teacher, date=datetime.date(2025, 3, 31))
        self.as_teacher()
        events = self.api.get('/api/lesson-plans/calendar/', {'month': 3, 'year': 2025}).json()
        self.assertEqual(len(events), 1)

        self.assertEqual(self.api.get('/api/lesson-plans/calendar/', {'month': 13}).status_code, 400)
        self.assertEqual(self.api.get('/api/lesson-plans/calendar/', {'month': 'May'}).status_code, 400)

    def test_stats(self):
        self.as_teacher()
        self.create()
        self.assertEqual(self.api.get('/api/lesson-plans/stats/').json()['total'], 1)


class SchemeAPITests(BaseAPITestCase):
    def create(self):
        return self.api.post('/api/schemes/', {
            'school_class': self.school_class.pk,
            'subject': 'Mathematics',
            'title': 'Term 1 Mathematics',
            'total_weeks': 3,
        })

    def test_create_builds_topics(self):
        self.as_teacher()
        response = self.create()
        self.assertEqual(response.status_code, 201)
        self.assertEqual([t['key'] for t in response.json()['topics']], ['week-1', 'week-2', 'week-3'])

    def test_update_topic(self):
        self.as_teacher()
        scheme_id = self.create().json()['id']
        response = self.api.patch(f'/api/schemes/{scheme_id}/topics/week-2/', {
            'title': 'Indices', 'status': 'completed',
        })
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['title'], 'Indices')
        self.assertIsNotNone(response.json()['completed_date'])

        stats = self.api.get('/api/schemes/stats/').json()
        self.assertEqual(stats['completedTopics'], 1)

    def test_duplicate_and_templates(self):
        self.as_teacher()
        scheme_id = self.create().json()['id']
        response = self.api.post(f'/api/schemes/{scheme_id}/duplicate/', {'template_name': 'Form 1 Template'})
        self.assertEqual(response.status_code, 201)
        self.assertTrue(response.json()['is_template'])

        templates = self.api.get('/api/schemes/templates/').json()
        self.assertEqual([t['title'] for t in templates], ['Form 1 Template'])

    def test_other_teacher_cannot_publish(self):
        self.as_teacher()
        scheme_id = self.create().json()['id']
        self.as_teacher(TeacherFactory())
        response = self.api.post(f'/api/schemes/{scheme_id}/publish/')
        self.assertIn(response.status_code, (403, 404))

        self.as_admin()
        response = self.api.post(f'/api/schemes/{scheme_id}/publish/')
        self.assertEqual(response.json()['status'], 'published')
        self.assertEqual(SchemeOfWork.objects.get(pk=scheme_id).status, SchemeOfWork.STATUS_PUBLISHED)
