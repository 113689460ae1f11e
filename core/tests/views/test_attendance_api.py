# core/tests/views/test_attendance_api.py
from core.models import AttendanceSession
from core.tests.factories import AttendanceSessionFactory, TeacherFactory
from core.tests.test_utils import BaseAPITestCase


class AttendanceAPITests(BaseAPITestCase):
    date = '2025-03-12'

    def roll_call(self, girl='absent'):
        return {
            'class_id': self.school_class.pk,
            'date': self.date,
            'title': 'Morning register',
            'records': [
                {'learner_id': self.boy.pk, 'status': 'present'},
                {'learner_id': self.girl.pk, 'status': girl},
            ],
        }

    def test_draft_round_trip(self):
        self.as_teacher()
        response = self.api.post('/api/attendance/draft/', self.roll_call())
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['status'], 'draft')

        response = self.api.get('/api/attendance/draft/', {'class_id': self.school_class.pk, 'date': self.date})
        self.assertEqual(response.json()['title'], 'Morning register')
        self.assertEqual(len(response.json()['records']), 2)

    def test_draft_lookup_needs_class_and_date(self):
        self.as_teacher()
        response = self.api.get('/api/attendance/draft/', {'class_id': self.school_class.pk})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['code'], 'validation_error')

    def test_submit(self):
        self.as_teacher()
        response = self.api.post('/api/attendance/submit/', self.roll_call(girl='late'))
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()['stats']['late'], 1)
        self.assertEqual(AttendanceSession.objects.get().status, AttendanceSession.STATUS_SUBMITTED)

    def test_submit_for_untaught_class_forbidden(self):
        self.as_teacher(TeacherFactory())
        response = self.api.post('/api/attendance/submit/', self.roll_call())
        self.assertEqual(response.status_code, 403)

    def test_history(self):
        self.as_teacher()
        self.api.post('/api/attendance/submit/', self.roll_call())
        history = self.api.get('/api/attendance/history/', {'limit': 5}).json()
        self.assertEqual([s['date'] for s in history], [self.date])

    def test_teacher_list_is_scoped(self):
        AttendanceSessionFactory(school_class=self.school_class)
        AttendanceSessionFactory(teacher=self.teacher, school_class=self.school_class)
        self.as_teacher()
        self.assertEqual(len(self.api.get('/api/attendance/').json()), 1)

    def test_admin_endpoints(self):
        AttendanceSessionFactory(teacher=self.teacher, school_class=self.school_class)
        self.as_teacher()
        self.assertEqual(self.api.get('/api/attendance/overview/').status_code, 403)

        self.as_admin()
        overview = self.api.get('/api/attendance/overview/', {'preset': 'today'}).json()
        self.assertEqual(overview['summary']['totalSessions'], 1)
        self.assertEqual(overview['label'], 'Today')

        response = self.api.get('/api/attendance/export/', {'preset': 'today'})
        self.assertTrue(response['Content-Type'].startswith('text/csv'))
        self.assertIn(b'Attendance Rate', response.content)

    def test_lock(self):
        session = AttendanceSessionFactory(teacher=self.teacher, school_class=self.school_class)
        self.as_admin()
        response = self.api.post(f'/api/attendance/{session.pk}/lock/')
        self.assertEqual(response.json()['status'], 'locked')

        response = self.api.post(f'/api/attendance/{session.pk}/lock/')
        self.assertEqual(response.status_code, 400)

    def test_sync(self):
        self.as_teacher()
        queued = dict(self.roll_call(), client_updated_at='2025-03-12T08:00:00Z')
        response = self.api.post('/api/attendance/sync/', {'sessions': [queued]})
        self.assertEqual(response.json(), {'applied': 1, 'skipped': 0})
