# core/tests/views/test_class_api.py
from django.core.files.uploadedfile import SimpleUploadedFile

from core.models import SchoolClass, Learner, TeachingAssignment
from core.tests.factories import TeacherFactory
from core.tests.test_utils import BaseAPITestCase


class ClassAPITests(BaseAPITestCase):
    def test_anonymous_refused(self):
        response = self.api.get('/api/classes/')
        self.assertIn(response.status_code, (401, 403))

    def test_teacher_reads_but_cannot_write(self):
        self.as_teacher()
        response = self.api.get('/api/classes/')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()[0]['learner_count'], 2)

        response = self.api.post('/api/classes/', {'name': 'Form 2C'})
        self.assertEqual(response.status_code, 403)

    def test_admin_creates_and_renames(self):
        self.as_admin()
        response = self.api.post('/api/classes/', {'name': ' Form 2C '})
        self.assertEqual(response.status_code, 201)
        class_id = response.json()['id']
        self.assertEqual(SchoolClass.objects.get(pk=class_id).created_by, self.admin)

        response = self.api.patch(f'/api/classes/{self.school_class.pk}/', {'name': 'Form 1 Blue'})
        self.assertEqual(response.status_code, 200)
        self.assignment.refresh_from_db()
        self.assertEqual(self.assignment.class_name, 'Form 1 Blue')

    def test_delete_reports_learners(self):
        self.as_admin()
        response = self.api.delete(f'/api/classes/{self.school_class.pk}/')
        self.assertEqual(response.json(), {'deleted': True, 'learnersDeleted': 2})
        self.assertTrue(TeachingAssignment.objects.filter(school_class__isnull=True).exists())

    def test_overview(self):
        self.as_teacher()
        data = self.api.get(f'/api/classes/{self.school_class.pk}/overview/').json()
        self.assertEqual(data['subjects'], ['Mathematics'])
        self.assertEqual(len(data['learners']), 2)

    def test_import_classes(self):
        self.as_admin()
        upload = SimpleUploadedFile('classes.csv', b'Class Name\nForm 1A\nForm 3C\n', content_type='text/csv')
        response = self.api.post('/api/classes/import/', {'file': upload}, format='multipart')
        self.assertEqual(response.status_code, 201)
        self.assertEqual([c['name'] for c in response.json()['created']], ['Form 3C'])
        self.assertEqual(response.json()['skipped'], ['Form 1A'])

    def test_import_rejects_wrong_extension(self):
        self.as_admin()
        upload = SimpleUploadedFile('classes.txt', b'Class Name\nForm 3C\n')
        response = self.api.post('/api/classes/import/', {'file': upload}, format='multipart')
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['code'], 'validation_error')

    def test_import_learners(self):
        self.as_admin()
        upload = SimpleUploadedFile('learners.csv', b'name,sex,parentPhone,parentEmail\nInonge Sitali,Female,0977,\n,Male,,\n')
        response = self.api.post(
            f'/api/classes/{self.school_class.pk}/import-learners/', {'file': upload}, format='multipart'
        )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()['errors'], ['Row 2: Name is required'])
        self.assertEqual(self.school_class.learners.count(), 3)

    def test_replace_assignments(self):
        other = TeacherFactory()
        self.as_admin()
        response = self.api.put(
            f'/api/classes/{self.school_class.pk}/assignments/',
            {'assignments': {str(other.pk): ['Science'], str(self.teacher.pk): []}}
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual([a['subject'] for a in response.json()], ['Science'])

        data = self.api.get(f'/api/classes/{self.school_class.pk}/assignments/').json()
        self.assertEqual(data['subjects'], ['Science'])
        self.assertEqual(data['teachers'][0]['teacherId'], other.pk)

    def test_progress_needs_assessment_type(self):
        self.as_admin()
        response = self.api.get(f'/api/classes/{self.school_class.pk}/progress/', {'term': 'term1'})
        self.assertEqual(response.status_code, 400)

        response = self.api.get(
            f'/api/classes/{self.school_class.pk}/progress/', {'term': 'term1', 'assessment_type': 'week4'}
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['totalSubjects'], 1)

    def test_unknown_class_is_business_error(self):
        self.as_admin()
        response = self.api.get('/api/classes/99999/completion/', {'term': 'term1'})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['message'], 'Class not found')

    def test_non_numeric_class_id(self):
        self.as_admin()
        response = self.api.get('/api/classes/abc/progress/', {'term': 'term1', 'assessment_type': 'week4'})
        self.assertEqual(response.status_code, 404)

        response = self.api.put(
            f'/api/classes/{self.school_class.pk}/assignments/', {'assignments': {'abc': ['Science']}}
        )
        self.assertEqual(response.status_code, 400)


class LearnerAPITests(BaseAPITestCase):
    def test_filter_by_class_and_search(self):
        self.as_teacher()
        response = self.api.get('/api/learners/', {'school_class': self.school_class.pk, 'search': 'chipo'})
        self.assertEqual([l['name'] for l in response.json()], ['Chipo Mwale'])

    def test_admin_adds_learner(self):
        self.as_admin()
        response = self.api.post('/api/learners/', {
            'name': 'Namakau Lubasi', 'sex': 'F', 'school_class': self.school_class.pk,
        })
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()['admission_no'], 'FOR-003')
        self.assertEqual(response.json()['class_name'], 'Form 1A')

    def test_admin_deletes_learner(self):
        self.as_admin()
        response = self.api.delete(f'/api/learners/{self.boy.pk}/')
        self.assertEqual(response.status_code, 204)
        self.assertFalse(Learner.objects.filter(pk=self.boy.pk).exists())


class TeacherAPITests(BaseAPITestCase):
    def test_me(self):
        self.as_teacher()
        data = self.api.get('/api/teachers/me/').json()
        self.assertEqual(data['id'], self.teacher.pk)
        self.assertEqual(data['classes'][0]['subjects'], ['Mathematics'])

    def test_me_without_profile(self):
        self.as_admin()
        response = self.api.get('/api/teachers/me/')
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()['code'], 'permission_denied')

    def test_update_subjects(self):
        self.as_admin()
        response = self.api.put(f'/api/teachers/{self.teacher.pk}/subjects/', {'subjects': ['Biology', 'Biology']})
        self.assertEqual(response.status_code, 200)
        self.teacher.refresh_from_db()
        self.assertEqual(self.teacher.subjects, ['Biology'])

    def test_assign_and_unassign(self):
        self.as_admin()
        response = self.api.post(f'/api/teachers/{self.teacher.pk}/assign/', {
            'school_class': self.school_class.pk, 'subjects': ['English', 'Mathematics'],
        })
        self.assertEqual(len(response.json()), 2)

        response = self.api.post(f'/api/teachers/{self.teacher.pk}/unassign/', {'school_class': self.school_class.pk})
        self.assertEqual(response.json(), {'removed': 2})


class AssignmentAPITests(BaseAPITestCase):
    def test_duplicate_assignment(self):
        self.as_admin()
        response = self.api.post('/api/assignments/', {
            'teacher': self.teacher.pk, 'school_class': self.school_class.pk, 'subject': 'Mathematics',
        })
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['code'], 'business_error')

    def test_mine_and_overview(self):
        self.as_teacher()
        self.assertEqual(self.api.get('/api/assignments/mine/').json(), [{
            'classId': self.school_class.pk, 'className': 'Form 1A', 'subject': 'Mathematics',
        }])
        self.assertEqual(self.api.get('/api/assignments/overview/').status_code, 403)

    def test_overview_rejects_non_numeric_teacher(self):
        self.as_admin()
        self.assertEqual(self.api.get('/api/assignments/overview/', {'teacher': 'x'}).status_code, 400)

    def test_cleanup(self):
        self.school_class.delete()
        self.as_admin()
        self.assertEqual(self.api.post('/api/assignments/cleanup/').json(), {'deleted': 1})
