# core/tests/test_utils.py
from django.test import TestCase
from rest_framework.test import APIClient

from core.tests.factories import (
    AdminUserFactory, TeacherFactory, SchoolClassFactory, LearnerFactory,
    TeachingAssignmentFactory,
)


class BaseTestCase(TestCase):
    """Common fixtures: an admin, a teacher and a class of learners they teach."""

    def setUp(self):
        self.admin = AdminUserFactory(username='headteacher')
        self.teacher = TeacherFactory(subjects=['Mathematics', 'English'])
        self.teacher_user = self.teacher.user
        self.school_class = SchoolClassFactory(name='Form 1A')
        self.boy = LearnerFactory(school_class=self.school_class, name='Mutale Banda', sex='M')
        self.girl = LearnerFactory(school_class=self.school_class, name='Chipo Mwale', sex='F')
        self.assignment = TeachingAssignmentFactory(
            teacher=self.teacher, school_class=self.school_class, subject='Mathematics'
        )

    def login(self, user):
        self.client.force_login(user)

    def assertResponseOK(self, response):
        self.assertEqual(response.status_code, 200)

    def assertResponseRedirect(self, response, expected_url=None):
        self.assertEqual(response.status_code, 302)
        if expected_url:
            self.assertEqual(response.url, expected_url)


class BaseAPITestCase(BaseTestCase):
    def setUp(self):
        super().setUp()
        self.api = APIClient()

    def as_admin(self):
        self.api.force_authenticate(user=self.admin)

    def as_teacher(self, teacher=None):
        self.api.force_authenticate(user=(teacher or self.teacher).user)
