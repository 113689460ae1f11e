# core/tests/views/test_account_views.py
from django.contrib.auth import get_user_model
from django.urls import reverse

from core.models import Teacher
from core.tests.factories import UserFactory
from core.tests.test_utils import BaseTestCase

User = get_user_model()


class SignInViewTests(BaseTestCase):
    def test_sign_in_with_email(self):
        user = UserFactory(email='mwila@kalabo.school')
        response = self.client.post(reverse('signin'), {'username': 'MWILA@kalabo.school', 'password': 'password'})
        self.assertResponseRedirect(response, reverse('dashboard'))
        self.assertEqual(int(self.client.session['_auth_user_id']), user.pk)

    def test_sign_in_with_username(self):
        UserFactory(username='mwila')
        response = self.client.post(reverse('signin'), {'username': 'mwila', 'password': 'password'})
        self.assertResponseRedirect(response, reverse('dashboard'))

    def test_bad_password(self):
        UserFactory(username='mwila')
        response = self.client.post(reverse('signin'), {'username': 'mwila', 'password': 'wrong'})
        self.assertResponseOK(response)
        self.assertNotIn('_auth_user_id', self.client.session)

    def test_signed_in_user_is_sent_to_dashboard(self):
        self.login(self.teacher_user)
        self.assertResponseRedirect(self.client.get(reverse('signin')), reverse('dashboard'))

    def test_sign_out(self):
        self.login(self.teacher_user)
        self.assertResponseRedirect(self.client.get(reverse('signout')), reverse('signin'))
        self.assertNotIn('_auth_user_id', self.client.session)


class SignUpViewTests(BaseTestCase):
    def form_data(self, **overrides):
        data = {
            'username': 'nalishebo',
            'email': 'nalishebo@kalabo.school',
            'full_name': 'Nalishebo Mubita',
            'role': User.ROLE_TEACHER,
            'subjects': 'Biology, Chemistry, Biology',
            'password1': 'Str0ng-pass-2025',
            'password2': 'Str0ng-pass-2025',
        }
        data.update(overrides)
        return data

    def test_teachers_cannot_open_sign_up(self):
        self.login(self.teacher_user)
        response = self.client.get(reverse('signup'))
        self.assertEqual(response.status_code, 302)
        self.assertIn(reverse('signin'), response.url)

    def test_admin_creates_teacher_with_subjects(self):
        self.login(self.admin)
        response = self.client.post(reverse('signup'), self.form_data())
        self.assertResponseRedirect(response, reverse('dashboard'))

        teacher = Teacher.objects.get(user__username='nalishebo')
        self.assertEqual(teacher.subjects, ['Biology', 'Chemistry'])

    def test_admin_account_has_no_teacher_profile(self):
        self.login(self.admin)
        self.client.post(reverse('signup'), self.form_data(role=User.ROLE_ADMIN, subjects=''))
        self.assertFalse(Teacher.objects.filter(user__username='nalishebo').exists())

    def test_duplicate_email_rejected(self):
        self.login(self.admin)
        response = self.client.post(reverse('signup'), self.form_data(email=self.teacher_user.email.upper()))
        self.assertResponseOK(response)
        self.assertFalse(User.objects.filter(username='nalishebo').exists())
