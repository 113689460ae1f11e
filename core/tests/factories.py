# core/tests/factories.py
import factory
from factory.django import DjangoModelFactory
from django.contrib.auth import get_user_model
from django.utils import timezone

from core.models import (
    SchoolClass, Learner, Teacher, TeachingAssignment, Mark,
    AttendanceSession, Assessment, LessonPlan, SchemeOfWork, SchemeTopic,
)

User = get_user_model()


class UserFactory(DjangoModelFactory):
    class Meta:
        model = User

    username = factory.Sequence(lambda n: f'user{n}')
    email = factory.Sequence(lambda n: f'user{n}@kalabo.school')
    password = factory.PostGenerationMethodCall('set_password', 'password')
    first_name = factory.Faker('first_name')
    last_name = factory.Faker('last_name')
    full_name = factory.LazyAttribute(lambda o: f'{o.first_name} {o.last_name}')
    role = User.ROLE_TEACHER


class AdminUserFactory(UserFactory):
    role = User.ROLE_ADMIN


class TeacherFactory(DjangoModelFactory):
    """The post_save signal already creates the profile, so reuse it."""

    class Meta:
        model = Teacher

    user = factory.SubFactory(UserFactory)
    subjects = factory.LazyFunction(lambda: ['Mathematics', 'English'])

    @classmethod
    def _create(cls, model_class, *args, **kwargs):
        subjects = kwargs.pop('subjects', [])
        teacher, _ = model_class.objects.get_or_create(user=kwargs.pop('user'), defaults=kwargs)
        teacher.subjects = subjects
        teacher.save()
        return teacher


class SchoolClassFactory(DjangoModelFactory):
    class Meta:
        model = SchoolClass

    name = factory.Sequence(lambda n: f'Form {n % 5 + 1}{chr(65 + n % 26)}{n}')


class LearnerFactory(DjangoModelFactory):
    class Meta:
        model = Learner

    name = factory.Faker('name')
    sex = factory.Iterator(['M', 'F'])
    school_class = factory.SubFactory(SchoolClassFactory)
    parent_phone = '0977000000'
    parent_email = factory.Sequence(lambda n: f'parent{n}@example.com')


class TeachingAssignmentFactory(DjangoModelFactory):
    class Meta:
        model = TeachingAssignment

    teacher = factory.SubFactory(TeacherFactory)
    school_class = factory.SubFactory(SchoolClassFactory)
    subject = 'Mathematics'


class MarkFactory(DjangoModelFactory):
    class Meta:
        model = Mark

    learner = factory.SubFactory(LearnerFactory)
    school_class = factory.SelfAttribute('learner.school_class')
    subject = 'Mathematics'
    term = 'term1'
    assessment_type = 'week4'
    score = 65
    status = Mark.STATUS_SUBMITTED


class AttendanceSessionFactory(DjangoModelFactory):
    class Meta:
        model = AttendanceSession

    school_class = factory.SubFactory(SchoolClassFactory)
    class_name = factory.SelfAttribute('school_class.name')
    teacher = factory.SubFactory(TeacherFactory)
    date = factory.LazyFunction(lambda: timezone.localdate())
    status = AttendanceSession.STATUS_SUBMITTED
    submitted_at = factory.LazyFunction(timezone.now)
    stats = factory.LazyFunction(lambda: {
        'total': 2, 'present': 1, 'absent': 1, 'late': 0, 'excused': 0, 'attendanceRate': 50.0,
    })


class AssessmentFactory(DjangoModelFactory):
    class Meta:
        model = Assessment

    created_by = factory.SubFactory(UserFactory)
    title = factory.Sequence(lambda n: f'Week {n} Test')
    school_class = factory.SubFactory(SchoolClassFactory)
    class_name = factory.SelfAttribute('school_class.name')
    subject = 'Mathematics'
    term = 'term1'
    topic_breakdown = factory.LazyFunction(lambda: {'Algebra': 60, 'Geometry': 40})


class LessonPlanFactory(DjangoModelFactory):
    class Meta:
        model = LessonPlan

    teacher = factory.SubFactory(TeacherFactory)
    school_class = factory.SubFactory(SchoolClassFactory)
    class_name = factory.SelfAttribute('school_class.name')
    subject = 'Mathematics'
    date = factory.LazyFunction(lambda: timezone.localdate())
    topic = 'Quadratic equations'
    objectives = factory.LazyFunction(lambda: ['Solve by factorisation'])


class SchemeOfWorkFactory(DjangoModelFactory):
    class Meta:
        model = SchemeOfWork

    teacher = factory.SubFactory(TeacherFactory)
    school_class = factory.SubFactory(SchoolClassFactory)
    class_name = factory.SelfAttribute('school_class.name')
    subject = 'Mathematics'
    title = factory.Sequence(lambda n: f'Term 1 Mathematics {n}')


class SchemeTopicFactory(DjangoModelFactory):
    class Meta:
        model = SchemeTopic

    scheme = factory.SubFactory(SchemeOfWorkFactory)
    key = factory.Sequence(lambda n: f'topic_{n}')
    week = factory.Sequence(lambda n: n % 12 + 1)
    title = factory.Faker('sentence', nb_words=3)
