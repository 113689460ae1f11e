# core/api/filters.py
import django_filters

from core.models import Learner, Mark, TeachingAssignment, AttendanceSession


class LearnerFilter(django_filters.FilterSet):
    name = django_filters.CharFilter(lookup_expr='icontains')

    class Meta:
        model = Learner
        fields = ['school_class', 'sex', 'name']


class MarkFilter(django_filters.FilterSet):
    class Meta:
        model = Mark
        fields = ['school_class', 'learner', 'subject', 'term', 'assessment_type', 'status', 'teacher']


class TeachingAssignmentFilter(django_filters.FilterSet):
    orphaned = django_filters.BooleanFilter(field_name='school_class', lookup_expr='isnull')

    class Meta:
        model = TeachingAssignment
        fields = ['teacher', 'school_class', 'subject', 'orphaned']


class AttendanceSessionFilter(django_filters.FilterSet):
    date = django_filters.DateFromToRangeFilter()

    class Meta:
        model = AttendanceSession
        fields = ['school_class', 'teacher', 'status', 'date']
