# core/api/views.py
"""
JSON API for the school portal. Viewsets stay thin: they validate input with
serializers and hand over to ``core.services``; domain exceptions are
rendered by ``custom_exception_handler``.
"""
import logging

from django.db.models import Q
from django.http import FileResponse
from django.shortcuts import get_object_or_404
from django.utils import timezone
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.response import Response
from rest_framework.views import APIView

from core.api.filters import (
    AttendanceSessionFilter,
    LearnerFilter,
    MarkFilter,
    TeachingAssignmentFilter,
)
from core.api.serializers import (
    AssessmentSerializer,
    AssignmentInputSerializer,
    AssignSubjectsSerializer,
    AttendanceInputSerializer,
    AttendanceSessionSerializer,
    ClassAssignmentsSerializer,
    DuplicateSchemeSerializer,
    GenerateQuestionsSerializer,
    GradeAssessmentConfigSerializer,
    LearnerSerializer,
    LessonPlanReviewSerializer,
    LessonPlanSerializer,
    MarkSerializer,
    MarksSaveSerializer,
    OfflineSessionSerializer,
    ReportDeliverySerializer,
    SchemeOfWorkSerializer,
    SchemeTopicSerializer,
    SchoolClassSerializer,
    SendReportSerializer,
    TeacherSerializer,
    TeacherSubjectsSerializer,
    TeachingAssignmentSerializer,
    TermQuerySerializer,
)
from core.exceptions import BulkUploadError, DataValidationError, PermissionDeniedError
from core.forms import BulkUploadForm, MarksUploadForm
from core.grading_utils import (
    aggregate_school_metrics,
    compute_class_performance,
    compute_ecz_metrics,
    compute_kalabo_metrics,
    compute_school_performance,
)
from core.models import (
    Assessment,
    AttendanceSession,
    Learner,
    LessonPlan,
    Mark,
    SchemeOfWork,
    SchoolClass,
    TeachingAssignment,
)
from core.permissions import IsOwnerOrAdmin, IsSchoolAdmin, IsTeacherOrAdmin, is_admin, is_teacher
from core.services import (
    admin_stats,
    assessments,
    attendance,
    class_management,
    lesson_plans,
    marks,
    report_cards,
    schemes,
    teacher_assignments,
)
from core.services.assessment_pdf import AssessmentPDFGenerator
from core.utils.export_utils import (
    ATTENDANCE_OVERVIEW_HEADERS,
    attendance_overview_rows,
    csv_response,
)
from core.utils.import_utils import parse_marks_rows, read_tabular_upload

logger = logging.getLogger(__name__)

# Primary keys in URLs are integers; anything else is a 404 from the router
NUMERIC_ID = r'\d+'


# =========================
# Helpers
# =========================

def current_teacher(request):
    """The requesting user's teacher profile; admins without one are refused."""
    if not is_teacher(request.user):
        raise PermissionDeniedError(
            "A teacher profile is required for this action",
            required_permission='teacher_profile',
            user=request.user
        )
    return request.user.teacher


def validated(serializer_class, data, **kwargs):
    serializer = serializer_class(data=data, **kwargs)
    serializer.is_valid(raise_exception=True)
    return serializer.validated_data


def term_params(request, require_type=False):
    """``term`` (required), ``assessment_type`` and ``year`` from the query string or body."""
    params = validated(TermQuerySerializer, request.query_params if request.method == 'GET' else request.data)
    if require_type and not params.get('assessment_type'):
        raise DataValidationError(
            "Assessment type is required",
            validation_errors={'assessment_type': 'This query parameter is required'}
        )
    return params


def required_param(request, name):
    value = request.query_params.get(name)
    if value in (None, '') and request.method != 'GET':
        value = request.data.get(name)
    if value in (None, ''):
        raise DataValidationError(
            f"'{name}' is required",
            validation_errors={name: 'This parameter is required'}
        )
    return value


def int_param(request, name):
    """Optional integer query parameter; junk is a validation error, not a crash."""
    value = request.query_params.get(name)
    if value in (None, ''):
        return None
    try:
        return int(value)
    except ValueError:
        raise DataValidationError(
            f"'{name}' must be a whole number",
            validation_errors={name: value}
        )


def upload_form(form_class, request):
    form = form_class(request.POST, request.FILES)
    if not form.is_valid():
        raise DataValidationError(
            "Invalid upload",
            validation_errors={field: errors[0] for field, errors in form.errors.items()},
            user=request.user
        )
    return form.cleaned_data


class AdminWriteMixin:
    """Teachers read, administrators write (plus any extra ``admin_actions``)."""

    admin_actions = ('create', 'update', 'partial_update', 'destroy')

    def get_permissions(self):
        if self.action in self.admin_actions:
            return [IsSchoolAdmin()]
        return [IsTeacherOrAdmin()]


# =========================
# Classes and learners
# =========================

class ClassViewSet(AdminWriteMixin, viewsets.ModelViewSet):
    queryset = SchoolClass.objects.all().order_by('name')
    serializer_class = SchoolClassSerializer
    lookup_value_regex = NUMERIC_ID
    search_fields = ['name']
    ordering_fields = ['name', 'created_at']
    admin_actions = AdminWriteMixin.admin_actions + (
        'import_classes', 'import_learners', 'assignments', 'send_reports',
    )

    def perform_create(self, serializer):
        serializer.instance = class_management.add_class(
            serializer.validated_data['name'], user=self.request.user
        )

    def perform_update(self, serializer):
        serializer.instance = class_management.update_class(
            serializer.instance.pk,
            serializer.validated_data.get('name', serializer.instance.name)
        )

    def destroy(self, request, *args, **kwargs):
        school_class = self.get_object()
        learners_deleted = class_management.delete_class(school_class.pk)
        return Response({'deleted': True, 'learnersDeleted': learners_deleted})

    @action(detail=True, methods=['get'])
    def learners(self, request, pk=None):
        return Response(LearnerSerializer(class_management.get_class_learners(pk), many=True).data)

    @action(detail=True, methods=['get'])
    def overview(self, request, pk=None):
        data = class_management.get_class_with_assignments(pk)
        data['learners'] = LearnerSerializer(data['learners'], many=True).data
        return Response(data)

    @action(detail=False, methods=['post'], url_path='import', parser_classes=[MultiPartParser, FormParser])
    def import_classes(self, request):
        rows = read_tabular_upload(upload_form(BulkUploadForm, request)['file'])
        result = class_management.bulk_import_classes(rows, user=request.user)
        return Response({
            'created': SchoolClassSerializer(result['created'], many=True).data,
            'skipped': result['skipped'],
        }, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['post'], url_path='import-learners', parser_classes=[MultiPartParser, FormParser])
    def import_learners(self, request, pk=None):
        rows = read_tabular_upload(upload_form(BulkUploadForm, request)['file'])
        result = class_management.bulk_import_learners(pk, rows)
        return Response({
            'created': LearnerSerializer(result['created'], many=True).data,
            'errors': result['errors'],
        }, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['put'])
    def assignments(self, request, pk=None):
        data = validated(ClassAssignmentsSerializer, request.data)
        created = teacher_assignments.update_class_assignments(pk, data['assignments'])
        return Response(TeachingAssignmentSerializer(created, many=True).data)

    @assignments.mapping.get
    def list_assignments(self, request, pk=None):
        class_management.get_class(pk)
        return Response({
            'assignments': TeachingAssignmentSerializer(
                teacher_assignments.get_assignments_by_class_id(pk), many=True
            ).data,
            'teachers': teacher_assignments.get_teachers_for_class(pk),
            'subjects': class_management.get_assigned_subjects(pk),
        })

    @action(detail=True, methods=['get'])
    def progress(self, request, pk=None):
        params = term_params(request, require_type=True)
        return Response(marks.get_class_progress(
            int(pk), params['term'], params['assessment_type'], year=params.get('year')
        ))

    @action(detail=True, methods=['get'], url_path='compiled-marks')
    def compiled_marks(self, request, pk=None):
        return Response(marks.get_compiled_class_marks(pk, term_params(request)['term']))

    @action(detail=True, methods=['get'])
    def completion(self, request, pk=None):
        term = term_params(request)['term']
        class_management.get_class(pk)
        return Response({
            'subjects': marks.check_subject_completion_all_assessments(pk, term),
            'stats': marks.get_assessment_completion_stats(pk, term),
        })

    @action(detail=True, methods=['get'])
    def reports(self, request, pk=None):
        params = term_params(request)
        class_management.get_class(pk)
        return Response(marks.fetch_learner_reports(params['term'], class_id=pk, year=params.get('year')))

    @action(detail=True, methods=['post'], url_path='send-reports')
    def send_reports(self, request, pk=None):
        params = term_params(request)
        class_management.get_class(pk)
        sent = report_cards.send_class_reports(pk, params['term'], year=params.get('year'), user=request.user)
        return Response({'sent': sent})


class LearnerViewSet(AdminWriteMixin, viewsets.ModelViewSet):
    queryset = Learner.objects.select_related('school_class').order_by('name')
    serializer_class = LearnerSerializer
    lookup_value_regex = NUMERIC_ID
    filterset_class = LearnerFilter
    search_fields = ['name', 'admission_no']

    def perform_create(self, serializer):
        data = serializer.validated_data
        serializer.instance = class_management.add_learner(
            data['school_class'].pk,
            data['name'],
            sex=data.get('sex', 'M'),
            parent_phone=data.get('parent_phone', ''),
            parent_email=data.get('parent_email', ''),
            admission_no=data.get('admission_no', ''),
        )

    def perform_update(self, serializer):
        changes = {k: v for k, v in serializer.validated_data.items() if k != 'school_class'}
        serializer.instance = class_management.update_learner(serializer.instance.pk, **changes)

    def perform_destroy(self, instance):
        class_management.delete_learner(instance.pk)


# =========================
# Teachers and assignments
# =========================

class TeacherViewSet(AdminWriteMixin, viewsets.ReadOnlyModelViewSet):
    serializer_class = TeacherSerializer
    lookup_value_regex = NUMERIC_ID
    search_fields = ['user__full_name', 'user__username', 'employee_id']
    admin_actions = ('subjects', 'assign', 'unassign')

    def get_queryset(self):
        return teacher_assignments.list_teachers()

    @action(detail=True, methods=['put', 'patch'])
    def subjects(self, request, pk=None):
        data = validated(TeacherSubjectsSerializer, request.data)
        teacher = teacher_assignments.update_teacher_subjects(pk, data['subjects'])
        return Response(TeacherSerializer(teacher).data)

    @action(detail=True, methods=['get'])
    def classes(self, request, pk=None):
        teacher_assignments.get_teacher(pk)
        return Response(teacher_assignments.get_teacher_classes(pk))

    @action(detail=True, methods=['post'])
    def assign(self, request, pk=None):
        """Replace the teacher's subjects in one class."""
        data = validated(AssignSubjectsSerializer, request.data)
        created = teacher_assignments.assign_teacher_to_class_multiple(pk, data['school_class'], data['subjects'])
        return Response(TeachingAssignmentSerializer(created, many=True).data)

    @action(detail=True, methods=['post'])
    def unassign(self, request, pk=None):
        class_id = required_param(request, 'school_class')
        removed = teacher_assignments.remove_teacher_from_class_all_subjects(pk, class_id)
        return Response({'removed': removed})

    @action(detail=False, methods=['get'])
    def me(self, request):
        teacher = current_teacher(request)
        data = TeacherSerializer(teacher).data
        data['classes'] = teacher_assignments.get_teacher_classes(teacher.pk)
        return Response(data)


class AssignmentViewSet(AdminWriteMixin,
                        mixins.ListModelMixin,
                        mixins.RetrieveModelMixin,
                        mixins.DestroyModelMixin,
                        viewsets.GenericViewSet):
    queryset = TeachingAssignment.objects.select_related('teacher__user', 'school_class').order_by('class_name', 'subject')
    serializer_class = TeachingAssignmentSerializer
    lookup_value_regex = NUMERIC_ID
    filterset_class = TeachingAssignmentFilter
    admin_actions = ('create', 'destroy', 'cleanup', 'overview')

    def create(self, request):
        data = validated(AssignmentInputSerializer, request.data)
        assignment = teacher_assignments.assign_teacher_to_class(
            data['teacher'], data['school_class'], data['subject']
        )
        return Response(TeachingAssignmentSerializer(assignment).data, status=status.HTTP_201_CREATED)

    def perform_destroy(self, instance):
        teacher_assignments.remove_teacher_from_class(instance.pk)

    @action(detail=False, methods=['post'])
    def cleanup(self, request):
        return Response({'deleted': teacher_assignments.cleanup_orphaned_assignments()})

    @action(detail=False, methods=['get'])
    def overview(self, request):
        return Response(teacher_assignments.get_all_teacher_class_assignments(int_param(request, 'teacher')))

    @action(detail=False, methods=['get'])
    def mine(self, request):
        return Response(teacher_assignments.get_teacher_class_subjects(current_teacher(request).pk))


# =========================
# Marks and results analysis
# =========================

class MarksViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = MarkSerializer
    lookup_value_regex = NUMERIC_ID
    filterset_class = MarkFilter
    permission_classes = [IsTeacherOrAdmin]

    def get_queryset(self):
        queryset = Mark.objects.select_related('learner').order_by('school_class', 'subject', 'learner__name')
        if is_admin(self.request.user):
            return queryset
        pairs = TeachingAssignment.objects.filter(
            teacher=current_teacher(self.request), school_class__isnull=False
        ).values_list('school_class_id', 'subject')
        taught = Q(pk__in=[])
        for class_id, subject in pairs:
            taught |= Q(school_class_id=class_id, subject=subject)
        return queryset.filter(taught)

    def _teacher_scope(self, request):
        """Teachers only see their own subject classes; admins may pick one."""
        if is_admin(request.user):
            return int_param(request, 'teacher')
        return current_teacher(request).pk

    @action(detail=False, methods=['post'])
    def save(self, request):
        data = validated(MarksSaveSerializer, request.data)
        saved = marks.save_marks(
            request.user,
            data['class_id'],
            data['subject'],
            data['term'],
            data['assessment_type'],
            [dict(entry) for entry in data['entries']],
            status=data['status'],
        )
        return Response({'saved': len(saved), 'marks': MarkSerializer(saved, many=True).data})

    @action(detail=False, methods=['post'], url_path='import', parser_classes=[MultiPartParser, FormParser])
    def import_marks(self, request):
        """Read an ``Admission No,Name,Score`` sheet into marks for one class and subject."""
        data = upload_form(MarksUploadForm, request)
        learners = list(class_management.get_class_learners(data['class_id']))
        scores, errors = parse_marks_rows(read_tabular_upload(data['file']), learners)
        if not scores:
            raise BulkUploadError("No marks could be matched to learners in this class", row_errors=errors)

        saved = marks.save_marks(
            request.user,
            data['class_id'],
            data['subject'],
            data['term'],
            data['assessment_type'],
            [{'learner_id': learner_id, 'score': score} for learner_id, score in scores.items()],
            status=data.get('status') or Mark.STATUS_DRAFT,
        )
        return Response({'imported': len(saved), 'errors': errors}, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=['get'])
    def stats(self, request):
        params = term_params(request, require_type=True)
        return Response(marks.get_marks_entry_stats(
            required_param(request, 'class_id'),
            required_param(request, 'subject'),
            params['term'],
            params['assessment_type'],
        ))

    @action(detail=False, methods=['get'], url_path='subject-classes')
    def subject_classes(self, request):
        params = term_params(request, require_type=True)
        return Response(marks.fetch_subject_class_marks(
            params['term'], params['assessment_type'], teacher_id=self._teacher_scope(request)
        ))

    @action(detail=False, methods=['get'])
    def analysis(self, request):
        params = term_params(request, require_type=True)
        subject_classes = marks.fetch_subject_class_marks(
            params['term'], params['assessment_type'], teacher_id=self._teacher_scope(request)
        )
        class_performance = compute_class_performance(subject_classes)
        return Response({
            'subjectClasses': [
                {
                    'id': sc['id'],
                    'classId': sc['classId'],
                    'className': sc['className'],
                    'subject': sc['subject'],
                    'kalabo': compute_kalabo_metrics(sc['learners']),
                    'ecz': compute_ecz_metrics(sc['learners']),
                }
                for sc in subject_classes
            ],
            'school': aggregate_school_metrics(subject_classes),
            'classPerformance': class_performance,
            'schoolPerformance': compute_school_performance(class_performance),
        })

    @action(detail=False, methods=['get'], url_path='teacher-progress')
    def teacher_progress(self, request):
        params = term_params(request, require_type=True)
        return Response(marks.get_teacher_progress(
            required_param(request, 'class_id'), params['term'], params['assessment_type']
        ))

    @action(detail=False, methods=['get'], permission_classes=[IsSchoolAdmin])
    def progress(self, request):
        params = term_params(request, require_type=True)
        progress = marks.get_all_classes_progress(params['term'], params['assessment_type'], year=params.get('year'))
        return Response({
            'classes': progress,
            'readyClasses': [p['classId'] for p in progress if p['ready']],
            'pendingClasses': [p['classId'] for p in progress if not p['ready']],
        })


# =========================
# Report cards
# =========================

class ReportViewSet(viewsets.ViewSet):
    """Compiled learner reports keyed by learner id."""

    lookup_value_regex = NUMERIC_ID

    def get_permissions(self):
        if self.action in ('send', 'send_all', 'progress'):
            return [IsSchoolAdmin()]
        return [IsTeacherOrAdmin()]

    def list(self, request):
        params = term_params(request)
        reports = marks.fetch_learner_reports(
            params['term'], class_id=int_param(request, 'class_id'), year=params.get('year')
        )
        if request.query_params.get('ready') in ('1', 'true'):
            reports = [r for r in reports if r['reportReady']]
        return Response(reports)

    def retrieve(self, request, pk=None):
        params = term_params(request)
        get_object_or_404(Learner, pk=pk)
        return Response(marks.get_learner_report(pk, params['term'], year=params.get('year')))

    @action(detail=True, methods=['get'])
    def links(self, request, pk=None):
        params = term_params(request)
        year = params.get('year') or timezone.now().year
        get_object_or_404(Learner, pk=pk)
        report = marks.get_learner_report(pk, params['term'], year=year)
        return Response(report_cards.build_delivery_links(
            report, params['term'], year, request.query_params.get('method', 'all')
        ))

    @action(detail=False, methods=['post'])
    def send(self, request):
        data = validated(SendReportSerializer, request.data)
        result = report_cards.send_report(
            data['learner_id'],
            data['term'],
            year=data.get('year'),
            method=data['method'],
            user=request.user,
            deliver_email=data['deliver_email'],
        )
        return Response({
            'links': result['links'],
            'delivery': ReportDeliverySerializer(result['delivery']).data,
        })

    @action(detail=False, methods=['post'], url_path='send-all')
    def send_all(self, request):
        params = term_params(request)
        return Response(report_cards.send_all_reports(params['term'], year=params.get('year'), user=request.user))

    @action(detail=False, methods=['get'])
    def progress(self, request):
        params = term_params(request)
        return Response(marks.get_class_progress_report(params['term'], year=params.get('year')))


class AdminStatsView(APIView):
    permission_classes = [IsSchoolAdmin]

    def get(self, request):
        return Response(admin_stats.get_admin_stats())


# =========================
# Attendance
# =========================

class AttendanceViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = AttendanceSessionSerializer
    lookup_value_regex = NUMERIC_ID
    filterset_class = AttendanceSessionFilter
    permission_classes = [IsTeacherOrAdmin]

    def get_permissions(self):
        if self.action in ('overview', 'export', 'lock'):
            return [IsSchoolAdmin()]
        return super().get_permissions()

    def get_queryset(self):
        queryset = AttendanceSession.objects.prefetch_related('records').order_by('-date', '-created_at')
        if is_admin(self.request.user):
            return queryset
        return queryset.filter(teacher=current_teacher(self.request))

    @action(detail=False, methods=['get'])
    def draft(self, request):
        session = attendance.get_draft_attendance(
            required_param(request, 'class_id'), required_param(request, 'date'), current_teacher(request)
        )
        return Response(AttendanceSessionSerializer(session).data if session else None)

    @draft.mapping.post
    def save_draft(self, request):
        data = validated(AttendanceInputSerializer, request.data)
        session = attendance.save_draft_attendance(
            current_teacher(request), data['class_id'], data['date'],
            [dict(r) for r in data['records']], title=data['title'],
        )
        return Response(AttendanceSessionSerializer(session).data)

    @action(detail=False, methods=['post'])
    def submit(self, request):
        data = validated(AttendanceInputSerializer, request.data)
        session = attendance.submit_attendance(
            current_teacher(request), data['class_id'], data['date'],
            [dict(r) for r in data['records']], title=data['title'],
        )
        return Response(AttendanceSessionSerializer(session).data, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=['get'])
    def history(self, request):
        sessions = attendance.get_teacher_attendance_history(
            current_teacher(request), limit=int_param(request, 'limit')
        )
        return Response(AttendanceSessionSerializer(sessions, many=True).data)

    def _overview(self, request):
        params = request.query_params
        return attendance.get_attendance_overview_for_preset(
            params.get('preset', 'this_week'), params.get('start'), params.get('end')
        )

    @action(detail=False, methods=['get'])
    def overview(self, request):
        overview = self._overview(request)
        overview['sessions'] = AttendanceSessionSerializer(overview['sessions'], many=True).data
        return Response(overview)

    @action(detail=False, methods=['get'])
    def export(self, request):
        overview = self._overview(request)
        return csv_response(
            attendance_overview_rows(overview['sessions']),
            f"attendance_{overview['start']}_{overview['end']}.csv",
            headers=ATTENDANCE_OVERVIEW_HEADERS,
        )

    @action(detail=True, methods=['post'])
    def lock(self, request, pk=None):
        return Response(AttendanceSessionSerializer(attendance.lock_attendance(pk, request.user)).data)

    @action(detail=False, methods=['post'])
    def sync(self, request):
        """Replay sessions queued by an offline client."""
        queued = validated(OfflineSessionSerializer, request.data.get('sessions', []), many=True)
        sessions = [dict(s, records=[dict(r) for r in s['records']]) for s in queued]
        return Response(attendance.sync_offline_sessions(current_teacher(request), sessions))


# =========================
# Assessments
# =========================

class AssessmentViewSet(viewsets.ModelViewSet):
    serializer_class = AssessmentSerializer
    lookup_value_regex = NUMERIC_ID
    permission_classes = [IsOwnerOrAdmin]
    owner_field = 'created_by'
    filterset_fields = ['school_class', 'subject', 'status', 'term', 'type', 'is_grade_wide']

    def get_queryset(self):
        if is_admin(self.request.user):
            return Assessment.objects.prefetch_related('questions').order_by('-created_at')
        params = self.request.query_params
        return assessments.get_teacher_assessments(
            self.request.user,
            class_id=params.get('school_class'),
            subject=params.get('subject'),
            status=params.get('status'),
            term=params.get('term'),
        ).prefetch_related('questions')

    def perform_create(self, serializer):
        data = dict(serializer.validated_data)
        school_class = data.pop('school_class', None)
        if school_class is None:
            raise DataValidationError("Class is required", validation_errors={'school_class': 'Required'})
        serializer.instance = assessments.create_assessment(
            self.request.user,
            school_class.pk,
            data.pop('subject', ''),
            data.pop('title', ''),
            term=data.pop('term', 'term1'),
            type=data.pop('type', 'weekly'),
            **data
        )

    @action(detail=True, methods=['post'])
    def generate(self, request, pk=None):
        data = validated(GenerateQuestionsSerializer, request.data)
        questions = [dict(q) for q in data['questions']] if data.get('questions') else None
        assessment = assessments.generate_questions(pk, request.user, count=data['count'], questions=questions)
        return Response(AssessmentSerializer(assessment).data)

    @action(detail=True, methods=['post'])
    def publish(self, request, pk=None):
        return Response(AssessmentSerializer(assessments.publish_assessment(pk, request.user)).data)

    @action(detail=True, methods=['post'])
    def archive(self, request, pk=None):
        return Response(AssessmentSerializer(assessments.archive_assessment(pk, request.user)).data)

    @action(detail=True, methods=['get'])
    def download(self, request, pk=None):
        """Question paper (default), marking scheme or answer key as a PDF."""
        assessment = assessments.get_assessment(pk, request.user)
        document = request.query_params.get('document', 'question_paper')
        builders = {
            'question_paper': 'generate_question_paper',
            'marking_scheme': 'generate_marking_scheme',
            'answer_key': 'generate_answer_key',
        }
        if document not in builders:
            raise DataValidationError(
                f"Unknown document '{document}'",
                validation_errors={'document': f"Choose one of {', '.join(builders)}"}
            )
        buffer = getattr(AssessmentPDFGenerator(assessment), builders[document])()
        return FileResponse(buffer, as_attachment=True, filename=f"assessment_{assessment.pk}_{document}.pdf")

    @action(detail=False, methods=['get'])
    def stats(self, request):
        return Response(assessments.get_assessment_stats(request.user))

    @action(detail=False, methods=['get'])
    def topics(self, request):
        """Topics covered by approved lesson plans and the suggested weighting."""
        week = int_param(request, 'week')
        topics = assessments.get_covered_topics(
            current_teacher(request),
            required_param(request, 'class_id'),
            required_param(request, 'subject'),
            term_params(request)['term'],
        )
        return Response({
            'topics': topics,
            'distribution': assessments.get_recommended_topic_distribution(topics, week),
        })

    @action(detail=False, methods=['get'], url_path='grade-statistics', permission_classes=[IsSchoolAdmin])
    def grade_statistics(self, request):
        return Response(assessments.GradeAssessmentGenerator(request.user).get_grade_statistics())

    @action(detail=False, methods=['get'], url_path='topic-coverage', permission_classes=[IsSchoolAdmin])
    def topic_coverage(self, request):
        return Response(assessments.GradeAssessmentGenerator(request.user).get_aggregated_topic_coverage())

    @action(detail=False, methods=['get', 'post'], permission_classes=[IsSchoolAdmin])
    def grade(self, request):
        generator = assessments.GradeAssessmentGenerator(request.user)
        if request.method == 'GET':
            return Response(AssessmentSerializer(generator.get_grade_assessments(), many=True).data)

        config = dict(validated(GradeAssessmentConfigSerializer, request.data))
        assessment = generator.create_grade_assessment(config)
        return Response(AssessmentSerializer(assessment).data, status=status.HTTP_201_CREATED)


# =========================
# Lesson plans
# =========================

class LessonPlanViewSet(viewsets.ModelViewSet):
    serializer_class = LessonPlanSerializer
    lookup_value_regex = NUMERIC_ID
    permission_classes = [IsOwnerOrAdmin]

    def get_permissions(self):
        if self.action in ('review', 'pending'):
            return [IsSchoolAdmin()]
        return super().get_permissions()

    def get_queryset(self):
        params = self.request.query_params
        if is_admin(self.request.user) and not is_teacher(self.request.user):
            return LessonPlan.objects.order_by('-date', '-created_at')
        return lesson_plans.get_teacher_lesson_plans(
            current_teacher(self.request),
            class_id=params.get('school_class'),
            subject=params.get('subject'),
            status=params.get('status'),
            start_date=params.get('start_date'),
            end_date=params.get('end_date'),
        )

    def perform_create(self, serializer):
        data = dict(serializer.validated_data)
        serializer.instance = lesson_plans.create_lesson_plan(
            current_teacher(self.request),
            data.pop('school_class').pk,
            data.pop('subject'),
            data.pop('topic'),
            data.pop('date'),
            **data
        )

    def perform_update(self, serializer):
        serializer.instance = lesson_plans.update_lesson_plan(
            serializer.instance.pk, current_teacher(self.request), **serializer.validated_data
        )

    def perform_destroy(self, instance):
        lesson_plans.delete_lesson_plan(instance.pk, current_teacher(self.request))

    @action(detail=True, methods=['post'])
    def submit(self, request, pk=None):
        plan = lesson_plans.submit_for_review(pk, current_teacher(request))
        return Response(LessonPlanSerializer(plan).data)

    @action(detail=True, methods=['post'])
    def review(self, request, pk=None):
        data = validated(LessonPlanReviewSerializer, request.data)
        plan = lesson_plans.review_lesson_plan(pk, request.user, data['decision'], data['feedback'])
        return Response(LessonPlanSerializer(plan).data)

    @action(detail=False, methods=['get'])
    def pending(self, request):
        return Response(LessonPlanSerializer(lesson_plans.get_pending_reviews(), many=True).data)

    @action(detail=False, methods=['get'])
    def stats(self, request):
        return Response(lesson_plans.get_lesson_plan_stats(current_teacher(request)))

    @action(detail=False, methods=['get'])
    def calendar(self, request):
        today = timezone.localdate()
        try:
            month = int(request.query_params.get('month', today.month))
            year = int(request.query_params.get('year', today.year))
        except ValueError:
            raise DataValidationError("Month and year must be numbers")
        if not 1 <= month <= 12:
            raise DataValidationError("Month must be between 1 and 12", validation_errors={'month': month})
        return Response(lesson_plans.get_calendar_events(current_teacher(request), month, year))


# =========================
# Schemes of work
# =========================

class SchemeViewSet(viewsets.ModelViewSet):
    serializer_class = SchemeOfWorkSerializer
    lookup_value_regex = NUMERIC_ID
    permission_classes = [IsOwnerOrAdmin]

    def get_queryset(self):
        if is_admin(self.request.user) and not is_teacher(self.request.user):
            return SchemeOfWork.objects.prefetch_related('topics').order_by('-updated_at')
        return schemes.get_teacher_schemes(
            current_teacher(self.request), class_id=self.request.query_params.get('school_class')
        )

    def perform_create(self, serializer):
        data = dict(serializer.validated_data)
        school_class = data.pop('school_class', None)
        if school_class is None:
            raise DataValidationError("Class is required", validation_errors={'school_class': 'Required'})
        serializer.instance = schemes.create_scheme(
            current_teacher(self.request),
            school_class.pk,
            data.pop('subject', ''),
            data.pop('title', ''),
            total_weeks=data.pop('total_weeks', 12),
            **data
        )

    def perform_update(self, serializer):
        serializer.instance = schemes.update_scheme(
            serializer.instance.pk, self.request.user, **serializer.validated_data
        )

    def perform_destroy(self, instance):
        schemes.delete_scheme(instance.pk, self.request.user)

    @action(detail=True, methods=['patch'], url_path=r'topics/(?P<topic_key>[^/.]+)')
    def topic(self, request, pk=None, topic_key=None):
        data = validated(SchemeTopicSerializer, request.data, partial=True)
        return Response(SchemeTopicSerializer(schemes.update_topic(pk, topic_key, request.user, **data)).data)

    @action(detail=True, methods=['post'])
    def publish(self, request, pk=None):
        return Response(SchemeOfWorkSerializer(schemes.publish_scheme(pk, request.user)).data)

    @action(detail=True, methods=['post'])
    def archive(self, request, pk=None):
        return Response(SchemeOfWorkSerializer(schemes.archive_scheme(pk, request.user)).data)

    @action(detail=True, methods=['post'])
    def duplicate(self, request, pk=None):
        data = validated(DuplicateSchemeSerializer, request.data)
        copy = schemes.duplicate_scheme_as_template(pk, data['template_name'], request.user)
        return Response(SchemeOfWorkSerializer(copy).data, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=['get'])
    def templates(self, request):
        return Response(SchemeOfWorkSerializer(schemes.get_templates(current_teacher(request)), many=True).data)

    @action(detail=False, methods=['get'])
    def stats(self, request):
        return Response(schemes.get_scheme_stats(current_teacher(request)))
