# core/api/serializers.py
from rest_framework import serializers

from core.models import (
    ASSESSMENT_TYPE_CHOICES,
    TERM_CHOICES,
    Assessment,
    AttendanceRecord,
    AttendanceSession,
    Learner,
    LessonPlan,
    Mark,
    Question,
    ReportDelivery,
    SchemeOfWork,
    SchemeTopic,
    SchoolClass,
    Teacher,
    TeachingAssignment,
)


# ===== CLASSES AND LEARNERS =====

class SchoolClassSerializer(serializers.ModelSerializer):
    learner_count = serializers.IntegerField(read_only=True)
    grade_level = serializers.CharField(read_only=True)

    class Meta:
        model = SchoolClass
        fields = ['id', 'name', 'grade_level', 'learner_count', 'created_at']
        read_only_fields = ['created_at']


class LearnerSerializer(serializers.ModelSerializer):
    class_name = serializers.CharField(source='school_class.name', read_only=True)

    class Meta:
        model = Learner
        fields = [
            'id', 'name', 'sex', 'school_class', 'class_name', 'parent_phone',
            'parent_email', 'admission_no', 'created_at',
        ]
        read_only_fields = ['created_at']
        extra_kwargs = {'admission_no': {'required': False, 'allow_blank': True}}


# ===== TEACHERS =====

class TeacherSerializer(serializers.ModelSerializer):
    name = serializers.CharField(source='get_full_name', read_only=True)
    email = serializers.EmailField(source='user.email', read_only=True)

    class Meta:
        model = Teacher
        fields = ['id', 'employee_id', 'name', 'email', 'subjects', 'is_active']
        read_only_fields = ['employee_id']


class TeacherSubjectsSerializer(serializers.Serializer):
    subjects = serializers.ListField(child=serializers.CharField(max_length=100), allow_empty=True)


class TeachingAssignmentSerializer(serializers.ModelSerializer):
    teacher_name = serializers.CharField(source='teacher.get_full_name', read_only=True)
    class_name = serializers.CharField(source='display_class_name', read_only=True)
    class_exists = serializers.BooleanField(read_only=True)

    class Meta:
        model = TeachingAssignment
        fields = ['id', 'teacher', 'teacher_name', 'school_class', 'class_name', 'subject', 'class_exists', 'created_at']


class AssignmentInputSerializer(serializers.Serializer):
    teacher = serializers.IntegerField()
    school_class = serializers.IntegerField()
    subject = serializers.CharField(max_length=100)


class AssignSubjectsSerializer(serializers.Serializer):
    school_class = serializers.IntegerField()
    subjects = serializers.ListField(child=serializers.CharField(max_length=100), allow_empty=True)


class ClassAssignmentsSerializer(serializers.Serializer):
    """``{teacher_id: [subjects]}`` for a whole class."""
    assignments = serializers.DictField(
        child=serializers.ListField(child=serializers.CharField(max_length=100), allow_empty=True)
    )

    def validate_assignments(self, value):
        if not all(str(key).isdigit() for key in value):
            raise serializers.ValidationError("Keys must be teacher ids")
        return {int(key): subjects for key, subjects in value.items()}


# ===== MARKS =====

class MarkSerializer(serializers.ModelSerializer):
    learner_name = serializers.CharField(source='learner.name', read_only=True)
    mark_key = serializers.CharField(read_only=True)

    class Meta:
        model = Mark
        fields = [
            'id', 'mark_key', 'learner', 'learner_name', 'school_class', 'subject', 'teacher',
            'teacher_name', 'term', 'assessment_type', 'score', 'status', 'comment',
            'created_at', 'updated_at',
        ]


class MarkEntrySerializer(serializers.Serializer):
    learner_id = serializers.IntegerField()
    score = serializers.FloatField(allow_null=True, required=False, min_value=0, max_value=100)
    comment = serializers.CharField(allow_blank=True, required=False, default='')


class MarksSaveSerializer(serializers.Serializer):
    class_id = serializers.IntegerField()
    subject = serializers.CharField(max_length=100)
    term = serializers.ChoiceField(choices=TERM_CHOICES)
    assessment_type = serializers.ChoiceField(choices=ASSESSMENT_TYPE_CHOICES)
    status = serializers.ChoiceField(choices=Mark.STATUS_CHOICES, default=Mark.STATUS_DRAFT)
    entries = MarkEntrySerializer(many=True)


class TermQuerySerializer(serializers.Serializer):
    term = serializers.ChoiceField(choices=TERM_CHOICES)
    assessment_type = serializers.ChoiceField(choices=ASSESSMENT_TYPE_CHOICES, required=False)
    year = serializers.IntegerField(required=False, min_value=2000)


# ===== REPORTS =====

class ReportDeliverySerializer(serializers.ModelSerializer):
    class Meta:
        model = ReportDelivery
        fields = ['id', 'learner', 'term', 'year', 'sent_via', 'sent_at', 'sent_by']


class SendReportSerializer(serializers.Serializer):
    learner_id = serializers.IntegerField()
    term = serializers.ChoiceField(choices=TERM_CHOICES)
    year = serializers.IntegerField(required=False, min_value=2000)
    method = serializers.ChoiceField(choices=['sms', 'whatsapp', 'email', 'all'], default='all')
    deliver_email = serializers.BooleanField(default=False)


# ===== ATTENDANCE =====

class AttendanceRecordSerializer(serializers.ModelSerializer):
    class Meta:
        model = AttendanceRecord
        fields = ['id', 'learner', 'learner_name', 'gender', 'status', 'excused_reason', 'note', 'marked_at']


class AttendanceSessionSerializer(serializers.ModelSerializer):
    records = AttendanceRecordSerializer(many=True, read_only=True)

    class Meta:
        model = AttendanceSession
        fields = [
            'id', 'title', 'date', 'school_class', 'class_name', 'teacher', 'teacher_name',
            'status', 'stats', 'submitted_at', 'client_updated_at', 'records', 'created_at', 'updated_at',
        ]


class AttendanceRecordInputSerializer(serializers.Serializer):
    learner_id = serializers.IntegerField()
    status = serializers.ChoiceField(choices=AttendanceRecord.STATUS_CHOICES)
    excused_reason = serializers.CharField(allow_blank=True, required=False, default='')
    note = serializers.CharField(allow_blank=True, required=False, default='')


class AttendanceInputSerializer(serializers.Serializer):
    class_id = serializers.IntegerField()
    date = serializers.DateField()
    title = serializers.CharField(allow_blank=True, required=False, default='')
    records = AttendanceRecordInputSerializer(many=True)


class OfflineSessionSerializer(AttendanceInputSerializer):
    status = serializers.ChoiceField(choices=['draft', 'submitted'], default='draft')
    client_updated_at = serializers.DateTimeField(required=False, allow_null=True)


# ===== ASSESSMENTS =====

class QuestionSerializer(serializers.ModelSerializer):
    class Meta:
        model = Question
        fields = ['id', 'type', 'question', 'options', 'correct_answer', 'marks', 'topic', 'difficulty', 'order']


class AssessmentSerializer(serializers.ModelSerializer):
    questions = QuestionSerializer(many=True, read_only=True)

    class Meta:
        model = Assessment
        fields = [
            'id', 'title', 'description', 'type', 'school_class', 'class_name', 'subject', 'term',
            'week', 'grade_level', 'total_marks', 'duration', 'instructions', 'topic_breakdown',
            'status', 'question_paper', 'marking_scheme', 'answer_key', 'published_at',
            'teacher_name', 'is_grade_wide', 'grade', 'exam_type', 'total_classes',
            'average_topic_coverage', 'alignment_to_standard', 'difficulty_profile',
            'include_marking_scheme', 'include_answer_key', 'questions', 'created_at', 'updated_at',
        ]
        read_only_fields = [
            'class_name', 'grade_level', 'status', 'question_paper', 'marking_scheme', 'answer_key',
            'published_at', 'teacher_name', 'is_grade_wide', 'grade', 'total_classes',
            'average_topic_coverage', 'alignment_to_standard',
        ]


class QuestionInputSerializer(serializers.Serializer):
    type = serializers.ChoiceField(choices=Question.TYPE_CHOICES)
    question = serializers.CharField()
    options = serializers.ListField(child=serializers.CharField(), required=False, default=list)
    correct_answer = serializers.CharField(allow_blank=True, required=False, default='')
    marks = serializers.IntegerField(min_value=1, default=1)
    topic = serializers.CharField(allow_blank=True, required=False, default='')
    difficulty = serializers.ChoiceField(choices=Question.DIFFICULTY_CHOICES, default='medium')


class GenerateQuestionsSerializer(serializers.Serializer):
    count = serializers.IntegerField(min_value=1, max_value=100, default=10)
    questions = QuestionInputSerializer(many=True, required=False)


class GradeAssessmentConfigSerializer(serializers.Serializer):
    grade = serializers.CharField(max_length=20)
    subject = serializers.CharField(max_length=100)
    title = serializers.CharField(max_length=200)
    description = serializers.CharField(allow_blank=True, required=False, default='')
    term = serializers.ChoiceField(choices=TERM_CHOICES, default='term1')
    exam_type = serializers.ChoiceField(choices=Assessment.EXAM_TYPE_CHOICES, default='end_term')
    duration = serializers.IntegerField(min_value=1, default=120)
    instructions = serializers.CharField(allow_blank=True, required=False, default='')
    topic_breakdown = serializers.DictField(child=serializers.FloatField())
    difficulty_profile = serializers.DictField(child=serializers.FloatField(), required=False)
    include_marking_scheme = serializers.BooleanField(default=True)
    include_answer_key = serializers.BooleanField(default=True)


# ===== LESSON PLANS =====

class LessonPlanSerializer(serializers.ModelSerializer):
    class Meta:
        model = LessonPlan
        fields = [
            'id', 'teacher', 'teacher_name', 'school_class', 'class_name', 'subject', 'date', 'week',
            'term', 'topic', 'sub_topic', 'duration', 'objectives', 'prior_knowledge', 'activities',
            'materials', 'assessment_methods', 'differentiation', 'homework', 'notes', 'status',
            'reviewer', 'reviewer_name', 'feedback', 'approved_at', 'created_at', 'updated_at',
        ]
        read_only_fields = [
            'teacher', 'teacher_name', 'class_name', 'status', 'reviewer', 'reviewer_name',
            'feedback', 'approved_at',
        ]


class LessonPlanReviewSerializer(serializers.Serializer):
    decision = serializers.ChoiceField(choices=['approved', 'rejected', 'reviewed'])
    feedback = serializers.CharField(allow_blank=True, required=False, default='')


# ===== SCHEMES OF WORK =====

class SchemeTopicSerializer(serializers.ModelSerializer):
    class Meta:
        model = SchemeTopic
        fields = [
            'id', 'key', 'week', 'title', 'subtopics', 'duration', 'learning_objectives',
            'teaching_methods', 'activities', 'assessment_methods', 'resources', 'notes',
            'status', 'completed_date',
        ]
        read_only_fields = ['key', 'week', 'completed_date']


class SchemeOfWorkSerializer(serializers.ModelSerializer):
    topics = SchemeTopicSerializer(many=True, read_only=True)

    class Meta:
        model = SchemeOfWork
        fields = [
            'id', 'teacher', 'teacher_name', 'school_class', 'class_name', 'subject', 'grade_level',
            'term', 'academic_year', 'title', 'description', 'objectives', 'resources',
            'assessment_criteria', 'total_weeks', 'status', 'published_at', 'version',
            'is_template', 'template_name', 'topics', 'created_at', 'updated_at',
        ]
        read_only_fields = [
            'teacher', 'teacher_name', 'class_name', 'status', 'published_at', 'version', 'template_name',
        ]


class DuplicateSchemeSerializer(serializers.Serializer):
    template_name = serializers.CharField(max_length=200)
