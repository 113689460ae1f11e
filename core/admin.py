from django.contrib import admin

from .models import (
    Assessment, AttendanceRecord, AttendanceSession, Learner, LessonPlan, Mark,
    Question, ReportDelivery, SchemeOfWork, SchemeTopic, SchoolClass, Teacher,
    TeachingAssignment,
)


class LearnerInline(admin.TabularInline):
    model = Learner
    extra = 0
    fields = ('admission_no', 'name', 'sex', 'parent_phone', 'parent_email')


@admin.register(SchoolClass)
class SchoolClassAdmin(admin.ModelAdmin):
    list_display = ('name', 'learner_count', 'created_at')
    search_fields = ('name',)
    inlines = [LearnerInline]


@admin.register(Learner)
class LearnerAdmin(admin.ModelAdmin):
    list_display = ('admission_no', 'name', 'sex', 'school_class', 'parent_phone')
    search_fields = ('admission_no', 'name', 'parent_phone', 'parent_email')
    list_filter = ('school_class', 'sex')
    ordering = ('school_class__name', 'name')


@admin.register(Teacher)
class TeacherAdmin(admin.ModelAdmin):
    list_display = ('employee_id', 'get_full_name', 'is_active')
    search_fields = ('employee_id', 'user__full_name', 'user__username', 'user__email')
    list_filter = ('is_active',)
    readonly_fields = ('employee_id',)

    @admin.display(description='Name')
    def get_full_name(self, obj):
        return obj.get_full_name()


@admin.register(TeachingAssignment)
class TeachingAssignmentAdmin(admin.ModelAdmin):
    list_display = ('teacher', 'display_class_name', 'subject', 'created_at')
    search_fields = ('subject', 'class_name', 'teacher__user__full_name')
    list_filter = ('subject',)


@admin.register(Mark)
class MarkAdmin(admin.ModelAdmin):
    list_display = ('learner', 'school_class', 'subject', 'term', 'assessment_type', 'score', 'status')
    list_filter = ('term', 'assessment_type', 'status', 'school_class')
    search_fields = ('learner__name', 'learner__admission_no', 'subject')


class AttendanceRecordInline(admin.TabularInline):
    model = AttendanceRecord
    extra = 0
    fields = ('learner_name', 'gender', 'status', 'excused_reason', 'note')
    readonly_fields = ('learner_name', 'gender')


@admin.register(AttendanceSession)
class AttendanceSessionAdmin(admin.ModelAdmin):
    list_display = ('class_name', 'date', 'teacher_name', 'status', 'submitted_at')
    list_filter = ('status', 'date')
    search_fields = ('class_name', 'teacher_name', 'title')
    inlines = [AttendanceRecordInline]


class QuestionInline(admin.StackedInline):
    model = Question
    extra = 0


@admin.register(Assessment)
class AssessmentAdmin(admin.ModelAdmin):
    list_display = ('title', 'class_name', 'subject', 'term', 'type', 'status', 'total_marks', 'is_grade_wide')
    list_filter = ('status', 'type', 'term', 'is_grade_wide')
    search_fields = ('title', 'subject', 'class_name')
    inlines = [QuestionInline]


@admin.register(LessonPlan)
class LessonPlanAdmin(admin.ModelAdmin):
    list_display = ('topic', 'class_name', 'subject', 'date', 'teacher_name', 'status')
    list_filter = ('status', 'term', 'subject')
    search_fields = ('topic', 'sub_topic', 'class_name', 'teacher_name')
    date_hierarchy = 'date'


class SchemeTopicInline(admin.TabularInline):
    model = SchemeTopic
    extra = 0
    fields = ('key', 'week', 'title', 'duration', 'status', 'completed_date')


@admin.register(SchemeOfWork)
class SchemeOfWorkAdmin(admin.ModelAdmin):
    list_display = ('title', 'class_name', 'subject', 'term', 'status', 'is_template', 'version')
    list_filter = ('status', 'term', 'is_template')
    search_fields = ('title', 'subject', 'class_name', 'template_name')
    inlines = [SchemeTopicInline]


@admin.register(ReportDelivery)
class ReportDeliveryAdmin(admin.ModelAdmin):
    list_display = ('learner', 'term', 'year', 'sent_at', 'sent_by')
    list_filter = ('term', 'year')
    search_fields = ('learner__name', 'learner__admission_no')
