# core/migrations/0001_initial.py
import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models

import core.models.assessment


TERM_CHOICES = [('term1', 'Term 1'), ('term2', 'Term 2'), ('term3', 'Term 3')]
SEX_CHOICES = [('M', 'Male'), ('F', 'Female')]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='SchoolClass',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('name', models.CharField(max_length=100)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='created_classes', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Class',
                'verbose_name_plural': 'Classes',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='Learner',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('name', models.CharField(max_length=150)),
                ('sex', models.CharField(choices=SEX_CHOICES, default='M', max_length=1)),
                ('parent_phone', models.CharField(blank=True, max_length=20)),
                ('parent_email', models.EmailField(blank=True, max_length=254)),
                ('admission_no', models.CharField(blank=True, db_index=True, max_length=20)),
                ('school_class', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='learners', to='core.schoolclass')),
            ],
            options={
                'verbose_name': 'Learner',
                'verbose_name_plural': 'Learners',
                'ordering': ['name'],
                'indexes': [models.Index(fields=['school_class', 'name'], name='learner_class_name_idx')],
            },
        ),
        migrations.CreateModel(
            name='Teacher',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('employee_id', models.CharField(default='temporary', editable=False, max_length=20, unique=True)),
                ('subjects', models.JSONField(blank=True, default=list)),
                ('is_active', models.BooleanField(default=True)),
                ('user', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='teacher', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Teacher',
                'verbose_name_plural': 'Teachers',
                'ordering': ['user__full_name', 'user__username'],
            },
        ),
        migrations.CreateModel(
            name='TeachingAssignment',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('class_name', models.CharField(blank=True, max_length=100)),
                ('subject', models.CharField(max_length=100)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('school_class', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='teaching_assignments', to='core.schoolclass')),
                ('teacher', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='assignments', to='core.teacher')),
            ],
            options={
                'verbose_name': 'Teaching Assignment',
                'verbose_name_plural': 'Teaching Assignments',
                'ordering': ['class_name', 'subject'],
                'indexes': [models.Index(fields=['school_class', 'subject'], name='assignment_class_subject_idx')],
                'constraints': [models.UniqueConstraint(fields=('teacher', 'school_class', 'subject'), name='unique_teacher_class_subject')],
            },
        ),
        migrations.CreateModel(
            name='Mark',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('subject', models.CharField(max_length=100)),
                ('teacher_name', models.CharField(blank=True, max_length=150)),
                ('term', models.CharField(choices=TERM_CHOICES, max_length=10)),
                ('assessment_type', models.CharField(choices=[('week4', 'Week 4'), ('week8', 'Week 8'), ('end_of_term', 'End of Term')], max_length=20)),
                ('score', models.FloatField(blank=True, null=True, validators=[django.core.validators.MinValueValidator(0), django.core.validators.MaxValueValidator(100)])),
                ('status', models.CharField(choices=[('draft', 'Draft'), ('submitted', 'Submitted')], default='draft', max_length=10)),
                ('comment', models.TextField(blank=True)),
                ('learner', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='marks', to='core.learner')),
                ('school_class', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='marks', to='core.schoolclass')),
                ('teacher', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='marks', to='core.teacher')),
            ],
            options={
                'verbose_name': 'Mark',
                'verbose_name_plural': 'Marks',
                'ordering': ['school_class', 'subject', 'learner__name'],
                'indexes': [
                    models.Index(fields=['school_class', 'subject', 'term', 'assessment_type'], name='mark_class_subject_idx'),
                    models.Index(fields=['term', 'assessment_type'], name='mark_term_type_idx'),
                ],
                'constraints': [models.UniqueConstraint(fields=('learner', 'school_class', 'subject', 'term', 'assessment_type'), name='unique_mark_per_assessment')],
            },
        ),
        migrations.CreateModel(
            name='AttendanceSession',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('title', models.CharField(blank=True, max_length=200)),
                ('date', models.DateField()),
                ('class_name', models.CharField(blank=True, max_length=100)),
                ('teacher_name', models.CharField(blank=True, max_length=150)),
                ('status', models.CharField(choices=[('draft', 'Draft'), ('submitted', 'Submitted'), ('locked', 'Locked')], default='draft', max_length=10)),
                ('stats', models.JSONField(blank=True, default=dict)),
                ('submitted_at', models.DateTimeField(blank=True, null=True)),
                ('client_updated_at', models.DateTimeField(blank=True, null=True)),
                ('school_class', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='attendance_sessions', to='core.schoolclass')),
                ('teacher', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='attendance_sessions', to='core.teacher')),
            ],
            options={
                'verbose_name': 'Attendance Session',
                'verbose_name_plural': 'Attendance Sessions',
                'ordering': ['-date', '-created_at'],
                'indexes': [
                    models.Index(fields=['school_class', 'date', 'teacher'], name='attendance_class_date_idx'),
                    models.Index(fields=['status', 'submitted_at'], name='attendance_status_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='AttendanceRecord',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('learner_name', models.CharField(blank=True, max_length=150)),
                ('gender', models.CharField(blank=True, choices=SEX_CHOICES, max_length=1)),
                ('status', models.CharField(choices=[('present', 'Present'), ('absent', 'Absent'), ('late', 'Late'), ('excused', 'Excused')], default='present', max_length=10)),
                ('excused_reason', models.CharField(blank=True, max_length=255)),
                ('note', models.TextField(blank=True)),
                ('marked_at', models.DateTimeField(auto_now=True)),
                ('learner', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='attendance_records', to='core.learner')),
                ('session', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='records', to='core.attendancesession')),
            ],
            options={
                'verbose_name': 'Attendance Record',
                'verbose_name_plural': 'Attendance Records',
                'ordering': ['learner_name'],
                'constraints': [models.UniqueConstraint(fields=('session', 'learner'), name='unique_attendance_record')],
            },
        ),
        migrations.CreateModel(
            name='Assessment',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('teacher_name', models.CharField(blank=True, max_length=150)),
                ('title', models.CharField(max_length=200)),
                ('description', models.TextField(blank=True)),
                ('type', models.CharField(choices=[('weekly', 'Weekly Test'), ('mid_term', 'Mid-Term'), ('end_term', 'End of Term'), ('custom', 'Custom')], default='weekly', max_length=20)),
                ('class_name', models.CharField(blank=True, max_length=100)),
                ('subject', models.CharField(max_length=100)),
                ('term', models.CharField(choices=TERM_CHOICES, default='term1', max_length=10)),
                ('week', models.PositiveSmallIntegerField(blank=True, null=True)),
                ('grade_level', models.CharField(blank=True, max_length=20)),
                ('total_marks', models.PositiveIntegerField(default=0)),
                ('duration', models.PositiveIntegerField(default=60, help_text='Minutes')),
                ('instructions', models.TextField(blank=True)),
                ('topic_breakdown', models.JSONField(blank=True, default=dict)),
                ('status', models.CharField(choices=[('draft', 'Draft'), ('generated', 'Generated'), ('published', 'Published'), ('archived', 'Archived')], default='draft', max_length=10)),
                ('question_paper', models.FileField(blank=True, upload_to=core.models.assessment.assessment_file_path)),
                ('marking_scheme', models.FileField(blank=True, upload_to=core.models.assessment.assessment_file_path)),
                ('answer_key', models.FileField(blank=True, upload_to=core.models.assessment.assessment_file_path)),
                ('published_at', models.DateTimeField(blank=True, null=True)),
                ('is_grade_wide', models.BooleanField(default=False)),
                ('grade', models.CharField(blank=True, max_length=20)),
                ('exam_type', models.CharField(blank=True, choices=[('mid_term', 'Mid-Term'), ('end_term', 'End of Term'), ('final', 'Final'), ('mock', 'Mock'), ('prelim', 'Preliminary')], max_length=20)),
                ('total_classes', models.PositiveIntegerField(default=0)),
                ('average_topic_coverage', models.PositiveIntegerField(default=0)),
                ('alignment_to_standard', models.PositiveIntegerField(default=0)),
                ('difficulty_profile', models.JSONField(blank=True, default=dict)),
                ('include_marking_scheme', models.BooleanField(default=True)),
                ('include_answer_key', models.BooleanField(default=True)),
                ('created_by', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='assessments', to=settings.AUTH_USER_MODEL)),
                ('school_class', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='assessments', to='core.schoolclass')),
            ],
            options={
                'verbose_name': 'Assessment',
                'verbose_name_plural': 'Assessments',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['created_by', 'status'], name='assessment_owner_status_idx'),
                    models.Index(fields=['school_class', 'subject', 'term'], name='assessment_class_subject_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Question',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('type', models.CharField(choices=[('mcq', 'Multiple Choice'), ('short_answer', 'Short Answer'), ('essay', 'Essay'), ('true_false', 'True/False'), ('fill_blank', 'Fill in the Blank')], max_length=20)),
                ('question', models.TextField()),
                ('options', models.JSONField(blank=True, default=list)),
                ('correct_answer', models.TextField(blank=True)),
                ('marks', models.PositiveIntegerField(default=1)),
                ('topic', models.CharField(blank=True, max_length=200)),
                ('difficulty', models.CharField(choices=[('easy', 'Easy'), ('medium', 'Medium'), ('hard', 'Hard')], default='medium', max_length=10)),
                ('order', models.PositiveIntegerField(default=0)),
                ('assessment', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='questions', to='core.assessment')),
            ],
            options={
                'ordering': ['assessment', 'order'],
            },
        ),
        migrations.CreateModel(
            name='LessonPlan',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('teacher_name', models.CharField(blank=True, max_length=150)),
                ('class_name', models.CharField(blank=True, max_length=100)),
                ('subject', models.CharField(max_length=100)),
                ('date', models.DateField()),
                ('week', models.PositiveSmallIntegerField(default=1)),
                ('term', models.CharField(choices=TERM_CHOICES, default='term1', max_length=10)),
                ('topic', models.CharField(max_length=200)),
                ('sub_topic', models.CharField(blank=True, max_length=200)),
                ('duration', models.PositiveIntegerField(default=40, help_text='Minutes')),
                ('objectives', models.JSONField(blank=True, default=list)),
                ('prior_knowledge', models.JSONField(blank=True, default=list)),
                ('activities', models.JSONField(blank=True, default=list)),
                ('materials', models.JSONField(blank=True, default=list)),
                ('assessment_methods', models.JSONField(blank=True, default=list)),
                ('differentiation', models.JSONField(blank=True, default=list)),
                ('homework', models.TextField(blank=True)),
                ('notes', models.TextField(blank=True)),
                ('status', models.CharField(choices=[('draft', 'Draft'), ('submitted', 'Submitted'), ('reviewed', 'Reviewed'), ('approved', 'Approved'), ('rejected', 'Rejected')], default='draft', max_length=10)),
                ('reviewer_name', models.CharField(blank=True, max_length=150)),
                ('feedback', models.TextField(blank=True)),
                ('approved_at', models.DateTimeField(blank=True, null=True)),
                ('reviewer', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='reviewed_lesson_plans', to=settings.AUTH_USER_MODEL)),
                ('school_class', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='lesson_plans', to='core.schoolclass')),
                ('teacher', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='lesson_plans', to='core.teacher')),
            ],
            options={
                'verbose_name': 'Lesson Plan',
                'verbose_name_plural': 'Lesson Plans',
                'ordering': ['-date', '-created_at'],
                'indexes': [
                    models.Index(fields=['teacher', 'date'], name='lessonplan_teacher_date_idx'),
                    models.Index(fields=['school_class', 'subject', 'term'], name='lessonplan_class_subject_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='SchemeOfWork',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('teacher_name', models.CharField(blank=True, max_length=150)),
                ('class_name', models.CharField(blank=True, max_length=100)),
                ('subject', models.CharField(max_length=100)),
                ('grade_level', models.CharField(blank=True, max_length=20)),
                ('term', models.CharField(choices=TERM_CHOICES, default='term1', max_length=10)),
                ('academic_year', models.CharField(blank=True, max_length=20)),
                ('title', models.CharField(max_length=200)),
                ('description', models.TextField(blank=True)),
                ('objectives', models.JSONField(blank=True, default=list)),
                ('resources', models.JSONField(blank=True, default=list)),
                ('assessment_criteria', models.JSONField(blank=True, default=list)),
                ('total_weeks', models.PositiveSmallIntegerField(default=12)),
                ('status', models.CharField(choices=[('draft', 'Draft'), ('published', 'Published'), ('archived', 'Archived')], default='draft', max_length=10)),
                ('published_at', models.DateTimeField(blank=True, null=True)),
                ('version', models.PositiveIntegerField(default=1)),
                ('is_template', models.BooleanField(default=False)),
                ('template_name', models.CharField(blank=True, max_length=200)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='schemes_of_work', to=settings.AUTH_USER_MODEL)),
                ('school_class', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='schemes_of_work', to='core.schoolclass')),
                ('teacher', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='schemes_of_work', to='core.teacher')),
            ],
            options={
                'verbose_name': 'Scheme of Work',
                'verbose_name_plural': 'Schemes of Work',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='SchemeTopic',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('key', models.CharField(max_length=20)),
                ('week', models.PositiveSmallIntegerField()),
                ('title', models.CharField(max_length=200)),
                ('subtopics', models.JSONField(blank=True, default=list)),
                ('duration', models.PositiveSmallIntegerField(default=4, help_text='Hours')),
                ('learning_objectives', models.JSONField(blank=True, default=list)),
                ('teaching_methods', models.JSONField(blank=True, default=list)),
                ('activities', models.JSONField(blank=True, default=list)),
                ('assessment_methods', models.JSONField(blank=True, default=list)),
                ('resources', models.JSONField(blank=True, default=list)),
                ('notes', models.TextField(blank=True)),
                ('status', models.CharField(choices=[('planned', 'Planned'), ('in_progress', 'In Progress'), ('completed', 'Completed'), ('delayed', 'Delayed')], default='planned', max_length=12)),
                ('completed_date', models.DateTimeField(blank=True, null=True)),
                ('scheme', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='topics', to='core.schemeofwork')),
            ],
            options={
                'ordering': ['scheme', 'week'],
                'constraints': [models.UniqueConstraint(fields=('scheme', 'key'), name='unique_scheme_topic_key')],
            },
        ),
        migrations.CreateModel(
            name='ReportDelivery',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('term', models.CharField(choices=TERM_CHOICES, max_length=10)),
                ('year', models.PositiveIntegerField()),
                ('sent_via', models.JSONField(blank=True, default=list)),
                ('sent_at', models.DateTimeField(auto_now=True)),
                ('learner', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='report_deliveries', to='core.learner')),
                ('sent_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='report_deliveries', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Report Delivery',
                'verbose_name_plural': 'Report Deliveries',
                'ordering': ['-sent_at'],
                'constraints': [models.UniqueConstraint(fields=('learner', 'term', 'year'), name='unique_report_delivery')],
            },
        ),
    ]
