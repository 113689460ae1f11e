# core/services/assessments.py
"""
Assessment generation for teachers (class tests built from approved lesson
plans) and administrators (grade-wide examinations).
"""
import logging
import re
from collections import OrderedDict

from django.core.files.base import ContentFile
from django.utils import timezone

from core.exceptions import AssessmentException, DataValidationError, PermissionDeniedError
from core.grading_utils import round_half_up
from core.models import Assessment, LessonPlan, Question, SchoolClass, TeachingAssignment, unique_list
from core.permissions import is_admin, is_teacher, require_admin
from core.services.assessment_pdf import AssessmentPDFGenerator
from core.services.class_management import get_class
from core.utils.error_handling import safe_database_operation

logger = logging.getLogger(__name__)

QUESTION_TYPE_CYCLE = ['mcq', 'short_answer', 'essay', 'true_false']
DIFFICULTY_CYCLE = ['easy', 'medium', 'hard']
QUESTION_MARKS = {
    'mcq': {'easy': 1, 'medium': 2, 'hard': 3},
    'short_answer': {'easy': 2, 'medium': 3, 'hard': 4},
    'essay': {'easy': 5, 'medium': 8, 'hard': 10},
    'true_false': {'easy': 1, 'medium': 1, 'hard': 1},
}
GRADE_QUESTION_MARKS = {'easy': 2, 'medium': 3, 'hard': 5}
DEFAULT_DIFFICULTY_PROFILE = {'easy': 30, 'medium': 50, 'hard': 20}
GRADE_QUESTION_COUNT = 20
STANDARD_TOPIC_WEIGHT = 25
GENERAL_TOPIC = "General Knowledge"

_GRADE_RE = re.compile(r'(\d+)')


# ============================================================================
# TOPICS AND QUESTIONS
# ============================================================================

def get_covered_topics(teacher, class_id, subject, term):
    """Unique topics of the teacher's approved lesson plans for the term."""
    topics = LessonPlan.objects.filter(
        teacher=teacher,
        school_class_id=class_id,
        subject=subject,
        term=term,
        status=LessonPlan.STATUS_APPROVED,
    ).order_by('date', 'created_at').values_list('topic', flat=True)
    return unique_list(topics)


def get_recommended_topic_distribution(topics, week=None):
    """
    Percentage weight per topic. For weekly tests earlier topics weigh more
    (``max(30, 100 - 10 * i)`` normalised); otherwise weights are equal with
    the rounding remainder on the first topic.
    """
    if not topics:
        return {GENERAL_TOPIC: 100}

    distribution = OrderedDict()
    if week:
        for index, topic in enumerate(topics):
            distribution[topic] = max(30, 100 - index * 10)
        total = sum(distribution.values())
        for topic in distribution:
            distribution[topic] = round_half_up(distribution[topic] / total * 100)
        return dict(distribution)

    equal = 100 // len(topics)
    for topic in topics:
        distribution[topic] = equal
    distribution[topics[0]] += 100 - equal * len(topics)
    return dict(distribution)


def _sample_question(topic, question_type, difficulty):
    question = {
        'type': question_type,
        'topic': topic,
        'difficulty': difficulty,
        'marks': QUESTION_MARKS[question_type][difficulty],
        'options': [],
    }
    if question_type == 'mcq':
        question.update(
            question=f"What is the main concept of {topic}?",
            options=['Option A', 'Option B', 'Option C', 'Option D'],
            correct_answer='Option A',
        )
    elif question_type == 'short_answer':
        question.update(question=f"Explain briefly about {topic}", correct_answer='Sample correct answer')
    elif question_type == 'essay':
        question.update(
            question=f"Discuss in detail the importance of {topic}",
            correct_answer='Comprehensive essay answer',
        )
    else:
        question.update(question=f"{topic} is an important concept in this subject.", correct_answer='true')
    return question


def generate_sample_questions(topics, count):
    topics = list(topics) or [GENERAL_TOPIC]
    return [
        _sample_question(
            topics[i % len(topics)],
            QUESTION_TYPE_CYCLE[i % len(QUESTION_TYPE_CYCLE)],
            DIFFICULTY_CYCLE[i % len(DIFFICULTY_CYCLE)],
        )
        for i in range(count)
    ]


# ============================================================================
# CLASS ASSESSMENTS
# ============================================================================

def get_assessment(assessment_id, user=None):
    try:
        assessment = Assessment.objects.get(pk=assessment_id)
    except (Assessment.DoesNotExist, ValueError, TypeError):
        raise AssessmentException("Assessment not found", details={'assessment_id': assessment_id})

    if user is not None and not is_admin(user) and assessment.created_by_id != user.pk:
        raise PermissionDeniedError(
            "You can only manage your own assessments",
            required_permission='assessment_owner',
            user=user
        )
    return assessment


def create_assessment(user, class_id, subject, title, term='term1', type='weekly', **fields):
    title = (title or '').strip()
    if not title or not subject:
        raise DataValidationError(
            "Title and subject are required",
            validation_errors={'title': 'Required', 'subject': 'Required'}
        )

    school_class = get_class(class_id)
    if not is_admin(user):
        if not is_teacher(user) or not TeachingAssignment.objects.filter(
            teacher=user.teacher, school_class=school_class, subject=subject
        ).exists():
            raise PermissionDeniedError(
                "You are not assigned to teach this subject in this class",
                required_permission='class_subject_assignment',
                user=user
            )

    allowed = {'description', 'week', 'duration', 'instructions', 'topic_breakdown', 'total_marks'}
    assessment = Assessment.objects.create(
        created_by=user,
        teacher_name=user.display_name,
        title=title,
        type=type,
        school_class=school_class,
        class_name=school_class.name,
        subject=subject,
        term=term,
        grade_level=school_class.grade_level or '',
        **{k: v for k, v in fields.items() if k in allowed}
    )
    logger.info(f"Assessment '{title}' created for {school_class.name} {subject} by {user}")
    return assessment


def _store_questions(assessment, questions):
    assessment.questions.all().delete()
    Question.objects.bulk_create([
        Question(
            assessment=assessment,
            type=q['type'],
            question=q['question'],
            options=q.get('options', []),
            correct_answer=q.get('correct_answer', ''),
            marks=q.get('marks', 1),
            topic=q.get('topic', ''),
            difficulty=q.get('difficulty', 'medium'),
            order=index,
        )
        for index, q in enumerate(questions)
    ])
    assessment.total_marks = sum(q.get('marks', 1) for q in questions)


@safe_database_operation
def generate_questions(assessment_id, user, count=10, questions=None):
    """
    Attach questions (given, or sampled from the topic breakdown) and move
    the assessment from draft to generated.
    """
    assessment = get_assessment(assessment_id, user)
    if assessment.status not in (Assessment.STATUS_DRAFT, Assessment.STATUS_GENERATED):
        raise AssessmentException(
            "Questions can only be generated for draft assessments",
            details={'status': assessment.status}
        )

    if questions is None:
        questions = generate_sample_questions(list(assessment.topic_breakdown), count)
    if not questions:
        raise DataValidationError("At least one question is required", validation_errors={'questions': 'Empty'})

    _store_questions(assessment, questions)
    assessment.status = Assessment.STATUS_GENERATED
    assessment.save()
    return assessment


def _slug(assessment):
    return f"assessment_{assessment.pk}"


@safe_database_operation
def publish_assessment(assessment_id, user):
    """Render the PDFs and mark the assessment published."""
    assessment = get_assessment(assessment_id, user)
    if not assessment.questions.exists():
        raise AssessmentException("Generate questions before publishing", details={'assessment_id': assessment.pk})
    if assessment.status == Assessment.STATUS_ARCHIVED:
        raise AssessmentException("Archived assessments cannot be published")

    generator = AssessmentPDFGenerator(assessment)
    slug = _slug(assessment)
    assessment.question_paper.save(
        f"{slug}_questions.pdf", ContentFile(generator.generate_question_paper().getvalue()), save=False
    )
    if assessment.include_marking_scheme:
        assessment.marking_scheme.save(
            f"{slug}_marking.pdf", ContentFile(generator.generate_marking_scheme().getvalue()), save=False
        )
    if assessment.include_answer_key:
        assessment.answer_key.save(
            f"{slug}_answers.pdf", ContentFile(generator.generate_answer_key().getvalue()), save=False
        )

    assessment.status = Assessment.STATUS_PUBLISHED
    assessment.published_at = timezone.now()
    assessment.save()
    logger.info(f"Assessment {assessment.pk} published by {user}")
    return assessment


def archive_assessment(assessment_id, user):
    assessment = get_assessment(assessment_id, user)
    assessment.status = Assessment.STATUS_ARCHIVED
    assessment.save(update_fields=['status', 'updated_at'])
    return assessment


def get_teacher_assessments(user, class_id=None, subject=None, status=None, term=None):
    assessments = Assessment.objects.filter(created_by=user)
    if class_id:
        assessments = assessments.filter(school_class_id=class_id)
    if subject:
        assessments = assessments.filter(subject=subject)
    if status:
        assessments = assessments.filter(status=status)
    if term:
        assessments = assessments.filter(term=term)
    return assessments.order_by('-created_at')


def get_assessment_stats(user):
    assessments = list(get_teacher_assessments(user))
    stats = {'total': len(assessments)}
    for status, _ in Assessment.STATUS_CHOICES:
        stats[status] = sum(1 for a in assessments if a.status == status)
    for assessment_type, _ in Assessment.TYPE_CHOICES:
        stats[assessment_type] = sum(1 for a in assessments if a.type == assessment_type)

    by_subject = {}
    for a in assessments:
        by_subject[a.subject] = by_subject.get(a.subject, 0) + 1
    stats['bySubject'] = by_subject
    stats['totalMarks'] = sum(a.total_marks for a in assessments)
    return stats


# ============================================================================
# GRADE-WIDE ASSESSMENTS
# ============================================================================

def grade_key(class_name):
    match = _GRADE_RE.search(class_name or '')
    return match.group(1) if match else "Other"


class GradeAssessmentGenerator:
    """Grade-wide examinations assembled from every class of a grade"""

    def __init__(self, user):
        require_admin(user, 'generate grade-wide assessments')
        self.user = user

    def get_grade_statistics(self):
        grades = OrderedDict()
        for school_class in SchoolClass.objects.order_by('name'):
            grade = grade_key(school_class.name)
            stat = grades.setdefault(grade, {
                'grade': grade,
                'totalClasses': 0,
                'totalStudents': 0,
                'totalTeachers': 0,
                'subjects': [],
            })
            assignments = TeachingAssignment.objects.filter(school_class=school_class)
            stat['totalClasses'] += 1
            stat['totalStudents'] += school_class.learners.count()
            stat['totalTeachers'] += assignments.count()
            stat['subjects'] = unique_list(stat['subjects'] + list(assignments.values_list('subject', flat=True)))
        return list(grades.values())

    def get_aggregated_topic_coverage(self):
        """Topic coverage per ``{grade}_{subject}`` from every lesson plan."""
        grouped = OrderedDict()
        plans = LessonPlan.objects.select_related('school_class').order_by('date', 'created_at')
        for plan in plans:
            key = f"{grade_key(plan.school_class.name)}_{plan.subject or 'General'}"
            topics = grouped.setdefault(key, OrderedDict())
            topic = topics.setdefault(plan.topic or 'Untitled', {
                'topic': plan.topic or 'Untitled',
                'coveragePercentage': 0,
                'teacherCount': 0,
                'standardWeight': STANDARD_TOPIC_WEIGHT,
                'finalWeight': STANDARD_TOPIC_WEIGHT,
            })
            topic['teacherCount'] += 1
            topic['coveragePercentage'] = min(100, topic['coveragePercentage'] + 20)

        result = {}
        for key, topics in grouped.items():
            topics = list(topics.values())
            total = sum(t['coveragePercentage'] for t in topics)
            for t in topics:
                t['finalWeight'] = round_half_up(t['coveragePercentage'] / total * 100) if total else 0
            result[key] = topics
        return result

    @staticmethod
    def validate_grade_config(config):
        errors = {}
        if not config.get('grade'):
            errors['grade'] = 'Grade is required'
        if not config.get('subject'):
            errors['subject'] = 'Subject is required'
        if not (config.get('title') or '').strip():
            errors['title'] = 'Title is required'

        breakdown_total = sum(v for v in (config.get('topic_breakdown') or {}).values() if isinstance(v, (int, float)))
        if abs(breakdown_total - 100) > 1:
            errors['topic_breakdown'] = 'Topic distribution must total 100%'

        profile = config.get('difficulty_profile') or DEFAULT_DIFFICULTY_PROFILE
        profile_total = sum(v for v in profile.values() if isinstance(v, (int, float)))
        if abs(profile_total - 100) > 1:
            errors['difficulty_profile'] = 'Difficulty profile must total 100%'

        if errors:
            raise DataValidationError("Invalid grade assessment configuration", validation_errors=errors)

    @staticmethod
    def calculate_standard_alignment(topics, breakdown):
        """
        How closely the configured weights follow the standard weights, 0..100.

        Each topic scores ``100 - |standard - configured|`` and the scores are
        averaged, weighted by the standard weight.
        """
        total_weight = sum(topic['standardWeight'] for topic in topics)
        if not total_weight:
            return 0
        alignment = sum(
            (100 - abs(topic['standardWeight'] - (breakdown.get(topic['topic']) or 0))) * topic['standardWeight']
            for topic in topics
        )
        return round_half_up(alignment / total_weight)

    @staticmethod
    def generate_grade_assessment(config):
        topics = list((config.get('topic_breakdown') or {}).keys())
        profile = config.get('difficulty_profile') or DEFAULT_DIFFICULTY_PROFILE
        easy_count = GRADE_QUESTION_COUNT * profile.get('easy', 30) // 100
        medium_count = GRADE_QUESTION_COUNT * profile.get('medium', 50) // 100

        questions = generate_sample_questions(topics, GRADE_QUESTION_COUNT)
        for index, question in enumerate(questions):
            if index < easy_count:
                difficulty = 'easy'
            elif index < easy_count + medium_count:
                difficulty = 'medium'
            else:
                difficulty = 'hard'
            question['difficulty'] = difficulty
            question['marks'] = GRADE_QUESTION_MARKS[difficulty]
        return questions

    @safe_database_operation
    def create_grade_assessment(self, config):
        self.validate_grade_config(config)
        grade = str(config['grade'])
        stats = next((s for s in self.get_grade_statistics() if s['grade'] == grade), None)
        coverage = self.get_aggregated_topic_coverage().get(f"{grade}_{config['subject']}", [])
        breakdown = config['topic_breakdown']

        assessment = Assessment.objects.create(
            created_by=self.user,
            teacher_name=self.user.display_name or 'Administrator',
            title=config['title'].strip(),
            description=config.get('description', ''),
            type='custom',
            class_name=f"Grade {grade} (All Classes)",
            subject=config['subject'],
            term=config.get('term', 'term1'),
            grade_level=grade,
            duration=config.get('duration', 120),
            instructions=config.get('instructions', ''),
            topic_breakdown=breakdown,
            is_grade_wide=True,
            grade=grade,
            exam_type=config.get('exam_type', 'end_term'),
            total_classes=stats['totalClasses'] if stats else 0,
            average_topic_coverage=(
                round_half_up(sum(t['coveragePercentage'] for t in coverage) / len(coverage)) if coverage else 0
            ),
            alignment_to_standard=self.calculate_standard_alignment(coverage, breakdown),
            difficulty_profile=config.get('difficulty_profile') or DEFAULT_DIFFICULTY_PROFILE,
            include_marking_scheme=config.get('include_marking_scheme', True),
            include_answer_key=config.get('include_answer_key', True),
        )
        _store_questions(assessment, self.generate_grade_assessment(config))
        assessment.status = Assessment.STATUS_GENERATED
        assessment.save()
        logger.info(f"Grade {grade} {assessment.subject} assessment created by {self.user}")
        return assessment

    def get_grade_assessments(self):
        return Assessment.objects.filter(is_grade_wide=True).order_by('-created_at')
