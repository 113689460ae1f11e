# core/tests/test_class_management.py
from core.exceptions import ClassManagementException, DataValidationError
from core.models import SchoolClass, Learner, TeachingAssignment, DELETED_CLASS_LABEL
from core.services import class_management
from core.services.teacher_assignments import get_all_teacher_class_assignments
from core.tests.factories import SchoolClassFactory, LearnerFactory
from core.tests.test_utils import BaseTestCase


class ClassManagementTests(BaseTestCase):
    def test_add_class_strips_name(self):
        school_class = class_management.add_class('  Form 2B ', user=self.admin)
        self.assertEqual(school_class.name, 'Form 2B')
        self.assertEqual(school_class.created_by, self.admin)

    def test_add_class_requires_name(self):
        with self.assertRaises(DataValidationError):
            class_management.add_class('   ')

    def test_rename_updates_assignment_snapshots(self):
        class_management.update_class(self.school_class.pk, 'Form 1 Blue')
        self.assignment.refresh_from_db()
        self.assertEqual(self.assignment.class_name, 'Form 1 Blue')

    def test_add_learner_generates_admission_number(self):
        learner = class_management.add_learner(self.school_class.pk, 'Namakau Lubasi', sex='female')
        self.assertEqual(learner.sex, 'F')
        self.assertEqual(learner.admission_no, 'FOR-003')

    def test_add_learner_needs_name_and_class(self):
        with self.assertRaises(DataValidationError):
            class_management.add_learner(self.school_class.pk, '')
        with self.assertRaises(DataValidationError):
            class_management.add_learner(None, 'Someone')
        with self.assertRaises(ClassManagementException):
            class_management.add_learner(99999, 'Someone')

    def test_update_learner_ignores_unknown_fields(self):
        learner = class_management.update_learner(
            self.boy.pk, name=' Mutale B. ', sex='Female', school_class=None
        )
        self.assertEqual(learner.name, 'Mutale B.')
        self.assertEqual(learner.sex, 'F')
        self.assertEqual(learner.school_class, self.school_class)

    def test_delete_missing_learner(self):
        with self.assertRaises(ClassManagementException):
            class_management.delete_learner(99999)

    def test_delete_class_keeps_orphaned_assignments(self):
        learners_deleted = class_management.delete_class(self.school_class.pk)

        self.assertEqual(learners_deleted, 2)
        self.assertFalse(SchoolClass.objects.filter(pk=self.school_class.pk).exists())
        self.assertFalse(Learner.objects.filter(pk=self.boy.pk).exists())

        orphan = TeachingAssignment.objects.get(pk=self.assignment.pk)
        self.assertIsNone(orphan.school_class)
        self.assertEqual(orphan.display_class_name, DELETED_CLASS_LABEL)
        listed = get_all_teacher_class_assignments(self.teacher.pk)
        self.assertEqual(listed[0]['className'], DELETED_CLASS_LABEL)
        self.assertFalse(listed[0]['classExists'])

    def test_class_with_assignments(self):
        data = class_management.get_class_with_assignments(self.school_class.pk)
        self.assertEqual(data['subjects'], ['Mathematics'])
        self.assertEqual(data['teachers'][0]['teacherId'], self.teacher.pk)
        self.assertEqual([l.name for l in data['learners']], ['Chipo Mwale', 'Mutale Banda'])

    def test_list_classes_counts_learners(self):
        SchoolClassFactory(name='Form 5C')
        counts = {c.name: c.learners_total for c in class_management.list_classes()}
        self.assertEqual(counts['Form 1A'], 2)
        self.assertEqual(counts['Form 5C'], 0)


class BulkImportTests(BaseTestCase):
    def test_import_classes_skips_existing_names(self):
        result = class_management.bulk_import_classes([
            {'Class Name': 'form 1a'},
            {'Class Name': 'Form 3C'},
            {'Class Name': 'Form 3C'},
            {'Class Name': ''},
        ])
        self.assertEqual([c.name for c in result['created']], ['Form 3C'])
        self.assertEqual(result['skipped'], ['form 1a'])

    def test_import_classes_without_names(self):
        with self.assertRaises(DataValidationError):
            class_management.bulk_import_classes([{'Name': 'Form 3C'}])

    def test_import_learners_reports_bad_rows(self):
        result = class_management.bulk_import_learners(self.school_class.pk, [
            {'name': 'Inonge Sitali', 'sex': 'Female', 'parentPhone': '0977123456'},
            {'name': '', 'sex': 'Male'},
        ])
        self.assertEqual(len(result['created']), 1)
        self.assertEqual(result['created'][0].parent_phone, '0977123456')
        self.assertEqual(result['errors'], ['Row 2: Name is required'])

    def test_import_learners_into_missing_class(self):
        with self.assertRaises(ClassManagementException):
            class_management.bulk_import_learners(99999, [{'name': 'X'}])

    def test_admission_number_uses_first_letter_digit_run(self):
        grade = SchoolClassFactory(name='Grade 10C')
        first = LearnerFactory(school_class=grade)
        self.assertEqual(first.admission_no, '10C-001')
