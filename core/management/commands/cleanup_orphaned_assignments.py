from django.core.management.base import BaseCommand
import logging

from core.models import TeachingAssignment
from core.services.teacher_assignments import cleanup_orphaned_assignments

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = 'Delete teaching assignments whose class has been deleted'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show how many assignments would be deleted without deleting them',
        )

    def handle(self, *args, **options):
        orphans = TeachingAssignment.objects.filter(school_class__isnull=True)
        count = orphans.count()

        if options['dry_run']:
            for assignment in orphans.select_related('teacher__user'):
                self.stdout.write(f"  {assignment.teacher.get_full_name()} - {assignment.subject} ({assignment.class_name})")
            self.stdout.write(self.style.WARNING(f"DRY RUN: {count} orphaned assignment(s) would be deleted"))
            return

        deleted = cleanup_orphaned_assignments()
        logger.info(f"cleanup_orphaned_assignments command removed {deleted} assignment(s)")
        self.stdout.write(self.style.SUCCESS(f"Deleted {deleted} orphaned assignment(s)"))
