"""
Moves published opportunities past their end date to EXPIRED.
Meant to run daily from cron.
"""

from datetime import date

from django.core.management.base import BaseCommand, CommandError

from opportunities.services import expire_opportunities


class Command(BaseCommand):
    help = "Expire ACTIVE opportunities whose end date has passed."

    def add_arguments(self, parser):
        parser.add_argument(
            "--date",
            dest="today",
            help="Reference date (YYYY-MM-DD), defaults to today.",
        )

    def handle(self, *args, **options):
        today = None
        if options["today"]:
            try:
                today = date.fromisoformat(options["today"])
            except ValueError as e:
                raise CommandError(f"Invalid date: {e}") from e

        count = expire_opportunities(today=today)
        self.stdout.write(
            self.style.SUCCESS(f"Expired {count} opportunities.")
        )
