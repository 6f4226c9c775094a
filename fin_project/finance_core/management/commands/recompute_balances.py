from django.core.management.base import BaseCommand

from finance_core.tasks import recompute_all_balances


class Command(BaseCommand):
    help = "Recomputes every document and contact balance from the stored rows."

    # Define command-line argument
    def add_arguments(self, parser):
        parser.add_argument(
            "--async",
            action="store_true",
            dest="run_async",
            help="Queue the repair on the Celery worker instead of running it here",
        )

    def handle(self, *args, **options):
        if options["run_async"]:
            result = recompute_all_balances.delay()
            self.stdout.write(self.style.NOTICE(f"Queued balance repair (task {result.id})."))
            return

        self.stdout.write(self.style.NOTICE("Recomputing balances..."))
        changed = recompute_all_balances()
        self.stdout.write(self.style.SUCCESS(f"Done, {changed} aggregates updated."))
