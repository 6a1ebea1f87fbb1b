from dateutil import parser
from django.core.management.base import BaseCommand, CommandError
from water_billing.tasks import generate_monthly_invoices_inner


class Command(BaseCommand):
    """Run the monthly billing job now, e.g. to rerun a failed schedule tick."""

    help = "Bill the calendar month before --now (defaults to the current time)"

    def add_arguments(self, parser_):
        parser_.add_argument(
            "--now",
            type=str,
            help="ISO timestamp to run as, e.g. 2024-08-01T00:00:00+08:00",
        )

    def handle(self, *args, **options):
        now = None
        if options["now"]:
            try:
                now = parser.isoparse(options["now"])
            except ValueError as e:
                raise CommandError(f"--now is not an ISO timestamp: {e}")
        summary = generate_monthly_invoices_inner(now=now)
        style = self.style.SUCCESS if summary.failed == 0 else self.style.ERROR
        self.stdout.write(
            style(
                f"Done. {summary.cycle}: {summary.created} created, "
                f"{summary.updated} updated, {summary.already_reconciled} already reconciled, "
                f"{summary.skipped} skipped, {summary.failed} errors, "
                f"{summary.plans_activated} plan changes activated."
            )
        )
