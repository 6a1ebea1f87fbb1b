from django.conf import settings
from django.core.management.base import BaseCommand
from django_celery_beat.models import CrontabSchedule, PeriodicTask
from dotenv import load_dotenv

load_dotenv()


class Command(BaseCommand):
    help = "Register the periodic billing tasks with celery beat"

    def handle(self, *args, **options):
        # first of the month, midnight in the billing time zone
        first_of_month, _ = CrontabSchedule.objects.get_or_create(
            minute=settings.BILLING_CRON_MINUTE,
            hour=settings.BILLING_CRON_HOUR,
            day_of_month=settings.BILLING_CRON_DAY_OF_MONTH,
            month_of_year="*",
            day_of_week="*",
            timezone=settings.BILLING_TIME_ZONE,
        )

        PeriodicTask.objects.update_or_create(
            name="Generate monthly invoices",
            task="water_billing.tasks.generate_monthly_invoices",
            defaults={"crontab": first_of_month, "interval": None},
        )
        self.stdout.write(self.style.SUCCESS("Billing tasks registered."))
