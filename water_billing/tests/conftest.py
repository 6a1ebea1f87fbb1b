import datetime
from decimal import Decimal

import pytest
import pytz
from model_bakery import baker

PHT = pytz.timezone("Asia/Manila")


def pht(*args):
    return PHT.localize(datetime.datetime(*args))


@pytest.fixture(autouse=True)
def billing_settings(settings):
    settings.BILLING_TIME_ZONE = "Asia/Manila"
    settings.LITERS_PER_CONTAINER = Decimal("19.5")
    settings.VAT_RATE = Decimal("0.12")
    settings.BILLING_FOLD_PENDING_CHARGES = False
    settings.BILLING_DISPATCH_ASYNC = False
    settings.BILLING_MAX_ATTEMPTS = 3
    settings.BILLING_RETRY_DELAY_SECONDS = 0
    settings.CELERY_TASK_ALWAYS_EAGER = True
    settings.CELERY_BROKER_URL = "memory://"
    return settings


@pytest.fixture
def run_time():
    """First of August 2024, midnight in Manila: bills July 2024."""
    return pht(2024, 8, 1, 0, 0)


@pytest.fixture
def create_plan():
    from water_billing.models import Plan

    def do_create_plan(price, is_consumption_based=True, is_prepaid=False, name=None):
        if name is None:
            name = "Refill" if is_consumption_based else "Unlimited"
        return baker.make(
            Plan,
            name=name,
            price=Decimal(price),
            is_consumption_based=is_consumption_based,
            is_prepaid=is_prepaid,
        )

    return do_create_plan


@pytest.fixture
def consumption_plan(create_plan):
    return create_plan("3.00")


@pytest.fixture
def fixed_plan(create_plan):
    return create_plan("999.00", is_consumption_based=False)


@pytest.fixture
def create_account():
    from water_billing.models import Account

    def do_create_account(plan=None, **kwargs):
        kwargs.setdefault("business_name", "Sari-sari Store")
        return baker.make(Account, plan=plan, **kwargs)

    return do_create_account


@pytest.fixture
def add_deliveries():
    from water_billing.models import DeliveryRecord

    def do_add_deliveries(account, containers, dates, **kwargs):
        deliveries = []
        for n, date in zip(containers, dates):
            deliveries.append(
                baker.make(
                    DeliveryRecord,
                    account=account,
                    volume_containers=n,
                    delivery_date=date,
                    **kwargs,
                )
            )
        return deliveries

    return do_add_deliveries


@pytest.fixture
def july_deliveries(add_deliveries):
    """25 containers over July 2024, 487.5 liters."""

    def do_july_deliveries(account):
        return add_deliveries(
            account,
            [10, 10, 5],
            [pht(2024, 7, 1, 0, 0), pht(2024, 7, 15, 9, 30), pht(2024, 7, 31, 23, 30)],
        )

    return do_july_deliveries
