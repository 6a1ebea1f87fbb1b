import logging
import time
from dataclasses import asdict, dataclass, field

import sentry_sdk
from celery import shared_task
from dateutil import parser
from django.conf import settings
from django.db import InterfaceError, OperationalError
from water_billing.billing_cycle import resolve_cycle
from water_billing.exceptions import (
    DataError,
    MissingPlan,
    PlanScheduleInconsistent,
    TransientBillingError,
)
from water_billing.invoice import (
    chargeable_pending_charges,
    compute_charge,
    deliveries_in_cycle,
    emit_invoice,
    is_first_invoice,
    plan_for_cycle,
)
from water_billing.rates import PlanTerms
from water_billing.utils import now_utc

logger = logging.getLogger(__name__)

TRANSIENT_ERRORS = (OperationalError, InterfaceError, TransientBillingError)

SKIPPED = "skipped"


@dataclass
class AccountBillingResult:
    account_id: str
    outcome: str = SKIPPED
    invoice_id: str = None
    amount: str = None
    plan_activated: bool = False


@dataclass
class BillingRunSummary:
    cycle: str
    created: int = 0
    updated: int = 0
    already_reconciled: int = 0
    skipped: int = 0
    failed: int = 0
    plans_activated: int = 0
    dispatched: int = 0
    flagged_accounts: list = field(default_factory=list)
    failed_accounts: list = field(default_factory=list)

    def record(self, result):
        setattr(self, result.outcome, getattr(self, result.outcome) + 1)
        if result.plan_activated:
            self.plans_activated += 1

    def as_dict(self):
        return asdict(self)


def bill_account(account_pk, now, cycle=None):
    """
    One account's unit of work for the cycle that closed before ``now``.

    The closed cycle is priced under the plan the account had during it. A
    plan change that has come due is only activated after that invoice has
    been written.
    """
    from water_billing.models import Account

    account = Account.objects.select_related("plan", "pending_plan", "parent").get(
        pk=account_pk
    )
    if cycle is None:
        cycle = resolve_cycle(now)
    result = AccountBillingResult(account_id=account.account_id)

    transition_due = account.plan_change_is_due(now)
    # captured before any activation below
    cycle_plan, cycle_prepaid = plan_for_cycle(account, cycle)
    if cycle_plan is None and not transition_due:
        raise MissingPlan(account_id=account.account_id)

    charge = compute_charge(
        account,
        cycle,
        deliveries_in_cycle(account, cycle),
        terms=PlanTerms.from_plan(cycle_plan),
        is_prepaid=cycle_prepaid,
        first_invoice=is_first_invoice(account, cycle),
        pending_charges=(
            chargeable_pending_charges(account, cycle)
            if settings.BILLING_FOLD_PENDING_CHARGES
            else None
        ),
    )
    if charge is not None:
        emitted = emit_invoice(account, cycle, charge, issue_date=now)
        result.outcome = emitted.outcome
        result.invoice_id = emitted.invoice.invoice_id
        result.amount = str(emitted.invoice.amount)

    if transition_due:
        result.plan_activated = account.activate_pending_plan(now=now)
    return result


def bill_account_with_retries(
    account_pk, now, cycle=None, max_attempts=None, retry_delay=None
):
    if max_attempts is None:
        max_attempts = settings.BILLING_MAX_ATTEMPTS
    if retry_delay is None:
        retry_delay = settings.BILLING_RETRY_DELAY_SECONDS
    attempts = 0
    while True:
        attempts += 1
        try:
            return bill_account(account_pk, now, cycle=cycle)
        except TRANSIENT_ERRORS as e:
            if attempts >= max_attempts:
                raise
            logger.warning(
                "Transient error billing account pk=%s (attempt %s of %s): %s",
                account_pk,
                attempts,
                max_attempts,
                e,
            )
            time.sleep(retry_delay)


def generate_monthly_invoices_inner(now=None):
    from water_billing.models import Account

    if now is None:
        now = now_utc()
    cycle = resolve_cycle(now)
    summary = BillingRunSummary(cycle=cycle.label)
    logger.info("Starting monthly invoice generation for %s", cycle.label)

    account_pks = list(
        Account.billable_objects.order_by("pk").values_list("pk", flat=True)
    )
    if settings.BILLING_DISPATCH_ASYNC:
        for account_pk in account_pks:
            run_bill_account.delay(account_pk, now.isoformat())
            summary.dispatched += 1
        logger.info(
            "Dispatched %s accounts for %s", summary.dispatched, cycle.label
        )
        return summary

    for account_pk in account_pks:
        try:
            result = bill_account_with_retries(account_pk, now, cycle=cycle)
        except MissingPlan as e:
            logger.info("Account has no plan, nothing to bill: %s", e)
            summary.skipped += 1
            continue
        except PlanScheduleInconsistent as e:
            logger.error(
                "Skipping account, needs manual inspection: %s", e, exc_info=True
            )
            summary.skipped += 1
            summary.flagged_accounts.append(e.account_id)
            continue
        except DataError as e:
            logger.warning("Skipping account pk=%s: %s", account_pk, e)
            summary.skipped += 1
            continue
        except Exception as e:
            logger.error(
                "Error billing account pk=%s for %s. Error was %s",
                account_pk,
                cycle.label,
                e,
                exc_info=True,
            )
            sentry_sdk.capture_exception(e)
            summary.failed += 1
            summary.failed_accounts.append(account_pk)
            continue
        summary.record(result)

    logger.info(
        "Finished monthly invoice generation for %s: %s",
        cycle.label,
        summary.as_dict(),
    )
    return summary


@shared_task
def generate_monthly_invoices():
    return generate_monthly_invoices_inner().as_dict()


@shared_task
def run_bill_account(account_pk, now_iso):
    now = parser.isoparse(now_iso)
    try:
        result = bill_account_with_retries(account_pk, now)
    except DataError as e:
        logger.warning("Skipping account pk=%s: %s", account_pk, e)
        return asdict(AccountBillingResult(account_id=e.account_id))
    return asdict(result)
