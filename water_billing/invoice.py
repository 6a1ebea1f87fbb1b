import logging
from dataclasses import dataclass, field
from decimal import Decimal

from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import Q
from water_billing.exceptions import InvoiceIdCollision
from water_billing.ledger import is_billable
from water_billing.rates import PlanTerms, total_liters
from water_billing.utils import now_utc, quantize_money
from water_billing.utils.enums import EMIT_RESULT, INVOICE_STATUS

logger = logging.getLogger(__name__)


@dataclass
class Charge:
    amount: Decimal
    description: str
    consumed_liters: Decimal = Decimal(0)
    plan_id: int = None
    pending_charges: list = field(default_factory=list)
    # account fields to persist together with a newly created invoice
    account_updates: dict = field(default_factory=dict)


@dataclass
class EmitResult:
    outcome: str
    invoice: object

    @property
    def written(self):
        return self.outcome != EMIT_RESULT.ALREADY_RECONCILED


def invoice_id_for(account, cycle):
    from water_billing.models import Invoice

    return Invoice.build_invoice_id(account.account_id, cycle.cycle_key)


def deliveries_in_cycle(account, cycle):
    return account.deliveries.filter(
        delivery_date__gte=cycle.start, delivery_date__lte=cycle.end
    ).order_by("delivery_date")


def is_first_invoice(account, cycle):
    """
    Whether this cycle's invoice is the account's first. Stays true across
    reruns of the cycle that produced the first invoice.
    """
    invoice_id = invoice_id_for(account, cycle)
    if account.invoices.exclude(invoice_id=invoice_id).exists():
        return False
    if account.last_billed_date is None:
        return True
    return account.invoices.filter(invoice_id=invoice_id).exists()


def plan_for_cycle(account, cycle):
    """
    The ``(plan, is_prepaid)`` pair ``cycle`` is priced under. An invoice
    already written for the cycle keeps its plan; otherwise it is the plan in
    force at the end of the cycle, so a plan activated after the cycle closed
    never reprices it.
    """
    invoice = (
        account.invoices.filter(invoice_id=invoice_id_for(account, cycle))
        .select_related("plan")
        .first()
    )
    if invoice is not None and invoice.plan is not None:
        return invoice.plan, False
    return account.plan_in_force(cycle.end)


def chargeable_pending_charges(account, cycle):
    """Open manual charges plus the ones an earlier run already put on this cycle's invoice."""
    from water_billing.models import PendingCharge

    invoice_id = invoice_id_for(account, cycle)
    return list(
        PendingCharge.objects.filter(
            Q(invoice__isnull=True)
            | Q(
                invoice__invoice_id=invoice_id,
                invoice__status=INVOICE_STATUS.UPCOMING,
            ),
            account=account,
        ).order_by("date_added", "pk")
    )


def estimate_open_charges(account):
    """Manual charges not yet on any invoice, for the live estimate view."""
    return quantize_money(account.pending_charges.open().total())


def fixed_plan_allocation_updates(account, consumed_liters):
    allocation = account.liters_per_month + account.bonus_liters
    available = allocation + account.last_month_rollover
    rollover = max(Decimal(0), available - consumed_liters)
    return {
        "last_month_rollover": rollover,
        "total_consumption_liters": allocation + rollover,
    }


def compute_charge(
    account,
    cycle,
    deliveries,
    terms=None,
    first_invoice=None,
    fold_pending_charges=None,
    pending_charges=None,
    is_prepaid=None,
):
    """
    Work out what ``account`` owes for ``cycle``. Returns None when nothing is
    owed: admin, prepaid and branch accounts, accounts without a plan, and
    consumption plans with no liters delivered in the cycle.

    ``terms`` and ``is_prepaid`` describe the plan the cycle was lived under and
    default to ``plan_for_cycle``. Nothing is written here.
    """
    if terms is None:
        plan, cycle_prepaid = plan_for_cycle(account, cycle)
        terms = PlanTerms.from_plan(plan)
        if is_prepaid is None:
            is_prepaid = cycle_prepaid
    if is_prepaid is None:
        is_prepaid = account.is_prepaid
    if account.is_admin or is_prepaid or not is_billable(account):
        return None
    if terms is None:
        logger.warning("Account %s has no plan, not billed", account.account_id)
        return None
    if terms.is_prepaid:
        return None
    if first_invoice is None:
        first_invoice = is_first_invoice(account, cycle)
    if fold_pending_charges is None:
        fold_pending_charges = settings.BILLING_FOLD_PENDING_CHARGES

    in_cycle = [d for d in deliveries if cycle.contains(d.delivery_date)]
    consumed = total_liters(in_cycle)
    account_updates = {}
    if terms.is_consumption_based:
        if consumed <= 0:
            logger.debug(
                "No consumption for %s in %s, no invoice",
                account.account_id,
                cycle.label,
            )
            return None
        amount = terms.usage_amount(consumed)
        description = f"Water Consumption for {cycle.label}"
    else:
        amount = terms.price
        description = f"Monthly Subscription for {cycle.label}"
        account_updates = fixed_plan_allocation_updates(account, consumed)

    amount += account.monthly_equipment_fee()
    if first_invoice:
        one_time_fee = account.one_time_equipment_fee()
        if one_time_fee > 0:
            amount += one_time_fee
            description += " + One-Time Fees"

    folded = []
    if fold_pending_charges:
        if pending_charges is None:
            pending_charges = list(account.open_pending_charges())
        folded = list(pending_charges)
        pending_total = sum((c.amount for c in folded), Decimal(0))
        if pending_total != 0:
            amount += pending_total
            description += " + Adjustments" if pending_total > 0 else " + Deductions"

    amount = quantize_money(amount)
    if amount <= 0:
        logger.info(
            "Charge for %s in %s came to %s, no invoice",
            account.account_id,
            cycle.label,
            amount,
        )
        return None
    return Charge(
        amount=amount,
        description=description,
        consumed_liters=consumed,
        plan_id=terms.plan_id,
        pending_charges=folded,
        account_updates=account_updates,
    )


def emit_invoice(account, cycle, charge, issue_date=None):
    """
    Upsert the ``Upcoming`` invoice for ``account`` and ``cycle``.

    The invoice id is derived from the account and cycle, so reruns land on
    the same row. A row a person has already moved past ``Upcoming`` is left
    untouched.
    """
    from water_billing.models import Invoice, PendingCharge

    if issue_date is None:
        issue_date = now_utc()
    invoice_id = invoice_id_for(account, cycle)
    invoice_fields = {
        "description": charge.description,
        "amount": charge.amount,
        "billing_period": cycle.label,
        "cycle_start": cycle.start,
        "cycle_end": cycle.end,
        "consumed_liters": charge.consumed_liters,
        "plan_id": charge.plan_id,
    }

    with transaction.atomic():
        invoice = _locked_invoice(invoice_id)
        if invoice is None:
            try:
                with transaction.atomic():
                    invoice = Invoice.objects.create(
                        invoice_id=invoice_id,
                        account=account,
                        issue_date=issue_date,
                        status=INVOICE_STATUS.UPCOMING,
                        **invoice_fields,
                    )
                outcome = EMIT_RESULT.CREATED
            except IntegrityError:
                # a concurrent run created it first
                invoice = _locked_invoice(invoice_id)
                outcome = None
        else:
            outcome = None

        if outcome is None:
            if invoice.account_id != account.pk:
                raise InvoiceIdCollision(
                    f"Invoice {invoice_id} belongs to another account",
                    account_id=account.account_id,
                )
            if invoice.is_reconciled:
                logger.info(
                    "Invoice %s already reconciled (%s), leaving it alone",
                    invoice_id,
                    invoice.status,
                )
                return EmitResult(EMIT_RESULT.ALREADY_RECONCILED, invoice)
            for name, value in invoice_fields.items():
                setattr(invoice, name, value)
            invoice.updated = now_utc()
            invoice.save()
            outcome = EMIT_RESULT.UPDATED

        if charge.pending_charges:
            PendingCharge.objects.filter(
                pk__in=[c.pk for c in charge.pending_charges],
                invoice__isnull=True,
            ).update(invoice=invoice)

        if outcome == EMIT_RESULT.CREATED:
            account.last_billed_date = issue_date
            for name, value in charge.account_updates.items():
                setattr(account, name, value)
            account.save(
                update_fields=["last_billed_date", *charge.account_updates.keys()]
            )

    logger.info(
        "Invoice %s %s for %s: P%s",
        invoice_id,
        outcome,
        account.account_id,
        charge.amount,
    )
    return EmitResult(outcome, invoice)


def _locked_invoice(invoice_id):
    from water_billing.models import Invoice

    return Invoice.objects.select_for_update().filter(invoice_id=invoice_id).first()
