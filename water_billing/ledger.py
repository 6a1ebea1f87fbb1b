"""
Parent/branch credit ledger.

Parent accounts hold a prepaid credit balance. A branch's deliveries are paid
out of that balance at the parent plan's per-liter price and never invoiced
to the branch directly.
"""
import logging
from decimal import Decimal

from django.db import transaction
from django.db.models import F
from water_billing.rates import delivery_liters
from water_billing.utils import convert_to_decimal
from water_billing.utils.enums import ACCOUNT_TYPE, CREDIT_TRANSACTION_TYPE

logger = logging.getLogger(__name__)


def is_billable(account):
    """Only single and parent accounts receive invoices from the monthly run."""
    return account.account_type in (ACCOUNT_TYPE.SINGLE, ACCOUNT_TYPE.PARENT)


def record_delivery_consumption(delivery):
    account = delivery.account
    if account.is_branch:
        if account.parent_id is None:
            logger.warning(
                "Branch %s has no parent, delivery %s not debited",
                account.account_id,
                delivery.delivery_id,
            )
            return None
        return debit_parent_for_branch_delivery(delivery)
    if (
        account.account_type == ACCOUNT_TYPE.SINGLE
        and not account.is_prepaid
        and account.plan is not None
        and not account.plan.is_consumption_based
    ):
        return decrement_fixed_plan_allocation(delivery)
    return None


def debit_parent_for_branch_delivery(delivery):
    from water_billing.models import Account, ParentCreditTransaction

    branch = delivery.account
    with transaction.atomic():
        parent = (
            Account.objects.select_for_update()
            .select_related("plan")
            .get(pk=branch.parent_id)
        )
        existing = ParentCreditTransaction.objects.filter(delivery=delivery).first()
        if existing is not None:
            return existing
        if parent.plan is None:
            logger.warning(
                "Parent %s has no plan, branch delivery %s not debited",
                parent.account_id,
                delivery.delivery_id,
            )
            return None
        cost = delivery_liters(delivery) * convert_to_decimal(parent.plan.price)
        if cost <= 0:
            return None
        txn = ParentCreditTransaction.objects.create(
            account=parent,
            transaction_type=CREDIT_TRANSACTION_TYPE.DEBIT,
            amount_credits=cost,
            description=f"Delivery to {branch.business_name}",
            branch=branch,
            delivery=delivery,
            date=delivery.delivery_date,
        )
        Account.objects.filter(pk=parent.pk).update(
            top_up_balance_credits=F("top_up_balance_credits") - cost
        )
    logger.info(
        "Debited parent %s %s credits for branch %s",
        parent.account_id,
        cost,
        branch.account_id,
    )
    return txn


def credit_top_up(parent, amount, description="Top-up"):
    from water_billing.models import Account, ParentCreditTransaction

    amount = convert_to_decimal(amount)
    if parent.account_type != ACCOUNT_TYPE.PARENT:
        raise ValueError("Only parent accounts hold top-up credits")
    if amount <= 0:
        raise ValueError("Top-up amount must be positive")
    with transaction.atomic():
        txn = ParentCreditTransaction.objects.create(
            account=parent,
            transaction_type=CREDIT_TRANSACTION_TYPE.CREDIT,
            amount_credits=amount,
            description=description,
        )
        Account.objects.filter(pk=parent.pk).update(
            top_up_balance_credits=F("top_up_balance_credits") + amount
        )
    parent.refresh_from_db(fields=["top_up_balance_credits"])
    return txn


def decrement_fixed_plan_allocation(delivery):
    from water_billing.models import Account

    liters = delivery_liters(delivery)
    if liters <= Decimal(0):
        return None
    Account.objects.filter(pk=delivery.account_id).update(
        total_consumption_liters=F("total_consumption_liters") - liters
    )
    return liters
