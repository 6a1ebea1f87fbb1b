import logging
import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import Sum
from simple_history.models import HistoricalRecords
from water_billing.exceptions import PlanScheduleInconsistent
from water_billing.utils import convert_to_date, now_utc
from water_billing.utils.enums import (
    ACCOUNT_ROLE,
    ACCOUNT_TYPE,
    CREDIT_TRANSACTION_TYPE,
    DELIVERY_STATUS,
    EQUIPMENT_PAYMENT_TYPE,
    INVOICE_STATUS,
)

logger = logging.getLogger(__name__)


def account_uuid():
    return uuid.uuid4().hex


class Plan(models.Model):
    name = models.CharField(max_length=100)
    is_consumption_based = models.BooleanField(
        default=False,
        help_text="Consumption plans bill per liter delivered, fixed plans bill a flat monthly fee",
    )
    price = models.DecimalField(
        decimal_places=4,
        max_digits=14,
        validators=[MinValueValidator(0)],
        help_text="Price per liter for consumption plans, monthly fee for fixed plans",
    )
    is_prepaid = models.BooleanField(
        default=False,
        help_text="Prepaid plans draw down credits and are never invoiced monthly",
    )
    created = models.DateTimeField(default=now_utc)

    def __str__(self):
        kind = "per liter" if self.is_consumption_based else "per month"
        return f"{self.name} ({self.price} {kind})"


class BillableAccountManager(models.Manager):
    def get_queryset(self):
        return (
            super()
            .get_queryset()
            .exclude(role=ACCOUNT_ROLE.ADMIN)
            .select_related("plan", "pending_plan")
        )


class Account(models.Model):
    account_id = models.CharField(
        max_length=64,
        unique=True,
        default=account_uuid,
        help_text="Stable account id. Its first five characters prefix every invoice id",
    )
    client_id = models.CharField(
        max_length=32, null=True, blank=True, help_text="Human facing client code"
    )
    business_name = models.CharField(max_length=200)
    email = models.EmailField(max_length=100, null=True, blank=True)
    role = models.CharField(
        max_length=10, choices=ACCOUNT_ROLE.choices, default=ACCOUNT_ROLE.USER
    )
    account_type = models.CharField(
        max_length=10, choices=ACCOUNT_TYPE.choices, default=ACCOUNT_TYPE.SINGLE
    )
    parent = models.ForeignKey(
        "self",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="branches",
        help_text="The parent account whose credits pay for this branch",
    )

    # PLAN RELATED FIELDS
    plan = models.ForeignKey(
        Plan, on_delete=models.PROTECT, null=True, blank=True, related_name="+"
    )
    pending_plan = models.ForeignKey(
        Plan, on_delete=models.PROTECT, null=True, blank=True, related_name="+"
    )
    plan_change_effective_date = models.DateTimeField(null=True, blank=True)
    # the plan an activation replaced, and when, so a closed cycle is always
    # priced under the plan it was lived under
    previous_plan = models.ForeignKey(
        Plan, on_delete=models.PROTECT, null=True, blank=True, related_name="+"
    )
    previous_is_prepaid = models.BooleanField(default=False)
    plan_activated_at = models.DateTimeField(null=True, blank=True)
    is_prepaid = models.BooleanField(default=False)

    # CUSTOM PLAN DETAILS
    auto_refill_enabled = models.BooleanField(default=False)
    liters_per_month = models.DecimalField(
        decimal_places=4, max_digits=14, default=Decimal(0)
    )
    bonus_liters = models.DecimalField(
        decimal_places=4, max_digits=14, default=Decimal(0)
    )
    last_month_rollover = models.DecimalField(
        decimal_places=4, max_digits=14, default=Decimal(0)
    )
    total_consumption_liters = models.DecimalField(
        decimal_places=4,
        max_digits=14,
        default=Decimal(0),
        help_text="Liters still available to a fixed plan account this month",
    )
    gallon_price = models.DecimalField(
        decimal_places=2, max_digits=12, default=Decimal(0)
    )
    gallon_payment_type = models.CharField(
        max_length=10, choices=EQUIPMENT_PAYMENT_TYPE.choices, null=True, blank=True
    )
    dispenser_price = models.DecimalField(
        decimal_places=2, max_digits=12, default=Decimal(0)
    )
    dispenser_payment_type = models.CharField(
        max_length=10, choices=EQUIPMENT_PAYMENT_TYPE.choices, null=True, blank=True
    )

    # LEDGER FIELDS
    top_up_balance_credits = models.DecimalField(
        decimal_places=4,
        max_digits=16,
        default=Decimal(0),
        help_text="Prepaid balance of a parent account, debited by branch deliveries",
    )
    last_billed_date = models.DateTimeField(null=True, blank=True)

    created = models.DateTimeField(default=now_utc)
    history = HistoricalRecords()

    objects = models.Manager()
    billable_objects = BillableAccountManager()

    class Meta:
        indexes = [
            models.Index(
                fields=["role", "account_type"], name="account_role_type_idx"
            ),
            models.Index(fields=["parent"], name="account_parent_idx"),
        ]

    def __str__(self):
        return f"{self.business_name} ({self.account_id})"

    def clean(self):
        super().clean()
        if self.has_pending_plan != self.has_effective_date:
            raise ValidationError(
                "Pending plan and plan change effective date must be set together"
            )
        if self.account_type == ACCOUNT_TYPE.BRANCH and self.parent_id is None:
            raise ValidationError("Branch accounts must reference a parent account")
        if self.parent is not None and self.parent.account_type != ACCOUNT_TYPE.PARENT:
            raise ValidationError("Only parent accounts can have branches")

    @property
    def has_pending_plan(self):
        return self.pending_plan_id is not None

    @property
    def has_effective_date(self):
        return self.plan_change_effective_date is not None

    @property
    def has_scheduled_plan_change(self):
        return self.has_pending_plan and self.has_effective_date

    @property
    def is_branch(self):
        return self.account_type == ACCOUNT_TYPE.BRANCH

    @property
    def is_admin(self):
        return self.role == ACCOUNT_ROLE.ADMIN

    def check_plan_schedule(self):
        if self.has_pending_plan != self.has_effective_date:
            raise PlanScheduleInconsistent(account_id=self.account_id)

    def plan_change_is_due(self, now):
        """
        True once the effective date has arrived, not only on the day itself,
        so a missed run still activates the change on the next one.
        """
        self.check_plan_schedule()
        if not self.has_scheduled_plan_change or self.is_branch:
            return False
        return convert_to_date(self.plan_change_effective_date) <= convert_to_date(now)

    def activate_pending_plan(self, now=None):
        if not self.has_scheduled_plan_change:
            return False
        new_plan = self.pending_plan
        self.previous_plan = self.plan
        self.previous_is_prepaid = self.is_prepaid
        self.plan_activated_at = now or now_utc()
        self.plan = new_plan
        self.is_prepaid = new_plan.is_prepaid
        self.pending_plan = None
        self.plan_change_effective_date = None
        update_fields = [
            "previous_plan",
            "previous_is_prepaid",
            "plan_activated_at",
            "plan",
            "is_prepaid",
            "pending_plan",
            "plan_change_effective_date",
        ]
        if new_plan.is_consumption_based:
            # fixed plan allocations mean nothing on a consumption plan
            self.auto_refill_enabled = True
            update_fields.append("auto_refill_enabled")
        self._change_reason = f"Activated plan {new_plan.name}"
        self.save(update_fields=update_fields)
        logger.info(
            "Activated plan %s for account %s", new_plan.name, self.account_id
        )
        return True

    def plan_in_force(self, at):
        """The ``(plan, is_prepaid)`` pair the account was on at ``at``."""
        if self.plan_activated_at is not None and at < self.plan_activated_at:
            return self.previous_plan, self.previous_is_prepaid
        return self.plan, self.is_prepaid

    def monthly_equipment_fee(self):
        fee = Decimal(0)
        if self.gallon_payment_type == EQUIPMENT_PAYMENT_TYPE.MONTHLY:
            fee += self.gallon_price
        if self.dispenser_payment_type == EQUIPMENT_PAYMENT_TYPE.MONTHLY:
            fee += self.dispenser_price
        return fee

    def one_time_equipment_fee(self):
        fee = Decimal(0)
        if self.gallon_payment_type == EQUIPMENT_PAYMENT_TYPE.ONE_TIME:
            fee += self.gallon_price
        if self.dispenser_payment_type == EQUIPMENT_PAYMENT_TYPE.ONE_TIME:
            fee += self.dispenser_price
        return fee

    def open_pending_charges(self):
        return self.pending_charges.open().order_by("date_added", "pk")


class DeliveryRecord(models.Model):
    delivery_id = models.UUIDField(default=uuid.uuid4, unique=True, editable=False)
    account = models.ForeignKey(
        Account, on_delete=models.CASCADE, related_name="deliveries"
    )
    delivery_date = models.DateTimeField(default=now_utc)
    volume_containers = models.PositiveIntegerField(default=0)
    liters = models.DecimalField(
        decimal_places=4,
        max_digits=14,
        null=True,
        blank=True,
        help_text="Measured liters, overrides the container conversion when set",
    )
    status = models.CharField(
        max_length=20, choices=DELIVERY_STATUS.choices, default=DELIVERY_STATUS.PENDING
    )
    admin_notes = models.TextField(blank=True, default="")

    class Meta:
        indexes = [
            models.Index(
                fields=["account", "delivery_date"], name="delivery_account_date_idx"
            )
        ]

    def __str__(self):
        return f"{self.account.account_id} | {self.delivery_date:%Y-%m-%d} | {self.volume_containers} containers"

    def save(self, *args, **kwargs):
        from water_billing.ledger import record_delivery_consumption

        new = self._state.adding is True
        super().save(*args, **kwargs)
        if new:
            record_delivery_consumption(self)


class PendingChargeQuerySet(models.QuerySet):
    def open(self):
        return self.filter(invoice__isnull=True)

    def total(self):
        return self.aggregate(total=Sum("amount"))["total"] or Decimal(0)


class PendingCharge(models.Model):
    account = models.ForeignKey(
        Account, on_delete=models.CASCADE, related_name="pending_charges"
    )
    description = models.CharField(max_length=255)
    amount = models.DecimalField(
        decimal_places=2,
        max_digits=12,
        help_text="Positive for extra charges, negative for deductions",
    )
    date_added = models.DateTimeField(default=now_utc)
    invoice = models.ForeignKey(
        "Invoice",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="manual_charges",
        help_text="Set once the charge has been billed",
    )

    objects = PendingChargeQuerySet.as_manager()

    def __str__(self):
        return f"{self.account.account_id} | {self.description} | P{self.amount}"


class Invoice(models.Model):
    invoice_id = models.CharField(
        max_length=32,
        unique=True,
        help_text="INV-{first 5 chars of the account id}-{YYYYMM}, one per account per cycle",
    )
    account = models.ForeignKey(
        Account, on_delete=models.CASCADE, related_name="invoices"
    )
    issue_date = models.DateTimeField(default=now_utc)
    description = models.CharField(max_length=255)
    amount = models.DecimalField(
        decimal_places=2,
        max_digits=14,
        validators=[MinValueValidator(0)],
    )
    status = models.CharField(
        max_length=20, choices=INVOICE_STATUS.choices, default=INVOICE_STATUS.UPCOMING
    )
    billing_period = models.CharField(max_length=50)
    cycle_start = models.DateTimeField()
    cycle_end = models.DateTimeField()
    consumed_liters = models.DecimalField(
        decimal_places=4, max_digits=14, default=Decimal(0)
    )
    plan = models.ForeignKey(
        Plan,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="+",
        help_text="The plan the cycle was priced under",
    )

    # REVIEW WORKFLOW FIELDS, written by operators only
    proof_of_payment_url = models.URLField(max_length=300, null=True, blank=True)
    rejection_reason = models.TextField(null=True, blank=True)

    updated = models.DateTimeField(default=now_utc)
    history = HistoricalRecords()

    class Meta:
        indexes = [
            models.Index(
                fields=["account", "status"], name="invoice_account_status_idx"
            ),
            models.Index(
                fields=["account", "-issue_date"], name="invoice_account_issued_idx"
            ),
        ]

    def __str__(self):
        return f"{self.invoice_id} | {self.billing_period} | P{self.amount}"

    @staticmethod
    def build_invoice_id(account_id, cycle_key):
        return f"INV-{str(account_id)[:5]}-{cycle_key}"

    @property
    def is_reconciled(self):
        """A person has acted on this invoice, the engine must leave it alone."""
        return self.status != INVOICE_STATUS.UPCOMING


class ParentCreditTransaction(models.Model):
    transaction_id = models.UUIDField(default=uuid.uuid4, unique=True, editable=False)
    account = models.ForeignKey(
        Account, on_delete=models.CASCADE, related_name="credit_transactions"
    )
    transaction_type = models.CharField(
        max_length=10, choices=CREDIT_TRANSACTION_TYPE.choices
    )
    amount_credits = models.DecimalField(
        decimal_places=4, max_digits=16, validators=[MinValueValidator(0)]
    )
    description = models.CharField(max_length=255, blank=True, default="")
    branch = models.ForeignKey(
        Account,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    delivery = models.OneToOneField(
        DeliveryRecord,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="parent_debit",
    )
    date = models.DateTimeField(default=now_utc)

    class Meta:
        ordering = ["-date"]

    def __str__(self):
        return f"{self.account.account_id} {self.transaction_type} {self.amount_credits}"
