from decimal import Decimal

import pytest
from model_bakery import baker
from water_billing.billing_cycle import resolve_cycle
from water_billing.exceptions import InvoiceIdCollision
from water_billing.invoice import (
    compute_charge,
    deliveries_in_cycle,
    emit_invoice,
    estimate_open_charges,
    invoice_id_for,
    is_first_invoice,
)
from water_billing.models import Invoice, PendingCharge
from water_billing.rates import PlanTerms
from water_billing.tests.conftest import pht
from water_billing.utils.enums import (
    ACCOUNT_ROLE,
    ACCOUNT_TYPE,
    EMIT_RESULT,
    EQUIPMENT_PAYMENT_TYPE,
    INVOICE_STATUS,
)


@pytest.fixture
def july():
    return resolve_cycle(pht(2024, 8, 1, 0, 0))


@pytest.mark.django_db
class TestComputeCharge:
    def test_consumption_plan_charges_per_liter(
        self, july, consumption_plan, create_account, july_deliveries
    ):
        account = create_account(plan=consumption_plan)
        deliveries = july_deliveries(account)

        charge = compute_charge(account, july, deliveries)

        assert charge.amount == Decimal("1462.50")
        assert charge.consumed_liters == Decimal("487.5")
        assert charge.description == "Water Consumption for July 2024"

    def test_fixed_plan_ignores_volume(
        self, july, fixed_plan, create_account, add_deliveries
    ):
        quiet = create_account(plan=fixed_plan)
        busy = create_account(plan=fixed_plan)
        deliveries = add_deliveries(busy, [500], [pht(2024, 7, 10, 8, 0)])

        quiet_charge = compute_charge(quiet, july, [])
        busy_charge = compute_charge(busy, july, deliveries)

        assert quiet_charge.amount == busy_charge.amount == Decimal("999.00")
        assert quiet_charge.description == "Monthly Subscription for July 2024"

    def test_zero_usage_consumption_month_is_not_billed(
        self, july, consumption_plan, create_account
    ):
        account = create_account(
            plan=consumption_plan,
            dispenser_price=Decimal("100"),
            dispenser_payment_type=EQUIPMENT_PAYMENT_TYPE.MONTHLY,
        )

        assert compute_charge(account, july, []) is None

    def test_deliveries_outside_the_window_are_ignored(
        self, july, consumption_plan, create_account, add_deliveries
    ):
        account = create_account(plan=consumption_plan)
        add_deliveries(
            account,
            [10, 7, 3],
            [
                pht(2024, 6, 30, 23, 30),
                pht(2024, 7, 31, 23, 59),
                pht(2024, 8, 1, 0, 30),
            ],
        )

        deliveries = deliveries_in_cycle(account, july)
        charge = compute_charge(account, july, deliveries)

        assert len(deliveries) == 1
        assert charge.consumed_liters == Decimal("136.5")
        assert charge.amount == Decimal("409.50")

    @pytest.mark.parametrize(
        "account_kwargs",
        [
            {"role": ACCOUNT_ROLE.ADMIN},
            {"is_prepaid": True},
            {"account_type": ACCOUNT_TYPE.BRANCH},
        ],
    )
    def test_accounts_that_are_never_invoiced(
        self, july, consumption_plan, create_account, july_deliveries, account_kwargs
    ):
        account = create_account(plan=consumption_plan, **account_kwargs)
        deliveries = july_deliveries(account)

        assert compute_charge(account, july, deliveries) is None

    def test_account_without_plan(self, july, create_account):
        account = create_account(plan=None)

        assert compute_charge(account, july, []) is None

    def test_prepaid_plan_terms(self, july, create_plan, create_account):
        account = create_account(plan=create_plan("2.00", is_prepaid=True))

        assert compute_charge(account, july, []) is None

    def test_terms_override_current_plan(
        self, july, consumption_plan, fixed_plan, create_account, july_deliveries
    ):
        account = create_account(plan=fixed_plan)
        deliveries = july_deliveries(account)

        charge = compute_charge(
            account, july, deliveries, terms=PlanTerms.from_plan(consumption_plan)
        )

        assert charge.amount == Decimal("1462.50")

    def test_equipment_fees(
        self, july, consumption_plan, create_account, july_deliveries
    ):
        account = create_account(
            plan=consumption_plan,
            gallon_price=Decimal("250.00"),
            gallon_payment_type=EQUIPMENT_PAYMENT_TYPE.ONE_TIME,
            dispenser_price=Decimal("100.00"),
            dispenser_payment_type=EQUIPMENT_PAYMENT_TYPE.MONTHLY,
        )
        deliveries = july_deliveries(account)

        first = compute_charge(account, july, deliveries, first_invoice=True)
        later = compute_charge(account, july, deliveries, first_invoice=False)

        assert first.amount == Decimal("1812.50")
        assert first.description == "Water Consumption for July 2024 + One-Time Fees"
        assert later.amount == Decimal("1562.50")
        assert later.description == "Water Consumption for July 2024"

    def test_pending_charges_not_folded_by_default(
        self, july, consumption_plan, create_account, july_deliveries
    ):
        account = create_account(plan=consumption_plan)
        deliveries = july_deliveries(account)
        baker.make(
            PendingCharge, account=account, description="Late fee", amount=Decimal("50")
        )

        charge = compute_charge(account, july, deliveries)

        assert charge.amount == Decimal("1462.50")
        assert charge.pending_charges == []
        assert estimate_open_charges(account) == Decimal("50.00")

    def test_pending_charges_folded(
        self, july, consumption_plan, create_account, july_deliveries
    ):
        account = create_account(plan=consumption_plan)
        deliveries = july_deliveries(account)
        baker.make(
            PendingCharge, account=account, description="Late fee", amount=Decimal("50")
        )

        charge = compute_charge(account, july, deliveries, fold_pending_charges=True)

        assert charge.amount == Decimal("1512.50")
        assert charge.description == "Water Consumption for July 2024 + Adjustments"
        assert len(charge.pending_charges) == 1

    def test_pending_deductions_folded(self, july, fixed_plan, create_account):
        account = create_account(plan=fixed_plan)
        baker.make(
            PendingCharge,
            account=account,
            description="Missed delivery",
            amount=Decimal("-99.00"),
        )

        charge = compute_charge(account, july, [], fold_pending_charges=True)

        assert charge.amount == Decimal("900.00")
        assert charge.description.endswith(" + Deductions")

    def test_deductions_wiping_out_the_charge(self, july, fixed_plan, create_account):
        account = create_account(plan=fixed_plan)
        baker.make(
            PendingCharge, account=account, description="Credit", amount=Decimal("-999")
        )

        assert compute_charge(account, july, [], fold_pending_charges=True) is None

    def test_fixed_plan_rollover(self, july, fixed_plan, create_account):
        account = create_account(
            plan=fixed_plan,
            liters_per_month=Decimal("500"),
            bonus_liters=Decimal("20"),
            last_month_rollover=Decimal("30"),
        )

        class Delivery:
            volume_containers = 10
            liters = None
            delivery_date = pht(2024, 7, 5, 10, 0)

        charge = compute_charge(account, july, [Delivery()])

        # 550 available, 195 consumed
        assert charge.account_updates == {
            "last_month_rollover": Decimal("355"),
            "total_consumption_liters": Decimal("875"),
        }


@pytest.mark.django_db
class TestEmitInvoice:
    def test_creates_upcoming_invoice(
        self, july, consumption_plan, create_account, july_deliveries
    ):
        account = create_account(account_id="abcde12345", plan=consumption_plan)
        charge = compute_charge(account, july, july_deliveries(account))

        result = emit_invoice(account, july, charge, issue_date=pht(2024, 8, 1, 0, 0))

        assert result.outcome == EMIT_RESULT.CREATED
        invoice = result.invoice
        assert invoice.invoice_id == "INV-abcde-202407"
        assert invoice.status == INVOICE_STATUS.UPCOMING
        assert invoice.amount == Decimal("1462.50")
        assert invoice.billing_period == "July 2024"
        account.refresh_from_db()
        assert account.last_billed_date == pht(2024, 8, 1, 0, 0)

    def test_rerun_updates_the_same_invoice(
        self, july, consumption_plan, create_account, july_deliveries, add_deliveries
    ):
        account = create_account(plan=consumption_plan)
        july_deliveries(account)
        emit_invoice(
            account, july, compute_charge(account, july, deliveries_in_cycle(account, july))
        )
        # a late-recorded delivery for the same month
        add_deliveries(account, [5], [pht(2024, 7, 20, 8, 0)])

        result = emit_invoice(
            account, july, compute_charge(account, july, deliveries_in_cycle(account, july))
        )

        assert result.outcome == EMIT_RESULT.UPDATED
        assert Invoice.objects.filter(account=account).count() == 1
        assert result.invoice.amount == Decimal("1755.00")
        assert result.invoice.status == INVOICE_STATUS.UPCOMING

    def test_reconciled_invoice_is_left_alone(
        self, july, consumption_plan, create_account, july_deliveries
    ):
        account = create_account(plan=consumption_plan)
        charge = compute_charge(account, july, july_deliveries(account))
        invoice = emit_invoice(account, july, charge).invoice
        invoice.status = INVOICE_STATUS.PAID
        invoice.save()

        july_deliveries(account)
        bigger = compute_charge(account, july, deliveries_in_cycle(account, july))
        result = emit_invoice(account, july, bigger)

        assert result.outcome == EMIT_RESULT.ALREADY_RECONCILED
        assert not result.written
        invoice.refresh_from_db()
        assert invoice.status == INVOICE_STATUS.PAID
        assert invoice.amount == Decimal("1462.50")

    def test_folded_charges_are_linked_to_the_invoice(
        self, july, consumption_plan, create_account, july_deliveries
    ):
        account = create_account(plan=consumption_plan)
        pending = baker.make(
            PendingCharge, account=account, description="Late fee", amount=Decimal("50")
        )
        charge = compute_charge(
            account, july, july_deliveries(account), fold_pending_charges=True
        )

        invoice = emit_invoice(account, july, charge).invoice

        pending.refresh_from_db()
        assert pending.invoice == invoice
        assert estimate_open_charges(account) == Decimal("0.00")

    def test_account_updates_only_saved_on_create(
        self, july, fixed_plan, create_account
    ):
        account = create_account(plan=fixed_plan, liters_per_month=Decimal("500"))
        charge = compute_charge(account, july, [])

        emit_invoice(account, july, charge)
        account.refresh_from_db()
        assert account.last_month_rollover == Decimal("500")

        second = compute_charge(account, july, [])
        emit_invoice(account, july, second)
        account.refresh_from_db()
        assert account.last_month_rollover == Decimal("500")

    def test_invoice_id_prefix_collision(
        self, july, fixed_plan, create_account
    ):
        first = create_account(account_id="same-prefix-1", plan=fixed_plan)
        second = create_account(account_id="same-prefix-2", plan=fixed_plan)
        emit_invoice(first, july, compute_charge(first, july, []))

        with pytest.raises(InvoiceIdCollision):
            emit_invoice(second, july, compute_charge(second, july, []))

    def test_first_invoice_survives_rerun(
        self, july, fixed_plan, create_account
    ):
        account = create_account(plan=fixed_plan)
        assert is_first_invoice(account, july)

        emit_invoice(account, july, compute_charge(account, july, []))
        account.refresh_from_db()

        assert is_first_invoice(account, july)
        august = resolve_cycle(pht(2024, 9, 1, 0, 0))
        assert not is_first_invoice(account, august)
        assert invoice_id_for(account, august).endswith("-202408")

    def test_one_time_fees_kept_on_rerun(
        self, july, consumption_plan, create_account, july_deliveries
    ):
        account = create_account(
            plan=consumption_plan,
            gallon_price=Decimal("250.00"),
            gallon_payment_type=EQUIPMENT_PAYMENT_TYPE.ONE_TIME,
        )
        july_deliveries(account)
        first = compute_charge(account, july, deliveries_in_cycle(account, july))
        emit_invoice(account, july, first)
        account.refresh_from_db()

        rerun = compute_charge(account, july, deliveries_in_cycle(account, july))

        assert account.last_billed_date is not None
        assert rerun.amount == first.amount == Decimal("1712.50")
        assert rerun.description.endswith(" + One-Time Fees")

    def test_closed_cycle_priced_under_replaced_plan(
        self, july, consumption_plan, fixed_plan, create_account, july_deliveries
    ):
        account = create_account(
            plan=consumption_plan,
            pending_plan=fixed_plan,
            plan_change_effective_date=pht(2024, 8, 1, 0, 0),
        )
        july_deliveries(account)
        account.activate_pending_plan(now=pht(2024, 8, 1, 0, 0))

        charge = compute_charge(account, july, deliveries_in_cycle(account, july))

        assert account.plan == fixed_plan
        assert charge.amount == Decimal("1462.50")
        assert charge.plan_id == consumption_plan.pk
