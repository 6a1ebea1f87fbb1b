import datetime
from decimal import Decimal

import pytest
import pytz
from water_billing.billing_cycle import resolve_cycle
from water_billing.exceptions import InvalidClockInput, MalformedDate
from water_billing.rates import (
    PlanTerms,
    containers_to_liters,
    delivery_liters,
    total_liters,
    vat_component,
)
from water_billing.tests.conftest import pht
from water_billing.utils import convert_to_date, quantize_money


class TestResolveCycle:
    def test_first_of_month_bills_previous_month(self):
        cycle = resolve_cycle(pht(2024, 8, 1, 0, 0))

        assert cycle.label == "July 2024"
        assert cycle.cycle_key == "202407"
        assert cycle.start == pht(2024, 7, 1, 0, 0)
        assert cycle.end == pht(2024, 7, 31, 23, 59, 59, 999999)

    def test_mid_month_run_still_bills_previous_month(self):
        cycle = resolve_cycle(pht(2024, 8, 17, 14, 5))

        assert cycle.label == "July 2024"

    def test_january_run_bills_december_of_previous_year(self):
        cycle = resolve_cycle(pht(2025, 1, 1, 0, 0))

        assert cycle.label == "December 2024"
        assert cycle.cycle_key == "202412"
        assert cycle.end.date() == datetime.date(2024, 12, 31)

    def test_february_in_leap_year(self):
        cycle = resolve_cycle(pht(2024, 3, 1, 0, 0))

        assert cycle.end.date() == datetime.date(2024, 2, 29)

    def test_utc_clock_is_cut_in_billing_time_zone(self):
        # 16:00 UTC on July 31 is already August 1 in Manila
        now = datetime.datetime(2024, 7, 31, 16, 0, tzinfo=pytz.utc)

        assert resolve_cycle(now).label == "July 2024"

    def test_naive_clock_is_read_as_billing_time_zone(self):
        assert resolve_cycle(datetime.datetime(2024, 8, 1)).label == "July 2024"

    def test_explicit_time_zone(self):
        now = datetime.datetime(2024, 7, 31, 16, 0, tzinfo=pytz.utc)

        assert resolve_cycle(now, timezone="UTC").label == "June 2024"

    @pytest.mark.parametrize("bad_clock", [None, "2024-08-01", datetime.date(2024, 8, 1)])
    def test_invalid_clock_input(self, bad_clock):
        with pytest.raises(InvalidClockInput):
            resolve_cycle(bad_clock)

    def test_contains_is_inclusive_at_both_ends(self):
        cycle = resolve_cycle(pht(2024, 8, 1, 0, 0))

        assert cycle.contains(pht(2024, 7, 1, 0, 0))
        assert cycle.contains(pht(2024, 7, 31, 23, 59, 59))
        assert not cycle.contains(pht(2024, 8, 1, 0, 0))
        assert not cycle.contains(pht(2024, 6, 30, 23, 59, 59))


class TestRates:
    def test_containers_to_liters(self):
        assert containers_to_liters(25) == Decimal("487.5")
        assert containers_to_liters(0) == Decimal(0)
        assert containers_to_liters(None) == Decimal(0)

    def test_liter_factor_follows_settings(self, settings):
        settings.LITERS_PER_CONTAINER = Decimal("20")

        assert containers_to_liters(3) == Decimal("60")

    def test_measured_liters_override_container_count(self):
        class Delivery:
            volume_containers = 10
            liters = Decimal("150.25")

        assert delivery_liters(Delivery()) == Decimal("150.25")

    def test_total_liters(self):
        class Delivery:
            liters = None

            def __init__(self, containers):
                self.volume_containers = containers

        assert total_liters([Delivery(10), Delivery(15)]) == Decimal("487.5")
        assert total_liters([]) == Decimal(0)

    def test_vat_component_of_inclusive_amount(self):
        assert vat_component(Decimal("1120.00")) == Decimal("120.00")

    def test_usage_amount(self):
        terms = PlanTerms("Refill", True, Decimal("3.00"))

        assert quantize_money(terms.usage_amount(Decimal("487.5"))) == Decimal(
            "1462.50"
        )

    def test_plan_terms_from_missing_plan(self):
        assert PlanTerms.from_plan(None) is None


class TestConversions:
    def test_quantize_money_rounds_half_up(self):
        assert quantize_money(Decimal("0.125")) == Decimal("0.13")
        assert quantize_money(1.005) == Decimal("1.01")

    def test_convert_to_date_in_billing_time_zone(self):
        value = datetime.datetime(2024, 7, 31, 16, 0, tzinfo=pytz.utc)

        assert convert_to_date(value) == datetime.date(2024, 8, 1)
        assert convert_to_date("2024-07-15") == datetime.date(2024, 7, 15)

    def test_convert_to_date_rejects_garbage(self):
        with pytest.raises(MalformedDate):
            convert_to_date("not a date")
        with pytest.raises(MalformedDate):
            convert_to_date(12345)
