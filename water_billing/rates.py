"""
Rate model: physical units to billable liters, and the plan terms a cycle is
priced under.
"""
from dataclasses import dataclass
from decimal import Decimal

from django.conf import settings
from water_billing.utils import convert_to_decimal, quantize_money


def liter_factor():
    return convert_to_decimal(settings.LITERS_PER_CONTAINER)


def containers_to_liters(containers):
    if not containers:
        return Decimal(0)
    return convert_to_decimal(containers) * liter_factor()


def delivery_liters(delivery):
    # an explicit liter reading recorded on the delivery wins over the container count
    if delivery.liters is not None:
        return convert_to_decimal(delivery.liters)
    return containers_to_liters(delivery.volume_containers)


def total_liters(deliveries):
    return sum((delivery_liters(d) for d in deliveries), Decimal(0))


def vat_component(amount):
    """VAT contained in a VAT-inclusive ``amount``. Display only."""
    rate = convert_to_decimal(settings.VAT_RATE)
    amount = convert_to_decimal(amount)
    return quantize_money(amount - amount / (1 + rate))


@dataclass(frozen=True)
class PlanTerms:
    name: str
    is_consumption_based: bool
    price: Decimal
    is_prepaid: bool = False
    plan_id: int = None

    @classmethod
    def from_plan(cls, plan):
        if plan is None:
            return None
        return cls(
            name=plan.name,
            is_consumption_based=plan.is_consumption_based,
            price=convert_to_decimal(plan.price),
            is_prepaid=plan.is_prepaid,
            plan_id=plan.pk,
        )

    def usage_amount(self, liters):
        return convert_to_decimal(liters) * self.price
