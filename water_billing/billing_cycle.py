import datetime
from dataclasses import dataclass

from dateutil.relativedelta import relativedelta
from water_billing.exceptions import InvalidClockInput
from water_billing.utils import (
    billing_timezone,
    date_as_max_dt,
    date_as_min_dt,
    localize,
)


@dataclass(frozen=True)
class BillingCycle:
    """One calendar month. ``end`` is the last instant of the month, inclusive."""

    start: datetime.datetime
    end: datetime.datetime
    label: str

    @property
    def cycle_key(self):
        return self.start.strftime("%Y%m")

    def contains(self, value):
        value = localize(value, self.start.tzinfo)
        return self.start <= value <= self.end

    def __str__(self):
        return self.label


def resolve_cycle(now, timezone=None):
    """
    The month before the one ``now`` falls in, cut in the billing time zone.

    A run on 2024-08-01 00:00 PHT covers 2024-07-01 00:00:00 through
    2024-07-31 23:59:59.999999 PHT and is labelled "July 2024".
    """
    if not isinstance(now, datetime.datetime):
        raise InvalidClockInput(f"expected a datetime, got {type(now).__name__}")
    tz = timezone or billing_timezone()
    local_now = localize(now, tz)
    first_of_this_month = local_now.date().replace(day=1)
    first_of_last_month = first_of_this_month + relativedelta(months=-1)
    last_of_last_month = first_of_this_month + relativedelta(days=-1)
    return BillingCycle(
        start=date_as_min_dt(first_of_last_month, tz),
        end=date_as_max_dt(last_of_last_month, tz),
        label=f"{first_of_last_month:%B %Y}",
    )
