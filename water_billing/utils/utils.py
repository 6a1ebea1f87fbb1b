import datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

import pytz
from dateutil import parser
from django.conf import settings
from water_billing.exceptions import MalformedDate

__all__ = [
    "billing_timezone",
    "convert_to_date",
    "convert_to_decimal",
    "date_as_max_dt",
    "date_as_min_dt",
    "localize",
    "now_utc",
    "quantize_money",
]

CENTS = Decimal("0.01")


def now_utc():
    return datetime.datetime.now(tz=pytz.utc)


def billing_timezone():
    return _resolve_timezone(settings.BILLING_TIME_ZONE)


def _resolve_timezone(timezone):
    if isinstance(timezone, datetime.tzinfo):
        return timezone
    elif isinstance(timezone, str):
        if timezone not in pytz.all_timezones:
            raise ValueError(f"Invalid timezone: {timezone}")
        return pytz.timezone(timezone)
    raise ValueError(f"Invalid timezone: {timezone}")


def localize(value, timezone=None):
    """Express ``value`` in ``timezone``; naive datetimes are read as local to it."""
    tz = _resolve_timezone(timezone or billing_timezone())
    if value.tzinfo is None:
        if hasattr(tz, "localize"):
            return tz.localize(value)
        return value.replace(tzinfo=tz)
    return value.astimezone(tz)


def date_as_min_dt(date, timezone):
    return localize(datetime.datetime.combine(date, datetime.time.min), timezone)


def date_as_max_dt(date, timezone):
    return localize(datetime.datetime.combine(date, datetime.time.max), timezone)


def convert_to_date(value, timezone=None):
    if isinstance(value, datetime.datetime):
        return localize(value, timezone).date()
    elif isinstance(value, datetime.date):
        return value
    elif isinstance(value, str):
        try:
            parsed = parser.parse(value)
        except (ValueError, OverflowError) as e:
            raise MalformedDate(f"can't parse {value!r} as a date") from e
        return convert_to_date(parsed, timezone)
    raise MalformedDate(f"can't convert type {type(value)} into date")


def convert_to_decimal(value):
    if value is None:
        return Decimal(0)
    if isinstance(value, float):
        value = str(value)
    try:
        return Decimal(value)
    except (InvalidOperation, TypeError) as e:
        raise ValueError(f"can't convert {value!r} into a decimal") from e


def quantize_money(value):
    return convert_to_decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)
