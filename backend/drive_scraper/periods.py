"""
Rental period construction and listing URL building.

A rental period is a (since, until) window in epoch milliseconds plus the
flags the marketplace search expects. Windows are built with calendar
arithmetic on the wall clock: a daily window ends at the same time of day
on the next date, a monthly window on the same day N months later.
"""

import calendar
import math
from datetime import datetime, timedelta, tzinfo
from typing import Optional, Union

from .base import PeriodKind, RentalPeriod, VehicleValidationError
from .utils.normalizers import vehicle_slug

MS_PER_HOUR = 60 * 60 * 1000

# Windows this long are searched as monthly rentals
MONTHLY_THRESHOLD_HOURS = 720


def is_monthly_duration(duration_hours: float) -> bool:
    """True when a window is long enough to count as a monthly rental."""
    return duration_hours >= MONTHLY_THRESHOLD_HOURS


def to_epoch_ms(dt: datetime) -> int:
    return int(round(dt.timestamp() * 1000))


def add_months(dt: datetime, months: int) -> datetime:
    """
    Add calendar months, clamping the day to the target month's length.

    Examples:
        2024-01-15 + 1 -> 2024-02-15
        2024-01-31 + 1 -> 2024-02-29
    """
    month_index = dt.month - 1 + months
    year = dt.year + month_index // 12
    month = month_index % 12 + 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return dt.replace(year=year, month=month, day=day)


def format_timestamp(dt: datetime) -> str:
    """Human-readable timestamp, e.g. "1/2/2024, 8:00:00 AM"."""
    hour = dt.hour % 12 or 12
    meridiem = 'AM' if dt.hour < 12 else 'PM'
    return f"{dt.month}/{dt.day}/{dt.year}, {hour}:{dt.minute:02d}:{dt.second:02d} {meridiem}"


def reference_now(offset_hours: float = 2, tz: Optional[tzinfo] = None) -> datetime:
    """
    Reference time for a run: now plus the pickup lead time, to the second.
    """
    now = datetime.now(tz) + timedelta(hours=offset_hours)
    return now.replace(microsecond=0)


def _localize(reference_time: datetime, tz: Optional[tzinfo]) -> datetime:
    if reference_time.tzinfo is None and tz is not None:
        return reference_time.replace(tzinfo=tz)
    return reference_time


def build_period(
    kind: Union[PeriodKind, str],
    reference_time: datetime,
    months: Optional[int] = None,
    tz: Optional[tzinfo] = None,
) -> RentalPeriod:
    """
    Build the rental window of one kind starting at `reference_time`.

    Args:
        kind: daily, weekly or monthly
        reference_time: Window start. Naive values are read in `tz`, or in
            local time when `tz` is None
        months: Month count, required (>= 1) for monthly windows
        tz: Timezone for naive reference times

    Returns:
        RentalPeriod

    Raises:
        ValueError: monthly window without a positive month count
    """
    kind = PeriodKind(kind)
    since = _localize(reference_time, tz)

    if kind is PeriodKind.DAILY:
        until = since + timedelta(days=1)
    elif kind is PeriodKind.WEEKLY:
        until = since + timedelta(days=7)
    else:
        if months is None or months < 1:
            raise ValueError(f"Monthly period needs at least 1 month, got {months!r}")
        until = add_months(since, months)

    since_ms = to_epoch_ms(since)
    until_ms = to_epoch_ms(until)
    duration_hours = (until_ms - since_ms) / MS_PER_HOUR
    # Derived from the duration, not from the requested kind
    is_monthly = is_monthly_duration(duration_hours)

    if kind is PeriodKind.MONTHLY:
        month_count = months
        label = f"{months} Month{'s' if months > 1 else ''} from {format_timestamp(since)}"
    else:
        month_count = math.ceil(duration_hours / MONTHLY_THRESHOLD_HOURS) if is_monthly else 0
        label = f"{format_timestamp(since)} - {format_timestamp(until)}"

    return RentalPeriod(
        kind=kind,
        label=label,
        since_ms=since_ms,
        until_ms=until_ms,
        duration_hours=duration_hours,
        is_monthly=is_monthly,
        month_count=month_count,
    )


def build_listing_url(base_url: str, vehicle: str, period: RentalPeriod) -> str:
    """
    Build the price-sorted search URL for one vehicle and period.

    Example:
        https://drive.yango.com/search/all/kia/seltos?since=...&until=...
            &duration_months=0&sort_by=price&sort_order=asc
    """
    monthly_search = period.is_monthly or period.kind is PeriodKind.MONTHLY
    query = (
        f"since={period.since_ms}&until={period.until_ms}"
        f"&duration_months={period.month_count}"
        f"{'&is_monthly=true' if monthly_search else ''}"
        f"&sort_by=price&sort_order=asc"
    )
    return f"{base_url.rstrip('/')}/search/all/{vehicle_slug(vehicle)}?{query}"


def validate_vehicle_name(name: Optional[str]) -> str:
    """
    Check a vehicle name before any navigation.

    Raises:
        VehicleValidationError: name is missing or blank
    """
    if not name or not name.strip():
        raise VehicleValidationError(f'Car name "{name or ""}" must be at least 1 characters long')
    return name
