"""
Period window resolution for spending limits.

A period window is the concrete ``[start, end)`` span a weekly or monthly
AccountLimit covers at a given moment. The anchoring policy is pluggable:
the limit guard asks a resolver for the window and never computes dates
itself.

Available Resolvers:
    CalendarPeriodResolver: Calendar weeks and calendar months (default)
    RollingPeriodResolver: Trailing 7 or 30 days, including today

Configuration:
    LEDGER_PERIOD_RESOLVER = "ledger.periods.CalendarPeriodResolver"
    LEDGER_WEEK_START = 0  # Monday

Usage:
    from ledger.periods import get_period_resolver

    window = get_period_resolver().resolve("month", timezone.now())
    window.contains(transaction.date)
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, tzinfo
from typing import Protocol, runtime_checkable

from django.conf import settings
from django.utils import timezone
from django.utils.module_loading import import_string

from .models import LimitPeriod

DEFAULT_RESOLVER = "ledger.periods.CalendarPeriodResolver"


@dataclass(frozen=True)
class PeriodWindow:
    """
    Half-open time span ``[start, end)``.

    Attributes:
        start: First instant inside the window (aware datetime)
        end: First instant after the window (aware datetime)
    """

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if self.end <= self.start:
            raise ValueError("PeriodWindow end must be after start")

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment < self.end


@runtime_checkable
class PeriodResolver(Protocol):
    """Interface every period window resolver implements."""

    def resolve(self, period: str, reference: datetime) -> PeriodWindow:
        """Return the window of ``period`` that contains ``reference``."""
        ...


def _local_midnight(reference: datetime, tz: tzinfo | None) -> datetime:
    if timezone.is_naive(reference):
        reference = timezone.make_aware(reference, tz)
    local = timezone.localtime(reference, tz)
    return local.replace(hour=0, minute=0, second=0, microsecond=0)


class CalendarPeriodResolver:
    """
    Calendar-anchored windows in the active Django time zone.

    - week: local midnight on the configured week-start day, 7 days long
    - month: local midnight on the 1st, up to the 1st of the next month
    """

    def __init__(self, week_start: int | None = None, tz: tzinfo | None = None):
        if week_start is None:
            week_start = getattr(settings, "LEDGER_WEEK_START", 0)
        if not 0 <= week_start <= 6:
            raise ValueError("week_start must be between 0 (Monday) and 6 (Sunday)")
        self.week_start = week_start
        self.tz = tz

    def resolve(self, period: str, reference: datetime) -> PeriodWindow:
        midnight = _local_midnight(reference, self.tz)

        if period == LimitPeriod.WEEK:
            start = midnight - timedelta(days=(midnight.weekday() - self.week_start) % 7)
            return PeriodWindow(start=start, end=start + timedelta(days=7))

        if period == LimitPeriod.MONTH:
            start = midnight.replace(day=1)
            if start.month == 12:
                end = start.replace(year=start.year + 1, month=1)
            else:
                end = start.replace(month=start.month + 1)
            return PeriodWindow(start=start, end=end)

        raise ValueError(f"Unknown limit period: {period!r}")


class RollingPeriodResolver:
    """
    Trailing windows made of whole local days, ending with today.

    - week: the last 7 days including the reference day
    - month: the last 30 days including the reference day
    """

    DAYS = {
        LimitPeriod.WEEK: 7,
        LimitPeriod.MONTH: 30,
    }

    def __init__(self, tz: tzinfo | None = None):
        self.tz = tz

    def resolve(self, period: str, reference: datetime) -> PeriodWindow:
        try:
            days = self.DAYS[LimitPeriod(period)]
        except ValueError:
            raise ValueError(f"Unknown limit period: {period!r}") from None

        end = _local_midnight(reference, self.tz) + timedelta(days=1)
        return PeriodWindow(start=end - timedelta(days=days), end=end)


def get_period_resolver() -> PeriodResolver:
    """Instantiate the resolver named by ``LEDGER_PERIOD_RESOLVER``."""
    path = getattr(settings, "LEDGER_PERIOD_RESOLVER", DEFAULT_RESOLVER)
    return import_string(path)()
