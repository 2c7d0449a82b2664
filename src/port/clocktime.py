from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Union, overload

from .errors import ParseError

_EPOCH = datetime(1970, 1, 1)
_ISO_LOCAL = re.compile(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}(:\d{2})?")


@dataclass(frozen=True, order=True)
class ClockTime:
    """
    Absolute point in simulated time, stored as epoch seconds (UTC, no zone).

    The simulation clock (simpy `env.now`) runs in the same unit, so a ClockTime can be
    built directly from `env.now`. Durations are plain `datetime.timedelta` values.
    """

    seconds: float
    minutes_only: bool = field(default=False, compare=False, repr=False)

    @classmethod
    def of(cls, iso: str) -> "ClockTime":
        """
        Parse an extended ISO-8601 local date-time, ``2024-03-04T08:00`` or
        ``2024-03-04T08:00:00``. `to_iso` prints the value back with the same precision.
        Basic forms, fractions of a second, dates without a time part and UTC offsets
        are rejected.
        """
        if not isinstance(iso, str) or _ISO_LOCAL.fullmatch(iso) is None:
            raise ParseError(f"Not an ISO local date-time: {iso!r}")
        try:
            value = datetime.fromisoformat(iso)
        except ValueError as exc:
            raise ParseError(f"Not an ISO local date-time: {iso!r}") from exc
        return cls((value - _EPOCH).total_seconds(), minutes_only=len(iso) == 16)

    @classmethod
    def of_datetime(cls, value: datetime) -> "ClockTime":
        return cls((value - _EPOCH).total_seconds())

    def local_datetime(self) -> datetime:
        return _EPOCH + timedelta(seconds=round(self.seconds))

    def to_iso(self) -> str:
        return self.local_datetime().isoformat(timespec="minutes" if self.minutes_only else "seconds")

    def ymd(self) -> str:
        return self.local_datetime().strftime("%Y-%m-%d")

    def hms(self) -> str:
        return self.local_datetime().strftime("%H:%M:%S")

    def hm(self) -> str:
        return self.hms()[:5]

    def ymdhm(self) -> str:
        return f"{self.ymd()} {self.hm()}"

    def day_of_week(self) -> int:
        """ISO weekday: 1 = Monday .. 7 = Sunday."""
        return self.local_datetime().isoweekday()

    def is_weekend(self) -> bool:
        return self.day_of_week() >= 6

    def plus(self, duration: timedelta) -> "ClockTime":
        return ClockTime(self.seconds + duration.total_seconds())

    @overload
    def minus(self, other: "ClockTime") -> timedelta: ...

    @overload
    def minus(self, other: timedelta) -> "ClockTime": ...

    def minus(self, other: Union["ClockTime", timedelta]):
        if isinstance(other, ClockTime):
            return timedelta(seconds=self.seconds - other.seconds)
        return ClockTime(self.seconds - other.total_seconds())

    def start_of_day(self) -> "ClockTime":
        day = self.local_datetime().replace(hour=0, minute=0, second=0)
        return ClockTime.of_datetime(day)

    def __add__(self, other: timedelta) -> "ClockTime":
        if not isinstance(other, timedelta):
            return NotImplemented
        return self.plus(other)

    def __sub__(self, other):
        if isinstance(other, (ClockTime, timedelta)):
            return self.minus(other)
        return NotImplemented

    def __str__(self) -> str:
        return self.ymdhm()
