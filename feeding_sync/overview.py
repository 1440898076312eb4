"""Daily totals and hourly heatmap summaries of feedings.

Records are stored in UTC; grouping happens in a local IANA time zone so a
day means the caregiver's day.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Dict, Iterable, List, Optional, Tuple, Union
from zoneinfo import ZoneInfo

from feeding_sync.models import FeedingRecord, utc_now

DEFAULT_TIMEZONE = "Asia/Tehran"

Zone = Union[str, ZoneInfo]


def _zone(tz: Zone) -> ZoneInfo:
    return tz if isinstance(tz, ZoneInfo) else ZoneInfo(tz)


@dataclass
class DailyTotal:
    """Feedings on one local calendar day.

    Attributes:
        date: Local date
        total: Sum of amounts in milliliters
        count: Number of feedings
        entries: The feedings, newest first
    """
    date: date
    total: int = 0
    count: int = 0
    entries: List[FeedingRecord] = field(default_factory=list)

    @property
    def average(self) -> int:
        """Rounded mean amount (0 for an empty day)."""
        return round(self.total / self.count) if self.count else 0

    def to_dict(self) -> dict:
        return {
            "date": self.date.isoformat(),
            "total": self.total,
            "count": self.count,
            "average": self.average,
            "entries": [r.to_dict() for r in self.entries],
        }


@dataclass
class HeatmapCell:
    """Feedings within one local hour of one local day."""
    date: date
    hour: int
    amount: int = 0
    count: int = 0

    def to_dict(self) -> dict:
        return {
            "date": self.date.isoformat(),
            "hour": self.hour,
            "amount": self.amount,
            "count": self.count,
        }


def daily_totals(records: Iterable[FeedingRecord], tz: Zone = DEFAULT_TIMEZONE) -> List[DailyTotal]:
    """Group feedings by local day, newest day first."""
    zone = _zone(tz)
    days: Dict[date, DailyTotal] = {}

    for record in sorted(records, key=lambda r: r.created_at, reverse=True):
        day = record.created_at.astimezone(zone).date()
        bucket = days.setdefault(day, DailyTotal(date=day))
        bucket.total += record.amount
        bucket.count += 1
        bucket.entries.append(record)

    return sorted(days.values(), key=lambda d: d.date, reverse=True)


def today_total(
    records: Iterable[FeedingRecord],
    tz: Zone = DEFAULT_TIMEZONE,
    now: Optional[datetime] = None,
) -> Optional[DailyTotal]:
    """Totals for the current local day, or None if nothing was logged."""
    zone = _zone(tz)
    today = (now or utc_now()).astimezone(zone).date()
    for total in daily_totals(records, zone):
        if total.date == today:
            return total
    return None


def last_days_range(
    days: int = 7,
    tz: Zone = DEFAULT_TIMEZONE,
    now: Optional[datetime] = None,
) -> Tuple[datetime, datetime]:
    """Local start of the day ``days - 1`` days ago through the end of today.

    Raises:
        ValueError: If days is less than 1
    """
    if days < 1:
        raise ValueError(f"days must be at least 1, got {days}")
    zone = _zone(tz)
    today = (now or utc_now()).astimezone(zone).date()
    start = datetime.combine(today - timedelta(days=days - 1), time.min, tzinfo=zone)
    end = datetime.combine(today, time.max, tzinfo=zone)
    return start, end


def hourly_heatmap(
    records: Iterable[FeedingRecord],
    start: datetime,
    end: datetime,
    tz: Zone = DEFAULT_TIMEZONE,
) -> List[HeatmapCell]:
    """Bucket feedings in ``[start, end]`` by local day and hour.

    Only non-empty cells are returned, ordered by day then hour.
    """
    zone = _zone(tz)
    cells: Dict[Tuple[date, int], HeatmapCell] = {}

    for record in records:
        if not start <= record.created_at <= end:
            continue
        local = record.created_at.astimezone(zone)
        key = (local.date(), local.hour)
        cell = cells.setdefault(key, HeatmapCell(date=key[0], hour=key[1]))
        cell.amount += record.amount
        cell.count += 1

    return [cells[key] for key in sorted(cells)]
