"""Zone-aware date/time helpers shared by the calendar and policy code."""

from datetime import date, datetime, time, timezone, tzinfo

END_OF_DAY = time(23, 59, 59, 999000)
START_OF_DAY = time(0, 0)


def local_date(moment: datetime, zone: tzinfo) -> date:
    """Calendar date of ``moment`` as seen in ``zone``."""
    return moment.astimezone(zone).date()


def at_end_of_day(day: date | datetime, zone: tzinfo) -> datetime:
    """23:59:59.999 on the given day, local to ``zone``."""
    if isinstance(day, datetime):
        day = local_date(day, zone)
    return datetime.combine(day, END_OF_DAY, tzinfo=zone)


def at_time(day: date, moment: time, zone: tzinfo) -> datetime:
    return datetime.combine(day, moment, tzinfo=zone)


def whole_minutes_between(start: datetime, end: datetime) -> int:
    """Whole minutes from ``start`` to ``end``; negative spans give zero."""
    seconds = (end - start).total_seconds()
    if seconds <= 0:
        return 0
    return int(seconds // 60)


def ensure_aware(moment: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment
