from datetime import datetime

from app.users.enums import LimitPeriod


def _quarter(moment: datetime) -> int:
    return (moment.month - 1) // 3


def is_period_elapsed(last_reset_at: datetime | None, period: LimitPeriod, now: datetime) -> bool:
    """
    Tells whether `now` falls in a later limit period than `last_reset_at`.

    Calendar periods roll over on the first day of the day/month/quarter/year;
    weekly periods roll over seven days after the last reset.
    """
    if last_reset_at is None:
        return True

    if period == LimitPeriod.DAILY:
        return now.date() != last_reset_at.date()
    if period == LimitPeriod.WEEKLY:
        return (now - last_reset_at).days >= 7
    if period == LimitPeriod.MONTHLY:
        return (now.year, now.month) != (last_reset_at.year, last_reset_at.month)
    if period == LimitPeriod.QUARTERLY:
        return (now.year, _quarter(now)) != (last_reset_at.year, _quarter(last_reset_at))
    if period == LimitPeriod.YEARLY:
        return now.year != last_reset_at.year
    return False
