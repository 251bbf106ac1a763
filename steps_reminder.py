from __future__ import annotations
import datetime as dt

REMINDER_TITLE = "10K Steps Challenge Reminder"
REMINDER_BODY = "Don't forget to log your steps for today!"


def is_reminder_due(now: dt.datetime, hour: int = 20, minute: int = 0) -> bool:
    """True during the single configured minute of the day."""
    return now.hour == hour and now.minute == minute


def should_fire(now: dt.datetime, last_fired: dt.date | None, hour: int = 20, minute: int = 0) -> bool:
    # The page polls once a minute; a rerun inside the same minute must not fire twice
    if last_fired is not None and last_fired == now.date():
        return False
    return is_reminder_due(now, hour, minute)
