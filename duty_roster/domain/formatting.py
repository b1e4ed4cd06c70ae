"""Date, time and text formatting shared by the API, reminders and PDF export."""

import re
from datetime import date, timedelta
from typing import Optional

MILITARY_TIME = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")
PHONE_NUMBER = re.compile(r"^\+255\d{9}$")

UNIVERSITY_OPTIONS = [
    "KIUT",
    "UDSM",
    "IFM",
    "ISW",
    "TUDARCO",
    "WATER",
    "NIT",
    "DIT",
    "CBE",
    "ARDHI",
]

DAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


def format_date(value: date) -> str:
    """Return e.g. "Wednesday, January 22, 2025"."""
    return f"{value.strftime('%A, %B')} {value.day}, {value.year}"


def day_name(value: date) -> str:
    return DAY_NAMES[value.weekday()]


def is_military_time(time: str) -> bool:
    return MILITARY_TIME.match(time) is not None


def format_time(time: str) -> str:
    """Format "HH:MM" as "h:MM AM|PM"."""
    hours, minutes = time.split(":")
    hour = int(hours)
    ampm = "PM" if hour >= 12 else "AM"
    hour12 = hour % 12 or 12
    return f"{hour12}:{minutes} {ampm}"


def convert_to_12_hour_format(time: str) -> str:
    if not is_military_time(time):
        return time
    return format_time(time)


def convert_to_24_hour_format(time: str) -> str:
    if is_military_time(time):
        return time

    time_part, _, ampm = time.partition(" ")
    hours, minutes = time_part.split(":")
    hour = int(hours)
    ampm = ampm.strip().upper()

    if ampm == "PM" and hour < 12:
        hour += 12
    elif ampm == "AM" and hour == 12:
        hour = 0

    return f"{hour:02d}:{minutes}"


def is_valid_phone_number(phone_number: str) -> bool:
    """Tanzanian numbers only: +255 followed by 9 digits."""
    return PHONE_NUMBER.match(phone_number) is not None


def format_bible_reference(
    book: str, chapter: int, start_verse: int, end_verse: Optional[int] = None
) -> str:
    if end_verse and end_verse > start_verse:
        return f"{book} {chapter}:{start_verse}-{end_verse}"
    return f"{book} {chapter}:{start_verse}"


def start_of_week(value: date) -> date:
    """Monday of the week containing value."""
    return value - timedelta(days=value.weekday())


def end_of_week(week_start: date) -> date:
    return week_start + timedelta(days=6)
