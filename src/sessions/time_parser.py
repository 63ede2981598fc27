# grimpebot - Discord Climbing Session Bot
# Copyright (c) 2025-2026 Slash Daemon slashdaemon@protonmail.com
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published by
# the Free Software Foundation, version 3 of the License.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE. See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with this program. If not, see <https://www.gnu.org/licenses/>.
#
# Commercial licensing: [slashdaemon@protonmail.com]

"""
Time Parser Module

Parses the relaxed French date and time tokens typed into /grimpe into
absolute instants. Supports:
- Relative days: "aujourd'hui", "demain"
- Weekdays: "lundi" ... "dimanche" (next occurrence, never today)
- Day/month pairs: "25/10" (rolls to next year once passed)
- Times: "18h30", "18", "18.30", "18,30", "18:30", "18 30"

Nothing in here reads the wall clock: the reference "now" is always passed in.
"""

import re
import unicodedata
from datetime import date, datetime, timedelta
from typing import NamedTuple

import pytz

from .errors import DateError, TimeError

TODAY_TOKENS = ("aujourd'hui", "aujourdhui")
TOMORROW_TOKENS = ("demain",)

# Index matches date.weekday(): Monday is 0
WEEKDAYS = ("lundi", "mardi", "mercredi", "jeudi", "vendredi", "samedi", "dimanche")

MIN_HOUR = 7
MAX_HOUR = 23

_DAY_MONTH_RE = re.compile(r"^(\d{1,2})\s*/\s*(\d{1,2})$")
_TIME_RE = re.compile(r"^(\d{1,2})(?:\s*[h:.,\s]\s*(\d{1,2})?)?$")


class TimeOfDay(NamedTuple):
    """Hour and minute of a session start."""

    hour: int
    minute: int

    @property
    def label(self) -> str:
        return format_time(self)


def normalize_token(token: str) -> str:
    """Lowercase, trim and strip diacritics; typographic apostrophes become '."""
    decomposed = unicodedata.normalize("NFKD", token.strip().lower())
    stripped = "".join(c for c in decomposed if not unicodedata.combining(c))
    return stripped.replace("’", "'").replace("`", "'")


def resolve_date(token: str, now: datetime) -> date:
    """
    Resolve a date token relative to `now`.

    Args:
        token: Raw date token (e.g., "demain", "lundi", "25/10")
        now: Reference instant, already in the local zone

    Returns:
        The calendar day the token designates

    Raises:
        DateError: If the token is not recognised or not a real calendar day
    """
    normalized = normalize_token(token)
    today = now.date()

    if normalized in TODAY_TOKENS:
        return today

    if normalized in TOMORROW_TOKENS:
        return today + timedelta(days=1)

    if normalized in WEEKDAYS:
        target = WEEKDAYS.index(normalized)
        days_ahead = (target - today.weekday()) % 7
        # Same weekday means next week, never today
        return today + timedelta(days=days_ahead or 7)

    match = _DAY_MONTH_RE.match(normalized)
    if match:
        day, month = int(match.group(1)), int(match.group(2))
        if not (1 <= day <= 31 and 1 <= month <= 12):
            raise DateError(token)
        try:
            candidate = date(today.year, month, day)
        except ValueError:
            candidate = None
        if candidate is None or candidate < today:
            try:
                candidate = date(today.year + 1, month, day)
            except ValueError:
                raise DateError(token)
        return candidate

    raise DateError(token)


def resolve_time(token: str) -> TimeOfDay:
    """
    Resolve a time token into an hour and minute.

    Raises:
        TimeError: If the token is malformed or outside 7h-23h59
    """
    match = _TIME_RE.match(token.strip().lower())
    if not match:
        raise TimeError(token)

    hour = int(match.group(1))
    minute = int(match.group(2)) if match.group(2) else 0

    if hour < MIN_HOUR or hour > MAX_HOUR or minute > 59:
        raise TimeError(token)

    return TimeOfDay(hour, minute)


def format_time(time_of_day: TimeOfDay) -> str:
    """Canonical label: "18h" on the hour, "18h05" otherwise."""
    if time_of_day.minute == 0:
        return f"{time_of_day.hour}h"
    return f"{time_of_day.hour}h{time_of_day.minute:02d}"


def combine(day: date, time_of_day: TimeOfDay, tz: pytz.BaseTzInfo) -> datetime:
    """Localize `day` at `time_of_day` in `tz`, seconds and microseconds zeroed."""
    naive = datetime(day.year, day.month, day.day, time_of_day.hour, time_of_day.minute)
    return tz.localize(naive)


def resolve_instant(
    date_token: str, time_token: str, now: datetime, tz: pytz.BaseTzInfo
) -> datetime:
    """Resolve both tokens against `now` (converted to `tz`) into one instant."""
    local_now = now.astimezone(tz)
    return combine(resolve_date(date_token, local_now), resolve_time(time_token), tz)


def day_label(date_token: str, day: date) -> str:
    """Display name for the session day ("Aujourd'hui", "Lundi", ...)."""
    if normalize_token(date_token) in TODAY_TOKENS:
        return "Aujourd'hui"
    return WEEKDAYS[day.weekday()].capitalize()
