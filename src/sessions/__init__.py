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
Climbing Sessions Package

Session scheduling, rosters and one-time reminders, persisted across restarts.
"""

from .config import BotConfig, SessionConfig
from .engine import Outcome, Result, SessionEngine
from .errors import (
    CorruptDataError,
    DateError,
    DeliveryError,
    LocationError,
    NotFoundError,
    PastDueError,
    PermissionDeniedError,
    SessionError,
    TimeError,
    ValidationError,
)
from .locations import VALID_LOCATIONS, validate_location
from .models import Event, EventSummary, UserIdentity
from .presenter import SessionPresenter
from .time_parser import TimeOfDay, day_label, resolve_date, resolve_time

__all__ = [
    "BotConfig",
    "SessionConfig",
    "Outcome",
    "Result",
    "SessionEngine",
    "CorruptDataError",
    "DateError",
    "DeliveryError",
    "LocationError",
    "NotFoundError",
    "PastDueError",
    "PermissionDeniedError",
    "SessionError",
    "TimeError",
    "ValidationError",
    "VALID_LOCATIONS",
    "validate_location",
    "Event",
    "EventSummary",
    "UserIdentity",
    "SessionPresenter",
    "TimeOfDay",
    "day_label",
    "resolve_date",
    "resolve_time",
]
