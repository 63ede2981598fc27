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
Session Models

Plain data records shared by the stores, the persistence layer and the
Discord adapter.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


@dataclass(frozen=True)
class UserIdentity:
    """A Discord user as seen by the engine. Only `user_id` is compared."""

    user_id: str
    username: str = ""
    display_name: str = ""
    avatar_url: Optional[str] = None

    @property
    def name(self) -> str:
        return self.display_name or self.username or self.user_id


@dataclass(frozen=True)
class EventFields:
    """Editable part of an event: raw strings on input, canonical once validated."""

    date_token: str
    time_label: str
    location: str
    info: Optional[str] = None


@dataclass
class Event:
    """A scheduled session keyed by its Discord message ID."""

    key: str
    date_token: str
    time_label: str
    location: str
    info: Optional[str]
    author: UserIdentity
    created_at: datetime
    roster: list[UserIdentity] = field(default_factory=list)
    edited_at: Optional[datetime] = None
    # Set when an edit changes the date token; None means created_at
    anchored_at: Optional[datetime] = None

    @property
    def fields(self) -> EventFields:
        return EventFields(self.date_token, self.time_label, self.location, self.info)

    @property
    def anchor(self) -> datetime:
        """Instant relative tokens ("demain", "lundi") were entered at."""
        return self.anchored_at or self.created_at


@dataclass(frozen=True)
class EventSummary:
    """What a reminder notification needs to know about its event."""

    key: str
    date_token: str
    time_label: str
    location: str
    info: Optional[str]
    instant: datetime


@dataclass(frozen=True)
class DueReminder:
    """A reminder entry removed from the registry because it is due."""

    key: str
    user_id: str
    fire_at: datetime


class ToggleOutcome(Enum):
    ADDED = "added"
    REMOVED = "removed"


class ReminderOutcome(Enum):
    SCHEDULED = "scheduled"
    CANCELLED = "cancelled"
