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
Reminder Registry Module

Per-event, per-user reminder fire times. Events are referenced by key only;
the registry never owns them.
"""

import logging
from datetime import datetime, timedelta
from typing import Iterable, Iterator

from .errors import PastDueError
from .models import DueReminder, ReminderOutcome

logger = logging.getLogger("grimpebot.sessions.reminders")


class ReminderRegistry:
    """Maps event key -> {user_id: fire_at}."""

    def __init__(self):
        self._sets: dict[str, dict[str, datetime]] = {}

    def __contains__(self, key: str) -> bool:
        return key in self._sets

    def keys(self) -> list[str]:
        return list(self._sets)

    def items(self) -> Iterator[tuple[str, dict[str, datetime]]]:
        return iter([(key, dict(entries)) for key, entries in self._sets.items()])

    def pending_count(self) -> int:
        return sum(len(entries) for entries in self._sets.values())

    def ensure_set(self, key: str) -> None:
        self._sets.setdefault(key, {})

    def is_scheduled(self, key: str, user_id: str) -> bool:
        return user_id in self._sets.get(key, {})

    def schedule(
        self,
        key: str,
        user_id: str,
        event_instant: datetime,
        lead_time: timedelta,
        now: datetime,
    ) -> ReminderOutcome:
        """
        Toggle a user's reminder for an event.

        Args:
            key: Event key
            user_id: Discord user ID
            event_instant: Resolved start of the event
            lead_time: How long before the start the reminder fires
            now: Reference instant

        Returns:
            SCHEDULED for a new entry, CANCELLED if one was pending

        Raises:
            PastDueError: If the reminder would fire now or in the past
        """
        fire_at = event_instant - lead_time
        if fire_at <= now:
            raise PastDueError(key)

        entries = self._sets.setdefault(key, {})
        if user_id in entries:
            del entries[user_id]
            logger.info(f"Reminder cancelled: user {user_id} -> event {key}")
            return ReminderOutcome.CANCELLED

        entries[user_id] = fire_at
        logger.info(f"Reminder scheduled: user {user_id} -> event {key} at {fire_at}")
        return ReminderOutcome.SCHEDULED

    def reschedule(self, key: str, fire_at: datetime) -> int:
        """Move every pending reminder of `key` to `fire_at`. Returns how many moved."""
        entries = self._sets.get(key, {})
        for user_id in entries:
            entries[user_id] = fire_at
        return len(entries)

    def collect_due(self, now: datetime) -> list[DueReminder]:
        """Remove and return every entry whose fire time has come."""
        due = []
        for key, entries in self._sets.items():
            for user_id, fire_at in list(entries.items()):
                if fire_at <= now:
                    del entries[user_id]
                    due.append(DueReminder(key, user_id, fire_at))

        due.sort(key=lambda item: item.fire_at)
        return due

    def drop_set(self, key: str) -> bool:
        return self._sets.pop(key, None) is not None

    def restore(self, sets: Iterable[tuple[str, dict[str, datetime]]]) -> int:
        """Replace all reminder sets with previously persisted ones."""
        self._sets = {key: dict(entries) for key, entries in sets}
        return self.pending_count()
