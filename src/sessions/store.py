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
Event Store Module

Owns every session event: its schedule, its metadata and its roster.
All mutations are synchronous in-memory steps.
"""

import logging
from datetime import datetime, timedelta
from typing import Iterable, Iterator, Optional

import pytz

from .errors import NotFoundError, ValidationError
from .locations import validate_location
from .models import Event, EventFields, EventSummary, ToggleOutcome, UserIdentity
from .time_parser import (
    format_time,
    normalize_token,
    resolve_date,
    resolve_instant,
    resolve_time,
)

logger = logging.getLogger("grimpebot.sessions.store")


def validate_fields(fields: EventFields, now: datetime, tz: pytz.BaseTzInfo) -> EventFields:
    """
    Validate raw event fields and return their canonical form.

    Args:
        fields: Raw date, time, location and info strings
        now: Reference instant for relative date tokens
        tz: Local zone

    Returns:
        EventFields with a trimmed date token, canonical time label,
        canonical venue name and `None` for empty info

    Raises:
        ValidationError: DateError, TimeError or LocationError
    """
    date_token = (fields.date_token or "").strip()
    resolve_date(date_token, now.astimezone(tz))
    time_label = format_time(resolve_time(fields.time_label or ""))
    location = validate_location(fields.location)
    info = (fields.info or "").strip() or None
    return EventFields(date_token, time_label, location, info)


class EventStore:
    """
    In-memory map of event key to Event.

    Keys are Discord message IDs handed over by the presentation layer and
    are never generated here.
    """

    def __init__(self, tz: pytz.BaseTzInfo):
        self.tz = tz
        self._events: dict[str, Event] = {}

    def __len__(self) -> int:
        return len(self._events)

    def __contains__(self, key: str) -> bool:
        return key in self._events

    def keys(self) -> list[str]:
        return list(self._events)

    def events(self) -> Iterator[Event]:
        return iter(list(self._events.values()))

    def get(self, key: str) -> Event:
        event = self._events.get(key)
        if event is None:
            raise NotFoundError(key)
        return event

    def find(self, key: str) -> Optional[Event]:
        return self._events.get(key)

    def create(
        self,
        key: str,
        fields: EventFields,
        author: UserIdentity,
        now: datetime,
    ) -> Event:
        """Validate `fields` and store a new event with an empty roster."""
        if key in self._events:
            raise ValidationError(f"Event {key} already exists")

        valid = validate_fields(fields, now, self.tz)
        event = Event(
            key=key,
            date_token=valid.date_token,
            time_label=valid.time_label,
            location=valid.location,
            info=valid.info,
            author=author,
            created_at=now,
        )
        self._events[key] = event
        logger.info(
            f"Created event {key}: {valid.date_token} {valid.time_label} "
            f"at {valid.location} by {author.name}"
        )
        return event

    def is_participant(self, key: str, user_id: str) -> bool:
        return any(p.user_id == user_id for p in self.get(key).roster)

    def toggle_participant(self, key: str, identity: UserIdentity) -> ToggleOutcome:
        """
        Flip a user's presence in the roster.

        Present users are removed (the others keep their order), absent users
        are appended. Every call flips; callers dedupe their own double clicks.
        """
        event = self.get(key)
        remaining = [p for p in event.roster if p.user_id != identity.user_id]

        if len(remaining) != len(event.roster):
            event.roster = remaining
            logger.info(f"Participant removed: {identity.name} -> event {key}")
            return ToggleOutcome.REMOVED

        event.roster = remaining + [identity]
        logger.info(f"Participant added: {identity.name} -> event {key}")
        return ToggleOutcome.ADDED

    def edit(self, key: str, fields: EventFields, now: datetime) -> Event:
        """
        Replace date, time, location and info in one step.

        Everything is validated before the event is touched. Roster, author
        and creation time are left alone. A date token that is unchanged
        keeps its previous anchor, so "lundi" edited on that Monday still
        means the same day.
        """
        event = self.get(key)
        valid = validate_fields(fields, now, self.tz)

        if normalize_token(valid.date_token) != normalize_token(event.date_token):
            event.anchored_at = now
        event.date_token = valid.date_token
        event.time_label = valid.time_label
        event.location = valid.location
        event.info = valid.info
        event.edited_at = now

        logger.info(f"Edited event {key}: {valid.date_token} {valid.time_label} at {valid.location}")
        return event

    def event_instant(self, event: Event) -> datetime:
        """Start of `event`, resolved against the instant its tokens were entered."""
        return resolve_instant(event.date_token, event.time_label, event.anchor, self.tz)

    def summary(self, key: str) -> EventSummary:
        event = self.get(key)
        return EventSummary(
            key=key,
            date_token=event.date_token,
            time_label=event.time_label,
            location=event.location,
            info=event.info,
            instant=self.event_instant(event),
        )

    def collect_expired(self, now: datetime, grace: timedelta) -> list[str]:
        """Remove and return every event that started more than `grace` ago."""
        cutoff = now - grace
        expired = []

        for key, event in list(self._events.items()):
            try:
                instant = self.event_instant(event)
            except ValidationError:
                # Restored tokens that no longer resolve can never start
                logger.warning(f"Event {key} has an unresolvable schedule, evicting")
                instant = None

            if instant is None or instant < cutoff:
                del self._events[key]
                expired.append(key)

        if expired:
            logger.info(f"{len(expired)} expired event(s) removed from memory")
        return expired

    def delete(self, key: str) -> Optional[Event]:
        return self._events.pop(key, None)

    def restore(self, events: Iterable[Event]) -> int:
        """Replace the whole store with previously persisted events."""
        self._events = {event.key: event for event in events}
        return len(self._events)
