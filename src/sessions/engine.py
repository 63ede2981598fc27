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
Session Engine

Entry point used by the Discord layer. Every inbound call returns a Result
instead of raising, so command handlers only have to render it.

Mutations run synchronously to completion before anything is awaited;
awaits only happen for the presenter and for saving.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, Optional

from .config import SessionConfig
from .errors import PermissionDeniedError, SessionError
from .models import Event, EventFields, EventSummary, ReminderOutcome, ToggleOutcome, UserIdentity
from .persistence import PersistenceGateway
from .presenter import SessionPresenter
from .recovery import RecoveryCoordinator, RecoveryReport
from .reminders import ReminderRegistry
from .state import EngineState
from .store import EventStore, validate_fields
from .sweeper import Sweeper

logger = logging.getLogger("grimpebot.sessions.engine")


class Outcome(Enum):
    VALID = "valid"
    CREATED = "created"
    ADDED = "added"
    REMOVED = "removed"
    ALREADY_PRESENT = "already_present"
    NOT_PRESENT = "not_present"
    SCHEDULED = "scheduled"
    CANCELLED = "cancelled"
    EDITED = "edited"


_TOGGLE_OUTCOMES = {ToggleOutcome.ADDED: Outcome.ADDED, ToggleOutcome.REMOVED: Outcome.REMOVED}
_REMINDER_OUTCOMES = {
    ReminderOutcome.SCHEDULED: Outcome.SCHEDULED,
    ReminderOutcome.CANCELLED: Outcome.CANCELLED,
}


@dataclass
class Result:
    """Outcome of an inbound operation."""

    ok: bool
    outcome: Optional[Outcome] = None
    event: Optional[Event] = None
    error: Optional[SessionError] = None

    @property
    def message(self) -> str:
        return str(self.error) if self.error else ""

    @classmethod
    def success(cls, outcome: Outcome, event: Optional[Event] = None) -> "Result":
        return cls(ok=True, outcome=outcome, event=event)

    @classmethod
    def failure(cls, error: SessionError) -> "Result":
        return cls(ok=False, error=error)


class SessionEngine:
    """
    Owns the engine state and drives recovery and sweeping.

    Capabilities are taken from SessionConfig: persistence can be switched
    off entirely, and editing can be restricted to privileged users.
    """

    def __init__(
        self,
        config: SessionConfig,
        presenter: SessionPresenter,
        clock: Optional[Callable[[], datetime]] = None,
        state: Optional[EngineState] = None,
    ):
        """
        Initialize the engine.

        Args:
            config: Session configuration
            presenter: Outbound collaborator (Discord, or a fake in tests)
            clock: Returns the current instant (defaults to now in the local zone)
            state: Pre-built state, mostly for tests
        """
        self.config = config
        self.tz = config.tz
        self.clock = clock or (lambda: datetime.now(self.tz))
        self.presenter = presenter

        if state is None:
            gateway = PersistenceGateway(config.data_dir) if config.persistence_enabled else None
            state = EngineState(EventStore(self.tz), ReminderRegistry(), gateway)
        self.state = state

        self.recovery = RecoveryCoordinator(self.state, presenter, config)
        self.sweeper = Sweeper(self.state, presenter, config, self.clock)

    @property
    def events(self) -> EventStore:
        return self.state.events

    @property
    def reminders(self) -> ReminderRegistry:
        return self.state.reminders

    async def start(self) -> RecoveryReport:
        """Recover persisted state, then start the periodic sweeps."""
        report = await self.recovery.recover(self.clock())
        self.sweeper.start()
        return report

    def stop(self) -> None:
        self.sweeper.stop()

    # =========================================================================
    # Inbound operations
    # =========================================================================

    def validate_event(
        self,
        raw_date: str,
        raw_time: str,
        raw_location: str,
        raw_info: Optional[str] = None,
    ) -> Result:
        """
        Check raw input before the presentation layer posts a message for it.

        The preview's `created_at` is the instant the input was checked at;
        passing it back to `create_event` resolves relative dates the same way.
        """
        now = self.clock()
        try:
            fields = validate_fields(
                EventFields(raw_date, raw_time, raw_location, raw_info), now, self.tz
            )
        except SessionError as e:
            return Result.failure(e)

        preview = Event(
            key="",
            date_token=fields.date_token,
            time_label=fields.time_label,
            location=fields.location,
            info=fields.info,
            author=UserIdentity(user_id=""),
            created_at=now,
        )
        return Result.success(Outcome.VALID, preview)

    async def create_event(
        self,
        key: str,
        raw_date: str,
        raw_time: str,
        raw_location: str,
        raw_info: Optional[str],
        author: UserIdentity,
        now: Optional[datetime] = None,
    ) -> Result:
        """
        Store a new session under the key of its posted message.

        `now` defaults to the engine clock; pass the preview's `created_at`
        to keep the day that was validated.
        """
        try:
            event = self.events.create(
                key,
                EventFields(raw_date, raw_time, raw_location, raw_info),
                author,
                now or self.clock(),
            )
        except SessionError as e:
            return Result.failure(e)

        self.reminders.ensure_set(key)
        await self.state.save()
        return Result.success(Outcome.CREATED, event)

    async def toggle_participant(self, key: str, identity: UserIdentity) -> Result:
        """Flip `identity` in or out of the roster."""
        try:
            toggled = self.events.toggle_participant(key, identity)
        except SessionError as e:
            return Result.failure(e)

        event = self.events.get(key)
        await self._notify_roster(event)
        await self.state.save()
        return Result.success(_TOGGLE_OUTCOMES[toggled], event)

    async def join(self, key: str, identity: UserIdentity) -> Result:
        """Add `identity` unless already present."""
        try:
            present = self.events.is_participant(key, identity.user_id)
        except SessionError as e:
            return Result.failure(e)

        if present:
            return Result.success(Outcome.ALREADY_PRESENT, self.events.get(key))
        return await self.toggle_participant(key, identity)

    async def leave(self, key: str, identity: UserIdentity) -> Result:
        """Remove `identity` if present."""
        try:
            present = self.events.is_participant(key, identity.user_id)
        except SessionError as e:
            return Result.failure(e)

        if not present:
            return Result.success(Outcome.NOT_PRESENT, self.events.get(key))
        return await self.toggle_participant(key, identity)

    async def toggle_reminder(self, key: str, user_id: str) -> Result:
        """Schedule a reminder one lead time before the session, or cancel it."""
        now = self.clock()
        try:
            event = self.events.get(key)
            toggled = self.reminders.schedule(
                key,
                user_id,
                self.events.event_instant(event),
                self.config.reminder_lead,
                now,
            )
        except SessionError as e:
            return Result.failure(e)

        await self.state.save()
        return Result.success(_REMINDER_OUTCOMES[toggled], event)

    async def edit_event(
        self,
        key: str,
        raw_date: str,
        raw_time: str,
        raw_location: str,
        raw_info: Optional[str],
        privileged: bool = False,
    ) -> Result:
        """
        Replace the schedule and details of a session.

        Pending reminders follow the new start time.
        """
        if self.config.edit_requires_privilege and not privileged:
            return Result.failure(PermissionDeniedError())

        try:
            event = self.events.edit(
                key, EventFields(raw_date, raw_time, raw_location, raw_info), self.clock()
            )
        except SessionError as e:
            return Result.failure(e)

        fire_at = self.events.event_instant(event) - self.config.reminder_lead
        moved = self.reminders.reschedule(key, fire_at)
        if moved:
            logger.info(f"Moved {moved} reminder(s) of event {key} to {fire_at}")

        await self.state.save()
        return Result.success(Outcome.EDITED, event)

    # =========================================================================
    # Queries
    # =========================================================================

    def get_event(self, key: str) -> Optional[Event]:
        return self.events.find(key)

    def event_instant(self, event: Event) -> datetime:
        return self.events.event_instant(event)

    def summary(self, key: str) -> EventSummary:
        return self.events.summary(key)

    async def _notify_roster(self, event: Event) -> None:
        try:
            await self.presenter.on_roster_changed(event.key, list(event.roster))
        except Exception as e:
            logger.warning(f"Failed to update roster display of event {event.key}: {e}")
