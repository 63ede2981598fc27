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
Sweeper Module

Background loops for delivering due reminders and evicting expired sessions.
Uses discord.ext.tasks for scheduling; each loop body is also callable
directly with an explicit `now`.
"""

import asyncio
import logging
from datetime import datetime
from typing import Callable

from discord.ext import tasks

from .config import SessionConfig
from .presenter import SessionPresenter
from .state import EngineState

logger = logging.getLogger("grimpebot.sessions.sweeper")


class Sweeper:
    """
    Two independent periodic passes over the engine state.

    Each pass holds its own lock for its whole duration. A pass that starts
    while the previous one of the same kind still runs is skipped, so a slow
    Discord call can never cause a reminder to be sent twice or an event to
    be evicted twice.
    """

    def __init__(
        self,
        state: EngineState,
        presenter: SessionPresenter,
        config: SessionConfig,
        clock: Callable[[], datetime],
    ):
        """
        Initialize the sweeper.

        Args:
            state: Shared engine state
            presenter: Receives reminder and expiry notifications
            config: Intervals, lead time and grace window
            clock: Returns the current instant
        """
        self.state = state
        self.presenter = presenter
        self.config = config
        self.clock = clock
        self._reminder_guard = asyncio.Lock()
        self._cleanup_guard = asyncio.Lock()
        self._started = False

        self._reminder_loop.change_interval(seconds=config.reminder_check_seconds)
        self._cleanup_loop.change_interval(minutes=config.cleanup_interval_minutes)

    @property
    def is_running(self) -> bool:
        return self._started

    def start(self) -> None:
        """Start both loops."""
        if not self._started:
            self._reminder_loop.start()
            self._cleanup_loop.start()
            self._started = True
            logger.info(
                f"Sweeper started (reminders every {self.config.reminder_check_seconds}s, "
                f"cleanup every {self.config.cleanup_interval_minutes}min)"
            )

    def stop(self) -> None:
        """Stop both loops."""
        if self._started:
            self._reminder_loop.cancel()
            self._cleanup_loop.cancel()
            self._started = False
            logger.info("Sweeper stopped")

    @tasks.loop(seconds=60)
    async def _reminder_loop(self) -> None:
        try:
            await self.run_reminder_pass(self.clock())
        except Exception as e:
            logger.error(f"Error in reminder loop: {e}", exc_info=True)

    @tasks.loop(minutes=60)
    async def _cleanup_loop(self) -> None:
        try:
            await self.run_cleanup_pass(self.clock())
        except Exception as e:
            logger.error(f"Error in cleanup loop: {e}", exc_info=True)

    async def run_reminder_pass(self, now: datetime) -> int:
        """
        Deliver every reminder due at `now`.

        Entries are removed from the registry before delivery is attempted;
        a failed delivery is logged and not retried.

        Returns:
            Number of reminders handed to the presenter successfully
        """
        if self._reminder_guard.locked():
            logger.debug("Reminder pass still running, skipping tick")
            return 0

        async with self._reminder_guard:
            due = self.state.reminders.collect_due(now)
            if not due:
                return 0

            logger.info(f"Processing {len(due)} due reminder(s)")
            delivered = 0

            for reminder in due:
                if reminder.key not in self.state.events:
                    logger.debug(f"Dropping reminder for vanished event {reminder.key}")
                    continue

                try:
                    summary = self.state.events.summary(reminder.key)
                    await self.presenter.on_reminder_due(reminder.key, reminder.user_id, summary)
                    delivered += 1
                    logger.info(
                        f"Reminder sent to user {reminder.user_id} for event {reminder.key}"
                    )
                except Exception as e:
                    logger.warning(
                        f"Failed to deliver reminder to user {reminder.user_id} "
                        f"for event {reminder.key}: {e}"
                    )

            await self.state.save()
            return delivered

    async def run_cleanup_pass(self, now: datetime) -> list[str]:
        """
        Evict sessions that ended more than the grace window ago.

        Returns:
            Keys of the evicted events
        """
        if self._cleanup_guard.locked():
            logger.debug("Cleanup pass still running, skipping tick")
            return []

        async with self._cleanup_guard:
            expired = self.state.events.collect_expired(now, self.config.expiry_grace)
            for key in expired:
                self.state.reminders.drop_set(key)
            orphans = self.state.drop_orphan_reminders()

            if orphans:
                logger.info(f"Dropped {len(orphans)} orphaned reminder set(s)")

            if expired or orphans:
                await self.state.save()

            for key in expired:
                try:
                    await self.presenter.on_event_expired(key)
                except Exception as e:
                    logger.warning(f"Failed to remove message of expired event {key}: {e}")

            return expired
