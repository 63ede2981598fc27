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
Recovery Module

Startup reconciliation: reload the last snapshot, drop what expired while the
bot was offline, and forget sessions whose Discord message was deleted.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime

from .config import SessionConfig
from .errors import CorruptDataError
from .presenter import SessionPresenter
from .state import EngineState

logger = logging.getLogger("grimpebot.sessions.recovery")


@dataclass
class RecoveryReport:
    """What happened during startup recovery."""

    loaded: int = 0
    expired: list[str] = field(default_factory=list)
    purged: list[str] = field(default_factory=list)
    unchecked: list[str] = field(default_factory=list)
    corrupt: bool = False

    @property
    def remaining(self) -> int:
        return self.loaded - len(self.expired) - len(self.purged)


class RecoveryCoordinator:
    """Runs once, before the sweeper starts."""

    def __init__(self, state: EngineState, presenter: SessionPresenter, config: SessionConfig):
        self.state = state
        self.presenter = presenter
        self.config = config

    async def recover(self, now: datetime) -> RecoveryReport:
        """
        Restore and reconcile the engine state.

        A corrupt snapshot leaves the engine empty. A failed existence check
        keeps the event and moves on to the next one.

        Args:
            now: Reference instant for expiry

        Returns:
            RecoveryReport describing what was loaded and removed
        """
        report = RecoveryReport()

        if self.state.gateway is not None:
            try:
                snapshot = await self.state.gateway.load()
            except CorruptDataError as e:
                logger.warning(f"Persisted sessions unreadable, starting empty: {e}")
                report.corrupt = True
            else:
                report.loaded = self.state.events.restore(snapshot.events)
                self.state.reminders.restore(snapshot.reminders)

        report.expired = self.state.events.collect_expired(now, self.config.expiry_grace)
        for key in report.expired:
            self.state.reminders.drop_set(key)
            try:
                await self.presenter.on_event_expired(key)
            except Exception as e:
                logger.info(f"Message {key} already deleted or unreachable: {e}")

        for key in self.state.events.keys():
            try:
                exists = await self.presenter.message_exists(key)
            except Exception as e:
                logger.warning(f"Could not check message {key}, keeping event: {e}")
                report.unchecked.append(key)
                continue

            if not exists:
                self.state.forget(key)
                report.purged.append(key)
                logger.info(f"Message {key} no longer exists, event removed")

        orphans = self.state.drop_orphan_reminders()

        if report.expired or report.purged or orphans:
            await self.state.save()

        logger.info(
            f"Recovery complete: {report.loaded} loaded, {len(report.expired)} expired, "
            f"{len(report.purged)} purged, {report.remaining} active"
        )
        return report
