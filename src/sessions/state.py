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

"""Engine state shared by every session component."""

import logging
from dataclasses import dataclass
from typing import Optional

from .persistence import PersistenceGateway
from .reminders import ReminderRegistry
from .store import EventStore

logger = logging.getLogger("grimpebot.sessions.state")


@dataclass
class EngineState:
    """
    The two stores, plus where to save them.

    One instance lives as long as the process and is handed to the sweeper,
    the recovery coordinator and the engine. `gateway` is None when
    persistence is disabled.
    """

    events: EventStore
    reminders: ReminderRegistry
    gateway: Optional[PersistenceGateway] = None

    def drop_orphan_reminders(self) -> list[str]:
        """Drop reminder sets whose event is gone."""
        orphans = [key for key in self.reminders.keys() if key not in self.events]
        for key in orphans:
            self.reminders.drop_set(key)
        return orphans

    def forget(self, key: str) -> None:
        self.events.delete(key)
        self.reminders.drop_set(key)

    async def save(self) -> bool:
        """
        Persist both stores.

        Returns:
            True if written, False if persistence is off or the write failed
        """
        if self.gateway is None:
            return False
        try:
            await self.gateway.save(self.events, self.reminders)
            return True
        except Exception as e:
            logger.error(f"Failed to save session state: {e}", exc_info=True)
            return False
