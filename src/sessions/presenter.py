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
Presenter Protocol

The engine never talks to Discord itself. Whatever renders sessions (the
bot, or a fake in tests) implements this protocol and receives the events
the engine raises. Implementations raise DeliveryError when the outside
world refuses an update; the engine logs it and keeps its own state.
"""

from typing import Protocol

from .models import EventSummary, UserIdentity


class SessionPresenter(Protocol):
    async def message_exists(self, key: str) -> bool:
        """Whether the message behind `key` is still posted."""
        ...

    async def on_reminder_due(self, key: str, user_id: str, summary: EventSummary) -> None:
        """Notify `user_id` that the session starts soon."""
        ...

    async def on_event_expired(self, key: str) -> None:
        """Remove the message of an expired session."""
        ...

    async def on_roster_changed(self, key: str, roster: list[UserIdentity]) -> None:
        """Re-render the session after someone joined or left."""
        ...
