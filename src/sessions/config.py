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
Session Configuration

Configurable parameters for the session engine and the Discord adapter.
Values can be overridden via environment variables.
"""

import logging
import os
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Optional

import pytz

logger = logging.getLogger("grimpebot.sessions.config")


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


@dataclass
class SessionConfig:
    """Configuration for the session engine."""

    # Single implicit local zone for every date and time
    timezone: str = "Europe/Paris"

    # Reminder and expiry windows
    reminder_lead_minutes: int = 60
    expiry_grace_hours: int = 3

    # Sweep intervals
    reminder_check_seconds: int = 60
    cleanup_interval_minutes: int = 60

    # Capabilities
    persistence_enabled: bool = True
    data_dir: str = "data"
    edit_requires_privilege: bool = True

    @property
    def reminder_lead(self) -> timedelta:
        return timedelta(minutes=self.reminder_lead_minutes)

    @property
    def expiry_grace(self) -> timedelta:
        return timedelta(hours=self.expiry_grace_hours)

    @property
    def tz(self) -> pytz.BaseTzInfo:
        """The configured zone, falling back to UTC when the name is unknown."""
        try:
            return pytz.timezone(self.timezone)
        except pytz.UnknownTimeZoneError:
            logger.warning(f"Invalid timezone '{self.timezone}', falling back to UTC")
            return pytz.UTC

    @classmethod
    def from_env(cls) -> "SessionConfig":
        """Create config from environment variables with defaults."""
        return cls(
            timezone=os.getenv("SESSION_TIMEZONE", "Europe/Paris"),
            reminder_lead_minutes=int(os.getenv("SESSION_REMINDER_LEAD_MINUTES", "60")),
            expiry_grace_hours=int(os.getenv("SESSION_EXPIRY_GRACE_HOURS", "3")),
            reminder_check_seconds=int(
                os.getenv("SESSION_REMINDER_CHECK_SECONDS", "60")
            ),
            cleanup_interval_minutes=int(
                os.getenv("SESSION_CLEANUP_INTERVAL_MINUTES", "60")
            ),
            persistence_enabled=_env_flag("SESSION_PERSISTENCE_ENABLED", "true"),
            data_dir=os.getenv("SESSION_DATA_DIR", "data"),
            edit_requires_privilege=_env_flag("SESSION_EDIT_REQUIRES_PRIVILEGE", "true"),
        )


@dataclass
class BotConfig:
    """Configuration for the Discord side of the bot."""

    token: Optional[str] = None
    session_channel_id: Optional[int] = None
    role_id: Optional[int] = None
    command_channel_ids: list[int] = field(default_factory=list)

    def command_allowed_in(self, channel_id: Optional[int]) -> bool:
        """An empty allow-list means the command works everywhere."""
        if not self.command_channel_ids:
            return True
        return channel_id in self.command_channel_ids

    @classmethod
    def from_env(cls) -> "BotConfig":
        """Create config from environment variables with defaults."""
        channel_id = os.getenv("SESSION_CHANNEL_ID")
        role_id = os.getenv("SESSION_ROLE_ID")
        allowed = os.getenv("SESSION_COMMAND_CHANNELS", "")
        return cls(
            token=os.getenv("DISCORD_BOT_TOKEN"),
            session_channel_id=int(channel_id) if channel_id else None,
            role_id=int(role_id) if role_id else None,
            command_channel_ids=[
                int(part) for part in allowed.split(",") if part.strip()
            ],
        )
