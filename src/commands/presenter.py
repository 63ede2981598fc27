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
Discord Presenter

Turns the events raised by the session engine into Discord API calls:
reminder DMs, message edits and message deletions.
"""

import logging
from typing import TYPE_CHECKING, Optional

import discord

from sessions import BotConfig, DeliveryError, EventSummary, SessionEngine, UserIdentity

from .embeds import build_reminder_embed, build_session_embed

if TYPE_CHECKING:
    from discord.ext import commands

logger = logging.getLogger("grimpebot.commands.presenter")


class DiscordPresenter:
    """SessionPresenter backed by a live Discord bot."""

    def __init__(self, bot: "commands.Bot", config: BotConfig):
        """
        Initialize the presenter.

        Args:
            bot: Discord bot instance
            config: Holds the channel where session messages live
        """
        self.bot = bot
        self.config = config
        self.engine: Optional[SessionEngine] = None

    def attach(self, engine: SessionEngine) -> None:
        """Give the presenter read access to the events it renders."""
        self.engine = engine

    async def channel(self) -> discord.abc.Messageable:
        """The session channel, from cache or from the API."""
        channel_id = self.config.session_channel_id
        if channel_id is None:
            raise DeliveryError("SESSION_CHANNEL_ID is not configured")

        channel = self.bot.get_channel(channel_id)
        if channel is None:
            try:
                channel = await self.bot.fetch_channel(channel_id)
            except discord.HTTPException as e:
                raise DeliveryError(f"Cannot reach session channel {channel_id}: {e}") from e
        return channel

    async def message_exists(self, key: str) -> bool:
        channel = await self.channel()
        try:
            await channel.fetch_message(int(key))
            return True
        except discord.NotFound:
            return False
        except discord.HTTPException as e:
            raise DeliveryError(f"Cannot fetch message {key}: {e}") from e

    async def on_reminder_due(self, key: str, user_id: str, summary: EventSummary) -> None:
        try:
            user = self.bot.get_user(int(user_id)) or await self.bot.fetch_user(int(user_id))
            await user.send(embed=build_reminder_embed(summary, discord.utils.utcnow()))
        except discord.HTTPException as e:
            raise DeliveryError(f"Cannot DM user {user_id}: {e}") from e

    async def on_event_expired(self, key: str) -> None:
        channel = await self.channel()
        try:
            await channel.get_partial_message(int(key)).delete()
            logger.info(f"Discord message {key} deleted (event expired)")
        except discord.NotFound:
            logger.info(f"Message {key} already deleted or not found")
        except discord.HTTPException as e:
            raise DeliveryError(f"Cannot delete message {key}: {e}") from e

    async def on_roster_changed(self, key: str, roster: list[UserIdentity]) -> None:
        await self.refresh(key)

    async def refresh(self, key: str) -> None:
        """Re-render the embed of `key` from the engine's current state."""
        if self.engine is None:
            return
        event = self.engine.get_event(key)
        if event is None:
            return

        embed = build_session_embed(event, self.engine.event_instant(event))
        channel = await self.channel()
        try:
            await channel.get_partial_message(int(key)).edit(embed=embed)
        except discord.HTTPException as e:
            raise DeliveryError(f"Cannot update message {key}: {e}") from e
