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
Session Slash Commands

/grimpe posts a climbing session to the session channel.
"""

import dataclasses
import logging
from typing import Optional

import discord
from discord import app_commands
from discord.ext import commands

from sessions import VALID_LOCATIONS, BotConfig, DeliveryError, SessionEngine

from .embeds import build_session_embed
from .presenter import DiscordPresenter
from .views import SessionView, identity_from_interaction, is_admin, reply

logger = logging.getLogger("grimpebot.commands.session")

# Role ping disappears after this many seconds
PING_TTL = 10.0


class SessionCommands(commands.Cog):
    """
    Slash commands for climbing sessions.

    Commands:
    - /grimpe - Organise a climbing session
    """

    def __init__(
        self,
        bot: commands.Bot,
        engine: SessionEngine,
        presenter: DiscordPresenter,
        config: BotConfig,
    ):
        self.bot = bot
        self.engine = engine
        self.presenter = presenter
        self.config = config

    @app_commands.command(name="grimpe", description="Organiser une session de grimpe")
    @app_commands.describe(
        date="Date (ex: 25/10, aujourd'hui, demain, lundi)",
        heure="Heure entre 7h et 23h (ex: 18h30, 18, 18.30)",
        localisation="Lieu de la session",
        infos="Informations complémentaires",
    )
    @app_commands.choices(
        localisation=[app_commands.Choice(name=name, value=name) for name in VALID_LOCATIONS]
    )
    async def grimpe(
        self,
        interaction: discord.Interaction,
        date: str,
        heure: str,
        localisation: app_commands.Choice[str],
        infos: Optional[str] = None,
    ):
        """Create a session message and register it with the engine."""
        if not self.config.command_allowed_in(interaction.channel_id):
            await reply(
                interaction,
                "❌ Cette commande ne peut être utilisée que dans les channels autorisés !",
            )
            return

        checked = self.engine.validate_event(date, heure, localisation.value, infos)
        if not checked.ok:
            await reply(interaction, f"❌ {checked.message}")
            return

        author = identity_from_interaction(interaction)
        preview = dataclasses.replace(checked.event, author=author)

        try:
            channel = await self.presenter.channel()
            message = await channel.send(
                embed=build_session_embed(preview, self.engine.event_instant(preview)),
                view=SessionView(self.engine, self.presenter, show_edit=is_admin(interaction)),
            )
        except (DeliveryError, discord.HTTPException) as e:
            logger.error(f"Failed to post session: {e}", exc_info=True)
            await reply(interaction, "❌ Impossible de publier la session.")
            return

        created = await self.engine.create_event(
            str(message.id),
            date,
            heure,
            localisation.value,
            infos,
            author,
            now=checked.event.created_at,
        )
        if not created.ok:
            try:
                await message.delete()
            except discord.HTTPException as e:
                logger.warning(f"Failed to remove unregistered session message {message.id}: {e}")
            await reply(interaction, f"❌ {created.message}")
            return

        if self.config.role_id:
            try:
                await channel.send(f"<@&{self.config.role_id}>", delete_after=PING_TTL)
            except discord.HTTPException as e:
                logger.warning(f"Failed to ping session role: {e}")

        await reply(interaction, "✅ Session de grimpe créée !")
        logger.info(f"New event created: {message.id} by {author.name}")
