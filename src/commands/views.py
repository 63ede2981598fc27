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
Discord UI Components for Session Messages

Provides the persistent button row under every session and the edit modal.
"""

import logging
from typing import TYPE_CHECKING

import discord

from commands.embeds import lead_label
from sessions import Event, Outcome, SessionEngine, UserIdentity

if TYPE_CHECKING:
    from commands.presenter import DiscordPresenter

logger = logging.getLogger("grimpebot.commands.views")

# Ephemeral replies disappear after this many seconds
REPLY_TTL = 10.0


def identity_from_interaction(interaction: discord.Interaction) -> UserIdentity:
    """Snapshot of the clicking user (nickname wins over username)."""
    user = interaction.user
    return UserIdentity(
        user_id=str(user.id),
        username=user.name,
        display_name=user.display_name,
        avatar_url=str(user.display_avatar.url),
    )


def is_admin(interaction: discord.Interaction) -> bool:
    user = interaction.user
    return isinstance(user, discord.Member) and user.guild_permissions.administrator


async def reply(interaction: discord.Interaction, content: str) -> None:
    """Ephemeral reply that deletes itself after REPLY_TTL seconds."""
    await interaction.response.send_message(content, ephemeral=True, delete_after=REPLY_TTL)


class SessionView(discord.ui.View):
    """
    Buttons under a session message.

    Features:
    - Présent / Absent / Rappel for everyone
    - Modifier only rendered for administrators
    - No timeout; registered once at startup so clicks survive restarts
    """

    def __init__(
        self,
        engine: SessionEngine,
        presenter: "DiscordPresenter",
        show_edit: bool = False,
    ):
        super().__init__(timeout=None)
        self.engine = engine
        self.presenter = presenter

        if not show_edit:
            self.remove_item(self.edit_button)

    @discord.ui.button(
        label="Présent", style=discord.ButtonStyle.success, custom_id="session:present"
    )
    async def present_button(
        self, interaction: discord.Interaction, button: discord.ui.Button
    ):
        """Join the session."""
        key = str(interaction.message.id)
        result = await self.engine.join(key, identity_from_interaction(interaction))

        if not result.ok:
            await reply(interaction, f"❌ {result.message}")
        elif result.outcome is Outcome.ALREADY_PRESENT:
            await reply(interaction, "⚠️ Vous êtes déjà inscrit !")
        else:
            await reply(interaction, "✅ Vous êtes maintenant inscrit à la session !")

    @discord.ui.button(
        label="Absent", style=discord.ButtonStyle.danger, custom_id="session:absent"
    )
    async def absent_button(
        self, interaction: discord.Interaction, button: discord.ui.Button
    ):
        """Leave the session."""
        key = str(interaction.message.id)
        result = await self.engine.leave(key, identity_from_interaction(interaction))

        if not result.ok:
            await reply(interaction, f"❌ {result.message}")
        elif result.outcome is Outcome.NOT_PRESENT:
            await reply(interaction, "⚠️ Vous n'êtes pas inscrit à cette session.")
        else:
            await reply(interaction, "✅ Vous avez été retiré de la liste des participants.")

    @discord.ui.button(
        label="🔔 Rappel", style=discord.ButtonStyle.primary, custom_id="session:reminder"
    )
    async def reminder_button(
        self, interaction: discord.Interaction, button: discord.ui.Button
    ):
        """Toggle the reminder."""
        key = str(interaction.message.id)
        result = await self.engine.toggle_reminder(key, str(interaction.user.id))

        if not result.ok:
            await reply(interaction, f"❌ {result.message}")
        elif result.outcome is Outcome.CANCELLED:
            await reply(interaction, "🔕 Rappel supprimé !")
        else:
            lead = lead_label(self.engine.config.reminder_lead_minutes)
            await reply(
                interaction,
                f"🔔 Rappel configuré ! Vous serez notifié {lead} avant le début de la session.",
            )

    @discord.ui.button(
        label="✏️ Modifier", style=discord.ButtonStyle.secondary, custom_id="session:edit"
    )
    async def edit_button(
        self, interaction: discord.Interaction, button: discord.ui.Button
    ):
        """Open the edit modal (administrators only)."""
        if self.engine.config.edit_requires_privilege and not is_admin(interaction):
            await reply(interaction, "❌ Seuls les administrateurs peuvent modifier l'événement !")
            return

        key = str(interaction.message.id)
        event = self.engine.get_event(key)
        if event is None:
            await reply(interaction, "❌ Erreur: événement introuvable en mémoire.")
            return

        await interaction.response.send_modal(
            EditSessionModal(self.engine, self.presenter, event)
        )


class EditSessionModal(discord.ui.Modal, title="Modifier la session de grimpe"):
    """Form prefilled with the current session details."""

    def __init__(self, engine: SessionEngine, presenter: "DiscordPresenter", event: Event):
        super().__init__()
        self.engine = engine
        self.presenter = presenter
        self.key = event.key

        self.date_input = discord.ui.TextInput(
            label="Date (ex: 25/10, aujourd'hui, lundi)",
            default=event.date_token,
        )
        self.time_input = discord.ui.TextInput(
            label="Heure (ex: 18h30, 19h)",
            default=event.time_label,
        )
        self.location_input = discord.ui.TextInput(
            label="Lieu (Laennec, Part Dieu, etc.)",
            default=event.location,
        )
        self.info_input = discord.ui.TextInput(
            label="Informations complémentaires",
            style=discord.TextStyle.paragraph,
            default=event.info or "",
            required=False,
        )

        for item in (self.date_input, self.time_input, self.location_input, self.info_input):
            self.add_item(item)

    async def on_submit(self, interaction: discord.Interaction):
        result = await self.engine.edit_event(
            self.key,
            self.date_input.value,
            self.time_input.value,
            self.location_input.value,
            self.info_input.value,
            privileged=is_admin(interaction),
        )

        if not result.ok:
            await reply(interaction, f"❌ {result.message}")
            return

        try:
            await self.presenter.refresh(self.key)
        except Exception as e:
            logger.warning(f"Failed to re-render edited event {self.key}: {e}")

        await reply(interaction, "✅ Événement modifié avec succès !")
        logger.info(f"Event {self.key} edited by {interaction.user.name}")
