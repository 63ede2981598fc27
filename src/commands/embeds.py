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
Session Embeds

Renders sessions and reminders as Discord embeds.
"""

from datetime import datetime

import discord

from sessions import Event, EventSummary, day_label

SESSION_COLOR = discord.Color(0x7D9FBD)


def discord_timestamp(instant: datetime, style: str = "t") -> str:
    """Discord dynamic timestamp markup, rendered in each reader's own clock."""
    return f"<t:{int(instant.timestamp())}:{style}>"


def build_session_embed(event: Event, instant: datetime) -> discord.Embed:
    """
    Build the embed posted for a session.

    Args:
        event: The session
        instant: Its resolved start

    Returns:
        Discord embed with header, optional info, roster and organizer footer
    """
    day = day_label(event.date_token, instant.date())
    description = f"# Grimpe {day} {discord_timestamp(instant)} à {event.location}\n\n"

    if event.info:
        description += f"*{event.info}*\n"

    count = len(event.roster)
    climbers = "Grimpeurs Inscrits" if count > 1 else "Grimpeur Inscrit"
    description += f"### __{count} {climbers} :__\n"

    if event.roster:
        names = "\n".join(p.name for p in event.roster)
        description += f"*{names}*"
    else:
        description += "*Aucun participant pour le moment*"

    embed = discord.Embed(
        description=description,
        color=SESSION_COLOR,
        timestamp=event.created_at,
    )
    embed.set_footer(
        text=f"Organisé par {event.author.name}",
        icon_url=event.author.avatar_url,
    )
    return embed


def build_reminder_embed(summary: EventSummary, now: datetime) -> discord.Embed:
    """Build the DM sent one lead time before a session."""
    return discord.Embed(
        title="🔔 Rappel - Session de grimpe",
        description=(
            f"La session de grimpe commence {discord_timestamp(summary.instant, 'R')} !\n\n"
            f"**Horaire :** {discord_timestamp(summary.instant)}\n"
            f"**Lieu :** {summary.location}"
        ),
        color=SESSION_COLOR,
        timestamp=now,
    )


def lead_label(minutes: int) -> str:
    """French duration label: 60 -> "1 heure", 90 -> "1h30", 45 -> "45 minutes"."""
    hours, rest = divmod(minutes, 60)
    if not hours:
        return f"{rest} minutes"
    if rest:
        return f"{hours}h{rest:02d}"
    return f"{hours} heure" if hours == 1 else f"{hours} heures"
