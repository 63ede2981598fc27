"""
grimpebot Discord Bot

Maintains the Discord connection, registers /grimpe and the session buttons,
and runs the session engine (recovery at startup, then periodic sweeps).
"""

import asyncio
from typing import Optional

import discord
from discord.ext import commands
from dotenv import load_dotenv

from commands import DiscordPresenter, SessionCommands, SessionView
from sessions import BotConfig, SessionConfig, SessionEngine

load_dotenv()

import logging

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger("grimpebot")


class SessionBot(commands.Bot):
    """Discord bot organising climbing sessions."""

    def __init__(
        self,
        bot_config: Optional[BotConfig] = None,
        session_config: Optional[SessionConfig] = None,
    ):
        intents = discord.Intents.default()
        intents.guilds = True
        intents.members = True

        super().__init__(command_prefix="!", intents=intents)

        self.bot_config = bot_config or BotConfig.from_env()
        self.session_config = session_config or SessionConfig.from_env()
        self.presenter = DiscordPresenter(self, self.bot_config)
        self.engine = SessionEngine(self.session_config, self.presenter)
        self.presenter.attach(self.engine)
        self._engine_started = False

    async def setup_hook(self):
        """Called when the bot is starting up."""
        logger.info(f"Setup: SESSION_CHANNEL_ID={self.bot_config.session_channel_id or 'missing'}")
        logger.info(f"Setup: SESSION_ROLE_ID={self.bot_config.role_id or 'none'}")
        logger.info(f"Setup: persistence={'enabled' if self.session_config.persistence_enabled else 'disabled'}")

        # Persistent view: buttons on old messages keep working after a restart
        self.add_view(SessionView(self.engine, self.presenter, show_edit=True))
        await self.add_cog(
            SessionCommands(self, self.engine, self.presenter, self.bot_config)
        )

        try:
            synced = await self.tree.sync()
            logger.info(f"Slash commands synced ({len(synced)} command(s))")
        except discord.HTTPException as e:
            logger.error(f"Failed to sync slash commands: {e}", exc_info=True)

    async def on_ready(self):
        """Called when the bot has connected to Discord."""
        print(f"Logged in as {self.user} (ID: {self.user.id})")
        print(f"Connected to {len(self.guilds)} guild(s)")

        await self.change_presence(activity=discord.CustomActivity(name="/grimpe"))

        # on_ready fires again after reconnects; recovery runs only once
        if not self._engine_started:
            self._engine_started = True
            report = await self.engine.start()
            logger.info(
                f"Session engine ready: {report.remaining} active session(s), "
                f"{self.engine.reminders.pending_count()} pending reminder(s)"
            )

    async def close(self):
        """Clean up resources on shutdown."""
        self.engine.stop()
        await super().close()


async def main():
    """Run the bot."""
    bot_config = BotConfig.from_env()
    if not bot_config.token:
        print("Error: DISCORD_BOT_TOKEN environment variable not set")
        print("Please set it in your .env file")
        return

    bot = SessionBot(bot_config=bot_config)
    await bot.start(bot_config.token)


if __name__ == "__main__":
    asyncio.run(main())
