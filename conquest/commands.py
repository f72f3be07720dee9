"""Discord chat ingestion and public commands for Chat Conquest."""

import asyncio
import logging
from typing import Any, Optional

import discord
from discord import app_commands
from discord.ext import commands

from .config import GAME_CHANNEL_ID
from .logic import GameOrchestrator
from .view import format_announcement, format_state

logger = logging.getLogger(__name__)


class ChannelAnnouncer:
    """Notification listener that mirrors key game events into a channel."""

    def __init__(self, bot: commands.Bot, channel_id: int = GAME_CHANNEL_ID):
        self.bot = bot
        self.channel_id = channel_id
        self.fallback_channel: Optional[discord.abc.Messageable] = None
        self._pending = set()

    def get_channel(self) -> Optional[discord.abc.Messageable]:
        if self.channel_id:
            channel = self.bot.get_channel(self.channel_id)
            if channel:
                return channel
        return self.fallback_channel

    def __call__(self, event: str, payload: Any) -> None:
        embed = format_announcement(event, payload)
        if embed is None:
            return
        channel = self.get_channel()
        if channel is None:
            return
        # Fire and forget; the game never waits on Discord
        task = asyncio.get_running_loop().create_task(self._send(channel, embed, event))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _send(self, channel: discord.abc.Messageable, embed: discord.Embed, event: str) -> None:
        try:
            await channel.send(embed=embed)
        except Exception as e:
            logger.warning(f"Failed to announce {event}: {e}")


class ConquestCommands(commands.Cog):
    """Feeds chat into the game and exposes the public slash commands."""

    def __init__(self, bot: commands.Bot, orchestrator: GameOrchestrator):
        self.bot = bot
        self.orchestrator = orchestrator
        self.announcer = ChannelAnnouncer(bot)
        self.orchestrator.notifier.subscribe(self.announcer)

    def cog_unload(self):
        self.orchestrator.notifier.unsubscribe(self.announcer)

    def is_game_channel(self, channel: discord.abc.Messageable) -> bool:
        return not GAME_CHANNEL_ID or getattr(channel, "id", None) == GAME_CHANNEL_ID

    @commands.Cog.listener()
    async def on_message(self, message: discord.Message):
        """Every human chat line in the game channel goes to the orchestrator."""
        if message.author.bot or message.author == self.bot.user:
            return
        if not self.is_game_channel(message.channel):
            return
        if self.announcer.fallback_channel is None:
            self.announcer.fallback_channel = message.channel
        self.orchestrator.handle_chat(message.author.name, message.content)

    @app_commands.command(name="gamestate", description="Show the current Chat Conquest round")
    async def gamestate(self, interaction: discord.Interaction):
        """Display the current phase summary."""
        embed = format_state(self.orchestrator.snapshot())
        await interaction.response.send_message(embed=embed, ephemeral=True)


async def setup(bot: commands.Bot):
    """Setup function to add the game cog to the bot."""
    await bot.add_cog(ConquestCommands(bot, bot.orchestrator))
