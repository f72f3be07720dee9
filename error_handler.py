"""Error reporting and owner notifications for the Chat Conquest bot."""

import asyncio
import logging
import traceback
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

import discord
from discord.ext import commands


logger = logging.getLogger(__name__)


class ErrorHandler:
    """Centralized error handling and notification system."""

    def __init__(self, bot: commands.Bot, owner_id: int):
        self.bot = bot
        self.owner_id = owner_id
        self.error_counts: Dict[str, int] = {}
        self.last_notification: Dict[str, datetime] = {}
        self.notification_cooldown = 300  # 5 minutes between same error types
        self._pending = set()

    def should_notify(self, error_type: str) -> bool:
        """Count the error and apply the per-type cooldown."""
        now = datetime.now(timezone.utc)
        self.error_counts[error_type] = self.error_counts.get(error_type, 0) + 1
        last = self.last_notification.get(error_type)
        if last and now - last <= timedelta(seconds=self.notification_cooldown):
            return False
        self.last_notification[error_type] = now
        return True

    async def notify_owner(self, title: str, description: str, error: Optional[Exception] = None):
        """Send a DM notification to the bot owner."""
        if not self.owner_id:
            return
        try:
            owner = self.bot.get_user(self.owner_id)
            if not owner:
                owner = await self.bot.fetch_user(self.owner_id)

            embed = discord.Embed(
                title=f"🚨 {title}",
                description=description,
                color=0xff0000,
                timestamp=datetime.now(timezone.utc)
            )

            if error:
                embed.add_field(
                    name="Error Details",
                    value=f"```{str(error)[:1000]}```",
                    inline=False
                )

                tb = ''.join(traceback.format_exception(type(error), error, error.__traceback__))
                if len(tb) > 1000:
                    tb = tb[-1000:]  # Last 1000 chars
                embed.add_field(
                    name="Traceback",
                    value=f"```{tb}```",
                    inline=False
                )

            embed.set_footer(text="Chat Conquest Error Handler")

            await owner.send(embed=embed)
            logger.info(f"Sent error notification to owner: {title}")

        except Exception as e:
            logger.error(f"Failed to send error notification: {e}")

    def report_callback_error(self, label: str, error: Exception):
        """Timer hook: the game already logged and survived, tell the owner."""
        if not self.should_notify(f"timer:{type(error).__name__}"):
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        task = loop.create_task(self.notify_owner(f"Timer Error in {label}", "The game kept running.", error))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def handle_interaction_error(self, interaction: discord.Interaction, error: Exception):
        """Handle slash command interaction errors."""
        error_type = type(error).__name__
        command_name = interaction.command.name if interaction.command else "Unknown"

        if self.should_notify(error_type):
            user = f"{interaction.user.display_name} ({interaction.user.id})"
            guild = f"{interaction.guild.name} ({interaction.guild.id})" if interaction.guild else "DM"

            description = (
                f"**Command:** /{command_name}\n"
                f"**User:** {user}\n"
                f"**Guild:** {guild}\n"
                f"**Error Count:** {self.error_counts[error_type]} (since restart)"
            )

            await self.notify_owner(f"Slash Command Error: {error_type}", description, error)

        logger.error(f"Interaction error in {command_name}: {error}")

        try:
            error_embed = discord.Embed(
                title="❌ Command Error",
                description="An error occurred while processing your command. The bot owner has been notified.",
                color=0xff0000
            )

            if isinstance(error, discord.errors.NotFound) and "10062" in str(error):
                error_embed.description = "⏱️ The command took too long to process. Please try again."
            elif isinstance(error, discord.app_commands.CommandOnCooldown):
                error_embed.description = f"🕒 Command is on cooldown. Try again in {error.retry_after:.1f} seconds."
            elif isinstance(error, discord.app_commands.MissingPermissions):
                error_embed.description = "🔒 You don't have permission to use this command."

            if not interaction.response.is_done():
                await interaction.response.send_message(embed=error_embed, ephemeral=True)
            else:
                await interaction.followup.send(embed=error_embed, ephemeral=True)

        except Exception as followup_error:
            logger.error(f"Failed to send error message to user: {followup_error}")

    async def send_startup_notification(self):
        """Send notification when bot starts successfully."""
        if not self.owner_id:
            return
        try:
            owner = self.bot.get_user(self.owner_id) or await self.bot.fetch_user(self.owner_id)

            embed = discord.Embed(
                title="✅ Chat Conquest Bot Started",
                description=f"Bot is online and ready in {len(self.bot.guilds)} guild(s)",
                color=0x00ff00,
                timestamp=datetime.now(timezone.utc)
            )

            await owner.send(embed=embed)
            logger.info("Sent startup notification to owner")

        except Exception as e:
            logger.error(f"Failed to send startup notification: {e}")
