"""Main entry point for the Chat Conquest bot."""

import os
import sys
import asyncio
import logging
from pathlib import Path

import discord
from discord.ext import commands
from dotenv import load_dotenv

# Game constants read the environment at import time
load_dotenv()

from error_handler import ErrorHandler
from conquest.logic import GameOrchestrator
from conquest.notifications import NotificationManager
from conquest.overlay import OverlayServer
from conquest.scheduler import GameTimer

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(),
        logging.FileHandler('chat_conquest.log')
    ]
)
logger = logging.getLogger(__name__)


def load_or_prompt_env():
    """Load environment variables or prompt for token if missing."""
    token = os.getenv('DISCORD_TOKEN')
    if not token:
        logger.warning("DISCORD_TOKEN not found in .env file")
        token = input("Please enter your Discord bot token: ").strip()

        if not token:
            logger.error("No token provided. Exiting.")
            sys.exit(1)

        # Save token to .env file
        env_path = Path('.env')
        with env_path.open('a') as f:
            f.write(f"\nDISCORD_TOKEN={token}\n")
        logger.info("Token saved to .env file")

    return token


class ConquestBot(commands.Bot):
    """The Chat Conquest bot: Discord chat in, game events out."""

    def __init__(self):
        intents = discord.Intents.default()
        intents.message_content = True  # Chat commands are read from plain messages

        super().__init__(
            command_prefix=commands.when_mentioned,  # Unused but required
            intents=intents,
            description="Chat Conquest - elect team leaders and draft territory from chat"
        )

        owner_id = int(os.getenv('BOT_OWNER_ID', '0'))
        self.error_handler = ErrorHandler(self, owner_id)
        self.tree.error(self.error_handler.handle_interaction_error)

        self.notifier = NotificationManager()
        self.orchestrator = GameOrchestrator(
            self.notifier,
            timer=GameTimer(on_error=self.error_handler.report_callback_error),
        )
        self.overlay = OverlayServer(self.orchestrator)
        self.notifier.subscribe(self.overlay)

    async def setup_hook(self):
        """Setup hook called before the bot connects."""
        logger.info("Setting up Chat Conquest bot...")

        try:
            await self.load_extension('conquest.commands')
            logger.info("Loaded game commands")
        except Exception as e:
            await self.error_handler.notify_owner("Failed to load game commands", str(e), e)
            logger.error(f"Failed to load game commands: {e}")
            raise

        try:
            await self.load_extension('conquest.admin_commands')
            logger.info("Loaded admin commands")
        except Exception as e:
            await self.error_handler.notify_owner("Failed to load admin commands", str(e), e)
            logger.error(f"Failed to load admin commands: {e}")
            # Don't raise - the overlay control panel can still drive the game

        try:
            await self.overlay.start()
        except Exception as e:
            await self.error_handler.notify_owner("Failed to start overlay server", str(e), e)
            logger.error(f"Failed to start overlay server: {e}")

        try:
            synced = await self.tree.sync()
            logger.info(f"Synced {len(synced)} command(s)")
        except Exception as e:
            await self.error_handler.notify_owner("Failed to sync commands", str(e), e)
            logger.error(f"Failed to sync commands: {e}")

    async def on_ready(self):
        """Called when the bot is ready."""
        logger.info(f"Chat Conquest bot is ready! Logged in as {self.user}")
        logger.info(f"Bot is in {len(self.guilds)} guild(s)")

        try:
            activity = discord.Game(name="Chat Conquest | !run to apply")
            await self.change_presence(activity=activity)
            await self.error_handler.send_startup_notification()
        except Exception as e:
            logger.error(f"Error in on_ready: {e}")

    async def on_command_error(self, ctx, error):
        """Handle prefix command errors."""
        if isinstance(error, commands.CommandNotFound):
            return
        logger.error(f"Command error: {error}")
        await self.error_handler.notify_owner("Command Error", f"Context: {ctx.command}", error)

    async def on_error(self, event, *args, **kwargs):
        """Handle general bot errors."""
        try:
            exc_type, exc_value, exc_traceback = sys.exc_info()
            if exc_value:
                context = {"event": event, "args": str(args)[:500]}
                await self.error_handler.notify_owner(f"Bot Error in {event}", str(context), exc_value)

            logger.error(f"Bot error in event {event}", exc_info=True)
        except Exception as e:
            logger.error(f"Error in error handler: {e}")

    async def close(self):
        """Clean shutdown."""
        logger.info("Shutting down Chat Conquest bot...")
        self.orchestrator.timer.cancel()
        try:
            await self.overlay.stop()
        except Exception as e:
            logger.error(f"Error stopping overlay server: {e}")
        try:
            await self.error_handler.notify_owner("Bot Shutdown", "Chat Conquest bot is shutting down normally")
        except Exception as e:
            logger.error(f"Error sending shutdown notification: {e}")
        await super().close()


async def main():
    """Main function to run the bot."""
    token = load_or_prompt_env()
    bot = ConquestBot()

    try:
        await bot.start(token)
    except Exception as e:
        logger.error(f"Bot crashed: {e}", exc_info=True)
        try:
            await bot.error_handler.notify_owner("Bot Crashed", "Fatal error during startup", e)
        except Exception as notify_error:
            logger.error(f"Failed to send crash notification: {notify_error}")
        raise
    finally:
        if not bot.is_closed():
            await bot.close()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Bot stopped by user")
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)
