"""Admin commands that drive the game through its phases."""

import os
import discord
from discord.ext import commands
from discord import app_commands
from .logic import GameOrchestrator
from .models import ActionResult
from .view import format_error


class AdminCommands(commands.Cog):
    """Owner-only phase controls."""

    def __init__(self, bot: commands.Bot, orchestrator: GameOrchestrator):
        self.bot = bot
        self.orchestrator = orchestrator

        # Get owner ID from environment or set a default for testing
        self.owner_id = int(os.getenv('BOT_OWNER_ID', '0'))

    def is_owner(self, user_id: int) -> bool:
        """Check if user is the bot owner."""
        if user_id == self.owner_id:
            return True

        # Fall back to the Discord application owner
        application = getattr(self.bot, 'application', None)
        owner = getattr(application, 'owner', None) if application else None
        return owner is not None and user_id == owner.id

    async def _run(self, interaction: discord.Interaction, title: str, result: ActionResult):
        """Report an admin action's outcome back to the caller."""
        if result.success:
            embed = discord.Embed(title=title, description=result.message, color=0x00ff00)
            await interaction.response.send_message(embed=embed, ephemeral=True)
        else:
            await interaction.response.send_message(embed=format_error(result.message), ephemeral=True)

    async def _deny(self, interaction: discord.Interaction) -> bool:
        if self.is_owner(interaction.user.id):
            return False
        await interaction.response.send_message("❌ This command is restricted to bot owners.", ephemeral=True)
        return True

    @app_commands.command(name="admin_start_applications", description="[ADMIN] Open applications for a new round")
    async def start_applications(self, interaction: discord.Interaction):
        if await self._deny(interaction):
            return
        await self._run(interaction, "📝 Applications Open", self.orchestrator.start_applications())

    @app_commands.command(name="admin_end_phase", description="[ADMIN] End the running applications or voting phase now")
    async def end_phase(self, interaction: discord.Interaction):
        if await self._deny(interaction):
            return
        await self._run(interaction, "⏭️ Phase Ended", self.orchestrator.end_phase())

    @app_commands.command(name="admin_start_election", description="[ADMIN] Open voting on the finalists")
    async def start_election(self, interaction: discord.Interaction):
        if await self._deny(interaction):
            return
        await self._run(interaction, "🗳️ Election Started", self.orchestrator.start_election())

    @app_commands.command(name="admin_generate_map", description="[ADMIN] Generate the map and start the territory draft")
    async def generate_map(self, interaction: discord.Interaction):
        if await self._deny(interaction):
            return
        await self._run(interaction, "🗺️ Map Generated", self.orchestrator.generate_map())

    @app_commands.command(name="admin_reset_game", description="[ADMIN] Reset the entire game state")
    async def reset_game(self, interaction: discord.Interaction):
        """Reset the game state completely."""
        if await self._deny(interaction):
            return
        await self._run(interaction, "🔄 Game Reset Complete", self.orchestrator.reset())

    @app_commands.command(name="admin_dummy_teams", description="[ADMIN] Skip to results with a fixed set of test teams")
    async def dummy_teams(self, interaction: discord.Interaction):
        if await self._deny(interaction):
            return
        await self._run(interaction, "🧪 Dummy Teams Created", self.orchestrator.create_dummy_teams())


async def setup(bot: commands.Bot):
    """Setup function to add the admin cog to the bot."""
    await bot.add_cog(AdminCommands(bot, bot.orchestrator))
