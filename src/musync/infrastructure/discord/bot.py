"""Discord client for Musync: wires the container into the cogs and owns shutdown."""

from __future__ import annotations

import asyncio
import logging
import signal
from typing import TYPE_CHECKING

import discord
from discord import app_commands
from discord.ext import commands

from musync.domain.shared.messages import DiscordUIMessages, LogTemplates

if TYPE_CHECKING:
    from ...config.container import Container
    from ...config.settings import Settings

logger = logging.getLogger(__name__)

COGS: tuple[str, ...] = ("musync.infrastructure.discord.cogs.music_cog",)


class MusicBot(commands.Bot):
    """Slash-command-only bot. Needs guild and voice state intents, nothing privileged."""

    def __init__(self, container: Container, settings: Settings, **kwargs) -> None:
        intents = discord.Intents.none()
        intents.guilds = True
        intents.voice_states = True

        super().__init__(
            command_prefix=commands.when_mentioned,
            intents=intents,
            help_command=None,
            application_id=settings.discord.application_id,
            **kwargs,
        )

        self.container = container
        self.settings = settings
        self._shutdown_event = asyncio.Event()
        self._close_task: asyncio.Task[None] | None = None
        container.set_bot(self)

    # ── Startup ──────────────────────────────────────────────────────

    async def setup_hook(self) -> None:
        logger.info(LogTemplates.BOT_SETUP)

        for extension in COGS:
            try:
                await self.load_extension(extension)
            except Exception as e:
                logger.exception(LogTemplates.BOT_COG_LOAD_FAILED, extension, e)
                raise
            logger.info(LogTemplates.BOT_COG_LOADED, extension)

        self.tree.on_error = self._on_app_command_error

        if self.settings.discord.sync_on_startup:
            await self._sync_commands()

        logger.info(LogTemplates.BOT_SETUP_COMPLETE)

    async def _sync_commands(self) -> None:
        """Copy the global commands to each test guild, then sync globally.

        Test guilds see new commands immediately; global sync can take up to
        an hour to propagate. A failed target does not stop the others.
        """
        logger.info(LogTemplates.BOT_SYNC_STARTED)

        for guild_id in self.settings.discord.test_guild_ids:
            target = discord.Object(id=guild_id)
            self.tree.copy_global_to(guild=target)
            try:
                synced = await self.tree.sync(guild=target)
            except discord.HTTPException as e:
                logger.warning(LogTemplates.BOT_SYNC_GUILD_FAILED, guild_id, e)
                continue
            logger.info(LogTemplates.BOT_SYNCED_GUILD, len(synced), guild_id)

        try:
            synced = await self.tree.sync()
        except discord.HTTPException as e:
            logger.warning(LogTemplates.BOT_SYNC_GLOBAL_FAILED, e)
            return
        logger.info(LogTemplates.BOT_SYNCED_GLOBAL, len(synced))

    async def on_ready(self) -> None:
        user = self.user
        logger.info(LogTemplates.BOT_READY, user, getattr(user, "id", None))
        logger.info(LogTemplates.BOT_CONNECTED_GUILDS, len(self.guilds))

        await self.change_presence(
            activity=discord.Activity(type=discord.ActivityType.listening, name="/play")
        )

    # ── Errors ───────────────────────────────────────────────────────

    async def _on_app_command_error(
        self, interaction: discord.Interaction, error: app_commands.AppCommandError | Exception
    ) -> None:
        """Last-resort handler for slash commands; the user only ever sees an ephemeral note."""
        cause = getattr(error, "original", error)
        command_name = interaction.command.name if interaction.command else "<unknown>"
        logger.error(LogTemplates.BOT_SLASH_COMMAND_ERROR, command_name, cause)

        content = DiscordUIMessages.ERROR_OCCURRED.format(error=cause)
        try:
            if interaction.response.is_done():
                await interaction.followup.send(content, ephemeral=True)
            else:
                await interaction.response.send_message(content, ephemeral=True)
        except discord.HTTPException:
            logger.warning(LogTemplates.BOT_ERROR_MESSAGE_SEND_FAILED)

    # ── Shutdown ─────────────────────────────────────────────────────

    async def close(self) -> None:
        """Tear down every guild session before the gateway connection goes away."""
        logger.info(LogTemplates.BOT_SHUTTING_DOWN)

        try:
            await self.container.shutdown()
        except Exception as e:
            logger.warning(LogTemplates.BOT_CONTAINER_SHUTDOWN_ERROR, e)
        else:
            logger.info(LogTemplates.BOT_CONTAINER_SHUTDOWN)

        await super().close()
        self._shutdown_event.set()
        logger.info(LogTemplates.BOT_SHUTDOWN_COMPLETE)

    def request_close(self, shutdown_timeout: float = 30.0) -> asyncio.Task[None]:
        """Schedule a bounded ``close``. Repeated signals reuse the pending task."""
        if self._close_task is None or self._close_task.done():
            self._close_task = asyncio.create_task(
                self._bounded_close(shutdown_timeout), name="musync-close"
            )
        return self._close_task

    async def _bounded_close(self, shutdown_timeout: float) -> None:
        try:
            await asyncio.wait_for(self.close(), timeout=shutdown_timeout)
        except TimeoutError:
            logger.warning(LogTemplates.BOT_SHUTDOWN_TIMEOUT, shutdown_timeout)

    def run_with_graceful_shutdown(self, token: str, *, shutdown_timeout: float = 30.0) -> None:
        """Run until SIGINT/SIGTERM, giving ``close`` *shutdown_timeout* seconds to finish."""

        async def runner() -> None:
            async with self:
                loop = asyncio.get_running_loop()
                for sig in (signal.SIGINT, signal.SIGTERM):
                    loop.add_signal_handler(sig, self.request_close, shutdown_timeout)
                await self.start(token)

        asyncio.run(runner())


def create_bot(container: Container, settings: Settings) -> MusicBot:
    return MusicBot(container=container, settings=settings)
