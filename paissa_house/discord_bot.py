"""Discord bot entry point for PaissaHouse."""
from __future__ import annotations

import atexit
import logging
import os
from pathlib import Path
from typing import List, Optional

import discord
from discord import app_commands
from discord.ext import commands

from .adapters.discord.builders import build_help_embed
from .adapters.discord.transport import DiscordTransport
from .api_client import PaissaClient
from .config import Settings, get_settings
from .errors import TransientFetchError
from .lifecycle import CommandRequest, SessionLifecycleManager
from .models import DistrictId, FilterPhase, FilterSpec, HouseSize, PurchaseSystem
from .rendering import PageRenderer
from .router import InteractionRouter
from .scheduler import CleanupScheduler
from .sessions import SessionRegistry
from .state import SessionStateStore

logger = logging.getLogger(__name__)

_MAX_CHOICES = 25

DISTRICT_CHOICES = [
    app_commands.Choice(name="Mist", value=DistrictId.MIST.value),
    app_commands.Choice(name="The Lavender Beds", value=DistrictId.THE_LAVENDER_BEDS.value),
    app_commands.Choice(name="The Goblet", value=DistrictId.THE_GOBLET.value),
    app_commands.Choice(name="Shirogane", value=DistrictId.SHIROGANE.value),
    app_commands.Choice(name="Empyreum", value=DistrictId.EMPYREUM.value),
]

SIZE_CHOICES = [
    app_commands.Choice(name="Small", value=HouseSize.SMALL.value),
    app_commands.Choice(name="Medium", value=HouseSize.MEDIUM.value),
    app_commands.Choice(name="Large", value=HouseSize.LARGE.value),
]

PHASE_CHOICES = [
    app_commands.Choice(name="Accepting Entries", value=FilterPhase.ENTRY.value),
    app_commands.Choice(name="Results", value=FilterPhase.RESULTS.value),
    app_commands.Choice(name="Unavailable", value=FilterPhase.UNAVAILABLE.value),
    app_commands.Choice(name="FCFS", value=FilterPhase.FCFS.value),
    app_commands.Choice(name="Missing/Outdated", value=FilterPhase.MISSING_OUTDATED.value),
]

TENANT_CHOICES = [
    app_commands.Choice(name="Free Company", value=PurchaseSystem.FREE_COMPANY.value),
    app_commands.Choice(name="Individual", value=PurchaseSystem.INDIVIDUAL.value),
]


def _choice_value(choice: Optional[app_commands.Choice[int]]) -> Optional[int]:
    return choice.value if choice is not None else None


def build_filters(
    district: Optional[app_commands.Choice[int]] = None,
    size: Optional[app_commands.Choice[int]] = None,
    lottery_phase: Optional[app_commands.Choice[int]] = None,
    allowed_tenants: Optional[app_commands.Choice[int]] = None,
    plot: Optional[int] = None,
    ward: Optional[int] = None,
) -> FilterSpec:
    """Translate slash command options into a validated filter spec."""

    return FilterSpec(
        district=_choice_value(district),
        size=_choice_value(size),
        lottery_phase=_choice_value(lottery_phase),
        allowed_tenants=_choice_value(allowed_tenants),
        plot=plot,
        ward=ward,
    ).validate()


def build_bot(
    db_path: Path,
    intents: Optional[discord.Intents] = None,
    settings: Optional[Settings] = None,
) -> commands.Bot:
    settings = settings or get_settings()
    intents = intents or discord.Intents.default()
    app_id_raw = os.environ.get("DISCORD_APP_ID")
    application_id: Optional[int] = None
    if app_id_raw:
        try:
            application_id = int(app_id_raw)
        except ValueError:
            logger.warning("Invalid DISCORD_APP_ID: %s", app_id_raw)
    bot = commands.Bot(command_prefix="/", intents=intents, application_id=application_id)

    registry = SessionRegistry()
    store = SessionStateStore(db_path)
    client = PaissaClient(settings.api_base_url, timeout=settings.api_timeout_seconds)
    transport = DiscordTransport(bot, colour=settings.embed_colour)
    renderer = PageRenderer(page_size=settings.page_size, web_base_url=settings.web_base_url)
    lifecycle = SessionLifecycleManager(
        registry,
        store,
        client,
        transport,
        renderer,
        retention_seconds=settings.retention.total_seconds(),
    )
    router = InteractionRouter(lifecycle, client)
    lifecycle.bind_event_handler(router.handle)
    cleanup = CleanupScheduler(lifecycle, settings)
    setattr(bot, "pagination", lifecycle)
    restored = False

    def _shutdown() -> None:  # pragma: no cover - process shutdown hook
        cleanup.shutdown()
        lifecycle.shutdown()

    atexit.register(_shutdown)

    @bot.event
    async def on_ready() -> None:
        nonlocal restored
        logger.info("PaissaHouse bot connected as %s", bot.user)
        try:
            synced = await bot.tree.sync()
            logger.info("Synced %d commands", len(synced))
        except Exception as exc:  # pragma: no cover - logging only
            logger.exception("Failed to sync commands: %s", exc)
        if restored:
            return
        restored = True
        await lifecycle.restore()
        cleanup.start()

    async def world_autocomplete(
        interaction: discord.Interaction, current: str
    ) -> List[app_commands.Choice[str]]:
        try:
            worlds = await client.fetch_worlds()
        except TransientFetchError:
            return []
        needle = current.strip().lower()
        matches = [
            world
            for world in worlds
            if needle in world.name.lower() or needle in world.datacenter_name.lower()
        ]
        return [
            app_commands.Choice(name=f"{world.name} ({world.datacenter_name})", value=str(world.id))
            for world in matches[:_MAX_CHOICES]
        ]

    @app_commands.command(
        name="paissa",
        description="Get detailed housing information for a world",
    )
    @app_commands.describe(
        world="World to browse",
        district="District to get detailed housing information for",
        size="Filter by plot size (optional)",
        lottery_phase="Filter by lottery phase (optional)",
        allowed_tenants="Filter by allowed tenants (optional)",
        plot="Filter by plot (1-30). Includes subdivisions (e.g. 30 also shows 60)",
        ward="Filter by exact ward number (1-30)",
    )
    @app_commands.rename(lottery_phase="lottery-phase", allowed_tenants="allowed-tenants")
    @app_commands.choices(
        district=DISTRICT_CHOICES,
        size=SIZE_CHOICES,
        lottery_phase=PHASE_CHOICES,
        allowed_tenants=TENANT_CHOICES,
    )
    @app_commands.autocomplete(world=world_autocomplete)
    async def paissa(
        interaction: discord.Interaction,
        world: str,
        district: Optional[app_commands.Choice[int]] = None,
        size: Optional[app_commands.Choice[int]] = None,
        lottery_phase: Optional[app_commands.Choice[int]] = None,
        allowed_tenants: Optional[app_commands.Choice[int]] = None,
        plot: Optional[app_commands.Range[int, 1, 30]] = None,
        ward: Optional[app_commands.Range[int, 1, 30]] = None,
    ) -> None:
        if not world.strip().isdigit():
            await interaction.response.send_message(
                "Error: Unknown world. Pick one from the list.", ephemeral=True
            )
            return
        world_id = int(world)
        try:
            filters = build_filters(district, size, lottery_phase, allowed_tenants, plot, ward)
        except ValueError as exc:
            await interaction.response.send_message(f"Error: {exc}", ephemeral=True)
            return

        await interaction.response.defer()
        request = CommandRequest(
            owner_id=interaction.user.id,
            world_id=world_id,
            filters=filters,
            guild_id=interaction.guild_id,
        )
        try:
            await lifecycle.create(request, interaction)
        except TransientFetchError as exc:
            logger.warning("PaissaDB unavailable for world %s: %s", world_id, exc)
            await interaction.edit_original_response(
                content="Error: Could not fetch housing data for that world. Please try again later."
            )
        except Exception as exc:
            logger.exception("Error handling command paissa")
            await interaction.edit_original_response(content=f"Error: {exc}")

    @app_commands.command(name="help", description="Get information about this bot and how to use it")
    async def help_command(interaction: discord.Interaction) -> None:
        await interaction.response.send_message(embed=build_help_embed(settings.embed_colour))

    bot.tree.add_command(paissa)
    bot.tree.add_command(help_command)
    return bot


def main() -> None:
    logging.basicConfig(level=os.environ.get("PAISSA_HOUSE_LOG_LEVEL", "INFO").upper())
    token = os.environ.get("DISCORD_TOKEN")
    if not token:
        raise RuntimeError("DISCORD_TOKEN environment variable must be set")
    db_path = Path(os.environ.get("PAISSA_HOUSE_DB", "paissa_house.db"))
    bot = build_bot(db_path)
    bot.run(token)


__all__ = ["build_bot", "build_filters", "main"]
