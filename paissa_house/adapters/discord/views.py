"""Discord button views for pagination sessions."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Iterable, List, Optional

import discord

from ...lifecycle import ClickEvent
from ...rendering import Control, RenderedPage
from .builders import build_page_embed

logger = logging.getLogger(__name__)

Predicate = Callable[[ClickEvent], bool]
EventCallback = Callable[[ClickEvent], Awaitable[None]]
EndCallback = Callable[[], Awaitable[None]]


class DiscordClickEvent:
    """Adapts a component interaction to the router's click event."""

    def __init__(
        self,
        interaction: discord.Interaction,
        view: "PaginationView",
        action: str,
        *,
        colour: int,
    ) -> None:
        self._interaction = interaction
        self._view = view
        self._colour = colour
        self.user_id = interaction.user.id
        self.message_id = interaction.message.id if interaction.message else 0
        self.action = action

    async def acknowledge(self) -> None:
        if not self._interaction.response.is_done():
            await self._interaction.response.defer()

    async def update(self, page: RenderedPage) -> None:
        """Edit the message to show ``page``.

        The listening view is the edit payload so discord.py re-registers its
        buttons; if the edit fails the view keeps the buttons still on screen.
        """

        embed = build_page_embed(page, self._colour)
        shown = self._view.controls
        self._view.apply_controls(page.controls)
        try:
            if self._interaction.response.is_done():
                await self._interaction.edit_original_response(embed=embed, view=self._view)
            else:
                await self._interaction.response.edit_message(embed=embed, view=self._view)
        except Exception:
            self._view.apply_controls(shown)
            raise

    async def send_ephemeral(self, content: str) -> None:
        if self._interaction.response.is_done():
            await self._interaction.followup.send(content, ephemeral=True)
        else:
            await self._interaction.response.send_message(content, ephemeral=True)


class PaginationButton(discord.ui.Button["PaginationView"]):
    def __init__(self, control: Control) -> None:
        super().__init__(
            style=discord.ButtonStyle.secondary,
            label=control.label,
            custom_id=control.action,
            disabled=control.disabled,
        )
        self.action = control.action

    async def callback(self, interaction: discord.Interaction) -> None:  # type: ignore[override]
        view = self.view
        if view is None:
            return
        await view.dispatch(interaction, self.action)


class PaginationView(discord.ui.View):
    """Listener bound to one session message.

    The view never times out on its own; its lifetime is driven by an
    explicit expiry timer so restored sessions can be re-registered as
    persistent views after a restart.
    """

    def __init__(
        self,
        controls: Iterable[Control],
        *,
        colour: int,
        predicate: Optional[Predicate] = None,
        on_event: Optional[EventCallback] = None,
        on_end: Optional[EndCallback] = None,
    ) -> None:
        super().__init__(timeout=None)
        self._colour = colour
        self._predicate = predicate
        self._on_event = on_event
        self._on_end = on_end
        self._expiry: Optional[asyncio.TimerHandle] = None
        self._ended = False
        self._controls: List[Control] = []
        self.apply_controls(controls)

    @classmethod
    def preview(cls, controls: Iterable[Control], *, colour: int) -> "PaginationView":
        """A stopped view used only to render buttons on a new message."""

        view = cls(controls, colour=colour)
        view.stop()
        return view

    @property
    def controls(self) -> List[Control]:
        return list(self._controls)

    def apply_controls(self, controls: Iterable[Control]) -> "PaginationView":
        self._controls = list(controls)
        self.clear_items()
        for control in self._controls:
            self.add_item(PaginationButton(control))
        return self

    def start_expiry(self, timeout: float) -> None:
        loop = asyncio.get_running_loop()
        self._expiry = loop.call_later(timeout, self._expire)

    def _expire(self) -> None:
        if self._ended:
            return
        self._ended = True
        self.stop()
        if self._on_end is not None:
            asyncio.get_running_loop().create_task(self._on_end())

    async def finish(self) -> None:
        """Stop listening and run the end callback."""

        if self._expiry is not None:
            self._expiry.cancel()
        if self._ended:
            return
        self._ended = True
        self.stop()
        if self._on_end is not None:
            await self._on_end()

    def cancel(self) -> None:
        """Stop listening without ending the session."""

        self._ended = True
        if self._expiry is not None:
            self._expiry.cancel()
        self.stop()

    async def interaction_check(self, interaction: discord.Interaction) -> bool:  # type: ignore[override]
        if self._predicate is None:
            return False
        event = DiscordClickEvent(interaction, self, "", colour=self._colour)
        if self._predicate(event):
            return True
        await interaction.response.send_message(
            "Only the person who ran this command can use these controls.",
            ephemeral=True,
        )
        return False

    async def dispatch(self, interaction: discord.Interaction, action: str) -> None:
        if self._on_event is None:
            return
        event = DiscordClickEvent(interaction, self, action, colour=self._colour)
        await self._on_event(event)

    async def on_error(  # type: ignore[override]
        self,
        interaction: discord.Interaction,
        error: Exception,
        item: discord.ui.Item,
    ) -> None:
        logger.error("Pagination view error for %s", getattr(item, "custom_id", item), exc_info=error)


__all__ = ["DiscordClickEvent", "PaginationButton", "PaginationView"]
