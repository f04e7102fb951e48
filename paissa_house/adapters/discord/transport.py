"""Discord implementation of the session transport."""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, Iterable

import discord
from discord.ext import commands

from ...errors import UnreachableMessageError
from ...lifecycle import ClickEvent, EditOutcome
from ...models import MessageRef
from ...rendering import Control, RenderedPage
from .builders import build_expired_embeds, build_page_embed
from .views import PaginationView

logger = logging.getLogger(__name__)


class DiscordTransport:
    """Sends, listens on and edits pagination messages through the bot."""

    def __init__(self, bot: commands.Bot, *, colour: int) -> None:
        self._bot = bot
        self._colour = colour

    async def deliver(self, target: discord.Interaction, page: RenderedPage) -> MessageRef:
        """Send the first page as the (deferred) response to a slash command."""

        embed = build_page_embed(page, self._colour)
        view = PaginationView.preview(page.controls, colour=self._colour)
        message = await target.edit_original_response(embed=embed, view=view)
        return MessageRef(
            channel_id=message.channel.id,
            message_id=message.id,
            guild_id=target.guild_id,
        )

    async def attach(
        self,
        ref: MessageRef,
        *,
        controls: Iterable[Control],
        predicate: Callable[[ClickEvent], bool],
        on_event: Callable[[ClickEvent], Awaitable[None]],
        on_end: Callable[[], Awaitable[None]],
        timeout: float,
        verify: bool,
    ) -> PaginationView:
        if verify:
            await self.fetch_message(ref)
        view = PaginationView(
            controls,
            colour=self._colour,
            predicate=predicate,
            on_event=on_event,
            on_end=on_end,
        )
        self._bot.add_view(view, message_id=ref.message_id)
        view.start_expiry(timeout)
        return view

    async def fetch_message(self, ref: MessageRef) -> discord.Message:
        try:
            channel = self._bot.get_channel(ref.channel_id)
            if channel is None:
                channel = await self._bot.fetch_channel(ref.channel_id)
            if not isinstance(channel, discord.abc.Messageable):
                raise UnreachableMessageError(f"Channel {ref.channel_id} cannot hold messages")
            return await channel.fetch_message(ref.message_id)
        except discord.Forbidden as exc:
            raise UnreachableMessageError(
                f"Missing access to message {ref.message_id}", forbidden=True
            ) from exc
        except discord.HTTPException as exc:
            raise UnreachableMessageError(
                f"Message {ref.message_id} in channel {ref.channel_id} is unreachable"
            ) from exc

    async def try_append_expired_notice(self, ref: MessageRef) -> EditOutcome:
        try:
            message = await self.fetch_message(ref)
        except UnreachableMessageError as exc:
            return EditOutcome.FORBIDDEN if exc.forbidden else EditOutcome.NOT_FOUND
        try:
            await message.edit(embeds=build_expired_embeds(message.embeds), view=None)
        except discord.Forbidden:
            return EditOutcome.FORBIDDEN
        except discord.NotFound:
            return EditOutcome.NOT_FOUND
        return EditOutcome.OK


__all__ = ["DiscordTransport"]
