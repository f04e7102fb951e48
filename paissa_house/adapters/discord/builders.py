"""Embeds for PaissaHouse messages.

Turns rendered pages into `discord.Embed` objects, copies embeds with the
expiry notice for sessions that have ended, and builds the /help card.
"""

from __future__ import annotations

from typing import Iterable, List

import discord

from ...rendering import RenderedPage, append_expired_notice

HELP_THUMBNAIL = "https://zhu.codes/assets/PaissaLogo.c38c9420.png"


def build_page_embed(page: RenderedPage, colour: int) -> discord.Embed:
    """Construct the embed for one page of a pagination session."""

    embed = discord.Embed(
        title=page.title,
        url=page.url,
        description=page.description,
        colour=discord.Colour(colour),
        timestamp=page.timestamp,
    )
    for item in page.fields:
        embed.add_field(name=item.name, value=item.value, inline=item.inline)
    if page.footer:
        embed.set_footer(text=page.footer)
    return embed


def build_expired_embeds(embeds: Iterable[discord.Embed]) -> List[discord.Embed]:
    """Copy existing embeds with the expiry notice appended to each footer."""

    expired: List[discord.Embed] = []
    for embed in embeds:
        copy = discord.Embed.from_dict(embed.to_dict())
        copy.set_footer(
            text=append_expired_notice(embed.footer.text),
            icon_url=embed.footer.icon_url,
        )
        expired.append(copy)
    return expired


def build_help_embed(colour: int) -> discord.Embed:
    embed = discord.Embed(
        title="PaissaHouse",
        description=(
            "An unofficial Discord bot that displays data from "
            "[PaissaDB](https://zhu.codes/paissa) and links to the "
            "[GameTora Housing Plot Viewer](https://gametora.com/ffxiv/housing-plot-viewer). "
            "It is not affiliated with either project."
        ),
        colour=discord.Colour(colour),
    )
    embed.set_thumbnail(url=HELP_THUMBNAIL)
    embed.add_field(
        name="PaissaDB",
        value=(
            "PaissaDB lists houses for sale in Final Fantasy XIV and how many lottery "
            "entries each one has. Data is contributed by players running the "
            "[PaissaHouse plugin](https://github.com/zhudotexe/FFXIV_PaissaHouse)."
        ),
        inline=False,
    )
    embed.add_field(
        name="/paissa",
        value=(
            "Browse open plots on a world. Filter by district, size, lottery phase, "
            "allowed tenants, plot or ward. Use the buttons to page through results "
            "or refresh the data. Controls stay active for 7 days."
        ),
        inline=False,
    )
    return embed


__all__ = ["build_page_embed", "build_expired_embeds", "build_help_embed"]
