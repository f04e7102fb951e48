"""Discord adapter: embeds, button views and the session transport."""

from __future__ import annotations

from .transport import DiscordTransport as DiscordTransport
from .views import PaginationView as PaginationView
