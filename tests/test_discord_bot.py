"""Smoke tests for the Discord bot wiring."""
from __future__ import annotations

import pytest
from discord import app_commands

from paissa_house.config import Settings
from paissa_house.discord_bot import PHASE_CHOICES, build_bot, build_filters
from paissa_house.models import FilterPhase, FilterSpec


def test_build_filters_from_choices():
    district = app_commands.Choice(name="Empyreum", value=979)
    phase = next(choice for choice in PHASE_CHOICES if choice.value == FilterPhase.FCFS)

    spec = build_filters(district=district, lottery_phase=phase, plot=12)

    assert spec == FilterSpec(district=979, lottery_phase=4, plot=12)


def test_build_filters_rejects_bad_ward():
    with pytest.raises(ValueError):
        build_filters(ward=31)


def test_build_bot_registers_commands(tmp_path, monkeypatch):
    monkeypatch.setenv("DISCORD_APP_ID", "not-a-number")

    bot = build_bot(tmp_path / "paissa_house.db", settings=Settings.from_dict({}))

    assert bot.application_id is None
    paissa = bot.tree.get_command("paissa")
    assert paissa is not None
    names = {parameter.display_name for parameter in paissa.parameters}
    assert {"world", "district", "lottery-phase", "allowed-tenants", "plot", "ward"} <= names
    assert bot.tree.get_command("help") is not None
    assert (tmp_path / "paissa_house.db").exists()
