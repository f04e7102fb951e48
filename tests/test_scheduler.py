"""Tests for the daily pagination cleanup job."""

from __future__ import annotations

from unittest.mock import Mock

from apscheduler.triggers.cron import CronTrigger

from paissa_house.config import Settings
from paissa_house.scheduler import CleanupScheduler


class DummyScheduler:
    """Minimal APScheduler stand-in recording registered jobs."""

    def __init__(self) -> None:
        self.jobs = []
        self.started = 0
        self.shutdown_calls = []

    def add_job(self, func, trigger, **kwargs):
        self.jobs.append((func, trigger, kwargs))

    def start(self) -> None:
        self.started += 1

    def shutdown(self, wait: bool = True) -> None:
        self.shutdown_calls.append(wait)


def _settings(**overrides):
    return Settings.from_dict({"pagination": {"sweep": overrides}})


def test_start_registers_daily_sweep_once():
    """Starting twice should only register one cron job."""

    dummy = DummyScheduler()
    cleanup = CleanupScheduler(Mock(), _settings(hour=4, minute=30), scheduler=dummy)

    cleanup.start()
    cleanup.start()

    assert cleanup.running
    assert dummy.started == 1
    assert len(dummy.jobs) == 1
    func, trigger, kwargs = dummy.jobs[0]
    assert func == cleanup.run_once
    assert isinstance(trigger, CronTrigger)
    assert kwargs["id"] == "pagination-sweep"
    fields = {field.name: str(field) for field in trigger.fields}
    assert fields["hour"] == "4"
    assert fields["minute"] == "30"


def test_run_once_delegates_to_lifecycle():
    lifecycle = Mock()
    lifecycle.sweep.return_value = 3
    cleanup = CleanupScheduler(lifecycle, _settings(), scheduler=DummyScheduler())

    assert cleanup.run_once() == 3
    lifecycle.sweep.assert_called_once_with()


def test_shutdown_only_after_start():
    dummy = DummyScheduler()
    cleanup = CleanupScheduler(Mock(), _settings(), scheduler=dummy)

    cleanup.shutdown()
    assert dummy.shutdown_calls == []

    cleanup.start()
    cleanup.shutdown()
    assert dummy.shutdown_calls == [False]
    assert not cleanup.running
