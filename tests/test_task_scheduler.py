# tests/test_task_scheduler.py

from __future__ import annotations

import asyncio

import pytest

from streaks_overload.tasks.task_models import new_task
from streaks_overload.tasks.task_scheduler import run_rollover_ticker


async def _run_ticker_for(state, today_fn, seconds: float) -> None:
    runner = asyncio.create_task(
        run_rollover_ticker(state, interval_seconds=0.01, today_fn=today_fn)
    )
    await asyncio.sleep(seconds)
    runner.cancel()
    with pytest.raises(asyncio.CancelledError):
        await runner


@pytest.mark.asyncio
async def test_ticker_rolls_stale_tasks_once(state, persister) -> None:
    task = new_task("Read", today="2024-03-03")
    task.hopper = 0.4
    task.streak = 6
    state.registry.tasks.append(task)

    await _run_ticker_for(state, lambda: "2024-03-05", 0.05)

    assert task.day_key == "2024-03-05"
    assert task.streak == 0
    assert task.hopper == 0.0
    # later ticks on the same day are no-ops and save nothing
    assert len(persister.snapshots) == 1


@pytest.mark.asyncio
async def test_ticker_picks_up_midnight(state, persister) -> None:
    task = new_task("Read", today="2024-03-05")
    task.hopper = 2.0
    task.streak = 1
    task.secured_today = True
    state.registry.tasks.append(task)

    days = ["2024-03-05"]

    runner = asyncio.create_task(
        run_rollover_ticker(state, interval_seconds=0.01, today_fn=lambda: days[0])
    )
    await asyncio.sleep(0.03)
    assert persister.snapshots == []

    days[0] = "2024-03-06"
    await asyncio.sleep(0.03)
    runner.cancel()
    with pytest.raises(asyncio.CancelledError):
        await runner

    assert task.day_key == "2024-03-06"
    assert task.secured_today is True
    assert task.streak == 2
    assert len(persister.snapshots) == 1


@pytest.mark.asyncio
async def test_ticker_survives_errors(state, persister, monkeypatch) -> None:
    calls = {"n": 0}

    def boom(*args, **kwargs):
        calls["n"] += 1
        raise RuntimeError("boom")

    monkeypatch.setattr("streaks_overload.tasks.task_scheduler.refresh", boom)

    await _run_ticker_for(state, lambda: "2024-03-05", 0.05)

    assert calls["n"] >= 2
