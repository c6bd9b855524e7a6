# tests/test_task_api.py

from __future__ import annotations

from pathlib import Path

import pytest

from streaks_overload.core import clock
from streaks_overload.core.errors import AmountTooLarge, TaskNotFound, ValidationError
from streaks_overload.tasks import task_api
from streaks_overload.tasks.task_models import SecureReason


def test_create_task(state, persister) -> None:
    task = task_api.create_task(state, "  Read 20 pages ")

    assert task.name == "Read 20 pages"
    assert task.hopper == 0.0 and task.streak == 0
    assert task.day_key == clock.today()
    assert state.registry.tasks == [task]
    assert persister.last["tasks"][0]["id"] == task.id


@pytest.mark.parametrize("name", ["", "   ", None, "x" * (task_api.MAX_NAME_LENGTH + 1)])
def test_create_task_rejects_bad_name(state, persister, name) -> None:
    with pytest.raises(ValidationError):
        task_api.create_task(state, name)
    assert state.registry.tasks == []
    assert persister.snapshots == []


def test_create_task_with_thumbnail(state, image_file: Path) -> None:
    ref = state.uploads.import_image(image_file, prefix="thumb")
    task = task_api.create_task(state, "Draw", ref)
    assert task.thumbnail_url == ref


def test_create_task_rejects_unmanaged_thumbnail(state) -> None:
    with pytest.raises(ValidationError):
        task_api.create_task(state, "Draw", "/uploads/../../etc/passwd")
    with pytest.raises(ValidationError):
        task_api.create_task(state, "Draw", "https://example.com/pic.png")
    assert state.registry.tasks == []


def test_add_to_hopper_secures_once(state) -> None:
    task = task_api.create_task(state, "Run")

    first = task_api.add_to_hopper(state, task.id, 0.6)
    assert first.secured is False
    assert first.task.hopper == 0.6

    second = task_api.add_to_hopper(state, task.id, "0.4")
    assert second.secured is True
    assert second.task.streak == 1
    assert second.task.last_secured_reason is SecureReason.ADD

    third = task_api.add_to_hopper(state, task.id, 5)
    assert third.secured is False
    assert third.task.streak == 1
    assert third.task.hopper == 6.0


def test_tenths_add_up_to_a_secured_day(state) -> None:
    task = task_api.create_task(state, "Stretch")
    results = [task_api.add_to_hopper(state, task.id, 0.1) for _ in range(10)]
    assert [r.secured for r in results].count(True) == 1
    assert results[-1].secured is True
    assert task.hopper == 1.0


def test_add_accepts_non_positive_amounts(state) -> None:
    task = task_api.create_task(state, "Save money")
    task_api.add_to_hopper(state, task.id, 0.5)

    assert task_api.add_to_hopper(state, task.id, 0).task.hopper == 0.5
    assert task_api.add_to_hopper(state, task.id, -0.2).task.hopper == 0.3
    assert task_api.add_to_hopper(state, task.id, -10).task.hopper == 0.0


def test_add_rejects_too_large_amount(state, persister) -> None:
    task = task_api.create_task(state, "Run")
    saves = len(persister.snapshots)

    with pytest.raises(AmountTooLarge):
        task_api.add_to_hopper(state, task.id, 1_000_001)
    assert task.hopper == 0.0
    assert len(persister.snapshots) == saves


def test_add_respects_configured_limit(state) -> None:
    state.settings.max_add_amount = 10.0
    task = task_api.create_task(state, "Run")
    task_api.add_to_hopper(state, task.id, 10)
    with pytest.raises(AmountTooLarge):
        task_api.add_to_hopper(state, task.id, 10.5)


@pytest.mark.parametrize("amount", ["abc", None, float("nan"), float("inf"), "-inf"])
def test_add_rejects_non_finite_amount(state, amount) -> None:
    task = task_api.create_task(state, "Run")
    with pytest.raises(ValidationError):
        task_api.add_to_hopper(state, task.id, amount)
    assert task.hopper == 0.0


def test_add_unknown_task(state) -> None:
    with pytest.raises(TaskNotFound):
        task_api.add_to_hopper(state, "missing", 0.5)


def test_add_rolls_stale_task_first(state) -> None:
    task = task_api.create_task(state, "Run")
    task.hopper = 2.5
    task.streak = 3
    task.secured_today = True
    task.day_key = clock.add_days(clock.today(), -1)

    result = task_api.add_to_hopper(state, task.id, 0.1)

    # rollover: 2.5 -> 1.5, auto-secured (streak 4); then +0.1, already secured
    assert result.task.day_key == clock.today()
    assert result.task.hopper == 1.6
    assert result.task.streak == 4
    assert result.secured is False
    assert result.task.last_secured_reason is SecureReason.ROLLOVER


def test_delete_task_removes_thumbnail(state, persister, image_file: Path) -> None:
    ref = state.uploads.import_image(image_file, prefix="thumb")
    task = task_api.create_task(state, "Draw", ref)
    thumb_path = state.uploads.path_for_url(ref)
    assert thumb_path is not None and thumb_path.exists()

    task_api.delete_task(state, task.id)

    assert state.registry.tasks == []
    assert not thumb_path.exists()
    assert persister.last["tasks"] == []


def test_delete_unknown_task(state) -> None:
    with pytest.raises(TaskNotFound):
        task_api.delete_task(state, "missing")


def test_delete_preserves_order(state) -> None:
    a = task_api.create_task(state, "a")
    b = task_api.create_task(state, "b")
    c = task_api.create_task(state, "c")
    task_api.delete_task(state, b.id)
    assert [t.id for t in state.registry.tasks] == [a.id, c.id]


def test_background_replace_and_clear(state, persister, image_file: Path) -> None:
    first = state.uploads.import_image(image_file, prefix="background")
    second = state.uploads.import_image(image_file, prefix="background")

    assert task_api.set_background(state, first) == first
    first_path = state.uploads.path_for_url(first)

    task_api.set_background(state, second)
    assert state.registry.background_url == second
    assert first_path is not None and not first_path.exists()

    task_api.clear_background(state)
    assert state.registry.background_url is None
    assert persister.last["backgroundUrl"] is None


def test_background_rejects_unmanaged_ref(state) -> None:
    with pytest.raises(ValidationError):
        task_api.set_background(state, "/tmp/evil.png")
    assert state.registry.background_url is None


def test_refresh_persists_only_on_change(state, persister) -> None:
    task = task_api.create_task(state, "Run")
    saves = len(persister.snapshots)

    assert task_api.refresh(state) is False
    assert len(persister.snapshots) == saves

    task.day_key = clock.add_days(clock.today(), -2)
    assert task_api.refresh(state) is True
    assert len(persister.snapshots) == saves + 1
    assert task.day_key == clock.today()


def test_state_view(state) -> None:
    task_api.create_task(state, "Run")
    view = task_api.state_view(state)

    assert view["today"] == clock.today()
    assert view["config"]["dailyThreshold"] == 1.0
    assert view["config"]["dailyDecay"] == 1.0
    assert view["backgroundUrl"] is None
    assert [t["name"] for t in view["tasks"]] == ["Run"]
