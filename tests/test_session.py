import json
import shutil
from pathlib import Path

from saga.config import EngineConfig
from saga.core.clock import ManualClock
from saga.data.paths import get_definitions_path
from saga.data.save_store import FileSlotStore, MemorySlotStore
from saga.services.session import GameSession, load_power_registry


def _make_session(tmp_path: Path, definitions_dir: Path | None = None, **config: object) -> GameSession:
    return GameSession.create(
        EngineConfig(save_dir=tmp_path / "saves", definitions_dir=definitions_dir, **config),
        clock=ManualClock(0),
    )


def test_start_loads_shipped_story_and_triggers_opening(tmp_path: Path) -> None:
    session = _make_session(tmp_path, get_definitions_path())

    result = session.start()

    assert session.started
    assert result is not None and result.triggered
    assert session.story.get_story_flag("game_started") is True
    assert "story_branch_choice" in session.story.graph


def test_start_falls_back_when_definitions_missing(tmp_path: Path) -> None:
    empty = tmp_path / "definitions"
    empty.mkdir()
    session = _make_session(tmp_path, empty)

    session.start()

    assert "first_power_unlock" in session.story.graph
    assert [power.id for power in session.powers.get_power_list()][0] == "telekinesis"


def test_load_power_registry_reads_custom_catalog(tmp_path: Path) -> None:
    (tmp_path / "powers.json").write_text(json.dumps({"spark": {"name": "Spark"}}), encoding="utf-8")

    assert load_power_registry(tmp_path).ids() == ["spark"]


def test_shipped_story_playthrough(tmp_path: Path) -> None:
    definitions_dir = tmp_path / "definitions"
    shutil.copytree(get_definitions_path(), definitions_dir)
    clock = ManualClock(0)
    session = GameSession.create(
        EngineConfig(save_dir=tmp_path / "saves", definitions_dir=definitions_dir), clock=clock
    )
    session.start()

    for event_id in ("first_dialogue", "tutorial_start", "first_power_unlock"):
        clock.advance(10)
        assert session.story.trigger_story_event(event_id).triggered
    used = session.activate_power("telekinesis", {"target": "pot"})
    outcome = session.story.choose("story_branch_choice", 2)

    assert used.success
    assert used.first_use is not None and used.first_use.triggered
    assert outcome.status == "chosen"
    assert session.story.is_power_unlocked("time_slow")
    assert session.story.has_reached_checkpoint("crossroads")
    autos = [meta.trigger for meta in session.persistence.get_available_saves() if meta.kind == "auto"]
    assert sorted(autos) == ["crossroads", "power_awakening", "tutorial_checkpoint"]
    assert isinstance(session.persistence.store, FileSlotStore)


def test_first_use_event_fires_once() -> None:
    clock = ManualClock(0)
    session = GameSession.create(EngineConfig(), clock=clock, store=MemorySlotStore())
    session.story.load_story_data(None)
    session.story.unlock_power("telekinesis", "test")

    first = session.activate_power("telekinesis")
    clock.advance(3_000)
    second = session.activate_power("telekinesis")

    assert first.first_use is not None and first.first_use.triggered
    assert second.first_use is not None and second.first_use.status == "already_completed"


def test_tick_reports_cooldowns_for_unlocked_powers() -> None:
    clock = ManualClock(0)
    session = GameSession.create(EngineConfig(), clock=clock, store=MemorySlotStore())
    session.story.unlock_power("telekinesis")
    session.activate_power("telekinesis")
    clock.advance(1_000)

    assert session.tick() == {"telekinesis": 2_000}


def test_reset_game_clears_progress_and_saves(tmp_path: Path) -> None:
    session = _make_session(tmp_path)
    session.start()
    session.story.set_checkpoint("tutorial_checkpoint")
    session.story.unlock_power("telekinesis")
    session.persistence.manual_save(0)

    session.reset_game()

    assert session.persistence.get_available_saves() == []
    assert session.story.get_unlocked_powers() == []
    assert session.story.get_story_state()["completed_events"] == []
    session.story.set_checkpoint("tutorial_checkpoint")
    assert len(session.persistence.get_available_saves()) == 1


def test_reset_game_can_keep_saves(tmp_path: Path) -> None:
    session = _make_session(tmp_path)
    session.persistence.manual_save(0)

    session.reset_game(clear_saves=False)

    assert [meta.key for meta in session.persistence.get_available_saves()] == ["manual_save_0"]


def test_game_state_view(tmp_path: Path) -> None:
    session = _make_session(tmp_path)
    session.start()
    session.story.unlock_power("telekinesis")

    view = session.get_game_state()

    assert view["story"]["current_checkpoint"] == "game_start"
    assert view["powers"]["telekinesis"]["available"] is True
    assert view["powers"]["time_slow"]["unlocked"] is False
    assert view["persistence"]["autosave_enabled"] is True
    assert view["progress"]["completed_events"] >= 1
