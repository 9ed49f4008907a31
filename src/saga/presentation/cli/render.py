"""Shared CLI rendering helpers."""
from __future__ import annotations

from typing import Any, Iterable, Mapping, Sequence

from saga.services import (
    CheckpointReachedEvent,
    FlagChangedEvent,
    PowerUnlockedEvent,
    SaveSlotMeta,
    StoryNotification,
    TriggerResult,
)


def render_heading(title: str) -> None:
    """Print a consistent section heading."""
    print(f"\n=== {title} ===")


def render_bullet_lines(lines: Iterable[str]) -> None:
    """Print bullet-prefixed lines."""
    for line in lines:
        print(f"- {line}")


def format_notification(notification: StoryNotification) -> str:
    if isinstance(notification, FlagChangedEvent):
        return f"Flag '{notification.flag}' set to {notification.value!r}."
    if isinstance(notification, PowerUnlockedEvent):
        return f"Power unlocked: {notification.power_id}."
    if isinstance(notification, CheckpointReachedEvent):
        suffix = " (autosave requested)" if notification.autosave_requested else ""
        return f"Checkpoint reached: {notification.checkpoint_id}{suffix}."
    return str(notification)


def render_trigger_result(result: TriggerResult) -> None:
    """Render an event's text, its choices and the changes it caused."""
    event = result.event
    if event is not None and result.status in ("triggered", "branch") and event.text:
        speaker = f"{event.speaker}: " if event.speaker else ""
        print(f"[{event.id}] {speaker}{event.text}")
    if result.choices:
        print("Choices:")
        for choice in result.choices:
            print(f"  {choice.index}. {choice.text}")
    render_bullet_lines(format_notification(item) for item in result.notifications)


def render_status(game_state: Mapping[str, Any]) -> None:
    story = game_state["story"]
    progress = game_state["progress"]
    render_heading("Status")
    print(f"Checkpoint: {story['current_checkpoint'] or '-'}")
    print(
        f"Progress: {progress['completed_events']}/{progress['total_events']} events "
        f"({progress['progress_percentage']:.0f}%)"
    )
    flags = story["story_flags"]
    if flags:
        print("Flags:")
        for name in sorted(flags):
            print(f"  {name} = {flags[name]!r}")
    render_heading("Powers")
    for power_id, power in game_state["powers"].items():
        if not power["unlocked"]:
            state = "locked"
        elif power["active"]:
            state = "active"
        elif power["remaining_cooldown_ms"]:
            state = f"cooldown {power['remaining_cooldown_ms']}ms"
        else:
            state = "ready"
        print(f"  {power_id} ({power['kind']}): {state}")
    persistence = game_state["persistence"]
    render_heading("Saves")
    print(
        f"Autosave: {'on' if persistence['autosave_enabled'] else 'off'}; "
        f"{persistence['available_saves']} save(s), {persistence['storage_bytes']} bytes"
    )


def render_saves(saves: Sequence[SaveSlotMeta]) -> None:
    render_heading("Available Saves")
    if not saves:
        print("(none)")
        return
    for meta in saves:
        label = meta.trigger or meta.checkpoint or "-"
        print(f"  {meta.key} [{meta.kind}] saved_at={meta.saved_at} #{meta.sequence} {label}")
