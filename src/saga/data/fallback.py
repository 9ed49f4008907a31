"""Embedded default content used when external definitions cannot be loaded."""
from __future__ import annotations

from typing import Any, Dict

from saga.data.repositories import PowersRepository, StoryRepository
from saga.domain.power_registry import PowerRegistry
from saga.domain.story_graph import StoryGraph

FALLBACK_STORY_DATA: Dict[str, Any] = {
    "initial_flags": {
        "game_started": False,
        "first_dialogue_seen": False,
        "tutorial_completed": False,
    },
    "checkpoints": {
        "game_start": {"name": "Beginning", "description": "The start of your journey"},
        "tutorial_checkpoint": {"name": "First Steps", "description": "The tutorial grounds"},
    },
    "events": [
        {
            "id": "game_start",
            "type": "dialogue",
            "content": {"text": "Welcome to your adventure!", "speaker": "Narrator"},
            "effects": [{"type": "set_flag", "flag": "game_started", "value": True}],
            "next_event": "first_dialogue",
        },
        {
            "id": "first_dialogue",
            "type": "dialogue",
            "content": {"text": "Something stirs in the garden.", "speaker": "Narrator"},
            "conditions": [{"kind": "flag", "name": "game_started", "expected": True}],
            "effects": [{"type": "set_flag", "flag": "first_dialogue_seen", "value": True}],
        },
        {
            "id": "tutorial_start",
            "type": "flag-effect",
            "content": {"text": "Let's learn the basics."},
            "effects": [{"type": "set_checkpoint", "checkpoint_id": "tutorial_checkpoint"}],
        },
        {
            "id": "first_power_unlock",
            "type": "unlock",
            "one_shot": True,
            "content": {"text": "A strange energy flows through you."},
            "conditions": [{"kind": "checkpoint_reached", "checkpoint_id": "tutorial_checkpoint"}],
            "effects": [
                {"type": "unlock_power", "power_id": "telekinesis"},
                {"type": "set_flag", "flag": "tutorial_completed", "value": True},
            ],
        },
        {
            "id": "first_telekinesis_use",
            "type": "dialogue",
            "one_shot": True,
            "content": {"text": "The pot lifts from the ground.", "speaker": "Narrator"},
        },
    ],
}

FALLBACK_POWER_DATA: Dict[str, Any] = {
    "telekinesis": {
        "name": "Telekinesis",
        "description": "Move objects with your mind",
        "kind": "active",
        "cooldown_ms": 3000,
        "unlock_conditions": [{"kind": "event_completed", "event_id": "first_power_unlock"}],
        "effect": "move_object",
        "first_use_event": "first_telekinesis_use",
    },
    "enhanced_vision": {
        "name": "Enhanced Vision",
        "description": "See hidden objects and secrets",
        "kind": "toggle",
        "unlock_conditions": [{"kind": "flag", "name": "vision_power_unlocked", "expected": True}],
        "effect": "reveal_hidden",
    },
    "time_slow": {
        "name": "Time Slow",
        "description": "Slow down time around you",
        "kind": "active",
        "cooldown_ms": 10000,
        "active_duration_ms": 3000,
        "unlock_conditions": [{"kind": "flag", "name": "time_power_unlocked", "expected": True}],
        "effect": "time_manipulation",
    },
    "phase_walk": {
        "name": "Phase Walk",
        "description": "Walk through certain obstacles",
        "kind": "active",
        "cooldown_ms": 8000,
        "active_duration_ms": 2000,
        "unlock_conditions": [{"kind": "flag", "name": "phase_power_unlocked", "expected": True}],
        "effect": "phase_through",
    },
}


def load_fallback_story_graph() -> StoryGraph:
    return StoryRepository(raw=FALLBACK_STORY_DATA).graph()


def load_fallback_power_registry() -> PowerRegistry:
    return PowerRegistry(PowersRepository(raw=FALLBACK_POWER_DATA).all())
