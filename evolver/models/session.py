"""Session aggregate: the generation list, navigation pointer, settings and memory."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import Field

from evolver.models.base import CamelModel
from evolver.models.emotion import EmotionalVector
from evolver.models.generation import Generation, MutableField, MutationType


class SessionSettings(CamelModel):
    autonomy_level: float = Field(default=0.5, ge=0.0, le=1.0, description="Follow instructions vs creative freedom")
    generations_to_run: int = Field(default=5, ge=1, description="Generations per autonomous run")
    creative_temperature: float = Field(default=0.5, ge=0.0, le=1.0, description="Conservative vs experimental mutations")
    allow_branching: bool = Field(default=True, description="Allow evolving a generation that already has children")


class SessionMemory(CamelModel):
    preferred_moods: list[EmotionalVector] = Field(default_factory=list)
    successful_mutations: list[MutationType] = Field(default_factory=list)
    avoided_patterns: list[str] = Field(default_factory=list)
    style_preferences: dict[str, float] = Field(default_factory=dict)


class UserFeedback(CamelModel):
    generation_id: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    rating: int | None = Field(default=None, ge=1, le=5)
    emotional_response: str | None = None
    locked_elements: list[MutableField] | None = None
    suggestions: list[str] = Field(default_factory=list)


class Session(CamelModel):
    id: str
    start_time: datetime
    last_update_time: datetime
    initial_prompt: str = ""
    current_generation: str | None = Field(default=None, description="Id of the generation being explored")
    generations: list[Generation] = Field(default_factory=list, description="Creation order, not tree order")
    settings: SessionSettings = Field(default_factory=SessionSettings)
    memory: SessionMemory = Field(default_factory=SessionMemory)

    def get_generation(self, generation_id: str | None) -> Generation | None:
        """Look up a generation by id."""
        if generation_id is None:
            return None
        return next((g for g in self.generations if g.id == generation_id), None)


class ParamDiff(CamelModel):
    """A change to a single leaf of MusicParameters."""

    path: str = Field(description="Dotted path, e.g. 'effects.reverb.wet' or 'patterns[1].notes'")
    change_type: str = Field(description="'added', 'modified' or 'deleted'")
    original_value: Any = None
    modified_value: Any = None


class GenerationDiff(CamelModel):
    from_generation_id: str
    to_generation_id: str
    changes: list[ParamDiff] = Field(default_factory=list)
    summary: str = ""

    def has_changes(self) -> bool:
        return len(self.changes) > 0
