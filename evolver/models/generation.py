"""Generation aggregate and the value types attached to it."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import ConfigDict, Field

from evolver.models.base import CamelModel
from evolver.models.emotion import EmotionalVector
from evolver.models.music_params import MusicParameters


class MutationType(str, Enum):
    HARMONIC = "harmonic"  # scale changes, modal shifts
    RHYTHMIC = "rhythmic"  # timing, density
    TIMBRAL = "timbral"  # synth parameters, effects
    STRUCTURAL = "structural"  # add/remove layers
    TEXTURAL = "textural"  # space, wetness
    RADICAL = "radical"  # complete reimagining


class MutableField(str, Enum):
    """Top-level MusicParameters fields that can be locked against mutation."""

    TEMPO = "tempo"
    KEY = "key"
    SCALE = "scale"
    TIME_SIGNATURE = "timeSignature"
    EFFECTS = "effects"
    SYNTHS = "synths"
    PATTERNS = "patterns"


class CreativeReasoning(CamelModel):
    analysis: str = Field(description="What is observed in the current state")
    intention: str = Field(description="What the next step wants to achieve")
    strategy: str = Field(description="How it plans to achieve it")
    reflection: str = Field(description="Expectations about the outcome")


class FitnessScores(CamelModel):
    emotional_resonance: float = Field(ge=0.0, le=1.0)
    coherence: float = Field(ge=0.0, le=1.0)
    interest: float = Field(ge=0.0, le=1.0)
    surprise: float = Field(ge=0.0, le=1.0)
    technical_quality: float = Field(ge=0.0, le=1.0)


class MutationStrategy(CamelModel):
    type: MutationType
    description: str
    intensity: float = Field(ge=0.0, le=1.0)
    targets: list[str] = Field(default_factory=list)


class Generation(CamelModel):
    """One immutable snapshot of parameters, narrative and scores in the evolution tree."""

    model_config = ConfigDict(frozen=True)

    id: str
    parent_id: str | None = Field(default=None, description="None marks a root generation")
    generation_number: int = Field(ge=0)
    timestamp: datetime
    music_code: str = Field(description="Tone.js program rendering the parameters")
    music_params: MusicParameters
    creative_reasoning: CreativeReasoning
    fitness: FitnessScores
    prompt: str
    mood: EmotionalVector
    mutations: list[MutationType] = Field(default_factory=list)
    locked_elements: frozenset[MutableField] = Field(default_factory=frozenset)
    branch: str = "main"
    tags: list[str] = Field(default_factory=list)


class AiGenerationResponse(CamelModel):
    """Schema a remote composer must satisfy to stand in for the local pipeline."""

    params: MusicParameters
    reasoning: CreativeReasoning
    fitness: FitnessScores
    mutations: list[MutationType] = Field(default_factory=list)
