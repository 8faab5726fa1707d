"""Structured musical parameters consumed by the audio collaborator."""

from __future__ import annotations

from typing import Literal

from pydantic import Field, PositiveInt, model_validator

from evolver.models.base import CamelModel

TEMPO_MIN = 40.0
TEMPO_MAX = 200.0

SynthType = Literal["synth", "membrane", "metal", "noise", "fm", "am"]


class ReverbSettings(CamelModel):
    room_size: float = Field(ge=0.0, le=1.0)
    dampening: float = Field(ge=0.0, le=10000.0, description="Dampening frequency in Hz")
    wet: float = Field(ge=0.0, le=1.0)


class DelaySettings(CamelModel):
    delay_time: str = Field(description="Tone.js duration token, e.g. '8n'")
    feedback: float = Field(ge=0.0, le=1.0)
    wet: float = Field(ge=0.0, le=1.0)


class FilterSettings(CamelModel):
    frequency: float = Field(ge=20.0, le=20000.0, description="Cutoff in Hz")
    type: str = Field(description="'lowpass', 'bandpass' or 'highpass'")
    rolloff: int = Field(description="Slope in dB/octave, -12 or -24")


class EffectSettings(CamelModel):
    reverb: ReverbSettings
    delay: DelaySettings
    filter: FilterSettings


class Oscillator(CamelModel):
    type: str = Field(description="'sine', 'triangle', 'sawtooth' or 'square'")


class Envelope(CamelModel):
    attack: float = Field(ge=0.0, le=2.0)
    decay: float = Field(ge=0.0, le=2.0)
    sustain: float = Field(ge=0.0, le=1.0)
    release: float = Field(ge=0.0, le=5.0)


class SynthSettings(CamelModel):
    type: SynthType = "synth"
    oscillator: Oscillator
    envelope: Envelope
    volume: float = Field(le=0.0, description="Volume in dB")


class PatternDefinition(CamelModel):
    """One looping note pattern; the four arrays are parallel, one entry per step."""

    notes: list[str]
    durations: list[str]
    velocities: list[float]
    timing: list[float]

    @model_validator(mode="after")
    def _check_parallel_lengths(self) -> PatternDefinition:
        lengths = {len(self.notes), len(self.durations), len(self.velocities), len(self.timing)}
        if len(lengths) != 1:
            raise ValueError(
                "pattern arrays must have equal length "
                f"(notes={len(self.notes)}, durations={len(self.durations)}, "
                f"velocities={len(self.velocities)}, timing={len(self.timing)})"
            )
        if any(v < 0.0 or v > 1.0 for v in self.velocities):
            raise ValueError("pattern velocities must be within [0, 1]")
        return self


class MusicParameters(CamelModel):
    """Everything needed to render one generation as sound."""

    tempo: float = Field(ge=TEMPO_MIN, le=TEMPO_MAX, description="Tempo in BPM")
    key: str = Field(description="Root note with optional 'm' suffix for minor, e.g. 'F#m'")
    scale: list[str] = Field(min_length=1, description="Ordered pitch names")
    time_signature: tuple[PositiveInt, PositiveInt]
    effects: EffectSettings
    synths: list[SynthSettings] = Field(min_length=1)
    patterns: list[PatternDefinition] = Field(default_factory=list)
