"""Translate an emotional vector into concrete musical parameters.

Every mapping is a plain threshold or linear rule over the vector, so the
result is fully determined by the input apart from the pattern and meter
choices, which draw from the injected random source.
"""

from __future__ import annotations

import logging
import math

from evolver.models.emotion import EmotionalVector
from evolver.models.music_params import (
    DelaySettings,
    EffectSettings,
    Envelope,
    FilterSettings,
    MusicParameters,
    Oscillator,
    PatternDefinition,
    ReverbSettings,
    SynthSettings,
)
from evolver.services.randomness import RandomSource, clamp, pick
from evolver.services.theory import (
    COMMON_TIME,
    IRREGULAR_METERS,
    MAJOR_KEYS,
    MINOR_KEYS,
    NAMED_SCALES,
)

log = logging.getLogger(__name__)

# Scale degrees of the bass walk: root, fifth, fourth, root
BASS_PROGRESSION = (0, 4, 3, 0)
BASS_OCTAVE = 2

# Ordered guards, the first matching predicate picks the scale
SCALE_RULES = (
    (lambda e: e.complexity > 0.8, "altered"),
    (lambda e: e.darkness > 0.6 and e.tension > 0.6, "harmonic_minor"),
    (lambda e: e.darkness > 0.6, "natural_minor"),
    (lambda e: e.warmth > 0.6, "mixolydian"),
    (lambda e: True, "major"),
)


def synthesize(emotion: EmotionalVector, prompt: str, rng: RandomSource) -> MusicParameters:
    """Build a complete MusicParameters value from a mood and a prompt.

    The prompt is accepted for interface symmetry with the remote composer;
    local synthesis is driven by the emotional vector alone.
    """
    scale = select_scale(emotion)
    params = MusicParameters(
        tempo=60 + emotion.energy * 120,
        key=select_key(emotion),
        scale=scale,
        time_signature=select_time_signature(emotion, rng),
        effects=emotion_to_effects(emotion),
        synths=emotion_to_synths(emotion),
        patterns=generate_patterns(emotion, scale, rng),
    )
    log.debug(
        "Synthesized params for %r: tempo=%.1f key=%s meter=%s synths=%d patterns=%d",
        prompt[:60],
        params.tempo,
        params.key,
        params.time_signature,
        len(params.synths),
        len(params.patterns),
    )
    return params


def select_key(emotion: EmotionalVector) -> str:
    dark = emotion.darkness > 0.5
    if emotion.tension > 0.7:
        return "C#m" if dark else "Db"
    keys = MINOR_KEYS if dark else MAJOR_KEYS
    return keys[math.floor(emotion.hope * (len(keys) - 1))]


def select_scale(emotion: EmotionalVector) -> list[str]:
    for matches, name in SCALE_RULES:
        if matches(emotion):
            return list(NAMED_SCALES[name])
    raise AssertionError("scale rules must end with a catch-all")


def select_time_signature(emotion: EmotionalVector, rng: RandomSource) -> tuple[int, int]:
    if emotion.chaos > 0.6:
        return pick(rng, IRREGULAR_METERS)
    return COMMON_TIME


def emotion_to_effects(emotion: EmotionalVector) -> EffectSettings:
    return EffectSettings(
        reverb=ReverbSettings(
            room_size=0.3 + emotion.space * 0.7,  # sparse = more reverb
            dampening=1000 + emotion.warmth * 4000,
            wet=0.2 + emotion.space * 0.5,
        ),
        delay=DelaySettings(
            delay_time="16n" if emotion.tension > 0.6 else "8n",
            feedback=0.1 + emotion.complexity * 0.4,
            wet=0.1 + emotion.space * 0.3,
        ),
        filter=FilterSettings(
            frequency=200 + emotion.energy * 8000,
            type="lowpass" if emotion.warmth > 0.5 else "bandpass",
            rolloff=-24 if emotion.darkness > 0.5 else -12,
        ),
    )


def emotion_to_synths(emotion: EmotionalVector) -> list[SynthSettings]:
    # Bass voice is always present
    synths = [
        SynthSettings(
            type="synth",
            oscillator=Oscillator(type="sine" if emotion.warmth > 0.5 else "triangle"),
            envelope=Envelope(
                attack=0.01 + emotion.space * 0.1,
                decay=0.2,
                sustain=0.6 + emotion.energy * 0.3,
                release=0.5 + emotion.space * 1.5,
            ),
            volume=-10,
        )
    ]

    if emotion.complexity > 0.3:
        synths.append(
            SynthSettings(
                type="fm" if emotion.tension > 0.6 else "synth",
                oscillator=Oscillator(type="sawtooth" if emotion.chaos > 0.5 else "square"),
                envelope=Envelope(
                    attack=0.05 + emotion.space * 0.3,
                    decay=0.3,
                    sustain=0.5 + emotion.warmth * 0.4,
                    release=1.0 + emotion.space * 2.0,
                ),
                volume=-15 + emotion.energy * 5,
            )
        )

    if emotion.complexity > 0.6:
        synths.append(
            SynthSettings(
                type="noise" if emotion.chaos > 0.7 else "membrane",
                oscillator=Oscillator(type="sine"),
                envelope=Envelope(attack=0.001, decay=0.1, sustain=0.0, release=0.1),
                volume=-20,
            )
        )

    return synths


def generate_patterns(
    emotion: EmotionalVector, scale: list[str], rng: RandomSource
) -> list[PatternDefinition]:
    bass = generate_bass_line(scale, emotion, rng)
    patterns = [_build_pattern(bass, "bass", emotion, rng)]

    if emotion.complexity > 0.3:
        melody = generate_melody(scale, emotion, rng)
        patterns.append(_build_pattern(melody, "melody", emotion, rng))

    return patterns


def _build_pattern(
    notes: list[str], voice: str, emotion: EmotionalVector, rng: RandomSource
) -> PatternDefinition:
    return PatternDefinition(
        notes=notes,
        durations=generate_rhythm(emotion, voice, len(notes), rng),
        velocities=generate_velocities(emotion, len(notes), rng),
        timing=generate_timing(emotion, len(notes), rng),
    )


def generate_bass_line(scale: list[str], emotion: EmotionalVector, rng: RandomSource) -> list[str]:
    length = 8 if emotion.complexity > 0.5 else 4
    notes: list[str] = []

    for step in range(length):
        if emotion.chaos > 0.6 and rng.random() > 0.7:
            pitch = pick(rng, scale)
        else:
            degree = BASS_PROGRESSION[step % len(BASS_PROGRESSION)]
            pitch = scale[degree % len(scale)]
        notes.append(f"{pitch}{BASS_OCTAVE}")

    return notes


def generate_melody(scale: list[str], emotion: EmotionalVector, rng: RandomSource) -> list[str]:
    length = math.ceil(4 + emotion.complexity * 12)
    octave = 4 if emotion.energy > 0.6 else 3
    top = len(scale) - 1
    index = len(scale) // 2
    notes: list[str] = []

    for _ in range(length):
        if emotion.chaos > 0.5:
            index = min(int(rng.random() * len(scale)), top)
        elif emotion.tension > 0.5:
            index = min(index + (1 if rng.random() > 0.5 else 0), top)
        else:
            step = 1 if rng.random() > 0.5 else -1
            if not 0 <= index + step <= top:
                step = -step  # reflect off the scale boundary
            index = int(clamp(index + step, 0, top))
        notes.append(f"{scale[index]}{octave}")

    return notes


def generate_rhythm(
    emotion: EmotionalVector, voice: str, length: int, rng: RandomSource
) -> list[str]:
    standard = "4n" if voice == "bass" else "8n"
    durations: list[str] = []

    for _ in range(length):
        if emotion.energy > 0.7 and rng.random() > 0.5:
            durations.append("8n")
        elif emotion.space > 0.6 and rng.random() > 0.7:
            durations.append("2n")
        else:
            durations.append(standard)

    return durations


def generate_velocities(emotion: EmotionalVector, length: int, rng: RandomSource) -> list[float]:
    base = 0.5 + emotion.energy * 0.3
    return [
        clamp(base + (rng.random() - 0.5) * emotion.chaos * 0.3, 0.1, 1.0)
        for _ in range(length)
    ]


def generate_timing(emotion: EmotionalVector, length: int, rng: RandomSource) -> list[float]:
    timing: list[float] = []

    for step in range(length):
        humanize = (rng.random() - 0.5) * 0.02 if emotion.warmth > 0.5 else 0.0
        swing = 0.05 if emotion.warmth > 0.6 and step % 2 == 1 else 0.0
        timing.append(humanize + swing)

    return timing
