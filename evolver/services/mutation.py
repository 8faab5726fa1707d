"""Apply a mutation strategy to a set of musical parameters.

``apply_mutation`` always works on a deep copy, so the parent's parameters are
never touched. Every numeric perturbation is re-clamped to its field's range.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from evolver.errors import InvalidInputError
from evolver.models.generation import MutableField, MutationStrategy, MutationType
from evolver.models.music_params import (
    TEMPO_MAX,
    TEMPO_MIN,
    EffectSettings,
    MusicParameters,
    SynthSettings,
)
from evolver.services.randomness import RandomSource, clamp, jitter, pick
from evolver.services.theory import (
    ALL_KEYS,
    CHROMATIC,
    DURATION_TOKENS,
    NAMED_SCALES,
    OSCILLATOR_TYPES,
    transpose_key,
)

log = logging.getLogger(__name__)

MAX_PATTERN_LAYERS = 4


def coerce_locked_fields(locked: Iterable[MutableField | str]) -> frozenset[MutableField]:
    """Normalise lock names, rejecting anything that is not a mutable field."""
    try:
        return frozenset(MutableField(name) for name in locked)
    except ValueError as e:
        raise InvalidInputError(f"Unknown locked field: {e}") from e


LOCKED_ATTRIBUTES = {
    MutableField.TEMPO: "tempo",
    MutableField.KEY: "key",
    MutableField.SCALE: "scale",
    MutableField.TIME_SIGNATURE: "time_signature",
    MutableField.EFFECTS: "effects",
    MutableField.SYNTHS: "synths",
    MutableField.PATTERNS: "patterns",
}


def restore_locked_fields(
    params: MusicParameters,
    source: MusicParameters,
    locked_fields: Iterable[MutableField | str],
) -> MusicParameters:
    """Copy of ``params`` with every locked field taken back from ``source``."""
    restored = params.model_copy(deep=True)
    kept = source.model_copy(deep=True)
    for field in coerce_locked_fields(locked_fields):
        attribute = LOCKED_ATTRIBUTES[field]
        if getattr(restored, attribute) != getattr(kept, attribute):
            log.warning("Locked field %s was changed; keeping the parent's value", field.value)
            setattr(restored, attribute, getattr(kept, attribute))
    return restored


def apply_mutation(
    params: MusicParameters,
    strategy: MutationStrategy,
    locked_fields: Iterable[MutableField | str],
    rng: RandomSource,
) -> MusicParameters:
    locked = coerce_locked_fields(locked_fields)
    mutated = params.model_copy(deep=True)
    intensity = strategy.intensity

    def unlocked(field: MutableField) -> bool:
        return field not in locked

    mutation = strategy.type
    if mutation == MutationType.HARMONIC:
        if unlocked(MutableField.SCALE):
            mutated.scale = mutate_scale(mutated.scale, intensity, rng)
        if unlocked(MutableField.KEY):
            mutated.key = mutate_key(mutated.key, intensity, rng)

    elif mutation == MutationType.RHYTHMIC:
        if unlocked(MutableField.TEMPO):
            mutated.tempo = mutate_tempo(mutated.tempo, intensity, rng)
        if unlocked(MutableField.PATTERNS):
            for pattern in mutated.patterns:
                pattern.durations = mutate_rhythm(pattern.durations, intensity, rng)

    elif mutation == MutationType.TIMBRAL:
        if unlocked(MutableField.SYNTHS):
            for synth in mutated.synths:
                mutate_synth(synth, intensity, rng)
        if unlocked(MutableField.EFFECTS):
            mutate_effects(mutated.effects, intensity, rng)

    elif mutation == MutationType.STRUCTURAL:
        if unlocked(MutableField.PATTERNS):
            layers = mutated.patterns
            if intensity > 0.6 and len(layers) > 1:
                layers.pop()  # simplify
            elif intensity > 0.7 and 0 < len(layers) < MAX_PATTERN_LAYERS:
                layers.append(layers[0].model_copy(deep=True))

    elif mutation == MutationType.TEXTURAL:
        if unlocked(MutableField.EFFECTS):
            reverb, delay = mutated.effects.reverb, mutated.effects.delay
            reverb.wet = clamp(reverb.wet + jitter(rng, intensity, 0.3), 0.0, 1.0)
            delay.wet = clamp(delay.wet + jitter(rng, intensity, 0.2), 0.0, 1.0)

    elif mutation == MutationType.RADICAL:
        # Only scale and tempo are reimagined; every other category is skipped
        if unlocked(MutableField.SCALE):
            mutated.scale = generate_radical_scale(rng)
        if unlocked(MutableField.TEMPO):
            mutated.tempo = TEMPO_MIN + rng.random() * (TEMPO_MAX - TEMPO_MIN)

    log.debug(
        "Applied %s (locked=%s): tempo %.1f -> %.1f, key %s -> %s, layers %d -> %d",
        strategy.description,
        sorted(f.value for f in locked),
        params.tempo,
        mutated.tempo,
        params.key,
        mutated.key,
        len(params.patterns),
        len(mutated.patterns),
    )
    return mutated


def mutate_scale(scale: list[str], intensity: float, rng: RandomSource) -> list[str]:
    if intensity < 0.3:
        # Subtle: swap one pitch
        new_scale = list(scale)
        index = min(int(rng.random() * len(scale)), len(scale) - 1)
        new_scale[index] = pick(rng, CHROMATIC)
        return new_scale

    # Dramatic: move to a different named mode
    current = tuple(scale)
    candidates = [pitches for pitches in NAMED_SCALES.values() if pitches != current]
    return list(pick(rng, candidates))


def mutate_key(key: str, intensity: float, rng: RandomSource) -> str:
    if intensity < 0.4:
        return transpose_key(key, 7)  # up a fifth, same quality
    return pick(rng, ALL_KEYS)


def mutate_tempo(tempo: float, intensity: float, rng: RandomSource) -> float:
    return clamp(tempo + jitter(rng, intensity, 40), TEMPO_MIN, TEMPO_MAX)


def mutate_rhythm(durations: list[str], intensity: float, rng: RandomSource) -> list[str]:
    if intensity < 0.4:
        return [pick(rng, DURATION_TOKENS) if rng.random() < 0.3 else d for d in durations]
    return [pick(rng, DURATION_TOKENS) for _ in durations]


def mutate_synth(synth: SynthSettings, intensity: float, rng: RandomSource) -> None:
    if intensity > 0.5:
        synth.oscillator.type = pick(rng, OSCILLATOR_TYPES)
    envelope = synth.envelope
    envelope.attack = clamp(envelope.attack + jitter(rng, intensity, 0.5), 0.001, 2.0)
    envelope.release = clamp(envelope.release + jitter(rng, intensity, 1.0), 0.01, 5.0)


def mutate_effects(effects: EffectSettings, intensity: float, rng: RandomSource) -> None:
    reverb, delay = effects.reverb, effects.delay
    reverb.room_size = clamp(reverb.room_size + jitter(rng, intensity, 0.5), 0.1, 0.9)
    delay.feedback = clamp(delay.feedback + jitter(rng, intensity, 0.3), 0.0, 0.9)


def generate_radical_scale(rng: RandomSource) -> list[str]:
    """A 5-7 note ascending random walk over the chromatic circle."""
    length = 5 + min(int(rng.random() * 3), 2)
    index = int(rng.random() * len(CHROMATIC)) % len(CHROMATIC)
    scale = [CHROMATIC[index]]
    for _ in range(length - 1):
        index = (index + 1 + min(int(rng.random() * 3), 2)) % len(CHROMATIC)
        scale.append(CHROMATIC[index])
    return scale
