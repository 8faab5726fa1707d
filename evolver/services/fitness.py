"""Heuristic self-evaluation of a generation.

These are rough proxies computed from the parameters alone, not from rendered
audio. Each score is independent and clamped to [0, 1].
"""

from __future__ import annotations

from evolver.models.emotion import EmotionalVector
from evolver.models.generation import FitnessScores
from evolver.models.music_params import MusicParameters
from evolver.services.randomness import clamp
from evolver.services.theory import COMMON_TIME

# Fixed order used to break ties when looking for the weakest dimension
FITNESS_DIMENSIONS = (
    "emotional_resonance",
    "coherence",
    "interest",
    "surprise",
    "technical_quality",
)


def evaluate(params: MusicParameters, emotion: EmotionalVector) -> FitnessScores:
    return FitnessScores(
        emotional_resonance=assess_emotional_match(params, emotion),
        coherence=assess_coherence(params),
        interest=assess_interest(params),
        surprise=assess_surprise(params),
        technical_quality=assess_technical_quality(params),
    )


def weakest_dimension(fitness: FitnessScores) -> str:
    """Lowest scoring dimension; ties go to the earliest in FITNESS_DIMENSIONS."""
    return min(FITNESS_DIMENSIONS, key=lambda name: getattr(fitness, name))


def assess_emotional_match(params: MusicParameters, emotion: EmotionalVector) -> float:
    score = 0.5
    # Tempo should follow energy
    score += (1 - abs((params.tempo - 60) / 120 - emotion.energy)) * 0.2
    # Reverb should follow space
    score += (1 - abs(params.effects.reverb.wet - emotion.space)) * 0.2
    return clamp(score, 0.0, 1.0)


def assess_coherence(params: MusicParameters) -> float:
    score = 0.6
    volume_variance = _variance([s.volume for s in params.synths])
    score += max(0.0, 0.3 - volume_variance) * 0.4
    return clamp(score, 0.0, 1.0)


def assess_interest(params: MusicParameters) -> float:
    score = 0.4
    score += min(len(params.patterns) / 4, 0.3)
    distinct_durations = {d for p in params.patterns for d in p.durations}
    score += len(distinct_durations) * 0.05
    return clamp(score, 0.0, 1.0)


def assess_surprise(params: MusicParameters) -> float:
    score = 0.3
    if tuple(params.time_signature) != COMMON_TIME:
        score += 0.2
    if len(params.scale) != 7:
        score += 0.2
    return clamp(score, 0.0, 1.0)


def assess_technical_quality(params: MusicParameters) -> float:
    score = 0.6
    if all(s.envelope.attack < 2 and s.envelope.release < 5 for s in params.synths):
        score += 0.2
    if params.effects.reverb.wet < 0.8 and params.effects.delay.feedback < 0.8:
        score += 0.2
    return clamp(score, 0.0, 1.0)


def _variance(values: list[float]) -> float:
    if not values:
        return 0.0
    mean = sum(values) / len(values)
    return sum((v - mean) ** 2 for v in values) / len(values)
