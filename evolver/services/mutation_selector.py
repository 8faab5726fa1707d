"""Decide how the next generation should differ from its parent."""

from __future__ import annotations

import logging
from typing import NamedTuple

from evolver.models.generation import FitnessScores, MutationStrategy, MutationType
from evolver.services.fitness import weakest_dimension

log = logging.getLogger(__name__)

RADICAL_TEMPERATURE = 0.8


class FeedbackRule(NamedTuple):
    phrases: tuple[str, ...]
    mutation: MutationType
    intensity: float
    goal: str


# Checked in order; the first rule with a matching phrase wins
FEEDBACK_RULES = (
    FeedbackRule(("more energy", "faster"), MutationType.RHYTHMIC, 0.7, "increase the energy and momentum"),
    FeedbackRule(("darker", "sadder"), MutationType.HARMONIC, 0.6, "explore darker emotional territory"),
    FeedbackRule(("simpler", "less"), MutationType.STRUCTURAL, 0.5, "strip back to the essentials"),
    FeedbackRule(("weird", "experimental"), MutationType.RADICAL, 0.9, "break away into unfamiliar territory"),
)

DIMENSION_MUTATIONS: dict[str, MutationType] = {
    "emotional_resonance": MutationType.TIMBRAL,
    "coherence": MutationType.STRUCTURAL,
    "interest": MutationType.RHYTHMIC,
    "surprise": MutationType.HARMONIC,
    "technical_quality": MutationType.TEXTURAL,
}

MUTATION_TARGETS: dict[MutationType, tuple[str, ...]] = {
    MutationType.HARMONIC: ("scale", "key"),
    MutationType.RHYTHMIC: ("tempo", "patterns.durations"),
    MutationType.TIMBRAL: ("synths", "effects"),
    MutationType.STRUCTURAL: ("patterns", "timeSignature"),
    MutationType.TEXTURAL: ("effects.reverb", "effects.delay"),
    MutationType.RADICAL: ("everything",),
}


def match_feedback(feedback: str | None) -> FeedbackRule | None:
    """Return the first feedback rule whose phrase appears in the text."""
    if not feedback:
        return None
    lower = feedback.lower()
    for rule in FEEDBACK_RULES:
        if any(phrase in lower for phrase in rule.phrases):
            return rule
    return None


def select_strategy(
    parent_fitness: FitnessScores,
    creative_temperature: float,
    feedback: str | None = None,
) -> MutationStrategy:
    """Pick a mutation type and intensity.

    Precedence: recognised feedback, then high temperature (radical), then
    the mutation that addresses the parent's weakest fitness dimension.
    """
    rule = match_feedback(feedback)
    if rule is not None:
        mutation, intensity = rule.mutation, rule.intensity
        reason = f"feedback matched {rule.phrases}"
    elif creative_temperature > RADICAL_TEMPERATURE:
        mutation = MutationType.RADICAL
        intensity = 0.7 + creative_temperature * 0.3
        reason = f"temperature {creative_temperature:.2f}"
    else:
        weakest = weakest_dimension(parent_fitness)
        mutation = DIMENSION_MUTATIONS[weakest]
        intensity = 0.3 + creative_temperature * 0.4
        reason = f"weakest dimension {weakest}"

    intensity = min(intensity, 1.0)
    strategy = MutationStrategy(
        type=mutation,
        description=describe_mutation(mutation, intensity),
        intensity=intensity,
        targets=list(MUTATION_TARGETS[mutation]),
    )
    log.info("Selected %s (%s)", strategy.description, reason)
    return strategy


def describe_mutation(mutation: MutationType, intensity: float) -> str:
    if intensity > 0.7:
        level = "dramatic"
    elif intensity > 0.4:
        level = "moderate"
    else:
        level = "subtle"
    return f"{level} {mutation.value} mutation"
