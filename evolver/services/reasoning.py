"""Narrative "creative reasoning" built from fixed templates.

Nothing here is learned: each sentence states which emotional thresholds or
strategy choices fired.
"""

from __future__ import annotations

from evolver.models.emotion import EmotionalVector
from evolver.models.generation import (
    CreativeReasoning,
    FitnessScores,
    MutationStrategy,
    MutationType,
)
from evolver.services.fitness import weakest_dimension
from evolver.services.mutation_selector import match_feedback

INITIAL_REFLECTION = "This is my initial conception. I'm curious to hear how it resonates."

WEAKNESS_ANALYSES = {
    "emotional_resonance": "The emotional impact isn't quite landing as I'd hoped.",
    "coherence": "Some elements feel disconnected from each other.",
    "interest": "It needs more variety to hold attention.",
    "surprise": "It's a bit too predictable and needs unexpected moments.",
    "technical_quality": "The execution could be more polished.",
}

STRATEGY_EXPLANATIONS = {
    MutationType.RHYTHMIC: "I'll modify the rhythmic elements to change the groove and energy flow.",
    MutationType.TIMBRAL: "I'll reshape the sound design and timbres to alter the texture and mood.",
    MutationType.STRUCTURAL: "I'll reorganize the structure to improve coherence and narrative arc.",
    MutationType.TEXTURAL: "I'll adjust the layering and spatial qualities for better depth and dimension.",
    MutationType.RADICAL: "I'm going to completely reimagine this. Time for a bold experiment.",
}


def describe_mood(mood: EmotionalVector) -> str:
    descriptors: list[str] = []

    if mood.energy > 0.6:
        descriptors.append("energetic")
    elif mood.energy < 0.3:
        descriptors.append("calm")
    if mood.tension > 0.6:
        descriptors.append("tense")
    if mood.darkness > 0.6:
        descriptors.append("dark")
    elif mood.darkness < 0.3:
        descriptors.append("bright")
    if mood.warmth > 0.6:
        descriptors.append("warm")
    if mood.complexity > 0.7:
        descriptors.append("complex")
    if mood.chaos > 0.6:
        descriptors.append("chaotic")
    if mood.space > 0.6:
        descriptors.append("spacious")

    return ", ".join(descriptors) if descriptors else "balanced"


def formulate_intention(mood: EmotionalVector, prompt: str) -> str:
    if mood.energy > 0.7 and mood.tension > 0.6:
        return "I want to create something that builds intensity and drives forward with purpose."
    if mood.darkness > 0.7 and mood.space > 0.6:
        return "I'm aiming for something introspective and atmospheric, with room to breathe."
    if mood.chaos > 0.6:
        return "I want to embrace unpredictability and create something that surprises."
    if mood.warmth > 0.7:
        return "I'm focusing on organic, human qualities, something that feels alive."
    return f'I want to capture the essence of "{prompt}" through musical expression.'


def formulate_strategy(mood: EmotionalVector) -> str:
    strategies: list[str] = []

    if mood.energy > 0.6:
        strategies.append("faster tempo and driving rhythms")
    if mood.darkness > 0.5:
        strategies.append("minor tonalities and darker timbres")
    if mood.warmth > 0.6:
        strategies.append("subtle timing variations for humanization")
    if mood.space > 0.6:
        strategies.append("generous reverb and sparse textures")
    if mood.complexity > 0.6:
        strategies.append("layered patterns and harmonic richness")

    if not strategies:
        return "I'll keep the arrangement simple and let the core motif carry the mood."
    return f"I'll use {', '.join(strategies)} to bring this to life."


def initial_reasoning(prompt: str, mood: EmotionalVector) -> CreativeReasoning:
    return CreativeReasoning(
        analysis=f'Starting from prompt: "{prompt}". I\'m interpreting this as a call for {describe_mood(mood)}.',
        intention=formulate_intention(mood, prompt),
        strategy=formulate_strategy(mood),
        reflection=INITIAL_REFLECTION,
    )


def analyze_parent(fitness: FitnessScores) -> str:
    return WEAKNESS_ANALYSES[weakest_dimension(fitness)]


def articulate_intent(strategy: MutationStrategy, feedback: str | None) -> str:
    if feedback:
        rule = match_feedback(feedback)
        goal = rule.goal if rule else "address the feedback thoughtfully"
        return f'Based on feedback: "{feedback}", I want to {goal}.'
    return f"I want to improve by applying a {strategy.description}."


def explain_strategy(strategy: MutationStrategy) -> str:
    if strategy.type == MutationType.HARMONIC:
        return (
            f"I'll adjust the harmonic content ({' and '.join(strategy.targets)}) "
            "to shift the emotional color."
        )
    return STRATEGY_EXPLANATIONS[strategy.type]


def anticipate_outcome(strategy: MutationStrategy) -> str:
    if strategy.intensity > 0.7:
        return "This is a bold move. It might be brilliant or might need refinement."
    if strategy.intensity < 0.3:
        return "This is a subtle tweak. The change should be nuanced but meaningful."
    return "I'm curious to see how this shifts the overall feel."


def evolution_reasoning(
    parent_fitness: FitnessScores, strategy: MutationStrategy, feedback: str | None = None
) -> CreativeReasoning:
    return CreativeReasoning(
        analysis=analyze_parent(parent_fitness),
        intention=articulate_intent(strategy, feedback),
        strategy=explain_strategy(strategy),
        reflection=anticipate_outcome(strategy),
    )
