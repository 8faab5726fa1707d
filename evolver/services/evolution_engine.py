"""Generation lifecycle: build roots and evolve children.

All functions are stateless. They take the data they need plus a random
source and return a new Generation; nothing here performs I/O or keeps state
between calls.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone

from evolver.errors import InvalidInputError
from evolver.models.emotion import EmotionalVector
from evolver.models.generation import AiGenerationResponse, Generation, MutationType
from evolver.services.code_renderer import render_code
from evolver.services.fitness import evaluate
from evolver.services.mutation import apply_mutation, restore_locked_fields
from evolver.services.mutation_selector import select_strategy
from evolver.services.randomness import RandomSource
from evolver.services.reasoning import evolution_reasoning, initial_reasoning
from evolver.services.synthesizer import synthesize

log = logging.getLogger(__name__)

ROOT_BRANCH = "main"


def generate_id() -> str:
    return f"gen_{uuid.uuid4().hex[:12]}"


def _now() -> datetime:
    return datetime.now(timezone.utc)


def create_root(prompt: str, emotion: EmotionalVector, rng: RandomSource) -> Generation:
    """Generation 0: synthesize parameters from the mood and score them."""
    params = synthesize(emotion, prompt, rng)
    generation = Generation(
        id=generate_id(),
        parent_id=None,
        generation_number=0,
        timestamp=_now(),
        music_code=render_code(params),
        music_params=params,
        creative_reasoning=initial_reasoning(prompt, emotion),
        fitness=evaluate(params, emotion),
        prompt=prompt,
        mood=emotion,
        mutations=[],
        locked_elements=frozenset(),
        branch=ROOT_BRANCH,
        tags=[],
    )
    log.info("Created root generation %s (tempo=%.1f, key=%s)", generation.id, params.tempo, params.key)
    return generation


def evolve(
    parent: Generation | None,
    creative_temperature: float,
    feedback: str | None = None,
    *,
    rng: RandomSource,
) -> Generation:
    """Produce a child of ``parent`` by selecting and applying one mutation."""
    if parent is None:
        raise InvalidInputError("Cannot evolve without a parent generation")
    if not 0.0 <= creative_temperature <= 1.0:
        raise InvalidInputError(f"creative_temperature must be within [0, 1], got {creative_temperature}")

    strategy = select_strategy(parent.fitness, creative_temperature, feedback)
    params = apply_mutation(parent.music_params, strategy, parent.locked_elements, rng)

    generation = Generation(
        id=generate_id(),
        parent_id=parent.id,
        generation_number=parent.generation_number + 1,
        timestamp=_now(),
        music_code=render_code(params),
        music_params=params,
        creative_reasoning=evolution_reasoning(parent.fitness, strategy, feedback),
        fitness=evaluate(params, parent.mood),
        prompt=parent.prompt,
        mood=parent.mood,
        mutations=[*parent.mutations, strategy.type],
        locked_elements=parent.locked_elements,
        branch=parent.branch,
        tags=[],
    )
    log.info(
        "Evolved %s -> %s (generation %d, %s)",
        parent.id,
        generation.id,
        generation.generation_number,
        strategy.description,
    )
    return generation


def root_from_response(
    prompt: str, emotion: EmotionalVector, response: AiGenerationResponse
) -> Generation:
    """Package a remote composer's initial response as Generation 0."""
    return Generation(
        id=generate_id(),
        parent_id=None,
        generation_number=0,
        timestamp=_now(),
        music_code=render_code(response.params),
        music_params=response.params,
        creative_reasoning=response.reasoning,
        fitness=response.fitness,
        prompt=prompt,
        mood=emotion,
        mutations=[],
        locked_elements=frozenset(),
        branch=ROOT_BRANCH,
        tags=[],
    )


def child_from_response(parent: Generation | None, response: AiGenerationResponse) -> Generation:
    """Package a remote composer's evolution response as a child of ``parent``."""
    if parent is None:
        raise InvalidInputError("Cannot evolve without a parent generation")
    applied = response.mutations or [MutationType.HARMONIC]
    params = restore_locked_fields(response.params, parent.music_params, parent.locked_elements)
    return Generation(
        id=generate_id(),
        parent_id=parent.id,
        generation_number=parent.generation_number + 1,
        timestamp=_now(),
        music_code=render_code(params),
        music_params=params,
        creative_reasoning=response.reasoning,
        fitness=response.fitness,
        prompt=parent.prompt,
        mood=parent.mood,
        mutations=[*parent.mutations, *applied],
        locked_elements=parent.locked_elements,
        branch=parent.branch,
        tags=[],
    )
