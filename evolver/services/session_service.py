"""Session management: lineage bookkeeping, feedback memory, diffs and export."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from evolver.agent.composer_agent import compose_evolution, compose_initial_generation
from evolver.errors import InvalidInputError
from evolver.models.emotion import EmotionalVector
from evolver.models.generation import Generation
from evolver.models.music_params import MusicParameters
from evolver.models.session import (
    GenerationDiff,
    ParamDiff,
    Session,
    SessionSettings,
    UserFeedback,
)
from evolver.services import evolution_engine
from evolver.services.mutation import coerce_locked_fields
from evolver.services.playback import AudioPlayer, StubAudioPlayer
from evolver.services.randomness import RandomSource, make_rng

log = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, Generation], None]


def _now() -> datetime:
    return datetime.now(timezone.utc)


def create_session(prompt: str = "", settings: SessionSettings | None = None) -> Session:
    """Create an empty session with default settings and memory."""
    now = _now()
    return Session(
        id=f"session_{uuid4().hex[:12]}",
        start_time=now,
        last_update_time=now,
        initial_prompt=prompt,
        settings=settings or SessionSettings(),
    )


def _flatten_params(node: Any, path: str = "") -> dict[str, Any]:
    """Flatten dumped parameters into {path: leaf value}.

    Dicts and lists of dicts are descended into; lists of scalars (scale, notes,
    durations, ...) are compared whole.
    """
    if isinstance(node, dict):
        flattened: dict[str, Any] = {}
        for key, value in node.items():
            flattened.update(_flatten_params(value, f"{path}.{key}" if path else key))
        return flattened

    if isinstance(node, list) and node and all(isinstance(item, dict) for item in node):
        flattened = {}
        for i, item in enumerate(node):
            flattened.update(_flatten_params(item, f"{path}[{i}]"))
        return flattened

    return {path: node}


def compute_generation_diff(original: MusicParameters, modified: MusicParameters) -> list[ParamDiff]:
    """Leaf-level differences between two parameter sets, keyed by camelCase path."""
    orig_flat = _flatten_params(original.model_dump(mode="json", by_alias=True))
    mod_flat = _flatten_params(modified.model_dump(mode="json", by_alias=True))

    diffs: list[ParamDiff] = []

    # Modified and deleted leaves
    for path, orig_value in orig_flat.items():
        if path not in mod_flat:
            diffs.append(ParamDiff(path=path, change_type="deleted", original_value=orig_value))
        elif orig_value != mod_flat[path]:
            diffs.append(
                ParamDiff(
                    path=path,
                    change_type="modified",
                    original_value=orig_value,
                    modified_value=mod_flat[path],
                )
            )

    # Added leaves
    for path, mod_value in mod_flat.items():
        if path not in orig_flat:
            diffs.append(ParamDiff(path=path, change_type="added", modified_value=mod_value))

    return diffs


def create_diff_summary(diffs: list[ParamDiff]) -> str:
    """Generate a human-readable summary of changes."""
    if not diffs:
        return "No changes"

    added = sum(1 for d in diffs if d.change_type == "added")
    modified = sum(1 for d in diffs if d.change_type == "modified")
    deleted = sum(1 for d in diffs if d.change_type == "deleted")

    parts = []
    if added > 0:
        parts.append(f"{added} parameter{'s' if added != 1 else ''} added")
    if modified > 0:
        parts.append(f"{modified} parameter{'s' if modified != 1 else ''} modified")
    if deleted > 0:
        parts.append(f"{deleted} parameter{'s' if deleted != 1 else ''} deleted")

    return ", ".join(parts)


def export_session(session: Session) -> str:
    return session.model_dump_json(by_alias=True, indent=2)


def validate_lineage(session: Session) -> None:
    """Check that the session's generations form a forest.

    Ids must be unique, every parent must exist, and each child numbers one
    past its parent. Strictly increasing numbers rule out parent cycles.
    """
    by_id: dict[str, Generation] = {}
    for gen in session.generations:
        if gen.id in by_id:
            raise InvalidInputError(f"Duplicate generation id {gen.id}")
        by_id[gen.id] = gen

    for gen in session.generations:
        if gen.parent_id is None:
            expected = 0
        elif gen.parent_id in by_id:
            expected = by_id[gen.parent_id].generation_number + 1
        else:
            raise InvalidInputError(f"Generation {gen.id} has unknown parent {gen.parent_id}")
        if gen.generation_number != expected:
            raise InvalidInputError(
                f"Generation {gen.id} is numbered {gen.generation_number}, expected {expected}"
            )

    if session.current_generation is not None and session.current_generation not in by_id:
        raise InvalidInputError(f"Current generation {session.current_generation} is not in the session")


def load_session(data: str | bytes) -> Session:
    """Parse an exported session.

    Raises pydantic.ValidationError on schema errors and InvalidInputError
    when the generations do not form a valid lineage.
    """
    session = Session.model_validate_json(data)
    validate_lineage(session)
    return session


def _fmt_time(ts: datetime) -> str:
    return ts.strftime("%Y-%m-%d %H:%M:%S %Z").strip()


def export_creative_log(session: Session) -> str:
    """Markdown log of every generation's reasoning, scores and key parameters."""
    lines = [
        "# Creative Process Log",
        "",
        f"**Session:** {session.id}",
        f"**Started:** {_fmt_time(session.start_time)}",
        f'**Prompt:** "{session.initial_prompt}"',
        "",
        "---",
        "",
    ]

    for gen in session.generations:
        reasoning, fitness, params = gen.creative_reasoning, gen.fitness, gen.music_params
        lines += [
            f"## Generation {gen.generation_number}",
            "",
            f"**Time:** {_fmt_time(gen.timestamp)}",
            f"**Parent:** {gen.parent_id or 'None (initial)'}",
            f"**Mutations:** {', '.join(m.value for m in gen.mutations) or 'None'}",
            "",
            f"### Analysis\n{reasoning.analysis}\n",
            f"### Intention\n{reasoning.intention}\n",
            f"### Strategy\n{reasoning.strategy}\n",
            f"### Reflection\n{reasoning.reflection}\n",
            "### Fitness Scores",
            f"- Emotional Resonance: {fitness.emotional_resonance * 100:.0f}%",
            f"- Coherence: {fitness.coherence * 100:.0f}%",
            f"- Interest: {fitness.interest * 100:.0f}%",
            f"- Surprise: {fitness.surprise * 100:.0f}%",
            f"- Technical Quality: {fitness.technical_quality * 100:.0f}%",
            "",
            "### Musical Parameters",
            f"- Tempo: {params.tempo:.1f} BPM",
            f"- Key: {params.key}",
            f"- Time Signature: {params.time_signature[0]}/{params.time_signature[1]}",
            f"- Scale: {', '.join(params.scale)}",
            "",
            "---",
            "",
        ]

    return "\n".join(lines)


def export_generation_code(generation: Generation) -> str:
    """The generation's Tone.js program with a provenance header."""
    return (
        "/**\n"
        f" * Generation {generation.generation_number}\n"
        f" * Created: {_fmt_time(generation.timestamp)}\n"
        " *\n"
        f" * {generation.creative_reasoning.intention}\n"
        " */\n\n"
        f"{generation.music_code}"
    )


class SessionManager:
    """Drives one session: creates generations and keeps its bookkeeping consistent.

    Generation creation is serialized through an asyncio lock. Each step builds
    the new generation first and only then appends it and moves the current
    pointer, so a failure leaves the session exactly as it was.
    """

    def __init__(
        self,
        session: Session | None = None,
        rng: RandomSource | None = None,
        *,
        use_ai: bool = False,
        use_mock: bool = False,
        model_name: str | None = None,
        client: Any | None = None,
        player: AudioPlayer | None = None,
        debug: bool = False,
    ):
        self.session = session or create_session()
        self.rng = rng or make_rng()
        self.use_ai = use_ai
        self.use_mock = use_mock
        self.model_name = model_name
        self.client = client
        self.player = player or StubAudioPlayer()
        self.debug = debug
        self._lock = asyncio.Lock()

    @property
    def current(self) -> Generation | None:
        return self.session.get_generation(self.session.current_generation)

    def get_generation(self, generation_id: str) -> Generation:
        generation = self.session.get_generation(generation_id)
        if generation is None:
            raise KeyError(f"Generation {generation_id} not found")
        return generation

    def _touch(self) -> None:
        self.session.last_update_time = _now()

    def _append(self, generation: Generation) -> None:
        self.session.generations.append(generation)
        self.session.current_generation = generation.id
        self._touch()

    async def start(self, prompt: str, mood: EmotionalVector) -> Generation:
        """Begin a fresh lineage from ``prompt``; earlier generations are discarded."""
        async with self._lock:
            if self.use_ai:
                response = await compose_initial_generation(
                    prompt,
                    mood,
                    model_name=self.model_name,
                    client=self.client,
                    debug=self.debug,
                    use_mock=self.use_mock,
                )
                root = evolution_engine.root_from_response(prompt, mood, response)
            else:
                root = evolution_engine.create_root(prompt, mood, self.rng)

            now = _now()
            self.session.start_time = now
            self.session.initial_prompt = prompt
            self.session.generations = [root]
            self.session.current_generation = root.id
            self.session.last_update_time = now
            log.info("Session %s started with %s", self.session.id, root.id)
            return root

    def has_children(self, generation_id: str) -> bool:
        return any(g.parent_id == generation_id for g in self.session.generations)

    async def evolve_current(self, feedback: str | None = None) -> Generation:
        async with self._lock:
            parent = self.current
            if parent is None:
                raise InvalidInputError("No current generation to evolve")
            if not self.session.settings.allow_branching and self.has_children(parent.id):
                raise InvalidInputError(
                    f"Branching is disabled and generation {parent.id} already has children"
                )

            temperature = self.session.settings.creative_temperature
            if self.use_ai:
                response = await compose_evolution(
                    parent,
                    temperature,
                    feedback,
                    model_name=self.model_name,
                    client=self.client,
                    debug=self.debug,
                    use_mock=self.use_mock,
                )
                child = evolution_engine.child_from_response(parent, response)
            else:
                child = evolution_engine.evolve(parent, temperature, feedback, rng=self.rng)

            self._append(child)
            return child

    async def run_autonomous(
        self, n: int | None = None, on_progress: ProgressCallback | None = None
    ) -> list[Generation]:
        """Evolve ``n`` generations in a row, each from the one before."""
        count = self.session.settings.generations_to_run if n is None else n
        if count < 1:
            raise InvalidInputError(f"Number of generations must be at least 1, got {count}")
        if self.current is None:
            raise InvalidInputError("No current generation")

        produced: list[Generation] = []
        for i in range(count):
            generation = await self.evolve_current()
            produced.append(generation)
            log.info("Autonomous step %d/%d: %s", i + 1, count, generation.id)
            if on_progress:
                on_progress(i + 1, count, generation)
        return produced

    def set_current(self, generation_id: str) -> Generation:
        generation = self.get_generation(generation_id)
        self.session.current_generation = generation.id
        self._touch()
        return generation

    def add_feedback(self, feedback: UserFeedback) -> Generation:
        """Record feedback; returns the generation as stored afterwards."""
        generation = self.get_generation(feedback.generation_id)
        memory = self.session.memory

        if feedback.rating is not None and feedback.rating >= 4:
            memory.preferred_moods.append(generation.mood)
            memory.successful_mutations.extend(generation.mutations)

        if feedback.locked_elements is not None:
            locked = coerce_locked_fields(feedback.locked_elements)
            updated = generation.model_copy(update={"locked_elements": locked})
            index = next(i for i, g in enumerate(self.session.generations) if g.id == generation.id)
            self.session.generations[index] = updated
            generation = updated
            log.info("Locked %s on %s", sorted(f.value for f in locked), generation.id)

        self._touch()
        return generation

    def update_settings(self, **changes: Any) -> SessionSettings:
        """Merge ``changes`` into the settings; invalid values raise ValidationError."""
        unknown = set(changes) - set(SessionSettings.model_fields)
        if unknown:
            raise InvalidInputError(f"Unknown settings: {', '.join(sorted(unknown))}")
        merged = self.session.settings.model_dump()
        merged.update(changes)
        self.session.settings = SessionSettings.model_validate(merged)
        self._touch()
        return self.session.settings

    def generation_tree(self) -> dict[str, list[Generation]]:
        """Map each parent id (or "root") to its children in creation order."""
        tree: dict[str, list[Generation]] = {}
        for gen in self.session.generations:
            tree.setdefault(gen.parent_id or "root", []).append(gen)
        return tree

    def lineage(self, generation_id: str) -> list[Generation]:
        """Ancestors of ``generation_id`` from the root down to itself."""
        chain: list[Generation] = []
        seen: set[str] = set()
        generation: Generation | None = self.get_generation(generation_id)
        while generation is not None and generation.id not in seen:
            seen.add(generation.id)
            chain.append(generation)
            generation = self.session.get_generation(generation.parent_id)
        chain.reverse()
        return chain

    def diff(self, from_id: str, to_id: str) -> GenerationDiff:
        original = self.get_generation(from_id)
        modified = self.get_generation(to_id)
        changes = compute_generation_diff(original.music_params, modified.music_params)
        return GenerationDiff(
            from_generation_id=from_id,
            to_generation_id=to_id,
            changes=changes,
            summary=create_diff_summary(changes),
        )

    async def play(self, generation_id: str | None = None) -> Generation:
        """Hand a generation (the current one by default) to the audio player."""
        if generation_id is None:
            generation = self.current
            if generation is None:
                raise InvalidInputError("No current generation to play")
        else:
            generation = self.get_generation(generation_id)
        await self.player.play(generation.music_params)
        return generation

    def stop(self) -> None:
        self.player.stop()


class SessionStore:
    """In-memory store for session managers (production should use database)."""

    def __init__(self):
        self.sessions: dict[str, SessionManager] = {}

    def save_session(self, manager: SessionManager) -> None:
        self.sessions[manager.session.id] = manager
        log.info("Saved session %s", manager.session.id)

    def get_session(self, session_id: str) -> SessionManager | None:
        return self.sessions.get(session_id)

    def list_sessions(self) -> list[SessionManager]:
        """List all sessions, most recently updated first."""
        return sorted(
            self.sessions.values(),
            key=lambda m: m.session.last_update_time,
            reverse=True,
        )
