from __future__ import annotations

from types import SimpleNamespace

import pytest

from evolver.agent.mock_response import MOCK_RESPONSE
from evolver.models.emotion import EmotionalVector
from evolver.services.evolution_engine import create_root
from evolver.services.randomness import make_rng


class ScriptedRandom:
    """Replays a fixed list of floats, cycling when it runs out."""

    def __init__(self, values):
        self.values = list(values)
        self.calls = 0

    def random(self) -> float:
        value = self.values[self.calls % len(self.values)]
        self.calls += 1
        return value


class FakeCompletions:
    def __init__(self, replies):
        self.replies = list(replies)
        self.calls: list[dict] = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, Exception):
            raise reply
        return SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content=reply))],
            usage=None,
        )


class FakeClient:
    """Stands in for an OpenAI client; each call returns the next scripted reply."""

    def __init__(self, *replies):
        self.chat = SimpleNamespace(completions=FakeCompletions(replies or [MOCK_RESPONSE]))

    @property
    def calls(self) -> list[dict]:
        return self.chat.completions.calls


def mood(**overrides) -> EmotionalVector:
    values = dict(
        energy=0.5,
        tension=0.5,
        warmth=0.5,
        complexity=0.5,
        darkness=0.5,
        hope=0.5,
        chaos=0.5,
        space=0.5,
    )
    values.update(overrides)
    return EmotionalVector(**values)


@pytest.fixture
def rng():
    return make_rng(1234)


@pytest.fixture
def neutral_mood() -> EmotionalVector:
    return mood()


@pytest.fixture
def scenario_a_mood() -> EmotionalVector:
    return mood(
        energy=0.8,
        tension=0.2,
        warmth=0.5,
        complexity=0.5,
        darkness=0.2,
        hope=0.5,
        chaos=0.1,
        space=0.3,
    )


@pytest.fixture
def root(neutral_mood, rng):
    return create_root("slow drifting fog", neutral_mood, rng)
