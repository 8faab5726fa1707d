import asyncio
import json

import pytest
from openai import OpenAIError

from evolver.agent.composer_agent import (
    compose_evolution,
    compose_initial_generation,
    parse_ai_response,
)
from evolver.agent.mock_response import MOCK_RESPONSE
from evolver.agent.prompts import EVOLVE_SYSTEM_PROMPT, INITIAL_SYSTEM_PROMPT
from evolver.errors import CollaboratorError
from evolver.models.generation import MutableField, MutationType

from conftest import FakeClient


def _payload() -> dict:
    raw = MOCK_RESPONSE
    return json.loads(raw[raw.find("{"): raw.rfind("}") + 1])


class TestParseAiResponse:
    def test_extracts_json_from_prose(self):
        response = parse_ai_response(MOCK_RESPONSE)
        assert response.params.key == "Am"
        assert response.params.time_signature == (4, 4)
        assert response.mutations == [MutationType.TEXTURAL]

    def test_code_fenced_json(self):
        raw = "```json\n" + json.dumps(_payload()) + "\n```"
        assert parse_ai_response(raw).fitness.coherence == 0.8

    @pytest.mark.parametrize("raw", ["", "no json here", "} backwards {"])
    def test_missing_json(self, raw):
        with pytest.raises(CollaboratorError):
            parse_ai_response(raw)

    def test_invalid_json(self):
        with pytest.raises(CollaboratorError):
            parse_ai_response('{"params": {"tempo": 90,}}')

    def test_schema_violation(self):
        """Test that a structurally valid but out-of-range reply is rejected."""
        payload = _payload()
        payload["params"]["tempo"] = 400
        with pytest.raises(CollaboratorError):
            parse_ai_response(json.dumps(payload))

    def test_unequal_pattern_arrays(self):
        payload = _payload()
        payload["params"]["patterns"][0]["durations"].pop()
        with pytest.raises(CollaboratorError):
            parse_ai_response(json.dumps(payload))

    def test_unknown_mutation_tag(self):
        payload = _payload()
        payload["mutations"] = ["orchestral"]
        with pytest.raises(CollaboratorError):
            parse_ai_response(json.dumps(payload))


class TestComposeInitial:
    def test_sends_prompt_and_mood(self, neutral_mood):
        client = FakeClient()
        response = asyncio.run(compose_initial_generation("fog", neutral_mood, model_name="test/model", client=client))
        assert response.params.tempo == 84
        call = client.calls[0]
        assert call["model"] == "test/model"
        assert call["messages"][0] == {"role": "system", "content": INITIAL_SYSTEM_PROMPT}
        assert "fog" in call["messages"][1]["content"]
        assert '"energy": 0.5' in call["messages"][1]["content"]

    def test_mock_skips_client(self, neutral_mood):
        client = FakeClient()
        asyncio.run(compose_initial_generation("fog", neutral_mood, client=client, use_mock=True))
        assert client.calls == []

    def test_client_error_wrapped(self, neutral_mood):
        client = FakeClient(OpenAIError("rate limited"))
        with pytest.raises(CollaboratorError, match="rate limited"):
            asyncio.run(compose_initial_generation("fog", neutral_mood, client=client))

    def test_debug_tracing(self, neutral_mood, caplog):
        with caplog.at_level("DEBUG", logger="evolver.agent.debug"):
            asyncio.run(compose_initial_generation("fog", neutral_mood, client=FakeClient(), debug=True))
        assert "SYSTEM PROMPT" in caplog.text
        assert "FINAL OUTPUT" in caplog.text


class TestComposeEvolution:
    def test_includes_parent_context(self, root):
        locked = root.model_copy(update={"locked_elements": frozenset({MutableField.KEY})})
        client = FakeClient()
        asyncio.run(compose_evolution(locked, 0.6, "darker", client=client))
        call = client.calls[0]
        content = call["messages"][1]["content"]
        assert call["messages"][0]["content"] == EVOLVE_SYSTEM_PROMPT
        assert '"timeSignature"' in content
        assert "Locked elements (do not change): key" in content
        assert 'User feedback: "darker"' in content
        assert call["temperature"] == pytest.approx(0.8)

    def test_malformed_reply(self, root):
        with pytest.raises(CollaboratorError):
            asyncio.run(compose_evolution(root, 0.5, client=FakeClient("sorry")))
