from __future__ import annotations

import json
import logging
import os
import time
from typing import Any

from openai import OpenAI, OpenAIError
from pydantic import ValidationError

from evolver.agent.debug import (
    trace_final_output,
    trace_messages,
    trace_model_config,
    trace_request,
    trace_system_prompt,
    trace_usage,
)
from evolver.agent.mock_response import MOCK_RESPONSE
from evolver.agent.prompts import EVOLVE_SYSTEM_PROMPT, INITIAL_SYSTEM_PROMPT
from evolver.errors import CollaboratorError
from evolver.models.emotion import EmotionalVector
from evolver.models.generation import AiGenerationResponse, Generation

log = logging.getLogger(__name__)

# OpenRouter config: set OPENROUTER_API_KEY env var
OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"
DEFAULT_MODEL_NAME = os.environ.get("COMPOSER_MODEL", "anthropic/claude-sonnet-4")


def _make_client() -> OpenAI:
    """Create an OpenAI-compatible client pointing at OpenRouter."""
    return OpenAI(
        base_url=OPENROUTER_BASE_URL,
        api_key=os.environ.get("OPENROUTER_API_KEY"),
    )


def parse_ai_response(raw: str) -> AiGenerationResponse:
    """Extract the outermost JSON object from ``raw`` and validate it.

    Models often wrap the object in prose or code fences, so everything outside
    the first ``{`` and the last ``}`` is ignored.
    """
    json_start = raw.find("{")
    json_end = raw.rfind("}") + 1
    if json_start < 0 or json_end <= json_start:
        raise CollaboratorError("No JSON found in composer response")

    try:
        data = json.loads(raw[json_start:json_end])
        return AiGenerationResponse.model_validate(data)
    except (json.JSONDecodeError, ValidationError) as e:
        log.error("Failed to parse composer response: %s", e)
        log.debug("Full response content: %s", raw)
        raise CollaboratorError(f"Composer response could not be parsed: {e}") from e


def _complete(
    messages: list[dict[str, Any]],
    model_name: str | None,
    client: Any | None,
    temperature: float,
    debug: bool,
) -> str:
    model = model_name or DEFAULT_MODEL_NAME
    if debug:
        trace_model_config(model, OPENROUTER_BASE_URL)
        trace_system_prompt(messages[0]["content"])
        trace_messages(messages[1:])

    start = time.time()
    try:
        client = client or _make_client()
        response = client.chat.completions.create(
            model=model,
            messages=messages,
            temperature=temperature,
        )
    except OpenAIError as e:
        log.error("Composer request failed: %s", e)
        raise CollaboratorError(f"Composer request failed: {e}") from e

    raw = response.choices[0].message.content or ""
    log.info("Composer replied in %.2fs (%s)", time.time() - start, model)
    if debug:
        trace_usage(getattr(response, "usage", None))
        trace_final_output(raw)
    return raw


async def compose_initial_generation(
    prompt: str,
    mood: EmotionalVector,
    model_name: str | None = None,
    client: Any | None = None,
    debug: bool = False,
    use_mock: bool = False,
) -> AiGenerationResponse:
    """Ask the composer for Generation 0.

    Args:
        prompt: The user's description of the music.
        mood: Emotional target the parameters should express.
        model_name: Override the OpenRouter model (default: ``COMPOSER_MODEL`` env var).
        client: Pre-built OpenAI-compatible client; one is created when omitted.
        debug: If True, log a full trace of the request and response.
        use_mock: If True, parse a canned response without calling the model.

    Raises:
        CollaboratorError: the request failed or the reply did not validate.
    """
    mood_dict = mood.model_dump(by_alias=True)
    if debug:
        trace_request("initial", prompt, mood_dict)
    if use_mock:
        log.info("Using mock composer response")
        return parse_ai_response(MOCK_RESPONSE)

    messages = [
        {"role": "system", "content": INITIAL_SYSTEM_PROMPT},
        {
            "role": "user",
            "content": f"Prompt: {prompt}\n\nEmotional vector:\n{json.dumps(mood_dict, indent=2)}",
        },
    ]
    raw = _complete(messages, model_name, client, temperature=0.8, debug=debug)
    return parse_ai_response(raw)


async def compose_evolution(
    parent: Generation,
    creative_temperature: float,
    feedback: str | None = None,
    model_name: str | None = None,
    client: Any | None = None,
    debug: bool = False,
    use_mock: bool = False,
) -> AiGenerationResponse:
    """Ask the composer to mutate ``parent``; same contract as the initial call."""
    mood_dict = parent.mood.model_dump(by_alias=True)
    if debug:
        trace_request("evolve", parent.prompt, mood_dict, feedback)
    if use_mock:
        log.info("Using mock composer response")
        return parse_ai_response(MOCK_RESPONSE)

    user_parts = [
        f"Original prompt: {parent.prompt}",
        f"Emotional vector:\n{json.dumps(mood_dict, indent=2)}",
        f"Parent parameters:\n{parent.music_params.model_dump_json(by_alias=True, indent=2)}",
        f"Parent fitness:\n{parent.fitness.model_dump_json(by_alias=True, indent=2)}",
        f"Mutation history: {', '.join(m.value for m in parent.mutations) or 'none'}",
        f"Locked elements (do not change): {', '.join(sorted(f.value for f in parent.locked_elements)) or 'none'}",
        f"Creative temperature: {creative_temperature:.2f}",
    ]
    if feedback:
        user_parts.append(f'User feedback: "{feedback}"')

    messages = [
        {"role": "system", "content": EVOLVE_SYSTEM_PROMPT},
        {"role": "user", "content": "\n\n".join(user_parts)},
    ]
    raw = _complete(
        messages, model_name, client, temperature=0.5 + creative_temperature * 0.5, debug=debug
    )
    return parse_ai_response(raw)
