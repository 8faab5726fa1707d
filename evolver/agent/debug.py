"""Debug tracing utilities for composer calls."""

from __future__ import annotations

import json
import logging
from typing import Any

log = logging.getLogger(__name__)


def _format_value(value: Any, max_length: int | None = 300) -> str:
    """Format a value for display, truncating if needed."""
    if isinstance(value, str):
        s = value
    elif isinstance(value, (dict, list)):
        s = json.dumps(value, indent=2, default=str)
    else:
        s = str(value)

    if max_length is not None and len(s) > max_length:
        return s[:max_length] + f"\n... (truncated {len(s) - max_length} chars)"
    return s


def _banner(title: str) -> None:
    log.debug("=" * 80)
    log.debug(title)
    log.debug("=" * 80)


def trace_request(kind: str, prompt: str, mood: dict[str, float], feedback: str | None = None) -> None:
    """Log what is about to be sent to the composer."""
    _banner(f"COMPOSER REQUEST ({kind})")
    log.debug(f"Prompt: {_format_value(prompt, max_length=200)}")
    log.debug(f"Mood: {_format_value(mood)}")
    if feedback:
        log.debug(f"Feedback: {_format_value(feedback, max_length=200)}")
    log.debug("=" * 80)


def trace_system_prompt(system_prompt: str) -> None:
    _banner("SYSTEM PROMPT")
    log.debug(_format_value(system_prompt, max_length=None))
    log.debug("=" * 80)


def trace_model_config(model_name: str, base_url: str) -> None:
    _banner("MODEL CONFIGURATION")
    log.debug(f"Model: {model_name}")
    log.debug(f"Base URL: {base_url}")
    log.debug("=" * 80)


def trace_messages(messages: list[dict[str, Any]]) -> None:
    """Log every chat message in the conversation."""
    _banner("COMPOSER CONVERSATION TRACE")
    for i, msg in enumerate(messages):
        log.debug(f"\n[MESSAGE {i}] {msg.get('role', '?').upper()}")
        log.debug("-" * 40)
        log.debug(f"    {_format_value(msg.get('content', ''))}")
    log.debug("\n" + "=" * 80)
    log.debug(f"TOTAL MESSAGES: {len(messages)}")
    log.debug("=" * 80)


def trace_final_output(output: Any) -> None:
    _banner("FINAL OUTPUT")
    log.debug(_format_value(output, max_length=None))
    log.debug("=" * 80)


def trace_usage(usage: Any) -> None:
    """Log token usage information."""
    _banner("API USAGE")
    log.debug(_format_value(usage))
    log.debug("=" * 80)
