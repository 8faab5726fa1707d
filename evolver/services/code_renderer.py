"""Render MusicParameters as a standalone Tone.js program."""

from __future__ import annotations

import json

from evolver.models.music_params import MusicParameters, PatternDefinition
from evolver.services.theory import duration_to_beats


def loop_length_seconds(pattern: PatternDefinition, tempo: float) -> float:
    """Wall-clock length of one pass through a pattern at the given tempo."""
    beats = sum(duration_to_beats(d) for d in pattern.durations)
    return round(beats * 60.0 / tempo, 4)


def render_code(params: MusicParameters) -> str:
    effects = params.effects
    lines = [
        "// Generated music code",
        "const synths = [];",
        "",
        "// Effects chain",
        "const reverb = new Tone.Reverb({",
        f"  roomSize: {effects.reverb.room_size},",
        f"  dampening: {effects.reverb.dampening},",
        f"  wet: {effects.reverb.wet}",
        "}).toDestination();",
        "",
        "const delay = new Tone.FeedbackDelay({",
        f'  delayTime: "{effects.delay.delay_time}",',
        f"  feedback: {effects.delay.feedback},",
        f"  wet: {effects.delay.wet}",
        "}).connect(reverb);",
        "",
        "const filter = new Tone.Filter({",
        f"  frequency: {effects.filter.frequency},",
        f'  type: "{effects.filter.type}",',
        f"  rolloff: {effects.filter.rolloff}",
        "}).connect(delay);",
        "",
        f"Tone.Transport.bpm.value = {params.tempo};",
        f"Tone.Transport.timeSignature = [{params.time_signature[0]}, {params.time_signature[1]}];",
        "",
    ]

    for i, synth in enumerate(params.synths):
        lines += [
            f"const synth{i} = new Tone.Synth({{",
            f"  oscillator: {json.dumps(synth.oscillator.model_dump())},",
            f"  envelope: {json.dumps(synth.envelope.model_dump())},",
            f"  volume: {synth.volume}",
            "}).connect(filter);",
            f"synths.push(synth{i});",
            "",
        ]

    for i, pattern in enumerate(params.patterns):
        events = [
            {"note": note, "duration": duration, "velocity": velocity, "timing": timing}
            for note, duration, velocity, timing in zip(
                pattern.notes, pattern.durations, pattern.velocities, pattern.timing
            )
        ]
        lines += [
            f"const pattern{i} = new Tone.Part((time, value) => {{",
            f"  synths[{i % len(params.synths)}].triggerAttackRelease(",
            "    value.note, value.duration, time + value.timing, value.velocity",
            "  );",
            f"}}, {json.dumps(events)});",
            f"pattern{i}.loop = true;",
            f'pattern{i}.loopEnd = "{loop_length_seconds(pattern, params.tempo)}s";',
            "",
        ]

    lines.append("Tone.Transport.start();")
    lines += [f"pattern{i}.start(0);" for i in range(len(params.patterns))]
    return "\n".join(lines) + "\n"
