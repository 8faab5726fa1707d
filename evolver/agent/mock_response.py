"""Canned composer output for development and testing."""

MOCK_RESPONSE = """\
Here is my composition:
{
  "reasoning": {
    "analysis": "A quiet, spacious prompt that asks for warmth over drive.",
    "intention": "I want a slow minor pulse with plenty of air around it.",
    "strategy": "Soft triangle pads, a long reverb tail and a sparse bass line.",
    "reflection": "It should feel calm; it may need more movement later."
  },
  "params": {
    "tempo": 84,
    "key": "Am",
    "scale": ["A", "B", "C", "D", "E", "F", "G"],
    "timeSignature": [4, 4],
    "effects": {
      "reverb": {"roomSize": 0.8, "dampening": 3000, "wet": 0.5},
      "delay": {"delayTime": "8n", "feedback": 0.3, "wet": 0.2},
      "filter": {"frequency": 2400, "type": "lowpass", "rolloff": -12}
    },
    "synths": [
      {
        "type": "synth",
        "oscillator": {"type": "triangle"},
        "envelope": {"attack": 0.4, "decay": 0.3, "sustain": 0.6, "release": 2.0},
        "volume": -10
      }
    ],
    "patterns": [
      {
        "notes": ["A2", "E2", "D2", "A2"],
        "durations": ["2n", "4n", "4n", "2n"],
        "velocities": [0.6, 0.5, 0.55, 0.6],
        "timing": [0, 0, 0, 0]
      }
    ]
  },
  "fitness": {
    "emotionalResonance": 0.7,
    "coherence": 0.8,
    "interest": 0.5,
    "surprise": 0.3,
    "technicalQuality": 0.75
  },
  "mutations": ["textural"]
}
"""
