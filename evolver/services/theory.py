"""Pitch, key, scale and duration vocabularies shared by synthesis and mutation."""

from __future__ import annotations

CHROMATIC = ("C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B")

# Flat spellings appearing in derived keys and scales
_ENHARMONIC = {"Db": "C#", "Eb": "D#", "Gb": "F#", "Ab": "G#", "Bb": "A#", "Cb": "B", "Fb": "E"}

MAJOR_KEYS = ("C", "G", "D", "F", "A", "E")
MINOR_KEYS = ("Am", "Dm", "Em", "Bm", "F#m", "Cm")
ALL_KEYS = CHROMATIC + tuple(f"{k}m" for k in CHROMATIC)

NAMED_SCALES: dict[str, tuple[str, ...]] = {
    "major": ("C", "D", "E", "F", "G", "A", "B"),
    "natural_minor": ("C", "D", "Eb", "F", "G", "Ab", "Bb"),
    "harmonic_minor": ("C", "D", "Eb", "F#", "G", "Ab", "B"),
    "mixolydian": ("C", "D", "E", "F", "G", "A", "Bb"),
    "altered": ("C", "Db", "E", "F", "G", "Ab", "Bb"),
    "lydian": ("C", "D", "E", "F#", "G", "A", "B"),
    "dorian": ("C", "D", "Eb", "F", "G", "A", "Bb"),
    "phrygian": ("C", "Db", "Eb", "F", "G", "Ab", "Bb"),
}

IRREGULAR_METERS: tuple[tuple[int, int], ...] = ((5, 4), (7, 8), (6, 8), (9, 8))
COMMON_TIME = (4, 4)

DURATION_TOKENS = ("16n", "8n", "4n", "2n")
OSCILLATOR_TYPES = ("sine", "triangle", "sawtooth", "square")

_DURATION_BEATS = {"1n": 4.0, "2n": 2.0, "4n": 1.0, "8n": 0.5, "16n": 0.25}


def duration_to_beats(token: str) -> float:
    """Length of a Tone.js duration token in quarter-note beats (unknown tokens count as one beat)."""
    return _DURATION_BEATS.get(token, 1.0)


def pitch_class(name: str) -> int:
    """Chromatic index of a pitch name such as 'F#' or 'Bb'."""
    name = _ENHARMONIC.get(name, name)
    return CHROMATIC.index(name)


def is_minor_key(key: str) -> bool:
    return key.endswith("m")


def transpose_key(key: str, semitones: int) -> str:
    """Move a key's root by semitones, keeping its major/minor quality."""
    minor = is_minor_key(key)
    root = key[:-1] if minor else key
    try:
        index = pitch_class(root)
    except ValueError:
        # Unrecognised spelling, restart from the tonic of the same quality
        return "Am" if minor else "C"
    new_root = CHROMATIC[(index + semitones) % len(CHROMATIC)]
    return f"{new_root}m" if minor else new_root


def scale_name(scale: list[str]) -> str | None:
    """Name of a known scale matching the given pitches, if any."""
    for name, pitches in NAMED_SCALES.items():
        if tuple(scale) == pitches:
            return name
    return None
