from pydantic import ConfigDict, Field

from evolver.models.base import CamelModel

EMOTION_DIMENSIONS = (
    "energy",
    "tension",
    "warmth",
    "complexity",
    "darkness",
    "hope",
    "chaos",
    "space",
)


class EmotionalVector(CamelModel):
    """Eight-dimensional mood descriptor driving every musical derivation."""

    model_config = ConfigDict(frozen=True)

    energy: float = Field(ge=0.0, le=1.0, description="Low energy (0) vs high energy (1)")
    tension: float = Field(ge=0.0, le=1.0, description="Relaxed (0) vs tense (1)")
    warmth: float = Field(ge=0.0, le=1.0, description="Cold/mechanical (0) vs warm/organic (1)")
    complexity: float = Field(ge=0.0, le=1.0, description="Simple (0) vs complex (1)")
    darkness: float = Field(ge=0.0, le=1.0, description="Bright (0) vs dark (1)")
    hope: float = Field(ge=0.0, le=1.0, description="Melancholic (0) vs hopeful (1)")
    chaos: float = Field(ge=0.0, le=1.0, description="Ordered (0) vs chaotic (1)")
    space: float = Field(ge=0.0, le=1.0, description="Dense (0) vs sparse (1)")
