"""Error taxonomy for the evolution engine.

Range violations in derived numbers are clamped where they occur and never
reach this module.
"""


class EvolutionError(Exception):
    """Base class for failures surfaced to callers of the engine."""


class InvalidInputError(EvolutionError, ValueError):
    """The caller asked for something the engine cannot do, e.g. evolving without a parent."""


class CollaboratorError(EvolutionError, ValueError):
    """The remote composer returned output that could not be parsed or validated."""
