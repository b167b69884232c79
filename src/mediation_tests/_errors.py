"""Exception types raised by the mediation test procedures.

Each subclasses the built-in exception a caller would otherwise expect
(``TypeError`` for a wrong input type, ``ValueError`` for an input that
lacks required content), so ``except ValueError`` keeps working.
"""


class UnsupportedInputType(TypeError):
    """The object passed to a test is not a recognised mediation result."""


class MissingSimulationDraws(ValueError):
    """The mediation result was fitted without retaining simulation draws."""


class MissingInteractionTerm(ValueError):
    """The outcome model has no treatment-mediator interaction term."""


__all__ = [
    "MissingInteractionTerm",
    "MissingSimulationDraws",
    "UnsupportedInputType",
]
