# Define plinekit specific exceptions


# Base plinekit exception
class PlineError(Exception):
    pass


class InvalidPolylineError(ValueError, PlineError):
    """
    Polyline input is malformed: non-finite coordinates or bulges, too few vertexes,
    arcs over a zero length chord, or a closed polyline was required.
    """


class SelfIntersectingInputError(InvalidPolylineError):
    """Boolean operations require simple (non-self-intersecting) closed inputs."""


class UnsupportedOperationError(ValueError, PlineError):
    """Unknown boolean operation"""


class InvalidParameterError(ValueError, PlineError):
    """Non-finite offset distance or tolerance"""
