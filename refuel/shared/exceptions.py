"""
Error taxonomy shared by all features.

- ParseError: file is malformed, the user must pick another file
- EmptyRouteError: file parsed but has no usable points
- NetworkError: a provider call failed (retry or degrade)
- ValidationError: user input is out of range
"""


class RefuelError(Exception):
    """Base application error."""
    pass


class ParseError(RefuelError):
    """GPX content could not be parsed."""
    pass


class EmptyRouteError(RefuelError):
    """Route contains no usable points."""
    pass


class ValidationError(RefuelError):
    """User-supplied value is invalid."""
    pass


class NetworkError(RefuelError):
    """External provider call failed."""
    pass


class POIProviderError(NetworkError):
    """Point-of-interest provider error."""
    pass


class DirectionsError(NetworkError):
    """Directions provider error."""
    pass
