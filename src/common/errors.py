"""
Error taxonomy.

Failures are local to one body: a bad image for one globe never
touches another body's terrain.
"""


class GlobeError(Exception):
    """Base class for globe generation errors."""


class ImageDecodeError(GlobeError):
    """Input image could not be read or decoded."""

    def __init__(self, message: str, source: str = ""):
        super().__init__(message)
        self.source = source


class RenderContextError(GlobeError):
    """Drawing surface is unavailable. Fatal for the current session."""


class ExportPrecondition(GlobeError):
    """Export requested before a height field exists."""


class PresetNotFoundError(GlobeError, KeyError):
    """No preset with the requested name."""

    def __str__(self) -> str:
        return Exception.__str__(self)
