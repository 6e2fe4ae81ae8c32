"""Exceptions raised by the layout core."""


class PlateLayoutError(Exception):
    """Base class for every error raised by qpcr_layout."""


class ConfigurationError(PlateLayoutError, ValueError):
    """Malformed or inconsistent layout input (plate size, list lengths, duplicates)."""


class GeometryError(PlateLayoutError, RuntimeError):
    """A fragment cannot be placed without leaving the plate or overlapping wells."""
