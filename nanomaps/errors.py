"""Typed errors for nanomaps."""


class NanomapsError(Exception):
    """Base error for the project."""


class TransformError(NanomapsError, ValueError):
    """A transform could not be built (bad resolution or anchor)."""


class ConfigError(NanomapsError, ValueError):
    """Unknown or invalid configuration value."""


class TileFetchError(NanomapsError):
    """A map tile could not be downloaded or decoded."""
