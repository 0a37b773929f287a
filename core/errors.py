from __future__ import annotations


class MosaicError(Exception):
    """Base class for editing errors reported to the user."""


class InvalidDimensions(MosaicError, ValueError):
    pass


class DegenerateSelection(MosaicError):
    """Selection collapses to zero width or height once rounded to pixels."""


class NoImageLoaded(MosaicError):
    pass


class TransformFailure(MosaicError):
    pass
