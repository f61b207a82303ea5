"""
Exceptions raised by blocktext.
"""


class BlockTextError(Exception):
    """Base exception functionality"""


class UnsupportedTypeError(BlockTextError, ValueError):
    """File name does not carry a recognized font extension."""


class LoadFailureError(BlockTextError):
    """The font backend could not read or parse a font file."""


class IoFailureError(BlockTextError, OSError):
    """Directory creation or proxy read/write failed."""


class NotFoundError(BlockTextError, LookupError):
    """No loaded font matches the requested name."""


class OutOfRangeError(BlockTextError, IndexError):
    """Line index or alignment ordinal outside the valid range."""


class MeasurementFailureError(BlockTextError):
    """The glyph backend could not measure or render a character."""
