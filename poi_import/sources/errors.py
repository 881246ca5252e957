"""Errors raised by source readers."""


class SourceFormatError(ValueError):
    """A source record could not be parsed."""
