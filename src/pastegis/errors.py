"""Exceptions raised while decoding and parsing pasted geometry."""


class PasteGISError(Exception):
    """Base class for all pastegis errors."""


class UnsupportedGeometry(PasteGISError):
    """A binary shape uses curves or a shape type outside the supported table."""


class MalformedInput(PasteGISError):
    """Input looked like a known format but could not be read."""


class UnknownFormat(PasteGISError):
    """No format interpretation matched the pasted text."""

    def __init__(self, message: str = "Unknown format"):
        super().__init__(message)
