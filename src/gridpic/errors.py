class GridpicError(Exception):
    """Base class for failures surfaced at the pipeline boundary."""


class NoInputSelected(GridpicError):
    def __init__(self, message: str = "No image selected"):
        super().__init__(message)


class DecodeError(GridpicError):
    """The input bytes are not a supported raster image."""


class EncodeError(GridpicError):
    """The decoded raster could not be re-encoded for display."""


class AcquireError(GridpicError):
    """The image bytes could not be read from their source."""
