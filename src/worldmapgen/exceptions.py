"""Custom exceptions for map generation."""


class MapGenError(Exception):
    """Base exception for map generation errors."""

    pass


class InvalidParametersError(MapGenError):
    """Raised when parameters violate a precondition of generation."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__("; ".join(errors) if errors else "Invalid parameters")


class MapFileError(MapGenError):
    """Raised when a saved map file is malformed."""

    pass
